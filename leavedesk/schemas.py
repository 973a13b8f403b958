# leavedesk/schemas.py
"""
Record shapes and payload validation.

Wire format is camelCase JSON; attributes are snake_case. The denormalized
employee fields on a LeaveRequest are a snapshot taken at submission time
and are intentionally not kept in sync with later edits of the User.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

USER_ROLES = ("employee", "hr")
LEAVE_TYPES = ("annual", "sick", "personal", "emergency")
LEAVE_STATUSES = ("pending", "approved", "rejected")

Role = Literal["employee", "hr"]
LeaveType = Literal["annual", "sick", "personal", "emergency"]
LeaveStatus = Literal["pending", "approved", "rejected"]

# pending is the only status with outgoing transitions
TRANSITIONS = {
    "pending": {"approved", "rejected"},
    "approved": set(),
    "rejected": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


class CamelModel(BaseModel):
    # Allow using field names or camelCase aliases
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str


class InsertUser(CamelModel):
    email: EmailStr
    name: str
    role: Role
    department: str
    employee_id: Optional[str] = None


class User(InsertUser):
    id: str
    created_at: datetime


class InsertLeaveRequest(CamelModel):
    user_id: str
    employee_id: str
    employee_name: str
    department: str
    leave_type: LeaveType
    from_date: date
    to_date: date
    reason: str = Field(..., min_length=1)


class LeaveRequest(InsertLeaveRequest):
    id: str
    status: LeaveStatus = "pending"
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    submitted_at: datetime
    updated_at: datetime


class UpdateLeaveRequest(CamelModel):
    status: LeaveStatus
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    # optional guard: the status the caller believes the request is in
    expected_status: Optional[LeaveStatus] = None

    @model_validator(mode="after")
    def _rejection_needs_reason(self):
        if self.status == "rejected" and not (self.rejection_reason or "").strip():
            raise ValueError("rejectionReason is required when rejecting a request")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields to merge onto the stored record (absent fields are preserved)."""
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"expected_status"})


ModelT = TypeVar("ModelT", bound=BaseModel)


def _error_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors(include_url=False, include_context=False, include_input=False)
    ]


def _validate(model: Type[ModelT], payload: Any, message: str) -> ModelT:
    if not isinstance(payload, dict):
        raise ValidationError(message, [{"loc": [], "msg": "Expected a JSON object", "type": "dict_type"}])
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(message, _error_details(e)) from e


def validate_insert_user(payload: Any) -> InsertUser:
    return _validate(InsertUser, payload, "Invalid user data")


def validate_insert_leave_request(payload: Any) -> InsertLeaveRequest:
    """
    Validate a leave submission. Server-stamped fields (id, status,
    submittedAt, updatedAt) are ignored if the client sends them.
    """
    return _validate(InsertLeaveRequest, payload, "Invalid request data")


def validate_update_leave_request(payload: Any) -> UpdateLeaveRequest:
    return _validate(UpdateLeaveRequest, payload, "Invalid update data")
