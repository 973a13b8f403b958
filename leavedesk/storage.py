# leavedesk/storage.py
"""
Storage engine for users and leave requests.

`Storage` implements the public contract once; backends only provide the
primitives (`_load_*`, `_save_*`, ...). Backend failures are handled here:
reads log and answer empty (`None` / `[]`) unless `strict_reads` is set,
writes log and raise `StorageError`.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import ValidationError as RecordError

from .errors import ConflictError, StorageError
from .schemas import (
    InsertLeaveRequest,
    InsertUser,
    LeaveRequest,
    UpdateLeaveRequest,
    User,
)

logger = logging.getLogger("leavedesk.storage")


def utcnow() -> datetime:
    """Naive UTC now, truncated to milliseconds (MongoDB precision)."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def stamp_after(previous: Optional[datetime]) -> datetime:
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(milliseconds=1)
    return now


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_email(email: str) -> str:
    """Lowercase the domain, as stored addresses are."""
    local, sep, domain = (email or "").strip().rpartition("@")
    return f"{local}{sep}{domain.lower()}" if sep else email


class Storage(ABC):
    name = "base"
    # exceptions the backend raises for I/O failures
    backend_errors: Tuple[Type[Exception], ...] = ()

    def __init__(self, strict_reads: bool = False):
        self.strict_reads = strict_reads

    # -----------------------------
    # Backend primitives
    # -----------------------------
    @abstractmethod
    def _load_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def _find_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def _save_user(self, user: User) -> None:
        ...

    @abstractmethod
    def _load_leave_request(self, request_id: str) -> Optional[LeaveRequest]:
        ...

    @abstractmethod
    def _list_leave_requests(self, user_id: Optional[str] = None) -> List[LeaveRequest]:
        """Requests (optionally of one user), newest submission first."""

    @abstractmethod
    def _save_leave_request(self, request: LeaveRequest) -> None:
        ...

    @abstractmethod
    def _merge_leave_request(self, request_id: str, changes: Dict[str, Any]) -> Optional[LeaveRequest]:
        """Overwrite the given fields, return the stored result or None if gone."""

    @abstractmethod
    def _remove_leave_request(self, request_id: str) -> bool:
        ...

    def close(self) -> None:
        pass

    # -----------------------------
    # Error boundary
    # -----------------------------
    def _read(self, op: str, default: Any, fn: Callable, *args):
        try:
            return fn(*args)
        except (StorageError, RecordError) + self.backend_errors as e:
            logger.exception("%s storage: %s failed", self.name, op)
            if self.strict_reads:
                if isinstance(e, StorageError):
                    raise
                raise StorageError(f"Failed to {op}") from e
            return default

    def _write(self, op: str, fn: Callable, *args):
        try:
            return fn(*args)
        except StorageError:
            logger.exception("%s storage: %s failed", self.name, op)
            raise
        except (RecordError,) + self.backend_errors as e:
            logger.exception("%s storage: %s failed", self.name, op)
            raise StorageError(f"Failed to {op}") from e

    # -----------------------------
    # Users
    # -----------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        return self._read("get user", None, self._load_user, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._read("get user by email", None, self._find_user_by_email, normalize_email(email))

    def create_user(self, data: Union[InsertUser, Dict[str, Any]], user_id: Optional[str] = None) -> User:
        """
        Create a user. `user_id` lets an identity provider's subject become
        the user id; otherwise a fresh one is assigned.
        """
        if not isinstance(data, InsertUser):
            data = InsertUser.model_validate(data)
        user = User(**data.model_dump(), id=user_id or new_id(), created_at=utcnow())
        self._write("create user", self._save_user, user)
        return user

    def put_user(self, user: User) -> User:
        self._write("store user", self._save_user, user)
        return user

    # -----------------------------
    # Leave requests
    # -----------------------------
    def get_leave_request(self, request_id: str) -> Optional[LeaveRequest]:
        return self._read("get leave request", None, self._load_leave_request, request_id)

    def get_all_leave_requests(self) -> List[LeaveRequest]:
        return self._read("get all leave requests", [], self._list_leave_requests)

    def get_user_leave_requests(self, user_id: str) -> List[LeaveRequest]:
        return self._read("get user leave requests", [], self._list_leave_requests, user_id)

    def create_leave_request(self, data: Union[InsertLeaveRequest, Dict[str, Any]]) -> LeaveRequest:
        if not isinstance(data, InsertLeaveRequest):
            data = InsertLeaveRequest.model_validate(data)
        now = utcnow()
        request = LeaveRequest(
            **data.model_dump(),
            id=new_id(),
            status="pending",
            submitted_at=now,
            updated_at=now,
        )
        self._write("create leave request", self._save_leave_request, request)
        return request

    def put_leave_request(self, request: LeaveRequest) -> LeaveRequest:
        self._write("store leave request", self._save_leave_request, request)
        return request

    def update_leave_request(
        self,
        request_id: str,
        updates: Union[UpdateLeaveRequest, Dict[str, Any]],
        expected_status: Optional[str] = None,
    ) -> Optional[LeaveRequest]:
        """
        Shallow-merge `updates` onto a stored request and restamp updatedAt.

        Returns None when the request does not exist. When `expected_status`
        (or `updates.expected_status`) is given and the stored status differs,
        raises ConflictError and leaves the record untouched.
        """
        if not isinstance(updates, UpdateLeaveRequest):
            updates = UpdateLeaveRequest.model_validate(updates)
        expected_status = expected_status or updates.expected_status

        current = self._write("load leave request", self._load_leave_request, request_id)
        if current is None:
            return None
        if expected_status is not None and current.status != expected_status:
            raise ConflictError(request_id, expected_status, current.status)

        changes = updates.changes()
        changes["updated_at"] = stamp_after(current.updated_at)
        updated = self._write("update leave request", self._merge_leave_request, request_id, changes)
        if updated is not None:
            logger.info("leave request %s: %s -> %s", request_id, current.status, updated.status)
        return updated

    def delete_leave_request(self, request_id: str) -> bool:
        return self._write("delete leave request", self._remove_leave_request, request_id)


class MemoryStorage(Storage):
    """Process-local dict backend; create one per application and inject it."""

    name = "memory"

    def __init__(self, strict_reads: bool = False):
        super().__init__(strict_reads)
        self._users: Dict[str, User] = {}
        self._leave_requests: Dict[str, LeaveRequest] = {}

    def _load_user(self, user_id):
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def _find_user_by_email(self, email):
        for user in self._users.values():
            if user.email == email:
                return user.model_copy()
        return None

    def _save_user(self, user):
        self._users[user.id] = user.model_copy()

    def _load_leave_request(self, request_id):
        request = self._leave_requests.get(request_id)
        return request.model_copy() if request else None

    def _list_leave_requests(self, user_id=None):
        rows = [
            (seq, request)
            for seq, request in enumerate(self._leave_requests.values())
            if user_id is None or request.user_id == user_id
        ]
        # newest first; equal stamps fall back to insertion order
        rows.sort(key=lambda row: (row[1].submitted_at, row[0]), reverse=True)
        return [request.model_copy() for _, request in rows]

    def _save_leave_request(self, request):
        self._leave_requests[request.id] = request.model_copy()

    def _merge_leave_request(self, request_id, changes):
        current = self._leave_requests.get(request_id)
        if current is None:
            return None
        merged = current.model_copy(update=changes)
        self._leave_requests[request_id] = merged
        return merged.model_copy()

    def _remove_leave_request(self, request_id):
        return self._leave_requests.pop(request_id, None) is not None


def create_storage(settings) -> Storage:
    """Build the backend named by settings.STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND
    if backend == "memory":
        return MemoryStorage(strict_reads=settings.STRICT_READS)
    if backend == "mongo":
        from .db import MongoStorage

        return MongoStorage.from_settings(settings)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
