# leavedesk/main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .errors import ConflictError, StorageError, ValidationError
from .identity import (
    CLAIMS_HEADER,
    EMAIL_HEADER,
    USER_ID_HEADER,
    CallerIdentity,
    RolePolicy,
    ensure_user,
    identity_from_headers,
)
from .logging_config import setup_logging
from .schemas import (
    HealthResponse,
    LeaveRequest,
    User,
    validate_insert_leave_request,
    validate_insert_user,
    validate_update_leave_request,
)
from .seed import seed
from .storage import Storage, create_storage

logger = logging.getLogger("leavedesk")

router = APIRouter()


# -----------------------------
# Dependencies
# -----------------------------
def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_policy(request: Request) -> RolePolicy:
    return request.app.state.role_policy


def caller_identity(
    user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    user_email: Optional[str] = Header(None, alias=EMAIL_HEADER),
    user_claims: Optional[str] = Header(None, alias=CLAIMS_HEADER),
) -> Optional[CallerIdentity]:
    return identity_from_headers(user_id, user_email, user_claims)


# -----------------------------
# Helpers
# -----------------------------
def _require_identity(identity: Optional[CallerIdentity]) -> CallerIdentity:
    if identity is None:
        raise HTTPException(status_code=400, detail="User ID is required")
    return identity


def _bad_request(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": e.message, "errors": e.errors})


def _caller(storage: Storage, identity: CallerIdentity, policy: RolePolicy) -> User:
    try:
        return ensure_user(storage, identity, policy)
    except ValidationError as e:
        logger.info("caller %s not provisioned: %s", identity.subject, e.errors)
        raise _bad_request(e)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to provision user")


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed JSON bodies are client errors like any other invalid payload
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())}},
    )


def health_check():
    return {"status": "ok", "message": "Leave Desk backend is running"}


# -----------------------------
# User profile + setup
# -----------------------------
@router.get("/user/profile", response_model=User, response_model_exclude_none=True)
def user_profile(
    identity: Optional[CallerIdentity] = Depends(caller_identity),
    storage: Storage = Depends(get_storage),
    policy: RolePolicy = Depends(get_policy),
):
    return _caller(storage, _require_identity(identity), policy)


@router.post("/setup")
def setup_demo_data(storage: Storage = Depends(get_storage)):
    try:
        counts = seed(storage)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to seed demo data")
    logger.info("setup: demo data seeded %s", counts)
    return {"message": "Setup completed successfully", "seeded": counts}


# -----------------------------
# Leave requests
# -----------------------------
@router.get("/leave-requests/all", response_model=List[LeaveRequest], response_model_exclude_none=True)
def all_leave_requests(storage: Storage = Depends(get_storage)):
    try:
        return storage.get_all_leave_requests()
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to fetch leave requests")


@router.get("/leave-requests/my-requests", response_model=List[LeaveRequest], response_model_exclude_none=True)
def my_leave_requests(
    identity: Optional[CallerIdentity] = Depends(caller_identity),
    storage: Storage = Depends(get_storage),
    policy: RolePolicy = Depends(get_policy),
):
    user = _caller(storage, _require_identity(identity), policy)
    try:
        return storage.get_user_leave_requests(user.id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to fetch leave requests")


@router.post("/leave-requests", status_code=201, response_model=LeaveRequest, response_model_exclude_none=True)
def submit_leave_request(payload: Dict[str, Any] = Body(...), storage: Storage = Depends(get_storage)):
    try:
        data = validate_insert_leave_request(payload)
    except ValidationError as e:
        logger.info("submit_leave_request: rejected payload %s", e.errors)
        raise _bad_request(e)
    try:
        created = storage.create_leave_request(data)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to create leave request")
    logger.info("submit_leave_request: %s created for user %s", created.id, created.user_id)
    return created


@router.patch("/leave-requests/{request_id}", response_model=LeaveRequest, response_model_exclude_none=True)
def update_leave_request(
    request_id: str,
    request: Request,
    payload: Dict[str, Any] = Body(...),
    storage: Storage = Depends(get_storage),
):
    try:
        updates = validate_update_leave_request(payload)
    except ValidationError as e:
        raise _bad_request(e)

    expected = updates.expected_status
    if expected is None and updates.status != "pending" and request.app.state.settings.ENFORCE_PENDING_TRANSITIONS:
        expected = "pending"

    try:
        updated = storage.update_leave_request(request_id, updates, expected_status=expected)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to update leave request")
    if updated is None:
        raise HTTPException(status_code=404, detail="Leave request not found")
    return updated


@router.delete("/leave-requests/{request_id}", status_code=204)
def delete_leave_request(request_id: str, storage: Storage = Depends(get_storage)):
    try:
        deleted = storage.delete_leave_request(request_id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to delete leave request")
    if not deleted:
        raise HTTPException(status_code=404, detail="Leave request not found")
    return Response(status_code=204)


@router.get("/leave-requests/{request_id}", response_model=LeaveRequest, response_model_exclude_none=True)
def get_leave_request(request_id: str, storage: Storage = Depends(get_storage)):
    try:
        found = storage.get_leave_request(request_id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to fetch leave request")
    if found is None:
        raise HTTPException(status_code=404, detail="Leave request not found")
    return found


# -----------------------------
# Users
# -----------------------------
@router.get("/users/{user_id}", response_model=User, response_model_exclude_none=True)
def get_user(user_id: str, storage: Storage = Depends(get_storage)):
    try:
        user = storage.get_user(user_id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to fetch user")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/users", status_code=201, response_model=User, response_model_exclude_none=True)
def create_user(payload: Dict[str, Any] = Body(...), storage: Storage = Depends(get_storage)):
    try:
        data = validate_insert_user(payload)
    except ValidationError as e:
        raise _bad_request(e)
    try:
        return storage.create_user(data)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to create user")


# -----------------------------
# App factory
# -----------------------------
def create_app(storage: Optional[Storage] = None, config=None) -> FastAPI:
    """
    Build the API around a single storage instance. Without an explicit
    storage, the backend named in config is created (and seeded when
    SEED_DEMO_DATA is on).
    """
    config = config or settings
    if storage is None:
        storage = create_storage(config)
        if config.SEED_DEMO_DATA:
            try:
                seed(storage, overwrite=False)
            except StorageError:
                logger.warning("Demo data not seeded; %s storage unavailable", storage.name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.storage.close()

    app = FastAPI(title="Leave Desk Backend", lifespan=lifespan)
    app.state.storage = storage
    app.state.settings = config
    app.state.role_policy = RolePolicy.from_settings(config)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_api_route("/", health_check, methods=["GET"], response_model=HealthResponse)
    app.include_router(router, prefix=config.API_PREFIX)
    logger.info("Leave Desk API ready (%s storage)", storage.name)
    return app


# init logging for clearer output
setup_logging()
app = create_app()
