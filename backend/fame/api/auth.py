import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from ..crud import crud_artist, crud_user
from ..realtime import hub, role_room
from ..realtime.events import NEW_REGISTRATION
from ..schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    SessionData,
    StageManagerRegister,
    UserRole,
    UserStatus,
)
from ..storage import DocumentStore, get_store
from ..utils.auth import MIN_PASSWORD_LENGTH, is_valid_email, normalize_email, verify_password
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from ..utils.rbac import get_dashboard_url
from ..utils.session import clear_session_cookie, create_session_data, set_session_cookie
from .dependencies import get_active_session, get_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])

_BLOCKED_STATUSES = {
    UserStatus.SUSPENDED.value: ("ACCOUNT_SUSPENDED", "Your account has been suspended"),
    UserStatus.DEACTIVATED.value: ("ACCOUNT_DEACTIVATED", "Your account has been deactivated"),
}


@router.post("/login")
def login(
    body: LoginRequest,
    response: Response,
    store: DocumentStore = Depends(get_store),
) -> Any:
    email = normalize_email(body.email)
    if not email or not body.password:
        raise api_error("MISSING_CREDENTIALS", "Email and password are required")
    if not is_valid_email(email):
        raise api_error("INVALID_EMAIL", "Invalid email format")

    user = crud_user.get_user_by_email(store, email)
    if user is None or not verify_password(body.password, user.get("password_hash", "")):
        logger.info("Failed login", extra={"email": email})
        raise api_error("INVALID_CREDENTIALS", "Invalid email or password", status.HTTP_401_UNAUTHORIZED)

    user_status = user.get("status")
    if user_status in _BLOCKED_STATUSES:
        code, message = _BLOCKED_STATUSES[user_status]
        raise api_error(code, message, status.HTTP_403_FORBIDDEN)
    pending = user_status == UserStatus.PENDING.value
    if pending and user.get("role") != UserRole.STAGE_MANAGER.value:
        raise api_error("ACCOUNT_PENDING", "Your account is pending approval", status.HTTP_403_FORBIDDEN)

    set_session_cookie(response, create_session_data(user))
    crud_user.record_login(store, user["id"])
    redirect = "/stage-manager-pending" if pending else get_dashboard_url(user["role"])
    logger.info("Login", extra={"user_id": user["id"], "role": user["role"]})
    return ok({"user": crud_user.public_user(user), "redirect": redirect})


@router.post("/logout")
def logout(response: Response) -> Any:
    clear_session_cookie(response)
    return ok(None, message="Logged out successfully")


@router.get("/logout")
def logout_get(response: Response) -> Any:
    clear_session_cookie(response)
    return ok(None, message="Logged out successfully")


@router.get("/me")
def me(
    session: SessionData = Depends(get_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    """Current session plus the stored account (an artist record for artists)."""
    if session.role == UserRole.ARTIST:
        record = crud_artist.find_artist(store, session.user_id)
    else:
        record = crud_user.get_user_by_id(store, session.user_id)
        record = crud_user.public_user(record) if record else None
    if record is None:
        raise not_found("User")
    return ok({"session": session.model_dump(mode="json"), "user": record})


@router.post("/register-stage-manager", status_code=status.HTTP_201_CREATED)
def register_stage_manager(
    body: StageManagerRegister,
    background_tasks: BackgroundTasks,
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not (body.email and body.password and body.first_name and body.last_name):
        raise api_error("MISSING_FIELDS", "Email, password, first name and last name are required")
    if not is_valid_email(normalize_email(body.email)):
        raise api_error("INVALID_EMAIL", "Invalid email format")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise api_error("WEAK_PASSWORD", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    profile = {"first_name": body.first_name, "last_name": body.last_name, "phone": body.phone}
    try:
        user = crud_user.create_user(
            store, body.email, body.password, UserRole.STAGE_MANAGER, profile, UserStatus.PENDING
        )
    except crud_user.UserExistsError:
        raise api_error("USER_EXISTS", "An account with this email already exists", status.HTTP_409_CONFLICT)

    background_tasks.add_task(
        hub.emit,
        NEW_REGISTRATION,
        {"user_id": user["id"], "email": user["email"], "role": user["role"], "profile": profile},
        [role_room(UserRole.SUPER_ADMIN.value)],
    )
    return ok(
        crud_user.public_user(user),
        message="Registration submitted. A super admin will review your account.",
    )


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    session: SessionData = Depends(get_active_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    user = crud_user.get_user_by_id(store, session.user_id)
    if user is None:
        raise not_found("User")
    if not verify_password(body.current_password, user.get("password_hash", "")):
        raise api_error("INVALID_CREDENTIALS", "Current password is incorrect", status.HTTP_401_UNAUTHORIZED)
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise api_error("WEAK_PASSWORD", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    crud_user.change_password(store, session.user_id, body.new_password)
    return ok(None, message="Password updated")


@router.get("/notifications")
def notifications(
    session: SessionData = Depends(get_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_user.get_notifications(store, session.user_id))
