import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..crud import crud_user
from ..realtime import hub, role_room, user_room
from ..realtime.events import ACCOUNT_STATUS_CHANGED, ADMIN_ACTION, ADMIN_ACTION_PERFORMED
from ..schemas.user import SessionData, UserAction, UserActionRequest, UserRole, UserStatus
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from ..utils.ids import now_iso
from ..utils.rbac import can_manage_user
from .dependencies import get_super_admin_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["super-admin"])

_STATUS_FOR_ACTION = {
    UserAction.SUSPEND: UserStatus.SUSPENDED,
    UserAction.ACTIVATE: UserStatus.ACTIVE,
    UserAction.DEACTIVATE: UserStatus.DEACTIVATED,
}

_MESSAGES = {
    UserAction.APPROVE: "Your stage manager account has been approved",
    UserAction.REJECT: "Your stage manager registration was rejected",
    UserAction.SUSPEND: "Your account has been suspended",
    UserAction.ACTIVATE: "Your account has been activated",
    UserAction.DEACTIVATE: "Your account has been deactivated",
    UserAction.DELETE: "Your account has been deleted",
}


@router.get("/users")
def list_users(
    _: SessionData = Depends(get_super_admin_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    grouped = crud_user.list_users(store)
    return ok({group: [crud_user.public_user(u) for u in users] for group, users in grouped.items()})


@router.post("/users/{user_id}/action")
def user_action(
    user_id: str,
    body: UserActionRequest,
    background_tasks: BackgroundTasks,
    session: SessionData = Depends(get_super_admin_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if user_id == session.user_id:
        raise api_error("FORBIDDEN", "You cannot change your own account", status.HTTP_403_FORBIDDEN)
    target = crud_user.get_user_by_id(store, user_id)
    if target is None:
        raise not_found("User")
    if not can_manage_user(session.role.value, target["role"]):
        raise api_error("INSUFFICIENT_PERMISSIONS", "Insufficient permissions", status.HTTP_403_FORBIDDEN)

    action = body.action
    result: Any = None
    if action == UserAction.APPROVE:
        if target["role"] != UserRole.STAGE_MANAGER.value:
            raise api_error("INVALID_ACTION", "Only stage manager registrations can be approved")
        result = crud_user.approve_stage_manager(store, user_id, session.user_id)
    elif action == UserAction.REJECT:
        if not crud_user.reject_stage_manager(store, user_id):
            raise api_error("INVALID_ACTION", "User has no pending registration")
    elif action == UserAction.DELETE:
        crud_user.delete_user(store, user_id)
    else:
        result = crud_user.set_user_status(store, user_id, _STATUS_FOR_ACTION[action])

    logger.info(
        "Admin action",
        extra={"action": action.value, "user_id": user_id, "by": session.user_id},
    )
    if action not in (UserAction.REJECT, UserAction.DELETE):
        crud_user.add_notification(store, user_id, _MESSAGES[action], kind="account")

    payload = {
        "action": action.value,
        "user_id": user_id,
        "email": target["email"],
        "message": _MESSAGES[action],
        "performed_by": session.user_id,
        "timestamp": now_iso(),
    }
    background_tasks.add_task(hub.emit, ADMIN_ACTION, payload, [user_room(user_id)])
    if action in _STATUS_FOR_ACTION or action == UserAction.APPROVE:
        background_tasks.add_task(
            hub.emit,
            ACCOUNT_STATUS_CHANGED,
            {"user_id": user_id, "status": (result or {}).get("status")},
            [user_room(user_id)],
        )
    background_tasks.add_task(
        hub.emit, ADMIN_ACTION_PERFORMED, payload, [role_room(UserRole.SUPER_ADMIN.value)]
    )
    return ok(crud_user.public_user(result) if result else None, message=_MESSAGES[action])
