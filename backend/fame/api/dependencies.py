import logging
import re
from typing import Callable, Iterable, Optional

from fastapi import Depends, Request, status

from ..core.config import settings
from ..crud import crud_artist, crud_event, crud_user
from ..schemas.artist import ArtistStatus
from ..schemas.user import SessionData, UserRole, UserStatus
from ..storage import DocumentStore, get_store
from ..utils.auth import has_required_role
from ..utils.errors import api_error, not_found
from ..utils.session import decode_session

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def require_performance_date(performance_date: Optional[str]) -> str:
    """Return a YYYY-MM-DD performance date or raise a 400."""
    if not performance_date:
        raise api_error("MISSING_PERFORMANCE_DATE", "performance_date is required")
    if not _ISO_DATE.fullmatch(performance_date):
        raise api_error("INVALID_PERFORMANCE_DATE", "performance_date must be YYYY-MM-DD")
    return performance_date


def resolve_session(store: DocumentStore, session: Optional[SessionData]) -> Optional[SessionData]:
    """Reload the account behind a cookie session; None when it no longer exists.

    Role, email and status always come from storage. Artist sessions map a
    rejected or withdrawn registration to ``deactivated``.
    """
    if session is None:
        return None
    if session.role == UserRole.ARTIST:
        if not session.event_id:
            return None
        artist = crud_artist.get_artist(store, session.event_id, session.user_id)
        if artist is None:
            return None
        closed = artist.get("status") in (ArtistStatus.REJECTED.value, ArtistStatus.WITHDRAWN.value)
        return session.model_copy(
            update={"status": UserStatus.DEACTIVATED if closed else UserStatus.ACTIVE}
        )
    user = crud_user.get_user_by_id(store, session.user_id)
    if user is None:
        logger.info("Session refers to a missing user", extra={"user_id": session.user_id})
        return None
    return SessionData(
        user_id=user["id"],
        email=user["email"],
        role=user["role"],
        status=user["status"],
        event_id=session.event_id,
    )


def get_optional_session(
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> Optional[SessionData]:
    return resolve_session(store, decode_session(request.cookies.get(settings.SESSION_COOKIE_NAME)))


def get_session(session: Optional[SessionData] = Depends(get_optional_session)) -> SessionData:
    if session is None:
        raise api_error("UNAUTHORIZED", "Authentication required", status.HTTP_401_UNAUTHORIZED)
    return session


def require_session(
    required_role: Optional[UserRole] = None,
    allowed_statuses: Iterable[UserStatus] = (UserStatus.ACTIVE,),
) -> Callable[..., SessionData]:
    """Dependency factory: an authenticated session with a status and minimum role."""
    allowed = {s.value for s in allowed_statuses}

    def _dependency(session: SessionData = Depends(get_session)) -> SessionData:
        if session.status.value not in allowed:
            raise api_error(
                "ACCOUNT_STATUS_INVALID",
                f"Account status: {session.status.value}",
                status.HTTP_403_FORBIDDEN,
            )
        if required_role is not None and not has_required_role(session.role.value, required_role.value):
            raise api_error(
                "INSUFFICIENT_PERMISSIONS",
                "Insufficient permissions",
                status.HTTP_403_FORBIDDEN,
            )
        return session

    return _dependency


get_active_session = require_session()
get_dj_session = require_session(UserRole.DJ)
get_stage_manager_session = require_session(UserRole.STAGE_MANAGER)
get_super_admin_session = require_session(UserRole.SUPER_ADMIN)


def check_event_access(store: DocumentStore, event_id: str, session: SessionData) -> dict:
    """Return the event, or raise when it is missing or the session may not see it."""
    event = crud_event.get_event(store, event_id)
    if event is None:
        raise not_found("Event")
    if session.role == UserRole.STAGE_MANAGER and event.get("stage_manager_id") != session.user_id:
        raise api_error("FORBIDDEN", "Access denied: not your event", status.HTTP_403_FORBIDDEN)
    if session.role == UserRole.ARTIST and session.event_id != event_id:
        raise api_error("FORBIDDEN", "Access denied: not registered for this event", status.HTTP_403_FORBIDDEN)
    return event


def event_access(required_role: UserRole = UserRole.ARTIST) -> Callable[..., SessionData]:
    """Dependency factory for routes under /events/{event_id}."""
    session_dep = require_session(required_role)

    def _dependency(
        event_id: str,
        session: SessionData = Depends(session_dep),
        store: DocumentStore = Depends(get_store),
    ) -> SessionData:
        check_event_access(store, event_id, session)
        return session

    return _dependency


event_viewer = event_access(UserRole.ARTIST)
event_operator = event_access(UserRole.DJ)
event_manager = event_access(UserRole.STAGE_MANAGER)
