"""Cookie-held sessions.

The cookie value is an HS256 JWT whose claims are ``SessionData``. Role and
status are only a hint: ``fame.api.dependencies.resolve_session`` reloads them
from storage on every request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Response
from jose import JWTError, jwt
from pydantic import ValidationError

from ..core.config import settings
from ..schemas.user import SessionData, UserRole, UserStatus

logger = logging.getLogger(__name__)

_ROLES = {r.value for r in UserRole}
_STATUSES = {s.value for s in UserStatus}


def create_session_data(user: dict, event_id: Optional[str] = None) -> SessionData:
    return SessionData(
        user_id=user["id"],
        email=user["email"],
        role=user["role"],
        status=user["status"],
        event_id=event_id,
    )


def is_valid_session(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("user_id"), str)
        and isinstance(data.get("email"), str)
        and data.get("role") in _ROLES
        and data.get("status") in _STATUSES
    )


def encode_session(session: SessionData, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = session.model_dump(mode="json", exclude_none=True)
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=settings.SESSION_MAX_AGE))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def decode_session(value: Optional[str]) -> Optional[SessionData]:
    if not value:
        return None
    try:
        data = jwt.decode(value, settings.SECRET_KEY, algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        logger.info("Discarding invalid or expired session cookie")
        return None
    data.pop("exp", None)
    if not is_valid_session(data):
        return None
    try:
        return SessionData(**data)
    except ValidationError:
        return None


def set_session_cookie(response: Response, session: SessionData) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=encode_session(session),
        max_age=settings.SESSION_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        domain=settings.COOKIE_DOMAIN or None,
    )


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value="",
        max_age=0,
        expires=0,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        domain=settings.COOKIE_DOMAIN or None,
    )
