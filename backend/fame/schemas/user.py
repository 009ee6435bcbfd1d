# backend/fame/schemas/user.py

from pydantic import BaseModel
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    """Roles supported by the API, highest privilege first."""

    SUPER_ADMIN = "super_admin"
    STAGE_MANAGER = "stage_manager"
    DJ = "dj"
    ARTIST = "artist"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"
    DEACTIVATED = "deactivated"


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class StageManagerRegister(BaseModel):
    email: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UserAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"


class UserActionRequest(BaseModel):
    action: UserAction


class SessionData(BaseModel):
    """Payload carried in the session cookie."""

    user_id: str
    email: str
    role: UserRole
    status: UserStatus
    event_id: Optional[str] = None
