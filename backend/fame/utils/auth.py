from passlib.context import CryptContext
import re

from ..core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

ROLE_HIERARCHY: dict[str, int] = {
    "super_admin": 4,
    "stage_manager": 3,
    "dj": 2,
    "artist": 1,
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 8


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed hash in storage
        return False


def normalize_email(email: str) -> str:
    """Return a normalized email address for comparison and storage."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def has_required_role(user_role: str, required_role: str) -> bool:
    """True when ``user_role`` sits at or above ``required_role``; unknown roles rank 0."""
    return ROLE_HIERARCHY.get(user_role, 0) >= ROLE_HIERARCHY.get(required_role, 0)
