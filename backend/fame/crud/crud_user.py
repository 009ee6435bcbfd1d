from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ..schemas.user import UserRole, UserStatus
from ..storage import DocumentStore, paths
from ..utils.auth import get_password_hash, normalize_email
from ..utils.ids import new_id, now_iso

logger = logging.getLogger(__name__)

# Lookup order for email searches; pending registrations come last
ROLE_ORDER = [UserRole.SUPER_ADMIN, UserRole.STAGE_MANAGER, UserRole.DJ, UserRole.ARTIST]


class UserExistsError(ValueError):
    pass


def public_user(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password_hash"}


def _user_keys() -> List[str]:
    return [paths.users(role.value) for role in ROLE_ORDER] + [paths.PENDING_STAGE_MANAGERS]


def _locate(store: DocumentStore, user_id: str) -> Optional[Tuple[str, List[dict], int]]:
    for key in _user_keys():
        users = store.read_json(key, default=[])
        for i, user in enumerate(users):
            if user.get("id") == user_id:
                return key, users, i
    return None


def get_user_by_email(store: DocumentStore, email: str) -> Optional[dict]:
    email = normalize_email(email)
    for key in _user_keys():
        for user in store.read_json(key, default=[]):
            if normalize_email(user.get("email", "")) == email:
                return user
    return None


def get_user_by_id(store: DocumentStore, user_id: str) -> Optional[dict]:
    found = _locate(store, user_id)
    if found is None:
        return None
    _, users, i = found
    return users[i]


def list_users(store: DocumentStore) -> Dict[str, List[dict]]:
    grouped = {role.value: store.read_json(paths.users(role.value), default=[]) for role in ROLE_ORDER}
    grouped["pending_stage_managers"] = store.read_json(paths.PENDING_STAGE_MANAGERS, default=[])
    return grouped


def create_user(
    store: DocumentStore,
    email: str,
    password: str,
    role: UserRole,
    profile: Optional[dict] = None,
    status: UserStatus = UserStatus.ACTIVE,
) -> dict:
    """Store a new user; pending stage managers go to the registrations document."""
    email = normalize_email(email)
    if get_user_by_email(store, email) is not None:
        raise UserExistsError(f"User with email {email} already exists")

    user = {
        "id": new_id("user"),
        "email": email,
        "password_hash": get_password_hash(password),
        "role": role.value,
        "status": status.value,
        "profile": profile or {"first_name": "", "last_name": ""},
        "created_at": now_iso(),
        "last_login": None,
    }
    if role == UserRole.STAGE_MANAGER and status == UserStatus.PENDING:
        key = paths.PENDING_STAGE_MANAGERS
    else:
        key = paths.users(role.value)
    with store.locked(key):
        users = store.read_json(key, default=[])
        users.append(user)
        store.write_json(key, users)
    logger.info("Created user", extra={"user_id": user["id"], "role": role.value, "status": status.value})
    return user


def update_user(store: DocumentStore, user_id: str, changes: dict) -> Optional[dict]:
    found = _locate(store, user_id)
    if found is None:
        return None
    key = found[0]
    with store.locked(key):
        users = store.read_json(key, default=[])
        for user in users:
            if user.get("id") == user_id:
                user.update(changes)
                user["updated_at"] = now_iso()
                store.write_json(key, users)
                return user
    return None


def record_login(store: DocumentStore, user_id: str) -> None:
    update_user(store, user_id, {"last_login": now_iso()})


def set_user_status(store: DocumentStore, user_id: str, status: UserStatus) -> Optional[dict]:
    return update_user(store, user_id, {"status": status.value})


def change_password(store: DocumentStore, user_id: str, new_password: str) -> Optional[dict]:
    return update_user(store, user_id, {"password_hash": get_password_hash(new_password)})


def _pop_pending(store: DocumentStore, user_id: str) -> Optional[dict]:
    key = paths.PENDING_STAGE_MANAGERS
    with store.locked(key):
        pending = store.read_json(key, default=[])
        remaining = [u for u in pending if u.get("id") != user_id]
        if len(remaining) == len(pending):
            return None
        store.write_json(key, remaining)
    return next(u for u in pending if u.get("id") == user_id)


def approve_stage_manager(store: DocumentStore, user_id: str, approved_by: str) -> Optional[dict]:
    """Move a pending registration into the active stage-manager list."""
    user = _pop_pending(store, user_id)
    if user is None:
        existing = get_user_by_id(store, user_id)
        if existing is None:
            return None
        return set_user_status(store, user_id, UserStatus.ACTIVE)
    user.update(
        {
            "status": UserStatus.ACTIVE.value,
            "approved_by": approved_by,
            "approved_at": now_iso(),
        }
    )
    key = paths.users(UserRole.STAGE_MANAGER.value)
    with store.locked(key):
        users = store.read_json(key, default=[])
        users.append(user)
        store.write_json(key, users)
    logger.info("Approved stage manager", extra={"user_id": user_id, "approved_by": approved_by})
    return user


def reject_stage_manager(store: DocumentStore, user_id: str) -> bool:
    return _pop_pending(store, user_id) is not None


def delete_user(store: DocumentStore, user_id: str) -> bool:
    found = _locate(store, user_id)
    if found is None:
        return False
    key = found[0]
    with store.locked(key):
        users = store.read_json(key, default=[])
        store.write_json(key, [u for u in users if u.get("id") != user_id])
    return True


def get_next_counter(store: DocumentStore, name: str) -> int:
    def bump(counters: dict) -> dict:
        counters[name] = int(counters.get(name, 0)) + 1
        return counters

    return store.update_json(paths.COUNTERS, bump, default={})[name]


def add_notification(store: DocumentStore, user_id: str, message: str, kind: str = "info") -> dict:
    note = {
        "id": get_next_counter(store, "notifications"),
        "type": kind,
        "message": message,
        "read": False,
        "created_at": now_iso(),
    }
    store.update_json(paths.notifications(user_id), lambda notes: notes + [note], default=[])
    return note


def get_notifications(store: DocumentStore, user_id: str) -> List[dict]:
    return store.read_json(paths.notifications(user_id), default=[])


def initialize_data_structure(store: DocumentStore) -> None:
    """Create empty user, registration and counter documents where missing."""
    for key in _user_keys():
        if not store.exists(key):
            store.write_json(key, [])
    if not store.exists(paths.COUNTERS):
        store.write_json(paths.COUNTERS, {})


def ensure_default_admin(store: DocumentStore, email: str, password: str) -> Optional[dict]:
    """Create a super admin when none exists yet."""
    if store.read_json(paths.users(UserRole.SUPER_ADMIN.value), default=[]):
        return None
    try:
        admin = create_user(
            store,
            email,
            password,
            UserRole.SUPER_ADMIN,
            profile={"first_name": "Super", "last_name": "Admin"},
        )
    except UserExistsError:
        logger.warning("Default admin email already registered under another role")
        return None
    logger.info("Bootstrapped default super admin", extra={"email": admin["email"]})
    return admin
