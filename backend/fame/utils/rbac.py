from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ..schemas.user import SessionData

logger = logging.getLogger(__name__)

PERMISSIONS: Dict[Tuple[str, str], List[str]] = {
    ("users", "create"): ["super_admin"],
    ("users", "read"): ["super_admin", "stage_manager"],
    ("users", "update"): ["super_admin"],
    ("users", "delete"): ["super_admin"],
    ("events", "create"): ["super_admin", "stage_manager"],
    ("events", "read"): ["super_admin", "stage_manager", "artist", "dj"],
    ("events", "update"): ["super_admin", "stage_manager"],
    ("events", "delete"): ["super_admin", "stage_manager"],
    ("artists", "approve"): ["super_admin", "stage_manager"],
    ("artists", "register"): ["artist"],
    ("artists", "update_profile"): ["artist", "stage_manager", "super_admin"],
    ("performances", "create"): ["super_admin", "stage_manager"],
    ("performances", "update"): ["super_admin", "stage_manager", "dj"],
    ("performances", "reorder"): ["super_admin", "stage_manager"],
    ("music", "upload"): ["dj"],
    ("music", "manage"): ["super_admin", "stage_manager", "dj"],
    ("files", "upload"): ["super_admin", "stage_manager", "artist", "dj"],
    ("files", "delete"): ["super_admin", "stage_manager"],
    ("system", "monitor"): ["super_admin"],
    ("system", "configure"): ["super_admin"],
}

ROUTE_ROLES: Dict[str, List[str]] = {
    "/super-admin": ["super_admin"],
    "/stage-manager": ["super_admin", "stage_manager"],
    "/dj": ["super_admin", "stage_manager", "dj"],
}


def has_permission(role: str, resource: str, action: str) -> bool:
    roles = PERMISSIONS.get((resource, action))
    if roles is None:
        logger.warning("Unknown permission %s:%s", resource, action)
        return False
    return role in roles


def can_access_route(session: Optional[SessionData], route: str) -> bool:
    if session is None or session.status.value != "active":
        return False
    allowed = ROUTE_ROLES.get(route)
    if allowed is None:
        return True
    return session.role.value in allowed


def get_dashboard_url(role: str) -> str:
    return {
        "super_admin": "/super-admin",
        "stage_manager": "/stage-manager",
        "dj": "/dj",
    }.get(role, "/")


def can_manage_user(manager_role: str, target_role: str) -> bool:
    if manager_role == "super_admin":
        return True
    if manager_role == "stage_manager":
        return target_role in ("artist", "dj")
    return False
