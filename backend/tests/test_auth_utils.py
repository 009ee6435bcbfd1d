from datetime import timedelta

from jose import jwt

from fame.core.config import settings
from fame.schemas.user import SessionData, UserRole, UserStatus
from fame.utils.auth import (
    get_password_hash,
    has_required_role,
    is_valid_email,
    normalize_email,
    verify_password,
)
from fame.utils.rbac import can_access_route, can_manage_user, get_dashboard_url, has_permission
from fame.utils.session import create_session_data, decode_session, encode_session, is_valid_session


def _session(role=UserRole.STAGE_MANAGER, status=UserStatus.ACTIVE):
    return SessionData(user_id="u1", email="sm@fame.test", role=role, status=status)


def test_password_hashing():
    hashed = get_password_hash("secret-pass-1")
    assert hashed != "secret-pass-1"
    assert verify_password("secret-pass-1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret-pass-1", "")
    assert not verify_password("secret-pass-1", "not-a-hash")


def test_email_helpers():
    assert normalize_email("  SM@Fame.Test ") == "sm@fame.test"
    assert is_valid_email("sm@fame.test")
    assert not is_valid_email("sm@fame")
    assert not is_valid_email("s m@fame.test")


def test_role_hierarchy():
    assert has_required_role("super_admin", "stage_manager")
    assert has_required_role("dj", "dj")
    assert not has_required_role("artist", "dj")
    assert not has_required_role("ghost", "artist")


def test_session_cookie_round_trip():
    session = create_session_data(
        {"id": "u1", "email": "a@fame.test", "role": "artist", "status": "active"}, event_id="e1"
    )
    assert decode_session(encode_session(session)) == session


def test_malformed_cookies_are_ignored():
    assert decode_session(None) is None
    assert decode_session("%%%") is None
    bad_role = jwt.encode(
        {"user_id": "u1", "email": "x@y.z", "role": "root", "status": "active"},
        settings.SECRET_KEY,
        algorithm=settings.SESSION_ALGORITHM,
    )
    assert decode_session(bad_role) is None
    assert not is_valid_session({"user_id": 1, "email": "x", "role": "dj", "status": "active"})


def test_session_cookie_must_be_signed_and_current():
    claims = {"user_id": "u1", "email": "x@y.z", "role": "super_admin", "status": "active"}
    assert decode_session(jwt.encode(claims, "another-key", algorithm="HS256")) is None
    expired = encode_session(_session(), expires_delta=timedelta(seconds=-10))
    assert decode_session(expired) is None


def test_permission_table():
    assert has_permission("dj", "performances", "update")
    assert not has_permission("artist", "performances", "update")
    assert has_permission("stage_manager", "artists", "approve")
    assert not has_permission("super_admin", "music", "upload")
    assert not has_permission("super_admin", "unknown", "thing")


def test_route_access_and_dashboards():
    assert can_access_route(_session(), "/stage-manager")
    assert not can_access_route(_session(), "/super-admin")
    assert not can_access_route(_session(status=UserStatus.PENDING), "/stage-manager")
    assert not can_access_route(None, "/")
    assert can_access_route(_session(UserRole.ARTIST), "/artist-dashboard")
    assert get_dashboard_url("dj") == "/dj"
    assert get_dashboard_url("artist") == "/"


def test_user_management_rules():
    assert can_manage_user("super_admin", "stage_manager")
    assert can_manage_user("stage_manager", "dj")
    assert not can_manage_user("stage_manager", "stage_manager")
    assert not can_manage_user("dj", "artist")
