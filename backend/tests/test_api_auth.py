import base64

import orjson

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, PASSWORD, emitted_events, login, make_user

from fame.core.config import settings
from fame.crud import crud_user
from fame.realtime.events import NEW_REGISTRATION
from fame.schemas.user import SessionData, UserRole, UserStatus
from fame.utils.session import encode_session


def test_admin_login_sets_session_cookie(client):
    data = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert data["redirect"] == "/super-admin"
    assert data["user"]["role"] == "super_admin"
    assert "password_hash" not in data["user"]
    assert client.cookies.get(settings.SESSION_COOKIE_NAME)

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["data"]["session"]["email"] == ADMIN_EMAIL
    assert me.json()["data"]["user"]["last_login"]


def test_login_errors(client, store):
    res = client.post("/api/auth/login", json={"email": "", "password": ""})
    assert res.status_code == 400
    assert res.json() == {
        "success": False,
        "error": {"code": "MISSING_CREDENTIALS", "message": "Email and password are required"},
    }

    res = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert res.json()["error"]["code"] == "INVALID_EMAIL"

    res = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_CREDENTIALS"

    make_user(store, "gone@fame.test", UserRole.DJ, UserStatus.SUSPENDED)
    res = client.post("/api/auth/login", json={"email": "gone@fame.test", "password": PASSWORD})
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_SUSPENDED"

    make_user(store, "wait@fame.test", UserRole.DJ, UserStatus.PENDING)
    res = client.post("/api/auth/login", json={"email": "wait@fame.test", "password": PASSWORD})
    assert res.json()["error"]["code"] == "ACCOUNT_PENDING"


def test_me_requires_session(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


def test_logout_clears_session(client):
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
    assert res.json()["message"] == "Logged out successfully"
    assert client.get("/api/auth/me").status_code == 401


def test_stage_manager_registration_flow(client, emitted):
    body = {
        "email": "New.SM@fame.test",
        "password": PASSWORD,
        "first_name": "Nia",
        "last_name": "Stage",
    }
    res = client.post("/api/auth/register-stage-manager", json=body)
    assert res.status_code == 201
    assert res.json()["data"]["status"] == "pending"
    assert res.json()["data"]["email"] == "new.sm@fame.test"
    assert emitted_events(emitted) == [NEW_REGISTRATION]
    assert emitted.call_args.args[2] == ["role_super_admin"]

    res = client.post("/api/auth/register-stage-manager", json=body)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "USER_EXISTS"

    # Pending stage managers may sign in to see their pending page
    data = login(client, "new.sm@fame.test")
    assert data["redirect"] == "/stage-manager-pending"
    res = client.get("/api/events")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_STATUS_INVALID"


def test_registration_validation(client):
    url = "/api/auth/register-stage-manager"
    base = {"email": "x@fame.test", "password": PASSWORD, "first_name": "A", "last_name": "B"}
    assert client.post(url, json={**base, "last_name": ""}).json()["error"]["code"] == "MISSING_FIELDS"
    assert client.post(url, json={**base, "email": "bad"}).json()["error"]["code"] == "INVALID_EMAIL"
    assert client.post(url, json={**base, "password": "short"}).json()["error"]["code"] == "WEAK_PASSWORD"


def test_change_password(as_stage_manager, stage_manager):
    client = as_stage_manager
    res = client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "another-pass-2"},
    )
    assert res.status_code == 401

    res = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "another-pass-2"},
    )
    assert res.status_code == 200
    client.post("/api/auth/logout")
    login(client, stage_manager["email"], "another-pass-2")


def test_notifications_start_empty(as_stage_manager):
    res = as_stage_manager.get("/api/auth/notifications")
    assert res.json() == {"success": True, "data": []}


def test_unsigned_session_cookie_is_rejected(client):
    forged = base64.b64encode(
        orjson.dumps({"user_id": "nobody", "email": "x@y.z", "role": "super_admin", "status": "active"})
    ).decode()
    client.cookies.set(settings.SESSION_COOKIE_NAME, forged)
    res = client.get("/api/super-admin/users")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


def test_session_role_and_status_come_from_storage(client, store, stage_manager):
    # A cookie for a deleted account is no longer a session
    ghost = SessionData(user_id="nobody", email="x@y.z", role=UserRole.SUPER_ADMIN, status=UserStatus.ACTIVE)
    client.cookies.set(settings.SESSION_COOKIE_NAME, encode_session(ghost))
    assert client.get("/api/super-admin/users").status_code == 401

    # Claims beyond the stored role are ignored
    inflated = SessionData(
        user_id=stage_manager["id"], email=stage_manager["email"], role=UserRole.SUPER_ADMIN, status=UserStatus.ACTIVE
    )
    client.cookies.set(settings.SESSION_COOKIE_NAME, encode_session(inflated))
    res = client.get("/api/super-admin/users")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


def test_suspension_applies_to_existing_sessions(client, store, stage_manager):
    login(client, stage_manager["email"])
    assert client.get("/api/events").status_code == 200

    crud_user.set_user_status(store, stage_manager["id"], UserStatus.SUSPENDED)
    res = client.get("/api/events")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_STATUS_INVALID"
