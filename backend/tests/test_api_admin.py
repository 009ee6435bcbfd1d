from conftest import ADMIN_EMAIL, PASSWORD, emitted_events, login, make_user

from fame.crud import crud_user
from fame.realtime.events import ACCOUNT_STATUS_CHANGED, ADMIN_ACTION, ADMIN_ACTION_PERFORMED
from fame.schemas.user import UserRole, UserStatus


def _action(client, user_id, action):
    return client.post(f"/api/super-admin/users/{user_id}/action", json={"action": action})


def test_approve_pending_stage_manager(as_admin, store, emitted):
    pending = make_user(store, "pending@fame.test", UserRole.STAGE_MANAGER, UserStatus.PENDING)
    groups = as_admin.get("/api/super-admin/users").json()["data"]
    assert [u["email"] for u in groups["pending_stage_managers"]] == ["pending@fame.test"]
    assert [u["email"] for u in groups["super_admin"]] == [ADMIN_EMAIL]
    assert all("password_hash" not in u for users in groups.values() for u in users)

    res = _action(as_admin, pending["id"], "approve")
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "active"
    assert emitted_events(emitted) == [ADMIN_ACTION, ACCOUNT_STATUS_CHANGED, ADMIN_ACTION_PERFORMED]
    assert emitted.call_args_list[1].args[1] == {"user_id": pending["id"], "status": "active"}

    groups = as_admin.get("/api/super-admin/users").json()["data"]
    assert groups["pending_stage_managers"] == []
    assert [u["email"] for u in groups["stage_manager"]] == ["pending@fame.test"]
    notes = crud_user.get_notifications(store, pending["id"])
    assert notes[0]["message"] == "Your stage manager account has been approved"
    assert notes[0]["id"] == 1

    as_admin.post("/api/auth/logout")
    assert login(as_admin, "pending@fame.test")["redirect"] == "/stage-manager"


def test_suspend_blocks_login(as_admin, store):
    dj = make_user(store, "dj@fame.test", UserRole.DJ)
    assert _action(as_admin, dj["id"], "suspend").json()["data"]["status"] == "suspended"
    as_admin.post("/api/auth/logout")
    res = as_admin.post("/api/auth/login", json={"email": "dj@fame.test", "password": PASSWORD})
    assert res.json()["error"]["code"] == "ACCOUNT_SUSPENDED"


def test_reject_and_delete(as_admin, store):
    pending = make_user(store, "p@fame.test", UserRole.STAGE_MANAGER, UserStatus.PENDING)
    assert _action(as_admin, pending["id"], "reject").status_code == 200
    assert crud_user.get_user_by_id(store, pending["id"]) is None

    dj = make_user(store, "dj@fame.test", UserRole.DJ)
    assert _action(as_admin, dj["id"], "reject").json()["error"]["code"] == "INVALID_ACTION"
    assert _action(as_admin, dj["id"], "approve").json()["error"]["code"] == "INVALID_ACTION"
    assert _action(as_admin, dj["id"], "delete").status_code == 200
    assert _action(as_admin, dj["id"], "suspend").status_code == 404


def test_admin_cannot_act_on_self(as_admin, store):
    admin = crud_user.get_user_by_email(store, ADMIN_EMAIL)
    res = _action(as_admin, admin["id"], "suspend")
    assert res.status_code == 403


def test_unknown_action_is_rejected(as_admin, store):
    dj = make_user(store, "dj@fame.test", UserRole.DJ)
    res = _action(as_admin, dj["id"], "promote")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_only_super_admins(as_stage_manager):
    res = as_stage_manager.get("/api/super-admin/users")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"
