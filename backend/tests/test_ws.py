from conftest import login, make_user

from fame.crud import crud_artist, crud_event
from fame.schemas.artist import ArtistCreate
from fame.schemas.event import EventCreate
from fame.schemas.user import UserRole


def _join(ws, event_id):
    ws.send_json({"type": "authenticate", "payload": {"event_id": event_id}})
    assert ws.receive_json()["type"] == "authenticated"
    assert ws.receive_json() == {"v": 1, "type": "joined-event", "payload": {"event_id": event_id}}


def test_ping_without_session(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"v": 1, "type": "pong"}

        ws.send_json({"type": "authenticate", "payload": {}})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["payload"]["code"] == "UNAUTHORIZED"

        ws.send_text("not json")
        assert ws.receive_json()["payload"]["code"] == "INVALID_MESSAGE"


def test_stage_manager_relays_updates_to_event_room(as_stage_manager, event):
    with as_stage_manager.websocket_connect("/ws") as ws:
        _join(ws, event["id"])

        ws.send_json({
            "type": "cue_updated",
            "payload": {"event_id": event["id"], "cue_id": "cue_1", "action": "updated"},
        })
        message = ws.receive_json()
        assert message["type"] == "cue_updated"
        assert message["topic"] == f"event_{event['id']}"
        assert message["payload"]["cue_id"] == "cue_1"

        ws.send_json({"type": "cue_updated", "payload": {"event_id": event["id"]}})
        error = ws.receive_json()["payload"]
        assert error["code"] == "INVALID_EVENT"
        assert error["errors"] == ["Missing cue_id", "Missing action"]

        ws.send_json({"type": "emergency-alert", "payload": {"message": "Clear the stage"}})
        alert = ws.receive_json()
        assert alert["type"] == "emergency-alert"
        assert alert["payload"]["event_id"] == event["id"]


def test_status_update_also_refreshes_live_board(as_stage_manager, event):
    with as_stage_manager.websocket_connect("/ws") as ws:
        _join(ws, event["id"])
        ws.send_json({
            "type": "status_update",
            "payload": {"event_id": event["id"], "artist_id": "artist-1", "performance_status": "completed"},
        })
        assert ws.receive_json()["type"] == "artist_status_changed"
        assert ws.receive_json()["type"] == "live-board-update"


def test_relay_requires_joined_room_and_role(client, store, event):
    make_user(store, "dj@fame.test", UserRole.DJ)
    login(client, "dj@fame.test")
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "payload": {}})
        assert ws.receive_json()["payload"]["role"] == "dj"

        ws.send_json({
            "type": "cue_updated",
            "payload": {"event_id": event["id"], "cue_id": "cue_1", "action": "updated"},
        })
        assert ws.receive_json()["payload"]["code"] == "FORBIDDEN"

        ws.send_json({"type": "emergency-alert", "payload": {"message": "Fire"}})
        assert ws.receive_json()["payload"]["code"] == "INSUFFICIENT_PERMISSIONS"


def test_artist_cannot_join_other_events(client, store, event, stage_manager):
    other = crud_event.create_event(store, EventCreate(name="Other"), stage_manager["id"])
    artist = crud_artist.add_artist(
        store,
        event["id"],
        crud_artist.build_artist(event["id"], ArtistCreate(artist_name="Nova", style="Jazz", email="nova@fame.test")),
    )
    res = client.post("/api/artists/login", json={"email": "nova@fame.test", "artist_name": "Nova"})
    assert res.status_code == 200

    with client.websocket_connect("/ws") as ws:
        _join(ws, event["id"])
        ws.send_json({"type": "join-event", "payload": {"event_id": other["id"]}})
        assert ws.receive_json()["payload"]["code"] == "FORBIDDEN"

        ws.send_json({
            "type": "artist_registered",
            "payload": {"event_id": event["id"], "artist_id": artist["id"]},
        })
        assert ws.receive_json()["type"] == "artist_registered"


def test_admin_action_goes_to_target_user_room(as_admin):
    with as_admin.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "payload": {}})
        authed = ws.receive_json()["payload"]

        ws.send_json({"type": "admin_action", "payload": {}})
        assert ws.receive_json()["payload"]["code"] == "INVALID_EVENT"

        # Target the admin's own room so the echo is observable
        ws.send_json({"type": "admin_action", "payload": {"target_user_id": authed["user_id"], "action": "ping"}})
        message = ws.receive_json()
        assert message["type"] == "admin_action"
        assert message["topic"] == f"user_{authed['user_id']}"
