from conftest import emitted_events, login, make_user

from fame.crud import crud_artist
from fame.realtime.events import (
    ARTIST_ASSIGNED,
    ARTIST_DELETED,
    ARTIST_REGISTERED,
    ARTIST_STATUS_CHANGED,
    LIVE_BOARD_UPDATE,
    NEW_REGISTRATION,
)
from fame.schemas.user import UserRole

REGISTRATION = {
    "artist_name": "Nova Crew",
    "real_name": "Nova Smith",
    "email": "nova@fame.test",
    "style": "Hip Hop",
    "performance_duration": 4,
    "biography": "Street dance collective",
    "music_tracks": [{"song_title": "Intro", "duration": 185, "is_main_track": True}],
    "costume_color": "red",
}


def register(client, event_id, **overrides):
    res = client.post(f"/api/events/{event_id}/artists", json={**REGISTRATION, **overrides})
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_public_registration(client, event, stage_manager, emitted):
    artist = register(client, event["id"])
    assert artist["id"].startswith("artist-")
    assert artist["status"] == "pending"
    assert artist["performance_status"] == "not_started"
    assert artist["rehearsal_completed"] is False
    assert artist["music_tracks"][0]["song_title"] == "Intro"
    assert artist["costume_color"] == "red"

    assert emitted_events(emitted) == [ARTIST_REGISTERED, NEW_REGISTRATION]
    assert emitted.call_args_list[0].args[2] == [f"event_{event['id']}"]
    assert emitted.call_args_list[1].args[2] == [f"user_{stage_manager['id']}"]


def test_registration_defaults_and_validation(client, event):
    body = {k: v for k, v in REGISTRATION.items() if k != "performance_duration"}
    res = client.post(f"/api/events/{event['id']}/artists", json=body)
    assert res.json()["data"]["performance_duration"] == 5

    res = client.post(f"/api/events/{event['id']}/artists", json={**REGISTRATION, "artist_name": "  "})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"

    res = client.post(f"/api/events/{event['id']}/artists", json={**REGISTRATION, "quality_rating": 7})
    assert res.json()["error"]["details"] == ["Quality rating must be between 1 and 3"]

    res = client.post("/api/events/missing/artists", json=REGISTRATION)
    assert res.status_code == 404


def test_listing_requires_event_access(client, event):
    register(client, event["id"])
    assert client.get(f"/api/events/{event['id']}/artists").status_code == 401


def test_stage_manager_manages_artists(as_stage_manager, event, emitted):
    client = as_stage_manager
    artist = register(client, event["id"])
    url = f"/api/events/{event['id']}/artists/{artist['id']}"
    emitted.reset_mock()

    assert client.get(f"/api/events/{event['id']}/artists").json()["data"][0]["id"] == artist["id"]
    assert client.get(url).json()["data"]["artist_name"] == "Nova Crew"

    res = client.put(url, json={"stage_manager_notes": "Needs a spotlight"})
    assert res.json()["data"]["stage_manager_notes"] == "Needs a spotlight"
    assert emitted.call_count == 0

    res = client.put(url, json={"performance_order": 3, "performance_date": "2025-05-01"})
    assert res.json()["data"]["performance_order"] == 3
    assert emitted_events(emitted) == [ARTIST_ASSIGNED]

    res = client.patch(f"{url}/approval", json={"status": "approved", "notes": "Great tape"})
    assert res.json()["data"]["status"] == "approved"
    assert res.json()["data"]["stage_manager_notes"] == "Great tape"

    assert client.delete(url).status_code == 200
    assert emitted_events(emitted)[-1] == ARTIST_DELETED
    assert client.get(url).status_code == 404


def test_dj_updates_performance_status(client, store, event, emitted):
    artist = register(client, event["id"])
    make_user(store, "dj@fame.test", UserRole.DJ)
    login(client, "dj@fame.test")
    emitted.reset_mock()

    url = f"/api/events/{event['id']}/artists/{artist['id']}/status"
    res = client.patch(url, json={"performance_status": "currently_on_stage", "performance_date": "2025-05-01"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["performance_status"] == "currently_on_stage"
    assert data["last_updated"]
    assert emitted_events(emitted) == [ARTIST_STATUS_CHANGED, LIVE_BOARD_UPDATE]
    assert emitted.call_args.args[1]["artist_id"] == artist["id"]

    res = client.patch(url, json={"performance_status": "dancing"})
    assert res.status_code == 400

    # DJs cannot approve registrations
    res = client.patch(f"/api/events/{event['id']}/artists/{artist['id']}/approval", json={"status": "approved"})
    assert res.status_code == 403


def test_artist_login_and_self_service(client, event):
    artist = register(client, event["id"])
    other = register(client, event["id"], artist_name="Other Act", email="other@fame.test")

    res = client.post("/api/artists/login", json={"email": "NOVA@fame.test", "artist_name": "nova crew"})
    assert res.status_code == 200
    assert res.json()["data"]["redirect"] == f"/artist-dashboard/{artist['id']}"

    session = client.get("/api/auth/me").json()["data"]
    assert session["session"]["role"] == "artist"
    assert session["session"]["event_id"] == event["id"]
    assert session["user"]["id"] == artist["id"]

    assert client.get(f"/api/artists/{artist['id']}").status_code == 200
    assert client.get(f"/api/artists/{other['id']}").status_code == 403

    base = f"/api/events/{event['id']}/artists"
    assert client.put(f"{base}/{artist['id']}", json={"biography": "Updated"}).status_code == 200
    assert client.put(f"{base}/{other['id']}", json={"biography": "Hacked"}).status_code == 403
    assert client.patch(f"{base}/{artist['id']}/status", json={"performance_status": "completed"}).status_code == 403


def test_artist_cannot_edit_staff_fields(client, store, event):
    artist = register(client, event["id"])
    client.post("/api/artists/login", json={"email": "nova@fame.test", "artist_name": "Nova Crew"})
    url = f"/api/events/{event['id']}/artists/{artist['id']}"

    res = client.put(url, json={"biography": "New bio", "status": "approved", "rehearsal_completed": True})
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN_FIELDS"
    assert res.json()["error"]["details"] == ["rehearsal_completed", "status"]

    for field, value in (("quality_rating", 3), ("performance_order", 1), ("performance_status", "completed")):
        assert client.put(url, json={field: value}).status_code == 403

    stored = crud_artist.get_artist(store, event["id"], artist["id"])
    assert stored["status"] == "pending"
    assert stored["rehearsal_completed"] is False
    assert stored["biography"] == "Street dance collective"


def test_artist_login_errors(client, as_stage_manager, event):
    artist = register(client, event["id"])
    res = client.post("/api/artists/login", json={"email": "nova@fame.test"})
    assert res.json()["error"]["code"] == "MISSING_CREDENTIALS"

    res = client.post("/api/artists/login", json={"email": "nova@fame.test", "artist_name": "Someone"})
    assert res.status_code == 401

    client.patch(f"/api/events/{event['id']}/artists/{artist['id']}/approval", json={"status": "rejected"})
    res = client.post("/api/artists/login", json={"email": "nova@fame.test", "artist_name": "Nova Crew"})
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_STATUS_INVALID"
