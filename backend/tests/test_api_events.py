from conftest import emitted_events, login, make_user

from fame.crud import crud_event
from fame.realtime.events import TIMING_SETTINGS_UPDATED
from fame.schemas.event import EventCreate
from fame.schemas.user import UserRole

EVENT = {
    "name": "Winter Showcase",
    "venue_name": "Civic Theatre",
    "start_date": "2025-12-01",
    "end_date": "2025-12-02",
    "description": "Two nights of dance",
    "show_dates": ["2025-12-01"],
}


def test_stage_manager_creates_and_lists_own_events(as_stage_manager, store):
    client = as_stage_manager
    res = client.post("/api/events", json=EVENT)
    assert res.status_code == 201
    event = res.json()["data"]
    assert event["status"] == "draft"
    assert event["show_dates"] == ["2025-12-01"]

    other = make_user(store, "other@fame.test", UserRole.STAGE_MANAGER)
    crud_event.create_event(store, EventCreate(**{**EVENT, "name": "Not mine"}), other["id"])

    listed = client.get("/api/events").json()["data"]
    assert [e["name"] for e in listed] == ["Winter Showcase"]


def test_create_event_reports_missing_fields(as_stage_manager):
    res = as_stage_manager.post("/api/events", json={"name": "Only a name"})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "MISSING_FIELDS"
    assert set(error["details"]) == {"venue_name", "start_date", "end_date", "description"}


def test_malformed_body_is_a_validation_error(as_stage_manager):
    res = as_stage_manager.post("/api/events", json={**EVENT, "show_dates": "2025-12-01"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert "show_dates" in res.json()["error"]["details"]


def test_dj_cannot_create_events(client, store):
    make_user(store, "dj@fame.test", UserRole.DJ)
    login(client, "dj@fame.test")
    res = client.post("/api/events", json=EVENT)
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


def test_other_stage_manager_is_forbidden(client, store, event):
    make_user(store, "other@fame.test", UserRole.STAGE_MANAGER)
    login(client, "other@fame.test")
    res = client.get(f"/api/events/{event['id']}")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


def test_admin_sees_every_event(as_admin, event):
    listed = as_admin.get("/api/events").json()["data"]
    assert [e["id"] for e in listed] == [event["id"]]


def test_update_show_dates_and_delete(as_stage_manager, event):
    client = as_stage_manager
    url = f"/api/events/{event['id']}"
    res = client.put(url, json={"name": "Spring Gala 2025", "status": "published"})
    assert res.json()["data"]["name"] == "Spring Gala 2025"
    assert res.json()["data"]["venue_name"] == "Main Hall"

    res = client.post(f"{url}/show-dates", json={"dates": ["2025-05-02", "2025-05-01", "2025-05-02"]})
    assert res.json()["data"]["show_dates"] == ["2025-05-01", "2025-05-02"]

    assert client.delete(url).status_code == 200
    res = client.get(url)
    assert res.status_code == 404
    assert res.json()["error"] == {"code": "NOT_FOUND", "message": "Event not found"}


def test_timing_settings(as_stage_manager, event, emitted):
    url = f"/api/events/{event['id']}/timing-settings"
    assert as_stage_manager.get(url).json()["data"] == {"backstage_ready_time": None, "show_start_time": None}

    res = as_stage_manager.patch(url, json={"show_start_time": "19:30"})
    assert res.status_code == 200
    assert res.json()["data"]["show_start_time"] == "19:30"
    assert emitted_events(emitted) == [TIMING_SETTINGS_UPDATED]
    assert emitted.call_args.args[2] == [f"event_{event['id']}"]

    res = as_stage_manager.patch(url, json={"backstage_ready_time": "18:00"})
    assert res.json()["data"]["show_start_time"] == "19:30"


def test_timing_settings_reject_non_clock_values(as_stage_manager, event):
    url = f"/api/events/{event['id']}/timing-settings"
    for bad in ("7pm", "24:00", "19:60", "1930"):
        res = as_stage_manager.patch(url, json={"show_start_time": bad})
        assert res.status_code == 400
        assert res.json()["error"]["code"] == "VALIDATION_ERROR"
        assert "show_start_time" in res.json()["error"]["details"]
    assert as_stage_manager.get(url).json()["data"]["show_start_time"] is None

    timing = as_stage_manager.get(
        f"/api/events/{event['id']}/show-order/timing", params={"performance_date": "2025-05-01"}
    )
    assert timing.status_code == 200

    res = as_stage_manager.patch(url, json={"show_start_time": "07:05", "backstage_ready_time": ""})
    assert res.json()["data"]["show_start_time"] == "07:05"
    assert res.json()["data"]["backstage_ready_time"] is None
