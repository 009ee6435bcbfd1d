from __future__ import annotations

import logging
from typing import List, Optional

from ..schemas.event import EventCreate, EventUpdate, TimingSettings
from ..storage import DocumentStore, paths
from ..utils.ids import new_id, now_iso

logger = logging.getLogger(__name__)


def list_events(store: DocumentStore, stage_manager_id: Optional[str] = None) -> List[dict]:
    """All events, or only those owned by ``stage_manager_id``; newest first."""
    events: List[dict] = []
    for key in store.list_keys(paths.EVENTS_PREFIX):
        if paths.event_id_from_key(key) is None:
            continue
        event = store.read_json(key)
        if not event:
            continue
        if stage_manager_id is not None and event.get("stage_manager_id") != stage_manager_id:
            continue
        events.append(event)
    events.sort(key=lambda e: e.get("created_at") or "", reverse=True)
    return events


def get_event(store: DocumentStore, event_id: str) -> Optional[dict]:
    return store.read_json(paths.event(event_id))


def create_event(store: DocumentStore, data: EventCreate, stage_manager_id: str) -> dict:
    now = now_iso()
    event = {
        "id": new_id("event"),
        **data.model_dump(),
        "status": "draft",
        "stage_manager_id": stage_manager_id,
        "created_at": now,
        "updated_at": now,
    }
    store.write_json(paths.event(event["id"]), event)
    logger.info("Created event", extra={"event_id": event["id"], "stage_manager_id": stage_manager_id})
    return event


def update_event(store: DocumentStore, event_id: str, data: EventUpdate) -> Optional[dict]:
    key = paths.event(event_id)
    with store.locked(key):
        event = store.read_json(key)
        if event is None:
            return None
        event.update(data.model_dump(exclude_unset=True, exclude_none=True))
        event["updated_at"] = now_iso()
        store.write_json(key, event)
    return event


def delete_event(store: DocumentStore, event_id: str) -> bool:
    """Remove the event document and everything stored beneath it."""
    if not store.delete(paths.event(event_id)):
        return False
    for key in store.list_keys(f"events/{event_id}/"):
        store.delete(key)
    logger.info("Deleted event", extra={"event_id": event_id})
    return True


def set_show_dates(store: DocumentStore, event_id: str, dates: List[str]) -> Optional[dict]:
    key = paths.event(event_id)
    with store.locked(key):
        event = store.read_json(key)
        if event is None:
            return None
        event["show_dates"] = sorted(set(dates))
        event["updated_at"] = now_iso()
        store.write_json(key, event)
    return event


def get_timing_settings(store: DocumentStore, event_id: str) -> dict:
    stored = store.read_json(paths.timing_settings(event_id))
    if stored is None:
        return TimingSettings().model_dump()
    return stored


def update_timing_settings(store: DocumentStore, event_id: str, data: TimingSettings) -> dict:
    changes = data.model_dump(exclude_unset=True)

    def apply(current: dict) -> dict:
        current.update(changes)
        current["updated_at"] = now_iso()
        return current

    return store.update_json(paths.timing_settings(event_id), apply, default=TimingSettings().model_dump())
