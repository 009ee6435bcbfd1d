import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..crud import crud_event
from ..realtime import hub
from ..realtime.events import TIMING_SETTINGS_UPDATED
from ..schemas.event import EventCreate, EventUpdate, ShowDatesUpdate, TimingSettings
from ..schemas.user import SessionData, UserRole
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from .dependencies import (
    event_manager,
    event_viewer,
    get_active_session,
    get_stage_manager_session,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["events"])

_REQUIRED_EVENT_FIELDS = ("name", "venue_name", "start_date", "end_date", "description")


@router.get("")
def list_events(
    session: SessionData = Depends(get_active_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if session.role == UserRole.STAGE_MANAGER:
        return ok(crud_event.list_events(store, stage_manager_id=session.user_id))
    if session.role == UserRole.ARTIST:
        event = crud_event.get_event(store, session.event_id) if session.event_id else None
        return ok([event] if event else [])
    return ok(crud_event.list_events(store))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreate,
    session: SessionData = Depends(get_stage_manager_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    missing = [field for field in _REQUIRED_EVENT_FIELDS if not getattr(body, field)]
    if missing:
        raise api_error(
            "MISSING_FIELDS",
            "Missing required fields",
            details={field: "required" for field in missing},
        )
    return ok(crud_event.create_event(store, body, session.user_id))


@router.get("/{event_id}")
def get_event(
    event_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    event = crud_event.get_event(store, event_id)
    if event is None:
        raise not_found("Event")
    return ok(event)


@router.put("/{event_id}")
def update_event(
    event_id: str,
    body: EventUpdate,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    event = crud_event.update_event(store, event_id, body)
    if event is None:
        raise not_found("Event")
    return ok(event)


@router.delete("/{event_id}")
def delete_event(
    event_id: str,
    session: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not crud_event.delete_event(store, event_id):
        raise not_found("Event")
    logger.info("Event deleted", extra={"event_id": event_id, "by": session.user_id})
    return ok(None, message="Event deleted")


@router.post("/{event_id}/show-dates")
def set_show_dates(
    event_id: str,
    body: ShowDatesUpdate,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    event = crud_event.set_show_dates(store, event_id, body.dates)
    if event is None:
        raise not_found("Event")
    return ok(event)


@router.get("/{event_id}/timing-settings")
def get_timing_settings(
    event_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_event.get_timing_settings(store, event_id))


@router.patch("/{event_id}/timing-settings")
def update_timing_settings(
    event_id: str,
    body: TimingSettings,
    background_tasks: BackgroundTasks,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    updated = crud_event.update_timing_settings(store, event_id, body)
    background_tasks.add_task(hub.emit_to_event, event_id, TIMING_SETTINGS_UPDATED, updated)
    return ok(updated)
