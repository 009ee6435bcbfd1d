from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..crud import crud_artist, crud_show_order
from ..realtime import hub
from ..realtime.events import QUALITY_RATING_UPDATED, REHEARSAL_UPDATED
from ..schemas.show_order import RehearsalCreate, RehearsalUpdate
from ..schemas.user import SessionData
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from .dependencies import event_manager, event_viewer

router = APIRouter(tags=["rehearsals"])


@router.get("/events/{event_id}/rehearsals")
def list_rehearsals(
    event_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_show_order.get_rehearsals(store, event_id))


@router.post("/events/{event_id}/rehearsals", status_code=status.HTTP_201_CREATED)
def schedule_rehearsal(
    event_id: str,
    body: RehearsalCreate,
    background_tasks: BackgroundTasks,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not (body.artist_id and body.date and body.start_time):
        raise api_error("MISSING_FIELDS", "artist_id, date and start_time are required")
    artist = crud_artist.get_artist(store, event_id, body.artist_id)
    if artist is None:
        raise not_found("Artist")
    rehearsal = crud_show_order.create_rehearsal(store, event_id, body)
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        REHEARSAL_UPDATED,
        {"action": "scheduled", "artist_id": body.artist_id, "rehearsal": rehearsal},
    )
    return ok(rehearsal)


@router.patch("/events/{event_id}/rehearsals")
def update_rehearsal(
    event_id: str,
    body: RehearsalUpdate,
    background_tasks: BackgroundTasks,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if body.quality_rating is not None and not 1 <= body.quality_rating <= 3:
        raise api_error("INVALID_RATING", "Quality rating must be between 1 and 3")
    rehearsal = crud_show_order.update_rehearsal(store, event_id, body)
    if rehearsal is None:
        raise not_found("Rehearsal")
    action = "completed" if rehearsal.get("status") == "completed" else "updated"
    if rehearsal.get("status") == "cancelled":
        action = "removed"
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        REHEARSAL_UPDATED,
        {"action": action, "artist_id": rehearsal.get("artist_id"), "rehearsal": rehearsal},
    )
    if body.quality_rating is not None:
        artist = crud_artist.get_artist(store, event_id, rehearsal["artist_id"]) or {}
        background_tasks.add_task(
            hub.emit_to_event,
            event_id,
            QUALITY_RATING_UPDATED,
            {
                "artist_id": rehearsal["artist_id"],
                "artist_name": artist.get("artist_name"),
                "quality_rating": body.quality_rating,
            },
        )
    return ok(rehearsal)
