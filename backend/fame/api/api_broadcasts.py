import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ..crud import crud_broadcast
from ..realtime import hub
from ..realtime.events import EMERGENCY_ALERT, EMERGENCY_CLEAR
from ..schemas.broadcast import BroadcastCreate, BroadcastUpdate
from ..schemas.user import SessionData
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from .dependencies import event_manager, event_viewer

logger = logging.getLogger(__name__)
router = APIRouter(tags=["emergency"])


@router.get("/events/{event_id}/emergency-broadcasts")
def list_broadcasts(
    event_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_broadcast.get_broadcasts(store, event_id))


@router.post("/events/{event_id}/emergency-broadcasts", status_code=status.HTTP_201_CREATED)
def create_broadcast(
    event_id: str,
    body: BroadcastCreate,
    background_tasks: BackgroundTasks,
    session: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not body.message.strip() or not body.emergency_code:
        raise api_error("MISSING_FIELDS", "Message and emergency code are required")
    broadcast = crud_broadcast.create_broadcast(store, event_id, body, session.user_id)
    logger.warning(
        "Emergency broadcast",
        extra={"event_id": event_id, "emergency_code": broadcast["emergency_code"]},
    )
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        EMERGENCY_ALERT,
        {
            "broadcast_id": broadcast["id"],
            "message": broadcast["message"],
            "emergency_code": broadcast["emergency_code"],
            "timestamp": broadcast["created_at"],
        },
    )
    return ok(broadcast)


@router.patch("/events/{event_id}/emergency-broadcasts")
def update_broadcast(
    event_id: str,
    body: BroadcastUpdate,
    background_tasks: BackgroundTasks,
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    broadcast = crud_broadcast.update_broadcast(store, event_id, body)
    if broadcast is None:
        raise not_found("Broadcast")
    if body.is_active is False:
        background_tasks.add_task(
            hub.emit_to_event, event_id, EMERGENCY_CLEAR, {"broadcast_id": broadcast["id"]}
        )
    return ok(broadcast)


@router.delete("/events/{event_id}/emergency-broadcasts")
def delete_broadcast(
    event_id: str,
    broadcast_id: Optional[str] = Query(None),
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not broadcast_id:
        raise api_error("MISSING_BROADCAST_ID", "broadcast_id query parameter is required")
    if not crud_broadcast.delete_broadcast(store, event_id, broadcast_id):
        raise not_found("Broadcast")
    return ok(None, message="Broadcast deleted")
