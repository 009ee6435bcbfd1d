from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ..crud import crud_cue
from ..realtime import hub
from ..realtime.events import CUE_UPDATED
from ..schemas.cue import CueCreate, CueUpdate
from ..schemas.user import SessionData
from ..services.validation import validate_cue
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, error_response, not_found
from .dependencies import event_manager, event_operator, event_viewer, require_performance_date

router = APIRouter(tags=["cues"])


def _performance_date(performance_date: Optional[str] = Query(None)) -> str:
    return require_performance_date(performance_date)


def _notify(background_tasks: BackgroundTasks, event_id: str, cue: dict, action: str) -> None:
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        CUE_UPDATED,
        {"cue_id": cue["id"], "action": action, "cue": cue, "performance_date": cue.get("performance_date")},
    )


@router.get("/events/{event_id}/cues")
def list_cues(
    event_id: str,
    performance_date: str = Depends(_performance_date),
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_cue.get_cues(store, event_id, performance_date))


@router.post("/events/{event_id}/cues", status_code=status.HTTP_201_CREATED)
def create_cue(
    event_id: str,
    body: CueCreate,
    background_tasks: BackgroundTasks,
    performance_date: str = Depends(_performance_date),
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    result = validate_cue({"id": "new", **body.model_dump(mode="json", exclude_none=True)})
    if not result.is_valid or not body.title.strip():
        raise error_response("Invalid cue data", result.errors or ["Missing required field: title"])
    cue = crud_cue.create_cue(store, event_id, performance_date, body)
    _notify(background_tasks, event_id, cue, "created")
    return ok(cue)


@router.patch("/events/{event_id}/cues")
def update_cue(
    event_id: str,
    body: CueUpdate,
    background_tasks: BackgroundTasks,
    performance_date: str = Depends(_performance_date),
    _: SessionData = Depends(event_operator),
    store: DocumentStore = Depends(get_store),
) -> Any:
    cue = crud_cue.update_cue(store, event_id, performance_date, body)
    if cue is None:
        raise not_found("Cue")
    action = "status_updated" if "performance_status" in body.model_fields_set else "updated"
    _notify(background_tasks, event_id, cue, action)
    return ok(cue)


@router.delete("/events/{event_id}/cues")
def delete_cue(
    event_id: str,
    background_tasks: BackgroundTasks,
    cue_id: Optional[str] = Query(None),
    performance_date: str = Depends(_performance_date),
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not cue_id:
        raise api_error("MISSING_CUE_ID", "cue_id query parameter is required")
    if not crud_cue.delete_cue(store, event_id, performance_date, cue_id):
        raise not_found("Cue")
    _notify(background_tasks, event_id, {"id": cue_id, "performance_date": performance_date}, "deleted")
    return ok(None, message="Cue deleted")
