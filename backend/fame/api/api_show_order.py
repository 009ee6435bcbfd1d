import logging
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ..crud import crud_event, crud_show_order
from ..realtime import hub
from ..realtime.events import PERFORMANCE_ORDER_UPDATE
from ..schemas.show_order import ShowOrderUpdate
from ..schemas.user import SessionData
from ..services.timing import build_schedule, calculate_total_show_time, format_time
from ..services.validation import check_show_order_consistency
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import error_response
from .dependencies import event_manager, event_operator, event_viewer, require_performance_date

logger = logging.getLogger(__name__)
router = APIRouter(tags=["show-order"])

_DUPLICATE_ORDERS = "Duplicate performance orders detected"


def _items(body: ShowOrderUpdate) -> List[dict]:
    items = [item.model_dump(exclude_none=True) for item in body.items]
    ids = [item["id"] for item in items]
    if len(ids) != len(set(ids)):
        raise error_response("Invalid show order", ["Duplicate item ids"])
    if _DUPLICATE_ORDERS in check_show_order_consistency(items).issues:
        raise error_response("Invalid show order", [_DUPLICATE_ORDERS])
    return items


def _notify(background_tasks: BackgroundTasks, event_id: str, doc: dict) -> None:
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        PERFORMANCE_ORDER_UPDATE,
        {"performance_date": doc["performance_date"], "items": doc["items"]},
    )


@router.get("/events/{event_id}/show-order")
def get_show_order(
    event_id: str,
    performance_date: Optional[str] = Query(None),
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    date = require_performance_date(performance_date)
    doc = crud_show_order.get_show_order(store, event_id, date)
    return ok({**doc, "lineup": crud_show_order.build_lineup(store, event_id, date)})


@router.post("/events/{event_id}/show-order")
def replace_show_order(
    event_id: str,
    body: ShowOrderUpdate,
    background_tasks: BackgroundTasks,
    performance_date: Optional[str] = Query(None),
    _: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    date = require_performance_date(body.performance_date or performance_date)
    doc = crud_show_order.save_show_order(store, event_id, date, _items(body))
    logger.info("Show order saved", extra={"event_id": event_id, "performance_date": date, "items": len(doc["items"])})
    _notify(background_tasks, event_id, doc)
    return ok(doc)


@router.put("/events/{event_id}/show-order")
def merge_show_order(
    event_id: str,
    body: ShowOrderUpdate,
    background_tasks: BackgroundTasks,
    performance_date: Optional[str] = Query(None),
    _: SessionData = Depends(event_operator),
    store: DocumentStore = Depends(get_store),
) -> Any:
    """Merge a client's lineup; per item the more recently updated status wins."""
    date = require_performance_date(body.performance_date or performance_date)
    doc = crud_show_order.merge_show_order(store, event_id, date, _items(body))
    _notify(background_tasks, event_id, doc)
    return ok(doc)


@router.get("/events/{event_id}/show-order/timing")
def show_timing(
    event_id: str,
    performance_date: Optional[str] = Query(None),
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    date = require_performance_date(performance_date)
    lineup = crud_show_order.build_lineup(store, event_id, date)
    settings = crud_event.get_timing_settings(store, event_id)
    schedule = build_schedule(lineup, settings.get("show_start_time"))
    total = calculate_total_show_time(lineup)
    report = check_show_order_consistency(lineup)
    return ok(
        {
            "performance_date": date,
            "timing_settings": settings,
            "items": [
                {"id": item["id"], "type": item.get("type"), **timing.as_dict()}
                for item, timing in zip(lineup, schedule)
            ],
            "total_minutes": total,
            "total_formatted": format_time(total),
            "consistency": {"is_consistent": report.is_consistent, "issues": report.issues},
        }
    )
