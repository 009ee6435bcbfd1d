from __future__ import annotations

from typing import List, Optional

from ..schemas.artist import PerformanceStatus
from ..schemas.cue import CueCreate, CueUpdate
from ..storage import DocumentStore, paths
from ..utils.ids import new_id, now_iso


def get_cues(store: DocumentStore, event_id: str, performance_date: str) -> List[dict]:
    cues = store.read_json(paths.cues(event_id, performance_date), default=[])
    return sorted(cues, key=lambda c: c.get("performance_order") or 0)


def create_cue(store: DocumentStore, event_id: str, performance_date: str, data: CueCreate) -> dict:
    now = now_iso()
    cue = {
        **data.model_dump(mode="json", exclude_none=True),
        "id": new_id("cue"),
        "performance_date": performance_date,
        "performance_status": PerformanceStatus.NOT_STARTED.value,
        "is_completed": False,
        "created_at": now,
        "updated_at": now,
    }
    store.update_json(paths.cues(event_id, performance_date), lambda cues: cues + [cue], default=[])
    return cue


def update_cue(store: DocumentStore, event_id: str, performance_date: str, data: CueUpdate) -> Optional[dict]:
    key = paths.cues(event_id, performance_date)
    changes = data.model_dump(mode="json", exclude_unset=True)
    cue_id = changes.pop("id")
    with store.locked(key):
        cues = store.read_json(key, default=[])
        for cue in cues:
            if cue.get("id") != cue_id:
                continue
            cue.update(changes)
            if changes.get("performance_status") == PerformanceStatus.COMPLETED.value:
                cue["is_completed"] = True
            if cue.get("is_completed") and not cue.get("completed_at"):
                cue["completed_at"] = now_iso()
            if "performance_status" in changes:
                cue["last_updated"] = now_iso()
            cue["updated_at"] = now_iso()
            store.write_json(key, cues)
            return cue
    return None


def delete_cue(store: DocumentStore, event_id: str, performance_date: str, cue_id: str) -> bool:
    key = paths.cues(event_id, performance_date)
    with store.locked(key):
        cues = store.read_json(key, default=[])
        remaining = [c for c in cues if c.get("id") != cue_id]
        if len(remaining) == len(cues):
            return False
        store.write_json(key, remaining)
    return True
