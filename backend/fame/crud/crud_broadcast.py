from __future__ import annotations

from typing import List, Optional

from ..schemas.broadcast import BroadcastCreate, BroadcastUpdate
from ..storage import DocumentStore, paths
from ..utils.ids import new_id, now_iso


def get_broadcasts(store: DocumentStore, event_id: str, active_only: bool = True) -> List[dict]:
    broadcasts = store.read_json(paths.emergency_broadcasts(event_id), default=[])
    if active_only:
        broadcasts = [b for b in broadcasts if b.get("is_active")]
    return sorted(broadcasts, key=lambda b: b.get("created_at") or "", reverse=True)


def create_broadcast(store: DocumentStore, event_id: str, data: BroadcastCreate, created_by: str) -> dict:
    broadcast = {
        "id": new_id("broadcast"),
        "event_id": event_id,
        "message": data.message.strip(),
        "emergency_code": data.emergency_code,
        "is_active": True,
        "created_at": now_iso(),
        "created_by": created_by,
    }
    store.update_json(paths.emergency_broadcasts(event_id), lambda items: items + [broadcast], default=[])
    return broadcast


def update_broadcast(store: DocumentStore, event_id: str, data: BroadcastUpdate) -> Optional[dict]:
    key = paths.emergency_broadcasts(event_id)
    with store.locked(key):
        broadcasts = store.read_json(key, default=[])
        for broadcast in broadcasts:
            if broadcast.get("id") != data.broadcast_id:
                continue
            if data.message is not None:
                broadcast["message"] = data.message
            if data.is_active is not None:
                broadcast["is_active"] = data.is_active
                broadcast["deactivated_at"] = None if data.is_active else now_iso()
            broadcast["updated_at"] = now_iso()
            store.write_json(key, broadcasts)
            return broadcast
    return None


def delete_broadcast(store: DocumentStore, event_id: str, broadcast_id: str) -> bool:
    key = paths.emergency_broadcasts(event_id)
    with store.locked(key):
        broadcasts = store.read_json(key, default=[])
        remaining = [b for b in broadcasts if b.get("id") != broadcast_id]
        if len(remaining) == len(broadcasts):
            return False
        store.write_json(key, remaining)
    return True
