from __future__ import annotations

import logging
from typing import List, Optional

from ..schemas.show_order import RehearsalCreate, RehearsalUpdate
from ..services.validation import reconcile_show_order
from ..storage import DocumentStore, paths
from ..utils.ids import new_id, now_iso
from . import crud_artist, crud_cue

logger = logging.getLogger(__name__)


def _empty(performance_date: str) -> dict:
    return {"performance_date": performance_date, "items": [], "updated_at": None}


def get_show_order(store: DocumentStore, event_id: str, performance_date: str) -> dict:
    return store.read_json(paths.show_order(event_id, performance_date), default=_empty(performance_date))


def _sync_artist_slots(store: DocumentStore, event_id: str, performance_date: str, items: List[dict]) -> None:
    """Copy lineup positions onto the artist records they reference."""
    key = paths.artists(event_id)
    slots = {item["id"]: item["performance_order"] for item in items if item.get("type") == "artist"}
    if not slots:
        return
    with store.locked(key):
        artists = store.read_json(key, default=[])
        changed = False
        for artist in artists:
            order = slots.get(artist.get("id"))
            if order is None:
                continue
            if artist.get("performance_order") != order or artist.get("performance_date") != performance_date:
                artist["performance_order"] = order
                artist["performance_date"] = performance_date
                artist["updated_at"] = now_iso()
                changed = True
        if changed:
            store.write_json(key, artists)


def save_show_order(store: DocumentStore, event_id: str, performance_date: str, items: List[dict]) -> dict:
    """Replace the lineup for a date."""
    items = sorted(items, key=lambda item: item.get("performance_order") or 0)
    doc = {"event_id": event_id, "performance_date": performance_date, "items": items, "updated_at": now_iso()}
    store.write_json(paths.show_order(event_id, performance_date), doc)
    _sync_artist_slots(store, event_id, performance_date, items)
    return doc


def merge_show_order(store: DocumentStore, event_id: str, performance_date: str, items: List[dict]) -> dict:
    """Reconcile a client's lineup against the stored one (newer status wins)."""
    key = paths.show_order(event_id, performance_date)
    with store.locked(key):
        current = store.read_json(key, default=_empty(performance_date))
        merged = reconcile_show_order(items, current.get("items", []))
        doc = {"event_id": event_id, "performance_date": performance_date, "items": merged, "updated_at": now_iso()}
        store.write_json(key, doc)
    _sync_artist_slots(store, event_id, performance_date, merged)
    return doc


def build_lineup(store: DocumentStore, event_id: str, performance_date: str) -> List[dict]:
    """Lineup items with their artist/cue records attached, in performance order.

    Uses the saved show order when there is one, otherwise every artist
    assigned to the date plus the date's cues.
    """
    artists = {a["id"]: a for a in crud_artist.get_artists(store, event_id)}
    cues = {c["id"]: c for c in crud_cue.get_cues(store, event_id, performance_date)}
    saved = get_show_order(store, event_id, performance_date).get("items", [])

    lineup: List[dict] = []
    if saved:
        for item in saved:
            entry = dict(item)
            if item.get("type") == "artist" and item["id"] in artists:
                entry["artist"] = artists[item["id"]]
            elif item.get("type") == "cue" and item["id"] in cues:
                entry["cue"] = cues[item["id"]]
            lineup.append(entry)
    else:
        for artist in artists.values():
            if artist.get("performance_date") == performance_date and artist.get("performance_order") is not None:
                lineup.append(
                    {
                        "id": artist["id"],
                        "type": "artist",
                        "performance_order": artist["performance_order"],
                        "status": artist.get("performance_status"),
                        "artist": artist,
                    }
                )
        for cue in cues.values():
            lineup.append(
                {
                    "id": cue["id"],
                    "type": "cue",
                    "performance_order": cue.get("performance_order"),
                    "status": cue.get("performance_status"),
                    "cue": cue,
                }
            )
    lineup.sort(key=lambda item: item.get("performance_order") or 0)
    return lineup


# -- rehearsals ---------------------------------------------------------------


def get_rehearsals(store: DocumentStore, event_id: str) -> List[dict]:
    rehearsals = store.read_json(paths.rehearsals(event_id), default=[])
    return sorted(rehearsals, key=lambda r: (r.get("date") or "", r.get("start_time") or ""))


def create_rehearsal(store: DocumentStore, event_id: str, data: RehearsalCreate) -> dict:
    rehearsal = {
        "id": new_id("rehearsal"),
        "event_id": event_id,
        **data.model_dump(),
        "status": "scheduled",
        "created_at": now_iso(),
    }
    store.update_json(paths.rehearsals(event_id), lambda items: items + [rehearsal], default=[])
    return rehearsal


def update_rehearsal(store: DocumentStore, event_id: str, data: RehearsalUpdate) -> Optional[dict]:
    key = paths.rehearsals(event_id)
    changes = data.model_dump(exclude_unset=True)
    rehearsal_id = changes.pop("rehearsal_id")
    with store.locked(key):
        rehearsals = store.read_json(key, default=[])
        for rehearsal in rehearsals:
            if rehearsal.get("id") != rehearsal_id:
                continue
            rehearsal.update(changes)
            rehearsal["updated_at"] = now_iso()
            store.write_json(key, rehearsals)
            break
        else:
            return None
    if rehearsal.get("status") == "completed":
        crud_artist.mark_rehearsal_completed(store, event_id, rehearsal["artist_id"], rehearsal.get("quality_rating"))
    return rehearsal
