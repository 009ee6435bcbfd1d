from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..schemas.artist import ArtistCreate, ArtistStatus, ArtistUpdate, PerformanceStatus
from ..storage import DocumentStore, paths
from ..utils.auth import normalize_email
from ..utils.ids import new_id, now_iso
from . import crud_event

logger = logging.getLogger(__name__)


def get_artists(store: DocumentStore, event_id: str) -> List[dict]:
    return store.read_json(paths.artists(event_id), default=[])


def get_artist(store: DocumentStore, event_id: str, artist_id: str) -> Optional[dict]:
    return next((a for a in get_artists(store, event_id) if a.get("id") == artist_id), None)


def build_artist(event_id: str, data: ArtistCreate) -> dict:
    """New artist record with registration defaults applied."""
    now = now_iso()
    return {
        **data.model_dump(mode="json", exclude_none=True),
        "id": new_id("artist", sep="-"),
        "event_id": event_id,
        "status": ArtistStatus.PENDING.value,
        "performance_status": PerformanceStatus.NOT_STARTED.value,
        "rehearsal_completed": bool(data.rehearsal_completed),
        "created_at": now,
        "updated_at": now,
    }


def add_artist(store: DocumentStore, event_id: str, artist: dict) -> dict:
    key = paths.artists(event_id)
    with store.locked(key):
        artists = store.read_json(key, default=[])
        artists.append(artist)
        store.write_json(key, artists)
    logger.info("Registered artist", extra={"event_id": event_id, "artist_id": artist["id"]})
    return artist


def _modify(store: DocumentStore, event_id: str, artist_id: str, changes: dict) -> Optional[Tuple[dict, dict]]:
    """Apply ``changes``; returns (before, after) or None when the artist is unknown."""
    key = paths.artists(event_id)
    with store.locked(key):
        artists = store.read_json(key, default=[])
        for i, artist in enumerate(artists):
            if artist.get("id") != artist_id:
                continue
            before = dict(artist)
            artist.update(changes)
            artist["updated_at"] = now_iso()
            artists[i] = artist
            store.write_json(key, artists)
            return before, artist
    return None


def update_artist(
    store: DocumentStore, event_id: str, artist_id: str, data: ArtistUpdate
) -> Optional[Tuple[dict, dict]]:
    changes = data.model_dump(mode="json", exclude_unset=True)
    changes.pop("id", None)
    changes.pop("event_id", None)
    if "performance_status" in changes:
        changes["last_updated"] = now_iso()
    return _modify(store, event_id, artist_id, changes)


def set_performance_status(
    store: DocumentStore,
    event_id: str,
    artist_id: str,
    status: PerformanceStatus,
    performance_date: Optional[str] = None,
) -> Optional[dict]:
    changes: dict = {"performance_status": status.value, "last_updated": now_iso()}
    if performance_date:
        changes["performance_date"] = performance_date
    result = _modify(store, event_id, artist_id, changes)
    return result[1] if result else None


def set_registration_status(
    store: DocumentStore, event_id: str, artist_id: str, status: ArtistStatus, notes: Optional[str] = None
) -> Optional[dict]:
    changes: dict = {"status": status.value}
    if notes is not None:
        changes["stage_manager_notes"] = notes
    result = _modify(store, event_id, artist_id, changes)
    return result[1] if result else None


def mark_rehearsal_completed(
    store: DocumentStore, event_id: str, artist_id: str, quality_rating: Optional[int] = None
) -> Optional[dict]:
    changes: dict = {"rehearsal_completed": True}
    if quality_rating is not None:
        changes["quality_rating"] = quality_rating
    result = _modify(store, event_id, artist_id, changes)
    return result[1] if result else None


def delete_artist(store: DocumentStore, event_id: str, artist_id: str) -> Optional[dict]:
    key = paths.artists(event_id)
    with store.locked(key):
        artists = store.read_json(key, default=[])
        removed = next((a for a in artists if a.get("id") == artist_id), None)
        if removed is None:
            return None
        store.write_json(key, [a for a in artists if a.get("id") != artist_id])
    return removed


def find_artist(store: DocumentStore, artist_id: str) -> Optional[dict]:
    """Look an artist up across every event."""
    for event in crud_event.list_events(store):
        artist = get_artist(store, event["id"], artist_id)
        if artist is not None:
            return artist
    return None


def find_artist_for_login(store: DocumentStore, email: str, artist_name: str) -> Optional[dict]:
    email = normalize_email(email)
    name = artist_name.strip().lower()
    for event in crud_event.list_events(store):
        for artist in get_artists(store, event["id"]):
            if (
                normalize_email(artist.get("email") or "") == email
                and (artist.get("artist_name") or "").strip().lower() == name
            ):
                return artist
    return None
