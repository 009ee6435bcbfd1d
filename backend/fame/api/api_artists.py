import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from ..crud import crud_artist, crud_event
from ..realtime import hub, user_room
from ..realtime.events import (
    ARTIST_ASSIGNED,
    ARTIST_DELETED,
    ARTIST_REGISTERED,
    ARTIST_STATUS_CHANGED,
    LIVE_BOARD_UPDATE,
    NEW_REGISTRATION,
)
from ..schemas.artist import (
    ArtistApproval,
    ArtistCreate,
    ArtistLogin,
    ArtistStatus,
    ArtistStatusUpdate,
    ArtistUpdate,
)
from ..schemas.user import SessionData, UserRole, UserStatus
from ..services.validation import has_significant_change, validate_artist
from ..storage import DocumentStore, get_store
from ..utils.envelope import ok
from ..utils.errors import api_error, error_response, not_found
from ..utils.rbac import has_permission
from ..utils.session import create_session_data, set_session_cookie
from .dependencies import event_manager, event_operator, event_viewer, get_active_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["artists"])

_ASSIGNMENT_FIELDS = ("performance_order", "performance_date")
_CLOSED_REGISTRATIONS = {ArtistStatus.REJECTED.value, ArtistStatus.WITHDRAWN.value}
# Set only by staff through approval, status, rehearsal and show-order flows
_STAFF_ONLY_FIELDS = frozenset(
    {
        "status",
        "performance_status",
        "performance_order",
        "performance_date",
        "rehearsal_completed",
        "rehearsal_date",
        "quality_rating",
        "stage_manager_notes",
    }
)


def _require_permission(session: SessionData, resource: str, action: str) -> None:
    if not has_permission(session.role.value, resource, action):
        raise api_error("INSUFFICIENT_PERMISSIONS", "Insufficient permissions", status.HTTP_403_FORBIDDEN)


@router.get("/events/{event_id}/artists")
def list_artists(
    event_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    return ok(crud_artist.get_artists(store, event_id))


@router.post("/events/{event_id}/artists", status_code=status.HTTP_201_CREATED)
def register_artist(
    event_id: str,
    body: ArtistCreate,
    background_tasks: BackgroundTasks,
    store: DocumentStore = Depends(get_store),
) -> Any:
    """Public registration form; the artist appears as pending for the event."""
    event = crud_event.get_event(store, event_id)
    if event is None:
        raise not_found("Event")

    if not body.artist_name.strip():
        raise error_response("Invalid artist data", ["Missing required field: artist_name"])
    artist = crud_artist.build_artist(event_id, body)
    result = validate_artist(artist)
    if not result.is_valid:
        raise error_response("Invalid artist data", result.errors)
    crud_artist.add_artist(store, event_id, artist)

    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        ARTIST_REGISTERED,
        {"artist_id": artist["id"], "artist_name": artist["artist_name"]},
    )
    if event.get("stage_manager_id"):
        background_tasks.add_task(
            hub.emit,
            NEW_REGISTRATION,
            {"event_id": event_id, "artist_id": artist["id"], "artist_name": artist["artist_name"], "role": "artist"},
            [user_room(event["stage_manager_id"])],
        )
    return ok(artist)


@router.get("/events/{event_id}/artists/{artist_id}")
def get_artist(
    event_id: str,
    artist_id: str,
    _: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    artist = crud_artist.get_artist(store, event_id, artist_id)
    if artist is None:
        raise not_found("Artist")
    return ok(artist)


@router.put("/events/{event_id}/artists/{artist_id}")
def update_artist(
    event_id: str,
    artist_id: str,
    body: ArtistUpdate,
    background_tasks: BackgroundTasks,
    session: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    _require_permission(session, "artists", "update_profile")
    if session.role == UserRole.ARTIST and session.user_id != artist_id:
        raise api_error("FORBIDDEN", "Artists may only edit their own profile", status.HTTP_403_FORBIDDEN)
    if session.role == UserRole.ARTIST:
        blocked = sorted(body.model_fields_set & _STAFF_ONLY_FIELDS)
        if blocked:
            raise api_error(
                "FORBIDDEN_FIELDS",
                "Artists may not change these fields",
                status.HTTP_403_FORBIDDEN,
                blocked,
            )

    result = crud_artist.update_artist(store, event_id, artist_id, body)
    if result is None:
        raise not_found("Artist")
    before, after = result
    if has_significant_change(before, after, _ASSIGNMENT_FIELDS):
        background_tasks.add_task(
            hub.emit_to_event,
            event_id,
            ARTIST_ASSIGNED,
            {
                "artist_id": artist_id,
                "artist_name": after.get("artist_name"),
                "performance_order": after.get("performance_order"),
                "performance_date": after.get("performance_date"),
            },
        )
    return ok(after)


@router.delete("/events/{event_id}/artists/{artist_id}")
def delete_artist(
    event_id: str,
    artist_id: str,
    background_tasks: BackgroundTasks,
    session: SessionData = Depends(event_manager),
    store: DocumentStore = Depends(get_store),
) -> Any:
    removed = crud_artist.delete_artist(store, event_id, artist_id)
    if removed is None:
        raise not_found("Artist")
    background_tasks.add_task(
        hub.emit_to_event,
        event_id,
        ARTIST_DELETED,
        {"artist_id": artist_id, "artist_name": removed.get("artist_name")},
    )
    return ok(None, message="Artist deleted")


@router.patch("/events/{event_id}/artists/{artist_id}/status")
def update_performance_status(
    event_id: str,
    artist_id: str,
    body: ArtistStatusUpdate,
    background_tasks: BackgroundTasks,
    session: SessionData = Depends(event_operator),
    store: DocumentStore = Depends(get_store),
) -> Any:
    _require_permission(session, "performances", "update")
    artist = crud_artist.set_performance_status(
        store, event_id, artist_id, body.performance_status, body.performance_date
    )
    if artist is None:
        raise not_found("Artist")
    payload = {
        "artist_id": artist_id,
        "artist_name": artist.get("artist_name"),
        "performance_status": artist["performance_status"],
        "performance_date": artist.get("performance_date"),
        "timestamp": artist["last_updated"],
    }
    background_tasks.add_task(hub.emit_to_event, event_id, ARTIST_STATUS_CHANGED, payload)
    background_tasks.add_task(hub.emit_to_event, event_id, LIVE_BOARD_UPDATE, payload)
    return ok(artist)


@router.patch("/events/{event_id}/artists/{artist_id}/approval")
def update_registration_status(
    event_id: str,
    artist_id: str,
    body: ArtistApproval,
    session: SessionData = Depends(event_viewer),
    store: DocumentStore = Depends(get_store),
) -> Any:
    _require_permission(session, "artists", "approve")
    artist = crud_artist.set_registration_status(store, event_id, artist_id, body.status, body.notes)
    if artist is None:
        raise not_found("Artist")
    logger.info(
        "Artist registration status changed",
        extra={"event_id": event_id, "artist_id": artist_id, "status": artist["status"]},
    )
    return ok(artist)


@router.post("/artists/login")
def artist_login(
    body: ArtistLogin,
    response: Response,
    store: DocumentStore = Depends(get_store),
) -> Any:
    if not body.email or not body.artist_name:
        raise api_error("MISSING_CREDENTIALS", "Email and artist name are required")
    artist = crud_artist.find_artist_for_login(store, body.email, body.artist_name)
    if artist is None:
        raise api_error("INVALID_CREDENTIALS", "No registration matches those details", status.HTTP_401_UNAUTHORIZED)
    if artist.get("status") in _CLOSED_REGISTRATIONS:
        raise api_error("ACCOUNT_STATUS_INVALID", f"Registration {artist['status']}", status.HTTP_403_FORBIDDEN)

    account = {
        "id": artist["id"],
        "email": artist.get("email") or body.email,
        "role": UserRole.ARTIST.value,
        "status": UserStatus.ACTIVE.value,
    }
    set_session_cookie(response, create_session_data(account, event_id=artist["event_id"]))
    return ok({"artist": artist, "redirect": f"/artist-dashboard/{artist['id']}"})


@router.get("/artists/{artist_id}")
def find_artist(
    artist_id: str,
    session: SessionData = Depends(get_active_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    if session.role == UserRole.ARTIST and session.user_id != artist_id:
        raise api_error("FORBIDDEN", "Access denied", status.HTTP_403_FORBIDDEN)
    artist = crud_artist.find_artist(store, artist_id)
    if artist is None:
        raise not_found("Artist")
    return ok(artist)
