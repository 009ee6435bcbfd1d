import logging
import mimetypes
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..crud import crud_event
from ..schemas.user import SessionData
from ..services.media import format_file_size, get_file_category, validate_media_file
from ..storage import DocumentStore, StorageError, get_store, paths
from ..utils.envelope import ok
from ..utils.errors import api_error, not_found
from ..utils.ids import now_ms
from ..utils.rbac import has_permission
from .dependencies import get_optional_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["uploads"])

_FILE_TYPES = {"music", "images", "videos", "documents"}


@router.post("/gcs/upload", status_code=status.HTTP_201_CREATED)
async def upload_artist_file(
    file: UploadFile = File(...),
    event_id: str = Form(""),
    artist_id: str = Form(""),
    file_type: str = Form(""),
    session: Optional[SessionData] = Depends(get_optional_session),
    store: DocumentStore = Depends(get_store),
) -> Any:
    """Store an artist's music/image/video file under the event.

    Open to anonymous callers so the registration form can attach files
    before the artist record exists.
    """
    if session is not None and not has_permission(session.role.value, "files", "upload"):
        raise api_error("INSUFFICIENT_PERMISSIONS", "Insufficient permissions", status.HTTP_403_FORBIDDEN)
    if not (event_id and artist_id and file_type):
        raise api_error("MISSING_FIELDS", "file, event_id, artist_id and file_type are required")
    if file_type not in _FILE_TYPES:
        raise api_error("INVALID_FILE_TYPE", f"file_type must be one of {', '.join(sorted(_FILE_TYPES))}")
    if crud_event.get_event(store, event_id) is None:
        raise not_found("Event")

    try:
        data = await file.read()
    finally:
        await file.close()
    content_type = file.content_type or "application/octet-stream"
    problem = validate_media_file(file.filename, len(data), content_type)
    if problem:
        raise api_error("INVALID_FILE", problem)

    key = paths.artist_upload(event_id, artist_id, file_type, now_ms(), file.filename or "upload")
    try:
        url = await run_in_threadpool(store.upload_file, key, data, content_type)
    except StorageError as exc:
        logger.error("Upload failed", extra={"key": key, "error": str(exc)})
        raise api_error("UPLOAD_FAILED", "Failed to store file", status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(
        "Stored upload",
        extra={"key": key, "size": format_file_size(len(data)), "category": get_file_category(content_type)},
    )
    return ok(
        {
            "url": url,
            "file_name": file.filename,
            "key": key,
            "size": len(data),
            "content_type": content_type,
        }
    )


@router.get("/media/{key:path}")
def get_media(key: str, store: DocumentStore = Depends(get_store)) -> Any:
    # Only uploaded artist files are served; JSON documents stay private
    parts = key.split("/")
    if len(parts) < 6 or parts[0] != "events" or parts[2] != "artists":
        raise not_found("File")
    try:
        for part in parts:
            paths.segment(part)
    except paths.InvalidKeyError:
        raise not_found("File")
    try:
        signed = store.signed_url(key, settings.GCS_SIGNED_URL_TTL)
        if signed:
            return RedirectResponse(url=signed, status_code=status.HTTP_302_FOUND)
        data = store.read_bytes(key)
    except StorageError as exc:
        logger.warning("Media lookup failed", extra={"key": key, "error": str(exc)})
        raise not_found("File")
    if data is None:
        raise not_found("File")
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type, headers={"Cache-Control": "private, max-age=300"})
