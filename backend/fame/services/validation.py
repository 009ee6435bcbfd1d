"""Shape checks and reconciliation for artists, cues and the show order.

Validators take plain decoded-JSON dicts (as stored on disk or received over
the socket) and return ``ValidationResult``; they never raise on bad input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..schemas.artist import PerformanceStatus
from ..schemas.cue import CueType

logger = logging.getLogger(__name__)

VALID_STATUSES = [s.value for s in PerformanceStatus]
VALID_CUE_TYPES = [t.value for t in CueType]

ARTIST_REQUIRED = ("id", "artist_name", "style", "performance_duration")
ARTIST_TYPES = {
    "id": "string",
    "artist_name": "string",
    "style": "string",
    "performance_duration": "number",
    "actual_duration": "number",
    "quality_rating": "number",
    "performance_order": "number",
    "rehearsal_completed": "boolean",
    "performance_status": "string",
    "performance_date": "string",
}

CUE_REQUIRED = ("id", "type", "title", "performance_order")
CUE_TYPES = {
    "id": "string",
    "type": "string",
    "title": "string",
    "duration": "number",
    "performance_order": "number",
    "notes": "string",
    "is_completed": "boolean",
    "performance_status": "string",
}


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass
class ConsistencyReport:
    is_consistent: bool
    issues: List[str] = field(default_factory=list)


def json_type(value: Any) -> str:
    """JSON type name of a decoded value ("number", "string", ...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _check_fields(obj: Dict[str, Any], required: Iterable[str], types: Dict[str, str]) -> List[str]:
    errors: List[str] = []
    for name in required:
        if obj.get(name) is None:
            errors.append(f"Missing required field: {name}")
    for name, expected in types.items():
        value = obj.get(name)
        if value is None:
            continue
        actual = json_type(value)
        if actual != expected:
            errors.append(f"Field {name} should be {expected}, got {actual}")
    return errors


def _is_number(value: Any) -> bool:
    return json_type(value) == "number"


def validate_artist(artist: Any) -> ValidationResult:
    if not isinstance(artist, dict):
        return ValidationResult(False, ["Artist must be an object"])

    errors = _check_fields(artist, ARTIST_REQUIRED, ARTIST_TYPES)

    status = artist.get("performance_status")
    if status and status not in VALID_STATUSES:
        errors.append(f"Invalid performance_status: {status}")

    rating = artist.get("quality_rating")
    if _is_number(rating) and rating and not 1 <= rating <= 3:
        errors.append("Quality rating must be between 1 and 3")

    duration = artist.get("performance_duration")
    if _is_number(duration) and duration <= 0:
        errors.append("Performance duration must be positive")

    return ValidationResult(not errors, errors)


def validate_cue(cue: Any) -> ValidationResult:
    if not isinstance(cue, dict):
        return ValidationResult(False, ["Cue must be an object"])

    errors = _check_fields(cue, CUE_REQUIRED, CUE_TYPES)

    cue_type = cue.get("type")
    if cue_type and cue_type not in VALID_CUE_TYPES:
        errors.append(f"Invalid cue type: {cue_type}")

    status = cue.get("performance_status")
    if status and status not in VALID_STATUSES:
        errors.append(f"Invalid performance_status: {status}")

    duration = cue.get("duration")
    if _is_number(duration) and duration <= 0:
        errors.append("Duration must be positive")

    return ValidationResult(not errors, errors)


def validate_websocket_event(event_type: Any, data: Any) -> ValidationResult:
    errors: List[str] = []
    if not event_type or not isinstance(event_type, str):
        errors.append("Event type must be a non-empty string")
    if not isinstance(data, dict):
        errors.append("Event data must be an object")
        return ValidationResult(False, errors)

    if event_type in ("artist_registered", "artist_assigned", "artist_status_changed"):
        if not data.get("event_id"):
            errors.append("Missing event_id")
        if not data.get("artist_id") and not data.get("id"):
            errors.append("Missing artist_id or id")
    elif event_type == "rehearsal_updated":
        if not data.get("event_id"):
            errors.append("Missing event_id")
        if not data.get("action"):
            errors.append("Missing action")
    elif event_type == "performance-order-update":
        if not data.get("event_id"):
            errors.append("Missing event_id")
    elif event_type == "cue_updated":
        if not data.get("event_id"):
            errors.append("Missing event_id")
        if not data.get("cue_id"):
            errors.append("Missing cue_id")
        if not data.get("action"):
            errors.append("Missing action")
    elif event_type == "emergency-alert":
        if not data.get("message"):
            errors.append("Missing message")

    return ValidationResult(not errors, errors)


def check_show_order_consistency(items: Sequence[Dict[str, Any]]) -> ConsistencyReport:
    issues: List[str] = []

    orders = [item.get("performance_order") for item in items if item.get("performance_order") is not None]
    unique = sorted(set(orders))
    if len(orders) != len(unique):
        issues.append("Duplicate performance orders detected")

    for lower, upper in zip(unique, unique[1:]):
        if upper - lower > 1:
            issues.append(f"Gap in performance order between {lower} and {upper}")

    on_stage = [item for item in items if item.get("status") == PerformanceStatus.CURRENTLY_ON_STAGE.value]
    if len(on_stage) > 1:
        issues.append("Multiple items marked as currently on stage")

    unrehearsed = [
        item
        for item in items
        if item.get("type") == "artist"
        and item.get("artist")
        and not item["artist"].get("rehearsal_completed")
        and item.get("status") != PerformanceStatus.NOT_STARTED.value
    ]
    if unrehearsed:
        issues.append("Artists in show order without completed rehearsal")

    return ConsistencyReport(not issues, issues)


def _timestamp(value: Any) -> float:
    """Epoch seconds from a number (ms) or an ISO-8601 string; 0 when unknown."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value / 1000
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return 0
    return 0


def reconcile_artist_data(local: Dict[str, Any], server: Dict[str, Any]) -> Dict[str, Any]:
    """Server copy, except live fields the local side changed more recently."""
    reconciled = dict(server)
    if _timestamp(local.get("last_updated")) > _timestamp(server.get("last_updated")):
        for name in ("performance_status", "performance_order"):
            if local.get(name) != server.get(name):
                reconciled[name] = local.get(name)
        reconciled["last_updated"] = local.get("last_updated")
    return reconciled


def reconcile_show_order(
    local_items: Sequence[Dict[str, Any]],
    server_items: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Merge two lineups; newer ``last_updated`` wins per item status."""
    local_by_id = {item["id"]: item for item in local_items}
    server_ids = {item["id"] for item in server_items}
    reconciled: List[Dict[str, Any]] = []

    for server_item in server_items:
        merged = dict(server_item)
        local_item = local_by_id.get(server_item["id"])
        if local_item is not None and local_item.get("status") != server_item.get("status"):
            if _timestamp(local_item.get("last_updated")) > _timestamp(server_item.get("last_updated")):
                merged["status"] = local_item.get("status")
                merged["last_updated"] = local_item.get("last_updated")
        reconciled.append(merged)

    reconciled.extend(dict(item) for item in local_items if item["id"] not in server_ids)
    reconciled.sort(key=lambda item: item.get("performance_order") or 0)
    return reconciled


def sanitize_artist_data(artist: Any) -> Optional[Dict[str, Any]]:
    result = validate_artist(artist)
    if not result.is_valid:
        logger.warning("Invalid artist data", extra={"errors": result.errors})
        return None
    return {
        "id": str(artist["id"]),
        "artist_name": str(artist["artist_name"]).strip(),
        "style": str(artist["style"]).strip(),
        "performance_duration": artist["performance_duration"],
        "actual_duration": artist.get("actual_duration") or None,
        "quality_rating": artist.get("quality_rating") or None,
        "performance_order": artist.get("performance_order") or None,
        "rehearsal_completed": bool(artist.get("rehearsal_completed")),
        "performance_status": artist.get("performance_status") or None,
        "performance_date": artist.get("performance_date") or None,
    }


def sanitize_cue_data(cue: Any) -> Optional[Dict[str, Any]]:
    result = validate_cue(cue)
    if not result.is_valid:
        logger.warning("Invalid cue data", extra={"errors": result.errors})
        return None
    clean: Dict[str, Any] = {
        "id": str(cue["id"]),
        "type": cue["type"],
        "title": str(cue["title"]).strip(),
        "performance_order": cue["performance_order"],
        "performance_status": cue.get("performance_status") or None,
    }
    if cue.get("duration"):
        clean["duration"] = cue["duration"]
    if cue.get("notes"):
        clean["notes"] = cue["notes"].strip()
    if cue.get("is_completed"):
        clean["is_completed"] = True
    return clean


def has_significant_change(old: Dict[str, Any], new: Dict[str, Any], fields: Iterable[str]) -> bool:
    return any(old.get(name) != new.get(name) for name in fields)


def validate_performance_order(items: Sequence[Dict[str, Any]]) -> ValidationResult:
    """Per-item shape checks plus the lineup consistency report."""
    errors: List[str] = []
    for item in items:
        if item.get("type") == "artist" and item.get("artist"):
            result = validate_artist(item["artist"])
            if not result.is_valid:
                errors.append(f"Invalid artist {item.get('id')}: {', '.join(result.errors)}")
        elif item.get("type") == "cue" and item.get("cue"):
            result = validate_cue(item["cue"])
            if not result.is_valid:
                errors.append(f"Invalid cue {item.get('id')}: {', '.join(result.errors)}")
    errors.extend(check_show_order_consistency(items).issues)
    return ValidationResult(not errors, errors)
