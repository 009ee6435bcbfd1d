"""Object key layout shared by the GCS and local backends.

Every caller-supplied part of a key must be a single path segment, so one
document key can never be steered onto another document.
"""

import re

EVENTS_PREFIX = "events/"
PENDING_STAGE_MANAGERS = "registrations/stage-managers/pending.json"
COUNTERS = "counters/counters.json"

_EVENT_DOC = re.compile(r"^events/([^/]+)\.json$")


class InvalidKeyError(ValueError):
    """A key segment was empty, a dot segment, or contained a separator."""


def segment(value: str) -> str:
    if (
        not isinstance(value, str)
        or value in ("", ".", "..")
        or "/" in value
        or "\\" in value
        or "\x00" in value
    ):
        raise InvalidKeyError(f"Invalid key segment: {value!r}")
    return value


def event(event_id: str) -> str:
    return f"events/{segment(event_id)}.json"


def event_id_from_key(key: str) -> str | None:
    match = _EVENT_DOC.match(key)
    return match.group(1) if match else None


def artists(event_id: str) -> str:
    return f"events/{segment(event_id)}/artists.json"


def cues(event_id: str, performance_date: str) -> str:
    return f"events/{segment(event_id)}/cues/{segment(performance_date)}.json"


def emergency_broadcasts(event_id: str) -> str:
    return f"events/{segment(event_id)}/emergency-broadcasts.json"


def timing_settings(event_id: str) -> str:
    return f"events/{segment(event_id)}/timing-settings.json"


def show_order(event_id: str, performance_date: str) -> str:
    return f"events/{segment(event_id)}/show-order/{segment(performance_date)}.json"


def rehearsals(event_id: str) -> str:
    return f"events/{segment(event_id)}/rehearsals.json"


def users(role: str) -> str:
    return f"users/{segment(role)}/users.json"


def notifications(user_id: str) -> str:
    return f"notifications/{segment(user_id)}.json"


def sanitize_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", filename or "")


def artist_upload(event_id: str, artist_id: str, file_type: str, timestamp_ms: int, filename: str) -> str:
    return (
        f"events/{segment(event_id)}/artists/{segment(artist_id)}/{segment(file_type)}/"
        f"{timestamp_ms}_{sanitize_filename(filename)}"
    )
