"""Show timing calculations.

Artist slots prefer ``actual_duration`` (seconds, measured from the
uploaded track) over the declared ``performance_duration`` (minutes).
Cue slots use ``duration`` in minutes.

Show-order items look like ``{"type": "artist", "artist": {...}}`` or
``{"type": "cue", "cue": {...}}``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

_MINUTES_PER_DAY = 24 * 60


@dataclass
class ItemTiming:
    start_time: str
    end_time: str
    duration: int
    actual_duration_seconds: float

    def as_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "actual_duration_seconds": self.actual_duration_seconds,
        }


def _read_field(source: Any, key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _item_seconds(item: Any) -> float:
    kind = _read_field(item, "type")
    if kind == "artist":
        artist = _read_field(item, "artist")
        if artist is None:
            return 0
        actual = _number(_read_field(artist, "actual_duration"))
        if actual:
            return actual
        return _number(_read_field(artist, "performance_duration")) * 60
    if kind == "cue":
        cue = _read_field(item, "cue")
        if cue is None:
            return 0
        return _number(_read_field(cue, "duration")) * 60
    return 0


def _item_minutes(item: Any) -> int:
    """Slot length in whole minutes; measured track lengths round up."""
    kind = _read_field(item, "type")
    if kind == "artist":
        artist = _read_field(item, "artist")
        if artist is None:
            return 0
        return get_duration_in_minutes(artist)
    if kind == "cue":
        cue = _read_field(item, "cue")
        if cue is None:
            return 0
        return int(_number(_read_field(cue, "duration")))
    return 0


def calculate_total_show_seconds(items: Sequence[Any]) -> float:
    return sum(_item_seconds(item) for item in items)


def calculate_total_show_time(items: Sequence[Any]) -> float:
    """Total show length in minutes (fractional when a track has odd seconds)."""
    total = calculate_total_show_seconds(items)
    if not total:
        return 0
    return total / 60


def format_total_time(total_seconds: float) -> str:
    total_seconds = int(total_seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_time(minutes: float) -> str:
    minutes = int(minutes)
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


def _parse_clock(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def _format_clock(total_minutes: int) -> str:
    total_minutes %= _MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def _timing_for(item: Any, start: int) -> ItemTiming:
    duration = _item_minutes(item)
    kind = _read_field(item, "type")
    if kind == "artist" and _number(_read_field(_read_field(item, "artist"), "actual_duration")):
        actual_seconds = _number(_read_field(_read_field(item, "artist"), "actual_duration"))
    else:
        actual_seconds = duration * 60
    return ItemTiming(
        start_time=_format_clock(start),
        end_time=_format_clock(start + duration),
        duration=duration,
        actual_duration_seconds=actual_seconds,
    )


def calculate_item_timing(
    items: Sequence[Any],
    index: int,
    show_start_time: Optional[str],
) -> ItemTiming:
    """Clock start/end for ``items[index]`` given the show's start time."""
    if not show_start_time:
        return ItemTiming("", "", 0, 0)
    current = _parse_clock(show_start_time)
    for item in items[:index]:
        current += _item_minutes(item)
    return _timing_for(items[index], current)


def build_schedule(items: Sequence[Any], show_start_time: Optional[str]) -> List[ItemTiming]:
    """Timings for every item in one pass."""
    if not show_start_time:
        return [ItemTiming("", "", 0, 0) for _ in items]
    current = _parse_clock(show_start_time)
    schedule: List[ItemTiming] = []
    for item in items:
        timing = _timing_for(item, current)
        schedule.append(timing)
        current += timing.duration
    return schedule


def format_duration(seconds: Optional[float]) -> str:
    if not seconds:
        return "N/A"
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def get_display_duration(artist: Any) -> str:
    actual = _number(_read_field(artist, "actual_duration"))
    if actual:
        return format_duration(actual)
    performance = _read_field(artist, "performance_duration")
    if isinstance(performance, float) and performance.is_integer():
        performance = int(performance)
    return f"{performance} min"


def get_duration_in_minutes(artist: Any) -> int:
    actual = _number(_read_field(artist, "actual_duration"))
    if actual:
        return math.ceil(actual / 60)
    return int(_number(_read_field(artist, "performance_duration")))
