"""Performance-status lookups for the live board."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from ..schemas.artist import PerformanceStatus

STATUS_ORDER: dict[str, int] = {
    PerformanceStatus.NOT_STARTED.value: 1,
    PerformanceStatus.NEXT_ON_DECK.value: 2,
    PerformanceStatus.NEXT_ON_STAGE.value: 3,
    PerformanceStatus.CURRENTLY_ON_STAGE.value: 4,
    PerformanceStatus.COMPLETED.value: 5,
}

STATUS_LABELS: dict[str, str] = {
    PerformanceStatus.NOT_STARTED.value: "Not Started",
    PerformanceStatus.NEXT_ON_DECK.value: "Next On Deck",
    PerformanceStatus.NEXT_ON_STAGE.value: "Next On Stage",
    PerformanceStatus.CURRENTLY_ON_STAGE.value: "Currently On Stage",
    PerformanceStatus.COMPLETED.value: "Completed",
}

STATUS_COLOR_CLASSES: dict[str, str] = {
    PerformanceStatus.NOT_STARTED.value: "bg-white border-gray-300 text-gray-900",
    PerformanceStatus.NEXT_ON_DECK.value: "bg-white border-blue-300 text-blue-900",
    PerformanceStatus.NEXT_ON_STAGE.value: "bg-white border-yellow-300 text-yellow-900",
    PerformanceStatus.CURRENTLY_ON_STAGE.value: "bg-white border-green-300 text-green-900",
    PerformanceStatus.COMPLETED.value: "bg-white border-red-300 text-red-900",
}

_DEFAULT = PerformanceStatus.NOT_STARTED.value


def _key(status: Optional[str | PerformanceStatus]) -> str:
    if isinstance(status, PerformanceStatus):
        return status.value
    if isinstance(status, str) and status in STATUS_ORDER:
        return status
    return _DEFAULT


def get_status_order(status: Optional[str | PerformanceStatus]) -> int:
    """1..5 in show progression; unknown or missing statuses sort first."""
    return STATUS_ORDER[_key(status)]


def get_status_label(status: Optional[str | PerformanceStatus]) -> str:
    return STATUS_LABELS[_key(status)]


def get_status_color_classes(status: Optional[str | PerformanceStatus]) -> str:
    return STATUS_COLOR_CLASSES[_key(status)]


def get_status_badge_variant(status: Optional[str | PerformanceStatus]) -> str:
    key = _key(status)
    if key == PerformanceStatus.COMPLETED.value:
        return "destructive"
    if key == PerformanceStatus.CURRENTLY_ON_STAGE.value:
        return "default"
    if key in (PerformanceStatus.NEXT_ON_STAGE.value, PerformanceStatus.NEXT_ON_DECK.value):
        return "secondary"
    return "outline"


def _status_of(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        return item.get("performance_status") or item.get("status")
    return getattr(item, "performance_status", None)


def sort_by_status(items: Iterable[Any]) -> List[Any]:
    """Stable sort by status order; ties keep their input order."""
    return sorted(items, key=lambda item: get_status_order(_status_of(item)))
