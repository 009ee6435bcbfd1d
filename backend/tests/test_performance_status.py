from fame.schemas.artist import PerformanceStatus
from fame.services.status import (
    get_status_badge_variant,
    get_status_color_classes,
    get_status_label,
    get_status_order,
    sort_by_status,
)


def test_order_follows_show_progression():
    orders = [get_status_order(s) for s in PerformanceStatus]
    assert orders == [1, 2, 3, 4, 5]


def test_unknown_status_sorts_first():
    assert get_status_order(None) == 1
    assert get_status_order("warming_up") == 1
    assert get_status_label("warming_up") == "Not Started"


def test_labels_and_badges():
    assert get_status_label("currently_on_stage") == "Currently On Stage"
    assert get_status_label(PerformanceStatus.NEXT_ON_DECK) == "Next On Deck"
    assert get_status_badge_variant("completed") == "destructive"
    assert get_status_badge_variant("next_on_stage") == "secondary"
    assert get_status_badge_variant(None) == "outline"
    assert "green" in get_status_color_classes("currently_on_stage")


def test_sort_is_stable_within_a_status():
    items = [
        {"id": "a", "performance_status": "completed"},
        {"id": "b", "performance_status": "not_started"},
        {"id": "c", "status": "currently_on_stage"},
        {"id": "d"},
    ]
    assert [i["id"] for i in sort_by_status(items)] == ["b", "d", "c", "a"]


def test_color_classes_keep_white_background():
    assert get_status_color_classes("not_started") == "bg-white border-gray-300 text-gray-900"
    assert get_status_color_classes("next_on_deck") == "bg-white border-blue-300 text-blue-900"
    assert get_status_color_classes("next_on_stage") == "bg-white border-yellow-300 text-yellow-900"
    assert get_status_color_classes("currently_on_stage") == "bg-white border-green-300 text-green-900"
    assert get_status_color_classes(PerformanceStatus.COMPLETED) == "bg-white border-red-300 text-red-900"
    for unknown in ("invalid_status", None):
        assert get_status_color_classes(unknown) == "bg-white border-gray-300 text-gray-900"
