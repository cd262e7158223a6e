"""Tests for theme hint extraction from scanned items."""

from notedash.core.items import Item, collect_theme_hints, extract_theme_hint


def _items() -> list[Item]:
    return [
        Item(id="1", type="task", header="工作", theme="ignored"),
        Item(id="2", type="task", header=" 工作 "),
        Item(id="3", type="block", header="ignored", theme="健康/运动"),
        Item(id="4", type="block"),
        Item(id="5", type="task", header="阅读"),
    ]


def test_extract_theme_hint_by_item_type() -> None:
    items = _items()
    assert extract_theme_hint(items[0]) == "工作"
    assert extract_theme_hint(items[1]) == "工作"
    assert extract_theme_hint(items[2]) == "健康/运动"
    assert extract_theme_hint(items[3]) is None


def test_collect_theme_hints_counts_usage() -> None:
    usage, stats = collect_theme_hints(_items(), known_paths={"阅读"})
    assert list(usage) == ["工作", "健康/运动", "阅读"]
    assert usage["工作"].count == 2
    assert usage["工作"].sources == ["task:1", "task:2"]
    assert stats.total_items == 5
    assert stats.items_with_hints == 4
    assert (stats.tasks, stats.blocks) == (3, 1)
    assert stats.unique_hints == 3
    assert stats.new_hints == 2


def test_collect_theme_hints_filters() -> None:
    usage, stats = collect_theme_hints(_items(), include_blocks=False, min_usage_count=2)
    assert list(usage) == ["工作"]
    assert stats.blocks == 0
    assert stats.unique_hints == 1
