"""Scanned note items and theme hint collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

ITEM_TYPE_TASK = "task"
ITEM_TYPE_BLOCK = "block"


@dataclass(frozen=True, slots=True)
class Item:
    """A structured record produced by the content scanner.

    Task items sit under a section heading (``header``); block items carry
    an explicit ``theme`` field.
    """

    id: str
    type: str
    header: str | None = None
    theme: str | None = None
    file_path: str = ""


@dataclass
class HintUsage:
    count: int = 0
    sources: list[str] = field(default_factory=list)


@dataclass
class ScanStats:
    total_items: int = 0
    items_with_hints: int = 0
    unique_hints: int = 0
    new_hints: int = 0
    tasks: int = 0
    blocks: int = 0


def extract_theme_hint(item: Item) -> str | None:
    """Return the free-text theme hint of an item, or None when absent."""
    raw = item.header if item.type == ITEM_TYPE_TASK else item.theme
    if raw is None:
        return None
    hint = raw.strip()
    return hint or None


def collect_theme_hints(
    items: Iterable[Item],
    *,
    include_tasks: bool = True,
    include_blocks: bool = True,
    min_usage_count: int = 1,
    known_paths: set[str] | None = None,
) -> tuple[dict[str, HintUsage], ScanStats]:
    """Count theme hints across items, in first-seen order.

    Hints used fewer than ``min_usage_count`` times are dropped. Hints not
    in ``known_paths`` are counted as new.
    """
    usage: dict[str, HintUsage] = {}
    stats = ScanStats()
    for item in items:
        stats.total_items += 1
        if item.type == ITEM_TYPE_TASK and not include_tasks:
            continue
        if item.type == ITEM_TYPE_BLOCK and not include_blocks:
            continue
        hint = extract_theme_hint(item)
        if hint is None:
            continue
        stats.items_with_hints += 1
        if item.type == ITEM_TYPE_TASK:
            stats.tasks += 1
        elif item.type == ITEM_TYPE_BLOCK:
            stats.blocks += 1
        entry = usage.setdefault(hint, HintUsage())
        entry.count += 1
        entry.sources.append(f"{item.type}:{item.id}")

    if min_usage_count > 1:
        usage = {hint: entry for hint, entry in usage.items() if entry.count >= min_usage_count}

    known = known_paths or set()
    stats.unique_hints = len(usage)
    stats.new_hints = sum(1 for hint in usage if hint not in known)
    return usage, stats
