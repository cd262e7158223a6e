"""Canonical theme set: lifecycle, usage statistics and path resolution."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Iterable, Mapping

from notedash.core.items import Item, extract_theme_hint
from notedash.errors import ErrorCode, ThemeCollisionError, ThemeNotFoundError, ThemeValidationError
from notedash.themes import hierarchy, paths
from notedash.themes.constants import (
    DEFAULT_THEMES,
    SOURCE_DISCOVERED,
    SOURCE_PREDEFINED,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    THEME_ID_PREFIX,
)
from notedash.themes.models import Theme, ThemeGroups, ThemeStats, ThemeTreeNode

logger = logging.getLogger(__name__)

_THEME_ID_RE = re.compile(rf"^{re.escape(THEME_ID_PREFIX)}(\d+)$")
_UPDATABLE_FIELDS = frozenset({"path", "icon", "status", "source"})


class ThemeRegistry:
    """Owns every Theme record, keyed by id.

    Lookups by path scan the id map linearly; the set stays small enough
    for that to be fine.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._themes: dict[str, Theme] = {}
        self._id_counter = 0

    # -- lifecycle --

    def init(self, themes: Iterable[Theme] = ()) -> None:
        """Reset the registry and load ``themes``."""
        self.clear()
        self.import_all(themes)

    def clear(self) -> None:
        self._themes = {}
        self._id_counter = 0

    def add_default_themes(self) -> None:
        for path, icon in DEFAULT_THEMES:
            self.add_predefined(path, icon)

    def add_predefined(self, path: str, icon: str | None = None) -> Theme:
        """Create or promote a theme that can never be deleted or archived."""
        normalized = self._require_path(path)
        existing = self.get_by_path(normalized)
        if existing is not None:
            existing.icon = icon or existing.icon
            existing.source = SOURCE_PREDEFINED
            existing.status = STATUS_ACTIVE
            existing.originally_predefined = True
            return existing

        theme = Theme(
            id=self._next_id(),
            path=normalized,
            icon=icon,
            status=STATUS_ACTIVE,
            source=SOURCE_PREDEFINED,
            usage_count=0,
            order=len(self._themes),
            originally_predefined=True,
        )
        self._themes[theme.id] = theme
        return theme

    def create(self, path: str, icon: str | None = None) -> Theme:
        """Create a user theme: active, but not protected from deletion."""
        normalized = self._require_path(path)
        if self.get_by_path(normalized) is not None:
            raise ThemeCollisionError(
                ErrorCode.PATH_COLLISION, details={"path": normalized}
            )
        theme = Theme(
            id=self._next_id(),
            path=normalized,
            icon=icon or None,
            status=STATUS_ACTIVE,
            source=SOURCE_PREDEFINED,
            order=len(self._themes),
        )
        self._themes[theme.id] = theme
        return theme

    def discover(self, path: str) -> Theme:
        """Register a theme found in scanned content, or bump its usage."""
        normalized = self._require_path(path)
        now = self._clock()
        existing = self.get_by_path(normalized)
        if existing is not None:
            existing.usage_count += 1
            existing.last_used = now
            return existing

        theme = Theme(
            id=self._next_id(),
            path=normalized,
            status=STATUS_INACTIVE,
            source=SOURCE_DISCOVERED,
            usage_count=1,
            last_used=now,
            order=len(self._themes),
        )
        self._themes[theme.id] = theme
        logger.debug("discovered theme %s", normalized)
        return theme

    def activate(self, path: str) -> Theme | None:
        theme = self.get_by_path(path)
        if theme is None:
            return None
        theme.status = STATUS_ACTIVE
        if theme.source == SOURCE_DISCOVERED:
            theme.source = SOURCE_PREDEFINED
        return theme

    def deactivate(self, path: str) -> bool:
        """Archive a theme. Originally predefined themes are left untouched."""
        theme = self.get_by_path(path)
        if theme is None or theme.originally_predefined:
            return False
        theme.status = STATUS_INACTIVE
        return True

    def remove(self, path: str) -> bool:
        theme = self.get_by_path(path)
        if theme is None:
            return False
        return self.remove_by_id(theme.id)

    def remove_by_id(self, theme_id: str) -> bool:
        theme = self._themes.get(theme_id)
        if theme is None:
            return False
        if theme.originally_predefined:
            logger.info("refusing to delete predefined theme %s", theme.path)
            return False
        del self._themes[theme_id]
        return True

    def update(self, theme_id: str, changes: Mapping[str, Any]) -> Theme:
        """Apply a partial update of path, icon, status or source."""
        theme = self._themes.get(theme_id)
        if theme is None:
            raise ThemeNotFoundError(ErrorCode.THEME_NOT_FOUND, details={"id": theme_id})
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ThemeValidationError(
                ErrorCode.OPERATION_UNSUPPORTED,
                f"Theme fields cannot be updated: {', '.join(sorted(unknown))}",
            )

        if "path" in changes:
            normalized = self._require_path(changes["path"])
            other = self.get_by_path(normalized)
            if other is not None and other.id != theme_id:
                raise ThemeCollisionError(ErrorCode.PATH_COLLISION, details={"path": normalized})
            theme.path = normalized
        if "icon" in changes:
            theme.icon = changes["icon"] or None
        if "source" in changes and changes["source"] in (SOURCE_PREDEFINED, SOURCE_DISCOVERED):
            theme.source = changes["source"]
        if "status" in changes:
            status = changes["status"]
            if status == STATUS_ACTIVE:
                theme.status = STATUS_ACTIVE
            elif status == STATUS_INACTIVE and not theme.originally_predefined:
                theme.status = STATUS_INACTIVE
        return theme

    def update_icon(self, path: str, icon: str) -> None:
        theme = self.get_by_path(path)
        if theme is not None:
            theme.icon = icon or None

    def record_usage(self, path: str) -> None:
        theme = self.get_by_path(path)
        if theme is not None:
            theme.usage_count += 1
            theme.last_used = self._clock()

    # -- lookup --

    def get_by_id(self, theme_id: str) -> Theme | None:
        return self._themes.get(theme_id)

    def get_by_path(self, path: str) -> Theme | None:
        for theme in self._themes.values():
            if theme.path == path:
                return theme
        return None

    def parent_id_of(self, theme: Theme) -> str | None:
        parent_path = paths.parent_of(theme.path)
        if parent_path is None:
            return None
        parent = self.get_by_path(parent_path)
        return parent.id if parent is not None else None

    def themes(self) -> list[Theme]:
        return list(self._themes.values())

    def __len__(self) -> int:
        return len(self._themes)

    def resolve_by_partial_match(self, hint: str) -> str | None:
        """Resolve a free-text hint to a theme path.

        Tiers, first hit wins: exact path, exact leaf name, path suffix,
        whole path segment, then leaf substring. All comparisons ignore case.
        """
        if not hint or not hint.strip():
            return None
        needle = hint.strip().lower()
        candidates = [(theme.path, theme.path.lower()) for theme in self._themes.values()]

        for path, lowered in candidates:
            if lowered == needle:
                return path
        for path, lowered in candidates:
            if paths.leaf_name(lowered) == needle:
                return path
        for path, lowered in candidates:
            if lowered.endswith("/" + needle):
                return path
        segment_re = re.compile(rf"(?:^|/){re.escape(needle)}(?:/|$)")
        for path, lowered in candidates:
            if segment_re.search(lowered):
                return path
        for path, lowered in candidates:
            if needle in paths.leaf_name(lowered):
                return path
        return None

    def get_active(self) -> list[Theme]:
        """Active themes by usage, then recency (undated last), then order."""
        active = [theme for theme in self._themes.values() if theme.status == STATUS_ACTIVE]
        return sorted(
            active,
            key=lambda theme: (
                -theme.usage_count,
                theme.last_used is None,
                -(theme.last_used or 0.0),
                theme.order,
            ),
        )

    def get_all(self) -> ThemeGroups:
        themes = list(self._themes.values())
        return ThemeGroups(
            active=[theme for theme in themes if theme.status == STATUS_ACTIVE],
            inactive=[theme for theme in themes if theme.status == STATUS_INACTIVE],
            discovered=[theme for theme in themes if theme.source == SOURCE_DISCOVERED],
        )

    def get_stats(self) -> ThemeStats:
        themes = list(self._themes.values())
        return ThemeStats(
            total=len(themes),
            active=sum(1 for theme in themes if theme.status == STATUS_ACTIVE),
            inactive=sum(1 for theme in themes if theme.status == STATUS_INACTIVE),
            predefined=sum(1 for theme in themes if theme.source == SOURCE_PREDEFINED),
            discovered=sum(1 for theme in themes if theme.source == SOURCE_DISCOVERED),
        )

    def get_hierarchy(self) -> list[ThemeTreeNode]:
        return hierarchy.build_tree(self._themes.values())

    # -- scanning --

    def extract_theme_hint(self, item: Item) -> str | None:
        return extract_theme_hint(item)

    def scan_for_themes(self, items: Iterable[Item]) -> list[Theme]:
        """Discover every distinct hint once per pass, in first-seen order."""
        hints: dict[str, None] = {}
        for item in items:
            hint = self.extract_theme_hint(item)
            if hint is not None:
                hints.setdefault(hint, None)

        touched: list[Theme] = []
        for hint in hints:
            try:
                touched.append(self.discover(hint))
            except ThemeValidationError as exc:
                logger.warning("skipping theme hint %r: %s", hint, exc)
        return touched

    # -- import/export --

    def export_all(self) -> list[Theme]:
        return list(self._themes.values())

    def import_all(self, themes: Iterable[Theme]) -> int:
        """Add themes whose id and normalized path are not yet known.

        Returns how many were added.
        """
        added = 0
        for theme in themes:
            if theme.id in self._themes:
                continue
            normalized = paths.normalize(theme.path)
            if not normalized:
                logger.warning("skipping theme %s with an empty path", theme.id)
                continue
            if self.get_by_path(normalized) is not None:
                logger.warning("skipping theme %s: path %s already in use", theme.id, normalized)
                continue
            theme.path = normalized
            self._themes[theme.id] = theme
            added += 1
            match = _THEME_ID_RE.match(theme.id)
            if match:
                self._id_counter = max(self._id_counter, int(match.group(1)))
        return added

    def _next_id(self) -> str:
        self._id_counter += 1
        candidate = f"{THEME_ID_PREFIX}{self._id_counter}"
        while candidate in self._themes:
            self._id_counter += 1
            candidate = f"{THEME_ID_PREFIX}{self._id_counter}"
        return candidate

    @staticmethod
    def _require_path(path: str) -> str:
        normalized = paths.normalize(path if isinstance(path, str) else "")
        if not normalized:
            raise ThemeValidationError(ErrorCode.PATH_EMPTY)
        return normalized
