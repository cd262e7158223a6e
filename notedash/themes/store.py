"""Persistence collaborator for theme and override state."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from notedash.errors import ErrorCode, NotedashError, PersistenceError
from notedash.themes.models import Theme, ThemeConfigBundle, ThemeOverride
from notedash.themes.overrides import OverrideStore
from notedash.themes.registry import ThemeRegistry

logger = logging.getLogger(__name__)


class ThemeStore(Protocol):
    """Durable theme/override mutations used by the config and batch services.

    Each call applies the change in memory first and then saves. When the
    save fails the in-memory change stays and ``PersistenceError`` is raised.
    """

    def create_theme(self, path: str) -> Theme: ...

    def update_theme(self, theme_id: str, changes: Mapping[str, Any]) -> Theme: ...

    def delete_theme(self, theme_id: str) -> bool: ...

    def upsert_override(self, record: ThemeOverride) -> ThemeOverride: ...

    def delete_override(self, template_id: str, theme_id: str) -> bool: ...


class BatchThemeStore(ThemeStore, Protocol):
    """ThemeStore with multi-record mutations that save once per call."""

    def save(self) -> None: ...

    def batch_delete_themes(self, theme_ids: Iterable[str]) -> int: ...

    def batch_update_themes(self, theme_ids: Iterable[str], changes: Mapping[str, Any]) -> None: ...

    def batch_upsert_overrides(self, records: Iterable[ThemeOverride]) -> None: ...

    def batch_delete_overrides(self, pairs: Iterable[tuple[str, str]]) -> None: ...


class StateBackend(Protocol):
    def load_theme_state(self) -> Mapping[str, Any]: ...

    def save_theme_state(self, state: Mapping[str, Any]) -> None: ...


class SettingsThemeStore:
    """ThemeStore that mirrors the registry and override store into a settings backend."""

    def __init__(
        self,
        registry: ThemeRegistry,
        overrides: OverrideStore,
        backend: StateBackend,
    ) -> None:
        self._registry = registry
        self._overrides = overrides
        self._backend = backend

    @property
    def registry(self) -> ThemeRegistry:
        return self._registry

    @property
    def overrides(self) -> OverrideStore:
        return self._overrides

    def load(self) -> bool:
        """Replace in-memory state with the saved state. False if nothing usable was stored."""
        raw = self._backend.load_theme_state()
        try:
            bundle = ThemeConfigBundle.from_dict(raw or {})
        except (NotedashError, KeyError, TypeError, ValueError) as exc:
            logger.warning("stored theme state is invalid, starting empty: %s", exc)
            bundle = ThemeConfigBundle()
        self._registry.init(bundle.themes)
        self._overrides.load(bundle.overrides)
        return bool(bundle.themes or bundle.overrides)

    def create_theme(self, path: str) -> Theme:
        theme = self._registry.create(path)
        self.save()
        return theme

    def update_theme(self, theme_id: str, changes: Mapping[str, Any]) -> Theme:
        theme = self._registry.update(theme_id, changes)
        self.save()
        return theme

    def delete_theme(self, theme_id: str) -> bool:
        removed = self._registry.remove_by_id(theme_id)
        if removed:
            self._overrides.remove_for_theme(theme_id)
            self.save()
        return removed

    def batch_delete_themes(self, theme_ids: Iterable[str]) -> int:
        removed = 0
        for theme_id in theme_ids:
            if self._registry.remove_by_id(theme_id):
                self._overrides.remove_for_theme(theme_id)
                removed += 1
        self.save()
        return removed

    def batch_update_themes(self, theme_ids: Iterable[str], changes: Mapping[str, Any]) -> None:
        for theme_id in theme_ids:
            if self._registry.get_by_id(theme_id) is not None:
                self._registry.update(theme_id, changes)
        self.save()

    def upsert_override(self, record: ThemeOverride) -> ThemeOverride:
        stored = self._overrides.upsert(record)
        self.save()
        return stored

    def delete_override(self, template_id: str, theme_id: str) -> bool:
        removed = self._overrides.delete(theme_id, template_id)
        if removed:
            self.save()
        return removed

    def batch_upsert_overrides(self, records: Iterable[ThemeOverride]) -> None:
        for record in records:
            self._overrides.upsert(record)
        self.save()

    def batch_delete_overrides(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Delete overrides for (template_id, theme_id) pairs."""
        for template_id, theme_id in pairs:
            self._overrides.delete(theme_id, template_id)
        self.save()

    def save(self) -> None:
        snapshot = ThemeConfigBundle(
            themes=self._registry.export_all(),
            overrides=self._overrides.all(),
        ).to_dict()
        try:
            self._backend.save_theme_state(snapshot)
        except Exception as exc:  # backend errors vary by storage medium
            raise PersistenceError(
                ErrorCode.PERSISTENCE_FAILED, details={"reason": str(exc)}
            ) from exc
