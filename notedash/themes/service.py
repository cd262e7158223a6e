"""Validated theme configuration service."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Mapping

from PySide6.QtCore import QObject, Signal

from notedash.errors import (
    ERROR_MESSAGES,
    ErrorCode,
    NotedashError,
    PersistenceError,
    ThemeNotFoundError,
    format_error_for_user,
)
from notedash.themes import hierarchy, paths
from notedash.themes.constants import SOURCE_PREDEFINED
from notedash.themes.models import (
    BatchResult,
    ImportResult,
    OverrideMode,
    PathValidation,
    Template,
    TemplateField,
    Theme,
    ThemeConfigBundle,
    ThemeOverride,
    ThemeStatistics,
    ThemeTreeNode,
)
from notedash.themes.overrides import OverrideStore
from notedash.themes.registry import ThemeRegistry
from notedash.themes.store import ThemeStore

logger = logging.getLogger(__name__)

_PERSISTENCE_WARNING = ERROR_MESSAGES[ErrorCode.PERSISTENCE_FAILED]


class ThemeConfigService(QObject):
    """Path-checked theme edits, override edits, statistics and import/export.

    Validation and collision problems come back as ``(False, message)``
    without touching any state. Save failures never undo the in-memory
    change; they are logged and announced through ``persistence_failed``.
    """

    themes_changed = Signal()
    overrides_changed = Signal()
    persistence_failed = Signal(str)

    def __init__(
        self,
        registry: ThemeRegistry,
        overrides: OverrideStore,
        store: ThemeStore,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._registry = registry
        self._overrides = overrides
        self._store = store

    @property
    def registry(self) -> ThemeRegistry:
        return self._registry

    @property
    def overrides(self) -> OverrideStore:
        return self._overrides

    # -- themes --

    def validate_path(self, path: str) -> PathValidation:
        return paths.validate(paths.normalize(path))

    def add_theme(self, path: str) -> tuple[bool, str]:
        normalized = paths.normalize(path)
        validation = paths.validate(normalized)
        if not validation.valid:
            return False, validation.message
        if self._registry.get_by_path(normalized) is not None:
            return False, ERROR_MESSAGES[ErrorCode.PATH_COLLISION]

        saved = self._run_store(self._store.create_theme, normalized)
        self.themes_changed.emit()
        return True, "" if saved else _PERSISTENCE_WARNING

    def update_theme(self, theme_id: str, updates: Mapping[str, Any]) -> tuple[bool, str]:
        if self._registry.get_by_id(theme_id) is None:
            return False, ERROR_MESSAGES[ErrorCode.THEME_NOT_FOUND]
        changes = dict(updates)
        if "path" in changes:
            normalized = paths.normalize(changes["path"] or "")
            validation = paths.validate(normalized)
            if not validation.valid:
                return False, validation.message
            other = self._registry.get_by_path(normalized)
            if other is not None and other.id != theme_id:
                return False, ERROR_MESSAGES[ErrorCode.PATH_COLLISION]
            changes["path"] = normalized

        try:
            saved = self._run_store(self._store.update_theme, theme_id, changes)
        except NotedashError as exc:
            return False, exc.message
        self.themes_changed.emit()
        return True, "" if saved else _PERSISTENCE_WARNING

    def delete_theme(self, theme_id: str, include_children: bool = False) -> int:
        """Delete a theme, optionally with its subtree. Returns how many were removed.

        Protection is left to the registry: originally predefined themes
        are declined there and simply not counted.
        """
        node = hierarchy.find_node(self.tree(), theme_id)
        if node is None:
            return 0
        targets = hierarchy.descendant_ids(node) if include_children else [theme_id]

        removed = 0
        for target in targets:
            if self._delete_one(target):
                removed += 1
        if removed:
            self.themes_changed.emit()
            self.overrides_changed.emit()
        return removed

    def perform_batch_operation(self, operation: str, theme_ids: Iterable[str]) -> BatchResult:
        """Run a theme operation per id, recording each failure separately.

        ``delete`` refuses any theme whose source is predefined, which also
        covers discovered themes that were later activated.
        """
        result = BatchResult()
        for theme_id in theme_ids:
            theme = self._registry.get_by_id(theme_id)
            if theme is None:
                result.record_failure(f"Theme {theme_id} not found")
                continue
            try:
                if operation == "activate":
                    self._registry.activate(theme.path)
                    self._run_store(
                        self._store.update_theme,
                        theme.id,
                        {"status": theme.status, "source": theme.source},
                    )
                    result.success += 1
                elif operation == "archive":
                    self._registry.deactivate(theme.path)
                    self._run_store(self._store.update_theme, theme.id, {"status": theme.status})
                    result.success += 1
                elif operation == "delete":
                    if theme.source == SOURCE_PREDEFINED:
                        result.record_failure(f"Cannot delete predefined theme {theme.path}")
                    elif self._delete_one(theme.id):
                        result.success += 1
                    else:
                        result.record_failure(f"Cannot delete protected theme {theme.path}")
                else:
                    result.record_failure(f"Unsupported operation {operation!r} for {theme.path}")
            except NotedashError as exc:
                result.record_failure(f"Operation on {theme.path} failed: {exc.message}")

        if result.success:
            self.themes_changed.emit()
        logger.info(
            "batch %s: %d succeeded, %d failed", operation, result.success, result.failed
        )
        return result

    def tree(self) -> list[ThemeTreeNode]:
        return hierarchy.build_tree(self._registry.themes())

    # -- overrides --

    def update_override(
        self,
        theme_id: str,
        template_id: str,
        patch: Mapping[str, Any] | None,
    ) -> ThemeOverride | None:
        """Upsert the override for a cell, or delete it when ``patch`` is None."""
        if self._registry.get_by_id(theme_id) is None:
            raise ThemeNotFoundError(ErrorCode.THEME_NOT_FOUND, details={"id": theme_id})
        if patch is None:
            self._run_store(self._store.delete_override, template_id, theme_id)
            self.overrides_changed.emit()
            return None

        record = build_override(theme_id, template_id, patch)
        self._run_store(self._store.upsert_override, record)
        self.overrides_changed.emit()
        return self._overrides.get(theme_id, template_id)

    def effective_template(self, template: Template, theme_id: str | None) -> Template | None:
        return self._overrides.effective_template(template, theme_id)

    def override_mode(self, theme_id: str, template_id: str) -> OverrideMode:
        return self._overrides.mode_for(theme_id, template_id)

    def available_themes_for_template(self, template_id: str) -> list[Theme]:
        return self._overrides.available_themes_for_template(
            template_id, self._registry.get_active()
        )

    # -- statistics --

    def get_statistics(self, themes: Iterable[Theme] | None = None) -> ThemeStatistics:
        rows = list(themes) if themes is not None else self._registry.themes()
        with_overrides = self._overrides.theme_ids_with_overrides()
        most_used: Theme | None = None
        for theme in rows:
            if most_used is None or theme.usage_count > most_used.usage_count:
                most_used = theme
        return ThemeStatistics(
            total=len(rows),
            active=sum(1 for theme in rows if theme.is_active),
            archived=sum(1 for theme in rows if not theme.is_active),
            with_overrides=sum(1 for theme in rows if theme.id in with_overrides),
            most_used=most_used,
        )

    # -- import/export --

    def export_configurations(self, theme_ids: Iterable[str]) -> ThemeConfigBundle:
        wanted = set(theme_ids)
        return ThemeConfigBundle(
            themes=[
                dataclasses.replace(theme)
                for theme in self._registry.themes()
                if theme.id in wanted
            ],
            overrides=self._overrides.for_themes(wanted),
        )

    def import_configurations(self, bundle: ThemeConfigBundle) -> ImportResult:
        """Create themes whose path is new and re-attach their overrides.

        Overrides are re-keyed from the exported theme ids to the local ids
        of the themes with the same path.
        """
        result = ImportResult()
        local_ids: dict[str, str] = {}

        for incoming in bundle.themes:
            path = paths.normalize(incoming.path)
            existing = self._registry.get_by_path(path)
            if existing is not None:
                result.skipped += 1
                local_ids[incoming.id] = existing.id
                continue
            validation = paths.validate(path)
            if not validation.valid:
                result.errors.append(f"Failed to import theme {incoming.path}: {validation.message}")
                continue
            try:
                self._run_store(self._store.create_theme, path)
                created = self._registry.get_by_path(path)
                if created is None:
                    raise ThemeNotFoundError(ErrorCode.THEME_NOT_FOUND, details={"path": path})
                if incoming.icon:
                    self._run_store(self._store.update_theme, created.id, {"icon": incoming.icon})
            except NotedashError as exc:
                result.errors.append(f"Failed to import theme {path}: {exc.message}")
                continue
            local_ids[incoming.id] = created.id
            result.imported += 1

        for record in bundle.overrides:
            theme_id = local_ids.get(record.theme_id)
            if theme_id is None and self._registry.get_by_id(record.theme_id) is not None:
                theme_id = record.theme_id
            if theme_id is None:
                result.errors.append(
                    f"Failed to import override {record.template_id}: unknown theme {record.theme_id}"
                )
                continue
            try:
                self._run_store(
                    self._store.upsert_override,
                    dataclasses.replace(record, theme_id=theme_id, id=""),
                )
            except NotedashError as exc:
                result.errors.append(f"Failed to import override {record.template_id}: {exc.message}")
                continue
            result.overrides_imported += 1

        if result.imported:
            self.themes_changed.emit()
        if result.overrides_imported:
            self.overrides_changed.emit()
        return result

    # -- helpers --

    def _delete_one(self, theme_id: str) -> bool:
        try:
            return self._store.delete_theme(theme_id)
        except PersistenceError as exc:
            self.report_persistence_failure(exc)
            return self._registry.get_by_id(theme_id) is None

    def _run_store(self, action, *args) -> bool:
        """Call a store method; False if the change was applied but not saved."""
        try:
            action(*args)
        except PersistenceError as exc:
            self.report_persistence_failure(exc)
            return False
        return True

    def report_persistence_failure(self, exc: PersistenceError) -> None:
        logger.warning("theme state not saved: %s", exc)
        self.persistence_failed.emit(format_error_for_user(exc))


def build_override(theme_id: str, template_id: str, patch: Mapping[str, Any]) -> ThemeOverride:
    """Turn a loose patch mapping into a concrete override record.

    Omitted template fields become None (inherit that field); ``disabled``
    defaults to False.
    """
    raw_fields = patch.get("fields")
    fields: tuple[TemplateField, ...] | None = None
    if raw_fields is not None:
        fields = tuple(
            item if isinstance(item, TemplateField) else TemplateField.from_dict(item)
            for item in raw_fields
        )
    return ThemeOverride(
        theme_id=theme_id,
        template_id=template_id,
        fields=fields,
        output_template=patch.get("output_template"),
        target_file=patch.get("target_file"),
        append_under_header=patch.get("append_under_header"),
        disabled=bool(patch.get("disabled", False)),
    )
