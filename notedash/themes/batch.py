"""Batch operations over a theme x template selection.

A selection fans out into three target streams: whole themes, whole
templates and single (theme, template) cells. Cells are lowered to the
same ``templateId:themeId`` keys that template targets use, so both go
through one code path.

Failure granularity here is per call, not per item: if any stream raises,
every target of the call is reported as failed and nothing is credited.
``ThemeConfigService.perform_batch_operation`` keeps per-item accounting
for theme-only batches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from PySide6.QtCore import QObject, Signal

from notedash.errors import (
    BatchOperationError,
    ErrorCode,
    NotedashError,
    PersistenceError,
    ProtectedThemeError,
    ThemeNotFoundError,
)
from notedash.themes import hierarchy
from notedash.themes.constants import TEMPLATE_OPERATIONS, THEME_OPERATIONS
from notedash.themes.models import BatchResult, Theme, ThemeOverride, ThemeTreeNode
from notedash.themes.overrides import override_key, parse_override_key
from notedash.themes.service import ThemeConfigService, build_override
from notedash.themes.store import BatchThemeStore

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Independently selected theme ids, template ids and (theme, template) cells."""

    theme_ids: set[str] = field(default_factory=set)
    template_ids: set[str] = field(default_factory=set)
    cells: set[tuple[str, str]] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (self.theme_ids or self.template_ids or self.cells)

    def toggle_theme(
        self, theme_id: str, tree: list[ThemeTreeNode], *, include_children: bool = True
    ) -> None:
        self.theme_ids = hierarchy.toggle_selection(
            theme_id, tree, self.theme_ids, include_children=include_children
        )

    def toggle_template(self, template_id: str) -> None:
        if template_id in self.template_ids:
            self.template_ids.discard(template_id)
        else:
            self.template_ids.add(template_id)

    def toggle_cell(self, theme_id: str, template_id: str) -> None:
        cell = (theme_id, template_id)
        if cell in self.cells:
            self.cells.discard(cell)
        else:
            self.cells.add(cell)

    def clear(self) -> None:
        self.theme_ids = set()
        self.template_ids = set()
        self.cells = set()


@dataclass(frozen=True, slots=True)
class OperationTargets:
    theme_ids: list[str]
    template_keys: list[str]
    cells: list[tuple[str, str]]

    @property
    def total(self) -> int:
        return len(self.theme_ids) + len(self.template_keys) + len(self.cells)


class BatchOperationService(QObject):
    """Dispatch one operation across every target stream of a selection."""

    batch_finished = Signal(object)  # BatchResult

    def __init__(
        self,
        config: ThemeConfigService,
        store: BatchThemeStore,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = config
        self._registry = config.registry
        self._store = store

    def targets_from_selection(self, selection: Selection) -> OperationTargets:
        """Resolve a selection into concrete targets.

        A selected template id that is not already a composite key expands
        to one key per theme currently in the registry.
        """
        template_keys: list[str] = []
        for template_id in sorted(selection.template_ids):
            if parse_override_key(template_id) is not None:
                template_keys.append(template_id)
                continue
            template_keys.extend(
                override_key(template_id, theme.id) for theme in self._registry.themes()
            )
        return OperationTargets(
            theme_ids=sorted(selection.theme_ids),
            template_keys=template_keys,
            cells=sorted(selection.cells),
        )

    def execute(
        self,
        operation: str,
        selection: Selection,
        *,
        icon: str | None = None,
        template: Mapping[str, Any] | None = None,
    ) -> BatchResult:
        targets = self.targets_from_selection(selection)
        result = BatchResult()
        try:
            if targets.theme_ids:
                self._execute_theme_operation(operation, targets.theme_ids, icon)
                result.success += len(targets.theme_ids)
            if targets.cells:
                self._execute_cell_operation(operation, targets.cells, template)
                result.success += len(targets.cells)
            if targets.template_keys:
                self._execute_template_operation(operation, targets.template_keys, template)
                result.success += len(targets.template_keys)
        except NotedashError as exc:
            logger.warning("batch %s failed: %s", operation, exc.message)
            result = BatchResult(success=0, failed=targets.total, errors=[exc.message])

        logger.info(
            "batch %s: %d succeeded, %d failed", operation, result.success, result.failed
        )
        self.batch_finished.emit(result)
        return result

    # -- theme stream --

    def _execute_theme_operation(
        self, operation: str, theme_ids: list[str], icon: str | None
    ) -> None:
        if operation not in THEME_OPERATIONS:
            raise BatchOperationError(
                ErrorCode.OPERATION_UNSUPPORTED, f"Unsupported theme operation: {operation}"
            )
        themes = [self._require_theme(theme_id) for theme_id in theme_ids]

        if operation == "activate":
            for theme in themes:
                self._registry.activate(theme.path)
            self._save(self._store.save)
        elif operation == "archive":
            for theme in themes:
                self._registry.deactivate(theme.path)
            self._save(self._store.save)
        elif operation == "delete":
            protected = [theme.path for theme in themes if theme.originally_predefined]
            if protected:
                raise ProtectedThemeError(
                    ErrorCode.THEME_PROTECTED,
                    f"Cannot delete predefined theme {', '.join(protected)}",
                )
            self._save(self._store.batch_delete_themes, [theme.id for theme in themes])
            self._config.overrides_changed.emit()
        elif operation == "setIcon":
            if not icon:
                raise BatchOperationError(
                    ErrorCode.OPERATION_MISSING_PARAMETER, "setIcon needs an icon"
                )
            self._save(self._store.batch_update_themes, [theme.id for theme in themes], {"icon": icon})
        self._config.themes_changed.emit()

    # -- template and cell streams --

    def _execute_cell_operation(
        self,
        operation: str,
        cells: list[tuple[str, str]],
        template: Mapping[str, Any] | None,
    ) -> None:
        keys = [override_key(template_id, theme_id) for theme_id, template_id in cells]
        self._execute_template_operation(operation, keys, template)

    def _execute_template_operation(
        self,
        operation: str,
        keys: list[str],
        template: Mapping[str, Any] | None,
    ) -> None:
        if operation not in TEMPLATE_OPERATIONS:
            raise BatchOperationError(
                ErrorCode.OPERATION_UNSUPPORTED, f"Unsupported template operation: {operation}"
            )
        pairs: list[tuple[str, str]] = []
        for key in keys:
            parsed = parse_override_key(key)
            if parsed is None:
                raise BatchOperationError(
                    ErrorCode.OPERATION_UNSUPPORTED, f"Malformed cell key: {key!r}"
                )
            self._require_theme(parsed[1])
            pairs.append(parsed)

        if operation in ("setBlockInherit", "clearBlockOverrides"):
            self._save(self._store.batch_delete_overrides, pairs)
        elif operation == "setBlockDisabled":
            records = [
                ThemeOverride(theme_id=theme_id, template_id=template_id, disabled=True)
                for template_id, theme_id in pairs
            ]
            self._save(self._store.batch_upsert_overrides, records)
        else:
            if operation == "applyTemplate" and not template:
                raise BatchOperationError(
                    ErrorCode.OPERATION_MISSING_PARAMETER, "applyTemplate needs a template"
                )
            patch = dict(template or {})
            patch["disabled"] = False
            records = [
                build_override(theme_id, template_id, patch) for template_id, theme_id in pairs
            ]
            self._save(self._store.batch_upsert_overrides, records)
        self._config.overrides_changed.emit()

    def _require_theme(self, theme_id: str) -> Theme:
        theme = self._registry.get_by_id(theme_id)
        if theme is None:
            raise ThemeNotFoundError(
                ErrorCode.THEME_NOT_FOUND,
                f"Theme {theme_id} not found",
                details={"id": theme_id},
            )
        return theme

    def _save(self, action, *args) -> None:
        try:
            action(*args)
        except PersistenceError as exc:
            self._config.report_persistence_failure(exc)
