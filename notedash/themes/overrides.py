"""Per-(theme, template) override records and effective template resolution."""

from __future__ import annotations

import dataclasses
import re
from typing import Iterable

from notedash.themes.constants import OVERRIDE_ID_PREFIX, OVERRIDE_KEY_SEPARATOR
from notedash.themes.models import (
    CellState,
    Disabled,
    Inherited,
    OverrideMode,
    Overridden,
    Template,
    Theme,
    ThemeOverride,
)

_OVERRIDE_ID_RE = re.compile(rf"^{re.escape(OVERRIDE_ID_PREFIX)}(\d+)$")
_INHERITED = Inherited()


def override_key(template_id: str, theme_id: str) -> str:
    """Composite ``templateId:themeId`` key for one matrix cell."""
    return f"{template_id}{OVERRIDE_KEY_SEPARATOR}{theme_id}"


def parse_override_key(key: str) -> tuple[str, str] | None:
    """Split a composite key into (template_id, theme_id); None if malformed."""
    template_id, sep, theme_id = key.partition(OVERRIDE_KEY_SEPARATOR)
    if not sep or not template_id or not theme_id:
        return None
    return template_id, theme_id


class OverrideStore:
    """Holds at most one ThemeOverride per (theme, template) pair.

    Templates are never modified; ``effective_template`` returns a new
    instance on every call.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], ThemeOverride] = {}
        self._id_counter = 0

    def load(self, overrides: Iterable[ThemeOverride]) -> None:
        self.clear()
        for record in overrides:
            self.upsert(record)

    def clear(self) -> None:
        self._records = {}
        self._id_counter = 0

    def all(self) -> list[ThemeOverride]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def get(self, theme_id: str, template_id: str) -> ThemeOverride | None:
        return self._records.get((theme_id, template_id))

    def upsert(self, record: ThemeOverride) -> ThemeOverride:
        """Insert or replace the record for its pair, keeping an existing id."""
        key = (record.theme_id, record.template_id)
        existing = self._records.get(key)
        if existing is not None:
            record_id = existing.id
        elif record.id:
            record_id = record.id
            match = _OVERRIDE_ID_RE.match(record_id)
            if match:
                self._id_counter = max(self._id_counter, int(match.group(1)))
        else:
            self._id_counter += 1
            record_id = f"{OVERRIDE_ID_PREFIX}{self._id_counter}"
        stored = dataclasses.replace(record, id=record_id)
        self._records[key] = stored
        return stored

    def delete(self, theme_id: str, template_id: str) -> bool:
        return self._records.pop((theme_id, template_id), None) is not None

    def remove_for_theme(self, theme_id: str) -> int:
        doomed = [key for key in self._records if key[0] == theme_id]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    def for_themes(self, theme_ids: Iterable[str]) -> list[ThemeOverride]:
        wanted = set(theme_ids)
        return [record for record in self._records.values() if record.theme_id in wanted]

    def theme_ids_with_overrides(self) -> set[str]:
        return {theme_id for theme_id, _template_id in self._records}

    def state_for(self, theme_id: str, template_id: str) -> CellState:
        record = self._records.get((theme_id, template_id))
        if record is None:
            return _INHERITED
        if record.disabled:
            return Disabled(record)
        return Overridden(record)

    def mode_for(self, theme_id: str, template_id: str) -> OverrideMode:
        return self.state_for(theme_id, template_id).mode

    def is_disabled(self, theme_id: str, template_id: str) -> bool:
        return isinstance(self.state_for(theme_id, template_id), Disabled)

    def effective_template(self, template: Template, theme_id: str | None) -> Template | None:
        """Template as seen by ``theme_id``; None when disabled for it."""
        if theme_id is None:
            return template
        state = self.state_for(theme_id, template.id)
        if isinstance(state, Disabled):
            return None
        if isinstance(state, Inherited):
            return template
        record = state.record
        changes = {
            name: value
            for name, value in (
                ("fields", record.fields),
                ("output_template", record.output_template),
                ("target_file", record.target_file),
                ("append_under_header", record.append_under_header),
            )
            if value is not None
        }
        return dataclasses.replace(template, **changes) if changes else template

    def available_themes_for_template(
        self, template_id: str, themes: Iterable[Theme]
    ) -> list[Theme]:
        """Themes that may offer the template, i.e. not disabled for it."""
        return [theme for theme in themes if not self.is_disabled(theme.id, template_id)]
