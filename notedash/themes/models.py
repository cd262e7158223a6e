"""Theme engine models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from notedash.errors import ErrorCode, ThemeValidationError
from notedash.themes.constants import (
    SOURCE_DISCOVERED,
    SOURCE_PREDEFINED,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
)


def _require_mapping(data: Any, what: str) -> None:
    if not isinstance(data, Mapping):
        raise ThemeValidationError(
            ErrorCode.IMPORT_INVALID, f"{what} must be a mapping, got {type(data).__name__}"
        )


@dataclass(slots=True)
class Theme:
    """A hierarchical category addressed by its slash-separated path.

    ``name`` and ``parent_path`` are always derived from ``path``; there is
    no stored parent pointer that could drift from it.
    """

    id: str
    path: str
    icon: str | None = None
    status: str = STATUS_INACTIVE
    source: str = SOURCE_DISCOVERED
    usage_count: int = 0
    last_used: float | None = None
    order: int = 0
    originally_predefined: bool = False

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent_path(self) -> str | None:
        if "/" not in self.path:
            return None
        return self.path.rsplit("/", 1)[0]

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "icon": self.icon,
            "status": self.status,
            "source": self.source,
            "usage_count": self.usage_count,
            "last_used": self.last_used,
            "order": self.order,
            "originally_predefined": self.originally_predefined,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Theme:
        _require_mapping(data, "Theme record")
        theme_id = data.get("id")
        path = data.get("path")
        if not isinstance(theme_id, str) or not theme_id:
            raise ThemeValidationError(ErrorCode.IMPORT_INVALID, "Theme record is missing an id")
        if not isinstance(path, str) or not path.strip():
            raise ThemeValidationError(
                ErrorCode.IMPORT_INVALID, f"Theme record {theme_id!r} is missing a path"
            )
        status = data.get("status", STATUS_INACTIVE)
        if status not in (STATUS_ACTIVE, STATUS_INACTIVE):
            status = STATUS_INACTIVE
        source = data.get("source", SOURCE_DISCOVERED)
        if source not in (SOURCE_PREDEFINED, SOURCE_DISCOVERED):
            source = SOURCE_DISCOVERED
        last_used = data.get("last_used")
        return cls(
            id=theme_id,
            path=path,
            icon=data.get("icon") or None,
            status=status,
            source=source,
            usage_count=max(0, int(data.get("usage_count") or 0)),
            last_used=float(last_used) if last_used is not None else None,
            order=int(data.get("order") or 0),
            originally_predefined=bool(data.get("originally_predefined", False)),
        )


@dataclass(frozen=True, slots=True)
class TemplateField:
    """One input field of a record template."""

    key: str
    label: str
    type: str = "text"
    options: tuple[str, ...] | None = None
    default: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "type": self.type,
            "options": list(self.options) if self.options is not None else None,
            "default": self.default,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TemplateField:
        _require_mapping(data, "Template field")
        options = data.get("options")
        return cls(
            key=str(data["key"]),
            label=str(data.get("label") or data["key"]),
            type=str(data.get("type") or "text"),
            options=tuple(str(option) for option in options) if options is not None else None,
            default=data.get("default"),
        )


@dataclass(frozen=True, slots=True)
class Template:
    """A record-entry template owned by the template manager.

    The engine only reads templates; effective per-theme variants are
    always new instances.
    """

    id: str
    name: str
    fields: tuple[TemplateField, ...] = ()
    output_template: str = ""
    target_file: str = ""
    append_under_header: str = ""


@dataclass(frozen=True, slots=True)
class ThemeOverride:
    """Persisted per-(theme, template) patch.

    ``None`` means the field is not overridden and the template value
    applies.
    """

    theme_id: str
    template_id: str
    fields: tuple[TemplateField, ...] | None = None
    output_template: str | None = None
    target_file: str | None = None
    append_under_header: str | None = None
    disabled: bool = False
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "theme_id": self.theme_id,
            "template_id": self.template_id,
            "fields": [f.to_dict() for f in self.fields] if self.fields is not None else None,
            "output_template": self.output_template,
            "target_file": self.target_file,
            "append_under_header": self.append_under_header,
            "disabled": self.disabled,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ThemeOverride:
        _require_mapping(data, "Override record")
        theme_id = data.get("theme_id")
        template_id = data.get("template_id")
        if not isinstance(theme_id, str) or not isinstance(template_id, str):
            raise ThemeValidationError(
                ErrorCode.IMPORT_INVALID, "Override record needs theme_id and template_id"
            )
        raw_fields = data.get("fields")
        if raw_fields is not None and not isinstance(raw_fields, list):
            raise ThemeValidationError(
                ErrorCode.IMPORT_INVALID, f"Override fields for {template_id!r} must be a list"
            )
        return cls(
            theme_id=theme_id,
            template_id=template_id,
            fields=(
                tuple(TemplateField.from_dict(item) for item in raw_fields)
                if raw_fields is not None
                else None
            ),
            output_template=data.get("output_template"),
            target_file=data.get("target_file"),
            append_under_header=data.get("append_under_header"),
            disabled=bool(data.get("disabled", False)),
            id=str(data.get("id") or ""),
        )


class OverrideMode(str, Enum):
    INHERIT = "inherit"
    OVERRIDE = "override"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class Inherited:
    """No override exists; the template applies unchanged."""

    mode = OverrideMode.INHERIT


@dataclass(frozen=True, slots=True)
class Overridden:
    record: ThemeOverride

    mode = OverrideMode.OVERRIDE


@dataclass(frozen=True, slots=True)
class Disabled:
    """The template is unusable for the theme."""

    record: ThemeOverride

    mode = OverrideMode.DISABLED


CellState = Inherited | Overridden | Disabled


@dataclass(slots=True)
class ThemeTreeNode:
    theme: Theme
    children: list[ThemeTreeNode] = field(default_factory=list)
    level: int = 0


@dataclass(frozen=True, slots=True)
class PathValidation:
    valid: bool
    message: str = ""
    code: ErrorCode | None = None


@dataclass(frozen=True, slots=True)
class ThemeStats:
    total: int
    active: int
    inactive: int
    predefined: int
    discovered: int


@dataclass(frozen=True, slots=True)
class ThemeGroups:
    active: list[Theme]
    inactive: list[Theme]
    discovered: list[Theme]


@dataclass(frozen=True, slots=True)
class ThemeStatistics:
    total: int
    active: int
    archived: int
    with_overrides: int
    most_used: Theme | None


@dataclass
class BatchResult:
    """Aggregated outcome of a batch operation."""

    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def record_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    overrides_imported: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ThemeConfigBundle:
    """Export/persistence shape: flat, order-preserving theme and override lists."""

    themes: list[Theme] = field(default_factory=list)
    overrides: list[ThemeOverride] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "themes": [theme.to_dict() for theme in self.themes],
            "overrides": [override.to_dict() for override in self.overrides],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ThemeConfigBundle:
        _require_mapping(data, "Theme configuration")
        themes = data.get("themes") or []
        overrides = data.get("overrides") or []
        if not isinstance(themes, list) or not isinstance(overrides, list):
            raise ThemeValidationError(
                ErrorCode.IMPORT_INVALID, "themes and overrides must be lists"
            )
        return cls(
            themes=[Theme.from_dict(item) for item in themes],
            overrides=[ThemeOverride.from_dict(item) for item in overrides],
        )
