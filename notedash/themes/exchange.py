"""YAML files for theme configuration export and import."""

from __future__ import annotations

from pathlib import Path

import yaml

from notedash.errors import ErrorCode, ThemeValidationError
from notedash.themes.constants import STATE_SCHEMA_VERSION
from notedash.themes.models import ThemeConfigBundle

_MAX_BUNDLE_BYTES = 4 * 1024 * 1024


def write_bundle(path: str | Path, bundle: ThemeConfigBundle) -> Path:
    """Write ``bundle`` as YAML and return the written path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    document = {"schema_version": STATE_SCHEMA_VERSION, **bundle.to_dict()}
    target.write_text(
        yaml.safe_dump(document, allow_unicode=True, sort_keys=False, default_flow_style=False),
        encoding="utf-8",
    )
    return target


def read_bundle(path: str | Path) -> ThemeConfigBundle:
    source = Path(path)
    if not source.is_file():
        raise ThemeValidationError(ErrorCode.IMPORT_INVALID, f"Import file not found: {source}")
    if source.stat().st_size > _MAX_BUNDLE_BYTES:
        raise ThemeValidationError(ErrorCode.IMPORT_INVALID, f"Import file too large: {source}")
    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ThemeValidationError(ErrorCode.IMPORT_INVALID, f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise ThemeValidationError(ErrorCode.IMPORT_INVALID, f"Expected a mapping in {source}")
    try:
        return ThemeConfigBundle.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ThemeValidationError(ErrorCode.IMPORT_INVALID, f"{source}: {exc}") from exc
