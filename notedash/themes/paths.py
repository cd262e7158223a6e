"""Theme path normalization and validation helpers."""

from __future__ import annotations

import re

from notedash.errors import ERROR_MESSAGES, ErrorCode
from notedash.themes.constants import ILLEGAL_PATH_CHARACTERS
from notedash.themes.models import PathValidation

_SLASH_RUN_RE = re.compile(r"/+")
_ILLEGAL_RE = re.compile("[" + re.escape(ILLEGAL_PATH_CHARACTERS) + r"\x00-\x1f\x7f]")


def normalize(path: str) -> str:
    """Trim, collapse slash runs, and strip leading/trailing slashes."""
    if not path:
        return ""
    collapsed = _SLASH_RUN_RE.sub("/", path.strip())
    return collapsed.strip("/")


def validate(path: str) -> PathValidation:
    if not path or not path.strip():
        return _invalid(ErrorCode.PATH_EMPTY)
    match = _ILLEGAL_RE.search(path)
    if match:
        return _invalid(
            ErrorCode.PATH_ILLEGAL_CHARACTER,
            f"Theme path contains an illegal character: {match.group(0)!r}",
        )
    for segment in path.split("/"):
        if not segment.strip():
            return _invalid(ErrorCode.PATH_EMPTY_SEGMENT)
        if segment.startswith(".") or segment.endswith("."):
            return _invalid(ErrorCode.PATH_DOT_SEGMENT)
    return PathValidation(valid=True)


def parent_of(path: str) -> str | None:
    if "/" not in path:
        return None
    return path.rsplit("/", 1)[0]


def leaf_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _invalid(code: ErrorCode, message: str = "") -> PathValidation:
    return PathValidation(valid=False, message=message or ERROR_MESSAGES[code], code=code)
