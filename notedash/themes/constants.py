"""Theme engine constants."""

from __future__ import annotations

THEME_ID_PREFIX = "theme_"
OVERRIDE_ID_PREFIX = "ovr_"
OVERRIDE_KEY_SEPARATOR = ":"
STATE_SCHEMA_VERSION = "1"

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

SOURCE_PREDEFINED = "predefined"
SOURCE_DISCOVERED = "discovered"

# Characters rejected in theme paths; control characters are checked separately.
ILLEGAL_PATH_CHARACTERS = '<>:"|?*\\'

DEFAULT_THEMES: tuple[tuple[str, str], ...] = (
    ("工作", "💼"),
    ("生活", "🏠"),
    ("学习", "📚"),
    ("健康", "💪"),
    ("项目", "📁"),
)

THEME_OPERATIONS: tuple[str, ...] = (
    "activate",
    "archive",
    "delete",
    "setIcon",
)

TEMPLATE_OPERATIONS: tuple[str, ...] = (
    "setBlockInherit",
    "setBlockOverride",
    "setBlockDisabled",
    "clearBlockOverrides",
    "applyTemplate",
)
