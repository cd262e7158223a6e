"""Theme registry and override engine exports."""

from notedash.themes.batch import BatchOperationService, Selection
from notedash.themes.models import (
    OverrideMode,
    Template,
    TemplateField,
    Theme,
    ThemeConfigBundle,
    ThemeOverride,
)
from notedash.themes.overrides import OverrideStore
from notedash.themes.registry import ThemeRegistry
from notedash.themes.service import ThemeConfigService
from notedash.themes.store import SettingsThemeStore

__all__ = [
    "BatchOperationService",
    "OverrideMode",
    "OverrideStore",
    "Selection",
    "SettingsThemeStore",
    "Template",
    "TemplateField",
    "Theme",
    "ThemeConfigBundle",
    "ThemeConfigService",
    "ThemeOverride",
    "ThemeRegistry",
]
