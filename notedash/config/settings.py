"""Application settings via QSettings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from PySide6.QtCore import QSettings

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

logger = logging.getLogger(__name__)


class AppSettings:
    """Wraps QSettings for persistent app configuration and theme state."""

    def __init__(self, qsettings: QSettings | None = None) -> None:
        self._qs = qsettings if qsettings is not None else QSettings("Notedash", "Notedash")

    # -- theme state --

    @property
    def theme_state(self) -> dict[str, Any]:
        raw = self._qs.value("themes/state", "", type=str)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("ignoring corrupt theme state: %s", exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    @theme_state.setter
    def theme_state(self, value: Mapping[str, Any]) -> None:
        self._qs.setValue("themes/state", json.dumps(dict(value), ensure_ascii=False))

    def load_theme_state(self) -> dict[str, Any]:
        return self.theme_state

    def save_theme_state(self, state: Mapping[str, Any]) -> None:
        self.theme_state = state
        self._qs.sync()
        if self._qs.status() != QSettings.Status.NoError:
            raise OSError(f"Could not write settings: {self._qs.status().name}")

    # -- first run --

    @property
    def seed_default_themes(self) -> bool:
        return self._qs.value("themes/seed_defaults", True, type=bool)

    @seed_default_themes.setter
    def seed_default_themes(self, value: bool) -> None:
        self._qs.setValue("themes/seed_defaults", bool(value))

    # -- logging --

    @property
    def log_level(self) -> str:
        raw = self._qs.value("logging/level", "INFO", type=str)
        level = (raw or "").strip().upper()
        if level in _LOG_LEVELS:
            return level
        return "INFO"

    @log_level.setter
    def log_level(self, value: str) -> None:
        level = (value or "").strip().upper()
        if level not in _LOG_LEVELS:
            level = "INFO"
        self._qs.setValue("logging/level", level)

    # -- helpers --

    @property
    def app_data_dir(self) -> Path:
        path = self._app_data_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_dir(self) -> Path:
        path = self.app_data_dir / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def export_dir(self) -> Path:
        path = self.app_data_dir / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _app_data_dir() -> Path:
        base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
        return base / "notedash"
