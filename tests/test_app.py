"""Tests for engine wiring, logging setup and the command line."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PySide6.QtCore import QSettings

from notedash import app as app_module
from notedash.app import configure_logging, create_engine, run_app
from notedash.config.settings import AppSettings
from notedash.themes.constants import DEFAULT_THEMES

from conftest import MemoryBackend


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("notedash")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:], logger.level, logger.propagate = saved


@pytest.fixture
def cli_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_logger) -> AppSettings:
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    settings = AppSettings(QSettings(str(tmp_path / "cli.ini"), QSettings.Format.IniFormat))
    monkeypatch.setattr(app_module, "AppSettings", lambda: settings)
    return settings


def test_create_engine_seeds_defaults_once() -> None:
    backend = MemoryBackend()
    engine = create_engine(backend, seed_defaults=True)
    assert len(engine.registry) == len(DEFAULT_THEMES)
    assert backend.saves == 1

    reloaded = create_engine(backend, seed_defaults=True)
    assert len(reloaded.registry) == len(DEFAULT_THEMES)
    assert backend.saves == 1
    assert all(theme.originally_predefined for theme in reloaded.registry.themes())


def test_create_engine_without_seeding() -> None:
    engine = create_engine(MemoryBackend())
    assert len(engine.registry) == 0
    assert engine.batch is not None
    assert engine.config.registry is engine.registry


def test_configure_logging(tmp_path: Path, clean_logger) -> None:
    settings = MagicMock()
    settings.log_level = "DEBUG"
    settings.log_dir = tmp_path
    logger = configure_logging(settings)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert configure_logging(settings) is logger
    assert len(logger.handlers) == 1


def test_cli_add_list_and_stats(cli_settings: AppSettings, capsys: pytest.CaptureFixture[str]) -> None:
    assert run_app(["add", "工作/周报"]) == 0
    assert run_app(["list"]) == 0
    out = capsys.readouterr().out
    assert "周报" in out
    assert "工作" in out

    assert run_app(["stats"]) == 0
    out = capsys.readouterr().out
    assert f"total={len(DEFAULT_THEMES) + 1}" in out


def test_cli_rejects_invalid_path(cli_settings: AppSettings, capsys: pytest.CaptureFixture[str]) -> None:
    assert run_app(["add", "a|b"]) == 1
    assert "illegal character" in capsys.readouterr().err


def test_cli_export_and_import(cli_settings: AppSettings, tmp_path: Path) -> None:
    cli_settings.seed_default_themes = False
    assert run_app(["add", "生活/健身"]) == 0
    export_path = tmp_path / "themes.yaml"
    assert run_app(["export", str(export_path)]) == 0
    assert export_path.exists()
    # Every path already exists, so the import only skips.
    assert run_app(["import", str(export_path)]) == 0


def test_cli_delete_protected(cli_settings: AppSettings) -> None:
    assert run_app(["list"]) == 0
    assert run_app(["delete", "theme_1"]) == 1


def test_create_engine_keeps_defaults_when_first_save_fails() -> None:
    backend = MemoryBackend()
    backend.fail = True
    engine = create_engine(backend, seed_defaults=True)
    assert len(engine.registry) == len(DEFAULT_THEMES)
    assert backend.saves == 0


def test_cli_reports_unreadable_import(cli_settings: AppSettings, tmp_path: Path, capsys) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("themes:\n  - foo\n", encoding="utf-8")
    assert run_app(["import", str(bad)]) == 1
    assert "mapping" in capsys.readouterr().err
