"""Engine bootstrap and command line entry."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
import sys

from PySide6.QtCore import QCoreApplication

from notedash.config.settings import AppSettings
from notedash.errors import NotedashError, PersistenceError, format_error_for_user
from notedash.themes import hierarchy
from notedash.themes.batch import BatchOperationService
from notedash.themes.exchange import read_bundle, write_bundle
from notedash.themes.overrides import OverrideStore
from notedash.themes.registry import ThemeRegistry
from notedash.themes.service import ThemeConfigService
from notedash.themes.store import SettingsThemeStore, StateBackend

logger = logging.getLogger(__name__)


@dataclass
class ThemeEngine:
    """Explicitly owned engine parts, wired once and passed to collaborators."""

    registry: ThemeRegistry
    overrides: OverrideStore
    store: SettingsThemeStore
    config: ThemeConfigService
    batch: BatchOperationService


def configure_logging(settings: AppSettings) -> logging.Logger:
    logger = logging.getLogger("notedash")
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    handler = RotatingFileHandler(
        settings.log_dir / "notedash.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def create_engine(backend: StateBackend, *, seed_defaults: bool = False) -> ThemeEngine:
    """Build the engine over ``backend`` and load its saved state."""
    registry = ThemeRegistry()
    overrides = OverrideStore()
    store = SettingsThemeStore(registry, overrides, backend)
    if not store.load() and seed_defaults:
        registry.add_default_themes()
        try:
            store.save()
        except PersistenceError as exc:
            logger.warning("default themes not saved: %s", exc)
    config = ThemeConfigService(registry, overrides, store)
    batch = BatchOperationService(config, store)
    return ThemeEngine(registry, overrides, store, config, batch)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notedash", description="Manage note dashboard themes.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="Show the theme tree.")
    commands.add_parser("stats", help="Show theme statistics.")

    add = commands.add_parser("add", help="Add a theme by path.")
    add.add_argument("path")

    delete = commands.add_parser("delete", help="Delete a theme by id.")
    delete.add_argument("theme_id")
    delete.add_argument("--children", action="store_true", help="Also delete sub-themes.")

    export = commands.add_parser("export", help="Export themes and overrides to YAML.")
    export.add_argument("file")
    export.add_argument("theme_ids", nargs="*", help="Theme ids to export (default: all).")

    import_ = commands.add_parser("import", help="Import themes and overrides from YAML.")
    import_.add_argument("file")
    return parser


def _run_command(engine: ThemeEngine, args: argparse.Namespace) -> int:
    if args.command == "list":
        for node in hierarchy.flatten(engine.config.tree()):
            theme = node.theme
            marker = "*" if theme.is_active else " "
            icon = f"{theme.icon} " if theme.icon else ""
            print(f"{marker} {'  ' * node.level}{icon}{theme.name}  [{theme.id}]")
        return 0

    if args.command == "stats":
        stats = engine.config.get_statistics()
        print(f"total={stats.total} active={stats.active} archived={stats.archived} "
              f"with_overrides={stats.with_overrides}")
        if stats.most_used is not None:
            print(f"most used: {stats.most_used.path} ({stats.most_used.usage_count})")
        return 0

    if args.command == "add":
        ok, message = engine.config.add_theme(args.path)
        if message:
            print(message, file=sys.stderr)
        return 0 if ok else 1

    if args.command == "delete":
        removed = engine.config.delete_theme(args.theme_id, include_children=args.children)
        print(f"deleted {removed} theme(s)")
        return 0 if removed else 1

    if args.command == "export":
        theme_ids = args.theme_ids or [theme.id for theme in engine.registry.themes()]
        path = write_bundle(args.file, engine.config.export_configurations(theme_ids))
        print(f"exported to {path}")
        return 0

    if args.command == "import":
        result = engine.config.import_configurations(read_bundle(args.file))
        print(f"imported={result.imported} skipped={result.skipped} "
              f"overrides={result.overrides_imported}")
        for error in result.errors:
            print(error, file=sys.stderr)
        return 0 if not result.errors else 1
    return 2


def run_app(argv: list[str] | None = None) -> int:
    """Initialize settings and the engine, then run one command."""
    args = _build_parser().parse_args(argv)
    QCoreApplication.setApplicationName("Notedash")
    QCoreApplication.setOrganizationName("Notedash")
    settings = AppSettings()
    logger = configure_logging(settings)
    logger.info("startup command=%s", args.command)

    try:
        engine = create_engine(settings, seed_defaults=settings.seed_default_themes)
        engine.config.persistence_failed.connect(lambda message: print(message, file=sys.stderr))
        return _run_command(engine, args)
    except NotedashError as exc:
        logger.error("command %s failed: %s", args.command, exc)
        print(format_error_for_user(exc), file=sys.stderr)
        return 1
