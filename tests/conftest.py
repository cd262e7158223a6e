"""Shared fixtures for theme engine tests."""

from __future__ import annotations

from typing import Any, Mapping

import pytest

from notedash.themes.batch import BatchOperationService
from notedash.themes.overrides import OverrideStore
from notedash.themes.registry import ThemeRegistry
from notedash.themes.service import ThemeConfigService
from notedash.themes.store import SettingsThemeStore


class MemoryBackend:
    """State backend that keeps the last saved snapshot in memory."""

    def __init__(self, state: Mapping[str, Any] | None = None) -> None:
        self.state: dict[str, Any] = dict(state or {})
        self.saves = 0
        self.fail = False

    def load_theme_state(self) -> dict[str, Any]:
        return self.state

    def save_theme_state(self, state: Mapping[str, Any]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saves += 1
        self.state = dict(state)


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> ThemeRegistry:
    return ThemeRegistry(clock=clock)


@pytest.fixture
def overrides() -> OverrideStore:
    return OverrideStore()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(registry, overrides, backend) -> SettingsThemeStore:
    return SettingsThemeStore(registry, overrides, backend)


@pytest.fixture
def config(registry, overrides, store) -> ThemeConfigService:
    return ThemeConfigService(registry, overrides, store)


@pytest.fixture
def batch(config, store) -> BatchOperationService:
    return BatchOperationService(config, store)
