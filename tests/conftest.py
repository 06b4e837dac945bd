"""Shared test fixtures for the addonmux test suite."""

from __future__ import annotations

import pytest

from addonmux.infrastructure.config.schema import EngineConfig
from addonmux.infrastructure.persistence.preference_store import (
    InMemoryPreferenceStore,
)
from addonmux.infrastructure.persistence.stream_result_cache import StreamResultCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture()
def cache(clock: FakeClock) -> StreamResultCache:
    return StreamResultCache(clock=clock)


@pytest.fixture()
def engine_config() -> EngineConfig:
    """Engine tuning with sub-second deadlines for hang scenarios."""
    return EngineConfig(
        addon_timeout_seconds=0.2,
        subtitle_timeout_seconds=0.2,
        anime_lookup_timeout_seconds=0.2,
        playback_timeout_seconds=0.5,
        reachability_timeout_seconds=0.5,
        max_concurrent_addons=4,
    )
