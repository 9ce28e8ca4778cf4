"""Shared test fixtures for respcache.

Provides a controllable clock, a cache rooted in a temporary directory,
and an isolated configuration environment.  These fixtures are
automatically discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from respcache import CacheConfig, ResponseCache

START = 1_700_000_000.0


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_root: Path, clock: FakeClock) -> ResponseCache:
    """A ResponseCache with a 60 second TTL and a fake clock."""
    return ResponseCache(cache_root, CacheConfig(ttl_seconds=60), clock=clock)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CACHE_HOME at a subdirectory of tmp_path, clears all
    RESPCACHE_* environment variables, and changes the working directory
    to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    for var in [
        "RESPCACHE_CONFIG",
        "RESPCACHE_DIR",
        "RESPCACHE_TTL",
        "RESPCACHE_ON_HIT",
        "RESPCACHE_ENABLED",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
