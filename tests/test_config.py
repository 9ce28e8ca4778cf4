"""Tests for respcache.config -- XDG paths, config file, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from respcache.config import (
    default_cache_root,
    get_cache_dir,
    load_cache_config,
    resolve_cache_config,
)
from respcache.exceptions import ConfigError
from respcache.models import CacheConfig, HitPolicy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestCacheDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".cache"

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        assert get_cache_dir() == custom

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".respcache"

    def test_not_created(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: True)
        assert not get_cache_dir().exists()


class TestDefaultCacheRoot:
    def test_hidden_folder_under_cache_dir(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: True)
        root = default_cache_root(CacheConfig())
        assert root == isolated_config / "xdg-cache" / ".response-caches"
        assert root.name.startswith(".")

    def test_custom_folder_name(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("respcache.config._is_xdg_platform", lambda: True)
        root = default_cache_root(CacheConfig(folder_name=".perfect-caches"))
        assert root.name == ".perfect-caches"

    def test_explicit_directory(self, tmp_path: Path) -> None:
        config = CacheConfig(directory=str(tmp_path / "explicit"))
        assert default_cache_root(config) == tmp_path / "explicit"

    def test_directory_expands_user(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        config = CacheConfig(directory="~/responses")
        assert default_cache_root(config) == tmp_path / "responses"


# ---------------------------------------------------------------------------
# Config model
# ---------------------------------------------------------------------------


class TestCacheConfig:
    def test_defaults(self) -> None:
        config = CacheConfig()
        assert config.enabled is True
        assert config.directory is None
        assert config.ttl_seconds == 3600
        assert config.on_hit == HitPolicy.SERVE_BODY
        assert config.hash_algorithm == "sha1"

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            CacheConfig(ttl_seconds=-1)

    def test_unknown_algorithm_rejected(self) -> None:
        with pytest.raises(ValueError):
            CacheConfig(hash_algorithm="nope")

    @pytest.mark.parametrize("name", ["shake_128", "shake_256"])
    def test_variable_length_algorithm_rejected(self, name: str) -> None:
        with pytest.raises(ValueError, match="fixed-length"):
            CacheConfig(hash_algorithm=name)

    def test_algorithm_lowercased(self) -> None:
        assert CacheConfig(hash_algorithm="SHA256").hash_algorithm == "sha256"


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


class TestLoadCacheConfig:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        assert load_cache_config() == CacheConfig()

    def test_project_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "respcache.json", {"ttl_seconds": 120})
        assert load_cache_config().ttl_seconds == 120

    def test_env_config_path(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = isolated_config / "etc" / "cache.json"
        _write_json(path, {"on_hit": "serve_body_with_not_modified"})
        monkeypatch.setenv("RESPCACHE_CONFIG", str(path))
        assert load_cache_config().on_hit == HitPolicy.SERVE_BODY_WITH_NOT_MODIFIED

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(path, {"enabled": False})
        assert load_cache_config(path).enabled is False

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid cache config"):
            load_cache_config(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(path, [1, 2])
        with pytest.raises(ConfigError):
            load_cache_config(path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(path, {"ttl_seconds": "soon"})
        with pytest.raises(ConfigError):
            load_cache_config(path)


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveCacheConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_cache_config() == CacheConfig()

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "respcache.json", {"ttl_seconds": 120, "directory": "/from/file"})
        monkeypatch.setenv("RESPCACHE_TTL", "30")

        config = resolve_cache_config()
        assert config.ttl_seconds == 30
        assert config.directory == "/from/file"

    def test_overrides_win(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_TTL", "30")
        monkeypatch.setenv("RESPCACHE_DIR", "/from/env")

        config = resolve_cache_config(ttl_seconds=5, directory=isolated_config / "cli")
        assert config.ttl_seconds == 5
        assert config.directory == str(isolated_config / "cli")

    def test_none_overrides_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_TTL", "30")
        assert resolve_cache_config(ttl_seconds=None).ttl_seconds == 30

    def test_env_on_hit(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_ON_HIT", "serve_body_with_not_modified")
        assert resolve_cache_config().on_hit == HitPolicy.SERVE_BODY_WITH_NOT_MODIFIED

    @pytest.mark.parametrize("value,expected", [("0", False), ("off", False), ("TRUE", True), ("yes", True)])
    def test_env_enabled(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        monkeypatch.setenv("RESPCACHE_ENABLED", value)
        assert resolve_cache_config().enabled is expected

    def test_env_enabled_invalid(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_ENABLED", "maybe")
        with pytest.raises(ConfigError):
            resolve_cache_config()

    def test_env_ttl_invalid(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_TTL", "an hour")
        with pytest.raises(ConfigError):
            resolve_cache_config()

    def test_env_on_hit_invalid(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPCACHE_ON_HIT", "redirect")
        with pytest.raises(ConfigError):
            resolve_cache_config()
