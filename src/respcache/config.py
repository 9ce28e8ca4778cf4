"""Configuration loading with XDG paths and precedence resolution.

* **Directory layout** -- the user cache directory is XDG Base Directory
  compliant on Linux/BSD (``$XDG_CACHE_HOME``, default ``~/.cache``) and
  ``~/.respcache/`` on macOS and Windows.  Unless a directory is configured
  explicitly, the cache root is a dot-prefixed folder inside it.  See
  :func:`get_cache_dir` and :func:`default_cache_root`.
* **Config file** -- an optional JSON file deserialised into
  :class:`~respcache.models.CacheConfig` by :func:`load_cache_config`.
* **Precedence resolution** -- :func:`resolve_cache_config` merges explicit
  overrides, environment variables, the config file, and model defaults.

Configuration errors are raised as :class:`~respcache.exceptions.ConfigError`.
They happen at startup and are the only respcache errors meant to propagate.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from respcache.exceptions import ConfigError
from respcache.models import CacheConfig

_APP_NAME = "respcache"
_PROJECT_CONFIG_FILENAME = "respcache.json"

ENV_CONFIG = "RESPCACHE_CONFIG"
ENV_DIR = "RESPCACHE_DIR"
ENV_TTL = "RESPCACHE_TTL"
ENV_ON_HIT = "RESPCACHE_ON_HIT"
ENV_ENABLED = "RESPCACHE_ENABLED"

_FALSE_VALUES = {"0", "false", "no", "off"}
_TRUE_VALUES = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_cache_dir() -> Path:
    """Return the user cache directory the default cache root lives in.

    On Linux/BSD: ``$XDG_CACHE_HOME`` (default ``~/.cache``).
    On macOS/Windows: ``~/.respcache/``.

    The directory is not created here; the cache store creates its root
    lazily on first use.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",))
    return _fallback_base_dir()


def default_cache_root(config: CacheConfig) -> Path:
    """Return the cache root for *config*.

    An explicit ``directory`` wins (with ``~`` expanded); otherwise the root
    is ``<user cache dir>/<folder_name>``.
    """
    if config.directory:
        return Path(config.directory).expanduser()
    return get_cache_dir() / config.folder_name


# --- Config file ---


def _config_file_path() -> Path:
    """Path of the JSON config file: ``$RESPCACHE_CONFIG`` or ``./respcache.json``."""
    env_value = os.environ.get(ENV_CONFIG, "")
    if env_value:
        return Path(env_value).expanduser()
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        raise ConfigError(f"Invalid cache config at {path}: {exc}", path) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid cache config at {path}: expected a JSON object", path)
    return data


def load_cache_config(path: Optional[Path] = None) -> CacheConfig:
    """Load a :class:`~respcache.models.CacheConfig` from a JSON file.

    Args:
        path: File to read.  Defaults to ``$RESPCACHE_CONFIG`` or
            ``./respcache.json``.

    Returns:
        The deserialised config, or a default instance when the file does
        not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path if path is not None else _config_file_path()
    if not path.is_file():
        return CacheConfig()
    data = _read_config_file(path)
    try:
        return CacheConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid cache config at {path}: {exc}", path) from exc


# --- Precedence resolution ---


def _parse_bool(var: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {var} must be a boolean, got {value!r}")


def _env_overrides() -> dict[str, Any]:
    """Collect ``RESPCACHE_*`` environment variables as config fields."""
    overrides: dict[str, Any] = {}
    directory = os.environ.get(ENV_DIR)
    if directory:
        overrides["directory"] = directory
    ttl = os.environ.get(ENV_TTL)
    if ttl:
        try:
            overrides["ttl_seconds"] = int(ttl)
        except ValueError as exc:
            raise ConfigError(f"Environment variable {ENV_TTL} must be an integer, got {ttl!r}") from exc
    on_hit = os.environ.get(ENV_ON_HIT)
    if on_hit:
        overrides["on_hit"] = on_hit
    enabled = os.environ.get(ENV_ENABLED)
    if enabled:
        overrides["enabled"] = _parse_bool(ENV_ENABLED, enabled)
    return overrides


def resolve_cache_config(
    config_path: Optional[Path] = None,
    **overrides: Any,
) -> CacheConfig:
    """Resolve the effective cache config with the full precedence chain.

    Precedence (high to low):
        1. Keyword *overrides* whose value is not ``None``
        2. Environment variables (``RESPCACHE_DIR``, ``RESPCACHE_TTL``,
           ``RESPCACHE_ON_HIT``, ``RESPCACHE_ENABLED``)
        3. Config file (*config_path*, ``$RESPCACHE_CONFIG`` or
           ``./respcache.json``)
        4. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    # 4 + 3. Defaults and config file
    base = load_cache_config(config_path)
    merged = base.model_dump(mode="json", exclude_unset=True)

    # 2. Environment variables
    merged.update(_env_overrides())

    # 1. Explicit overrides
    for name, value in overrides.items():
        if value is None:
            continue
        merged[name] = str(value) if isinstance(value, Path) else value

    try:
        return CacheConfig.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(f"Invalid cache configuration: {exc}") from exc
