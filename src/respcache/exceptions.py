"""Exception hierarchy for respcache.

All exceptions inherit from :class:`CacheError`, which carries the cache
entry ``path`` the failure relates to (when there is one).  The public
facade :class:`~respcache.cache.ResponseCache` catches ``CacheError`` and
converts it into a miss or a skipped write, so none of these ever reach the
host request pipeline.  Only :class:`ConfigError`, raised while loading
configuration at startup, is meant to propagate.

Subclass hierarchy::

    CacheError
    +-- KeyDerivationError
    +-- StorageReadError
    |   +-- EntryMissingError
    +-- StorageWriteError
    |   +-- EmptyBodyError
    +-- PurgeError
    +-- ConfigError
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class CacheError(Exception):
    """Base exception for all respcache errors.

    Args:
        message: Human-readable error description.
        path: Optional cache entry (or directory) the error relates to.
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class KeyDerivationError(CacheError):
    """Raised when a cache key cannot be turned into an entry path.

    Covers an unusable hash algorithm, a file name too short for the shard
    layout, and shard directories that cannot be created.
    """


class StorageReadError(CacheError):
    """Raised when a cache entry cannot be opened, read, or stat'ed."""


class EntryMissingError(StorageReadError):
    """Raised when a cache entry does not exist (or vanished mid-lookup)."""


class StorageWriteError(CacheError):
    """Raised when a cache entry cannot be written (permissions, disk full, etc.)."""


class EmptyBodyError(StorageWriteError):
    """Raised when asked to persist an empty response body."""


class PurgeError(CacheError):
    """Raised when a cache entry or the cache root cannot be deleted."""


class ConfigError(CacheError):
    """Raised for configuration problems (invalid JSON, bad environment values)."""
