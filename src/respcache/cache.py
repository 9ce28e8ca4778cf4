"""Disk-backed response cache for request handlers.

:class:`ResponseCache` is the public surface.  A handler asks it to serve a
request (or an explicit key) from disk and returns early on a hit;
otherwise it builds the response normally and stores it afterwards::

    cache = ResponseCache("/tmp/cache")

    def handler(request, response):
        if cache.serve(request, response):
            return
        response.body = render(request)
        response.complete()
        cache.store(response, request)

A lookup runs Derive -> Check existence -> Check freshness -> Read ->
Serve.  Every failure along the way (hashing, directory creation, a file
vanishing mid-lookup, permissions, a failed purge) is logged and reported
as a miss; nothing raised by the cache reaches the handler.  Writes are
best-effort in the same way.

Entries are keyed by ``METHOD_URI_sorted-params`` (see
:mod:`respcache.keys`) and expire purely on file age (see
:mod:`respcache.expiration`).
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from respcache.config import default_cache_root
from respcache.exceptions import (
    EmptyBodyError,
    EntryMissingError,
    KeyDerivationError,
    PurgeError,
    StorageReadError,
    StorageWriteError,
)
from respcache.expiration import ExpirationPolicy
from respcache.keys import KeyDeriver, KeySource
from respcache.messages import ResponseLike
from respcache.models import CacheConfig, CacheStats, HitPolicy
from respcache.store import CacheStore

logger = logging.getLogger(__name__)

NOT_MODIFIED = 304


class ResponseCache:
    """Serves and stores response bodies as sharded files on disk.

    The instance holds no per-entry state.  The files are the only source
    of truth and are reopened on every call, so one instance can be shared
    by all request-handling threads of a process.

    Args:
        cache_dir: Cache root.  Defaults to the root derived from *config*
            (see :func:`~respcache.config.default_cache_root`).
        config: Cache configuration.  Defaults to :class:`CacheConfig()`.
        clock: Returns the current POSIX time; injectable for tests.

    Example::

        from respcache import CacheConfig, Response, ResponseCache

        cache = ResponseCache("/tmp/cache", CacheConfig(ttl_seconds=60))
        cache.store(Response(body=b'{"a":1}'), "user-content")
        response = Response()
        assert cache.serve("user-content", response)
        assert response.body == b'{"a":1}'
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config if config is not None else CacheConfig()
        root = Path(cache_dir) if cache_dir is not None else default_cache_root(self._config)
        self._store = CacheStore(root)
        self._keys = KeyDeriver(self._store, self._config.hash_algorithm)
        self._expiration = ExpirationPolicy(self._config.ttl_seconds, clock)

        logger.info("Response cache initialized in %s", root)
        if self._config.enabled:
            try:
                self._store.ensure_root()
            except StorageWriteError as exc:
                logger.warning("%s", exc)

    @property
    def directory(self) -> Path:
        """The cache root directory."""
        return self._store.root

    @property
    def config(self) -> CacheConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def serve(
        self,
        source: KeySource,
        response: ResponseLike,
        ttl_seconds: Optional[float] = None,
    ) -> bool:
        """Serve a fresh cached body into *response*.

        On a hit the body is installed, the status is set to 304 when the
        hit policy asks for it, and the response is marked complete.

        Args:
            source: The inbound request, or an explicit cache key string.
            response: The host response to fill.
            ttl_seconds: Maximum entry age.  Defaults to the configured TTL.

        Returns:
            ``True`` on a hit, so the handler can return early.  ``False``
            on a miss, a stale entry, or any internal failure.
        """
        body = self.lookup(source, ttl_seconds)
        if body is None:
            return False

        response.body = body
        if self._config.on_hit == HitPolicy.SERVE_BODY_WITH_NOT_MODIFIED:
            response.status_code = NOT_MODIFIED
        response.complete()
        return True

    def lookup(self, source: KeySource, ttl_seconds: Optional[float] = None) -> Optional[bytes]:
        """Return the fresh cached body for *source*, or ``None``.

        A stale entry is deleted before ``None`` is returned.
        """
        if not self._config.enabled:
            return None
        path = self._path(source)
        if path is None:
            return None
        if not self._store.exists(path):
            logger.debug("Cache miss for %s", path)
            return None

        try:
            if not self._expiration.check(self._store, path, ttl_seconds):
                return None
            body = self._store.read_all(path)
        except EntryMissingError:
            logger.debug("Cache file %s vanished during lookup", path)
            return None
        except StorageReadError as exc:
            logger.warning("Error reading cache file %s: %s", path, exc)
            return None

        logger.info("Return from cache (%s)", path)
        return body

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store(self, response: ResponseLike, source: KeySource) -> bool:
        """Persist the body of a finished *response* under *source*.

        Call this only after the body is fully populated; an empty body is
        refused and logged.

        Returns:
            ``True`` if an entry was written.  Failures never raise.
        """
        if not self._config.enabled:
            return False
        path = self._path(source)
        if path is None:
            return False

        try:
            self._store.write_all(path, bytes(response.body or b""))
        except EmptyBodyError as exc:
            logger.warning("%s", exc)
            return False
        except StorageWriteError as exc:
            logger.error("Error writing cache file %s: %s", path, exc)
            return False

        logger.info("Cache file %s written", path)
        return True

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, source: KeySource) -> None:
        """Remove the entry for *source* if there is one."""
        if not self._config.enabled:
            return
        path = self._path(source, create=False)
        if path is None:
            return
        try:
            self._store.delete(path)
        except PurgeError as exc:
            logger.error("Error removing cache file %s: %s", path, exc)

    def clear(self) -> None:
        """Remove all entries, leaving an empty cache root behind."""
        if not self._config.enabled:
            return
        try:
            self._store.delete_all()
        except (PurgeError, StorageWriteError) as exc:
            logger.error("Error clearing cache: %s", exc)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def path_for(self, source: KeySource) -> Optional[Path]:
        """Return the entry path for *source*, or ``None`` if it cannot be derived."""
        return self._path(source, create=False)

    def stats(self) -> CacheStats:
        """Return entry count and size of the cache on disk."""
        entries, total_bytes = self._store.usage()
        return CacheStats(
            enabled=self._config.enabled,
            directory=str(self._store.root),
            entries=entries,
            total_bytes=total_bytes,
            ttl_seconds=self._config.ttl_seconds,
        )

    def _path(self, source: KeySource, create: bool = True) -> Optional[Path]:
        try:
            key = self._keys.derive_key(source)
            if create:
                return self._keys.resolve_path(key)
            return self._keys.entry_path(key)
        except KeyDerivationError as exc:
            logger.warning("No cache file available: %s", exc)
            return None
