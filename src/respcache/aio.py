"""Asynchronous bridge -- mirrors the :class:`~respcache.cache.ResponseCache` API.

Every cache operation is a blocking filesystem call.  Inside an event loop
each call must run off the loop thread, so :class:`AsyncResponseCache`
dispatches the synchronous methods through :func:`asyncio.to_thread`.
Behaviour is otherwise identical, including "every failure is a miss".
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Callable, Optional

from respcache.cache import ResponseCache
from respcache.keys import KeySource
from respcache.messages import ResponseLike
from respcache.models import CacheConfig, CacheStats


class AsyncResponseCache:
    """Non-blocking counterpart to :class:`~respcache.cache.ResponseCache`.

    Args:
        cache_dir: Cache root, as for :class:`ResponseCache`.
        config: Cache configuration.
        clock: Returns the current POSIX time; injectable for tests.
        cache: An existing synchronous cache to wrap.  When given, the
            other arguments are ignored.

    Example::

        cache = AsyncResponseCache("/tmp/cache")
        if await cache.serve(request, response):
            return
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._cache = cache if cache is not None else ResponseCache(cache_dir, config, clock)

    @property
    def sync(self) -> ResponseCache:
        """The wrapped blocking cache."""
        return self._cache

    async def serve(
        self,
        source: KeySource,
        response: ResponseLike,
        ttl_seconds: Optional[float] = None,
    ) -> bool:
        """Serve a fresh cached body into *response*; see :meth:`ResponseCache.serve`."""
        return await asyncio.to_thread(self._cache.serve, source, response, ttl_seconds)

    async def lookup(self, source: KeySource, ttl_seconds: Optional[float] = None) -> Optional[bytes]:
        """Return the fresh cached body for *source*, or ``None``."""
        return await asyncio.to_thread(self._cache.lookup, source, ttl_seconds)

    async def store(self, response: ResponseLike, source: KeySource) -> bool:
        """Persist the body of a finished *response* under *source*."""
        return await asyncio.to_thread(self._cache.store, response, source)

    async def invalidate(self, source: KeySource) -> None:
        """Remove the entry for *source* if there is one."""
        await asyncio.to_thread(self._cache.invalidate, source)

    async def clear(self) -> None:
        """Remove all entries, leaving an empty cache root behind."""
        await asyncio.to_thread(self._cache.clear)

    async def stats(self) -> CacheStats:
        """Return entry count and size of the cache on disk."""
        return await asyncio.to_thread(self._cache.stats)
