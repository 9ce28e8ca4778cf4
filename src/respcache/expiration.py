"""Time-based freshness of cache entries.

An entry is fresh while ``now - mtime < ttl``; at exactly ``ttl`` seconds
of age it is expired.  There is no background sweep.  A lookup that finds
a stale entry deletes it on the spot before reporting the miss.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from respcache.exceptions import PurgeError
from respcache.store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
"""Entry lifetime used when neither the config nor the caller gives one."""


def is_fresh(mod_time: float, ttl_seconds: float, now: float) -> bool:
    """Return ``True`` while an entry modified at *mod_time* is younger than *ttl_seconds*."""
    return now - mod_time < ttl_seconds


class ExpirationPolicy:
    """Judges staleness and purges stale entries as a side effect.

    Args:
        default_ttl: TTL in seconds used when :meth:`check` gets none.
        clock: Returns the current POSIX time; injectable for tests.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock

    def is_fresh(self, mod_time: float, ttl_seconds: Optional[float] = None, now: Optional[float] = None) -> bool:
        """Return whether an entry modified at *mod_time* is fresh, using the default TTL and clock when omitted."""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        return is_fresh(mod_time, ttl, self._clock() if now is None else now)

    def check(
        self,
        store: CacheStore,
        path: Path,
        ttl_seconds: Optional[float] = None,
        now: Optional[float] = None,
    ) -> bool:
        """Return whether the entry at *path* is fresh, deleting it if not.

        A failed purge is logged and otherwise ignored; the entry is still
        reported stale.

        Raises:
            StorageReadError: If the modification time cannot be read.
        """
        mod_time = store.modification_time(path)
        if self.is_fresh(mod_time, ttl_seconds, now):
            return True

        logger.warning("Cache file %s expired", path)
        try:
            store.delete(path)
        except PurgeError as exc:
            logger.warning("Could not purge expired cache file %s: %s", path, exc)
        return False
