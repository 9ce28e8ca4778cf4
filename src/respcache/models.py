"""Canonical Pydantic models shared across respcache modules.

**Configuration models** -- :class:`HitPolicy` and :class:`CacheConfig`,
loaded from a JSON file and the environment by :mod:`respcache.config`.

**Reporting models** -- :class:`CacheStats`, returned by
:meth:`~respcache.cache.ResponseCache.stats`.
"""

from __future__ import annotations

import enum
import hashlib
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class HitPolicy(str, enum.Enum):
    """How a cache hit is written into the host response."""

    SERVE_BODY = "serve_body"
    SERVE_BODY_WITH_NOT_MODIFIED = "serve_body_with_not_modified"


class CacheConfig(BaseModel):
    """Response cache settings.

    Example::

        CacheConfig(directory="/tmp/cache", ttl_seconds=60)
    """

    enabled: bool = Field(default=True, description="Serve and store cache entries")
    directory: Optional[str] = Field(
        default=None, description="Cache root; defaults to <user cache dir>/<folder_name>"
    )
    folder_name: str = Field(
        default=".response-caches",
        description="Folder created under the user cache directory when no directory is set",
    )
    ttl_seconds: int = Field(
        default=3600, ge=0, description="Default entry lifetime in seconds"
    )
    on_hit: HitPolicy = Field(
        default=HitPolicy.SERVE_BODY,
        description="serve_body or serve_body_with_not_modified",
    )
    hash_algorithm: str = Field(
        default="sha1", description="hashlib algorithm used to name cache files"
    )

    @field_validator("hash_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        name = value.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unknown hash algorithm: {value}")
        try:
            hashlib.new(name).digest()
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Hash algorithm {value} has no fixed-length digest: {exc}") from exc
        return name


class CacheStats(BaseModel):
    """Snapshot of the on-disk cache."""

    enabled: bool
    directory: str
    entries: int = 0
    total_bytes: int = 0
    ttl_seconds: int
