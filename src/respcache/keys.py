"""Cache key derivation and sharded entry paths.

A cache key is a byte string built either from an explicit string chosen by
the application (e.g. ``"user-content"``) or from a request::

    METHOD + "_" + URI + "_" + json(sorted params)

Parameters are sorted by name (then value), so two requests that differ
only in parameter order share a key.  The key is hashed, hex-encoded, and
spread over two levels of shard directories taken from the first two hex
characters::

    "ab12...ef" -> <root>/a/b/ab12...ef.cache

which keeps any one directory from accumulating tens of thousands of files.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Union

from respcache.exceptions import KeyDerivationError, StorageWriteError
from respcache.messages import Params, RequestLike
from respcache.store import ENTRY_SUFFIX, CacheStore

KeySource = Union[str, RequestLike]

_SHARD_DEPTH = 2
_MIN_NAME_LENGTH = _SHARD_DEPTH + 1


def sorted_params(params: Params) -> list[tuple[str, str]]:
    """Return request parameters as ``(name, value)`` pairs in canonical order."""
    if isinstance(params, Mapping):
        items = params.items()
    else:
        items = params
    return sorted((str(name), str(value)) for name, value in items)


def canonical_request_key(request: RequestLike) -> str:
    """Build the canonical key string for *request*."""
    params = json.dumps(
        [list(pair) for pair in sorted_params(request.params)],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return f"{request.method.upper()}_{request.uri}_{params}"


class KeyDeriver:
    """Maps requests and explicit keys to cache entry paths.

    Args:
        store: The store owning the cache root.  Shard directories are
            created through it.
        algorithm: :mod:`hashlib` algorithm naming the entry files.
    """

    def __init__(self, store: CacheStore, algorithm: str = "sha1") -> None:
        self._store = store
        self._algorithm = algorithm

    def derive_key(self, source: KeySource) -> bytes:
        """Return the cache key for a request or an explicit key string.

        Lone surrogates (e.g. from ``surrogateescape``-decoded URLs) are
        encoded as-is, so every ``str`` has a stable key.

        Raises:
            KeyDerivationError: If *source* is not a usable request.
        """
        try:
            if isinstance(source, str):
                return source.encode("utf-8", errors="surrogatepass")
            return canonical_request_key(source).encode("utf-8", errors="surrogatepass")
        except (AttributeError, TypeError, ValueError) as exc:
            raise KeyDerivationError(f"Cannot derive cache key: {exc}") from exc

    def file_name(self, key: bytes) -> str:
        """Return the entry file name: hex digest of *key* plus ``.cache``.

        Raises:
            KeyDerivationError: If the algorithm yields no usable digest or
                the hex name is too short for the shard layout.
        """
        try:
            digest = hashlib.new(self._algorithm, key).digest()
        except (ValueError, TypeError) as exc:
            raise KeyDerivationError(
                f"Cannot hash cache key with {self._algorithm!r}: {exc}"
            ) from exc
        name = digest.hex()
        if len(name) < _MIN_NAME_LENGTH:
            raise KeyDerivationError(
                f"Cache file name {name!r} is shorter than {_MIN_NAME_LENGTH} characters"
            )
        return name + ENTRY_SUFFIX

    def entry_path(self, key: bytes) -> Path:
        """Return the entry path for *key* without touching the filesystem."""
        name = self.file_name(key)
        return self._store.root.joinpath(*name[:_SHARD_DEPTH], name)

    def resolve_path(self, key: bytes) -> Path:
        """Return the entry path for *key*, creating its shard directories.

        Raises:
            KeyDerivationError: If the name cannot be derived or the shard
                directories cannot be created.
        """
        path = self.entry_path(key)
        try:
            self._store.ensure_parent(path)
        except StorageWriteError as exc:
            raise KeyDerivationError(str(exc), exc.path) from exc
        return path

    def path_for(self, source: KeySource) -> Path:
        """Derive the key for *source* and resolve its entry path."""
        return self.resolve_path(self.derive_key(source))
