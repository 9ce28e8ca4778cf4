"""File primitives over a single cache entry.

:class:`CacheStore` exclusively owns filesystem access below the cache
root.  Every entry is a plain file holding exactly the cached response body
bytes; its freshness comes from the filesystem modification time, never
from in-file metadata.  Layout::

    <root>/<hex[0]>/<hex[1]>/<hex digest>.cache

The root is created lazily and re-created transparently if something
deletes it between calls.  Directory creation is idempotent, so concurrent
callers racing to create the same shard directory both succeed.

All failures are raised as :class:`~respcache.exceptions.CacheError`
subclasses.  Converting them into cache misses is the job of
:class:`~respcache.cache.ResponseCache`.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from respcache.exceptions import (
    EmptyBodyError,
    EntryMissingError,
    PurgeError,
    StorageReadError,
    StorageWriteError,
)

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".cache"
"""Extension of every cache entry file."""


def _is_dir(path: Path) -> bool:
    """``Path.is_dir`` that treats any stat error (e.g. EACCES) as absent."""
    try:
        return path.is_dir()
    except OSError:
        return False


def _is_file(path: Path) -> bool:
    """``Path.is_file`` that treats any stat error (e.g. EACCES) as absent."""
    try:
        return path.is_file()
    except OSError:
        return False


def atomic_write(path: Path, data: bytes) -> None:
    """Write bytes to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  Readers therefore
    see either the previous content or the new content, never a partial
    write.  On any failure the temp file is cleaned up and the error is
    re-raised.
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


class CacheStore:
    """Existence, metadata, read, write, and delete over cache entry files.

    Args:
        root: The cache root directory.  It does not need to exist yet.

    Example::

        store = CacheStore(Path("/tmp/cache"))
        path = Path("/tmp/cache/a/b/ab12.cache")
        store.write_all(path, b'{"a": 1}')
        assert store.read_all(path) == b'{"a": 1}'
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The cache root directory."""
        return self._root

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def ensure_root(self) -> None:
        """Create the cache root if it is missing.

        Raises:
            StorageWriteError: If the directory cannot be created.
        """
        if _is_dir(self._root):
            return
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageWriteError(
                f"Cannot create cache root {self._root}: {exc}", self._root
            ) from exc
        logger.info("Created cache directory %s", self._root)

    def ensure_parent(self, path: Path) -> None:
        """Create the shard directories holding *path* if they are missing.

        Raises:
            StorageWriteError: If a directory cannot be created.
        """
        self.ensure_root()
        parent = path.parent
        if _is_dir(parent):
            return
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageWriteError(
                f"Cannot create shard directory {parent}: {exc}", parent
            ) from exc
        logger.debug("Created shard directory %s", parent)

    # ------------------------------------------------------------------
    # Single entry
    # ------------------------------------------------------------------

    def exists(self, path: Path) -> bool:
        """Return ``True`` if a cache entry file exists at *path*."""
        return _is_file(path)

    def read_all(self, path: Path) -> bytes:
        """Return the full content of the entry at *path*.

        Raises:
            EntryMissingError: If the file does not exist, including when it
                vanished after an existence check.
            StorageReadError: If the file cannot be opened or read.
        """
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise EntryMissingError(f"Cache file {path} does not exist", path) from exc
        except OSError as exc:
            raise StorageReadError(f"Cannot read cache file {path}: {exc}", path) from exc

    def write_all(self, path: Path, data: bytes) -> None:
        """Atomically replace the entry at *path* with *data*.

        Raises:
            EmptyBodyError: If *data* is empty.  Nothing is written.
            StorageWriteError: If directories or the file cannot be written.
        """
        if not data:
            raise EmptyBodyError(
                f"Refusing to cache an empty body at {path}; "
                "was the response stored before its body was set?",
                path,
            )
        self.ensure_parent(path)
        try:
            atomic_write(path, data)
        except OSError as exc:
            raise StorageWriteError(f"Cannot write cache file {path}: {exc}", path) from exc

    def modification_time(self, path: Path) -> float:
        """Return the entry's last modification time as a POSIX timestamp.

        Raises:
            EntryMissingError: If the file does not exist.
            StorageReadError: If the file cannot be stat'ed.
        """
        try:
            return path.stat().st_mtime
        except FileNotFoundError as exc:
            raise EntryMissingError(f"Cache file {path} does not exist", path) from exc
        except OSError as exc:
            raise StorageReadError(f"Cannot stat cache file {path}: {exc}", path) from exc

    def delete(self, path: Path) -> bool:
        """Delete the entry at *path*.

        Deleting a missing entry is a no-op.

        Returns:
            ``True`` if a file was removed, ``False`` if there was none.

        Raises:
            PurgeError: If the file exists but cannot be removed.
        """
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise PurgeError(f"Cannot remove cache file {path}: {exc}", path) from exc
        logger.debug("Cache file %s removed", path)
        return True

    # ------------------------------------------------------------------
    # Whole cache
    # ------------------------------------------------------------------

    def delete_all(self) -> None:
        """Remove every entry by deleting the root, then recreate it empty.

        Raises:
            PurgeError: If the tree cannot be removed.
            StorageWriteError: If the empty root cannot be recreated.
        """
        try:
            shutil.rmtree(self._root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise PurgeError(f"Cannot clear cache root {self._root}: {exc}", self._root) from exc
        self.ensure_root()
        logger.debug("Cache cleared at %s", self._root)

    def iter_entries(self) -> Iterator[Path]:
        """Yield every entry file in the two-level shard tree."""
        if not _is_dir(self._root):
            return
        yield from self._root.glob(f"*/*/*{ENTRY_SUFFIX}")

    def usage(self) -> tuple[int, int]:
        """Return ``(entry count, total bytes)`` over the shard tree.

        Entries that vanish while being counted are skipped.
        """
        count = 0
        total = 0
        for path in self.iter_entries():
            try:
                total += path.stat().st_size
            except OSError:
                continue
            count += 1
        return count, total
