"""Memoized file reads shared by every frame of a resolution.

Files are assumed static for the life of the process, so entries are
never evicted or invalidated. Missing paths are not cached; asking again
re-checks the filesystem.
"""

from __future__ import annotations

import asyncio
import os
import stat
from pathlib import Path

import structlog

from rekindle.utils.async_helpers import FileReadError
from rekindle.utils.logging import LogEventNames

log = structlog.get_logger()

_NOT_FOUND = (FileNotFoundError, NotADirectoryError)


class FileCache:
    """Cache of raw file contents keyed by absolute path.

    Concurrency: each path gets its own ``asyncio.Lock``. The first task
    to request a path holds the lock while it reads; tasks asking for the
    same path meanwhile wait on the lock and then find the cached bytes,
    so a file is read at most once. Blocking filesystem calls run in a
    worker thread.

    Example:
        cache = FileCache()
        content = await cache.get("/app/public/build/index.js")
        if content is None:
            ...  # missing or not a regular file
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._files: dict[str, bytes] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._read_count = 0

    @property
    def read_count(self) -> int:
        """Number of times a file was actually read from disk."""
        return self._read_count

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return self._key(path) in self._files

    def __len__(self) -> int:
        return len(self._files)

    @staticmethod
    def _key(path: str | os.PathLike[str]) -> str:
        return os.path.abspath(os.fspath(path))

    async def get(self, path: str | os.PathLike[str]) -> bytes | None:
        """Return the contents of ``path``, reading it on first use.

        Args:
            path: File to read

        Returns:
            File bytes, or None if the path does not exist or is not a
            regular file

        Raises:
            FileReadError: If the path exists but cannot be read
        """
        key = self._key(path)

        cached = self._files.get(key)
        if cached is not None:
            log.debug(LogEventNames.CACHE_HIT, path=key)
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another task may have filled the entry while we waited
            cached = self._files.get(key)
            if cached is not None:
                log.debug(LogEventNames.CACHE_HIT, path=key)
                return cached

            log.debug(LogEventNames.CACHE_MISS, path=key)
            content = await asyncio.to_thread(self._read, key)
            if content is not None:
                self._read_count += 1
                self._files[key] = content
            return content

    async def get_text(self, path: str | os.PathLike[str]) -> str | None:
        """Like ``get`` but decoded as UTF-8, replacing invalid bytes."""
        content = await self.get(path)
        if content is None:
            return None
        return content.decode("utf-8", errors="replace")

    def _read(self, key: str) -> bytes | None:
        """Stat and read one file. Runs in a worker thread."""
        try:
            header = os.stat(key)
        except _NOT_FOUND:
            log.debug(LogEventNames.FILE_NOT_FOUND, path=key)
            return None
        except OSError as e:
            log.error(LogEventNames.FILE_READ_FAILED, path=key, error=str(e))
            raise FileReadError(f"Failed to stat {key}: {e}", path=key) from e

        if not stat.S_ISREG(header.st_mode):
            log.debug(LogEventNames.PATH_NOT_A_FILE, path=key)
            return None

        try:
            content = Path(key).read_bytes()
        except _NOT_FOUND:
            # Removed between stat and read
            log.debug(LogEventNames.FILE_NOT_FOUND, path=key)
            return None
        except OSError as e:
            log.error(LogEventNames.FILE_READ_FAILED, path=key, error=str(e))
            raise FileReadError(f"Failed to read {key}: {e}", path=key) from e

        return content
