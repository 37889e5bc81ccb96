"""
Key-Value Storage for learner data.

The core persists through a synchronous get/set/remove byte store.
Writes can fail with StorageQuotaError when the medium is full.

Implementations:
- MemoryStorage: in-process dict with an optional byte quota
- FileStorage: one JSON file per key under a directory (~/.akshara)
"""

from __future__ import annotations

import errno
import os
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

# Disk-full conditions reported as quota failures (EDQUOT is POSIX-only)
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}

# =============================================================================
# Errors
# =============================================================================


class StorageError(Exception):
    """A storage operation failed."""


class StorageQuotaError(StorageError):
    """The storage medium has no room for the value."""


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class KeyValueStorage(Protocol):
    """Persistence boundary consumed by the ProfileStore."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


# =============================================================================
# Implementations
# =============================================================================


class MemoryStorage:
    """
    Dict-backed storage.

    Args:
        quota_bytes: Total UTF-8 bytes allowed across all keys (None = unbounded)
    """

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            needed = len(value.encode("utf-8"))
            if used + needed > self.quota_bytes:
                raise StorageQuotaError(
                    f"Storage quota exceeded: {used + needed} > {self.quota_bytes} bytes"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """
    File-backed storage, one `<key>.json` file per key.

    Writes go to a temporary sibling and are renamed into place so a
    failed write never truncates the previous value.
    """

    DEFAULT_DIR = Path.home() / ".akshara"
    _SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: Path | None = None):
        self.directory = Path(directory or self.DEFAULT_DIR)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"FileStorage initialized at {self.directory}")

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(f"No space left writing {path}") from e
            raise StorageError(f"Cannot write {path}: {e}") from e

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
