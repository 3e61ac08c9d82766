"""Key/value storage backends for the durable and session scopes."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol


class StorageError(Exception):
    """Base exception for storage backend errors."""


class StorageUnavailableError(StorageError):
    """Storage cannot be used in this execution context."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the backend's quota."""


class StorageBackend(Protocol):
    """Minimal string key/value store, shaped like browser storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStorage:
    """Session-scoped storage kept in process memory."""

    def __init__(self, quota_bytes: int | None = None):
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        return size + len(key) + len(value)

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None and self._size_with(key, value) > self._quota_bytes:
            raise StorageQuotaExceededError(
                f"Writing {key!r} exceeds quota of {self._quota_bytes} bytes"
            )
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


class FileStorage:
    """Durable storage persisted as a JSON object in a single file.

    The file is read once on construction and rewritten atomically on
    every mutation.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw) if raw.strip() else {}
        except (OSError, ValueError) as e:
            raise StorageUnavailableError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailableError(f"{self.path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, ValueError, TypeError) as e:
            raise StorageUnavailableError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def _commit(self, previous: dict[str, str]) -> None:
        """Flush, restoring ``previous`` if the write fails."""
        try:
            self._flush()
        except Exception:
            self._data = previous
            raise

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        previous = dict(self._data)
        self._data[key] = value
        self._commit(previous)

    def remove_item(self, key: str) -> None:
        if key not in self._data:
            return
        previous = dict(self._data)
        del self._data[key]
        self._commit(previous)

    def clear(self) -> None:
        previous = dict(self._data)
        self._data.clear()
        self._commit(previous)

    def keys(self) -> list[str]:
        return list(self._data)
