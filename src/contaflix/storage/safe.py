"""Guarded access to local storage that never raises to callers."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from contaflix.config import FlatSettings, get_settings
from contaflix.storage.backends import (
    FileStorage,
    MemoryStorage,
    StorageBackend,
    StorageError,
)

logger = structlog.get_logger(__name__)

BackendFactory = Callable[[], StorageBackend | None]

# Anything a backend may raise for a bad value or an unusable medium
STORAGE_FAILURES = (StorageError, OSError, ValueError, TypeError)


class SafeStorage:
    """Storage accessor returning failure sentinels instead of raising.

    The backend is acquired through ``factory`` on first real access. A
    factory returning None (or raising) means storage is unavailable in this
    context; acquisition is attempted again on the next call.

    Usage:
        storage = SafeStorage(MemoryStorage, scope="session")
        storage.set_item("theme", "dark")   # True
        storage.get_item("theme")           # "dark"
    """

    def __init__(self, factory: BackendFactory, scope: str = "local"):
        self._factory = factory
        self._backend: StorageBackend | None = None
        self.scope = scope
        self._logger = logger.bind(component="safe_storage", scope=scope)

    def _acquire(self) -> StorageBackend | None:
        if self._backend is not None:
            return self._backend
        try:
            self._backend = self._factory()
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_unavailable", error=str(e))
            return None
        if self._backend is None:
            self._logger.debug("storage_not_present")
        return self._backend

    def is_available(self) -> bool:
        """Check whether a backend can be acquired."""
        return self._acquire() is not None

    def get_item(self, key: str) -> str | None:
        backend = self._acquire()
        if backend is None:
            return None
        try:
            return backend.get_item(key)
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_get_failed", key=key, error=str(e))
            return None

    def set_item(self, key: str, value: str) -> bool:
        backend = self._acquire()
        if backend is None:
            return False
        try:
            backend.set_item(key, value)
            return True
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_set_failed", key=key, error=str(e))
            return False

    def remove_item(self, key: str) -> bool:
        backend = self._acquire()
        if backend is None:
            return False
        try:
            backend.remove_item(key)
            return True
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_remove_failed", key=key, error=str(e))
            return False

    def clear(self) -> bool:
        backend = self._acquire()
        if backend is None:
            return False
        try:
            backend.clear()
            return True
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_clear_failed", error=str(e))
            return False

    def keys(self) -> list[str]:
        backend = self._acquire()
        if backend is None:
            return []
        try:
            return backend.keys()
        except STORAGE_FAILURES as e:
            self._logger.warning("storage_keys_failed", error=str(e))
            return []


def create_local_storage(settings: FlatSettings | None = None) -> SafeStorage:
    """Create the durable storage scope, backed by a JSON file."""
    settings = settings or get_settings()
    path = settings.storage_dir / "local_storage.json"
    return SafeStorage(lambda: FileStorage(path), scope="local")


def create_session_storage() -> SafeStorage:
    """Create the session storage scope, held in memory."""
    return SafeStorage(MemoryStorage, scope="session")
