"""Keyed tracker of in-flight operations for the global progress indicator."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import structlog

from contaflix.notifications import NotificationSink, error_notification
from contaflix.result import Err, Ok, Result

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class LoadingRegistry:
    """Maps operation keys to a loading flag. Unknown keys read as False."""

    def __init__(
        self,
        log: Any = None,
        notifier: NotificationSink | None = None,
    ):
        self._state: dict[str, bool] = {}
        self._logger = log or logger.bind(component="loading_registry")
        self._notifier = notifier

    def set_loading(self, key: str, loading: bool) -> None:
        if loading:
            self._state[key] = True
        else:
            self._state.pop(key, None)

    def is_loading(self, key: str) -> bool:
        return self._state.get(key, False)

    def is_any_loading(self) -> bool:
        return any(self._state.values())

    def active_keys(self) -> list[str]:
        return [key for key, value in self._state.items() if value]

    def clear_all_loading(self) -> None:
        self._state.clear()

    @asynccontextmanager
    async def loading(self, key: str) -> AsyncIterator[None]:
        """Mark ``key`` as loading for the duration of the block."""
        self.set_loading(key, True)
        try:
            yield
        finally:
            self.set_loading(key, False)

    async def execute_with_loading(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        error_title: str | None = None,
    ) -> Result[T, Exception]:
        """Run ``operation`` with ``key`` marked as loading.

        The flag is cleared however the operation ends. Exceptions are
        logged (and shown as a toast when ``error_title`` is given) and
        returned as ``Err``; they never propagate.
        """
        async with self.loading(key):
            try:
                value = await operation()
            except Exception as e:
                self._logger.error("operation_failed", key=key, error=str(e))
                if error_title and self._notifier is not None:
                    self._notifier.notify(error_notification(error_title, str(e), key=key))
                return Err(e)
        return Ok(value)
