"""Application-wide state container.

Everything the UI layer shares (storage scopes, alerts, loading flags,
notifications, timers, onboarding progress) is built here once at startup
and handed to consumers explicitly.
"""

from typing import Any

import structlog

from contaflix.alerts import AlertRegistry
from contaflix.auth import recover_auth_state
from contaflix.backend import BackendClient
from contaflix.config import FlatSettings, get_settings
from contaflix.loading import LoadingRegistry
from contaflix.notifications import NotificationCenter
from contaflix.onboarding import OnboardingStore
from contaflix.storage import (
    AuthStorage,
    SafeStorage,
    SecureStorage,
    create_local_storage,
    create_session_storage,
)
from contaflix.timers import TimerManager

logger = structlog.get_logger(__name__)


class AppState:
    """Owns the client state layer for one session.

    Usage:
        async with AppState() as app:
            await app.alerts.fetch_alerts(user_id)
            app.onboarding.update(current_step=1)
    """

    def __init__(
        self,
        settings: FlatSettings | None = None,
        local: SafeStorage | None = None,
        session: SafeStorage | None = None,
        backend: BackendClient | None = None,
        notifications: NotificationCenter | None = None,
    ):
        self.settings = settings or get_settings()
        self.local = local or create_local_storage(self.settings)
        self.session = session or create_session_storage()
        self.backend = backend or BackendClient()
        self.notifications = notifications or NotificationCenter(
            self.settings.notification_buffer_size
        )

        self.secure = SecureStorage(self.local, self.settings)
        self.auth_storage = AuthStorage(self.secure)
        self.onboarding = OnboardingStore(self.local, settings=self.settings)
        self.alerts = AlertRegistry(notifier=self.notifications, backend=self.backend)
        self.loading = LoadingRegistry(notifier=self.notifications)
        self.timers = TimerManager()

        self._is_started = False
        self._logger = logger.bind(component="app_state")

    @property
    def is_started(self) -> bool:
        return self._is_started

    async def __aenter__(self) -> "AppState":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    async def start(self) -> None:
        """Repair stale auth state and restore onboarding progress."""
        if self._is_started:
            return
        cleaned = recover_auth_state(self.local, self.session, settings=self.settings)
        state = self.onboarding.load()
        self._is_started = True
        self._logger.info(
            "app_state_started",
            auth_cleaned=cleaned,
            onboarding_step=state.current_step,
        )

    async def shutdown(self) -> None:
        """End the session: cancel timers, drop in-memory state, close the backend."""
        self._logger.info("app_state_stopping")
        self.timers.close()
        self.alerts.clear()
        self.loading.clear_all_loading()
        self.notifications.clear()
        await self.backend.close()
        self._is_started = False
