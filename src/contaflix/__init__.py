"""ContaFlix - client-side state layer for the accounting platform."""

__version__ = "0.1.0"

from contaflix.alerts import Alert, AlertAction, AlertPriority, AlertRegistry, AlertType
from contaflix.app import AppState
from contaflix.auth import check_for_auth_limbo_state, cleanup_auth_state, recover_auth_state
from contaflix.backend import BackendClient, BackendError
from contaflix.config import configure_logging, get_settings
from contaflix.loading import LoadingRegistry
from contaflix.notifications import (
    LoggingNotificationSink,
    Notification,
    NotificationCenter,
    NotificationSink,
)
from contaflix.onboarding import OnboardingData, OnboardingStore, OnboardingWizard
from contaflix.result import Err, Ok, Result
from contaflix.storage import (
    AuthStorage,
    SafeStorage,
    SecureStorage,
    create_local_storage,
    create_session_storage,
)
from contaflix.timers import TimerManager

__all__ = [
    # Version
    "__version__",
    # App
    "AppState",
    # Storage
    "SafeStorage",
    "SecureStorage",
    "AuthStorage",
    "create_local_storage",
    "create_session_storage",
    # Onboarding
    "OnboardingData",
    "OnboardingStore",
    "OnboardingWizard",
    # Alerts & notifications
    "Alert",
    "AlertAction",
    "AlertPriority",
    "AlertType",
    "AlertRegistry",
    "Notification",
    "NotificationCenter",
    "NotificationSink",
    "LoggingNotificationSink",
    # Loading & timers
    "LoadingRegistry",
    "TimerManager",
    # Auth
    "cleanup_auth_state",
    "check_for_auth_limbo_state",
    "recover_auth_state",
    # Backend
    "BackendClient",
    "BackendError",
    # Results
    "Ok",
    "Err",
    "Result",
    # Config
    "get_settings",
    "configure_logging",
]
