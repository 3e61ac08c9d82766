"""User-facing toast notifications and the sinks that receive them.

Components that need to tell the user something (a high-priority alert, a
failed remote call) push a ``Notification`` into an injected sink rather
than talking to a UI toolkit directly.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID, uuid4

import structlog

from contaflix.config import get_settings

logger = structlog.get_logger(__name__)


class NotificationVariant(str, Enum):
    """Visual treatment of a toast."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    """A toast shown to the user."""

    title: str
    description: str = ""
    variant: NotificationVariant = NotificationVariant.DEFAULT
    notification_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.notification_id),
            "title": self.title,
            "description": self.description,
            "variant": self.variant.value,
            "created_at": self.created_at.isoformat(),
            "data": self.data,
        }


class NotificationSink(Protocol):
    """Anything that can display a notification."""

    def notify(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    """Sink that only writes notifications to the structured log."""

    def notify(self, notification: Notification) -> None:
        log = logger.warning if notification.variant is NotificationVariant.DESTRUCTIVE else logger.info
        log(
            "notification",
            title=notification.title,
            description=notification.description,
            variant=notification.variant.value,
        )


class NotificationCenter:
    """Default sink: keeps recent notifications and fans them out to hooks.

    Usage:
        center = NotificationCenter()
        center.add_hook(render_toast)
        center.notify(Notification(title="Prazo", description="Vence hoje"))
    """

    def __init__(self, buffer_size: int | None = None):
        size = buffer_size if buffer_size is not None else get_settings().notification_buffer_size
        self._buffer: deque[Notification] = deque(maxlen=size)
        self._hooks: list[Callable[[Notification], None]] = []
        self._logger = logger.bind(component="notification_center")

    @property
    def recent(self) -> list[Notification]:
        """Get notifications still in the buffer, oldest first."""
        return list(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def add_hook(self, hook: Callable[[Notification], None]) -> None:
        """Add a hook called for every notification."""
        self._hooks.append(hook)

    def remove_hook(self, hook: Callable[[Notification], None]) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    def notify(self, notification: Notification) -> None:
        self._buffer.append(notification)
        self._logger.debug(
            "notification_queued",
            title=notification.title,
            variant=notification.variant.value,
        )
        for hook in self._hooks:
            try:
                hook(notification)
            except Exception as e:
                self._logger.error("notification_hook_error", error=str(e))

    def dismiss(self, notification_id: UUID) -> bool:
        """Drop a notification from the buffer."""
        for notification in self._buffer:
            if notification.notification_id == notification_id:
                self._buffer.remove(notification)
                return True
        return False

    def clear(self) -> None:
        self._buffer.clear()


def error_notification(title: str, description: str = "", **data: Any) -> Notification:
    """Create a destructive (error) toast."""
    return Notification(
        title=title,
        description=description,
        variant=NotificationVariant.DESTRUCTIVE,
        data=data,
    )
