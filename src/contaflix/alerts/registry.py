"""In-memory registry of the current session's alerts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog

from contaflix.alerts.types import Alert, AlertAction, AlertPriority, AlertType, parse_datetime
from contaflix.backend.client import BackendClient, BackendError
from contaflix.notifications import (
    Notification,
    NotificationSink,
    NotificationVariant,
    error_notification,
)
from contaflix.result import Err, Ok, Result

logger = structlog.get_logger(__name__)

ALERTS_TABLE = "alerts"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AlertRegistry:
    """Holds alerts most-recent-first and notifies on high-priority ones.

    Alerts are not persisted and, unless ``auto_evict_expired`` is set,
    stay in the registry past their expiration date; hiding expired
    alerts is left to whoever renders them.

    Usage:
        registry = AlertRegistry(notifier=NotificationCenter())
        alert_id = registry.add_alert(
            title="DCTF vence em 3 dias",
            message="Enviar até 15/05",
            type=AlertType.PRAZO,
            priority=AlertPriority.ALTA,
        )
        registry.acknowledge_alert(alert_id)
    """

    def __init__(
        self,
        notifier: NotificationSink | None = None,
        backend: BackendClient | None = None,
        auto_evict_expired: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._alerts: list[Alert] = []
        self._notifier = notifier
        self._backend = backend
        self._auto_evict_expired = auto_evict_expired
        self._clock = clock
        self.loading = False
        self.error: str | None = None
        self._logger = logger.bind(component="alert_registry")

    @property
    def alerts(self) -> list[Alert]:
        """Get all alerts, most recent first."""
        self._maybe_evict()
        return list(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def get_alert(self, alert_id: str) -> Alert | None:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    # === Mutations ===

    def add_alert(
        self,
        title: str,
        message: str,
        type: AlertType | str,
        priority: AlertPriority | str,
        expiration_date: datetime | str | None = None,
        related_id: str | None = None,
        actions: Iterable[AlertAction] | None = None,
    ) -> str:
        """Register a new alert and return its id.

        A naive ``expiration_date`` is taken as UTC.

        Raises:
            ValueError: If ``type`` or ``priority`` is not a known value, or
                ``expiration_date`` is not a valid ISO timestamp.
        """
        alert = Alert(
            id=uuid4().hex,
            title=title,
            message=message,
            type=AlertType(type),
            priority=AlertPriority(priority),
            date=self._clock(),
            expiration_date=parse_datetime(expiration_date),
            related_id=related_id,
            is_acknowledged=False,
            actions=tuple(actions or ()),
        )
        self._alerts.insert(0, alert)
        self._logger.info(
            "alert_added",
            alert_id=alert.id,
            type=alert.type.value,
            priority=alert.priority.value,
        )

        if alert.priority is AlertPriority.ALTA:
            self._notify(
                Notification(
                    title=alert.title,
                    description=alert.message,
                    variant=NotificationVariant.DESTRUCTIVE,
                    data={"alert_id": alert.id},
                )
            )
        return alert.id

    def acknowledge_alert(self, alert_id: str) -> None:
        """Mark an alert as acknowledged. Unknown ids are ignored."""
        for idx, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                if not alert.is_acknowledged:
                    self._alerts[idx] = replace(alert, is_acknowledged=True)
                    self._logger.debug("alert_acknowledged", alert_id=alert_id)
                return

    def remove_alert(self, alert_id: str) -> bool:
        """Delete an alert whether or not it was acknowledged."""
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.id != alert_id]
        return len(self._alerts) < before

    def clear(self) -> None:
        self._alerts = []

    # === Projections ===

    def filter_alerts_by_type(self, type: AlertType | str) -> list[Alert]:
        wanted = AlertType(type)
        return [a for a in self.alerts if a.type is wanted]

    def filter_alerts_by_priority(self, priority: AlertPriority | str) -> list[Alert]:
        wanted = AlertPriority(priority)
        return [a for a in self.alerts if a.priority is wanted]

    def get_unacknowledged_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if not a.is_acknowledged]

    def get_expired_alerts(self, now: datetime | None = None) -> list[Alert]:
        now = now or self._clock()
        return [a for a in self._alerts if a.is_expired(now)]

    def summary(self) -> dict[str, Any]:
        """Counts for badges and dashboards."""
        alerts = self.alerts
        return {
            "total": len(alerts),
            "unacknowledged": sum(1 for a in alerts if not a.is_acknowledged),
            "critical": sum(
                1 for a in alerts if a.priority is AlertPriority.ALTA and not a.is_acknowledged
            ),
            "by_type": dict(Counter(a.type.value for a in alerts)),
            "by_priority": dict(Counter(a.priority.value for a in alerts)),
        }

    # === Expiry ===

    def evict_expired(self, now: datetime | None = None) -> int:
        """Drop alerts past their expiration date. Returns how many were removed."""
        now = now or self._clock()
        kept = [a for a in self._alerts if not a.is_expired(now)]
        removed = len(self._alerts) - len(kept)
        if removed:
            self._alerts = kept
            self._logger.info("expired_alerts_evicted", count=removed)
        return removed

    def _maybe_evict(self) -> None:
        if self._auto_evict_expired:
            self.evict_expired()

    # === Remote ===

    async def fetch_alerts(self, user_id: str | None = None) -> Result[list[Alert], Exception]:
        """Replace the registry contents with the alerts stored remotely.

        Failures are reported to the user and logged; the registry is left
        empty and an ``Err`` is returned.
        """
        self.loading = True
        self.error = None
        try:
            if self._backend is None:
                raise BackendError("No backend configured for alerts")
            filters = {"user_id": user_id} if user_id else None
            rows = await self._backend.select(
                ALERTS_TABLE, filters=filters, order="created_at", descending=True
            )
            alerts = self._parse_rows(rows)
        except BackendError as e:
            self._alerts = []
            self.error = "Não foi possível carregar os alertas. Tente novamente mais tarde."
            self._logger.error("alerts_fetch_failed", error=str(e), status=e.status_code)
            self._notify(error_notification("Erro ao carregar alertas", self.error))
            return Err(e)
        finally:
            self.loading = False

        self._alerts = alerts
        self._logger.info("alerts_fetched", count=len(alerts))
        return Ok(self.alerts)

    def _parse_rows(self, rows: list[dict[str, Any]]) -> list[Alert]:
        alerts: list[Alert] = []
        for row in rows:
            try:
                alerts.append(Alert.from_row(row))
            except (KeyError, ValueError) as e:
                self._logger.warning("alert_row_skipped", row_id=row.get("id"), error=str(e))
        alerts.sort(key=lambda a: a.date, reverse=True)
        return alerts

    def _notify(self, notification: Notification) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(notification)
        except Exception as e:
            self._logger.error("alert_notification_failed", error=str(e))
