"""Alert type definitions.

Alerts are produced by fiscal deadline checks, document processing and
reconciliation jobs, and shown to accountants until acknowledged.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class AlertType(str, Enum):
    """What an alert is about."""

    PRAZO = "prazo"  # filing or payment deadline
    DIVERGENCIA = "divergencia"  # ledger vs bank statement mismatch
    DOCUMENTO = "documento"  # documents awaiting review
    FISCAL = "fiscal"
    INFO = "info"


class AlertPriority(str, Enum):
    """Urgency of an alert. Only ALTA raises a toast."""

    ALTA = "alta"
    MEDIA = "media"
    BAIXA = "baixa"


@dataclass(frozen=True)
class AlertAction:
    """A button attached to an alert."""

    label: str
    action: Callable[[], Any]


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO string or datetime; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class Alert:
    """An alert held by the registry.

    Instances are immutable; acknowledging an alert replaces it with a copy
    whose ``is_acknowledged`` is True.
    """

    id: str
    title: str
    message: str
    type: AlertType
    priority: AlertPriority
    date: datetime = field(default_factory=lambda: datetime.now(UTC))
    expiration_date: datetime | None = None
    related_id: str | None = None
    is_acknowledged: bool = False
    actions: tuple[AlertAction, ...] = ()

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expiration_date is None:
            return False
        return (now or datetime.now(UTC)) > self.expiration_date

    def to_dict(self) -> dict[str, Any]:
        """Serialize alert to a dictionary (actions are reduced to labels)."""
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "priority": self.priority.value,
            "date": self.date.isoformat(),
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "related_id": self.related_id,
            "is_acknowledged": self.is_acknowledged,
            "actions": [a.label for a in self.actions],
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Alert:
        """Build an alert from a backend row.

        Raises:
            ValueError: If a required column is missing or has a bad value.
            KeyError: If ``id`` is missing.
        """
        date = parse_datetime(row.get("date") or row.get("created_at"))
        related = row.get("related_id")
        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            message=str(row.get("message") or ""),
            type=AlertType(row.get("type")),
            priority=AlertPriority(row.get("priority")),
            date=date or datetime.now(UTC),
            expiration_date=parse_datetime(row.get("expiration_date")),
            related_id=str(related) if related is not None else None,
            is_acknowledged=bool(row.get("is_acknowledged", False)),
        )
