"""Alerts shown to accountants and the registry that holds them."""

from contaflix.alerts.registry import ALERTS_TABLE, AlertRegistry
from contaflix.alerts.types import Alert, AlertAction, AlertPriority, AlertType

__all__ = [
    "Alert",
    "AlertAction",
    "AlertPriority",
    "AlertType",
    "AlertRegistry",
    "ALERTS_TABLE",
]
