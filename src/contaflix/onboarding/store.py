"""Time-boxed persisted state for the multi-step onboarding form."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from copy import deepcopy
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from contaflix.config import FlatSettings, get_settings
from contaflix.storage.safe import SafeStorage

logger = structlog.get_logger(__name__)

DEFAULT_STORAGE_KEY = "onboarding_progress"

STEP_PAYLOAD_FIELDS = (
    "office_data",
    "primeiro_cliente_data",
    "fiscal_data",
    "bancaria_data",
    "equipe_data",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OnboardingData:
    """Snapshot of the onboarding form, one payload per form step."""

    current_step: int = 0
    office_data: dict[str, Any] | None = None
    primeiro_cliente_data: dict[str, Any] | None = None
    fiscal_data: dict[str, Any] | None = None
    bancaria_data: dict[str, Any] | None = None
    equipe_data: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"current_step": self.current_step}
        for name in STEP_PAYLOAD_FIELDS:
            data[name] = getattr(self, name)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OnboardingData:
        """Build from persisted data; raises ValueError on malformed input."""
        step = data.get("current_step", 0)
        if not isinstance(step, int) or isinstance(step, bool):
            raise ValueError(f"current_step must be an int, got {step!r}")

        raw_ts = data.get("timestamp")
        if not isinstance(raw_ts, str):
            raise ValueError("timestamp missing")
        timestamp = datetime.fromisoformat(raw_ts)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        payloads: dict[str, Any] = {}
        for name in STEP_PAYLOAD_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"{name} must be a mapping")
            payloads[name] = value

        return cls(current_step=step, timestamp=timestamp, **payloads)


_UPDATABLE = {f.name for f in fields(OnboardingData)} - {"timestamp"}


class OnboardingStore:
    """Passive cache of onboarding progress with a time-to-live.

    Every mutation is written through to storage immediately. Records older
    than the TTL are discarded on ``load()``. The store does not validate
    step ordering; callers decide what a step number means.
    """

    def __init__(
        self,
        storage: SafeStorage,
        key: str = DEFAULT_STORAGE_KEY,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
        settings: FlatSettings | None = None,
    ):
        if ttl is None:
            settings = settings or get_settings()
            ttl = timedelta(hours=settings.onboarding_ttl_hours)
        self._storage = storage
        self._key = key
        self._ttl = ttl
        self._clock = clock
        self._state = OnboardingData(timestamp=clock())
        self._logger = logger.bind(component="onboarding_store", key=key)

    @property
    def state(self) -> OnboardingData:
        """Get a copy of the current state; payloads are copied too."""
        return deepcopy(self._state)

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def load(self) -> OnboardingData:
        """Restore persisted progress, dropping it if expired or unreadable."""
        raw = self._storage.get_item(self._key)
        if raw is None:
            self._state = OnboardingData(timestamp=self._clock())
            return self.state

        try:
            restored = OnboardingData.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as e:
            self._logger.warning("onboarding_progress_corrupted", error=str(e))
            self._discard()
            return self.state

        age = self._clock() - restored.timestamp
        if age > self._ttl:
            self._logger.info("onboarding_progress_expired", age_seconds=age.total_seconds())
            self._discard()
            return self.state

        self._state = restored
        self._logger.debug("onboarding_progress_loaded", current_step=restored.current_step)
        return self.state

    def update(self, partial: Mapping[str, Any] | None = None, **changes: Any) -> OnboardingData:
        """Merge ``partial`` into the state and persist with a fresh timestamp.

        Nothing changes unless the merged record can be stored and loaded
        back.

        Raises:
            ValueError: If a field name is unknown, current_step is not an
                int, or a payload is not a JSON-serialisable mapping.
        """
        merged = {**(partial or {}), **changes}
        unknown = set(merged) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown onboarding fields: {sorted(unknown)}")
        step = merged.get("current_step", self._state.current_step)
        if not isinstance(step, int) or isinstance(step, bool):
            raise ValueError(f"current_step must be an int, got {step!r}")
        for name in STEP_PAYLOAD_FIELDS:
            value = merged.get(name)
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"{name} must be a mapping")

        candidate = replace(self._state, **merged, timestamp=self._clock())
        try:
            payload = json.dumps(candidate.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Onboarding data is not serialisable: {e}") from e

        self._state = deepcopy(candidate)
        if not self._storage.set_item(self._key, payload):
            self._logger.warning("onboarding_progress_not_saved")
        return self.state

    def clear(self) -> None:
        """Reset to the zero state and delete the persisted record."""
        self._discard()

    def has_progress(self) -> bool:
        if self._state.current_step > 0:
            return True
        return any(getattr(self._state, name) is not None for name in STEP_PAYLOAD_FIELDS)

    def _discard(self) -> None:
        self._state = OnboardingData(timestamp=self._clock())
        self._storage.remove_item(self._key)
