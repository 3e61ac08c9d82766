"""Step navigator for the first-login onboarding tour."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from contaflix.config import StepDefinition, load_onboarding_steps
from contaflix.storage.safe import SafeStorage
from contaflix.timers import TimerManager

logger = structlog.get_logger(__name__)


@dataclass
class WizardStep:
    """A step of the tour plus its completion flag."""

    definition: StepDefinition
    completed: bool = False

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def skippable(self) -> bool:
        return self.definition.skippable


class OnboardingWizard:
    """Tracks which tour step a user is on and whether the tour is done.

    Progress is saved per user as ``{"step_index", "completed_steps"}``;
    finishing or skipping the tour stores a completion flag instead.
    """

    def __init__(
        self,
        storage: SafeStorage,
        user_id: str,
        steps: Sequence[StepDefinition] | None = None,
        timers: TimerManager | None = None,
        advance_delay: float = 0.5,
    ):
        self._storage = storage
        self.user_id = user_id
        self._definitions = tuple(steps) if steps is not None else load_onboarding_steps()
        if not self._definitions:
            raise ValueError("onboarding wizard needs at least one step")
        self._steps = [WizardStep(d) for d in self._definitions]
        self._timers = timers
        self._advance_delay = advance_delay
        self.current_step = 0
        self.is_active = False
        self._logger = logger.bind(component="onboarding_wizard", user_id=user_id)

    @property
    def progress_key(self) -> str:
        return f"onboarding_progress_{self.user_id}"

    @property
    def completed_key(self) -> str:
        return f"onboarding_completed_{self.user_id}"

    @property
    def steps(self) -> list[WizardStep]:
        return list(self._steps)

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def progress(self) -> float:
        """Percentage of the tour reached, counting the current step."""
        return (self.current_step + 1) / self.total_steps * 100

    def is_completed(self) -> bool:
        return self._storage.get_item(self.completed_key) is not None

    def resume(self) -> bool:
        """Activate the tour for a user who has not finished it.

        Restores saved progress when present. Returns whether the tour is
        active afterwards.
        """
        if self.is_completed():
            self.is_active = False
            return False

        raw = self._storage.get_item(self.progress_key)
        if raw is not None:
            try:
                saved = json.loads(raw)
                step_index = int(saved["step_index"])
                completed = set(saved.get("completed_steps") or [])
            except (ValueError, TypeError, KeyError) as e:
                self._logger.warning("wizard_progress_corrupted", error=str(e))
                self._storage.remove_item(self.progress_key)
            else:
                self.current_step = min(max(step_index, 0), self.total_steps - 1)
                for step in self._steps:
                    step.completed = step.id in completed

        self.is_active = True
        return True

    def start(self) -> None:
        """Restart the tour from the first step with nothing completed."""
        self.is_active = True
        self.current_step = 0
        self._steps = [WizardStep(d) for d in self._definitions]
        self._save()

    def next_step(self) -> None:
        if self.current_step < self.total_steps - 1:
            self.current_step += 1
            self._save()

    def previous_step(self) -> None:
        if self.current_step > 0:
            self.current_step -= 1
            self._save()

    def skip_step(self) -> bool:
        """Advance past the current step if it is skippable."""
        if not self._steps[self.current_step].skippable:
            return False
        self.next_step()
        return True

    def complete_step(self, step_id: str) -> None:
        """Mark a step as done, moving on when it is the current one."""
        matched = False
        for step in self._steps:
            if step.id == step_id:
                step.completed = True
                matched = True
        if not matched:
            self._logger.warning("unknown_wizard_step", step_id=step_id)
            return

        if self._steps[self.current_step].id != step_id:
            self._save()
            return
        if self._timers is not None:
            self._save()
            self._timers.set_timeout(self.next_step, self._advance_delay)
        else:
            self.next_step()
            self._save()

    def finish(self) -> None:
        self._mark_done("finished")

    def skip_onboarding(self) -> None:
        self._mark_done("skipped")

    def _mark_done(self, how: str) -> None:
        self.is_active = False
        self._storage.remove_item(self.progress_key)
        self._storage.set_item(self.completed_key, "true")
        self._logger.info("onboarding_done", how=how)

    def _save(self) -> None:
        payload = {
            "step_index": self.current_step,
            "completed_steps": [s.id for s in self._steps if s.completed],
        }
        self._storage.set_item(self.progress_key, json.dumps(payload))
