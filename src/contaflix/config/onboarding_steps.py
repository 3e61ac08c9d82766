"""Onboarding wizard step definitions loader."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml  # type: ignore[import-untyped]


@dataclass(frozen=True)
class StepDefinition:
    """A single step of the onboarding wizard."""

    id: str
    title: str
    description: str = ""
    skippable: bool = False


def parse_steps(data: object) -> list[StepDefinition]:
    """Validate raw YAML data and build step definitions."""
    if data is None:
        return []

    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get("steps") or []
    else:
        raise ValueError("onboarding steps must be a list or mapping with 'steps'")

    if not isinstance(items, list):
        raise ValueError("steps must be a list")

    results: list[StepDefinition] = []
    seen: set[str] = set()
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"steps[{idx}] must be a mapping")
        step_id = item.get("id")
        if not step_id:
            raise ValueError(f"steps[{idx}] missing id")
        step_id = str(step_id)
        if step_id in seen:
            raise ValueError(f"steps[{idx}] duplicate id {step_id!r}")
        seen.add(step_id)

        skippable = item.get("skippable", False)
        if not isinstance(skippable, bool):
            raise ValueError(f"steps[{idx}] skippable must be a boolean")

        results.append(
            StepDefinition(
                id=step_id,
                title=str(item.get("title") or step_id),
                description=str(item.get("description") or ""),
                skippable=skippable,
            )
        )

    return results


@lru_cache
def load_onboarding_steps() -> tuple[StepDefinition, ...]:
    """Load the onboarding step list from YAML."""
    steps_path = Path(__file__).resolve().parent / "onboarding_steps.yaml"
    if not steps_path.exists():
        return ()

    raw = steps_path.read_text(encoding="utf-8")
    return tuple(parse_steps(yaml.safe_load(raw)))
