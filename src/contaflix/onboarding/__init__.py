"""Onboarding progress persistence and the onboarding tour."""

from contaflix.onboarding.store import (
    DEFAULT_STORAGE_KEY,
    STEP_PAYLOAD_FIELDS,
    OnboardingData,
    OnboardingStore,
)
from contaflix.onboarding.wizard import OnboardingWizard, WizardStep

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "STEP_PAYLOAD_FIELDS",
    "OnboardingData",
    "OnboardingStore",
    "OnboardingWizard",
    "WizardStep",
]
