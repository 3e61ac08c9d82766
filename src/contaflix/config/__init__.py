"""Configuration module for the ContaFlix state layer."""

from contaflix.config.logging import configure_logging, get_logger
from contaflix.config.onboarding_steps import StepDefinition, load_onboarding_steps
from contaflix.config.settings import FlatSettings, get_settings

__all__ = [
    "FlatSettings",
    "StepDefinition",
    "get_settings",
    "configure_logging",
    "get_logger",
    "load_onboarding_steps",
]
