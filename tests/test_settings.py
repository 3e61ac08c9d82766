"""Tests for configuration settings."""

from pathlib import Path

import pytest

from contaflix.config.onboarding_steps import load_onboarding_steps, parse_steps


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    from contaflix.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.environment == "test"
    assert settings.backend_anon_key.get_secret_value() == "anon-key-test"
    assert not settings.is_production


def test_settings_has_defaults():
    """Test that settings has sensible defaults."""
    from contaflix.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.backend_url == "http://localhost:54321"
    assert settings.backend_timeout == 30.0
    assert settings.secure_storage_key.get_secret_value() == "contaflix_secure_key_v1"
    assert settings.secure_storage_prefix == "sec_"
    assert settings.onboarding_ttl_hours == 24.0
    assert isinstance(settings.storage_dir, Path)


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    from contaflix.config.settings import get_settings

    get_settings.cache_clear()

    assert get_settings() is get_settings()


def test_production_flag(monkeypatch):
    """Test that CONTAFLIX_ENV=production is recognised."""
    from contaflix.config.settings import FlatSettings

    monkeypatch.setenv("CONTAFLIX_ENV", "production")

    assert FlatSettings().is_production


def test_app_context_processor():
    """Test that log events are stamped with app and environment."""
    from contaflix.config.logging import add_app_context

    processor = add_app_context("test")

    event = processor(None, "info", {"event": "alerts_fetched"})

    assert event == {"event": "alerts_fetched", "app": "contaflix", "environment": "test"}


def test_app_context_keeps_explicit_values():
    """Test that values bound by the caller win."""
    from contaflix.config.logging import add_app_context

    event = add_app_context("test")(None, "info", {"event": "x", "environment": "staging"})

    assert event["environment"] == "staging"


class TestOnboardingSteps:
    """Tests for the onboarding step definitions."""

    def test_bundled_steps_load(self):
        """Test that the bundled YAML defines the five tour steps."""
        steps = load_onboarding_steps()

        assert [s.id for s in steps] == [
            "welcome",
            "profile",
            "first-client",
            "integrations",
            "completion",
        ]
        assert steps[0].skippable is False
        assert steps[1].skippable is True

    def test_parse_accepts_plain_list(self):
        """Test parsing a top-level list."""
        steps = parse_steps([{"id": "a"}, {"id": "b", "skippable": True}])

        assert steps[0].title == "a"
        assert steps[1].skippable is True

    def test_parse_rejects_duplicate_ids(self):
        """Test that duplicate step ids are an error."""
        with pytest.raises(ValueError, match="duplicate"):
            parse_steps({"steps": [{"id": "a"}, {"id": "a"}]})

    def test_parse_rejects_missing_id(self):
        """Test that steps need an id."""
        with pytest.raises(ValueError, match="missing id"):
            parse_steps({"steps": [{"title": "No id"}]})

    def test_parse_empty(self):
        """Test that empty YAML yields no steps."""
        assert parse_steps(None) == []
