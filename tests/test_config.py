"""Tests for centralized Settings, credential validation, and get_settings cache.

Covers: defaults, env-override, production credential gate, dev-mode warnings,
and lru_cache behavior.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import SecretStr

from collabhub.config import Settings, get_settings, validate_credentials

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear get_settings lru_cache before each test."""
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Settings defaults
# ---------------------------------------------------------------------------

class TestSettingsDefaults:
    """Verify that Settings fields have the expected default values."""

    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.port == 8000
        assert s.database_path == Path("data/collabhub.db")
        assert s.session_ttl_days == 7
        assert s.idle_minutes == 10
        assert s.outreach_limit == 3
        assert s.candidate_limit == 10
        assert s.social_platforms_config is None
        assert s.gmail_token_path == Path("token.json")

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("IDLE_MINUTES", "30")
        monkeypatch.setenv("CRON_SECRET", "shh")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.port == 9090
        assert s.idle_minutes == 30
        assert s.cron_secret.get_secret_value() == "shh"

    def test_secrets_are_masked(self) -> None:
        s = Settings(
            _env_file=None,  # type: ignore[call-arg]
            anthropic_api_key=SecretStr("sk-ant-real"),
        )

        assert "sk-ant-real" not in repr(s)


# ---------------------------------------------------------------------------
# Credential validation
# ---------------------------------------------------------------------------

class TestValidateCredentials:
    """Verify validate_credentials behaviour in production and dev modes."""

    def test_production_missing_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        settings = Settings(_env_file=None, production=True)  # type: ignore[call-arg]

        with pytest.raises(SystemExit) as exc_info:
            validate_credentials(settings)

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "SECRET_KEY" in err
        assert "ANTHROPIC_API_KEY" in err
        assert "CRON_SECRET" in err

    def test_production_valid_passes(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=True,
            secret_key=SecretStr("k"),
            anthropic_api_key=SecretStr("sk-ant"),
            cron_secret=SecretStr("c"),
        )

        # Should NOT raise or exit
        validate_credentials(settings)

    def test_dev_mode_does_not_exit(self) -> None:
        settings = Settings(_env_file=None, production=False)  # type: ignore[call-arg]

        validate_credentials(settings)


# ---------------------------------------------------------------------------
# get_settings cache
# ---------------------------------------------------------------------------

class TestGetSettings:
    def test_returns_cached_instance(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        get_settings.cache_clear()
        monkeypatch.setenv("PORT", "7001")

        second = get_settings()

        assert second is not first
        assert second.port == 7001
