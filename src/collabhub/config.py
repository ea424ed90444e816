"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_credentials()``
startup gate that enforces secret presence in production mode.

This module imports nothing from the ``collabhub`` package so every other
module can depend on it without import cycles.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields prevent accidental leaks in logs or error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000
    public_base_url: str = "http://localhost:8000"

    # -- Storage ---------------------------------------------------------------
    database_path: Path = Path("data/collabhub.db")

    # -- Auth ------------------------------------------------------------------
    secret_key: SecretStr = SecretStr("")
    session_ttl_days: int = 7
    cron_secret: SecretStr = SecretStr("")

    # -- LLM / Anthropic -------------------------------------------------------
    anthropic_api_key: SecretStr = SecretStr("")

    # -- Negotiation and matching ----------------------------------------------
    idle_minutes: int = 10
    outreach_limit: int = 3
    candidate_limit: int = 10

    # -- Social platforms ------------------------------------------------------
    instagram_client_id: str = ""
    instagram_client_secret: SecretStr = SecretStr("")
    tiktok_client_key: str = ""
    tiktok_client_secret: SecretStr = SecretStr("")
    youtube_client_id: str = ""
    youtube_client_secret: SecretStr = SecretStr("")
    social_platforms_config: Path | None = None

    # -- SocialBlade -----------------------------------------------------------
    socialblade_client_id: str = ""
    socialblade_access_token: SecretStr = SecretStr("")

    # -- Gmail notifications ---------------------------------------------------
    gmail_token_path: Path = Path("token.json")
    gmail_credentials_path: Path = Path("credentials.json")
    notification_sender: str = ""

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list, never the exception itself,
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Enforce secret presence at startup.

    In **production** mode the application exits with a clear error block
    if any required secret is missing.  In **development** mode each missing
    secret is logged as a warning and startup continues.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.secret_key.get_secret_value():
        errors.append("SECRET_KEY is empty or not set")

    if not settings.anthropic_api_key.get_secret_value():
        errors.append("ANTHROPIC_API_KEY is empty or not set")

    if not settings.cron_secret.get_secret_value():
        errors.append("CRON_SECRET is empty or not set")

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required credentials for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
