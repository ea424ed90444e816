"""Per-platform OAuth configuration loaded from YAML.

The bundled ``platforms.yaml`` can be replaced by pointing
``SOCIAL_PLATFORMS_CONFIG`` at another file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from urllib.parse import urlencode

import structlog
import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field

from collabhub.config import Settings
from collabhub.domain.errors import CollabHubError
from collabhub.domain.types import Platform

logger = structlog.get_logger()

_DEFAULT_CONFIG_PATH = Path(__file__).with_name("platforms.yaml")

CALLBACK_PATH = "/api/social/callback"


class PlatformConfig(BaseModel):
    """OAuth endpoints and request shapes for one platform."""

    client_id_param: str = "client_id"
    authorize_url: str
    scope: str
    authorize_params: dict[str, str] = Field(default_factory=dict)
    token_url: str
    token_request: Literal["form", "json"] = "form"
    token_params: dict[str, str] = Field(default_factory=dict)
    profile_url: str
    profile_params: dict[str, str] = Field(default_factory=dict)
    profile_auth: Literal["bearer", "query"] = "bearer"


def load_platform_configs(config_path: Path | None = None) -> dict[Platform, PlatformConfig]:
    """Load platform OAuth settings.

    Args:
        config_path: YAML file to read.  Defaults to the bundled
            ``platforms.yaml``.

    Returns:
        A mapping of every configured platform to its settings.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Social platforms config not found: {path}")

    with path.open() as f:
        raw = yaml.safe_load(f) or {}

    configs = {Platform(name): PlatformConfig.model_validate(entry) for name, entry in raw.items()}
    logger.debug("Loaded social platform config", path=str(path), platforms=sorted(configs))
    return configs


def client_credentials(settings: Settings, platform: Platform) -> tuple[str, str]:
    """Return the OAuth client id and secret for *platform*.

    Raises:
        CollabHubError: If either value is not configured.
    """
    credentials = {
        Platform.INSTAGRAM: (
            settings.instagram_client_id,
            settings.instagram_client_secret.get_secret_value(),
        ),
        Platform.TIKTOK: (
            settings.tiktok_client_key,
            settings.tiktok_client_secret.get_secret_value(),
        ),
        Platform.YOUTUBE: (
            settings.youtube_client_id,
            settings.youtube_client_secret.get_secret_value(),
        ),
    }
    client_id, client_secret = credentials[platform]
    if not client_id or not client_secret:
        raise CollabHubError(f"{platform.value} OAuth credentials are not configured")
    return client_id, client_secret


def redirect_uri(settings: Settings) -> str:
    return settings.public_base_url.rstrip("/") + CALLBACK_PATH


def build_authorize_url(
    config: PlatformConfig, client_id: str, redirect_to: str, state: str
) -> str:
    """Build the consent-screen URL the influencer is sent to."""
    params = {
        config.client_id_param: client_id,
        "redirect_uri": redirect_to,
        "response_type": "code",
        "scope": config.scope,
        **config.authorize_params,
        "state": state,
    }
    return f"{config.authorize_url}?{urlencode(params)}"
