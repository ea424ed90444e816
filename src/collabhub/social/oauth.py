"""OAuth code exchange and profile fetches against the platform APIs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog

from collabhub.domain.types import Platform
from collabhub.resilience.retry import resilient_api_call
from collabhub.social.models import ProfileSnapshot, TokenGrant
from collabhub.social.platforms import PlatformConfig
from collabhub.storage.schema import utc_timestamp

logger = structlog.get_logger()


def _expiry(expires_in: Any) -> str | None:
    if not isinstance(expires_in, (int, float)) or expires_in <= 0:
        return None
    return utc_timestamp(datetime.now(tz=UTC) + timedelta(seconds=expires_in))


async def exchange_code(
    http: httpx.AsyncClient,
    platform: Platform,
    config: PlatformConfig,
    *,
    code: str,
    client_id: str,
    client_secret: str,
    redirect_to: str,
) -> TokenGrant:
    """Trade an authorization code for tokens.

    Instagram and YouTube take a form body; TikTok takes JSON and nests its
    tokens under ``data``.

    Raises:
        httpx.HTTPStatusError: If the platform rejects the exchange.
    """
    body = {
        config.client_id_param: client_id,
        "client_secret": client_secret,
        "grant_type": "authorization_code",
        "redirect_uri": redirect_to,
        "code": code,
        **config.token_params,
    }
    if config.token_request == "json":
        response = await http.post(config.token_url, json=body)
    else:
        response = await http.post(config.token_url, data=body)
    response.raise_for_status()

    payload: dict[str, Any] = response.json()
    if platform == Platform.TIKTOK:
        payload = payload.get("data") or {}

    grant = TokenGrant(
        access_token=payload.get("access_token", ""),
        refresh_token=payload.get("refresh_token"),
        expires_at=_expiry(payload.get("expires_in")),
    )
    logger.info(
        "OAuth code exchanged",
        platform=platform,
        has_refresh=grant.refresh_token is not None,
    )
    return grant


def parse_platform_profile(platform: Platform, payload: dict[str, Any]) -> ProfileSnapshot:
    """Map a platform's profile response onto a ``ProfileSnapshot``.

    Instagram's basic profile carries no follower counts.  YouTube reports
    subscribers as followers and total views as likes.
    """
    if platform == Platform.TIKTOK:
        user = (payload.get("data") or {}).get("user") or {}
        return ProfileSnapshot(
            handle=user.get("display_name"),
            platform_account_id=user.get("open_id"),
            followers=user.get("follower_count"),
            likes=user.get("likes_count"),
            raw_profile=user or None,
        )
    if platform == Platform.YOUTUBE:
        items = payload.get("items") or []
        channel = items[0] if items else {}
        snippet = channel.get("snippet") or {}
        stats = channel.get("statistics") or {}
        return ProfileSnapshot(
            handle=snippet.get("customUrl") or snippet.get("title"),
            platform_account_id=channel.get("id"),
            followers=stats.get("subscriberCount") or None,
            likes=stats.get("viewCount") or None,
            raw_profile=channel or None,
        )
    return ProfileSnapshot(
        handle=payload.get("username"),
        platform_account_id=payload.get("id"),
        raw_profile=payload,
    )


@resilient_api_call("social_profile", retry_on=(httpx.TransportError,))
async def fetch_profile(
    http: httpx.AsyncClient,
    platform: Platform,
    config: PlatformConfig,
    access_token: str,
) -> ProfileSnapshot:
    """Read the connected account's profile with its access token.

    Transport errors are retried; HTTP error statuses are not.

    Raises:
        httpx.HTTPStatusError: If the platform returns a non-2xx status.
    """
    params = dict(config.profile_params)
    headers: dict[str, str] = {}
    if config.profile_auth == "query":
        params["access_token"] = access_token
    else:
        headers["Authorization"] = f"Bearer {access_token}"

    response = await http.get(config.profile_url, params=params, headers=headers)
    response.raise_for_status()
    return parse_platform_profile(platform, response.json())
