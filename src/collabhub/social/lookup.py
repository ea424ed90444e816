"""Public profile lookup through the SocialBlade API.

Influencers can paste a profile URL (or a bare ``@handle``) instead of
connecting an account over OAuth; the statistics are read from SocialBlade.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from collabhub.domain.errors import SocialPlatformError
from collabhub.domain.types import Platform
from collabhub.resilience.retry import resilient_api_call
from collabhub.social.models import ProfileSnapshot

logger = structlog.get_logger()

SOCIALBLADE_BASE_URL = "https://matrix.sbapi.dev/b"

_PLATFORM_HOSTS: tuple[tuple[str, Platform], ...] = (
    ("instagram.com", Platform.INSTAGRAM),
    ("tiktok.com", Platform.TIKTOK),
    ("youtube.com", Platform.YOUTUBE),
    ("youtu.be", Platform.YOUTUBE),
)

_YOUTUBE_PREFIXES = frozenset({"channel", "c", "user"})


def infer_platform(url_or_handle: str) -> Platform | None:
    """Guess the platform from a profile URL; bare handles give ``None``."""
    lower = url_or_handle.lower()
    for host, platform in _PLATFORM_HOSTS:
        if host in lower:
            return platform
    return None


def extract_handle(url_or_handle: str, platform: Platform) -> str | None:
    """Pull the account handle out of a profile URL or ``@handle``.

    YouTube URLs may take the ``/channel/<id>``, ``/c/<name>``,
    ``/user/<name>``, or ``/@name`` forms.
    """
    if "http" not in url_or_handle:
        return url_or_handle.strip().removeprefix("@").strip() or None

    parts = [part for part in urlsplit(url_or_handle.strip()).path.split("/") if part]
    if not parts:
        return None
    if platform == Platform.YOUTUBE and parts[0] in _YOUTUBE_PREFIXES:
        if len(parts) < 2:
            return None
        return parts[1].removeprefix("@") or None
    return parts[0].removeprefix("@") or None


def map_socialblade_profile(platform: Platform, raw: dict[str, Any]) -> ProfileSnapshot:
    """Map a SocialBlade statistics response onto a ``ProfileSnapshot``.

    YouTube reports subscribers as followers and views as likes.  Instagram
    has no like total.
    """
    data = raw.get("data") or raw
    if not isinstance(data, dict):
        data = raw
    identity = data.get("id") or {}
    if not isinstance(identity, dict):
        identity = {"id": identity}
    statistics = data.get("statistics") or {}
    stats = statistics.get("total") or statistics

    if platform == Platform.YOUTUBE:
        handle = (
            identity.get("handle")
            or identity.get("cusername")
            or identity.get("username")
            or identity.get("display_name")
        )
        followers, likes = stats.get("subscribers"), stats.get("views")
    else:
        handle = identity.get("username") or identity.get("display_name")
        followers = stats.get("followers")
        likes = stats.get("likes") if platform == Platform.TIKTOK else None

    return ProfileSnapshot(
        handle=handle,
        platform_account_id=identity.get("id"),
        followers=followers,
        likes=likes,
        raw_profile=raw,
    )


def _lookup_succeeded(payload: dict[str, Any]) -> bool:
    status = payload.get("status") or {}
    if status.get("success") in (True, "true"):
        return True
    return bool(payload.get("data") or payload.get("id"))


class SocialBladeClient:
    """Minimal async client for SocialBlade's statistics endpoint.

    Args:
        http: Shared ``httpx.AsyncClient``.
        client_id: SocialBlade API client id.
        access_token: SocialBlade API token.
    """

    def __init__(self, http: httpx.AsyncClient, client_id: str, access_token: str) -> None:
        self._http = http
        self._client_id = client_id
        self._access_token = access_token

    @resilient_api_call("socialblade", retry_on=(httpx.TransportError,))
    async def _get_statistics(self, platform: Platform, handle: str) -> httpx.Response:
        return await self._http.get(
            f"{SOCIALBLADE_BASE_URL}/{platform.value}/statistics",
            params={"query": handle, "history": "default", "allow-stale": "false"},
            headers={"clientid": self._client_id, "token": self._access_token},
        )

    async def lookup(self, platform: Platform, handle: str) -> ProfileSnapshot:
        """Fetch public statistics for *handle*.

        Raises:
            SocialPlatformError: If SocialBlade is unreachable or reports a
                failed lookup.
        """
        try:
            response = await self._get_statistics(platform, handle)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("SocialBlade request failed", platform=platform, handle=handle)
            raise SocialPlatformError("Failed to fetch profile", platform=platform) from exc

        if not isinstance(payload, dict):
            logger.error(
                "SocialBlade returned a non-object payload",
                platform=platform,
                handle=handle,
                payload_type=type(payload).__name__,
            )
            raise SocialPlatformError("Failed to fetch profile", platform=platform)

        if not _lookup_succeeded(payload):
            status = payload.get("status") or {}
            message = status.get("error") or "Lookup failed"
            if status.get("status"):
                message = f"{message} (code {status['status']})"
            logger.error(
                "SocialBlade lookup failed",
                platform=platform,
                handle=handle,
                status=status,
            )
            raise SocialPlatformError(message, platform=platform)

        return map_socialblade_profile(platform, payload)
