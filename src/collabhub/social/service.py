"""Influencer social accounts: OAuth connections, sync, manual entry, lookup."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from collabhub.auth.security import sign_oauth_state, verify_oauth_state
from collabhub.config import Settings
from collabhub.domain.errors import (
    CollabHubError,
    InvalidRequestError,
    NotFoundError,
    SocialPlatformError,
)
from collabhub.domain.models import SocialAccount, User
from collabhub.domain.types import Platform, parse_platform
from collabhub.social.lookup import SocialBladeClient, extract_handle, infer_platform
from collabhub.social.models import ManualAccountInput, ProfileSnapshot
from collabhub.social.oauth import exchange_code, fetch_profile
from collabhub.social.platforms import (
    PlatformConfig,
    build_authorize_url,
    client_credentials,
    redirect_uri,
)
from collabhub.storage.social import SocialAccountStore

logger = structlog.get_logger()


class SocialAccountService:
    """Connects and refreshes the social profiles shown to businesses.

    Args:
        accounts: Social account store.
        settings: Application settings (OAuth credentials, base URL, secret).
        platforms: OAuth configuration per platform.
        http: Shared async HTTP client for platform calls.
        socialblade: SocialBlade client, or ``None`` when not configured.
    """

    def __init__(
        self,
        *,
        accounts: SocialAccountStore,
        settings: Settings,
        platforms: dict[Platform, PlatformConfig],
        http: httpx.AsyncClient,
        socialblade: SocialBladeClient | None = None,
    ) -> None:
        self._accounts = accounts
        self._settings = settings
        self._platforms = platforms
        self._http = http
        self._socialblade = socialblade

    def _config(self, platform: Platform) -> PlatformConfig:
        config = self._platforms.get(platform)
        if config is None:
            raise InvalidRequestError("Invalid platform")
        return config

    def _secret_key(self) -> str:
        return self._settings.secret_key.get_secret_value()

    async def list_accounts(self, user: User) -> list[SocialAccount]:
        return await asyncio.to_thread(self._accounts.list_by_user, user.id)

    def connect_url(self, user: User, platform: Platform) -> str:
        """Build the OAuth consent URL with a signed state for *user*."""
        client_id, _ = client_credentials(self._settings, platform)
        state = sign_oauth_state(platform, user.id, self._secret_key())
        return build_authorize_url(
            self._config(platform), client_id, redirect_uri(self._settings), state
        )

    async def complete_connection(self, code: str | None, state: str | None) -> SocialAccount:
        """Finish an OAuth connection started by :meth:`connect_url`.

        Raises:
            AuthenticationError: If *state* is missing or was not signed by us.
            InvalidRequestError: If *code* is missing.
            SocialPlatformError: If the platform rejects the exchange or the
                profile request.
        """
        platform, user_id = verify_oauth_state(state or "", self._secret_key())
        if not code:
            raise InvalidRequestError("Missing code")

        config = self._config(platform)
        client_id, client_secret = client_credentials(self._settings, platform)
        try:
            grant = await exchange_code(
                self._http,
                platform,
                config,
                code=code,
                client_id=client_id,
                client_secret=client_secret,
                redirect_to=redirect_uri(self._settings),
            )
            profile = await fetch_profile(self._http, platform, config, grant.access_token)
        except httpx.HTTPError as exc:
            logger.error("Social connection failed", platform=platform, error=str(exc))
            raise SocialPlatformError("Failed to connect account", platform=platform) from exc

        account = await asyncio.to_thread(
            lambda: self._accounts.upsert(
                user_id,
                platform,
                **profile.model_dump(),
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                expires_at=grant.expires_at,
            )
        )
        await asyncio.to_thread(self._accounts.touch_sync, user_id, platform)
        logger.info("Social account connected", user_id=user_id, platform=platform)
        return account

    async def sync(self, user: User, platform: Platform) -> SocialAccount:
        """Refresh a connected account's profile with its stored token.

        Values the platform does not return keep their previous state.

        Raises:
            NotFoundError: If the account is missing or has no token.
            SocialPlatformError: If the platform request fails.
        """
        account = await asyncio.to_thread(self._accounts.get_account, user.id, platform)
        if account is None or not account.access_token:
            raise NotFoundError("Account not connected")

        try:
            fresh = await fetch_profile(
                self._http, platform, self._config(platform), account.access_token
            )
        except httpx.HTTPError as exc:
            logger.error("Social sync failed", platform=platform, error=str(exc))
            raise SocialPlatformError("Failed to sync account", platform=platform) from exc

        updated = await asyncio.to_thread(
            lambda: self._accounts.touch_sync(
                user.id,
                platform,
                handle=fresh.handle or account.handle,
                platform_account_id=fresh.platform_account_id or account.platform_account_id,
                followers=fresh.followers if fresh.followers is not None else account.followers,
                likes=fresh.likes if fresh.likes is not None else account.likes,
                raw_profile=fresh.raw_profile or account.raw_profile,
            )
        )
        logger.info("Social account synced", user_id=user.id, platform=platform)
        return updated or account

    async def save_manual(self, user: User, payload: ManualAccountInput) -> SocialAccount:
        """Store a profile typed in by the influencer.

        Raises:
            InvalidRequestError: If the handle is blank.
        """
        handle = (payload.handle or "").strip()
        if not handle:
            raise InvalidRequestError("Handle is required")

        await asyncio.to_thread(
            lambda: self._accounts.upsert(
                user.id,
                payload.platform,
                handle=handle,
                platform_account_id=None,
                followers=payload.followers,
                likes=payload.likes,
                raw_profile={"manual_url": payload.url} if payload.url else None,
            )
        )
        account = await asyncio.to_thread(self._accounts.touch_sync, user.id, payload.platform)
        if account is None:
            raise NotFoundError("Account not connected")
        logger.info("Social account saved manually", user_id=user.id, platform=payload.platform)
        return account

    async def lookup(self, user: User, url: str | None, platform: str | None) -> SocialAccount:
        """Look a public profile up on SocialBlade and store it.

        Raises:
            InvalidRequestError: If the URL is missing, names no supported
                platform, or has no recognizable handle.
            CollabHubError: If SocialBlade credentials are not configured.
            SocialPlatformError: If SocialBlade fails.
        """
        if not url or not url.strip():
            raise InvalidRequestError("url is required")
        resolved = parse_platform(platform) or infer_platform(url)
        if resolved is None:
            raise InvalidRequestError(
                "Unsupported platform URL. Please include full profile link."
            )
        handle = extract_handle(url, resolved)
        if not handle:
            raise InvalidRequestError("Could not parse handle from URL")
        if self._socialblade is None:
            raise CollabHubError(
                "SOCIALBLADE_CLIENT_ID and SOCIALBLADE_ACCESS_TOKEN are required"
            )

        profile: ProfileSnapshot = await self._socialblade.lookup(resolved, handle)
        account = await asyncio.to_thread(
            lambda: self._accounts.upsert(user.id, resolved, **profile.model_dump())
        )
        logger.info("Social profile looked up", user_id=user.id, platform=resolved)
        return account

    async def disconnect(self, user: User, platform: Platform) -> None:
        await asyncio.to_thread(self._accounts.delete, user.id, platform)
        logger.info("Social account removed", user_id=user.id, platform=platform)
