"""Tests for SocialAccountService with platform APIs behind httpx.MockTransport."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from collabhub.auth.security import sign_oauth_state, verify_oauth_state
from collabhub.config import Settings
from collabhub.domain.errors import (
    AuthenticationError,
    CollabHubError,
    InvalidRequestError,
    NotFoundError,
    SocialPlatformError,
)
from collabhub.domain.models import User
from collabhub.domain.types import Platform
from collabhub.social.lookup import SocialBladeClient
from collabhub.social.models import ManualAccountInput, ProfileSnapshot
from collabhub.social.platforms import load_platform_configs
from collabhub.social.service import SocialAccountService
from collabhub.storage.social import SocialAccountStore

SECRET = "test-secret"

TIKTOK_USER = {
    "open_id": "open-1",
    "display_name": "maya",
    "follower_count": 12000,
    "likes_count": 340000,
}


def platform_handler(
    *, token_status: int = 200, profile: dict[str, Any] | None = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Answer token requests with fixed tokens and profile requests with *profile*."""

    def handler(request: httpx.Request) -> httpx.Response:
        if "token" in request.url.path:
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            data = {"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 3600}
            if request.url.host.endswith("tiktokapis.com"):
                return httpx.Response(200, json={"data": data})
            return httpx.Response(200, json=data)
        return httpx.Response(200, json=profile or {"data": {"user": TIKTOK_USER}})

    return handler


def make_service(
    social_store: SocialAccountStore,
    settings: Settings,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
    socialblade: SocialBladeClient | None = None,
) -> SocialAccountService:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler or platform_handler()))
    return SocialAccountService(
        accounts=social_store,
        settings=settings,
        platforms=load_platform_configs(),
        http=http,
        socialblade=socialblade,
    )


@pytest.fixture
def service(social_store: SocialAccountStore, settings: Settings) -> SocialAccountService:
    return make_service(social_store, settings)


# ---------------------------------------------------------------------------
# OAuth connection
# ---------------------------------------------------------------------------


class TestConnectUrl:
    def test_state_identifies_user_and_platform(
        self, service: SocialAccountService, influencer: User
    ) -> None:
        url = service.connect_url(influencer, Platform.TIKTOK)

        query = parse_qs(urlsplit(url).query)
        assert query["client_key"] == ["tt-key"]
        assert query["redirect_uri"] == ["https://collabhub.test/api/social/callback"]
        assert verify_oauth_state(query["state"][0], SECRET) == (Platform.TIKTOK, influencer.id)

    def test_unconfigured_platform(
        self, social_store: SocialAccountStore, settings: Settings, influencer: User
    ) -> None:
        bare = settings.model_copy(update={"instagram_client_id": ""})
        service = make_service(social_store, bare)

        with pytest.raises(CollabHubError, match="instagram OAuth credentials"):
            service.connect_url(influencer, Platform.INSTAGRAM)


class TestCompleteConnection:
    @pytest.mark.anyio()
    async def test_stores_tokens_and_profile(
        self, service: SocialAccountService, social_store: SocialAccountStore, influencer: User
    ) -> None:
        state = sign_oauth_state(Platform.TIKTOK, influencer.id, SECRET)

        account = await service.complete_connection("code-1", state)

        assert account.handle == "maya"
        assert account.followers == 12000
        assert account.likes == 340000
        assert account.is_primary is True
        stored = social_store.get_account(influencer.id, Platform.TIKTOK)
        assert stored is not None
        assert stored.access_token == "at-1"
        assert stored.refresh_token == "rt-1"
        assert stored.expires_at is not None
        assert stored.last_synced_at is not None

    @pytest.mark.anyio()
    async def test_forged_state(self, service: SocialAccountService, influencer: User) -> None:
        state = sign_oauth_state(Platform.TIKTOK, influencer.id, "other-secret")

        with pytest.raises(AuthenticationError):
            await service.complete_connection("code-1", state)

    @pytest.mark.anyio()
    async def test_missing_state(self, service: SocialAccountService) -> None:
        with pytest.raises(AuthenticationError):
            await service.complete_connection("code-1", None)

    @pytest.mark.anyio()
    async def test_missing_code(self, service: SocialAccountService, influencer: User) -> None:
        state = sign_oauth_state(Platform.YOUTUBE, influencer.id, SECRET)

        with pytest.raises(InvalidRequestError, match="Missing code"):
            await service.complete_connection(None, state)

    @pytest.mark.anyio()
    async def test_rejected_exchange(
        self,
        social_store: SocialAccountStore,
        settings: Settings,
        influencer: User,
    ) -> None:
        service = make_service(social_store, settings, platform_handler(token_status=400))
        state = sign_oauth_state(Platform.INSTAGRAM, influencer.id, SECRET)

        with pytest.raises(SocialPlatformError, match="Failed to connect account"):
            await service.complete_connection("bad", state)

        assert social_store.get_account(influencer.id, Platform.INSTAGRAM) is None


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


class TestSync:
    @pytest.mark.anyio()
    async def test_not_connected(self, service: SocialAccountService, influencer: User) -> None:
        with pytest.raises(NotFoundError, match="Account not connected"):
            await service.sync(influencer, Platform.TIKTOK)

    @pytest.mark.anyio()
    async def test_manual_account_without_token(
        self, service: SocialAccountService, social_store: SocialAccountStore, influencer: User
    ) -> None:
        social_store.upsert(influencer.id, Platform.TIKTOK, handle="maya", followers=10)

        with pytest.raises(NotFoundError):
            await service.sync(influencer, Platform.TIKTOK)

    @pytest.mark.anyio()
    async def test_keeps_values_the_platform_omits(
        self, social_store: SocialAccountStore, settings: Settings, influencer: User
    ) -> None:
        profile = {"id": "ig-1", "username": "maya.travels"}
        service = make_service(social_store, settings, platform_handler(profile=profile))
        social_store.upsert(
            influencer.id,
            Platform.INSTAGRAM,
            handle="maya",
            followers=500,
            access_token="tok",
        )

        account = await service.sync(influencer, Platform.INSTAGRAM)

        assert account.handle == "maya.travels"
        assert account.platform_account_id == "ig-1"
        assert account.followers == 500
        assert account.last_synced_at is not None

    @pytest.mark.anyio()
    async def test_platform_failure(
        self, social_store: SocialAccountStore, settings: Settings, influencer: User
    ) -> None:
        service = make_service(
            social_store, settings, lambda request: httpx.Response(401, json={})
        )
        social_store.upsert(influencer.id, Platform.TIKTOK, handle="maya", access_token="old")

        with pytest.raises(SocialPlatformError, match="Failed to sync account"):
            await service.sync(influencer, Platform.TIKTOK)


# ---------------------------------------------------------------------------
# Manual entry and lookup
# ---------------------------------------------------------------------------


class TestSaveManual:
    @pytest.mark.anyio()
    async def test_blank_handle(self, service: SocialAccountService, influencer: User) -> None:
        payload = ManualAccountInput(platform=Platform.TIKTOK, handle="   ")

        with pytest.raises(InvalidRequestError, match="Handle is required"):
            await service.save_manual(influencer, payload)

    @pytest.mark.anyio()
    async def test_keeps_oauth_tokens(
        self, service: SocialAccountService, social_store: SocialAccountStore, influencer: User
    ) -> None:
        social_store.upsert(influencer.id, Platform.YOUTUBE, handle="old", access_token="tok")
        payload = ManualAccountInput(
            platform=Platform.YOUTUBE,
            handle=" @maya ",
            followers="15,000",
            url="https://youtube.com/@maya",
        )

        account = await service.save_manual(influencer, payload)

        assert account.handle == "@maya"
        assert account.followers == 15000
        assert account.raw_profile == {"manual_url": "https://youtube.com/@maya"}
        assert account.last_synced_at is not None
        stored = social_store.get_account(influencer.id, Platform.YOUTUBE)
        assert stored is not None
        assert stored.access_token == "tok"


class TestLookup:
    @pytest.fixture
    def socialblade(self) -> MagicMock:
        client = MagicMock(spec=SocialBladeClient)
        client.lookup = AsyncMock(
            return_value=ProfileSnapshot(handle="maya", followers=9000, likes=120000)
        )
        return client

    @pytest.mark.anyio()
    async def test_stores_profile(
        self,
        social_store: SocialAccountStore,
        settings: Settings,
        influencer: User,
        socialblade: MagicMock,
    ) -> None:
        service = make_service(social_store, settings, socialblade=socialblade)

        account = await service.lookup(influencer, "https://www.tiktok.com/@maya", None)

        socialblade.lookup.assert_awaited_once_with(Platform.TIKTOK, "maya")
        assert account.platform == Platform.TIKTOK
        assert account.followers == 9000

    @pytest.mark.anyio()
    async def test_explicit_platform_for_bare_handle(
        self,
        social_store: SocialAccountStore,
        settings: Settings,
        influencer: User,
        socialblade: MagicMock,
    ) -> None:
        service = make_service(social_store, settings, socialblade=socialblade)

        account = await service.lookup(influencer, "@maya", "instagram")

        socialblade.lookup.assert_awaited_once_with(Platform.INSTAGRAM, "maya")
        assert account.platform == Platform.INSTAGRAM

    @pytest.mark.anyio()
    @pytest.mark.parametrize(
        ("url", "message"),
        [
            (None, "url is required"),
            ("  ", "url is required"),
            ("@maya", "Unsupported platform URL"),
            ("https://www.instagram.com/", "Could not parse handle"),
        ],
    )
    async def test_invalid_input(
        self, service: SocialAccountService, influencer: User, url: str | None, message: str
    ) -> None:
        with pytest.raises(InvalidRequestError, match=message):
            await service.lookup(influencer, url, None)

    @pytest.mark.anyio()
    async def test_not_configured(self, service: SocialAccountService, influencer: User) -> None:
        with pytest.raises(CollabHubError, match="SOCIALBLADE_CLIENT_ID") as exc_info:
            await service.lookup(influencer, "https://www.tiktok.com/@maya", None)

        assert exc_info.value.status_code == 500

    @pytest.mark.anyio()
    async def test_numeric_account_id_is_stored(
        self, social_store: SocialAccountStore, settings: Settings, influencer: User
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "status": {"success": True},
                    "data": {
                        "id": {"id": 25025320, "username": "maya"},
                        "statistics": {"followers": 10},
                    },
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            socialblade = SocialBladeClient(http, "sb-id", "sb-token")
            service = make_service(social_store, settings, socialblade=socialblade)
            account = await service.lookup(influencer, "https://www.instagram.com/maya/", None)

        assert account.platform_account_id == "25025320"
        stored = social_store.get_account(influencer.id, Platform.INSTAGRAM)
        assert stored is not None
        assert stored.platform_account_id == "25025320"


class TestDisconnect:
    @pytest.mark.anyio()
    async def test_removes_and_reselects_primary(
        self, service: SocialAccountService, social_store: SocialAccountStore, influencer: User
    ) -> None:
        social_store.upsert(influencer.id, Platform.TIKTOK, handle="maya", followers=900)
        social_store.upsert(influencer.id, Platform.YOUTUBE, handle="maya", followers=100)

        await service.disconnect(influencer, Platform.TIKTOK)

        accounts = await service.list_accounts(influencer)
        assert [account.platform for account in accounts] == [Platform.YOUTUBE]
        assert accounts[0].is_primary is True
