"""Shared pytest fixtures for the CollabHub test suite."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from collabhub.app import create_app
from collabhub.campaign.service import CampaignService
from collabhub.config import Settings
from collabhub.domain.models import User
from collabhub.domain.types import Language, UserType
from collabhub.inquiry.service import InquiryService
from collabhub.social.platforms import load_platform_configs
from collabhub.social.service import SocialAccountService
from collabhub.storage import (
    CampaignStore,
    InquiryStore,
    MarketplaceConnection,
    SocialAccountStore,
    UserStore,
    close_db,
    init_db,
)


def make_llm_client(
    text: str = "Sounds great! What's the budget?", parsed: Any = None
) -> MagicMock:
    """Create a mock Anthropic client with canned ``create`` and ``parse`` replies."""
    client = MagicMock()
    block = MagicMock()
    block.text = text
    create_response = MagicMock()
    create_response.content = [block]
    client.messages.create.return_value = create_response

    parse_response = MagicMock()
    parse_response.parsed_output = parsed
    client.messages.parse.return_value = parse_response
    return client


@pytest.fixture
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio, the backend the code targets."""
    return "asyncio"


@pytest.fixture
def conn() -> Iterator[MarketplaceConnection]:
    """An initialized in-memory marketplace database."""
    connection = init_db(":memory:")
    yield connection
    close_db(connection)


@pytest.fixture
def user_store(conn: MarketplaceConnection) -> UserStore:
    return UserStore(conn)


@pytest.fixture
def inquiry_store(conn: MarketplaceConnection) -> InquiryStore:
    return InquiryStore(conn)


@pytest.fixture
def campaign_store(conn: MarketplaceConnection) -> CampaignStore:
    return CampaignStore(conn)


@pytest.fixture
def social_store(conn: MarketplaceConnection) -> SocialAccountStore:
    return SocialAccountStore(conn)


@pytest.fixture
def influencer(user_store: UserStore) -> User:
    """A registered influencer with agent preferences configured."""
    user = user_store.create_user(
        email="maya@example.com",
        password_hash="x",
        user_type=UserType.INFLUENCER,
        username="maya",
        first_name="Maya",
        last_name="Lin",
        language_preference=Language.EN,
    )
    user_store.upsert_influencer_preferences(
        user.id,
        personal_content_preferences="Skincare and travel",
        monetary_baseline=800,
        content_length="60 seconds",
        additional_guidelines="No alcohol brands",
        social_links={},
    )
    return user


@pytest.fixture
def business(user_store: UserStore) -> User:
    """A registered business account."""
    return user_store.create_user(
        email="brand@glowco.com",
        password_hash="x",
        user_type=UserType.BUSINESS,
        username="glowco",
        first_name=None,
        last_name=None,
        language_preference=Language.EN,
    )


@pytest.fixture
def llm_client() -> MagicMock:
    return make_llm_client()


@pytest.fixture
def llm_factory() -> Any:
    """Return the mock-client builder so tests can choose replies."""
    return make_llm_client


@pytest.fixture
def settings(tmp_path: Any) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        secret_key=SecretStr("test-secret"),
        cron_secret=SecretStr("cron-secret"),
        public_base_url="https://collabhub.test",
        instagram_client_id="ig-client",
        instagram_client_secret=SecretStr("ig-secret"),
        tiktok_client_key="tt-key",
        tiktok_client_secret=SecretStr("tt-secret"),
        youtube_client_id="yt-client",
        youtube_client_secret=SecretStr("yt-secret"),
        gmail_token_path=tmp_path / "missing-token.json",
    )


@pytest.fixture
def services(
    conn: MarketplaceConnection,
    user_store: UserStore,
    inquiry_store: InquiryStore,
    campaign_store: CampaignStore,
    social_store: SocialAccountStore,
    llm_client: MagicMock,
    settings: Settings,
) -> dict[str, Any]:
    """A services dict wired like ``initialize_services`` but with test doubles."""
    inquiry_service = InquiryService(
        users=user_store,
        inquiries=inquiry_store,
        campaigns=campaign_store,
        llm_client=llm_client,
        gmail_client=None,
    )
    http_client = MagicMock()
    return {
        "_settings": settings,
        "db_conn": conn,
        "user_store": user_store,
        "inquiry_store": inquiry_store,
        "campaign_store": campaign_store,
        "social_store": social_store,
        "anthropic_client": llm_client,
        "gmail_client": None,
        "http_client": None,
        "inquiry_service": inquiry_service,
        "campaign_service": CampaignService(
            users=user_store,
            campaigns=campaign_store,
            inquiries=inquiry_store,
            inquiry_service=inquiry_service,
            llm_client=llm_client,
        ),
        "social_service": SocialAccountService(
            accounts=social_store,
            settings=settings,
            platforms=load_platform_configs(),
            http=http_client,
        ),
    }


@pytest.fixture
def api(services: dict[str, Any]) -> TestClient:
    """TestClient for the full application; domain errors render as JSON."""
    return TestClient(create_app(services), raise_server_exceptions=False)


@pytest.fixture
def auth_headers(user_store: UserStore) -> Any:
    """Return a builder of ``Authorization`` headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = user_store.create_session(user.id, timedelta(days=1))
        return {"Authorization": f"Bearer {token}"}

    return _headers
