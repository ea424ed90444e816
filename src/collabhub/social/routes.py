"""Influencer social account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from collabhub.auth.dependencies import require_influencer
from collabhub.domain.errors import InvalidRequestError
from collabhub.domain.models import SocialAccount, User
from collabhub.domain.types import Platform, parse_platform
from collabhub.social.models import (
    ConnectResponse,
    LookupRequest,
    ManualAccountInput,
    PlatformRequest,
)
from collabhub.social.service import SocialAccountService

router = APIRouter(prefix="/api/social")

ONBOARDING_PATH = "/influencer/onboarding"


def _service(request: Request) -> SocialAccountService:
    return request.app.state.services["social_service"]


def _require_platform(value: str | None) -> Platform:
    platform = parse_platform(value)
    if platform is None:
        raise InvalidRequestError("Invalid platform")
    return platform


@router.get("/accounts")
async def list_accounts(
    request: Request, user: User = Depends(require_influencer)
) -> list[SocialAccount]:
    return await _service(request).list_accounts(user)


@router.get("/connect")
async def connect(
    request: Request, platform: str | None = None, user: User = Depends(require_influencer)
) -> ConnectResponse:
    """Return the platform consent URL the client should navigate to."""
    url = _service(request).connect_url(user, _require_platform(platform))
    return ConnectResponse(url=url)


@router.get("/callback")
async def callback(
    request: Request, code: str | None = None, state: str | None = None
) -> RedirectResponse:
    """OAuth redirect target; the signed ``state`` identifies the influencer."""
    await _service(request).complete_connection(code, state)
    return RedirectResponse(ONBOARDING_PATH, status_code=302)


@router.post("/sync")
async def sync(
    body: PlatformRequest, request: Request, user: User = Depends(require_influencer)
) -> SocialAccount:
    return await _service(request).sync(user, body.platform)


@router.post("/manual")
async def save_manual(
    body: ManualAccountInput, request: Request, user: User = Depends(require_influencer)
) -> SocialAccount:
    return await _service(request).save_manual(user, body)


@router.post("/lookup")
async def lookup(
    body: LookupRequest, request: Request, user: User = Depends(require_influencer)
) -> SocialAccount:
    return await _service(request).lookup(user, body.url, body.platform)


@router.delete("/accounts/{platform}")
async def disconnect(
    platform: str, request: Request, user: User = Depends(require_influencer)
) -> dict[str, str]:
    await _service(request).disconnect(user, _require_platform(platform))
    return {"message": "Account removed"}
