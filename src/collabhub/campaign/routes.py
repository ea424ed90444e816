"""Business campaign endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request

from collabhub.auth.dependencies import require_business
from collabhub.campaign.models import (
    CampaignInput,
    CampaignStatusUpdate,
    ExtractRequest,
    ExtractResponse,
)
from collabhub.campaign.service import CampaignService
from collabhub.domain.models import Campaign, User

router = APIRouter(prefix="/api/business/campaigns")


def _service(request: Request) -> CampaignService:
    return request.app.state.services["campaign_service"]


@router.get("")
async def list_campaigns(
    request: Request, user: User = Depends(require_business)
) -> list[Campaign]:
    return await asyncio.to_thread(_service(request).list_for_business, user)


@router.post("", status_code=201)
async def create_campaign(
    body: CampaignInput, request: Request, user: User = Depends(require_business)
) -> Campaign:
    return await asyncio.to_thread(_service(request).create_campaign, user, body)


@router.post("/extract")
async def extract_fields(
    body: ExtractRequest, request: Request, user: User = Depends(require_business)
) -> ExtractResponse:
    """Pull campaign fields from one chat message into the caller's draft."""
    return await asyncio.to_thread(_service(request).extract, body.content, body.draft)


@router.post("/process")
async def process_campaign(request: Request, user: User = Depends(require_business)) -> Campaign:
    return await asyncio.to_thread(_service(request).process_next, user)


@router.patch("/{campaign_id}/status")
async def update_campaign_status(
    campaign_id: str,
    body: CampaignStatusUpdate,
    request: Request,
    user: User = Depends(require_business),
) -> Campaign:
    return await asyncio.to_thread(
        _service(request).update_status, user, campaign_id, body.status
    )
