"""Campaign pipeline: brief intake, influencer matching, and outreach."""

from __future__ import annotations

from typing import Any

import structlog
from anthropic import Anthropic
from pydantic import ValidationError

from collabhub.campaign.models import CampaignInput, ExtractResponse
from collabhub.domain.errors import InvalidRequestError, NotFoundError
from collabhub.domain.models import Campaign, User
from collabhub.domain.types import (
    BUSINESS_SETTABLE_CAMPAIGN_STATUSES,
    CampaignStatus,
    UserType,
)
from collabhub.inquiry.models import InquiryCreate
from collabhub.inquiry.service import InquiryService
from collabhub.llm.agent import draft_inquiry_from_campaign
from collabhub.llm.matching import (
    extract_campaign_fields,
    generate_search_criteria,
    normalize_campaign_input,
    rerank_influencers,
)
from collabhub.observability.metrics import CAMPAIGNS_PROCESSED
from collabhub.storage.campaigns import CampaignStore
from collabhub.storage.inquiries import InquiryStore
from collabhub.storage.users import UserStore

logger = structlog.get_logger()

NO_CRITERIA_TEXT = "No criteria generated"


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class CampaignService:
    """Runs a business's campaigns from brief to outreach.

    Args:
        users: User and profile store.
        campaigns: Campaign store.
        inquiries: Inquiry store, used to skip influencers already contacted.
        inquiry_service: Opens outreach inquiries through the negotiation agent.
        llm_client: Anthropic client for the pipeline steps.
        candidate_limit: How many influencers are considered per campaign.
        outreach_limit: How many top matches are contacted when negotiating.
    """

    def __init__(
        self,
        *,
        users: UserStore,
        campaigns: CampaignStore,
        inquiries: InquiryStore,
        inquiry_service: InquiryService,
        llm_client: Anthropic | None,
        candidate_limit: int = 10,
        outreach_limit: int = 3,
    ) -> None:
        self._users = users
        self._campaigns = campaigns
        self._inquiries = inquiries
        self._inquiry_service = inquiry_service
        self._llm = llm_client
        self._candidate_limit = candidate_limit
        self._outreach_limit = outreach_limit

    def list_for_business(self, business: User) -> list[Campaign]:
        return self._campaigns.list_by_business(business.id)

    def create_campaign(self, business: User, payload: CampaignInput) -> Campaign:
        """Normalize a brief with the LLM and store it as ``processing``.

        Raises:
            InvalidRequestError: If the normalized brief no longer validates.
        """
        normalized = normalize_campaign_input(payload.model_dump(), self._llm)
        try:
            final = CampaignInput.model_validate(normalized)
        except ValidationError as exc:
            raise InvalidRequestError(_validation_message(exc)) from exc

        campaign = self._campaigns.create_campaign(business_id=business.id, **final.model_dump())
        logger.info("Campaign created", campaign_id=campaign.id, business_id=business.id)
        return campaign

    def extract(self, content: str | None, draft: dict[str, Any]) -> ExtractResponse:
        """Merge one conversational message into a campaign draft.

        Raises:
            InvalidRequestError: If *content* is empty.
            ExtractionError: If the LLM call fails.
        """
        if not content or not content.strip():
            raise InvalidRequestError("Content is required")
        fields, missing = extract_campaign_fields(content, draft, self._llm)
        return ExtractResponse(fields=fields, missing=missing)

    def process_next(self, business: User) -> Campaign:
        """Match influencers for the business's oldest ``processing`` campaign.

        Generates search criteria, loads up to ``candidate_limit``
        influencers, ranks them against the criteria, and parks the
        campaign in ``waiting_approval`` with the ranked list.

        Raises:
            NotFoundError: If no campaign is waiting to be processed.
        """
        candidate = self._campaigns.get_oldest_processing(business.id)
        if candidate is None:
            raise NotFoundError("No campaigns to process")

        self._campaigns.save_search_result(candidate.id, CampaignStatus.PROCESSING)
        criteria = generate_search_criteria(candidate, self._llm)
        influencers = self._users.list_influencers_with_preferences(self._candidate_limit)
        ranked = rerank_influencers(criteria, influencers, self._llm)

        updated = self._campaigns.save_search_result(
            candidate.id,
            CampaignStatus.WAITING_APPROVAL,
            search_criteria=criteria or NO_CRITERIA_TEXT,
            matched_influencers=ranked,
        )
        CAMPAIGNS_PROCESSED.inc()
        logger.info(
            "Campaign matched",
            campaign_id=candidate.id,
            candidates=len(ranked),
            has_criteria=criteria is not None,
        )
        return updated or candidate

    def update_status(self, business: User, campaign_id: str, status: str) -> Campaign:
        """Move a campaign to a business-settable status.

        Moving to ``negotiating`` contacts the top matches; when at least one
        inquiry is opened the campaign ends up ``waiting_response``.

        Raises:
            InvalidRequestError: If *status* may not be set by a business.
            NotFoundError: If the campaign does not exist or belongs to
                another business.
        """
        try:
            new_status = CampaignStatus(status)
        except ValueError as exc:
            raise InvalidRequestError("Invalid status") from exc
        if new_status not in BUSINESS_SETTABLE_CAMPAIGN_STATUSES:
            raise InvalidRequestError("Invalid status")

        campaign = self._campaigns.get_campaign(campaign_id)
        if campaign is None or campaign.business_id != business.id:
            raise NotFoundError("Campaign not found")

        updated = self._campaigns.update_status(campaign_id, new_status) or campaign
        logger.info("Campaign status updated", campaign_id=campaign_id, status=new_status)

        if new_status == CampaignStatus.NEGOTIATING:
            opened = self.start_outreach(business, updated)
            if opened:
                updated = (
                    self._campaigns.update_status(campaign_id, CampaignStatus.WAITING_RESPONSE)
                    or updated
                )
        return updated

    def start_outreach(self, business: User, campaign: Campaign) -> int:
        """Open agent-drafted inquiries with the campaign's top matches.

        Influencers already contacted for this campaign, or whose account no
        longer exists, are skipped.

        Returns:
            The number of inquiries opened.
        """
        profile = self._users.get_business_profile(business.id)
        opened = 0
        for match in (campaign.matched_influencers or [])[: self._outreach_limit]:
            if self._inquiries.find_for_campaign(campaign.id, match.id) is not None:
                logger.debug("Influencer already contacted", influencer_id=match.id)
                continue
            influencer = self._users.get_user(match.id)
            if influencer is None or influencer.user_type != UserType.INFLUENCER:
                logger.warning("Matched influencer no longer available", influencer_id=match.id)
                continue

            draft = draft_inquiry_from_campaign(
                campaign,
                self._llm,
                business_profile=profile,
                preferences=self._users.get_influencer_preferences(influencer.id),
                influencer=influencer,
            )
            payload = InquiryCreate(
                influencer_id=influencer.id,
                business_email=business.email or "",
                message=draft.message,
                price=draft.offer_price,
                company_info=profile.description if profile else None,
                campaign_id=campaign.id,
            )
            self._inquiry_service.open_inquiry(payload, business, origin="campaign")
            opened += 1

        logger.info("Campaign outreach sent", campaign_id=campaign.id, opened=opened)
        return opened
