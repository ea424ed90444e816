"""Inquiry lifecycle: opening, chatting, closing, deciding, and idle sweeps.

``InquiryService`` methods are synchronous except :meth:`update_status`,
which awaits the decision email.  Route handlers run the synchronous
methods in a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import UTC, datetime, timedelta

import structlog
from anthropic import Anthropic

from collabhub.domain.errors import (
    ChatClosedError,
    InvalidRequestError,
    NotFoundError,
)
from collabhub.domain.models import InfluencerPreferences, Inquiry, Message, User
from collabhub.domain.types import (
    INQUIRY_DECISION_TO_CAMPAIGN_STATUS,
    InquiryStatus,
    Language,
    MessageRole,
    UserType,
    resolve_language,
)
from collabhub.inquiry.models import (
    IdleSweepDetail,
    IdleSweepResult,
    InquiryCreate,
    PostedMessages,
)
from collabhub.llm.agent import (
    generate_chat_response,
    generate_inquiry_response,
    generate_recommendation,
)
from collabhub.notifications.gmail import GmailClient
from collabhub.notifications.status_email import send_status_email
from collabhub.observability.metrics import CHATS_CLOSED, INQUIRIES_CREATED
from collabhub.storage.campaigns import CampaignStore
from collabhub.storage.inquiries import InquiryStore
from collabhub.storage.users import UserStore

logger = structlog.get_logger()


class InquiryService:
    """Coordinates storage, the negotiation agent, and notifications.

    Args:
        users: User, session, and profile store.
        inquiries: Inquiry and message store.
        campaigns: Campaign store, for decision propagation.
        llm_client: Anthropic client used by the agent (``None`` makes every
            agent reply fall back to its canned text).
        gmail_client: Optional Gmail sender for decision emails.
        idle_minutes: Inactivity after which an open chat is auto-closed.
    """

    def __init__(
        self,
        *,
        users: UserStore,
        inquiries: InquiryStore,
        campaigns: CampaignStore,
        llm_client: Anthropic | None,
        gmail_client: GmailClient | None = None,
        idle_minutes: int = 10,
    ) -> None:
        self._users = users
        self._inquiries = inquiries
        self._campaigns = campaigns
        self._llm = llm_client
        self._gmail = gmail_client
        self._idle_minutes = idle_minutes

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _preferences_for(self, influencer_id: str) -> InfluencerPreferences:
        preferences = self._users.get_influencer_preferences(influencer_id)
        return preferences or InfluencerPreferences.defaults_for(influencer_id)

    def _language_for(self, influencer_id: str, requested: Language | None) -> Language:
        if requested is not None:
            return requested
        influencer = self._users.get_user(influencer_id)
        return resolve_language(None, influencer.language_preference if influencer else None)

    def _require_inquiry(self, inquiry_id: str) -> Inquiry:
        inquiry = self._inquiries.get_inquiry(inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")
        return inquiry

    # ------------------------------------------------------------------
    # Opening and reading
    # ------------------------------------------------------------------

    def open_inquiry(
        self,
        payload: InquiryCreate,
        business_user: User | None = None,
        *,
        origin: str = "direct",
    ) -> Inquiry:
        """Persist a new inquiry and post the agent's first reply.

        When the caller is an authenticated business, the inquiry is linked
        to that account and its email replaces the submitted one.

        Args:
            payload: The validated inquiry.
            business_user: The authenticated caller, if any.
            origin: Metrics label, ``direct`` or ``campaign``.

        Returns:
            The stored inquiry with ``ai_response`` set.

        Raises:
            NotFoundError: If ``influencer_id`` is not an influencer account.
        """
        influencer = self._users.get_user(payload.influencer_id)
        if influencer is None or influencer.user_type != UserType.INFLUENCER:
            raise NotFoundError("Influencer not found")

        is_business = business_user is not None and business_user.user_type == UserType.BUSINESS
        business_id = business_user.id if is_business and business_user else None
        business_email = payload.business_email
        if is_business and business_user and business_user.email:
            business_email = business_user.email

        inquiry = self._inquiries.create_inquiry(
            influencer_id=influencer.id,
            business_email=business_email,
            message=payload.message,
            business_id=business_id,
            campaign_id=payload.campaign_id,
            price=payload.price,
            company_info=payload.company_info,
            attachment_url=payload.attachment_url,
        )
        INQUIRIES_CREATED.labels(origin=origin).inc()
        logger.info(
            "Inquiry opened",
            inquiry_id=inquiry.id,
            influencer_id=influencer.id,
            business_id=business_id,
            origin=origin,
        )

        language = resolve_language(payload.language, influencer.language_preference)
        reply = generate_inquiry_response(
            inquiry, self._preferences_for(influencer.id), self._llm, language
        )
        updated = self._inquiries.update_status(inquiry.id, InquiryStatus.PENDING, reply)
        self._inquiries.add_message(inquiry.id, MessageRole.ASSISTANT, reply)
        return updated or inquiry

    def list_for_influencer(self, influencer: User) -> list[Inquiry]:
        return self._inquiries.list_by_influencer(influencer.id)

    def list_for_business(self, business: User) -> list[Inquiry]:
        return self._inquiries.list_by_business(business.id)

    def get_for_user(self, inquiry_id: str, user: User) -> Inquiry:
        """Return an inquiry visible to *user* (its influencer or its business)."""
        inquiry = self._require_inquiry(inquiry_id)
        if user.id not in (inquiry.influencer_id, inquiry.business_id):
            raise NotFoundError("Inquiry not found")
        return inquiry

    def delete(self, inquiry_id: str, influencer: User) -> None:
        inquiry = self._require_inquiry(inquiry_id)
        if inquiry.influencer_id != influencer.id:
            raise NotFoundError("Inquiry not found")
        self._inquiries.delete_inquiry(inquiry_id)
        logger.info("Inquiry deleted", inquiry_id=inquiry_id)

    def list_messages(self, inquiry_id: str) -> list[Message]:
        self._require_inquiry(inquiry_id)
        return self._inquiries.list_messages(inquiry_id)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def post_message(
        self,
        inquiry_id: str,
        content: str | None,
        language: Language | None = None,
    ) -> PostedMessages:
        """Store a business message and the agent's reply.

        Raises:
            InvalidRequestError: If *content* is blank.
            NotFoundError: If the inquiry does not exist.
            ChatClosedError: If the chat has been closed.
        """
        if not content or not content.strip():
            raise InvalidRequestError("Message content is required")
        inquiry = self._require_inquiry(inquiry_id)
        if not inquiry.chat_active:
            raise ChatClosedError(inquiry_id)

        user_message = self._inquiries.add_message(inquiry_id, MessageRole.USER, content)
        self._inquiries.touch_last_business_message(inquiry_id)

        history = self._inquiries.list_messages(inquiry_id)
        reply = generate_chat_response(
            history,
            inquiry,
            self._preferences_for(inquiry.influencer_id),
            self._llm,
            self._language_for(inquiry.influencer_id, language),
        )
        ai_message = self._inquiries.add_message(inquiry_id, MessageRole.ASSISTANT, reply)
        return PostedMessages(user_message=user_message, ai_message=ai_message)

    def close_chat(
        self,
        inquiry_id: str,
        language: Language | None = None,
        *,
        trigger: str = "manual",
    ) -> Inquiry:
        """Close a chat and store the agent's recommendation.

        Closing an already closed chat returns it unchanged.
        """
        inquiry = self._require_inquiry(inquiry_id)
        if not inquiry.chat_active:
            logger.info("Chat already closed", inquiry_id=inquiry_id)
            return inquiry

        recommendation = generate_recommendation(
            self._inquiries.list_messages(inquiry_id),
            inquiry,
            self._preferences_for(inquiry.influencer_id),
            self._llm,
            self._language_for(inquiry.influencer_id, language),
        )
        closed = self._inquiries.close_chat(
            inquiry_id, recommendation.text, recommendation.verdict
        )
        CHATS_CLOSED.labels(trigger=trigger).inc()
        logger.info(
            "Chat closed",
            inquiry_id=inquiry_id,
            verdict=recommendation.verdict,
            trigger=trigger,
        )
        return closed or inquiry

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def update_status(
        self,
        inquiry_id: str,
        status: str,
        message: str | None,
        influencer: User,
    ) -> Inquiry:
        """Record the influencer's decision and notify the business.

        An approval or rejection of a campaign inquiry also moves the campaign
        to ``deal`` or ``denied``.  Campaign and email failures are logged and
        never undo the status change.

        Raises:
            InvalidRequestError: If *status* is not an inquiry status.
            NotFoundError: If the inquiry does not exist or belongs to
                another influencer.
        """
        try:
            new_status = InquiryStatus(status)
        except ValueError as exc:
            raise InvalidRequestError("Invalid status") from exc

        inquiry = await asyncio.to_thread(self._require_inquiry, inquiry_id)
        if inquiry.influencer_id != influencer.id:
            raise NotFoundError("Inquiry not found")

        updated = await asyncio.to_thread(
            self._inquiries.update_status, inquiry_id, new_status, message
        )
        logger.info("Inquiry status updated", inquiry_id=inquiry_id, status=new_status)

        campaign_status = INQUIRY_DECISION_TO_CAMPAIGN_STATUS.get(new_status)
        if inquiry.campaign_id and campaign_status is not None:
            try:
                await asyncio.to_thread(
                    self._campaigns.update_status, inquiry.campaign_id, campaign_status
                )
                logger.info(
                    "Campaign status follows inquiry decision",
                    campaign_id=inquiry.campaign_id,
                    status=campaign_status,
                )
            except sqlite3.Error:
                logger.exception(
                    "Failed to update campaign from inquiry decision",
                    campaign_id=inquiry.campaign_id,
                )

        if new_status != InquiryStatus.PENDING and inquiry.business_email:
            await send_status_email(
                self._gmail,
                inquiry.business_email,
                influencer.display_name,
                new_status,
                message,
            )

        return updated or inquiry

    # ------------------------------------------------------------------
    # Idle sweep
    # ------------------------------------------------------------------

    def close_idle_chats(
        self,
        now: datetime | None = None,
        idle_minutes: int | None = None,
    ) -> IdleSweepResult:
        """Close every open chat whose business has been silent too long.

        Each idle chat gets a recommendation in its influencer's language.
        A failure on one inquiry is recorded in the result and the sweep
        moves on.

        Args:
            now: Reference time; defaults to the current UTC time.
            idle_minutes: Overrides the configured idle threshold.

        Returns:
            The number of chats closed plus per-inquiry details.
        """
        now = now or datetime.now(tz=UTC)
        minutes = idle_minutes if idle_minutes is not None else self._idle_minutes
        threshold = now - timedelta(minutes=minutes)
        idle = self._inquiries.list_idle_open(threshold)

        details: list[IdleSweepDetail] = []
        for inquiry in idle:
            try:
                self.close_chat(inquiry.id, trigger="idle")
            except Exception as exc:
                logger.exception("Failed to auto-close inquiry", inquiry_id=inquiry.id)
                details.append(
                    IdleSweepDetail(inquiry_id=inquiry.id, status="failed", error=str(exc))
                )
            else:
                details.append(IdleSweepDetail(inquiry_id=inquiry.id, status="closed"))

        closed = sum(1 for detail in details if detail.status == "closed")
        logger.info("Idle chat sweep finished", candidates=len(idle), closed=closed)
        return IdleSweepResult(closed=closed, details=details)
