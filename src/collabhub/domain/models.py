"""Pydantic v2 models for marketplace entities.

These mirror the rows held in SQLite.  Secrets (password hashes, OAuth
tokens) are declared with ``exclude=True`` so they never appear in API
responses or ``model_dump()`` output, while remaining readable in code.
"""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import BaseModel, Field

from collabhub.domain.types import (
    CampaignStatus,
    InquiryStatus,
    Language,
    MessageRole,
    Platform,
    UserType,
    Verdict,
)

DEFAULT_CONTENT_PREFERENCES = "Various collaboration opportunities"
DEFAULT_MONETARY_BASELINE = 500
DEFAULT_CONTENT_LENGTH = "Flexible"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_optional_int(value: object) -> int | None:
    """Loosely parse an integer from form or LLM input.

    Integers pass through, finite floats are truncated, and strings yield
    their leading integer (``"1500 USD"`` -> 1500).  Anything else, including
    booleans, returns ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


class User(BaseModel):
    """A marketplace account, either an influencer or a business."""

    id: str
    email: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    password_hash: str | None = Field(default=None, exclude=True)
    language_preference: Language = Language.EN
    user_type: UserType = UserType.INFLUENCER
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def full_name(self) -> str:
        """First and last name joined, empty when neither is set."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def display_name(self) -> str:
        """Name shown to the other side of a negotiation."""
        return self.full_name or self.username or "The influencer"


class BusinessProfile(BaseModel):
    """Company metadata attached to a business account."""

    id: str
    user_id: str
    company_name: str | None = None
    website: str | None = None
    industry: str | None = None
    description: str | None = None
    company_size: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None


class InfluencerPreferences(BaseModel):
    """Per-influencer configuration of the negotiation agent."""

    id: str
    user_id: str
    personal_content_preferences: str
    monetary_baseline: int
    content_length: str
    additional_guidelines: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def defaults_for(cls, user_id: str) -> InfluencerPreferences:
        """Preferences used when an influencer has not configured the agent yet."""
        return cls(
            id="default",
            user_id=user_id,
            personal_content_preferences=DEFAULT_CONTENT_PREFERENCES,
            monetary_baseline=DEFAULT_MONETARY_BASELINE,
            content_length=DEFAULT_CONTENT_LENGTH,
        )


class Inquiry(BaseModel):
    """A business's collaboration request to one influencer, plus its chat state."""

    id: str
    influencer_id: str
    business_id: str | None = None
    campaign_id: str | None = None
    business_email: str
    message: str
    price: int | None = None
    company_info: str | None = None
    attachment_url: str | None = None
    status: InquiryStatus = InquiryStatus.PENDING
    chat_active: bool = True
    ai_response: str | None = None
    ai_recommendation: str | None = None
    ai_verdict: Verdict | None = None
    created_at: str | None = None
    updated_at: str | None = None
    last_business_message_at: str | None = None


class Message(BaseModel):
    """A single chat message inside an inquiry conversation."""

    id: str
    inquiry_id: str
    role: MessageRole
    content: str
    created_at: str | None = None


class MatchedInfluencer(BaseModel):
    """A candidate influencer produced by the campaign matching pipeline."""

    id: str
    name: str | None = None
    username: str | None = None
    email: str | None = None
    preferences: str | None = None
    score: float | None = None
    reason: str | None = None


class Campaign(BaseModel):
    """A campaign brief submitted by a business."""

    id: str
    business_id: str
    product_details: str
    campaign_goal: str
    target_audience: str
    budget_min: int | None = None
    budget_max: int | None = None
    timeline: str
    deliverables: str
    additional_requirements: str | None = None
    status: CampaignStatus = CampaignStatus.PROCESSING
    search_criteria: str | None = None
    matched_influencers: list[MatchedInfluencer] | None = None
    created_at: str | None = None
    updated_at: str | None = None


class SocialAccount(BaseModel):
    """An influencer's connected or manually entered social profile."""

    id: str
    user_id: str
    platform: Platform
    handle: str | None = None
    platform_account_id: str | None = None
    followers: int | None = None
    likes: int | None = None
    raw_profile: Any = None
    access_token: str | None = Field(default=None, exclude=True)
    refresh_token: str | None = Field(default=None, exclude=True)
    expires_at: str | None = None
    is_primary: bool = False
    last_synced_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
