"""Pydantic models defining structured I/O contracts for LLM interactions.

Models ending in ``Output`` are passed as ``output_format`` to
``client.messages.parse()``; the others are results handed to callers.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from collabhub.domain.types import Verdict


class OutreachOutput(BaseModel):
    """Structured outreach draft returned by Claude."""

    message: str = Field(description="The chat message the brand sends to the influencer")
    offer_price: float | None = Field(
        default=None,
        description="One concrete offer in whole dollars, or null if no offer is made",
    )


class OutreachDraft(BaseModel):
    """A ready-to-send outreach message with the proposed price."""

    message: str
    offer_price: int | None = None


class CampaignFieldsOutput(BaseModel):
    """Campaign brief fields, each null when unknown."""

    product_details: str | None = Field(default=None, description="What is being promoted")
    campaign_goal: str | None = Field(default=None, description="What the campaign should achieve")
    target_audience: str | None = Field(default=None, description="Who the campaign targets")
    budget_min: int | None = Field(default=None, description="Lower budget bound in dollars")
    budget_max: int | None = Field(default=None, description="Upper budget bound in dollars")
    timeline: str | None = Field(default=None, description="When the content should go live")
    deliverables: str | None = Field(default=None, description="Content pieces requested")
    additional_requirements: str | None = Field(
        default=None, description="Any other constraints or requests"
    )


class RankedCandidateOutput(BaseModel):
    id: str = Field(description="Candidate id exactly as given")
    score: float | None = Field(default=None, description="Match score between 0 and 1")
    reason: str | None = Field(default=None, description="Short justification")


class RankingOutput(BaseModel):
    """Scores for each influencer candidate."""

    ranked: list[RankedCandidateOutput] = Field(default_factory=list)


class Recommendation(BaseModel):
    """The agent's closing recommendation for an inquiry."""

    text: str
    verdict: Verdict
