"""Request and response bodies for campaign endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from collabhub.domain.models import parse_optional_int


class CampaignInput(BaseModel):
    """A campaign brief as submitted by a business.

    Budgets are parsed loosely, so ``"1500"`` and ``1500.7`` both become
    ``1500`` and unparseable values are dropped.
    """

    product_details: str = Field(min_length=1)
    campaign_goal: str = Field(min_length=1)
    target_audience: str = Field(min_length=1)
    budget_min: int | None = None
    budget_max: int | None = None
    timeline: str = Field(min_length=1)
    deliverables: str = Field(min_length=1)
    additional_requirements: str | None = None

    @field_validator("budget_min", "budget_max", mode="before")
    @classmethod
    def parse_budget(cls, v: Any) -> int | None:
        return parse_optional_int(v)


class ExtractRequest(BaseModel):
    content: str | None = None
    draft: dict[str, Any] = Field(default_factory=dict)

    @field_validator("draft", mode="before")
    @classmethod
    def default_draft(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}


class ExtractResponse(BaseModel):
    """Fields gathered so far and the ones still missing."""

    fields: dict[str, Any]
    missing: list[str]


class CampaignStatusUpdate(BaseModel):
    status: str
