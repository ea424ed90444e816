"""LLM steps of the campaign pipeline: brief cleanup, field extraction,
search criteria, and candidate ranking.

Cleanup, criteria, and ranking degrade gracefully (raw input, ``None``, or
the unranked list).  Field extraction has no sensible fallback and raises
``ExtractionError`` instead.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from anthropic import Anthropic, AnthropicError
from pydantic import ValidationError

from collabhub.domain.errors import ExtractionError
from collabhub.domain.models import Campaign, MatchedInfluencer, parse_optional_int
from collabhub.llm.agent import complete_text, parse_output
from collabhub.llm.client import PIPELINE_MAX_TOKENS, PIPELINE_MODEL, PIPELINE_TEMPERATURE
from collabhub.llm.models import CampaignFieldsOutput, RankingOutput
from collabhub.llm.prompts import (
    CRITERIA_SYSTEM_PROMPT,
    CRITERIA_USER_PROMPT,
    EXTRACT_CAMPAIGN_SYSTEM_PROMPT,
    NORMALIZE_CAMPAIGN_SYSTEM_PROMPT,
    RANKING_SYSTEM_PROMPT,
)

logger = structlog.get_logger()

CAMPAIGN_FIELDS: tuple[str, ...] = (
    "product_details",
    "campaign_goal",
    "target_audience",
    "budget_min",
    "budget_max",
    "timeline",
    "deliverables",
    "additional_requirements",
)

_BUDGET_FIELDS = frozenset({"budget_min", "budget_max"})

CRITERIA_TEMPERATURE = 0.3


def _json_message(payload: dict[str, Any]) -> list[dict[str, str]]:
    return [{"role": "user", "content": json.dumps(payload, ensure_ascii=False)}]


def normalize_campaign_input(
    data: dict[str, Any],
    client: Anthropic | None,
    *,
    model: str = PIPELINE_MODEL,
) -> dict[str, Any]:
    """Ask Claude to tidy a campaign brief before it is stored.

    Text fields are replaced only by non-blank string outputs and budgets
    only by parseable integers, so the model can never erase a value.

    Args:
        data: Validated brief fields keyed by ``CAMPAIGN_FIELDS``.
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        model: The Anthropic model ID to use.

    Returns:
        The cleaned fields, or *data* unchanged if the call fails.
    """
    parsed: CampaignFieldsOutput | None = parse_output(
        client,
        "campaign_normalize",
        model=model,
        max_tokens=PIPELINE_MAX_TOKENS,
        temperature=PIPELINE_TEMPERATURE,
        system=NORMALIZE_CAMPAIGN_SYSTEM_PROMPT,
        messages=_json_message({field: data.get(field) for field in CAMPAIGN_FIELDS}),
        output_format=CampaignFieldsOutput,
    )
    if parsed is None:
        return data

    cleaned = dict(data)
    for field in CAMPAIGN_FIELDS:
        value = getattr(parsed, field)
        if field in _BUDGET_FIELDS:
            number = parse_optional_int(value)
            if number is not None:
                cleaned[field] = number
        elif isinstance(value, str) and value.strip():
            cleaned[field] = value.strip()
    return cleaned


def extract_campaign_fields(
    content: str,
    draft: dict[str, Any],
    client: Anthropic | None,
    *,
    model: str = PIPELINE_MODEL,
) -> tuple[dict[str, Any], list[str]]:
    """Pull campaign fields out of a chat message, merging them into *draft*.

    Non-empty extracted values win over the draft.

    Args:
        content: The business's newest message.
        draft: Fields gathered in earlier turns (may be partial).
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        model: The Anthropic model ID to use.

    Returns:
        ``(fields, missing)``: the merged draft and the names of fields that
        are still empty, in ``CAMPAIGN_FIELDS`` order.

    Raises:
        ExtractionError: If the provider call fails or no client is configured.
    """
    clean_draft: dict[str, Any] = {}
    for field in CAMPAIGN_FIELDS:
        value = draft.get(field)
        clean_draft[field] = parse_optional_int(value) if field in _BUDGET_FIELDS else value

    if client is None:
        raise ExtractionError("Failed to extract campaign fields")
    try:
        response = client.messages.parse(
            model=model,
            max_tokens=PIPELINE_MAX_TOKENS,
            temperature=PIPELINE_TEMPERATURE,
            system=EXTRACT_CAMPAIGN_SYSTEM_PROMPT,
            messages=_json_message({"draft": clean_draft, "new_message": content}),
            output_format=CampaignFieldsOutput,
        )
    except (AnthropicError, ValidationError) as exc:
        logger.error("Campaign field extraction failed", error=str(exc))
        raise ExtractionError("Failed to extract campaign fields") from exc

    parsed: CampaignFieldsOutput | None = response.parsed_output
    if parsed is None:
        raise ExtractionError("Failed to extract campaign fields")

    merged: dict[str, Any] = {}
    for field in CAMPAIGN_FIELDS:
        extracted = getattr(parsed, field)
        if field in _BUDGET_FIELDS:
            number = parse_optional_int(extracted)
            merged[field] = number if number is not None else clean_draft[field]
        else:
            merged[field] = extracted or clean_draft[field] or None

    missing = [field for field in CAMPAIGN_FIELDS if merged[field] in (None, "")]
    return merged, missing


def generate_search_criteria(
    campaign: Campaign,
    client: Anthropic | None,
    *,
    model: str = PIPELINE_MODEL,
) -> str | None:
    """Generate 3-6 bullet lines describing ideal influencers for *campaign*.

    Returns:
        The criteria text, or ``None`` when the call fails or returns nothing.
    """
    user_text = CRITERIA_USER_PROMPT.format(
        campaign_goal=campaign.campaign_goal or "N/A",
        product_details=campaign.product_details or "N/A",
        target_audience=campaign.target_audience or "N/A",
        budget_min=campaign.budget_min if campaign.budget_min is not None else "?",
        budget_max=campaign.budget_max if campaign.budget_max is not None else "?",
        timeline=campaign.timeline or "N/A",
        deliverables=campaign.deliverables or "N/A",
        additional_requirements=campaign.additional_requirements or "None",
    )
    text = complete_text(
        client,
        "search_criteria",
        model=model,
        max_tokens=PIPELINE_MAX_TOKENS,
        temperature=CRITERIA_TEMPERATURE,
        system=CRITERIA_SYSTEM_PROMPT,
        messages=[{"role": "user", "content": user_text}],
    )
    return text or None


def rerank_influencers(
    criteria: str | None,
    influencers: list[MatchedInfluencer],
    client: Anthropic | None,
    *,
    model: str = PIPELINE_MODEL,
) -> list[MatchedInfluencer]:
    """Score candidates against *criteria* and sort them best first.

    Candidates the model did not score get ``score=0``.  Sorting is stable,
    so equal scores keep their input order.

    Returns:
        The ranked candidates, or *influencers* unchanged when there are no
        criteria, no candidates, or the call fails.
    """
    if not criteria or not influencers:
        return influencers

    payload = {
        "criteria": criteria,
        "influencers": [
            candidate.model_dump(include={"id", "name", "username", "preferences"})
            for candidate in influencers
        ],
    }
    parsed: RankingOutput | None = parse_output(
        client,
        "rerank",
        model=model,
        max_tokens=PIPELINE_MAX_TOKENS,
        temperature=PIPELINE_TEMPERATURE,
        system=RANKING_SYSTEM_PROMPT,
        messages=_json_message(payload),
        output_format=RankingOutput,
    )
    if parsed is None:
        return influencers

    scores = {item.id: item for item in parsed.ranked if item.id}
    ranked = []
    for candidate in influencers:
        scored = scores.get(candidate.id)
        ranked.append(
            candidate.model_copy(
                update={
                    "score": scored.score if scored and scored.score is not None else 0.0,
                    "reason": scored.reason if scored else None,
                }
            )
        )
    ranked.sort(key=lambda candidate: candidate.score or 0.0, reverse=True)
    return ranked
