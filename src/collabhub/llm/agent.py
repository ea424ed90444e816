"""Negotiation agent: replies to businesses on an influencer's behalf.

Each operation calls Claude and never raises on provider failure: when the
API errors out or returns nothing usable, a language-specific fallback is
returned instead and ``LLM_FALLBACKS`` is incremented.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

import structlog
from anthropic import Anthropic, AnthropicError
from pydantic import ValidationError

from collabhub.domain.models import (
    DEFAULT_MONETARY_BASELINE,
    BusinessProfile,
    Campaign,
    InfluencerPreferences,
    Inquiry,
    Message,
    User,
)
from collabhub.domain.types import Language, MessageRole, Verdict, resolve_language
from collabhub.llm.client import (
    AGENT_MODEL,
    CHAT_MAX_TOKENS,
    CHAT_TEMPERATURE,
    INQUIRY_MAX_TOKENS,
    INQUIRY_TEMPERATURE,
    OUTREACH_TEMPERATURE,
    PIPELINE_MAX_TOKENS,
    PIPELINE_MODEL,
    RECOMMENDATION_MAX_TOKENS,
    RECOMMENDATION_TEMPERATURE,
)
from collabhub.llm.models import OutreachDraft, OutreachOutput, Recommendation
from collabhub.llm.prompts import (
    CHAT_SYSTEM_PROMPTS,
    GUIDELINES_LINE,
    INQUIRY_DETAILS,
    INQUIRY_SYSTEM_PROMPTS,
    LANGUAGE_DIRECTIVES,
    OUTREACH_SYSTEM_PROMPT,
    PREFERENCES_BLOCK,
    RECOMMENDATION_SYSTEM_PROMPTS,
    RECOMMENDATION_USER_PROMPT,
)
from collabhub.observability.metrics import LLM_FALLBACKS

logger = structlog.get_logger()

FALLBACK_INQUIRY_RESPONSE: dict[Language, str] = {
    Language.EN: "Thanks for reaching out! What's your budget for this and what's the timeline?",
    Language.ZH: "感谢联系！可以告知一下预算和预计的时间安排吗？",
}

FALLBACK_CHAT_RESPONSE: dict[Language, str] = {
    Language.EN: "Could you elaborate on that?",
    Language.ZH: "可以再详细说明一下吗？",
}

FALLBACK_RECOMMENDATION: dict[Language, str] = {
    Language.EN: (
        "**NEEDS INFO**\n\n"
        "Unable to generate a recommendation. Please review the conversation manually.\n\n"
        "**Key Details:**\n"
        "- Budget: Not discussed\n"
        "- Timeline: Not discussed\n"
        "- Deliverables: Not discussed"
    ),
    Language.ZH: (
        "**需要更多信息**\n\n"
        "暂时无法生成建议，请手动查看对话内容。\n\n"
        "**关键信息：**\n"
        "- 预算：未提及\n"
        "- 时间：未提及\n"
        "- 交付内容：未提及"
    ),
}

FALLBACK_OUTREACH_MESSAGE = (
    "We'd love to collaborate on this campaign. "
    "Are you open to discussing deliverables and timeline?"
)

_LANGUAGE_NAMES = {Language.EN: "English", Language.ZH: "Simplified Chinese"}

_VERDICT_PATTERN = re.compile(r"\*\*\s*\[?\s*(APPROVE|REJECT|NEEDS[\s_-]*INFO)", re.IGNORECASE)

# Errors that trigger a fallback instead of propagating
_PROVIDER_ERRORS = (AnthropicError, ValidationError)


# ----------------------------------------------------------------------
# Prompt helpers
# ----------------------------------------------------------------------


def _system_prompt(
    templates: dict[Language, str],
    preferences: InfluencerPreferences,
    language: Language,
) -> str:
    guidelines_line = (
        GUIDELINES_LINE[language].format(guidelines=preferences.additional_guidelines)
        if preferences.additional_guidelines
        else ""
    )
    preferences_block = PREFERENCES_BLOCK[language].format(
        content_preferences=preferences.personal_content_preferences,
        monetary_baseline=preferences.monetary_baseline,
        content_length=preferences.content_length,
        guidelines_line=guidelines_line,
    ).rstrip()
    return templates[language].format(
        language_directive=LANGUAGE_DIRECTIVES[language],
        preferences_block=preferences_block,
    )


def format_inquiry_details(inquiry: Inquiry) -> str:
    """Render the business's original inquiry as plain text for a prompt."""
    company_line = f"Company: {inquiry.company_info}\n" if inquiry.company_info else ""
    budget_line = (
        f"Offered budget: ${inquiry.price}" if inquiry.price else "Budget: Not specified"
    )
    return INQUIRY_DETAILS.format(
        business_email=inquiry.business_email,
        company_line=company_line,
        budget_line=budget_line,
        message=inquiry.message,
    )


def build_chat_messages(opening: str, history: list[Message]) -> list[dict[str, str]]:
    """Turn stored chat history into Anthropic ``messages``.

    The conversation opens with *opening* as a user turn, system-role
    history entries are dropped, and consecutive turns of the same role are
    merged so roles strictly alternate.
    """
    turns: list[dict[str, str]] = [{"role": "user", "content": opening}]
    for message in history:
        if message.role == MessageRole.SYSTEM:
            continue
        role = message.role.value
        if turns[-1]["role"] == role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{message.content}"
        else:
            turns.append({"role": role, "content": message.content})
    return turns


def format_transcript(history: list[Message]) -> str:
    lines = []
    for message in history:
        if message.role == MessageRole.SYSTEM:
            continue
        speaker = "Business" if message.role == MessageRole.USER else "AI Agent"
        lines.append(f"{speaker}: {message.content}")
    return "\n\n".join(lines)


def response_text(response: Any) -> str:
    """Return the first text block of a Claude response, stripped."""
    for block in response.content or []:
        text = getattr(block, "text", None)
        if isinstance(text, str):
            return text.strip()
    return ""


def record_fallback(operation: str, reason: str) -> None:
    LLM_FALLBACKS.labels(operation=operation).inc()
    logger.warning("LLM fallback used", operation=operation, reason=reason)


def complete_text(client: Anthropic | None, operation: str, **request: Any) -> str:
    """Run ``client.messages.create`` and return the reply text.

    Returns an empty string (after recording a fallback) when the client is
    missing, the provider call fails, or the reply has no text.
    """
    if client is None:
        record_fallback(operation, "client not configured")
        return ""
    try:
        response = client.messages.create(**request)
    except _PROVIDER_ERRORS as exc:
        record_fallback(operation, str(exc))
        return ""
    text = response_text(response)
    if not text:
        record_fallback(operation, "empty response")
    return text


def parse_output(client: Anthropic | None, operation: str, **request: Any) -> Any:
    """Run ``client.messages.parse`` and return the parsed output model.

    Returns ``None`` (after recording a fallback) on any failure.
    """
    if client is None:
        record_fallback(operation, "client not configured")
        return None
    try:
        response = client.messages.parse(**request)
    except _PROVIDER_ERRORS as exc:
        record_fallback(operation, str(exc))
        return None
    if response.parsed_output is None:
        record_fallback(operation, "no structured output")
    return response.parsed_output


def parse_verdict(text: str) -> Verdict:
    """Read the verdict from the bold header of a recommendation.

    Defaults to ``NEEDS_INFO`` when no recognizable header is present.
    """
    match = _VERDICT_PATTERN.search(text)
    if match is None:
        return Verdict.NEEDS_INFO
    keyword = match.group(1).upper()
    if keyword == "APPROVE":
        return Verdict.APPROVE
    if keyword == "REJECT":
        return Verdict.REJECT
    return Verdict.NEEDS_INFO


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_fallback_offer_price(
    preferences: InfluencerPreferences | None,
    campaign: Campaign | None,
) -> int:
    """Pick an offer between the influencer's baseline and the campaign budget.

    The anchor is the higher of the baseline and the budget floor; the offer
    is the midpoint between that anchor and the budget ceiling, never above
    the ceiling.  A non-positive ceiling falls back to the baseline.

    Args:
        preferences: The influencer's preferences; baseline defaults to 500.
        campaign: The campaign whose budget bounds the offer.

    Returns:
        The offer in whole dollars.
    """
    baseline = preferences.monetary_baseline if preferences else DEFAULT_MONETARY_BASELINE
    budget_min = (
        campaign.budget_min if campaign and campaign.budget_min is not None else baseline
    )
    budget_max = (
        campaign.budget_max if campaign and campaign.budget_max is not None else budget_min
    )
    if budget_max <= 0:
        return baseline
    anchor = max(baseline, budget_min)
    midpoint = (anchor + budget_max) / 2
    capped = min(max(anchor, midpoint), budget_max)
    return _round_half_up(capped)


# ----------------------------------------------------------------------
# Agent operations
# ----------------------------------------------------------------------


def generate_inquiry_response(
    inquiry: Inquiry,
    preferences: InfluencerPreferences,
    client: Anthropic | None,
    language: Language = Language.EN,
    *,
    model: str = AGENT_MODEL,
) -> str:
    """Generate the agent's first chat reply to a new inquiry.

    Args:
        inquiry: The business's inquiry (email, message, price, company).
        preferences: The influencer's agent preferences.
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        language: Reply language.
        model: The Anthropic model ID to use.

    Returns:
        The reply text, or the language's fallback on any failure.
    """
    opening = (
        f"Business inquiry:\n{format_inquiry_details(inquiry)}\n\n"
        "Write your first reply to open the conversation and negotiation."
    )
    text = complete_text(
        client,
        "inquiry_response",
        model=model,
        max_tokens=INQUIRY_MAX_TOKENS,
        temperature=INQUIRY_TEMPERATURE,
        system=_system_prompt(INQUIRY_SYSTEM_PROMPTS, preferences, language),
        messages=[{"role": "user", "content": opening}],
    )
    return text or FALLBACK_INQUIRY_RESPONSE[language]


def generate_chat_response(
    history: list[Message],
    inquiry: Inquiry,
    preferences: InfluencerPreferences,
    client: Anthropic | None,
    language: Language = Language.EN,
    *,
    model: str = AGENT_MODEL,
) -> str:
    """Generate the agent's next reply in an ongoing chat.

    Args:
        history: All stored messages of the inquiry, oldest first, ending
            with the business's latest message.
        inquiry: The original inquiry, given to the model as context.
        preferences: The influencer's agent preferences.
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        language: Reply language.
        model: The Anthropic model ID to use.

    Returns:
        The reply text, or the language's fallback on any failure.
    """
    opening = f"Initial inquiry details:\n{format_inquiry_details(inquiry)}"
    text = complete_text(
        client,
        "chat_response",
        model=model,
        max_tokens=CHAT_MAX_TOKENS,
        temperature=CHAT_TEMPERATURE,
        system=_system_prompt(CHAT_SYSTEM_PROMPTS, preferences, language),
        messages=build_chat_messages(opening, history),
    )
    return text or FALLBACK_CHAT_RESPONSE[language]


def generate_recommendation(
    history: list[Message],
    inquiry: Inquiry,
    preferences: InfluencerPreferences,
    client: Anthropic | None,
    language: Language = Language.EN,
    *,
    model: str = AGENT_MODEL,
) -> Recommendation:
    """Summarize a finished chat into an approve/reject/needs-info recommendation."""
    user_text = RECOMMENDATION_USER_PROMPT.format(
        inquiry_details=format_inquiry_details(inquiry),
        transcript=format_transcript(history) or "(no messages)",
    )
    text = complete_text(
        client,
        "recommendation",
        model=model,
        max_tokens=RECOMMENDATION_MAX_TOKENS,
        temperature=RECOMMENDATION_TEMPERATURE,
        system=_system_prompt(RECOMMENDATION_SYSTEM_PROMPTS, preferences, language),
        messages=[{"role": "user", "content": user_text}],
    )
    if not text:
        return Recommendation(text=FALLBACK_RECOMMENDATION[language], verdict=Verdict.NEEDS_INFO)
    return Recommendation(text=text, verdict=parse_verdict(text))


def draft_inquiry_from_campaign(
    campaign: Campaign,
    client: Anthropic | None,
    *,
    business_profile: BusinessProfile | None = None,
    preferences: InfluencerPreferences | None = None,
    influencer: User | None = None,
    language: Language | None = None,
    model: str = PIPELINE_MODEL,
) -> OutreachDraft:
    """Draft a brand-to-influencer outreach message for a campaign.

    Uses Claude's structured outputs to obtain the message and one concrete
    offer.  A blank message or a missing/non-finite price is replaced by
    the fallback message or :func:`compute_fallback_offer_price`.

    Args:
        campaign: The campaign being pitched.
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        business_profile: The brand's profile, if any.
        preferences: The influencer's preferences, if configured.
        influencer: The influencer being contacted.
        language: Message language; defaults to the influencer's preference.
        model: The Anthropic model ID to use.

    Returns:
        An ``OutreachDraft`` with the message and the offer price.
    """
    if language is None:
        language = resolve_language(
            None, influencer.language_preference if influencer else None
        )
    fallback_price = compute_fallback_offer_price(preferences, campaign)

    payload = {
        "influencer": {
            "id": influencer.id if influencer else None,
            "name": (influencer.full_name or influencer.username) if influencer else None,
            "language": language.value,
        },
        "influencer_preferences": (
            preferences.model_dump(
                mode="json",
                include={
                    "personal_content_preferences",
                    "monetary_baseline",
                    "content_length",
                    "additional_guidelines",
                },
            )
            if preferences
            else None
        ),
        "campaign": campaign.model_dump(
            mode="json", exclude={"matched_influencers", "search_criteria"}
        ),
        "business_profile": (
            business_profile.model_dump(mode="json", exclude={"id", "user_id"})
            if business_profile
            else None
        ),
    }

    parsed: OutreachOutput | None = parse_output(
        client,
        "outreach_draft",
        model=model,
        max_tokens=PIPELINE_MAX_TOKENS,
        temperature=OUTREACH_TEMPERATURE,
        system=OUTREACH_SYSTEM_PROMPT.format(language_name=_LANGUAGE_NAMES[language]),
        messages=[{"role": "user", "content": json.dumps(payload, ensure_ascii=False)}],
        output_format=OutreachOutput,
    )
    if parsed is None:
        return OutreachDraft(message=FALLBACK_OUTREACH_MESSAGE, offer_price=fallback_price)

    message = parsed.message.strip() or FALLBACK_OUTREACH_MESSAGE
    offer_price = (
        _round_half_up(parsed.offer_price)
        if parsed.offer_price is not None and math.isfinite(parsed.offer_price)
        else fallback_price
    )
    return OutreachDraft(message=message, offer_price=offer_price)
