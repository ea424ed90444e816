"""LLM integration: the negotiation agent and the campaign pipeline steps.

Provides Anthropic client configuration, Pydantic models for LLM I/O,
prompt templates, chat/recommendation/outreach generation, and campaign
normalization, extraction, criteria, and ranking.
"""

from collabhub.llm.agent import (
    FALLBACK_CHAT_RESPONSE,
    FALLBACK_INQUIRY_RESPONSE,
    FALLBACK_OUTREACH_MESSAGE,
    FALLBACK_RECOMMENDATION,
    compute_fallback_offer_price,
    draft_inquiry_from_campaign,
    generate_chat_response,
    generate_inquiry_response,
    generate_recommendation,
    parse_verdict,
)
from collabhub.llm.client import AGENT_MODEL, PIPELINE_MODEL, get_anthropic_client
from collabhub.llm.matching import (
    CAMPAIGN_FIELDS,
    extract_campaign_fields,
    generate_search_criteria,
    normalize_campaign_input,
    rerank_influencers,
)
from collabhub.llm.models import OutreachDraft, Recommendation

__all__ = [
    "AGENT_MODEL",
    "CAMPAIGN_FIELDS",
    "FALLBACK_CHAT_RESPONSE",
    "FALLBACK_INQUIRY_RESPONSE",
    "FALLBACK_OUTREACH_MESSAGE",
    "FALLBACK_RECOMMENDATION",
    "PIPELINE_MODEL",
    "OutreachDraft",
    "Recommendation",
    "compute_fallback_offer_price",
    "draft_inquiry_from_campaign",
    "extract_campaign_fields",
    "generate_chat_response",
    "generate_inquiry_response",
    "generate_recommendation",
    "get_anthropic_client",
    "normalize_campaign_input",
    "parse_verdict",
    "rerank_influencers",
]
