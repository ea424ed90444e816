"""Anthropic client factory and model configuration for the negotiation agent."""

from __future__ import annotations

from anthropic import Anthropic

# Sonnet for the conversation itself, Haiku for the structured pipeline steps
AGENT_MODEL = "claude-sonnet-4-5-20250929"
PIPELINE_MODEL = "claude-haiku-4-5-20251001"

# Sampling configuration per operation
INQUIRY_TEMPERATURE = 0.7
INQUIRY_MAX_TOKENS = 500
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 300
RECOMMENDATION_TEMPERATURE = 0.5
RECOMMENDATION_MAX_TOKENS = 500
OUTREACH_TEMPERATURE = 0.4
PIPELINE_TEMPERATURE = 0.2
PIPELINE_MAX_TOKENS = 1024


def get_anthropic_client(api_key: str | None = None) -> Anthropic:
    """Create an Anthropic client.

    Without an explicit key the constructor reads ``ANTHROPIC_API_KEY`` from
    the environment.

    Args:
        api_key: Optional API key, typically from ``Settings``.

    Returns:
        Configured Anthropic client instance.
    """
    if api_key:
        return Anthropic(api_key=api_key)
    return Anthropic()
