"""Prometheus metrics instrumentation for the marketplace API.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the business
  counters below.
- ``INQUIRIES_CREATED``: Inquiries opened, by origin (direct form or campaign outreach).
- ``CHATS_CLOSED``: Negotiation chats closed, by trigger (manual or idle sweep).
- ``CAMPAIGNS_PROCESSED``: Campaigns run through influencer matching.
- ``LLM_FALLBACKS``: Agent operations that fell back to canned output.

Counters are incremented where the event happens, not by polling the database.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

INQUIRIES_CREATED: Counter = Counter(
    "collabhub_inquiries_created_total",
    "Total number of inquiries opened",
    ["origin"],
)

CHATS_CLOSED: Counter = Counter(
    "collabhub_chats_closed_total",
    "Total number of negotiation chats closed",
    ["trigger"],
)

CAMPAIGNS_PROCESSED: Counter = Counter(
    "collabhub_campaigns_processed_total",
    "Total number of campaigns run through influencer matching",
)

LLM_FALLBACKS: Counter = Counter(
    "collabhub_llm_fallbacks_total",
    "Total number of LLM operations answered with a fallback",
    ["operation"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
