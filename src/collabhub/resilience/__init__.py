"""Resilience infrastructure for third-party API calls."""

from collabhub.resilience.retry import resilient_api_call

__all__ = [
    "resilient_api_call",
]
