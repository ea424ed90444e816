"""Account registration, login, preferences, and business profiles."""

from collabhub.accounts.routes import router

__all__ = ["router"]
