"""Influencer social media accounts."""

from collabhub.social.routes import router
from collabhub.social.service import SocialAccountService

__all__ = ["SocialAccountService", "router"]
