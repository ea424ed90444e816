"""Campaign briefs, influencer matching, and outreach."""

from collabhub.campaign.models import CampaignInput
from collabhub.campaign.routes import router
from collabhub.campaign.service import CampaignService

__all__ = ["CampaignInput", "CampaignService", "router"]
