"""Domain types, models, and errors for the collaboration marketplace."""

from collabhub.domain.errors import (
    AuthenticationError,
    ChatClosedError,
    CollabHubError,
    ConflictError,
    ExtractionError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    SocialPlatformError,
)
from collabhub.domain.models import (
    BusinessProfile,
    Campaign,
    InfluencerPreferences,
    Inquiry,
    MatchedInfluencer,
    Message,
    SocialAccount,
    User,
    parse_optional_int,
)
from collabhub.domain.types import (
    BUSINESS_SETTABLE_CAMPAIGN_STATUSES,
    INQUIRY_DECISION_TO_CAMPAIGN_STATUS,
    CampaignStatus,
    InquiryStatus,
    Language,
    MessageRole,
    Platform,
    UserType,
    Verdict,
    parse_platform,
    resolve_language,
)

__all__ = [
    "BUSINESS_SETTABLE_CAMPAIGN_STATUSES",
    "INQUIRY_DECISION_TO_CAMPAIGN_STATUS",
    "AuthenticationError",
    "BusinessProfile",
    "Campaign",
    "CampaignStatus",
    "ChatClosedError",
    "CollabHubError",
    "ConflictError",
    "ExtractionError",
    "ForbiddenError",
    "InfluencerPreferences",
    "Inquiry",
    "InquiryStatus",
    "InvalidRequestError",
    "Language",
    "MatchedInfluencer",
    "Message",
    "MessageRole",
    "NotFoundError",
    "Platform",
    "SocialAccount",
    "SocialPlatformError",
    "User",
    "UserType",
    "Verdict",
    "parse_optional_int",
    "parse_platform",
    "resolve_language",
]
