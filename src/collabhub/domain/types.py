"""Domain enumerations and status rules for the collaboration marketplace."""

from enum import StrEnum


class UserType(StrEnum):
    """The two sides of the marketplace."""

    INFLUENCER = "influencer"
    BUSINESS = "business"


class Language(StrEnum):
    """Languages the negotiation agent can reply in."""

    EN = "en"
    ZH = "zh"


class InquiryStatus(StrEnum):
    """Influencer-facing decision on a business inquiry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_INFO = "needs_info"


class CampaignStatus(StrEnum):
    """Lifecycle of a business campaign brief."""

    PROCESSING = "processing"
    WAITING_APPROVAL = "waiting_approval"
    NEGOTIATING = "negotiating"
    WAITING_RESPONSE = "waiting_response"
    DEAL = "deal"
    DENIED = "denied"


class MessageRole(StrEnum):
    """Author of a chat message. ``user`` is the business, ``assistant`` the agent."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Platform(StrEnum):
    """Supported social media platforms."""

    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"


class Verdict(StrEnum):
    """Outcome of the agent's end-of-chat recommendation."""

    APPROVE = "approve"
    REJECT = "reject"
    NEEDS_INFO = "needs_info"


# Statuses a business may set directly on its own campaign.
BUSINESS_SETTABLE_CAMPAIGN_STATUSES: frozenset[CampaignStatus] = frozenset(
    {
        CampaignStatus.WAITING_APPROVAL,
        CampaignStatus.NEGOTIATING,
        CampaignStatus.DEAL,
        CampaignStatus.DENIED,
    }
)

# An influencer's decision on a campaign-sourced inquiry is reflected on the campaign.
INQUIRY_DECISION_TO_CAMPAIGN_STATUS: dict[InquiryStatus, CampaignStatus] = {
    InquiryStatus.APPROVED: CampaignStatus.DEAL,
    InquiryStatus.REJECTED: CampaignStatus.DENIED,
}


def resolve_language(requested: object = None, preferred: object = None) -> Language:
    """Pick the reply language for the agent.

    An explicit request for a supported language wins.  Otherwise the
    influencer's stored preference is honoured only when it is ``zh``;
    everything else falls back to English.

    Args:
        requested: Language sent with the request body, if any.
        preferred: The influencer's ``language_preference``.

    Returns:
        The resolved ``Language``.
    """
    if requested in (Language.EN.value, Language.ZH.value):
        return Language(requested)
    if preferred == Language.ZH.value:
        return Language.ZH
    return Language.EN


def parse_platform(value: object) -> Platform | None:
    """Return the ``Platform`` named by *value*, or ``None`` if unsupported."""
    try:
        return Platform(value) if isinstance(value, str) else None
    except ValueError:
        return None
