"""SQLite persistence for the marketplace."""

from collabhub.storage.campaigns import CampaignStore
from collabhub.storage.inquiries import InquiryStore
from collabhub.storage.schema import (
    MarketplaceConnection,
    close_db,
    init_db,
    new_id,
    utc_timestamp,
    write_transaction,
)
from collabhub.storage.social import SocialAccountStore
from collabhub.storage.users import UserStore

__all__ = [
    "CampaignStore",
    "InquiryStore",
    "MarketplaceConnection",
    "SocialAccountStore",
    "UserStore",
    "close_db",
    "init_db",
    "new_id",
    "utc_timestamp",
    "write_transaction",
]
