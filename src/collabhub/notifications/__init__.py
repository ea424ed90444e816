"""Email notifications sent through the Gmail API."""

from collabhub.notifications.gmail import (
    GmailClient,
    OutboundEmail,
    get_gmail_credentials,
    get_gmail_service,
)
from collabhub.notifications.status_email import compose_status_email, send_status_email

__all__ = [
    "GmailClient",
    "OutboundEmail",
    "compose_status_email",
    "get_gmail_credentials",
    "get_gmail_service",
    "send_status_email",
]
