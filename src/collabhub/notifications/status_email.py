"""Decision emails sent to businesses when an influencer settles an inquiry."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from collabhub.domain.types import InquiryStatus
from collabhub.notifications.gmail import GmailClient, OutboundEmail

logger = structlog.get_logger()

EMAIL_TIMEOUT_SECONDS = 5.0

_SUBJECTS: dict[InquiryStatus, str] = {
    InquiryStatus.APPROVED: "{name} accepted your collaboration inquiry",
    InquiryStatus.REJECTED: "Update on your collaboration inquiry with {name}",
    InquiryStatus.NEEDS_INFO: "{name} needs more information about your inquiry",
}

_BODIES: dict[InquiryStatus, str] = {
    InquiryStatus.APPROVED: (
        "Good news! {name} has reviewed your collaboration inquiry and would like "
        "to move forward. They will be in touch to finalize the details."
    ),
    InquiryStatus.REJECTED: (
        "Thank you for reaching out. After reviewing your collaboration inquiry, "
        "{name} has decided not to move forward at this time."
    ),
    InquiryStatus.NEEDS_INFO: (
        "{name} is interested in your collaboration inquiry but needs a few more "
        "details before deciding."
    ),
}


def compose_status_email(
    to: str,
    influencer_name: str,
    status: InquiryStatus,
    note: str | None = None,
) -> OutboundEmail:
    """Build the decision email for *status*.

    Raises:
        ValueError: If *status* is ``pending``, which sends no email.
    """
    if status not in _SUBJECTS:
        raise ValueError(f"No decision email for status {status!r}")
    body = _BODIES[status].format(name=influencer_name)
    if note and note.strip():
        body += f"\n\nMessage from {influencer_name}:\n{note.strip()}"
    body += "\n\nThis message was sent by CollabHub on behalf of the influencer."
    return OutboundEmail(
        to=to,
        subject=_SUBJECTS[status].format(name=influencer_name),
        body=body,
    )


async def send_status_email(
    gmail_client: GmailClient | None,
    to: str,
    influencer_name: str,
    status: InquiryStatus,
    note: str | None = None,
    *,
    timeout: float = EMAIL_TIMEOUT_SECONDS,
) -> dict[str, Any] | None:
    """Send a decision email without ever failing the caller.

    The blocking Gmail call runs in a worker thread and is abandoned after
    *timeout* seconds.  Failures and timeouts are logged, not raised.

    Returns:
        The Gmail API response, or ``None`` when nothing was sent.
    """
    if gmail_client is None:
        logger.info("Gmail not configured, skipping decision email", status=status)
        return None

    outbound = compose_status_email(to, influencer_name, status, note)
    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(gmail_client.send, outbound), timeout=timeout
        )
    except TimeoutError:
        logger.warning("Decision email timed out", to=to, status=status, timeout=timeout)
        return None
    except Exception:
        logger.exception("Failed to send decision email", to=to, status=status)
        return None

    logger.info("Decision email sent", to=to, status=status, message_id=result.get("id"))
    return result
