"""Tests for decision emails and the send-only Gmail client."""

from __future__ import annotations

import base64
import email
import time
from unittest.mock import MagicMock

import pytest

from collabhub.domain.types import InquiryStatus
from collabhub.notifications.gmail import GmailClient, OutboundEmail
from collabhub.notifications.status_email import compose_status_email, send_status_email

# ---------------------------------------------------------------------------
# compose_status_email
# ---------------------------------------------------------------------------


class TestComposeStatusEmail:
    def test_approved(self) -> None:
        outbound = compose_status_email("brand@glowco.com", "Maya Lin", InquiryStatus.APPROVED)

        assert outbound.to == "brand@glowco.com"
        assert outbound.subject == "Maya Lin accepted your collaboration inquiry"
        assert "would like to move forward" in outbound.body
        assert "Message from" not in outbound.body

    def test_note_appended(self) -> None:
        outbound = compose_status_email(
            "brand@glowco.com", "Maya", InquiryStatus.NEEDS_INFO, "  What's the timeline?  "
        )

        assert "Message from Maya:\nWhat's the timeline?" in outbound.body
        assert outbound.body.endswith("on behalf of the influencer.")

    def test_pending_has_no_email(self) -> None:
        with pytest.raises(ValueError, match="No decision email"):
            compose_status_email("brand@glowco.com", "Maya", InquiryStatus.PENDING)


# ---------------------------------------------------------------------------
# send_status_email
# ---------------------------------------------------------------------------


class TestSendStatusEmail:
    @pytest.mark.anyio()
    async def test_sends_through_gmail(self) -> None:
        gmail = MagicMock()
        gmail.send.return_value = {"id": "msg-1"}

        result = await send_status_email(gmail, "brand@glowco.com", "Maya", InquiryStatus.REJECTED)

        assert result == {"id": "msg-1"}
        outbound = gmail.send.call_args.args[0]
        assert outbound.subject == "Update on your collaboration inquiry with Maya"

    @pytest.mark.anyio()
    async def test_no_client_is_noop(self) -> None:
        assert await send_status_email(None, "a@b.c", "Maya", InquiryStatus.APPROVED) is None

    @pytest.mark.anyio()
    async def test_failure_is_swallowed(self) -> None:
        gmail = MagicMock()
        gmail.send.side_effect = RuntimeError("quota exceeded")

        assert await send_status_email(gmail, "a@b.c", "Maya", InquiryStatus.APPROVED) is None

    @pytest.mark.anyio()
    async def test_timeout_is_swallowed(self) -> None:
        gmail = MagicMock()
        gmail.send.side_effect = lambda outbound: time.sleep(0.5)

        result = await send_status_email(
            gmail, "a@b.c", "Maya", InquiryStatus.APPROVED, timeout=0.05
        )

        assert result is None


# ---------------------------------------------------------------------------
# GmailClient
# ---------------------------------------------------------------------------


class TestGmailClient:
    def test_send_encodes_mime_message(self) -> None:
        service = MagicMock()
        send = service.users.return_value.messages.return_value.send
        send.return_value.execute.return_value = {"id": "m1", "threadId": "t1"}
        client = GmailClient(service, "hello@collabhub.test")

        result = client.send(OutboundEmail(to="brand@glowco.com", subject="Hi", body="Body"))

        assert result == {"id": "m1", "threadId": "t1"}
        kwargs = send.call_args.kwargs
        assert kwargs["userId"] == "me"
        parsed = email.message_from_bytes(base64.urlsafe_b64decode(kwargs["body"]["raw"]))
        assert parsed["To"] == "brand@glowco.com"
        assert parsed["From"] == "hello@collabhub.test"
        assert parsed["Subject"] == "Hi"
        assert parsed.get_payload().strip() == "Body"

    def test_from_header_omitted_without_sender(self) -> None:
        service = MagicMock()
        client = GmailClient(service, "")

        client.send(OutboundEmail(to="a@b.c", subject="s", body="b"))

        raw = service.users.return_value.messages.return_value.send.call_args.kwargs["body"]["raw"]
        assert email.message_from_bytes(base64.urlsafe_b64decode(raw))["From"] is None
