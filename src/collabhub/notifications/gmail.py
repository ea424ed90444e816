"""Gmail OAuth2 credentials and a minimal send-only Gmail API client."""

from __future__ import annotations

import base64
from email.message import EmailMessage
from pathlib import Path
from typing import Any

import google.auth.transport.requests
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow  # type: ignore[import-untyped]
from googleapiclient.discovery import Resource, build
from pydantic import BaseModel, ConfigDict

GMAIL_SEND_SCOPES: list[str] = ["https://www.googleapis.com/auth/gmail.send"]


class OutboundEmail(BaseModel):
    """A plain-text email to be sent through Gmail."""

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    body: str


def get_gmail_credentials(
    token_path: str | Path,
    credentials_path: str | Path,
    scopes: list[str] | None = None,
) -> Credentials:
    """Load Gmail OAuth2 credentials, refreshing or creating as needed.

    If ``token_path`` holds valid (or refreshable) credentials they are
    used directly.  Otherwise an interactive OAuth2 flow is started via
    ``InstalledAppFlow.run_local_server()``; run ``collabhub-cli
    authorize-gmail`` once on a machine with a browser to create the token.

    The resulting credentials are persisted to ``token_path``.

    Args:
        token_path: Path to the cached OAuth2 token file.
        credentials_path: Path to the OAuth2 client-secrets file.
        scopes: OAuth2 scopes to request.  Defaults to ``gmail.send``.

    Returns:
        A ``google.oauth2.credentials.Credentials`` instance ready for API calls.
    """
    if scopes is None:
        scopes = GMAIL_SEND_SCOPES

    token_path = Path(token_path)
    creds: Credentials | None = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(  # type: ignore[no-untyped-call]
            str(token_path), scopes
        )

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(google.auth.transport.requests.Request())
    else:
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes)
        creds = flow.run_local_server(port=0)

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    return creds


def get_gmail_service(credentials: Credentials) -> Resource:
    """Build a Gmail API v1 service client from loaded credentials."""
    return build("gmail", "v1", credentials=credentials)


class GmailClient:
    """Send-only wrapper around the Gmail API service.

    Args:
        service: An authenticated Gmail API v1 service resource.
        from_email: The address used as the ``From`` header.
    """

    def __init__(self, service: Any, from_email: str) -> None:
        self._service = service
        self._from_email = from_email

    def send(self, outbound: OutboundEmail) -> dict[str, Any]:
        """Compose and send an email via ``users.messages.send``.

        Args:
            outbound: The email to send.

        Returns:
            The Gmail API response dict (contains ``id`` and ``threadId``).
        """
        message = EmailMessage()
        message.set_content(outbound.body)
        message["To"] = outbound.to
        if self._from_email:
            message["From"] = self._from_email
        message["Subject"] = outbound.subject

        encoded = base64.urlsafe_b64encode(message.as_bytes()).decode()
        result: dict[str, Any] = (
            self._service.users().messages().send(userId="me", body={"raw": encoded}).execute()
        )
        return result
