"""Command-line tools for operating CollabHub.

Subcommands:

- ``close-idle``: run the idle-chat sweep once against the configured
  database (the same sweep the cron endpoint triggers).
- ``authorize-gmail``: run the interactive Gmail OAuth flow and store the
  token used for decision emails.

Usage::

    collabhub-cli close-idle --minutes 30 --format json
    collabhub-cli authorize-gmail
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from collabhub.config import Settings, get_settings
from collabhub.inquiry.models import IdleSweepResult
from collabhub.inquiry.service import InquiryService
from collabhub.llm.client import get_anthropic_client
from collabhub.notifications.gmail import get_gmail_credentials
from collabhub.storage import CampaignStore, InquiryStore, UserStore, close_db, init_db


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one sub-parser per command.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(prog="collabhub-cli", description="CollabHub operations")
    subparsers = parser.add_subparsers(dest="command", required=True)

    close_idle = subparsers.add_parser(
        "close-idle", help="Close negotiation chats whose business has gone quiet"
    )
    close_idle.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Idle threshold in minutes (default: IDLE_MINUTES setting)",
    )
    close_idle.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )

    subparsers.add_parser("authorize-gmail", help="Create the Gmail token for decision emails")

    return parser


def format_table(result: IdleSweepResult) -> str:
    """Format a sweep result as a human-readable table.

    Args:
        result: The outcome of ``InquiryService.close_idle_chats``.

    Returns:
        Formatted table string with header row and a summary line.
    """
    if not result.details:
        return "No idle chats found."

    headers = ["Inquiry", "Status", "Error"]
    widths = [36, 8, 40]

    def truncate(value: str | None, width: int) -> str:
        s = str(value or "")
        if len(s) > width:
            return s[: width - 3] + "..."
        return s

    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines = [header_line, "-" * len(header_line)]
    for detail in result.details:
        cells = [
            truncate(detail.inquiry_id, widths[0]),
            truncate(detail.status, widths[1]),
            truncate(detail.error, widths[2]),
        ]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))
    lines.append(f"Closed {result.closed} of {len(result.details)} idle chats.")
    return "\n".join(lines)


def format_json(result: IdleSweepResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2)


def run_close_idle(settings: Settings, minutes: int | None) -> IdleSweepResult:
    """Open the database, run one idle sweep, and close the database."""
    conn = init_db(settings.database_path)
    try:
        api_key = settings.anthropic_api_key.get_secret_value()
        service = InquiryService(
            users=UserStore(conn),
            inquiries=InquiryStore(conn),
            campaigns=CampaignStore(conn),
            llm_client=get_anthropic_client(api_key) if api_key else None,
            idle_minutes=settings.idle_minutes,
        )
        return service.close_idle_chats(idle_minutes=minutes)
    finally:
        close_db(conn)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments and run the requested command."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.command == "close-idle":
        result = run_close_idle(settings, args.minutes)
        output = format_json(result) if args.output_format == "json" else format_table(result)
        print(output)
    elif args.command == "authorize-gmail":
        get_gmail_credentials(settings.gmail_token_path, settings.gmail_credentials_path)
        print(f"Gmail token written to {settings.gmail_token_path}", file=sys.stderr)


if __name__ == "__main__":
    main()
