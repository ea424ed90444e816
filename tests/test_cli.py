"""Tests for the operations CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from collabhub.cli import build_parser, format_json, format_table, main, run_close_idle
from collabhub.config import Settings
from collabhub.domain.types import Language, UserType
from collabhub.inquiry.models import IdleSweepDetail, IdleSweepResult
from collabhub.storage import InquiryStore, UserStore, close_db, init_db

_LONG_AGO = "2020-01-01T00:00:00Z"


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_path=tmp_path / "collabhub.db",
        gmail_token_path=tmp_path / "token.json",
    )


def _seed_idle_chat(db_path: Path) -> str:
    """Create one open chat whose business went quiet long ago."""
    conn = init_db(db_path)
    try:
        influencer = UserStore(conn).create_user(
            email="maya@example.com",
            password_hash="x",
            user_type=UserType.INFLUENCER,
            username="maya",
            first_name="Maya",
            last_name=None,
            language_preference=Language.EN,
        )
        inquiry = InquiryStore(conn).create_inquiry(
            influencer_id=influencer.id,
            business_email="brand@glowco.com",
            message="Collab?",
        )
        conn.execute(
            "UPDATE inquiries SET last_business_message_at = ? WHERE id = ?",
            (_LONG_AGO, inquiry.id),
        )
        conn.commit()
        return inquiry.id
    finally:
        close_db(conn)


class TestBuildParser:
    """Tests for argument parser construction."""

    def test_close_idle_arguments(self) -> None:
        args = build_parser().parse_args(["close-idle", "--minutes", "30", "--format", "json"])

        assert args.command == "close-idle"
        assert args.minutes == 30
        assert args.output_format == "json"

    def test_close_idle_defaults(self) -> None:
        args = build_parser().parse_args(["close-idle"])

        assert args.minutes is None
        assert args.output_format == "table"

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatting:
    """Tests for table and JSON output."""

    def test_table(self) -> None:
        result = IdleSweepResult(
            closed=1,
            details=[
                IdleSweepDetail(inquiry_id="inq-1", status="closed"),
                IdleSweepDetail(inquiry_id="inq-2", status="failed", error="x" * 60),
            ],
        )

        lines = format_table(result).split("\n")

        assert lines[0].startswith("Inquiry")
        assert len(lines) == 5  # header + separator + 2 rows + summary
        assert lines[3].rstrip().endswith("...")
        assert lines[-1] == "Closed 1 of 2 idle chats."

    def test_empty_table(self) -> None:
        assert format_table(IdleSweepResult(closed=0)) == "No idle chats found."

    def test_json(self) -> None:
        result = IdleSweepResult(
            closed=1, details=[IdleSweepDetail(inquiry_id="inq-1", status="closed")]
        )

        parsed = json.loads(format_json(result))

        assert parsed == {
            "closed": 1,
            "details": [{"inquiry_id": "inq-1", "status": "closed", "error": None}],
        }


class TestRunCloseIdle:
    """Tests for the one-shot idle sweep."""

    def test_closes_idle_chat(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)
        inquiry_id = _seed_idle_chat(settings.database_path)

        result = run_close_idle(settings, None)

        assert result.closed == 1
        assert [d.inquiry_id for d in result.details] == [inquiry_id]
        conn = init_db(settings.database_path)
        try:
            inquiry = InquiryStore(conn).get_inquiry(inquiry_id)
        finally:
            close_db(conn)
        assert inquiry is not None
        assert inquiry.chat_active is False
        assert inquiry.ai_recommendation

    def test_nothing_idle(self, tmp_path: Path) -> None:
        result = run_close_idle(_settings(tmp_path), 10)

        assert result.closed == 0
        assert result.details == []


class TestMain:
    """Tests for the main() entry point."""

    def test_close_idle_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        settings = _settings(tmp_path)
        _seed_idle_chat(settings.database_path)

        with patch("collabhub.cli.get_settings", return_value=settings):
            main(["close-idle", "--format", "json"])

        assert json.loads(capsys.readouterr().out)["closed"] == 1

    def test_authorize_gmail(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        settings = _settings(tmp_path)

        with (
            patch("collabhub.cli.get_settings", return_value=settings),
            patch("collabhub.cli.get_gmail_credentials") as mock_creds,
        ):
            main(["authorize-gmail"])

        mock_creds.assert_called_once_with(
            settings.gmail_token_path, settings.gmail_credentials_path
        )
        assert "Gmail token written" in capsys.readouterr().err
