"""SQLite-backed store for inquiries and their chat messages."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any

from collabhub.domain.errors import NotFoundError
from collabhub.domain.models import Inquiry, Message
from collabhub.domain.types import InquiryStatus, MessageRole, Verdict
from collabhub.storage.schema import (
    MarketplaceConnection,
    new_id,
    utc_timestamp,
    write_transaction,
)


def _row_to_inquiry(row: sqlite3.Row) -> Inquiry:
    data = dict(row)
    data["chat_active"] = bool(data["chat_active"])
    return Inquiry.model_validate(data)


class InquiryStore:
    """Persist inquiries, their negotiation state, and chat transcripts.

    Listing methods return newest first.  Messages are returned in the
    order they were added.
    """

    def __init__(self, conn: MarketplaceConnection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create_inquiry(
        self,
        *,
        influencer_id: str,
        business_email: str,
        message: str,
        business_id: str | None = None,
        campaign_id: str | None = None,
        price: int | None = None,
        company_info: str | None = None,
        attachment_url: str | None = None,
    ) -> Inquiry:
        """Insert a new pending inquiry with an open chat.

        ``last_business_message_at`` starts at the creation time so an
        inquiry nobody follows up on still becomes idle.
        """
        now = utc_timestamp()
        inquiry_id = new_id()
        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    """
                    INSERT INTO inquiries (
                        id, influencer_id, business_id, campaign_id, business_email,
                        message, price, company_info, attachment_url, status,
                        chat_active, created_at, updated_at, last_business_message_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?)
                    """,
                    (
                        inquiry_id,
                        influencer_id,
                        business_id,
                        campaign_id,
                        business_email,
                        message,
                        price,
                        company_info,
                        attachment_url,
                        InquiryStatus.PENDING.value,
                        now,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("Inquiry references an unknown account or campaign") from exc
        return self._require(inquiry_id)

    def update_status(
        self,
        inquiry_id: str,
        status: InquiryStatus,
        ai_response: str | None = None,
    ) -> Inquiry | None:
        """Set the inquiry status and, when given, the stored agent reply.

        Returns:
            The updated inquiry, or ``None`` if it does not exist.
        """
        with write_transaction(self._conn):
            self._conn.execute(
                """
                UPDATE inquiries
                SET status = ?, ai_response = COALESCE(?, ai_response), updated_at = ?
                WHERE id = ?
                """,
                (status.value, ai_response, utc_timestamp(), inquiry_id),
            )
        return self.get_inquiry(inquiry_id)

    def close_chat(
        self,
        inquiry_id: str,
        recommendation: str,
        verdict: Verdict | None = None,
    ) -> Inquiry | None:
        """Deactivate the chat and store the agent's recommendation."""
        with write_transaction(self._conn):
            self._conn.execute(
                """
                UPDATE inquiries
                SET chat_active = 0, ai_recommendation = ?, ai_verdict = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    recommendation,
                    verdict.value if verdict else None,
                    utc_timestamp(),
                    inquiry_id,
                ),
            )
        return self.get_inquiry(inquiry_id)

    def touch_last_business_message(
        self, inquiry_id: str, moment: datetime | None = None
    ) -> None:
        now = utc_timestamp(moment)
        with write_transaction(self._conn):
            self._conn.execute(
                "UPDATE inquiries SET last_business_message_at = ?, updated_at = ? WHERE id = ?",
                (now, now, inquiry_id),
            )

    def delete_inquiry(self, inquiry_id: str) -> None:
        """Delete an inquiry; its messages go with it via ``ON DELETE CASCADE``."""
        with write_transaction(self._conn):
            self._conn.execute("DELETE FROM inquiries WHERE id = ?", (inquiry_id,))

    def add_message(self, inquiry_id: str, role: MessageRole, content: str) -> Message:
        message_id = new_id()
        now = utc_timestamp()
        with write_transaction(self._conn):
            self._conn.execute(
                """
                INSERT INTO messages (id, inquiry_id, role, content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (message_id, inquiry_id, role.value, content, now),
            )
        return Message(
            id=message_id,
            inquiry_id=inquiry_id,
            role=role,
            content=content,
            created_at=now,
        )

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def get_inquiry(self, inquiry_id: str) -> Inquiry | None:
        row = self._conn.execute(
            "SELECT * FROM inquiries WHERE id = ?", (inquiry_id,)
        ).fetchone()
        return _row_to_inquiry(row) if row else None

    def list_by_influencer(self, influencer_id: str) -> list[Inquiry]:
        return self._list("influencer_id", influencer_id)

    def list_by_business(self, business_id: str) -> list[Inquiry]:
        return self._list("business_id", business_id)

    def find_for_campaign(self, campaign_id: str, influencer_id: str) -> Inquiry | None:
        """Return the inquiry already opened for this campaign/influencer pair."""
        row = self._conn.execute(
            """
            SELECT * FROM inquiries
            WHERE campaign_id = ? AND influencer_id = ?
            ORDER BY created_at LIMIT 1
            """,
            (campaign_id, influencer_id),
        ).fetchone()
        return _row_to_inquiry(row) if row else None

    def list_idle_open(self, threshold: datetime) -> list[Inquiry]:
        """Return open chats whose last business message is at or before *threshold*.

        Args:
            threshold: Cut-off moment; usually ``now - idle_minutes``.

        Returns:
            Matching inquiries, most recently active first.
        """
        rows = self._conn.execute(
            """
            SELECT * FROM inquiries
            WHERE chat_active = 1
              AND last_business_message_at IS NOT NULL
              AND last_business_message_at <= ?
            ORDER BY last_business_message_at DESC
            """,
            (utc_timestamp(threshold),),
        ).fetchall()
        return [_row_to_inquiry(row) for row in rows]

    def list_messages(self, inquiry_id: str) -> list[Message]:
        rows = self._conn.execute(
            """
            SELECT * FROM messages WHERE inquiry_id = ?
            ORDER BY created_at, rowid
            """,
            (inquiry_id,),
        ).fetchall()
        return [Message.model_validate(dict(row)) for row in rows]

    def _list(self, column: str, value: Any) -> list[Inquiry]:
        rows = self._conn.execute(
            f"SELECT * FROM inquiries WHERE {column} = ? ORDER BY created_at DESC, rowid DESC",
            (value,),
        ).fetchall()
        return [_row_to_inquiry(row) for row in rows]

    def _require(self, inquiry_id: str) -> Inquiry:
        inquiry = self.get_inquiry(inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")
        return inquiry
