"""SQLite-backed store for influencer social accounts.

Each influencer has at most one account per platform.  Every write and
the re-selection of the primary account (the one with the most followers)
commit together in one transaction.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from collabhub.domain.errors import NotFoundError
from collabhub.domain.models import SocialAccount
from collabhub.domain.types import Platform
from collabhub.storage.schema import (
    MarketplaceConnection,
    new_id,
    utc_timestamp,
    write_transaction,
)

# Columns callers may set through upsert / touch_sync.
_WRITABLE_COLUMNS = (
    "handle",
    "platform_account_id",
    "followers",
    "likes",
    "raw_profile",
    "access_token",
    "refresh_token",
    "expires_at",
)


def _row_to_account(row: sqlite3.Row) -> SocialAccount:
    data = dict(row)
    data["is_primary"] = bool(data["is_primary"])
    if data["raw_profile"] is not None:
        data["raw_profile"] = json.loads(data["raw_profile"])
    return SocialAccount.model_validate(data)


def _encode(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(_WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown social account fields: {sorted(unknown)}")
    encoded = dict(fields)
    if "raw_profile" in encoded and encoded["raw_profile"] is not None:
        encoded["raw_profile"] = json.dumps(encoded["raw_profile"])
    return encoded


class SocialAccountStore:
    """Persist connected and manually entered social profiles."""

    def __init__(self, conn: MarketplaceConnection) -> None:
        self._conn = conn

    def list_by_user(self, user_id: str) -> list[SocialAccount]:
        """Return accounts with the primary first, then by followers, then platform."""
        rows = self._conn.execute(
            """
            SELECT * FROM social_accounts WHERE user_id = ?
            ORDER BY is_primary DESC, followers IS NULL, followers DESC, platform
            """,
            (user_id,),
        ).fetchall()
        return [_row_to_account(row) for row in rows]

    def get_account(self, user_id: str, platform: Platform) -> SocialAccount | None:
        row = self._conn.execute(
            "SELECT * FROM social_accounts WHERE user_id = ? AND platform = ?",
            (user_id, platform.value),
        ).fetchone()
        return _row_to_account(row) if row else None

    def upsert(self, user_id: str, platform: Platform, **fields: Any) -> SocialAccount:
        """Insert or update the account for *platform*.

        Only the supplied fields are written on conflict, so a manual entry
        does not wipe tokens stored by an earlier OAuth connection.

        Args:
            user_id: Owning influencer.
            platform: Social platform.
            **fields: Any of the writable columns (handle, followers, ...).

        Returns:
            The stored account after primary re-selection.
        """
        encoded = _encode(fields)
        now = utc_timestamp()
        columns = ["id", "user_id", "platform", *encoded, "created_at", "updated_at"]
        values = [new_id(), user_id, platform.value, *encoded.values(), now, now]
        updates = [f"{column} = excluded.{column}" for column in encoded]
        updates.append("updated_at = excluded.updated_at")

        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    f"""
                    INSERT INTO social_accounts ({", ".join(columns)})
                    VALUES ({", ".join("?" for _ in columns)})
                    ON CONFLICT (user_id, platform) DO UPDATE SET {", ".join(updates)}
                    """,
                    values,
                )
                self._select_primary(user_id)
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("User not found") from exc
        account = self.get_account(user_id, platform)
        if account is None:
            raise NotFoundError("Social account not found")
        return account

    def delete(self, user_id: str, platform: Platform) -> None:
        with write_transaction(self._conn):
            self._conn.execute(
                "DELETE FROM social_accounts WHERE user_id = ? AND platform = ?",
                (user_id, platform.value),
            )
            self._select_primary(user_id)

    def touch_sync(
        self, user_id: str, platform: Platform, **fields: Any
    ) -> SocialAccount | None:
        """Apply freshly synced fields and stamp ``last_synced_at``."""
        encoded = _encode(fields)
        now = utc_timestamp()
        assignments = [f"{column} = ?" for column in encoded]
        assignments += ["last_synced_at = ?", "updated_at = ?"]
        with write_transaction(self._conn):
            self._conn.execute(
                f"""
                UPDATE social_accounts SET {", ".join(assignments)}
                WHERE user_id = ? AND platform = ?
                """,
                [*encoded.values(), now, now, user_id, platform.value],
            )
            self._select_primary(user_id)
        return self.get_account(user_id, platform)

    def _select_primary(self, user_id: str) -> None:
        # Runs inside the caller's write_transaction. Missing follower counts rank below zero.
        row = self._conn.execute(
            """
            SELECT platform FROM social_accounts WHERE user_id = ?
            ORDER BY COALESCE(followers, -1) DESC, rowid
            LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        if row is None:
            return
        self._conn.execute(
            "UPDATE social_accounts SET is_primary = (platform = ?) WHERE user_id = ?",
            (row["platform"], user_id),
        )
