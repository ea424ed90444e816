"""SQLite-backed store for user accounts, sessions, and profiles.

Uses parameterized queries exclusively.  Every write runs inside
:func:`~collabhub.storage.schema.write_transaction`, which commits it or
rolls it back as one unit.
"""

from __future__ import annotations

import hashlib
import json
import secrets
import sqlite3
from datetime import UTC, datetime, timedelta

from collabhub.domain.errors import ConflictError, NotFoundError
from collabhub.domain.models import (
    BusinessProfile,
    InfluencerPreferences,
    MatchedInfluencer,
    User,
)
from collabhub.domain.types import Language, UserType
from collabhub.storage.schema import (
    MarketplaceConnection,
    new_id,
    utc_timestamp,
    write_transaction,
)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class UserStore:
    """Persist and retrieve users and their bearer sessions."""

    def __init__(self, conn: MarketplaceConnection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        row = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User.model_validate(dict(row)) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        row = self._conn.execute(
            "SELECT * FROM users WHERE username = ?", (username,)
        ).fetchone()
        return User.model_validate(dict(row)) if row else None

    def get_user_by_email(self, email: str, user_type: UserType | None = None) -> User | None:
        """Look up a user by email, optionally restricted to one account type.

        The same email may own one influencer and one business account.
        """
        if user_type is None:
            row = self._conn.execute(
                "SELECT * FROM users WHERE email = ? ORDER BY created_at LIMIT 1", (email,)
            ).fetchone()
        else:
            row = self._conn.execute(
                "SELECT * FROM users WHERE email = ? AND user_type = ?",
                (email, user_type.value),
            ).fetchone()
        return User.model_validate(dict(row)) if row else None

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        user_type: UserType,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        language_preference: Language = Language.EN,
    ) -> User:
        """Insert a new account.

        Raises:
            ConflictError: If the email (for this account type) or the
                username is already registered.
        """
        now = utc_timestamp()
        user_id = new_id()
        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    """
                    INSERT INTO users (
                        id, email, username, first_name, last_name, password_hash,
                        language_preference, user_type, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        email,
                        username,
                        first_name,
                        last_name,
                        password_hash,
                        language_preference.value,
                        user_type.value,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("An account with this email or username already exists") from exc
        return self._require(user_id)

    def update_username(self, user_id: str, username: str) -> User:
        try:
            self._update(user_id, "username", username)
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Username is already taken") from exc
        return self._require(user_id)

    def update_language_preference(self, user_id: str, language: Language) -> User:
        self._update(user_id, "language_preference", language.value)
        return self._require(user_id)

    def update_password(self, user_id: str, password_hash: str) -> User:
        self._update(user_id, "password_hash", password_hash)
        return self._require(user_id)

    def list_influencers_with_preferences(self, limit: int = 10) -> list[MatchedInfluencer]:
        """Return the newest influencers with their content preferences.

        Influencers without configured preferences are included with
        ``preferences=None``.
        """
        rows = self._conn.execute(
            """
            SELECT u.id, u.username, u.email, u.first_name, u.last_name,
                   p.personal_content_preferences AS preferences
            FROM users u
            LEFT JOIN influencer_preferences p ON p.user_id = u.id
            WHERE u.user_type = ?
            ORDER BY u.created_at DESC, u.rowid DESC
            LIMIT ?
            """,
            (UserType.INFLUENCER.value, limit),
        ).fetchall()

        candidates: list[MatchedInfluencer] = []
        for row in rows:
            full_name = " ".join(p for p in (row["first_name"], row["last_name"]) if p)
            candidates.append(
                MatchedInfluencer(
                    id=row["id"],
                    username=row["username"],
                    email=row["email"],
                    name=full_name or row["username"],
                    preferences=row["preferences"],
                )
            )
        return candidates

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user_id: str, ttl: timedelta) -> str:
        """Open a session and return its bearer token.

        Only a SHA-256 digest of the token is stored.
        """
        token = secrets.token_urlsafe(32)
        expire = utc_timestamp(datetime.now(tz=UTC) + ttl)
        with write_transaction(self._conn):
            self._conn.execute(
                "INSERT INTO sessions (sid, user_id, expire) VALUES (?, ?, ?)",
                (_hash_token(token), user_id, expire),
            )
        return token

    def get_session_user(self, token: str, now: datetime | None = None) -> User | None:
        """Resolve a bearer token to its user, ignoring expired sessions."""
        row = self._conn.execute(
            """
            SELECT u.* FROM sessions s
            JOIN users u ON u.id = s.user_id
            WHERE s.sid = ? AND s.expire > ?
            """,
            (_hash_token(token), utc_timestamp(now)),
        ).fetchone()
        return User.model_validate(dict(row)) if row else None

    def delete_session(self, token: str) -> None:
        with write_transaction(self._conn):
            self._conn.execute("DELETE FROM sessions WHERE sid = ?", (_hash_token(token),))

    def purge_expired_sessions(self, now: datetime | None = None) -> int:
        with write_transaction(self._conn):
            cursor = self._conn.execute(
                "DELETE FROM sessions WHERE expire <= ?", (utc_timestamp(now),)
            )
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_business_profile(self, user_id: str) -> BusinessProfile | None:
        row = self._conn.execute(
            "SELECT * FROM business_profiles WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        data = dict(row)
        data["social_links"] = json.loads(data["social_links"] or "{}")
        return BusinessProfile.model_validate(data)

    def upsert_business_profile(
        self,
        user_id: str,
        *,
        company_name: str | None = None,
        website: str | None = None,
        industry: str | None = None,
        description: str | None = None,
        company_size: str | None = None,
        social_links: dict[str, str] | None = None,
    ) -> BusinessProfile:
        """Create or replace the business profile owned by *user_id*.

        Uses ``ON CONFLICT(user_id) DO UPDATE`` so ``id`` and ``created_at``
        survive repeated saves.
        """
        now = utc_timestamp()
        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    """
                    INSERT INTO business_profiles (
                        id, user_id, company_name, website, industry, description,
                        company_size, social_links, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (user_id) DO UPDATE SET
                        company_name = excluded.company_name,
                        website = excluded.website,
                        industry = excluded.industry,
                        description = excluded.description,
                        company_size = excluded.company_size,
                        social_links = excluded.social_links,
                        updated_at = excluded.updated_at
                    """,
                    (
                        new_id(),
                        user_id,
                        company_name,
                        website,
                        industry,
                        description,
                        company_size,
                        json.dumps(social_links or {}),
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("User not found") from exc
        profile = self.get_business_profile(user_id)
        if profile is None:
            raise NotFoundError("Business profile not found")
        return profile

    def get_influencer_preferences(self, user_id: str) -> InfluencerPreferences | None:
        row = self._conn.execute(
            "SELECT * FROM influencer_preferences WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        data = dict(row)
        data["social_links"] = json.loads(data["social_links"] or "{}")
        return InfluencerPreferences.model_validate(data)

    def upsert_influencer_preferences(
        self,
        user_id: str,
        *,
        personal_content_preferences: str,
        monetary_baseline: int,
        content_length: str,
        additional_guidelines: str | None = None,
        social_links: dict[str, str] | None = None,
    ) -> InfluencerPreferences:
        """Create or replace the negotiation preferences of an influencer."""
        now = utc_timestamp()
        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    """
                    INSERT INTO influencer_preferences (
                        id, user_id, personal_content_preferences, monetary_baseline,
                        content_length, additional_guidelines, social_links,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (user_id) DO UPDATE SET
                        personal_content_preferences = excluded.personal_content_preferences,
                        monetary_baseline = excluded.monetary_baseline,
                        content_length = excluded.content_length,
                        additional_guidelines = excluded.additional_guidelines,
                        social_links = excluded.social_links,
                        updated_at = excluded.updated_at
                    """,
                    (
                        new_id(),
                        user_id,
                        personal_content_preferences,
                        monetary_baseline,
                        content_length,
                        additional_guidelines,
                        json.dumps(social_links or {}),
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("User not found") from exc
        preferences = self.get_influencer_preferences(user_id)
        if preferences is None:
            raise NotFoundError("Influencer preferences not found")
        return preferences

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _update(self, user_id: str, column: str, value: str) -> None:
        # column names come from this module only, never from callers
        with write_transaction(self._conn):
            self._conn.execute(
                f"UPDATE users SET {column} = ?, updated_at = ? WHERE id = ?",
                (value, utc_timestamp(), user_id),
            )

    def _require(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
