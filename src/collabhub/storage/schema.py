"""SQLite schema and connection setup for the marketplace database.

All tables are created idempotently by :func:`init_db`.  Timestamps are
stored as ISO 8601 UTC strings (``YYYY-MM-DDTHH:MM:SSZ``) so that plain
string comparison orders them chronologically.
"""

from __future__ import annotations

import sqlite3
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT,
        username TEXT UNIQUE,
        first_name TEXT,
        last_name TEXT,
        profile_image_url TEXT,
        password_hash TEXT,
        language_preference TEXT NOT NULL DEFAULT 'en',
        user_type TEXT NOT NULL DEFAULT 'influencer'
            CHECK (user_type IN ('influencer', 'business')),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (email, user_type)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        sid TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        expire TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS business_profiles (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL UNIQUE REFERENCES users (id) ON DELETE CASCADE,
        company_name TEXT,
        website TEXT,
        industry TEXT,
        description TEXT,
        company_size TEXT,
        social_links TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS influencer_preferences (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL UNIQUE REFERENCES users (id) ON DELETE CASCADE,
        personal_content_preferences TEXT NOT NULL,
        monetary_baseline INTEGER NOT NULL,
        content_length TEXT NOT NULL,
        additional_guidelines TEXT,
        social_links TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS campaigns (
        id TEXT PRIMARY KEY,
        business_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        product_details TEXT NOT NULL,
        campaign_goal TEXT NOT NULL,
        target_audience TEXT NOT NULL,
        budget_min INTEGER,
        budget_max INTEGER,
        timeline TEXT NOT NULL,
        deliverables TEXT NOT NULL,
        additional_requirements TEXT,
        status TEXT NOT NULL DEFAULT 'processing',
        search_criteria TEXT,
        matched_influencers TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS inquiries (
        id TEXT PRIMARY KEY,
        influencer_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        business_id TEXT REFERENCES users (id) ON DELETE SET NULL,
        campaign_id TEXT REFERENCES campaigns (id) ON DELETE SET NULL,
        business_email TEXT NOT NULL,
        message TEXT NOT NULL,
        price INTEGER,
        company_info TEXT,
        attachment_url TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        chat_active INTEGER NOT NULL DEFAULT 1,
        ai_response TEXT,
        ai_recommendation TEXT,
        ai_verdict TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_business_message_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        inquiry_id TEXT NOT NULL REFERENCES inquiries (id) ON DELETE CASCADE,
        role TEXT NOT NULL CHECK (role IN ('system', 'user', 'assistant')),
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS social_accounts (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        platform TEXT NOT NULL CHECK (platform IN ('instagram', 'tiktok', 'youtube')),
        handle TEXT,
        platform_account_id TEXT,
        followers INTEGER,
        likes INTEGER,
        raw_profile TEXT,
        access_token TEXT,
        refresh_token TEXT,
        expires_at TEXT,
        is_primary INTEGER NOT NULL DEFAULT 0,
        last_synced_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, platform)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_sessions_expire ON sessions (expire)",
    "CREATE INDEX IF NOT EXISTS idx_inquiries_influencer ON inquiries (influencer_id)",
    "CREATE INDEX IF NOT EXISTS idx_inquiries_business ON inquiries (business_id)",
    (
        "CREATE INDEX IF NOT EXISTS idx_inquiries_idle"
        " ON inquiries (chat_active, last_business_message_at)"
    ),
    "CREATE INDEX IF NOT EXISTS idx_messages_inquiry ON messages (inquiry_id)",
    "CREATE INDEX IF NOT EXISTS idx_campaigns_business ON campaigns (business_id, status)",
)


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) as a stored UTC timestamp string."""
    moment = moment or datetime.now(tz=UTC)
    return moment.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def new_id() -> str:
    """Return a fresh UUID4 primary key."""
    return str(uuid.uuid4())


class MarketplaceConnection(sqlite3.Connection):
    """A connection shared by worker threads, carrying the lock for its writes."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.write_lock = threading.RLock()


@contextmanager
def write_transaction(conn: MarketplaceConnection) -> Iterator[MarketplaceConnection]:
    """Run one write transaction while holding the connection's lock.

    The block is committed when it exits normally and rolled back when it
    raises.  Only one thread has an open transaction on *conn* at a time, so
    a rollback never discards another thread's uncommitted statements.
    """
    with conn.write_lock:
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        conn.commit()


def init_db(db_path: Path | str) -> MarketplaceConnection:
    """Open the marketplace database, creating tables and indexes as needed.

    The connection is opened with ``check_same_thread=False`` because request
    handlers hand blocking work to worker threads via ``asyncio.to_thread``.
    Stores serialize their writes with :func:`write_transaction`.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open connection with WAL mode and foreign keys enabled.
    """
    conn = sqlite3.connect(
        str(db_path), check_same_thread=False, factory=MarketplaceConnection
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    for statement in _SCHEMA:
        conn.execute(statement)

    conn.commit()
    return conn


def close_db(conn: sqlite3.Connection) -> None:
    """Close the database connection."""
    conn.close()
