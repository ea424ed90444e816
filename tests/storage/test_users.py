"""Tests for UserStore: accounts, sessions, and profiles."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from collabhub.domain.errors import ConflictError, NotFoundError
from collabhub.domain.models import User
from collabhub.domain.types import Language, UserType
from collabhub.storage import UserStore, close_db, init_db


def _create(store: UserStore, email: str, user_type: UserType, username: str | None) -> User:
    return store.create_user(
        email=email, password_hash="h", user_type=user_type, username=username
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class TestAccounts:
    def test_create_and_get(self, user_store: UserStore) -> None:
        user = _create(user_store, "a@example.com", UserType.INFLUENCER, "alice")

        fetched = user_store.get_user(user.id)

        assert fetched == user
        assert fetched.password_hash == "h"
        assert fetched.language_preference == Language.EN

    def test_same_email_allowed_once_per_account_type(self, user_store: UserStore) -> None:
        _create(user_store, "a@example.com", UserType.INFLUENCER, "alice")
        _create(user_store, "a@example.com", UserType.BUSINESS, "alice-co")

        with pytest.raises(ConflictError):
            _create(user_store, "a@example.com", UserType.BUSINESS, "other")

    def test_duplicate_username_conflicts(self, user_store: UserStore) -> None:
        _create(user_store, "a@example.com", UserType.INFLUENCER, "alice")
        with pytest.raises(ConflictError):
            _create(user_store, "b@example.com", UserType.INFLUENCER, "alice")

    def test_get_by_email_filters_user_type(self, user_store: UserStore) -> None:
        influencer = _create(user_store, "a@example.com", UserType.INFLUENCER, "alice")
        business = _create(user_store, "a@example.com", UserType.BUSINESS, "alice-co")

        assert user_store.get_user_by_email("a@example.com", UserType.BUSINESS) == business
        assert user_store.get_user_by_email("a@example.com", UserType.INFLUENCER) == influencer
        assert user_store.get_user_by_email("missing@example.com") is None

    def test_update_username_conflict(self, user_store: UserStore) -> None:
        _create(user_store, "a@example.com", UserType.INFLUENCER, "alice")
        bob = _create(user_store, "b@example.com", UserType.INFLUENCER, "bob")

        with pytest.raises(ConflictError, match="Username is already taken"):
            user_store.update_username(bob.id, "alice")

        assert user_store.update_username(bob.id, "bobby").username == "bobby"

    def test_update_language(self, user_store: UserStore, influencer: User) -> None:
        updated = user_store.update_language_preference(influencer.id, Language.ZH)
        assert updated.language_preference == Language.ZH


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessions:
    def test_token_resolves_to_user(self, user_store: UserStore, influencer: User) -> None:
        token = user_store.create_session(influencer.id, timedelta(days=1))
        assert user_store.get_session_user(token) == influencer

    def test_only_digest_is_stored(self, user_store: UserStore, conn, influencer: User) -> None:
        token = user_store.create_session(influencer.id, timedelta(days=1))
        sids = [row["sid"] for row in conn.execute("SELECT sid FROM sessions")]
        assert token not in sids
        assert len(sids) == 1

    def test_expired_session_ignored(self, user_store: UserStore, influencer: User) -> None:
        token = user_store.create_session(influencer.id, timedelta(hours=1))
        later = datetime.now(tz=UTC) + timedelta(hours=2)
        assert user_store.get_session_user(token, now=later) is None

    def test_delete_session(self, user_store: UserStore, influencer: User) -> None:
        token = user_store.create_session(influencer.id, timedelta(days=1))
        user_store.delete_session(token)
        assert user_store.get_session_user(token) is None

    def test_purge_expired(self, user_store: UserStore, influencer: User) -> None:
        user_store.create_session(influencer.id, timedelta(hours=1))
        keep = user_store.create_session(influencer.id, timedelta(days=3))

        purged = user_store.purge_expired_sessions(now=datetime.now(tz=UTC) + timedelta(days=1))

        assert purged == 1
        assert user_store.get_session_user(keep) is not None


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_preferences_upsert_keeps_id(self, user_store: UserStore, influencer: User) -> None:
        first = user_store.get_influencer_preferences(influencer.id)
        second = user_store.upsert_influencer_preferences(
            influencer.id,
            personal_content_preferences="Fitness",
            monetary_baseline=1200,
            content_length="3 minutes",
            social_links={"instagram": "https://instagram.com/maya"},
        )

        assert first is not None
        assert second.id == first.id
        assert second.monetary_baseline == 1200
        assert second.additional_guidelines is None
        assert second.social_links == {"instagram": "https://instagram.com/maya"}

    def test_business_profile_round_trip(self, user_store: UserStore, business: User) -> None:
        assert user_store.get_business_profile(business.id) is None

        profile = user_store.upsert_business_profile(
            business.id, company_name="GlowCo", industry="Beauty"
        )

        assert profile.company_name == "GlowCo"
        assert profile.social_links == {}
        assert user_store.get_business_profile(business.id) == profile

    @pytest.mark.parametrize("method", ["upsert_business_profile", "upsert_influencer_preferences"])
    def test_profile_for_unknown_user(self, user_store: UserStore, method: str) -> None:
        fields = {
            "upsert_business_profile": {"company_name": "GlowCo"},
            "upsert_influencer_preferences": {
                "personal_content_preferences": "Fitness",
                "monetary_baseline": 100,
                "content_length": "1 minute",
            },
        }[method]

        with pytest.raises(NotFoundError, match="User not found"):
            getattr(user_store, method)("missing-user", **fields)

    def test_list_influencers_with_preferences(
        self, user_store: UserStore, influencer: User, business: User
    ) -> None:
        newcomer = _create(user_store, "n@example.com", UserType.INFLUENCER, "newbie")

        candidates = user_store.list_influencers_with_preferences(limit=10)

        assert {c.id for c in candidates} == {influencer.id, newcomer.id}
        by_id = {c.id: c for c in candidates}
        assert by_id[influencer.id].name == "Maya Lin"
        assert by_id[influencer.id].preferences == "Skincare and travel"
        assert by_id[newcomer.id].name == "newbie"
        assert by_id[newcomer.id].preferences is None

    def test_list_influencers_respects_limit(self, user_store: UserStore, influencer: User) -> None:
        _create(user_store, "n@example.com", UserType.INFLUENCER, "newbie")
        assert len(user_store.list_influencers_with_preferences(limit=1)) == 1


# ---------------------------------------------------------------------------
# Concurrent writes
# ---------------------------------------------------------------------------


class TestConcurrentWrites:
    """Worker threads share one connection, as they do behind ``asyncio.to_thread``."""

    def test_conflicts_do_not_discard_other_inserts(self, tmp_path: Path) -> None:
        conn = init_db(tmp_path / "marketplace.db")
        store = UserStore(conn)
        _create(store, "taken@example.com", UserType.INFLUENCER, "taken")

        def register(index: int) -> str:
            if index % 2:
                email = "taken@example.com"
            else:
                email = f"user{index}@example.com"
            try:
                _create(store, email, UserType.INFLUENCER, None)
            except ConflictError:
                return "conflict"
            return "created"

        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                outcomes = list(pool.map(register, range(80)))

            stored = conn.execute("SELECT email FROM users").fetchall()
        finally:
            close_db(conn)

        assert outcomes.count("conflict") == 40
        assert outcomes.count("created") == 40
        assert len(stored) == 41
        assert {row["email"] for row in stored} == {
            "taken@example.com",
            *(f"user{i}@example.com" for i in range(0, 80, 2)),
        }
