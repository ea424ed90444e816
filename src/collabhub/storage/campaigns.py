"""SQLite-backed store for business campaigns."""

from __future__ import annotations

import json
import sqlite3

from collabhub.domain.errors import NotFoundError
from collabhub.domain.models import Campaign, MatchedInfluencer
from collabhub.domain.types import CampaignStatus
from collabhub.storage.schema import (
    MarketplaceConnection,
    new_id,
    utc_timestamp,
    write_transaction,
)


def _row_to_campaign(row: sqlite3.Row) -> Campaign:
    data = dict(row)
    if data["matched_influencers"]:
        data["matched_influencers"] = json.loads(data["matched_influencers"])
    return Campaign.model_validate(data)


class CampaignStore:
    """Persist campaign briefs and the results of influencer matching."""

    def __init__(self, conn: MarketplaceConnection) -> None:
        self._conn = conn

    def create_campaign(
        self,
        *,
        business_id: str,
        product_details: str,
        campaign_goal: str,
        target_audience: str,
        timeline: str,
        deliverables: str,
        budget_min: int | None = None,
        budget_max: int | None = None,
        additional_requirements: str | None = None,
    ) -> Campaign:
        """Insert a campaign in the ``processing`` state.

        Raises:
            NotFoundError: If *business_id* names no account.
        """
        now = utc_timestamp()
        campaign_id = new_id()
        try:
            with write_transaction(self._conn):
                self._conn.execute(
                    """
                    INSERT INTO campaigns (
                        id, business_id, product_details, campaign_goal, target_audience,
                        budget_min, budget_max, timeline, deliverables,
                        additional_requirements, status, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        campaign_id,
                        business_id,
                        product_details,
                        campaign_goal,
                        target_audience,
                        budget_min,
                        budget_max,
                        timeline,
                        deliverables,
                        additional_requirements,
                        CampaignStatus.PROCESSING.value,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("Business not found") from exc
        return self._require(campaign_id)

    def get_campaign(self, campaign_id: str) -> Campaign | None:
        row = self._conn.execute(
            "SELECT * FROM campaigns WHERE id = ?", (campaign_id,)
        ).fetchone()
        return _row_to_campaign(row) if row else None

    def list_by_business(self, business_id: str) -> list[Campaign]:
        rows = self._conn.execute(
            """
            SELECT * FROM campaigns WHERE business_id = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (business_id,),
        ).fetchall()
        return [_row_to_campaign(row) for row in rows]

    def get_oldest_processing(self, business_id: str) -> Campaign | None:
        """Return the business's oldest campaign still waiting for matching."""
        row = self._conn.execute(
            """
            SELECT * FROM campaigns
            WHERE business_id = ? AND status = ?
            ORDER BY created_at, rowid
            LIMIT 1
            """,
            (business_id, CampaignStatus.PROCESSING.value),
        ).fetchone()
        return _row_to_campaign(row) if row else None

    def update_status(self, campaign_id: str, status: CampaignStatus) -> Campaign | None:
        with write_transaction(self._conn):
            self._conn.execute(
                "UPDATE campaigns SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, utc_timestamp(), campaign_id),
            )
        return self.get_campaign(campaign_id)

    def save_search_result(
        self,
        campaign_id: str,
        status: CampaignStatus,
        search_criteria: str | None = None,
        matched_influencers: list[MatchedInfluencer] | None = None,
    ) -> Campaign | None:
        """Store generated criteria and ranked matches alongside a new status.

        ``None`` arguments keep whatever value the row already holds.
        """
        matched_json = (
            json.dumps([m.model_dump(mode="json") for m in matched_influencers])
            if matched_influencers is not None
            else None
        )
        with write_transaction(self._conn):
            self._conn.execute(
                """
                UPDATE campaigns
                SET status = ?,
                    search_criteria = COALESCE(?, search_criteria),
                    matched_influencers = COALESCE(?, matched_influencers),
                    updated_at = ?
                WHERE id = ?
                """,
                (status.value, search_criteria, matched_json, utc_timestamp(), campaign_id),
            )
        return self.get_campaign(campaign_id)

    def _require(self, campaign_id: str) -> Campaign:
        campaign = self.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign not found")
        return campaign
