"""Tests for the campaign pipeline LLM steps using a mocked Anthropic client."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from anthropic import AnthropicError

from collabhub.domain.errors import ExtractionError
from collabhub.domain.models import Campaign, MatchedInfluencer
from collabhub.llm.matching import (
    CRITERIA_TEMPERATURE,
    extract_campaign_fields,
    generate_search_criteria,
    normalize_campaign_input,
    rerank_influencers,
)
from collabhub.llm.models import CampaignFieldsOutput, RankedCandidateOutput, RankingOutput


def _make_parse_client(parsed: Any) -> MagicMock:
    """Create a mock Anthropic client whose ``messages.parse`` returns *parsed*."""
    mock_client = MagicMock()
    mock_client.messages.parse.return_value.parsed_output = parsed
    return mock_client


def _brief() -> dict[str, Any]:
    return {
        "product_details": "serum",
        "campaign_goal": "awareness",
        "target_audience": "women 25-35",
        "budget_min": 500,
        "budget_max": 1500,
        "timeline": "june",
        "deliverables": "1 reel",
        "additional_requirements": None,
    }


class TestNormalizeCampaignInput:
    def test_applies_cleaned_values(self) -> None:
        parsed = CampaignFieldsOutput(product_details="Vitamin C serum", budget_max=2000)

        cleaned = normalize_campaign_input(_brief(), _make_parse_client(parsed))

        assert cleaned["product_details"] == "Vitamin C serum"
        assert cleaned["budget_max"] == 2000
        # Nulls never erase existing values
        assert cleaned["campaign_goal"] == "awareness"
        assert cleaned["budget_min"] == 500

    def test_blank_strings_ignored(self) -> None:
        parsed = CampaignFieldsOutput(timeline="   ")

        cleaned = normalize_campaign_input(_brief(), _make_parse_client(parsed))

        assert cleaned["timeline"] == "june"

    def test_failure_returns_input(self) -> None:
        client = MagicMock()
        client.messages.parse.side_effect = AnthropicError("down")
        brief = _brief()

        assert normalize_campaign_input(brief, client) is brief
        assert normalize_campaign_input(brief, None) is brief


class TestExtractCampaignFields:
    def test_merges_with_draft(self) -> None:
        parsed = CampaignFieldsOutput(budget_min=1000, timeline="Next month")
        draft = {"product_details": "Serum", "budget_min": "800 USD", "timeline": "June"}

        fields, missing = extract_campaign_fields(
            "Budget from $1000, next month", draft, _make_parse_client(parsed)
        )

        assert fields["product_details"] == "Serum"
        assert fields["budget_min"] == 1000
        assert fields["timeline"] == "Next month"
        assert missing == [
            "campaign_goal",
            "target_audience",
            "budget_max",
            "deliverables",
            "additional_requirements",
        ]

    def test_draft_budget_parsed_when_not_extracted(self) -> None:
        fields, _ = extract_campaign_fields(
            "hello", {"budget_max": "2500 dollars"}, _make_parse_client(CampaignFieldsOutput())
        )

        assert fields["budget_max"] == 2500

    def test_sends_draft_and_message(self) -> None:
        client = _make_parse_client(CampaignFieldsOutput())

        extract_campaign_fields("We sell serum", {"timeline": "June"}, client)

        content = client.messages.parse.call_args.kwargs["messages"][0]["content"]
        assert "We sell serum" in content
        assert '"timeline": "June"' in content

    def test_provider_error_raises(self) -> None:
        client = MagicMock()
        client.messages.parse.side_effect = AnthropicError("down")

        with pytest.raises(ExtractionError, match="Failed to extract campaign fields"):
            extract_campaign_fields("text", {}, client)

    def test_missing_client_raises(self) -> None:
        with pytest.raises(ExtractionError):
            extract_campaign_fields("text", {}, None)

    def test_no_parsed_output_raises(self) -> None:
        with pytest.raises(ExtractionError):
            extract_campaign_fields("text", {}, _make_parse_client(None))


class TestGenerateSearchCriteria:
    def _campaign(self) -> Campaign:
        return Campaign(id="c1", business_id="b1", **_brief())

    def test_returns_text(self) -> None:
        client = MagicMock()
        block = MagicMock()
        block.text = "- Skincare creators\n- 10k+ followers"
        client.messages.create.return_value.content = [block]

        criteria = generate_search_criteria(self._campaign(), client)

        assert criteria == "- Skincare creators\n- 10k+ followers"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["temperature"] == CRITERIA_TEMPERATURE
        assert "serum" in kwargs["messages"][0]["content"]

    def test_failure_returns_none(self) -> None:
        assert generate_search_criteria(self._campaign(), None) is None


class TestRerankInfluencers:
    def _candidates(self) -> list[MatchedInfluencer]:
        return [
            MatchedInfluencer(id="a", name="A", preferences="Gaming"),
            MatchedInfluencer(id="b", name="B", preferences="Skincare"),
            MatchedInfluencer(id="c", name="C", preferences="Beauty"),
        ]

    def test_sorts_by_score(self) -> None:
        parsed = RankingOutput(
            ranked=[
                RankedCandidateOutput(id="b", score=0.9, reason="Skincare niche"),
                RankedCandidateOutput(id="c", score=0.6),
            ]
        )

        ranked = rerank_influencers("skincare", self._candidates(), _make_parse_client(parsed))

        assert [c.id for c in ranked] == ["b", "c", "a"]
        assert ranked[0].reason == "Skincare niche"
        assert ranked[2].score == 0.0

    def test_ties_keep_input_order(self) -> None:
        parsed = RankingOutput(ranked=[])

        ranked = rerank_influencers("skincare", self._candidates(), _make_parse_client(parsed))

        assert [c.id for c in ranked] == ["a", "b", "c"]

    def test_no_criteria_returns_input(self) -> None:
        candidates = self._candidates()
        client = MagicMock()

        assert rerank_influencers(None, candidates, client) is candidates
        client.messages.parse.assert_not_called()

    def test_failure_returns_input(self) -> None:
        candidates = self._candidates()
        assert rerank_influencers("skincare", candidates, _make_parse_client(None)) is candidates
