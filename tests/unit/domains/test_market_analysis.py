"""
devinde-tracker — unit tests for the market analysis section

Purpose
- Legacy segment keys, alias fields, score bounds, bare-string trends, and
  SWOT/statistics attached to the view.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from structlog.testing import capture_logs

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.swot import SwotRules
from devinde_tracker.domain.enums import EvaluationLevel, PotentialLevel
from devinde_tracker.domain.ids import seeded_id_factory
from devinde_tracker.domain.models import CustomerSegment, Trend
from devinde_tracker.domains import market_analysis

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _context() -> AdapterContext:
    return AdapterContext.at(NOW, new_id=seeded_id_factory(9))


def _stored_analysis() -> dict[str, Any]:
    return {
        "customerSegments": [
            {"id": "segment-1", "segment": "Start-ups", "potentialSize": "Élevé", "growthRate": "Moderate"},
            {"id": "segment-2", "name": "Retail", "potentialSize": "faible"},
        ],
        "competitors": [
            {
                "id": "competitor-1",
                "name": "BigCo",
                "url": "https://bigco.example",
                "threat": "Très élevé",
                "weaknesses": ["slow"],
                "productQuality": 9,
                "pricing": 0,
            }
        ],
        "opportunities": [{"id": "opportunity-1", "title": "Tenders", "potential": "high", "risk": "Faible"}],
        "trends": ["Remote work: growing", {"id": "trend-2", "name": "AI tools", "impact": "Élevé"}],
        "strengths": ["Reactivity", 7, "  "],
    }


def test_segments_are_read_from_legacy_keys_with_aliases() -> None:
    view = market_analysis.to_view(_stored_analysis(), _context())

    assert [segment.name for segment in view.segments] == ["Start-ups", "Retail"]
    assert view.segments[0].potential_size is PotentialLevel.HIGH
    assert view.segments[1].potential_size is PotentialLevel.LOW


def test_target_clients_win_over_older_segment_keys() -> None:
    stored = _stored_analysis()
    stored["targetClients"] = [{"id": "segment-9", "name": "Agencies"}]
    stored["segments"] = [{"id": "segment-8", "name": "Ignored"}]

    view = market_analysis.to_view(stored, _context())

    assert [segment.id for segment in view.segments] == ["segment-9"]


def test_competitor_aliases_and_score_bounds() -> None:
    competitor = market_analysis.to_view(_stored_analysis(), _context()).competitors[0]

    assert competitor.website == "https://bigco.example"
    assert competitor.threat is EvaluationLevel.VERY_HIGH
    assert competitor.product_quality == 5
    assert competitor.pricing == 3
    assert competitor.innovation == 3


def test_trends_accept_strings_and_name_alias() -> None:
    trends = market_analysis.to_view(_stored_analysis(), _context()).trends

    assert [trend.title for trend in trends] == ["Remote work", "AI tools"]
    assert trends[0].description == "growing"
    assert trends[0].id.startswith("trend-")
    assert trends[1].impact is EvaluationLevel.HIGH


def test_view_carries_statistics_and_swot() -> None:
    view = market_analysis.to_view(_stored_analysis(), _context())

    assert view.strengths == ["Reactivity"]
    assert view.statistics.total_customer_segments == 2
    assert view.statistics.major_competitors == 1
    assert view.statistics.market_growth_rate == "Moyen"
    assert [item.content for item in view.swot.strengths] == [
        "High-potential customer segment: Start-ups",
        "Reactivity",
    ]
    assert [item.id for item in view.swot.weaknesses] == ["weakness-segment-segment-2"]
    assert "opportunity-comp-weakness-competitor-1-0" in {item.id for item in view.swot.opportunities}


def test_swot_rules_are_applied() -> None:
    view = market_analysis.to_view(
        _stored_analysis(), _context(), rules=SwotRules(competitor_weakness_cap=0)
    )

    assert not any("comp-weakness" in item.id for item in view.swot.opportunities)


def test_to_persisted_writes_canonical_and_compatibility_keys() -> None:
    context = _context()
    view = market_analysis.to_view(_stored_analysis(), context)

    persisted = market_analysis.to_persisted(view, context)

    assert set(persisted) == {"targetClients", "competitors", "opportunities", "trends", "strengths"}
    segment = persisted["targetClients"][0]
    assert segment["name"] == segment["segment"] == "Start-ups"
    assert segment["potentialSize"] == "Élevé"
    competitor = persisted["competitors"][0]
    assert competitor["website"] == competitor["url"] == "https://bigco.example"
    assert competitor["threat"] == "Très élevé"
    trend = persisted["trends"][0]
    assert trend["title"] == trend["name"] == "Remote work"
    assert persisted["strengths"] == ["Reactivity"]


def test_apply_changes_replaces_segments_and_drops_legacy_keys() -> None:
    context = _context()
    stored = _stored_analysis()
    stored["segments"] = [{"id": "segment-old"}]

    with capture_logs() as logs:
        updated = market_analysis.apply_changes(
            stored,
            market_analysis.MarketAnalysisChanges(segments=[CustomerSegment(id="segment-5", name="Doctors")]),
            context,
        )

    assert "customerSegments" not in updated
    assert "segments" not in updated
    assert [segment["id"] for segment in updated["targetClients"]] == ["segment-5"]
    assert updated["competitors"] is stored["competitors"]
    assert "customerSegments" in stored
    assert logs[0]["event"] == "market_analysis_changes_applied"
    assert logs[0]["collections"] == ["targetClients"]


def test_apply_changes_replaces_other_collections_only_when_given() -> None:
    context = _context()

    updated = market_analysis.apply_changes(
        _stored_analysis(),
        market_analysis.MarketAnalysisChanges(
            trends=[Trend(id="trend-7", title="Green IT")],
            strengths=["Network", "Price"],
        ),
        context,
    )

    assert [trend["title"] for trend in updated["trends"]] == ["Green IT"]
    assert updated["strengths"] == ["Network", "Price"]
    assert "customerSegments" in updated


def test_missing_analysis_yields_empty_view() -> None:
    view = market_analysis.to_view(None, _context())

    assert view.segments == []
    assert view.statistics.total_market_potential == "Non évalué"
    assert view.swot.all_items() == ()
