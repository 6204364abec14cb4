"""
devinde-tracker — unit tests for SWOT synthesis

Purpose
- Which market-analysis items become strengths, weaknesses, opportunities
  and threats, with deterministic ids and configurable importances.
"""

from __future__ import annotations

import pytest

from devinde_tracker.adapters.swot import SwotRules, synthesize_swot
from devinde_tracker.domain.enums import EvaluationLevel, PotentialLevel, SwotType
from devinde_tracker.domain.models import Competitor, CustomerSegment, Opportunity, Trend


def _inputs() -> tuple[list[CustomerSegment], list[Competitor], list[Opportunity], list[Trend]]:
    segments = [
        CustomerSegment(id="segment-1", name="Start-ups", potential_size=PotentialLevel.HIGH),
        CustomerSegment(id="segment-2", name="Retail", potential_size=PotentialLevel.LOW),
        CustomerSegment(id="segment-3", name="Agencies"),
    ]
    competitors = [
        Competitor(
            id="competitor-1",
            name="BigCo",
            threat=EvaluationLevel.VERY_HIGH,
            weaknesses=["slow", "expensive", "rigid"],
        ),
        Competitor(id="competitor-2", name="Solo", threat=EvaluationLevel.LOW),
    ]
    opportunities = [
        Opportunity(
            id="opportunity-1",
            title="Public tenders",
            potential=PotentialLevel.VERY_HIGH,
            risk=EvaluationLevel.HIGH,
            categories=["Public sector"],
        ),
        Opportunity(id="opportunity-2", title="Training", potential=PotentialLevel.HIGH),
        Opportunity(id="opportunity-3", title="Niche", potential=PotentialLevel.LOW),
    ]
    trends = [
        Trend(id="trend-1", title="Remote work", impact=EvaluationLevel.HIGH),
        Trend(id="trend-2", title="Fad", impact=EvaluationLevel.LOW),
    ]
    return segments, competitors, opportunities, trends


def test_segments_become_strengths_or_weaknesses() -> None:
    analysis = synthesize_swot(*_inputs())

    strength = analysis.strengths[0]
    assert strength.id == "strength-segment-segment-1"
    assert strength.content == "High-potential customer segment: Start-ups"
    assert strength.type is SwotType.STRENGTH
    assert strength.importance == 4
    assert strength.category == "Customer segments"

    assert [item.id for item in analysis.weaknesses] == ["weakness-segment-segment-2"]
    assert analysis.weaknesses[0].importance == 3


def test_competitors_yield_threats_and_capped_weakness_opportunities() -> None:
    analysis = synthesize_swot(*_inputs())

    assert analysis.threats[0].id == "threat-competitor-competitor-1"
    assert analysis.threats[0].content == "Competitor BigCo is a significant threat"
    weakness_items = [item for item in analysis.opportunities if "-comp-weakness-" in item.id]
    assert [item.id for item in weakness_items] == [
        "opportunity-comp-weakness-competitor-1-0",
        "opportunity-comp-weakness-competitor-1-1",
    ]
    assert weakness_items[1].content == "Exploit weakness of BigCo: expensive"


def test_opportunities_and_trends_use_scaled_importance() -> None:
    analysis = synthesize_swot(*_inputs())
    by_id = {item.id: item for item in analysis.all_items()}

    tender = by_id["opportunity-opportunity-1"]
    assert tender.content == "Public tenders"
    assert tender.importance == 5
    assert tender.category == "Public sector"

    training = by_id["opportunity-opportunity-2"]
    assert training.importance == 4
    assert training.category == "Market"

    risk = by_id["threat-opportunity-opportunity-1"]
    assert risk.content == "High risk: Public tenders"
    assert risk.category == "Risks"

    trend = by_id["opportunity-trend-trend-1"]
    assert trend.content == "Leverage trend: Remote work"
    assert trend.category == "Trends"

    assert "opportunity-opportunity-3" not in by_id
    assert "opportunity-trend-trend-2" not in by_id


def test_opportunity_ordering_is_competitors_then_opportunities_then_trends() -> None:
    analysis = synthesize_swot(*_inputs())

    assert [item.id for item in analysis.opportunities] == [
        "opportunity-comp-weakness-competitor-1-0",
        "opportunity-comp-weakness-competitor-1-1",
        "opportunity-opportunity-1",
        "opportunity-opportunity-2",
        "opportunity-trend-trend-1",
    ]


def test_strength_sources_are_stripped_and_indexed() -> None:
    analysis = synthesize_swot([], [], [], [], strength_sources=["  Reactivity ", "", "Expertise"])

    assert [(item.id, item.content) for item in analysis.strengths] == [
        ("strength-value-0", "Reactivity"),
        ("strength-value-1", "Expertise"),
    ]
    assert all(item.category == "Values" for item in analysis.strengths)


def test_items_carry_ui_editing_state() -> None:
    analysis = synthesize_swot(*_inputs(), strength_sources=["Reactivity"])

    items = analysis.all_items()
    assert items
    assert all(item.is_editing is False for item in items)
    assert all(item.validation_errors == {} for item in items)

    payload = items[0].to_dict()
    assert payload["isEditing"] is False
    assert payload["validationErrors"] == {}


def test_synthesis_is_deterministic() -> None:
    assert synthesize_swot(*_inputs()) == synthesize_swot(*_inputs())
    assert synthesize_swot([], [], [], []).all_items() == ()


def test_rules_tune_cap_and_importances() -> None:
    rules = SwotRules(competitor_weakness_cap=0, segment_strength_importance=5)

    analysis = synthesize_swot(*_inputs(), rules=rules)

    assert not any("-comp-weakness-" in item.id for item in analysis.opportunities)
    assert analysis.strengths[0].importance == 5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"high_importance": 6},
        {"value_importance": 2},
        {"very_high_importance": True},
        {"competitor_weakness_cap": -1},
    ],
)
def test_rules_reject_out_of_range_values(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        SwotRules(**kwargs)  # type: ignore[arg-type]
