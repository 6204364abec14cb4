"""
devinde-tracker — unit tests for aggregate statistics

Purpose
- Completion rate rounding, lateness against an explicit clock, and the
  per-section aggregates.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import normalize_many
from devinde_tracker.adapters.statistics import (
    NOT_EVALUATED,
    UNDETERMINED_SHARE,
    action_plan_statistics,
    canvas_statistics,
    completion_rate,
    document_totals,
    estimate_market_potential,
    is_late,
    line_total,
    market_statistics,
    risk_statistics,
    service_catalog_statistics,
)
from devinde_tracker.domain.enums import (
    EvaluationLevel,
    IncidentType,
    ItemStatus,
    PotentialLevel,
    PricingType,
    PriorityLevel,
    RiskLevel,
)
from devinde_tracker.domain.ids import seeded_id_factory
from devinde_tracker.domain.models import (
    CanvasItem,
    CatalogService,
    Competitor,
    CustomerSegment,
    Incident,
    InvoiceItem,
    Opportunity,
    RiskClient,
    ServiceCategory,
)
from devinde_tracker.domains.action_plan import MILESTONE_SCHEMA, TASK_SCHEMA

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [(1, 3, 33), (2, 3, 67), (1, 2, 50), (3, 3, 100), (0, 0, 0), (0, 4, 0)],
)
def test_completion_rate(completed: int, total: int, expected: int) -> None:
    assert completion_rate(completed, total) == expected


def test_is_late_uses_the_given_clock() -> None:
    assert is_late("2024-06-01", ItemStatus.PENDING, NOW) is True
    assert is_late("2024-06-01", ItemStatus.COMPLETED, NOW) is False
    assert is_late("2024-07-01", ItemStatus.IN_PROGRESS, NOW) is False
    assert is_late("", ItemStatus.PENDING, NOW) is False
    assert is_late("next tuesday", ItemStatus.PENDING, NOW) is False


def test_action_plan_statistics_for_mixed_plan() -> None:
    context = AdapterContext.at(NOW, new_id=seeded_id_factory(1))
    milestones = normalize_many(
        MILESTONE_SCHEMA,
        [
            {"id": "milestone-1", "isCompleted": False, "dueDate": "2024-06-01"},
            {"id": "milestone-2", "isCompleted": True},
        ],
        context,
    )
    tasks = normalize_many(
        TASK_SCHEMA,
        [
            {"id": "task-1", "status": "todo", "priority": "high", "milestoneId": "milestone-1"},
            {"id": "task-2", "status": "in-progress", "milestoneId": "milestone-1"},
            {"id": "task-3", "status": "done", "dueDate": "2024-01-01"},
        ],
        context,
    )

    stats = action_plan_statistics(milestones, tasks, NOW)

    assert stats.total_milestones == 2
    assert stats.completed_milestones == 1
    assert stats.upcoming_milestones == 1
    assert stats.late_milestones == 1
    assert stats.total_tasks == 3
    assert stats.completed_tasks == 1
    assert stats.in_progress_tasks == 1
    assert stats.late_tasks == 0
    assert stats.completion_rate == 33
    assert stats.tasks_by_priority == {"low": 0, "medium": 2, "high": 1, "urgent": 0}
    assert stats.tasks_by_status["pending"] == 1


def test_market_statistics() -> None:
    segments = [
        CustomerSegment(id="segment-1", potential_size=PotentialLevel.HIGH, growth_rate="Rapid growth"),
        CustomerSegment(id="segment-2", potential_size=PotentialLevel.LOW),
    ]
    competitors = [
        Competitor(id="competitor-1", threat=EvaluationLevel.HIGH),
        Competitor(id="competitor-2"),
        Competitor(id="competitor-3", threat=EvaluationLevel.LOW),
    ]
    opportunities = [Opportunity(id="opportunity-1", potential=PotentialLevel.VERY_HIGH), Opportunity()]

    stats = market_statistics(segments, competitors, opportunities, [])

    assert stats.total_customer_segments == 2
    assert stats.total_competitors == 3
    assert stats.total_trends == 0
    assert stats.competition_level == "medium"
    assert stats.average_competitor_score == 3.0
    assert stats.potential_customers_count == 5_100
    assert stats.market_growth_rate == "Élevé"
    assert stats.estimated_market_share == "25%"
    assert stats.total_market_potential == "Faible"
    assert stats.segments_with_high_potential == 1
    assert stats.major_competitors == 1
    assert stats.high_priority_opportunities == 1
    assert stats.opportunities_by_potential == {"low": 0, "medium": 1, "high": 0, "very-high": 1}
    assert stats.competitors_by_threat == {"low": 1, "medium": 1, "high": 1, "very-high": 0}


def test_market_statistics_without_data() -> None:
    stats = market_statistics([], [], [], [])

    assert stats.total_market_potential == NOT_EVALUATED
    assert stats.estimated_market_share == UNDETERMINED_SHARE
    assert stats.competition_level == "low"
    assert stats.average_competitor_score == 0.0
    assert stats.market_growth_rate == "Faible"


def test_market_potential_prefers_dominant_level() -> None:
    high = [CustomerSegment(potential_size=PotentialLevel.VERY_HIGH)] * 2
    medium = [CustomerSegment(potential_size=PotentialLevel.MEDIUM)] * 2

    assert estimate_market_potential([*high, CustomerSegment()]) == "Élevé"
    assert estimate_market_potential([*medium, CustomerSegment(potential_size=PotentialLevel.LOW)]) == "Moyen"


def test_risk_statistics_counts_unresolved_amounts_only() -> None:
    clients = [
        RiskClient(
            id="client-1",
            risk_level=RiskLevel.HIGH,
            incidents=[
                Incident(id="incident-1", type=IncidentType.NON_PAYMENT, amount_involved=1200.5),
                Incident(id="incident-2", type=IncidentType.DISPUTE),
                Incident(id="incident-3", type=IncidentType.PAYMENT_DELAY, amount_involved=300, resolved=True),
            ],
        ),
        RiskClient(id="client-2"),
    ]

    stats = risk_statistics(clients)

    assert stats.total_clients == 2
    assert stats.total_incidents == 3
    assert stats.unresolved_incidents == 2
    assert stats.total_amount_at_risk == 1200.5
    assert stats.by_risk_level["high"] == 1
    assert stats.by_risk_level["none"] == 1
    assert stats.by_incident_type["dispute"] == 1


def test_canvas_statistics() -> None:
    stats = canvas_statistics(
        {
            "partners": [CanvasItem(id="partner-1", priority=PriorityLevel.HIGH), CanvasItem(id="partner-2")],
            "channels": [],
        }
    )

    assert stats.total_items == 2
    assert stats.items_by_bucket == {"partners": 2, "channels": 0}
    assert stats.items_by_priority["high"] == 1
    assert stats.items_by_priority["medium"] == 1


@pytest.mark.parametrize(
    ("item", "expected"),
    [
        (InvoiceItem(quantity=3, unit_price=100), 300),
        (InvoiceItem(quantity=3, unit_price=100, discount=10), 270),
        (InvoiceItem(quantity=3, unit_price=100, discount=0), 300),
        (InvoiceItem(quantity=0, unit_price=100), 0),
    ],
)
def test_line_total_applies_percentage_discount(item: InvoiceItem, expected: float) -> None:
    assert line_total(item) == pytest.approx(expected)


def test_document_totals_tax_each_line_at_its_own_rate() -> None:
    totals = document_totals(
        [
            InvoiceItem(quantity=2, unit_price=100, tax_rate=0.2),
            InvoiceItem(quantity=1, unit_price=50, tax_rate=0, discount=50),
        ]
    )

    assert totals.subtotal == pytest.approx(225)
    assert totals.tax_amount == pytest.approx(40)
    assert totals.total == pytest.approx(265)
    assert document_totals([]).total == 0


def test_service_catalog_statistics_average_active_hourly_rates() -> None:
    stats = service_catalog_statistics(
        [
            CatalogService(id="service-1", is_active=True, pricing_type=PricingType.HOURLY, hourly_rate=50),
            CatalogService(id="service-2", is_active=True, pricing_type=PricingType.HOURLY, hourly_rate=70),
            CatalogService(id="service-3", is_active=False, pricing_type=PricingType.HOURLY, hourly_rate=500),
            CatalogService(id="service-4", is_active=True, pricing_type=PricingType.FIXED, price=900),
        ],
        [ServiceCategory(id="category-1")],
    )

    assert stats.active_services_count == 3
    assert stats.categories_count == 1
    assert stats.average_hourly_rate == 60
    assert service_catalog_statistics([], []).average_hourly_rate is None
