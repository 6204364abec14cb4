"""
Aggregate statistics over normalized collections.

Every function is pure: lateness is evaluated against an explicit ``now``
argument, never against the wall clock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Final

from devinde_tracker.adapters.codes import POTENTIAL_CODES
from devinde_tracker.adapters.context import parse_timestamp
from devinde_tracker.adapters.normalizer import round_half_up
from devinde_tracker.domain.enums import (
    EvaluationLevel,
    IncidentType,
    ItemStatus,
    PotentialLevel,
    PriorityLevel,
    PricingType,
    RiskLevel,
)
from devinde_tracker.domain.models import (
    CanonicalModel,
    CanvasItem,
    CatalogService,
    Competitor,
    CustomerSegment,
    Incident,
    InvoiceItem,
    Milestone,
    Opportunity,
    RiskClient,
    ServiceCategory,
    Task,
    Trend,
)

NOT_EVALUATED: Final[str] = "Non évalué"
UNDETERMINED_SHARE: Final[str] = "Indéterminé"

_HIGH_LEVELS: Final[frozenset[str]] = frozenset({"high", "very-high"})
_SEGMENT_CUSTOMER_ESTIMATE: Final[dict[PotentialLevel, int]] = {
    PotentialLevel.VERY_HIGH: 10_000,
    PotentialLevel.HIGH: 5_000,
    PotentialLevel.MEDIUM: 1_000,
    PotentialLevel.LOW: 100,
}


def completion_rate(completed: int, total: int) -> int:
    """``round(completed / total * 100)`` with halves rounded up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return round_half_up(completed / total * 100)


def is_late(due_date: object, status: ItemStatus, now: datetime) -> bool:
    """``due_date < now`` and not completed; empty or unparseable dates are never late."""
    if status == ItemStatus.COMPLETED:
        return False
    due = parse_timestamp(due_date)
    if due is None:
        return False
    reference = parse_timestamp(now)
    assert reference is not None
    return due < reference


def is_high(level: PotentialLevel | EvaluationLevel) -> bool:
    return level.value in _HIGH_LEVELS


# ---------------------------------------------------------------------------
# Action plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ActionPlanStatistics(CanonicalModel):
    total_milestones: int
    completed_milestones: int
    upcoming_milestones: int
    late_milestones: int
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    late_tasks: int
    completion_rate: int
    tasks_by_priority: dict[str, int]
    tasks_by_status: dict[str, int]


def action_plan_statistics(
    milestones: Sequence[Milestone],
    tasks: Sequence[Task],
    now: datetime,
) -> ActionPlanStatistics:
    """Milestone and task counts plus the task completion rate."""
    completed_tasks = _count(task.status == ItemStatus.COMPLETED for task in tasks)
    by_priority = {level.value: 0 for level in PriorityLevel}
    by_status = {status.value: 0 for status in ItemStatus}
    for task in tasks:
        by_priority[task.priority.value] += 1
        by_status[task.status.value] += 1

    return ActionPlanStatistics(
        total_milestones=len(milestones),
        completed_milestones=_count(m.status == ItemStatus.COMPLETED for m in milestones),
        upcoming_milestones=_count(m.status == ItemStatus.PENDING for m in milestones),
        late_milestones=_count(is_late(m.due_date, m.status, now) for m in milestones),
        total_tasks=len(tasks),
        completed_tasks=completed_tasks,
        in_progress_tasks=by_status[ItemStatus.IN_PROGRESS.value],
        late_tasks=_count(is_late(task.due_date, task.status, now) for task in tasks),
        completion_rate=completion_rate(completed_tasks, len(tasks)),
        tasks_by_priority=by_priority,
        tasks_by_status=by_status,
    )


# ---------------------------------------------------------------------------
# Market analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarketStatistics(CanonicalModel):
    total_customer_segments: int
    total_competitors: int
    total_opportunities: int
    total_trends: int
    opportunities_by_potential: dict[str, int]
    competitors_by_threat: dict[str, int]
    average_competitor_score: float
    total_market_potential: str
    competition_level: str
    potential_customers_count: int
    market_growth_rate: str
    estimated_market_share: str
    segments_with_high_potential: int
    major_competitors: int
    high_priority_opportunities: int


def market_statistics(
    segments: Sequence[CustomerSegment],
    competitors: Sequence[Competitor],
    opportunities: Sequence[Opportunity],
    trends: Sequence[Trend],
) -> MarketStatistics:
    by_potential = {level.value: 0 for level in PotentialLevel}
    for opportunity in opportunities:
        by_potential[opportunity.potential.value] += 1
    by_threat = {level.value: 0 for level in EvaluationLevel}
    for competitor in competitors:
        by_threat[competitor.threat.value] += 1

    scores = [score for competitor in competitors for score in competitor.scores() if score]
    average = sum(scores) / len(scores) if scores else 0.0

    if len(competitors) > 5:
        competition = "high"
    elif len(competitors) > 2:
        competition = "medium"
    else:
        competition = "low"

    if segments and competitors:
        market_share = f"{round_half_up(100 / (len(competitors) + 1))}%"
    else:
        market_share = UNDETERMINED_SHARE

    return MarketStatistics(
        total_customer_segments=len(segments),
        total_competitors=len(competitors),
        total_opportunities=len(opportunities),
        total_trends=len(trends),
        opportunities_by_potential=by_potential,
        competitors_by_threat=by_threat,
        average_competitor_score=float(average),
        total_market_potential=estimate_market_potential(segments),
        competition_level=competition,
        potential_customers_count=sum(
            _SEGMENT_CUSTOMER_ESTIMATE[segment.potential_size] for segment in segments
        ),
        market_growth_rate=_growth_label(segments),
        estimated_market_share=market_share,
        segments_with_high_potential=_count(is_high(s.potential_size) for s in segments),
        major_competitors=_count(is_high(c.threat) for c in competitors),
        high_priority_opportunities=_count(is_high(o.potential) for o in opportunities),
    )


def estimate_market_potential(segments: Sequence[CustomerSegment]) -> str:
    """Label the dominant segment potential; ``Non évalué`` without segments."""
    high = _count(is_high(segment.potential_size) for segment in segments)
    medium = _count(segment.potential_size == PotentialLevel.MEDIUM for segment in segments)
    low = len(segments) - high - medium
    if high > medium and high > low:
        return POTENTIAL_CODES.reverse(PotentialLevel.HIGH)
    if medium > low:
        return POTENTIAL_CODES.reverse(PotentialLevel.MEDIUM)
    if not segments:
        return NOT_EVALUATED
    return POTENTIAL_CODES.reverse(PotentialLevel.LOW)


def _growth_label(segments: Sequence[CustomerSegment]) -> str:
    rates = [segment.growth_rate.casefold() for segment in segments]
    if any("rapid" in rate for rate in rates):
        return POTENTIAL_CODES.reverse(PotentialLevel.HIGH)
    if any("moderate" in rate for rate in rates):
        return POTENTIAL_CODES.reverse(PotentialLevel.MEDIUM)
    return POTENTIAL_CODES.reverse(PotentialLevel.LOW)


# ---------------------------------------------------------------------------
# Risk clients
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RiskStatistics(CanonicalModel):
    total_clients: int
    total_incidents: int
    total_amount_at_risk: float
    by_risk_level: dict[str, int]
    by_incident_type: dict[str, int]
    unresolved_incidents: int


def risk_statistics(
    clients: Sequence[RiskClient],
    incidents: Sequence[Incident] | None = None,
) -> RiskStatistics:
    """Counts per risk level and incident type plus the unresolved amount at risk.

    ``incidents`` defaults to every incident attached to ``clients``.
    """
    if incidents is None:
        incidents = [incident for client in clients for incident in client.incidents]

    by_level = {level.value: 0 for level in RiskLevel}
    for client in clients:
        by_level[client.risk_level.value] += 1
    by_type = {kind.value: 0 for kind in IncidentType}
    for incident in incidents:
        by_type[incident.type.value] += 1

    unresolved = [incident for incident in incidents if not incident.resolved]
    return RiskStatistics(
        total_clients=len(clients),
        total_incidents=len(incidents),
        total_amount_at_risk=float(sum(i.amount_involved or 0 for i in unresolved)),
        by_risk_level=by_level,
        by_incident_type=by_type,
        unresolved_incidents=len(unresolved),
    )


# ---------------------------------------------------------------------------
# Business model canvas
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanvasStatistics(CanonicalModel):
    total_items: int
    items_by_bucket: dict[str, int]
    items_by_priority: dict[str, int]


def canvas_statistics(buckets: Mapping[str, Sequence[CanvasItem]]) -> CanvasStatistics:
    by_priority = {level.value: 0 for level in PriorityLevel}
    by_bucket: dict[str, int] = {}
    for name, items in buckets.items():
        by_bucket[name] = len(items)
        for item in items:
            by_priority[item.priority.value] += 1
    return CanvasStatistics(
        total_items=sum(by_bucket.values()),
        items_by_bucket=by_bucket,
        items_by_priority=by_priority,
    )


# ---------------------------------------------------------------------------
# Invoicing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocumentTotals(CanonicalModel):
    subtotal: float
    tax_amount: float
    total: float


def line_total(item: InvoiceItem) -> float:
    """Pre-tax amount of one line, after its percentage discount."""
    factor = 1 - item.discount / 100 if item.discount else 1
    return item.quantity * item.unit_price * factor


def document_totals(items: Sequence[InvoiceItem]) -> DocumentTotals:
    subtotal = 0.0
    tax_amount = 0.0
    for item in items:
        amount = line_total(item)
        subtotal += amount
        tax_amount += amount * item.tax_rate
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


# ---------------------------------------------------------------------------
# Service catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServiceCatalogStatistics(CanonicalModel):
    active_services_count: int
    categories_count: int
    average_hourly_rate: float | None


def service_catalog_statistics(
    services: Sequence[CatalogService],
    categories: Sequence[ServiceCategory],
) -> ServiceCatalogStatistics:
    """Active-service count and the mean rate of active hourly services.

    ``average_hourly_rate`` is ``None`` when no active service is billed hourly.
    """
    active = [service for service in services if service.is_active]
    rates = [service.hourly_rate for service in active if service.pricing_type == PricingType.HOURLY]
    return ServiceCatalogStatistics(
        active_services_count=len(active),
        categories_count=len(categories),
        average_hourly_rate=sum(rates) / len(rates) if rates else None,
    )


def _count(flags: Iterable[bool]) -> int:
    return sum(1 for flag in flags if flag)


__all__ = [
    "NOT_EVALUATED",
    "UNDETERMINED_SHARE",
    "ActionPlanStatistics",
    "CanvasStatistics",
    "DocumentTotals",
    "MarketStatistics",
    "RiskStatistics",
    "ServiceCatalogStatistics",
    "action_plan_statistics",
    "canvas_statistics",
    "completion_rate",
    "document_totals",
    "estimate_market_potential",
    "is_high",
    "is_late",
    "line_total",
    "market_statistics",
    "risk_statistics",
    "service_catalog_statistics",
]
