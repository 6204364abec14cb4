"""
SWOT synthesis from normalized market-analysis collections.

Rules, applied in this order:
- segment potential HIGH/VERY_HIGH -> strength; LOW -> weakness
- competitor threat HIGH/VERY_HIGH -> threat
- each competitor's first ``competitor_weakness_cap`` weaknesses -> opportunities
- opportunity potential HIGH/VERY_HIGH -> opportunity (VERY_HIGH scores higher)
- opportunity risk HIGH/VERY_HIGH -> threat (VERY_HIGH scores higher)
- trend impact HIGH/VERY_HIGH -> opportunity (VERY_HIGH scores higher)
- free-text strength sources -> strengths

The analysis is derived, never persisted; item ids depend only on source ids
so repeated synthesis over the same data yields the same ids.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from devinde_tracker.adapters.statistics import is_high
from devinde_tracker.domain.enums import EvaluationLevel, PotentialLevel, SwotType
from devinde_tracker.domain.ids import derived_id
from devinde_tracker.domain.models import (
    CanonicalModel,
    Competitor,
    CustomerSegment,
    Opportunity,
    SwotItem,
    Trend,
)

_MIN_IMPORTANCE = 3
_MAX_IMPORTANCE = 5


@dataclass(frozen=True, slots=True)
class SwotRules:
    """Tunable constants of the synthesis."""

    competitor_weakness_cap: int = 2
    segment_strength_importance: int = 4
    segment_weakness_importance: int = 3
    competitor_threat_importance: int = 4
    competitor_weakness_importance: int = 3
    high_importance: int = 4
    very_high_importance: int = 5
    value_importance: int = 4
    segment_category: str = "Customer segments"
    competition_category: str = "Competition"
    market_category: str = "Market"
    risk_category: str = "Risks"
    trend_category: str = "Trends"
    value_category: str = "Values"

    def __post_init__(self) -> None:
        if isinstance(self.competitor_weakness_cap, bool) or self.competitor_weakness_cap < 0:
            raise ValueError("competitor_weakness_cap: must be >= 0")
        for name in (
            "segment_strength_importance",
            "segment_weakness_importance",
            "competitor_threat_importance",
            "competitor_weakness_importance",
            "high_importance",
            "very_high_importance",
            "value_importance",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not _MIN_IMPORTANCE <= value <= _MAX_IMPORTANCE:
                raise ValueError(
                    f"{name}: must be between {_MIN_IMPORTANCE} and {_MAX_IMPORTANCE}, got {value!r}"
                )

    def scaled(self, level: PotentialLevel | EvaluationLevel) -> int:
        if level.value == "very-high":
            return self.very_high_importance
        return self.high_importance


@dataclass(frozen=True, slots=True)
class SwotAnalysis(CanonicalModel):
    strengths: tuple[SwotItem, ...] = ()
    weaknesses: tuple[SwotItem, ...] = ()
    opportunities: tuple[SwotItem, ...] = ()
    threats: tuple[SwotItem, ...] = ()

    def all_items(self) -> tuple[SwotItem, ...]:
        return (*self.strengths, *self.weaknesses, *self.opportunities, *self.threats)


def synthesize_swot(
    segments: Sequence[CustomerSegment],
    competitors: Sequence[Competitor],
    opportunities: Sequence[Opportunity],
    trends: Sequence[Trend],
    *,
    strength_sources: Sequence[str] = (),
    rules: SwotRules | None = None,
) -> SwotAnalysis:
    """Derive the four SWOT lists from the market-analysis collections."""
    active = rules if rules is not None else SwotRules()
    strengths: list[SwotItem] = []
    weaknesses: list[SwotItem] = []
    opportunity_items: list[SwotItem] = []
    threats: list[SwotItem] = []

    for segment in segments:
        if is_high(segment.potential_size):
            strengths.append(
                SwotItem(
                    id=derived_id("strength", "segment", segment.id),
                    content=f"High-potential customer segment: {segment.name}",
                    type=SwotType.STRENGTH,
                    importance=active.segment_strength_importance,
                    category=active.segment_category,
                )
            )
        elif segment.potential_size == PotentialLevel.LOW:
            weaknesses.append(
                SwotItem(
                    id=derived_id("weakness", "segment", segment.id),
                    content=f"Low-potential customer segment: {segment.name}",
                    type=SwotType.WEAKNESS,
                    importance=active.segment_weakness_importance,
                    category=active.segment_category,
                )
            )

    for competitor in competitors:
        if is_high(competitor.threat):
            threats.append(
                SwotItem(
                    id=derived_id("threat", "competitor", competitor.id),
                    content=f"Competitor {competitor.name} is a significant threat",
                    type=SwotType.THREAT,
                    importance=active.competitor_threat_importance,
                    category=active.competition_category,
                )
            )
        for index, weakness in enumerate(competitor.weaknesses[: active.competitor_weakness_cap]):
            opportunity_items.append(
                SwotItem(
                    id=derived_id("opportunity", "comp", "weakness", competitor.id, index),
                    content=f"Exploit weakness of {competitor.name}: {weakness}",
                    type=SwotType.OPPORTUNITY,
                    importance=active.competitor_weakness_importance,
                    category=active.competition_category,
                )
            )

    for opportunity in opportunities:
        if is_high(opportunity.potential):
            opportunity_items.append(
                SwotItem(
                    id=derived_id("opportunity", opportunity.id),
                    content=opportunity.title,
                    type=SwotType.OPPORTUNITY,
                    importance=active.scaled(opportunity.potential),
                    category=opportunity.categories[0] if opportunity.categories else active.market_category,
                )
            )
        if is_high(opportunity.risk):
            threats.append(
                SwotItem(
                    id=derived_id("threat", "opportunity", opportunity.id),
                    content=f"High risk: {opportunity.title}",
                    type=SwotType.THREAT,
                    importance=active.scaled(opportunity.risk),
                    category=active.risk_category,
                )
            )

    for trend in trends:
        if is_high(trend.impact):
            opportunity_items.append(
                SwotItem(
                    id=derived_id("opportunity", "trend", trend.id),
                    content=f"Leverage trend: {trend.title}",
                    type=SwotType.OPPORTUNITY,
                    importance=active.scaled(trend.impact),
                    category=active.trend_category,
                )
            )

    for index, source in enumerate(item for item in strength_sources if item.strip()):
        strengths.append(
            SwotItem(
                id=derived_id("strength", "value", index),
                content=source.strip(),
                type=SwotType.STRENGTH,
                importance=active.value_importance,
                category=active.value_category,
            )
        )

    return SwotAnalysis(
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
        opportunities=tuple(opportunity_items),
        threats=tuple(threats),
    )


__all__ = ["SwotAnalysis", "SwotRules", "synthesize_swot"]
