"""
Market analysis section: customer segments, competitors, opportunities and trends.

Segments have been stored under three keys over time (``targetClients``,
``customerSegments``, ``segments``); the first list present wins on read and
``targetClients`` is written back. Trends may still be bare strings of the
form ``"Title: description"``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

import structlog

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import normalize_many
from devinde_tracker.adapters.schema import (
    EntitySchema,
    FieldSpec,
    audit_fields,
    code,
    integer,
    text,
    text_list,
)
from devinde_tracker.adapters.serializer import serialize_many
from devinde_tracker.adapters.statistics import MarketStatistics, market_statistics
from devinde_tracker.adapters.swot import SwotAnalysis, SwotRules, synthesize_swot
from devinde_tracker.constants import (
    COMPETITOR_SCORE_DEFAULT,
    COMPETITOR_SCORE_MAX,
    COMPETITOR_SCORE_MIN,
    DEFAULT_TREND_TIMEFRAME,
)
from devinde_tracker.domain.ids import (
    COMPETITOR_ID_PREFIX,
    OPPORTUNITY_ID_PREFIX,
    SEGMENT_ID_PREFIX,
    TREND_ID_PREFIX,
)
from devinde_tracker.domain.models import (
    CanonicalModel,
    Competitor,
    CustomerSegment,
    Opportunity,
    Trend,
)
from devinde_tracker.domain.records import MarketAnalysisRecord

_LOGGER = structlog.get_logger(__name__)

SEGMENT_KEYS: Final[tuple[str, ...]] = ("targetClients", "customerSegments", "segments")
_SCORE_BOUNDS = (float(COMPETITOR_SCORE_MIN), float(COMPETITOR_SCORE_MAX))
_TREND_SEPARATOR: Final[str] = ": "


def _score(attr: str, key: str) -> FieldSpec:
    return integer(attr, key, default=COMPETITOR_SCORE_DEFAULT, bounds=_SCORE_BOUNDS)


def _trend_from_text(raw: object) -> Mapping[str, object] | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    title, separator, description = raw.strip().partition(_TREND_SEPARATOR)
    return {
        "title": title.strip(),
        "description": description.strip() if separator else "",
        "timeframe": DEFAULT_TREND_TIMEFRAME,
    }


SEGMENT_SCHEMA = EntitySchema(
    kind="customer_segment",
    view_type=CustomerSegment,
    id_prefix=SEGMENT_ID_PREFIX,
    fields=(
        text("name", "name", "segment", write=("name", "segment")),
        text("description", "description"),
        text_list("needs", "needs"),
        code("potential_size", "potentialSize", "potential"),
        code("profitability", "profitability", "potential"),
        text("acquisition", "acquisition"),
        text("ideal_client", "idealClient"),
        text_list("pain_points", "painPoints"),
        text("budget", "budget"),
        text("decision_factor", "decisionFactor"),
        text("growth_rate", "growthRate"),
        text_list("key_insights", "keyInsights"),
        text("size", "size"),
        *audit_fields(),
    ),
)

COMPETITOR_SCHEMA = EntitySchema(
    kind="competitor",
    view_type=Competitor,
    id_prefix=COMPETITOR_ID_PREFIX,
    fields=(
        text("name", "name"),
        text("website", "website", "url", write=("website", "url")),
        text("description", "description"),
        text_list("strengths", "strengths"),
        text_list("weaknesses", "weaknesses"),
        text("target_market", "targetMarket"),
        text("pricing_strategy", "pricingStrategy"),
        text("market_share", "marketShare"),
        text_list("differentiators", "differentiators"),
        _score("product_quality", "productQuality"),
        _score("customer_service", "customerService"),
        _score("pricing", "pricing"),
        _score("innovation", "innovation"),
        _score("reputation_score", "reputationScore"),
        code("threat", "threat", "evaluation"),
        *audit_fields(),
    ),
)

OPPORTUNITY_SCHEMA = EntitySchema(
    kind="opportunity",
    view_type=Opportunity,
    id_prefix=OPPORTUNITY_ID_PREFIX,
    fields=(
        text("title", "title"),
        text("description", "description"),
        code("potential", "potential", "potential"),
        code("risk", "risk", "evaluation"),
        text("estimated_investment", "estimatedInvestment"),
        text("timeframe", "timeframe"),
        text("expected_impact", "expectedImpact"),
        text_list("recommended_actions", "recommendedActions"),
        text_list("stakeholders", "stakeholders"),
        text_list("key_insights", "keyInsights"),
        text_list("categories", "categories"),
        *audit_fields(),
    ),
)

TREND_SCHEMA = EntitySchema(
    kind="trend",
    view_type=Trend,
    id_prefix=TREND_ID_PREFIX,
    coerce=_trend_from_text,
    fields=(
        text("title", "title", "name", write=("title", "name")),
        text("description", "description"),
        code("impact", "impact", "evaluation"),
        text("timeframe", "timeframe"),
        text_list("sources", "sources"),
        text_list("indicators", "indicators"),
        text_list("sectors", "sectors"),
        text_list("related_opportunities", "relatedOpportunities"),
        text_list("related_threats", "relatedThreats"),
        *audit_fields(),
    ),
)


# ---------------------------------------------------------------------------
# View shapes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MarketAnalysisView(CanonicalModel):
    segments: list[CustomerSegment]
    competitors: list[Competitor]
    opportunities: list[Opportunity]
    trends: list[Trend]
    strengths: list[str]
    statistics: MarketStatistics
    swot: SwotAnalysis


@dataclass(slots=True)
class MarketAnalysisChanges:
    """UI edits; each provided collection replaces the stored one."""

    segments: list[CustomerSegment] | None = None
    competitors: list[Competitor] | None = None
    opportunities: list[Opportunity] | None = None
    trends: list[Trend] | None = None
    strengths: list[str] | None = None


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def to_view(
    analysis: Mapping[str, Any] | None,
    context: AdapterContext,
    *,
    rules: SwotRules | None = None,
) -> MarketAnalysisView:
    """Normalize the stored analysis and derive its statistics and SWOT."""
    raw = analysis if isinstance(analysis, Mapping) else {}
    segments = normalize_many(SEGMENT_SCHEMA, _stored_segments(raw), context)
    competitors = normalize_many(COMPETITOR_SCHEMA, raw.get("competitors"), context)
    opportunities = normalize_many(OPPORTUNITY_SCHEMA, raw.get("opportunities"), context)
    trends = normalize_many(TREND_SCHEMA, raw.get("trends"), context)
    strengths = _text_items(raw.get("strengths"))
    return MarketAnalysisView(
        segments=segments,
        competitors=competitors,
        opportunities=opportunities,
        trends=trends,
        strengths=strengths,
        statistics=market_statistics(segments, competitors, opportunities, trends),
        swot=synthesize_swot(
            segments,
            competitors,
            opportunities,
            trends,
            strength_sources=strengths,
            rules=rules,
        ),
    )


def to_persisted(view: MarketAnalysisView, context: AdapterContext) -> MarketAnalysisRecord:
    return {
        "targetClients": serialize_many(SEGMENT_SCHEMA, view.segments, context),
        "competitors": serialize_many(COMPETITOR_SCHEMA, view.competitors, context),
        "opportunities": serialize_many(OPPORTUNITY_SCHEMA, view.opportunities, context),
        "trends": serialize_many(TREND_SCHEMA, view.trends, context),
        "strengths": list(view.strengths),
    }  # type: ignore[typeddict-item]


def apply_changes(
    analysis: Mapping[str, Any] | None,
    changes: MarketAnalysisChanges,
    context: AdapterContext,
) -> MarketAnalysisRecord:
    """Replace every collection present in ``changes``; others are kept as stored.

    Segments are always written under ``targetClients``; legacy segment keys
    are dropped once segments are replaced.
    """
    raw = analysis if isinstance(analysis, Mapping) else {}
    out: dict[str, Any] = dict(raw)
    replaced: list[str] = []

    if changes.segments is not None:
        for key in SEGMENT_KEYS:
            out.pop(key, None)
        out["targetClients"] = serialize_many(SEGMENT_SCHEMA, changes.segments, context)
        replaced.append("targetClients")
    if changes.competitors is not None:
        out["competitors"] = serialize_many(COMPETITOR_SCHEMA, changes.competitors, context)
        replaced.append("competitors")
    if changes.opportunities is not None:
        out["opportunities"] = serialize_many(OPPORTUNITY_SCHEMA, changes.opportunities, context)
        replaced.append("opportunities")
    if changes.trends is not None:
        out["trends"] = serialize_many(TREND_SCHEMA, changes.trends, context)
        replaced.append("trends")
    if changes.strengths is not None:
        out["strengths"] = [item for item in changes.strengths if isinstance(item, str)]
        replaced.append("strengths")

    _LOGGER.info("market_analysis_changes_applied", collections=replaced)
    return out  # type: ignore[return-value]


def _stored_segments(raw: Mapping[str, Any]) -> object:
    for key in SEGMENT_KEYS:
        value = raw.get(key)
        if isinstance(value, (list, tuple)):
            return value
    return None


def _text_items(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


__all__ = [
    "COMPETITOR_SCHEMA",
    "OPPORTUNITY_SCHEMA",
    "SEGMENT_KEYS",
    "SEGMENT_SCHEMA",
    "TREND_SCHEMA",
    "MarketAnalysisChanges",
    "MarketAnalysisView",
    "apply_changes",
    "to_persisted",
    "to_view",
]
