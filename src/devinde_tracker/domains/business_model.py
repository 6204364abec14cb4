"""
Business model section: the nine canvas buckets and the pricing catalog.

Canvas buckets share one item shape and differ only in persisted key, id
prefix and default priority, so their schemas are generated from
``CANVAS_BUCKETS``. Pricing entries come in four variants whose persisted
field names predate the view names (``serviceType`` is a rate's title,
``services`` are a package's features).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final

import structlog

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import normalize_many
from devinde_tracker.adapters.reconcile import as_records, merge_by_id
from devinde_tracker.adapters.schema import (
    EntitySchema,
    FieldSpec,
    code,
    flag,
    number,
    text,
    text_list,
)
from devinde_tracker.adapters.serializer import serialize_many
from devinde_tracker.adapters.statistics import CanvasStatistics
from devinde_tracker.adapters.statistics import canvas_statistics as _bucket_statistics
from devinde_tracker.constants import DEFAULT_BILLING_FREQUENCY
from devinde_tracker.domain.enums import PriorityLevel
from devinde_tracker.domain.ids import (
    CUSTOM_PRICING_ID_PREFIX,
    HOURLY_RATE_ID_PREFIX,
    PACKAGE_ID_PREFIX,
    SUBSCRIPTION_ID_PREFIX,
)
from devinde_tracker.domain.models import (
    CanonicalModel,
    CanvasItem,
    CustomPricing,
    HourlyRate,
    PricingPackage,
    Subscription,
    fail,
)
from devinde_tracker.domain.records import BusinessModelRecord

_LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CanvasBucket:
    key: str
    id_prefix: str
    default_priority: PriorityLevel


CANVAS_BUCKETS: Final[tuple[CanvasBucket, ...]] = (
    CanvasBucket("partners", "partner", PriorityLevel.MEDIUM),
    CanvasBucket("activities", "activity", PriorityLevel.MEDIUM),
    CanvasBucket("resources", "resource", PriorityLevel.MEDIUM),
    CanvasBucket("valuePropositions", "value", PriorityLevel.HIGH),
    CanvasBucket("customerRelations", "relation", PriorityLevel.MEDIUM),
    CanvasBucket("channels", "channel", PriorityLevel.MEDIUM),
    CanvasBucket("segments", "segment", PriorityLevel.HIGH),
    CanvasBucket("costStructure", "cost", PriorityLevel.MEDIUM),
    CanvasBucket("revenueStreams", "revenue", PriorityLevel.HIGH),
)
CANVAS_BUCKET_KEYS: Final[tuple[str, ...]] = tuple(bucket.key for bucket in CANVAS_BUCKETS)


def _canvas_item_schema(bucket: CanvasBucket) -> EntitySchema:
    return EntitySchema(
        kind=f"canvas.{bucket.key}",
        view_type=CanvasItem,
        id_prefix=bucket.id_prefix,
        fields=(
            text("name", "name"),
            text("description", "description"),
            code("priority", "priority", "priority", default=bucket.default_priority),
        ),
    )


CANVAS_SCHEMAS: Final[dict[str, EntitySchema]] = {
    bucket.key: _canvas_item_schema(bucket) for bucket in CANVAS_BUCKETS
}


def _currency() -> FieldSpec:
    return FieldSpec("currency", ("currency",), "text", default_from=lambda context: context.currency)


HOURLY_RATE_SCHEMA = EntitySchema(
    kind="hourly_rate",
    view_type=HourlyRate,
    id_prefix=HOURLY_RATE_ID_PREFIX,
    fields=(
        text("title", "serviceType"),
        text("description", "description", write=()),
        number("rate_per_hour", "rate"),
        _currency(),
    ),
)

PACKAGE_SCHEMA = EntitySchema(
    kind="package",
    view_type=PricingPackage,
    id_prefix=PACKAGE_ID_PREFIX,
    fields=(
        text("title", "name"),
        text("description", "description"),
        number("price", "price"),
        _currency(),
        text_list("features", "services"),
        flag("popular", "popular", write=()),
    ),
)

SUBSCRIPTION_SCHEMA = EntitySchema(
    kind="subscription",
    view_type=Subscription,
    id_prefix=SUBSCRIPTION_ID_PREFIX,
    fields=(
        text("title", "name"),
        text("description", "description"),
        number("monthly_price", "monthlyPrice"),
        _currency(),
        text("billing_frequency", "billingFrequency", default=DEFAULT_BILLING_FREQUENCY, write=()),
        text_list("features", "features"),
    ),
)

CUSTOM_PRICING_SCHEMA = EntitySchema(
    kind="custom_pricing",
    view_type=CustomPricing,
    id_prefix=CUSTOM_PRICING_ID_PREFIX,
    fields=(
        text("title", "name"),
        text("description", "description"),
        number("price_min", "minPrice"),
        number("price_max", "maxPrice"),
        _currency(),
        text_list("factors", "pricingFactors"),
    ),
)

# Persisted key -> (schema, PricingModel attribute).
_PRICING_COLLECTIONS: Final[tuple[tuple[str, EntitySchema, str], ...]] = (
    ("hourlyRates", HOURLY_RATE_SCHEMA, "hourly_rates"),
    ("packages", PACKAGE_SCHEMA, "packages"),
    ("subscriptions", SUBSCRIPTION_SCHEMA, "subscriptions"),
    ("customPricing", CUSTOM_PRICING_SCHEMA, "custom_pricing"),
)


# ---------------------------------------------------------------------------
# View shapes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class BusinessModelCanvas(CanonicalModel):
    partners: list[CanvasItem] = field(default_factory=list)
    activities: list[CanvasItem] = field(default_factory=list)
    resources: list[CanvasItem] = field(default_factory=list)
    value_propositions: list[CanvasItem] = field(default_factory=list)
    customer_relations: list[CanvasItem] = field(default_factory=list)
    channels: list[CanvasItem] = field(default_factory=list)
    segments: list[CanvasItem] = field(default_factory=list)
    cost_structure: list[CanvasItem] = field(default_factory=list)
    revenue_streams: list[CanvasItem] = field(default_factory=list)

    def buckets(self) -> dict[str, list[CanvasItem]]:
        """Bucket items keyed by persisted bucket name, in canvas order."""
        return {bucket.key: getattr(self, _bucket_attr(bucket.key)) for bucket in CANVAS_BUCKETS}


@dataclass(slots=True)
class PricingModel(CanonicalModel):
    hourly_rates: list[HourlyRate] = field(default_factory=list)
    packages: list[PricingPackage] = field(default_factory=list)
    subscriptions: list[Subscription] = field(default_factory=list)
    custom_pricing: list[CustomPricing] = field(default_factory=list)


@dataclass(slots=True)
class BusinessModelView(CanonicalModel):
    canvas: BusinessModelCanvas
    pricing: PricingModel
    statistics: CanvasStatistics


@dataclass(slots=True)
class BusinessModelChanges:
    """UI edits; every provided collection is merged into storage by id.

    ``canvas`` is keyed by persisted bucket name (``valuePropositions``, ...).
    """

    canvas: Mapping[str, Sequence[CanvasItem]] | None = None
    hourly_rates: list[HourlyRate] | None = None
    packages: list[PricingPackage] | None = None
    subscriptions: list[Subscription] | None = None
    custom_pricing: list[CustomPricing] | None = None


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def to_view(model: Mapping[str, Any] | None, context: AdapterContext) -> BusinessModelView:
    raw = model if isinstance(model, Mapping) else {}
    canvas = BusinessModelCanvas(
        **{
            _bucket_attr(key): normalize_many(schema, raw.get(key), context)
            for key, schema in CANVAS_SCHEMAS.items()
        }
    )
    pricing = PricingModel(
        **{
            attr: normalize_many(schema, raw.get(key), context)
            for key, schema, attr in _PRICING_COLLECTIONS
        }
    )
    return BusinessModelView(canvas=canvas, pricing=pricing, statistics=canvas_statistics(canvas))


def to_persisted(view: BusinessModelView, context: AdapterContext) -> BusinessModelRecord:
    out: dict[str, Any] = {}
    for key, items in view.canvas.buckets().items():
        out[key] = serialize_many(CANVAS_SCHEMAS[key], items, context)
    for key, schema, attr in _PRICING_COLLECTIONS:
        out[key] = serialize_many(schema, getattr(view.pricing, attr), context)
    return out  # type: ignore[return-value]


def apply_changes(
    model: Mapping[str, Any] | None,
    changes: BusinessModelChanges,
    context: AdapterContext,
) -> BusinessModelRecord:
    """Merge every provided collection into the stored model by id.

    Stored records that the change set does not mention are kept as-is.
    """
    raw = model if isinstance(model, Mapping) else {}
    out: dict[str, Any] = dict(raw)
    touched: list[str] = []

    for key, items in (changes.canvas or {}).items():
        schema = CANVAS_SCHEMAS.get(key)
        if schema is None:
            fail(f"canvas.{key}", f"unknown canvas bucket; expected one of {list(CANVAS_BUCKET_KEYS)}")
        out[key] = merge_by_id(as_records(raw.get(key)), serialize_many(schema, items, context))
        touched.append(key)

    for key, schema, attr in _PRICING_COLLECTIONS:
        items = getattr(changes, attr)
        if items is None:
            continue
        out[key] = merge_by_id(as_records(raw.get(key)), serialize_many(schema, items, context))
        touched.append(key)

    _LOGGER.info("business_model_changes_applied", collections=touched)
    return out  # type: ignore[return-value]


def canvas_statistics(canvas: BusinessModelCanvas) -> CanvasStatistics:
    return _bucket_statistics(canvas.buckets())


def _bucket_attr(key: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in key)


__all__ = [
    "CANVAS_BUCKETS",
    "CANVAS_BUCKET_KEYS",
    "CANVAS_SCHEMAS",
    "CUSTOM_PRICING_SCHEMA",
    "HOURLY_RATE_SCHEMA",
    "PACKAGE_SCHEMA",
    "SUBSCRIPTION_SCHEMA",
    "BusinessModelCanvas",
    "BusinessModelChanges",
    "BusinessModelView",
    "CanvasBucket",
    "PricingModel",
    "apply_changes",
    "canvas_statistics",
    "to_persisted",
    "to_view",
]
