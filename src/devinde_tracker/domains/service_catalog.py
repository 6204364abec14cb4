"""
Service catalog section: the services a freelancer sells and their categories.

A service is billed one of four ways (hourly, fixed, recurring, custom). The
view keeps every price field; the persisted form only carries the fields of
the service's pricing type, so switching a service from hourly to fixed
drops its hourly rate on the next write.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Final

import structlog

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import normalize, normalize_many
from devinde_tracker.adapters.reconcile import (
    UpsertOutcome,
    as_records,
    remove_by_id,
    upsert,
)
from devinde_tracker.adapters.schema import (
    EntitySchema,
    FieldSpec,
    audit_fields,
    code,
    entities,
    entity,
    flag,
    integer,
    number,
    optional_text,
    text,
    text_list,
)
from devinde_tracker.adapters.serializer import serialize, serialize_many
from devinde_tracker.adapters.statistics import ServiceCatalogStatistics, service_catalog_statistics
from devinde_tracker.constants import DEFAULT_BILLING_FREQUENCY, DEFAULT_CURRENCY
from devinde_tracker.domain.enums import PricingType
from devinde_tracker.domain.ids import SERVICE_CATEGORY_ID_PREFIX, SERVICE_ID_PREFIX
from devinde_tracker.domain.models import (
    CanonicalModel,
    CatalogService,
    DiscountThreshold,
    PriceRange,
    ServiceCategory,
    ServiceListItem,
)
from devinde_tracker.domain.records import CatalogServiceRecord, ServiceCatalogRecord

_LOGGER = structlog.get_logger(__name__)

PRICE_ON_REQUEST: Final[str] = "Sur devis"

# Display suffix per recurring billing cycle; other cycles read "période".
_CYCLE_LABELS: Final[dict[str, str]] = {
    "monthly": "mois",
    "quarterly": "trim.",
    "annually": "an",
}
_OTHER_CYCLE_LABEL: Final[str] = "période"

# Persisted keys owned by each pricing type.
_PRICING_KEYS: Final[dict[PricingType, frozenset[str]]] = {
    PricingType.HOURLY: frozenset({"hourlyRate", "minimumHours", "discountThresholds"}),
    PricingType.FIXED: frozenset({"price", "estimatedHours", "deliverables", "estimatedTimeframe"}),
    PricingType.RECURRING: frozenset({"price", "billingCycle", "minimumCommitment", "includedItems"}),
    PricingType.CUSTOM: frozenset({"priceRange", "pricingFactors", "requiresConsultation"}),
}
_ALL_PRICING_KEYS: Final[frozenset[str]] = frozenset().union(*_PRICING_KEYS.values())

# Business-plan keys the catalog is stored under.
_STANDARDIZED_KEY: Final[str] = "standardized"
_CATALOG_KEY: Final[str] = "serviceCatalog"


def has_price_range(service: CatalogService) -> bool:
    return service.price_range.minimum is not None and service.price_range.maximum is not None


def _emit_pricing(view: CatalogService, out: dict[str, Any], context: AdapterContext) -> None:
    kept = _PRICING_KEYS[context.codes.pricing_type.forward(view.pricing_type)]
    for key in _ALL_PRICING_KEYS - kept:
        out.pop(key, None)
    if "priceRange" in out and not has_price_range(view):
        del out["priceRange"]


DISCOUNT_THRESHOLD_SCHEMA = EntitySchema(
    kind="discount_threshold",
    view_type=DiscountThreshold,
    fields=(
        number("hours", "hours"),
        number("discount_percentage", "discountPercentage"),
    ),
)

PRICE_RANGE_SCHEMA = EntitySchema(
    kind="price_range",
    view_type=PriceRange,
    fields=(
        FieldSpec("minimum", ("min",), "optional_number"),
        FieldSpec("maximum", ("max",), "optional_number"),
    ),
)

SERVICE_SCHEMA = EntitySchema(
    kind="catalog_service",
    view_type=CatalogService,
    id_prefix=SERVICE_ID_PREFIX,
    emit=_emit_pricing,
    fields=(
        text("name", "name"),
        text("description", "description"),
        code("type", "type", "service_type"),
        text("category", "category"),
        text_list("tags", "tags"),
        flag("is_active", "isActive"),
        code("pricing_type", "pricingType", "pricing_type"),
        number("hourly_rate", "hourlyRate"),
        FieldSpec("minimum_hours", ("minimumHours",), "optional_number"),
        entities("discount_thresholds", "discountThresholds", DISCOUNT_THRESHOLD_SCHEMA),
        number("price", "price"),
        FieldSpec("estimated_hours", ("estimatedHours",), "optional_number"),
        text_list("deliverables", "deliverables"),
        optional_text("estimated_timeframe", "estimatedTimeframe"),
        text("billing_cycle", "billingCycle", default=DEFAULT_BILLING_FREQUENCY),
        FieldSpec("minimum_commitment", ("minimumCommitment",), "optional_integer"),
        text_list("included_items", "includedItems"),
        entity("price_range", "priceRange", PRICE_RANGE_SCHEMA),
        text_list("pricing_factors", "pricingFactors"),
        flag("requires_consultation", "requiresConsultation"),
        *audit_fields(),
    ),
)

CATEGORY_SCHEMA = EntitySchema(
    kind="service_category",
    view_type=ServiceCategory,
    id_prefix=SERVICE_CATEGORY_ID_PREFIX,
    fields=(
        text("name", "name"),
        text("description", "description"),
        integer("order", "order"),
    ),
)


@dataclass(slots=True)
class ServiceCatalogView(CanonicalModel):
    """Catalog listing plus the full services it was built from."""

    services: list[ServiceListItem] = field(default_factory=list)
    categories: list[ServiceCategory] = field(default_factory=list)
    stats: ServiceCatalogStatistics = field(default_factory=lambda: service_catalog_statistics([], []))
    service_details: list[CatalogService] = field(default_factory=list)
    business_plan_id: str = ""


@dataclass(frozen=True, slots=True)
class ServiceUpsert:
    catalog: ServiceCatalogRecord
    outcome: UpsertOutcome


@dataclass(frozen=True, slots=True)
class ServiceRemoval:
    catalog: ServiceCatalogRecord
    removed: bool


def format_amount(value: float) -> str:
    """``50.0`` -> ``"50"``; fractional amounts keep their digits."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_price(service: CatalogService, currency: str = DEFAULT_CURRENCY) -> str:
    """Short display price, e.g. ``50€/h``, ``300€/mois`` or ``1000-2000€``."""
    pricing = PricingType(service.pricing_type)
    if pricing == PricingType.HOURLY:
        return f"{format_amount(service.hourly_rate)}{currency}/h"
    if pricing == PricingType.FIXED:
        return f"{format_amount(service.price)}{currency}"
    if pricing == PricingType.RECURRING:
        cycle = _CYCLE_LABELS.get(service.billing_cycle, _OTHER_CYCLE_LABEL)
        return f"{format_amount(service.price)}{currency}/{cycle}"
    if has_price_range(service):
        low = format_amount(service.price_range.minimum or 0)
        high = format_amount(service.price_range.maximum or 0)
        return f"{low}-{high}{currency}"
    return PRICE_ON_REQUEST


def list_item(service: CatalogService, context: AdapterContext) -> ServiceListItem:
    return ServiceListItem(
        id=service.id,
        name=service.name,
        type=service.type,
        category=service.category,
        pricing_type=service.pricing_type,
        price=format_price(service, context.currency),
        is_active=service.is_active,
    )


def service_to_view(service: Mapping[str, Any] | None, context: AdapterContext) -> CatalogService:
    return normalize(SERVICE_SCHEMA, service, context)


def service_to_persisted(view: CatalogService, context: AdapterContext) -> CatalogServiceRecord:
    """Persist one service, giving it an id when the UI created it without one."""
    if not view.id:
        view = replace(view, id=context.new_id(SERVICE_ID_PREFIX))
    return serialize(SERVICE_SCHEMA, view, context)  # type: ignore[return-value]


def to_view(catalog: Mapping[str, Any] | None, context: AdapterContext) -> ServiceCatalogView:
    if not isinstance(catalog, Mapping):
        return ServiceCatalogView()
    services: list[CatalogService] = normalize_many(SERVICE_SCHEMA, catalog.get("services"), context)
    categories: list[ServiceCategory] = normalize_many(CATEGORY_SCHEMA, catalog.get("categories"), context)
    business_plan_id = catalog.get("businessPlanId")
    return ServiceCatalogView(
        services=[list_item(service, context) for service in services],
        categories=categories,
        stats=service_catalog_statistics(services, categories),
        service_details=services,
        business_plan_id=business_plan_id if isinstance(business_plan_id, str) else "",
    )


def to_persisted(
    view: ServiceCatalogView,
    context: AdapterContext,
    business_plan_id: str | None = None,
) -> ServiceCatalogRecord:
    return {
        "services": [service_to_persisted(service, context) for service in view.service_details],
        "categories": serialize_many(CATEGORY_SCHEMA, view.categories, context),  # type: ignore[typeddict-item]
        "businessPlanId": business_plan_id if business_plan_id is not None else view.business_plan_id,
    }


def upsert_service(
    catalog: Mapping[str, Any] | None,
    service: CatalogService,
    context: AdapterContext,
) -> ServiceUpsert:
    out: dict[str, Any] = dict(catalog) if isinstance(catalog, Mapping) else {}
    record = service_to_persisted(service, context)
    result = upsert(as_records(out.get("services")), record)
    out["services"] = result.records
    out.setdefault("categories", [])
    _LOGGER.info("catalog_service_upserted", service_id=record["id"], outcome=result.outcome.value)
    return ServiceUpsert(catalog=out, outcome=result.outcome)  # type: ignore[arg-type]


def remove_service(catalog: Mapping[str, Any] | None, service_id: str) -> ServiceRemoval:
    out: dict[str, Any] = dict(catalog) if isinstance(catalog, Mapping) else {}
    result = remove_by_id(as_records(out.get("services")), service_id)
    out["services"] = result.records
    if result.removed:
        _LOGGER.info("catalog_service_removed", service_id=service_id)
    else:
        _LOGGER.info("catalog_service_remove_missed", service_id=service_id)
    return ServiceRemoval(catalog=out, removed=result.removed)  # type: ignore[arg-type]


def extract_from_business_plan(plan: Mapping[str, Any] | None) -> ServiceCatalogRecord:
    """Read the catalog stored under ``standardized.serviceCatalog`` of a business plan."""
    if not isinstance(plan, Mapping):
        return {"services": [], "categories": [], "businessPlanId": ""}
    plan_id = plan.get("id")
    standardized = plan.get(_STANDARDIZED_KEY)
    stored = standardized.get(_CATALOG_KEY) if isinstance(standardized, Mapping) else None
    stored = stored if isinstance(stored, Mapping) else {}
    return {
        "services": as_records(stored.get("services")),  # type: ignore[typeddict-item]
        "categories": as_records(stored.get("categories")),  # type: ignore[typeddict-item]
        "businessPlanId": plan_id if isinstance(plan_id, str) else "",
    }


def attach_to_business_plan(
    plan: Mapping[str, Any] | None,
    catalog: ServiceCatalogRecord,
) -> dict[str, Any]:
    """Return a copy of ``plan`` storing ``catalog`` under ``standardized.serviceCatalog``."""
    if not isinstance(plan, Mapping):
        return {}
    out = dict(plan)
    standardized = out.get(_STANDARDIZED_KEY)
    out[_STANDARDIZED_KEY] = {
        **(standardized if isinstance(standardized, Mapping) else {}),
        _CATALOG_KEY: catalog,
    }
    return out


__all__ = [
    "CATEGORY_SCHEMA",
    "DISCOUNT_THRESHOLD_SCHEMA",
    "PRICE_ON_REQUEST",
    "PRICE_RANGE_SCHEMA",
    "SERVICE_SCHEMA",
    "ServiceCatalogView",
    "ServiceRemoval",
    "ServiceUpsert",
    "attach_to_business_plan",
    "extract_from_business_plan",
    "format_amount",
    "format_price",
    "has_price_range",
    "list_item",
    "remove_service",
    "service_to_persisted",
    "service_to_view",
    "to_persisted",
    "to_view",
    "upsert_service",
]
