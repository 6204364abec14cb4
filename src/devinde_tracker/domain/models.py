"""View record dataclasses with canonical dict/json serialization.

View records are what the UI consumes: every field carries a value (no
``None`` except where absence is meaningful, such as ``days_remaining`` or an
incident's ``amount_involved``) plus two bookkeeping fields, ``is_editing``
and ``validation_errors``. ``to_dict`` renders camelCase keys so the output
matches the persisted naming convention.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import NoReturn, cast

from devinde_tracker.constants import (
    COMPETITOR_SCORE_DEFAULT,
    DEFAULT_BILLING_FREQUENCY,
    DEFAULT_CURRENCY,
)
from devinde_tracker.domain.enums import (
    DocumentStatus,
    DocumentType,
    EvaluationLevel,
    IncidentType,
    ItemStatus,
    MilestoneCategory,
    PaymentMethod,
    PotentialLevel,
    PriorityLevel,
    PricingType,
    RiskLevel,
    ServiceType,
    SwotType,
)

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_SNAKE_SEGMENT = re.compile(r"_([a-z0-9])")


class CanonicalModel:
    """Mixin for canonical camelCase dict/json serialization."""

    def to_dict(self) -> dict[str, JSONValue]:
        serialized = _serialize_value(self, self.__class__.__name__)
        if not isinstance(serialized, dict):
            fail(self.__class__.__name__, "serialized model must be an object")
        return serialized

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def camel_case(name: str) -> str:
    """``tasks_total`` -> ``tasksTotal``."""
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), name)


def fail(path: str, message: str) -> NoReturn:
    """Raise the ``ValueError`` shape shared by model and facade validation."""
    raise ValueError(f"{path}: {message}")


def _serialize_value(value: object, path: str) -> JSONValue:
    if value is None or isinstance(value, bool):
        return cast("JSONValue", value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            fail(path, "float values must be finite")
        return value
    if isinstance(value, Enum):
        return cast("str", value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return [_serialize_value(item, f"{path}[]") for item in value]
    if isinstance(value, Mapping):
        out: dict[str, JSONValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                fail(path, "dict keys must be strings")
            out[key] = _serialize_value(item, f"{path}.{key}")
        return out
    if is_dataclass(value):
        out_obj: dict[str, JSONValue] = {}
        for dataclass_field in fields(value):
            out_obj[camel_case(dataclass_field.name)] = _serialize_value(
                getattr(value, dataclass_field.name),
                f"{path}.{dataclass_field.name}",
            )
        return out_obj

    fail(path, f"cannot serialize value of type {type(value).__name__}")


# ---------------------------------------------------------------------------
# Action plan
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Comment(CanonicalModel):
    id: str = ""
    author: str = ""
    content: str = ""
    timestamp: str = ""
    edited: bool = False
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Milestone(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    category: MilestoneCategory = MilestoneCategory.ALL
    status: ItemStatus = ItemStatus.PENDING
    progress: int = 0
    tasks_total: int = 0
    tasks_completed: int = 0
    days_remaining: int | None = None
    is_late: bool = False
    due_date: str = ""
    comments: list[Comment] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SubTask(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    priority: PriorityLevel = PriorityLevel.MEDIUM
    status: ItemStatus = ItemStatus.PENDING
    completed: bool = False
    comments: list[Comment] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    milestone_id: str = ""
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Task(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    priority: PriorityLevel = PriorityLevel.MEDIUM
    status: ItemStatus = ItemStatus.PENDING
    assignee: str = ""
    start_date: str = ""
    due_date: str = ""
    estimated_hours: float = 0
    actual_hours: float = 0
    subtasks: list[SubTask] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    is_blocking: bool = False
    milestone_id: str = ""
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Business model
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CanvasItem(CanonicalModel):
    id: str = ""
    name: str = ""
    description: str = ""
    priority: PriorityLevel = PriorityLevel.MEDIUM
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class HourlyRate(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    rate_per_hour: float = 0
    currency: str = DEFAULT_CURRENCY
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PricingPackage(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    price: float = 0
    currency: str = DEFAULT_CURRENCY
    features: list[str] = field(default_factory=list)
    popular: bool = False
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Subscription(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    monthly_price: float = 0
    currency: str = DEFAULT_CURRENCY
    billing_frequency: str = DEFAULT_BILLING_FREQUENCY
    features: list[str] = field(default_factory=list)
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CustomPricing(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    price_min: float = 0
    price_max: float = 0
    currency: str = DEFAULT_CURRENCY
    factors: list[str] = field(default_factory=list)
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Market analysis
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CustomerSegment(CanonicalModel):
    id: str = ""
    name: str = ""
    description: str = ""
    needs: list[str] = field(default_factory=list)
    potential_size: PotentialLevel = PotentialLevel.MEDIUM
    profitability: PotentialLevel = PotentialLevel.MEDIUM
    acquisition: str = ""
    ideal_client: str = ""
    pain_points: list[str] = field(default_factory=list)
    budget: str = ""
    decision_factor: str = ""
    growth_rate: str = ""
    key_insights: list[str] = field(default_factory=list)
    size: str = ""
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Competitor(CanonicalModel):
    id: str = ""
    name: str = ""
    website: str = ""
    description: str = ""
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    target_market: str = ""
    pricing_strategy: str = ""
    market_share: str = ""
    differentiators: list[str] = field(default_factory=list)
    product_quality: int = COMPETITOR_SCORE_DEFAULT
    customer_service: int = COMPETITOR_SCORE_DEFAULT
    pricing: int = COMPETITOR_SCORE_DEFAULT
    innovation: int = COMPETITOR_SCORE_DEFAULT
    reputation_score: int = COMPETITOR_SCORE_DEFAULT
    threat: EvaluationLevel = EvaluationLevel.MEDIUM
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)

    def scores(self) -> tuple[int, ...]:
        return (
            self.product_quality,
            self.customer_service,
            self.pricing,
            self.innovation,
            self.reputation_score,
        )


@dataclass(slots=True)
class Opportunity(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    potential: PotentialLevel = PotentialLevel.MEDIUM
    risk: EvaluationLevel = EvaluationLevel.MEDIUM
    estimated_investment: str = ""
    timeframe: str = ""
    expected_impact: str = ""
    recommended_actions: list[str] = field(default_factory=list)
    stakeholders: list[str] = field(default_factory=list)
    key_insights: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Trend(CanonicalModel):
    id: str = ""
    title: str = ""
    description: str = ""
    impact: EvaluationLevel = EvaluationLevel.MEDIUM
    timeframe: str = ""
    sources: list[str] = field(default_factory=list)
    indicators: list[str] = field(default_factory=list)
    sectors: list[str] = field(default_factory=list)
    related_opportunities: list[str] = field(default_factory=list)
    related_threats: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SwotItem(CanonicalModel):
    id: str
    content: str
    type: SwotType
    importance: int
    category: str
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Risk clients
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ContactInfo(CanonicalModel):
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(slots=True)
class Incident(CanonicalModel):
    id: str = ""
    client_id: str = ""
    business_plan_id: str = ""
    document_id: str = ""
    type: IncidentType = IncidentType.OTHER
    description: str = ""
    date: str = ""
    amount_involved: float | None = None
    resolved: bool = False
    resolution_date: str | None = None
    resolution_notes: str | None = None
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RiskClient(CanonicalModel):
    id: str = ""
    client_id: str = ""
    client_name: str = ""
    risk_level: RiskLevel = RiskLevel.NONE
    incidents: list[Incident] = field(default_factory=list)
    notes: str = ""
    added_on: str = ""
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    is_being_tracked: bool = False
    is_expanded: bool = False
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Invoicing
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ClientInfo(CanonicalModel):
    id: str | None = None
    name: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""
    vat_number: str = ""


@dataclass(slots=True)
class CompanyInfo(CanonicalModel):
    name: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    siret: str = ""
    vat_number: str = ""
    logo: str = ""


@dataclass(slots=True)
class InvoiceItem(CanonicalModel):
    """One document line; ``discount`` is a percentage, ``tax_rate`` a fraction."""

    id: str = ""
    description: str = ""
    quantity: float = 0
    unit_price: float = 0
    tax_rate: float = 0
    discount: float | None = None
    notes: str | None = None
    service_id: str | None = None
    line_total: float = 0
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Payment(CanonicalModel):
    id: str = ""
    document_id: str = ""
    date: str = ""
    amount: float = 0
    method: PaymentMethod = PaymentMethod.OTHER
    reference: str = ""
    notes: str = ""
    receipt_number: str = ""
    receipt_sent: bool = False
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class InvoiceDocument(CanonicalModel):
    """An invoice or a quote with its lines, payments and computed totals."""

    id: str = ""
    type: DocumentType = DocumentType.INVOICE
    status: DocumentStatus = DocumentStatus.DRAFT
    number: str = ""
    issue_date: str = ""
    due_date: str | None = None
    valid_until: str | None = None
    client_info: ClientInfo = field(default_factory=ClientInfo)
    company_info: CompanyInfo = field(default_factory=CompanyInfo)
    items: list[InvoiceItem] = field(default_factory=list)
    notes: str = ""
    payment_terms: str = ""
    business_plan_id: str = ""
    service_id: str | None = None
    payments: list[Payment] = field(default_factory=list)
    amount_paid: float = 0
    remaining_amount: float | None = None
    last_payment_date: str | None = None
    last_reminder_date: str | None = None
    reminder_count: int = 0
    client_risk_flag: bool = False
    subtotal: float = 0
    tax_amount: float = 0
    total: float = 0
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)
    is_expanded: bool = False
    is_previewing: bool = False


# ---------------------------------------------------------------------------
# Service catalog
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DiscountThreshold(CanonicalModel):
    hours: float = 0
    discount_percentage: float = 0


@dataclass(slots=True)
class PriceRange(CanonicalModel):
    minimum: float | None = None
    maximum: float | None = None


@dataclass(slots=True)
class CatalogService(CanonicalModel):
    """A billable service; ``pricing_type`` decides which price fields are persisted.

    ``price`` is the fixed price for ``FIXED`` services and the per-cycle
    price for ``RECURRING`` ones. A ``CUSTOM`` service quotes a range only
    when both ends of ``price_range`` are set.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    type: ServiceType = ServiceType.OTHER
    category: str = ""
    tags: list[str] = field(default_factory=list)
    is_active: bool = False
    pricing_type: PricingType = PricingType.CUSTOM
    hourly_rate: float = 0
    minimum_hours: float | None = None
    discount_thresholds: list[DiscountThreshold] = field(default_factory=list)
    price: float = 0
    estimated_hours: float | None = None
    deliverables: list[str] = field(default_factory=list)
    estimated_timeframe: str | None = None
    billing_cycle: str = DEFAULT_BILLING_FREQUENCY
    minimum_commitment: int | None = None
    included_items: list[str] = field(default_factory=list)
    price_range: PriceRange = field(default_factory=PriceRange)
    pricing_factors: list[str] = field(default_factory=list)
    requires_consultation: bool = False
    created_at: str = ""
    updated_at: str = ""
    is_editing: bool = False
    validation_errors: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ServiceCategory(CanonicalModel):
    id: str = ""
    name: str = ""
    description: str = ""
    order: int = 0


@dataclass(slots=True)
class ServiceListItem(CanonicalModel):
    id: str = ""
    name: str = ""
    type: ServiceType = ServiceType.OTHER
    category: str = ""
    pricing_type: PricingType = PricingType.CUSTOM
    price: str = ""
    is_active: bool = False


__all__ = [
    "CanonicalModel",
    "CanvasItem",
    "CatalogService",
    "ClientInfo",
    "Comment",
    "CompanyInfo",
    "Competitor",
    "ContactInfo",
    "CustomPricing",
    "CustomerSegment",
    "DiscountThreshold",
    "HourlyRate",
    "Incident",
    "InvoiceDocument",
    "InvoiceItem",
    "JSONValue",
    "Milestone",
    "Opportunity",
    "Payment",
    "PriceRange",
    "PricingPackage",
    "RiskClient",
    "ServiceCategory",
    "ServiceListItem",
    "SubTask",
    "Subscription",
    "SwotItem",
    "Task",
    "Trend",
    "camel_case",
    "fail",
]
