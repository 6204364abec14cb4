"""Canonical enum families used by view records."""

from __future__ import annotations

from enum import StrEnum


class ItemStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class PriorityLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MilestoneCategory(StrEnum):
    ALL = "all"
    MARKETING = "marketing"
    BUSINESS = "business"
    TECHNICAL = "technical"
    ADMINISTRATIVE = "administrative"
    CLIENT = "client"
    PERSONAL = "personal"


class PotentialLevel(StrEnum):
    """Size/profitability scale for segments and opportunities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class EvaluationLevel(StrEnum):
    """Threat/risk/impact scale for competitors, opportunities and trends."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class RiskLevel(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    BLACKLISTED = "blacklisted"


class IncidentType(StrEnum):
    PAYMENT_DELAY = "payment_delay"
    PARTIAL_PAYMENT = "partial_payment"
    NON_PAYMENT = "non_payment"
    DISPUTE = "dispute"
    COMMUNICATION = "communication"
    SCAM_ATTEMPT = "scam_attempt"
    LEGAL_ISSUE = "legal_issue"
    OTHER = "other"


class SwotType(StrEnum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    OPPORTUNITY = "opportunity"
    THREAT = "threat"


class DocumentType(StrEnum):
    INVOICE = "invoice"
    QUOTE = "quote"


class DocumentStatus(StrEnum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    REJECTED = "rejected"
    OVERDUE = "overdue"
    IN_DISPUTE = "in_dispute"
    IN_COLLECTION = "in_collection"


class PaymentMethod(StrEnum):
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    CHECK = "check"
    CASH = "cash"
    PAYPAL = "paypal"
    OTHER = "other"


class ServiceType(StrEnum):
    DEVELOPMENT = "development"
    DESIGN = "design"
    CONSULTING = "consulting"
    TRAINING = "training"
    MAINTENANCE = "maintenance"
    SUPPORT = "support"
    OTHER = "other"


class PricingType(StrEnum):
    """How a catalog service is billed; selects which price fields apply."""

    HOURLY = "hourly"
    FIXED = "fixed"
    RECURRING = "recurring"
    CUSTOM = "custom"


__all__ = [
    "DocumentStatus",
    "DocumentType",
    "EvaluationLevel",
    "IncidentType",
    "ItemStatus",
    "MilestoneCategory",
    "PaymentMethod",
    "PotentialLevel",
    "PriorityLevel",
    "PricingType",
    "RiskLevel",
    "ServiceType",
    "SwotType",
]
