"""
Enum/code mapping between canonical enums and loosely-typed external codes.

Each enum family has one ``CodeMapper``:
- ``forward`` accepts every known synonym (case-insensitive, trimmed) and maps
  anything else to the family default.
- ``reverse`` is total and yields exactly one canonical code per member.

For every canonical code ``c``: ``reverse(forward(c)) == c``. Synonyms are
accepted on input but never produced on output.

Extra synonyms can be supplied from a YAML file shaped as
``{family: {synonym: canonical_code}}``; see ``load_synonym_overrides``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import StrEnum
from pathlib import Path
from typing import Any, Final, Generic, TypeVar

import yaml

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
)

E = TypeVar("E", bound=StrEnum)

_LOGGER = logging.getLogger(__name__)


def _fold(code: str) -> str:
    return code.strip().casefold()


@dataclass(frozen=True, slots=True)
class CodeMapper(Generic[E]):
    """Bidirectional mapping for one enum family."""

    family: str
    enum_type: type[E]
    default: E
    codes: Mapping[E, str]
    synonyms: Mapping[str, E] = field(default_factory=dict)
    _lookup: dict[str, E] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        missing = [member.value for member in self.enum_type if member not in self.codes]
        if missing:
            raise ValueError(f"{self.family}: reverse codes missing for {missing}")

        lookup: dict[str, E] = {}
        for synonym, member in self.synonyms.items():
            lookup[_fold(synonym)] = member
        for member in self.enum_type:
            lookup.setdefault(_fold(member.value), member)
        for member, code in self.codes.items():
            lookup[_fold(code)] = member
        object.__setattr__(self, "_lookup", lookup)

    def forward(self, raw: object) -> E:
        """Map an external code to its canonical member; unknown input yields the default."""
        if isinstance(raw, self.enum_type):
            return raw
        if isinstance(raw, str):
            member = self._lookup.get(_fold(raw))
            if member is not None:
                return member
        if raw is not None and raw != "":
            _LOGGER.debug(
                "unknown %s code %r; falling back to %s",
                self.family,
                raw,
                self.default.value,
            )
        return self.default

    def reverse(self, value: E) -> str:
        """Return the canonical external code for ``value``."""
        member = self.forward(value)
        return self.codes[member]

    def canonical_codes(self) -> tuple[str, ...]:
        return tuple(self.codes[member] for member in self.enum_type)

    def with_synonyms(self, extra: Mapping[str, str]) -> CodeMapper[E]:
        """Return a copy accepting ``extra`` synonyms (synonym -> canonical code or value)."""
        canonical = {_fold(code) for code in self.codes.values()}
        merged: dict[str, E] = dict(self.synonyms)
        for synonym in sorted(extra):
            target = extra[synonym]
            if not isinstance(synonym, str) or not synonym.strip():
                raise ValueError(f"{self.family}: synonym keys must be non-empty strings")
            if _fold(synonym) in canonical:
                raise ValueError(
                    f"{self.family}.{synonym}: canonical codes cannot be redefined"
                )
            member = self._lookup.get(_fold(target)) if isinstance(target, str) else None
            if member is None:
                expected = ", ".join(self.canonical_codes())
                raise ValueError(
                    f"{self.family}.{synonym}: unknown target {target!r}; expected one of: {expected}"
                )
            merged[synonym] = member
        return CodeMapper(
            family=self.family,
            enum_type=self.enum_type,
            default=self.default,
            codes=self.codes,
            synonyms=merged,
        )


STATUS_CODES: Final[CodeMapper[ItemStatus]] = CodeMapper(
    family="status",
    enum_type=ItemStatus,
    default=ItemStatus.PENDING,
    codes={
        ItemStatus.PENDING: "planned",
        ItemStatus.IN_PROGRESS: "in-progress",
        ItemStatus.COMPLETED: "done",
        ItemStatus.DELAYED: "delayed",
        ItemStatus.CANCELLED: "cancelled",
    },
    synonyms={
        "todo": ItemStatus.PENDING,
        "to-do": ItemStatus.PENDING,
        "pending": ItemStatus.PENDING,
        "in_progress": ItemStatus.IN_PROGRESS,
        "in progress": ItemStatus.IN_PROGRESS,
        "completed": ItemStatus.COMPLETED,
        "canceled": ItemStatus.CANCELLED,
    },
)

PRIORITY_CODES: Final[CodeMapper[PriorityLevel]] = CodeMapper(
    family="priority",
    enum_type=PriorityLevel,
    default=PriorityLevel.MEDIUM,
    codes={
        PriorityLevel.LOW: "low",
        PriorityLevel.MEDIUM: "medium",
        PriorityLevel.HIGH: "high",
        PriorityLevel.URGENT: "urgent",
    },
    synonyms={"normal": PriorityLevel.MEDIUM},
)

_LEVEL_SYNONYMS: Final[dict[str, str]] = {
    "low": "low",
    "faible": "low",
    "medium": "medium",
    "moyen": "medium",
    "high": "high",
    "eleve": "high",
    "very high": "very-high",
    "very_high": "very-high",
    "tres eleve": "very-high",
}

POTENTIAL_CODES: Final[CodeMapper[PotentialLevel]] = CodeMapper(
    family="potential",
    enum_type=PotentialLevel,
    default=PotentialLevel.MEDIUM,
    codes={
        PotentialLevel.LOW: "Faible",
        PotentialLevel.MEDIUM: "Moyen",
        PotentialLevel.HIGH: "Élevé",
        PotentialLevel.VERY_HIGH: "Très élevé",
    },
    synonyms={key: PotentialLevel(value) for key, value in _LEVEL_SYNONYMS.items()},
)

EVALUATION_CODES: Final[CodeMapper[EvaluationLevel]] = CodeMapper(
    family="evaluation",
    enum_type=EvaluationLevel,
    default=EvaluationLevel.MEDIUM,
    codes={
        EvaluationLevel.LOW: "Faible",
        EvaluationLevel.MEDIUM: "Moyen",
        EvaluationLevel.HIGH: "Élevé",
        EvaluationLevel.VERY_HIGH: "Très élevé",
    },
    synonyms={key: EvaluationLevel(value) for key, value in _LEVEL_SYNONYMS.items()},
)

RISK_LEVEL_CODES: Final[CodeMapper[RiskLevel]] = CodeMapper(
    family="risk_level",
    enum_type=RiskLevel,
    default=RiskLevel.NONE,
    codes={member: member.value for member in RiskLevel},
)

INCIDENT_TYPE_CODES: Final[CodeMapper[IncidentType]] = CodeMapper(
    family="incident_type",
    enum_type=IncidentType,
    default=IncidentType.OTHER,
    codes={member: member.value for member in IncidentType},
)

MILESTONE_CATEGORY_CODES: Final[CodeMapper[MilestoneCategory]] = CodeMapper(
    family="milestone_category",
    enum_type=MilestoneCategory,
    default=MilestoneCategory.ALL,
    codes={member: member.value for member in MilestoneCategory},
)

DOCUMENT_TYPE_CODES: Final[CodeMapper[DocumentType]] = CodeMapper(
    family="document_type",
    enum_type=DocumentType,
    default=DocumentType.INVOICE,
    codes={member: member.value for member in DocumentType},
    synonyms={"facture": DocumentType.INVOICE, "devis": DocumentType.QUOTE},
)

DOCUMENT_STATUS_CODES: Final[CodeMapper[DocumentStatus]] = CodeMapper(
    family="document_status",
    enum_type=DocumentStatus,
    default=DocumentStatus.DRAFT,
    codes={
        DocumentStatus.DRAFT: "draft",
        DocumentStatus.SENT: "sent",
        DocumentStatus.ACCEPTED: "accepted",
        DocumentStatus.PARTIALLY_PAID: "partial",
        DocumentStatus.PAID: "paid",
        DocumentStatus.REJECTED: "rejected",
        DocumentStatus.OVERDUE: "overdue",
        DocumentStatus.IN_DISPUTE: "dispute",
        DocumentStatus.IN_COLLECTION: "collection",
    },
    synonyms={
        "partially-paid": DocumentStatus.PARTIALLY_PAID,
        "partially paid": DocumentStatus.PARTIALLY_PAID,
        "in-dispute": DocumentStatus.IN_DISPUTE,
        "in-collection": DocumentStatus.IN_COLLECTION,
    },
)

PAYMENT_METHOD_CODES: Final[CodeMapper[PaymentMethod]] = CodeMapper(
    family="payment_method",
    enum_type=PaymentMethod,
    default=PaymentMethod.OTHER,
    codes={
        PaymentMethod.BANK_TRANSFER: "transfer",
        PaymentMethod.CREDIT_CARD: "card",
        PaymentMethod.CHECK: "check",
        PaymentMethod.CASH: "cash",
        PaymentMethod.PAYPAL: "paypal",
        PaymentMethod.OTHER: "other",
    },
    synonyms={
        "virement": PaymentMethod.BANK_TRANSFER,
        "carte": PaymentMethod.CREDIT_CARD,
        "cheque": PaymentMethod.CHECK,
        "especes": PaymentMethod.CASH,
    },
)

SERVICE_TYPE_CODES: Final[CodeMapper[ServiceType]] = CodeMapper(
    family="service_type",
    enum_type=ServiceType,
    default=ServiceType.OTHER,
    codes={member: member.value for member in ServiceType},
)

PRICING_TYPE_CODES: Final[CodeMapper[PricingType]] = CodeMapper(
    family="pricing_type",
    enum_type=PricingType,
    default=PricingType.CUSTOM,
    codes={member: member.value for member in PricingType},
    synonyms={"package": PricingType.FIXED, "subscription": PricingType.RECURRING},
)


@dataclass(frozen=True, slots=True)
class CodeRegistry:
    """The twelve code families, addressable by family name."""

    status: CodeMapper[ItemStatus] = STATUS_CODES
    priority: CodeMapper[PriorityLevel] = PRIORITY_CODES
    potential: CodeMapper[PotentialLevel] = POTENTIAL_CODES
    evaluation: CodeMapper[EvaluationLevel] = EVALUATION_CODES
    risk_level: CodeMapper[RiskLevel] = RISK_LEVEL_CODES
    incident_type: CodeMapper[IncidentType] = INCIDENT_TYPE_CODES
    milestone_category: CodeMapper[MilestoneCategory] = MILESTONE_CATEGORY_CODES
    document_type: CodeMapper[DocumentType] = DOCUMENT_TYPE_CODES
    document_status: CodeMapper[DocumentStatus] = DOCUMENT_STATUS_CODES
    payment_method: CodeMapper[PaymentMethod] = PAYMENT_METHOD_CODES
    service_type: CodeMapper[ServiceType] = SERVICE_TYPE_CODES
    pricing_type: CodeMapper[PricingType] = PRICING_TYPE_CODES

    @classmethod
    def families(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))

    def get(self, family: str) -> CodeMapper[Any]:
        if family not in self.families():
            raise ValueError(f"unknown code family {family!r}")
        mapper: CodeMapper[Any] = getattr(self, family)
        return mapper

    def with_overrides(self, overrides: Mapping[str, Mapping[str, str]]) -> CodeRegistry:
        """Return a registry whose families accept the extra synonyms in ``overrides``."""
        replaced: dict[str, CodeMapper[Any]] = {}
        for family in sorted(overrides):
            replaced[family] = self.get(family).with_synonyms(overrides[family])
        return CodeRegistry(**{name: replaced.get(name, self.get(name)) for name in self.families()})


DEFAULT_CODES: Final[CodeRegistry] = CodeRegistry()


def load_synonym_overrides(path: str | Path) -> dict[str, dict[str, str]]:
    """Read ``{family: {synonym: canonical_code}}`` from a YAML file."""
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise ValueError(f"{source.as_posix()}: unable to read synonyms file ({exc})") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"{source.as_posix()}: invalid YAML ({exc})") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"{source.as_posix()}: root must be a mapping of code families")

    known = set(CodeRegistry.families())
    overrides: dict[str, dict[str, str]] = {}
    for family, entries in payload.items():
        if family not in known:
            raise ValueError(f"{source.as_posix()}.{family}: unknown code family")
        if not isinstance(entries, Mapping):
            raise ValueError(f"{source.as_posix()}.{family}: expected a mapping of synonyms")
        overrides[family] = {str(key): str(value) for key, value in entries.items()}
    return overrides


def load_code_registry(path: str | Path | None) -> CodeRegistry:
    """Return the default registry extended with synonyms from ``path`` when given."""
    if path is None:
        return DEFAULT_CODES
    return DEFAULT_CODES.with_overrides(load_synonym_overrides(path))


# Forward/reverse pairs per family, bound to the default registry.


def status_from_code(raw: object) -> ItemStatus:
    return STATUS_CODES.forward(raw)


def status_to_code(value: ItemStatus) -> str:
    return STATUS_CODES.reverse(value)


def priority_from_code(raw: object) -> PriorityLevel:
    return PRIORITY_CODES.forward(raw)


def priority_to_code(value: PriorityLevel) -> str:
    return PRIORITY_CODES.reverse(value)


def potential_from_code(raw: object) -> PotentialLevel:
    return POTENTIAL_CODES.forward(raw)


def potential_to_code(value: PotentialLevel) -> str:
    return POTENTIAL_CODES.reverse(value)


def evaluation_from_code(raw: object) -> EvaluationLevel:
    return EVALUATION_CODES.forward(raw)


def evaluation_to_code(value: EvaluationLevel) -> str:
    return EVALUATION_CODES.reverse(value)


def risk_level_from_code(raw: object) -> RiskLevel:
    return RISK_LEVEL_CODES.forward(raw)


def risk_level_to_code(value: RiskLevel) -> str:
    return RISK_LEVEL_CODES.reverse(value)


def incident_type_from_code(raw: object) -> IncidentType:
    return INCIDENT_TYPE_CODES.forward(raw)


def incident_type_to_code(value: IncidentType) -> str:
    return INCIDENT_TYPE_CODES.reverse(value)


def milestone_category_from_code(raw: object) -> MilestoneCategory:
    return MILESTONE_CATEGORY_CODES.forward(raw)


def milestone_category_to_code(value: MilestoneCategory) -> str:
    return MILESTONE_CATEGORY_CODES.reverse(value)


def document_type_from_code(raw: object) -> DocumentType:
    return DOCUMENT_TYPE_CODES.forward(raw)


def document_type_to_code(value: DocumentType) -> str:
    return DOCUMENT_TYPE_CODES.reverse(value)


def document_status_from_code(raw: object) -> DocumentStatus:
    return DOCUMENT_STATUS_CODES.forward(raw)


def document_status_to_code(value: DocumentStatus) -> str:
    return DOCUMENT_STATUS_CODES.reverse(value)


def payment_method_from_code(raw: object) -> PaymentMethod:
    return PAYMENT_METHOD_CODES.forward(raw)


def payment_method_to_code(value: PaymentMethod) -> str:
    return PAYMENT_METHOD_CODES.reverse(value)


def service_type_from_code(raw: object) -> ServiceType:
    return SERVICE_TYPE_CODES.forward(raw)


def service_type_to_code(value: ServiceType) -> str:
    return SERVICE_TYPE_CODES.reverse(value)


def pricing_type_from_code(raw: object) -> PricingType:
    return PRICING_TYPE_CODES.forward(raw)


def pricing_type_to_code(value: PricingType) -> str:
    return PRICING_TYPE_CODES.reverse(value)


__all__ = [
    "DEFAULT_CODES",
    "DOCUMENT_STATUS_CODES",
    "DOCUMENT_TYPE_CODES",
    "EVALUATION_CODES",
    "INCIDENT_TYPE_CODES",
    "MILESTONE_CATEGORY_CODES",
    "PAYMENT_METHOD_CODES",
    "POTENTIAL_CODES",
    "PRICING_TYPE_CODES",
    "PRIORITY_CODES",
    "RISK_LEVEL_CODES",
    "SERVICE_TYPE_CODES",
    "STATUS_CODES",
    "CodeMapper",
    "CodeRegistry",
    "document_status_from_code",
    "document_status_to_code",
    "document_type_from_code",
    "document_type_to_code",
    "evaluation_from_code",
    "evaluation_to_code",
    "incident_type_from_code",
    "incident_type_to_code",
    "load_code_registry",
    "load_synonym_overrides",
    "milestone_category_from_code",
    "milestone_category_to_code",
    "payment_method_from_code",
    "payment_method_to_code",
    "potential_from_code",
    "potential_to_code",
    "pricing_type_from_code",
    "pricing_type_to_code",
    "priority_from_code",
    "priority_to_code",
    "risk_level_from_code",
    "risk_level_to_code",
    "service_type_from_code",
    "service_type_to_code",
    "status_from_code",
    "status_to_code",
]
