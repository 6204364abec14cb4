"""
Risk client section: tracked clients and the incidents recorded against them.

A normalized client is always ``is_being_tracked``; only the default record
built for missing input is not. Incident edits go through explicit
operations that report whether the targeted incident existed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

import structlog

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import default_record, normalize, normalize_many
from devinde_tracker.adapters.reconcile import as_records, patch_by_id, remove_by_id
from devinde_tracker.adapters.schema import (
    EntitySchema,
    FieldSpec,
    audit_fields,
    code,
    entities,
    entity,
    flag,
    optional_text,
    text,
    timestamp,
)
from devinde_tracker.adapters.serializer import serialize, serialize_many
from devinde_tracker.adapters.statistics import RiskStatistics, risk_statistics
from devinde_tracker.domain.enums import RiskLevel
from devinde_tracker.domain.ids import INCIDENT_ID_PREFIX, RISK_CLIENT_ID_PREFIX
from devinde_tracker.domain.models import (
    ContactInfo,
    Incident,
    RiskClient,
    fail,
)
from devinde_tracker.domain.records import RiskClientRecord

_LOGGER = structlog.get_logger(__name__)


def _derive_tracking(_raw: Mapping[str, object], values: dict[str, Any], _: AdapterContext) -> None:
    values["is_being_tracked"] = True


CONTACT_INFO_SCHEMA = EntitySchema(
    kind="contact_info",
    view_type=ContactInfo,
    fields=(
        text("email", "email"),
        text("phone", "phone"),
        text("address", "address"),
    ),
)

INCIDENT_SCHEMA = EntitySchema(
    kind="incident",
    view_type=Incident,
    id_prefix=INCIDENT_ID_PREFIX,
    fields=(
        text("client_id", "clientId"),
        text("business_plan_id", "businessPlanId"),
        text("document_id", "documentId"),
        code("type", "type", "incident_type"),
        text("description", "description"),
        timestamp("date", "date"),
        FieldSpec("amount_involved", ("amountInvolved",), "optional_number"),
        flag("resolved", "resolved"),
        optional_text("resolution_date", "resolutionDate"),
        optional_text("resolution_notes", "resolutionNotes"),
        *audit_fields(),
    ),
)

RISK_CLIENT_SCHEMA = EntitySchema(
    kind="risk_client",
    view_type=RiskClient,
    id_prefix=RISK_CLIENT_ID_PREFIX,
    derive=_derive_tracking,
    fields=(
        text("client_id", "clientId"),
        text("client_name", "clientName"),
        code("risk_level", "riskLevel", "risk_level"),
        entities("incidents", "incidents", INCIDENT_SCHEMA),
        text("notes", "notes"),
        timestamp("added_on", "addedOn"),
        entity("contact_info", "contactInfo", CONTACT_INFO_SCHEMA),
        flag("is_being_tracked", "isBeingTracked", write=()),
        flag("is_expanded", "isExpanded", write=()),
        *audit_fields(),
    ),
)

# View attribute -> persisted key for the incident fields a UI may patch.
_INCIDENT_PATCH_KEYS: Final[dict[str, str]] = {
    "description": "description",
    "amount_involved": "amountInvolved",
    "resolved": "resolved",
    "resolution_notes": "resolutionNotes",
    "resolution_date": "resolutionDate",
    "type": "type",
}
_CONTACT_KEYS: Final[tuple[str, ...]] = ("email", "phone", "address")


@dataclass(slots=True)
class RiskClientChanges:
    """UI edits to one client; ``None`` leaves the stored value alone.

    ``contact_info`` is merged key by key; ``incidents`` replaces the list.
    """

    client_name: str | None = None
    notes: str | None = None
    risk_level: RiskLevel | None = None
    contact_info: Mapping[str, str] | None = None
    incidents: list[Incident] | None = None


@dataclass(frozen=True, slots=True)
class IncidentUpdate:
    client: RiskClientRecord
    found: bool


@dataclass(frozen=True, slots=True)
class IncidentRemoval:
    client: RiskClientRecord
    removed: bool


def to_view(client: Mapping[str, Any] | None, context: AdapterContext) -> RiskClient:
    return normalize(RISK_CLIENT_SCHEMA, client, context)


def to_view_many(clients: object, context: AdapterContext) -> list[RiskClient]:
    return normalize_many(RISK_CLIENT_SCHEMA, clients, context)


def to_persisted(view: RiskClient, context: AdapterContext) -> RiskClientRecord:
    return serialize(RISK_CLIENT_SCHEMA, view, context)  # type: ignore[return-value]


def apply_changes(
    client: Mapping[str, Any] | None,
    changes: RiskClientChanges,
    context: AdapterContext,
) -> RiskClientRecord:
    """Return the stored client with ``changes`` applied and ``updatedAt`` restamped.

    Missing input starts from the persisted form of the default record.
    """
    if isinstance(client, Mapping):
        out: dict[str, Any] = dict(client)
    else:
        out = serialize(RISK_CLIENT_SCHEMA, default_record(RISK_CLIENT_SCHEMA, context), context)

    if changes.client_name is not None:
        out["clientName"] = changes.client_name
    if changes.notes is not None:
        out["notes"] = changes.notes
    if changes.risk_level is not None:
        out["riskLevel"] = context.codes.risk_level.reverse(changes.risk_level)
    if changes.contact_info is not None:
        stored = out.get("contactInfo")
        contact = dict(stored) if isinstance(stored, Mapping) else {}
        for key in _CONTACT_KEYS:
            if key in changes.contact_info:
                contact[key] = changes.contact_info[key]
        out["contactInfo"] = contact
    if changes.incidents is not None:
        out["incidents"] = serialize_many(INCIDENT_SCHEMA, changes.incidents, context)
    out["updatedAt"] = context.now_iso

    _LOGGER.info(
        "risk_client_changes_applied",
        client_id=out.get("id", ""),
        incidents_replaced=changes.incidents is not None,
    )
    return out  # type: ignore[return-value]


def update_incident(
    client: Mapping[str, Any] | None,
    incident_id: str,
    changes: Mapping[str, object],
    context: AdapterContext,
) -> IncidentUpdate:
    """Patch one incident; ``changes`` is keyed by view attribute name.

    The client's ``updatedAt`` is restamped even when the incident is missing.
    """
    unknown = sorted(set(changes) - set(_INCIDENT_PATCH_KEYS))
    if unknown:
        fail("incident", f"unsupported fields {unknown}; expected {sorted(_INCIDENT_PATCH_KEYS)}")

    out: dict[str, Any] = dict(client) if isinstance(client, Mapping) else {}
    patch: dict[str, object] = {"updatedAt": context.now_iso}
    for attr, value in changes.items():
        if attr == "type":
            value = context.codes.incident_type.reverse(context.codes.incident_type.forward(value))
        patch[_INCIDENT_PATCH_KEYS[attr]] = value

    result = patch_by_id(as_records(out.get("incidents")), incident_id, patch)
    out["incidents"] = result.records
    out["updatedAt"] = context.now_iso
    if result.found:
        _LOGGER.info(
            "risk_incident_updated",
            client_id=out.get("id", ""),
            incident_id=incident_id,
            fields=sorted(changes),
        )
    else:
        _LOGGER.info("risk_incident_update_missed", client_id=out.get("id", ""), incident_id=incident_id)
    return IncidentUpdate(client=out, found=result.found)  # type: ignore[arg-type]


def add_incident(
    client: Mapping[str, Any] | None,
    incident: Incident,
    context: AdapterContext,
) -> RiskClientRecord:
    out: dict[str, Any] = dict(client) if isinstance(client, Mapping) else {}
    out["incidents"] = [*as_records(out.get("incidents")), serialize(INCIDENT_SCHEMA, incident, context)]
    out["updatedAt"] = context.now_iso
    _LOGGER.info("risk_incident_added", client_id=out.get("id", ""), incident_id=incident.id)
    return out  # type: ignore[return-value]


def remove_incident(
    client: Mapping[str, Any] | None,
    incident_id: str,
    context: AdapterContext,
) -> IncidentRemoval:
    out: dict[str, Any] = dict(client) if isinstance(client, Mapping) else {}
    result = remove_by_id(as_records(out.get("incidents")), incident_id)
    out["incidents"] = result.records
    out["updatedAt"] = context.now_iso
    if not result.removed:
        _LOGGER.info("risk_incident_remove_missed", client_id=out.get("id", ""), incident_id=incident_id)
    return IncidentRemoval(client=out, removed=result.removed)  # type: ignore[arg-type]


def statistics(clients: Sequence[RiskClient]) -> RiskStatistics:
    return risk_statistics(clients)


__all__ = [
    "CONTACT_INFO_SCHEMA",
    "INCIDENT_SCHEMA",
    "RISK_CLIENT_SCHEMA",
    "IncidentRemoval",
    "IncidentUpdate",
    "RiskClientChanges",
    "add_incident",
    "apply_changes",
    "remove_incident",
    "statistics",
    "to_persisted",
    "to_view",
    "to_view_many",
    "update_incident",
]
