"""
Invoicing section: invoices and quotes with their lines and payments.

Totals are never trusted from storage. ``to_view`` and ``to_persisted``
recompute line totals, the subtotal, the tax amount and the total from the
document lines; recording a payment recomputes the amount paid and moves the
status to paid or partially paid.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any

import structlog

from devinde_tracker.adapters.context import AdapterContext, format_date
from devinde_tracker.adapters.normalizer import default_record, normalize, normalize_many
from devinde_tracker.adapters.reconcile import as_records
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
)
from devinde_tracker.adapters.serializer import serialize, serialize_many
from devinde_tracker.adapters.statistics import document_totals, line_total
from devinde_tracker.constants import DEFAULT_PAYMENT_TERM_DAYS
from devinde_tracker.domain.enums import DocumentStatus
from devinde_tracker.domain.ids import DOCUMENT_ID_PREFIX, INVOICE_ITEM_ID_PREFIX, PAYMENT_ID_PREFIX
from devinde_tracker.domain.models import (
    ClientInfo,
    CompanyInfo,
    InvoiceDocument,
    InvoiceItem,
    Payment,
)
from devinde_tracker.domain.records import InvoiceDocumentRecord

_LOGGER = structlog.get_logger(__name__)


def _today(context: AdapterContext) -> str:
    return format_date(context.now)


CLIENT_INFO_SCHEMA = EntitySchema(
    kind="client_info",
    view_type=ClientInfo,
    fields=(
        optional_text("id", "id"),
        text("name", "name"),
        text("address", "address"),
        text("city", "city"),
        text("zip_code", "zipCode"),
        text("country", "country"),
        text("email", "email"),
        text("phone", "phone"),
        text("vat_number", "vatNumber"),
    ),
)

COMPANY_INFO_SCHEMA = EntitySchema(
    kind="company_info",
    view_type=CompanyInfo,
    fields=(
        text("name", "name"),
        text("address", "address"),
        text("city", "city"),
        text("zip_code", "zipCode"),
        text("country", "country"),
        text("email", "email"),
        text("phone", "phone"),
        text("website", "website"),
        text("siret", "siret"),
        text("vat_number", "vatNumber"),
        text("logo", "logo"),
    ),
)

INVOICE_ITEM_SCHEMA = EntitySchema(
    kind="invoice_item",
    view_type=InvoiceItem,
    id_prefix=INVOICE_ITEM_ID_PREFIX,
    fields=(
        text("description", "description"),
        number("quantity", "quantity"),
        number("unit_price", "unitPrice"),
        number("tax_rate", "taxRate"),
        FieldSpec("discount", ("discount",), "optional_number"),
        optional_text("notes", "notes"),
        optional_text("service_id", "serviceId"),
        FieldSpec("line_total", ("lineTotal",), "number", write_keys=()),
        # Lines carry no persisted audit stamps.
        FieldSpec("created_at", ("createdAt",), "timestamp", write_keys=()),
        FieldSpec("updated_at", ("updatedAt",), "timestamp", write_keys=()),
    ),
)

PAYMENT_SCHEMA = EntitySchema(
    kind="payment",
    view_type=Payment,
    id_prefix=PAYMENT_ID_PREFIX,
    fields=(
        text("document_id", "documentId"),
        FieldSpec("date", ("date",), "text", default_from=_today),
        number("amount", "amount"),
        code("method", "method", "payment_method"),
        text("reference", "reference"),
        text("notes", "notes"),
        text("receipt_number", "receiptNumber"),
        flag("receipt_sent", "receiptSent"),
        *audit_fields(),
    ),
)

DOCUMENT_SCHEMA = EntitySchema(
    kind="invoice_document",
    view_type=InvoiceDocument,
    id_prefix=DOCUMENT_ID_PREFIX,
    fields=(
        code("type", "type", "document_type"),
        code("status", "status", "document_status"),
        text("number", "number"),
        FieldSpec("issue_date", ("issueDate",), "text", default_from=_today),
        optional_text("due_date", "dueDate"),
        optional_text("valid_until", "validUntil"),
        entity("client_info", "clientInfo", CLIENT_INFO_SCHEMA),
        entity("company_info", "companyInfo", COMPANY_INFO_SCHEMA),
        entities("items", "items", INVOICE_ITEM_SCHEMA),
        text("notes", "notes"),
        text("payment_terms", "paymentTerms"),
        text("business_plan_id", "businessPlanId"),
        optional_text("service_id", "serviceId"),
        entities("payments", "payments", PAYMENT_SCHEMA),
        number("amount_paid", "amountPaid"),
        FieldSpec("remaining_amount", ("remainingAmount",), "optional_number"),
        optional_text("last_payment_date", "lastPaymentDate"),
        optional_text("last_reminder_date", "lastReminderDate"),
        integer("reminder_count", "reminderCount"),
        flag("client_risk_flag", "clientRiskFlag"),
        number("subtotal", "subtotal"),
        number("tax_amount", "taxAmount"),
        number("total", "total"),
        *audit_fields(),
        flag("is_expanded", "isExpanded", write=()),
        flag("is_previewing", "isPreviewing", write=()),
    ),
)


@dataclass(slots=True)
class DocumentChanges:
    """UI edits to one document; ``None`` leaves the stored value alone.

    ``client_info`` and ``company_info`` replace the stored blocks;
    ``items`` replaces the lines and recomputes the totals.
    """

    status: DocumentStatus | None = None
    notes: str | None = None
    due_date: str | None = None
    valid_until: str | None = None
    payment_terms: str | None = None
    client_risk_flag: bool | None = None
    client_info: ClientInfo | None = None
    company_info: CompanyInfo | None = None
    items: list[InvoiceItem] | None = None


def default_document(context: AdapterContext) -> InvoiceDocument:
    """Empty draft invoice, due ``DEFAULT_PAYMENT_TERM_DAYS`` after today."""
    view: InvoiceDocument = default_record(DOCUMENT_SCHEMA, context)
    due = format_date(context.now + timedelta(days=DEFAULT_PAYMENT_TERM_DAYS))
    return replace(view, due_date=due, is_expanded=True)


def with_totals(view: InvoiceDocument) -> InvoiceDocument:
    """Return ``view`` with line totals and document totals recomputed."""
    items = [replace(item, line_total=line_total(item)) for item in view.items]
    totals = document_totals(items)
    return replace(
        view,
        items=items,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
    )


def to_view(document: Mapping[str, Any] | None, context: AdapterContext) -> InvoiceDocument:
    if not isinstance(document, Mapping):
        return with_totals(default_document(context))
    return with_totals(normalize(DOCUMENT_SCHEMA, document, context))


def to_view_many(documents: object, context: AdapterContext) -> list[InvoiceDocument]:
    return [with_totals(view) for view in normalize_many(DOCUMENT_SCHEMA, documents, context)]


def to_persisted(view: InvoiceDocument, context: AdapterContext) -> InvoiceDocumentRecord:
    return serialize(DOCUMENT_SCHEMA, with_totals(view), context)  # type: ignore[return-value]


def apply_changes(
    document: Mapping[str, Any] | None,
    changes: DocumentChanges,
    context: AdapterContext,
) -> InvoiceDocumentRecord:
    """Return the stored document with ``changes`` applied and ``updatedAt`` restamped.

    Missing input starts from the persisted form of ``default_document``.
    """
    if isinstance(document, Mapping):
        out: dict[str, Any] = dict(document)
    else:
        out = serialize(DOCUMENT_SCHEMA, with_totals(default_document(context)), context)

    if changes.status is not None:
        out["status"] = context.codes.document_status.reverse(changes.status)
    if changes.notes is not None:
        out["notes"] = changes.notes
    if changes.due_date is not None:
        out["dueDate"] = changes.due_date
    if changes.valid_until is not None:
        out["validUntil"] = changes.valid_until
    if changes.payment_terms is not None:
        out["paymentTerms"] = changes.payment_terms
    if changes.client_risk_flag is not None:
        out["clientRiskFlag"] = changes.client_risk_flag
    if changes.client_info is not None:
        out["clientInfo"] = serialize(CLIENT_INFO_SCHEMA, changes.client_info, context)
    if changes.company_info is not None:
        out["companyInfo"] = serialize(COMPANY_INFO_SCHEMA, changes.company_info, context)
    if changes.items is not None:
        out["items"] = serialize_many(INVOICE_ITEM_SCHEMA, changes.items, context)
        totals = document_totals(changes.items)
        out["subtotal"] = totals.subtotal
        out["taxAmount"] = totals.tax_amount
        out["total"] = totals.total
    out["updatedAt"] = context.now_iso

    _LOGGER.info(
        "invoice_changes_applied",
        document_id=out.get("id", ""),
        items_replaced=changes.items is not None,
    )
    return out  # type: ignore[return-value]


def add_payment(
    document: Mapping[str, Any] | None,
    payment: Payment,
    context: AdapterContext,
) -> InvoiceDocumentRecord:
    """Append ``payment`` and settle the amounts and status it implies.

    ``amountPaid`` becomes the sum of every recorded payment and
    ``remainingAmount`` the stored total minus that sum. A document paid in
    full becomes ``PAID``; any other positive amount makes it
    ``PARTIALLY_PAID``.
    """
    if isinstance(document, Mapping):
        out: dict[str, Any] = dict(document)
    else:
        out = serialize(DOCUMENT_SCHEMA, with_totals(default_document(context)), context)

    if not payment.id:
        payment = replace(payment, id=context.new_id(PAYMENT_ID_PREFIX))
    if not payment.document_id and out.get("id"):
        payment = replace(payment, document_id=str(out["id"]))
    out["payments"] = [*as_records(out.get("payments")), serialize(PAYMENT_SCHEMA, payment, context)]

    view: InvoiceDocument = normalize(DOCUMENT_SCHEMA, out, context)
    paid = float(sum(item.amount for item in view.payments))
    out["amountPaid"] = paid
    out["remainingAmount"] = view.total - paid
    out["lastPaymentDate"] = context.now_iso
    if paid >= view.total:
        out["status"] = context.codes.document_status.reverse(DocumentStatus.PAID)
    elif paid > 0:
        out["status"] = context.codes.document_status.reverse(DocumentStatus.PARTIALLY_PAID)
    out["updatedAt"] = context.now_iso

    _LOGGER.info(
        "invoice_payment_added",
        document_id=out.get("id", ""),
        payment_id=payment.id,
        amount_paid=paid,
        status=out.get("status"),
    )
    return out  # type: ignore[return-value]


__all__ = [
    "CLIENT_INFO_SCHEMA",
    "COMPANY_INFO_SCHEMA",
    "DOCUMENT_SCHEMA",
    "INVOICE_ITEM_SCHEMA",
    "PAYMENT_SCHEMA",
    "DocumentChanges",
    "add_payment",
    "apply_changes",
    "default_document",
    "to_persisted",
    "to_view",
    "to_view_many",
    "with_totals",
]
