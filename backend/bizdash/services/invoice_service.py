# Overview: Service-layer operations for invoices; creation, status, soft delete and purge.

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, INVOICE_STATUSES, Invoice, InvoiceItem
from ..time_utils import utcnow
from ..validation import coerce_amount_cents, optional_datetime, optional_str, require_int
from . import activity_service, numbering_service
from .brand_scope_service import scope_to_brands
from .concurrency import run_with_unique_retry
from .numbering_service import DocumentKind
from .pricing_service import compute_totals, normalize_items
from .sales_order_service import get_sales_order


def scoped_query(ctx):
    query = scope_to_brands(db.session.query(Invoice), Invoice.brand_profile_id, ctx.allowed_brand_ids)
    return query.filter(Invoice.deleted_at.is_(None))


def get_invoice(ctx, invoice_id: int) -> Invoice:
    invoice = scoped_query(ctx).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def list_invoices(ctx, *, statuses=None, range_days: int | None = None) -> list[Invoice]:
    brand_id = ctx.active_brand_id
    if brand_id is None or not ctx.can_access(brand_id):
        return []
    query = db.session.query(Invoice).filter(
        Invoice.brand_profile_id == brand_id, Invoice.deleted_at.is_(None)
    )
    if statuses:
        query = query.filter(Invoice.status.in_(list(statuses)))
    if range_days:
        query = query.filter(Invoice.issue_date >= utcnow() - timedelta(days=range_days))
    return query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).all()


def _status_for_total(requested: str | None, total_cents: int) -> str:
    if total_cents <= 0:
        return "Paid"
    status = requested or "Draft"
    if status not in INVOICE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
    return status


def _persist_invoice(ctx, *, issue_date, build) -> Invoice:
    def _create() -> Invoice:
        number = numbering_service.allocate_number(DocumentKind.INVOICE, issue_date)
        invoice = build(number)
        db.session.add(invoice)
        db.session.commit()
        return invoice

    invoice = run_with_unique_retry(_create)
    activity_service.record(
        user_id=ctx.user_id,
        action="INVOICE_CREATE",
        entity="Invoice",
        entity_id=invoice.id,
        metadata={
            "number": invoice.invoice_number,
            "salesOrderId": invoice.sales_order_id,
            "brandProfileId": invoice.brand_profile_id,
        },
    )
    return invoice


def create_invoice(ctx, data: dict) -> Invoice:
    """Direct invoice for the active brand."""
    brand = ctx.require_active_brand_in_scope()
    customer_id = require_int(data, "customer_id")
    if not db.session.get(Customer, customer_id):
        raise NotFoundError("Customer not found")
    lines = normalize_items(data.get("items"), name_key="name")
    totals = compute_totals(
        lines,
        extra_discount_cents=coerce_amount_cents(data.get("extra_discount_cents"), "extra_discount_cents"),
        tax_mode=data.get("tax_mode") or "none",
        shipping_cents=coerce_amount_cents(data.get("shipping_cents"), "shipping_cents"),
        down_payment_cents=coerce_amount_cents(data.get("down_payment_cents"), "down_payment_cents"),
    )
    status = _status_for_total(data.get("status"), totals.total_amount_cents)
    issue_date = optional_datetime(data, "issue_date") or utcnow()
    due_date = optional_datetime(data, "due_date")

    def _build(number: str) -> Invoice:
        return Invoice(
            invoice_number=number,
            issue_date=issue_date,
            due_date=due_date,
            status=status,
            customer_id=customer_id,
            brand_profile_id=brand.id,
            notes=optional_str(data, "notes"),
            terms=optional_str(data, "terms"),
            subtotal_cents=totals.subtotal_cents,
            line_discount_cents=totals.line_discount_cents,
            extra_discount_cents=totals.extra_discount_cents,
            shipping_cents=totals.shipping_cents,
            tax_mode=totals.tax_mode,
            tax_amount_cents=totals.tax_amount_cents,
            down_payment_cents=totals.down_payment_cents,
            total_amount_cents=totals.total_amount_cents,
            created_by_user_id=ctx.user_id,
            items=[
                InvoiceItem(
                    name=line.name,
                    description=line.description,
                    quantity=line.quantity,
                    unit=line.unit,
                    price_cents=line.price_cents,
                    discount_cents=line.discount_cents,
                    subtotal_cents=line.subtotal_cents,
                )
                for line in lines
            ],
        )

    return _persist_invoice(ctx, issue_date=issue_date, build=_build)


def create_invoice_from_sales_order(ctx, sales_order_id: int, data: dict | None = None) -> Invoice:
    """Copy a scoped sales order into a new invoice (amounts and items as-is)."""
    data = data or {}
    order = get_sales_order(ctx, sales_order_id)
    issue_date = optional_datetime(data, "issue_date") or utcnow()
    due_date = optional_datetime(data, "due_date")
    brand_id = order.brand_profile_id or ctx.active_brand_id
    status = _status_for_total(data.get("status"), order.total_amount_cents)

    def _build(number: str) -> Invoice:
        return Invoice(
            invoice_number=number,
            issue_date=issue_date,
            due_date=due_date,
            status=status,
            customer_id=order.customer_id,
            quotation_id=order.quotation_id,
            sales_order_id=order.id,
            brand_profile_id=brand_id,
            notes=order.notes,
            subtotal_cents=order.subtotal_cents,
            line_discount_cents=order.line_discount_cents,
            extra_discount_cents=order.extra_discount_cents,
            tax_mode=order.tax_mode,
            tax_amount_cents=order.tax_amount_cents,
            total_amount_cents=order.total_amount_cents,
            created_by_user_id=ctx.user_id,
            items=[
                InvoiceItem(
                    name=item.product,
                    description=item.description,
                    quantity=item.quantity,
                    unit=item.unit,
                    price_cents=item.price_cents,
                    discount_cents=item.discount_cents,
                    subtotal_cents=item.subtotal_cents,
                )
                for item in order.items
            ],
        )

    return _persist_invoice(ctx, issue_date=issue_date, build=_build)


def update_invoice_status(ctx, invoice_id: int, status: str | None) -> Invoice:
    invoice = get_invoice(ctx, invoice_id)
    if status not in INVOICE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
    before = invoice.status
    invoice.status = status
    db.session.commit()

    activity_service.record(
        user_id=ctx.user_id,
        action="INVOICE_STATUS_UPDATE",
        entity="Invoice",
        entity_id=invoice.id,
        metadata={"before": {"status": before}, "after": {"status": status}},
    )
    return invoice


def soft_delete_invoice(ctx, invoice_id: int) -> Invoice:
    invoice = get_invoice(ctx, invoice_id)
    invoice.deleted_at = utcnow()
    db.session.commit()

    activity_service.record(
        user_id=ctx.user_id,
        action="INVOICE_SOFT_DELETE",
        entity="Invoice",
        entity_id=invoice.id,
        metadata={"number": invoice.invoice_number},
    )
    return invoice


def purge_soft_deleted(ctx, days: int | None = None) -> dict:
    """
    Hard-delete the active brand's invoices soft-deleted more than `days` ago.

    400 without an active brand, 403 when it is outside the caller's scope.
    """
    brand = ctx.require_active_brand_in_scope()
    if days is None or days <= 0:
        days = current_app.config.get("INVOICE_PURGE_RETENTION_DAYS", 30)
    cutoff = utcnow() - timedelta(days=days)

    deleted = hard_delete_soft_deleted(cutoff, brand_id=brand.id)

    activity_service.record(
        user_id=ctx.user_id,
        action="INVOICE_PURGE_SOFT_DELETE",
        entity="Invoice",
        metadata={"brandProfileId": brand.id, "days": days, "deleted": deleted},
    )
    return {"deleted": deleted, "days": days, "brand_profile_id": brand.id}


def hard_delete_soft_deleted(cutoff, *, brand_id: int | None = None) -> int:
    """Delete invoices soft-deleted before `cutoff` (optionally one brand only) and commit."""
    query = db.session.query(Invoice.id).filter(Invoice.deleted_at.isnot(None), Invoice.deleted_at < cutoff)
    if brand_id is not None:
        query = query.filter(Invoice.brand_profile_id == brand_id)
    ids = [row[0] for row in query.all()]
    if ids:
        db.session.query(InvoiceItem).filter(InvoiceItem.invoice_id.in_(ids)).delete(synchronize_session=False)
        db.session.query(Invoice).filter(Invoice.id.in_(ids)).delete(synchronize_session=False)
    db.session.commit()
    return len(ids)
