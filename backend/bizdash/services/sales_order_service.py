# Overview: Sales orders, including Quotation -> SalesOrder conversion and re-sync.

"""
Quotation -> Sales Order conversion.

convert_quotation_to_sales_order() is idempotent per quotation:

- no order yet: the quotation becomes Confirmed and a Confirmed order is
  created with a copy of its items
- an order exists and the quotation has not been edited since the order was
  last written (quotation.updated_at <= order.updated_at): ConflictError,
  nothing is copied
- an order exists and the quotation is newer: the order's items are replaced
  with the quotation's current items in one transaction; the order keeps its
  id, number and date

The quotation status change and the new order share a single timestamp so
an immediate second conversion is always the "unchanged" case. Concurrent
conversions of the same quotation are last-writer-wins.
"""

from __future__ import annotations

from datetime import timedelta

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, SalesOrder, SalesOrderItem
from ..time_utils import utcnow
from ..validation import coerce_amount_cents, optional_datetime, optional_str, require_int
from . import activity_service, numbering_service
from .brand_scope_service import scope_to_brands
from .concurrency import run_with_unique_retry
from .numbering_service import DocumentKind
from .pricing_service import compute_totals, normalize_items
from .quotation_service import get_quotation


def scoped_query(ctx):
    return scope_to_brands(db.session.query(SalesOrder), SalesOrder.brand_profile_id, ctx.allowed_brand_ids)


def get_sales_order(ctx, sales_order_id: int) -> SalesOrder:
    order = scoped_query(ctx).filter(SalesOrder.id == sales_order_id).first()
    if not order:
        raise NotFoundError("Sales order not found")
    return order


def list_sales_orders(ctx, *, statuses=None, range_days: int | None = None) -> list[SalesOrder]:
    brand_id = ctx.active_brand_id
    if brand_id is None or not ctx.can_access(brand_id):
        return []
    query = db.session.query(SalesOrder).filter(SalesOrder.brand_profile_id == brand_id)
    if statuses:
        query = query.filter(SalesOrder.status.in_(list(statuses)))
    if range_days:
        query = query.filter(SalesOrder.date >= utcnow() - timedelta(days=range_days))
    return query.order_by(SalesOrder.date.desc(), SalesOrder.id.desc()).all()


def _items_from_quotation(quotation) -> list[SalesOrderItem]:
    return [
        SalesOrderItem(
            product=item.product,
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            price_cents=item.price_cents,
            discount_cents=0,
            subtotal_cents=item.quantity * item.price_cents,
            image_url=item.image_url,
        )
        for item in quotation.items
    ]


def _apply_plain_totals(order: SalesOrder) -> None:
    total = sum(item.subtotal_cents for item in order.items)
    order.subtotal_cents = total
    order.line_discount_cents = 0
    order.extra_discount_cents = 0
    order.tax_mode = "none"
    order.tax_amount_cents = 0
    order.total_amount_cents = total


def convert_quotation_to_sales_order(ctx, quotation_id: int) -> tuple[SalesOrder, bool]:
    """Returns (order, created)."""
    quotation = get_quotation(ctx, quotation_id)
    existing = (
        db.session.query(SalesOrder)
        .filter(SalesOrder.quotation_id == quotation.id)
        .order_by(SalesOrder.id.asc())
        .first()
    )

    if existing is None:
        return _create_from_quotation(ctx, quotation), True

    if quotation.updated_at <= existing.updated_at:
        raise ConflictError("Sales order is up to date with the quotation; nothing was re-copied")

    before = {"total_amount_cents": existing.total_amount_cents, "items": len(existing.items)}
    try:
        existing.items = _items_from_quotation(quotation)
        existing.customer_id = quotation.customer_id
        existing.brand_profile_id = (
            existing.brand_profile_id or quotation.brand_profile_id or ctx.active_brand_id
        )
        _apply_plain_totals(existing)
        existing.updated_at = utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    activity_service.record(
        user_id=ctx.user_id,
        action="SALES_ORDER_RESYNC",
        entity="SalesOrder",
        entity_id=existing.id,
        metadata={
            "quotationId": quotation.id,
            "before": before,
            "after": {"total_amount_cents": existing.total_amount_cents, "items": len(existing.items)},
        },
    )
    return existing, False


def _create_from_quotation(ctx, quotation) -> SalesOrder:
    quotation_id = quotation.id

    def _create() -> SalesOrder:
        number = numbering_service.allocate_number(DocumentKind.SALES_ORDER)
        q = get_quotation(ctx, quotation_id)
        now = utcnow()
        if q.status != "Confirmed":
            q.status = "Confirmed"
            q.updated_at = now
        order = SalesOrder(
            order_number=number,
            date=now,
            status="Confirmed",
            customer_id=q.customer_id,
            quotation_id=q.id,
            brand_profile_id=q.brand_profile_id or ctx.active_brand_id,
            created_by_user_id=ctx.user_id,
            created_at=now,
            updated_at=max(now, q.updated_at),
            items=_items_from_quotation(q),
        )
        _apply_plain_totals(order)
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_unique_retry(_create)

    activity_service.record(
        user_id=ctx.user_id,
        action="SALES_ORDER_FROM_QUOTATION",
        entity="SalesOrder",
        entity_id=order.id,
        metadata={"quotationId": quotation_id, "number": order.order_number},
    )
    return order


def create_sales_order(ctx, data: dict) -> SalesOrder:
    """Manual sales order for the active brand."""
    brand = ctx.require_active_brand_in_scope()
    customer_id = require_int(data, "customer_id")
    if not db.session.get(Customer, customer_id):
        raise NotFoundError("Customer not found")
    lines = normalize_items(data.get("items"), name_key="product")
    totals = compute_totals(
        lines,
        extra_discount_cents=coerce_amount_cents(data.get("extra_discount_cents"), "extra_discount_cents"),
        tax_mode=data.get("tax_mode") or "none",
    )
    status = data.get("status") or "Draft"
    if status not in ("Draft", "Confirmed"):
        raise ValidationError("status must be Draft or Confirmed")
    order_date = optional_datetime(data, "date") or utcnow()
    notes = optional_str(data, "notes")

    def _create() -> SalesOrder:
        requested = data.get("order_number")
        if requested and not numbering_service.number_taken(DocumentKind.SALES_ORDER, requested):
            number = requested
        else:
            number = numbering_service.allocate_number(DocumentKind.SALES_ORDER, order_date)
        order = SalesOrder(
            order_number=number,
            date=order_date,
            status=status,
            customer_id=customer_id,
            brand_profile_id=brand.id,
            notes=notes,
            subtotal_cents=totals.subtotal_cents,
            line_discount_cents=totals.line_discount_cents,
            extra_discount_cents=totals.extra_discount_cents,
            tax_mode=totals.tax_mode,
            tax_amount_cents=totals.tax_amount_cents,
            total_amount_cents=totals.total_amount_cents,
            created_by_user_id=ctx.user_id,
            items=[
                SalesOrderItem(
                    product=line.name,
                    description=line.description,
                    quantity=line.quantity,
                    unit=line.unit,
                    price_cents=line.price_cents,
                    discount_cents=line.discount_cents,
                    subtotal_cents=line.subtotal_cents,
                    image_url=line.image_url,
                )
                for line in lines
            ],
        )
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_unique_retry(_create)

    activity_service.record(
        user_id=ctx.user_id,
        action="SALES_ORDER_CREATE",
        entity="SalesOrder",
        entity_id=order.id,
        metadata={"number": order.order_number, "brandProfileId": brand.id},
    )
    return order
