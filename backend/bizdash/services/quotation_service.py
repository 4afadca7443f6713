# Overview: Service-layer operations for quotations; encapsulates business logic and database work.

"""
Quotations.

LIFECYCLE: Draft -> Sent (send_quotation) -> Confirmed. Confirmed is only
ever set by the conversion pipeline (sales_order_service); clients cannot
request it here.

MULTI-BRAND: reads are scoped to ctx.allowed_brand_ids (out-of-scope rows
are reported as not found); new quotations go to the active brand, which
must itself be in scope.
"""

from __future__ import annotations

from datetime import timedelta

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Quotation, QuotationItem
from ..permissions import ROLE_ADMIN
from ..time_utils import utcnow
from ..validation import optional_datetime, optional_str, require_int
from . import activity_service, notification_service, numbering_service
from .brand_scope_service import scope_to_brands
from .concurrency import run_with_unique_retry
from .numbering_service import DocumentKind
from .pricing_service import normalize_items


EDITABLE_STATUSES = ("Draft", "Sent")


def scoped_query(ctx):
    return scope_to_brands(db.session.query(Quotation), Quotation.brand_profile_id, ctx.allowed_brand_ids)


def get_quotation(ctx, quotation_id: int) -> Quotation:
    quotation = scoped_query(ctx).filter(Quotation.id == quotation_id).first()
    if not quotation:
        raise NotFoundError("Quotation not found")
    return quotation


def list_quotations(ctx, *, statuses=None, range_days: int | None = None) -> list[Quotation]:
    """Quotations of the active brand, newest first."""
    brand_id = ctx.active_brand_id
    if brand_id is None or not ctx.can_access(brand_id):
        return []
    query = db.session.query(Quotation).filter(Quotation.brand_profile_id == brand_id)
    if statuses:
        query = query.filter(Quotation.status.in_(list(statuses)))
    if range_days:
        query = query.filter(Quotation.date >= utcnow() - timedelta(days=range_days))
    return query.order_by(Quotation.date.desc(), Quotation.id.desc()).all()


def _require_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def _build_items(lines) -> list[QuotationItem]:
    return [
        QuotationItem(
            product=line.name,
            description=line.description,
            quantity=line.quantity,
            unit=line.unit,
            price_cents=line.price_cents,
            subtotal_cents=line.gross_cents,
            image_url=line.image_url,
        )
        for line in lines
    ]


def _status_from_payload(data: dict, default: str = "Draft") -> str:
    status = data.get("status") or default
    if status not in EDITABLE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(EDITABLE_STATUSES)}")
    return status


def create_quotation(ctx, data: dict) -> Quotation:
    brand = ctx.require_active_brand_in_scope()
    customer = _require_customer(require_int(data, "customer_id"))
    lines = normalize_items(data.get("items"), name_key="product")
    status = _status_from_payload(data)
    quote_date = optional_datetime(data, "date") or utcnow()
    valid_until = optional_datetime(data, "valid_until")
    project_desc = optional_str(data, "project_desc")
    notes = optional_str(data, "notes")

    def _create() -> Quotation:
        number = numbering_service.claim_number(
            DocumentKind.QUOTATION, data.get("quotation_number"), quote_date
        )
        quotation = Quotation(
            quotation_number=number,
            date=quote_date,
            valid_until=valid_until,
            status=status,
            customer_id=customer.id,
            brand_profile_id=brand.id,
            project_desc=project_desc,
            notes=notes,
            created_by_user_id=ctx.user_id,
            items=_build_items(lines),
        )
        quotation.total_amount_cents = sum(item.subtotal_cents for item in quotation.items)
        db.session.add(quotation)
        db.session.commit()
        return quotation

    quotation = run_with_unique_retry(_create)

    activity_service.record(
        user_id=ctx.user_id,
        action="QUOTATION_CREATE",
        entity="Quotation",
        entity_id=quotation.id,
        metadata={"number": quotation.quotation_number, "brandProfileId": brand.id},
    )
    notification_service.notify_role(
        ROLE_ADMIN,
        "New quotation",
        f"Quotation {quotation.quotation_number} was created for {customer.name}.",
        "info",
        brand_profile_id=brand.id,
    )
    return quotation


def update_quotation(ctx, quotation_id: int, data: dict) -> Quotation:
    """Edits always advance updated_at, which is what re-conversion keys on."""
    quotation = get_quotation(ctx, quotation_id)
    before = quotation.to_dict()

    if "status" in data:
        if quotation.status == "Confirmed" and data["status"] != "Confirmed":
            raise ConflictError("A confirmed quotation cannot change status")
        if quotation.status != "Confirmed":
            quotation.status = _status_from_payload(data)
    if "customer_id" in data:
        quotation.customer_id = _require_customer(require_int(data, "customer_id")).id
    if "items" in data:
        quotation.items = _build_items(normalize_items(data.get("items"), name_key="product"))
        quotation.total_amount_cents = sum(item.subtotal_cents for item in quotation.items)
    if "date" in data:
        quotation.date = optional_datetime(data, "date") or quotation.date
    if "valid_until" in data:
        quotation.valid_until = optional_datetime(data, "valid_until")
    if "project_desc" in data:
        quotation.project_desc = optional_str(data, "project_desc")
    if "notes" in data:
        quotation.notes = optional_str(data, "notes")

    quotation.updated_at = utcnow()
    db.session.commit()

    activity_service.record(
        user_id=ctx.user_id,
        action="QUOTATION_UPDATE",
        entity="Quotation",
        entity_id=quotation.id,
        metadata={"before": before, "after": quotation.to_dict()},
    )
    return quotation


def send_quotation(ctx, quotation_id: int) -> Quotation:
    quotation = get_quotation(ctx, quotation_id)
    if quotation.status == "Confirmed":
        raise ConflictError("Quotation is already confirmed")
    quotation.status = "Sent"
    quotation.updated_at = utcnow()
    db.session.commit()

    activity_service.record(
        user_id=ctx.user_id,
        action="QUOTATION_SEND",
        entity="Quotation",
        entity_id=quotation.id,
        metadata={"number": quotation.quotation_number},
    )
    return quotation
