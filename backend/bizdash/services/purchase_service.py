# Overview: Service-layer operations for direct purchases.

from __future__ import annotations

from sqlalchemy import update

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, PurchaseDirect, PurchaseDirectItem, StockMutation
from ..time_utils import utcnow
from ..validation import optional_datetime, optional_str, require_str
from . import activity_service, numbering_service
from .brand_scope_service import scope_to_brands
from .concurrency import run_with_unique_retry
from .numbering_service import DocumentKind
from .pricing_service import normalize_items


def list_purchases(ctx, *, brand_id: int | None = None, date_from=None, date_to=None) -> list[PurchaseDirect]:
    """An explicit brand_id must be in scope (403); otherwise the active brand is used."""
    if brand_id is not None:
        if not ctx.can_access(brand_id):
            raise AuthorizationError("Forbidden: brand scope")
    else:
        brand_id = ctx.active_brand_id
        if brand_id is None or not ctx.can_access(brand_id):
            return []

    query = db.session.query(PurchaseDirect).filter(PurchaseDirect.brand_profile_id == brand_id)
    if date_from:
        query = query.filter(PurchaseDirect.date >= date_from)
    if date_to:
        query = query.filter(PurchaseDirect.date <= date_to)
    return query.order_by(PurchaseDirect.date.desc(), PurchaseDirect.id.desc()).all()


def create_purchase(ctx, data: dict) -> PurchaseDirect:
    brand = ctx.require_active_brand_in_scope()
    supplier_name = require_str(data, "supplier_name")
    lines = normalize_items(data.get("items"), name_key="name")
    purchase_date = optional_datetime(data, "date") or utcnow()
    if any(line.discount_cents for line in lines):
        raise ValidationError("Direct purchases do not support line discounts")
    _check_products(lines)

    def _create() -> PurchaseDirect:
        number = numbering_service.claim_number(
            DocumentKind.PURCHASE_DIRECT, data.get("purchase_number"), purchase_date
        )
        purchase = PurchaseDirect(
            purchase_number=number,
            date=purchase_date,
            supplier_name=supplier_name,
            brand_profile_id=brand.id,
            notes=optional_str(data, "notes"),
            created_by_user_id=ctx.user_id,
            items=[
                PurchaseDirectItem(
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit=line.unit,
                    price_cents=line.price_cents,
                    subtotal_cents=line.gross_cents,
                )
                for line in lines
            ],
        )
        purchase.total_cents = sum(item.subtotal_cents for item in purchase.items)
        db.session.add(purchase)
        db.session.commit()
        return purchase

    purchase = run_with_unique_retry(_create)

    activity_service.record(
        user_id=ctx.user_id,
        action="PURCHASE_DIRECT_CREATE",
        entity="PurchaseDirect",
        entity_id=purchase.id,
        metadata={"number": purchase.purchase_number, "brandProfileId": brand.id},
    )
    return purchase


def _check_products(lines) -> None:
    ids = {line.product_id for line in lines if line.product_id is not None}
    if not ids:
        return
    found = {pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(ids)).all()}
    missing = sorted(ids - found)
    if missing:
        raise ValidationError(f"Unknown product_id: {', '.join(str(pid) for pid in missing)}")


def get_purchase(ctx, purchase_id: int) -> PurchaseDirect:
    query = scope_to_brands(
        db.session.query(PurchaseDirect), PurchaseDirect.brand_profile_id, ctx.allowed_brand_ids
    )
    purchase = query.filter(PurchaseDirect.id == purchase_id).first()
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


def receive_purchase(ctx, purchase_id: int) -> tuple[PurchaseDirect, bool]:
    """
    Mark a purchase Received and book its tracked items into stock.

    Returns (purchase, received_now). Receiving twice is a no-op: the status
    flip is a conditional UPDATE, so only one caller ever writes the IN
    mutations. Lines without a product, with zero quantity or pointing at an
    untracked product are skipped.
    """
    purchase = get_purchase(ctx, purchase_id)
    if purchase.status == "Received":
        return purchase, False

    now = utcnow()
    booked = 0
    try:
        result = db.session.execute(
            update(PurchaseDirect)
            .where(PurchaseDirect.id == purchase.id, PurchaseDirect.status != "Received")
            .values(status="Received", received_at=now, updated_at=now)
        )
        if result.rowcount == 0:
            db.session.rollback()
            return get_purchase(ctx, purchase_id), False

        for item in purchase.items:
            if item.product_id is None or item.quantity == 0:
                continue
            product = db.session.get(Product, item.product_id)
            if product is None or not product.track_stock:
                continue
            db.session.execute(
                update(Product)
                .where(Product.id == product.id)
                .values(qty=Product.qty + item.quantity, updated_at=now)
            )
            db.session.add(StockMutation(
                product_id=product.id,
                brand_profile_id=purchase.brand_profile_id,
                qty=item.quantity,
                type="IN",
                ref_table="purchasedirect",
                ref_id=purchase.id,
                note=f"Direct purchase {purchase.purchase_number}",
                created_by_user_id=ctx.user_id,
                created_at=now,
            ))
            booked += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    activity_service.record(
        user_id=ctx.user_id,
        action="PURCHASE_DIRECT_RECEIVE",
        entity="PurchaseDirect",
        entity_id=purchase.id,
        metadata={
            "number": purchase.purchase_number,
            "brandProfileId": purchase.brand_profile_id,
            "mutations": booked,
        },
    )
    return purchase, True
