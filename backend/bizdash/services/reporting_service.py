# Overview: Service-layer operations for reporting; per-brand sales vs purchases and stock movement.

"""
Sales / purchases summary.

The brand list always goes through resolve_allowed_brand_ids() with the
requested ids, so a non-owner asking for a brand outside their scope just
gets it dropped. An empty resolved set returns an empty report.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import BrandProfile, PurchaseDirect, SalesOrder, StockMutation
from .brand_scope_service import resolve_allowed_brand_ids


def sales_purchases_summary(
    ctx,
    *,
    requested_brand_ids=None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[dict]:
    brand_ids = resolve_allowed_brand_ids(ctx.user_id, ctx.roles, requested_brand_ids)
    if not brand_ids:
        return []

    sales_q = db.session.query(
        SalesOrder.brand_profile_id,
        func.coalesce(func.sum(SalesOrder.total_amount_cents), 0),
        func.count(SalesOrder.id),
    ).filter(SalesOrder.brand_profile_id.in_(brand_ids))
    purchase_q = db.session.query(
        PurchaseDirect.brand_profile_id,
        func.coalesce(func.sum(PurchaseDirect.total_cents), 0),
        func.count(PurchaseDirect.id),
    ).filter(PurchaseDirect.brand_profile_id.in_(brand_ids))

    if date_from:
        sales_q = sales_q.filter(SalesOrder.date >= date_from)
        purchase_q = purchase_q.filter(PurchaseDirect.date >= date_from)
    if date_to:
        sales_q = sales_q.filter(SalesOrder.date <= date_to)
        purchase_q = purchase_q.filter(PurchaseDirect.date <= date_to)

    sales = {row[0]: (int(row[1]), int(row[2])) for row in sales_q.group_by(SalesOrder.brand_profile_id).all()}
    purchases = {
        row[0]: (int(row[1]), int(row[2]))
        for row in purchase_q.group_by(PurchaseDirect.brand_profile_id).all()
    }
    brands = {
        b.id: b for b in db.session.query(BrandProfile).filter(BrandProfile.id.in_(brand_ids)).all()
    }

    report = []
    for brand_id in brand_ids:
        brand = brands.get(brand_id)
        if brand is None:
            continue
        sales_total, sales_count = sales.get(brand_id, (0, 0))
        purchase_total, purchase_count = purchases.get(brand_id, (0, 0))
        report.append({
            "brand_profile_id": brand_id,
            "brand_slug": brand.slug,
            "brand_name": brand.name,
            "sales_total_cents": sales_total,
            "sales_count": sales_count,
            "purchases_total_cents": purchase_total,
            "purchases_count": purchase_count,
            "net_cents": sales_total - purchase_total,
        })
    return report


def stock_summary(
    ctx,
    *,
    requested_brand_ids=None,
    product_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[dict]:
    """IN/OUT/ADJUST quantity sums per brand; brands without movement are left out."""
    brand_ids = resolve_allowed_brand_ids(ctx.user_id, ctx.roles, requested_brand_ids)
    if not brand_ids:
        return []

    query = db.session.query(
        StockMutation.brand_profile_id,
        StockMutation.type,
        func.coalesce(func.sum(StockMutation.qty), 0),
    ).filter(StockMutation.brand_profile_id.in_(brand_ids))
    if product_id is not None:
        query = query.filter(StockMutation.product_id == product_id)
    if date_from:
        query = query.filter(StockMutation.created_at >= date_from)
    if date_to:
        query = query.filter(StockMutation.created_at <= date_to)

    rows: dict[int, dict] = {}
    for brand_id, mutation_type, total in query.group_by(StockMutation.brand_profile_id, StockMutation.type).all():
        row = rows.setdefault(brand_id, {"brand_profile_id": brand_id, "in": 0, "out": 0, "adjust": 0})
        if mutation_type == "IN":
            row["in"] += int(total)
        elif mutation_type == "OUT":
            row["out"] += int(total)
        else:
            row["adjust"] += int(total)
    return [rows[brand_id] for brand_id in brand_ids if brand_id in rows]
