# Overview: Service-layer operations for the stock-mutation ledger.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..errors import AuthorizationError, ValidationError
from ..extensions import db
from ..models import Product, StockMutation, STOCK_MUTATION_TYPES


MAX_PAGE_SIZE = 100


def list_mutations(
    ctx,
    *,
    brand_id: int | None = None,
    mutation_type: str | None = None,
    product_id: int | None = None,
    product_name: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """
    One page of mutations for a single brand, newest first.

    An explicit brand_id must be in scope (403); otherwise the active brand
    is used, and without one the ledger is empty. total_in and total_out
    cover every row matching the filters, not just the current page.
    """
    page = max(1, page)
    page_size = min(max(1, page_size), MAX_PAGE_SIZE)

    if brand_id is not None:
        if not ctx.can_access(brand_id):
            raise AuthorizationError("Forbidden: brand scope")
    else:
        brand_id = ctx.active_brand_id
        if brand_id is None or not ctx.can_access(brand_id):
            return _page([], page, page_size, 0, 0, 0)

    if mutation_type:
        mutation_type = mutation_type.strip().upper()
        if mutation_type not in STOCK_MUTATION_TYPES:
            raise ValidationError(f"type must be one of {', '.join(STOCK_MUTATION_TYPES)}")

    query = db.session.query(StockMutation).filter(StockMutation.brand_profile_id == brand_id)
    if product_id is not None:
        query = query.filter(StockMutation.product_id == product_id)
    if product_name:
        query = query.join(Product, Product.id == StockMutation.product_id).filter(
            Product.name.ilike(f"%{product_name}%")
        )
    if date_from:
        query = query.filter(StockMutation.created_at >= date_from)
    if date_to:
        query = query.filter(StockMutation.created_at <= date_to)

    # Totals ignore the type filter
    totals = dict(
        query.with_entities(StockMutation.type, func.coalesce(func.sum(StockMutation.qty), 0))
        .group_by(StockMutation.type)
        .all()
    )

    if mutation_type:
        query = query.filter(StockMutation.type == mutation_type)
    count = query.count()
    items = (
        query.order_by(StockMutation.created_at.desc(), StockMutation.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return _page(items, page, page_size, count, int(totals.get("IN", 0)), int(totals.get("OUT", 0)))


def _page(items, page, page_size, count, total_in, total_out) -> dict:
    return {
        "items": [item.to_dict() for item in items],
        "page": page,
        "pageSize": page_size,
        "count": count,
        "totalIn": total_in,
        "totalOut": total_out,
    }
