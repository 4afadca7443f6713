# Overview: Document numbering (QUO/SO/INV/PL); previews and atomic allocation.

"""
Document numbering.

Formats:
    QUO-yyyy-nnnn   quotations, yearly
    INV-yyyy-nnnn   invoices, yearly
    PL-yyyymm-nnnn  direct purchases, monthly (by the purchase `date`)
    SO-yyyy-nnnn    sales orders, random 4 digits probed for collisions

next_number() is a read-only preview for forms. allocate_number() hands out
a number for an actual insert: it bumps a DocumentSequence row with a single
UPDATE ... SET last_value = last_value + 1, seeding a new (kind, period) row
from the count of existing documents so numbering continues where legacy
data left off. Allocation commits on its own (numbers are never reused,
gaps are allowed), so it must run before the caller stages other changes.

Every number column carries a unique constraint; creators wrap their
insert in run_with_unique_retry() to absorb the remaining races.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import NumberingError, ValidationError
from ..extensions import db
from ..models import DocumentSequence, Invoice, PurchaseDirect, Quotation, SalesOrder
from ..time_utils import month_bounds, utcnow
from .concurrency import run_with_retry


class DocumentKind(str, Enum):
    QUOTATION = "QUOTATION"
    SALES_ORDER = "SALES_ORDER"
    INVOICE = "INVOICE"
    PURCHASE_DIRECT = "PURCHASE_DIRECT"


@dataclass(frozen=True)
class NumberingRule:
    prefix: str
    monthly: bool
    model: type
    number_column: str
    date_column: str | None = None


RULES = {
    DocumentKind.QUOTATION: NumberingRule("QUO", False, Quotation, "quotation_number"),
    DocumentKind.SALES_ORDER: NumberingRule("SO", False, SalesOrder, "order_number"),
    DocumentKind.INVOICE: NumberingRule("INV", False, Invoice, "invoice_number"),
    DocumentKind.PURCHASE_DIRECT: NumberingRule("PL", True, PurchaseDirect, "purchase_number", "date"),
}

SEQUENCE_PAD = 4


def _coerce_kind(kind) -> DocumentKind:
    try:
        return DocumentKind(kind)
    except ValueError:
        raise ValidationError(f"Unknown document kind: {kind}")


def _coerce_period(kind: DocumentKind, period) -> date | datetime:
    """None -> now; an int is a year (yearly kinds only)."""
    if period is None:
        return utcnow()
    if isinstance(period, (date, datetime)):
        return period
    if isinstance(period, int) and not isinstance(period, bool):
        if RULES[kind].monthly:
            raise ValidationError("A full date is required for monthly numbering")
        return date(period, 1, 1)
    raise ValidationError("period must be a date")


def period_key(kind: DocumentKind, period: date | datetime) -> str:
    if RULES[kind].monthly:
        return f"{period.year:04d}{period.month:02d}"
    return f"{period.year:04d}"


def number_prefix(kind: DocumentKind, period: date | datetime) -> str:
    return f"{RULES[kind].prefix}-{period_key(kind, period)}"


def format_number(prefix: str, sequence: int) -> str:
    return f"{prefix}-{sequence:0{SEQUENCE_PAD}d}"


def count_existing(kind: DocumentKind, period: date | datetime) -> int:
    """Yearly kinds count by number prefix; monthly kinds by document date."""
    rule = RULES[kind]
    query = db.session.query(rule.model)
    if rule.monthly:
        start, end = month_bounds(period)
        column = getattr(rule.model, rule.date_column)
        query = query.filter(column >= start, column < end)
    else:
        column = getattr(rule.model, rule.number_column)
        query = query.filter(column.startswith(number_prefix(kind, period) + "-", autoescape=True))
    return query.count()


def number_taken(kind: DocumentKind, number: str) -> bool:
    rule = RULES[_coerce_kind(kind)]
    column = getattr(rule.model, rule.number_column)
    return db.session.query(rule.model.id).filter(column == number).first() is not None


def _sequence_high_water(kind: DocumentKind, key: str) -> int:
    value = (
        db.session.query(DocumentSequence.last_value)
        .filter_by(document_kind=kind.value, period_key=key)
        .scalar()
    )
    return value or 0


def generate_sales_order_number(period=None, *, attempts: int | None = None) -> str:
    """SO-{year}-{random 4 digits}, probing for collisions a bounded number of times."""
    period = _coerce_period(DocumentKind.SALES_ORDER, period)
    if attempts is None:
        attempts = current_app.config.get("SALES_ORDER_NUMBER_ATTEMPTS", 8)
    prefix = number_prefix(DocumentKind.SALES_ORDER, period)
    for _ in range(attempts):
        candidate = format_number(prefix, random.randint(0, 9999))
        if not number_taken(DocumentKind.SALES_ORDER, candidate):
            return candidate
    current_app.logger.error("Sales order number space exhausted after %s attempts for %s", attempts, prefix)
    raise NumberingError("Unable to generate a unique sales order number")


def next_number(kind, period=None) -> str:
    """Preview the next number. Never mutates."""
    kind = _coerce_kind(kind)
    if kind is DocumentKind.SALES_ORDER:
        return generate_sales_order_number(period)
    period = _coerce_period(kind, period)
    key = period_key(kind, period)
    prefix = number_prefix(kind, period)
    sequence = max(count_existing(kind, period), _sequence_high_water(kind, key)) + 1
    while number_taken(kind, format_number(prefix, sequence)):
        sequence += 1
    return format_number(prefix, sequence)


def allocate_number(kind, period=None) -> str:
    """Hand out a number for an insert (commits the sequence bump)."""
    kind = _coerce_kind(kind)
    if kind is DocumentKind.SALES_ORDER:
        return generate_sales_order_number(period)
    period = _coerce_period(kind, period)
    key = period_key(kind, period)

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_kind == kind.value, DocumentSequence.period_key == key)
        .values(last_value=DocumentSequence.last_value + 1)
    )

    def _op() -> str:
        result = db.session.execute(stmt)
        if result.rowcount:
            value = _sequence_high_water(kind, key)
        else:
            seed = count_existing(kind, period)
            db.session.add(DocumentSequence(document_kind=kind.value, period_key=key, last_value=seed + 1))
            try:
                db.session.flush()
                value = seed + 1
            except IntegrityError:
                # Another writer created the row first
                db.session.rollback()
                result = db.session.execute(stmt)
                if not result.rowcount:
                    raise
                value = _sequence_high_water(kind, key)

        # Skip numbers claimed explicitly by callers
        prefix = number_prefix(kind, period)
        while number_taken(kind, format_number(prefix, value)):
            db.session.execute(stmt)
            value = _sequence_high_water(kind, key)
        db.session.commit()
        return format_number(prefix, value)

    return run_with_retry(_op)


def claim_number(kind, requested: str | None = None, period=None) -> str:
    """A caller-supplied number when it is free, otherwise a freshly allocated one."""
    kind = _coerce_kind(kind)
    if requested:
        requested = requested.strip()
        if requested and not number_taken(kind, requested):
            return requested
    return allocate_number(kind, period)
