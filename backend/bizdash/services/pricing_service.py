# Overview: Line-item normalisation and document totals (integer cents).

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ValidationError
from ..models import TAX_MODES
from ..validation import coerce_amount_cents, coerce_int


# tax_mode -> (rate percent, inclusive)
TAX_RATES = {
    "none": (0, False),
    "ppn_11_inclusive": (11, True),
    "ppn_11_exclusive": (11, False),
    "ppn_12_inclusive": (12, True),
    "ppn_12_exclusive": (12, False),
}


@dataclass(frozen=True)
class LineInput:
    name: str
    description: str | None
    quantity: int
    unit: str | None
    price_cents: int
    discount_cents: int
    image_url: str | None
    product_id: int | None = None

    @property
    def gross_cents(self) -> int:
        return self.quantity * self.price_cents

    @property
    def subtotal_cents(self) -> int:
        return self.gross_cents - self.discount_cents


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    line_discount_cents: int
    extra_discount_cents: int
    tax_mode: str
    tax_amount_cents: int
    shipping_cents: int
    down_payment_cents: int
    total_amount_cents: int


def normalize_items(raw_items, *, name_key: str = "product") -> list[LineInput]:
    """
    Validate client line items.

    Quantity must be a non-negative integer, price non-negative cents, and
    the line discount is clipped to the line's gross amount.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")

    lines = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        name = raw.get(name_key) or raw.get("name") or raw.get("product")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"items[{index}].{name_key} is required")
        quantity = coerce_int(raw.get("quantity", 1), f"items[{index}].quantity")
        if quantity < 0:
            raise ValidationError(f"items[{index}].quantity cannot be negative")
        price = coerce_amount_cents(raw.get("price_cents"), f"items[{index}].price_cents")
        discount = coerce_amount_cents(raw.get("discount_cents"), f"items[{index}].discount_cents")
        product_id = raw.get("product_id")
        if product_id is not None:
            product_id = coerce_int(product_id, f"items[{index}].product_id")
        lines.append(LineInput(
            name=name.strip(),
            description=raw.get("description"),
            quantity=quantity,
            unit=raw.get("unit"),
            price_cents=price,
            discount_cents=min(discount, quantity * price),
            image_url=raw.get("image_url"),
            product_id=product_id,
        ))
    return lines


def compute_tax(taxable_cents: int, tax_mode: str) -> tuple[int, int]:
    """(tax amount, amount added on top of taxable)."""
    if tax_mode not in TAX_MODES:
        raise ValidationError(f"Unknown tax_mode: {tax_mode}")
    rate, inclusive = TAX_RATES[tax_mode]
    if rate == 0 or taxable_cents <= 0:
        return 0, 0
    if inclusive:
        base = (taxable_cents * 100 + (100 + rate) // 2) // (100 + rate)
        return taxable_cents - base, 0
    tax = (taxable_cents * rate + 50) // 100
    return tax, tax


def compute_totals(
    lines: list[LineInput],
    *,
    extra_discount_cents: int = 0,
    tax_mode: str = "none",
    shipping_cents: int = 0,
    down_payment_cents: int = 0,
) -> Totals:
    gross = sum(line.gross_cents for line in lines)
    line_discount = sum(line.discount_cents for line in lines)
    after_lines = gross - line_discount
    extra_discount = min(max(0, extra_discount_cents), after_lines)
    taxable = after_lines - extra_discount
    tax, added = compute_tax(taxable, tax_mode or "none")
    total = taxable + added + max(0, shipping_cents) - max(0, down_payment_cents)
    return Totals(
        subtotal_cents=gross,
        line_discount_cents=line_discount,
        extra_discount_cents=extra_discount,
        tax_mode=tax_mode or "none",
        tax_amount_cents=tax,
        shipping_cents=max(0, shipping_cents),
        down_payment_cents=max(0, down_payment_cents),
        total_amount_cents=total,
    )
