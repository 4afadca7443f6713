from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


QUOTATION_STATUSES = ("Draft", "Sent", "Confirmed")
SALES_ORDER_STATUSES = ("Draft", "Confirmed", "Delivered", "Cancelled")
INVOICE_STATUSES = ("Draft", "Sent", "Paid", "Overdue", "Cancelled")
TAX_MODES = ("none", "ppn_11_inclusive", "ppn_11_exclusive", "ppn_12_inclusive", "ppn_12_exclusive")


class Quotation(db.Model):
    """
    Sales quotation.

    LIFECYCLE: Draft -> Sent (explicit send) -> Confirmed (first conversion
    into a SalesOrder only).

    updated_at is written application-side with microsecond precision; the
    conversion pipeline compares it against SalesOrder.updated_at.
    """
    __tablename__ = "quotations"
    __table_args__ = (
        db.UniqueConstraint("quotation_number", name="uq_quotations_number"),
        db.Index("ix_quotations_brand_status_date", "brand_profile_id", "status", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quotation_number = db.Column(db.String(64), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    valid_until = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Draft")  # Draft, Sent, Confirmed

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)

    project_desc = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer")
    brand = db.relationship("BrandProfile")
    items = db.relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "quotation_number": self.quotation_number,
            "date": to_utc_z(self.date),
            "valid_until": to_utc_z(self.valid_until),
            "status": self.status,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "brand_profile_id": self.brand_profile_id,
            "project_desc": self.project_desc,
            "notes": self.notes,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class QuotationItem(db.Model):
    __tablename__ = "quotation_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(
        db.Integer, db.ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit = db.Column(db.String(32), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(512), nullable=True)

    quotation = db.relationship("Quotation", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product": self.product,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "price_cents": self.price_cents,
            "subtotal_cents": self.subtotal_cents,
            "image_url": self.image_url,
        }


class SalesOrder(db.Model):
    """
    Sales order, created manually or converted from a Quotation.

    At most one SalesOrder references a given quotation_id; re-conversion
    replaces its items in place and keeps order_number/date/id.
    """
    __tablename__ = "sales_orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_sales_orders_number"),
        db.Index("ix_sales_orders_brand_date", "brand_profile_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    status = db.Column(db.String(16), nullable=False, default="Draft")

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=True, index=True)
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    # Amounts (in cents)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    line_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    extra_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_mode = db.Column(db.String(32), nullable=False, default="none")
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer")
    quotation = db.relationship("Quotation")
    brand = db.relationship("BrandProfile")
    items = db.relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "date": to_utc_z(self.date),
            "status": self.status,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "quotation_id": self.quotation_id,
            "brand_profile_id": self.brand_profile_id,
            "notes": self.notes,
            "subtotal_cents": self.subtotal_cents,
            "line_discount_cents": self.line_discount_cents,
            "extra_discount_cents": self.extra_discount_cents,
            "tax_mode": self.tax_mode,
            "tax_amount_cents": self.tax_amount_cents,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SalesOrderItem(db.Model):
    __tablename__ = "sales_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(
        db.Integer, db.ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit = db.Column(db.String(32), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(512), nullable=True)

    sales_order = db.relationship("SalesOrder", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product": self.product,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "price_cents": self.price_cents,
            "discount_cents": self.discount_cents,
            "subtotal_cents": self.subtotal_cents,
            "image_url": self.image_url,
        }


class Invoice(db.Model):
    """
    Customer invoice, direct or derived from a SalesOrder.

    Soft delete: deleted_at is set instead of removing the row; rows stay
    out of listings and are hard-deleted by the purge once older than the
    retention window.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_number"),
        db.Index("ix_invoices_brand_deleted", "brand_profile_id", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False)
    issue_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Draft")

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=True, index=True)
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)

    # Amounts (in cents)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    line_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    extra_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_mode = db.Column(db.String(32), nullable=False, default="none")
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    down_payment_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer")
    sales_order = db.relationship("SalesOrder")
    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "issue_date": to_utc_z(self.issue_date),
            "due_date": to_utc_z(self.due_date),
            "status": self.status,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "quotation_id": self.quotation_id,
            "sales_order_id": self.sales_order_id,
            "brand_profile_id": self.brand_profile_id,
            "notes": self.notes,
            "terms": self.terms,
            "subtotal_cents": self.subtotal_cents,
            "line_discount_cents": self.line_discount_cents,
            "extra_discount_cents": self.extra_discount_cents,
            "shipping_cents": self.shipping_cents,
            "tax_mode": self.tax_mode,
            "tax_amount_cents": self.tax_amount_cents,
            "down_payment_cents": self.down_payment_cents,
            "total_amount_cents": self.total_amount_cents,
            "deleted_at": to_utc_z(self.deleted_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit = db.Column(db.String(32), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)

    invoice = db.relationship("Invoice", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "price_cents": self.price_cents,
            "discount_cents": self.discount_cents,
            "subtotal_cents": self.subtotal_cents,
        }
