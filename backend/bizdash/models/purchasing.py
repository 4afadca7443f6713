from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class PurchaseDirect(db.Model):
    """
    Direct purchase from a supplier.

    Numbered PL-yyyymm-nnnn; the month is taken from `date`, not created_at.
    Starts as Draft; receiving it books the tracked items into stock.
    """
    __tablename__ = "purchase_directs"
    __table_args__ = (
        db.UniqueConstraint("purchase_number", name="uq_purchase_directs_number"),
        db.Index("ix_purchase_directs_brand_date", "brand_profile_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_number = db.Column(db.String(64), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    supplier_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="Draft")
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    received_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "PurchaseDirectItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseDirectItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_number": self.purchase_number,
            "date": to_utc_z(self.date),
            "supplier_name": self.supplier_name,
            "status": self.status,
            "brand_profile_id": self.brand_profile_id,
            "notes": self.notes,
            "total_cents": self.total_cents,
            "received_at": to_utc_z(self.received_at),
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseDirectItem(db.Model):
    __tablename__ = "purchase_direct_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(
        db.Integer, db.ForeignKey("purchase_directs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit = db.Column(db.String(32), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)

    purchase = db.relationship("PurchaseDirect", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price_cents": self.price_cents,
            "subtotal_cents": self.subtotal_cents,
        }
