from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


STOCK_MUTATION_TYPES = ("IN", "OUT", "ADJUST")


class Product(db.Model):
    """Stock-keeping item; only tracked products move on purchase receipt."""
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_brand", "brand_profile_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(32), nullable=True)
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)
    track_stock = db.Column(db.Boolean, nullable=False, default=True)
    qty = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "unit": self.unit,
            "brand_profile_id": self.brand_profile_id,
            "track_stock": self.track_stock,
            "qty": self.qty,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMutation(db.Model):
    """
    One stock movement. `qty` is always positive; `type` gives the direction.

    ref_table/ref_id point at the document that caused the movement
    (e.g. "purchasedirect" and the purchase id).
    """
    __tablename__ = "stock_mutations"
    __table_args__ = (
        db.Index("ix_stock_mutations_brand_created", "brand_profile_id", "created_at"),
        db.Index("ix_stock_mutations_ref", "ref_table", "ref_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    brand_profile_id = db.Column(db.Integer, db.ForeignKey("brand_profiles.id"), nullable=True)
    qty = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    ref_table = db.Column(db.String(64), nullable=True)
    ref_id = db.Column(db.Integer, nullable=True)
    note = db.Column(db.String(255), nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "brand_profile_id": self.brand_profile_id,
            "qty": self.qty,
            "type": self.type,
            "ref_table": self.ref_table,
            "ref_id": self.ref_id,
            "note": self.note,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
