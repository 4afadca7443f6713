from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class BrandProfile(db.Model):
    """
    Tenant. Every brand-scoped document carries a brand_profile_id.

    The slug is the external identifier (cookies, URLs). At most one row
    should have is_active=True; brand_service.set_global_active() clears the
    flag on every other row when setting it, there is no DB constraint.
    """
    __tablename__ = "brand_profiles"
    __table_args__ = (
        db.UniqueConstraint("slug", name="uq_brand_profiles_slug"),
        db.Index("ix_brand_profiles_is_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(128), nullable=False)
    overview = db.Column(db.Text, nullable=True)

    # Contact block printed on documents
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    logo_url = db.Column(db.String(512), nullable=True)
    primary_color = db.Column(db.String(16), nullable=True)
    secondary_color = db.Column(db.String(16), nullable=True)

    # Opaque per-brand configuration blobs
    modules = db.Column(db.JSON, nullable=True)
    number_formats = db.Column(db.JSON, nullable=True)
    template_defaults = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "overview": self.overview,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "logo_url": self.logo_url,
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
            "modules": self.modules or {},
            "number_formats": self.number_formats or {},
            "template_defaults": self.template_defaults or {},
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
