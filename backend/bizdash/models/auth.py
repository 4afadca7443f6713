from __future__ import annotations

from ..extensions import db
from ..permissions import PermissionMatrix
from ..time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Self-service signups are created with is_active=False and stay locked out
    until an owner approves them.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Used by the active brand selector when no valid cookie is present
    default_brand_profile_id = db.Column(
        db.Integer, db.ForeignKey("brand_profiles.id", ondelete="SET NULL"), nullable=True
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    roles = db.relationship("Role", secondary="user_roles", lazy="selectin", order_by="Role.name")
    default_brand = db.relationship("BrandProfile", foreign_keys=[default_brand_profile_id])

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "is_active": self.is_active,
            "roles": self.role_names,
            "default_brand_profile_id": self.default_brand_profile_id,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class Role(db.Model):
    """
    Named role with a per-module permission matrix.

    Names are stored lowercase; role checks elsewhere compare lowercase.
    The permissions column holds the raw JSON shape
    {module: {view, create, edit, delete, approve}} and is only ever written
    after PermissionMatrix.from_dict() has accepted it.
    """
    __tablename__ = "roles"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_roles_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    permissions = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def matrix(self) -> PermissionMatrix:
        return PermissionMatrix.from_dict(self.permissions or {})

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": self.matrix().to_dict(),
            "created_at": to_utc_z(self.created_at),
        }


class UserRole(db.Model):
    __tablename__ = "user_roles"
    __table_args__ = (
        db.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class UserBrandScope(db.Model):
    """
    Grants a non-owner/non-admin user access to one brand.

    For such users this table is the complete list of visible brands.
    """
    __tablename__ = "user_brand_scopes"
    __table_args__ = (
        db.UniqueConstraint("user_id", "brand_profile_id", name="uq_user_brand_scopes_user_brand"),
        db.Index("ix_user_brand_scopes_brand", "brand_profile_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    brand_profile_id = db.Column(
        db.Integer, db.ForeignKey("brand_profiles.id", ondelete="CASCADE"), nullable=False
    )
    is_brand_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("brand_scopes", lazy=True, cascade="all, delete-orphan"))
    brand = db.relationship("BrandProfile")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "brand_profile_id": self.brand_profile_id,
            "brand_slug": self.brand.slug if self.brand else None,
            "brand_name": self.brand.name if self.brand else None,
            "is_brand_admin": self.is_brand_admin,
            "created_at": to_utc_z(self.created_at),
        }
