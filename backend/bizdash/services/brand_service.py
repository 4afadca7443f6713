# Overview: Brand profiles, the active brand selector, and brand activation.

"""
Active Brand Selector

get_active_brand_profile() decides which brand applies when a request does
not name one. Precedence (first hit wins):

1. cookie slug, only if the user can access that brand
2. the user's stored default brand
3. the brand flagged is_active (most recently updated first)
4. the earliest created brand
5. None

A database failure anywhere in the chain is logged and yields None.
"""

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import BrandProfile, User
from . import activity_service
from .brand_scope_service import scope_to_brands, user_can_access_brand


SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

EDITABLE_FIELDS = (
    "name",
    "overview",
    "address",
    "phone",
    "email",
    "website",
    "logo_url",
    "primary_color",
    "secondary_color",
    "modules",
    "number_formats",
    "template_defaults",
)
JSON_FIELDS = ("modules", "number_formats", "template_defaults")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug


def get_brand_by_slug(slug: str | None) -> BrandProfile | None:
    if not slug:
        return None
    return db.session.query(BrandProfile).filter(BrandProfile.slug == slug).first()


def get_active_brand_profile(user_id: int | None, cookie_slug: str | None) -> BrandProfile | None:
    try:
        if cookie_slug:
            brand = get_brand_by_slug(cookie_slug)
            if brand and user_can_access_brand(user_id, brand.id):
                return brand

        if user_id is not None:
            user = db.session.get(User, user_id)
            if user and user.default_brand_profile_id:
                brand = db.session.get(BrandProfile, user.default_brand_profile_id)
                if brand:
                    return brand

        brand = (
            db.session.query(BrandProfile)
            .filter(BrandProfile.is_active.is_(True))
            .order_by(BrandProfile.updated_at.desc(), BrandProfile.id.desc())
            .first()
        )
        if brand:
            return brand

        return (
            db.session.query(BrandProfile)
            .order_by(BrandProfile.created_at.asc(), BrandProfile.id.asc())
            .first()
        )
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to resolve active brand profile")
        return None


def list_brands(ctx) -> list[BrandProfile]:
    query = scope_to_brands(db.session.query(BrandProfile), BrandProfile.id, ctx.allowed_brand_ids)
    return query.order_by(BrandProfile.name.asc()).all()


def get_brand_in_scope(ctx, slug: str) -> BrandProfile:
    brand = get_brand_by_slug(slug)
    if not brand or not ctx.can_access(brand.id):
        raise NotFoundError("Brand not found")
    return brand


def _apply_fields(brand: BrandProfile, data: dict) -> None:
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in JSON_FIELDS and value is not None and not isinstance(value, dict):
            raise ValidationError(f"{key} must be an object")
        if key == "name" and (not isinstance(value, str) or not value.strip()):
            raise ValidationError("name is required")
        setattr(brand, key, value.strip() if isinstance(value, str) else value)


def set_global_active(brand: BrandProfile) -> None:
    """Flag `brand` as the global active brand and clear the flag everywhere else (no commit)."""
    db.session.query(BrandProfile).filter(
        BrandProfile.id != brand.id, BrandProfile.is_active.is_(True)
    ).update({"is_active": False}, synchronize_session=False)
    brand.is_active = True


def create_brand(data: dict, *, actor_user_id: int | None = None) -> BrandProfile:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    slug = data.get("slug") or slugify(name)
    if not SLUG_PATTERN.match(slug or ""):
        raise ValidationError("slug must be lowercase letters, digits and dashes")
    if get_brand_by_slug(slug):
        raise ConflictError(f"Brand slug '{slug}' already exists")

    brand = BrandProfile(slug=slug, name=name.strip())
    _apply_fields(brand, data)
    db.session.add(brand)
    if data.get("is_active") is True:
        db.session.flush()
        set_global_active(brand)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Brand slug '{slug}' already exists")

    activity_service.record(
        user_id=actor_user_id,
        action="BRAND_PROFILE_CREATE",
        entity="BrandProfile",
        entity_id=brand.id,
        metadata={"after": brand.to_dict()},
    )
    return brand


def update_brand(ctx, slug: str, data: dict) -> BrandProfile:
    brand = get_brand_in_scope(ctx, slug)
    before = brand.to_dict()

    _apply_fields(brand, data)
    if "is_active" in data:
        if data["is_active"] is True:
            set_global_active(brand)
        elif data["is_active"] is False:
            brand.is_active = False
        else:
            raise ValidationError("is_active must be a boolean")
    db.session.commit()

    activity_service.record(
        user_id=ctx.user_id,
        action="BRAND_PROFILE_UPDATE",
        entity="BrandProfile",
        entity_id=brand.id,
        metadata={"before": before, "after": brand.to_dict()},
    )
    return brand


# =============================================================================
# Per-user activation (cookie only, no DB mutation)
# =============================================================================

def activate_brand(ctx, slug: str | None) -> BrandProfile:
    """Validate that ctx may switch to `slug`; the caller sets the cookie."""
    if not slug or not isinstance(slug, str):
        raise ValidationError("slug is required")
    brand = get_brand_by_slug(slug.strip())
    if not brand:
        raise NotFoundError("Brand not found")
    if not ctx.is_authenticated:
        raise AuthenticationError("Authentication required")
    if not user_can_access_brand(ctx.user_id, brand.id):
        raise AuthorizationError("You do not have access to this brand")
    return brand


def resolve_requested_brand(ctx, *, brand_id: int | None = None, brand_slug: str | None = None) -> BrandProfile:
    """
    Brand named by the request: explicit id, then explicit slug, then the
    brand cookie, then the active brand. An unknown slug falls through to
    the cookie; an unknown id does not. NotFoundError when nothing resolves.
    """
    if brand_id is not None:
        brand = db.session.get(BrandProfile, brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        return brand
    brand = get_brand_by_slug(brand_slug) if brand_slug else None
    if not brand:
        brand = get_brand_by_slug(ctx.brand_cookie_slug) or ctx.active_brand
    if not brand:
        raise NotFoundError("Brand not found")
    return brand


def check_brand_access(ctx, *, brand_id: int | None = None, brand_slug: str | None = None) -> BrandProfile:
    brand = resolve_requested_brand(ctx, brand_id=brand_id, brand_slug=brand_slug)
    if not user_can_access_brand(ctx.user_id, brand.id):
        raise AuthorizationError("Forbidden: brand scope")
    return brand


def set_default_brand(ctx, slug: str | None) -> User:
    user = db.session.get(User, ctx.user_id) if ctx.user_id is not None else None
    if not user:
        raise AuthenticationError("Authentication required")
    if not slug:
        user.default_brand_profile_id = None
    else:
        brand = get_brand_by_slug(slug)
        if not brand:
            raise NotFoundError("Brand not found")
        if not user_can_access_brand(user.id, brand.id):
            raise AuthorizationError("You do not have access to this brand")
        user.default_brand_profile_id = brand.id
    db.session.commit()
    return user
