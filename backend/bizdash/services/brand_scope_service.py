# Overview: Brand scope resolution and grant management; adapted from per-user access grants.

"""
Brand Scope Resolver

Answers "which brand ids may this user operate on?" and applies that answer
to queries. Everything here is read-only except the grant management
functions at the bottom.

SECURITY:
- Owner/admin bypass scope filtering entirely.
- Other users see exactly their UserBrandScope rows.
- An empty result means no access; scope_to_brands() turns it into an
  always-false filter instead of dropping the filter.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from sqlalchemy import false

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import BrandProfile, User, UserBrandScope
from ..permissions import ROLE_ADMIN, ROLE_OWNER
from . import activity_service


def is_owner_or_admin(roles: Iterable[str] | None) -> bool:
    return any(str(r).lower() in (ROLE_OWNER, ROLE_ADMIN) for r in (roles or ()))


def is_owner_only(roles: Iterable[str] | None) -> bool:
    return any(str(r).lower() == ROLE_OWNER for r in (roles or ()))


def get_scoped_brand_ids(user_id: int) -> list[int]:
    rows = (
        db.session.query(UserBrandScope.brand_profile_id)
        .filter(UserBrandScope.user_id == user_id)
        .order_by(UserBrandScope.brand_profile_id.asc())
        .all()
    )
    return [row[0] for row in rows]


def resolve_allowed_brand_ids(
    user_id: Optional[int],
    roles: Iterable[str] | None,
    requested_brand_ids: Optional[Sequence[int]] = None,
) -> list[int]:
    """
    Brand ids the caller may operate on.

    - owner/admin: the requested ids verbatim when given, else every brand
    - no user: []
    - otherwise: the user's scoped ids, intersected with the request when given
      (request order preserved)
    """
    requested = list(requested_brand_ids or [])

    if is_owner_or_admin(roles):
        if requested:
            return requested
        rows = db.session.query(BrandProfile.id).order_by(BrandProfile.id.asc()).all()
        return [row[0] for row in rows]

    if user_id is None:
        return []

    scoped = get_scoped_brand_ids(user_id)
    if not requested:
        return scoped
    scoped_set = set(scoped)
    return [brand_id for brand_id in requested if brand_id in scoped_set]


def user_can_access_brand(user_id: Optional[int], brand_id: int) -> bool:
    """Role lookup comes from the database, not the token."""
    if user_id is None:
        return False
    user = db.session.get(User, user_id)
    if user is None:
        return False
    if is_owner_or_admin(user.role_names):
        return True
    exists = (
        db.session.query(UserBrandScope.id)
        .filter(UserBrandScope.user_id == user_id, UserBrandScope.brand_profile_id == brand_id)
        .first()
    )
    return exists is not None


def scope_to_brands(query, column, allowed_brand_ids: Sequence[int]):
    """Restrict `query` to rows whose `column` is in the allowed set."""
    if not allowed_brand_ids:
        return query.filter(false())
    return query.filter(column.in_(list(allowed_brand_ids)))


# =============================================================================
# Grant management (owner only at the route layer)
# =============================================================================

def list_scopes(user_id: int | None = None) -> list[UserBrandScope]:
    query = db.session.query(UserBrandScope)
    if user_id is not None:
        query = query.filter(UserBrandScope.user_id == user_id)
    return query.order_by(UserBrandScope.user_id.asc(), UserBrandScope.brand_profile_id.asc()).all()


def _require_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _brands_by_slug(slugs: Iterable[str]) -> list[BrandProfile]:
    wanted = [s.strip() for s in slugs if isinstance(s, str) and s.strip()]
    if not wanted:
        return []
    brands = db.session.query(BrandProfile).filter(BrandProfile.slug.in_(wanted)).all()
    found = {b.slug for b in brands}
    missing = [s for s in wanted if s not in found]
    if missing:
        raise ValidationError(f"Unknown brand slug(s): {', '.join(missing)}")
    return brands


def upsert_scope(
    *, user_id: int, brand_profile_id: int, is_brand_admin: bool = False, actor_user_id: int | None = None
) -> UserBrandScope:
    _require_user(user_id)
    scope = (
        db.session.query(UserBrandScope)
        .filter_by(user_id=user_id, brand_profile_id=brand_profile_id)
        .first()
    )
    if scope:
        scope.is_brand_admin = bool(is_brand_admin)
    else:
        scope = UserBrandScope(
            user_id=user_id, brand_profile_id=brand_profile_id, is_brand_admin=bool(is_brand_admin)
        )
        db.session.add(scope)
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id,
        action="USER_BRAND_SCOPE_UPSERT",
        entity="UserBrandScope",
        entity_id=scope.id,
        metadata={"userId": user_id, "brandProfileId": brand_profile_id, "isBrandAdmin": bool(is_brand_admin)},
    )
    return scope


def set_user_scopes(
    *,
    user_id: int,
    brand_slugs: Iterable[str],
    is_brand_admin: bool = False,
    replace_all: bool = True,
    actor_user_id: int | None = None,
) -> list[UserBrandScope]:
    """
    Grant the listed brands; with replace_all, existing grants are cleared first.

    The clear and the upserts commit together.
    """
    _require_user(user_id)
    brands = _brands_by_slug(brand_slugs)

    cleared = 0
    if replace_all:
        cleared = (
            db.session.query(UserBrandScope)
            .filter(UserBrandScope.user_id == user_id)
            .delete(synchronize_session=False)
        )

    existing = {
        s.brand_profile_id: s
        for s in db.session.query(UserBrandScope).filter(UserBrandScope.user_id == user_id).all()
    }
    for brand in brands:
        scope = existing.get(brand.id)
        if scope:
            scope.is_brand_admin = bool(is_brand_admin)
        else:
            db.session.add(
                UserBrandScope(user_id=user_id, brand_profile_id=brand.id, is_brand_admin=bool(is_brand_admin))
            )
    db.session.commit()

    if replace_all:
        activity_service.record(
            user_id=actor_user_id,
            action="USER_BRAND_SCOPE_CLEAR",
            entity="UserBrandScope",
            entity_id=user_id,
            metadata={"userId": user_id, "removed": cleared},
        )
    for brand in brands:
        activity_service.record(
            user_id=actor_user_id,
            action="USER_BRAND_SCOPE_UPSERT",
            entity="UserBrandScope",
            entity_id=user_id,
            metadata={"userId": user_id, "brandSlug": brand.slug, "isBrandAdmin": bool(is_brand_admin)},
        )
    return list_scopes(user_id)


def revoke_scope(*, user_id: int, brand_slug: str, actor_user_id: int | None = None) -> int:
    brand = db.session.query(BrandProfile).filter_by(slug=brand_slug).first()
    if not brand:
        raise NotFoundError("Brand not found")
    removed = (
        db.session.query(UserBrandScope)
        .filter_by(user_id=user_id, brand_profile_id=brand.id)
        .delete(synchronize_session=False)
    )
    db.session.commit()

    activity_service.record(
        user_id=actor_user_id,
        action="USER_BRAND_SCOPE_DELETE",
        entity="UserBrandScope",
        entity_id=user_id,
        metadata={"userId": user_id, "brandSlug": brand_slug, "removed": removed},
    )
    return removed
