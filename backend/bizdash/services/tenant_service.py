"""
Tenant context: who is asking, and which brands they may touch.

TenantContext is resolved ONCE per request by @require_auth and passed
explicitly into every brand-scoped service function. Services never read
cookies or flask.g themselves, so they can be called from the CLI and from
tests with a hand-built context.

SCOPING RULES:
- owner/admin (case-insensitive) see every brand
- everyone else sees exactly their UserBrandScope rows
- an empty allowed set means NO access (fail closed)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..errors import AuthorizationError, ValidationError
from ..models import BrandProfile
from ..permissions import ROLE_ADMIN, ROLE_OWNER


def normalize_roles(roles: Iterable[str] | None) -> tuple[str, ...]:
    return tuple(str(r).lower() for r in (roles or ()) if r)


@dataclass(frozen=True)
class TenantContext:
    user_id: Optional[int]
    email: Optional[str] = None
    roles: tuple[str, ...] = ()
    brand_cookie_slug: Optional[str] = None
    allowed_brand_ids: tuple[int, ...] = ()
    active_brand: Optional[BrandProfile] = field(default=None, compare=False)

    @classmethod
    def anonymous(cls, brand_cookie_slug: str | None = None) -> "TenantContext":
        return cls(user_id=None, brand_cookie_slug=brand_cookie_slug)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_owner_or_admin(self) -> bool:
        return any(r in (ROLE_OWNER, ROLE_ADMIN) for r in self.roles)

    @property
    def is_owner(self) -> bool:
        return ROLE_OWNER in self.roles

    @property
    def active_brand_id(self) -> Optional[int]:
        return self.active_brand.id if self.active_brand else None

    def can_access(self, brand_id: Optional[int]) -> bool:
        return brand_id is not None and brand_id in self.allowed_brand_ids

    def require_active_brand(self) -> BrandProfile:
        if self.active_brand is None:
            raise ValidationError("No active brand selected")
        return self.active_brand

    def require_active_brand_in_scope(self) -> BrandProfile:
        brand = self.require_active_brand()
        if not self.can_access(brand.id):
            raise AuthorizationError("Forbidden: brand scope")
        return brand


def resolve_tenant_context(
    *,
    user_id: int | None,
    email: str | None,
    roles: Iterable[str] | None,
    brand_cookie_slug: str | None,
) -> TenantContext:
    """Build the per-request context: allowed brands first, then the active brand."""
    from .brand_scope_service import resolve_allowed_brand_ids
    from .brand_service import get_active_brand_profile

    normalized = normalize_roles(roles)
    allowed = resolve_allowed_brand_ids(user_id, normalized, None)
    active = get_active_brand_profile(user_id, brand_cookie_slug)
    return TenantContext(
        user_id=user_id,
        email=email,
        roles=normalized,
        brand_cookie_slug=brand_cookie_slug,
        allowed_brand_ids=tuple(allowed),
        active_brand=active,
    )
