# Overview: Pytest coverage for brand scope resolution and scoped queries.

"""
Brand Scope Tests

SECURITY TESTS: non-owner/non-admin users only ever see brands they hold a
UserBrandScope row for; an empty scope means no access at all.
"""

import pytest

from bizdash.errors import NotFoundError, ValidationError
from bizdash.models import BrandProfile, Quotation, UserBrandScope
from bizdash.services import brand_scope_service, quotation_service
from bizdash.services.brand_scope_service import (
    resolve_allowed_brand_ids,
    scope_to_brands,
    user_can_access_brand,
)
from bizdash.services.tenant_service import TenantContext

from conftest import make_user


@pytest.fixture
def numbered_brands(db_session):
    """Brands with fixed ids 5, 7 and 9."""
    brands = [BrandProfile(id=i, name=f"Brand {i}", slug=f"brand-{i}") for i in (5, 7, 9)]
    db_session.add_all(brands)
    db_session.commit()
    return brands


class TestResolveAllowedBrandIds:

    def test_owner_gets_every_brand(self, db_session, numbered_brands):
        assert resolve_allowed_brand_ids(1, ["Owner"]) == [5, 7, 9]

    def test_admin_gets_requested_list_verbatim(self, db_session, numbered_brands):
        assert resolve_allowed_brand_ids(1, ["admin"], [9, 42]) == [9, 42]

    def test_staff_requested_list_is_intersected(self, db_session, setup_roles, password_hash, numbered_brands):
        b5, b7, _ = numbered_brands
        user = make_user(db_session, "u@bizdash.test", password_hash, ["staff"], brands=[b5, b7])

        assert resolve_allowed_brand_ids(user.id, ["staff"], [5, 9]) == [5]
        assert resolve_allowed_brand_ids(user.id, ["staff"]) == [5, 7]

    def test_staff_never_sees_ungranted_brands(self, db_session, setup_roles, password_hash, numbered_brands):
        user = make_user(db_session, "u@bizdash.test", password_hash, ["staff"], brands=[numbered_brands[0]])

        for requested in (None, [7], [9, 7], [5, 7, 9]):
            allowed = resolve_allowed_brand_ids(user.id, ["staff"], requested)
            assert set(allowed) <= {5}

    def test_no_user_gets_nothing(self, db_session, numbered_brands):
        assert resolve_allowed_brand_ids(None, ["staff"], [5]) == []


class TestUserCanAccessBrand:

    def test_null_user_never_has_access(self, db_session, numbered_brands):
        for brand in numbered_brands:
            assert user_can_access_brand(None, brand.id) is False

    def test_roles_come_from_database(self, db_session, admin_user, staff_user, brand_acme, brand_beta):
        assert user_can_access_brand(admin_user.id, brand_beta.id)
        assert user_can_access_brand(staff_user.id, brand_acme.id)
        assert not user_can_access_brand(staff_user.id, brand_beta.id)


class TestScopedQueries:

    def test_empty_scope_matches_nothing(self, db_session, quotation):
        query = scope_to_brands(db_session.query(Quotation), Quotation.brand_profile_id, [])
        assert query.all() == []

    def test_out_of_scope_document_is_not_found(self, db_session, quotation, brand_beta):
        ctx = TenantContext(user_id=99, roles=("staff",), allowed_brand_ids=(brand_beta.id,))
        with pytest.raises(NotFoundError):
            quotation_service.get_quotation(ctx, quotation.id)

    def test_in_scope_document_is_found(self, db_session, quotation, brand_acme):
        ctx = TenantContext(user_id=99, roles=("staff",), allowed_brand_ids=(brand_acme.id,))
        assert quotation_service.get_quotation(ctx, quotation.id).id == quotation.id


class TestScopeGrants:

    def test_upsert_is_idempotent(self, db_session, staff_user, brand_acme):
        brand_scope_service.upsert_scope(user_id=staff_user.id, brand_profile_id=brand_acme.id, is_brand_admin=True)

        scopes = db_session.query(UserBrandScope).filter_by(user_id=staff_user.id).all()
        assert len(scopes) == 1
        assert scopes[0].is_brand_admin is True

    def test_set_user_scopes_replaces(self, db_session, staff_user, brand_acme, brand_beta):
        brand_scope_service.set_user_scopes(
            user_id=staff_user.id, brand_slugs=["beta"], replace_all=True
        )
        assert brand_scope_service.get_scoped_brand_ids(staff_user.id) == [brand_beta.id]

    def test_unknown_slug_rejected(self, db_session, staff_user, brand_acme):
        with pytest.raises(ValidationError):
            brand_scope_service.set_user_scopes(user_id=staff_user.id, brand_slugs=["nope"])

    def test_revoke(self, db_session, staff_user, brand_acme):
        removed = brand_scope_service.revoke_scope(user_id=staff_user.id, brand_slug="acme")

        assert removed == 1
        assert brand_scope_service.get_scoped_brand_ids(staff_user.id) == []

    def test_revoke_unknown_brand(self, db_session, staff_user):
        with pytest.raises(NotFoundError):
            brand_scope_service.revoke_scope(user_id=staff_user.id, brand_slug="nope")
