# Overview: Pytest coverage for active brand resolution and brand switching.

"""
Active Brand Tests

Precedence: accessible cookie slug > user's default brand > brand flagged
is_active > earliest created brand > None.
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from bizdash.errors import AuthorizationError, ValidationError
from bizdash.models import BrandProfile, User
from bizdash.services import brand_service
from bizdash.services.brand_service import get_active_brand_profile
from bizdash.services.tenant_service import TenantContext, resolve_tenant_context


class TestActiveBrandPrecedence:

    def test_only_active_brand_wins_without_cookie_or_default(self, db_session, brand_acme, brand_beta):
        brand = get_active_brand_profile(None, None)
        assert brand.slug == "acme"

    def test_accessible_cookie_wins(self, db_session, admin_user, brand_acme, brand_beta):
        assert get_active_brand_profile(admin_user.id, "beta").slug == "beta"

    def test_inaccessible_cookie_is_ignored(self, db_session, staff_user, brand_acme, brand_beta):
        assert get_active_brand_profile(staff_user.id, "beta").slug == "acme"

    def test_cookie_without_user_is_ignored(self, db_session, brand_acme, brand_beta):
        assert get_active_brand_profile(None, "beta").slug == "acme"

    def test_user_default_beats_active_flag(self, db_session, admin_user, brand_acme, brand_beta):
        admin_user.default_brand_profile_id = brand_beta.id
        db_session.commit()

        assert get_active_brand_profile(admin_user.id, None).slug == "beta"

    def test_falls_back_to_earliest_brand(self, db_session, brand_acme, brand_beta):
        brand_acme.is_active = False
        db_session.commit()

        assert get_active_brand_profile(None, None).slug == "acme"

    def test_no_brands_gives_none(self, db_session):
        assert get_active_brand_profile(None, None) is None

    def test_most_recently_updated_active_brand_wins(self, db_session):
        older = BrandProfile(name="Older", slug="older", is_active=True, updated_at=datetime(2025, 1, 1))
        newer = BrandProfile(name="Newer", slug="newer", is_active=True, updated_at=datetime(2025, 6, 1))
        db_session.add_all([newer, older])
        db_session.commit()

        assert get_active_brand_profile(None, None).slug == "newer"

    def test_database_error_gives_none(self, db_session, admin_user, brand_acme, monkeypatch, caplog):
        def _broken(slug):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(brand_service, "get_brand_by_slug", _broken)

        assert get_active_brand_profile(admin_user.id, "acme") is None
        assert "Failed to resolve active brand profile" in caplog.text


class TestTenantContext:

    def test_resolved_once_with_scope(self, db_session, staff_user, brand_acme, brand_beta):
        ctx = resolve_tenant_context(
            user_id=staff_user.id, email=staff_user.email, roles=["STAFF"], brand_cookie_slug=None
        )
        assert ctx.roles == ("staff",)
        assert ctx.allowed_brand_ids == (brand_acme.id,)
        assert ctx.active_brand_id == brand_acme.id
        assert not ctx.is_owner_or_admin

    def test_require_active_brand(self, db_session, brand_beta):
        with pytest.raises(ValidationError):
            TenantContext(user_id=1).require_active_brand()

        ctx = TenantContext(user_id=1, allowed_brand_ids=(), active_brand=brand_beta)
        with pytest.raises(AuthorizationError):
            ctx.require_active_brand_in_scope()


class TestGlobalActiveFlag:

    def test_setting_active_clears_others(self, db_session, owner_user, brand_acme, brand_beta):
        ctx = resolve_tenant_context(
            user_id=owner_user.id, email=owner_user.email, roles=["owner"], brand_cookie_slug=None
        )
        brand_service.update_brand(ctx, "beta", {"is_active": True})

        active = db_session.query(BrandProfile).filter(BrandProfile.is_active.is_(True)).all()
        assert [b.slug for b in active] == ["beta"]

    def test_create_brand_derives_slug(self, db_session):
        brand = brand_service.create_brand({"name": "Gamma Print & Co"})
        assert brand.slug == "gamma-print-co"
        assert brand.is_active is False


class TestActivateRoute:

    def test_missing_slug_is_400(self, client, db_session, staff_headers):
        response = client.post("/api/brand-profiles/activate", json={}, headers=staff_headers)
        assert response.status_code == 400

    def test_unknown_slug_is_404(self, client, db_session, staff_headers):
        response = client.post("/api/brand-profiles/activate", json={"slug": "nope"}, headers=staff_headers)
        assert response.status_code == 404

    def test_out_of_scope_is_403(self, client, db_session, staff_headers, brand_beta):
        response = client.post("/api/brand-profiles/activate", json={"slug": "beta"}, headers=staff_headers)
        assert response.status_code == 403

    def test_in_scope_sets_http_only_cookie(self, client, db_session, admin_headers, brand_acme, brand_beta):
        response = client.post("/api/brand-profiles/activate", json={"slug": "beta"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json["data"]["slug"] == "beta"
        cookie = response.headers["Set-Cookie"]
        assert "active_brand_slug=beta" in cookie
        assert "HttpOnly" in cookie

        # No database state changes
        assert db_session.query(BrandProfile).filter_by(slug="acme").one().is_active is True

    def test_cookie_drives_active_brand(self, client, db_session, admin_headers, brand_acme, brand_beta):
        client.set_cookie("active_brand_slug", "beta")
        response = client.get("/api/brand-profiles/active", headers=admin_headers)

        assert response.status_code == 200
        assert response.json["data"]["slug"] == "beta"


class TestDefaultBrand:

    def test_set_default_brand_requires_access(self, client, db_session, staff_user, staff_headers, brand_beta):
        response = client.put(
            "/api/users/me/default-brand", json={"slug": "beta"}, headers=staff_headers
        )
        assert response.status_code == 403
        assert db_session.get(User, staff_user.id).default_brand_profile_id is None
