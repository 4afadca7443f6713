# Overview: Pytest coverage for signup/login, the request gatekeeper and user administration routes.

"""
Authentication Tests

SECURITY TESTS:
- self-service signups cannot sign in until an owner approves them
- login sets an HTTP-only auth_token cookie
- protected API paths answer 401 JSON, page paths redirect to /signin
- tampered and expired tokens are rejected
"""

from datetime import timedelta

import jwt

from bizdash.models import ActivityLog, Notification, User
from bizdash.services import token_service
from bizdash.time_utils import utcnow


class TestSignupAndLogin:

    def test_signup_creates_inactive_user(self, client, db_session, setup_roles, owner_user):
        response = client.post("/api/auth/signup", json={
            "email": "New.Person@Example.com", "password": "Password123!", "name": "New Person",
        })

        assert response.status_code == 201
        user = db_session.query(User).filter_by(email="new.person@example.com").one()
        assert user.is_active is False

        # Owners are told about the pending signup, and so is the new user
        recipients = {n.user_id for n in db_session.query(Notification).all()}
        assert recipients == {owner_user.id, user.id}

    def test_signup_rejects_short_password(self, client, db_session):
        response = client.post("/api/auth/signup", json={"email": "a@b.test", "password": "short"})
        assert response.status_code == 400

    def test_signup_rejects_duplicate_email(self, client, db_session, admin_user):
        response = client.post("/api/auth/signup", json={"email": admin_user.email, "password": "Password123!"})
        assert response.status_code == 409

    def test_pending_user_cannot_login(self, client, db_session):
        client.post("/api/auth/signup", json={"email": "wait@bizdash.test", "password": "Password123!"})

        response = client.post("/api/auth/login", json={"email": "wait@bizdash.test", "password": "Password123!"})
        assert response.status_code == 401

    def test_login_sets_http_only_cookie(self, client, db_session, admin_user):
        response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "Password123!"})

        assert response.status_code == 200
        assert response.json["data"]["email"] == admin_user.email
        cookie = response.headers["Set-Cookie"]
        assert cookie.startswith("auth_token=")
        assert "HttpOnly" in cookie

        # Cookie alone authenticates follow-up requests
        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json["data"]["roles"] == ["admin"]

    def test_login_is_recorded_after_request(self, client, db_session, admin_user):
        client.post("/api/auth/login", json={"email": admin_user.email, "password": "Password123!"})

        actions = [a.action for a in db_session.query(ActivityLog).all()]
        assert "LOGIN" in actions

    def test_wrong_password(self, client, db_session, admin_user):
        response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "WrongPass123"})
        assert response.status_code == 401

    def test_missing_credentials(self, client, db_session):
        response = client.post("/api/auth/login", json={"email": "x@y.test"})
        assert response.status_code == 400

    def test_approval_unlocks_login(self, client, db_session, owner_headers):
        client.post("/api/auth/signup", json={"email": "later@bizdash.test", "password": "Password123!"})
        pending = db_session.query(User).filter_by(email="later@bizdash.test").one()

        approved = client.post(f"/api/users/{pending.id}/approve", headers=owner_headers)
        assert approved.status_code == 200

        response = client.post("/api/auth/login", json={"email": "later@bizdash.test", "password": "Password123!"})
        assert response.status_code == 200

    def test_only_owner_approves(self, client, db_session, admin_headers, staff_user):
        response = client.post(f"/api/users/{staff_user.id}/approve", headers=admin_headers)
        assert response.status_code == 403

    def test_logout_clears_cookie(self, client, db_session, admin_user):
        client.post("/api/auth/login", json={"email": admin_user.email, "password": "Password123!"})

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert "auth_token=;" in response.headers["Set-Cookie"]


class TestGatekeeper:

    def test_api_without_token_is_401_json(self, client, db_session):
        response = client.get("/api/quotations")

        assert response.status_code == 401
        assert response.json == {"success": False, "message": "Authentication required"}

    def test_page_without_token_redirects(self, client, db_session):
        response = client.get("/dashboard/quotations")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/signin?redirect=%2Fdashboard%2Fquotations")

    def test_public_paths_pass(self, client, db_session):
        assert client.get("/health").status_code in (200, 503)
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_tampered_token_rejected(self, client, db_session, admin_user):
        token = token_service.sign_token(user_id=admin_user.id, email=admin_user.email, roles=["owner"])
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tampered}"})
        assert response.status_code == 401

    def test_expired_token_rejected(self, app, client, db_session, admin_user):
        past = utcnow() - timedelta(days=10)
        token = jwt.encode(
            {"userId": admin_user.id, "email": admin_user.email, "roles": ["admin"], "iat": past,
             "exp": past + timedelta(days=1)},
            app.config["JWT_SECRET"],
            algorithm="HS256",
        )

        assert token_service.verify_token(token) is None
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_deactivated_user_rejected(self, client, db_session, admin_user, admin_headers):
        admin_user.is_active = False
        db_session.commit()

        response = client.get("/api/auth/me", headers=admin_headers)
        assert response.status_code == 401


class TestBrandSwitching:

    def test_set_active_brand_cookie_is_client_readable(self, client, db_session, admin_headers, brand_beta):
        response = client.post("/api/auth/set-active-brand", json={"brandSlug": "beta"}, headers=admin_headers)

        assert response.status_code == 200
        cookie = response.headers["Set-Cookie"]
        assert "active_brand_slug=beta" in cookie
        assert "HttpOnly" not in cookie

    def test_set_active_brand_requires_target(self, client, db_session, admin_headers):
        response = client.post("/api/auth/set-active-brand", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_brand_access_check(self, client, db_session, staff_headers, brand_acme, brand_beta):
        allowed = client.get(f"/api/auth/brand-access-check?brandId={brand_acme.id}", headers=staff_headers)
        denied = client.get(f"/api/auth/brand-access-check?brandId={brand_beta.id}", headers=staff_headers)
        missing = client.get("/api/auth/brand-access-check?brandId=9999", headers=staff_headers)

        assert allowed.status_code == 200
        assert denied.status_code == 403
        assert missing.status_code == 404

    def test_unknown_slug_falls_back_to_active_brand(self, client, db_session, staff_headers, brand_acme, brand_beta):
        response = client.get("/api/auth/brand-access-check?brandSlug=nope", headers=staff_headers)

        assert response.status_code == 200
        assert response.json["data"]["brandProfileId"] == brand_acme.id

    def test_unknown_slug_falls_back_to_cookie(self, client, db_session, staff_headers, brand_acme, brand_beta):
        client.set_cookie("active_brand_slug", "beta")

        response = client.get("/api/auth/brand-access-check?brandSlug=nope", headers=staff_headers)
        assert response.status_code == 403

    def test_nothing_resolves(self, client, db_session, owner_headers):
        response = client.get("/api/auth/brand-access-check?brandSlug=nope", headers=owner_headers)
        assert response.status_code == 404


class TestScopeAdministration:

    def test_owner_grants_and_revokes(self, client, db_session, owner_headers, staff_user, brand_beta):
        granted = client.post(
            "/api/user-brand-scopes",
            json={"userId": staff_user.id, "brands": ["beta"], "replaceAll": False},
            headers=owner_headers,
        )
        assert granted.status_code == 200
        assert sorted(s["brand_slug"] for s in granted.json["data"]) == ["acme", "beta"]

        revoked = client.delete(
            f"/api/user-brand-scopes?userId={staff_user.id}&brandSlug=acme", headers=owner_headers
        )
        assert revoked.json["data"]["removed"] == 1

    def test_admin_cannot_grant(self, client, db_session, admin_headers, staff_user, brand_beta):
        response = client.post(
            "/api/user-brand-scopes", json={"userId": staff_user.id, "brands": ["beta"]}, headers=admin_headers
        )
        assert response.status_code == 403
