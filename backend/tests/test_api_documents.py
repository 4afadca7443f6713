# Overview: Pytest coverage for the document APIs, reports, health and CLI commands.

from datetime import timedelta

from bizdash.models import ActivityLog, BrandProfile, Invoice, Notification, OutboxEvent, Role, User
from bizdash.services import activity_service, sales_order_service
from bizdash.services.tenant_service import resolve_tenant_context
from bizdash.time_utils import utcnow

from conftest import make_user


class TestQuotationApi:

    def test_create_allocates_number_and_notifies_brand_admins(
        self, client, db_session, setup_roles, password_hash, staff_headers, customer, brand_acme, admin_user
    ):
        acme_admin = make_user(db_session, "acme.admin@bizdash.test", password_hash, ["admin"], brands=[brand_acme])

        response = client.post("/api/quotations", json={
            "customer_id": customer.id,
            "date": "2025-03-01T00:00:00Z",
            "items": [{"product": "Banner", "quantity": 2, "price_cents": 150000}],
        }, headers=staff_headers)

        assert response.status_code == 201
        data = response.json["data"]
        assert data["quotation_number"] == "QUO-2025-0001"
        assert data["status"] == "Draft"
        assert data["brand_profile_id"] == brand_acme.id

        # Fan-out only reaches admins scoped to the brand
        recipients = {n.user_id for n in db_session.query(Notification).all()}
        assert recipients == {acme_admin.id}

    def test_create_requires_items(self, client, db_session, staff_headers, customer):
        response = client.post("/api/quotations", json={"customer_id": customer.id, "items": []}, headers=staff_headers)
        assert response.status_code == 400

    def test_staff_cannot_edit(self, client, db_session, staff_headers, quotation):
        response = client.put(f"/api/quotations/{quotation.id}", json={"notes": "x"}, headers=staff_headers)
        assert response.status_code == 403

    def test_list_is_active_brand_only(self, client, db_session, admin_headers, quotation, brand_beta):
        acme = client.get("/api/quotations", headers=admin_headers)
        client.set_cookie("active_brand_slug", "beta")
        beta = client.get("/api/quotations", headers=admin_headers)

        assert [q["id"] for q in acme.json["data"]] == [quotation.id]
        assert beta.json["data"] == []


class TestInvoiceApi:

    def test_zero_total_invoice_is_paid(self, client, db_session, admin_headers, customer):
        response = client.post("/api/invoices", json={
            "customer_id": customer.id,
            "items": [{"name": "Sample", "quantity": 1, "price_cents": 0}],
        }, headers=admin_headers)

        assert response.status_code == 201
        assert response.json["data"]["status"] == "Paid"
        assert response.json["data"]["invoice_number"].startswith("INV-")

    def test_invoice_from_sales_order(self, client, db_session, admin_user, admin_headers, quotation):
        ctx = resolve_tenant_context(
            user_id=admin_user.id, email=admin_user.email, roles=admin_user.role_names, brand_cookie_slug=None
        )
        order, _ = sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)

        response = client.post(f"/api/invoices/from-sales-order/{order.id}", headers=admin_headers)

        assert response.status_code == 201
        data = response.json["data"]
        assert data["sales_order_id"] == order.id
        assert data["status"] == "Draft"
        assert data["total_amount_cents"] == 550000
        assert [i["name"] for i in data["items"]] == ["Banner", "Poster"]

    def test_admin_cannot_delete(self, client, db_session, admin_headers, customer):
        created = client.post("/api/invoices", json={
            "customer_id": customer.id, "items": [{"name": "A", "quantity": 1, "price_cents": 100}],
        }, headers=admin_headers)

        response = client.delete(f"/api/invoices/{created.json['data']['id']}", headers=admin_headers)
        assert response.status_code == 403

    def test_soft_delete_hides_then_purge_removes(self, client, db_session, owner_headers, customer):
        created = client.post("/api/invoices", json={
            "customer_id": customer.id, "items": [{"name": "A", "quantity": 1, "price_cents": 100}],
        }, headers=owner_headers)
        invoice_id = created.json["data"]["id"]

        deleted = client.delete(f"/api/invoices/{invoice_id}", headers=owner_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/invoices/{invoice_id}", headers=owner_headers).status_code == 404
        assert db_session.get(Invoice, invoice_id) is not None

        # Too recent to purge
        first = client.post("/api/invoices/purge?days=30", headers=owner_headers)
        assert first.json["data"]["deleted"] == 0

        invoice = db_session.get(Invoice, invoice_id)
        invoice.deleted_at = utcnow() - timedelta(days=45)
        db_session.commit()

        second = client.post("/api/invoices/purge", json={"days": 30}, headers=owner_headers)
        assert second.json["data"]["deleted"] == 1
        db_session.expire_all()
        assert db_session.get(Invoice, invoice_id) is None

    def test_purge_invalid_days_uses_default(self, client, db_session, owner_headers, brand_acme):
        response = client.post("/api/invoices/purge?days=abc", headers=owner_headers)

        assert response.status_code == 200
        assert response.json["data"]["days"] == 30

    def test_status_update_validates(self, client, db_session, admin_headers, customer):
        created = client.post("/api/invoices", json={
            "customer_id": customer.id, "items": [{"name": "A", "quantity": 1, "price_cents": 100}],
        }, headers=admin_headers)
        invoice_id = created.json["data"]["id"]

        bad = client.patch(f"/api/invoices/{invoice_id}", json={"status": "Lost"}, headers=admin_headers)
        good = client.patch(f"/api/invoices/{invoice_id}", json={"status": "Sent"}, headers=admin_headers)

        assert bad.status_code == 400
        assert good.json["data"]["status"] == "Sent"


class TestPurchaseApi:

    def test_create_and_list(self, client, db_session, admin_headers, brand_acme):
        created = client.post("/api/purchases/direct", json={
            "supplier_name": "Paper Supplier",
            "date": "2025-10-15T08:00:00Z",
            "items": [{"name": "A4 paper", "quantity": 10, "price_cents": 4500}],
        }, headers=admin_headers)

        assert created.status_code == 201
        assert created.json["data"]["purchase_number"] == "PL-202510-0001"
        assert created.json["data"]["total_cents"] == 45000

        listed = client.get("/api/purchases/direct", headers=admin_headers)
        assert [p["id"] for p in listed.json["data"]] == [created.json["data"]["id"]]

    def test_supplier_required(self, client, db_session, admin_headers, brand_acme):
        response = client.post("/api/purchases/direct", json={
            "items": [{"name": "A4 paper", "quantity": 1, "price_cents": 4500}],
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_explicit_brand_outside_scope_is_forbidden(self, client, db_session, staff_headers, brand_beta):
        response = client.get(f"/api/purchases/direct?brandId={brand_beta.id}", headers=staff_headers)
        assert response.status_code == 403


class TestReports:

    def test_staff_only_sees_scoped_brands(self, client, db_session, staff_headers, brand_acme, brand_beta):
        response = client.get(
            f"/api/reports/sales-purchases?brandIds={brand_acme.id},{brand_beta.id}", headers=staff_headers
        )

        assert response.status_code == 200
        assert [row["brand_slug"] for row in response.json["data"]] == ["acme"]

    def test_owner_sees_requested_brands(self, client, db_session, owner_headers, quotation, admin_user, brand_beta):
        ctx = resolve_tenant_context(
            user_id=admin_user.id, email=admin_user.email, roles=admin_user.role_names, brand_cookie_slug=None
        )
        sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)

        response = client.get("/api/reports/sales-purchases", headers=owner_headers)

        rows = {row["brand_slug"]: row for row in response.json["data"]}
        assert set(rows) == {"acme", "beta"}
        assert rows["acme"]["sales_total_cents"] == 550000
        assert rows["acme"]["net_cents"] == 550000
        assert rows["beta"]["sales_count"] == 0


class TestHealth:

    def test_healthy_with_roles(self, client, db_session, setup_roles):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert set(response.json["checks"]) == {"database", "roles", "outbox"}

    def test_degraded_without_roles(self, client, db_session):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json["status"] == "degraded"
        assert "Missing roles" in response.json["checks"]["roles"]["warning"]


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init", "--owner-email", "boss@bizdash.test", "--brand", "Acme Print"])
        assert first.exit_code == 0, first.output
        assert "DONE" in first.output

        owner = db_session.query(User).filter_by(email="boss@bizdash.test").one()
        assert owner.role_names == ["owner"]
        assert db_session.query(Role).count() == 5
        brand = db_session.query(BrandProfile).one()
        assert (brand.slug, brand.is_active) == ("acme-print", True)

        second = runner.invoke(args=["system", "init", "--owner-email", "boss@bizdash.test"])
        assert second.exit_code == 0
        assert "already exists" in second.output
        assert db_session.query(BrandProfile).count() == 1

    def test_outbox_dispatch(self, app, db_session):
        activity_service.record(user_id=None, action="CLI_TEST", entity="System")
        assert db_session.query(OutboxEvent).filter_by(status="PENDING").count() == 1

        result = app.test_cli_runner().invoke(args=["outbox", "dispatch"])

        assert result.exit_code == 0, result.output
        assert "Dispatched 1" in result.output
        assert [a.action for a in db_session.query(ActivityLog).all()] == ["CLI_TEST"]

    def test_scope_grant_unknown_user(self, app, db_session, brand_acme):
        result = app.test_cli_runner().invoke(args=["scopes", "grant", "ghost@bizdash.test", "acme"])

        assert result.exit_code != 0
        assert "User not found" in result.output
