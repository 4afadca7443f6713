# Overview: Pytest coverage for Quotation -> SalesOrder conversion and re-sync.

"""
Conversion Tests

- First conversion: Confirmed order with a copy of the quotation items, the
  quotation becomes Confirmed
- Immediate repeat: 409, nothing re-copied
- After a quotation edit: items replaced, totals recomputed, order keeps its
  id/number/date
- Out-of-scope quotation: 404
"""

import pytest

from bizdash.errors import ConflictError, NotFoundError
from bizdash.models import ActivityLog, Quotation, SalesOrder, SalesOrderItem
from bizdash.services import outbox_service, quotation_service, sales_order_service
from bizdash.services.tenant_service import resolve_tenant_context

from conftest import make_user


def _ctx(user, cookie=None):
    return resolve_tenant_context(
        user_id=user.id, email=user.email, roles=user.role_names, brand_cookie_slug=cookie
    )


class TestFirstConversion:

    def test_draft_quotation_with_two_items(self, db_session, admin_user, quotation):
        order, created = sales_order_service.convert_quotation_to_sales_order(_ctx(admin_user), quotation.id)

        assert created is True
        assert order.status == "Confirmed"
        assert order.quotation_id == quotation.id
        assert order.brand_profile_id == quotation.brand_profile_id
        assert order.order_number.startswith("SO-")
        assert len(order.items) == 2
        assert [i.product for i in order.items] == ["Banner", "Poster"]
        assert order.total_amount_cents == 550000

        refreshed = db_session.get(Quotation, quotation.id)
        assert refreshed.status == "Confirmed"

    def test_conversion_is_logged(self, db_session, admin_user, quotation):
        sales_order_service.convert_quotation_to_sales_order(_ctx(admin_user), quotation.id)

        outbox_service.dispatch_pending()
        actions = [a.action for a in db_session.query(ActivityLog).all()]
        assert "SALES_ORDER_FROM_QUOTATION" in actions


class TestRepeatConversion:

    def test_immediate_second_conversion_conflicts(self, db_session, admin_user, quotation):
        ctx = _ctx(admin_user)
        order, _ = sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)
        item_ids = sorted(i.id for i in order.items)

        with pytest.raises(ConflictError) as excinfo:
            sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)
        assert excinfo.value.status_code == 409

        order = db_session.get(SalesOrder, order.id)
        assert sorted(i.id for i in order.items) == item_ids
        assert db_session.query(SalesOrder).filter_by(quotation_id=quotation.id).count() == 1

    def test_resync_after_edit_replaces_items(self, db_session, admin_user, quotation):
        ctx = _ctx(admin_user)
        order, _ = sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)
        original = (order.id, order.order_number, order.date)

        quotation_service.update_quotation(ctx, quotation.id, {
            "items": [
                {"product": "Banner", "quantity": 3, "price_cents": 150000},
                {"product": "Sticker", "quantity": 10, "price_cents": 5000},
                {"product": "Flyer", "quantity": 100, "price_cents": 1000},
            ],
        })

        resynced, created = sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)

        assert created is False
        assert (resynced.id, resynced.order_number, resynced.date) == original
        assert len(resynced.items) == 3
        assert sum(i.subtotal_cents for i in resynced.items) == 450000 + 50000 + 100000
        assert resynced.total_amount_cents == 600000
        assert db_session.query(SalesOrderItem).filter_by(sales_order_id=order.id).count() == 3

        # And it is settled again
        with pytest.raises(ConflictError):
            sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)

    def test_confirmed_status_is_kept_on_edit(self, db_session, admin_user, quotation):
        ctx = _ctx(admin_user)
        sales_order_service.convert_quotation_to_sales_order(ctx, quotation.id)

        with pytest.raises(ConflictError):
            quotation_service.update_quotation(ctx, quotation.id, {"status": "Draft"})

        updated = quotation_service.update_quotation(ctx, quotation.id, {"notes": "rev 2"})
        assert updated.status == "Confirmed"


class TestConversionScope:

    def test_out_of_scope_quotation_is_not_found(self, db_session, setup_roles, password_hash, brand_beta, quotation):
        outsider = make_user(db_session, "beta@bizdash.test", password_hash, ["staff"], brands=[brand_beta])
        with pytest.raises(NotFoundError):
            sales_order_service.convert_quotation_to_sales_order(_ctx(outsider), quotation.id)

    def test_empty_scope_is_not_found(self, db_session, setup_roles, password_hash, quotation):
        nobody = make_user(db_session, "nobody@bizdash.test", password_hash, ["staff"])
        with pytest.raises(NotFoundError):
            sales_order_service.convert_quotation_to_sales_order(_ctx(nobody), quotation.id)


class TestConvertRoute:

    def test_created_then_conflict(self, client, db_session, admin_headers, quotation):
        first = client.post(f"/api/quotations/{quotation.id}/convert-to-so", headers=admin_headers)
        assert first.status_code == 201
        assert first.json["success"] is True
        assert first.json["data"]["status"] == "Confirmed"
        assert len(first.json["data"]["items"]) == 2

        second = client.post(f"/api/quotations/{quotation.id}/convert-to-so", headers=admin_headers)
        assert second.status_code == 409
        assert second.json["success"] is False

    def test_resync_returns_200(self, client, db_session, admin_headers, quotation):
        client.post(f"/api/quotations/{quotation.id}/convert-to-so", headers=admin_headers)
        client.put(
            f"/api/quotations/{quotation.id}",
            json={"items": [{"product": "Banner", "quantity": 1, "price_cents": 100}]},
            headers=admin_headers,
        )

        response = client.post(f"/api/quotations/{quotation.id}/convert-to-so", headers=admin_headers)
        assert response.status_code == 200
        assert response.json["data"]["total_amount_cents"] == 100

    def test_unknown_quotation_is_404(self, client, db_session, admin_headers, brand_acme):
        response = client.post("/api/quotations/9999/convert-to-so", headers=admin_headers)
        assert response.status_code == 404
