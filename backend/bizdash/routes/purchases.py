# Overview: Flask API routes for direct purchases.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import numbering_service, purchase_service
from ..services.numbering_service import DocumentKind
from ..validation import optional_datetime, optional_int


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("/direct")
@require_auth
@require_brand_access
@require_permission(Module.PURCHASE_ORDER, Action.VIEW)
def list_direct_purchases():
    try:
        purchases = purchase_service.list_purchases(
            g.tenant,
            brand_id=optional_int(request.args, "brandId"),
            date_from=optional_datetime(request.args, "dateFrom"),
            date_to=optional_datetime(request.args, "dateTo"),
        )
        return jsonify({"success": True, "data": [p.to_dict() for p in purchases]}), 200
    except AppError as exc:
        return error_response(exc)


@purchases_bp.post("/direct")
@require_auth
@require_brand_access
@require_permission(Module.PURCHASE_ORDER, Action.CREATE)
def create_direct_purchase():
    try:
        purchase = purchase_service.create_purchase(g.tenant, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": purchase.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create direct purchase")
        return internal_error_response()


@purchases_bp.get("/direct/next-number")
@require_auth
@require_brand_access
@require_permission(Module.PURCHASE_ORDER, Action.VIEW)
def next_direct_purchase_number():
    """PL-yyyymm-nnnn for the month of ?date (default: now)."""
    try:
        period = optional_datetime(request.args, "date")
        number = numbering_service.next_number(DocumentKind.PURCHASE_DIRECT, period)
        return jsonify({"success": True, "data": {"number": number}}), 200
    except AppError as exc:
        return error_response(exc)


@purchases_bp.post("/direct/<int:purchase_id>/receive")
@require_auth
@require_brand_access
@require_permission(Module.PURCHASE_ORDER, Action.EDIT)
def receive_direct_purchase(purchase_id: int):
    """Idempotent; a purchase that is already Received comes back unchanged."""
    try:
        purchase, received_now = purchase_service.receive_purchase(g.tenant, purchase_id)
        return jsonify({
            "success": True,
            "data": purchase.to_dict(),
            "message": "Purchase received" if received_now else "Purchase was already received",
        }), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to receive direct purchase")
        return internal_error_response()
