# Overview: Flask API routes for sales orders; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import numbering_service, sales_order_service
from ..services.numbering_service import DocumentKind
from ..validation import optional_datetime, optional_int, parse_csv, parse_range_days


sales_orders_bp = Blueprint("sales_orders", __name__, url_prefix="/api/sales-orders")


@sales_orders_bp.get("")
@require_auth
@require_brand_access
@require_permission(Module.SALES_ORDER, Action.VIEW)
def list_sales_orders():
    try:
        orders = sales_order_service.list_sales_orders(
            g.tenant,
            statuses=parse_csv(request.args.get("status")),
            range_days=parse_range_days(request.args.get("range")),
        )
        return jsonify({"success": True, "data": [o.to_dict(include_items=False) for o in orders]}), 200
    except AppError as exc:
        return error_response(exc)


@sales_orders_bp.post("")
@require_auth
@require_brand_access
@require_permission(Module.SALES_ORDER, Action.CREATE)
def create_sales_order():
    try:
        order = sales_order_service.create_sales_order(g.tenant, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": order.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create sales order")
        return internal_error_response()


@sales_orders_bp.get("/next-number")
@require_auth
@require_brand_access
@require_permission(Module.SALES_ORDER, Action.VIEW)
def next_sales_order_number():
    """500 when every random probe collided."""
    try:
        period = optional_datetime(request.args, "date") or optional_int(request.args, "year")
        number = numbering_service.next_number(DocumentKind.SALES_ORDER, period)
        return jsonify({"success": True, "data": {"number": number}}), 200
    except AppError as exc:
        return error_response(exc)


@sales_orders_bp.get("/<int:sales_order_id>")
@require_auth
@require_brand_access
@require_permission(Module.SALES_ORDER, Action.VIEW)
def get_sales_order(sales_order_id: int):
    try:
        order = sales_order_service.get_sales_order(g.tenant, sales_order_id)
        return jsonify({"success": True, "data": order.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
