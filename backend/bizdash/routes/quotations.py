# Overview: Flask API routes for quotations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import numbering_service, quotation_service, sales_order_service
from ..services.numbering_service import DocumentKind
from ..validation import optional_datetime, optional_int, parse_csv, parse_range_days


quotations_bp = Blueprint("quotations", __name__, url_prefix="/api/quotations")


@quotations_bp.get("")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.VIEW)
def list_quotations():
    try:
        quotations = quotation_service.list_quotations(
            g.tenant,
            statuses=parse_csv(request.args.get("status")),
            range_days=parse_range_days(request.args.get("range")),
        )
        return jsonify({"success": True, "data": [q.to_dict(include_items=False) for q in quotations]}), 200
    except AppError as exc:
        return error_response(exc)


@quotations_bp.post("")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.CREATE)
def create_quotation():
    try:
        quotation = quotation_service.create_quotation(g.tenant, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": quotation.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create quotation")
        return internal_error_response()


@quotations_bp.get("/next-number")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.VIEW)
def next_quotation_number():
    """Preview only; ?date=ISO or ?year=yyyy (defaults to now)."""
    try:
        period = optional_datetime(request.args, "date") or optional_int(request.args, "year")
        number = numbering_service.next_number(DocumentKind.QUOTATION, period)
        return jsonify({"success": True, "data": {"number": number}}), 200
    except AppError as exc:
        return error_response(exc)


@quotations_bp.get("/<int:quotation_id>")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.VIEW)
def get_quotation(quotation_id: int):
    try:
        quotation = quotation_service.get_quotation(g.tenant, quotation_id)
        return jsonify({"success": True, "data": quotation.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)


@quotations_bp.put("/<int:quotation_id>")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.EDIT)
def update_quotation(quotation_id: int):
    try:
        quotation = quotation_service.update_quotation(
            g.tenant, quotation_id, request.get_json(silent=True) or {}
        )
        return jsonify({"success": True, "data": quotation.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update quotation")
        return internal_error_response()


@quotations_bp.post("/<int:quotation_id>/send")
@require_auth
@require_brand_access
@require_permission(Module.QUOTATION, Action.EDIT)
def send_quotation(quotation_id: int):
    try:
        quotation = quotation_service.send_quotation(g.tenant, quotation_id)
        return jsonify({"success": True, "data": quotation.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to send quotation")
        return internal_error_response()


@quotations_bp.post("/<int:quotation_id>/convert-to-so")
@require_auth
@require_brand_access
@require_permission(Module.SALES_ORDER, Action.CREATE)
def convert_to_sales_order(quotation_id: int):
    """
    Create or re-sync the quotation's sales order.

    201 on first conversion, 200 on re-sync, 409 when the quotation has not
    changed since the order was last written.
    """
    try:
        order, created = sales_order_service.convert_quotation_to_sales_order(g.tenant, quotation_id)
        message = "Sales order created" if created else "Sales order re-synced from quotation"
        return jsonify({"success": True, "message": message, "data": order.to_dict()}), 201 if created else 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to convert quotation to sales order")
        return internal_error_response()
