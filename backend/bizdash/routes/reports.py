# Overview: Flask API routes for reports.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response
from ..permissions import Action, Module
from ..services import reporting_service
from ..validation import optional_datetime, optional_int, parse_id_list


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales-purchases")
@require_auth
@require_brand_access
@require_permission(Module.REPORTING, Action.VIEW)
def sales_purchases():
    """?brandIds=1,2&dateFrom=&dateTo= ; brands outside the caller's scope are dropped."""
    try:
        report = reporting_service.sales_purchases_summary(
            g.tenant,
            requested_brand_ids=parse_id_list(request.args.get("brandIds"), "brandIds"),
            date_from=optional_datetime(request.args, "dateFrom"),
            date_to=optional_datetime(request.args, "dateTo"),
        )
        return jsonify({"success": True, "data": report}), 200
    except AppError as exc:
        return error_response(exc)


@reports_bp.get("/stock-summary")
@require_auth
@require_brand_access
@require_permission(Module.REPORTING, Action.VIEW)
def stock_summary():
    """?brandIds=1,2&productId&dateFrom&dateTo"""
    try:
        report = reporting_service.stock_summary(
            g.tenant,
            requested_brand_ids=parse_id_list(request.args.get("brandIds"), "brandIds"),
            product_id=optional_int(request.args, "productId"),
            date_from=optional_datetime(request.args, "dateFrom"),
            date_to=optional_datetime(request.args, "dateTo"),
        )
        return jsonify({"success": True, "data": report}), 200
    except AppError as exc:
        return error_response(exc)
