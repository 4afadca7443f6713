# Overview: Flask API routes for the stock-mutation ledger.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response
from ..permissions import Action, Module
from ..services import stock_service
from ..validation import optional_datetime, optional_int


stock_mutations_bp = Blueprint("stock_mutations", __name__, url_prefix="/api/stock-mutations")


@stock_mutations_bp.get("")
@require_auth
@require_brand_access
@require_permission(Module.PRODUCT_STOCK, Action.VIEW)
def list_stock_mutations():
    """?type=IN|OUT|ADJUST&productId&productName&brandId&dateFrom&dateTo&page&pageSize"""
    try:
        args = request.args
        result = stock_service.list_mutations(
            g.tenant,
            brand_id=optional_int(args, "brandId"),
            mutation_type=args.get("type") or None,
            product_id=optional_int(args, "productId"),
            product_name=(args.get("productName") or "").strip() or None,
            date_from=optional_datetime(args, "dateFrom"),
            date_to=optional_datetime(args, "dateTo"),
            page=optional_int(args, "page") or 1,
            page_size=optional_int(args, "pageSize") or 20,
        )
        return jsonify({"success": True, "data": result}), 200
    except AppError as exc:
        return error_response(exc)
