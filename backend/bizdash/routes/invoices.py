# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_brand_access, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import invoice_service, numbering_service
from ..services.numbering_service import DocumentKind
from ..validation import coerce_int, optional_datetime, optional_int, parse_csv, parse_range_days


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.VIEW)
def list_invoices():
    try:
        invoices = invoice_service.list_invoices(
            g.tenant,
            statuses=parse_csv(request.args.get("status")),
            range_days=parse_range_days(request.args.get("range")),
        )
        return jsonify({"success": True, "data": [i.to_dict(include_items=False) for i in invoices]}), 200
    except AppError as exc:
        return error_response(exc)


@invoices_bp.post("")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.CREATE)
def create_invoice():
    try:
        invoice = invoice_service.create_invoice(g.tenant, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": invoice.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return internal_error_response()


@invoices_bp.post("/from-sales-order/<int:sales_order_id>")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.CREATE)
def create_invoice_from_sales_order(sales_order_id: int):
    try:
        invoice = invoice_service.create_invoice_from_sales_order(
            g.tenant, sales_order_id, request.get_json(silent=True) or {}
        )
        return jsonify({"success": True, "data": invoice.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create invoice from sales order")
        return internal_error_response()


@invoices_bp.get("/next-number")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.VIEW)
def next_invoice_number():
    try:
        period = optional_datetime(request.args, "date") or optional_int(request.args, "year")
        number = numbering_service.next_number(DocumentKind.INVOICE, period)
        return jsonify({"success": True, "data": {"number": number}}), 200
    except AppError as exc:
        return error_response(exc)


@invoices_bp.post("/purge")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.DELETE)
def purge_invoices():
    """Hard-delete the active brand's invoices soft-deleted more than ?days (default 30) ago."""
    try:
        raw_days = request.args.get("days") or (request.get_json(silent=True) or {}).get("days")
        try:
            days = coerce_int(raw_days, "days") if raw_days not in (None, "") else None
        except AppError:
            days = None
        result = invoice_service.purge_soft_deleted(g.tenant, days)
        return jsonify({"success": True, "data": result}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to purge invoices")
        return internal_error_response()


@invoices_bp.get("/<int:invoice_id>")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.VIEW)
def get_invoice(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(g.tenant, invoice_id)
        return jsonify({"success": True, "data": invoice.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)


@invoices_bp.patch("/<int:invoice_id>")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.EDIT)
def update_invoice(invoice_id: int):
    try:
        data = request.get_json(silent=True) or {}
        invoice = invoice_service.update_invoice_status(g.tenant, invoice_id, data.get("status"))
        return jsonify({"success": True, "data": invoice.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update invoice")
        return internal_error_response()


@invoices_bp.delete("/<int:invoice_id>")
@require_auth
@require_brand_access
@require_permission(Module.INVOICE, Action.DELETE)
def delete_invoice(invoice_id: int):
    """Soft delete; the row is purged later."""
    try:
        invoice = invoice_service.soft_delete_invoice(g.tenant, invoice_id)
        return jsonify({"success": True, "data": {"id": invoice.id, "deleted_at": invoice.to_dict()["deleted_at"]}}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to delete invoice")
        return internal_error_response()
