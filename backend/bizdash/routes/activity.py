# Overview: Flask API routes for the activity log and the notification inbox.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import AppError, ValidationError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import activity_service, notification_service
from ..validation import optional_datetime, optional_int, parse_bool, parse_id_list


activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity-log")
notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@activity_bp.get("")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.VIEW)
def list_activity():
    try:
        args = request.args
        result = activity_service.list_activity(
            page=optional_int(args, "page") or 1,
            page_size=optional_int(args, "pageSize") or 20,
            action=args.get("action") or None,
            entity=args.get("entity") or None,
            user_id=optional_int(args, "userId"),
            date_from=optional_datetime(args, "dateFrom"),
            date_to=optional_datetime(args, "dateTo"),
            q=args.get("q") or None,
        )
        return jsonify({"success": True, "data": result}), 200
    except AppError as exc:
        return error_response(exc)


@notifications_bp.get("")
@require_auth
def list_notifications():
    user_id = g.current_user.id
    unread_only = parse_bool(request.args.get("unread", False))
    items = notification_service.list_for_user(user_id, unread_only=unread_only)
    return jsonify({
        "success": True,
        "data": {
            "items": [n.to_dict() for n in items],
            "unread": notification_service.unread_count(user_id),
        },
    }), 200


@notifications_bp.patch("")
@require_auth
def mark_notifications():
    """Body: {ids?: [..], read: bool}. Without ids, every notification of the caller."""
    try:
        data = request.get_json(silent=True) or {}
        if "read" not in data:
            raise ValidationError("read is required")
        ids = parse_id_list(data.get("ids"), "ids") if data.get("ids") is not None else None
        updated = notification_service.mark_read(g.current_user.id, ids, parse_bool(data.get("read")))
        return jsonify({"success": True, "data": {"updated": updated}}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update notifications")
        return internal_error_response()
