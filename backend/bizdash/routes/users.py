# Overview: Flask API routes for user administration.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_owner, require_permission
from ..errors import AppError, ValidationError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import auth_service, brand_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.VIEW)
def list_users():
    users = auth_service.list_users()
    return jsonify({"success": True, "data": [u.to_dict() for u in users]}), 200


@users_bp.post("/<int:user_id>/approve")
@require_auth
@require_owner
def approve_user(user_id: int):
    try:
        user = auth_service.approve_user(user_id, actor_user_id=g.current_user.id)
        return jsonify({"success": True, "data": user.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to approve user")
        return internal_error_response()


@users_bp.post("/<int:user_id>/roles")
@require_auth
@require_owner
def change_user_role(user_id: int):
    """Body: {role, action: "add" | "remove"}."""
    try:
        data = request.get_json(silent=True) or {}
        action = data.get("action", "add")
        if action == "add":
            user = auth_service.assign_role(user_id, data.get("role"), actor_user_id=g.current_user.id)
        elif action == "remove":
            user = auth_service.remove_role(user_id, data.get("role"), actor_user_id=g.current_user.id)
        else:
            raise ValidationError("action must be 'add' or 'remove'")
        return jsonify({"success": True, "data": user.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to change user role")
        return internal_error_response()


@users_bp.put("/me/default-brand")
@require_auth
def set_my_default_brand():
    try:
        data = request.get_json(silent=True) or {}
        user = brand_service.set_default_brand(g.tenant, data.get("slug"))
        return jsonify({"success": True, "data": user.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to set default brand")
        return internal_error_response()
