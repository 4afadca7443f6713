# Overview: Flask API routes for roles and their permission matrices.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_owner, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import auth_service


roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.VIEW)
def list_roles():
    return jsonify({"success": True, "data": [r.to_dict() for r in auth_service.list_roles()]}), 200


@roles_bp.post("")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.EDIT)
def create_role():
    """Unknown modules/actions or non-boolean flags in `permissions` are rejected with 400."""
    try:
        data = request.get_json(silent=True) or {}
        role = auth_service.create_role(
            name=data.get("name"),
            description=data.get("description"),
            permissions=data.get("permissions") or {},
            actor_user_id=g.current_user.id,
        )
        return jsonify({"success": True, "data": role.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create role")
        return internal_error_response()


@roles_bp.put("/<int:role_id>")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.EDIT)
def update_role(role_id: int):
    try:
        data = request.get_json(silent=True) or {}
        role = auth_service.update_role(
            role_id,
            description=data.get("description"),
            permissions=data.get("permissions"),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"success": True, "data": role.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update role")
        return internal_error_response()


@roles_bp.post("/reset-default")
@require_auth
@require_owner
def reset_default_roles():
    try:
        roles = auth_service.reset_role_defaults(actor_user_id=g.current_user.id)
        return jsonify({"success": True, "data": [r.to_dict() for r in roles]}), 200
    except Exception:
        current_app.logger.exception("Failed to reset role defaults")
        return internal_error_response()
