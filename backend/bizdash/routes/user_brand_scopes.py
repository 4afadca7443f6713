# Overview: Flask API routes for user brand scopes (owner-managed grants).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_owner, require_permission
from ..errors import AppError, ValidationError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import brand_scope_service
from ..validation import optional_int, parse_bool, require_int


user_brand_scopes_bp = Blueprint("user_brand_scopes", __name__, url_prefix="/api/user-brand-scopes")


@user_brand_scopes_bp.get("")
@require_auth
@require_permission(Module.SYSTEM_USER, Action.VIEW)
def list_user_brand_scopes():
    try:
        user_id = optional_int(request.args, "userId")
        scopes = brand_scope_service.list_scopes(user_id)
        return jsonify({"success": True, "data": [s.to_dict() for s in scopes]}), 200
    except AppError as exc:
        return error_response(exc)


@user_brand_scopes_bp.post("")
@require_auth
@require_owner
def set_user_brand_scopes():
    """Body: {userId, brands: [slug...], isBrandAdmin, replaceAll (default true)}."""
    try:
        data = request.get_json(silent=True) or {}
        brands = data.get("brands")
        if not isinstance(brands, list):
            raise ValidationError("brands must be a list of slugs")
        scopes = brand_scope_service.set_user_scopes(
            user_id=require_int(data, "userId"),
            brand_slugs=brands,
            is_brand_admin=parse_bool(data.get("isBrandAdmin", False)),
            replace_all=parse_bool(data.get("replaceAll", True)),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"success": True, "data": [s.to_dict() for s in scopes]}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to set user brand scopes")
        return internal_error_response()


@user_brand_scopes_bp.delete("")
@require_auth
@require_owner
def delete_user_brand_scope():
    try:
        data = dict(request.args)
        data.update(request.get_json(silent=True) or {})
        brand_slug = data.get("brandSlug")
        if not brand_slug:
            raise ValidationError("brandSlug is required")
        removed = brand_scope_service.revoke_scope(
            user_id=require_int(data, "userId"),
            brand_slug=brand_slug,
            actor_user_id=g.current_user.id,
        )
        return jsonify({"success": True, "data": {"removed": removed}}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to delete user brand scope")
        return internal_error_response()
