# Overview: Flask API routes for brand profiles; listing, editing and per-user activation.

from flask import Blueprint, current_app, g, jsonify, make_response, request

from ..cookies import set_brand_cookie
from ..decorators import require_auth, require_permission
from ..errors import AppError, error_response, internal_error_response
from ..permissions import Action, Module
from ..services import brand_service


brand_profiles_bp = Blueprint("brand_profiles", __name__, url_prefix="/api/brand-profiles")


@brand_profiles_bp.get("")
@require_auth
@require_permission(Module.TEMPLATE_BRANDING, Action.VIEW)
def list_brand_profiles():
    brands = brand_service.list_brands(g.tenant)
    return jsonify({"success": True, "data": [b.to_dict() for b in brands]}), 200


@brand_profiles_bp.post("")
@require_auth
@require_permission(Module.TEMPLATE_BRANDING, Action.CREATE)
def create_brand_profile():
    try:
        brand = brand_service.create_brand(request.get_json(silent=True) or {}, actor_user_id=g.current_user.id)
        return jsonify({"success": True, "data": brand.to_dict()}), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create brand profile")
        return internal_error_response()


@brand_profiles_bp.get("/active")
@require_auth
def get_active_brand_profile():
    brand = g.tenant.active_brand
    return jsonify({"success": True, "data": brand.to_dict() if brand else None}), 200


@brand_profiles_bp.post("/activate")
@require_auth
def activate_brand_profile():
    """
    Switch the caller's active brand (HTTP-only cookie, 30 days).

    400 missing slug, 404 unknown brand, 403 outside the caller's scope.
    No database state changes.
    """
    try:
        data = request.get_json(silent=True) or {}
        brand = brand_service.activate_brand(g.tenant, data.get("slug"))
        response = make_response(jsonify({"success": True, "data": brand.to_dict()}), 200)
        set_brand_cookie(response, brand.slug, http_only=True)
        return response
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to activate brand")
        return internal_error_response()


@brand_profiles_bp.get("/<slug>")
@require_auth
@require_permission(Module.TEMPLATE_BRANDING, Action.VIEW)
def get_brand_profile(slug: str):
    try:
        brand = brand_service.get_brand_in_scope(g.tenant, slug)
        return jsonify({"success": True, "data": brand.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)


@brand_profiles_bp.patch("/<slug>")
@require_auth
@require_permission(Module.TEMPLATE_BRANDING, Action.EDIT)
def update_brand_profile(slug: str):
    """Setting is_active=true clears the flag on every other brand."""
    try:
        brand = brand_service.update_brand(g.tenant, slug, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": brand.to_dict()}), 200
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update brand profile")
        return internal_error_response()
