# Overview: Flask API routes for auth operations; login, signup, brand switching.

from flask import Blueprint, current_app, g, jsonify, make_response, request

from ..cookies import clear_auth_cookie, set_auth_cookie, set_brand_cookie
from ..decorators import require_auth
from ..errors import AppError, error_response, internal_error_response
from ..services import auth_service, brand_service, permission_service, token_service
from ..validation import optional_int, optional_str


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login():
    """
    Authenticate and set the auth_token cookie.

    Returns 401 for unknown email, wrong password, or an account still
    pending approval (same message for all three).
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.authenticate(data.get("email"), data.get("password"))
        token = token_service.sign_token(user_id=user.id, email=user.email, roles=user.role_names)

        response = make_response(jsonify({"success": True, "data": user.to_dict()}), 200)
        set_auth_cookie(response, token)
        return response
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to log in")
        return internal_error_response()


@auth_bp.post("/logout")
def logout():
    claims = token_service.verify_token(token_service.token_from_request(request))
    auth_service.record_logout(claims.user_id if claims else None)
    response = make_response(jsonify({"success": True, "message": "Logged out"}), 200)
    clear_auth_cookie(response)
    return response


@auth_bp.post("/signup")
def signup():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.signup(
            email=data.get("email"),
            password=data.get("password"),
            name=optional_str(data, "name"),
        )
        return jsonify({
            "success": True,
            "message": "Registration received. Your account is pending approval.",
            "data": user.to_dict(),
        }), 201
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to sign up")
        return internal_error_response()


@auth_bp.get("/me")
@require_auth
def me():
    ctx = g.tenant
    return jsonify({
        "success": True,
        "data": {
            "user": g.current_user.to_dict(),
            "roles": list(ctx.roles),
            "allowed_brand_ids": list(ctx.allowed_brand_ids),
            "active_brand": ctx.active_brand.to_dict() if ctx.active_brand else None,
            "permissions": permission_service.get_user_matrix(g.current_user.id).to_dict(),
        },
    }), 200


@auth_bp.post("/set-active-brand")
@require_auth
def set_active_brand():
    """Client-readable brand cookie (brand switcher); body takes brandId or brandSlug."""
    try:
        data = request.get_json(silent=True) or {}
        brand_id = optional_int(data, "brandId")
        brand_slug = optional_str(data, "brandSlug")
        if brand_id is None and not brand_slug:
            return jsonify({"success": False, "message": "brandId or brandSlug is required"}), 400

        brand = brand_service.check_brand_access(g.tenant, brand_id=brand_id, brand_slug=brand_slug)
        response = make_response(jsonify({"success": True, "data": brand.to_dict()}), 200)
        set_brand_cookie(response, brand.slug, http_only=False)
        return response
    except AppError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to set active brand")
        return internal_error_response()


@auth_bp.get("/brand-access-check")
@require_auth
def brand_access_check():
    try:
        raw_id = request.args.get("brandId") or request.args.get("brandProfileId")
        brand = brand_service.check_brand_access(
            g.tenant,
            brand_id=optional_int({"brandId": raw_id}, "brandId"),
            brand_slug=request.args.get("brandSlug"),
        )
        return jsonify({"success": True, "data": {"allowed": True, "brandProfileId": brand.id}}), 200
    except AppError as exc:
        return error_response(exc)
