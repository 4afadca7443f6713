# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .errors import AppError, error_response
from .extensions import db
from .models import User
from .permissions import Action, Module
from .services import brand_service, permission_service, tenant_service, token_service
from .validation import coerce_int


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'tenant')


def _unauthenticated(message: str = "Authentication required"):
    return jsonify({"success": False, "message": message}), 401


def _forbidden(message: str, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), 403


def require_auth(f):
    """
    Require authentication and establish tenant context.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User
    - g.auth: the verified token claims
    - g.tenant: the TenantContext for this request (allowed brands and the
      active brand, resolved once here)

    SECURITY: Returns 401 if:
    - No auth_token cookie or Authorization header
    - Invalid, tampered or expired token
    - User deleted or not (yet) active
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = token_service.verify_token(token_service.token_from_request(request))
        if not claims:
            return _unauthenticated()

        user = db.session.get(User, claims.user_id)
        if not user or not user.is_active:
            return _unauthenticated("Account is inactive or no longer exists")

        cookie_slug = request.cookies.get(current_app.config["ACTIVE_BRAND_COOKIE_NAME"])
        g.current_user = user
        g.auth = claims
        g.tenant = tenant_service.resolve_tenant_context(
            user_id=user.id,
            email=user.email,
            roles=claims.roles,
            brand_cookie_slug=cookie_slug,
        )
        return f(*args, **kwargs)

    return decorated_function


def require_permission(module: Module, action: Action):
    """Require `action` on `module` in the union of the user's role matrices (owner always passes)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return _unauthenticated()

            if not permission_service.user_has_permission(g.current_user.id, module, action):
                current_app.logger.info(
                    "Permission denied: user=%s needs %s.%s on %s",
                    g.current_user.id, module.value, action.value, request.path,
                )
                return _forbidden(
                    "Permission denied", required_permission=f"{module.value}.{action.value}"
                )
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_owner(f):
    """Require the owner role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthenticated()
        if not g.tenant.is_owner:
            return _forbidden("Owner access required")
        return f(*args, **kwargs)
    return decorated_function


def require_brand_access(f):
    """
    Guard for brand-scoped route groups.

    The brand is taken from ?brandId / ?brandProfileId, then ?brandSlug, then
    the brand cookie, then the active brand. 404 when none resolves, 403 when
    the user may not access it.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthenticated()
        try:
            raw_id = request.args.get("brandId") or request.args.get("brandProfileId")
            brand_service.check_brand_access(
                g.tenant,
                brand_id=coerce_int(raw_id, "brandId") if raw_id else None,
                brand_slug=request.args.get("brandSlug"),
            )
        except AppError as exc:
            return error_response(exc)
        return f(*args, **kwargs)
    return decorated_function
