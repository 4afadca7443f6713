# Overview: Auth and active-brand cookie helpers.

from datetime import timedelta

from flask import current_app


def set_auth_cookie(response, token: str) -> None:
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=int(timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]).total_seconds()),
        httponly=True,
        samesite="Lax",
        secure=current_app.config["COOKIE_SECURE"],
        path="/",
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], path="/")


def set_brand_cookie(response, slug: str, *, http_only: bool) -> None:
    """http_only=False for the client-readable variant used by the brand switcher."""
    response.set_cookie(
        current_app.config["ACTIVE_BRAND_COOKIE_NAME"],
        slug,
        max_age=int(timedelta(days=current_app.config["ACTIVE_BRAND_COOKIE_DAYS"]).total_seconds()),
        httponly=http_only,
        samesite="Lax",
        secure=current_app.config["COOKIE_SECURE"],
        path="/",
    )
