# Overview: Request gate in front of every route; public paths pass, everything else needs a valid token.

from flask import redirect, request, jsonify
from urllib.parse import quote

from .services import token_service


PUBLIC_PREFIXES = (
    "/api/auth/",
    "/health",
    "/signin",
    "/signup",
    "/static/",
    "/favicon.ico",
)


def is_public_path(path: str) -> bool:
    return any(path == p.rstrip("/") or path.startswith(p) for p in PUBLIC_PREFIXES)


def register_gatekeeper(app) -> None:
    @app.before_request
    def gate_request():
        if request.method == "OPTIONS" or is_public_path(request.path):
            return None

        claims = token_service.verify_token(token_service.token_from_request(request))
        if claims:
            return None

        if request.path.startswith("/api/"):
            return jsonify({"success": False, "message": "Authentication required"}), 401
        return redirect(f"/signin?redirect={quote(request.path, safe='')}")
