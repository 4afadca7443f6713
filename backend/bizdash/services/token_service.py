# Overview: Signed auth token (JWT) issue and verification.

"""
The auth token is a stateless HS256 JWT carried in the auth_token cookie
(or an Authorization: Bearer header). Claims: userId, email, roles, iat, exp.

Roles in the token drive brand-scope resolution for the request; the
database is re-checked for is_active on every request by @require_auth.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta, timezone

import jwt
from flask import current_app

from ..time_utils import utcnow


ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthClaims:
    user_id: int
    email: str
    roles: tuple[str, ...]


def sign_token(*, user_id: int, email: str, roles) -> str:
    now = utcnow().replace(tzinfo=timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "roles": [str(r).lower() for r in roles or []],
        "iat": now,
        "exp": now + timedelta(days=current_app.config.get("JWT_EXPIRES_DAYS", 7)),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def verify_token(token: str | None) -> AuthClaims | None:
    """Claims for a valid token; None when missing, expired, tampered or malformed."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        return None
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        return None
    return AuthClaims(
        user_id=user_id,
        email=payload.get("email") or "",
        roles=tuple(str(r).lower() for r in roles),
    )


def token_from_request(request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "auth_token"))
