# backend/bizdash/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Signing key for the auth_token JWT; falls back to SECRET_KEY
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", "7"))

    # SQLite DB stored in backend/instance/bizdash.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///bizdash.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cookies
    AUTH_COOKIE_NAME = "auth_token"
    ACTIVE_BRAND_COOKIE_NAME = "active_brand_slug"
    ACTIVE_BRAND_COOKIE_DAYS = int(os.environ.get("ACTIVE_BRAND_COOKIE_DAYS", "30"))
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", os.environ.get("FLASK_ENV") == "production")

    # Document numbering
    SALES_ORDER_NUMBER_ATTEMPTS = int(os.environ.get("SALES_ORDER_NUMBER_ATTEMPTS", "8"))
    DOCUMENT_NUMBER_RETRIES = int(os.environ.get("DOCUMENT_NUMBER_RETRIES", "3"))

    # Soft-deleted invoices older than this are purged
    INVOICE_PURGE_RETENTION_DAYS = int(os.environ.get("INVOICE_PURGE_RETENTION_DAYS", "30"))

    # Activity / notification outbox
    OUTBOX_MAX_ATTEMPTS = int(os.environ.get("OUTBOX_MAX_ATTEMPTS", "5"))
    OUTBOX_BACKOFF_SECONDS = int(os.environ.get("OUTBOX_BACKOFF_SECONDS", "30"))
    OUTBOX_DISPATCH_ON_REQUEST = _env_bool("OUTBOX_DISPATCH_ON_REQUEST", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
