# Overview: Error taxonomy shared by services and routes, plus JSON error rendering.

"""
Application error taxonomy.

Services raise these; routes catch AppError and render it through
error_response(). Anything else that escapes a route is logged and turned
into a generic 500 by the handlers registered in register_error_handlers().

Response contract: {"success": false, "message": "..."} with the status code
carried by the exception class.
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""
    status_code = 500

    def __init__(self, message: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.details = details or {}


class ValidationError(AppError):
    """400-level input problem."""
    status_code = 400


class AuthenticationError(AppError):
    """401: missing or invalid credentials."""
    status_code = 401


class AuthorizationError(AppError):
    """403: authenticated but outside role or brand scope."""
    status_code = 403


class NotFoundError(AppError):
    """404: absent, or excluded by brand scoping (indistinguishable)."""
    status_code = 404


class ConflictError(AppError):
    """409-level business rule conflict (e.g., duplicate email, unchanged re-conversion)."""
    status_code = 409


class UnexpectedError(AppError):
    status_code = 500


class NumberingError(UnexpectedError):
    """Raised when a unique document number could not be produced."""


def error_response(exc: AppError):
    body = {"success": False, "message": exc.message}
    if exc.details:
        body["details"] = exc.details
    return jsonify(body), exc.status_code


def internal_error_response():
    return jsonify({"success": False, "message": "Internal server error"}), 500


def register_error_handlers(app) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        return error_response(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        current_app.logger.exception("Unhandled error")
        return internal_error_response()
