# backend/bizdash/routes/system.py
"""
System health endpoint.

Checks database reachability, built-in roles, and the outbox backlog.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import BrandProfile, OutboxEvent, Role, User
from ..permissions import DEFAULT_ROLES
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "users": db.session.query(User).count(),
            "brands": db.session.query(BrandProfile).count(),
        }
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time), "details": details}
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_roles_health() -> dict:
    """Degraded when any built-in role is missing."""
    start_time = time.time()
    try:
        present = {name for (name,) in db.session.query(Role.name).all()}
        missing = [name for name, _ in DEFAULT_ROLES if name not in present]
        if missing:
            return {
                "status": "degraded",
                "latency_ms": _elapsed_ms(start_time),
                "warning": f"Missing roles: {', '.join(missing)}",
            }
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time)}
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Role health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Role lookup error"}


def check_outbox_health() -> dict:
    """Degraded when events have been parked as FAILED."""
    start_time = time.time()
    try:
        pending = db.session.query(OutboxEvent).filter(OutboxEvent.status == "PENDING").count()
        failed = db.session.query(OutboxEvent).filter(OutboxEvent.status == "FAILED").count()
        return {
            "status": "degraded" if failed else "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"pending": pending, "failed": failed},
        }
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Outbox health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Outbox error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()
    checks = {
        "database": check_database_health(),
        "roles": check_roles_health(),
        "outbox": check_outbox_health(),
    }
    statuses = [check["status"] for check in checks.values()]

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
