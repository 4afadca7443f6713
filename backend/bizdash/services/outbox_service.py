# Overview: Outbox for best-effort side effects (activity log, notifications) with retry and backoff.

"""
Outbox

Request handlers never write ActivityLog or Notification rows directly.
They enqueue an OutboxEvent (its own commit, failures logged and
swallowed) and a dispatcher delivers it later:

- eagerly, from an after_request hook, when OUTBOX_DISPATCH_ON_REQUEST is set
- from `flask outbox dispatch` (cron / worker)

A failed delivery is rolled back, its attempt counter bumped and
next_attempt_at pushed out by OUTBOX_BACKOFF_SECONDS * 2^(attempts-1).
After OUTBOX_MAX_ATTEMPTS the event is parked as FAILED.

enqueue() commits the session: call it only after the business
transaction has committed.
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app, g, has_app_context, has_request_context
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ActivityLog, Notification, OutboxEvent, Role, User, UserBrandScope, UserRole
from ..time_utils import parse_iso_datetime, utcnow


TOPIC_ACTIVITY = "activity"
TOPIC_NOTIFY_USERS = "notification.users"
TOPIC_NOTIFY_ROLE = "notification.role"

STATUS_PENDING = "PENDING"
STATUS_DISPATCHED = "DISPATCHED"
STATUS_FAILED = "FAILED"

NOTIFICATION_TYPES = ("info", "success", "warning", "error")


class OutboxError(Exception):
    """Raised by a handler when an event payload cannot be delivered."""
    pass


def enqueue(topic: str, payload: dict) -> OutboxEvent | None:
    """Store an event. Returns None (and logs) if the write fails."""
    try:
        event = OutboxEvent(topic=topic, payload=payload, status=STATUS_PENDING, next_attempt_at=utcnow())
        db.session.add(event)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Failed to enqueue outbox event %s", topic, exc_info=True)
        return None

    if has_request_context():
        g.outbox_pending = True
    return event


# =============================================================================
# Handlers
# =============================================================================

def _deliver_activity(payload: dict) -> None:
    action = payload.get("action")
    if not action:
        raise OutboxError("activity payload missing action")
    entity_id = payload.get("entityId")
    db.session.add(ActivityLog(
        user_id=payload.get("userId"),
        action=action,
        entity=payload.get("entity"),
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata_json=payload.get("metadata") or {},
        created_at=parse_iso_datetime(payload.get("occurredAt")) or utcnow(),
    ))


def _notification_rows(user_ids, payload: dict) -> None:
    title = payload.get("title")
    message = payload.get("message")
    if not title or not message:
        raise OutboxError("notification payload missing title or message")
    kind = payload.get("type") if payload.get("type") in NOTIFICATION_TYPES else "info"
    for user_id in sorted(set(user_ids)):
        db.session.add(Notification(user_id=user_id, title=title, message=message, type=kind))


def _deliver_user_notifications(payload: dict) -> None:
    user_ids = [int(uid) for uid in payload.get("userIds") or []]
    if user_ids:
        existing = {row[0] for row in db.session.query(User.id).filter(User.id.in_(user_ids)).all()}
        user_ids = [uid for uid in user_ids if uid in existing]
    _notification_rows(user_ids, payload)


def _deliver_role_notifications(payload: dict) -> None:
    """Recipients are resolved now, not at enqueue time."""
    role_name = (payload.get("role") or "").lower()
    if not role_name:
        raise OutboxError("role notification payload missing role")

    query = (
        db.session.query(User.id)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, Role.id == UserRole.role_id)
        .filter(db.func.lower(Role.name) == role_name, User.is_active.is_(True))
    )
    brand_profile_id = payload.get("brandProfileId")
    if brand_profile_id is not None:
        query = query.join(UserBrandScope, UserBrandScope.user_id == User.id).filter(
            UserBrandScope.brand_profile_id == brand_profile_id
        )
    _notification_rows([row[0] for row in query.distinct().all()], payload)


HANDLERS = {
    TOPIC_ACTIVITY: _deliver_activity,
    TOPIC_NOTIFY_USERS: _deliver_user_notifications,
    TOPIC_NOTIFY_ROLE: _deliver_role_notifications,
}


# =============================================================================
# Dispatcher
# =============================================================================

def _record_failure(event_id: int, exc: Exception, now) -> str:
    max_attempts = current_app.config.get("OUTBOX_MAX_ATTEMPTS", 5)
    backoff = current_app.config.get("OUTBOX_BACKOFF_SECONDS", 30)

    event = db.session.get(OutboxEvent, event_id)
    event.attempts += 1
    event.last_error = f"{type(exc).__name__}: {exc}"[:2000]
    if event.attempts >= max_attempts:
        event.status = STATUS_FAILED
        current_app.logger.error(
            "Outbox event %s (%s) failed permanently after %s attempts", event.id, event.topic, event.attempts
        )
    else:
        event.next_attempt_at = now + timedelta(seconds=backoff * (2 ** (event.attempts - 1)))
        current_app.logger.warning(
            "Outbox event %s (%s) failed, attempt %s/%s", event.id, event.topic, event.attempts, max_attempts
        )
    db.session.commit()
    return event.status


def dispatch_pending(*, limit: int = 100, now=None) -> dict:
    """Deliver due PENDING events in id order. Returns counts per outcome."""
    now = now or utcnow()
    event_ids = [
        row[0]
        for row in db.session.query(OutboxEvent.id)
        .filter(OutboxEvent.status == STATUS_PENDING, OutboxEvent.next_attempt_at <= now)
        .order_by(OutboxEvent.id.asc())
        .limit(limit)
        .all()
    ]

    stats = {"dispatched": 0, "retrying": 0, "failed": 0}
    for event_id in event_ids:
        event = db.session.get(OutboxEvent, event_id)
        try:
            handler = HANDLERS.get(event.topic)
            if handler is None:
                raise OutboxError(f"Unknown outbox topic: {event.topic}")
            handler(event.payload or {})
            event.attempts += 1
            event.status = STATUS_DISPATCHED
            event.dispatched_at = utcnow()
            event.last_error = None
            db.session.commit()
            stats["dispatched"] += 1
        except Exception as exc:
            db.session.rollback()
            status = _record_failure(event_id, exc, now)
            stats["failed" if status == STATUS_FAILED else "retrying"] += 1
    return stats


def dispatch_after_request(response):
    """after_request hook: deliver events queued by this request, never touching the response."""
    if not has_app_context() or not g.pop("outbox_pending", False):
        return response
    if not current_app.config.get("OUTBOX_DISPATCH_ON_REQUEST", True):
        return response
    try:
        dispatch_pending()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Outbox dispatch after request failed")
    return response


def requeue_failed() -> int:
    """Move FAILED events back to PENDING with the attempt counter reset."""
    updated = (
        db.session.query(OutboxEvent)
        .filter(OutboxEvent.status == STATUS_FAILED)
        .update(
            {"status": STATUS_PENDING, "attempts": 0, "next_attempt_at": utcnow()},
            synchronize_session=False,
        )
    )
    db.session.commit()
    return updated
