# Overview: Activity log recording (through the outbox) and querying.

from __future__ import annotations

from datetime import datetime

from flask import has_request_context, request
from sqlalchemy import or_

from ..extensions import db
from ..models import ActivityLog
from ..time_utils import to_utc_z, utcnow
from . import outbox_service


def client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


def record(
    *,
    user_id: int | None,
    action: str,
    entity: str | None = None,
    entity_id=None,
    metadata: dict | None = None,
):
    """
    Queue an activity entry. Never raises.

    Request ip and user agent are captured here, while the request is still
    available; delivery may happen later.
    """
    meta = dict(metadata or {})
    if has_request_context():
        meta.setdefault("ip", client_ip())
        meta.setdefault("userAgent", request.headers.get("User-Agent"))

    return outbox_service.enqueue(outbox_service.TOPIC_ACTIVITY, {
        "userId": user_id,
        "action": action,
        "entity": entity,
        "entityId": str(entity_id) if entity_id is not None else None,
        "metadata": meta,
        "occurredAt": to_utc_z(utcnow()),
    })


def list_activity(
    *,
    page: int = 1,
    page_size: int = 20,
    action: str | None = None,
    entity: str | None = None,
    user_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    q: str | None = None,
) -> dict:
    page = max(1, page)
    page_size = min(max(1, page_size), 200)

    query = db.session.query(ActivityLog)
    if action:
        query = query.filter(ActivityLog.action == action)
    if entity:
        query = query.filter(ActivityLog.entity == entity)
    if user_id is not None:
        query = query.filter(ActivityLog.user_id == user_id)
    if date_from:
        query = query.filter(ActivityLog.created_at >= date_from)
    if date_to:
        query = query.filter(ActivityLog.created_at <= date_to)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(ActivityLog.action.ilike(like), ActivityLog.entity.ilike(like)))

    total = query.count()
    items = (
        query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [item.to_dict() for item in items],
        "page": page,
        "pageSize": page_size,
        "total": total,
    }
