# Overview: User notifications; fan-out goes through the outbox, reads hit the table directly.

from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..models import Notification
from . import outbox_service


def notify_users(user_ids: Iterable[int], title: str, message: str, type: str = "info"):
    ids = [int(uid) for uid in user_ids if uid is not None]
    if not ids:
        return None
    return outbox_service.enqueue(outbox_service.TOPIC_NOTIFY_USERS, {
        "userIds": ids,
        "title": title,
        "message": message,
        "type": type,
    })


def notify_user(user_id: int, title: str, message: str, type: str = "info"):
    return notify_users([user_id], title, message, type)


def notify_role(
    role_name: str, title: str, message: str, type: str = "info", brand_profile_id: int | None = None
):
    """With brand_profile_id, only holders of a scope on that brand are notified."""
    return outbox_service.enqueue(outbox_service.TOPIC_NOTIFY_ROLE, {
        "role": role_name,
        "brandProfileId": brand_profile_id,
        "title": title,
        "message": message,
        "type": type,
    })


def list_for_user(user_id: int, *, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    query = db.session.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def unread_count(user_id: int) -> int:
    return (
        db.session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_read(user_id: int, ids: Iterable[int] | None = None, read: bool = True) -> int:
    """Only the caller's own notifications are touched. ids=None means all of them."""
    query = db.session.query(Notification).filter(Notification.user_id == user_id)
    if ids is not None:
        id_list = list(ids)
        if not id_list:
            return 0
        query = query.filter(Notification.id.in_(id_list))
    updated = query.update({"read": bool(read)}, synchronize_session=False)
    db.session.commit()
    return updated
