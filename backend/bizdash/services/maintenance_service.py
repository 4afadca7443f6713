# Overview: Service-layer operations for maintenance; scheduled cleanup jobs.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import OutboxEvent
from ..time_utils import utcnow
from . import activity_service
from .invoice_service import hard_delete_soft_deleted


def purge_soft_deleted_invoices(*, retention_days: int = 30) -> int:
    """Hard-delete invoices (all brands) soft-deleted more than retention_days ago."""
    deleted = hard_delete_soft_deleted(utcnow() - timedelta(days=retention_days))
    activity_service.record(
        user_id=None,
        action="INVOICE_PURGE_SOFT_DELETE",
        entity="Invoice",
        metadata={"days": retention_days, "deleted": deleted, "scope": "all-brands"},
    )
    return deleted


def cleanup_dispatched_outbox(*, retention_days: int = 14) -> int:
    """Delete DISPATCHED outbox events older than retention_days. FAILED rows are kept."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(OutboxEvent).filter(
        OutboxEvent.status == "DISPATCHED",
        OutboxEvent.dispatched_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
