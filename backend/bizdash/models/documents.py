from __future__ import annotations

from ..extensions import db


class DocumentSequence(db.Model):
    """
    Per-(kind, period) numbering counter.

    period_key is "2025" for yearly kinds and "202510" for monthly ones.
    last_value is the last sequence number handed out; rows are seeded from
    the count of existing documents the first time a period is allocated.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_kind", "period_key", name="uq_document_sequences_kind_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_kind = db.Column(db.String(32), nullable=False)
    period_key = db.Column(db.String(16), nullable=False)
    last_value = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )
