# Overview: Retry helpers for database operations that can lose a race.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def run_with_unique_retry(func, *, attempts: int | None = None):
    """
    Execute a create operation, retrying when a unique constraint fires.

    func must rebuild its rows from scratch on every call (a fresh document
    number is allocated inside it). The session is rolled back between
    attempts. When every attempt collides the caller gets a ConflictError.
    """
    if attempts is None:
        attempts = current_app.config.get("DOCUMENT_NUMBER_RETRIES", 3)
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except IntegrityError:
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error("Unique constraint collision on create, giving up after %s attempts", attempts)
                raise ConflictError("Document number already in use, please retry")
            current_app.logger.warning(
                "Unique constraint collision on create, retrying (%s/%s)", attempt + 1, attempts
            )
