# Overview: Pytest coverage for the activity/notification outbox.

"""
Outbox Tests

- enqueue() failures are logged and swallowed
- failed deliveries back off exponentially and park as FAILED after
  OUTBOX_MAX_ATTEMPTS
- role notifications fan out to active holders of the role (and of a scope
  on the brand when one is given)
"""

from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from bizdash.extensions import db
from bizdash.models import ActivityLog, Notification, OutboxEvent
from bizdash.services import activity_service, maintenance_service, notification_service, outbox_service
from bizdash.services.brand_scope_service import upsert_scope
from bizdash.time_utils import utcnow

from conftest import make_user


class TestEnqueue:

    def test_enqueue_failure_is_swallowed(self, db_session, monkeypatch):
        def _broken_commit():
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(db.session, "commit", _broken_commit)

        assert activity_service.record(user_id=None, action="LOGIN") is None

        monkeypatch.undo()
        assert db_session.query(OutboxEvent).count() == 0

    def test_activity_delivered_on_dispatch(self, db_session, admin_user):
        activity_service.record(
            user_id=admin_user.id, action="QUOTATION_CREATE", entity="Quotation", entity_id=7,
            metadata={"number": "QUO-2025-0001"},
        )
        assert db_session.query(ActivityLog).count() == 0

        stats = outbox_service.dispatch_pending()

        assert stats == {"dispatched": 1, "retrying": 0, "failed": 0}
        log = db_session.query(ActivityLog).one()
        assert log.action == "QUOTATION_CREATE"
        assert log.entity_id == "7"
        assert log.metadata_json["number"] == "QUO-2025-0001"
        assert db_session.query(OutboxEvent).one().status == "DISPATCHED"


class TestRetryPolicy:

    def test_backoff_then_failed(self, app, db_session):
        event = outbox_service.enqueue(outbox_service.TOPIC_ACTIVITY, {"entity": "Quotation"})
        max_attempts = app.config["OUTBOX_MAX_ATTEMPTS"]
        backoff = app.config["OUTBOX_BACKOFF_SECONDS"]
        now = utcnow()

        stats = outbox_service.dispatch_pending(now=now)
        assert stats == {"dispatched": 0, "retrying": 1, "failed": 0}

        event = db_session.get(OutboxEvent, event.id)
        assert event.attempts == 1
        assert event.status == "PENDING"
        assert "missing action" in event.last_error
        assert event.next_attempt_at == now + timedelta(seconds=backoff)

        # Not due yet
        assert outbox_service.dispatch_pending(now=now + timedelta(seconds=backoff - 1))["retrying"] == 0

        later = now
        for _ in range(max_attempts - 1):
            later = later + timedelta(days=1)
            outbox_service.dispatch_pending(now=later)

        event = db_session.get(OutboxEvent, event.id)
        assert event.attempts == max_attempts
        assert event.status == "FAILED"

    def test_second_retry_doubles_backoff(self, app, db_session):
        event = outbox_service.enqueue("unknown.topic", {})
        backoff = app.config["OUTBOX_BACKOFF_SECONDS"]
        now = utcnow()

        outbox_service.dispatch_pending(now=now)
        second = now + timedelta(seconds=backoff)
        outbox_service.dispatch_pending(now=second)

        event = db_session.get(OutboxEvent, event.id)
        assert event.attempts == 2
        assert event.next_attempt_at == second + timedelta(seconds=backoff * 2)

    def test_requeue_failed(self, db_session):
        event = outbox_service.enqueue("unknown.topic", {})
        db_session.get(OutboxEvent, event.id).status = "FAILED"
        db_session.commit()

        assert outbox_service.requeue_failed() == 1

        event = db_session.get(OutboxEvent, event.id)
        db_session.refresh(event)
        assert event.status == "PENDING"
        assert event.attempts == 0

    def test_cleanup_keeps_failed_rows(self, db_session):
        old = utcnow() - timedelta(days=30)
        db_session.add_all([
            OutboxEvent(topic="activity", payload={}, status="DISPATCHED", dispatched_at=old),
            OutboxEvent(topic="activity", payload={}, status="FAILED"),
        ])
        db_session.commit()

        assert maintenance_service.cleanup_dispatched_outbox(retention_days=14) == 1
        assert [e.status for e in db_session.query(OutboxEvent).all()] == ["FAILED"]


class TestNotificationFanOut:

    def test_user_notifications_skip_unknown_users(self, db_session, admin_user):
        notification_service.notify_users([admin_user.id, admin_user.id, 9999], "Hello", "World")
        outbox_service.dispatch_pending()

        rows = db_session.query(Notification).all()
        assert [n.user_id for n in rows] == [admin_user.id]
        assert rows[0].type == "info"

    def test_role_fan_out_limited_to_brand_scope(
        self, db_session, setup_roles, password_hash, admin_user, brand_acme
    ):
        scoped_admin = make_user(db_session, "scoped@bizdash.test", password_hash, ["admin"], brands=[brand_acme])
        make_user(db_session, "idle@bizdash.test", password_hash, ["admin"], is_active=False, brands=[brand_acme])

        notification_service.notify_role("admin", "New quotation", "QUO-2025-0001", brand_profile_id=brand_acme.id)
        outbox_service.dispatch_pending()

        assert [n.user_id for n in db_session.query(Notification).all()] == [scoped_admin.id]

    def test_role_fan_out_without_brand(self, db_session, setup_roles, admin_user, owner_user):
        notification_service.notify_role("ADMIN", "Heads up", "Something happened", "warning")
        outbox_service.dispatch_pending()

        rows = db_session.query(Notification).all()
        assert [n.user_id for n in rows] == [admin_user.id]
        assert rows[0].type == "warning"

    def test_recipients_resolved_at_dispatch(self, db_session, admin_user, brand_acme):
        notification_service.notify_role("admin", "Later", "Scope granted after enqueue", brand_profile_id=brand_acme.id)
        upsert_scope(user_id=admin_user.id, brand_profile_id=brand_acme.id)

        outbox_service.dispatch_pending()

        assert db_session.query(Notification).filter_by(title="Later").count() == 1


class TestNotificationRoutes:

    def test_list_and_mark_read(self, client, db_session, admin_user, admin_headers):
        notification_service.notify_user(admin_user.id, "One", "first")
        notification_service.notify_user(admin_user.id, "Two", "second")
        outbox_service.dispatch_pending()

        listed = client.get("/api/notifications", headers=admin_headers)
        assert listed.status_code == 200
        assert listed.json["data"]["unread"] == 2

        first_id = listed.json["data"]["items"][-1]["id"]
        marked = client.patch("/api/notifications", json={"ids": [first_id], "read": True}, headers=admin_headers)
        assert marked.json["data"]["updated"] == 1

        listed = client.get("/api/notifications?unread=true", headers=admin_headers)
        assert [n["title"] for n in listed.json["data"]["items"]] == ["Two"]

    def test_cannot_touch_other_users_notifications(self, client, db_session, owner_user, admin_headers):
        notification_service.notify_user(owner_user.id, "Private", "owner only")
        outbox_service.dispatch_pending()
        owner_note = db_session.query(Notification).one()

        response = client.patch("/api/notifications", json={"ids": [owner_note.id], "read": True}, headers=admin_headers)

        assert response.json["data"]["updated"] == 0

    def test_read_flag_required(self, client, db_session, admin_headers):
        response = client.patch("/api/notifications", json={"ids": [1]}, headers=admin_headers)
        assert response.status_code == 400
