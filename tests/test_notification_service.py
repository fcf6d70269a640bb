"""Tests for notification storage."""

import pytest

from errors import NotificationNotFoundError
from models import Notification
from notification_service import NotificationService


class TestSend:
    def test_send_stores_unread_notification(self, db, farmer):
        notification = NotificationService(db).send(farmer.id, "Welcome", "system")

        assert notification is not None
        assert notification.read is False
        assert db.query(Notification).count() == 1

    def test_send_all_stores_every_entry(self, db, farmer, dealer):
        sent = NotificationService(db).send_all(
            [(farmer.id, "one", "order"), (dealer.id, "two", "order")]
        )

        assert len(sent) == 2
        assert db.query(Notification).count() == 2

    def test_send_all_with_nothing_to_send(self, db):
        assert NotificationService(db).send_all([]) == []

    def test_storage_failure_is_swallowed(self, db, farmer, monkeypatch):
        def failing_commit():
            raise RuntimeError("database is locked")

        monkeypatch.setattr(db, "commit", failing_commit)

        assert NotificationService(db).send(farmer.id, "lost") is None

        monkeypatch.undo()
        assert db.query(Notification).count() == 0


class TestReadState:
    def test_list_is_per_user(self, db, farmer, dealer):
        service = NotificationService(db)
        service.send(farmer.id, "for farmer")
        service.send(dealer.id, "for dealer")

        assert [n.message for n in service.list_for_user(farmer.id)] == ["for farmer"]

    def test_mark_as_read(self, db, farmer):
        service = NotificationService(db)
        notification = service.send(farmer.id, "hello")

        updated = service.mark_as_read(notification.id, farmer.id)

        assert updated.read is True

    def test_cannot_mark_someone_elses_notification(self, db, farmer, dealer):
        service = NotificationService(db)
        notification = service.send(farmer.id, "hello")

        with pytest.raises(NotificationNotFoundError):
            service.mark_as_read(notification.id, dealer.id)
