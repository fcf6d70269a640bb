import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from errors import NotificationNotFoundError
from models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Persists user-facing notifications.

    send() and send_all() are fire-and-forget: they commit on their own and a
    storage failure is logged, never raised into the workflow that triggered
    them.
    """

    def __init__(self, db: Session):
        self.db = db

    def send(self, user_id: str, message: str, type: str = "system") -> Optional[Notification]:
        sent = self.send_all([(user_id, message, type)])
        return sent[0] if sent else None

    def send_all(self, entries: Iterable[Tuple[str, str, str]]) -> List[Notification]:
        """Store (user_id, message, type) entries in a single commit."""
        notifications = [Notification(user_id=user_id, message=message, type=type) for user_id, message, type in entries]
        if not notifications:
            return []

        try:
            self.db.add_all(notifications)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error storing {len(notifications)} notifications: {e}")
            return []

        for notification in notifications:
            logger.info(f"Notification {notification.id} sent to user {notification.user_id}")
        return notifications

    def list_for_user(self, user_id: str) -> List[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .all()
        )

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise NotificationNotFoundError(notification_id)

        notification.read = True
        self.db.commit()
        return notification
