"""
Notification persistence
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)


class NotificationService:
    """Writes in-app notifications; delivery and templating live elsewhere"""

    def __init__(self, db_session: Session, models: dict):
        self.db = db_session
        self.Notification = models['Notification']

    def notify(
        self,
        user_id: Optional[int],
        type: str,
        title: str,
        message: str,
        related_id: Optional[int] = None
    ):
        """
        Queue a notification row in the current session.

        Returns None without writing when there is no recipient.
        """
        if user_id is None:
            logger.debug(f"Skipping '{type}' notification with no recipient")
            return None

        notification = self.Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            is_read=False,
        )
        self.db.add(notification)
        logger.info(f"Notification '{type}' queued for user {user_id}")
        return notification

    def mark_read(self, notification_id: int):
        notification = self.db.get(self.Notification, notification_id)
        if notification is not None:
            notification.is_read = True
        return notification
