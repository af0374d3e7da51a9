"""
Notification model - in-app messages for volunteers and leaders
"""
from datetime import datetime


def create_notification_model(db):
    """Factory function to create Notification model with db instance"""

    class Notification(db.Model):
        __tablename__ = 'notifications'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
        type = db.Column(db.String(50), nullable=False)
        title = db.Column(db.String(200), nullable=False)
        message = db.Column(db.Text, nullable=False)
        related_id = db.Column(db.Integer)
        is_read = db.Column(db.Boolean, nullable=False, default=False)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        __table_args__ = (
            db.Index('idx_notifications_user_read', 'user_id', 'is_read'),
        )

        def to_dict(self):
            return {
                'id': self.id,
                'userId': self.user_id,
                'type': self.type,
                'title': self.title,
                'message': self.message,
                'relatedId': self.related_id,
                'isRead': self.is_read,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
            }

        def __repr__(self):
            return f'<Notification {self.id} for user {self.user_id}: {self.type}>'

    return Notification
