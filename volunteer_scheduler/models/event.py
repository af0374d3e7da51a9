"""
Event model - worship services and other occurrences volunteers serve at
"""
from datetime import datetime


def create_event_model(db):
    """Factory function to create Event model with db instance"""

    class Event(db.Model):
        """
        A single service occurrence

        ``date`` is the start timestamp. Together with ``location`` it forms
        the occurrence key used for double-booking detection.
        """
        __tablename__ = 'events'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        name = db.Column(db.String(200), nullable=False)
        date = db.Column(db.DateTime, nullable=False)
        end_time = db.Column(db.DateTime)
        location = db.Column(db.String(200))
        description = db.Column(db.Text)
        is_recurring = db.Column(db.Boolean, nullable=False, default=False)
        recurring_pattern = db.Column(db.JSON)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        __table_args__ = (
            db.Index('idx_events_date', 'date'),
        )

        schedules = db.relationship('Schedule', backref='event', lazy=True,
                                    cascade='all, delete-orphan')

        def to_dict(self):
            return {
                'id': self.id,
                'name': self.name,
                'date': self.date.isoformat() if self.date else None,
                'endTime': self.end_time.isoformat() if self.end_time else None,
                'location': self.location,
                'description': self.description,
                'isRecurring': self.is_recurring,
                'recurringPattern': self.recurring_pattern,
            }

        def __repr__(self):
            return f'<Event {self.id}: {self.name} @ {self.date}>'

    return Event
