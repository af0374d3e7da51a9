"""
Volunteer availability rules
Tracks when volunteers can/cannot serve
"""


def create_availability_rule_model(db):
    """Factory function to create AvailabilityRule model with db instance"""

    class AvailabilityRule(db.Model):
        """
        A recurring or temporary availability window for a volunteer

        ``day_of_week`` uses Sunday = 0 and null means every day. Times are
        ``HH:MM`` strings; a missing time bound is open ended. ``start_date``
        and ``end_date`` restrict the rule to a date window (e.g. a vacation).
        """
        __tablename__ = 'availability_rules'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
        day_of_week = db.Column(db.Integer)
        start_time = db.Column(db.String(5))
        end_time = db.Column(db.String(5))
        is_available = db.Column(db.Boolean, nullable=False, default=False)
        reason = db.Column(db.String(200))
        start_date = db.Column(db.Date)
        end_date = db.Column(db.Date)

        __table_args__ = (
            db.Index('idx_availability_rules_user', 'user_id'),
        )

        def to_dict(self):
            return {
                'id': self.id,
                'userId': self.user_id,
                'dayOfWeek': self.day_of_week,
                'startTime': self.start_time,
                'endTime': self.end_time,
                'isAvailable': self.is_available,
                'reason': self.reason,
                'startDate': self.start_date.isoformat() if self.start_date else None,
                'endDate': self.end_date.isoformat() if self.end_date else None,
            }

        def __repr__(self):
            status = "available" if self.is_available else "unavailable"
            return f'<AvailabilityRule {self.id} user {self.user_id}: {status}>'

    return AvailabilityRule
