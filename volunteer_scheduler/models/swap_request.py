"""
Swap request model - a volunteer asking to be replaced in an assignment
"""
from datetime import datetime


def create_swap_request_model(db):
    """Factory function to create SwapRequest model with db instance"""

    class SwapRequest(db.Model):
        """
        Request to hand an assignment to another volunteer

        Lifecycle: pending -> approved | rejected. Both outcomes are final.
        """
        __tablename__ = 'swap_requests'

        STATUSES = ('pending', 'approved', 'rejected')
        RESOLVED_STATUSES = ('approved', 'rejected')

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        requester_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
        schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False)
        schedule_detail_id = db.Column(db.Integer, db.ForeignKey('schedule_details.id', ondelete='CASCADE'), nullable=False)
        replacement_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        status = db.Column(db.String(20), nullable=False, default='pending')
        reason = db.Column(db.Text)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        resolved_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        resolved_at = db.Column(db.DateTime)

        __table_args__ = (
            db.Index('idx_swap_requests_status', 'status'),
            db.Index('idx_swap_requests_requester', 'requester_id'),
        )

        requester = db.relationship('User', foreign_keys=[requester_id], lazy=True)
        replacement = db.relationship('User', foreign_keys=[replacement_id], lazy=True)
        schedule_detail = db.relationship('ScheduleDetail', lazy=True)

        @property
        def is_resolved(self):
            return self.status in self.RESOLVED_STATUSES

        def to_dict(self):
            return {
                'id': self.id,
                'requesterId': self.requester_id,
                'scheduleId': self.schedule_id,
                'scheduleDetailId': self.schedule_detail_id,
                'replacementId': self.replacement_id,
                'status': self.status,
                'reason': self.reason,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
                'resolvedBy': self.resolved_by,
                'resolvedAt': self.resolved_at.isoformat() if self.resolved_at else None,
            }

        def __repr__(self):
            return f'<SwapRequest {self.id}: detail {self.schedule_detail_id} [{self.status}]>'

    return SwapRequest
