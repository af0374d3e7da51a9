"""
Schedule models - a team's roster for one event and its individual slots
"""
from datetime import datetime


def create_schedule_models(db):
    """Factory function to create Schedule and ScheduleDetail models with db instance"""

    class Schedule(db.Model):
        """
        One team's roster for one event

        Each row owns a set of ScheduleDetail slots (one per role position).
        """
        __tablename__ = 'schedules'

        STATUSES = ('draft', 'published')

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
        team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
        status = db.Column(db.String(20), nullable=False, default='draft')
        created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        notes = db.Column(db.Text)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                               onupdate=datetime.utcnow)

        __table_args__ = (
            db.Index('idx_schedules_event', 'event_id'),
            db.Index('idx_schedules_team', 'team_id'),
        )

        team = db.relationship('Team', lazy=True)
        creator = db.relationship('User', foreign_keys=[created_by], lazy=True)
        details = db.relationship('ScheduleDetail', backref='schedule', lazy=True,
                                  cascade='all, delete-orphan')

        def to_dict(self):
            return {
                'id': self.id,
                'eventId': self.event_id,
                'teamId': self.team_id,
                'status': self.status,
                'createdBy': self.created_by,
                'notes': self.notes,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
                'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            }

        def __repr__(self):
            return f'<Schedule {self.id}: Event {self.event_id} / Team {self.team_id}>'

    class ScheduleDetail(db.Model):
        """
        A single assignment slot: one role in one schedule

        ``volunteer_id`` is null while the slot is unfilled.
        """
        __tablename__ = 'schedule_details'

        STATUSES = ('pending', 'confirmed', 'unavailable')

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False)
        role_id = db.Column(db.Integer, db.ForeignKey('team_roles.id', ondelete='CASCADE'), nullable=False)
        volunteer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        status = db.Column(db.String(20), nullable=False, default='pending')
        has_trainee = db.Column(db.Boolean, nullable=False, default=False)
        trainee_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        __table_args__ = (
            db.Index('idx_schedule_details_volunteer', 'volunteer_id'),
            db.Index('idx_schedule_details_schedule', 'schedule_id'),
        )

        role = db.relationship('TeamRole', lazy=True)
        volunteer = db.relationship('User', foreign_keys=[volunteer_id], lazy=True)
        trainee = db.relationship('User', foreign_keys=[trainee_id], lazy=True)

        def to_dict(self):
            return {
                'id': self.id,
                'scheduleId': self.schedule_id,
                'roleId': self.role_id,
                'volunteerId': self.volunteer_id,
                'status': self.status,
                'hasTrainee': self.has_trainee,
                'traineeId': self.trainee_id,
            }

        def __repr__(self):
            return f'<ScheduleDetail {self.id}: role {self.role_id} -> volunteer {self.volunteer_id}>'

    return Schedule, ScheduleDetail
