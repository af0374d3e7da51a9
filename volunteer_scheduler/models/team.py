"""
Team models - teams, the roles they need filled, and their members
"""
from datetime import datetime


def create_team_models(db):
    """Factory function to create Team, TeamRole and TeamMember models with db instance"""

    class Team(db.Model):
        """A ministry team (worship, media, hospitality...) with an optional leader"""
        __tablename__ = 'teams'

        DEFAULT_COLOR = '#3f51b5'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        name = db.Column(db.String(120), nullable=False)
        description = db.Column(db.Text)
        leader_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
        color = db.Column(db.String(20), nullable=False, default=DEFAULT_COLOR)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        leader = db.relationship('User', foreign_keys=[leader_id], lazy=True)
        roles = db.relationship('TeamRole', backref='team', lazy=True,
                                cascade='all, delete-orphan')
        members = db.relationship('TeamMember', backref='team', lazy=True,
                                  cascade='all, delete-orphan')

        def to_dict(self):
            return {
                'id': self.id,
                'name': self.name,
                'description': self.description,
                'leaderId': self.leader_id,
                'color': self.color,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
            }

        def __repr__(self):
            return f'<Team {self.id}: {self.name}>'

    class TeamRole(db.Model):
        """
        A function within exactly one team (e.g. "Guitar" in Worship)
        """
        __tablename__ = 'team_roles'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
        name = db.Column(db.String(120), nullable=False)
        description = db.Column(db.Text)
        requires_training = db.Column(db.Boolean, nullable=False, default=False)

        __table_args__ = (
            db.Index('idx_team_roles_team', 'team_id'),
        )

        def to_dict(self):
            return {
                'id': self.id,
                'teamId': self.team_id,
                'name': self.name,
                'description': self.description,
                'requiresTraining': self.requires_training,
            }

        def __repr__(self):
            return f'<TeamRole {self.id}: {self.name} (team {self.team_id})>'

    class TeamMember(db.Model):
        """
        Membership of a volunteer in a team

        ``role_ids`` lists the team roles the volunteer is able to perform.
        """
        __tablename__ = 'team_members'

        user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
        team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True)
        role_ids = db.Column(db.JSON, nullable=False, default=list)
        is_trainee = db.Column(db.Boolean, nullable=False, default=False)
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        joined_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        user = db.relationship('User', backref='memberships', lazy=True)

        def to_dict(self):
            return {
                'userId': self.user_id,
                'teamId': self.team_id,
                'roleIds': list(self.role_ids or []),
                'isTrainee': self.is_trainee,
                'isActive': self.is_active,
                'joinedAt': self.joined_at.isoformat() if self.joined_at else None,
            }

        def __repr__(self):
            return f'<TeamMember user {self.user_id} in team {self.team_id}>'

    return Team, TeamRole, TeamMember
