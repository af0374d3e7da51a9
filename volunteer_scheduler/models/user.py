"""
User model - volunteers, team leaders and administrators
"""
from datetime import datetime


def create_user_model(db):
    """Factory function to create User model with db instance"""

    class User(db.Model):
        """
        A person who can be scheduled

        Volunteers, leaders and admins share this table; ``role`` controls
        what the (external) authentication layer lets them do.
        """
        __tablename__ = 'users'

        ROLES = ('volunteer', 'leader', 'admin')

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        username = db.Column(db.String(80), unique=True, nullable=False)
        password = db.Column(db.String(255), nullable=False)
        name = db.Column(db.String(120), nullable=False)
        email = db.Column(db.String(120), nullable=False)
        phone = db.Column(db.String(40))
        role = db.Column(db.String(20), nullable=False, default='volunteer')
        avatar = db.Column(db.String(255))
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        __table_args__ = (
            db.Index('idx_users_name', 'name'),
        )

        def to_dict(self):
            """Convert user to dictionary for JSON serialization (password excluded)"""
            return {
                'id': self.id,
                'username': self.username,
                'name': self.name,
                'email': self.email,
                'phone': self.phone,
                'role': self.role,
                'avatar': self.avatar,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
            }

        def __repr__(self):
            return f'<User {self.id}: {self.username}>'

    return User
