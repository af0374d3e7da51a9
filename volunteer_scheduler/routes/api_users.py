"""
Users API Blueprint
Volunteer profiles and per-user views (teams, assignments, availability,
notifications)
"""
from flask import Blueprint, jsonify, current_app, request

from volunteer_scheduler.error_handlers import (
    ResourceNotFoundException,
    handle_errors,
    with_db_transaction,
)
from volunteer_scheduler.models import get_models
from volunteer_scheduler.services.assignment_store import SqlAssignmentStore
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body

users_api_bp = Blueprint('users_api', __name__, url_prefix='/api/users')

USER_ROLES = ('volunteer', 'leader', 'admin')


def _get_user(user_id):
    db = current_app.extensions['sqlalchemy']
    user = db.session.get(get_models()['User'], user_id)
    if user is None:
        raise ResourceNotFoundException(f"User {user_id} not found")
    return user


@users_api_bp.route('', methods=['GET'])
@handle_errors
def list_users():
    """List users, optionally filtered by ?role="""
    User = get_models()['User']
    query = User.query
    role = request.args.get('role')
    if role:
        query = query.filter(User.role == role)
    return jsonify([u.to_dict() for u in query.order_by(User.name, User.id).all()])


@users_api_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_user():
    db = current_app.extensions['sqlalchemy']
    User = get_models()['User']
    data = get_json_body()

    fields = FieldErrors(data)
    username = fields.string('username', required=True, max_length=80)
    password = fields.string('password', required=True)
    name = fields.string('name', required=True, max_length=120)
    email = fields.string('email', required=True, max_length=120)
    phone = fields.string('phone', max_length=40)
    role = fields.choice('role', USER_ROLES, default='volunteer')
    avatar = fields.string('avatar')
    if email and '@' not in email:
        fields.add('email', 'Invalid email address')
    if username and User.query.filter_by(username=username).first():
        fields.add('username', 'Username already taken')
    fields.raise_if_any()

    user = User(username=username, password=password, name=name, email=email,
                phone=phone, role=role, avatar=avatar)
    db.session.add(user)
    db.session.flush()
    current_app.logger.info(f"Created user {user.id} ({username})")
    return jsonify(user.to_dict()), 201


@users_api_bp.route('/<int:user_id>', methods=['GET'])
@handle_errors
def get_user(user_id):
    return jsonify(_get_user(user_id).to_dict())


@users_api_bp.route('/<int:user_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_user(user_id):
    user = _get_user(user_id)
    data = get_json_body()

    fields = FieldErrors(data)
    updates = {
        'name': fields.string('name', max_length=120),
        'email': fields.string('email', max_length=120),
        'phone': fields.string('phone', max_length=40),
        'role': fields.choice('role', USER_ROLES),
        'avatar': fields.string('avatar'),
        'password': fields.string('password'),
    }
    if updates['email'] and '@' not in updates['email']:
        fields.add('email', 'Invalid email address')
    fields.raise_if_any()

    for attr, value in updates.items():
        if value is not None:
            setattr(user, attr, value)
    return jsonify(user.to_dict())


@users_api_bp.route('/<int:user_id>/teams', methods=['GET'])
@handle_errors
def get_user_teams(user_id):
    """Teams the user belongs to, with the membership (roles, trainee flag)"""
    _get_user(user_id)
    models = get_models()
    Team, TeamMember = models['Team'], models['TeamMember']
    rows = (
        Team.query.join(TeamMember, TeamMember.team_id == Team.id)
        .filter(TeamMember.user_id == user_id)
        .with_entities(Team, TeamMember)
        .order_by(Team.name)
        .all()
    )
    return jsonify([dict(team.to_dict(), membership=member.to_dict()) for team, member in rows])


@users_api_bp.route('/<int:user_id>/assignments', methods=['GET'])
@handle_errors
def get_user_assignments(user_id):
    _get_user(user_id)
    db = current_app.extensions['sqlalchemy']
    store = SqlAssignmentStore(db.session, get_models())
    records = sorted(store.get_assignments_by_volunteer(user_id),
                     key=lambda r: (r.occurrence.starts_at, r.detail_id))
    return jsonify([r.to_dict() for r in records])


@users_api_bp.route('/<int:user_id>/availability', methods=['GET'])
@handle_errors
def get_user_availability(user_id):
    _get_user(user_id)
    AvailabilityRule = get_models()['AvailabilityRule']
    rules = AvailabilityRule.query.filter_by(user_id=user_id).order_by(AvailabilityRule.id).all()
    return jsonify([r.to_dict() for r in rules])


@users_api_bp.route('/<int:user_id>/notifications', methods=['GET'])
@handle_errors
def get_user_notifications(user_id):
    _get_user(user_id)
    Notification = get_models()['Notification']
    notifications = (
        Notification.query.filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )
    return jsonify([n.to_dict() for n in notifications])


@users_api_bp.route('/<int:user_id>/unread-notifications', methods=['GET'])
@handle_errors
def get_user_unread_notifications(user_id):
    _get_user(user_id)
    Notification = get_models()['Notification']
    notifications = (
        Notification.query.filter_by(user_id=user_id, is_read=False)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )
    return jsonify([n.to_dict() for n in notifications])
