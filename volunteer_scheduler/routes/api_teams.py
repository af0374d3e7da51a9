"""
Teams API Blueprint
Teams, their roles and their members
"""
import re

from flask import Blueprint, jsonify, current_app

from volunteer_scheduler.error_handlers import (
    ResourceNotFoundException,
    ValidationException,
    handle_errors,
    with_db_transaction,
)
from volunteer_scheduler.models import get_models
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body

teams_api_bp = Blueprint('teams_api', __name__, url_prefix='/api')

_COLOR_RE = re.compile(r'^#[0-9a-fA-F]{6}$')


def _get(model_name, pk, label):
    db = current_app.extensions['sqlalchemy']
    row = db.session.get(get_models()[model_name], pk)
    if row is None:
        raise ResourceNotFoundException(f"{label} {pk} not found")
    return row


def _team_fields(data, partial):
    models = get_models()
    db = current_app.extensions['sqlalchemy']
    fields = FieldErrors(data)
    values = {
        'name': fields.string('name', required=not partial, max_length=120),
        'description': fields.string('description'),
        'leader_id': fields.integer('leaderId'),
        'color': fields.string('color'),
    }
    if values['color'] is not None and not _COLOR_RE.match(values['color']):
        fields.add('color', 'Expected a hex colour like #3f51b5')
    if values['leader_id'] is not None and db.session.get(models['User'], values['leader_id']) is None:
        fields.add('leaderId', f"User {values['leader_id']} not found")
    fields.raise_if_any()
    return values


# ----------------------------------------------------------------------
# Teams
# ----------------------------------------------------------------------

@teams_api_bp.route('/teams', methods=['GET'])
@handle_errors
def list_teams():
    Team = get_models()['Team']
    return jsonify([t.to_dict() for t in Team.query.order_by(Team.name, Team.id).all()])


@teams_api_bp.route('/teams', methods=['POST'])
@handle_errors
@with_db_transaction
def create_team():
    db = current_app.extensions['sqlalchemy']
    Team = get_models()['Team']
    values = _team_fields(get_json_body(), partial=False)
    if values['color'] is None:
        values['color'] = Team.DEFAULT_COLOR
    team = Team(**values)
    db.session.add(team)
    db.session.flush()
    current_app.logger.info(f"Created team {team.id} ({team.name})")
    return jsonify(team.to_dict()), 201


@teams_api_bp.route('/teams/<int:team_id>', methods=['GET'])
@handle_errors
def get_team(team_id):
    team = _get('Team', team_id, 'Team')
    result = team.to_dict()
    result['roles'] = [r.to_dict() for r in sorted(team.roles, key=lambda r: r.id)]
    result['memberCount'] = sum(1 for m in team.members if m.is_active)
    return jsonify(result)


@teams_api_bp.route('/teams/<int:team_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_team(team_id):
    team = _get('Team', team_id, 'Team')
    data = get_json_body()
    values = _team_fields(data, partial=True)
    for attr, value in values.items():
        if value is not None:
            setattr(team, attr, value)
    if 'leaderId' in data and data['leaderId'] is None:
        team.leader_id = None
    return jsonify(team.to_dict())


@teams_api_bp.route('/teams/<int:team_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_team(team_id):
    db = current_app.extensions['sqlalchemy']
    team = _get('Team', team_id, 'Team')
    db.session.delete(team)
    current_app.logger.info(f"Deleted team {team_id}")
    return '', 204


# ----------------------------------------------------------------------
# Roles
# ----------------------------------------------------------------------

@teams_api_bp.route('/teams/<int:team_id>/roles', methods=['GET'])
@handle_errors
def list_team_roles(team_id):
    _get('Team', team_id, 'Team')
    TeamRole = get_models()['TeamRole']
    roles = TeamRole.query.filter_by(team_id=team_id).order_by(TeamRole.id).all()
    return jsonify([r.to_dict() for r in roles])


@teams_api_bp.route('/teams/<int:team_id>/roles', methods=['POST'])
@handle_errors
@with_db_transaction
def create_team_role(team_id):
    db = current_app.extensions['sqlalchemy']
    _get('Team', team_id, 'Team')
    TeamRole = get_models()['TeamRole']

    fields = FieldErrors(get_json_body())
    name = fields.string('name', required=True, max_length=120)
    description = fields.string('description')
    requires_training = fields.boolean('requiresTraining', default=False)
    fields.raise_if_any()

    role = TeamRole(team_id=team_id, name=name, description=description,
                    requires_training=requires_training)
    db.session.add(role)
    db.session.flush()
    return jsonify(role.to_dict()), 201


@teams_api_bp.route('/team-roles/<int:role_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_team_role(role_id):
    role = _get('TeamRole', role_id, 'Role')
    data = get_json_body()
    fields = FieldErrors(data)
    name = fields.string('name', max_length=120)
    description = fields.string('description')
    requires_training = fields.boolean('requiresTraining')
    fields.raise_if_any()

    if name is not None:
        role.name = name
    if 'description' in data:
        role.description = description
    if requires_training is not None:
        role.requires_training = requires_training
    return jsonify(role.to_dict())


@teams_api_bp.route('/team-roles/<int:role_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_team_role(role_id):
    db = current_app.extensions['sqlalchemy']
    role = _get('TeamRole', role_id, 'Role')
    db.session.delete(role)
    return '', 204


# ----------------------------------------------------------------------
# Members
# ----------------------------------------------------------------------

def _validate_role_ids(fields, team_id, role_ids):
    if not role_ids:
        return
    TeamRole = get_models()['TeamRole']
    known = {r.id for r in TeamRole.query.filter_by(team_id=team_id).all()}
    unknown = [rid for rid in role_ids if rid not in known]
    if unknown:
        fields.add('roleIds', f"Roles not in team {team_id}: {', '.join(map(str, unknown))}")


@teams_api_bp.route('/teams/<int:team_id>/members', methods=['GET'])
@handle_errors
def list_team_members(team_id):
    _get('Team', team_id, 'Team')
    TeamMember = get_models()['TeamMember']
    members = TeamMember.query.filter_by(team_id=team_id).order_by(TeamMember.user_id).all()
    return jsonify([dict(m.to_dict(), user=m.user.to_dict()) for m in members])


@teams_api_bp.route('/team-members', methods=['POST'])
@handle_errors
@with_db_transaction
def create_team_member():
    db = current_app.extensions['sqlalchemy']
    models = get_models()
    TeamMember = models['TeamMember']

    fields = FieldErrors(get_json_body())
    user_id = fields.integer('userId', required=True)
    team_id = fields.integer('teamId', required=True)
    role_ids = fields.int_list('roleIds') or []
    is_trainee = fields.boolean('isTrainee', default=False)
    is_active = fields.boolean('isActive', default=True)
    fields.raise_if_any()

    if db.session.get(models['User'], user_id) is None:
        fields.add('userId', f'User {user_id} not found')
    if db.session.get(models['Team'], team_id) is None:
        fields.add('teamId', f'Team {team_id} not found')
    else:
        _validate_role_ids(fields, team_id, role_ids)
    fields.raise_if_any()

    if db.session.get(TeamMember, (user_id, team_id)) is not None:
        raise ValidationException(
            'Validation error',
            errors=[{'field': 'userId', 'message': f'User {user_id} is already a member of team {team_id}'}]
        )

    member = TeamMember(user_id=user_id, team_id=team_id, role_ids=role_ids,
                        is_trainee=is_trainee, is_active=is_active)
    db.session.add(member)
    db.session.flush()
    return jsonify(member.to_dict()), 201


@teams_api_bp.route('/team-members/<int:user_id>/<int:team_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_team_member(user_id, team_id):
    member = _get('TeamMember', (user_id, team_id), 'Team member')
    fields = FieldErrors(get_json_body())
    role_ids = fields.int_list('roleIds')
    is_trainee = fields.boolean('isTrainee')
    is_active = fields.boolean('isActive')
    _validate_role_ids(fields, team_id, role_ids)
    fields.raise_if_any()

    if role_ids is not None:
        member.role_ids = role_ids
    if is_trainee is not None:
        member.is_trainee = is_trainee
    if is_active is not None:
        member.is_active = is_active
    return jsonify(member.to_dict())


@teams_api_bp.route('/team-members/<int:user_id>/<int:team_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_team_member(user_id, team_id):
    db = current_app.extensions['sqlalchemy']
    member = _get('TeamMember', (user_id, team_id), 'Team member')
    db.session.delete(member)
    return '', 204
