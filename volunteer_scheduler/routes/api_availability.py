"""
Availability Rules API Blueprint
"""
from flask import Blueprint, jsonify, current_app

from volunteer_scheduler.error_handlers import (
    ResourceNotFoundException,
    handle_errors,
    with_db_transaction,
)
from volunteer_scheduler.models import get_models
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body

availability_api_bp = Blueprint('availability_api', __name__, url_prefix='/api/availability-rules')


def _get_rule(rule_id):
    db = current_app.extensions['sqlalchemy']
    rule = db.session.get(get_models()['AvailabilityRule'], rule_id)
    if rule is None:
        raise ResourceNotFoundException(f"Availability rule {rule_id} not found")
    return rule


def _rule_fields(data, partial):
    fields = FieldErrors(data)
    values = {
        'user_id': fields.integer('userId', required=not partial),
        'day_of_week': fields.integer('dayOfWeek'),
        'start_time': fields.clock_time('startTime'),
        'end_time': fields.clock_time('endTime'),
        'is_available': fields.boolean('isAvailable'),
        'reason': fields.string('reason', max_length=200),
        'start_date': fields.day('startDate'),
        'end_date': fields.day('endDate'),
    }
    if values['day_of_week'] is not None and not 0 <= values['day_of_week'] <= 6:
        fields.add('dayOfWeek', 'Expected 0 (Sunday) to 6 (Saturday)')
    if values['start_time'] and values['end_time'] and values['end_time'] <= values['start_time']:
        fields.add('endTime', 'Must be after startTime')
    if values['start_date'] and values['end_date'] and values['end_date'] < values['start_date']:
        fields.add('endDate', 'Must not be before startDate')
    if values['user_id'] is not None:
        db = current_app.extensions['sqlalchemy']
        if db.session.get(get_models()['User'], values['user_id']) is None:
            fields.add('userId', f"User {values['user_id']} not found")
    fields.raise_if_any()
    return values


@availability_api_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_rule():
    db = current_app.extensions['sqlalchemy']
    AvailabilityRule = get_models()['AvailabilityRule']
    values = _rule_fields(get_json_body(), partial=False)
    if values['is_available'] is None:
        values['is_available'] = False
    rule = AvailabilityRule(**values)
    db.session.add(rule)
    db.session.flush()
    return jsonify(rule.to_dict()), 201


@availability_api_bp.route('/<int:rule_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_rule(rule_id):
    rule = _get_rule(rule_id)
    data = get_json_body()
    values = _rule_fields(data, partial=True)
    nullable = {
        'dayOfWeek': 'day_of_week', 'startTime': 'start_time', 'endTime': 'end_time',
        'reason': 'reason', 'startDate': 'start_date', 'endDate': 'end_date',
    }
    for attr, value in values.items():
        if value is not None:
            setattr(rule, attr, value)
    for key, attr in nullable.items():
        if key in data and data[key] is None:
            setattr(rule, attr, None)
    return jsonify(rule.to_dict())


@availability_api_bp.route('/<int:rule_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_rule(rule_id):
    db = current_app.extensions['sqlalchemy']
    db.session.delete(_get_rule(rule_id))
    return '', 204
