"""
Events API Blueprint
Worship services and other occurrences
"""
from datetime import datetime, time

from flask import Blueprint, jsonify, current_app, request

from volunteer_scheduler.error_handlers import (
    ResourceNotFoundException,
    ValidationException,
    handle_errors,
    with_db_transaction,
)
from volunteer_scheduler.models import get_models
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body, validate_date_param

events_api_bp = Blueprint('events_api', __name__, url_prefix='/api/events')


def _get_event(event_id):
    db = current_app.extensions['sqlalchemy']
    event = db.session.get(get_models()['Event'], event_id)
    if event is None:
        raise ResourceNotFoundException(f"Event {event_id} not found")
    return event


def _event_fields(data, partial):
    fields = FieldErrors(data)
    values = {
        'name': fields.string('name', required=not partial, max_length=200),
        'date': fields.timestamp('date', required=not partial),
        'end_time': fields.timestamp('endTime'),
        'location': fields.string('location', max_length=200),
        'description': fields.string('description'),
        'is_recurring': fields.boolean('isRecurring'),
    }
    pattern = data.get('recurringPattern')
    if pattern is not None and not isinstance(pattern, dict):
        fields.add('recurringPattern', 'Expected an object')
    values['recurring_pattern'] = pattern
    if values['date'] and values['end_time'] and values['end_time'] < values['date']:
        fields.add('endTime', 'Must not be before date')
    fields.raise_if_any()
    return values


@events_api_bp.route('', methods=['GET'])
@handle_errors
def list_events():
    """List events ordered by start, optionally within ?startDate=&endDate= (YYYY-MM-DD, inclusive)"""
    Event = get_models()['Event']
    query = Event.query
    start = request.args.get('startDate')
    end = request.args.get('endDate')
    if start:
        query = query.filter(Event.date >= datetime.combine(validate_date_param(start, 'startDate'), time.min))
    if end:
        query = query.filter(Event.date <= datetime.combine(validate_date_param(end, 'endDate'), time.max))
    return jsonify([e.to_dict() for e in query.order_by(Event.date, Event.id).all()])


@events_api_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_event():
    db = current_app.extensions['sqlalchemy']
    Event = get_models()['Event']
    values = _event_fields(get_json_body(), partial=False)
    if values['is_recurring'] is None:
        values['is_recurring'] = False
    event = Event(**values)
    db.session.add(event)
    db.session.flush()
    current_app.logger.info(f"Created event {event.id} ({event.name}) at {event.date.isoformat()}")
    return jsonify(event.to_dict()), 201


@events_api_bp.route('/<int:event_id>', methods=['GET'])
@handle_errors
def get_event(event_id):
    return jsonify(_get_event(event_id).to_dict())


@events_api_bp.route('/<int:event_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_event(event_id):
    """
    Update an event. Moving an event is not guarded; any double booking it
    creates shows up in GET /api/conflicts.
    """
    event = _get_event(event_id)
    data = get_json_body()
    values = _event_fields(data, partial=True)
    for attr, value in values.items():
        if value is not None:
            setattr(event, attr, value)
    for key, attr in (('endTime', 'end_time'), ('location', 'location'), ('recurringPattern', 'recurring_pattern')):
        if key in data and data[key] is None:
            setattr(event, attr, None)
    if event.end_time and event.end_time < event.date:
        raise ValidationException('Validation error',
                                  errors=[{'field': 'endTime', 'message': 'Must not be before date'}])
    return jsonify(event.to_dict())


@events_api_bp.route('/<int:event_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_event(event_id):
    db = current_app.extensions['sqlalchemy']
    event = _get_event(event_id)
    db.session.delete(event)
    current_app.logger.info(f"Deleted event {event_id}")
    return '', 204
