"""
Schedules API Blueprint
Schedules (one team's roster for one event) and their schedule-detail slots

Assignment writes return 409 with a ``conflict`` payload when the volunteer
is already booked at the same occurrence. Clients retry with
``resolution`` set to ``replace`` or ``both``.
"""
from flask import Blueprint, jsonify, current_app, request

from volunteer_scheduler.error_handlers import handle_errors, with_db_transaction
from volunteer_scheduler.routes import schedule_service
from volunteer_scheduler.utils.validators import get_json_body, optional_int_arg

schedules_api_bp = Blueprint('schedules_api', __name__, url_prefix='/api')


def _resolution(data):
    return data.get('resolution') or request.args.get('resolution') or 'keep'


def _detail_response(detail, warnings):
    body = detail.to_dict()
    if warnings:
        body['warnings'] = warnings
    return body


# ----------------------------------------------------------------------
# Schedules
# ----------------------------------------------------------------------

@schedules_api_bp.route('/schedules', methods=['GET'])
@handle_errors
def list_schedules():
    """List schedules filtered by ?teamId=&eventId=&status="""
    schedules = schedule_service().list_schedules(
        team_id=optional_int_arg('teamId'),
        event_id=optional_int_arg('eventId'),
        status=request.args.get('status'),
    )
    return jsonify([s.to_dict() for s in schedules])


@schedules_api_bp.route('/schedules', methods=['POST'])
@handle_errors
@with_db_transaction
def create_schedule():
    """
    Create a schedule. ``roles: [{roleId, count}]`` creates that many empty
    pending slots per role.
    """
    schedule, details = schedule_service().create_schedule(get_json_body())
    body = schedule.to_dict()
    body['details'] = [d.to_dict() for d in details]
    return jsonify(body), 201


@schedules_api_bp.route('/schedules/<int:schedule_id>', methods=['GET'])
@handle_errors
def get_schedule(schedule_id):
    return jsonify(schedule_service().get_schedule(schedule_id).to_dict())


@schedules_api_bp.route('/schedules/<int:schedule_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_schedule(schedule_id):
    schedule = schedule_service().update_schedule(schedule_id, get_json_body())
    return jsonify(schedule.to_dict())


@schedules_api_bp.route('/schedules/<int:schedule_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_schedule(schedule_id):
    schedule_service().delete_schedule(schedule_id)
    return '', 204


@schedules_api_bp.route('/schedules/<int:schedule_id>/details', methods=['GET'])
@handle_errors
def list_schedule_details(schedule_id):
    details = schedule_service().list_details(schedule_id)
    return jsonify([d.to_dict() for d in details])


# ----------------------------------------------------------------------
# Schedule details
# ----------------------------------------------------------------------

@schedules_api_bp.route('/schedule-details', methods=['POST'])
@handle_errors
@with_db_transaction
def create_schedule_detail():
    """
    Assign a volunteer (or an empty slot) to a role in a schedule.

    Returns:
        201: Created detail (plus availability ``warnings`` if any)
        400: Field errors
        409: {message, conflict: {scheduleDetail, schedule, role, team}}
    """
    data = get_json_body()
    detail, warnings = schedule_service().create_schedule_detail(data, resolution=_resolution(data))
    return jsonify(_detail_response(detail, warnings)), 201


@schedules_api_bp.route('/schedule-details/<int:detail_id>', methods=['GET'])
@handle_errors
def get_schedule_detail(detail_id):
    return jsonify(schedule_service().get_detail(detail_id).to_dict())


@schedules_api_bp.route('/schedule-details/<int:detail_id>', methods=['PATCH'])
@handle_errors
@with_db_transaction
def update_schedule_detail(detail_id):
    data = get_json_body()
    detail, warnings = schedule_service().update_schedule_detail(
        detail_id, data, resolution=_resolution(data)
    )
    return jsonify(_detail_response(detail, warnings))


@schedules_api_bp.route('/schedule-details/<int:detail_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_schedule_detail(detail_id):
    schedule_service().delete_schedule_detail(detail_id)
    current_app.logger.info(f"Schedule detail {detail_id} removed")
    return '', 204
