"""
Conflicts API Blueprint
Bulk double-booking report and a pre-flight check for a single assignment
"""
from flask import Blueprint, jsonify, current_app

from volunteer_scheduler.error_handlers import handle_errors
from volunteer_scheduler.models import get_models
from volunteer_scheduler.routes import match_location
from volunteer_scheduler.services.assignment_store import SqlAssignmentStore
from volunteer_scheduler.services.conflict_detection import ConflictDetector, ScheduleConsistencyGuard
from volunteer_scheduler.services.conflict_types import OccurrenceKey
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body

conflicts_api_bp = Blueprint('conflicts_api', __name__, url_prefix='/api/conflicts')


def _store():
    db = current_app.extensions['sqlalchemy']
    return SqlAssignmentStore(db.session, get_models())


@conflicts_api_bp.route('', methods=['GET'])
@handle_errors
def list_conflicts():
    """Every volunteer booked more than once at the same occurrence"""
    reports = ConflictDetector(_store(), match_location=match_location()).find_all_conflicts()
    return jsonify([r.to_dict() for r in reports])


@conflicts_api_bp.route('/check', methods=['POST'])
@handle_errors
def check_conflict():
    """
    Would assigning this volunteer collide with an existing assignment?

    Body: {volunteerId, scheduleId} or {volunteerId, date, location}
    Returns: {hasConflict, conflict}
    """
    data = get_json_body()
    fields = FieldErrors(data)
    volunteer_id = fields.integer('volunteerId', required=True)
    schedule_id = fields.integer('scheduleId')
    starts_at = fields.timestamp('date', required=schedule_id is None)
    location = fields.string('location')
    exclude_detail_id = fields.integer('excludeDetailId')
    fields.raise_if_any()

    store = _store()
    if schedule_id is not None:
        occurrence = store.get_occurrence_key(schedule_id)
        if occurrence is None:
            fields.add('scheduleId', f'Schedule {schedule_id} not found')
            fields.raise_if_any()
    else:
        occurrence = OccurrenceKey(starts_at, location)

    guard = ScheduleConsistencyGuard(store, match_location=match_location())
    conflict = guard.check_conflict(occurrence, volunteer_id, exclude_detail_id)
    return jsonify({
        'hasConflict': conflict is not None,
        'conflict': conflict.to_dict() if conflict else None,
    })
