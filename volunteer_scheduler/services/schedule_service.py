"""
Schedule and schedule-detail management

Every assignment write goes through the consistency guard while the
volunteer is locked, inside the caller's database transaction. The service
only flushes; the route commits (see with_db_transaction).

Conflict resolutions offered to the client:
    keep     reject the new assignment (409)
    replace  empty the colliding slot(s), then write
    both     skip the guard and keep both assignments
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from volunteer_scheduler.error_handlers.exceptions import (
    ResourceNotFoundException,
    ScheduleConflictException,
    ValidationException,
)
from volunteer_scheduler.utils.validators import FieldErrors

from .assignment_store import SqlAssignmentStore
from .availability import blocking_rules
from .conflict_detection import ScheduleConsistencyGuard
from .conflict_types import AssignmentRecord, OccurrenceKey


logger = logging.getLogger(__name__)

RESOLUTIONS = ('keep', 'replace', 'both')
DETAIL_STATUSES = ('pending', 'confirmed', 'unavailable')
SCHEDULE_STATUSES = ('draft', 'published')
MAX_SLOTS_PER_ROLE = 50


class ScheduleService:
    """Creates, updates and deletes schedules and their assignment slots"""

    def __init__(self, db_session: Session, models: dict, match_location: bool = False):
        self.db = db_session
        self.models = models
        self.User = models['User']
        self.Team = models['Team']
        self.TeamRole = models['TeamRole']
        self.Event = models['Event']
        self.Schedule = models['Schedule']
        self.ScheduleDetail = models['ScheduleDetail']
        self.AvailabilityRule = models['AvailabilityRule']
        self.SwapRequest = models['SwapRequest']
        self.store = SqlAssignmentStore(db_session, models)
        self.guard = ScheduleConsistencyGuard(self.store, match_location=match_location)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_schedule(self, schedule_id: int):
        schedule = self.db.get(self.Schedule, schedule_id)
        if schedule is None:
            raise ResourceNotFoundException(f"Schedule {schedule_id} not found")
        return schedule

    def get_detail(self, detail_id: int):
        detail = self.db.get(self.ScheduleDetail, detail_id)
        if detail is None:
            raise ResourceNotFoundException(f"Schedule detail {detail_id} not found")
        return detail

    def list_schedules(self, team_id: Optional[int] = None, event_id: Optional[int] = None,
                       status: Optional[str] = None) -> List:
        query = self.db.query(self.Schedule)
        if team_id is not None:
            query = query.filter(self.Schedule.team_id == team_id)
        if event_id is not None:
            query = query.filter(self.Schedule.event_id == event_id)
        if status:
            query = query.filter(self.Schedule.status == status)
        return query.order_by(self.Schedule.id).all()

    def list_details(self, schedule_id: int) -> List:
        self.get_schedule(schedule_id)
        return (
            self.db.query(self.ScheduleDetail)
            .filter(self.ScheduleDetail.schedule_id == schedule_id)
            .order_by(self.ScheduleDetail.id)
            .all()
        )

    # ------------------------------------------------------------------
    # Guard
    # ------------------------------------------------------------------

    @staticmethod
    def validate_resolution(resolution: Optional[str]) -> str:
        resolution = resolution or 'keep'
        if resolution not in RESOLUTIONS:
            raise ValidationException(
                'Validation error',
                errors=[{'field': 'resolution', 'message': f"Must be one of: {', '.join(RESOLUTIONS)}"}]
            )
        return resolution

    def _apply_guard(self, occurrence: OccurrenceKey, volunteer_id: int, resolution: str,
                     exclude_detail_id: Optional[int] = None) -> None:
        if resolution == 'both':
            logger.info(f"Guard skipped for volunteer {volunteer_id}: double booking accepted")
            return

        conflict = self.guard.check_conflict(occurrence, volunteer_id, exclude_detail_id)
        if conflict is None:
            return

        if resolution == 'keep':
            raise ScheduleConflictException(
                'Volunteer is already scheduled at this time',
                conflict.to_dict()
            )

        while conflict is not None:
            cleared = replace(conflict.assignment, volunteer_id=None, status='pending')
            self.store.upsert_assignment(cleared)
            logger.info(
                f"Removed volunteer {volunteer_id} from detail {cleared.detail_id} "
                f"to resolve conflict"
            )
            conflict = self.guard.check_conflict(occurrence, volunteer_id, exclude_detail_id)

    def _availability_warnings(self, volunteer_id: Optional[int], occurrence: OccurrenceKey) -> List[Dict[str, Any]]:
        if volunteer_id is None:
            return []
        rules = (
            self.db.query(self.AvailabilityRule)
            .filter(self.AvailabilityRule.user_id == volunteer_id)
            .all()
        )
        return [
            {
                'type': 'availability',
                'ruleId': rule.id,
                'message': rule.reason or 'Volunteer marked as unavailable at this time',
            }
            for rule in blocking_rules(rules, occurrence.starts_at)
        ]

    def _check_references(self, fields: FieldErrors, schedule, role_id: Optional[int],
                          volunteer_id: Optional[int], trainee_id: Optional[int] = None) -> None:
        if role_id is not None:
            role = self.db.get(self.TeamRole, role_id)
            if role is None:
                fields.add('roleId', f'Role {role_id} not found')
            elif schedule is not None and role.team_id != schedule.team_id:
                fields.add('roleId', f"Role {role_id} does not belong to team {schedule.team_id}")
        for field_name, user_id in (('volunteerId', volunteer_id), ('traineeId', trainee_id)):
            if user_id is not None and self.db.get(self.User, user_id) is None:
                fields.add(field_name, f'User {user_id} not found')

    # ------------------------------------------------------------------
    # Schedule details
    # ------------------------------------------------------------------

    def create_schedule_detail(self, data: Dict[str, Any], resolution: str = 'keep') -> Tuple[Any, List[Dict[str, Any]]]:
        """
        Create one assignment slot.

        Returns:
            (ScheduleDetail, availability warnings)

        Raises:
            ValidationException: Bad fields or unknown references (400)
            ScheduleConflictException: Volunteer already booked at this occurrence (409)
        """
        resolution = self.validate_resolution(resolution)
        fields = FieldErrors(data)
        schedule_id = fields.integer('scheduleId', required=True)
        role_id = fields.integer('roleId', required=True)
        volunteer_id = fields.integer('volunteerId')
        status = fields.choice('status', DETAIL_STATUSES, default='pending')
        has_trainee = fields.boolean('hasTrainee', default=False)
        trainee_id = fields.integer('traineeId')
        fields.raise_if_any()

        schedule = self.db.get(self.Schedule, schedule_id)
        if schedule is None:
            fields.add('scheduleId', f'Schedule {schedule_id} not found')
        self._check_references(fields, schedule, role_id, volunteer_id, trainee_id)
        fields.raise_if_any()

        occurrence = self.store.get_occurrence_key(schedule_id)
        record = AssignmentRecord(
            detail_id=None,
            schedule_id=schedule_id,
            event_id=schedule.event_id,
            team_id=schedule.team_id,
            role_id=role_id,
            volunteer_id=volunteer_id,
            occurrence=occurrence,
            status=status,
        )

        if volunteer_id is None:
            record = self.store.upsert_assignment(record)
        else:
            with self.store.lock_volunteer(volunteer_id):
                self._apply_guard(occurrence, volunteer_id, resolution)
                record = self.store.upsert_assignment(record)

        detail = self.db.get(self.ScheduleDetail, record.detail_id)
        detail.has_trainee = has_trainee
        detail.trainee_id = trainee_id
        self.db.flush()

        logger.info(f"Created schedule detail {detail.id} in schedule {schedule_id} (volunteer={volunteer_id})")
        return detail, self._availability_warnings(volunteer_id, occurrence)

    def update_schedule_detail(self, detail_id: int, data: Dict[str, Any],
                               resolution: str = 'keep') -> Tuple[Any, List[Dict[str, Any]]]:
        """
        Partially update a slot. Changing the volunteer or the schedule
        re-runs the guard; filling an empty slot counts as a new assignment.
        """
        resolution = self.validate_resolution(resolution)
        detail = self.get_detail(detail_id)

        fields = FieldErrors(data)
        schedule_id = fields.integer('scheduleId') if 'scheduleId' in data else detail.schedule_id
        role_id = fields.integer('roleId') if 'roleId' in data else detail.role_id
        volunteer_id = fields.integer('volunteerId') if 'volunteerId' in data else detail.volunteer_id
        status = fields.choice('status', DETAIL_STATUSES, default=detail.status)
        has_trainee = fields.boolean('hasTrainee', default=detail.has_trainee)
        trainee_id = fields.integer('traineeId') if 'traineeId' in data else detail.trainee_id
        if schedule_id is None:
            fields.add('scheduleId', 'Required')
        if role_id is None:
            fields.add('roleId', 'Required')
        fields.raise_if_any()

        schedule = self.db.get(self.Schedule, schedule_id)
        if schedule is None:
            fields.add('scheduleId', f'Schedule {schedule_id} not found')
        self._check_references(fields, schedule, role_id, volunteer_id, trainee_id)
        fields.raise_if_any()

        reassigned = volunteer_id != detail.volunteer_id or schedule_id != detail.schedule_id
        occurrence = self.store.get_occurrence_key(schedule_id)
        record = AssignmentRecord(
            detail_id=detail.id,
            schedule_id=schedule_id,
            event_id=schedule.event_id,
            team_id=schedule.team_id,
            role_id=role_id,
            volunteer_id=volunteer_id,
            occurrence=occurrence,
            status=status,
        )

        if reassigned and volunteer_id is not None:
            with self.store.lock_volunteer(volunteer_id):
                self._apply_guard(occurrence, volunteer_id, resolution, exclude_detail_id=detail.id)
                self.store.upsert_assignment(record)
        else:
            self.store.upsert_assignment(record)

        detail.has_trainee = has_trainee
        detail.trainee_id = trainee_id
        self.db.flush()

        logger.info(f"Updated schedule detail {detail.id} (volunteer={volunteer_id})")
        warnings = self._availability_warnings(volunteer_id, occurrence) if reassigned else []
        return detail, warnings

    def delete_schedule_detail(self, detail_id: int) -> None:
        detail = self.get_detail(detail_id)
        has_swaps = (
            self.db.query(self.SwapRequest.id)
            .filter(self.SwapRequest.schedule_detail_id == detail_id)
            .first()
        )
        if has_swaps:
            raise ValidationException(
                'Cannot delete a schedule detail that has swap requests',
                errors=[{'field': 'id', 'message': 'Schedule detail is referenced by swap requests'}]
            )
        self.db.delete(detail)
        self.db.flush()
        logger.info(f"Deleted schedule detail {detail_id}")

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def _parse_role_slots(self, fields: FieldErrors, team_id: Optional[int]) -> List[Tuple[int, int]]:
        raw = fields.data.get('roles')
        if raw is None:
            return []
        if not isinstance(raw, list):
            fields.add('roles', 'Expected a list of {roleId, count}')
            return []

        slots = []
        for index, entry in enumerate(raw):
            prefix = f'roles[{index}]'
            if not isinstance(entry, dict):
                fields.add(prefix, 'Expected an object with roleId and count')
                continue
            role_id, count = entry.get('roleId'), entry.get('count', 1)
            if not isinstance(role_id, int) or isinstance(role_id, bool):
                fields.add(f'{prefix}.roleId', 'Expected an integer')
                continue
            if not isinstance(count, int) or isinstance(count, bool) or not 0 <= count <= MAX_SLOTS_PER_ROLE:
                fields.add(f'{prefix}.count', f'Expected an integer between 0 and {MAX_SLOTS_PER_ROLE}')
                continue
            role = self.db.get(self.TeamRole, role_id)
            if role is None:
                fields.add(f'{prefix}.roleId', f'Role {role_id} not found')
            elif team_id is not None and role.team_id != team_id:
                fields.add(f'{prefix}.roleId', f'Role {role_id} does not belong to team {team_id}')
            else:
                slots.append((role_id, count))
        return slots

    def create_schedule(self, data: Dict[str, Any]) -> Tuple[Any, List]:
        """
        Create a schedule, optionally expanding ``roles: [{roleId, count}]``
        into empty pending slots.

        Returns:
            (Schedule, created ScheduleDetail rows)
        """
        fields = FieldErrors(data)
        event_id = fields.integer('eventId', required=True)
        team_id = fields.integer('teamId', required=True)
        status = fields.choice('status', SCHEDULE_STATUSES, default='draft')
        created_by = fields.integer('createdBy')
        notes = fields.string('notes')
        fields.raise_if_any()

        if self.db.get(self.Event, event_id) is None:
            fields.add('eventId', f'Event {event_id} not found')
        if self.db.get(self.Team, team_id) is None:
            fields.add('teamId', f'Team {team_id} not found')
            team_id = None
        if created_by is not None and self.db.get(self.User, created_by) is None:
            fields.add('createdBy', f'User {created_by} not found')
        slots = self._parse_role_slots(fields, team_id)
        fields.raise_if_any()

        schedule = self.Schedule(
            event_id=event_id,
            team_id=team_id,
            status=status,
            created_by=created_by,
            notes=notes,
        )
        self.db.add(schedule)
        self.db.flush()

        details = []
        for role_id, count in slots:
            for _ in range(count):
                detail = self.ScheduleDetail(schedule_id=schedule.id, role_id=role_id, status='pending')
                self.db.add(detail)
                details.append(detail)
        self.db.flush()

        logger.info(f"Created schedule {schedule.id} for event {event_id} / team {team_id} with {len(details)} slot(s)")
        return schedule, details

    def update_schedule(self, schedule_id: int, data: Dict[str, Any]):
        """
        Update status, notes or event. Moving a schedule to another event
        checks every filled slot against the new occurrence.
        """
        schedule = self.get_schedule(schedule_id)
        fields = FieldErrors(data)
        status = fields.choice('status', SCHEDULE_STATUSES, default=schedule.status)
        notes = fields.string('notes') if 'notes' in data else schedule.notes
        event_id = fields.integer('eventId') if 'eventId' in data else schedule.event_id
        if event_id is None:
            fields.add('eventId', 'Required')
        elif self.db.get(self.Event, event_id) is None:
            fields.add('eventId', f'Event {event_id} not found')
        fields.raise_if_any()

        if event_id != schedule.event_id:
            event = self.db.get(self.Event, event_id)
            occurrence = OccurrenceKey(event.date, event.location)
            for detail in schedule.details:
                if detail.volunteer_id is None:
                    continue
                with self.store.lock_volunteer(detail.volunteer_id):
                    self._apply_guard(occurrence, detail.volunteer_id, 'keep', exclude_detail_id=detail.id)
            schedule.event_id = event_id

        schedule.status = status
        schedule.notes = notes
        self.db.flush()
        logger.info(f"Updated schedule {schedule_id}")
        return schedule

    def delete_schedule(self, schedule_id: int) -> None:
        schedule = self.get_schedule(schedule_id)
        self.db.delete(schedule)
        self.db.flush()
        logger.info(f"Deleted schedule {schedule_id} and its details")
