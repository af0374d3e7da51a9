"""
Swap request workflow

State machine:
    pending -> approved   (slot handed to the replacement volunteer)
    pending -> rejected
Approved and rejected are terminal; resolving again is a 409.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from volunteer_scheduler.error_handlers.exceptions import (
    InvalidStateTransitionException,
    ResourceNotFoundException,
    ScheduleConflictException,
    ValidationException,
)
from volunteer_scheduler.utils.validators import FieldErrors

from .assignment_store import SqlAssignmentStore
from .conflict_detection import ScheduleConsistencyGuard
from .notification_service import NotificationService


logger = logging.getLogger(__name__)

SWAP_STATUSES = ('pending', 'approved', 'rejected')
RESOLVED_STATUSES = ('approved', 'rejected')


class SwapService:
    """
    Creates and resolves swap requests.

    Args:
        db_session: SQLAlchemy session
        models: Registered model classes
        match_location: Occurrence keys include location
        check_conflicts: Run the consistency guard for the replacement
            volunteer before approving
    """

    def __init__(self, db_session: Session, models: dict, match_location: bool = False,
                 check_conflicts: bool = False):
        self.db = db_session
        self.User = models['User']
        self.Team = models['Team']
        self.Schedule = models['Schedule']
        self.ScheduleDetail = models['ScheduleDetail']
        self.SwapRequest = models['SwapRequest']
        self.check_conflicts = check_conflicts
        self.store = SqlAssignmentStore(db_session, models)
        self.guard = ScheduleConsistencyGuard(self.store, match_location=match_location)
        self.notifications = NotificationService(db_session, models)

    def get_swap_request(self, swap_id: int):
        swap = self.db.get(self.SwapRequest, swap_id)
        if swap is None:
            raise ResourceNotFoundException(f"Swap request {swap_id} not found")
        return swap

    def list_swap_requests(self, requester_id: Optional[int] = None, status: Optional[str] = None) -> List:
        query = self.db.query(self.SwapRequest)
        if requester_id is not None:
            query = query.filter(self.SwapRequest.requester_id == requester_id)
        if status:
            query = query.filter(self.SwapRequest.status == status)
        return query.order_by(self.SwapRequest.created_at.desc(), self.SwapRequest.id.desc()).all()

    def _approver_for(self, schedule) -> Optional[int]:
        if schedule.created_by is not None:
            return schedule.created_by
        team = self.db.get(self.Team, schedule.team_id)
        return team.leader_id if team else None

    def create_swap_request(self, data: Dict[str, Any]):
        """
        Open a pending swap request and notify whoever approves it
        (schedule creator, falling back to the team leader).
        """
        fields = FieldErrors(data)
        requester_id = fields.integer('requesterId', required=True)
        detail_id = fields.integer('scheduleDetailId', required=True)
        schedule_id = fields.integer('scheduleId')
        replacement_id = fields.integer('replacementId')
        reason = fields.string('reason')
        fields.choice('status', ('pending',), default='pending')
        fields.raise_if_any()

        if self.db.get(self.User, requester_id) is None:
            fields.add('requesterId', f'User {requester_id} not found')
        if replacement_id is not None and self.db.get(self.User, replacement_id) is None:
            fields.add('replacementId', f'User {replacement_id} not found')
        detail = self.db.get(self.ScheduleDetail, detail_id)
        if detail is None:
            fields.add('scheduleDetailId', f'Schedule detail {detail_id} not found')
        elif schedule_id is not None and schedule_id != detail.schedule_id:
            fields.add('scheduleId', f'Schedule detail {detail_id} belongs to schedule {detail.schedule_id}')
        fields.raise_if_any()

        swap = self.SwapRequest(
            requester_id=requester_id,
            schedule_id=detail.schedule_id,
            schedule_detail_id=detail.id,
            replacement_id=replacement_id,
            reason=reason,
            status='pending',
        )
        self.db.add(swap)
        self.db.flush()

        schedule = self.db.get(self.Schedule, detail.schedule_id)
        self.notifications.notify(
            self._approver_for(schedule),
            'swap_request',
            'New swap request',
            f'A volunteer has requested a swap for schedule {schedule.id}',
            related_id=swap.id,
        )
        logger.info(f"Swap request {swap.id} created by user {requester_id} for detail {detail.id}")
        return swap

    def resolve_swap_request(self, swap_id: int, status: Optional[str], resolved_by: Optional[int] = None):
        """
        Approve or reject a pending swap request.

        Raises:
            ValidationException: status is not approved/rejected (400)
            ResourceNotFoundException: unknown swap request (404)
            InvalidStateTransitionException: request already resolved (409)
            ScheduleConflictException: approval would double-book the
                replacement and conflict checking is enabled (409)
        """
        if status not in RESOLVED_STATUSES:
            raise ValidationException(
                'Validation error',
                errors=[{'field': 'status', 'message': f"Must be one of: {', '.join(RESOLVED_STATUSES)}"}]
            )

        swap = self.get_swap_request(swap_id)
        if swap.status != 'pending':
            raise InvalidStateTransitionException(
                f"Swap request {swap_id} is already {swap.status}",
                details={'currentStatus': swap.status}
            )

        if status == 'approved' and swap.replacement_id is not None:
            self._hand_over(swap)

        swap.status = status
        swap.resolved_by = resolved_by
        swap.resolved_at = datetime.utcnow()
        self.db.flush()

        self.notifications.notify(
            swap.requester_id,
            'swap_request',
            f'Swap request {status}',
            f'Your swap request has been {status}',
            related_id=swap.id,
        )
        logger.info(f"Swap request {swap_id} {status} by {resolved_by}")
        return swap

    def _hand_over(self, swap) -> None:
        detail = self.db.get(self.ScheduleDetail, swap.schedule_detail_id)
        if detail is None:
            raise ResourceNotFoundException(f"Schedule detail {swap.schedule_detail_id} not found")

        if self.check_conflicts:
            occurrence = self.store.get_occurrence_key(detail.schedule_id)
            with self.store.lock_volunteer(swap.replacement_id):
                conflict = self.guard.check_conflict(
                    occurrence, swap.replacement_id, exclude_detail_id=detail.id
                )
                if conflict is not None:
                    raise ScheduleConflictException(
                        'Replacement volunteer is already scheduled at this time',
                        conflict.to_dict()
                    )

        logger.info(
            f"Swap {swap.id}: detail {detail.id} volunteer "
            f"{detail.volunteer_id} -> {swap.replacement_id}"
        )
        detail.volunteer_id = swap.replacement_id

    def update_swap_request(self, swap_id: int, data: Dict[str, Any]):
        """
        PUT/PATCH handler body. A resolved ``status`` resolves the request;
        otherwise only a pending request's reason and replacement may change.
        """
        fields = FieldErrors(data)
        status = fields.choice('status', SWAP_STATUSES)
        resolved_by = fields.integer('resolvedBy')
        replacement_id = fields.integer('replacementId') if 'replacementId' in data else None
        reason = fields.string('reason')
        fields.raise_if_any()

        if status in RESOLVED_STATUSES:
            if 'replacementId' in data:
                swap = self.get_swap_request(swap_id)
                if swap.status == 'pending':
                    self._set_replacement(swap, replacement_id)
            return self.resolve_swap_request(swap_id, status, resolved_by)

        swap = self.get_swap_request(swap_id)
        if swap.status != 'pending':
            raise InvalidStateTransitionException(
                f"Swap request {swap_id} is already {swap.status}",
                details={'currentStatus': swap.status}
            )
        if 'replacementId' in data:
            self._set_replacement(swap, replacement_id)
        if 'reason' in data:
            swap.reason = reason
        self.db.flush()
        return swap

    def _set_replacement(self, swap, replacement_id: Optional[int]) -> None:
        if replacement_id is not None and self.db.get(self.User, replacement_id) is None:
            raise ValidationException(
                'Validation error',
                errors=[{'field': 'replacementId', 'message': f'User {replacement_id} not found'}]
            )
        swap.replacement_id = replacement_id

    def delete_swap_request(self, swap_id: int) -> None:
        swap = self.get_swap_request(swap_id)
        self.db.delete(swap)
        self.db.flush()
        logger.info(f"Deleted swap request {swap_id}")
