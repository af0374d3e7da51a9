"""
Dashboard aggregates: headline counts and upcoming service health
"""
import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from .assignment_store import SqlAssignmentStore
from .conflict_detection import ConflictDetector
from .event_status import derive_event_status


logger = logging.getLogger(__name__)

VOLUNTEER_ROLES = ('volunteer', 'leader')


def month_bounds(now: datetime):
    """First instant of ``now``'s month and of the following month"""
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1)
    else:
        end = datetime(now.year, now.month + 1, 1)
    return start, end


class DashboardService:

    def __init__(self, db_session: Session, models: dict, match_location: bool = False):
        self.db = db_session
        self.User = models['User']
        self.Team = models['Team']
        self.TeamMember = models['TeamMember']
        self.Event = models['Event']
        self.Schedule = models['Schedule']
        self.ScheduleDetail = models['ScheduleDetail']
        self.SwapRequest = models['SwapRequest']
        self.detector = ConflictDetector(SqlAssignmentStore(db_session, models), match_location=match_location)

    def build_dashboard_stats(self, now: datetime) -> Dict[str, Any]:
        month_start, month_end = month_bounds(now)

        volunteer_count = (
            self.db.query(func.count(self.User.id))
            .filter(self.User.role.in_(VOLUNTEER_ROLES))
            .scalar()
        )
        team_count = self.db.query(func.count(self.Team.id)).scalar()
        monthly_service_count = (
            self.db.query(func.count(self.Event.id))
            .filter(self.Event.date >= month_start, self.Event.date < month_end)
            .scalar()
        )
        upcoming_count = (
            self.db.query(func.count(self.Event.id))
            .filter(self.Event.date >= now)
            .scalar()
        )
        pending_swaps = (
            self.db.query(func.count(self.SwapRequest.id))
            .filter(self.SwapRequest.status == 'pending')
            .scalar()
        )

        by_team = (
            self.db.query(self.Team.id, self.Team.name, self.Team.color, func.count(self.TeamMember.user_id))
            .outerjoin(
                self.TeamMember,
                (self.TeamMember.team_id == self.Team.id) & (self.TeamMember.is_active.is_(True))
            )
            .group_by(self.Team.id, self.Team.name, self.Team.color)
            .order_by(self.Team.name, self.Team.id)
            .all()
        )

        conflicts = self.detector.find_all_conflicts()

        return {
            'volunteerCount': volunteer_count,
            'teamCount': team_count,
            'monthlyServiceCount': monthly_service_count,
            'upcomingEventsCount': upcoming_count,
            'pendingSwapRequests': pending_swaps,
            'conflictCount': len(conflicts),
            'volunteersByTeam': [
                {'teamId': team_id, 'teamName': name, 'color': color, 'volunteerCount': count}
                for team_id, name, color, count in by_team
            ],
        }

    def upcoming_services(self, now: datetime, limit: int = 5) -> List[Dict[str, Any]]:
        events = (
            self.db.query(self.Event)
            .filter(self.Event.date >= now)
            .order_by(self.Event.date, self.Event.id)
            .limit(limit)
            .all()
        )
        if not events:
            return []

        _, conflicting_events = self.detector.summary()
        event_ids = [event.id for event in events]

        team_counts = dict(
            self.db.query(self.Schedule.event_id, func.count(func.distinct(self.Schedule.team_id)))
            .filter(self.Schedule.event_id.in_(event_ids))
            .group_by(self.Schedule.event_id)
            .all()
        )
        volunteer_counts = dict(
            self.db.query(self.Schedule.event_id, func.count(func.distinct(self.ScheduleDetail.volunteer_id)))
            .join(self.ScheduleDetail, self.ScheduleDetail.schedule_id == self.Schedule.id)
            .filter(self.Schedule.event_id.in_(event_ids), self.ScheduleDetail.volunteer_id.isnot(None))
            .group_by(self.Schedule.event_id)
            .all()
        )

        services = []
        for event in events:
            assigned = volunteer_counts.get(event.id, 0)
            has_conflicts = event.id in conflicting_events
            services.append({
                'id': event.id,
                'name': event.name,
                'date': event.date.isoformat(),
                'location': event.location,
                'teamCount': team_counts.get(event.id, 0),
                'volunteerCount': assigned,
                'hasConflicts': has_conflicts,
                'status': derive_event_status(assigned, has_conflicts).value,
            })
        return services
