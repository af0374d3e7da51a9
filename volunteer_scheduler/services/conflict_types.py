"""
Data classes shared by the conflict guard, the conflict detector and the
assignment stores
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional


class EventStatus(str, Enum):
    """Staffing health of a service occurrence"""
    COMPLETE = "complete"
    WARNING = "warning"
    INCOMPLETE = "incomplete"


# Cosmetic badge classes for the conflicts table, picked by team id
TEAM_COLOR_CLASSES = (
    "bg-blue-100 text-blue-800",
    "bg-green-100 text-green-800",
    "bg-purple-100 text-purple-800",
    "bg-amber-100 text-amber-800",
    "bg-pink-100 text-pink-800",
    "bg-teal-100 text-teal-800",
)


def team_color_class(team_id: Optional[int]) -> str:
    if team_id is None:
        return TEAM_COLOR_CLASSES[0]
    return TEAM_COLOR_CLASSES[team_id % len(TEAM_COLOR_CLASSES)]


@dataclass(frozen=True)
class OccurrenceKey:
    """
    Identifies one schedulable instant: start timestamp plus location.

    Equality is exact. Two services one minute apart are different
    occurrences.
    """
    starts_at: datetime
    location: Optional[str] = None

    def scoped(self, match_location: bool) -> 'OccurrenceKey':
        """Drop the location component unless location matching is enabled"""
        if match_location or self.location is None:
            return self
        return OccurrenceKey(self.starts_at, None)

    def sort_key(self):
        return (self.starts_at, self.location or "")


@dataclass
class AssignmentRecord:
    """Flat view of one schedule detail joined with its schedule, event, team, role and volunteer"""
    detail_id: Optional[int]
    schedule_id: int
    event_id: int
    team_id: int
    role_id: int
    volunteer_id: Optional[int]
    occurrence: OccurrenceKey
    status: str = "pending"
    team_name: str = ""
    role_name: str = ""
    volunteer_name: str = ""
    volunteer_email: Optional[str] = None
    volunteer_avatar: Optional[str] = None

    def with_volunteer(self, volunteer_id: Optional[int]) -> 'AssignmentRecord':
        return replace(self, volunteer_id=volunteer_id)

    def to_dict(self) -> dict:
        return {
            'scheduleDetailId': self.detail_id,
            'scheduleId': self.schedule_id,
            'eventId': self.event_id,
            'eventDate': self.occurrence.starts_at.isoformat(),
            'location': self.occurrence.location,
            'teamId': self.team_id,
            'teamName': self.team_name,
            'roleId': self.role_id,
            'roleName': self.role_name,
            'volunteerId': self.volunteer_id,
            'status': self.status,
        }


@dataclass
class ConflictDetail:
    """
    The existing assignment a candidate collides with

    Serialised as the ``conflict`` payload of a 409 response.
    """
    assignment: AssignmentRecord

    def to_dict(self) -> dict:
        record = self.assignment
        return {
            'scheduleDetail': {
                'id': record.detail_id,
                'roleId': record.role_id,
                'volunteerId': record.volunteer_id,
                'status': record.status,
            },
            'schedule': {
                'id': record.schedule_id,
                'teamId': record.team_id,
                'eventId': record.event_id,
                'date': record.occurrence.starts_at.isoformat(),
                'location': record.occurrence.location,
            },
            'role': {'id': record.role_id, 'name': record.role_name},
            'team': {'id': record.team_id, 'name': record.team_name},
        }


@dataclass
class ConflictReport:
    """One volunteer booked more than once at the same occurrence"""
    volunteer_id: int
    volunteer_name: str
    volunteer_email: Optional[str]
    volunteer_avatar: Optional[str]
    occurrence: OccurrenceKey
    assignments: List[AssignmentRecord] = field(default_factory=list)
    # True when the report was grouped by (start, location)
    location_scoped: bool = False

    @property
    def id(self) -> str:
        base = f"{self.volunteer_id}-{self.occurrence.starts_at.isoformat()}"
        if self.location_scoped and self.occurrence.location is not None:
            return f"{base}-{self.occurrence.location}"
        return base

    @property
    def event_ids(self) -> List[int]:
        return sorted({a.event_id for a in self.assignments})

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'volunteer': {
                'id': self.volunteer_id,
                'name': self.volunteer_name,
                'email': self.volunteer_email,
                'avatarUrl': self.volunteer_avatar,
            },
            'eventDate': self.occurrence.starts_at.isoformat(),
            'location': self.occurrence.location,
            'assignments': [
                {
                    'scheduleDetailId': a.detail_id,
                    'scheduleId': a.schedule_id,
                    'eventId': a.event_id,
                    'teamId': a.team_id,
                    'teamName': a.team_name,
                    'roleId': a.role_id,
                    'roleName': a.role_name,
                    'colorClass': team_color_class(a.team_id),
                }
                for a in self.assignments
            ],
        }
