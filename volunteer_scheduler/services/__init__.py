"""
Domain services for the volunteer scheduler
"""
from .conflict_types import (
    AssignmentRecord,
    ConflictDetail,
    ConflictReport,
    EventStatus,
    OccurrenceKey,
)
from .assignment_store import AssignmentStore, InMemoryAssignmentStore, SqlAssignmentStore
from .conflict_detection import ConflictDetector, ScheduleConsistencyGuard
from .event_status import derive_event_status

__all__ = [
    'AssignmentRecord',
    'AssignmentStore',
    'ConflictDetail',
    'ConflictDetector',
    'ConflictReport',
    'EventStatus',
    'InMemoryAssignmentStore',
    'OccurrenceKey',
    'ScheduleConsistencyGuard',
    'SqlAssignmentStore',
    'derive_event_status',
]
