"""
Assignment storage backends

The conflict guard and detector only need a handful of read/write
operations on assignments. AssignmentStore names them; SqlAssignmentStore
serves them from the relational tables and InMemoryAssignmentStore from
plain dicts.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from .conflict_types import AssignmentRecord, OccurrenceKey


logger = logging.getLogger(__name__)


class AssignmentStore(ABC):
    """Capabilities the scheduling rules need from persistence"""

    @abstractmethod
    def get_assignments_by_volunteer(self, volunteer_id: int) -> List[AssignmentRecord]:
        """All assignments currently held by a volunteer"""

    @abstractmethod
    def get_occurrence_key(self, schedule_id: int) -> Optional[OccurrenceKey]:
        """Occurrence of the event a schedule belongs to, or None if unknown"""

    @abstractmethod
    def all_assignments(self) -> List[AssignmentRecord]:
        """Every assignment slot, filled or not"""

    @abstractmethod
    def upsert_assignment(self, record: AssignmentRecord) -> AssignmentRecord:
        """Insert a new slot (detail_id None) or update an existing one"""

    @abstractmethod
    def lock_volunteer(self, volunteer_id: int):
        """
        Context manager serialising check-then-write sequences for one
        volunteer.
        """


class SqlAssignmentStore(AssignmentStore):
    """
    Assignment store over the schedule_details table and its joins

    Writes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(self, db_session: Session, models: dict):
        self.db = db_session
        self.User = models['User']
        self.Team = models['Team']
        self.TeamRole = models['TeamRole']
        self.Event = models['Event']
        self.Schedule = models['Schedule']
        self.ScheduleDetail = models['ScheduleDetail']

    def _joined_query(self):
        detail, schedule, event = self.ScheduleDetail, self.Schedule, self.Event
        team, role, user = self.Team, self.TeamRole, self.User
        return (
            self.db.query(detail, schedule, event, team, role, user)
            .join(schedule, detail.schedule_id == schedule.id)
            .join(event, schedule.event_id == event.id)
            .join(team, schedule.team_id == team.id)
            .join(role, detail.role_id == role.id)
            .outerjoin(user, detail.volunteer_id == user.id)
        )

    @staticmethod
    def _to_record(detail, schedule, event, team, role, user) -> AssignmentRecord:
        return AssignmentRecord(
            detail_id=detail.id,
            schedule_id=schedule.id,
            event_id=event.id,
            team_id=team.id,
            role_id=role.id,
            volunteer_id=detail.volunteer_id,
            occurrence=OccurrenceKey(event.date, event.location),
            status=detail.status,
            team_name=team.name,
            role_name=role.name,
            volunteer_name=user.name if user else "",
            volunteer_email=user.email if user else None,
            volunteer_avatar=user.avatar if user else None,
        )

    def get_assignments_by_volunteer(self, volunteer_id: int) -> List[AssignmentRecord]:
        rows = (
            self._joined_query()
            .filter(self.ScheduleDetail.volunteer_id == volunteer_id)
            .order_by(self.ScheduleDetail.id)
            .all()
        )
        return [self._to_record(*row) for row in rows]

    def get_occurrence_key(self, schedule_id: int) -> Optional[OccurrenceKey]:
        row = (
            self.db.query(self.Event.date, self.Event.location)
            .join(self.Schedule, self.Schedule.event_id == self.Event.id)
            .filter(self.Schedule.id == schedule_id)
            .first()
        )
        if row is None:
            return None
        return OccurrenceKey(row[0], row[1])

    def all_assignments(self) -> List[AssignmentRecord]:
        rows = self._joined_query().order_by(self.ScheduleDetail.id).all()
        return [self._to_record(*row) for row in rows]

    def get_assignment(self, detail_id: int) -> Optional[AssignmentRecord]:
        row = self._joined_query().filter(self.ScheduleDetail.id == detail_id).first()
        return self._to_record(*row) if row else None

    def upsert_assignment(self, record: AssignmentRecord) -> AssignmentRecord:
        if record.detail_id is None:
            detail = self.ScheduleDetail(
                schedule_id=record.schedule_id,
                role_id=record.role_id,
                volunteer_id=record.volunteer_id,
                status=record.status,
            )
            self.db.add(detail)
        else:
            detail = self.db.get(self.ScheduleDetail, record.detail_id)
            if detail is None:
                raise KeyError(f"Schedule detail {record.detail_id} not found")
            detail.schedule_id = record.schedule_id
            detail.role_id = record.role_id
            detail.volunteer_id = record.volunteer_id
            detail.status = record.status
        self.db.flush()
        logger.debug(f"Upserted schedule detail {detail.id} (volunteer={detail.volunteer_id})")
        return replace(record, detail_id=detail.id)

    @contextmanager
    def lock_volunteer(self, volunteer_id: int):
        # Row lock on the volunteer held until the surrounding transaction ends.
        # SQLite has no FOR UPDATE; its single writer lock serialises instead.
        (
            self.db.query(self.User.id)
            .filter(self.User.id == volunteer_id)
            .with_for_update()
            .first()
        )
        yield


class InMemoryAssignmentStore(AssignmentStore):
    """
    Dict-backed assignment store

    Holds schedule occurrences and assignment records in process memory.
    Used for conflict analysis over snapshots and in unit tests. A
    per-volunteer lock lives only while someone holds or waits on it.
    """

    def __init__(self):
        self._occurrences: Dict[int, OccurrenceKey] = {}
        self._records: Dict[int, AssignmentRecord] = {}
        self._next_id = 1
        # volunteer id -> [lock, holders and waiters]
        self._locks: Dict[int, list] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_records(cls, records: Iterable[AssignmentRecord]) -> 'InMemoryAssignmentStore':
        store = cls()
        for record in records:
            store.add_schedule(record.schedule_id, record.occurrence)
            store.upsert_assignment(record)
        return store

    def add_schedule(self, schedule_id: int, occurrence: OccurrenceKey) -> None:
        self._occurrences[schedule_id] = occurrence

    def get_assignments_by_volunteer(self, volunteer_id: int) -> List[AssignmentRecord]:
        return [
            self._records[detail_id]
            for detail_id in sorted(self._records)
            if self._records[detail_id].volunteer_id == volunteer_id
        ]

    def get_occurrence_key(self, schedule_id: int) -> Optional[OccurrenceKey]:
        return self._occurrences.get(schedule_id)

    def all_assignments(self) -> List[AssignmentRecord]:
        return [self._records[detail_id] for detail_id in sorted(self._records)]

    def upsert_assignment(self, record: AssignmentRecord) -> AssignmentRecord:
        occurrence = self._occurrences.get(record.schedule_id, record.occurrence)
        if record.detail_id is None:
            record = replace(record, detail_id=self._next_id, occurrence=occurrence)
        else:
            record = replace(record, occurrence=occurrence)
        self._next_id = max(self._next_id, record.detail_id + 1)
        self._records[record.detail_id] = record
        return record

    def remove_assignment(self, detail_id: int) -> None:
        self._records.pop(detail_id, None)

    @contextmanager
    def lock_volunteer(self, volunteer_id: int):
        with self._locks_guard:
            entry = self._locks.setdefault(volunteer_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[volunteer_id]
