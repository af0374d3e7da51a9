"""
Double-booking detection for volunteer assignments

Two entry points share one notion of collision (same volunteer, same
occurrence key):

- ScheduleConsistencyGuard checks a single candidate assignment before it
  is written.
- ConflictDetector scans every assignment and reports each volunteer who is
  booked more than once at the same occurrence.

Occurrence keys compare by exact start timestamp, plus location when
location matching is enabled.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple

from .assignment_store import AssignmentStore
from .conflict_types import AssignmentRecord, ConflictDetail, ConflictReport, OccurrenceKey


logger = logging.getLogger(__name__)


class ScheduleConsistencyGuard:
    """
    Rejects assignments that would double-book a volunteer.

    Usage:
        guard = ScheduleConsistencyGuard(store, match_location=False)
        conflict = guard.check_conflict(key, volunteer_id)
        if conflict:
            raise ScheduleConflictException(..., conflict.to_dict())
    """

    def __init__(self, store: AssignmentStore, match_location: bool = False):
        self.store = store
        self.match_location = match_location

    def check_conflict(
        self,
        occurrence: OccurrenceKey,
        volunteer_id: Optional[int],
        exclude_detail_id: Optional[int] = None
    ) -> Optional[ConflictDetail]:
        """
        Return the first existing assignment of the volunteer at the same
        occurrence, or None.

        Args:
            occurrence: Occurrence key of the candidate assignment
            volunteer_id: Volunteer being assigned; None (empty slot) never conflicts
            exclude_detail_id: Detail being updated, ignored when comparing
        """
        if volunteer_id is None:
            return None

        candidate = occurrence.scoped(self.match_location)
        for record in self.store.get_assignments_by_volunteer(volunteer_id):
            if exclude_detail_id is not None and record.detail_id == exclude_detail_id:
                continue
            if record.occurrence.scoped(self.match_location) == candidate:
                logger.info(
                    f"Conflict: volunteer {volunteer_id} already holds detail "
                    f"{record.detail_id} at {candidate.starts_at.isoformat()}"
                )
                return ConflictDetail(record)
        return None


class ConflictDetector:
    """
    Bulk scan for double-booked volunteers.

    Reports are ordered by occurrence, then volunteer name and id. The
    assignments inside a report are ordered by team name, role name and
    detail id, so the output does not depend on fetch order.
    """

    def __init__(self, store: AssignmentStore, match_location: bool = False):
        self.store = store
        self.match_location = match_location

    def _group(self) -> Dict[OccurrenceKey, Dict[int, List[AssignmentRecord]]]:
        groups: Dict[OccurrenceKey, Dict[int, List[AssignmentRecord]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for record in self.store.all_assignments():
            if record.volunteer_id is None:
                continue
            key = record.occurrence.scoped(self.match_location)
            groups[key][record.volunteer_id].append(record)
        return groups

    def find_all_conflicts(self) -> List[ConflictReport]:
        reports = []
        for key, by_volunteer in self._group().items():
            for volunteer_id, records in by_volunteer.items():
                if len(records) < 2:
                    continue
                records = sorted(
                    records,
                    key=lambda r: (r.team_name, r.role_name, r.detail_id or 0)
                )
                first = records[0]
                locations = {r.occurrence.location for r in records}
                location = key.location
                if location is None and len(locations) == 1:
                    location = locations.pop()
                reports.append(ConflictReport(
                    volunteer_id=volunteer_id,
                    volunteer_name=first.volunteer_name,
                    volunteer_email=first.volunteer_email,
                    volunteer_avatar=first.volunteer_avatar,
                    occurrence=OccurrenceKey(key.starts_at, location),
                    assignments=records,
                    location_scoped=key.location is not None,
                ))

        reports.sort(key=lambda r: (r.occurrence.sort_key(), r.volunteer_name, r.volunteer_id))
        logger.debug(f"Conflict scan found {len(reports)} double-booked volunteer(s)")
        return reports

    def conflicting_volunteer_ids(self) -> Set[int]:
        return {report.volunteer_id for report in self.find_all_conflicts()}

    def conflicting_event_ids(self) -> Set[int]:
        event_ids: Set[int] = set()
        for report in self.find_all_conflicts():
            event_ids.update(report.event_ids)
        return event_ids

    def summary(self) -> Tuple[List[ConflictReport], Set[int]]:
        """Reports plus the ids of every event they touch, from a single scan"""
        reports = self.find_all_conflicts()
        event_ids: Set[int] = set()
        for report in reports:
            event_ids.update(report.event_ids)
        return reports, event_ids
