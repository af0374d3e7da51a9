"""
Event staffing status roll-up shown on the dashboard
"""
from .conflict_types import EventStatus

# Fewer assigned volunteers than this leaves a service incomplete
INCOMPLETE_BELOW = 5
# Fewer than this (or any double booking) is a warning
WARNING_BELOW = 10


def derive_event_status(assigned_count: int, has_conflict: bool) -> EventStatus:
    """
    Classify an event by headcount and conflicts.

    Args:
        assigned_count: Number of distinct volunteers assigned to the event
        has_conflict: Whether any of the event's assignments is double-booked

    Returns:
        EventStatus.INCOMPLETE below 5 volunteers, WARNING below 10 or when
        a conflict is present, otherwise COMPLETE

    Raises:
        ValueError: If assigned_count is negative
    """
    if assigned_count < 0:
        raise ValueError(f"assigned_count must be >= 0, got {assigned_count}")
    if assigned_count < INCOMPLETE_BELOW:
        return EventStatus.INCOMPLETE
    if assigned_count < WARNING_BELOW or has_conflict:
        return EventStatus.WARNING
    return EventStatus.COMPLETE
