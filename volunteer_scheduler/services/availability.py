"""
Availability rule evaluation

Rules never block a write; the schedule service reports the rules that
cover an occurrence as warnings.
"""
from datetime import datetime
from typing import Iterable, List


def _weekday_sunday_first(when: datetime) -> int:
    # Python's weekday() is Monday = 0; rules store Sunday = 0
    return (when.weekday() + 1) % 7


def rule_covers(rule, when: datetime) -> bool:
    """True when the rule's day, time window and date window all include ``when``"""
    if rule.day_of_week is not None and rule.day_of_week != _weekday_sunday_first(when):
        return False

    clock = when.strftime('%H:%M')
    if rule.start_time and clock < rule.start_time:
        return False
    if rule.end_time and clock >= rule.end_time:
        return False

    day = when.date()
    if rule.start_date and day < rule.start_date:
        return False
    if rule.end_date and day > rule.end_date:
        return False
    return True


def blocking_rules(rules: Iterable, when: datetime) -> List:
    """Unavailability rules that apply at ``when``"""
    return [rule for rule in rules if not rule.is_available and rule_covers(rule, when)]
