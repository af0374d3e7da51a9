"""
Unit tests for event status roll-up and availability rule evaluation.
"""
import pytest
from datetime import date, datetime
from types import SimpleNamespace

from volunteer_scheduler.services.availability import blocking_rules, rule_covers
from volunteer_scheduler.services.conflict_types import EventStatus
from volunteer_scheduler.services.event_status import derive_event_status


class TestDeriveEventStatus:

    @pytest.mark.unit
    @pytest.mark.parametrize('count, expected', [
        (0, EventStatus.INCOMPLETE),
        (4, EventStatus.INCOMPLETE),
        (5, EventStatus.WARNING),
        (9, EventStatus.WARNING),
        (10, EventStatus.COMPLETE),
        (25, EventStatus.COMPLETE),
    ])
    def test_headcount_thresholds(self, count, expected):
        assert derive_event_status(count, has_conflict=False) == expected

    @pytest.mark.unit
    def test_conflict_forces_warning_when_fully_staffed(self):
        assert derive_event_status(12, has_conflict=True) == EventStatus.WARNING

    @pytest.mark.unit
    def test_conflict_does_not_lift_incomplete(self):
        assert derive_event_status(3, has_conflict=True) == EventStatus.INCOMPLETE

    @pytest.mark.unit
    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            derive_event_status(-1, has_conflict=False)

    @pytest.mark.unit
    def test_status_serialises_as_string(self):
        assert derive_event_status(10, False).value == 'complete'


def rule(**kwargs):
    defaults = dict(day_of_week=None, start_time=None, end_time=None, is_available=False,
                    start_date=None, end_date=None)
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestAvailabilityRules:
    """2024-06-02 is a Sunday."""

    SUNDAY_9AM = datetime(2024, 6, 2, 9, 0)

    @pytest.mark.unit
    def test_day_of_week_uses_sunday_zero(self):
        assert rule_covers(rule(day_of_week=0), self.SUNDAY_9AM)
        assert not rule_covers(rule(day_of_week=1), self.SUNDAY_9AM)

    @pytest.mark.unit
    def test_time_window_is_half_open(self):
        assert rule_covers(rule(start_time='09:00', end_time='12:00'), self.SUNDAY_9AM)
        assert not rule_covers(rule(start_time='07:00', end_time='09:00'), self.SUNDAY_9AM)

    @pytest.mark.unit
    def test_date_window(self):
        vacation = rule(start_date=date(2024, 6, 1), end_date=date(2024, 6, 8))
        assert rule_covers(vacation, self.SUNDAY_9AM)
        assert not rule_covers(rule(start_date=date(2024, 6, 3)), self.SUNDAY_9AM)

    @pytest.mark.unit
    def test_available_rules_never_block(self):
        rules = [rule(day_of_week=0, is_available=True), rule(day_of_week=0)]
        assert blocking_rules(rules, self.SUNDAY_9AM) == [rules[1]]
