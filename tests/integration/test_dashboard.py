"""
Integration tests for dashboard aggregates.
"""
import pytest
import json
from datetime import datetime, timedelta

from volunteer_scheduler.services.dashboard_service import month_bounds


def next_week():
    return (datetime.utcnow() + timedelta(days=7)).replace(hour=9, minute=0, second=0, microsecond=0)


class TestDashboardStats:

    @pytest.mark.integration
    def test_empty_database(self, client):
        response = client.get('/api/dashboard/stats')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['volunteerCount'] == 0
        assert data['teamCount'] == 0
        assert data['conflictCount'] == 0
        assert data['pendingSwapRequests'] == 0
        assert data['volunteersByTeam'] == []

    @pytest.mark.integration
    def test_counts(self, client, models, db, user_factory, team_factory, event_factory):
        user_factory(role='volunteer')
        leader = user_factory(role='leader')
        user_factory(role='admin')
        team = team_factory(name='Worship')
        db.session.add(models['TeamMember'](user_id=leader.id, team_id=team.id, role_ids=[]))
        db.session.commit()
        event_factory(date=next_week())
        event_factory(date=datetime(2020, 1, 5, 9, 0))

        data = client.get('/api/dashboard/stats').get_json()

        assert data['volunteerCount'] == 2
        assert data['teamCount'] == 1
        assert data['upcomingEventsCount'] == 1
        assert data['volunteersByTeam'] == [
            {'teamId': team.id, 'teamName': 'Worship', 'color': '#3f51b5', 'volunteerCount': 1}
        ]

    @pytest.mark.integration
    def test_monthly_service_count(self, client, event_factory):
        start, end = month_bounds(datetime.utcnow())
        event_factory(date=start)
        event_factory(date=end - timedelta(minutes=1))
        event_factory(date=end)

        assert client.get('/api/dashboard/stats').get_json()['monthlyServiceCount'] == 2

    @pytest.mark.integration
    def test_conflict_count_matches_conflict_report(self, client, user_factory, event_factory,
                                                    schedule_factory, detail_factory, swap_request_factory):
        volunteer = user_factory()
        when = next_week()
        first = detail_factory(schedule=schedule_factory(event=event_factory(date=when)), volunteer=volunteer)
        detail_factory(schedule=schedule_factory(event=event_factory(date=when)), volunteer=volunteer)
        swap_request_factory(detail=first, requester=volunteer)

        stats = client.get('/api/dashboard/stats').get_json()
        conflicts = client.get('/api/conflicts').get_json()

        assert stats['conflictCount'] == len(conflicts) == 1
        assert stats['pendingSwapRequests'] == 1


class TestUpcomingServices:

    @pytest.mark.integration
    def test_status_from_headcount_and_conflicts(self, client, user_factory, event_factory, team_factory,
                                                 role_factory, schedule_factory, detail_factory):
        team = team_factory()
        role = role_factory(team=team)
        when = next_week()

        event_factory(name='Empty', date=when + timedelta(days=1))
        full = event_factory(name='Full', date=when + timedelta(days=2))
        full_schedule = schedule_factory(event=full, team=team)
        for _ in range(10):
            detail_factory(schedule=full_schedule, role=role, volunteer=user_factory())

        clash = event_factory(name='Clash', date=when + timedelta(days=3))
        clash_schedule = schedule_factory(event=clash, team=team)
        volunteers = [user_factory() for _ in range(10)]
        for volunteer in volunteers:
            detail_factory(schedule=clash_schedule, role=role, volunteer=volunteer)
        detail_factory(schedule=clash_schedule, role=role, volunteer=volunteers[0])

        response = client.get('/api/dashboard/upcoming-services')

        assert response.status_code == 200
        services = {s['name']: s for s in response.get_json()}
        assert services['Empty']['status'] == 'incomplete'
        assert services['Empty']['teamCount'] == 0
        assert services['Full']['status'] == 'complete'
        assert services['Full']['volunteerCount'] == 10
        assert services['Full']['hasConflicts'] is False
        assert services['Clash']['status'] == 'warning'
        assert services['Clash']['hasConflicts'] is True

    @pytest.mark.integration
    def test_ordered_and_limited(self, client, event_factory):
        when = next_week()
        for offset in (3, 1, 2):
            event_factory(name=f'Day {offset}', date=when + timedelta(days=offset))
        event_factory(name='Past', date=datetime(2020, 1, 5, 9, 0))

        services = client.get('/api/dashboard/upcoming-services?limit=2').get_json()

        assert [s['name'] for s in services] == ['Day 1', 'Day 2']
