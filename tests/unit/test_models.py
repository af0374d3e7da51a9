"""
Unit tests for database models.

Tests cover:
- Model defaults
- JSON serialisation (camelCase keys, password never exposed)
- Cascades between schedules, details and swap requests
"""
import pytest
from datetime import datetime


class TestUserModel:

    @pytest.mark.unit
    def test_defaults(self, user_factory):
        user = user_factory()
        assert user.role == 'volunteer'
        assert user.created_at is not None

    @pytest.mark.unit
    def test_to_dict_hides_password(self, user_factory):
        data = user_factory(password='hunter2').to_dict()
        assert 'password' not in data
        assert set(['id', 'username', 'name', 'email', 'role']).issubset(data)

    @pytest.mark.unit
    def test_repr(self, user_factory):
        user = user_factory(username='alice')
        assert repr(user) == f'<User {user.id}: alice>'


class TestTeamModels:

    @pytest.mark.unit
    def test_team_default_color(self, team_factory):
        assert team_factory().color == '#3f51b5'

    @pytest.mark.unit
    def test_role_defaults_and_dict(self, role_factory):
        role = role_factory(name='Guitar')
        data = role.to_dict()
        assert data['name'] == 'Guitar'
        assert data['requiresTraining'] is False
        assert data['teamId'] == role.team_id

    @pytest.mark.unit
    def test_member_role_ids_round_trip(self, models, db, user_factory, team_factory, role_factory):
        team = team_factory()
        role = role_factory(team=team)
        user = user_factory()
        member = models['TeamMember'](user_id=user.id, team_id=team.id, role_ids=[role.id])
        db.session.add(member)
        db.session.commit()

        fetched = db.session.get(models['TeamMember'], (user.id, team.id))
        assert fetched.to_dict()['roleIds'] == [role.id]
        assert fetched.is_active is True
        assert fetched.is_trainee is False


class TestScheduleModels:

    @pytest.mark.unit
    def test_detail_defaults(self, detail_factory):
        detail = detail_factory()
        assert detail.status == 'pending'
        assert detail.volunteer_id is None
        assert detail.has_trainee is False

    @pytest.mark.unit
    def test_schedule_to_dict(self, schedule_factory):
        schedule = schedule_factory(notes='Bring music stands')
        data = schedule.to_dict()
        assert data['status'] == 'draft'
        assert data['notes'] == 'Bring music stands'
        assert data['eventId'] == schedule.event_id

    @pytest.mark.unit
    def test_deleting_schedule_removes_details_and_swaps(self, models, db, user_factory,
                                                         detail_factory, swap_request_factory):
        volunteer = user_factory()
        detail = detail_factory(volunteer=volunteer)
        swap_request_factory(detail=detail, requester=volunteer)
        schedule = db.session.get(models['Schedule'], detail.schedule_id)

        db.session.delete(schedule)
        db.session.commit()

        assert models['ScheduleDetail'].query.count() == 0
        assert models['SwapRequest'].query.count() == 0


class TestSwapRequestModel:

    @pytest.mark.unit
    def test_is_resolved(self, swap_request_factory):
        swap = swap_request_factory()
        assert swap.is_resolved is False
        swap.status = 'rejected'
        assert swap.is_resolved is True

    @pytest.mark.unit
    def test_to_dict_timestamps(self, swap_request_factory, db):
        swap = swap_request_factory()
        swap.resolved_at = datetime(2024, 6, 1, 12, 0)
        db.session.commit()
        data = swap.to_dict()
        assert data['resolvedAt'] == '2024-06-01T12:00:00'
        assert data['status'] == 'pending'
