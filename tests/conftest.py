"""
Shared fixtures: a session-wide app on in-memory SQLite, a fresh schema
per test, and factories that write rows straight to the database
(schedule details created here skip the consistency guard).
"""
import itertools

import pytest
from datetime import datetime

from volunteer_scheduler import create_app
from volunteer_scheduler.extensions import db as _db


SUNDAY_SERVICE = datetime(2024, 6, 2, 9, 0)


@pytest.fixture(scope='session')
def app():
    # TestingConfig already disables CSRF and rate limiting
    return create_app('testing')


@pytest.fixture(scope='function')
def db(app):
    """Empty schema for each test; the app context stays pushed until teardown"""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """Test client sharing the test's app context and session."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope='function')
def models(app, db):
    from volunteer_scheduler.models import get_models
    return get_models()


@pytest.fixture
def config_override(app):
    """
    Temporarily change app.config keys for one test.

    Usage:
        config_override(CONFLICT_MATCH_LOCATION=True)
    """
    original = {}

    def _override(**kwargs):
        for key, value in kwargs.items():
            original.setdefault(key, app.config.get(key))
            app.config[key] = value

    yield _override

    for key, value in original.items():
        app.config[key] = value


def _save(db, row):
    db.session.add(row)
    db.session.commit()
    return row


# --- row factories -----------------------------------------------------------

@pytest.fixture
def user_factory(models, db):
    """
    Usage:
        volunteer = user_factory(name="Alice")
        leader = user_factory(role="leader")
    """
    seq = itertools.count(1)

    def _create_user(**kwargs):
        n = next(seq)
        fields = {
            'username': f'user{n}',
            'password': 'password',
            'name': f'Volunteer {n}',
            'email': f'user{n}@example.com',
            'role': 'volunteer',
        }
        fields.update(kwargs)
        return _save(db, models['User'](**fields))

    return _create_user


@pytest.fixture
def team_factory(models, db):
    seq = itertools.count(1)

    def _create_team(**kwargs):
        fields = {'name': f'Team {next(seq)}'}
        fields.update(kwargs)
        return _save(db, models['Team'](**fields))

    return _create_team


@pytest.fixture
def role_factory(models, db, team_factory):
    """Factory for TeamRole; creates a team when none is given."""
    seq = itertools.count(1)

    def _create_role(team=None, **kwargs):
        if team is None:
            team = team_factory()
        fields = {'team_id': team.id, 'name': f'Role {next(seq)}'}
        fields.update(kwargs)
        return _save(db, models['TeamRole'](**fields))

    return _create_role


@pytest.fixture
def event_factory(models, db):
    seq = itertools.count(1)

    def _create_event(**kwargs):
        fields = {'name': f'Service {next(seq)}', 'date': SUNDAY_SERVICE, 'location': 'Main Hall'}
        fields.update(kwargs)
        return _save(db, models['Event'](**fields))

    return _create_event


@pytest.fixture
def schedule_factory(models, db, event_factory, team_factory):
    def _create_schedule(event=None, team=None, **kwargs):
        event = event or event_factory()
        team = team or team_factory()
        fields = {'event_id': event.id, 'team_id': team.id, 'status': 'draft'}
        fields.update(kwargs)
        return _save(db, models['Schedule'](**fields))

    return _create_schedule


@pytest.fixture
def detail_factory(models, db, schedule_factory, role_factory):
    """
    Usage:
        detail = detail_factory(schedule=schedule, volunteer=user)
    """
    def _create_detail(schedule=None, role=None, volunteer=None, **kwargs):
        schedule = schedule or schedule_factory()
        role = role or role_factory(team=schedule.team)
        fields = {
            'schedule_id': schedule.id,
            'role_id': role.id,
            'volunteer_id': volunteer.id if volunteer is not None else None,
            'status': 'pending',
        }
        fields.update(kwargs)
        return _save(db, models['ScheduleDetail'](**fields))

    return _create_detail


@pytest.fixture
def swap_request_factory(models, db, user_factory, detail_factory):
    def _create_swap(detail=None, requester=None, replacement=None, **kwargs):
        requester = requester or user_factory()
        detail = detail or detail_factory(volunteer=requester)
        fields = {
            'requester_id': requester.id,
            'schedule_id': detail.schedule_id,
            'schedule_detail_id': detail.id,
            'replacement_id': replacement.id if replacement is not None else None,
            'status': 'pending',
        }
        fields.update(kwargs)
        return _save(db, models['SwapRequest'](**fields))

    return _create_swap
