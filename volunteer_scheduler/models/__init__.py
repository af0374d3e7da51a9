"""
SQLAlchemy models for users, teams, events, schedules, availability,
swap requests and notifications.

Each module exposes a create_*_model(s)(db) factory; init_models builds
them all and the registry hands the result to every app.
"""
from .user import create_user_model
from .team import create_team_models
from .event import create_event_model
from .schedule import create_schedule_models
from .availability import create_availability_rule_model
from .swap_request import create_swap_request_model
from .notification import create_notification_model


def init_models(db):
    """Build every model class against ``db``, keyed by class name"""
    User = create_user_model(db)
    Team, TeamRole, TeamMember = create_team_models(db)
    Event = create_event_model(db)
    Schedule, ScheduleDetail = create_schedule_models(db)
    AvailabilityRule = create_availability_rule_model(db)
    SwapRequest = create_swap_request_model(db)
    Notification = create_notification_model(db)

    return {
        'User': User,
        'Team': Team,
        'TeamRole': TeamRole,
        'TeamMember': TeamMember,
        'Event': Event,
        'Schedule': Schedule,
        'ScheduleDetail': ScheduleDetail,
        'AvailabilityRule': AvailabilityRule,
        'SwapRequest': SwapRequest,
        'Notification': Notification,
    }


__all__ = [
    'init_models',
    'create_user_model',
    'create_team_models',
    'create_event_model',
    'create_schedule_models',
    'create_availability_rule_model',
    'create_swap_request_model',
    'create_notification_model',
    'model_registry',
    'get_models',
]

from .registry import model_registry, get_models
