"""
Routes package for the volunteer scheduler
One blueprint per REST resource; services are built per request from the
bound session and the model registry.
"""
from flask import current_app

from volunteer_scheduler.models import get_models
from volunteer_scheduler.services.dashboard_service import DashboardService
from volunteer_scheduler.services.schedule_service import ScheduleService
from volunteer_scheduler.services.swap_service import SwapService


def _session():
    return current_app.extensions['sqlalchemy'].session


def match_location() -> bool:
    return bool(current_app.config.get('CONFLICT_MATCH_LOCATION', False))


def schedule_service() -> ScheduleService:
    return ScheduleService(_session(), get_models(), match_location=match_location())


def swap_service() -> SwapService:
    return SwapService(
        _session(),
        get_models(),
        match_location=match_location(),
        check_conflicts=bool(current_app.config.get('SWAP_APPROVAL_CHECKS_CONFLICTS', False)),
    )


def dashboard_service() -> DashboardService:
    return DashboardService(_session(), get_models(), match_location=match_location())


__all__ = [
    'match_location',
    'schedule_service',
    'swap_service',
    'dashboard_service',
]
