"""
JSON error handling for the scheduler API

Services raise the exceptions below; views wrapped in @handle_errors turn
them into ``{error, message, status_code, ...}`` bodies, and
@with_db_transaction commits or rolls back around the view.
"""
from .exceptions import (
    AppException,
    ValidationException,
    ResourceNotFoundException,
    ScheduleConflictException,
    InvalidStateTransitionException,
    DatabaseException
)
from .decorators import handle_errors, with_db_transaction
from .logging import setup_logging, register_error_handlers


__all__ = [
    'AppException',
    'ValidationException',
    'ResourceNotFoundException',
    'ScheduleConflictException',
    'InvalidStateTransitionException',
    'DatabaseException',
    'handle_errors',
    'with_db_transaction',
    'setup_logging',
    'register_error_handlers',
]
