"""
Exceptions raised by services and rendered by @handle_errors

    AppException                      500  ApplicationError
    ├── ValidationException           400  ValidationError         + errors
    ├── ResourceNotFoundException     404  NotFound
    ├── ScheduleConflictException     409  ScheduleConflict        + conflict
    ├── InvalidStateTransitionException
    │                                 409  InvalidStateTransition  + currentStatus
    └── DatabaseException             500  DatabaseError
"""
from typing import Dict, Any, List, Optional


class AppException(Exception):
    """
    Base for errors that carry their own HTTP status.

    ``details`` is merged into the response body next to ``error``,
    ``message`` and ``status_code``.
    """
    status_code = 500
    error_type = 'ApplicationError'

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {'error': self.error_type, 'message': self.message, 'status_code': self.status_code}
        body.update(self.details)
        return body

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"


class ValidationException(AppException):
    """
    Request body or query failed validation (400).

    Example:
        >>> raise ValidationException('Validation error',
        ...     errors=[{'field': 'roleId', 'message': 'Required'}])
    """
    status_code = 400
    error_type = 'ValidationError'

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message, details={'errors': errors} if errors else None)
        self.errors = errors or []


class ResourceNotFoundException(AppException):
    status_code = 404
    error_type = 'NotFound'


class ScheduleConflictException(AppException):
    """
    The volunteer already holds an assignment at the same occurrence (409).

    ``conflict`` holds the colliding schedule detail with its schedule,
    role and team, which the client needs to offer keep / replace / both.
    """
    status_code = 409
    error_type = 'ScheduleConflict'

    def __init__(self, message: str, conflict: Dict[str, Any]):
        super().__init__(message, details={'conflict': conflict})
        self.conflict = conflict


class InvalidStateTransitionException(AppException):
    """A swap request that is approved or rejected cannot be resolved again (409)"""
    status_code = 409
    error_type = 'InvalidStateTransition'


class DatabaseException(AppException):
    status_code = 500
    error_type = 'DatabaseError'
