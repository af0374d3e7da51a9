"""
Validation utilities for the volunteer scheduler API
Provides reusable helpers that turn camelCase JSON bodies into typed values

Field problems are collected by FieldErrors and raised together as a single
ValidationException so the client sees every bad field at once.
"""
import re
from datetime import datetime, date, timezone
from typing import Any, Dict, Iterable, List, Optional

from flask import request

from volunteer_scheduler.error_handlers.exceptions import ValidationException

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def parse_datetime(value: Any) -> datetime:
    """
    Parse an ISO 8601 timestamp from a JSON body.

    A trailing 'Z' is accepted. Offsets are converted to UTC and dropped;
    the schema stores naive UTC datetimes.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value:
        raise ValueError('expected an ISO 8601 timestamp')
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=None)


def validate_date_param(date_str: str, param_name: str = 'date') -> date:
    """
    Validate and parse a query string date.

    Args:
        date_str: Date string in YYYY-MM-DD format
        param_name: Name of parameter for error messages (default: 'date')

    Returns:
        date: Parsed date object

    Raises:
        ValidationException: If date format is invalid

    Examples:
        >>> validate_date_param('2024-06-02')
        date(2024, 6, 2)
    """
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationException(
            f"Invalid {param_name} format. Use YYYY-MM-DD (e.g., 2024-06-02)",
            errors=[{'field': param_name, 'message': 'Expected YYYY-MM-DD'}]
        )


def optional_int_arg(name: str) -> Optional[int]:
    """Read an integer query string argument, or None when absent."""
    raw = request.args.get(name)
    if raw is None or raw == '':
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationException(
            f"Invalid {name}",
            errors=[{'field': name, 'message': 'Expected an integer'}]
        )


def get_json_body() -> Dict[str, Any]:
    """
    Return the request JSON object.

    Raises:
        ValidationException: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException(
            'Request body must be a JSON object',
            errors=[{'field': 'body', 'message': 'Expected a JSON object'}]
        )
    return data


class FieldErrors:
    """
    Collects per-field validation errors for one request body.

    Usage:
        fields = FieldErrors(data)
        schedule_id = fields.integer('scheduleId', required=True)
        status = fields.choice('status', ('pending', 'confirmed'), default='pending')
        fields.raise_if_any()
    """

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.errors: List[Dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        self.errors.append({'field': field, 'message': message})

    def _missing(self, field: str, required: bool) -> bool:
        value = self.data.get(field)
        if value is None or value == '':
            if required:
                self.add(field, 'Required')
            return True
        return False

    def integer(self, field: str, required: bool = False) -> Optional[int]:
        if self._missing(field, required):
            return None
        value = self.data[field]
        # bool is an int subclass; floats and "7.9" would truncate
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.isascii() and value.isdigit():
            return int(value)
        self.add(field, 'Expected an integer')
        return None

    def string(self, field: str, required: bool = False, max_length: Optional[int] = None) -> Optional[str]:
        if self._missing(field, required):
            return None
        value = self.data[field]
        if not isinstance(value, str):
            self.add(field, 'Expected a string')
            return None
        if max_length is not None and len(value) > max_length:
            self.add(field, f'Must be at most {max_length} characters')
            return None
        return value

    def boolean(self, field: str, default: Optional[bool] = None) -> Optional[bool]:
        if field not in self.data or self.data[field] is None:
            return default
        value = self.data[field]
        if not isinstance(value, bool):
            self.add(field, 'Expected a boolean')
            return default
        return value

    def timestamp(self, field: str, required: bool = False) -> Optional[datetime]:
        if self._missing(field, required):
            return None
        try:
            return parse_datetime(self.data[field])
        except ValueError:
            self.add(field, 'Expected an ISO 8601 timestamp')
            return None

    def day(self, field: str, required: bool = False) -> Optional[date]:
        if self._missing(field, required):
            return None
        value = self.data[field]
        try:
            return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
        except ValueError:
            self.add(field, 'Expected YYYY-MM-DD')
            return None

    def clock_time(self, field: str, required: bool = False) -> Optional[str]:
        if self._missing(field, required):
            return None
        value = self.data[field]
        if not isinstance(value, str) or not _TIME_RE.match(value):
            self.add(field, 'Expected HH:MM')
            return None
        return value

    def choice(self, field: str, allowed: Iterable[str], default: Optional[str] = None,
               required: bool = False) -> Optional[str]:
        allowed = tuple(allowed)
        if self._missing(field, required):
            return default
        value = self.data[field]
        if value not in allowed:
            self.add(field, f"Must be one of: {', '.join(allowed)}")
            return default
        return value

    def int_list(self, field: str) -> Optional[List[int]]:
        if field not in self.data or self.data[field] is None:
            return None
        value = self.data[field]
        if not isinstance(value, list) or not all(
            isinstance(item, int) and not isinstance(item, bool) for item in value
        ):
            self.add(field, 'Expected a list of integers')
            return None
        return value

    def raise_if_any(self, message: str = 'Validation error') -> None:
        if self.errors:
            raise ValidationException(message, errors=self.errors)


def sanitize_request_data(data: str) -> str:
    """
    Remove sensitive data from request strings for safe logging.

    Redacts common sensitive field patterns (passwords, tokens, API keys, secrets).

    Examples:
        >>> sanitize_request_data('{"password": "secret123"}')
        '{"password": "[REDACTED]"}'
    """
    for key in ('password', 'token', 'api_key', 'secret', 'credential'):
        data = re.sub(rf'("{key}"\s*:\s*")[^"]*(")', r'\1[REDACTED]\2', data, flags=re.IGNORECASE)
    return data
