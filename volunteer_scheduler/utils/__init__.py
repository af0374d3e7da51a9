"""
Utility modules for the volunteer scheduler
"""
from .validators import FieldErrors, get_json_body, parse_datetime, sanitize_request_data

__all__ = ['FieldErrors', 'get_json_body', 'parse_datetime', 'sanitize_request_data']
