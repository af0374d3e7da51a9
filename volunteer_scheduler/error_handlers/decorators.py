"""
View decorators for JSON error responses and request-scoped transactions

Stack them in this order so a rollback happens before the error is rendered:

    @bp.route('/schedule-details', methods=['POST'])
    @handle_errors
    @with_db_transaction
    def create_schedule_detail():
        ...
"""
from functools import wraps
from datetime import datetime

from flask import jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import AppException, DatabaseException


def new_error_id() -> str:
    return datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')


def internal_error_response(error_id: str, error: str = 'InternalError'):
    """Generic 500 body; internal details stay in the log"""
    return jsonify({
        'error': error,
        'message': 'An unexpected error occurred',
        'error_id': error_id,
        'status_code': 500
    }), 500


def handle_errors(f):
    """
    Render AppException subclasses as their JSON body and status code.

    Conflicts (409) carry the colliding assignment under ``conflict``;
    validation errors (400) carry ``errors: [{field, message}]``. Anything
    else is logged with an error id and returned as a generic 500.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)

        except AppException as e:
            log = current_app.logger.error if e.status_code >= 500 else current_app.logger.warning
            log(f"{e.error_type} in {f.__name__}: {e.message}")
            return jsonify(e.to_dict()), e.status_code

        except Exception as e:
            error_id = new_error_id()
            current_app.logger.error(
                f"Unexpected error [{error_id}] in {f.__name__}: {e}",
                exc_info=True
            )
            return internal_error_response(error_id)

    return decorated


def with_db_transaction(f):
    """
    Commit the session when the view returns, roll back when it raises.

    Services only flush, so a guard rejection (409) or a validation error
    leaves no partial writes. Driver errors surface as DatabaseException.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        db = current_app.extensions['sqlalchemy']

        try:
            result = f(*args, **kwargs)
            db.session.commit()
            return result
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error in {f.__name__}: {e}", exc_info=True)
            raise DatabaseException('Database operation failed') from e
        except Exception:
            db.session.rollback()
            raise

    return decorated
