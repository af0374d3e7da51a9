"""
Logging setup and app-wide error handlers

Views wrapped in @handle_errors render their own errors. The handlers
registered here cover routing errors (unknown URL, wrong method), rate
limiting, and anything raised outside a decorated view.
"""
import logging
import os
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from .decorators import internal_error_response, new_error_id
from .exceptions import AppException


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

# status -> (error label, message)
HTTP_ERRORS = {
    400: ('Bad Request', 'The request could not be understood by the server'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for this endpoint'),
    429: ('Too Many Requests', 'Rate limit exceeded'),
}


def _project_path(path):
    if os.path.isabs(path):
        return path
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
    return os.path.join(basedir, path)


def setup_logging(app):
    """
    Attach file and console handlers to the Flask logger and to the
    ``volunteer_scheduler`` package logger used by the services.

    An empty LOG_FILE disables the file handler. Calling this again for a
    second app does not stack duplicate handlers on the package logger.
    """
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper())
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = []
    console_handler = logging.StreamHandler()
    handlers.append(console_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        log_file = _project_path(log_file)
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
    app.logger.setLevel(log_level)

    package_logger = logging.getLogger('volunteer_scheduler')
    package_logger.setLevel(log_level)
    if not getattr(package_logger, '_volunteer_scheduler_configured', False):
        for handler in handlers:
            package_logger.addHandler(handler)
        package_logger._volunteer_scheduler_configured = True

    logging.getLogger('werkzeug').setLevel(log_level)
    return app.logger


def _wants_json():
    return request.is_json or request.path.startswith('/api/')


def _log_request(log, error_id):
    from volunteer_scheduler.utils.validators import sanitize_request_data

    log(f"Request [{error_id}]: {request.method} {request.url}")
    log(f"Request data [{error_id}]: {sanitize_request_data(request.get_data(as_text=True)[:1000])}")


def register_error_handlers(app):
    """Register JSON error handlers on the app"""

    @app.errorhandler(AppException)
    def app_exception(error):
        app.logger.warning(f"{error.error_type} on {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    def http_error(error):
        label, message = HTTP_ERRORS[error.code]
        app.logger.warning(f"{error.code} {label}: {request.method} {request.url} from {request.remote_addr}")
        if error.code == 405:
            message = f'The {request.method} method is not allowed for this endpoint'
        if _wants_json() or error.code == 429:
            return jsonify({'error': label, 'message': message, 'status_code': error.code}), error.code
        return label, error.code

    for code in HTTP_ERRORS:
        app.register_error_handler(code, http_error)

    @app.errorhandler(500)
    def internal_error(error):
        error_id = new_error_id()
        app.logger.error(f"Internal Server Error [{error_id}]: {error}")
        app.logger.error(f"Traceback [{error_id}]: {traceback.format_exc()}")
        _log_request(app.logger.error, error_id)
        return internal_error_response(error_id, error='Internal Server Error')

    @app.errorhandler(Exception)
    def unexpected_error(error):
        if isinstance(error, HTTPException):
            return error

        error_id = new_error_id()
        app.logger.critical(f"Unexpected error [{error_id}]: {error}")
        app.logger.critical(f"Traceback [{error_id}]: {traceback.format_exc()}")
        _log_request(app.logger.critical, error_id)
        return internal_error_response(error_id, error='Unexpected Error')
