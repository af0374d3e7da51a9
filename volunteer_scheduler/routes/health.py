"""
Health and monitoring endpoints for load balancers and orchestrators

/health/* is exempt from rate limiting (see register_blueprints).
"""
import os
import sys
from datetime import datetime

import psutil
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

health_bp = Blueprint('health', __name__, url_prefix='/health')

MB = 1024 * 1024
GB = MB * 1024


def _timestamp():
    return datetime.utcnow().isoformat()


@health_bp.route('/ping', methods=['GET'])
def ping():
    return jsonify({'status': 'ok', 'message': 'pong', 'timestamp': _timestamp()}), 200


@health_bp.route('/live', methods=['GET'])
def liveness():
    """The process is up and answering requests"""
    return jsonify({'status': 'alive', 'timestamp': _timestamp()}), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    """
    Ready to serve the API: the database answers and the model registry
    is bound to this app.

    Returns:
        200: Ready
        503: Not ready, with the failing checks under ``errors``
    """
    checks = {'database': False, 'models': 'models' in current_app.extensions}
    errors = []

    try:
        current_app.extensions['sqlalchemy'].session.execute(text('SELECT 1'))
        checks['database'] = True
    except Exception as e:
        current_app.logger.error(f"Readiness check failed: {e}")
        errors.append(f"Database: {e}")
    if not checks['models']:
        errors.append('Models: registry not initialised')

    ready = all(checks.values())
    body = {'status': 'ready' if ready else 'not_ready', 'checks': checks, 'timestamp': _timestamp()}
    if errors:
        body['errors'] = errors
    return jsonify(body), 200 if ready else 503


@health_bp.route('/status', methods=['GET'])
def status():
    """Process resources, database backend and the active scheduling rules"""
    process = psutil.Process()
    disk = psutil.disk_usage('/')
    database_uri = current_app.config.get('SQLALCHEMY_DATABASE_URI', '')

    return jsonify({
        'status': 'operational',
        'timestamp': _timestamp(),
        'application': {
            'name': 'Volunteer Scheduler',
            'version': current_app.config.get('VERSION', 'unknown'),
            'debug': current_app.debug,
        },
        'system': {
            'python_version': sys.version,
            'platform': sys.platform,
            'process_id': os.getpid(),
        },
        'resources': {
            'memory_mb': round(process.memory_info().rss / MB, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'cpu_percent': round(process.cpu_percent(interval=0.1), 2),
            'disk_free_gb': round(disk.free / GB, 2),
            'disk_percent': disk.percent,
        },
        'database': {
            'type': database_uri.split(':', 1)[0] if database_uri else 'unknown',
        },
        'scheduling': {
            'conflictMatchLocation': bool(current_app.config.get('CONFLICT_MATCH_LOCATION')),
            'swapApprovalChecksConflicts': bool(current_app.config.get('SWAP_APPROVAL_CHECKS_CONFLICTS')),
        },
    }), 200
