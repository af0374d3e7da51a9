"""
Dashboard API Blueprint
Headline counts and upcoming service status for the landing page
"""
from datetime import datetime

from flask import Blueprint, jsonify, current_app, request

from volunteer_scheduler.error_handlers import handle_errors
from volunteer_scheduler.routes import dashboard_service

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@dashboard_bp.route('/stats', methods=['GET'])
@handle_errors
def stats():
    """Aggregate counts; ``conflictCount`` is the length of GET /api/conflicts"""
    return jsonify(dashboard_service().build_dashboard_stats(datetime.utcnow()))


@dashboard_bp.route('/upcoming-services', methods=['GET'])
@handle_errors
def upcoming_services():
    default_limit = current_app.config.get('UPCOMING_SERVICES_LIMIT', 5)
    limit = request.args.get('limit', default_limit, type=int)
    limit = max(1, min(limit, 50))
    return jsonify(dashboard_service().upcoming_services(datetime.utcnow(), limit))
