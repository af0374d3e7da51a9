"""
Volunteer scheduler

``create_app`` builds the Flask app: configuration, extensions, model
registry, JSON error handling and the API blueprints.
"""
import os
from datetime import datetime

from flask import Flask, request
from flask_wtf.csrf import generate_csrf
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import get_config
from .extensions import db, migrate, csrf, limiter

PROJECT_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
INSTANCE_PREFIX = 'sqlite:///instance/'


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    # Schedule detail and swap request cascades depend on this
    if 'sqlite' in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _instance_database_uri(uri):
    """Resolve ``sqlite:///instance/<name>`` against the project root"""
    if not uri.startswith(INSTANCE_PREFIX):
        return uri
    instance_dir = os.path.join(PROJECT_ROOT, 'instance')
    os.makedirs(instance_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(instance_dir, uri[len(INSTANCE_PREFIX):])}"


def create_app(config_name=None):
    """
    Build an application instance.

    Args:
        config_name: 'development', 'testing' or 'production'. Defaults
            to FLASK_ENV.

    Raises:
        ValueError: If the selected configuration fails validation
    """
    app = Flask(__name__)
    # One reverse proxy in front (nginx or the platform router)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    config_class = get_config(config_name)
    config_class.validate()
    app.config.from_object(config_class)
    app.config['VERSION'] = datetime.now().strftime('%Y%m%d%H%M%S')
    app.config['SQLALCHEMY_DATABASE_URI'] = _instance_database_uri(app.config['SQLALCHEMY_DATABASE_URI'])

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    limiter.init_app(app)

    from volunteer_scheduler.error_handlers import setup_logging, register_error_handlers
    setup_logging(app)
    register_error_handlers(app)

    from volunteer_scheduler.models import init_models, model_registry
    model_registry.build(db, init_models)
    model_registry.init_app(app)

    register_blueprints(app)
    register_csrf_cookie(app)

    app.logger.info(
        f"Volunteer scheduler ready ({config_class.__name__}, "
        f"conflict key {'start+location' if app.config['CONFLICT_MATCH_LOCATION'] else 'start'})"
    )
    return app


def register_blueprints(app):
    from volunteer_scheduler.routes.api_users import users_api_bp
    from volunteer_scheduler.routes.api_teams import teams_api_bp
    from volunteer_scheduler.routes.api_events import events_api_bp
    from volunteer_scheduler.routes.api_schedules import schedules_api_bp
    from volunteer_scheduler.routes.api_availability import availability_api_bp
    from volunteer_scheduler.routes.api_swap_requests import swap_requests_api_bp
    from volunteer_scheduler.routes.api_notifications import notifications_api_bp
    from volunteer_scheduler.routes.api_conflicts import conflicts_api_bp
    from volunteer_scheduler.routes.dashboard import dashboard_bp
    from volunteer_scheduler.routes.health import health_bp

    for blueprint in (
        users_api_bp, teams_api_bp, events_api_bp, schedules_api_bp,
        availability_api_bp, swap_requests_api_bp, notifications_api_bp,
        conflicts_api_bp, dashboard_bp,
    ):
        app.register_blueprint(blueprint)

    # Probes are polled by orchestrators
    limiter.exempt(health_bp)
    app.register_blueprint(health_bp)


def register_csrf_cookie(app):
    """
    Hand the CSRF token to the browser client in a readable cookie; the
    client sends it back in X-CSRFToken on writes.
    """
    @app.after_request
    def add_csrf_token_cookie(response):
        if not app.config.get('WTF_CSRF_ENABLED', True):
            return response
        if request.endpoint and not request.endpoint.startswith(('static', 'health')):
            response.set_cookie(
                'csrf_token',
                generate_csrf(),
                secure=app.config.get('SESSION_COOKIE_SECURE', False),
                httponly=False,
                samesite='Lax'
            )
        return response


def init_db(app):
    """Create any missing tables"""
    with app.app_context():
        db.create_all()
