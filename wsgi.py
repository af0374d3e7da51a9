"""
WSGI entry point

    gunicorn --config gunicorn_config.py wsgi:app

FLASK_ENV defaults to production here; `python wsgi.py` runs the
development server against the same app object.
"""
import os

os.environ.setdefault('FLASK_ENV', 'production')

from volunteer_scheduler import create_app, init_db  # noqa: E402

app = create_app()

# Tables are created if missing; later schema changes go through `flask db upgrade`
try:
    init_db(app)
except Exception as e:
    app.logger.warning(f"Database initialization skipped: {e}")

if __name__ == "__main__":
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000)
