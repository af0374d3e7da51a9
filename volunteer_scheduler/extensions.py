"""
Unbound Flask extensions, attached to the app in create_app().

Rate limiting reads RATELIMIT_* keys (default limit, storage URI, strategy)
from app.config when the limiter is bound.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)
