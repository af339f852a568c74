# salah_times/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# SQLAlchemy extension (reverse geocoding cache)
db = SQLAlchemy()

# Migrate extension (DB migrations)
migrate = Migrate()

# Limiter extension (rate limiting for the public API)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"]
)
