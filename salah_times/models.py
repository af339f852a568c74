# salah_times/models.py

from datetime import datetime
from .extensions import db


class ReverseGeocodeCache(db.Model):
    """
    Caches reverse geocoding results so the same coordinate is not looked up
    on every refresh. Only successful lookups are stored.
    """
    __tablename__ = 'reverse_geocode_cache'

    # Coordinate rounded to 3 decimals (~100 m), e.g. "21.423,39.826"
    coord_key = db.Column(db.String(64), primary_key=True)

    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)

    # Human-readable place name, e.g. "Mecca"
    label = db.Column(db.String(255), nullable=False)

    provider = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<ReverseGeocodeCache {self.coord_key} -> {self.label}>'
