
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from ..models import ReverseGeocodeCache
from ..extensions import db
from ..exceptions import GeocodingFailed
from ..metrics import GEOCODING_CACHE_HITS, GEOCODING_CACHE_MISSES

# Import the adapter classes
from .geocoding_adapters.bigdatacloud_adapter import BigDataCloudAdapter
from .geocoding_adapters.locationiq_adapter import LocationIQAdapter

def get_geocoding_adapter():
    """
    Factory function to get the configured geocoding adapter.
    Reads the provider name and API key from the app config.
    """
    provider = current_app.config.get('GEOCODING_PROVIDER', 'BigDataCloud').lower()
    timeout = current_app.config.get('GEOCODING_TIMEOUT_SECONDS', 10)

    if provider == 'bigdatacloud':
        base_url = current_app.config.get('BIGDATACLOUD_BASE_URL') or "https://api.bigdatacloud.net/data"
        return BigDataCloudAdapter(base_url=base_url, timeout=timeout)

    elif provider == 'locationiq':
        api_key = current_app.config.get('LOCATIONIQ_API_KEY')
        if not api_key:
            raise ValueError("LocationIQ API key is not configured.")
        return LocationIQAdapter(api_key=api_key, timeout=timeout)

    else:
        raise ValueError(f"Unsupported geocoding provider: {provider}")

def _coord_key(latitude, longitude):
    return f"{round(float(latitude), 3)},{round(float(longitude), 3)}"

def reverse_geocode_with_cache(latitude, longitude):
    """
    Resolves a coordinate to a place name, using a database cache to avoid
    repeated API calls for the same spot.

    Raises:
        GeocodingFailed: if neither the cache nor the adapter produced a name.
    """
    coord_key = _coord_key(latitude, longitude)

    # 1. Check cache first
    try:
        cached = db.session.get(ReverseGeocodeCache, coord_key)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"Reverse geocoding cache unavailable for {coord_key}: {e}")
        cached = None

    if cached:
        GEOCODING_CACHE_HITS.inc()
        current_app.logger.info(f"Reverse geocoding cache HIT for {coord_key}")
        return cached.label

    GEOCODING_CACHE_MISSES.inc()
    current_app.logger.info(f"Reverse geocoding cache MISS for {coord_key}. Calling API.")

    # 2. If not in cache, get the configured adapter and call the API
    try:
        adapter = get_geocoding_adapter()
    except ValueError as e:
        current_app.logger.error(f"Geocoding adapter misconfigured: {e}")
        raise GeocodingFailed(str(e)) from e

    label = adapter.reverse_geocode(latitude, longitude)

    # 3. Save the new label to the cache
    try:
        db.session.merge(ReverseGeocodeCache(
            coord_key=coord_key,
            latitude=float(latitude),
            longitude=float(longitude),
            label=label,
            provider=adapter.name
        ))
        db.session.commit()
        current_app.logger.info(f"Successfully cached reverse geocoding for {coord_key}: {label}")
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"Could not cache reverse geocoding for {coord_key}: {e}")

    return label
