"""
Location acquisition: turns the client's geolocation result into a usable
GeoPosition. Never raises; every failure degrades to a default.
"""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional, Tuple

from flask import current_app

from ..exceptions import LocationUnavailable, GeocodingFailed
from ..metrics import LOCATION_FALLBACKS_TOTAL
from .geocoding_service import reverse_geocode_with_cache
from .helpers.constants import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    DEFAULT_LOCATION_LABEL,
    DEFAULT_LOCATION_WARNING,
    UNKNOWN_LOCATION_LABEL,
)
from .prayer_time.entities import AcquiredLocation, GeoPosition

Locator = Callable[[], Tuple[float, float]]


def coordinates_locator(latitude: Optional[float], longitude: Optional[float]) -> Locator:
    """
    Wraps coordinates reported by the client device. Missing coordinates mean
    the device denied or lacks geolocation.
    """
    def locate() -> Tuple[float, float]:
        if latitude is None or longitude is None:
            raise LocationUnavailable("Geolocation denied or not supported by the device.")
        return float(latitude), float(longitude)
    return locate


def default_position() -> GeoPosition:
    return GeoPosition(latitude=DEFAULT_LATITUDE, longitude=DEFAULT_LONGITUDE, label=DEFAULT_LOCATION_LABEL)


def _locate_with_timeout(locator: Locator, timeout: float) -> Tuple[float, float]:
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geolocation")
    try:
        future = executor.submit(locator)
        try:
            latitude, longitude = future.result(timeout=timeout)
        except FutureTimeout:
            raise LocationUnavailable(f"Geolocation timed out after {timeout:g}s.")
    finally:
        # A hung locator must not hold up the caller past the timeout.
        executor.shutdown(wait=False)

    if not (-90.0 <= latitude <= 90.0) or not (-180.0 <= longitude <= 180.0):
        raise LocationUnavailable(f"Geolocation returned an invalid coordinate ({latitude}, {longitude}).")
    return latitude, longitude


def resolve_label(latitude: float, longitude: float) -> str:
    """Best-effort place name for a coordinate; "Unknown Location" on any failure."""
    try:
        return reverse_geocode_with_cache(latitude, longitude)
    except GeocodingFailed as e:
        current_app.logger.info(f"LocationService: Reverse geocoding failed for ({latitude}, {longitude}): {e}")
        return UNKNOWN_LOCATION_LABEL


def _fallback(reason: str) -> AcquiredLocation:
    return AcquiredLocation(
        position=default_position(),
        warnings=[DEFAULT_LOCATION_WARNING],
        used_default=True,
        reason=reason,
    )


def acquire_location(locator: Optional[Locator], timeout: Optional[float] = None) -> AcquiredLocation:
    """
    Attempts device geolocation with a bounded timeout, then reverse geocodes
    the coordinate. Falls back to Mecca with a single warning when the device
    position cannot be obtained.
    """
    if timeout is None:
        timeout = current_app.config.get('GEOLOCATION_TIMEOUT_SECONDS', 10)

    try:
        if locator is None:
            raise LocationUnavailable("Geolocation is not available.")
        latitude, longitude = _locate_with_timeout(locator, timeout)
    except (LocationUnavailable, ValueError, TypeError) as e:
        LOCATION_FALLBACKS_TOTAL.labels(reason='unavailable').inc()
        current_app.logger.warning(f"LocationService: {e} Falling back to {DEFAULT_LOCATION_LABEL}.")
        return _fallback(str(e))
    except Exception as e:
        LOCATION_FALLBACKS_TOTAL.labels(reason='error').inc()
        current_app.logger.error(
            f"LocationService: Unexpected geolocation error: {e}. Falling back to {DEFAULT_LOCATION_LABEL}.",
            exc_info=True,
        )
        return _fallback(str(e))

    try:
        label = resolve_label(latitude, longitude)
    except Exception as e:
        current_app.logger.error(f"LocationService: Unexpected reverse geocoding error: {e}", exc_info=True)
        label = UNKNOWN_LOCATION_LABEL
    current_app.logger.info(f"LocationService: Acquired ({latitude}, {longitude}) -> {label}")
    return AcquiredLocation(position=GeoPosition(latitude=latitude, longitude=longitude, label=label))
