# salah_times/exceptions.py

class LocationUnavailable(Exception):
    """Device geolocation was denied, is absent, or timed out."""


class GeocodingFailed(Exception):
    """Reverse geocoding could not produce a place name."""


class ScheduleFetchError(Exception):
    """
    The mandatory daily timings call failed. This is the only failure that
    is surfaced to the user; the message carries the upstream reason.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class EnrichmentFailed(Exception):
    """The Qibla or Hijri-date call failed. Always recovered with a default."""


class InvalidCalculationSettings(ValueError):
    """A calculation method or juristic school id outside the known set."""
