# This module defines the base interface for all prayer time API adapters.
from abc import ABC, abstractmethod

class BasePrayerAdapter(ABC):
    """
    Abstract base class for prayer time API adapters. It ensures that all adapters
    adhere to a common interface, whatever provider sits behind them.
    """

    def __init__(self, base_url, api_key=None, timeout=15):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @abstractmethod
    def fetch_daily_timings(self, date_obj, latitude, longitude, method_id, school_id):
        """
        Fetches prayer times for a single day. Returns the provider payload with
        'timings', 'date' and 'meta'. Raises ScheduleFetchError on any failure.
        """
        pass

    @abstractmethod
    def fetch_qibla_direction(self, latitude, longitude):
        """Returns the Qibla bearing in degrees. Raises EnrichmentFailed on any failure."""
        pass

    @abstractmethod
    def fetch_hijri_date(self, date_obj):
        """Returns the Hijri breakdown for a civil date. Raises EnrichmentFailed on any failure."""
        pass
