
from abc import ABC, abstractmethod

class BaseGeocodingAdapter(ABC):
    """
    Abstract base class for a geocoding adapter.
    Defines the common interface for all reverse geocoding services.
    """

    name = "base"

    @abstractmethod
    def reverse_geocode(self, lat, lon):
        """
        Converts coordinates to a human-readable place name.
        Returns the label string; raises GeocodingFailed when no usable name is found.
        """
        pass
