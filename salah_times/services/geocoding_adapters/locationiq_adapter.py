
import requests
from flask import current_app
from .base_adapter import BaseGeocodingAdapter
from ...exceptions import GeocodingFailed
from ...metrics import API_REQUESTS_TOTAL

class LocationIQAdapter(BaseGeocodingAdapter):
    """
    Reverse geocoding adapter for the LocationIQ API.
    """

    name = "LocationIQ"

    def __init__(self, api_key, timeout=10):
        self.api_key = api_key
        self.base_url = "https://us1.locationiq.com/v1"
        self.timeout = timeout

    def reverse_geocode(self, lat, lon):
        """
        Performs reverse geocoding (coordinates to place name) using LocationIQ.
        """
        if not self.api_key:
            current_app.logger.error("Reverse geocoding failed: LocationIQ API key is not configured.")
            raise GeocodingFailed("Reverse geocoding service is not configured.")

        endpoint = f"{self.base_url}/reverse.php"
        params = {
            "key": self.api_key,
            "lat": lat,
            "lon": lon,
            "format": "json",
            "zoom": 10 # A zoom level that typically returns city-level names
        }

        try:
            response = requests.get(endpoint, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse', status='error').inc()
            current_app.logger.warning(f"LocationIQ reverse geocoding request failed: {e}")
            raise GeocodingFailed("Failed to connect to reverse geocoding service.") from e
        except ValueError as e:
            API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse', status='error').inc()
            current_app.logger.warning(f"Failed to parse LocationIQ reverse geocoding response: {e}")
            raise GeocodingFailed("Invalid response from reverse geocoding service.") from e

        API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse', status='ok').inc()

        if not isinstance(data, dict) or "error" in data:
            error_message = data.get("error") if isinstance(data, dict) else None
            current_app.logger.warning(f"LocationIQ reverse geocoding failed: {error_message}")
            raise GeocodingFailed(error_message or "Unknown error from LocationIQ reverse geocoding.")

        address = data.get('address', {})
        label = (address.get('city') or address.get('town') or address.get('village')
                 or address.get('suburb') or address.get('state'))
        if not label:
            raise GeocodingFailed("Reverse geocoding returned no place name.")
        return label.strip()
