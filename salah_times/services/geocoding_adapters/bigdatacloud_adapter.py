
import requests
from flask import current_app
from .base_adapter import BaseGeocodingAdapter
from ...exceptions import GeocodingFailed
from ...metrics import API_REQUESTS_TOTAL

class BigDataCloudAdapter(BaseGeocodingAdapter):
    """
    Reverse geocoding adapter for the keyless BigDataCloud client endpoint.
    """

    name = "BigDataCloud"

    def __init__(self, base_url="https://api.bigdatacloud.net/data", timeout=10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def reverse_geocode(self, lat, lon):
        """
        Returns the most specific place name available: city, then locality,
        then principal subdivision.
        """
        endpoint = f"{self.base_url}/reverse-geocode-client"
        params = {
            "latitude": lat,
            "longitude": lon,
            "localityLanguage": "en",
        }

        try:
            response = requests.get(endpoint, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse-geocode', status='error').inc()
            current_app.logger.warning(f"BigDataCloud reverse geocoding request failed: {e}")
            raise GeocodingFailed("Failed to connect to reverse geocoding service.") from e
        except ValueError as e:
            API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse-geocode', status='error').inc()
            current_app.logger.warning(f"Failed to parse BigDataCloud reverse geocoding response: {e}")
            raise GeocodingFailed("Invalid response from reverse geocoding service.") from e

        API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint='reverse-geocode', status='ok').inc()

        if not isinstance(data, dict):
            raise GeocodingFailed("Invalid response from reverse geocoding service.")

        label = data.get('city') or data.get('locality') or data.get('principalSubdivision')
        if not label:
            raise GeocodingFailed("Reverse geocoding returned no place name.")
        return label.strip()
