# salah_times/services/api_adapters/aladhan_adapter.py

import requests
from flask import current_app # To access app.logger and app.config
from .base_adapter import BasePrayerAdapter
from ...exceptions import ScheduleFetchError, EnrichmentFailed
from ...metrics import API_REQUESTS_TOTAL, API_REQUEST_DURATION_SECONDS
from ...utils.time_utils import civil_date_key

class AlAdhanAdapter(BasePrayerAdapter):
    """
    API Adapter for AlAdhan.com Prayer Times API.
    """

    name = "AlAdhanAdapter"

    def _get_json(self, endpoint_name, url, params=None):
        """
        Performs a GET and returns the decoded body. Transport errors and non-2xx
        statuses propagate as requests exceptions; the callers translate them.
        """
        with API_REQUEST_DURATION_SECONDS.labels(adapter_name=self.name, endpoint=endpoint_name).time():
            try:
                response = requests.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except (requests.exceptions.RequestException, ValueError):
                API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint=endpoint_name, status='error').inc()
                raise
        API_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint=endpoint_name, status='ok').inc()
        return data

    def fetch_daily_timings(self, date_obj, latitude, longitude, method_id, school_id):
        """
        Fetches prayer times for a single day from the AlAdhan.com API.
        """
        date_str = civil_date_key(date_obj)
        current_app.logger.info(f"AlAdhanAdapter: Fetching daily timings for {date_str} at ({latitude}, {longitude})")

        endpoint = f"{self.base_url}/timings/{date_str}"
        params = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "method": method_id,
            "school": school_id,
        }

        current_app.logger.debug(f"AlAdhanAdapter: Fetching daily with params: {params}")

        try:
            data = self._get_json("timings", endpoint, params=params)
        except requests.exceptions.Timeout:
            current_app.logger.error(f"AlAdhanAdapter: Timeout error fetching daily prayer times for {date_str}.")
            raise ScheduleFetchError("The prayer time service did not respond in time.")
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            message = _upstream_message(e.response) or f"Prayer time service returned HTTP {status}."
            current_app.logger.error(f"AlAdhanAdapter: HTTP {status} for daily timings {date_str}: {message}")
            raise ScheduleFetchError(message, status_code=status)
        except requests.exceptions.RequestException as e:
            current_app.logger.error(f"AlAdhanAdapter: RequestException for daily timings {date_str}: {e}", exc_info=True)
            raise ScheduleFetchError("Failed to connect to the prayer time service.")
        except ValueError:
            current_app.logger.error(f"AlAdhanAdapter: Malformed JSON for daily timings {date_str}.")
            raise ScheduleFetchError("Invalid response from the prayer time service.")

        if not isinstance(data, dict):
            current_app.logger.error(f"AlAdhanAdapter: Non-object body for daily timings {date_str}: {type(data).__name__}")
            raise ScheduleFetchError("Invalid response from the prayer time service.")

        if data.get("code") == 200 and isinstance(data.get("data"), dict):
            current_app.logger.info(f"AlAdhanAdapter: Successfully fetched daily timings for {date_str}.")
            if not isinstance(data.get("data"), dict):
                raise EnrichmentFailed("gToH response without data block")
            return data["data"]

        message = data.get("data") if isinstance(data.get("data"), str) else data.get("status")
        current_app.logger.error(f"AlAdhanAdapter: API error for daily timings {date_str}. Code: {data.get('code')}, Status: {data.get('status')}")
        raise ScheduleFetchError(message or "Prayer time service reported an error.", status_code=data.get("code"))

    def fetch_qibla_direction(self, latitude, longitude):
        """
        Fetches the Qibla bearing (degrees clockwise from true north).
        """
        endpoint = f"{self.base_url}/qibla/{latitude}/{longitude}"
        try:
            data = self._get_json("qibla", endpoint)
            if not isinstance(data, dict):
                raise EnrichmentFailed(f"Unexpected body type {type(data).__name__}")
            if data.get("code") != 200:
                raise EnrichmentFailed(f"Qibla API code {data.get('code')}")
            return float(data["data"]["direction"])
        except EnrichmentFailed:
            current_app.logger.warning(f"AlAdhanAdapter: Qibla API error for ({latitude}, {longitude}).")
            raise
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as e:
            current_app.logger.warning(f"AlAdhanAdapter: Qibla fetch failed for ({latitude}, {longitude}): {e}")
            raise EnrichmentFailed(str(e)) from e

    def fetch_hijri_date(self, date_obj):
        """
        Converts a Gregorian date to its Hijri breakdown via /gToH.
        """
        date_str = civil_date_key(date_obj)
        endpoint = f"{self.base_url}/gToH/{date_str}"
        try:
            data = self._get_json("gToH", endpoint)
            if not isinstance(data, dict):
                raise EnrichmentFailed(f"Unexpected body type {type(data).__name__}")
            if data.get("code") != 200:
                raise EnrichmentFailed(f"gToH API code {data.get('code')}")
            if not isinstance(data.get("data"), dict):
                raise EnrichmentFailed("gToH response without data block")
            return data["data"]
        except EnrichmentFailed:
            current_app.logger.warning(f"AlAdhanAdapter: Hijri API error for {date_str}.")
            raise
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as e:
            current_app.logger.warning(f"AlAdhanAdapter: Hijri fetch failed for {date_str}: {e}")
            raise EnrichmentFailed(str(e)) from e


def _upstream_message(response):
    """Best-effort extraction of the provider's error text from an HTTP error response."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        detail = body.get("data")
        if isinstance(detail, str):
            return detail
        return body.get("status")
    return None


def get_selected_api_adapter():
    """
    Instantiates and returns the API adapter based on configuration.
    """
    adapter_name = current_app.config.get('PRAYER_API_ADAPTER', "AlAdhanAdapter")
    base_url = current_app.config.get('PRAYER_API_BASE_URL')
    api_key = current_app.config.get('PRAYER_API_KEY')
    timeout = current_app.config.get('PRAYER_API_TIMEOUT_SECONDS', 15)

    if adapter_name == "AlAdhanAdapter":
        if not base_url:
            current_app.logger.error("AlAdhan API base URL is not configured.")
            return None
        return AlAdhanAdapter(base_url=base_url, api_key=api_key, timeout=timeout)
    else:
        current_app.logger.error(f"Unsupported Prayer API Adapter: {adapter_name}")
        return None
