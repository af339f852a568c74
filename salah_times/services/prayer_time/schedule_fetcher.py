# This module fetches one day's schedule from the provider and normalizes it.
import datetime
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from flask import current_app

from ..api_adapters.aladhan_adapter import get_selected_api_adapter
from ..helpers.constants import PRAYER_SEQUENCE
from ...exceptions import ScheduleFetchError, EnrichmentFailed
from ...utils.time_utils import parse_time_internal, civil_date_key
from .entities import CalculationSettings, GeoPosition, PrayerSchedule
from .projection import local_now


def _run_in_app_context(app, func, *args, **kwargs):
    with app.app_context():
        return func(*args, **kwargs)


def _fetch_timings_with_retry(adapter, date_obj: datetime.date, position: GeoPosition, settings: CalculationSettings) -> Dict[str, Any]:
    """
    Calls the mandatory timings endpoint. With PRAYER_API_MAX_RETRIES > 0 the
    call is retried with exponential backoff before the error is surfaced.
    """
    max_retries = int(current_app.config.get('PRAYER_API_MAX_RETRIES', 0))
    backoff = float(current_app.config.get('PRAYER_API_BACKOFF_SECONDS', 0.5))

    attempt = 0
    while True:
        try:
            return adapter.fetch_daily_timings(
                date_obj=date_obj,
                latitude=position.latitude,
                longitude=position.longitude,
                method_id=settings.method_id,
                school_id=settings.school_id,
            )
        except ScheduleFetchError as e:
            if attempt >= max_retries:
                raise
            delay = backoff * (2 ** attempt)
            attempt += 1
            current_app.logger.warning(f"ScheduleFetcher: Timings attempt {attempt} failed ({e.message}). Retrying in {delay:g}s.")
            time.sleep(delay)


def _fetch_qibla(adapter, position: GeoPosition) -> float:
    try:
        bearing = float(adapter.fetch_qibla_direction(position.latitude, position.longitude))
    except EnrichmentFailed:
        return 0.0
    except Exception as e:
        current_app.logger.error(f"ScheduleFetcher: Unexpected error fetching Qibla: {e}", exc_info=True)
        return 0.0
    if math.isnan(bearing) or math.isinf(bearing):
        return 0.0
    bearing = bearing % 360.0
    # Float modulo of a tiny negative value can round up to exactly 360.0
    return bearing if bearing < 360.0 else 0.0


def _fetch_hijri_label(adapter, date_obj: datetime.date) -> str:
    try:
        hijri_data = adapter.fetch_hijri_date(date_obj)
    except EnrichmentFailed:
        return ""
    except Exception as e:
        current_app.logger.error(f"ScheduleFetcher: Unexpected error fetching Hijri date: {e}", exc_info=True)
        return ""
    return format_hijri_label(hijri_data)


def format_hijri_label(hijri_data: Optional[Dict[str, Any]]) -> str:
    """
    "15 Ramadan 1445 AH" from a gToH payload ({"hijri": {...}} or the bare
    hijri dict). Returns "" when any part is missing.
    """
    if not isinstance(hijri_data, dict):
        return ""
    hijri = hijri_data.get("hijri", hijri_data)
    try:
        day = int(hijri["day"])
        month = hijri["month"]["en"]
        year = hijri["year"]
    except (KeyError, TypeError, ValueError):
        return ""
    if not (month and year):
        return ""
    return f"{day} {month} {year} AH"


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def normalize_schedule(raw: Dict[str, Any], date_obj: datetime.date, position: GeoPosition, qibla: float, hijri_label: str) -> PrayerSchedule:
    """
    Builds a PrayerSchedule from the timings payload. Times keep their 24-hour
    provider value; only presentation formats them.

    Raises:
        ScheduleFetchError: when any of the six markers is missing or unparseable.
    """
    timings = raw.get("timings") if isinstance(raw, dict) else None
    if not isinstance(timings, dict):
        raise ScheduleFetchError("Prayer time service returned no timings.")

    parsed = {}
    for item in PRAYER_SEQUENCE:
        time_obj = parse_time_internal(timings.get(item["api_key"]))
        if time_obj is None:
            current_app.logger.error(f"ScheduleFetcher: Unparseable {item['api_key']} value: {timings.get(item['api_key'])!r}")
            raise ScheduleFetchError(f"Prayer time service returned an invalid {item['name']} time.")
        parsed[item["key"]] = time_obj

    date_info = raw.get("date") if isinstance(raw.get("date"), dict) else {}
    meta = raw.get("meta") if isinstance(raw.get("meta"), dict) else {}

    return PrayerSchedule(
        civil_date=civil_date_key(date_obj),
        readable_date=_text(date_info.get("readable")),
        timezone=_text(meta.get("timezone")),
        hijri_date=hijri_label,
        qibla_bearing_degrees=qibla,
        location=position,
        **parsed,
    )


def fetch_schedule(position: GeoPosition, settings: CalculationSettings, date_obj: Optional[datetime.date] = None, adapter=None) -> PrayerSchedule:
    """
    Fetches the schedule for one civil day. The timings, Qibla and Hijri calls
    are issued concurrently and joined; only the timings call can fail the
    fetch, the other two fall back to 0.0 and "".

    Without an explicit `date_obj` the day is the location's own calendar day:
    the server's date is tried first, and when the provider's timezone puts
    the location on another day the schedule is fetched again for that day.

    Raises:
        ScheduleFetchError: when the mandatory timings call fails.
    """
    if adapter is None:
        adapter = get_selected_api_adapter()
        if adapter is None:
            raise ScheduleFetchError("Prayer time service is not configured.")

    if date_obj is not None:
        return _fetch_for_date(adapter, position, settings, date_obj)

    server_date = datetime.date.today()
    schedule = _fetch_for_date(adapter, position, settings, server_date)
    location_date = local_now(schedule).date()
    if location_date != server_date:
        current_app.logger.info(
            f"ScheduleFetcher: Location is on {civil_date_key(location_date)} ({schedule.timezone}); refetching."
        )
        schedule = _fetch_for_date(adapter, position, settings, location_date)
    return schedule


def _fetch_for_date(adapter, position: GeoPosition, settings: CalculationSettings, date_obj: datetime.date) -> PrayerSchedule:
    app = current_app._get_current_object()
    current_app.logger.info(
        f"ScheduleFetcher: Fetching {civil_date_key(date_obj)} for ({position.latitude}, {position.longitude}) "
        f"method={settings.method_id} school={settings.school_id}"
    )

    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="schedule-fetch") as executor:
        timings_future = executor.submit(_run_in_app_context, app, _fetch_timings_with_retry, adapter, date_obj, position, settings)
        qibla_future = executor.submit(_run_in_app_context, app, _fetch_qibla, adapter, position)
        hijri_future = executor.submit(_run_in_app_context, app, _fetch_hijri_label, adapter, date_obj)

        qibla = qibla_future.result()
        hijri_label = hijri_future.result()
        raw = timings_future.result()

    return normalize_schedule(raw, date_obj, position, qibla, hijri_label)
