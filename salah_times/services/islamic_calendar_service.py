import datetime
from typing import Any, Dict, Optional

from flask import current_app

from .api_adapters.aladhan_adapter import get_selected_api_adapter
from .helpers.constants import ISLAMIC_EVENTS, UPCOMING_EVENTS_COUNT
from ..exceptions import EnrichmentFailed


def get_islamic_calendar(date_obj: Optional[datetime.date] = None, adapter=None) -> Dict[str, Any]:
    """
    Today's Hijri date breakdown plus the next few Islamic observances.

    Raises:
        EnrichmentFailed: when the Hijri conversion is unavailable.
    """
    if date_obj is None:
        date_obj = datetime.date.today()
    if adapter is None:
        adapter = get_selected_api_adapter()
        if adapter is None:
            raise EnrichmentFailed("Prayer time service is not configured.")

    data = adapter.fetch_hijri_date(date_obj)
    hijri = data.get("hijri") or {}
    gregorian = data.get("gregorian") or {}
    if not hijri:
        current_app.logger.warning(f"IslamicCalendar: gToH payload without hijri block for {date_obj}")
        raise EnrichmentFailed("Invalid response from the Hijri calendar service.")

    return {
        "hijri": {
            "date": hijri.get("date"),
            "day": hijri.get("day"),
            "weekday": hijri.get("weekday") or {},
            "month": hijri.get("month") or {},
            "year": hijri.get("year"),
            "designation": (hijri.get("designation") or {}).get("abbreviated"),
        },
        "gregorian": {
            "date": gregorian.get("date"),
            "weekday": (gregorian.get("weekday") or {}).get("en"),
            "month": (gregorian.get("month") or {}).get("en"),
            "year": gregorian.get("year"),
        },
        # Fixed list; only the first few are shown as "upcoming".
        "upcomingEvents": ISLAMIC_EVENTS[:UPCOMING_EVENTS_COUNT],
    }
