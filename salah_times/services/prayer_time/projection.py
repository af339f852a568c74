import datetime
import zoneinfo

from ..helpers.constants import TOMORROW_SENTINEL
from ...utils.time_utils import minute_of_day, format_remaining
from .entities import NextPrayerProjection, PrayerSchedule


def project_next(schedule: PrayerSchedule, now: datetime.datetime) -> NextPrayerProjection:
    """
    Returns the first marker in canonical order whose minute-of-day is strictly
    after `now`. Past Isha the projection wraps to Fajr with remaining set to
    "Tomorrow" instead of a computed duration.

    `now` is read only for its wall-clock hour and minute, so it is expected
    in the schedule location's local time.
    """
    now_minute = minute_of_day(now)
    entries = schedule.entries()

    for entry in entries:
        entry_minute = minute_of_day(entry["time"])
        if entry_minute > now_minute:
            return NextPrayerProjection(
                prayer_name=entry["name"],
                arabic_name=entry["arabic"],
                time=entry["time"],
                remaining=format_remaining(entry_minute - now_minute),
            )

    fajr = entries[0]
    return NextPrayerProjection(
        prayer_name=fajr["name"],
        arabic_name=fajr["arabic"],
        time=fajr["time"],
        remaining=TOMORROW_SENTINEL,
    )


def local_now(schedule: PrayerSchedule) -> datetime.datetime:
    """
    Current wall-clock time at the schedule's location, using the provider's
    timezone label. Falls back to the server's local time for unknown labels.
    """
    if schedule.timezone:
        try:
            return datetime.datetime.now(zoneinfo.ZoneInfo(schedule.timezone))
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.datetime.now()
