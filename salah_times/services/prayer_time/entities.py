"""Value objects for the prayer schedule resolver."""
import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..helpers.constants import PRAYER_SEQUENCE
from ...utils.time_utils import format_time_12h, format_time_internal


@dataclass(frozen=True)
class GeoPosition:
    latitude: float
    longitude: float
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"latitude": self.latitude, "longitude": self.longitude, "label": self.label}


@dataclass(frozen=True)
class CalculationSettings:
    method_id: int
    school_id: int

    def to_dict(self) -> Dict[str, int]:
        return {"method": self.method_id, "school": self.school_id}


@dataclass(frozen=True)
class PrayerSchedule:
    """
    One civil day of prayer times for a position. Times are the provider's
    wall-clock values kept as 24-hour datetime.time objects; display
    formatting happens only in to_display_dict().
    """
    fajr: datetime.time
    sunrise: datetime.time
    dhuhr: datetime.time
    asr: datetime.time
    maghrib: datetime.time
    isha: datetime.time
    civil_date: str
    readable_date: str
    timezone: str
    hijri_date: str
    qibla_bearing_degrees: float
    location: GeoPosition

    def entries(self) -> List[Dict[str, Any]]:
        """The six markers in canonical order, each with its datetime.time."""
        return [dict(item, time=getattr(self, item["key"])) for item in PRAYER_SEQUENCE]

    def to_display_dict(self) -> Dict[str, Any]:
        return {
            "timings": [
                {
                    "key": entry["key"],
                    "name": entry["name"],
                    "arabic": entry["arabic"],
                    "time": format_time_12h(entry["time"]),
                    "time24": format_time_internal(entry["time"]),
                }
                for entry in self.entries()
            ],
            "civilDate": self.civil_date,
            "readableDate": self.readable_date,
            "timezone": self.timezone,
            "hijriDate": self.hijri_date,
            "qiblaBearingDegrees": self.qibla_bearing_degrees,
            "location": self.location.to_dict(),
        }


@dataclass(frozen=True)
class NextPrayerProjection:
    prayer_name: str
    arabic_name: str
    time: datetime.time
    remaining: str

    def to_display_dict(self) -> Dict[str, Any]:
        return {
            "name": self.prayer_name,
            "arabic": self.arabic_name,
            "time": format_time_12h(self.time),
            "time24": format_time_internal(self.time),
            "remaining": self.remaining,
        }


@dataclass
class AcquiredLocation:
    """Result of location acquisition: the position plus any user-facing warnings."""
    position: GeoPosition
    warnings: List[str] = field(default_factory=list)
    used_default: bool = False
    reason: Optional[str] = None
