# salah_times/services/helpers/constants.py

# Canonical daily order. "api_key" is the key in the provider's timings payload.
PRAYER_SEQUENCE = [
    {"key": "fajr",    "name": "Fajr",    "arabic": "الفجر",  "api_key": "Fajr"},
    {"key": "sunrise", "name": "Sunrise", "arabic": "الشروق", "api_key": "Sunrise"},
    {"key": "dhuhr",   "name": "Dhuhr",   "arabic": "الظهر",  "api_key": "Dhuhr"},
    {"key": "asr",     "name": "Asr",     "arabic": "العصر",  "api_key": "Asr"},
    {"key": "maghrib", "name": "Maghrib", "arabic": "المغرب", "api_key": "Maghrib"},
    {"key": "isha",    "name": "Isha",    "arabic": "العشاء", "api_key": "Isha"},
]

# Used when device geolocation is denied, absent or times out.
DEFAULT_LATITUDE = 21.4225
DEFAULT_LONGITUDE = 39.8262
DEFAULT_LOCATION_LABEL = "Mecca, Saudi Arabia"
UNKNOWN_LOCATION_LABEL = "Unknown Location"

DEFAULT_LOCATION_WARNING = (
    "Could not determine your location. Showing prayer times for Mecca, Saudi Arabia."
)

TOMORROW_SENTINEL = "Tomorrow"

# AlAdhan calculation method ids exposed to users.
CALCULATION_METHODS = {
    1: "University of Islamic Sciences, Karachi",
    2: "Islamic Society of North America",
    3: "Muslim World League",
    4: "Umm Al-Qura University, Makkah",
    5: "Egyptian General Authority of Survey",
    7: "Institute of Geophysics, University of Tehran",
    8: "Gulf Region",
    9: "Kuwait",
    10: "Qatar",
    11: "Majlis Ugama Islam Singapura, Singapore",
    12: "Union Organization Islamic de France",
    13: "Diyanet İşleri Başkanlığı, Turkey",
}

# Juristic schools; only the Asr shadow ratio differs upstream.
SCHOOLS = {
    0: "Shafi, Hanbali, Maliki (Standard)",
    1: "Hanafi",
}

ISLAMIC_EVENTS = [
    {"name": "Laylat al-Qadr", "date": "27 Ramadan", "type": "religious",
     "description": "The Night of Power, when the Quran was first revealed"},
    {"name": "Eid al-Fitr", "date": "1 Shawwal", "type": "religious",
     "description": "Festival marking the end of Ramadan"},
    {"name": "Eid al-Adha", "date": "10 Dhul Hijjah", "type": "religious",
     "description": "Festival of Sacrifice during Hajj"},
    {"name": "Muharram", "date": "1 Muharram", "type": "historical",
     "description": "Islamic New Year"},
    {"name": "Day of Ashura", "date": "10 Muharram", "type": "historical",
     "description": "Day of remembrance and fasting"},
    {"name": "Mawlid an-Nabi", "date": "12 Rabi' al-awwal", "type": "religious",
     "description": "Birth of Prophet Muhammad (PBUH)"},
]

UPCOMING_EVENTS_COUNT = 3
