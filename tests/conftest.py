# tests/conftest.py

import threading
import pytest
import requests
from unittest.mock import MagicMock
from salah_times import create_app, db as _db

# Canned AlAdhan payloads for Mecca, 15-03-2024, method 2 (ISNA), school 0.
MECCA_TIMINGS = {
    "Fajr": "05:12", "Sunrise": "06:29", "Dhuhr": "12:31",
    "Asr": "15:54", "Sunset": "18:33", "Maghrib": "18:33",
    "Isha": "19:48", "Imsak": "05:02", "Midnight": "00:31",
}

def timings_payload(timings=None, timezone="Asia/Riyadh", readable="15 Mar 2024"):
    return {
        "code": 200,
        "status": "OK",
        "data": {
            "timings": dict(timings or MECCA_TIMINGS),
            "date": {
                "readable": readable,
                "gregorian": {"date": "15-03-2024"},
                "hijri": {"day": "05", "month": {"en": "Ramaḍān"}, "year": "1445"},
            },
            "meta": {"timezone": timezone},
        },
    }

QIBLA_PAYLOAD = {"code": 200, "status": "OK", "data": {"latitude": 21.4225, "longitude": 39.8262, "direction": 45.5}}

HIJRI_PAYLOAD = {
    "code": 200,
    "status": "OK",
    "data": {
        "hijri": {
            "date": "05-09-1445", "day": "05",
            "weekday": {"en": "Al Juma'a", "ar": "الجمعة"},
            "month": {"number": 9, "en": "Ramaḍān", "ar": "رَمَضان"},
            "year": "1445",
            "designation": {"abbreviated": "AH", "expanded": "Anno Hegirae"},
        },
        "gregorian": {
            "date": "15-03-2024", "day": "15",
            "weekday": {"en": "Friday"},
            "month": {"number": 3, "en": "March"},
            "year": "2024",
        },
    },
}

REVERSE_GEOCODE_PAYLOAD = {"city": "Mecca", "locality": "Mecca", "principalSubdivision": "Makkah Province"}


def make_response(payload, status_code=200):
    """A stand-in for requests.Response with json() and raise_for_status()."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Server Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


class FakeUpstream:
    """
    Routes requests.get calls by URL fragment to canned handlers. A handler is
    called with (url, params) and returns a response or raises.
    """

    def __init__(self):
        self.handlers = {}
        self.calls = []
        self._lock = threading.Lock()

    def respond(self, fragment, payload, status_code=200):
        self.handlers[fragment] = lambda url, params: make_response(payload, status_code)

    def fail(self, fragment, exc):
        def handler(url, params):
            raise exc
        self.handlers[fragment] = handler

    def route(self, fragment, handler):
        self.handlers[fragment] = handler

    def calls_to(self, fragment):
        with self._lock:
            return [call for call in self.calls if fragment in call[0]]

    def __call__(self, url, params=None, timeout=None, **kwargs):
        with self._lock:
            self.calls.append((url, params))
        for fragment, handler in self.handlers.items():
            if fragment in url:
                return handler(url, params)
        raise AssertionError(f"Unexpected upstream call: {url}")


@pytest.fixture(scope='session')
def app():
    """Session-wide application for testing."""
    app = create_app('testing')
    app.config['PROJECTION_TICK_SECONDS'] = 60
    return app

@pytest.fixture(scope='function')
def db(app):
    """Function-level database setup. Creates and tears down tables for each test function."""
    with app.app_context():
        _db.create_all()

        yield _db

        _db.session.remove()
        _db.drop_all()

@pytest.fixture(scope='function')
def test_client(app, db):
    """A test client for the app, ensuring the DB is initialized."""
    return app.test_client()

@pytest.fixture(scope='function')
def upstream(mocker):
    """
    Replaces every outbound requests.get with a FakeUpstream that answers like
    a healthy AlAdhan + BigDataCloud pair. Tests override individual routes.
    """
    fake = FakeUpstream()
    fake.respond("/timings/", timings_payload())
    fake.respond("/qibla/", QIBLA_PAYLOAD)
    fake.respond("/gToH/", HIJRI_PAYLOAD)
    fake.respond("reverse-geocode", REVERSE_GEOCODE_PAYLOAD)
    mocker.patch('requests.get', side_effect=fake)
    return fake
