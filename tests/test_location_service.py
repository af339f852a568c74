import time
import requests
from prometheus_client import REGISTRY

from salah_times.services.location_service import acquire_location, coordinates_locator
from salah_times.services.helpers.constants import DEFAULT_LOCATION_WARNING


def test_denied_geolocation_falls_back_to_mecca(app, db, upstream):
    with app.app_context():
        acquired = acquire_location(coordinates_locator(None, None))

    assert acquired.used_default is True
    assert acquired.position.latitude == 21.4225
    assert acquired.position.longitude == 39.8262
    assert acquired.position.label == "Mecca, Saudi Arabia"
    assert acquired.warnings == [DEFAULT_LOCATION_WARNING]
    # No reverse geocoding for the default location
    assert upstream.calls_to("reverse-geocode") == []


def test_missing_locator_is_treated_as_unsupported(app, db, upstream):
    with app.app_context():
        acquired = acquire_location(None)
    assert acquired.used_default is True
    assert len(acquired.warnings) == 1


def test_successful_geolocation_is_labelled(app, db, upstream):
    with app.app_context():
        acquired = acquire_location(coordinates_locator(21.4225, 39.8262))

    assert acquired.used_default is False
    assert acquired.warnings == []
    assert acquired.position.label == "Mecca"
    url, params = upstream.calls_to("reverse-geocode")[0]
    assert params["latitude"] == 21.4225
    assert params["longitude"] == 39.8262


def test_label_falls_back_to_locality(app, db, upstream):
    upstream.respond("reverse-geocode", {"city": "", "locality": "Kreuzberg", "principalSubdivision": "Berlin"})
    with app.app_context():
        acquired = acquire_location(coordinates_locator(52.5, 13.4))
    assert acquired.position.label == "Kreuzberg"


def test_failed_reverse_geocode_keeps_coordinate(app, db, upstream):
    upstream.fail("reverse-geocode", requests.exceptions.ConnectionError("offline"))
    with app.app_context():
        acquired = acquire_location(coordinates_locator(40.7128, -74.006))

    assert acquired.used_default is False
    assert acquired.warnings == []
    assert acquired.position.latitude == 40.7128
    assert acquired.position.label == "Unknown Location"


def test_slow_locator_times_out_to_default(app, db, upstream):
    def hung_locator():
        time.sleep(1)
        return 10.0, 10.0

    with app.app_context():
        started = time.monotonic()
        acquired = acquire_location(hung_locator, timeout=0.1)
        elapsed = time.monotonic() - started

    assert elapsed < 0.9
    assert acquired.used_default is True
    assert acquired.warnings == [DEFAULT_LOCATION_WARNING]


def test_out_of_range_coordinate_falls_back(app, db, upstream):
    with app.app_context():
        acquired = acquire_location(coordinates_locator(123.0, 10.0))
    assert acquired.used_default is True


def test_reverse_geocode_is_cached(app, db, upstream):
    with app.app_context():
        first = acquire_location(coordinates_locator(21.4225, 39.8262))
        second = acquire_location(coordinates_locator(21.4225, 39.8262))

    assert first.position.label == second.position.label == "Mecca"
    assert len(upstream.calls_to("reverse-geocode")) == 1


def test_reverse_geocode_without_cache_tables_still_resolves(app, upstream):
    # No db fixture: the cache table does not exist
    with app.app_context():
        acquired = acquire_location(coordinates_locator(21.4225, 39.8262))
    assert acquired.position.label == "Mecca"


def _fallback_count(reason):
    return REGISTRY.get_sample_value('salah_times_location_fallbacks_total', {'reason': reason}) or 0.0


def test_crashing_locator_falls_back_to_default(app, db, upstream):
    def broken_locator():
        raise RuntimeError("geolocation backend crashed")

    before = _fallback_count('error')
    with app.app_context():
        acquired = acquire_location(broken_locator)

    assert acquired.used_default is True
    assert acquired.position.label == "Mecca, Saudi Arabia"
    assert acquired.warnings == [DEFAULT_LOCATION_WARNING]
    assert "crashed" in acquired.reason
    assert _fallback_count('error') == before + 1


def test_unexpected_reverse_geocode_error_keeps_coordinate(app, db, upstream, mocker):
    mocker.patch(
        'salah_times.services.location_service.reverse_geocode_with_cache',
        side_effect=KeyError("address"),
    )
    with app.app_context():
        acquired = acquire_location(coordinates_locator(40.7128, -74.006))

    assert acquired.used_default is False
    assert acquired.position.label == "Unknown Location"
