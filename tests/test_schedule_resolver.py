import datetime
import threading
import time
import pytest

from salah_times.services.location_service import coordinates_locator
from salah_times.services.prayer_time.entities import CalculationSettings
from salah_times.services.schedule_resolver import ResolverState, get_registry
from conftest import timings_payload, make_response, MECCA_TIMINGS

ISNA = CalculationSettings(method_id=2, school_id=0)
MWL = CalculationSettings(method_id=3, school_id=0)
WAIT = 5
DATE = datetime.date(2024, 3, 15)


@pytest.fixture
def registry(app, db):
    return get_registry()


def _create(registry, locator=None, settings=ISNA, **kwargs):
    if locator is None:
        locator = coordinates_locator(21.4225, 39.8262)
    kwargs.setdefault("civil_date", DATE)
    return registry.create(locator, settings, **kwargs)


def test_refresh_resolves_location_and_schedule(app, registry, upstream):
    resolver = _create(registry)
    assert resolver.state == ResolverState.LOADING

    assert resolver.refresh().result(timeout=WAIT) is True

    snapshot = resolver.snapshot()
    assert snapshot["state"] == "ready"
    assert snapshot["location"]["label"] == "Mecca"
    assert snapshot["schedule"]["civilDate"]
    assert snapshot["nextPrayer"]["name"] in {"Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"}
    assert snapshot["warnings"] == []
    assert snapshot["error"] is None
    resolver.close()


def test_denied_location_commits_default_with_warning(app, registry, upstream):
    resolver = _create(registry, locator=coordinates_locator(None, None))
    resolver.refresh().result(timeout=WAIT)

    assert resolver.position.label == "Mecca, Saudi Arabia"
    assert len(resolver.warnings) == 1
    assert resolver.state == ResolverState.READY
    resolver.close()


def test_superseded_cycle_is_discarded(app, registry, upstream):
    started = threading.Event()
    release = threading.Event()
    late_timings = dict(MECCA_TIMINGS, Fajr="05:00")
    fresh_timings = dict(MECCA_TIMINGS, Fajr="05:20")

    def timings(url, params):
        if params["method"] == 2:
            started.set()
            release.wait(WAIT)
            return make_response(timings_payload(late_timings))
        return make_response(timings_payload(fresh_timings))

    upstream.route("/timings/", timings)
    resolver = _create(registry)
    try:
        first = resolver.refresh()
        assert started.wait(WAIT)

        second = resolver.update_settings(MWL)
        assert second is not first
        assert second.result(timeout=WAIT) is True
        assert resolver.schedule.fajr == datetime.time(5, 20)
    finally:
        release.set()

    assert first.result(timeout=WAIT) is False
    assert resolver.settings == MWL
    assert resolver.schedule.fajr == datetime.time(5, 20)
    assert resolver.state == ResolverState.READY
    resolver.close()


def test_settings_change_refetches_exactly_once(app, registry, upstream):
    resolver = _create(registry)
    resolver.refresh().result(timeout=WAIT)
    assert len(upstream.calls_to("/timings/")) == 1

    resolver.update_settings(MWL).result(timeout=WAIT)

    timings_calls = upstream.calls_to("/timings/")
    assert len(timings_calls) == 2
    assert timings_calls[-1][1]["method"] == 3
    # The committed position is reused rather than re-acquired
    assert len(upstream.calls_to("reverse-geocode")) == 1
    resolver.close()


def test_unchanged_settings_is_a_no_op(app, registry, upstream):
    resolver = _create(registry)
    resolver.refresh().result(timeout=WAIT)
    generation = resolver.generation

    assert resolver.update_settings(CalculationSettings(method_id=2, school_id=0)) is None
    assert resolver.generation == generation
    assert len(upstream.calls_to("/timings/")) == 1
    resolver.close()


def test_identical_request_reuses_in_flight_cycle(app, registry, upstream):
    release = threading.Event()

    def slow_timings(url, params):
        release.wait(WAIT)
        return make_response(timings_payload())

    upstream.route("/timings/", slow_timings)
    resolver = _create(registry)
    try:
        first = resolver.refresh()
        second = resolver.refresh()
        assert first is second
    finally:
        release.set()
    assert first.result(timeout=WAIT) is True
    assert resolver.generation == 1
    resolver.close()


def test_error_state_and_retry_reacquires_location(app, registry, upstream):
    locate_calls = []

    def locator():
        locate_calls.append(1)
        return 21.4225, 39.8262

    upstream.respond("/timings/", {"code": 500, "status": "Internal Server Error"}, status_code=500)
    resolver = _create(registry, locator=locator)
    resolver.refresh().result(timeout=WAIT)

    assert resolver.state == ResolverState.ERROR
    assert resolver.error
    assert resolver.schedule is None
    assert resolver.projection is None

    upstream.respond("/timings/", timings_payload())
    assert resolver.refresh().result(timeout=WAIT) is True

    assert resolver.state == ResolverState.READY
    assert resolver.error is None
    assert len(locate_calls) == 2
    resolver.close()


def test_ticker_recomputes_projection(app, registry, upstream):
    now = {"value": datetime.datetime(2024, 3, 15, 12, 0)}
    resolver = _create(registry, tick_seconds=0.05, clock=lambda schedule: now["value"])
    resolver.refresh().result(timeout=WAIT)
    assert resolver.projection.prayer_name == "Dhuhr"
    assert resolver.projection.remaining == "31m"

    now["value"] = datetime.datetime(2024, 3, 15, 20, 0)
    deadline = time.monotonic() + WAIT
    while resolver.projection.prayer_name != "Fajr" and time.monotonic() < deadline:
        time.sleep(0.02)

    assert resolver.projection.prayer_name == "Fajr"
    assert resolver.projection.remaining == "Tomorrow"

    resolver.close()
    assert resolver._timer is None


def test_settings_change_clears_schedule_until_refetched(app, registry, upstream):
    release = threading.Event()
    resolver = _create(registry)
    resolver.refresh().result(timeout=WAIT)

    def slow_timings(url, params):
        release.wait(WAIT)
        return make_response(timings_payload())

    upstream.route("/timings/", slow_timings)
    try:
        future = resolver.update_settings(MWL)
        snapshot = resolver.snapshot()
        assert snapshot["state"] == "loading"
        assert snapshot["schedule"] is None
        assert snapshot["nextPrayer"] is None
    finally:
        release.set()
    future.result(timeout=WAIT)
    assert resolver.state == ResolverState.READY
    resolver.close()


def test_closed_session_discards_results_and_rejects_refresh(app, registry, upstream):
    release = threading.Event()

    def slow_timings(url, params):
        release.wait(WAIT)
        return make_response(timings_payload())

    upstream.route("/timings/", slow_timings)
    resolver = _create(registry)
    try:
        future = resolver.refresh()
        registry.remove(resolver.session_id)
    finally:
        release.set()

    assert future.result(timeout=WAIT) is False
    assert resolver.closed
    assert resolver.schedule is None
    assert registry.get(resolver.session_id) is None
    with pytest.raises(RuntimeError):
        resolver.refresh()


def test_crashing_locator_still_reaches_ready_with_default(app, registry, upstream):
    def locator():
        raise OSError("device gone")

    resolver = _create(registry, locator=locator)
    assert resolver.refresh().result(timeout=WAIT) is True

    assert resolver.state == ResolverState.READY
    assert resolver.position.label == "Mecca, Saudi Arabia"
    assert len(resolver.warnings) == 1
    resolver.close()


def test_unexpected_acquisition_failure_enters_error_state(app, registry, upstream, mocker):
    mocker.patch(
        'salah_times.services.schedule_resolver.acquire_location',
        side_effect=RuntimeError("acquisition exploded"),
    )
    resolver = _create(registry)

    assert resolver.refresh().result(timeout=WAIT) is True

    assert resolver.state == ResolverState.ERROR
    assert resolver.error == "Unexpected error while loading prayer times."
    assert resolver.schedule is None
    assert upstream.calls_to("/timings/") == []
    resolver.close()


def test_unchanged_settings_during_cycle_returns_running_cycle(app, registry, upstream):
    release = threading.Event()

    def slow_timings(url, params):
        release.wait(WAIT)
        return make_response(timings_payload())

    upstream.route("/timings/", slow_timings)
    resolver = _create(registry)
    try:
        running = resolver.refresh()
        assert resolver.update_settings(ISNA) is running
    finally:
        release.set()
    running.result(timeout=WAIT)
    assert resolver.update_settings(ISNA) is None
    resolver.close()
