"""
Resolver sessions: one ScheduleResolver per displayed prayer-times panel.

A session owns its GeoPosition, CalculationSettings and PrayerSchedule. Every
fetch cycle carries the generation it was started under; results are only
committed while that generation is still current, so a superseded cycle can
never overwrite fresher state. A one-minute ticker keeps the next-prayer
projection current while the schedule is stable.
"""
import datetime
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from flask import current_app

from ..exceptions import ScheduleFetchError
from ..metrics import RESOLVER_CYCLES_TOTAL
from .location_service import acquire_location, Locator
from .prayer_time.entities import CalculationSettings, GeoPosition, NextPrayerProjection, PrayerSchedule
from .prayer_time.projection import project_next, local_now
from .prayer_time.schedule_fetcher import fetch_schedule


class ResolverState:
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class ScheduleResolver:

    def __init__(self, app, executor: ThreadPoolExecutor, locator: Optional[Locator], settings: CalculationSettings,
                 tick_seconds: float = 60, clock: Optional[Callable[[PrayerSchedule], Any]] = None,
                 civil_date: Optional[datetime.date] = None):
        self.session_id = uuid.uuid4().hex
        # Client-supplied day; None follows the location's calendar day.
        self.civil_date = civil_date
        self._app = app
        self._executor = executor
        self._locator = locator
        self._tick_seconds = tick_seconds
        self._clock = clock or local_now
        self._lock = threading.RLock()
        self._generation = 0
        self._inflight: Optional[Dict[str, Any]] = None
        self._timer: Optional[threading.Timer] = None
        self._closed = False

        self.settings = settings
        self.position: Optional[GeoPosition] = None
        self.schedule: Optional[PrayerSchedule] = None
        self.projection: Optional[NextPrayerProjection] = None
        self.state = ResolverState.LOADING
        self.error: Optional[str] = None
        self.warnings: List[str] = []

    @property
    def generation(self) -> int:
        return self._generation

    # --- Fetch cycles ---

    def refresh(self) -> Future:
        """
        Runs location acquisition then schedule fetch from scratch. Used for the
        initial load and for the "Try Again" action after an error.
        """
        with self._lock:
            return self._start_cycle(acquire=True)

    def update_settings(self, settings: CalculationSettings) -> Optional[Future]:
        """
        Applies a new method/school selection. Unchanged settings are a no-op
        (returns the in-flight cycle, if any); a change invalidates the current
        schedule and starts exactly one new cycle.
        """
        with self._lock:
            if settings == self.settings:
                if self._inflight and not self._inflight["future"].done():
                    return self._inflight["future"]
                return None

            current_app.logger.info(
                f"Resolver {self.session_id}: Settings changed {self.settings.to_dict()} -> {settings.to_dict()}"
            )
            self.settings = settings
            self.schedule = None
            self.projection = None
            self._cancel_timer()
            # Without a committed position the location still has to be acquired.
            return self._start_cycle(acquire=self.position is None)

    def _start_cycle(self, acquire: bool) -> Future:
        if self._closed:
            raise RuntimeError(f"Resolver {self.session_id} is closed.")

        key = (acquire, None if acquire else self.position, self.settings)
        inflight = self._inflight
        if inflight and inflight["key"] == key and not inflight["future"].done():
            current_app.logger.debug(f"Resolver {self.session_id}: Reusing in-flight cycle {inflight['generation']}.")
            return inflight["future"]

        self._generation += 1
        generation = self._generation
        self.state = ResolverState.LOADING
        self.error = None

        future = self._executor.submit(self._run_cycle, generation, self.settings, None if acquire else self.position)
        self._inflight = {"generation": generation, "key": key, "future": future}
        current_app.logger.info(f"Resolver {self.session_id}: Started cycle {generation} (acquire={acquire}).")
        return future

    def _run_cycle(self, generation: int, settings: CalculationSettings, position: Optional[GeoPosition]) -> bool:
        """Worker body. Returns True when the cycle's result was committed."""
        with self._app.app_context():
            warnings: List[str] = []
            try:
                if position is None:
                    acquired = acquire_location(self._locator)
                    position = acquired.position
                    warnings = acquired.warnings

                if not self._is_current(generation):
                    return self._discard(generation)

                schedule = fetch_schedule(position, settings, self.civil_date)
            except ScheduleFetchError as e:
                return self._commit_error(generation, position, warnings, e)
            except Exception as e:
                current_app.logger.error(f"Resolver {self.session_id}: Unexpected error in cycle {generation}: {e}", exc_info=True)
                return self._commit_error(generation, position, warnings, ScheduleFetchError("Unexpected error while loading prayer times."))

            return self._commit_schedule(generation, position, warnings, schedule)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return not self._closed and generation == self._generation

    def _discard(self, generation: int) -> bool:
        RESOLVER_CYCLES_TOTAL.labels(outcome='stale').inc()
        current_app.logger.info(f"Resolver {self.session_id}: Discarding stale cycle {generation} (current {self._generation}).")
        return False

    def _commit_schedule(self, generation: int, position: GeoPosition, warnings: List[str], schedule: PrayerSchedule) -> bool:
        with self._lock:
            if self._closed or generation != self._generation:
                return self._discard(generation)
            self.position = position
            self.warnings = warnings
            self.schedule = schedule
            self.error = None
            self.state = ResolverState.READY
            self._recompute_projection()
            self._restart_timer()
        RESOLVER_CYCLES_TOTAL.labels(outcome='ready').inc()
        current_app.logger.info(f"Resolver {self.session_id}: Committed schedule for cycle {generation}.")
        return True

    def _commit_error(self, generation: int, position: GeoPosition, warnings: List[str], error: ScheduleFetchError) -> bool:
        with self._lock:
            if self._closed or generation != self._generation:
                return self._discard(generation)
            self.position = position
            self.warnings = warnings
            self.schedule = None
            self.projection = None
            self.error = error.message
            self.state = ResolverState.ERROR
            self._cancel_timer()
        RESOLVER_CYCLES_TOTAL.labels(outcome='error').inc()
        current_app.logger.error(f"Resolver {self.session_id}: Cycle {generation} failed: {error.message}")
        return True

    # --- Projection ticker ---

    def _recompute_projection(self) -> None:
        if self.schedule is not None:
            self.projection = project_next(self.schedule, self._clock(self.schedule))

    def tick(self) -> Optional[NextPrayerProjection]:
        """Recomputes the projection from the current schedule and wall clock."""
        with self._lock:
            if self._closed:
                return None
            self._recompute_projection()
            return self.projection

    def _on_timer(self) -> None:
        with self._lock:
            if self._closed or self.schedule is None:
                return
            self._recompute_projection()
            self._restart_timer()

    def _restart_timer(self) -> None:
        self._cancel_timer()
        if self._tick_seconds and self._tick_seconds > 0:
            self._timer = threading.Timer(self._tick_seconds, self._on_timer)
            self._timer.daemon = True
            self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # --- Lifecycle ---

    def close(self) -> None:
        """Stops the ticker and makes any in-flight cycle stale."""
        with self._lock:
            self._closed = True
            self._generation += 1
            self._cancel_timer()

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "sessionId": self.session_id,
                "state": self.state,
                "generation": self._generation,
                "settings": self.settings.to_dict(),
                "location": self.position.to_dict() if self.position else None,
                "schedule": self.schedule.to_display_dict() if self.schedule else None,
                "nextPrayer": self.projection.to_display_dict() if self.projection else None,
                "error": self.error,
                "warnings": list(self.warnings),
            }


class ResolverRegistry:
    """In-memory registry of resolver sessions sharing one worker pool."""

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="resolver")
        self._sessions: Dict[str, ScheduleResolver] = {}
        self._lock = threading.Lock()

    def create(self, locator: Optional[Locator], settings: CalculationSettings, **kwargs) -> ScheduleResolver:
        app = current_app._get_current_object()
        kwargs.setdefault('tick_seconds', app.config.get('PROJECTION_TICK_SECONDS', 60))
        resolver = ScheduleResolver(app, self._executor, locator, settings, **kwargs)
        with self._lock:
            self._sessions[resolver.session_id] = resolver
        return resolver

    def get(self, session_id: str) -> Optional[ScheduleResolver]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            resolver = self._sessions.pop(session_id, None)
        if resolver is None:
            return False
        resolver.close()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def get_registry() -> ResolverRegistry:
    return current_app.extensions['resolver_registry']
