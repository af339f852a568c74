# salah_times/routes/api_routes.py
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict

from flask import current_app
from flask_smorest import Blueprint, abort
from prometheus_client import generate_latest

from ..exceptions import ScheduleFetchError, EnrichmentFailed, InvalidCalculationSettings
from ..schemas import (
    PrayerTimesArgsSchema, PrayerTimesResponseSchema, SessionCreateSchema, SettingsUpdateSchema,
    SessionSchema, CalculationMethodsSchema, IslamicCalendarSchema, MessageSchema
)
from ..services.location_service import acquire_location, coordinates_locator
from ..services.prayer_time.calculation_settings import validate_settings, list_calculation_methods, list_schools
from ..services.prayer_time.schedule_fetcher import fetch_schedule
from ..services.prayer_time.projection import project_next, local_now
from ..services.schedule_resolver import get_registry
from ..services.islamic_calendar_service import get_islamic_calendar

api_bp = Blueprint('API', __name__, url_prefix='/api')

@api_bp.route('/metrics')
def metrics():
    return generate_latest(), 200, {'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}


def _settings_or_422(method_id, school_id):
    try:
        return validate_settings(method_id, school_id)
    except InvalidCalculationSettings as e:
        abort(422, message=str(e))


def _wait_for(future):
    """Blocks until the cycle settles, bounded by RESOLVER_WAIT_SECONDS."""
    if future is None:
        return
    try:
        future.result(timeout=current_app.config.get('RESOLVER_WAIT_SECONDS', 30))
    except FutureTimeout:
        current_app.logger.warning("API: Resolver cycle still running; answering with loading state.")


def _get_resolver_or_404(session_id):
    resolver = get_registry().get(session_id)
    if resolver is None:
        abort(404, message=f"Prayer session {session_id} not found.")
    return resolver


@api_bp.route('/calculation-methods')
@api_bp.response(200, CalculationMethodsSchema)
def calculation_methods() -> Dict[str, Any]:
    """List the supported calculation methods and juristic schools."""
    defaults = validate_settings()
    return {
        "methods": list_calculation_methods(),
        "schools": list_schools(),
        "defaults": defaults.to_dict(),
    }


@api_bp.route('/prayer-times')
@api_bp.arguments(PrayerTimesArgsSchema, location='query')
@api_bp.response(200, PrayerTimesResponseSchema)
@api_bp.alt_response(503, schema=MessageSchema, description="Service Unavailable - Could not fetch data from the external prayer time API.")
def prayer_times(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    One-shot resolve: location -> schedule -> next prayer.
    Clients send the coordinate from their own geolocation; omitting it
    yields the default location with a warning. An optional `date`
    (DD-MM-YYYY) pins the civil day to the device's calendar.
    """
    settings = _settings_or_422(args.get('method'), args.get('school'))
    acquired = acquire_location(coordinates_locator(args.get('lat'), args.get('lon')))

    try:
        schedule = fetch_schedule(acquired.position, settings, args.get('date'))
    except ScheduleFetchError as e:
        abort(503, message=e.message)

    projection = project_next(schedule, local_now(schedule))
    return {
        "schedule": schedule.to_display_dict(),
        "nextPrayer": projection.to_display_dict(),
        "settings": settings.to_dict(),
        "warnings": acquired.warnings,
    }


@api_bp.route('/prayer-sessions', methods=['POST'])
@api_bp.arguments(SessionCreateSchema)
@api_bp.response(201, SessionSchema)
def create_prayer_session(args: Dict[str, Any]) -> Dict[str, Any]:
    """Open a resolver session and run its first acquisition + fetch cycle."""
    settings = _settings_or_422(args.get('method'), args.get('school'))
    resolver = get_registry().create(
        coordinates_locator(args.get('latitude'), args.get('longitude')),
        settings,
        civil_date=args.get('date'),
    )
    current_app.logger.info(f"API: Created prayer session {resolver.session_id}")
    _wait_for(resolver.refresh())
    return resolver.snapshot()


@api_bp.route('/prayer-sessions/<session_id>')
@api_bp.response(200, SessionSchema)
def get_prayer_session(session_id: str) -> Dict[str, Any]:
    resolver = _get_resolver_or_404(session_id)
    resolver.tick()
    return resolver.snapshot()


@api_bp.route('/prayer-sessions/<session_id>/settings', methods=['PATCH'])
@api_bp.arguments(SettingsUpdateSchema)
@api_bp.response(200, SessionSchema)
def update_prayer_session_settings(args: Dict[str, Any], session_id: str) -> Dict[str, Any]:
    """Change method and/or school; triggers exactly one refetch when something changed."""
    resolver = _get_resolver_or_404(session_id)
    settings = _settings_or_422(
        args.get('method', resolver.settings.method_id),
        args.get('school', resolver.settings.school_id),
    )
    _wait_for(resolver.update_settings(settings))
    return resolver.snapshot()


@api_bp.route('/prayer-sessions/<session_id>/retry', methods=['POST'])
@api_bp.response(200, SessionSchema)
def retry_prayer_session(session_id: str) -> Dict[str, Any]:
    """The "Try Again" action: re-run location acquisition and schedule fetch from the top."""
    resolver = _get_resolver_or_404(session_id)
    _wait_for(resolver.refresh())
    return resolver.snapshot()


@api_bp.route('/prayer-sessions/<session_id>', methods=['DELETE'])
@api_bp.response(204)
def delete_prayer_session(session_id: str):
    if not get_registry().remove(session_id):
        abort(404, message=f"Prayer session {session_id} not found.")
    current_app.logger.info(f"API: Closed prayer session {session_id}")


@api_bp.route('/islamic-calendar')
@api_bp.response(200, IslamicCalendarSchema)
@api_bp.alt_response(503, schema=MessageSchema, description="Hijri calendar service unavailable.")
def islamic_calendar() -> Dict[str, Any]:
    try:
        return get_islamic_calendar()
    except EnrichmentFailed as e:
        current_app.logger.error(f"API: Islamic calendar unavailable: {e}")
        abort(503, message="Failed to load Islamic calendar.")
