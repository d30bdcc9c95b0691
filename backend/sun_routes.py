"""
Sun Position & Sunshine Forecast API
Thin FastAPI boundary over the sunlight engine: validates requests, maps engine
errors to 400 responses and coalesces identical concurrent requests.
"""
from fastapi import APIRouter, HTTPException, Query
from typing import Any, Callable, Dict, Hashable, List, Optional
from pydantic import BaseModel
from datetime import date, datetime, timezone
import asyncio
import logging

from sunlight import (
    GeoPoint,
    Obstruction,
    SingleFlight,
    SunlightError,
    TTLCache,
    get_engine,
)
from sunlight.forecast import DayForecast, ForecastAggregator
from sunlight.scanner import SunnyInterval, current_sunny_interval, next_sunny_interval
from sunlight.validation import to_date, to_utc

logger = logging.getLogger(__name__)

# Create router for sun endpoints
sun_router = APIRouter(prefix="/sun")

# Request-level result cache (5 minutes) + in-flight coalescing (100 ms),
# created lazily from the engine settings
_request_cache: Optional[TTLCache] = None
_single_flight: Optional[SingleFlight] = None


def _get_request_cache() -> TTLCache:
    global _request_cache
    if _request_cache is None:
        settings = get_engine().settings
        _request_cache = TTLCache(
            settings.result_ttl_seconds, max_entries=settings.cache_max_entries, name="request"
        )
    return _request_cache


def _get_single_flight() -> SingleFlight:
    global _single_flight
    if _single_flight is None:
        _single_flight = SingleFlight(get_engine().settings.coalesce_window_seconds)
    return _single_flight


def reset_request_caches() -> None:
    global _request_cache, _single_flight
    _request_cache = None
    _single_flight = None


# Models
class ObstructionModel(BaseModel):
    height_m: float
    distance_m: float
    direction_deg: float
    width_m: float = 0.0
    length_m: float = 0.0
    orientation_deg: float = 0.0

    def to_domain(self) -> Obstruction:
        return Obstruction(
            height_m=self.height_m,
            distance_m=self.distance_m,
            direction_deg=self.direction_deg,
            width_m=self.width_m,
            length_m=self.length_m,
            orientation_deg=self.orientation_deg,
        )


class SunPositionResponse(BaseModel):
    azimuth: float
    elevation: float
    timestamp: datetime


class SunTimesResponse(BaseModel):
    date: date
    polar_state: str
    solar_noon: datetime
    nadir: datetime
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    sunrise_end: Optional[datetime] = None
    sunset_start: Optional[datetime] = None
    dawn: Optional[datetime] = None
    dusk: Optional[datetime] = None
    nautical_dawn: Optional[datetime] = None
    nautical_dusk: Optional[datetime] = None
    night_end: Optional[datetime] = None
    night: Optional[datetime] = None
    golden_hour_end: Optional[datetime] = None
    golden_hour: Optional[datetime] = None


class SunnyPeriodModel(BaseModel):
    start: datetime
    end: datetime
    duration_minutes: float


class SunlightRequest(BaseModel):
    """Venue detail: is the venue in the sun right now"""
    latitude: float
    longitude: float
    instant: Optional[str] = None  # ISO 8601, defaults to now
    obstructions: List[ObstructionModel] = []


class SunlightResponse(BaseModel):
    azimuth: float
    elevation: float
    timestamp: datetime
    is_currently_sunny: bool
    sunshine_probability: float
    sunny_periods: List[SunnyPeriodModel]
    current_sunny_period: Optional[SunnyPeriodModel] = None
    next_sunny_period: Optional[SunnyPeriodModel] = None


class ForecastRequest(BaseModel):
    latitude: float
    longitude: float
    obstructions: List[ObstructionModel] = []
    start_date: Optional[str] = None  # YYYY-MM-DD, defaults to today (UTC)
    days: int = 7


class DayForecastModel(BaseModel):
    date: date
    sunrise_time: Optional[datetime] = None
    sunset_time: Optional[datetime] = None
    sunny_periods: List[SunnyPeriodModel]
    sunshine_percentage: int
    sunshine_minutes: int
    day_length_minutes: int
    polar_state: str


class ForecastSummaryModel(BaseModel):
    days: int
    total_sunshine_minutes: int
    average_sunshine_percentage: float
    sunniest_date: Optional[date] = None


class ForecastResponse(BaseModel):
    forecast: List[DayForecastModel]
    summary: ForecastSummaryModel


def _period(interval: Optional[SunnyInterval]) -> Optional[SunnyPeriodModel]:
    if interval is None:
        return None
    return SunnyPeriodModel(
        start=interval.start,
        end=interval.end,
        duration_minutes=round(interval.duration_minutes, 1),
    )


def _day(forecast: DayForecast) -> DayForecastModel:
    return DayForecastModel(
        date=forecast.date,
        sunrise_time=forecast.sunrise_time,
        sunset_time=forecast.sunset_time,
        sunny_periods=[_period(p) for p in forecast.sunny_periods],
        sunshine_percentage=forecast.sunshine_percentage,
        sunshine_minutes=forecast.sunshine_minutes,
        day_length_minutes=forecast.day_length_minutes,
        polar_state=forecast.polar_state.value,
    )


def _bad_request(e: ValueError) -> HTTPException:
    code = e.code if isinstance(e, SunlightError) else "invalid_request"
    return HTTPException(status_code=400, detail={"error": code, "message": str(e)})


async def _coalesced(key: Hashable, compute: Callable[[], Any]) -> Any:
    """Serve from the request cache, sharing one computation per key."""
    cache = _get_request_cache()
    cached = cache.get(key)
    if cached is not None:
        return cached
    return await _get_single_flight().run(
        key, lambda: asyncio.to_thread(cache.get_or_compute, key, compute)
    )


@sun_router.get("/position", response_model=SunPositionResponse)
async def get_sun_position(
    latitude: float = Query(...),
    longitude: float = Query(...),
    date: Optional[str] = Query(None, description="ISO 8601 instant, defaults to now"),
):
    """Current (or given) sun azimuth/elevation for a point."""
    try:
        point = GeoPoint(latitude, longitude)
        instant = to_utc(date) if date else datetime.now(timezone.utc)
        position = get_engine().position(point, instant)
    except ValueError as e:
        logger.warning(f"[SUN] Rejected position request: {e}")
        raise _bad_request(e)

    return SunPositionResponse(
        azimuth=round(position.azimuth_deg, 2),
        elevation=round(position.elevation_deg, 2),
        timestamp=position.instant,
    )


@sun_router.get("/times", response_model=SunTimesResponse)
async def get_sun_times(
    latitude: float = Query(...),
    longitude: float = Query(...),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today (UTC)"),
):
    """Sunrise, sunset and the other named solar events for a day."""
    try:
        point = GeoPoint(latitude, longitude)
        day = to_date(date) if date else datetime.now(timezone.utc).date()
        times = get_engine().times(point, day)
    except ValueError as e:
        logger.warning(f"[SUN] Rejected times request: {e}")
        raise _bad_request(e)

    return SunTimesResponse(date=times.day, polar_state=times.polar_state.value, **times.as_dict())


@sun_router.post("/sunlight", response_model=SunlightResponse)
async def get_venue_sunlight(request: SunlightRequest):
    """Sun position and direct-sunlight state for a venue and its buildings."""
    try:
        point = GeoPoint(request.latitude, request.longitude)
        instant = to_utc(request.instant) if request.instant else datetime.now(timezone.utc)
        obstructions = tuple(o.to_domain() for o in request.obstructions)
    except ValueError as e:
        logger.warning(f"[SUN] Rejected sunlight request: {e}")
        raise _bad_request(e)

    engine = get_engine()
    key = ("sunlight", point, instant.replace(second=0, microsecond=0), obstructions)
    try:
        state = await _coalesced(key, lambda: engine.venue_sunlight(point, instant, obstructions))
    except ValueError as e:
        logger.warning(f"[SUN] Rejected sunlight request: {e}")
        raise _bad_request(e)

    return SunlightResponse(
        azimuth=round(state.position.azimuth_deg, 2),
        elevation=round(state.position.elevation_deg, 2),
        timestamp=state.position.instant,
        is_currently_sunny=state.is_sunlit,
        sunshine_probability=state.sunshine_probability,
        sunny_periods=[_period(p) for p in state.sunny_periods],
        # the shared state may come from another instant in the same minute
        current_sunny_period=_period(current_sunny_interval(state.sunny_periods, instant)),
        next_sunny_period=_period(next_sunny_interval(state.sunny_periods, instant)),
    )


@sun_router.post("/forecast", response_model=ForecastResponse)
async def get_sunshine_forecast(request: ForecastRequest):
    """Multi-day sunshine forecast (geometric, weather not included)."""
    try:
        point = GeoPoint(request.latitude, request.longitude)
        start = to_date(request.start_date) if request.start_date else datetime.now(timezone.utc).date()
        obstructions = tuple(o.to_domain() for o in request.obstructions)
    except ValueError as e:
        logger.warning(f"[FORECAST] Rejected forecast request: {e}")
        raise _bad_request(e)

    engine = get_engine()
    key = ("forecast", point, start, request.days, obstructions)
    try:
        forecast = await _coalesced(
            key, lambda: engine.forecast(point, obstructions, start, request.days)
        )
    except ValueError as e:
        logger.warning(f"[FORECAST] Rejected forecast request: {e}")
        raise _bad_request(e)

    summary = ForecastAggregator.summarize(forecast)
    logger.info(
        f"[FORECAST] {len(forecast)} day(s) for lat={request.latitude}, lon={request.longitude}"
    )
    return ForecastResponse(
        forecast=[_day(f) for f in forecast],
        summary=ForecastSummaryModel(
            days=summary.days,
            total_sunshine_minutes=summary.total_sunshine_minutes,
            average_sunshine_percentage=summary.average_sunshine_percentage,
            sunniest_date=summary.sunniest_date,
        ),
    )


@sun_router.get("/cache/stats")
async def get_cache_stats() -> Dict[str, Any]:
    """Entry counts and hit/miss counters for the engine and request caches."""
    stats = get_engine().cache_stats()
    cache = _get_request_cache()
    stats[cache.name] = {"entries": len(cache), "hits": cache.hits, "misses": cache.misses}
    return stats
