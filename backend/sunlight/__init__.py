"""
Sunlight package - solar geometry and shade exposure engine

Submodules:
- solar_position: Sun azimuth/elevation and daily solar events
- obstructions: Building model and occlusion predicate
- sampler: Point-in-time direct sunlight check
- scanner: Sunny intervals across a day
- cache: TTL cache and async single-flight coalescing
- forecast: Multi-day sunshine forecast
- engine: Cached facade used by the API layer
- registry: Process-wide engine instance
"""

from .errors import SunlightError, InvalidCoordinateError, InvalidInstantError, TooManyObstructionsError
from .config import SunlightSettings
from .solar_position import GeoPoint, SunPosition, SunTimes, PolarState, SolarPositionCalculator
from .obstructions import Obstruction, OcclusionService
from .sampler import SunlightSampler
from .scanner import IntervalScanner, SunnyInterval, next_sunny_interval, current_sunny_interval
from .cache import TTLCache, SingleFlight, CacheEntry, position_key
from .forecast import ForecastAggregator, DayForecast, ForecastSummary
from .engine import SunlightEngine, VenueSunlight
from .registry import get_engine, load_engine, reload_engine

__all__ = [
    "SunlightError",
    "InvalidCoordinateError",
    "InvalidInstantError",
    "TooManyObstructionsError",
    "SunlightSettings",
    "GeoPoint",
    "SunPosition",
    "SunTimes",
    "PolarState",
    "SolarPositionCalculator",
    "Obstruction",
    "OcclusionService",
    "SunlightSampler",
    "IntervalScanner",
    "SunnyInterval",
    "next_sunny_interval",
    "current_sunny_interval",
    "TTLCache",
    "SingleFlight",
    "CacheEntry",
    "position_key",
    "ForecastAggregator",
    "DayForecast",
    "ForecastSummary",
    "SunlightEngine",
    "VenueSunlight",
    "get_engine",
    "load_engine",
    "reload_engine",
]
