"""
Sunlight Engine - cached facade over the solar exposure components.

Wires the position calculator, sampler, scanner and forecast aggregator
through TTL caches and exposes the query flows used by the API layer:
- venue detail: position + current sunlight verdict (+ today's sunny periods)
- forecast: DayForecast list over several days
- sun times only: SunTimes for a point and date

Cached positions and times are computed for the rounded coordinates and the
start of the time bucket, so a cached value never depends on which caller
populated it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from .cache import TTLCache, bucket_instant, position_key, round_coordinate
from .config import SunlightSettings
from .errors import TooManyObstructionsError
from .forecast import DayForecast, ForecastAggregator
from .obstructions import Obstruction, OcclusionService
from .sampler import SunlightSampler
from .scanner import IntervalScanner, SunnyInterval, current_sunny_interval, next_sunny_interval
from .solar_position import GeoPoint, SolarPositionCalculator, SunPosition, SunTimes
from .validation import DateLike, InstantLike, to_date, to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VenueSunlight:
    """Current sunlight state for a venue."""
    position: SunPosition
    is_sunlit: bool
    sunny_periods: List[SunnyInterval]
    current_period: Optional[SunnyInterval]
    next_period: Optional[SunnyInterval]
    sunshine_probability: float


class SunlightEngine:
    """Process-wide solar exposure engine with in-memory caches."""

    def __init__(self, settings: Optional[SunlightSettings] = None, clock=None):
        self.settings = settings or SunlightSettings()
        cache_kwargs = {"max_entries": self.settings.cache_max_entries}
        if clock is not None:
            cache_kwargs["clock"] = clock

        self.position_cache = TTLCache(self.settings.position_ttl_seconds, name="position", **cache_kwargs)
        self.times_cache = TTLCache(self.settings.position_ttl_seconds, name="times", **cache_kwargs)
        self.verdict_cache = TTLCache(self.settings.position_ttl_seconds, name="verdict", **cache_kwargs)

        self.sampler = SunlightSampler(self.position)
        self.scanner = IntervalScanner(
            sunlit_fn=self.is_sunlit,
            times_fn=self.times,
            step_minutes=self.settings.step_minutes,
        )
        self.aggregator = ForecastAggregator(
            scanner=self.scanner,
            times_fn=self.times,
            max_days=self.settings.max_forecast_days,
        )

    # ---- helpers ----

    def _rounded(self, point: GeoPoint) -> GeoPoint:
        precision = self.settings.coord_precision
        return GeoPoint(
            latitude=max(-90.0, min(90.0, round_coordinate(point.latitude, precision))),
            longitude=max(-180.0, min(180.0, round_coordinate(point.longitude, precision))),
        )

    def _check_obstructions(self, obstructions: Sequence[Obstruction]) -> Tuple[Obstruction, ...]:
        obstructions = tuple(obstructions or ())
        if len(obstructions) > self.settings.max_obstructions:
            raise TooManyObstructionsError(
                f"At most {self.settings.max_obstructions} obstructions allowed, got {len(obstructions)}"
            )
        return obstructions

    def _accept_obstructions(self, obstructions: Sequence[Obstruction]) -> Tuple[Obstruction, ...]:
        """Bound check plus one warning per query for entries that will be ignored."""
        obstructions = self._check_obstructions(obstructions)
        degenerate = [o for o in obstructions if o.is_degenerate]
        if degenerate:
            logger.warning(f"[SHADE] Ignoring {len(degenerate)} degenerate obstruction(s): {degenerate}")
        return obstructions

    # ---- cached primitives ----

    def position(self, point: GeoPoint, instant: InstantLike) -> SunPosition:
        """Sun position for the time bucket containing instant."""
        instant = to_utc(instant)
        key = position_key(point, instant, self.settings.coord_precision, self.settings.time_bucket_seconds)
        return self.position_cache.get_or_compute(
            key,
            lambda: SolarPositionCalculator.position(self._rounded(point), bucket_instant(key[2])),
        )

    def times(self, point: GeoPoint, day: DateLike) -> SunTimes:
        """Named solar events for a day (cached for the whole day)."""
        day = to_date(day)
        rounded = self._rounded(point)
        key = (rounded.latitude, rounded.longitude, day.isoformat())
        return self.times_cache.get_or_compute(key, lambda: SolarPositionCalculator.times(rounded, day))

    def is_sunlit(self, point: GeoPoint, instant: InstantLike, obstructions: Sequence[Obstruction] = ()) -> bool:
        """Cached sunlight verdict."""
        instant = to_utc(instant)
        obstructions = self._check_obstructions(obstructions)
        key = position_key(point, instant, self.settings.coord_precision, self.settings.time_bucket_seconds)
        return self.verdict_cache.get_or_compute(
            key + (obstructions,),
            lambda: self.sampler.is_sunlit_at(self.position(point, instant), obstructions),
        )

    # ---- query flows ----

    def sunny_intervals(
        self, point: GeoPoint, day: DateLike, obstructions: Sequence[Obstruction] = ()
    ) -> List[SunnyInterval]:
        obstructions = self._accept_obstructions(obstructions)
        return self.scanner.sunny_intervals(point, day, obstructions)

    def forecast(
        self,
        point: GeoPoint,
        obstructions: Sequence[Obstruction],
        start_date: DateLike,
        days: int,
    ) -> List[DayForecast]:
        obstructions = self._accept_obstructions(obstructions)
        logger.info(
            f"[FORECAST] {point.latitude},{point.longitude} from {to_date(start_date)} "
            f"for {days} day(s), {len(obstructions)} obstruction(s)"
        )
        return self.aggregator.forecast(point, obstructions, start_date, days)

    def venue_sunlight(
        self,
        point: GeoPoint,
        instant: Optional[InstantLike] = None,
        obstructions: Sequence[Obstruction] = (),
    ) -> VenueSunlight:
        """
        Current sun position and sunlight state for a venue.

        Args:
            point: Venue location
            instant: Time of interest, defaults to now
            obstructions: Buildings around the venue

        Returns:
            VenueSunlight with today's sunny periods and the current/next one
        """
        instant = to_utc(instant if instant is not None else datetime.now(timezone.utc))
        obstructions = self._accept_obstructions(obstructions)

        position = self.position(point, instant)
        periods = self.scanner.sunny_intervals(point, instant.date(), obstructions)
        return VenueSunlight(
            position=position,
            is_sunlit=self.is_sunlit(point, instant, obstructions),
            sunny_periods=periods,
            current_period=current_sunny_interval(periods, instant),
            next_period=next_sunny_interval(periods, instant),
            sunshine_probability=OcclusionService.sunshine_probability(position, obstructions),
        )

    def cache_stats(self) -> dict:
        return {
            cache.name: {"entries": len(cache), "hits": cache.hits, "misses": cache.misses}
            for cache in (self.position_cache, self.times_cache, self.verdict_cache)
        }

    def clear_caches(self) -> None:
        for cache in (self.position_cache, self.times_cache, self.verdict_cache):
            cache.clear()
