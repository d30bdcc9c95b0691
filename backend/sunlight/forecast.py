"""
Forecast Aggregator - Multi-day sunshine forecast.

Pure deterministic aggregation on top of the Interval Scanner: for each day,
sunny intervals plus sun times become a DayForecast with day length, sunshine
minutes and sunshine percentage.

Following the engine's principles:
- No I/O, no weather (geometric sunshine only)
- Recomputed per call, never mutated in place
- Day count clamped to bound total sampling cost
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from .obstructions import Obstruction
from .scanner import IntervalScanner, SunnyInterval
from .solar_position import GeoPoint, PolarState, SolarPositionCalculator, SunTimes
from .validation import DateLike, day_range, to_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayForecast:
    """Immutable sunshine forecast for one day."""
    date: date
    sunrise_time: Optional[datetime]
    sunset_time: Optional[datetime]
    sunny_periods: List[SunnyInterval]
    sunshine_percentage: int
    sunshine_minutes: int
    day_length_minutes: int
    polar_state: PolarState = PolarState.NONE


@dataclass(frozen=True)
class ForecastSummary:
    """Totals across a forecast."""
    days: int
    total_sunshine_minutes: int
    average_sunshine_percentage: float
    sunniest_date: Optional[date]


class ForecastAggregator:
    """
    Drives the Interval Scanner across consecutive days.

    Cost scales with days x samples per day x obstructions, so days is
    clamped to max_days.
    """

    MAX_FORECAST_DAYS = 14

    def __init__(
        self,
        scanner: Optional[IntervalScanner] = None,
        times_fn: Optional[Callable[[GeoPoint, date], SunTimes]] = None,
        max_days: int = MAX_FORECAST_DAYS,
    ):
        if max_days < 1:
            raise ValueError(f"max_days must be >=1, got {max_days}")
        self.scanner = scanner or IntervalScanner()
        self._times_fn = times_fn or SolarPositionCalculator.times
        self.max_days = max_days

    @staticmethod
    def sunshine_percentage(sunshine_minutes: float, day_length_minutes: float) -> int:
        """
        Share of the day in sunshine, 0-100.

        Returns 0 when the day has no length (polar night).
        """
        if day_length_minutes <= 0:
            return 0
        pct = round(100.0 * sunshine_minutes / day_length_minutes)
        return max(0, min(100, int(pct)))

    def day_forecast(
        self,
        point: GeoPoint,
        day: DateLike,
        obstructions: Sequence[Obstruction] = (),
    ) -> DayForecast:
        """Forecast for a single day."""
        day = to_date(day)
        times = self._times_fn(point, day)
        periods = self.scanner.sunny_intervals(point, day, obstructions, times=times)

        window = times.daylight_window()
        if window is None:
            day_length = 0.0
        else:
            day_length = (window[1] - window[0]).total_seconds() / 60.0

        sunshine = sum(p.duration_minutes for p in periods)

        return DayForecast(
            date=day,
            sunrise_time=times.sunrise,
            sunset_time=times.sunset,
            sunny_periods=periods,
            sunshine_percentage=self.sunshine_percentage(sunshine, day_length),
            sunshine_minutes=int(round(sunshine)),
            day_length_minutes=int(round(day_length)),
            polar_state=times.polar_state,
        )

    def forecast(
        self,
        point: GeoPoint,
        obstructions: Sequence[Obstruction],
        start_date: DateLike,
        days: int,
    ) -> List[DayForecast]:
        """
        Forecast consecutive days starting at start_date.

        Args:
            point: Observation location
            obstructions: Buildings around the point
            start_date: First day of the forecast
            days: Number of days; clamped to max_days

        Returns:
            One DayForecast per day, in date order

        Raises:
            ValueError: If days < 1
            InvalidInstantError: If the range runs past the last supported date
        """
        if days < 1:
            raise ValueError(f"days must be >=1, got {days}")
        if days > self.max_days:
            logger.info(f"[FORECAST] Clamping {days} requested days to {self.max_days}")
            days = self.max_days

        return [self.day_forecast(point, day, obstructions) for day in day_range(start_date, days)]

    @staticmethod
    def summarize(forecasts: Sequence[DayForecast]) -> ForecastSummary:
        """Total and average sunshine across a forecast."""
        if not forecasts:
            return ForecastSummary(days=0, total_sunshine_minutes=0,
                                   average_sunshine_percentage=0.0, sunniest_date=None)
        total = sum(f.sunshine_minutes for f in forecasts)
        average = sum(f.sunshine_percentage for f in forecasts) / len(forecasts)
        sunniest = max(forecasts, key=lambda f: f.sunshine_minutes)
        return ForecastSummary(
            days=len(forecasts),
            total_sunshine_minutes=total,
            average_sunshine_percentage=round(average, 1),
            sunniest_date=sunniest.date if sunniest.sunshine_minutes > 0 else None,
        )
