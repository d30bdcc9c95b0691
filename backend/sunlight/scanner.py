"""
Interval Scanner - Sunny periods across one day.

Samples the sunlight verdict at fixed steps between sunrise and sunset and
merges consecutive sunny samples into SunnyInterval objects.

Interval convention:
- An interval opens at the first sunny sample of a run
- It ends one step after the last sunny sample of the run, capped at the end
  of the daylight window, so every interval has start < end
- Intervals are chronological, non-overlapping and inside [sunrise, sunset]

An empty obstruction set short-circuits to the full daylight window.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

from .obstructions import Obstruction
from .sampler import SunlightSampler
from .solar_position import GeoPoint, SolarPositionCalculator, SunTimes
from .validation import DateLike, to_date

logger = logging.getLogger(__name__)

SunlitFn = Callable[[GeoPoint, datetime, Sequence[Obstruction]], bool]
TimesFn = Callable[[GeoPoint, date], SunTimes]


@dataclass(frozen=True)
class SunnyInterval:
    """A contiguous stretch of direct sunlight (UTC)."""
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


class IntervalScanner:
    """Builds the list of sunny intervals for a point and day."""

    DEFAULT_STEP_MINUTES = 15

    def __init__(
        self,
        sunlit_fn: Optional[SunlitFn] = None,
        times_fn: Optional[TimesFn] = None,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be >0, got {step_minutes}")
        self._sunlit_fn = sunlit_fn or SunlightSampler().is_sunlit
        self._times_fn = times_fn or SolarPositionCalculator.times
        self.step = timedelta(minutes=step_minutes)

    def sunny_intervals(
        self,
        point: GeoPoint,
        day: DateLike,
        obstructions: Sequence[Obstruction] = (),
        times: Optional[SunTimes] = None,
    ) -> List[SunnyInterval]:
        """
        Sunny intervals for the given day.

        Args:
            point: Observation location
            day: Calendar date
            obstructions: Buildings around the point (may be empty)
            times: Precomputed SunTimes for the day, if the caller has them

        Returns:
            Chronological, non-overlapping intervals. Empty on a polar night.
        """
        day = to_date(day)
        if times is None:
            times = self._times_fn(point, day)

        window = times.daylight_window()
        if window is None:
            return []
        window_start, window_end = window

        if not obstructions:
            return [SunnyInterval(start=window_start, end=window_end)]

        intervals: List[SunnyInterval] = []
        open_start: Optional[datetime] = None
        last_sunny: Optional[datetime] = None

        current = window_start
        while current <= window_end:
            if self._sunlit_fn(point, current, obstructions):
                if open_start is None:
                    open_start = current
                last_sunny = current
            elif open_start is not None:
                self._close(intervals, open_start, last_sunny, window_end)
                open_start = None
            current += self.step

        if open_start is not None:
            self._close(intervals, open_start, last_sunny, window_end)

        logger.debug(
            f"[SCAN] {point.latitude},{point.longitude} {day}: "
            f"{len(intervals)} sunny interval(s) with {len(obstructions)} obstruction(s)"
        )
        return intervals

    def _close(self, intervals: List[SunnyInterval], start: datetime, last_sunny: datetime, window_end: datetime) -> None:
        end = min(last_sunny + self.step, window_end)
        # a lone sample exactly on the window end has no width
        if end > start:
            intervals.append(SunnyInterval(start=start, end=end))


def current_sunny_interval(intervals: Sequence[SunnyInterval], now: datetime) -> Optional[SunnyInterval]:
    """Interval containing ``now``, if any."""
    for interval in intervals:
        if interval.contains(now):
            return interval
    return None


def next_sunny_interval(intervals: Sequence[SunnyInterval], now: datetime) -> Optional[SunnyInterval]:
    """First interval starting after ``now``, if any."""
    for interval in intervals:
        if interval.start > now:
            return interval
    return None
