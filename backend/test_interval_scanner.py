"""
Tests for Interval Scanner

Key requirements:
- Open sky short-circuits to [sunrise, sunset]
- Sunny runs merge into one interval; shaded samples close it
- Intervals are chronological, non-overlapping, inside the daylight window
- Polar night yields nothing, polar day spans the whole UTC day
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from sunlight.obstructions import Obstruction
from sunlight.scanner import (
    IntervalScanner,
    SunnyInterval,
    current_sunny_interval,
    next_sunny_interval,
)
from sunlight.solar_position import GeoPoint, SolarPositionCalculator, SunTimes

GOTHENBURG = GeoPoint(57.7089, 11.9746)
TROMSO = GeoPoint(69.6492, 18.9553)
DAY = date(2024, 6, 21)
ANY_BUILDING = Obstruction(height_m=10, distance_m=10, direction_deg=0)


def at(hour, minute=0):
    return datetime(2024, 6, 21, hour, minute, tzinfo=timezone.utc)


def fake_times(sunrise, sunset):
    def times_fn(point, day):
        return SunTimes(day=day, solar_noon=at(12), nadir=at(0), sunrise=sunrise, sunset=sunset)
    return times_fn


def sunny_at(*instants):
    """Sunlit function that is sunny exactly at the listed sample times."""
    sunny = set(instants)
    calls = []

    def sunlit_fn(point, instant, obstructions):
        calls.append(instant)
        return instant in sunny
    sunlit_fn.calls = calls
    return sunlit_fn


def assert_well_formed(intervals, window_start, window_end):
    for interval in intervals:
        assert interval.start < interval.end
        assert window_start <= interval.start
        assert interval.end <= window_end
    for earlier, later in zip(intervals, intervals[1:]):
        assert earlier.end <= later.start


class TestIntervalMerging:
    """Scanner state machine over a 06:00-08:00 window at 15 minute steps."""

    def _scanner(self, sunlit_fn):
        return IntervalScanner(sunlit_fn=sunlit_fn, times_fn=fake_times(at(6), at(8)), step_minutes=15)

    def test_runs_merge_and_close(self):
        fn = sunny_at(at(6, 15), at(6, 30), at(6, 45), at(7, 15))
        intervals = self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING])

        assert intervals == [
            SunnyInterval(start=at(6, 15), end=at(7, 0)),
            SunnyInterval(start=at(7, 15), end=at(7, 30)),
        ]

    def test_open_interval_closed_at_window_end(self):
        fn = sunny_at(at(7, 45), at(8, 0))
        intervals = self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING])

        assert intervals == [SunnyInterval(start=at(7, 45), end=at(8, 0))]

    def test_isolated_sample_is_one_step_wide(self):
        fn = sunny_at(at(7, 0))
        intervals = self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING])

        assert intervals == [SunnyInterval(start=at(7, 0), end=at(7, 15))]
        assert intervals[0].duration_minutes == 15

    def test_never_sunny(self):
        fn = sunny_at()
        assert self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING]) == []

    def test_always_sunny_is_one_interval(self):
        fn = sunny_at(*[at(6) + timedelta(minutes=15 * i) for i in range(9)])
        intervals = self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING])
        assert intervals == [SunnyInterval(start=at(6), end=at(8))]

    def test_samples_chronological_and_inclusive(self):
        fn = sunny_at()
        self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [ANY_BUILDING])

        assert fn.calls == sorted(fn.calls)
        assert fn.calls[0] == at(6)
        assert fn.calls[-1] == at(8)
        assert len(fn.calls) == 9

    def test_open_sky_skips_sampling(self):
        fn = sunny_at()
        intervals = self._scanner(fn).sunny_intervals(GOTHENBURG, DAY, [])

        assert intervals == [SunnyInterval(start=at(6), end=at(8))]
        assert fn.calls == []

    @pytest.mark.parametrize("step", [0, -15])
    def test_invalid_step(self, step):
        with pytest.raises(ValueError):
            IntervalScanner(step_minutes=step)


class TestRealGeometry:

    def test_open_sky_spans_sunrise_to_sunset(self):
        times = SolarPositionCalculator.times(GOTHENBURG, DAY)
        intervals = IntervalScanner().sunny_intervals(GOTHENBURG, DAY)
        assert intervals == [SunnyInterval(start=times.sunrise, end=times.sunset)]

    def test_tall_south_building_splits_day(self):
        """Sun is shaded whenever it is in the southern half of the sky."""
        tall = Obstruction(height_m=30, distance_m=20, direction_deg=180)
        times = SolarPositionCalculator.times(GOTHENBURG, DAY)
        intervals = IntervalScanner().sunny_intervals(GOTHENBURG, DAY, [tall])

        assert len(intervals) == 2
        assert_well_formed(intervals, times.sunrise, times.sunset)
        morning, evening = intervals
        assert morning.end < times.solar_noon < evening.start

    @pytest.mark.parametrize("step", [5, 15, 30, 60])
    def test_well_formed_for_any_step(self, step):
        obstructions = [
            Obstruction(height_m=15, distance_m=30, direction_deg=120),
            Obstruction(height_m=40, distance_m=25, direction_deg=250),
        ]
        times = SolarPositionCalculator.times(GOTHENBURG, DAY)
        intervals = IntervalScanner(step_minutes=step).sunny_intervals(GOTHENBURG, DAY, obstructions)
        assert intervals
        assert_well_formed(intervals, times.sunrise, times.sunset)

    def test_polar_night_has_no_intervals(self):
        obstructions = [ANY_BUILDING]
        assert IntervalScanner().sunny_intervals(TROMSO, date(2024, 12, 21)) == []
        assert IntervalScanner().sunny_intervals(TROMSO, date(2024, 12, 21), obstructions) == []

    def test_polar_day_open_sky_full_day(self):
        intervals = IntervalScanner().sunny_intervals(TROMSO, DAY)
        assert len(intervals) == 1
        assert intervals[0].start == at(0)
        assert intervals[0].duration_minutes == 24 * 60

    def test_polar_day_with_building_stays_in_window(self):
        tall = Obstruction(height_m=30, distance_m=20, direction_deg=180)
        intervals = IntervalScanner().sunny_intervals(TROMSO, DAY, [tall])
        assert intervals
        assert_well_formed(intervals, at(0), at(0) + timedelta(days=1))


class TestIntervalLookup:

    INTERVALS = [
        SunnyInterval(start=at(8), end=at(10)),
        SunnyInterval(start=at(13), end=at(15)),
    ]

    @pytest.mark.parametrize("now,expected", [
        (at(9), INTERVALS[0]),
        (at(8), INTERVALS[0]),
        (at(10), None),
        (at(14), INTERVALS[1]),
        (at(16), None),
    ])
    def test_current(self, now, expected):
        assert current_sunny_interval(self.INTERVALS, now) == expected

    @pytest.mark.parametrize("now,expected", [
        (at(7), INTERVALS[0]),
        (at(9), INTERVALS[1]),
        (at(13), None),
        (at(20), None),
    ])
    def test_next(self, now, expected):
        assert next_sunny_interval(self.INTERVALS, now) == expected
