"""
Tests for Sunlight Sampler

Key requirements:
- Horizon invariant: elevation <= 0 is never sunlit, whatever the obstructions
- Open-sky invariant: elevation > 0 with no obstructions is always sunlit
- Any single blocking obstruction shades the point
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from sunlight.obstructions import Obstruction
from sunlight.sampler import SunlightSampler
from sunlight.solar_position import GeoPoint, SolarPositionCalculator, SunPosition

GOTHENBURG = GeoPoint(57.7089, 11.9746)
NOW = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)
SOUTH_BUILDING = Obstruction(height_m=20, distance_m=20, direction_deg=180)
NORTH_BUILDING = Obstruction(height_m=20, distance_m=20, direction_deg=0)


def fixed_position(azimuth, elevation):
    """Position function that ignores point/instant (for geometry tests)."""
    def position_fn(point, instant):
        return SunPosition(azimuth_deg=azimuth, elevation_deg=elevation, instant=NOW)
    return position_fn


class TestHorizonInvariant:

    @pytest.mark.parametrize("elevation", [0.0, -0.001, -5, -45, -89.9])
    @pytest.mark.parametrize("obstructions", [
        (),
        (SOUTH_BUILDING,),
        (NORTH_BUILDING,),
        (SOUTH_BUILDING, NORTH_BUILDING),
    ])
    def test_below_horizon_never_sunlit(self, elevation, obstructions):
        position = SunPosition(azimuth_deg=180, elevation_deg=elevation, instant=NOW)
        assert SunlightSampler.is_sunlit_at(position, obstructions) is False


class TestOpenSkyInvariant:

    @pytest.mark.parametrize("azimuth", [0, 90, 180, 270, 359.9])
    @pytest.mark.parametrize("elevation", [0.001, 1, 45, 89.9])
    def test_open_sky_always_sunlit(self, azimuth, elevation):
        position = SunPosition(azimuth_deg=azimuth, elevation_deg=elevation, instant=NOW)
        assert SunlightSampler.is_sunlit_at(position, ()) is True

    def test_real_day_matches_elevation(self):
        """With no obstructions the verdict is exactly 'sun above horizon'."""
        sampler = SunlightSampler()
        start = datetime(2024, 9, 1, tzinfo=timezone.utc)
        for hour in range(24):
            instant = start + timedelta(hours=hour)
            position = SolarPositionCalculator.position(GOTHENBURG, instant)
            assert sampler.is_sunlit(GOTHENBURG, instant) is (position.elevation_deg > 0)


class TestBlockingBuilding:
    """Single 20 m building 20 m due south (needs 45° to clear)."""

    @pytest.mark.parametrize("elevation,expected", [
        (30, False),
        (60, True),
    ])
    def test_building_scenario(self, elevation, expected):
        sampler = SunlightSampler(position_fn=fixed_position(180, elevation))
        assert sampler.is_sunlit(GOTHENBURG, NOW, [SOUTH_BUILDING]) is expected

    def test_any_single_blocker_shades(self):
        sampler = SunlightSampler(position_fn=fixed_position(180, 30))
        assert sampler.is_sunlit(GOTHENBURG, NOW, [NORTH_BUILDING]) is True
        assert sampler.is_sunlit(GOTHENBURG, NOW, [NORTH_BUILDING, SOUTH_BUILDING]) is False

    def test_degenerate_entry_does_not_shade(self):
        sampler = SunlightSampler(position_fn=fixed_position(180, 30))
        broken = Obstruction(height_m=0, distance_m=20, direction_deg=180)
        assert sampler.is_sunlit(GOTHENBURG, NOW, [broken]) is True


class TestGothenburgScenarios:

    def test_midsummer_noon_open_sky_sunlit(self):
        times = SolarPositionCalculator.times(GOTHENBURG, date(2024, 6, 21))
        assert SunlightSampler().is_sunlit(GOTHENBURG, times.solar_noon) is True

    def test_midwinter_before_sunrise_dark(self):
        instant = datetime(2024, 12, 21, 6, 0, tzinfo=timezone.utc)
        assert SunlightSampler().is_sunlit(GOTHENBURG, instant) is False

    def test_midsummer_noon_tall_south_building_shades(self):
        """Noon sun peaks near 55.7°; a 30 m block 20 m south needs 56.3°."""
        times = SolarPositionCalculator.times(GOTHENBURG, date(2024, 6, 21))
        tall = Obstruction(height_m=30, distance_m=20, direction_deg=180)
        assert SunlightSampler().is_sunlit(GOTHENBURG, times.solar_noon, [tall]) is False
