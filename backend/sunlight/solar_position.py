"""
Solar Position Calculator - Sun Azimuth, Elevation & Daily Solar Events

Pure domain logic for locating the sun as seen from a point on the ground.
All functions are pure and deterministic (no I/O, no random state).

Physics Model:
- Sun position: Low-precision solar ephemeris
  * Julian day -> solar mean anomaly -> equation of center -> ecliptic longitude
  * Ecliptic -> equatorial (declination, right ascension)
  * Equatorial -> horizontal via local sidereal time and hour angle
  * Accuracy is a fraction of a degree, plenty for shade decisions

- Solar events: Sun reaching fixed altitudes around the local solar transit
  * Sunrise/sunset at -0.833° (refraction + solar disc radius)
  * Civil, nautical and astronomical twilight at -6°, -12°, -18°
  * Golden hour ends/starts at +6°

- Polar day/night: Sun never crosses the sunrise altitude
  * Events that do not occur are None, never NaN
  * PolarState flags the "always up" / "always down" cases

Constants:
- J1970 / J2000: Julian day numbers of the Unix epoch and the J2000.0 epoch
- OBLIQUITY: Obliquity of the ecliptic (23.4397°)
- J0: Julian cycle correction (0.0009 days)

Conventions:
- Azimuth is measured clockwise from true north (0=N, 90=E, 180=S, 270=W)
- Elevation is the angle above the astronomical horizon (<= 0 is below)
- All instants are UTC
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple

from .validation import InstantLike, DateLike, to_date, to_utc, validate_coordinates

RAD = math.pi / 180.0
J1970 = 2440588
J2000 = 2451545
J0 = 0.0009
OBLIQUITY = RAD * 23.4397

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_J2000_EPOCH = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)

# (altitude in degrees, rising event name, setting event name)
SUN_EVENT_ANGLES = (
    (-0.833, "sunrise", "sunset"),
    (-0.3, "sunrise_end", "sunset_start"),
    (-6.0, "dawn", "dusk"),
    (-12.0, "nautical_dawn", "nautical_dusk"),
    (-18.0, "night_end", "night"),
    (6.0, "golden_hour_end", "golden_hour"),
)

SUNRISE_ALTITUDE = SUN_EVENT_ANGLES[0][0]


class PolarState(str, Enum):
    """Whether the sun crosses the horizon on a given day."""
    NONE = "none"                # normal day: sunrise and sunset both occur
    ALWAYS_UP = "always_up"      # polar day: sun never sets
    ALWAYS_DOWN = "always_down"  # polar night: sun never rises


@dataclass(frozen=True)
class GeoPoint:
    """
    Observation location.

    Attributes:
        latitude: Degrees, -90 (south pole) to +90 (north pole)
        longitude: Degrees, -180 to +180, positive east

    Raises:
        InvalidCoordinateError: On construction with out-of-range values
    """
    latitude: float
    longitude: float

    def __post_init__(self):
        validate_coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class SunPosition:
    """
    Sun position as seen from a GeoPoint at one instant.

    Attributes:
        azimuth_deg: Compass bearing of the sun, [0, 360)
        elevation_deg: Angle above the horizon, (-90, 90]
        instant: UTC instant the position was computed for
    """
    azimuth_deg: float
    elevation_deg: float
    instant: datetime

    @property
    def is_above_horizon(self) -> bool:
        return self.elevation_deg > 0


@dataclass(frozen=True)
class SunTimes:
    """
    Named solar events for one location and calendar day.

    Every event except solar_noon and nadir may be None when the sun does
    not reach the corresponding altitude that day (high latitudes).
    """
    day: date
    solar_noon: datetime
    nadir: datetime
    polar_state: PolarState = PolarState.NONE
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

    def daylight_window(self) -> Optional[Tuple[datetime, datetime]]:
        """
        Span during which the sun can be above the horizon.

        Returns:
            (sunrise, sunset) on a normal day, the full UTC calendar day
            (00:00 to next 00:00) on a polar day, None on a polar night.
        """
        if self.polar_state == PolarState.ALWAYS_DOWN:
            return None
        if self.polar_state == PolarState.ALWAYS_UP:
            start = datetime.combine(self.day, time(0, 0), tzinfo=timezone.utc)
            return start, start + timedelta(days=1)
        return self.sunrise, self.sunset

    def as_dict(self) -> dict:
        events = {name: getattr(self, name) for _, rise, sett in SUN_EVENT_ANGLES for name in (rise, sett)}
        events["solar_noon"] = self.solar_noon
        events["nadir"] = self.nadir
        return events


class SolarPositionCalculator:
    """
    Pure solar ephemeris calculations.

    All methods are static and deterministic.
    """

    # ---- time conversions ----

    @staticmethod
    def _to_days(instant: datetime) -> float:
        """Days (fractional) since the J2000.0 epoch."""
        return (instant - _J2000_EPOCH).total_seconds() / 86400.0

    @staticmethod
    def _from_julian(julian: float) -> datetime:
        return _EPOCH + timedelta(days=julian + 0.5 - J1970)

    # ---- coordinate transforms ----

    @staticmethod
    def _solar_mean_anomaly(days: float) -> float:
        return RAD * (357.5291 + 0.98560028 * days)

    @staticmethod
    def _ecliptic_longitude(mean_anomaly: float) -> float:
        m = mean_anomaly
        center = RAD * (1.9148 * math.sin(m) + 0.02 * math.sin(2 * m) + 0.0003 * math.sin(3 * m))
        perihelion = RAD * 102.9372
        return m + center + perihelion + math.pi

    @staticmethod
    def _declination(ecliptic_lon: float) -> float:
        return math.asin(math.sin(OBLIQUITY) * math.sin(ecliptic_lon))

    @staticmethod
    def _right_ascension(ecliptic_lon: float) -> float:
        return math.atan2(math.sin(ecliptic_lon) * math.cos(OBLIQUITY), math.cos(ecliptic_lon))

    @staticmethod
    def _sidereal_time(days: float, west_lon: float) -> float:
        return RAD * (280.16 + 360.9856235 * days) - west_lon

    # ---- public API ----

    @staticmethod
    def position(point: GeoPoint, instant: InstantLike) -> SunPosition:
        """
        Sun azimuth and elevation at an instant.

        Args:
            point: Observation location
            instant: UTC datetime, ISO string or POSIX seconds

        Returns:
            SunPosition with azimuth clockwise from north in [0, 360)

        Raises:
            InvalidInstantError: If the instant cannot be parsed
        """
        instant = to_utc(instant)
        west_lon = RAD * -point.longitude
        phi = RAD * point.latitude
        days = SolarPositionCalculator._to_days(instant)

        mean_anomaly = SolarPositionCalculator._solar_mean_anomaly(days)
        ecliptic_lon = SolarPositionCalculator._ecliptic_longitude(mean_anomaly)
        dec = SolarPositionCalculator._declination(ecliptic_lon)
        ra = SolarPositionCalculator._right_ascension(ecliptic_lon)

        hour_angle = SolarPositionCalculator._sidereal_time(days, west_lon) - ra

        altitude = math.asin(
            max(-1.0, min(1.0, math.sin(phi) * math.sin(dec) + math.cos(phi) * math.cos(dec) * math.cos(hour_angle)))
        )
        # Measured from south, positive toward west
        azimuth_south = math.atan2(
            math.sin(hour_angle),
            math.cos(hour_angle) * math.sin(phi) - math.tan(dec) * math.cos(phi),
        )

        azimuth_deg = (math.degrees(azimuth_south) + 180.0) % 360.0
        if azimuth_deg >= 360.0:
            azimuth_deg = 0.0

        return SunPosition(
            azimuth_deg=azimuth_deg,
            elevation_deg=math.degrees(altitude),
            instant=instant,
        )

    @staticmethod
    def _hour_angle_cosine(altitude: float, phi: float, dec: float) -> float:
        numerator = math.sin(altitude) - math.sin(phi) * math.sin(dec)
        denominator = math.cos(phi) * math.cos(dec)
        if abs(denominator) < 1e-12:
            # At the poles the sun circles at constant altitude
            return math.inf if numerator > 0 else -math.inf
        return numerator / denominator

    @staticmethod
    def times(point: GeoPoint, day: DateLike) -> SunTimes:
        """
        Named solar events for the local calendar day.

        The solar transit nearest 12:00 UTC adjusted for longitude is used, so
        solar noon always falls on the requested local day.

        Args:
            point: Observation location
            day: Calendar date (date, datetime or ISO string)

        Returns:
            SunTimes record. Events that do not occur are None and
            polar_state tells whether the sun stays up or down all day.
        """
        day = to_date(day)
        reference = datetime.combine(day, time(12, 0), tzinfo=timezone.utc)

        west_lon = RAD * -point.longitude
        phi = RAD * point.latitude
        days = SolarPositionCalculator._to_days(reference)

        cycle = math.floor(days - J0 - west_lon / (2 * math.pi) + 0.5)
        approx_transit = J0 + west_lon / (2 * math.pi) + cycle

        mean_anomaly = SolarPositionCalculator._solar_mean_anomaly(approx_transit)
        ecliptic_lon = SolarPositionCalculator._ecliptic_longitude(mean_anomaly)
        dec = SolarPositionCalculator._declination(ecliptic_lon)

        def transit_julian(ds: float) -> float:
            return J2000 + ds + 0.0053 * math.sin(mean_anomaly) - 0.0069 * math.sin(2 * ecliptic_lon)

        j_noon = transit_julian(approx_transit)

        events = {}
        polar_state = PolarState.NONE
        for angle, rise_name, set_name in SUN_EVENT_ANGLES:
            cos_w = SolarPositionCalculator._hour_angle_cosine(RAD * angle, phi, dec)
            if cos_w > 1.0 or cos_w < -1.0:
                if angle == SUNRISE_ALTITUDE:
                    polar_state = PolarState.ALWAYS_DOWN if cos_w > 1.0 else PolarState.ALWAYS_UP
                events[rise_name] = None
                events[set_name] = None
                continue

            w = math.acos(cos_w)
            j_set = transit_julian(J0 + (w + west_lon) / (2 * math.pi) + cycle)
            j_rise = j_noon - (j_set - j_noon)
            events[rise_name] = SolarPositionCalculator._from_julian(j_rise)
            events[set_name] = SolarPositionCalculator._from_julian(j_set)

        return SunTimes(
            day=day,
            solar_noon=SolarPositionCalculator._from_julian(j_noon),
            nadir=SolarPositionCalculator._from_julian(j_noon - 0.5),
            polar_state=polar_state,
            **events,
        )
