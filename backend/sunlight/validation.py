"""
Input validation for the sunlight engine.

Everything here fails fast: bad coordinates or timestamps raise a typed
SunlightError before any computation starts, and nothing is silently clamped.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import List, Union

from .errors import InvalidCoordinateError, InvalidInstantError

InstantLike = Union[datetime, str, int, float]
DateLike = Union[date, datetime, str]

# Event times of a day can fall up to two UTC days either side of it
FIRST_SUPPORTED_DATE = date.min + timedelta(days=2)
LAST_SUPPORTED_DATE = date.max - timedelta(days=2)


def validate_coordinates(latitude: float, longitude: float) -> None:
    """
    Check latitude/longitude ranges.

    Raises:
        InvalidCoordinateError: If either value is not a finite number or
            lies outside [-90, 90] / [-180, 180].
    """
    for name, value, bound in (("latitude", latitude, 90), ("longitude", longitude, 180)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCoordinateError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidCoordinateError(f"{name} must be finite, got {value}")
        if value < -bound or value > bound:
            raise InvalidCoordinateError(f"{name} must be -{bound} to {bound}, got {value}")


def to_utc(value: InstantLike) -> datetime:
    """
    Normalize an instant to an aware UTC datetime.

    Accepts aware or naive datetimes (naive values are taken as UTC), ISO 8601
    strings (a trailing ``Z`` is allowed) and POSIX timestamps in seconds.

    Raises:
        InvalidInstantError: If the value cannot be interpreted as an instant.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as e:
            raise InvalidInstantError(f"Instant {value.isoformat()} is out of range: {e}")

    if isinstance(value, bool):
        raise InvalidInstantError(f"Invalid instant {value!r}")

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InvalidInstantError(f"Instant must be finite, got {value}")
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidInstantError(f"Invalid timestamp {value}: {e}")

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidInstantError(f"Invalid instant '{value}': {e}")
        return to_utc(parsed)

    raise InvalidInstantError(f"Unsupported instant type {type(value).__name__}")


def to_date(value: DateLike) -> date:
    """
    Normalize a calendar day.

    Datetimes are converted to UTC first and their UTC date is used. Strings
    may be a plain ``YYYY-MM-DD`` date or a full ISO timestamp.

    Raises:
        InvalidInstantError: If the value cannot be interpreted as a date, or
            lies outside FIRST_SUPPORTED_DATE..LAST_SUPPORTED_DATE.
    """
    if isinstance(value, datetime):
        day = to_utc(value).date()
    elif isinstance(value, date):
        day = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            day = date.fromisoformat(text)
        except ValueError:
            day = to_utc(text).date()
    else:
        raise InvalidInstantError(f"Unsupported date type {type(value).__name__}")

    if not FIRST_SUPPORTED_DATE <= day <= LAST_SUPPORTED_DATE:
        raise InvalidInstantError(
            f"Date {day} is outside {FIRST_SUPPORTED_DATE} to {LAST_SUPPORTED_DATE}"
        )
    return day


def day_range(start: DateLike, days: int) -> List[date]:
    """
    Consecutive calendar days starting at start.

    Raises:
        InvalidInstantError: If the last day is past LAST_SUPPORTED_DATE.
    """
    first = to_date(start)
    if (LAST_SUPPORTED_DATE - first).days < days - 1:
        raise InvalidInstantError(
            f"{days} day(s) from {first} run past {LAST_SUPPORTED_DATE}"
        )
    return [first + timedelta(days=i) for i in range(days)]
