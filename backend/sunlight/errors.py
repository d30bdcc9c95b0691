"""
Sunlight engine error taxonomy.

All engine errors derive from ValueError so callers that already treat bad
input as a ValueError keep working. The HTTP boundary maps each subclass to a
400 response using its ``code``.
"""


class SunlightError(ValueError):
    """Base class for input the engine refuses to compute on."""

    code = "invalid_request"


class InvalidCoordinateError(SunlightError):
    """Latitude or longitude outside the valid range, NaN or infinite."""

    code = "invalid_coordinate"


class InvalidInstantError(SunlightError):
    """Timestamp or date that cannot be parsed, or is NaN/infinite."""

    code = "invalid_instant"


class TooManyObstructionsError(SunlightError):
    """Obstruction set larger than the configured bound."""

    code = "too_many_obstructions"
