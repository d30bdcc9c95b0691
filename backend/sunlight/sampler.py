"""
Sunlight Sampler - Point-in-time direct sunlight check.

Combines the solar position with the occlusion predicate: a point is sunlit
when the sun is above the horizon and no obstruction blocks it. Any single
blocking obstruction is enough to shade the point (binary model, no penumbra).
"""

from datetime import datetime
from typing import Callable, Optional, Sequence

from .obstructions import Obstruction, OcclusionService
from .solar_position import GeoPoint, SolarPositionCalculator, SunPosition

PositionFn = Callable[[GeoPoint, datetime], SunPosition]


class SunlightSampler:
    """
    Answers "is this point in direct sunlight at instant T".

    The position function is injectable so the engine can route it through
    the position cache; by default positions are computed directly.
    """

    def __init__(self, position_fn: Optional[PositionFn] = None):
        self._position_fn = position_fn or SolarPositionCalculator.position

    def position(self, point: GeoPoint, instant: datetime) -> SunPosition:
        return self._position_fn(point, instant)

    @staticmethod
    def is_sunlit_at(position: SunPosition, obstructions: Sequence[Obstruction] = ()) -> bool:
        """
        Sunlight verdict for an already computed sun position.

        Returns:
            False below the horizon, True for an open sky, otherwise True
            only if no obstruction blocks the sun
        """
        if position.elevation_deg <= 0:
            return False
        if not obstructions:
            return True
        for obstruction in obstructions:
            if OcclusionService.blocks_sun(obstruction, position.azimuth_deg, position.elevation_deg):
                return False
        return True

    def is_sunlit(self, point: GeoPoint, instant: datetime, obstructions: Sequence[Obstruction] = ()) -> bool:
        """Sunlight verdict for a point at an instant."""
        return self.is_sunlit_at(self.position(point, instant), obstructions)
