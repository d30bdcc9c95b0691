"""
Obstruction Model & Occlusion Predicate - Building Shade Blocking

Pure domain logic for deciding whether nearby buildings block direct sunlight
at an observation point.

Shade Model (simplified box silhouette):
- Each obstruction is a rectangular box described relative to the point:
  * direction_deg: Compass bearing from the point to the obstruction
  * distance_m: Horizontal separation
  * height_m: Height of the top edge above the point
  * width_m / length_m / orientation_deg: Footprint (modeled, not used for blocking)

- Blocking test:
  * Same-side check: sun azimuth must be within 90° of the obstruction bearing
  * Silhouette check: sun elevation must be below atan2(height, distance)
  * Both must hold for the obstruction to block

- Degenerate obstructions (non-positive height or distance) never block.
  They are skipped rather than rejected so one bad entry does not fail a
  whole request; the engine warns about them once per query.

Constants:
- SAME_SIDE_LIMIT_DEG: 90° azimuth cone around the obstruction bearing
- BLOCKED_PROBABILITY_STEP: 0.2 sunshine probability lost per blocking building
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List

from .solar_position import SunPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Obstruction:
    """
    Nearby building or structure that can cast shade on the point.

    Attributes:
        height_m: Height above the observation point (meters)
        distance_m: Horizontal distance from the point (meters)
        direction_deg: Bearing from the point to the obstruction (0-360°)
            0° = north, 90° = east, 180° = south, 270° = west
        width_m: Footprint width (meters)
        length_m: Footprint length (meters)
        orientation_deg: Footprint rotation (0-360°)

    Note:
        Footprint fields are a modeled approximation; the blocking test uses
        only height, distance and direction.
    """
    height_m: float
    distance_m: float
    direction_deg: float
    width_m: float = 0.0
    length_m: float = 0.0
    orientation_deg: float = 0.0

    @property
    def is_degenerate(self) -> bool:
        """True when height or distance is non-positive or not finite."""
        return not (
            math.isfinite(self.height_m) and math.isfinite(self.distance_m)
            and self.height_m > 0 and self.distance_m > 0
        )


class OcclusionService:
    """
    Pure domain logic for obstruction shade decisions.

    All methods are static and deterministic.
    """

    SAME_SIDE_LIMIT_DEG = 90
    BLOCKED_PROBABILITY_STEP = 0.2

    @staticmethod
    def azimuth_difference(sun_azimuth_deg: float, direction_deg: float) -> float:
        """
        Shortest angular difference between two bearings, 0-180°.

        Examples:
            azimuth_difference(10, 350) -> 20
            azimuth_difference(180, 0) -> 180
            azimuth_difference(90, 90) -> 0
        """
        return abs((sun_azimuth_deg - direction_deg + 180.0) % 360.0 - 180.0)

    @staticmethod
    def required_elevation(obstruction: Obstruction) -> float:
        """
        Minimum sun elevation (degrees) needed to clear the obstruction top edge.

        Example:
            20 m tall building 20 m away -> 45°
        """
        return math.degrees(math.atan2(obstruction.height_m, obstruction.distance_m))

    @staticmethod
    def blocks_sun(obstruction: Obstruction, sun_azimuth_deg: float, sun_elevation_deg: float) -> bool:
        """
        Check whether one obstruction blocks the sun at the observation point.

        Args:
            obstruction: Building relative to the point
            sun_azimuth_deg: Sun bearing (0-360°, clockwise from north)
            sun_elevation_deg: Sun angle above the horizon

        Returns:
            True if the obstruction sits on the sun's side and rises above
            the sun as seen from the point
        """
        if obstruction.is_degenerate:
            logger.debug(f"[SHADE] Skipping degenerate obstruction {obstruction}")
            return False

        diff = OcclusionService.azimuth_difference(sun_azimuth_deg, obstruction.direction_deg)
        if diff > OcclusionService.SAME_SIDE_LIMIT_DEG:
            return False

        return sun_elevation_deg < OcclusionService.required_elevation(obstruction)

    @staticmethod
    def blocking_obstructions(
        obstructions: Iterable[Obstruction],
        sun_azimuth_deg: float,
        sun_elevation_deg: float,
    ) -> List[Obstruction]:
        """All obstructions that block the sun at the given position."""
        return [
            o for o in obstructions
            if OcclusionService.blocks_sun(o, sun_azimuth_deg, sun_elevation_deg)
        ]

    @staticmethod
    def shadow_length(height_m: float, sun_elevation_deg: float) -> float:
        """
        Length of the shadow cast on flat ground by an object of given height.

        Returns:
            Shadow length in meters, math.inf when the sun is at or below
            the horizon
        """
        if sun_elevation_deg <= 0:
            return math.inf
        return height_m / math.tan(math.radians(sun_elevation_deg))

    @staticmethod
    def sunshine_probability(position: SunPosition, obstructions: Iterable[Obstruction]) -> float:
        """
        Rough sunshine likelihood (0.0-1.0) given how many buildings block.

        Each blocking obstruction removes 0.2; the sun below the horizon
        gives 0.0.
        """
        if position.elevation_deg <= 0:
            return 0.0
        blocking = OcclusionService.blocking_obstructions(
            obstructions, position.azimuth_deg, position.elevation_deg
        )
        if not blocking:
            return 1.0
        return max(0.0, round(1.0 - len(blocking) * OcclusionService.BLOCKED_PROBABILITY_STEP, 3))
