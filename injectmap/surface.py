"""
3D coordinate mapping: template points onto the canonical face surface.

The surface is analytic rather than a mesh lookup. Each zone has its own
depth (base_z), curvature across the face (curve_factor), vertical offset
and horizontal scale, so points follow the face as it wraps back toward the
ears and the forehead recedes toward the scalp:

    nx = (x - 50) / 50                  ny = (50 - y) / 50
    X  = nx * x_scale * zone.x_scale
    Y  = ny * y_scale + y_center + zone.y_offset
    Z  = base_depth + zone.base_z - X^2 * zone.curve_factor - recession

where recession = max(0, Y - forehead_start) * forehead_recession for the
frontalis zone and 0 elsewhere.

The inverse (a click on the 3D view) undoes the global scaling only; the
muscle under the click is read from ordered surface bands.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .config import SurfaceCalibration, ZoneCalibration
from .coordinates import SurfaceCoordinates, round_percent
from .points import Depth, InjectionPoint
from .zones import AnatomicalZone, Muscle, classify_muscle

logger = logging.getLogger(__name__)


# Needle drawn into the surface at each point: (length, center offset).
DEPTH_NEEDLE = {
    Depth.SUPERFICIAL: (0.15, 0.08),
    Depth.DEEP: (0.30, 0.15),
}

# Units proposed for a point placed by clicking the 3D view.
MANUAL_POINT_DOSAGE = 4
MANUAL_POINT_NOTE = "Ponto adicionado manualmente"


@dataclass(frozen=True)
class DepthIndicator:
    """
    Needle marker showing injection depth at a surface point.

    Attributes:
        direction: Unit vector pointing into the face
        length: Needle length in surface units
        offset: Distance from the surface point to the needle center
    """
    direction: NDArray[np.float64]
    length: float
    offset: float

    def center(self, position: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.asarray(position, dtype=np.float64) + self.direction * self.offset

    def endpoints(self, position: NDArray[np.float64]) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """(outer end, inner end) of the needle segment."""
        c = self.center(position)
        half = self.direction * (self.length / 2.0)
        return c - half, c + half


class SurfaceMapper:
    """
    Template <-> surface mapping with a fixed calibration.

    Example:
        mapper = SurfaceMapper(config.surface)
        position = mapper.to_surface(50, 36, "procerus")
        x, y = mapper.from_surface(position)
        muscle = mapper.classify_position(position)
    """

    def __init__(
        self,
        calibration: Optional[SurfaceCalibration] = None,
        unknown_zone: AnatomicalZone = AnatomicalZone.GLABELLA
    ):
        """
        Initialize mapper.

        Args:
            calibration: Surface constants; defaults if None
            unknown_zone: Zone used for muscles the classifier does not know
        """
        self.calibration = calibration if calibration is not None else SurfaceCalibration()
        self.unknown_zone = unknown_zone

    def _zone_for(self, muscle) -> Tuple[AnatomicalZone, ZoneCalibration]:
        zone = classify_muscle(muscle, fallback=self.unknown_zone)
        return zone, self.calibration.zone(zone)

    def to_surface(self, x: float, y: float, muscle) -> NDArray[np.float64]:
        """
        Map template percentages to a 3D surface position.

        Args:
            x: Template x, 0-100
            y: Template y, 0-100
            muscle: Muscle name or ``Muscle``; selects the zone calibration

        Returns:
            Position [X, Y, Z], shape (3,)
        """
        cal = self.calibration
        zone, zc = self._zone_for(muscle)

        nx = (x - 50.0) / 50.0
        ny = (50.0 - y) / 50.0

        X = nx * cal.x_scale * zc.x_scale
        Y = ny * cal.y_scale + cal.y_center + zc.y_offset

        recession = 0.0
        if zone == AnatomicalZone.FRONTALIS:
            recession = max(0.0, Y - cal.forehead_start) * cal.forehead_recession

        Z = cal.base_depth + zc.base_z - X * X * zc.curve_factor - recession

        return np.array([X, Y, Z], dtype=np.float64)

    def point_to_surface(self, point: InjectionPoint) -> NDArray[np.float64]:
        return self.to_surface(point.x, point.y, point.muscle)

    def surface_normal(self, position: NDArray[np.float64], muscle) -> NDArray[np.float64]:
        """
        Outward unit normal of the zone surface at a position.

        The zone surface is Z(X, Y) = c - k*X^2 (- r*(Y - y0) on the upper
        forehead), so the implicit surface z - Z(X, Y) = 0 has gradient
        (2kX, r, 1).
        """
        cal = self.calibration
        zone, zc = self._zone_for(muscle)
        X, Y = float(position[0]), float(position[1])

        slope_y = 0.0
        if zone == AnatomicalZone.FRONTALIS and Y > cal.forehead_start:
            slope_y = cal.forehead_recession

        normal = (
            2.0 * zc.curve_factor * X * SurfaceCoordinates.RIGHT_AXIS
            + slope_y * SurfaceCoordinates.UP_AXIS
            + SurfaceCoordinates.OUT_AXIS
        )
        return normal / np.linalg.norm(normal)

    def depth_indicator(self, point: InjectionPoint) -> DepthIndicator:
        """Needle marker for a point, oriented into the surface."""
        position = self.point_to_surface(point)
        inward = -self.surface_normal(position, point.muscle)
        length, offset = DEPTH_NEEDLE.get(point.depth, DEPTH_NEEDLE[Depth.SUPERFICIAL])
        return DepthIndicator(direction=inward, length=length, offset=offset)

    def from_surface(self, position: Union[Sequence[float], NDArray[np.float64]]) -> Tuple[int, int]:
        """
        Template percentages for a 3D position (inverse of the global scaling).

        Returns:
            (x, y) rounded and clamped to 0-100
        """
        cal = self.calibration
        X, Y = float(position[0]), float(position[1])
        x = X / cal.x_scale * 50.0 + 50.0
        y = 50.0 - (Y - cal.y_center) / cal.y_scale * 50.0
        return round_percent(x), round_percent(y)

    def classify_position(self, position: Union[Sequence[float], NDArray[np.float64]]) -> Muscle:
        """
        Muscle under a 3D position, from the ordered surface bands.

        Returns:
            First band that contains (X, Y), or the calibration's fallback
            muscle if none does
        """
        X, Y = float(position[0]), float(position[1])
        for band in self.calibration.bands:
            if band.contains(X, Y):
                return band.muscle
        logger.debug("No surface band at (%.3f, %.3f), using %s", X, Y, self.calibration.fallback_muscle.value)
        return self.calibration.fallback_muscle

    def place(
        self,
        position: Union[Sequence[float], NDArray[np.float64]],
        dosage: int = MANUAL_POINT_DOSAGE,
        depth: Depth = Depth.SUPERFICIAL
    ) -> InjectionPoint:
        """
        Build a manual injection point from a clicked 3D position.

        Args:
            position: Surface position [X, Y, (Z)]
            dosage: Units for the new point
            depth: Injection depth

        Returns:
            New InjectionPoint with a fresh id and no confidence
        """
        x, y = self.from_surface(position)
        muscle = self.classify_position(position)
        return InjectionPoint.create(
            muscle=muscle.value,
            x=x,
            y=y,
            depth=depth,
            dosage=max(0, int(dosage)),
            notes=MANUAL_POINT_NOTE,
        )
