"""
Coordinate system definitions and conversion functions.

Five coordinate systems meet in this package:

Template (InjectionPoint.x / .y):
    Percentages 0-100 of the standardized generic face.
    x: 0 = viewer's left edge, 50 = facial midline, 100 = right edge
    y: 0 = top of forehead, 100 = bottom of chin

Standardized (mapper input):
    Same as template, as fractions 0-1.

Normalized image (anchors, face box):
    Fractions 0-1 of the photo, x right, y down.

Displayed pixels (2D mapper output):
    Pixels inside the rectangle the photo occupies on screen
    (see ImageRect / fit_image_rect).

Surface (3D mapper output):
    Canonical anatomical mesh, Y-up, face looks toward +Z.
    +X: viewer's right, +Y: toward the scalp, +Z: out of the face.

Conversions from template space happen ONLY in the mappers (photo.py,
surface.py); points never carry converted coordinates.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np


class SurfaceCoordinates:
    """
    Documentation of the canonical surface coordinate system.

    - Origin: center of the head, roughly at nose height minus y_center
    - +X: Right (viewer's right, template x > 50)
    - +Y: Up (toward scalp)
    - +Z: Out of the face (toward the viewer)

    Matches the Y-up convention of common 3D viewers, so mapped positions
    are usable as world-space coordinates without further transforms.
    """

    UP_AXIS = np.array([0.0, 1.0, 0.0])
    OUT_AXIS = np.array([0.0, 0.0, 1.0])
    RIGHT_AXIS = np.array([1.0, 0.0, 0.0])


def percent_to_standard(x: float, y: float) -> Tuple[float, float]:
    """Template percentages (0-100) to standardized fractions (0-1)."""
    return x / 100.0, y / 100.0


def clamp_percent(value: float) -> float:
    return float(min(100.0, max(0.0, value)))


def round_percent(value: float) -> int:
    """Clamp to 0-100 and round half up (36.5 -> 37)."""
    return int(math.floor(clamp_percent(value) + 0.5))


def standard_to_percent(x: float, y: float) -> Tuple[int, int]:
    """Standardized fractions to rounded, clamped template percentages."""
    return round_percent(x * 100.0), round_percent(y * 100.0)


@dataclass(frozen=True)
class ImageRect:
    """
    Rectangle a photo occupies inside its display container, in pixels.

    offset_x/offset_y: top-left corner relative to the container
    width/height: rendered size of the image
    """
    offset_x: float
    offset_y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_pixels(self, nx: float, ny: float) -> Tuple[float, float]:
        """Normalized image coordinates to container pixels."""
        return self.offset_x + nx * self.width, self.offset_y + ny * self.height

    def to_normalized(self, px: float, py: float) -> Tuple[float, float]:
        """Container pixels to normalized image coordinates (inverse of to_pixels)."""
        if self.is_empty:
            return 0.0, 0.0
        return (px - self.offset_x) / self.width, (py - self.offset_y) / self.height

    def contains(self, px: float, py: float) -> bool:
        return (
            self.offset_x <= px <= self.offset_x + self.width
            and self.offset_y <= py <= self.offset_y + self.height
        )


def fit_image_rect(
    image_size: Tuple[float, float],
    container_size: Tuple[float, float]
) -> ImageRect:
    """
    Compute where an image lands when scaled to fit a container ("contain").

    The image keeps its aspect ratio, fills the container along one axis and
    is centered along the other.

    Args:
        image_size: Natural (width, height) of the photo
        container_size: (width, height) of the display area

    Returns:
        ImageRect in container pixels; empty if either size is unknown
    """
    img_w, img_h = image_size
    box_w, box_h = container_size

    if not img_w or not img_h or not box_w or not box_h:
        return ImageRect(0.0, 0.0, 0.0, 0.0)

    image_aspect = img_w / img_h
    container_aspect = box_w / box_h

    if image_aspect > container_aspect:
        # Wider than container: fit to width
        width = float(box_w)
        height = box_w / image_aspect
    else:
        # Taller than container: fit to height
        height = float(box_h)
        width = box_h * image_aspect

    offset_x = (box_w - width) / 2.0
    offset_y = (box_h - height) / 2.0

    return ImageRect(offset_x, offset_y, width, height)
