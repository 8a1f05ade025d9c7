"""
2D coordinate mapping: template points onto a patient photo.

The face occupies an arbitrary sub-region of the photo, at arbitrary scale,
and real faces do not share the template's proportions. A single linear map
from the template into the face box puts the eyebrows of a long face on its
eyelids. Instead, each axis is mapped piecewise-linearly through a chain of
breakpoints: a fixed template position paired with the position of the
matching anatomy detected on this photo.

Vertical chain (12 breakpoints, template y -> image y):
    box top, upper forehead, forehead, eyebrow level, eye level, nose bridge,
    nose tip, upper lip, lip-corner level, lip/chin midpoint, chin, box bottom

Horizontal chain (9 breakpoints, template x -> image x):
    box left, left cheek, left eye outer, left eye inner, nose tip,
    right eye inner, right eye outer, right cheek, box right

The two axes are independent, so a template rectangle maps to an image
rectangle.

Degraded inputs never raise:
    - value outside every bracket -> proportional placement in the face box
    - anchors missing             -> proportional placement on both axes
    - face box missing            -> the whole image is the face box
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .anchors import FaceAnchors, FaceBox
from .config import ZoneBoundaryTable
from .coordinates import ImageRect, standard_to_percent
from .points import InjectionPoint
from .zones import AnatomicalZone

logger = logging.getLogger(__name__)


# =============================================================================
# Template breakpoints (standardized 0-1)
# =============================================================================
# Positions of each chain's anatomy on the generic template face.

VERTICAL_STOPS = np.array([
    0.00,  # top of face box (hairline)
    0.08,  # upper forehead
    0.16,  # forehead center
    0.32,  # eyebrow level
    0.38,  # eye level (pupils / outer canthi)
    0.45,  # nose bridge
    0.55,  # nose tip
    0.65,  # upper lip
    0.68,  # lip-corner level (labial commissures)
    0.80,  # midpoint lip / chin
    0.92,  # chin
    1.00,  # bottom of face box
])

HORIZONTAL_STOPS = np.array([
    0.00,  # left edge of face box
    0.12,  # left cheek
    0.22,  # left eye outer corner
    0.40,  # left eye inner corner
    0.50,  # nose tip (midline)
    0.60,  # right eye inner corner
    0.78,  # right eye outer corner
    0.88,  # right cheek
    1.00,  # right edge of face box
])


def vertical_chain(anchors: FaceAnchors, box: FaceBox) -> NDArray[np.float64]:
    """
    Image y of each vertical breakpoint for one photo.

    Args:
        anchors: Detected anchors
        box: Detected face box

    Returns:
        Array of shape (12,), aligned with VERTICAL_STOPS
    """
    eye_y = anchors.eye_level
    lip_y = anchors.lip_corner_level
    return np.array([
        box.y,
        (box.y + anchors.forehead.y) / 2.0,
        anchors.forehead.y,
        (anchors.forehead.y + eye_y) / 2.0,
        eye_y,
        anchors.nose_top.y,
        anchors.nose_tip.y,
        anchors.upper_lip.y,
        lip_y,
        (lip_y + anchors.chin.y) / 2.0,
        anchors.chin.y,
        box.bottom,
    ], dtype=np.float64)


def horizontal_chain(anchors: FaceAnchors, box: FaceBox) -> NDArray[np.float64]:
    """
    Image x of each horizontal breakpoint for one photo.

    Returns:
        Array of shape (9,), aligned with HORIZONTAL_STOPS
    """
    return np.array([
        box.x,
        anchors.left_cheek.x,
        anchors.left_eye_outer.x,
        anchors.left_eye_inner.x,
        anchors.nose_tip.x,
        anchors.right_eye_inner.x,
        anchors.right_eye_outer.x,
        anchors.right_cheek.x,
        box.right,
    ], dtype=np.float64)


def interpolate_chain(
    value: float,
    source: NDArray[np.float64],
    target: NDArray[np.float64]
) -> Optional[float]:
    """
    Piecewise-linear lookup through a breakpoint chain.

    Finds the first consecutive pair of source breakpoints that brackets the
    value and interpolates linearly between the matching target positions.
    A value equal to a breakpoint returns that breakpoint's target exactly.
    Source breakpoints need not be increasing (image-side chains from a
    glitchy detection may fold back); pairs are bracketed in either order.

    Args:
        value: Query in source units
        source: Breakpoint positions being searched, shape (N,)
        target: Corresponding positions, shape (N,)

    Returns:
        Interpolated target position, or None if no bracket contains value
    """
    hits = np.flatnonzero(source == value)
    if hits.size:
        return float(target[hits[0]])

    for i in range(len(source) - 1):
        a, b = float(source[i]), float(source[i + 1])
        lo, hi = (a, b) if a <= b else (b, a)
        if lo < value < hi:
            t = (value - a) / (b - a)
            return float(target[i] + t * (target[i + 1] - target[i]))

    return None


def standard_to_image(
    x_std: float,
    y_std: float,
    anchors: Optional[FaceAnchors],
    box: Optional[FaceBox]
) -> Tuple[float, float]:
    """
    Map a standardized template point to normalized image coordinates.

    Pure function: identical inputs always produce identical output.

    Args:
        x_std: Template x as a fraction 0-1
        y_std: Template y as a fraction 0-1
        anchors: Detected anchors, or None if detection failed / pending
        box: Detected face box, or None (whole image is used)

    Returns:
        (x, y) in normalized image coordinates
    """
    if box is None:
        box = FaceBox.full_image()

    if anchors is None:
        return box.x + x_std * box.width, box.y + y_std * box.height

    x = interpolate_chain(x_std, HORIZONTAL_STOPS, horizontal_chain(anchors, box))
    if x is None:
        logger.debug("x_std=%.4f outside horizontal anchor chain, using box placement", x_std)
        x = box.x + x_std * box.width

    y = interpolate_chain(y_std, VERTICAL_STOPS, vertical_chain(anchors, box))
    if y is None:
        logger.debug("y_std=%.4f outside vertical anchor chain, using box placement", y_std)
        y = box.y + y_std * box.height

    return x, y


def image_to_standard(
    x_img: float,
    y_img: float,
    anchors: Optional[FaceAnchors],
    box: Optional[FaceBox]
) -> Tuple[float, float]:
    """
    Inverse of standard_to_image(), for points clicked on the photo.

    Searches the image-side chains for the bracketing pair and interpolates
    back to template stops. Falls back to box-proportional inversion like the
    forward map.

    Returns:
        (x_std, y_std) standardized template fractions
    """
    if box is None:
        box = FaceBox.full_image()

    def _proportional(value: float, start: float, extent: float) -> float:
        if extent == 0:
            return 0.5
        return (value - start) / extent

    if anchors is None:
        return (
            _proportional(x_img, box.x, box.width),
            _proportional(y_img, box.y, box.height),
        )

    x = interpolate_chain(x_img, horizontal_chain(anchors, box), HORIZONTAL_STOPS)
    if x is None:
        x = _proportional(x_img, box.x, box.width)

    y = interpolate_chain(y_img, vertical_chain(anchors, box), VERTICAL_STOPS)
    if y is None:
        y = _proportional(y_img, box.y, box.height)

    return x, y


class PhotoMapper:
    """
    Template <-> pixel mapping bound to one displayed photo.

    Holds the detection result for the photo and the rectangle the photo
    occupies on screen. A new photo gets a new mapper; a mapper is never
    updated with anchors from a different photo.

    Example:
        rect = fit_image_rect((1200, 1600), (600, 600))
        mapper = PhotoMapper(anchors, box, rect)
        px, py = mapper.to_pixels(point)
    """

    def __init__(
        self,
        anchors: Optional[FaceAnchors],
        box: Optional[FaceBox],
        rect: ImageRect,
        boundaries: Optional[ZoneBoundaryTable] = None
    ):
        """
        Initialize mapper.

        Args:
            anchors: Detected anchors or None
            box: Detected face box or None
            rect: Displayed image rectangle in pixels
            boundaries: Zone rectangles for zone_outline()
        """
        self.anchors = anchors
        self.box = box
        self.rect = rect
        self.boundaries = boundaries if boundaries is not None else ZoneBoundaryTable()

        if anchors is None:
            logger.debug("No face anchors for this photo, using face-box placement")

    @property
    def has_anchors(self) -> bool:
        return self.anchors is not None

    def to_normalized(self, point: InjectionPoint) -> Tuple[float, float]:
        """Point -> normalized image coordinates."""
        return standard_to_image(point.x_fraction, point.y_fraction, self.anchors, self.box)

    def to_pixels(self, point: InjectionPoint) -> Tuple[float, float]:
        """Point -> pixel position inside the displayed image rectangle."""
        nx, ny = self.to_normalized(point)
        return self.rect.to_pixels(nx, ny)

    def map_points(self, points: Iterable[InjectionPoint]) -> Dict[str, Tuple[float, float]]:
        """Pixel positions for many points, keyed by point id."""
        return {p.id: self.to_pixels(p) for p in points}

    def from_pixels(self, px: float, py: float) -> Tuple[int, int]:
        """
        Template percentages for a click on the displayed photo.

        Returns:
            (x, y) rounded template percentages clamped to 0-100
        """
        nx, ny = self.rect.to_normalized(px, py)
        x_std, y_std = image_to_standard(nx, ny, self.anchors, self.box)
        return standard_to_percent(x_std, y_std)

    def zone_outline(self, zone: AnatomicalZone) -> List[Tuple[float, float, float, float]]:
        """
        Pixel rectangles outlining a zone's expected region on this photo.

        Returns:
            List of (x, y, width, height); two rectangles (left, right) for
            bilateral zones, one otherwise
        """
        boundary = self.boundaries.get(zone)
        bands = [boundary, boundary.mirrored()] if boundary.bilateral else [boundary]

        outlines = []
        for band in bands:
            x0, y0 = standard_to_image(band.x_min, band.y_min, self.anchors, self.box)
            x1, y1 = standard_to_image(band.x_max, band.y_max, self.anchors, self.box)
            px0, py0 = self.rect.to_pixels(min(x0, x1), min(y0, y1))
            px1, py1 = self.rect.to_pixels(max(x0, x1), max(y0, y1))
            outlines.append((px0, py0, px1 - px0, py1 - py0))
        return outlines
