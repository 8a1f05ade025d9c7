"""
Face anchors and face bounding box for one patient photo.

The landmark detector itself runs outside this package. This module defines
what the mappers consume from it:

- FaceBox: normalized [0, 1] rectangle bounding the detected face
- FaceAnchors: 13 named anatomical points in normalized image space
- AnchorIngest: converts raw detector output (MediaPipe Face Mesh, 468 or
  478 landmarks) into FaceAnchors + FaceBox

Side naming follows the image, not the patient: "left" is the viewer's left
(smaller x), which is where template x < 50 lands on a frontal photo.

Detection failure is represented by None, never by an exception: the 2D
mapper falls back to box-proportional placement when anchors are missing.
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class Point2D(NamedTuple):
    """Point in normalized image space (x right, y down, both 0-1)."""
    x: float
    y: float


@dataclass(frozen=True)
class FaceBox:
    """Normalized bounding box of the detected face."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def full_image(cls) -> "FaceBox":
        """Box covering the whole image; used when nothing was detected."""
        return cls(0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True)
class FaceAnchors:
    """
    Named anatomical anchors located on one photo.

    All coordinates are normalized image coordinates. Eye corners, lip
    corners and cheeks are named by image side (viewer's left/right).
    """
    forehead: Point2D
    left_eye_outer: Point2D
    left_eye_inner: Point2D
    right_eye_inner: Point2D
    right_eye_outer: Point2D
    nose_top: Point2D
    nose_tip: Point2D
    upper_lip: Point2D
    left_lip_corner: Point2D
    right_lip_corner: Point2D
    chin: Point2D
    left_cheek: Point2D
    right_cheek: Point2D

    @property
    def eye_level(self) -> float:
        """Mean y of the outer eye corners."""
        return (self.left_eye_outer.y + self.right_eye_outer.y) / 2.0

    @property
    def lip_corner_level(self) -> float:
        """Mean y of the lip corners."""
        return (self.left_lip_corner.y + self.right_lip_corner.y) / 2.0

    @classmethod
    def from_dict(cls, data: Dict[str, Union[Dict[str, float], List[float]]]) -> "FaceAnchors":
        """
        Build anchors from a mapping of name -> {"x", "y"} or [x, y].

        Raises:
            ValueError: If an anchor is missing or malformed
        """
        values = {}
        for f in fields(cls):
            raw = data.get(f.name)
            if raw is None:
                raise ValueError(f"Missing face anchor: {f.name}")
            try:
                if isinstance(raw, dict):
                    values[f.name] = Point2D(float(raw["x"]), float(raw["y"]))
                else:
                    x, y = raw[:2]
                    values[f.name] = Point2D(float(x), float(y))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid face anchor {f.name}: {raw!r}") from e
        return cls(**values)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {f.name: {"x": getattr(self, f.name).x, "y": getattr(self, f.name).y} for f in fields(self)}

    def is_plausible(self) -> bool:
        """
        Coarse sanity check of the vertical anchor order.

        Detector glitches (e.g. a chin above the eyes) do not break the
        mapper, which falls back per query, but are worth flagging.
        """
        return (
            self.forehead.y < self.eye_level < self.nose_tip.y
            < self.upper_lip.y <= self.lip_corner_level < self.chin.y
        ) and (
            self.left_cheek.x < self.left_eye_outer.x < self.left_eye_inner.x
            < self.nose_tip.x
            < self.right_eye_inner.x < self.right_eye_outer.x < self.right_cheek.x
        )


# =============================================================================
# MediaPipe Face Mesh indices
# =============================================================================
# Subject's right eye (MP 33/133) appears on the viewer's left in an
# unmirrored photo.

MEDIAPIPE_ANCHOR_INDICES: Dict[str, int] = {
    "forehead": 10,
    "left_eye_outer": 33,
    "left_eye_inner": 133,
    "right_eye_inner": 362,
    "right_eye_outer": 263,
    "nose_top": 197,
    "nose_tip": 1,
    "upper_lip": 0,
    "left_lip_corner": 61,
    "right_lip_corner": 291,
    "chin": 152,
    "left_cheek": 234,
    "right_cheek": 454,
}

# Box padding relative to landmark extent, approximating hairline -> chin.
FACE_BOX_PAD_X = 0.06
FACE_BOX_PAD_Y = 0.08

# Fewer landmarks than this is treated as a failed detection.
MIN_MEDIAPIPE_LANDMARKS = 468


def _clamp01(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def face_box_from_landmarks(
    landmarks: NDArray[np.float32],
    pad_x: float = FACE_BOX_PAD_X,
    pad_y: float = FACE_BOX_PAD_Y
) -> FaceBox:
    """
    Padded bounding box around all landmarks, clamped to the image.

    Args:
        landmarks: Normalized landmarks, shape (N, 2) or (N, 3)
        pad_x: Horizontal padding as a fraction of landmark width
        pad_y: Vertical padding as a fraction of landmark height

    Returns:
        FaceBox in normalized image coordinates
    """
    lm = np.asarray(landmarks, dtype=np.float64)
    x_min, y_min = lm[:, 0].min(), lm[:, 1].min()
    x_max, y_max = lm[:, 0].max(), lm[:, 1].max()

    px = (x_max - x_min) * pad_x
    py = (y_max - y_min) * pad_y

    return FaceBox(
        x=_clamp01(x_min - px),
        y=_clamp01(y_min - py),
        width=_clamp01(x_max - x_min + px * 2),
        height=_clamp01(y_max - y_min + py * 2),
    )


class AnchorIngest:
    """
    Convert external face landmark formats to FaceAnchors + FaceBox.

    Supported input formats:
    - "mediapipe": MediaPipe Face Mesh (468 or 478 landmarks, normalized)

    Usage:
        # From a JSON file saved next to the photo:
        anchors, box = AnchorIngest.from_json("landmarks.json")

        # From raw MediaPipe landmarks (list of [x, y, z]):
        anchors, box = AnchorIngest.from_mediapipe(mp_landmarks)
    """

    @staticmethod
    def from_mediapipe(
        landmarks: Optional[Union[List[List[float]], NDArray[np.float32]]]
    ) -> Tuple[Optional[FaceAnchors], Optional[FaceBox]]:
        """
        Extract anchors and face box from MediaPipe Face Mesh landmarks.

        A detection with too few landmarks is a failed detection, not an
        error: (None, None) is returned and the mapper uses its fallback.

        Args:
            landmarks: Shape (N, 2) or (N, 3), N >= 468, normalized to the
                image (x to width, y to height).

        Returns:
            (anchors, box), or (None, None) if detection failed

        Raises:
            ValueError: If landmarks are not an (N, 2+) array
        """
        if landmarks is None:
            return None, None

        lm = np.asarray(landmarks, dtype=np.float32)
        if lm.size == 0:
            return None, None
        if lm.ndim != 2 or lm.shape[1] < 2:
            raise ValueError(f"Expected landmarks shape (N, 2) or (N, 3), got {lm.shape}")

        n = lm.shape[0]
        if n < MIN_MEDIAPIPE_LANDMARKS:
            logger.debug("Only %d landmarks (need %d), treating as no detection", n, MIN_MEDIAPIPE_LANDMARKS)
            return None, None

        anchors = FaceAnchors(**{
            name: Point2D(float(lm[idx, 0]), float(lm[idx, 1]))
            for name, idx in MEDIAPIPE_ANCHOR_INDICES.items()
        })
        box = face_box_from_landmarks(lm[:MIN_MEDIAPIPE_LANDMARKS])

        if not anchors.is_plausible():
            logger.warning("Face anchors are out of anatomical order; mapping may degrade to box placement")

        logger.debug(
            "Ingested %d MediaPipe landmarks, face box=(%.3f, %.3f, %.3f, %.3f)",
            n, box.x, box.y, box.width, box.height
        )
        return anchors, box

    @staticmethod
    def from_json(filepath: Union[str, Path]) -> Tuple[Optional[FaceAnchors], Optional[FaceBox]]:
        """
        Load detector output from a JSON file.

        Supported JSON formats:
        - MediaPipe: {"source": "mediapipe", "landmarks": [[x, y, z], ...]}
        - Anchors:   {"source": "anchors", "anchors": {name: {x, y}},
                      "face_box": {x, y, width, height}}

        Either format may carry "landmarks": null / "anchors": null to
        record a failed detection.

        Args:
            filepath: Path to JSON file.

        Returns:
            (anchors, box); either may be None

        Raises:
            ValueError: If format is unrecognized or data is invalid.
            FileNotFoundError: If file does not exist.
        """
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {filepath}")

        source = str(data.get("source", "")).lower()

        if source == "mediapipe":
            if "landmarks" not in data:
                raise ValueError(f"MediaPipe JSON missing 'landmarks' field in {filepath}")
            raw_landmarks = data["landmarks"]
            logger.debug(
                "Loading MediaPipe JSON from %s: %s landmarks",
                filepath, len(raw_landmarks) if raw_landmarks is not None else 0
            )
            return AnchorIngest.from_mediapipe(raw_landmarks)
        elif source == "anchors":
            raw_anchors = data.get("anchors")
            raw_box = data.get("face_box")
            if raw_anchors is not None and not isinstance(raw_anchors, dict):
                raise ValueError(
                    f"Expected 'anchors' to be an object in {filepath}, "
                    f"got {type(raw_anchors).__name__}"
                )
            if raw_box is not None and not isinstance(raw_box, dict):
                raise ValueError(f"Invalid face_box in {filepath}: {raw_box!r}")
            anchors = FaceAnchors.from_dict(raw_anchors) if raw_anchors else None
            box = None
            if raw_box:
                try:
                    box = FaceBox(
                        float(raw_box["x"]), float(raw_box["y"]),
                        float(raw_box["width"]), float(raw_box["height"])
                    )
                except (KeyError, TypeError, ValueError) as e:
                    raise ValueError(f"Invalid face_box in {filepath}: {raw_box!r}") from e
            return anchors, box
        else:
            raise ValueError(
                f"Unsupported face landmark source: '{source}' in {filepath}. "
                f"Supported: 'mediapipe', 'anchors'"
            )
