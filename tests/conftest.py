"""Shared fixtures: a plausible frontal face."""

import pytest

from injectmap.anchors import FaceAnchors, FaceBox


ANCHOR_POINTS = {
    "forehead": (0.50, 0.20),
    "left_eye_outer": (0.32, 0.38),
    "left_eye_inner": (0.43, 0.39),
    "right_eye_inner": (0.57, 0.39),
    "right_eye_outer": (0.68, 0.38),
    "nose_top": (0.50, 0.45),
    "nose_tip": (0.50, 0.55),
    "upper_lip": (0.50, 0.63),
    "left_lip_corner": (0.42, 0.66),
    "right_lip_corner": (0.58, 0.66),
    "chin": (0.50, 0.85),
    "left_cheek": (0.24, 0.50),
    "right_cheek": (0.76, 0.50),
}


@pytest.fixture
def anchor_dict():
    """Anchors as name -> {x, y}, the JSON shape."""
    return {name: {"x": x, "y": y} for name, (x, y) in ANCHOR_POINTS.items()}


@pytest.fixture
def anchors(anchor_dict):
    return FaceAnchors.from_dict(anchor_dict)


@pytest.fixture
def face_box():
    return FaceBox(0.2, 0.1, 0.6, 0.8)
