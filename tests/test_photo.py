"""
Tests for the anchor-based 2D photo mapper.
"""

import numpy as np
import pytest

from injectmap.anchors import FaceBox
from injectmap.coordinates import ImageRect, fit_image_rect
from injectmap.photo import (
    HORIZONTAL_STOPS,
    VERTICAL_STOPS,
    PhotoMapper,
    horizontal_chain,
    image_to_standard,
    interpolate_chain,
    standard_to_image,
    vertical_chain,
)
from injectmap.points import InjectionPoint
from injectmap.zones import AnatomicalZone


BOX = FaceBox(0.2, 0.1, 0.6, 0.8)


class TestBreakpointChains:
    """Test the chain construction from anchors."""

    def test_stop_counts(self, anchors):
        assert len(VERTICAL_STOPS) == 12
        assert len(HORIZONTAL_STOPS) == 9
        assert vertical_chain(anchors, BOX).shape == (12,)
        assert horizontal_chain(anchors, BOX).shape == (9,)

    def test_template_stops_increasing(self):
        assert np.all(np.diff(VERTICAL_STOPS) > 0)
        assert np.all(np.diff(HORIZONTAL_STOPS) > 0)

    def test_vertical_chain_values(self, anchors):
        expected = [0.1, 0.15, 0.20, 0.29, 0.38, 0.45, 0.55, 0.63, 0.66, 0.755, 0.85, 0.9]
        assert np.allclose(vertical_chain(anchors, BOX), expected)

    def test_horizontal_chain_values(self, anchors):
        expected = [0.2, 0.24, 0.32, 0.43, 0.50, 0.57, 0.68, 0.76, 0.8]
        assert np.allclose(horizontal_chain(anchors, BOX), expected)


class TestInterpolateChain:
    """Test the bracket search."""

    def test_exact_breakpoint(self):
        src = np.array([0.0, 0.5, 1.0])
        dst = np.array([10.0, 20.0, 40.0])
        assert interpolate_chain(0.5, src, dst) == 20.0

    def test_linear_between(self):
        src = np.array([0.0, 0.5, 1.0])
        dst = np.array([10.0, 20.0, 40.0])
        assert interpolate_chain(0.75, src, dst) == pytest.approx(30.0)

    def test_outside_returns_none(self):
        src = np.array([0.2, 0.8])
        dst = np.array([0.0, 1.0])
        assert interpolate_chain(0.1, src, dst) is None
        assert interpolate_chain(0.9, src, dst) is None

    def test_decreasing_pair(self):
        """A folded chain is still bracketed."""
        src = np.array([0.6, 0.4])
        dst = np.array([0.0, 1.0])
        assert interpolate_chain(0.5, src, dst) == pytest.approx(0.5)


class TestStandardToImage:
    """Test standard_to_image()."""

    def test_eyebrow_breakpoint(self, anchors):
        """Forehead 0.20 and outer eyes 0.38 put the eyebrow stop at 0.29."""
        _, y = standard_to_image(0.5, 0.32, anchors, BOX)
        assert y == pytest.approx(0.29)

    def test_midline_maps_to_nose(self, anchors):
        x, y = standard_to_image(0.50, 0.55, anchors, BOX)
        assert x == pytest.approx(anchors.nose_tip.x)
        assert y == pytest.approx(anchors.nose_tip.y)

    def test_between_breakpoints(self, anchors):
        x, y = standard_to_image(0.31, 0.35, anchors, BOX)
        assert x == pytest.approx(0.32 + 0.5 * (0.43 - 0.32))
        assert y == pytest.approx(0.29 + 0.5 * (0.38 - 0.29))

    def test_box_edges(self, anchors):
        assert standard_to_image(0.0, 0.0, anchors, BOX) == pytest.approx((0.2, 0.1))
        assert standard_to_image(1.0, 1.0, anchors, BOX) == pytest.approx((0.8, 0.9))

    def test_outside_chain_uses_box(self, anchors):
        x, y = standard_to_image(-0.1, 1.2, anchors, BOX)
        assert x == pytest.approx(0.2 - 0.1 * 0.6)
        assert y == pytest.approx(0.1 + 1.2 * 0.8)

    def test_no_anchors_uses_box(self):
        assert standard_to_image(0.5, 0.5, None, BOX) == pytest.approx((0.5, 0.5))
        assert standard_to_image(0.25, 0.75, None, BOX) == pytest.approx((0.35, 0.7))

    def test_no_box_uses_full_image(self):
        assert standard_to_image(0.25, 0.75, None, None) == pytest.approx((0.25, 0.75))

    def test_within_image(self, anchors):
        """Every template point lands inside the photo."""
        for xs in np.linspace(0.0, 1.0, 21):
            for ys in np.linspace(0.0, 1.0, 21):
                x, y = standard_to_image(xs, ys, anchors, BOX)
                assert 0.0 <= x <= 1.0
                assert 0.0 <= y <= 1.0

    def test_monotonic(self, anchors):
        """Order along each axis is preserved for well-formed anchors."""
        ys = [standard_to_image(0.5, v, anchors, BOX)[1] for v in np.linspace(0, 1, 51)]
        xs = [standard_to_image(v, 0.5, anchors, BOX)[0] for v in np.linspace(0, 1, 51)]
        assert np.all(np.diff(ys) > 0)
        assert np.all(np.diff(xs) > 0)

    def test_idempotent(self, anchors):
        assert standard_to_image(0.37, 0.61, anchors, BOX) == standard_to_image(0.37, 0.61, anchors, BOX)


class TestImageToStandard:

    def test_inverse(self, anchors):
        for xs, ys in [(0.31, 0.35), (0.5, 0.5), (0.8, 0.9), (0.12, 0.7)]:
            x, y = standard_to_image(xs, ys, anchors, BOX)
            back = image_to_standard(x, y, anchors, BOX)
            assert back == pytest.approx((xs, ys))

    def test_inverse_without_anchors(self):
        x, y = standard_to_image(0.3, 0.6, None, BOX)
        assert image_to_standard(x, y, None, BOX) == pytest.approx((0.3, 0.6))


class TestFitImageRect:

    def test_tall_image(self):
        rect = fit_image_rect((1200, 1600), (600, 600))
        assert rect == ImageRect(75.0, 0.0, 450.0, 600.0)

    def test_wide_image(self):
        rect = fit_image_rect((1600, 900), (800, 800))
        assert rect.width == 800.0
        assert rect.height == pytest.approx(450.0)
        assert rect.offset_x == 0.0
        assert rect.offset_y == pytest.approx(175.0)

    def test_unknown_size(self):
        assert fit_image_rect((0, 0), (800, 800)).is_empty


class TestPhotoMapper:
    """Test PhotoMapper bound to a displayed photo."""

    RECT = ImageRect(100.0, 0.0, 400.0, 500.0)

    def test_to_pixels(self, anchors):
        mapper = PhotoMapper(anchors, BOX, self.RECT)
        px, py = mapper.to_pixels(InjectionPoint("p", "procerus", 50, 32))
        assert px == pytest.approx(300.0)
        assert py == pytest.approx(145.0)

    def test_map_points(self, anchors):
        mapper = PhotoMapper(anchors, BOX, self.RECT)
        points = [InjectionPoint("a", "procerus", 50, 32), InjectionPoint("b", "mentalis", 50, 88)]
        result = mapper.map_points(points)
        assert set(result) == {"a", "b"}
        assert result["b"][1] > result["a"][1]

    def test_from_pixels(self, anchors):
        mapper = PhotoMapper(anchors, BOX, self.RECT)
        assert mapper.from_pixels(300.0, 145.0) == (50, 32)

    def test_from_pixels_clamped(self, anchors):
        mapper = PhotoMapper(anchors, BOX, self.RECT)
        assert mapper.from_pixels(0.0, 0.0) == (0, 0)

    def test_no_anchors(self):
        mapper = PhotoMapper(None, None, ImageRect(0.0, 0.0, 200.0, 100.0))
        assert not mapper.has_anchors
        assert mapper.to_pixels(InjectionPoint("p", "procerus", 25, 50)) == pytest.approx((50.0, 50.0))

    def test_zone_outline_single(self):
        mapper = PhotoMapper(None, None, ImageRect(0.0, 0.0, 100.0, 100.0))
        (x, y, w, h), = mapper.zone_outline(AnatomicalZone.GLABELLA)
        assert np.allclose([x, y, w, h], [32, 28, 36, 14])

    def test_zone_outline_bilateral(self):
        mapper = PhotoMapper(None, None, ImageRect(0.0, 0.0, 100.0, 100.0))
        left, right = mapper.zone_outline(AnatomicalZone.PERIORBITAL)
        assert np.allclose(left, [15, 34, 17, 18])
        assert np.allclose(right, [68, 34, 17, 18])
