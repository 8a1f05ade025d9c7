"""
Tests for the 3D surface mapper.
"""

import numpy as np
import pytest

from injectmap.config import SurfaceCalibration
from injectmap.coordinates import SurfaceCoordinates
from injectmap.points import Depth, InjectionPoint
from injectmap.surface import MANUAL_POINT_NOTE, SurfaceMapper
from injectmap.zones import AnatomicalZone, Muscle, classify_muscle


# Zone centers in template percent, with a representative muscle
ZONE_CENTERS = [
    ("procerus", 50, 36),
    ("frontalis", 50, 16),
    ("orbicularis_oculi_left", 23, 42),
    ("orbicularis_oculi_right", 77, 42),
    ("nasalis", 50, 48),
    ("orbicularis_oris", 50, 67),
    ("mentalis", 50, 88),
    ("masseter", 18, 68),
    ("masseter", 82, 68),
]


class TestForwardMapping:
    """Test SurfaceMapper.to_surface()."""

    def test_glabella_center(self):
        position = SurfaceMapper().to_surface(50, 36, "procerus")
        assert np.allclose(position, [0.0, 0.754, 1.5])

    def test_output_shape(self):
        position = SurfaceMapper().to_surface(30, 70, "orbicularis_oris")
        assert position.shape == (3,)

    def test_zone_x_scale(self):
        """Glabella compresses x by 0.9, periorbital does not."""
        mapper = SurfaceMapper()
        assert mapper.to_surface(30, 40, "procerus")[0] == pytest.approx(-0.4 * 1.4 * 0.9)
        assert mapper.to_surface(30, 40, "orbicularis_oculi_left")[0] == pytest.approx(-0.4 * 1.4)

    def test_curvature_recedes_laterally(self):
        """Points away from the midline sit deeper."""
        mapper = SurfaceMapper()
        center = mapper.to_surface(50, 67, "orbicularis_oris")
        side = mapper.to_surface(35, 67, "orbicularis_oris")
        assert side[2] < center[2]

    def test_left_right_symmetric(self):
        mapper = SurfaceMapper()
        left = mapper.to_surface(30, 50, "masseter")
        right = mapper.to_surface(70, 50, "masseter")
        assert left[0] == pytest.approx(-right[0])
        assert left[1:] == pytest.approx(right[1:])

    def test_forehead_recession(self):
        """Above forehead_start the frontalis surface leans back."""
        mapper = SurfaceMapper()
        top = mapper.to_surface(50, 0, "frontalis")
        low = mapper.to_surface(50, 30, "frontalis")
        assert top[1] == pytest.approx(2.1)
        assert top[2] == pytest.approx(0.1 + 1.0 - (2.1 - 1.1) * 0.35)
        assert low[2] == pytest.approx(1.1)

    def test_recession_only_for_frontalis(self):
        """A high procerus point gets no recession."""
        position = SurfaceMapper().to_surface(50, 0, "procerus")
        assert position[2] == pytest.approx(1.5)

    def test_unknown_muscle_uses_fallback_zone(self):
        mapper = SurfaceMapper()
        assert np.allclose(mapper.to_surface(40, 36, "platysma"), mapper.to_surface(40, 36, "procerus"))

        unknown = SurfaceMapper(unknown_zone=AnatomicalZone.UNKNOWN)
        cal = unknown.calibration.zone(AnatomicalZone.UNKNOWN)
        assert unknown.to_surface(50, 50, "platysma")[2] == pytest.approx(0.1 + cal.base_z)


class TestInverseMapping:
    """Test from_surface() and classify_position()."""

    @pytest.mark.parametrize("muscle,x,y", ZONE_CENTERS)
    def test_round_trip_zone(self, muscle, x, y):
        """A zone center maps back to a muscle of the same zone."""
        mapper = SurfaceMapper()
        position = mapper.to_surface(x, y, muscle)
        detected = mapper.classify_position(position)
        assert classify_muscle(detected) == classify_muscle(muscle)

    def test_glabella_center_in_procerus_band(self):
        """The glabella offset keeps (50, 36) below the top of the procerus band."""
        mapper = SurfaceMapper()
        position = mapper.to_surface(50, 36, "procerus")
        assert position[1] == pytest.approx(0.754)
        assert mapper.classify_position(position) is Muscle.PROCERUS

    def test_round_trip_side(self):
        mapper = SurfaceMapper()
        assert mapper.classify_position(mapper.to_surface(23, 42, "orbicularis_oculi_left")) \
            is Muscle.ORBICULARIS_OCULI_LEFT
        assert mapper.classify_position(mapper.to_surface(77, 42, "orbicularis_oculi_right")) \
            is Muscle.ORBICULARIS_OCULI_RIGHT

    def test_from_surface_undoes_global_scale(self):
        mapper = SurfaceMapper()
        assert mapper.from_surface(mapper.to_surface(23, 42, "orbicularis_oculi_left")) == (23, 42)

    def test_from_surface_clamps(self):
        assert SurfaceMapper().from_surface([5.0, -5.0, 0.0]) == (100, 100)
        assert SurfaceMapper().from_surface([-5.0, 5.0, 0.0]) == (0, 0)

    def test_from_surface_center(self):
        assert SurfaceMapper().from_surface([0.0, 0.2, 0.0]) == (50, 50)

    def test_from_surface_rounds(self):
        """Corrugator click at y=34.6% rounds to 35."""
        assert SurfaceMapper().from_surface([-0.504, 0.754]) == (32, 35)

    def test_corrugator_sides(self):
        mapper = SurfaceMapper()
        assert mapper.classify_position([-0.4, 0.8]) is Muscle.CORRUGATOR_LEFT
        assert mapper.classify_position([0.4, 0.8]) is Muscle.CORRUGATOR_RIGHT
        assert mapper.classify_position([0.0, 0.8]) is Muscle.PROCERUS

    def test_no_band_falls_back(self):
        assert SurfaceMapper().classify_position([0.4, -0.05, 1.0]) is Muscle.PROCERUS

    def test_custom_fallback(self):
        cal = SurfaceCalibration(bands=(), fallback_muscle=Muscle.NASALIS)
        assert SurfaceMapper(cal).classify_position([0.0, 0.0]) is Muscle.NASALIS


class TestDepthIndicator:
    """Test depth needles."""

    def test_normal_on_midline_faces_out(self):
        normal = SurfaceMapper().surface_normal(np.array([0.0, 0.754, 1.5]), "procerus")
        assert np.allclose(normal, SurfaceCoordinates.OUT_AXIS)

    def test_normal_on_upper_forehead_tilts_up(self):
        normal = SurfaceMapper().surface_normal(np.array([0.0, 1.5, 1.0]), "frontalis")
        expected = 0.35 * SurfaceCoordinates.UP_AXIS + SurfaceCoordinates.OUT_AXIS
        assert np.allclose(normal, expected / np.linalg.norm(expected))

    def test_midline_points_straight_in(self):
        mapper = SurfaceMapper()
        indicator = mapper.depth_indicator(InjectionPoint("p", "procerus", 50, 36))
        assert np.allclose(indicator.direction, [0.0, 0.0, -1.0])

    def test_lengths_by_depth(self):
        mapper = SurfaceMapper()
        deep = mapper.depth_indicator(InjectionPoint("p", "procerus", 50, 36, depth=Depth.DEEP))
        superficial = mapper.depth_indicator(InjectionPoint("p", "procerus", 50, 36))
        assert (deep.length, deep.offset) == (0.30, 0.15)
        assert (superficial.length, superficial.offset) == (0.15, 0.08)

    def test_lateral_points_tilt_toward_midline(self):
        mapper = SurfaceMapper()
        left = mapper.depth_indicator(InjectionPoint("l", "orbicularis_oculi_left", 23, 42))
        right = mapper.depth_indicator(InjectionPoint("r", "orbicularis_oculi_right", 77, 42))
        assert np.linalg.norm(left.direction) == pytest.approx(1.0)
        assert left.direction[2] < 0
        assert left.direction[0] > 0
        assert right.direction[0] == pytest.approx(-left.direction[0])

    def test_endpoints(self):
        mapper = SurfaceMapper()
        point = InjectionPoint("p", "procerus", 50, 36, depth=Depth.DEEP)
        position = mapper.point_to_surface(point)
        outer, inner = mapper.depth_indicator(point).endpoints(position)
        assert np.allclose(outer, position)
        assert np.allclose(inner, position + [0.0, 0.0, -0.30])


class TestPlace:
    """Test manual placement on the 3D view."""

    def test_place_corrugator(self):
        mapper = SurfaceMapper()
        position = mapper.to_surface(30, 36, "corrugator_left")
        point = mapper.place(position)
        assert point.muscle == "corrugator_left"
        assert (point.x, point.y) == (32, 35)
        assert point.dosage == 4
        assert point.depth == Depth.SUPERFICIAL
        assert point.confidence is None
        assert point.notes == MANUAL_POINT_NOTE

    def test_place_custom_dosage(self):
        point = SurfaceMapper().place([0.0, 1.5, 1.0], dosage=10, depth=Depth.DEEP)
        assert point.muscle == "frontalis"
        assert point.dosage == 10
        assert point.depth == Depth.DEEP
