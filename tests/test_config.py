"""
Tests for configuration tables and YAML loading.
"""

import dataclasses

import pytest
import yaml

from injectmap.config import (
    Config,
    ConsistencyRules,
    DosageLimitTable,
    SurfaceBand,
    SurfaceCalibration,
    ZoneBoundary,
    ZoneBoundaryTable,
    create_argument_parser,
)
from injectmap.zones import AnatomicalZone, Muscle


class TestZoneBoundary:
    """Test ZoneBoundary geometry."""

    def test_contains_inclusive(self):
        b = ZoneBoundary(0.32, 0.68, 0.28, 0.42, 0.5, 0.36)
        assert b.contains(0.32, 0.28)
        assert b.contains(0.68, 0.42)
        assert not b.contains(0.31, 0.30)

    def test_mirrored(self):
        b = ZoneBoundary(0.15, 0.32, 0.34, 0.52, 0.23, 0.42, bilateral=True)
        m = b.mirrored()
        assert m.x_min == pytest.approx(0.68)
        assert m.x_max == pytest.approx(0.85)
        assert m.center_x == pytest.approx(0.77)
        assert (m.y_min, m.y_max) == (b.y_min, b.y_max)

    def test_default_table(self):
        table = ZoneBoundaryTable()
        for zone in AnatomicalZone:
            assert zone in table.zones
        assert table.get(AnatomicalZone.PERIORBITAL).bilateral
        assert table.get(AnatomicalZone.MASSETER).bilateral
        assert not table.get(AnatomicalZone.GLABELLA).bilateral

    def test_tables_are_read_only(self):
        table = ZoneBoundaryTable()
        with pytest.raises(TypeError):
            table.zones[AnatomicalZone.GLABELLA] = None
        with pytest.raises(dataclasses.FrozenInstanceError):
            table.zones = {}


class TestSurfaceCalibration:

    def test_defaults(self):
        cal = SurfaceCalibration()
        assert cal.x_scale == 1.4
        assert cal.y_scale == 1.8
        assert cal.y_center == 0.2
        assert cal.fallback_muscle is Muscle.PROCERUS

    def test_unknown_zone_falls_back(self):
        cal = SurfaceCalibration()
        assert cal.zone(AnatomicalZone.UNKNOWN) == cal.zones[AnatomicalZone.UNKNOWN]

    def test_band_open_bounds(self):
        band = SurfaceBand(Muscle.FRONTALIS, y_min=1.1)
        assert band.contains(5.0, 2.0)
        assert not band.contains(0.0, 1.1)

    def test_band_symmetric(self):
        band = SurfaceBand(Muscle.MASSETER, y_min=-0.9, y_max=0.0, x_min=0.7, symmetric=True)
        assert band.contains(-0.9, -0.4)
        assert band.contains(0.9, -0.4)
        assert not band.contains(0.5, -0.4)


class TestDosageLimitTable:

    def test_defaults(self):
        table = DosageLimitTable()
        procerus = table.get(Muscle.PROCERUS)
        assert (procerus.max, procerus.warning, procerus.label) == (12, 10, "Prócero")
        assert table.get(Muscle.MASSETER).max == 60
        assert table.session.max == 100
        assert table.session.warning == 80

    def test_unsided_groups_have_no_limit(self):
        assert DosageLimitTable().get(Muscle.CORRUGATOR) is None

    def test_warning_below_max(self):
        for limit in DosageLimitTable().muscles.values():
            assert limit.warning <= limit.max


class TestConfigFromDict:
    """Test Config.from_dict() overrides."""

    def test_empty_is_default(self):
        config = Config.from_dict({})
        assert config.unknown_muscle_zone == AnatomicalZone.GLABELLA
        assert config.dosage.get(Muscle.PROCERUS).max == 12

    def test_unknown_muscle_zone(self):
        config = Config.from_dict({"unknown_muscle_zone": "unknown"})
        assert config.unknown_muscle_zone == AnatomicalZone.UNKNOWN

    def test_partial_zone_override(self):
        config = Config.from_dict({"zone_boundaries": {"glabella": {"y_min": 0.25}}})
        glabella = config.boundaries.get(AnatomicalZone.GLABELLA)
        assert glabella.y_min == 0.25
        assert glabella.y_max == 0.42

    def test_surface_override(self):
        config = Config.from_dict({
            "surface": {"x_scale": 1.5, "zones": {"nasal": {"base_z": 1.6}}}
        })
        assert config.surface.x_scale == 1.5
        assert config.surface.zone(AnatomicalZone.NASAL).base_z == 1.6
        assert config.surface.zone(AnatomicalZone.NASAL).curve_factor == 0.10

    def test_dosage_override(self):
        config = Config.from_dict({
            "dosage": {
                "session": {"max": 120},
                "muscles": {"Prócero": {"max": 14}},
            }
        })
        assert config.dosage.session.max == 120
        assert config.dosage.session.warning == 80
        assert config.dosage.get(Muscle.PROCERUS).max == 14
        assert config.dosage.get(Muscle.PROCERUS).label == "Prócero"

    def test_new_muscle_limit(self):
        config = Config.from_dict({
            "dosage": {"muscles": {"corrugator": {"max": 25, "warning": 20}}}
        })
        limit = config.dosage.get(Muscle.CORRUGATOR)
        assert limit.max == 25
        assert limit.label == "corrugator"

    def test_defaults_untouched(self):
        """Overrides never leak into the compiled-in defaults."""
        Config.from_dict({"dosage": {"muscles": {"procerus": {"max": 99}}}})
        assert Config().dosage.get(Muscle.PROCERUS).max == 12

    def test_unknown_zone_raises(self):
        with pytest.raises(ValueError, match="Unknown anatomical zone"):
            Config.from_dict({"zone_boundaries": {"cheek": {"x_min": 0.1}}})

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="Invalid field"):
            Config.from_dict({"surface": {"z_scale": 2.0}})

    def test_unknown_muscle_raises(self):
        with pytest.raises(ValueError, match="Unknown muscle"):
            Config.from_dict({"dosage": {"muscles": {"platysma": {"max": 10}}}})

    def test_non_mapping_raises(self):
        with pytest.raises(ValueError, match="Expected a mapping"):
            Config.from_dict({"dosage": {"session": [100, 80]}})

    def test_scalar_muscle_entry_raises(self):
        with pytest.raises(ValueError, match="Expected a mapping for dosage.muscles.procerus"):
            Config.from_dict({"dosage": {"muscles": {"procerus": 5}}})

    def test_non_mapping_section_raises(self):
        with pytest.raises(ValueError, match="Expected a mapping for surface"):
            Config.from_dict({"surface": "flat"})

    def test_non_numeric_limit_raises(self):
        with pytest.raises(ValueError, match="Expected a number for dosage.muscles.procerus.max"):
            Config.from_dict({"dosage": {"muscles": {"procerus": {"max": "lots"}}}})

    def test_bad_range_raises(self):
        with pytest.raises(ValueError, match="Expected two values"):
            Config.from_dict({"dosage": {"muscles": {"procerus": {"female_range": 4}}}})

    def test_new_muscle_needs_thresholds(self):
        with pytest.raises(ValueError, match="missing warning"):
            Config.from_dict({"dosage": {"muscles": {"corrugator": {"max": 25}}}})


class TestConsistencyRules:
    """Test the consistency section of the configuration."""

    def test_defaults(self):
        rules = ConsistencyRules()
        assert rules.min_point_distance == 5.0
        assert rules.zone_heights[AnatomicalZone.GLABELLA] == (28, 42)
        assert len(rules.danger_zones) == 6

    def test_override(self):
        config = Config.from_dict({
            "consistency": {
                "symmetry_x_tolerance": [8, 16],
                "min_point_distance": 4,
                "zone_heights": {"mentalis": [65, None]},
            }
        })
        rules = config.consistency
        assert rules.symmetry_x_tolerance == (8.0, 16.0)
        assert rules.symmetry_y_tolerance == (5.0, 10.0)
        assert rules.min_point_distance == 4.0
        assert rules.zone_heights[AnatomicalZone.MENTALIS] == (65.0, None)
        assert rules.zone_heights[AnatomicalZone.FRONTALIS] == (None, 25)
        assert Config().consistency.min_point_distance == 5.0

    def test_danger_zones_replaced(self):
        config = Config.from_dict({"consistency": {"danger_zones": [
            {"id": "z", "label": "Z", "x_min": 0, "x_max": 10, "y_min": 0, "y_max": 10, "reason": "r"},
        ]}})
        dz, = config.consistency.danger_zones
        assert dz.contains(5, 5)
        assert not dz.contains(11, 5)

    @pytest.mark.parametrize("value,match", [
        ({"danger_zones": {"id": "z"}}, "Expected a list"),
        ({"danger_zones": [{"id": "z"}]}, r"Invalid consistency\.danger_zones\[0\]"),
        ({"danger_zones": [{"id": "z", "label": "Z", "x_min": "left", "x_max": 1,
                            "y_min": 0, "y_max": 1, "reason": "r"}]}, "Expected a number"),
        ({"symmetry_y_tolerance": 5}, "Expected two values"),
        ({"close_point_distance": "near"}, "Expected a number"),
        ({"zone_heights": {"cheek": [0, 10]}}, "Unknown anatomical zone"),
    ])
    def test_invalid_raises(self, value, match):
        with pytest.raises(ValueError, match=match):
            Config.from_dict({"consistency": value})


class TestConfigYaml:
    """Test YAML round trip and the template."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        original = Config.from_dict({
            "unknown_muscle_zone": "unknown",
            "dosage": {"muscles": {"nasalis": {"max": 8, "warning": 6}}},
        })
        original.to_yaml(str(path))

        loaded = Config.from_yaml(str(path))
        assert loaded.unknown_muscle_zone == AnatomicalZone.UNKNOWN
        assert loaded.dosage.get(Muscle.NASALIS).max == 8
        assert loaded.dosage.get(Muscle.PROCERUS).female_range == (4, 8)
        assert loaded.surface.zone(AnatomicalZone.MASSETER) == original.surface.zone(AnatomicalZone.MASSETER)
        assert loaded.boundaries.get(AnatomicalZone.PERIORBITAL) == original.boundaries.get(AnatomicalZone.PERIORBITAL)

    def test_labels_written_as_unicode(self, tmp_path):
        path = tmp_path / "config.yaml"
        Config().to_yaml(str(path))
        assert "Prócero" in path.read_text(encoding="utf-8")

    def test_template_loads(self, tmp_path):
        template = Config.generate_default_config_template()
        data = yaml.safe_load(template)
        config = Config.from_dict(data)
        assert config.dosage.get(Muscle.PROCERUS).max == 12
        assert config.surface.zone(AnatomicalZone.GLABELLA).y_offset == 0.05

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(str(path)).dosage.session.max == 100

    def test_non_mapping_file_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            Config.from_yaml(str(path))

    def test_syntax_error_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("dosage: {session: [100\n")
        with pytest.raises(ValueError, match="Invalid YAML in config file"):
            Config.from_yaml(str(path))

    def test_consistency_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        original = Config.from_dict({"consistency": {"min_point_distance": 4, "danger_zones": [
            {"id": "z", "label": "Zona", "x_min": 0, "x_max": 10, "y_min": 0, "y_max": 10, "reason": "r"},
        ]}})
        original.to_yaml(str(path))
        assert Config.from_yaml(str(path)).consistency == original.consistency


class TestArgumentParser:

    def test_parses_options(self):
        parser = create_argument_parser()
        args = parser.parse_args([
            "plan.json", "--anchors", "lm.json", "--image-size", "800x1000",
            "--surface", "-o", "report.json", "-v",
        ])
        assert args.plan == "plan.json"
        assert args.anchors == "lm.json"
        assert args.image_size == "800x1000"
        assert args.surface
        assert args.output == "report.json"
        assert args.verbose

    def test_defaults(self):
        args = create_argument_parser().parse_args(["plan.json"])
        assert args.config is None
        assert not args.surface
