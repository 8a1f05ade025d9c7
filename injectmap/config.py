"""
Configuration for injectmap.

All clinical and geometric tables are immutable configuration objects passed
to the engines at construction:
- ZoneBoundaryTable: template rectangle per anatomical zone
- SurfaceCalibration: 3D surface constants, per-zone calibration and the
  ordered bands used to classify clicked 3D positions
- DosageLimitTable: per-muscle and per-session dosage thresholds
- ConsistencyRules: symmetry and proximity thresholds, expected zone heights
  and danger areas used by the whole-plan checks

The defaults below are the compiled-in tables. A YAML file can override any
subset of them; see Config.generate_default_config_template().

Also handles command-line argument parsing for the CLI.
"""

import argparse
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .zones import AnatomicalZone, Muscle, resolve_muscle


# =============================================================================
# Zone boundaries (template space, fractions 0-1)
# =============================================================================

@dataclass(frozen=True)
class ZoneBoundary:
    """
    Rectangle a zone is expected to occupy on the template face.

    For bilateral zones the rectangle describes the viewer's left side
    (x < 0.5); the right side is its mirror image x -> 1 - x.
    """
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    center_x: float
    center_y: float
    bilateral: bool = False

    def contains(self, x: float, y: float) -> bool:
        """Inclusive point-in-rectangle test on the declared band only."""
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def mirrored(self) -> "ZoneBoundary":
        """Mirror image across the facial midline."""
        return replace(
            self,
            x_min=1.0 - self.x_max,
            x_max=1.0 - self.x_min,
            center_x=1.0 - self.center_x,
        )


def _default_zone_boundaries() -> Mapping[AnatomicalZone, ZoneBoundary]:
    Z = AnatomicalZone
    return MappingProxyType({
        # Procerus + corrugators
        Z.GLABELLA: ZoneBoundary(0.32, 0.68, 0.28, 0.42, 0.50, 0.36),
        # Upper forehead, at least 2cm above the brow
        Z.FRONTALIS: ZoneBoundary(0.25, 0.75, 0.05, 0.28, 0.50, 0.16),
        # Crow's feet, left side (mirrored for right)
        Z.PERIORBITAL: ZoneBoundary(0.15, 0.32, 0.34, 0.52, 0.23, 0.42, bilateral=True),
        # Bunny lines
        Z.NASAL: ZoneBoundary(0.40, 0.60, 0.42, 0.56, 0.50, 0.48),
        Z.PERIORAL: ZoneBoundary(0.35, 0.65, 0.58, 0.75, 0.50, 0.67),
        Z.MENTALIS: ZoneBoundary(0.40, 0.60, 0.78, 0.95, 0.50, 0.88),
        # Jaw angle, left side (mirrored for right)
        Z.MASSETER: ZoneBoundary(0.08, 0.28, 0.55, 0.80, 0.18, 0.68, bilateral=True),
        Z.UNKNOWN: ZoneBoundary(0.0, 1.0, 0.0, 1.0, 0.50, 0.50),
    })


@dataclass(frozen=True)
class ZoneBoundaryTable:
    """Per-zone template rectangles."""
    zones: Mapping[AnatomicalZone, ZoneBoundary] = field(default_factory=_default_zone_boundaries)

    def get(self, zone: AnatomicalZone) -> ZoneBoundary:
        boundary = self.zones.get(zone)
        if boundary is None:
            return self.zones.get(AnatomicalZone.UNKNOWN, ZoneBoundary(0.0, 1.0, 0.0, 1.0, 0.5, 0.5))
        return boundary


# =============================================================================
# 3D surface calibration
# =============================================================================

@dataclass(frozen=True)
class ZoneCalibration:
    """Per-zone surface parameters."""
    base_z: float
    curve_factor: float
    y_offset: float
    x_scale: float = 1.0


@dataclass(frozen=True)
class SurfaceBand:
    """
    Rectangle in surface (x, y) space that identifies a muscle.

    Bounds of None are open. y is tested as y_min < y <= y_max. With
    symmetric=True the x bounds apply to |x|.
    """
    muscle: Muscle
    y_min: Optional[float] = None
    y_max: Optional[float] = None
    x_min: Optional[float] = None
    x_max: Optional[float] = None
    symmetric: bool = False

    def contains(self, x: float, y: float) -> bool:
        if self.y_min is not None and not y > self.y_min:
            return False
        if self.y_max is not None and not y <= self.y_max:
            return False
        v = abs(x) if self.symmetric else x
        if self.x_min is not None and not v >= self.x_min:
            return False
        if self.x_max is not None and not v <= self.x_max:
            return False
        return True


def _default_zone_calibration() -> Mapping[AnatomicalZone, ZoneCalibration]:
    Z = AnatomicalZone
    return MappingProxyType({
        Z.GLABELLA: ZoneCalibration(base_z=1.40, curve_factor=0.15, y_offset=0.05, x_scale=0.90),
        Z.FRONTALIS: ZoneCalibration(base_z=1.00, curve_factor=0.25, y_offset=0.10, x_scale=1.00),
        Z.PERIORBITAL: ZoneCalibration(base_z=1.20, curve_factor=0.30, y_offset=0.00, x_scale=1.00),
        Z.NASAL: ZoneCalibration(base_z=1.55, curve_factor=0.10, y_offset=0.00, x_scale=0.80),
        Z.PERIORAL: ZoneCalibration(base_z=1.40, curve_factor=0.20, y_offset=0.00, x_scale=0.95),
        Z.MENTALIS: ZoneCalibration(base_z=1.20, curve_factor=0.30, y_offset=-0.05, x_scale=0.90),
        Z.MASSETER: ZoneCalibration(base_z=0.60, curve_factor=0.40, y_offset=0.00, x_scale=1.05),
        Z.UNKNOWN: ZoneCalibration(base_z=1.30, curve_factor=0.18, y_offset=0.00, x_scale=1.00),
    })


def _default_surface_bands() -> Tuple[SurfaceBand, ...]:
    # Evaluated in order, top of the face to the bottom. First match wins.
    M = Muscle
    return (
        SurfaceBand(M.FRONTALIS, y_min=1.10),
        SurfaceBand(M.PROCERUS, y_min=0.55, y_max=1.10, x_min=-0.20, x_max=0.20),
        SurfaceBand(M.CORRUGATOR_LEFT, y_min=0.55, y_max=1.10, x_min=-0.65, x_max=-0.20),
        SurfaceBand(M.CORRUGATOR_RIGHT, y_min=0.55, y_max=1.10, x_min=0.20, x_max=0.65),
        SurfaceBand(M.ORBICULARIS_OCULI_LEFT, y_min=0.10, y_max=0.80, x_max=-0.50),
        SurfaceBand(M.ORBICULARIS_OCULI_RIGHT, y_min=0.10, y_max=0.80, x_min=0.50),
        SurfaceBand(M.NASALIS, y_min=-0.10, y_max=0.55, x_min=0.0, x_max=0.30, symmetric=True),
        SurfaceBand(M.ORBICULARIS_ORIS, y_min=-0.80, y_max=-0.10, x_min=0.0, x_max=0.50, symmetric=True),
        SurfaceBand(M.MASSETER, y_min=-0.90, y_max=0.00, x_min=0.70, symmetric=True),
        SurfaceBand(M.MENTALIS, y_max=-0.80, x_min=0.0, x_max=0.50, symmetric=True),
    )


@dataclass(frozen=True)
class SurfaceCalibration:
    """
    Constants of the canonical anatomical surface.

    Template percentages are normalized to [-1, 1] and scaled by x_scale /
    y_scale; y_center is the surface height of the template's vertical
    midpoint. Depth is base_depth + zone.base_z - x^2 * zone.curve_factor,
    minus a forehead recession above forehead_start for the frontalis zone.
    """
    x_scale: float = 1.4
    y_scale: float = 1.8
    y_center: float = 0.2
    base_depth: float = 0.1
    forehead_start: float = 1.1
    forehead_recession: float = 0.35
    zones: Mapping[AnatomicalZone, ZoneCalibration] = field(default_factory=_default_zone_calibration)
    bands: Tuple[SurfaceBand, ...] = field(default_factory=_default_surface_bands)
    fallback_muscle: Muscle = Muscle.PROCERUS

    def zone(self, zone: AnatomicalZone) -> ZoneCalibration:
        calibration = self.zones.get(zone)
        if calibration is None:
            return self.zones[AnatomicalZone.UNKNOWN]
        return calibration


# =============================================================================
# Dosage limits (units, Consenso Brasileiro 2024)
# =============================================================================

@dataclass(frozen=True)
class MuscleDosageLimit:
    """
    Dosage thresholds for one muscle.

    female_range, male_range and strength_modifier describe typical doses for
    the proposal step. The safety engine only reads max, warning and label.
    """
    max: float
    warning: float
    label: str
    female_range: Tuple[float, float] = (0.0, 0.0)
    male_range: Tuple[float, float] = (0.0, 0.0)
    strength_modifier: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({"low": 0.8, "medium": 1.0, "high": 1.2})
    )


@dataclass(frozen=True)
class SessionLimit:
    """Thresholds on the total units of one session."""
    max: float = 100.0
    warning: float = 80.0


def _limit(max_u, warning, label, female, male, low, high) -> MuscleDosageLimit:
    return MuscleDosageLimit(
        max=max_u,
        warning=warning,
        label=label,
        female_range=female,
        male_range=male,
        strength_modifier=MappingProxyType({"low": low, "medium": 1.0, "high": high}),
    )


def _default_muscle_limits() -> Mapping[Muscle, MuscleDosageLimit]:
    M = Muscle
    return MappingProxyType({
        M.PROCERUS: _limit(12, 10, "Prócero", (4, 8), (6, 12), 0.8, 1.2),
        M.CORRUGATOR_LEFT: _limit(15, 12, "Corrugador Esquerdo", (6, 10), (8, 15), 0.75, 1.25),
        M.CORRUGATOR_RIGHT: _limit(15, 12, "Corrugador Direito", (6, 10), (8, 15), 0.75, 1.25),
        M.FRONTALIS: _limit(20, 15, "Frontal", (8, 15), (12, 20), 0.85, 1.15),
        M.ORBICULARIS_OCULI_LEFT: _limit(16, 12, "Orbicular Olho Esq.", (6, 12), (8, 16), 0.8, 1.2),
        M.ORBICULARIS_OCULI_RIGHT: _limit(16, 12, "Orbicular Olho Dir.", (6, 12), (8, 16), 0.8, 1.2),
        M.NASALIS: _limit(6, 5, "Nasal", (2, 4), (4, 6), 0.9, 1.1),
        M.LEVATOR_LABII: _limit(5, 4, "Levantador Lábio", (2, 4), (3, 5), 0.8, 1.15),
        M.ZYGOMATICUS_MAJOR: _limit(6, 5, "Zigomático Maior", (2, 4), (3, 6), 0.8, 1.15),
        M.ZYGOMATICUS_MINOR: _limit(5, 4, "Zigomático Menor", (2, 3), (2, 5), 0.8, 1.15),
        M.ORBICULARIS_ORIS: _limit(6, 5, "Orbicular da Boca", (2, 4), (3, 6), 0.8, 1.15),
        M.DEPRESSOR_ANGULI: _limit(6, 5, "Depressor do Ângulo", (2, 4), (3, 6), 0.8, 1.15),
        M.MENTALIS: _limit(12, 10, "Mentual", (4, 8), (6, 12), 0.8, 1.2),
        M.MASSETER: _limit(60, 50, "Masseter", (25, 40), (35, 60), 0.8, 1.2),
    })


@dataclass(frozen=True)
class DosageLimitTable:
    """Per-muscle limits plus the session total limit."""
    muscles: Mapping[Muscle, MuscleDosageLimit] = field(default_factory=_default_muscle_limits)
    session: SessionLimit = field(default_factory=SessionLimit)

    def get(self, muscle: Muscle) -> Optional[MuscleDosageLimit]:
        return self.muscles.get(muscle)


# =============================================================================
# Plan consistency rules (template space, percent 0-100)
# =============================================================================

@dataclass(frozen=True)
class DangerZone:
    """Template area where injection risks a complication."""
    id: str
    label: str
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    reason: str

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max


def _default_danger_zones() -> Tuple[DangerZone, ...]:
    return (
        DangerZone("orbital_margin_left", "Margem Orbital Esquerda", 25, 45, 28, 40,
                   "Risco de ptose palpebral"),
        DangerZone("orbital_margin_right", "Margem Orbital Direita", 55, 75, 28, 40,
                   "Risco de ptose palpebral"),
        DangerZone("infraorbital_left", "Área Infraorbital Esquerda", 25, 42, 42, 55,
                   "Risco de difusão para músculos oculares"),
        DangerZone("infraorbital_right", "Área Infraorbital Direita", 58, 75, 42, 55,
                   "Risco de difusão para músculos oculares"),
        DangerZone("labial_commissure_left", "Comissura Labial Esquerda", 30, 42, 60, 70,
                   "Risco de assimetria do sorriso"),
        DangerZone("labial_commissure_right", "Comissura Labial Direita", 58, 70, 60, 70,
                   "Risco de assimetria do sorriso"),
    )


def _default_zone_heights() -> Mapping[AnatomicalZone, Tuple[Optional[float], Optional[float]]]:
    # (min y, max y); None is open
    Z = AnatomicalZone
    return MappingProxyType({
        Z.FRONTALIS: (None, 25),
        Z.GLABELLA: (28, 42),
        Z.PERIORBITAL: (35, 52),
        Z.NASAL: (40, 55),
        Z.PERIORAL: (55, 75),
        Z.MENTALIS: (70, 95),
    })


@dataclass(frozen=True)
class ConsistencyRules:
    """
    Thresholds of the whole-plan consistency checks.

    Symmetry tolerances are (warn above, high severity above). Points closer
    than min_point_distance are flagged, with high severity below
    close_point_distance.
    """
    symmetry_x_tolerance: Tuple[float, float] = (10.0, 20.0)
    symmetry_y_tolerance: Tuple[float, float] = (5.0, 10.0)
    symmetry_dosage_tolerance: Tuple[float, float] = (2.0, 5.0)
    min_point_distance: float = 5.0
    close_point_distance: float = 3.0
    zone_heights: Mapping[AnatomicalZone, Tuple[Optional[float], Optional[float]]] = field(
        default_factory=_default_zone_heights
    )
    danger_zones: Tuple[DangerZone, ...] = field(default_factory=_default_danger_zones)


# =============================================================================
# Complete configuration
# =============================================================================

@dataclass(frozen=True)
class Config:
    """Complete planner configuration."""
    boundaries: ZoneBoundaryTable = field(default_factory=ZoneBoundaryTable)
    surface: SurfaceCalibration = field(default_factory=SurfaceCalibration)
    dosage: DosageLimitTable = field(default_factory=DosageLimitTable)
    consistency: ConsistencyRules = field(default_factory=ConsistencyRules)
    # Zone assigned to unrecognized muscle names.
    unknown_muscle_zone: AnatomicalZone = AnatomicalZone.GLABELLA

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Build a config from a (partial) dictionary, starting from defaults.

        Args:
            data: Parsed YAML/JSON mapping

        Returns:
            Config instance

        Raises:
            ValueError: On unknown zone/muscle names or malformed values
        """
        config = cls()
        data = _section(data, "config")

        unknown_zone = data.get('unknown_muscle_zone')
        if unknown_zone is not None:
            config = replace(config, unknown_muscle_zone=_parse_zone(unknown_zone))

        boundary_data = _section(data.get('zone_boundaries'), "zone_boundaries")
        if boundary_data:
            zones = dict(config.boundaries.zones)
            for name, values in boundary_data.items():
                zone = _parse_zone(name)
                base = zones.get(zone, ZoneBoundary(0.0, 1.0, 0.0, 1.0, 0.5, 0.5))
                zones[zone] = _override(base, values, f"zone_boundaries.{name}")
            config = replace(config, boundaries=ZoneBoundaryTable(MappingProxyType(zones)))

        surface_data = dict(_section(data.get('surface'), "surface"))
        if surface_data:
            zone_data = _section(surface_data.pop('zones', None), "surface.zones")
            surface = _override(config.surface, surface_data, "surface")
            if zone_data:
                zones = dict(surface.zones)
                for name, values in zone_data.items():
                    zone = _parse_zone(name)
                    base = zones.get(zone, zones[AnatomicalZone.UNKNOWN])
                    zones[zone] = _override(base, values, f"surface.zones.{name}")
                surface = replace(surface, zones=MappingProxyType(zones))
            config = replace(config, surface=surface)

        consistency_data = dict(_section(data.get('consistency'), "consistency"))
        if consistency_data:
            rules = config.consistency
            height_data = _section(consistency_data.pop('zone_heights', None), "consistency.zone_heights")
            danger_data = consistency_data.pop('danger_zones', None)
            for key in ('symmetry_x_tolerance', 'symmetry_y_tolerance', 'symmetry_dosage_tolerance'):
                if key in consistency_data:
                    consistency_data[key] = _pair(consistency_data[key], f"consistency.{key}")
            rules = _override(rules, consistency_data, "consistency")
            if height_data:
                heights = dict(rules.zone_heights)
                for name, bounds in height_data.items():
                    heights[_parse_zone(name)] = _pair(
                        bounds, f"consistency.zone_heights.{name}", allow_none=True
                    )
                rules = replace(rules, zone_heights=MappingProxyType(heights))
            if danger_data is not None:
                if not isinstance(danger_data, list):
                    raise ValueError(
                        f"Expected a list for consistency.danger_zones, got {type(danger_data).__name__}"
                    )
                zones = []
                for i, entry in enumerate(danger_data):
                    entry = dict(_section(entry, f"consistency.danger_zones[{i}]"))
                    for key in ('x_min', 'x_max', 'y_min', 'y_max'):
                        if key in entry:
                            try:
                                entry[key] = float(entry[key])
                            except (TypeError, ValueError):
                                raise ValueError(
                                    f"Expected a number for consistency.danger_zones[{i}].{key}, "
                                    f"got {entry[key]!r}"
                                )
                    try:
                        zones.append(DangerZone(**entry))
                    except TypeError as e:
                        raise ValueError(f"Invalid consistency.danger_zones[{i}]: {e}")
                rules = replace(rules, danger_zones=tuple(zones))
            config = replace(config, consistency=rules)

        dosage_data = _section(data.get('dosage'), "dosage")
        if dosage_data:
            dosage = config.dosage
            session_data = dosage_data.get('session')
            if session_data:
                dosage = replace(dosage, session=_override(dosage.session, session_data, "dosage.session"))
            muscle_data = _section(dosage_data.get('muscles'), "dosage.muscles")
            if muscle_data:
                muscles = dict(dosage.muscles)
                for name, values in muscle_data.items():
                    muscle = resolve_muscle(name)
                    if muscle is None:
                        raise ValueError(f"Unknown muscle in dosage.muscles: {name!r}")
                    values = dict(_section(values, f"dosage.muscles.{name}"))
                    for key in ('female_range', 'male_range'):
                        if key in values:
                            values[key] = _pair(values[key], f"dosage.muscles.{name}.{key}")
                    if 'strength_modifier' in values:
                        modifier = _section(values['strength_modifier'], f"dosage.muscles.{name}.strength_modifier")
                        values['strength_modifier'] = MappingProxyType(dict(modifier))
                    base = muscles.get(muscle)
                    if base is None:
                        missing = [k for k in ('max', 'warning') if k not in values]
                        if missing:
                            raise ValueError(f"Invalid dosage.muscles.{name}: missing {', '.join(missing)}")
                        base = MuscleDosageLimit(max=0.0, warning=0.0, label=muscle.value)
                    muscles[muscle] = _override(base, values, f"dosage.muscles.{name}")
                dosage = replace(dosage, muscles=MappingProxyType(muscles))
            config = replace(config, dosage=dosage)

        return config

    @classmethod
    def from_yaml(cls, filepath: str) -> "Config":
        """
        Load config from YAML file.

        Args:
            filepath: Path to YAML config file

        Returns:
            Config instance
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for config files. "
                "Install with: pip install pyyaml"
            )

        with open(filepath, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {filepath}")

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data representation, the inverse of from_dict()."""
        return {
            'unknown_muscle_zone': self.unknown_muscle_zone.value,
            'zone_boundaries': {
                zone.value: {
                    'x_min': b.x_min,
                    'x_max': b.x_max,
                    'y_min': b.y_min,
                    'y_max': b.y_max,
                    'center_x': b.center_x,
                    'center_y': b.center_y,
                    'bilateral': b.bilateral,
                }
                for zone, b in self.boundaries.zones.items()
            },
            'surface': {
                'x_scale': self.surface.x_scale,
                'y_scale': self.surface.y_scale,
                'y_center': self.surface.y_center,
                'base_depth': self.surface.base_depth,
                'forehead_start': self.surface.forehead_start,
                'forehead_recession': self.surface.forehead_recession,
                'zones': {
                    zone.value: {
                        'base_z': c.base_z,
                        'curve_factor': c.curve_factor,
                        'y_offset': c.y_offset,
                        'x_scale': c.x_scale,
                    }
                    for zone, c in self.surface.zones.items()
                },
            },
            'dosage': {
                'session': {
                    'max': self.dosage.session.max,
                    'warning': self.dosage.session.warning,
                },
                'muscles': {
                    muscle.value: {
                        'max': lim.max,
                        'warning': lim.warning,
                        'label': lim.label,
                        'female_range': list(lim.female_range),
                        'male_range': list(lim.male_range),
                        'strength_modifier': dict(lim.strength_modifier),
                    }
                    for muscle, lim in self.dosage.muscles.items()
                },
            },
            'consistency': {
                'symmetry_x_tolerance': list(self.consistency.symmetry_x_tolerance),
                'symmetry_y_tolerance': list(self.consistency.symmetry_y_tolerance),
                'symmetry_dosage_tolerance': list(self.consistency.symmetry_dosage_tolerance),
                'min_point_distance': self.consistency.min_point_distance,
                'close_point_distance': self.consistency.close_point_distance,
                'zone_heights': {
                    zone.value: list(bounds)
                    for zone, bounds in self.consistency.zone_heights.items()
                },
                'danger_zones': [
                    {
                        'id': dz.id,
                        'label': dz.label,
                        'x_min': dz.x_min,
                        'x_max': dz.x_max,
                        'y_min': dz.y_min,
                        'y_max': dz.y_max,
                        'reason': dz.reason,
                    }
                    for dz in self.consistency.danger_zones
                ],
            },
        }

    def to_yaml(self, filepath: str) -> None:
        """
        Save config to YAML file.

        Args:
            filepath: Path to save YAML config file
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for config files. "
                "Install with: pip install pyyaml"
            )

        with open(filepath, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    @staticmethod
    def generate_default_config_template() -> str:
        """
        Generate a configuration template with comments.

        Returns:
            YAML string with comments explaining each option
        """
        return """# injectmap configuration file
#
# Every section is optional. Values given here override the compiled-in
# tables key by key; anything omitted keeps its default.

# Zone assigned to muscle names the classifier does not recognize.
# Default: glabella. Use "unknown" to mark such points as unclassified.
unknown_muscle_zone: glabella

# Template rectangles per zone (fractions 0-1 of the template face).
# Bilateral zones (periorbital, masseter) describe the viewer's left side;
# the right side is mirrored automatically.
zone_boundaries:
  glabella: {x_min: 0.32, x_max: 0.68, y_min: 0.28, y_max: 0.42}

# Canonical 3D surface
surface:
  # Scale from normalized template [-1, 1] to surface units
  x_scale: 1.4
  y_scale: 1.8
  # Surface height of the template's vertical midpoint
  y_center: 0.2
  # Added to every zone's base_z
  base_depth: 0.1
  # Forehead recedes by forehead_recession per unit above forehead_start
  forehead_start: 1.1
  forehead_recession: 0.35
  zones:
    glabella: {base_z: 1.4, curve_factor: 0.15, y_offset: 0.05, x_scale: 0.9}

# Dosage thresholds in units (U)
dosage:
  session:
    max: 100
    warning: 80
  muscles:
    procerus: {max: 12, warning: 10, label: "Prócero"}

# Whole-plan consistency checks (template percent 0-100)
consistency:
  # Symmetry tolerances: [warn above, high severity above]
  symmetry_x_tolerance: [10, 20]
  symmetry_y_tolerance: [5, 10]
  symmetry_dosage_tolerance: [2, 5]
  # Points closer than this are flagged; high severity below close_point_distance
  min_point_distance: 5
  close_point_distance: 3
  # Expected [min y, max y] per zone; null is open
  zone_heights:
    frontalis: [null, 25]
  # A danger_zones list replaces the compiled-in danger areas entirely:
  # danger_zones:
  #   - {id: orbital_margin_left, label: "Margem Orbital Esquerda",
  #      x_min: 25, x_max: 45, y_min: 28, y_max: 40, reason: "Risco de ptose palpebral"}
"""


def _parse_zone(name: Any) -> AnatomicalZone:
    try:
        return AnatomicalZone(str(name).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown anatomical zone: {name!r}")


def _section(values: Any, where: str) -> Dict[str, Any]:
    """A config section as a mapping; missing or empty sections are {}."""
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ValueError(f"Expected a mapping for {where}, got {type(values).__name__}")
    return values


def _pair(values: Any, where: str, allow_none: bool = False) -> Tuple[Any, Any]:
    """Two-element numeric sequence as a tuple (None kept if allow_none)."""
    if not isinstance(values, (list, tuple)) or len(values) != 2:
        raise ValueError(f"Expected two values for {where}, got {values!r}")
    pair = []
    for v in values:
        if v is None and allow_none:
            pair.append(None)
            continue
        try:
            pair.append(float(v))
        except (TypeError, ValueError):
            raise ValueError(f"Expected numbers for {where}, got {values!r}")
    return tuple(pair)


def _override(base, values: Any, where: str):
    """
    Return a copy of a frozen dataclass with fields from a mapping replaced.

    Values for numeric fields are converted to float.
    """
    if not isinstance(values, dict):
        raise ValueError(f"Expected a mapping for {where}, got {type(values).__name__}")
    values = dict(values)
    for key, value in values.items():
        current = getattr(base, key, None)
        if isinstance(current, (int, float)) and not isinstance(current, bool):
            try:
                values[key] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Expected a number for {where}.{key}, got {value!r}")
    try:
        return replace(base, **values)
    except TypeError as e:
        raise ValueError(f"Invalid field in {where}: {e}")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create command-line argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="injectmap",
        description="Map proposed injection points onto a patient photo and the 3D face surface, "
                    "and check zone placement and dosage safety",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog="Configuration file (YAML) can override any compiled-in table."
    )

    parser.add_argument(
        "plan",
        nargs='?',
        help="Path to treatment plan JSON: a list of injection points or {\"points\": [...]}"
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to YAML configuration file"
    )

    parser.add_argument(
        "--save-config",
        metavar="PATH",
        help="Save configuration template to YAML file and exit"
    )

    photo_group = parser.add_argument_group("Photo Options")
    photo_group.add_argument(
        "--anchors",
        metavar="PATH",
        help="Face landmark JSON from the detector ({\"source\": \"mediapipe\", \"landmarks\": [...]})"
    )
    photo_group.add_argument(
        "--image-size",
        type=str,
        metavar="WxH",
        help="Displayed image size in pixels; enables pixel placement output (e.g., 800x1000)"
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--surface",
        action="store_true",
        help="Include 3D surface positions in the report"
    )
    output_group.add_argument(
        "--output", "-o",
        metavar="PATH",
        help="Write the JSON report to a file instead of stdout"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser

