"""
Placement checks for injection points.

Two layers, both advisory (nothing here prevents a plan from being saved):

- Zone validation: is each point inside the template rectangle of its
  muscle's zone? Bilateral zones accept either side of the face.
- Consistency checks over a whole plan: left/right symmetry, vertical
  order of zones, points placed too close together, and points inside
  known danger areas (orbital margin, infraorbital area, lip corners).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import Config, ConsistencyRules, DangerZone, ZoneBoundaryTable
from .points import InjectionPoint, format_number
from .zones import AnatomicalZone, classify_muscle, normalize_name, unsided

logger = logging.getLogger(__name__)


# =============================================================================
# Zone validation
# =============================================================================

@dataclass(frozen=True)
class ZoneCheck:
    """Result of checking one point against its zone rectangle."""
    valid: bool
    zone: AnatomicalZone
    warning: Optional[str] = None


def validate_point(
    point: InjectionPoint,
    boundaries: Optional[ZoneBoundaryTable] = None,
    unknown_zone: AnatomicalZone = AnatomicalZone.GLABELLA
) -> ZoneCheck:
    """
    Check that a point lies inside its zone.

    Args:
        point: Point to check
        boundaries: Zone rectangles; defaults if None
        unknown_zone: Zone assumed for unrecognized muscles

    Returns:
        ZoneCheck; warning is set only when the point is outside
    """
    if boundaries is None:
        boundaries = ZoneBoundaryTable()

    zone = classify_muscle(point.muscle, fallback=unknown_zone)
    boundary = boundaries.get(zone)
    x, y = point.x_fraction, point.y_fraction

    inside = boundary.contains(x, y)
    if not inside and boundary.bilateral:
        inside = boundary.mirrored().contains(x, y)

    if inside:
        return ZoneCheck(valid=True, zone=zone)

    warning = (
        f"Coordenadas fora da zona {zone.value}: "
        f"x={format_number(point.x)}%, y={format_number(point.y)}%"
    )
    logger.debug("Point %s (%s) outside zone %s", point.id, point.muscle, zone.value)
    return ZoneCheck(valid=False, zone=zone, warning=warning)


# =============================================================================
# Consistency checks
# =============================================================================

class IssueKind(str, Enum):
    SYMMETRY = "symmetry"
    HIERARCHY = "hierarchy"
    PROXIMITY = "proximity"
    DOSAGE = "dosage"
    DANGER_ZONE = "danger_zone"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ConsistencyIssue:
    """One finding; errors carry no severity."""
    kind: IssueKind
    message: str
    points: Tuple[str, ...]
    severity: Optional[Severity] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "type": self.kind.value,
            "message": self.message,
            "affected_points": list(self.points),
        }
        if self.severity is not None:
            data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class ConsistencyReport:
    warnings: Tuple[ConsistencyIssue, ...] = ()
    errors: Tuple[ConsistencyIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summarize(self) -> str:
        """One-line summary for the alert banner."""
        if self.is_valid and not self.warnings:
            return "✓ Todos os pontos estão em posições anatomicamente corretas"

        parts = []
        if self.errors:
            parts.append(f"⚠️ {len(self.errors)} erro(s) crítico(s)")

        high = sum(1 for w in self.warnings if w.severity == Severity.HIGH)
        medium = sum(1 for w in self.warnings if w.severity == Severity.MEDIUM)
        if high:
            parts.append(f"{high} aviso(s) importante(s)")
        if medium:
            parts.append(f"{medium} sugestão(ões)")

        return " | ".join(parts)

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "summary": self.summarize(),
            "warnings": [w.to_dict() for w in self.warnings],
            "errors": [e.to_dict() for e in self.errors],
        }


def _pair_key(point: InjectionPoint) -> str:
    """Key shared by the left and right instance of a muscle."""
    muscle = unsided(point.muscle)
    if muscle is not None:
        return muscle.value
    return normalize_name(point.muscle)


def _graded(value: float, limits: Tuple[float, float], low: Severity) -> Optional[Severity]:
    warn_above, high_above = limits
    if value > high_above:
        return Severity.HIGH
    if value > warn_above:
        return low
    return None


def check_symmetry(
    points: Sequence[InjectionPoint],
    rules: Optional[ConsistencyRules] = None
) -> List[ConsistencyIssue]:
    """
    Compare each right-side point with the left-side point of the same muscle.

    Left is x < 50, right is x > 50; midline points are not paired. When a
    side has several points of one muscle the last one is compared.
    """
    if rules is None:
        rules = ConsistencyRules()

    left: Dict[str, InjectionPoint] = {}
    for p in points:
        if p.x < 50:
            left[_pair_key(p)] = p

    issues = []
    for rp in points:
        if not rp.x > 50:
            continue
        lp = left.get(_pair_key(rp))
        if lp is None:
            continue
        ids = (lp.id, rp.id)

        severity = _graded(abs(lp.x + rp.x - 100), rules.symmetry_x_tolerance, Severity.MEDIUM)
        if severity:
            issues.append(ConsistencyIssue(
                IssueKind.SYMMETRY,
                f"Assimetria detectada: {lp.muscle} (x={format_number(lp.x)}) e "
                f"{rp.muscle} (x={format_number(rp.x)}) não são simétricos",
                ids, severity,
            ))

        severity = _graded(abs(lp.y - rp.y), rules.symmetry_y_tolerance, Severity.MEDIUM)
        if severity:
            issues.append(ConsistencyIssue(
                IssueKind.SYMMETRY,
                f"Altura diferente: {lp.muscle} (y={format_number(lp.y)}) e "
                f"{rp.muscle} (y={format_number(rp.y)})",
                ids, severity,
            ))

        severity = _graded(abs(lp.dosage - rp.dosage), rules.symmetry_dosage_tolerance, Severity.LOW)
        if severity:
            issues.append(ConsistencyIssue(
                IssueKind.DOSAGE,
                f"Dosagem assimétrica: {lp.muscle} ({lp.dosage}U) vs {rp.muscle} ({rp.dosage}U)",
                ids, severity,
            ))

    return issues


def check_hierarchy(
    points: Iterable[InjectionPoint],
    unknown_zone: AnatomicalZone = AnatomicalZone.GLABELLA,
    rules: Optional[ConsistencyRules] = None
) -> List[ConsistencyIssue]:
    """Flag points that sit above or below the usual height of their zone."""
    if rules is None:
        rules = ConsistencyRules()
    issues = []
    for p in points:
        zone = classify_muscle(p.muscle, fallback=unknown_zone)
        if zone not in rules.zone_heights:
            continue
        min_y, max_y = rules.zone_heights[zone]
        if max_y is not None and p.y > max_y:
            issues.append(ConsistencyIssue(
                IssueKind.HIERARCHY,
                f"{p.muscle} está muito baixo (y={format_number(p.y)}). "
                f"Para {zone.value}, máximo recomendado é y={format_number(max_y)}",
                (p.id,), Severity.MEDIUM,
            ))
        if min_y is not None and p.y < min_y:
            issues.append(ConsistencyIssue(
                IssueKind.HIERARCHY,
                f"{p.muscle} está muito alto (y={format_number(p.y)}). "
                f"Para {zone.value}, mínimo recomendado é y={format_number(min_y)}",
                (p.id,), Severity.MEDIUM,
            ))
    return issues


def check_proximity(
    points: Sequence[InjectionPoint],
    rules: Optional[ConsistencyRules] = None
) -> List[ConsistencyIssue]:
    """Flag every pair of points closer than the minimum distance."""
    if rules is None:
        rules = ConsistencyRules()
    issues = []
    for p1, p2 in combinations(points, 2):
        distance = math.hypot(p1.x - p2.x, p1.y - p2.y)
        if distance < rules.min_point_distance:
            issues.append(ConsistencyIssue(
                IssueKind.PROXIMITY,
                f"Pontos muito próximos: {p1.muscle} e {p2.muscle} (distância: {distance:.1f}%)",
                (p1.id, p2.id),
                Severity.HIGH if distance < rules.close_point_distance else Severity.MEDIUM,
            ))
    return issues


def check_danger_zones(
    points: Iterable[InjectionPoint],
    danger_zones: Optional[Sequence[DangerZone]] = None
) -> List[ConsistencyIssue]:
    """One error per (point, danger zone) the point falls in."""
    if danger_zones is None:
        danger_zones = ConsistencyRules().danger_zones
    issues = []
    for p in points:
        for dz in danger_zones:
            if dz.contains(p.x, p.y):
                issues.append(ConsistencyIssue(
                    IssueKind.DANGER_ZONE,
                    f"{p.muscle} está na {dz.label}: {dz.reason}",
                    (p.id,),
                ))
    return issues


def check_anatomical_consistency(
    points: Sequence[InjectionPoint],
    unknown_zone: AnatomicalZone = AnatomicalZone.GLABELLA,
    rules: Optional[ConsistencyRules] = None
) -> ConsistencyReport:
    """
    Run every consistency check over a plan.

    Args:
        points: All points of the plan
        unknown_zone: Zone assumed for unrecognized muscles
        rules: Thresholds, heights and danger zones; defaults if None

    Returns:
        ConsistencyReport; danger-zone hits are errors, the rest warnings
    """
    points = list(points)
    if not points:
        return ConsistencyReport()
    if rules is None:
        rules = ConsistencyRules()

    warnings = (
        check_symmetry(points, rules)
        + check_hierarchy(points, unknown_zone, rules)
        + check_proximity(points, rules)
    )
    errors = check_danger_zones(points, rules.danger_zones)

    logger.debug("Consistency: %d warning(s), %d error(s) over %d point(s)",
                 len(warnings), len(errors), len(points))
    return ConsistencyReport(warnings=tuple(warnings), errors=tuple(errors))


class ZoneValidator:
    """Zone and consistency checks bound to one configuration."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else Config()

    def validate(self, point: InjectionPoint) -> ZoneCheck:
        return validate_point(point, self.config.boundaries, self.config.unknown_muscle_zone)

    def validate_all(self, points: Iterable[InjectionPoint]) -> Dict[str, ZoneCheck]:
        return {p.id: self.validate(p) for p in points}

    def check_consistency(self, points: Sequence[InjectionPoint]) -> ConsistencyReport:
        return check_anatomical_consistency(
            points, self.config.unknown_muscle_zone, self.config.consistency
        )
