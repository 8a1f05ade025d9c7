"""
Dosage safety checks.

Per-muscle and per-session thresholds come from DosageLimitTable
(Consenso Brasileiro 2024 defaults). The engine is advisory: it reports
SafetyChecks and never refuses a plan.

Threshold rule, per muscle and for the session total:
    dosage >  max      -> danger
    dosage >= warning  -> warning
    otherwise          -> no check
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import DosageLimitTable, MuscleDosageLimit
from .points import InjectionPoint, format_number
from .zones import Muscle, resolve_muscle

logger = logging.getLogger(__name__)


TOTAL_MUSCLE = "total"
TOTAL_LABEL = "Total da Sessão"


class AlertLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class SafetyCheck:
    """
    One dosage alert.

    Attributes:
        level: warning or danger
        muscle: Canonical muscle id, or "total" for the session check
        label: Display label of the muscle
        dosage: Units checked
        limit: The max threshold of the muscle or session
        message: Alert text shown to the practitioner
    """
    level: AlertLevel
    muscle: str
    label: str
    dosage: float
    limit: float
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "level": self.level.value,
            "muscle": self.muscle,
            "label": self.label,
            "dosage": self.dosage,
            "limit": self.limit,
            "message": self.message,
        }


def _level(dosage: float, max_units: float, warning: float) -> Optional[AlertLevel]:
    if dosage > max_units:
        return AlertLevel.DANGER
    if dosage >= warning:
        return AlertLevel.WARNING
    return None


class DosageSafetyEngine:
    """
    Checks dosages against the limit table.

    Example:
        engine = DosageSafetyEngine(config.dosage)
        by_muscle, total = summarize_dosage(points)
        for check in engine.evaluate(by_muscle, total):
            print(check.message)
    """

    def __init__(self, limits: Optional[DosageLimitTable] = None):
        self.limits = limits if limits is not None else DosageLimitTable()

    def _by_canonical_muscle(self, dosage_by_muscle: Mapping[str, float]) -> Dict[Muscle, float]:
        totals: Dict[Muscle, float] = {}
        for name, units in dosage_by_muscle.items():
            muscle = resolve_muscle(name)
            if muscle is None or self.limits.get(muscle) is None:
                logger.debug("No dosage limit for muscle %r, skipping", name)
                continue
            totals[muscle] = totals.get(muscle, 0) + units
        return totals

    def check_muscle(self, muscle: Muscle, dosage: float) -> Optional[SafetyCheck]:
        """Check one muscle's total; None if within limits or unlimited."""
        limit: Optional[MuscleDosageLimit] = self.limits.get(muscle)
        if limit is None:
            return None

        level = _level(dosage, limit.max, limit.warning)
        if level is None:
            return None

        d, m = format_number(dosage), format_number(limit.max)
        if level == AlertLevel.DANGER:
            message = f"{limit.label}: {d}U excede o limite máximo de {m}U"
        else:
            message = f"{limit.label}: {d}U está próximo do limite ({m}U)"

        return SafetyCheck(level, muscle.value, limit.label, dosage, limit.max, message)

    def check_total(self, total: float) -> Optional[SafetyCheck]:
        """Check the session total; None if within limits."""
        session = self.limits.session
        level = _level(total, session.max, session.warning)
        if level is None:
            return None

        t, m = format_number(total), format_number(session.max)
        if level == AlertLevel.DANGER:
            message = f"Dosagem total de {t}U excede o limite recomendado de {m}U por sessão"
        else:
            message = f"Dosagem total de {t}U está próxima do limite recomendado ({m}U)"

        return SafetyCheck(level, TOTAL_MUSCLE, TOTAL_LABEL, total, session.max, message)

    def evaluate(self, dosage_by_muscle: Mapping[str, float], total: float) -> List[SafetyCheck]:
        """
        Check every muscle dosage and the session total.

        Args:
            dosage_by_muscle: Units per muscle name. Names resolving to the
                same muscle are summed; unknown names are skipped.
            total: Units of the whole session

        Returns:
            Muscle checks in input order, then at most one total check
        """
        checks = []
        for muscle, units in self._by_canonical_muscle(dosage_by_muscle).items():
            check = self.check_muscle(muscle, units)
            if check is not None:
                checks.append(check)

        total_check = self.check_total(total)
        if total_check is not None:
            checks.append(total_check)

        return checks

    def evaluate_points(self, points: Iterable[InjectionPoint]) -> List[SafetyCheck]:
        by_muscle, total = summarize_dosage(points)
        return self.evaluate(by_muscle, total)


def summarize_dosage(points: Iterable[InjectionPoint]) -> Tuple[Dict[str, int], int]:
    """
    Units per muscle name and the session total.

    Returns:
        (units by muscle name as given on the points, total units)
    """
    by_muscle: Dict[str, int] = {}
    total = 0
    for p in points:
        by_muscle[p.muscle] = by_muscle.get(p.muscle, 0) + p.dosage
        total += p.dosage
    return by_muscle, total


def highest_level(checks: Iterable[SafetyCheck]) -> AlertLevel:
    """Most severe level among checks (SAFE if there are none)."""
    level = AlertLevel.SAFE
    for check in checks:
        if check.level == AlertLevel.DANGER:
            return AlertLevel.DANGER
        level = AlertLevel.WARNING
    return level


# =============================================================================
# Toxin products
# =============================================================================
# Limits are expressed in onabotulinumtoxinA units; other products scale by
# their conversion factor.

@dataclass(frozen=True)
class ToxinProduct:
    id: str
    name: str
    generic_name: str
    conversion_factor: float


TOXIN_PRODUCTS: Dict[str, ToxinProduct] = {
    p.id: p for p in (
        ToxinProduct("botox", "Botox®", "OnabotulinumtoxinA", 1.0),
        ToxinProduct("dysport", "Dysport®", "AbobotulinumtoxinA", 2.5),
        ToxinProduct("xeomin", "Xeomin®", "IncobotulinumtoxinA", 1.0),
        ToxinProduct("jeuveau", "Jeuveau®", "PrabotulinumtoxinA", 1.0),
        ToxinProduct("daxxify", "Daxxify®", "DaxibotulinumtoxinA", 1.0),
    )
}


def get_product(product_id: str) -> ToxinProduct:
    """
    Raises:
        ValueError: If the product id is unknown
    """
    product = TOXIN_PRODUCTS.get(str(product_id).strip().lower())
    if product is None:
        raise ValueError(
            f"Unknown toxin product: {product_id!r}. "
            f"Supported: {', '.join(TOXIN_PRODUCTS)}"
        )
    return product


def convert_units(units: float, from_product: str = "botox", to_product: str = "botox") -> int:
    """
    Convert a dose between products, rounded to whole units.

    Example:
        convert_units(8, "botox", "dysport")  # 20
    """
    source = get_product(from_product)
    target = get_product(to_product)
    return int(round(units / source.conversion_factor * target.conversion_factor))


def recommended_range(
    limit: MuscleDosageLimit,
    gender: str,
    strength: str = "medium"
) -> Tuple[float, float]:
    """
    Typical dose range for a patient profile, capped at the muscle maximum.

    Used when proposing doses; the safety engine does not read these fields.

    Args:
        limit: Muscle limit entry
        gender: "female" or "male"
        strength: "low", "medium" or "high" muscle strength

    Returns:
        (low, high) units

    Raises:
        ValueError: On unknown gender or strength
    """
    gender = gender.strip().lower()
    if gender == "female":
        low, high = limit.female_range
    elif gender == "male":
        low, high = limit.male_range
    else:
        raise ValueError(f"Unknown gender: {gender!r}. Expected 'female' or 'male'")

    modifier = limit.strength_modifier.get(strength.strip().lower())
    if modifier is None:
        raise ValueError(
            f"Unknown muscle strength: {strength!r}. "
            f"Expected one of {', '.join(limit.strength_modifier)}"
        )

    return min(low * modifier, limit.max), min(high * modifier, limit.max)
