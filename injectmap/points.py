"""
Injection points.

An InjectionPoint is expressed in template space only: x and y are
percentages (0-100) of the standardized generic face, never photo pixels or
3D coordinates. The mappers convert on demand and nothing they produce is
stored back on the point.

Points are immutable; edits (dosage changes, manual moves) produce new
points via ``dataclasses.replace`` so that history snapshots stay valid.
"""

import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class Depth(str, Enum):
    SUPERFICIAL = "superficial"
    DEEP = "deep"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Lower bounds of the confidence tiers shown next to AI-proposed points.
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5


@dataclass(frozen=True)
class InjectionPoint:
    """
    One proposed or manually placed injection.

    Attributes:
        id: Stable identifier
        muscle: Muscle name as supplied (canonical id or display alias)
        x: Template-relative horizontal position, 0-100 (50 = midline)
        y: Template-relative vertical position, 0-100 (0 = top)
        depth: Superficial or deep injection
        dosage: Units (U), non-negative integer
        confidence: Proposal confidence 0-1, None for manual points
        notes: Free text
    """
    id: str
    muscle: str
    x: float
    y: float
    depth: Depth = Depth.SUPERFICIAL
    dosage: int = 0
    confidence: Optional[float] = None
    notes: Optional[str] = None

    @property
    def x_fraction(self) -> float:
        return self.x / 100.0

    @property
    def y_fraction(self) -> float:
        return self.y / 100.0

    def with_dosage(self, dosage: int) -> "InjectionPoint":
        return replace(self, dosage=max(0, int(dosage)))

    def moved_to(self, x: float, y: float) -> "InjectionPoint":
        return replace(self, x=x, y=y)

    @classmethod
    def create(
        cls,
        muscle: str,
        x: float,
        y: float,
        depth: Depth = Depth.SUPERFICIAL,
        dosage: int = 0,
        confidence: Optional[float] = None,
        notes: Optional[str] = None
    ) -> "InjectionPoint":
        """New point with a freshly generated id (manual placement)."""
        return cls(
            id=uuid.uuid4().hex,
            muscle=muscle,
            x=x,
            y=y,
            depth=depth,
            dosage=dosage,
            confidence=confidence,
            notes=notes,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InjectionPoint":
        """
        Build a point from the JSON shape used by the proposal service and
        the external store.

        Args:
            data: {"id", "muscle", "x", "y", "depth", "dosage",
                   "confidence"?, "notes"?}. A missing id is generated.

        Returns:
            InjectionPoint

        Raises:
            ValueError: If required fields are missing or not numeric
        """
        try:
            muscle = str(data["muscle"])
            x = float(data["x"])
            y = float(data["y"])
        except KeyError as e:
            raise ValueError(f"Injection point missing field {e.args[0]!r}: {data!r}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Injection point has non-numeric coordinates: {data!r}") from e

        try:
            depth = Depth(str(data.get("depth", Depth.SUPERFICIAL.value)).lower())
        except ValueError:
            raise ValueError(f"Invalid depth {data.get('depth')!r}; expected 'superficial' or 'deep'")

        try:
            dosage = int(round(float(data.get("dosage", 0) or 0)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid dosage {data.get('dosage')!r}") from e

        confidence = data.get("confidence")
        if confidence is not None:
            try:
                confidence = float(confidence)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid confidence {confidence!r}") from e
            if not 0.0 <= confidence <= 1.0:
                raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")

        return cls(
            id=str(data.get("id") or uuid.uuid4().hex),
            muscle=muscle,
            x=x,
            y=y,
            depth=depth,
            dosage=max(0, dosage),
            confidence=confidence,
            notes=data.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "muscle": self.muscle,
            "x": self.x,
            "y": self.y,
            "depth": self.depth.value,
            "dosage": self.dosage,
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.notes is not None:
            data["notes"] = self.notes
        return data


def format_number(value: float) -> str:
    """Whole numbers without a decimal part ("13", not "13.0"), others as-is."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


def confidence_level(confidence: Optional[float]) -> Optional[ConfidenceLevel]:
    """Tier a proposal confidence score (None for manual points)."""
    if confidence is None:
        return None
    if confidence >= HIGH_CONFIDENCE:
        return ConfidenceLevel.HIGH
    if confidence >= MEDIUM_CONFIDENCE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
