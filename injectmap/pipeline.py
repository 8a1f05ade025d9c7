"""
High-level treatment plan orchestrating all components.

This module provides the TreatmentPlan class which ties together:
- Injection points proposed upstream or placed manually
- Photo mapping against detected face anchors
- 3D surface mapping
- Zone validation, consistency checks and dosage safety checks

This is the main API for users of the library.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .anchors import AnchorIngest, FaceAnchors, FaceBox
from .config import Config
from .coordinates import ImageRect
from .dosage import DosageSafetyEngine, SafetyCheck, highest_level, summarize_dosage
from .history import PointHistory
from .photo import PhotoMapper
from .points import InjectionPoint, confidence_level
from .surface import SurfaceMapper
from .validation import ConsistencyReport, ZoneCheck, ZoneValidator
from .zones import classify_muscle, muscle_label, region_of

logger = logging.getLogger(__name__)


class TreatmentPlan:
    """
    One session's injection plan for one patient photo.

    Points live in template space and are edited through an undo/redo
    history. All mapped coordinates and checks are computed on demand from
    the current points.

    Example:
        plan = TreatmentPlan.from_json("plan.json")
        plan.set_photo(*AnchorIngest.from_json("landmarks.json"))
        pixels = plan.map_to_photo(fit_image_rect((1200, 1600), (600, 800)))
        for check in plan.safety_checks():
            print(check.message)
    """

    def __init__(
        self,
        points: Sequence[InjectionPoint] = (),
        config: Optional[Config] = None
    ):
        """
        Initialize plan.

        Args:
            points: Initial injection points
            config: Planner configuration; defaults if None
        """
        self.config = config if config is not None else Config()
        self.history = PointHistory(points)

        # Set by set_photo()
        self.anchors: Optional[FaceAnchors] = None
        self.box: Optional[FaceBox] = None

        self.surface_mapper = SurfaceMapper(self.config.surface, self.config.unknown_muscle_zone)
        self.validator = ZoneValidator(self.config)
        self.safety = DosageSafetyEngine(self.config.dosage)

    @classmethod
    def from_dicts(
        cls,
        records: Sequence[Dict[str, Any]],
        config: Optional[Config] = None
    ) -> "TreatmentPlan":
        """
        Create plan from point records in the proposal/store JSON shape.

        Raises:
            ValueError: If a record is malformed
        """
        points = [InjectionPoint.from_dict(r) for r in records]
        return cls(points, config)

    @classmethod
    def from_json(
        cls,
        filepath: Union[str, Path],
        config: Optional[Config] = None
    ) -> "TreatmentPlan":
        """
        Load a plan from JSON.

        Supported JSON formats:
        - A list of point records
        - {"points": [...]} or {"injection_points": [...]}

        Args:
            filepath: Path to JSON file
            config: Planner configuration

        Returns:
            TreatmentPlan instance

        Raises:
            ValueError: If the file does not hold a list of points
            FileNotFoundError: If file does not exist
        """
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("points", data.get("injection_points"))
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of injection points in {filepath}")

        plan = cls.from_dicts(data, config)
        logger.debug("Loaded %d point(s) from %s", len(plan.points), filepath)
        return plan

    @property
    def points(self) -> Tuple[InjectionPoint, ...]:
        return self.history.state

    def set_photo(self, anchors: Optional[FaceAnchors], box: Optional[FaceBox]) -> None:
        """Attach the detection result of the photo being annotated."""
        self.anchors = anchors
        self.box = box

    def load_anchors(self, filepath: Union[str, Path]) -> None:
        """Attach detection results stored as JSON (see AnchorIngest.from_json)."""
        self.set_photo(*AnchorIngest.from_json(filepath))

    def photo_mapper(self, rect: ImageRect) -> PhotoMapper:
        return PhotoMapper(self.anchors, self.box, rect, self.config.boundaries)

    # =========================================================================
    # Mapping
    # =========================================================================

    def map_to_photo(self, rect: ImageRect) -> Dict[str, Tuple[float, float]]:
        """
        Pixel positions of all points on the displayed photo.

        Args:
            rect: Rectangle the photo occupies on screen

        Returns:
            Dict of point id -> (px, py)
        """
        return self.photo_mapper(rect).map_points(self.points)

    def map_to_surface(self) -> Dict[str, Dict[str, Any]]:
        """
        3D positions and depth needles of all points.

        Returns:
            Dict of point id -> {"position": [X, Y, Z], "needle": {...}}
        """
        placements = {}
        for p in self.points:
            position = self.surface_mapper.point_to_surface(p)
            indicator = self.surface_mapper.depth_indicator(p)
            outer, inner = indicator.endpoints(position)
            placements[p.id] = {
                "position": position.tolist(),
                "needle": {
                    "direction": indicator.direction.tolist(),
                    "length": indicator.length,
                    "offset": indicator.offset,
                    "start": outer.tolist(),
                    "end": inner.tolist(),
                },
            }
        return placements

    # =========================================================================
    # Checks
    # =========================================================================

    def validate_zones(self) -> Dict[str, ZoneCheck]:
        return self.validator.validate_all(self.points)

    def check_consistency(self) -> ConsistencyReport:
        return self.validator.check_consistency(self.points)

    def safety_checks(self) -> List[SafetyCheck]:
        return self.safety.evaluate_points(self.points)

    def dosage_summary(self) -> Tuple[Dict[str, int], int]:
        return summarize_dosage(self.points)

    def report(
        self,
        rect: Optional[ImageRect] = None,
        include_surface: bool = False
    ) -> Dict[str, Any]:
        """
        Everything known about the plan as plain data.

        Args:
            rect: Displayed photo rectangle; adds pixel positions if given
            include_surface: Add 3D positions and depth needles

        Returns:
            JSON-serializable dict
        """
        zone_checks = self.validate_zones()
        safety = self.safety_checks()
        by_muscle, total = self.dosage_summary()

        points = []
        for p in self.points:
            entry = p.to_dict()
            entry["zone"] = classify_muscle(p.muscle, fallback=self.config.unknown_muscle_zone).value
            entry["label"] = muscle_label(p.muscle)
            entry["region"] = region_of(p.muscle)
            level = confidence_level(p.confidence)
            if level is not None:
                entry["confidence_level"] = level.value
            points.append(entry)

        report: Dict[str, Any] = {
            "points": points,
            "dosage": {
                "by_muscle": by_muscle,
                "total": total,
            },
            "zone_checks": {
                pid: {"valid": c.valid, "zone": c.zone.value, "warning": c.warning}
                for pid, c in zone_checks.items()
            },
            "consistency": self.check_consistency().to_dict(),
            "safety": {
                "level": highest_level(safety).value,
                "checks": [c.to_dict() for c in safety],
            },
        }

        if rect is not None:
            report["photo"] = {
                "anchors_detected": self.anchors is not None,
                "pixels": {pid: list(xy) for pid, xy in self.map_to_photo(rect).items()},
            }

        if include_surface:
            report["surface"] = self.map_to_surface()

        return report
