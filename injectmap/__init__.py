"""
injectmap - Place and check botulinum toxin injection points on a face.

This package takes injection points proposed on a generic template face and:
- Places them on the patient's photo using detected facial anchors
- Places them on a canonical 3D face surface with depth needles
- Checks zone placement, plan consistency and dosage safety limits

Example usage:
    from injectmap import TreatmentPlan, AnchorIngest, fit_image_rect

    plan = TreatmentPlan.from_json("plan.json")
    plan.set_photo(*AnchorIngest.from_json("landmarks.json"))
    pixels = plan.map_to_photo(fit_image_rect((1200, 1600), (600, 800)))
    for check in plan.safety_checks():
        print(check.message)
"""

__version__ = "0.1.0"

from .anchors import AnchorIngest, FaceAnchors, FaceBox, Point2D
from .config import Config
from .coordinates import ImageRect, fit_image_rect
from .dosage import AlertLevel, DosageSafetyEngine, SafetyCheck, summarize_dosage
from .history import PointHistory
from .photo import PhotoMapper, standard_to_image
from .pipeline import TreatmentPlan
from .points import Depth, InjectionPoint
from .surface import SurfaceMapper
from .validation import ZoneCheck, ZoneValidator, check_anatomical_consistency, validate_point
from .zones import AnatomicalZone, Muscle, classify_muscle, resolve_muscle

__all__ = [
    "AlertLevel",
    "AnatomicalZone",
    "AnchorIngest",
    "Config",
    "Depth",
    "DosageSafetyEngine",
    "FaceAnchors",
    "FaceBox",
    "ImageRect",
    "InjectionPoint",
    "Muscle",
    "PhotoMapper",
    "Point2D",
    "PointHistory",
    "SafetyCheck",
    "SurfaceMapper",
    "TreatmentPlan",
    "ZoneCheck",
    "ZoneValidator",
    "check_anatomical_consistency",
    "classify_muscle",
    "fit_image_rect",
    "resolve_muscle",
    "standard_to_image",
    "summarize_dosage",
    "validate_point",
]
