"""
Anatomical zones and the muscle -> zone classifier.

Every component that needs to know where a muscle lives (the 3D surface
mapper, the zone validator, the dosage engine) resolves muscle names through
this module, so a given muscle lands in the same zone everywhere.

Muscles are identified by a fixed canonical id (the ``Muscle`` enum). Free
text coming from the proposal service or from the UI is normalized and looked
up in an explicit alias table; there is no keyword or substring matching.

Zones:
    glabella     procerus, corrugators
    frontalis    forehead
    periorbital  orbicularis oculi (bilateral)
    nasal        nasalis ("bunny lines")
    perioral     orbicularis oris, depressor anguli, levator labii, zygomatici
    mentalis     chin
    masseter     jaw angle (bilateral)
"""

import logging
import unicodedata
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


class AnatomicalZone(str, Enum):
    """Facial region grouping muscles that share a template rectangle."""

    GLABELLA = "glabella"
    FRONTALIS = "frontalis"
    PERIORBITAL = "periorbital"
    NASAL = "nasal"
    PERIORAL = "perioral"
    MENTALIS = "mentalis"
    MASSETER = "masseter"
    UNKNOWN = "unknown"


class Muscle(str, Enum):
    """Canonical muscle identifiers used as keys in every table."""

    PROCERUS = "procerus"
    CORRUGATOR = "corrugator"
    CORRUGATOR_LEFT = "corrugator_left"
    CORRUGATOR_RIGHT = "corrugator_right"
    FRONTALIS = "frontalis"
    ORBICULARIS_OCULI = "orbicularis_oculi"
    ORBICULARIS_OCULI_LEFT = "orbicularis_oculi_left"
    ORBICULARIS_OCULI_RIGHT = "orbicularis_oculi_right"
    NASALIS = "nasalis"
    LEVATOR_LABII = "levator_labii"
    ZYGOMATICUS_MAJOR = "zygomaticus_major"
    ZYGOMATICUS_MINOR = "zygomaticus_minor"
    ORBICULARIS_ORIS = "orbicularis_oris"
    DEPRESSOR_ANGULI = "depressor_anguli"
    MENTALIS = "mentalis"
    MASSETER = "masseter"


# Zones mirrored across the facial midline.
BILATERAL_ZONES = frozenset({AnatomicalZone.PERIORBITAL, AnatomicalZone.MASSETER})


MUSCLE_ZONES: Mapping[Muscle, AnatomicalZone] = MappingProxyType({
    Muscle.PROCERUS: AnatomicalZone.GLABELLA,
    Muscle.CORRUGATOR: AnatomicalZone.GLABELLA,
    Muscle.CORRUGATOR_LEFT: AnatomicalZone.GLABELLA,
    Muscle.CORRUGATOR_RIGHT: AnatomicalZone.GLABELLA,
    Muscle.FRONTALIS: AnatomicalZone.FRONTALIS,
    Muscle.ORBICULARIS_OCULI: AnatomicalZone.PERIORBITAL,
    Muscle.ORBICULARIS_OCULI_LEFT: AnatomicalZone.PERIORBITAL,
    Muscle.ORBICULARIS_OCULI_RIGHT: AnatomicalZone.PERIORBITAL,
    Muscle.NASALIS: AnatomicalZone.NASAL,
    Muscle.LEVATOR_LABII: AnatomicalZone.PERIORAL,
    Muscle.ZYGOMATICUS_MAJOR: AnatomicalZone.PERIORAL,
    Muscle.ZYGOMATICUS_MINOR: AnatomicalZone.PERIORAL,
    Muscle.ORBICULARIS_ORIS: AnatomicalZone.PERIORAL,
    Muscle.DEPRESSOR_ANGULI: AnatomicalZone.PERIORAL,
    Muscle.MENTALIS: AnatomicalZone.MENTALIS,
    Muscle.MASSETER: AnatomicalZone.MASSETER,
})


# Display names emitted by the proposal service and typed by practitioners.
# Keys are already normalized (see normalize_name).
MUSCLE_ALIASES: Mapping[str, Muscle] = MappingProxyType({
    "procero": Muscle.PROCERUS,
    "corrugador": Muscle.CORRUGATOR,
    "corrugadores": Muscle.CORRUGATOR,
    "corrugador_esq": Muscle.CORRUGATOR_LEFT,
    "corrugador_esquerdo": Muscle.CORRUGATOR_LEFT,
    "corrugador_dir": Muscle.CORRUGATOR_RIGHT,
    "corrugador_direito": Muscle.CORRUGATOR_RIGHT,
    "frontal": Muscle.FRONTALIS,
    "orbicular_olhos": Muscle.ORBICULARIS_OCULI,
    "orbicular_do_olho": Muscle.ORBICULARIS_OCULI,
    "orbicular_esq": Muscle.ORBICULARIS_OCULI_LEFT,
    "orbicular_olho_esq": Muscle.ORBICULARIS_OCULI_LEFT,
    "orbicular_do_olho_esq": Muscle.ORBICULARIS_OCULI_LEFT,
    "orbicular_dir": Muscle.ORBICULARIS_OCULI_RIGHT,
    "orbicular_olho_dir": Muscle.ORBICULARIS_OCULI_RIGHT,
    "orbicular_do_olho_dir": Muscle.ORBICULARIS_OCULI_RIGHT,
    "nasal": Muscle.NASALIS,
    "levantador_do_labio": Muscle.LEVATOR_LABII,
    "levantador_labio": Muscle.LEVATOR_LABII,
    "zigomatico_maior": Muscle.ZYGOMATICUS_MAJOR,
    "zigomatico_menor": Muscle.ZYGOMATICUS_MINOR,
    "orbicular_da_boca": Muscle.ORBICULARIS_ORIS,
    "depressor_do_angulo": Muscle.DEPRESSOR_ANGULI,
    "mentual": Muscle.MENTALIS,
})


MUSCLE_LABELS: Mapping[Muscle, str] = MappingProxyType({
    Muscle.PROCERUS: "Prócero",
    Muscle.CORRUGATOR_LEFT: "Corrugador Esq.",
    Muscle.CORRUGATOR_RIGHT: "Corrugador Dir.",
    Muscle.CORRUGATOR: "Corrugadores",
    Muscle.FRONTALIS: "Frontal",
    Muscle.ORBICULARIS_OCULI_LEFT: "Orbicular Esq.",
    Muscle.ORBICULARIS_OCULI_RIGHT: "Orbicular Dir.",
    Muscle.ORBICULARIS_OCULI: "Orbicular Olhos",
    Muscle.NASALIS: "Nasal",
    Muscle.MENTALIS: "Mentual",
    Muscle.MASSETER: "Masseter",
    Muscle.DEPRESSOR_ANGULI: "Depressor do Ângulo",
    Muscle.ORBICULARIS_ORIS: "Orbicular da Boca",
    Muscle.LEVATOR_LABII: "Levantador do Lábio",
    Muscle.ZYGOMATICUS_MAJOR: "Zigomático Maior",
    Muscle.ZYGOMATICUS_MINOR: "Zigomático Menor",
})


# Analytics / report grouping. Coarser than zones: chin and masseter are
# reported together as the lower third.
MUSCLE_REGIONS: Mapping[str, List[Muscle]] = MappingProxyType({
    "Glabelar": [Muscle.PROCERUS, Muscle.CORRUGATOR_LEFT, Muscle.CORRUGATOR_RIGHT, Muscle.CORRUGATOR],
    "Frontal": [Muscle.FRONTALIS],
    "Periorbital": [Muscle.ORBICULARIS_OCULI_LEFT, Muscle.ORBICULARIS_OCULI_RIGHT, Muscle.ORBICULARIS_OCULI],
    "Nasal": [Muscle.NASALIS],
    "Perioral": [
        Muscle.ORBICULARIS_ORIS,
        Muscle.LEVATOR_LABII,
        Muscle.DEPRESSOR_ANGULI,
        Muscle.ZYGOMATICUS_MAJOR,
        Muscle.ZYGOMATICUS_MINOR,
    ],
    "Terço Inferior": [Muscle.MENTALIS, Muscle.MASSETER],
})

# Sided muscle -> unsided counterpart, used for pairing left/right points.
_SIDE_PAIRS: Dict[Muscle, Muscle] = {
    Muscle.CORRUGATOR_LEFT: Muscle.CORRUGATOR,
    Muscle.CORRUGATOR_RIGHT: Muscle.CORRUGATOR,
    Muscle.ORBICULARIS_OCULI_LEFT: Muscle.ORBICULARIS_OCULI,
    Muscle.ORBICULARIS_OCULI_RIGHT: Muscle.ORBICULARIS_OCULI,
}


def normalize_name(name: str) -> str:
    """Case-fold, strip accents and punctuation, join words with underscores."""
    text = unicodedata.normalize("NFKD", str(name))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.casefold().strip()
    for sep in (" ", "-", "."):
        text = text.replace(sep, "_")
    parts = [p for p in text.split("_") if p]
    return "_".join(parts)


def resolve_muscle(name) -> Optional[Muscle]:
    """
    Resolve a muscle name to its canonical identifier.

    Accepts a ``Muscle`` member, a canonical id ("corrugator_left"), or one of
    the known display aliases ("Corrugador Esq."). Matching is exact after
    normalization.

    Args:
        name: Muscle name or ``Muscle``

    Returns:
        Canonical ``Muscle``, or None if the name is not recognized
    """
    if isinstance(name, Muscle):
        return name
    if name is None:
        return None
    key = normalize_name(name)
    try:
        return Muscle(key)
    except ValueError:
        return MUSCLE_ALIASES.get(key)


def classify_muscle(
    name,
    fallback: AnatomicalZone = AnatomicalZone.GLABELLA
) -> AnatomicalZone:
    """
    Assign a muscle to its anatomical zone.

    Args:
        name: Muscle name or ``Muscle``
        fallback: Zone returned for unrecognized names. Defaults to glabella,
            which is what the planner has always done; pass
            ``AnatomicalZone.UNKNOWN`` to mark such points as unclassified.

    Returns:
        AnatomicalZone for the muscle
    """
    muscle = resolve_muscle(name)
    if muscle is None:
        logger.debug("Unknown muscle %r, using fallback zone %s", name, fallback.value)
        return fallback
    return MUSCLE_ZONES[muscle]


def is_bilateral(zone: AnatomicalZone) -> bool:
    return zone in BILATERAL_ZONES


def muscle_label(name) -> str:
    """Display label for a muscle; unknown names are returned unchanged."""
    muscle = resolve_muscle(name)
    if muscle is None:
        return str(name)
    return MUSCLE_LABELS.get(muscle, muscle.value)


def region_of(name) -> Optional[str]:
    """Analytics region ("Glabelar", "Perioral", ...) for a muscle."""
    muscle = resolve_muscle(name)
    if muscle is None:
        return None
    for region, muscles in MUSCLE_REGIONS.items():
        if muscle in muscles:
            return region
    return None


def unsided(name) -> Optional[Muscle]:
    """Drop the left/right suffix of a sided muscle ("corrugator_left" -> corrugator)."""
    muscle = resolve_muscle(name)
    if muscle is None:
        return None
    return _SIDE_PAIRS.get(muscle, muscle)
