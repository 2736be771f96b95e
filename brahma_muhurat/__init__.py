"""Brahma Muhurat: sunrise-anchored pre-dawn window with precision-tiered solar astronomy."""
from brahma_muhurat.version import VERSION as __version__
from brahma_muhurat.core.calculator import BrahmaMuhuratCalculator
from brahma_muhurat.core.muhurat import MuhuratError, TraditionType
from brahma_muhurat.core.refraction import RefractionModelName
from brahma_muhurat.core.solar import PrecisionTier
from brahma_muhurat.core.validators import CoordinateTypeError, ValidationError

__all__ = [
    "__version__",
    "BrahmaMuhuratCalculator",
    "MuhuratError",
    "TraditionType",
    "RefractionModelName",
    "PrecisionTier",
    "CoordinateTypeError",
    "ValidationError",
]
