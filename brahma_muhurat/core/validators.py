# brahma_muhurat/core/validators.py
from __future__ import annotations

import math
import numbers
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from brahma_muhurat.core.constants import (
    LAT_MIN, LAT_MAX, LON_MIN, LON_MAX,
    ELEV_MIN_M, ELEV_MAX_M,
    PRESSURE_MIN_HPA, PRESSURE_MAX_HPA,
    TEMP_MIN_C, TEMP_MAX_C,
)

__all__ = [
    "ValidationError",
    "CoordinateTypeError",
    "validate_coordinates",
    "validate_elevation",
    "validate_atmosphere",
    "validate_altitude",
    "parse_enum",
    "coerce_number",
]

E = TypeVar("E", bound=Enum)

# ───────────────────────── errors ─────────────────────────

class ValidationError(ValueError):
    """Structured validator error (has .errors() with loc/msg/type entries)."""
    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
            super().__init__(details)
        elif isinstance(details, dict):
            self._details = [details]
            super().__init__(details.get("msg", "validation_error"))
        elif isinstance(details, list):
            self._details = details
            super().__init__(self._details[0]["msg"] if self._details else "validation_error")
        else:
            self._details = [{"loc": [], "msg": "validation_error", "type": "value_error"}]
            super().__init__("validation_error")

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


class CoordinateTypeError(ValidationError, TypeError):
    """A coordinate that is not a finite-or-infinite real number (NaN included)."""


# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[str] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}


def _is_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, numbers.Real):
        return False
    return not math.isnan(float(v))


def _require_number(v: Any, field: str) -> float:
    if not _is_number(v):
        raise CoordinateTypeError(_err(field, f"{field} must be a number, got {v!r}", "type_error"))
    return float(v)


def _require_range(x: float, lo: float, hi: float, field: str, unit: str = "") -> float:
    if not (lo <= x <= hi):
        suffix = f" {unit}" if unit else ""
        raise ValidationError(_err(field, f"{field} must be between {lo:g} and {hi:g}{suffix}, got {x:g}"))
    return x


def coerce_number(v: Any, field: str, default: Optional[float] = None) -> Optional[float]:
    """
    Lenient numeric coercion for request payloads ('12.5' → 12.5).
    None returns `default`; anything unparseable raises ValidationError.
    """
    if v is None:
        return default
    if isinstance(v, bool):
        raise ValidationError(_err(field, f"{field} must be a number", "type_error"))
    if isinstance(v, numbers.Real):
        return float(v)
    if isinstance(v, str):
        try:
            x = float(v.strip())
        except ValueError:
            raise ValidationError(_err(field, f"{field} must be a number, got {v!r}", "type_error"))
        if x != x:
            raise ValidationError(_err(field, f"{field} must be a number, got {v!r}", "type_error"))
        return x
    raise ValidationError(_err(field, f"{field} must be a number", "type_error"))


# ───────────────────────── public validators ─────────────────────────

def validate_coordinates(latitude: Any, longitude: Any) -> Tuple[float, float]:
    """
    Validate a (latitude, longitude) pair in decimal degrees.

    Raises CoordinateTypeError for non-numeric input (NaN and bools included),
    ValidationError when outside [-90, 90] × [-180, 180]. Bounds are inclusive.
    """
    lat = _require_number(latitude, "latitude")
    lon = _require_number(longitude, "longitude")
    _require_range(lat, LAT_MIN, LAT_MAX, "latitude", "degrees")
    _require_range(lon, LON_MIN, LON_MAX, "longitude", "degrees")
    return lat, lon


def validate_elevation(elevation: Any) -> float:
    """Elevation in metres, inclusive range [-500, 9000]."""
    elev = _require_number(elevation, "elevation")
    return _require_range(elev, ELEV_MIN_M, ELEV_MAX_M, "elevation", "meters")


def validate_atmosphere(pressure: Any, temperature: Any, humidity: Any) -> Tuple[float, float, float]:
    """Pressure hPa [500, 1100], temperature °C [-50, 50], relative humidity [0, 1]."""
    errs: List[Dict[str, Any]] = []
    out: List[float] = []
    for value, field, lo, hi, unit in (
        (pressure, "pressure", PRESSURE_MIN_HPA, PRESSURE_MAX_HPA, "hPa"),
        (temperature, "temperature", TEMP_MIN_C, TEMP_MAX_C, "°C"),
        (humidity, "humidity", 0.0, 1.0, ""),
    ):
        if not _is_number(value):
            errs.append(_err(field, f"{field} must be a number, got {value!r}", "type_error"))
            continue
        x = float(value)
        if not (lo <= x <= hi):
            suffix = f" {unit}" if unit else ""
            errs.append(_err(field, f"{field} must be between {lo:g} and {hi:g}{suffix}, got {x:g}"))
            continue
        out.append(x)
    if errs:
        raise ValidationError(errs)
    return out[0], out[1], out[2]


def validate_altitude(altitude: Any) -> float:
    alt = _require_number(altitude, "altitude")
    return _require_range(alt, -90.0, 90.0, "altitude", "degrees")


def parse_enum(value: Any, enum_cls: Type[E], field: str) -> E:
    """Accept an enum member or its case-insensitive string value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_cls:
            if member.value == key:
                return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(_err(field, f"{field} must be one of: {allowed}; got {value!r}"))
