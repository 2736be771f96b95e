# brahma_muhurat/core/refraction.py
"""
Atmospheric refraction models.

Three selectable formulas, all returning refraction in arc-minutes for an
*apparent* altitude in degrees:

  bennett      R = cot(h + 7.31/(h + 4.4))                       (Bennett 1982)
  saemundsson  R = 1.02 / tan(h + 10.3/(h + 5.11))               (Sæmundsson 1986)
  rigorous     Bennett's altitude law scaled by the site refractivity (n − 1)
               relative to the reference state, with n from dry-air and
               water-vapour terms (Magnus saturation pressure)

bennett / saemundsson are scaled by (P / 1013.25) · (283.15 / (273.15 + T)).
Altitudes are clamped to ≥ 0.01°; below −2° refraction is extrapolated linearly
from the model's horizon value: R0 + h · (R0 / 34).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict

from brahma_muhurat.core.constants import (
    EARTH_DEG_PER_SECOND,
    HORIZON_REFRACTION_ARCMIN,
    KELVIN,
    STD_HUMIDITY,
    STD_PRESSURE_HPA,
    STD_TEMPERATURE_C,
    SUNRISE_ALTITUDE_DEG,
    cosd,
    sind,
    tand,
)
from brahma_muhurat.core.timescales import day_of_year
from brahma_muhurat.core.validators import (
    parse_enum,
    validate_altitude,
    validate_atmosphere,
)

__all__ = [
    "RefractionModelName",
    "RefractionModel",
    "refractive_index",
    "saturation_vapor_pressure",
    "simplified_declination",
    "refraction_to_time_correction",
    "parallactic_angle",
    "validate_refraction_inputs",
    "MODEL_INFO",
]

_MIN_ALT_DEG = 0.01
_EXTRAPOLATION_BELOW_DEG = -2.0
_REF_TEMPERATURE_K = KELVIN + 10.0          # Bennett's tabulated standard air


class RefractionModelName(str, Enum):
    BENNETT = "bennett"
    SAEMUNDSSON = "saemundsson"
    RIGOROUS = "rigorous"


MODEL_INFO: Dict[RefractionModelName, Dict[str, str]] = {
    RefractionModelName.BENNETT: {
        "name": "Bennett's Formula",
        "accuracy": "±0.1' for h > 15°, ±0.5' for h > 5°",
        "description": "Most commonly used, good general accuracy",
    },
    RefractionModelName.SAEMUNDSSON: {
        "name": "Sæmundsson's Formula",
        "accuracy": "±0.05' for h > 10°, ±0.2' for h > 1°",
        "description": "Tabulated against true altitude; slightly lower values at the horizon",
    },
    RefractionModelName.RIGOROUS: {
        "name": "Rigorous Refraction",
        "accuracy": "±0.02' for h > 5°",
        "description": "Refractive index from pressure, temperature and humidity",
    },
}


# ───────────────────────── atmosphere ─────────────────────────

def saturation_vapor_pressure(temperature_c: float) -> float:
    """Magnus formula, hPa."""
    return 6.1078 * math.exp((17.27 * temperature_c) / (temperature_c + 237.3))


def refractive_index(pressure: float, temperature_c: float, humidity: float) -> float:
    """Empirical refractive index of moist air (dry + water-vapour partial terms)."""
    t = temperature_c + KELVIN
    n_dry = 1.0 + (pressure / t) * (287.6155 + 1.62887 / t + 0.01360 / (t * t)) * 1e-6
    e = humidity * saturation_vapor_pressure(temperature_c)
    n_wet = 1.0 + (e / t) * (1792.0 - 67.2 / t) * 1e-6
    return n_dry + n_wet - 1.0


_REF_REFRACTIVITY = refractive_index(STD_PRESSURE_HPA, _REF_TEMPERATURE_K - KELVIN, STD_HUMIDITY) - 1.0


# ───────────────────────── formulas ─────────────────────────

def _weather_scale(pressure: float, temperature_c: float) -> float:
    return (pressure / STD_PRESSURE_HPA) * (_REF_TEMPERATURE_K / (KELVIN + temperature_c))


def _bennett(h: float, pressure: float, temperature_c: float, humidity: float) -> float:
    r = (1.0 / tand(h + 7.31 / (h + 4.4))) * _weather_scale(pressure, temperature_c)
    return max(r, 0.0)


def _saemundsson(h: float, pressure: float, temperature_c: float, humidity: float) -> float:
    r = (1.02 / tand(h + 10.3 / (h + 5.11))) * _weather_scale(pressure, temperature_c)
    return max(r, 0.0)


def _rigorous(h: float, pressure: float, temperature_c: float, humidity: float) -> float:
    """Bennett's altitude law scaled by site refractivity (n-1) over the reference refractivity.

    Applies at every altitude, positive ones included, so the result stays continuous
    across the horizon.
    """
    n = refractive_index(pressure, temperature_c, humidity)
    r = (1.0 / tand(h + 7.31 / (h + 4.4))) * ((n - 1.0) / _REF_REFRACTIVITY)
    return max(r, 0.0)


_FORMULAS: Dict[RefractionModelName, Callable[[float, float, float, float], float]] = {
    RefractionModelName.BENNETT: _bennett,
    RefractionModelName.SAEMUNDSSON: _saemundsson,
    RefractionModelName.RIGOROUS: _rigorous,
}


# ───────────────────────── module-level helpers ─────────────────────────

def simplified_declination(day: int) -> float:
    """Cooper's approximation, degrees. `day` is the day of year (1..366)."""
    return 23.45 * sind(360.0 * (284 + day) / 365.0)


def refraction_to_time_correction(refraction_arcmin: float, latitude: float, declination: float) -> float:
    """
    Seconds by which refraction shifts a horizon crossing:
    (R° / Earth-rate°/s) · cos δ · cos φ.
    """
    refraction_deg = refraction_arcmin / 60.0
    return (refraction_deg / EARTH_DEG_PER_SECOND) * cosd(declination) * cosd(latitude)


def parallactic_angle(latitude: float, declination: float, hour_angle: float) -> float:
    """Parallactic angle q in degrees (atan2 form, hour angle positive westward)."""
    num = sind(hour_angle)
    den = tand(latitude) * cosd(declination) - sind(declination) * cosd(hour_angle)
    return math.degrees(math.atan2(num, den))


def validate_refraction_inputs(altitude: Any, pressure: Any, temperature: Any, humidity: Any) -> None:
    validate_altitude(altitude)
    validate_atmosphere(pressure, temperature, humidity)


# ───────────────────────── model ─────────────────────────

@dataclass(frozen=True)
class RefractionModel:
    """Refraction calculator bound to one formula, chosen at construction."""
    model: RefractionModelName = RefractionModelName.BENNETT

    @classmethod
    def of(cls, model: Any) -> "RefractionModel":
        return cls(parse_enum(model, RefractionModelName, "refraction_model"))

    def calculate_refraction(
        self,
        altitude: float,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
        humidity: float = STD_HUMIDITY,
    ) -> float:
        """Refraction in arc-minutes at apparent `altitude` degrees."""
        if altitude < _EXTRAPOLATION_BELOW_DEG:
            return self._extrapolate(altitude)
        h = max(float(altitude), _MIN_ALT_DEG)
        return _FORMULAS[self.model](h, pressure, temperature, humidity)

    def _extrapolate(self, altitude: float) -> float:
        horizon = self.calculate_refraction(0.0)
        return horizon + altitude * (horizon / HORIZON_REFRACTION_ARCMIN)

    def calculate_sunrise_refraction(
        self,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
        humidity: float = STD_HUMIDITY,
    ) -> float:
        """Refraction at the standard sunrise altitude (−0.833°), arc-minutes."""
        return self.calculate_refraction(SUNRISE_ALTITUDE_DEG, pressure, temperature, humidity)

    def sunrise_time_correction(
        self,
        latitude: float,
        declination: float,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
        humidity: float = STD_HUMIDITY,
    ) -> float:
        arcmin = self.calculate_sunrise_refraction(pressure, temperature, humidity)
        return refraction_to_time_correction(arcmin, latitude, declination)

    def apply_sunrise_correction(
        self,
        sunrise: datetime,
        latitude: float,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
        humidity: float = STD_HUMIDITY,
    ) -> datetime:
        """Sunrise made earlier by the refraction time correction for its date."""
        dec = simplified_declination(day_of_year(sunrise))
        seconds = self.sunrise_time_correction(latitude, dec, pressure, temperature, humidity)
        return sunrise - timedelta(seconds=seconds)

    def info(self) -> Dict[str, str]:
        return {"model": self.model.value, **MODEL_INFO[self.model]}
