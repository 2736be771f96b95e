# brahma_muhurat/core/calculator.py
# -----------------------------------------------------------------------------
# BrahmaMuhuratCalculator: composition root for one configuration
#
#   precision        → SolarPositionEngine (+ SunriseResolver)
#   refraction_model → RefractionModel
#   tradition        → MuhuratWindowCalculator
#
# Settings are fixed at construction. Every call validates its inputs before
# any astronomy runs and builds its result from scratch; nothing is cached on
# the instance. Degraded results and batch failures go to the observer.
# -----------------------------------------------------------------------------
from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from brahma_muhurat.core import geo
from brahma_muhurat.core.constants import STD_HUMIDITY, STD_PRESSURE_HPA, STD_TEMPERATURE_C
from brahma_muhurat.core.ephemeris_adapter import EphemerisAdapter
from brahma_muhurat.core.muhurat import (
    TRADITION_INFO,
    MuhuratError,
    MuhuratWindowCalculator,
    spiritual_metrics,
)
from brahma_muhurat.core.refraction import MODEL_INFO, RefractionModel
from brahma_muhurat.core.solar import PRECISION_INFO, PrecisionTier, SolarEvent, SolarPositionEngine
from brahma_muhurat.core.sunrise import SunriseResolution, SunriseResolver
from brahma_muhurat.core.timescales import (
    LocalDay,
    format_datetime,
    format_duration,
    format_time,
    local_date_of,
    local_day_bounds,
    resolve_timezone,
    supported_timezones,
    timezone_name,
)
from brahma_muhurat.core.validators import (
    ValidationError,
    coerce_number,
    validate_altitude,
    validate_atmosphere,
    validate_coordinates,
    validate_elevation,
)
from brahma_muhurat.utils.config import CalculatorSettings
from brahma_muhurat.utils.observability import CalculationObserver, LoggingObserver
from brahma_muhurat.version import VERSION

__all__ = ["BrahmaMuhuratCalculator", "BATCH_ITEM_ERRORS"]

# Per-item failures a batch absorbs; anything else is a bug and propagates.
BATCH_ITEM_ERRORS = (ValidationError, MuhuratError, ValueError, TypeError, ArithmeticError)


def _time_block(instant: datetime, tz) -> Dict[str, str]:
    return {
        "time": instant.isoformat(),
        "formatted": format_datetime(instant, tz),
        "local_time": format_time(instant, tz),
    }


class _Inputs:
    """Validated request values shared by the calculation operations."""
    __slots__ = ("latitude", "longitude", "elevation", "tz", "day", "pressure", "temperature", "humidity")

    def __init__(self, params: Mapping[str, Any]):
        if not isinstance(params, Mapping):
            raise TypeError("params must be a mapping")
        self.latitude, self.longitude = validate_coordinates(params.get("latitude"), params.get("longitude"))
        elevation = params.get("elevation")
        self.elevation = validate_elevation(0.0 if elevation is None else elevation)
        self.pressure, self.temperature, self.humidity = validate_atmosphere(
            STD_PRESSURE_HPA if params.get("pressure") is None else params["pressure"],
            STD_TEMPERATURE_C if params.get("temperature") is None else params["temperature"],
            STD_HUMIDITY if params.get("humidity") is None else params["humidity"],
        )
        self.tz = resolve_timezone(params.get("timezone"))
        if params.get("date") is None:
            raise ValidationError({"loc": ["date"], "msg": "date is required", "type": "value_error"})
        self.day: LocalDay = local_day_bounds(local_date_of(params["date"], self.tz), self.tz)

    def location(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "elevation": self.elevation,
            "timezone": timezone_name(self.tz),
        }

    def atmosphere(self) -> Dict[str, float]:
        return {"pressure": self.pressure, "temperature": self.temperature, "humidity": self.humidity}


class BrahmaMuhuratCalculator:
    """
    Brahma Muhurat for a place and date.

    >>> calc = BrahmaMuhuratCalculator(precision="high", tradition="standard")
    >>> calc.calculate({"latitude": 25.32, "longitude": 83.01, "date": "2024-02-18",
    ...                 "timezone": "Asia/Kolkata"})["muhurat"]["duration"]["minutes"]
    96
    """

    def __init__(
        self,
        precision: Any = PrecisionTier.HIGH,
        tradition: Any = "standard",
        refraction_model: Any = "bennett",
        observer: Optional[CalculationObserver] = None,
        ephemeris: Optional[EphemerisAdapter] = None,
    ):
        self.settings = CalculatorSettings.from_mapping(
            {"precision": precision, "tradition": tradition, "refraction_model": refraction_model}
        )
        self.observer: CalculationObserver = observer if observer is not None else LoggingObserver()
        self.engine = SolarPositionEngine(self.settings.precision, ephemeris=ephemeris)
        self.refraction = RefractionModel(self.settings.refraction_model)
        self.resolver = SunriseResolver(self.engine, self.refraction)
        self.window = MuhuratWindowCalculator(self.settings.tradition)
        self.observer.calculator_created(self.settings)

    @classmethod
    def from_settings(
        cls,
        settings: CalculatorSettings,
        observer: Optional[CalculationObserver] = None,
        ephemeris: Optional[EphemerisAdapter] = None,
    ) -> "BrahmaMuhuratCalculator":
        return cls(settings.precision, settings.tradition, settings.refraction_model, observer, ephemeris)

    @property
    def precision(self) -> PrecisionTier:
        return self.settings.precision

    # ───────────────────────── internals ─────────────────────────

    def _resolve(self, inp: _Inputs) -> SunriseResolution:
        res = self.resolver.resolve(
            inp.latitude, inp.longitude, inp.elevation, inp.day,
            inp.pressure, inp.temperature, inp.humidity,
        )
        if res.degraded:
            self.observer.degraded(
                "sunrise", res.degraded_reason or "fallback",
                latitude=inp.latitude, longitude=inp.longitude, date=inp.day.day.isoformat(),
            )
        return res

    def _sunrise_block(self, inp: _Inputs, res: SunriseResolution) -> Dict[str, Any]:
        return {**_time_block(res.instant, inp.tz), "degraded": res.degraded, "polar": res.polar}

    def _details(self, inp: _Inputs, res: SunriseResolution) -> Dict[str, Any]:
        return {
            "precision": self.settings.precision.value,
            "tier_used": res.tier_used.value,
            "refraction_model": self.settings.refraction_model.value,
            "atmospheric_conditions": inp.atmosphere(),
            "corrections": dict(res.corrections),
            "degraded": res.degraded,
            "degraded_reason": res.degraded_reason,
            "warnings": list(inp.day.warnings),
        }

    def _event_block(self, ev: SolarEvent, tz) -> Dict[str, Any]:
        return {**_time_block(ev.instant, tz), "polar": ev.polar}

    def _astronomical(self, inp: _Inputs, at: Optional[datetime] = None) -> Dict[str, Any]:
        lat, lon = inp.latitude, inp.longitude
        twilight = self.engine.twilight(lat, lon, inp.day)
        length = self.engine.day_length(lat, lon, inp.day)
        instant = at or twilight["solar_noon"].instant
        position = self.engine.calculate_solar_position(lat, lon, instant, inp.elevation)
        if position.degraded:
            self.observer.degraded("position", "ephemeris unavailable", latitude=lat, longitude=lon)
        return {
            "twilight": {name: self._event_block(ev, inp.tz) for name, ev in twilight.items()},
            "day_length": {
                "day_minutes": round(length.day_minutes, 2),
                "night_minutes": round(length.night_minutes, 2),
                "day_formatted": format_duration(length.day_minutes),
                "night_formatted": format_duration(length.night_minutes),
                "polar": length.polar,
            },
            "solar_position": {"time": instant.isoformat(), **position.to_dict()},
            "polar_region": geo.check_polar_region(lat),
        }

    # ───────────────────────── operations ─────────────────────────

    def calculate(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Full result for one date: sunrise, window, astronomy and spiritual metrics."""
        t0 = time.perf_counter()
        inp = _Inputs(params)
        res = self._resolve(inp)
        night_minutes = self.engine.day_length(inp.latitude, inp.longitude, inp.day).night_minutes
        window = self.window.calculate_window(res.instant, night_minutes)
        out = {
            "location": inp.location(),
            "date": inp.day.day.isoformat(),
            "sunrise": self._sunrise_block(inp, res),
            "muhurat": {
                "start": _time_block(window.start, inp.tz),
                "end": _time_block(window.end, inp.tz),
                "duration": {
                    "minutes": window.duration_minutes,
                    "formatted": format_duration(window.duration_minutes),
                },
                "tradition": window.tradition.value,
            },
            "astronomical_data": self._astronomical(inp, at=res.instant),
            "spiritual_metrics": spiritual_metrics(window, night_minutes),
            "calculation_details": self._details(inp, res),
        }
        self.observer.calculated("calculate", time.perf_counter() - t0, precision=self.settings.precision.value)
        return out

    def calculate_batch(self, base_params: Mapping[str, Any], dates: Sequence[Any]) -> List[Dict[str, Any]]:
        """One entry per date, in order; failing dates become {"date", "error"}."""
        if not isinstance(dates, (list, tuple)):
            raise TypeError("dates must be a list or tuple")
        results: List[Dict[str, Any]] = []
        for index, d in enumerate(dates):
            try:
                results.append(self.calculate({**base_params, "date": d}))
            except BATCH_ITEM_ERRORS as e:
                self.observer.batch_item_failed(index, d, e)
                results.append({"date": d if isinstance(d, str) else str(d), "error": str(e)})
        return results

    def calculate_sunrise(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        inp = _Inputs(params)
        res = self._resolve(inp)
        return {
            "location": inp.location(),
            "date": inp.day.day.isoformat(),
            "sunrise": self._sunrise_block(inp, res),
            "calculation_details": self._details(inp, res),
        }

    def get_astronomical_data(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        inp = _Inputs(params)
        return {"location": inp.location(), "date": inp.day.day.isoformat(), **self._astronomical(inp)}

    def calculate_refraction(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        altitude = validate_altitude(params.get("altitude"))
        p, t, rh = validate_atmosphere(
            coerce_number(params.get("pressure"), "pressure", STD_PRESSURE_HPA),
            coerce_number(params.get("temperature"), "temperature", STD_TEMPERATURE_C),
            coerce_number(params.get("humidity"), "humidity", STD_HUMIDITY),
        )
        arcmin = self.refraction.calculate_refraction(altitude, p, t, rh)
        return {
            "altitude": altitude,
            "refraction": {"arcminutes": arcmin, "arcseconds": arcmin * 60.0, "degrees": arcmin / 60.0},
            "atmospheric_conditions": {"pressure": p, "temperature": t, "humidity": rh},
            "model": self.settings.refraction_model.value,
        }

    # ───────────────────────── descriptions ─────────────────────────

    def tradition_info(self) -> Dict[str, Any]:
        return {
            "current": self.window.info(),
            "available": {k.value: dict(v) for k, v in TRADITION_INFO.items()},
        }

    def precision_info(self) -> Dict[str, Any]:
        return {
            "current": self.engine.info(),
            "available": {k.value: dict(v) for k, v in PRECISION_INFO.items()},
        }

    def refraction_info(self) -> Dict[str, Any]:
        return {
            "current": self.refraction.info(),
            "available": {k.value: dict(v) for k, v in MODEL_INFO.items()},
        }

    def library_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "name": "brahma-muhurat",
            "version": VERSION,
            "settings": self.settings.to_dict(),
            "traditions": [k.value for k in TRADITION_INFO],
            "precision_levels": [k.value for k in PRECISION_INFO],
            "refraction_models": [k.value for k in MODEL_INFO],
        }
        if self.settings.precision is PrecisionTier.MAXIMUM:
            info["ephemeris"] = self.engine.ephemeris.diagnostics()
        return info

    # ───────────────────────── static helpers ─────────────────────────

    @staticmethod
    def format_coordinates(latitude: Any, longitude: Any, fmt: str = "decimal") -> str:
        return geo.format_coordinates(latitude, longitude, fmt)

    @staticmethod
    def validate_coordinates(latitude: Any, longitude: Any) -> bool:
        validate_coordinates(latitude, longitude)
        return True

    @staticmethod
    def supported_timezones() -> List[str]:
        return supported_timezones()
