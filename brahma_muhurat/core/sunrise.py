# brahma_muhurat/core/sunrise.py
"""
Sunrise resolver.

Runs the engine's tier strategy and, at maximum precision only, subtracts one
more humidity-aware refraction time correction from the refraction model. The
other tiers already carry their own (coarser) corrections and get nothing more.

Polar days and nights never raise: the estimate is the engine's closest
approach (solar midnight / noon) with `polar` set.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from brahma_muhurat.core.constants import STD_HUMIDITY, STD_PRESSURE_HPA, STD_TEMPERATURE_C
from brahma_muhurat.core.refraction import RefractionModel
from brahma_muhurat.core.solar import PrecisionTier, SolarPositionEngine
from brahma_muhurat.core.timescales import LocalDay, local_date_of, local_day_bounds, resolve_timezone
from brahma_muhurat.core.validators import validate_atmosphere, validate_coordinates, validate_elevation

__all__ = ["SunriseResolution", "SunriseResolver"]


@dataclass(frozen=True)
class SunriseResolution:
    instant: datetime
    tier: PrecisionTier
    tier_used: PrecisionTier
    declination: float
    polar: Optional[str] = None
    degraded: bool = False
    degraded_reason: Optional[str] = None
    corrections: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instant": self.instant.isoformat(),
            "tier": self.tier.value,
            "tier_used": self.tier_used.value,
            "declination": self.declination,
            "polar": self.polar,
            "degraded": self.degraded,
            "degraded_reason": self.degraded_reason,
            "corrections": dict(self.corrections),
        }


class SunriseResolver:
    def __init__(self, engine: SolarPositionEngine, refraction: RefractionModel):
        self.engine = engine
        self.refraction = refraction

    def calculate_sunrise(
        self,
        latitude: Any,
        longitude: Any,
        elevation: Any,
        date: Any,
        timezone: Any,
        pressure: Any = STD_PRESSURE_HPA,
        temperature: Any = STD_TEMPERATURE_C,
        humidity: Any = STD_HUMIDITY,
    ) -> SunriseResolution:
        """Validate, pin the local calendar day in `timezone`, then resolve."""
        lat, lon = validate_coordinates(latitude, longitude)
        elev = validate_elevation(elevation)
        p, t, rh = validate_atmosphere(pressure, temperature, humidity)
        tz = resolve_timezone(timezone)
        day = local_day_bounds(local_date_of(date, tz), tz)
        return self.resolve(lat, lon, elev, day, p, t, rh)

    def resolve(
        self,
        latitude: float,
        longitude: float,
        elevation: float,
        day: LocalDay,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
        humidity: float = STD_HUMIDITY,
    ) -> SunriseResolution:
        est = self.engine.sunrise(latitude, longitude, elevation, day, pressure, temperature)
        instant = est.instant
        corrections = dict(est.corrections)
        if self.engine.tier is PrecisionTier.MAXIMUM:
            corrected = self.refraction.apply_sunrise_correction(instant, latitude, pressure, temperature, humidity)
            corrections["humidity_refraction"] = (corrected - instant).total_seconds()
            instant = corrected
        return SunriseResolution(
            instant=instant,
            tier=self.engine.tier,
            tier_used=est.tier_used,
            declination=est.declination,
            polar=est.polar,
            degraded=est.degraded,
            degraded_reason=est.degraded_reason,
            corrections=corrections,
        )
