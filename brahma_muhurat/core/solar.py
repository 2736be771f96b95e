# brahma_muhurat/core/solar.py
# -----------------------------------------------------------------------------
# Solar position & horizon-crossing engine (three precision tiers)
#
#   basic    low-order mean-Sun model (mean anomaly + equation of centre,
#            fixed obliquity); crossings from the Julian-cycle transit.
#   high     IAU 2006/2000A apparent Sun via pyERFA (epv00 → ab → pnm06a,
#            GAST from gst06a, horizon from hd2ae); crossings by hour-angle
#            iteration. Sunrise gets the observer-height and coarse horizon
#            refraction time corrections.
#   maximum  Skyfield rise search on a JPL kernel, then a pressure/temperature
#            refraction time correction. Any EphemerisError drops to `high`
#            and the estimate is flagged degraded.
#
# No event exists when the Sun never reaches the target altitude; crossings
# then return the closest approach (solar noon for polar night, solar
# midnight for polar day) tagged with `polar`.
# -----------------------------------------------------------------------------
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import erfa  # pyERFA

from brahma_muhurat.core.constants import (
    ASTRONOMICAL_TWILIGHT_DEG,
    CIVIL_TWILIGHT_DEG,
    HORIZON_REFRACTION_ARCMIN,
    JD_J2000,
    KELVIN,
    MINUTES_PER_DAY,
    NAUTICAL_TWILIGHT_DEG,
    SECONDS_PER_DAY,
    SIDEREAL_DEG_PER_DAY,
    STD_PRESSURE_HPA,
    STD_TEMPERATURE_C,
    SUNRISE_ALTITUDE_DEG,
    cosd,
    delta_deg,
    wrap_deg,
)
from brahma_muhurat.core.ephemeris_adapter import EphemerisAdapter, EphemerisError, default_adapter
from brahma_muhurat.core.timescales import LocalDay, datetime_to_jd, jd_to_datetime, julian_dates
from brahma_muhurat.core.validators import parse_enum

__all__ = [
    "PrecisionTier",
    "PRECISION_INFO",
    "POLAR_DAY",
    "POLAR_NIGHT",
    "SolarGeometry",
    "SolarEvent",
    "RiseEstimate",
    "DayLength",
    "SimplifiedSolarModel",
    "ErfaSolarModel",
    "SolarPositionEngine",
    "elevation_correction_seconds",
    "basic_refraction_seconds",
    "atmospheric_refraction_seconds",
]

POLAR_DAY = "polar_day"
POLAR_NIGHT = "polar_night"

_AU_M = 149_597_870_700.0
_C_MPS = 299_792_458.0
_MAX_ITER = 20
_CONVERGED_S = 0.01


class PrecisionTier(str, Enum):
    BASIC = "basic"
    HIGH = "high"
    MAXIMUM = "maximum"


PRECISION_INFO: Dict[PrecisionTier, Dict[str, str]] = {
    PrecisionTier.BASIC: {
        "name": "Basic Precision",
        "accuracy": "±2-5 minutes",
        "description": "Low-order mean-Sun model, no atmospheric corrections",
        "recommended_for": "General use, quick estimates",
    },
    PrecisionTier.HIGH: {
        "name": "High Precision",
        "accuracy": "±30 seconds to 2 minutes",
        "description": "IAU 2006/2000A apparent Sun (ERFA) with elevation and coarse refraction corrections",
        "recommended_for": "Most applications, daily spiritual practice",
    },
    PrecisionTier.MAXIMUM: {
        "name": "Maximum Precision",
        "accuracy": "±10-30 seconds",
        "description": "JPL ephemeris rise search (Skyfield) with pressure/temperature/humidity refraction",
        "recommended_for": "Scientific calculations, observatory use",
    },
}


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SolarGeometry:
    azimuth: float                      # degrees from north, eastward, [0, 360)
    elevation: float                    # degrees, geometric unless the tier says otherwise
    right_ascension: Optional[float]    # degrees, equinox of date (None at basic)
    declination: Optional[float]
    tier_used: PrecisionTier
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["tier_used"] = self.tier_used.value
        return out


@dataclass(frozen=True)
class SolarEvent:
    instant: datetime                   # aware UTC
    declination: float
    polar: Optional[str] = None


@dataclass(frozen=True)
class RiseEstimate:
    instant: datetime
    tier_used: PrecisionTier
    declination: float
    polar: Optional[str] = None
    degraded: bool = False
    degraded_reason: Optional[str] = None
    corrections: Dict[str, float] = field(default_factory=dict)   # seconds; negative = earlier


@dataclass(frozen=True)
class DayLength:
    day_minutes: float
    night_minutes: float
    polar: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Tier corrections (seconds)
# ─────────────────────────────────────────────────────────────────────────────
def elevation_correction_seconds(elevation_m: float) -> float:
    """Observer-height dip of 1.76·√h arc-minutes, applied as (−1.76·√h / 60) minutes. Zero at or below sea level."""
    if elevation_m <= 0:
        return 0.0
    return -1.76 * math.sqrt(elevation_m)


def basic_refraction_seconds(latitude: float) -> float:
    """Coarse horizon refraction (34′ scaled by cos φ) as a time shift."""
    return HORIZON_REFRACTION_ARCMIN * cosd(latitude) * 4.0 / 60.0


def atmospheric_refraction_seconds(latitude: float, pressure: float, temperature: float) -> float:
    pressure_factor = pressure / STD_PRESSURE_HPA
    temperature_factor = (KELVIN + STD_TEMPERATURE_C) / (KELVIN + temperature)
    return basic_refraction_seconds(latitude) * pressure_factor * temperature_factor


# ─────────────────────────────────────────────────────────────────────────────
# Shared crossing arithmetic
# ─────────────────────────────────────────────────────────────────────────────
def _target_hour_angle(latitude: float, declination: float, altitude: float, rising: bool) -> Tuple[float, Optional[str]]:
    """Hour angle (deg) where the Sun sits at `altitude`; polar cases fall back to noon / midnight."""
    phi, dec, h0 = math.radians(latitude), math.radians(declination), math.radians(altitude)
    num = math.sin(h0) - math.sin(phi) * math.sin(dec)
    den = math.cos(phi) * math.cos(dec)
    if abs(den) < 1e-12:
        cos_h = math.inf if num > 0 else -math.inf
    else:
        cos_h = num / den
    if cos_h > 1.0:
        return 0.0, POLAR_NIGHT
    if cos_h < -1.0:
        return (-180.0 if rising else 180.0), POLAR_DAY
    h = math.degrees(math.acos(cos_h))
    return (-h if rising else h), None


# ─────────────────────────────────────────────────────────────────────────────
# basic: low-order mean-Sun model
# ─────────────────────────────────────────────────────────────────────────────
class SimplifiedSolarModel:
    name = "mean-sun"

    _J0 = 0.0009
    _OBLIQUITY = math.radians(23.4397)

    @staticmethod
    def _mean_anomaly(d: float) -> float:
        return math.radians(357.5291 + 0.98560028 * d)

    @staticmethod
    def _ecliptic_longitude(m: float) -> float:
        c = math.radians(1.9148 * math.sin(m) + 0.02 * math.sin(2 * m) + 0.0003 * math.sin(3 * m))
        perihelion = math.radians(102.9372)
        return m + c + perihelion + math.pi

    @classmethod
    def _declination(cls, lon_ecl: float) -> float:
        return math.asin(math.sin(cls._OBLIQUITY) * math.sin(lon_ecl))

    @classmethod
    def _right_ascension(cls, lon_ecl: float) -> float:
        return math.atan2(math.sin(lon_ecl) * math.cos(cls._OBLIQUITY), math.cos(lon_ecl))

    def position(self, latitude: float, longitude: float, instant: datetime) -> Tuple[float, float, float, float]:
        """(azimuth, elevation, right ascension, declination) in degrees."""
        d = datetime_to_jd(instant) - JD_J2000
        lw = math.radians(-longitude)
        phi = math.radians(latitude)
        lon_ecl = self._ecliptic_longitude(self._mean_anomaly(d))
        dec = self._declination(lon_ecl)
        ra = self._right_ascension(lon_ecl)
        h = math.radians(280.16 + 360.9856235 * d) - lw - ra
        az_south = math.atan2(math.sin(h), math.cos(h) * math.sin(phi) - math.tan(dec) * math.cos(phi))
        alt = math.asin(math.sin(phi) * math.sin(dec) + math.cos(phi) * math.cos(dec) * math.cos(h))
        return (
            wrap_deg(math.degrees(az_south) + 180.0),
            math.degrees(alt),
            wrap_deg(math.degrees(ra)),
            math.degrees(dec),
        )

    def _cycle(self, longitude: float, anchor: datetime) -> Tuple[int, float, float, float, float]:
        """Cycle number, transit JD, mean anomaly, ecliptic longitude and declination nearest `anchor`."""
        lw = math.radians(-longitude)
        d = datetime_to_jd(anchor) - JD_J2000
        n = round(d - self._J0 - lw / (2 * math.pi))
        ds = self._J0 + lw / (2 * math.pi) + n
        m = self._mean_anomaly(ds)
        lon_ecl = self._ecliptic_longitude(m)
        j_noon = JD_J2000 + ds + 0.0053 * math.sin(m) - 0.0069 * math.sin(2 * lon_ecl)
        return n, j_noon, m, lon_ecl, self._declination(lon_ecl)

    def transit(self, latitude: float, longitude: float, anchor: datetime) -> SolarEvent:
        _, j_noon, _, _, dec = self._cycle(longitude, anchor)
        return SolarEvent(jd_to_datetime(j_noon), math.degrees(dec))

    def crossing(self, latitude: float, longitude: float, anchor: datetime, altitude: float, rising: bool) -> SolarEvent:
        n, j_noon, m, lon_ecl, dec = self._cycle(longitude, anchor)
        target, polar = _target_hour_angle(latitude, math.degrees(dec), altitude, rising)
        if polar is not None:
            return SolarEvent(jd_to_datetime(j_noon + target / 360.0), math.degrees(dec), polar)
        lw = math.radians(-longitude)
        a = self._J0 + (math.radians(abs(target)) + lw) / (2 * math.pi) + n
        j_set = JD_J2000 + a + 0.0053 * math.sin(m) - 0.0069 * math.sin(2 * lon_ecl)
        j = j_set if not rising else j_noon - (j_set - j_noon)
        return SolarEvent(jd_to_datetime(j), math.degrees(dec))


# ─────────────────────────────────────────────────────────────────────────────
# high: IAU 2006/2000A apparent Sun via ERFA
# ─────────────────────────────────────────────────────────────────────────────
class ErfaSolarModel:
    name = "erfa-iau2006a"

    @staticmethod
    def _apparent(instant: datetime) -> Tuple[float, float, float]:
        """(RA, Dec, GAST) in radians; RA/Dec true equator & equinox of date."""
        jd = julian_dates(instant)
        tt1, tt2 = jd.tt
        ut1, ut2 = jd.ut1
        pvh, pvb = erfa.epv00(tt1, tt2)
        earth_h = pvh["p"]
        sun_geo = -earth_h
        dist = float(erfa.pm(sun_geo))
        pnat = sun_geo / dist
        v = pvb["v"] * (_AU_M / SECONDS_PER_DAY) / _C_MPS
        bm1 = math.sqrt(1.0 - float(erfa.pdp(v, v)))
        ppr = erfa.ab(pnat, v, dist, bm1)
        rbpn = erfa.pnm06a(tt1, tt2)
        ra, dec = erfa.c2s(erfa.rxp(rbpn, ppr))
        gast = erfa.gst06a(ut1, ut2, tt1, tt2)
        return float(erfa.anp(ra)), float(dec), float(gast)

    def _hour_angle(self, longitude: float, instant: datetime) -> Tuple[float, float, float]:
        """(local hour angle deg in (−180, 180], RA deg, Dec deg)."""
        ra, dec, gast = self._apparent(instant)
        ha = delta_deg(math.degrees(gast) + longitude - math.degrees(ra), 0.0)
        return ha, math.degrees(ra), math.degrees(dec)

    def declination(self, instant: datetime) -> float:
        _, dec, _ = self._apparent(instant)
        return math.degrees(dec)

    def position(self, latitude: float, longitude: float, instant: datetime) -> Tuple[float, float, float, float]:
        ha, ra, dec = self._hour_angle(longitude, instant)
        az, el = erfa.hd2ae(math.radians(ha), math.radians(dec), math.radians(latitude))
        return wrap_deg(math.degrees(float(az))), math.degrees(float(el)), wrap_deg(ra), dec

    def _solve(
        self,
        latitude: float,
        longitude: float,
        anchor: datetime,
        target_fn: Callable[[float], Tuple[float, Optional[str]]],
    ) -> SolarEvent:
        t = anchor
        ha0, _, dec = self._hour_angle(longitude, anchor)
        polar: Optional[str] = None
        for _ in range(_MAX_ITER):
            ha, _, dec = self._hour_angle(longitude, t)
            elapsed_d = (t - anchor).total_seconds() / SECONDS_PER_DAY
            expected = ha0 + SIDEREAL_DEG_PER_DAY * elapsed_d
            ha_unwrapped = expected + delta_deg(ha, expected)
            target, polar = target_fn(dec)
            step_d = (target - ha_unwrapped) / SIDEREAL_DEG_PER_DAY
            t = t + timedelta(days=step_d)
            if abs(step_d) * SECONDS_PER_DAY < _CONVERGED_S:
                break
        return SolarEvent(t.astimezone(timezone.utc), dec, polar)

    def transit(self, latitude: float, longitude: float, anchor: datetime) -> SolarEvent:
        return self._solve(latitude, longitude, anchor, lambda _dec: (0.0, None))

    def crossing(self, latitude: float, longitude: float, anchor: datetime, altitude: float, rising: bool) -> SolarEvent:
        return self._solve(
            latitude, longitude, anchor,
            lambda dec: _target_hour_angle(latitude, dec, altitude, rising),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Engine (tier → strategy dispatch)
# ─────────────────────────────────────────────────────────────────────────────
_TWILIGHT_ORDER: Tuple[Tuple[str, float, bool], ...] = (
    ("astronomical_dawn", ASTRONOMICAL_TWILIGHT_DEG, True),
    ("nautical_dawn", NAUTICAL_TWILIGHT_DEG, True),
    ("civil_dawn", CIVIL_TWILIGHT_DEG, True),
    ("sunrise", SUNRISE_ALTITUDE_DEG, True),
    ("sunset", SUNRISE_ALTITUDE_DEG, False),
    ("civil_dusk", CIVIL_TWILIGHT_DEG, False),
    ("nautical_dusk", NAUTICAL_TWILIGHT_DEG, False),
    ("astronomical_dusk", ASTRONOMICAL_TWILIGHT_DEG, False),
)


class SolarPositionEngine:
    """Solar geometry and sunrise estimates for one precision tier (fixed at construction)."""

    def __init__(self, tier: Any = PrecisionTier.HIGH, ephemeris: Optional[EphemerisAdapter] = None):
        self.tier = parse_enum(tier, PrecisionTier, "precision")
        self._ephemeris = ephemeris
        self._simple = SimplifiedSolarModel()
        self._erfa = ErfaSolarModel()
        self._rise_strategies: Dict[PrecisionTier, Callable[..., RiseEstimate]] = {
            PrecisionTier.BASIC: self._rise_basic,
            PrecisionTier.HIGH: self._rise_high,
            PrecisionTier.MAXIMUM: self._rise_maximum,
        }

    @property
    def ephemeris(self) -> EphemerisAdapter:
        if self._ephemeris is None:
            self._ephemeris = default_adapter()
        return self._ephemeris

    @property
    def event_model(self):
        """Model used for twilight / day-length crossings at this tier."""
        return self._simple if self.tier is PrecisionTier.BASIC else self._erfa

    # ── positions ──
    def calculate_solar_position(
        self,
        latitude: float,
        longitude: float,
        instant: datetime,
        elevation_m: float = 0.0,
    ) -> SolarGeometry:
        if self.tier is PrecisionTier.BASIC:
            az, el, _, _ = self._simple.position(latitude, longitude, instant)
            return SolarGeometry(az, el, None, None, PrecisionTier.BASIC)
        if self.tier is PrecisionTier.MAXIMUM:
            try:
                p = self.ephemeris.position(latitude, longitude, elevation_m, instant)
                return SolarGeometry(
                    p["azimuth"], p["elevation"], p["right_ascension"], p["declination"], PrecisionTier.MAXIMUM,
                )
            except EphemerisError:
                az, el, ra, dec = self._erfa.position(latitude, longitude, instant)
                return SolarGeometry(az, el, ra, dec, PrecisionTier.HIGH, degraded=True)
        az, el, ra, dec = self._erfa.position(latitude, longitude, instant)
        return SolarGeometry(az, el, ra, dec, PrecisionTier.HIGH)

    # ── sunrise ──
    def sunrise(
        self,
        latitude: float,
        longitude: float,
        elevation_m: float,
        day: LocalDay,
        pressure: float = STD_PRESSURE_HPA,
        temperature: float = STD_TEMPERATURE_C,
    ) -> RiseEstimate:
        return self._rise_strategies[self.tier](latitude, longitude, elevation_m, day, pressure, temperature)

    def _rise_basic(self, latitude, longitude, elevation_m, day, pressure, temperature) -> RiseEstimate:
        ev = self._crossing_in_day(self._simple, latitude, longitude, day, SUNRISE_ALTITUDE_DEG, True)
        return RiseEstimate(ev.instant, PrecisionTier.BASIC, ev.declination, ev.polar)

    def _rise_high(self, latitude, longitude, elevation_m, day, pressure, temperature) -> RiseEstimate:
        ev = self._crossing_in_day(self._erfa, latitude, longitude, day, SUNRISE_ALTITUDE_DEG, True)
        corrections: Dict[str, float] = {}
        if elevation_m > 0:
            corrections["elevation"] = elevation_correction_seconds(elevation_m)
        corrections["horizon_refraction"] = -basic_refraction_seconds(latitude)
        instant = ev.instant + timedelta(seconds=sum(corrections.values()))
        return RiseEstimate(instant, PrecisionTier.HIGH, ev.declination, ev.polar, corrections=corrections)

    def _rise_maximum(self, latitude, longitude, elevation_m, day, pressure, temperature) -> RiseEstimate:
        try:
            raw = self.ephemeris.sunrise(latitude, longitude, elevation_m, day.start_utc, day.end_utc)
        except (EphemerisError, ArithmeticError) as e:
            est = self._rise_high(latitude, longitude, elevation_m, day, pressure, temperature)
            return replace(est, degraded=True, degraded_reason=str(e))
        shift = -atmospheric_refraction_seconds(latitude, pressure, temperature)
        dec = self._erfa.declination(raw)
        return RiseEstimate(
            raw + timedelta(seconds=shift),
            PrecisionTier.MAXIMUM,
            dec,
            corrections={"atmospheric_refraction": shift},
        )

    @staticmethod
    def _crossing_in_day(model, latitude: float, longitude: float, day: LocalDay, altitude: float, rising: bool) -> SolarEvent:
        """
        Crossing inside [day.start_utc, day.end_utc) when one exists.

        The models solve around the transit nearest local noon. Where the clock runs far from
        solar time and the hour angle is near 180°, that crossing lands on the neighbouring
        calendar day, so the neighbouring solar cycle is tried too. If neither falls inside the
        day the noon-cycle crossing is kept.
        """
        ev = model.crossing(latitude, longitude, day.noon_utc, altitude, rising)
        if ev.polar is not None:
            return ev
        if ev.instant < day.start_utc:
            shift = timedelta(days=1)
        elif ev.instant >= day.end_utc:
            shift = timedelta(days=-1)
        else:
            return ev
        other = model.crossing(latitude, longitude, day.noon_utc + shift, altitude, rising)
        if other.polar is None and day.start_utc <= other.instant < day.end_utc:
            return other
        return ev

    # ── day structure ──
    def solar_noon(self, latitude: float, longitude: float, day: LocalDay) -> SolarEvent:
        return self.event_model.transit(latitude, longitude, day.noon_utc)

    def crossing(self, latitude: float, longitude: float, day: LocalDay, altitude: float, rising: bool) -> SolarEvent:
        return self._crossing_in_day(self.event_model, latitude, longitude, day, altitude, rising)

    def twilight(self, latitude: float, longitude: float, day: LocalDay) -> Dict[str, SolarEvent]:
        out: Dict[str, SolarEvent] = {}
        for name, altitude, rising in _TWILIGHT_ORDER:
            out[name] = self.crossing(latitude, longitude, day, altitude, rising)
        out["solar_noon"] = self.solar_noon(latitude, longitude, day)
        return out

    def day_length(self, latitude: float, longitude: float, day: LocalDay) -> DayLength:
        # rise and set of the same solar cycle, even when the rise falls on the previous evening
        rise = self.event_model.crossing(latitude, longitude, day.noon_utc, SUNRISE_ALTITUDE_DEG, True)
        if rise.polar == POLAR_NIGHT:
            return DayLength(0.0, MINUTES_PER_DAY, POLAR_NIGHT)
        if rise.polar == POLAR_DAY:
            return DayLength(MINUTES_PER_DAY, 0.0, POLAR_DAY)
        sset = self.event_model.crossing(latitude, longitude, day.noon_utc, SUNRISE_ALTITUDE_DEG, False)
        minutes = (sset.instant - rise.instant).total_seconds() / 60.0
        minutes = min(max(minutes, 0.0), MINUTES_PER_DAY)
        return DayLength(minutes, MINUTES_PER_DAY - minutes, sset.polar)

    def info(self) -> Dict[str, str]:
        return {"precision": self.tier.value, **PRECISION_INFO[self.tier]}
