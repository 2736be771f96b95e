# brahma_muhurat/core/constants.py
# -*- coding: utf-8 -*-
"""
Core constants & small angle helpers

Purpose
-------
Single source of truth for:
- coordinate / elevation / atmosphere bounds
- standard horizon & twilight altitudes
- Julian-date and Earth-rotation constants
- tiny angle helpers (wrap / signed Δ / trig in degrees)

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
"""

from __future__ import annotations
import math

__all__ = [
    # bounds
    "LAT_MIN", "LAT_MAX", "LON_MIN", "LON_MAX", "ELEV_MIN_M", "ELEV_MAX_M",
    "PRESSURE_MIN_HPA", "PRESSURE_MAX_HPA", "TEMP_MIN_C", "TEMP_MAX_C",
    "POLAR_CIRCLE_DEG",
    # atmosphere
    "STD_PRESSURE_HPA", "STD_TEMPERATURE_C", "STD_HUMIDITY", "KELVIN",
    # horizon / twilight
    "SUNRISE_ALTITUDE_DEG", "CIVIL_TWILIGHT_DEG", "NAUTICAL_TWILIGHT_DEG",
    "ASTRONOMICAL_TWILIGHT_DEG", "HORIZON_REFRACTION_ARCMIN",
    # time
    "JD_UNIX_EPOCH", "JD_J2000", "SECONDS_PER_DAY", "MINUTES_PER_DAY",
    "SIDEREAL_DEG_PER_DAY", "EARTH_DEG_PER_SECOND", "LUNAR_SYNODIC_D",
    # helpers
    "wrap_deg", "delta_deg", "sind", "cosd", "tand",
]

# ───────────────────────── bounds ─────────────────────────
LAT_MIN, LAT_MAX = -90.0, 90.0
LON_MIN, LON_MAX = -180.0, 180.0
ELEV_MIN_M, ELEV_MAX_M = -500.0, 9000.0      # Dead Sea shore … above Everest
PRESSURE_MIN_HPA, PRESSURE_MAX_HPA = 500.0, 1100.0
TEMP_MIN_C, TEMP_MAX_C = -50.0, 50.0
POLAR_CIRCLE_DEG = 66.5

# ───────────────────────── atmosphere ─────────────────────────
STD_PRESSURE_HPA = 1013.25
STD_TEMPERATURE_C = 15.0
STD_HUMIDITY = 0.5
KELVIN = 273.15

# ───────────────────────── horizon / twilight (apparent upper limb) ─────────────────────────
SUNRISE_ALTITUDE_DEG = -0.833               # 34' refraction + 16' semidiameter
CIVIL_TWILIGHT_DEG = -6.0
NAUTICAL_TWILIGHT_DEG = -12.0
ASTRONOMICAL_TWILIGHT_DEG = -18.0
HORIZON_REFRACTION_ARCMIN = 34.0

# ───────────────────────── time ─────────────────────────
JD_UNIX_EPOCH = 2440588.0                   # 1970-01-01T12:00 is 2440588.0 + 0.5
JD_J2000 = 2451545.0
SECONDS_PER_DAY = 86400.0
MINUTES_PER_DAY = 1440.0
SIDEREAL_DEG_PER_DAY = 360.985647           # hour-angle rate of the mean Sun frame
EARTH_DEG_PER_SECOND = 360.0 / SECONDS_PER_DAY
LUNAR_SYNODIC_D = 29.53


# ───────────────────────── helpers ─────────────────────────
def wrap_deg(x: float) -> float:
    """Wrap angle to [0, 360)."""
    v = float(x) % 360.0
    return 0.0 if abs(v) < 1e-12 or abs(v - 360.0) < 1e-12 else v


def delta_deg(a: float, b: float) -> float:
    """Shortest signed angular difference (a − b) in (−180, 180]."""
    d = (float(a) - float(b) + 540.0) % 360.0 - 180.0
    return 180.0 if d == -180.0 else d


def sind(a: float) -> float:
    return math.sin(math.radians(a))


def cosd(a: float) -> float:
    return math.cos(math.radians(a))


def tand(a: float) -> float:
    return math.tan(math.radians(a))
