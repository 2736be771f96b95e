# brahma_muhurat/core/geo.py
"""
Geographic helpers: coordinate formatting, polar/elevation classification,
great-circle distance & bearing, and timezone suggestions by longitude.

All public functions validate their coordinates first (see validators.py).
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, available_timezones

from brahma_muhurat.core.constants import POLAR_CIRCLE_DEG, STD_PRESSURE_HPA
from brahma_muhurat.core.validators import (
    ValidationError,
    validate_coordinates,
    validate_elevation,
)

__all__ = [
    "COORDINATE_FORMATS",
    "direction",
    "compass_direction",
    "decimal_to_dms",
    "decimal_to_dm",
    "convert_coordinate_formats",
    "format_coordinates",
    "check_polar_region",
    "elevation_zone",
    "calculate_distance",
    "calculate_bearing",
    "timezone_suggestions",
]

COORDINATE_FORMATS = ("decimal", "dms", "dm")

EARTH_MEAN_RADIUS_M = 6_371_008.8
_FEET_PER_METER = 3.28084
_PRESSURE_LAPSE_HPA_PER_M = 0.012
_PRESSURE_FLOOR_HPA = 300.0

_COMPASS_16 = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

_PRIORITY_TZS = (
    "Asia/Kolkata", "Asia/Dubai", "Europe/London", "America/New_York",
    "America/Los_Angeles", "Australia/Sydney", "Asia/Tokyo",
)


# ───────────────────────── formatting ─────────────────────────

def direction(value: float, axis: str) -> str:
    """Hemisphere letter: N/S for axis='latitude', E/W otherwise. Zero counts as N/E."""
    if axis == "latitude":
        return "N" if value >= 0 else "S"
    return "E" if value >= 0 else "W"


def compass_direction(bearing: float) -> str:
    return _COMPASS_16[int(round((bearing % 360.0) / 22.5)) % 16]


def decimal_to_dms(value: float, axis: str) -> str:
    """-33.8568 → 33° 51' 24.48\" S"""
    hemi = direction(value, axis)
    a = abs(value)
    deg = math.floor(a)
    minutes_f = (a - deg) * 60.0
    minutes = math.floor(minutes_f)
    seconds = (minutes_f - minutes) * 60.0
    return f"{deg}° {minutes}' {seconds:.2f}\" {hemi}"


def decimal_to_dm(value: float, axis: str) -> str:
    hemi = direction(value, axis)
    a = abs(value)
    deg = math.floor(a)
    minutes = (a - deg) * 60.0
    return f"{deg}° {minutes:.4f}' {hemi}"


def convert_coordinate_formats(latitude: Any, longitude: Any) -> Dict[str, Any]:
    lat, lon = validate_coordinates(latitude, longitude)
    lat_dms, lon_dms = decimal_to_dms(lat, "latitude"), decimal_to_dms(lon, "longitude")
    lat_dm, lon_dm = decimal_to_dm(lat, "latitude"), decimal_to_dm(lon, "longitude")
    return {
        "decimal": {"latitude": lat, "longitude": lon},
        "dms": {"latitude": lat_dms, "longitude": lon_dms},
        "dm": {"latitude": lat_dm, "longitude": lon_dm},
        "formatted": {
            "decimal": f"{lat:.6f}°, {lon:.6f}°",
            "dms": f"{lat_dms}, {lon_dms}",
            "dm": f"{lat_dm}, {lon_dm}",
        },
    }


def format_coordinates(latitude: Any, longitude: Any, fmt: str = "decimal") -> str:
    """Human-readable coordinate pair in one of COORDINATE_FORMATS."""
    key = (fmt or "decimal").strip().lower()
    if key not in COORDINATE_FORMATS:
        raise ValidationError({
            "loc": ["format"],
            "msg": f"format must be one of: {', '.join(COORDINATE_FORMATS)}; got {fmt!r}",
            "type": "value_error",
        })
    return convert_coordinate_formats(latitude, longitude)["formatted"][key]


# ───────────────────────── classification ─────────────────────────

def check_polar_region(latitude: Any) -> Dict[str, Optional[Any]]:
    lat, _ = validate_coordinates(latitude, 0.0)
    if abs(lat) >= POLAR_CIRCLE_DEG:
        north = lat > 0
        return {
            "is_polar": True,
            "region": "Arctic" if north else "Antarctic",
            "circle": "Arctic Circle" if north else "Antarctic Circle",
            "warning": "Sunrise/sunset may not occur on some days of the year at this latitude",
        }
    return {"is_polar": False, "region": None, "circle": None, "warning": None}


def elevation_zone(elevation: Optional[float]) -> Dict[str, Any]:
    """Coarse elevation band with a linear pressure estimate (12 Pa per metre, floor 300 hPa)."""
    if elevation is None:
        return {
            "zone": "Unknown",
            "description": "Elevation not specified",
            "pressure_estimate": STD_PRESSURE_HPA,
            "elevation_feet": None,
        }
    h = validate_elevation(elevation)
    if h < 0:
        zone, desc = "Below Sea Level", "Below sea level; slightly denser air near the horizon"
    elif h < 500:
        zone, desc = "Low Elevation", "Near sea level; minimal atmospheric effects"
    elif h < 1500:
        zone, desc = "Moderate Elevation", "Moderate elevation; some atmospheric effects"
    elif h < 3000:
        zone, desc = "High Elevation", "High elevation; significant atmospheric effects"
    else:
        zone, desc = "Very High Elevation", "Very high elevation; major horizon dip and refraction changes"
    pressure = STD_PRESSURE_HPA - h * _PRESSURE_LAPSE_HPA_PER_M
    return {
        "zone": zone,
        "description": desc,
        "pressure_estimate": max(pressure, _PRESSURE_FLOOR_HPA),
        "elevation_feet": h * _FEET_PER_METER,
    }


# ───────────────────────── great circle ─────────────────────────

def calculate_distance(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> Dict[str, Any]:
    """Haversine distance on the mean-radius sphere."""
    a_lat, a_lon = validate_coordinates(lat1, lon1)
    b_lat, b_lon = validate_coordinates(lat2, lon2)
    p1, p2 = math.radians(a_lat), math.radians(b_lat)
    dphi = p2 - p1
    dlmb = math.radians(b_lon - a_lon)
    h = math.sin(dphi / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlmb / 2) ** 2
    meters = 2.0 * EARTH_MEAN_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))
    km = meters / 1000.0
    miles = meters / 1609.344
    return {
        "meters": meters,
        "kilometers": km,
        "miles": miles,
        "nautical_miles": meters / 1852.0,
        "formatted": {"km": f"{km:.2f} km", "miles": f"{miles:.2f} miles"},
    }


def calculate_bearing(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> Dict[str, Any]:
    """Initial great-circle bearing from point 1 to point 2, degrees clockwise from north."""
    a_lat, a_lon = validate_coordinates(lat1, lon1)
    b_lat, b_lon = validate_coordinates(lat2, lon2)
    p1, p2 = math.radians(a_lat), math.radians(b_lat)
    dlmb = math.radians(b_lon - a_lon)
    y = math.sin(dlmb) * math.cos(p2)
    x = math.cos(p1) * math.sin(p2) - math.sin(p1) * math.cos(p2) * math.cos(dlmb)
    brg = math.degrees(math.atan2(y, x)) % 360.0
    comp = compass_direction(brg)
    return {"degrees": brg, "compass": comp, "formatted": f"{brg:.1f}° ({comp})"}


# ───────────────────────── timezones ─────────────────────────

def timezone_suggestions(latitude: Any, longitude: Any, at: Optional[datetime] = None) -> List[str]:
    """
    IANA zones whose offset at `at` (default now) is within 30 min of round(lon/15) hours.
    Common zones first, then at most five others in name order.
    """
    _, lon = validate_coordinates(latitude, longitude)
    when = at or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    target_min = round(lon / 15.0) * 60
    matches: List[str] = []
    for name in sorted(available_timezones()):
        try:
            off = when.astimezone(ZoneInfo(name)).utcoffset()
        except (KeyError, ValueError, OSError):
            continue
        if off is not None and abs(off.total_seconds() / 60.0 - target_min) <= 30:
            matches.append(name)
    priority = [tz for tz in _PRIORITY_TZS if tz in matches]
    others = [tz for tz in matches if tz not in _PRIORITY_TZS]
    return priority + others[:5]
