# brahma_muhurat/core/muhurat.py
"""
Brahma Muhurat window and its descriptive metrics.

Window: end = sunrise, start = sunrise − duration, where duration is
  standard 96 min · extended 120 min · smarta 96 min · dynamic round(night/15).

The metrics (night portion, moon phase, seasonal factor, activities) are
traditional heuristics. Their thresholds are kept as published.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from brahma_muhurat.core.constants import LUNAR_SYNODIC_D
from brahma_muhurat.core.timescales import day_of_year
from brahma_muhurat.core.validators import parse_enum

__all__ = [
    "TraditionType",
    "TRADITION_INFO",
    "MuhuratError",
    "MuhuratWindow",
    "MuhuratWindowCalculator",
    "calculate_window",
    "tradition_info",
    "night_portion",
    "moon_phase",
    "seasonal_factor",
    "optimal_activities",
    "spiritual_metrics",
]

_REFERENCE_NEW_MOON = datetime(2024, 1, 11, tzinfo=timezone.utc)


class TraditionType(str, Enum):
    STANDARD = "standard"
    EXTENDED = "extended"
    SMARTA = "smarta"
    DYNAMIC = "dynamic"


_FIXED_MINUTES: Dict[TraditionType, int] = {
    TraditionType.STANDARD: 96,
    TraditionType.EXTENDED: 120,
    TraditionType.SMARTA: 96,
}

TRADITION_INFO: Dict[TraditionType, Dict[str, str]] = {
    TraditionType.STANDARD: {
        "name": "Standard Brahma Muhurat",
        "duration": "96 minutes (1 hour 36 minutes)",
        "description": "Two muhurtas of 48 minutes before sunrise, as in most Hindu calendars",
    },
    TraditionType.EXTENDED: {
        "name": "Extended Brahma Muhurat",
        "duration": "120 minutes (2 hours)",
        "description": "Extended period for intensive spiritual practices",
    },
    TraditionType.SMARTA: {
        "name": "Smārta Tradition",
        "duration": "96 minutes (exact)",
        "description": "Orthodox calculation following classical texts",
    },
    TraditionType.DYNAMIC: {
        "name": "Dynamic Calculation",
        "duration": "Variable (1/15th of night length)",
        "description": "Seasonal adjustment based on the sunset-to-sunrise span",
    },
}


class MuhuratError(ValueError):
    """Window cannot be computed from the inputs given."""
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class MuhuratWindow:
    start: datetime
    end: datetime
    duration_minutes: int
    tradition: TraditionType


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class MuhuratWindowCalculator:
    def __init__(self, tradition: Any = TraditionType.STANDARD):
        self.tradition = parse_enum(tradition, TraditionType, "tradition")

    @property
    def needs_night_length(self) -> bool:
        return self.tradition is TraditionType.DYNAMIC

    def duration_minutes(self, night_length_minutes: Optional[float] = None) -> int:
        if self.tradition is TraditionType.DYNAMIC:
            if night_length_minutes is None:
                raise MuhuratError(
                    "night_length_required",
                    "dynamic tradition needs the night length (sunset-to-sunrise minutes) for the date",
                )
            if night_length_minutes < 0:
                raise MuhuratError("night_length_invalid", f"night length must be ≥ 0, got {night_length_minutes}")
            return _round_half_up(night_length_minutes / 15.0)
        return _FIXED_MINUTES[self.tradition]

    def calculate_window(self, sunrise: datetime, night_length_minutes: Optional[float] = None) -> MuhuratWindow:
        minutes = self.duration_minutes(night_length_minutes)
        return MuhuratWindow(
            start=sunrise - timedelta(minutes=minutes),
            end=sunrise,
            duration_minutes=minutes,
            tradition=self.tradition,
        )

    def info(self) -> Dict[str, str]:
        return {"tradition": self.tradition.value, **TRADITION_INFO[self.tradition]}


def calculate_window(sunrise: datetime, tradition: Any, night_length_minutes: Optional[float] = None) -> MuhuratWindow:
    return MuhuratWindowCalculator(tradition).calculate_window(sunrise, night_length_minutes)


def tradition_info(tradition: Any) -> Dict[str, str]:
    return MuhuratWindowCalculator(tradition).info()


# ───────────────────────── metrics ─────────────────────────

def night_portion(duration_minutes: float, night_minutes: float) -> Dict[str, Any]:
    if night_minutes <= 0:
        return {"percentage": None, "description": "No astronomical night on this date"}
    pct = duration_minutes / night_minutes * 100.0
    if pct > 15:
        desc = "Extended period, excellent for deep spiritual practices"
    elif pct > 10:
        desc = "Optimal duration, ideal for meditation and prayer"
    elif pct > 7:
        desc = "Standard period, suitable for daily spiritual routine"
    else:
        desc = "Brief period, focus on essential practices"
    return {"percentage": round(pct, 2), "description": desc}


_PHASES = (
    (1.0, "New Moon", "Highly auspicious for new beginnings and meditation"),
    (7.0, "Waxing Crescent", "Good for setting intentions and spiritual growth"),
    (9.0, "First Quarter", "Balanced energy, good for all spiritual practices"),
    (14.0, "Waxing Gibbous", "Building energy, excellent for intensive practices"),
    (16.0, "Full Moon", "Peak spiritual energy, ideal for advanced practices"),
    (22.0, "Waning Gibbous", "Good for reflection and inner work"),
    (24.0, "Last Quarter", "Time for release and letting go"),
)


def moon_phase(instant: datetime) -> Dict[str, Any]:
    """Mean synodic-month phase counted in whole days from the 2024-01-11 new moon."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    whole_days = int((instant - _REFERENCE_NEW_MOON).total_seconds() / 86400.0)
    age = whole_days % LUNAR_SYNODIC_D
    illumination = abs(math.cos(age / LUNAR_SYNODIC_D * 2.0 * math.pi))
    if age > 28:
        phase, meaning = _PHASES[0][1], _PHASES[0][2]
    else:
        phase, meaning = "Waning Crescent", "Preparation for renewal, deep meditation"
        for limit, name, text in _PHASES:
            if age < limit:
                phase, meaning = name, text
                break
    return {"phase": phase, "age_days": age, "illumination": illumination, "spiritual_significance": meaning}


def seasonal_factor(instant: datetime) -> Dict[str, Any]:
    doy = day_of_year(instant)
    if doy >= 355 or doy <= 45:
        factor = 1.2
    elif doy <= 135:
        factor = 1.1
    elif doy <= 225:
        factor = 0.9
    else:
        factor = 1.0
    if factor > 1.15:
        desc = "Peak spiritual season, maximum benefits from practices"
    elif factor > 1.05:
        desc = "Favorable spiritual period, enhanced meditation effects"
    elif factor > 0.95:
        desc = "Balanced spiritual energy, consistent practice recommended"
    else:
        desc = "Moderate spiritual influence, maintain regular practice"
    return {"factor": factor, "description": desc}


def optimal_activities(duration_minutes: float) -> List[str]:
    activities = ["Meditation", "Prayer and mantras", "Scripture reading"]
    if duration_minutes >= 60:
        activities += ["Yoga practice", "Pranayama (breathing exercises)"]
    if duration_minutes >= 90:
        activities += ["Extended meditation", "Spiritual study", "Ritual worship"]
    if duration_minutes >= 120:
        activities += ["Intensive sadhana", "Group spiritual practices", "Sacred chanting"]
    return activities


def spiritual_metrics(window: MuhuratWindow, night_minutes: float) -> Dict[str, Any]:
    return {
        "night_portion": night_portion(window.duration_minutes, night_minutes),
        "moon_phase": moon_phase(window.start),
        "seasonal_factor": seasonal_factor(window.start),
        "optimal_activities": optimal_activities(window.duration_minutes),
    }
