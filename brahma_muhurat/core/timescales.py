# brahma_muhurat/core/timescales.py
# -----------------------------------------------------------------------------
# Time normaliser + ERFA timescale chain
#
# Public API:
#   parse_date_input(value)                  -> datetime (naive = wall clock, aware kept)
#   resolve_timezone(name)                   -> tzinfo (IANA or fixed offset)
#   utc_offset_minutes(tz, instant)          -> int (DST aware)
#   local_to_utc(naive_local, tz)            -> (aware UTC datetime, warnings)
#   local_day_bounds(day, tz)                -> LocalDay (midnight / noon / next midnight, UTC)
#   julian_dates(instant, dut1_seconds)      -> JulianDates
#   format_* helpers, day_of_year, supported_timezones
#
# Guarantees:
#   • ERFA chain: UTC (calendar → JD) → TAI → TT   (erfa.dtf2d → utctai → taitt)
#                 UT1 = UTC + DUT1                  (erfa.utcut1)
#   • DUT1 must be within ±0.9 s (IERS).
#   • Local wall-clock → UTC through zoneinfo; DST ambiguity / gaps flagged.
# -----------------------------------------------------------------------------
from __future__ import annotations

import math
import os
import re
import warnings as _warnings
from dataclasses import dataclass, asdict
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

import erfa  # pyERFA
from dateutil import parser as date_parser

from brahma_muhurat.core.constants import JD_UNIX_EPOCH
from brahma_muhurat.core.validators import ValidationError

__all__ = [
    "DATE_FORMATS",
    "JulianDates",
    "LocalDay",
    "parse_date_input",
    "resolve_timezone",
    "timezone_name",
    "is_valid_timezone",
    "supported_timezones",
    "utc_offset_minutes",
    "local_to_utc",
    "local_date_of",
    "local_day_bounds",
    "julian_dates",
    "jd_to_datetime",
    "datetime_to_jd",
    "default_dut1",
    "day_of_year",
    "format_datetime",
    "format_time",
    "format_date",
    "format_duration",
    "describe_duration",
]

# Tried in order; the first strict match wins.
DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
)

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Free-form fallback only for spelled-out dates ("18 Feb 2024", RFC 2822); numeric
# layouts stay strict so "2024-13-01" is not read day-first.
_MONTH_NAME_RE = re.compile(r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\b", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b\d{4}\b")
_FREEFORM_DEFAULT = datetime(2000, 1, 1)
_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?\s*(?P<sign>[+-])(?P<h>\d{1,2})(?::?(?P<m>\d{2}))?$", re.IGNORECASE)
_UTC_ALIASES = {"utc", "gmt", "z", "zulu", "etc/utc", "etc/gmt"}


# ───────────────────────────── Dataclasses ─────────────────────────────

@dataclass(frozen=True)
class JulianDates:
    jd_utc: float
    jd_tt: float
    jd_ut1: float
    delta_t: float          # TT − UT1 [s]
    dut1: float             # UT1 − UTC [s]
    # Two-part forms for ERFA routines that want them
    tt: Tuple[float, float]
    ut1: Tuple[float, float]
    warnings: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LocalDay:
    day: date
    tz: tzinfo
    start_utc: datetime     # local 00:00
    noon_utc: datetime      # local 12:00
    end_utc: datetime       # next local 00:00
    warnings: List[str]


# ───────────────────────────── Date parsing ─────────────────────────────

def _from_iso(text: str) -> datetime:
    s = text.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def parse_date_input(value: Any) -> datetime:
    """
    Normalise a date input to a datetime.

    Accepts datetime (returned unchanged), date (midnight, naive), or a string in
    one of DATE_FORMATS (strict, in order), then ISO-8601, and finally a spelled-out date
    with a month name and four-digit year ("February 18, 2024", RFC 2822). Naive results mean
    "wall clock in the caller's timezone".
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str) or not value.strip():
        raise ValidationError({
            "loc": ["date"],
            "msg": f"Invalid date format: {value!r}",
            "type": "value_error",
        })
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return _from_iso(text)
    except ValueError:
        pass
    if _MONTH_NAME_RE.search(text) and _YEAR_RE.search(text):
        try:
            return date_parser.parse(text, default=_FREEFORM_DEFAULT)
        except (ValueError, OverflowError):
            pass
    raise ValidationError({
        "loc": ["date"],
        "msg": f"Invalid date format: {value!r} (not a real calendar date or unsupported layout)",
        "type": "value_error",
    })


# ───────────────────────────── Time zones ─────────────────────────────

def resolve_timezone(name: Any) -> tzinfo:
    """IANA zone ('Asia/Kolkata') or fixed offset ('UTC', 'UTC+5:30', '+05:30', 'GMT-3')."""
    if isinstance(name, tzinfo):
        return name
    if not isinstance(name, str) or not name.strip():
        raise ValidationError({"loc": ["timezone"], "msg": "timezone must be a non-empty string", "type": "value_error"})
    key = name.strip()
    if key.lower() in _UTC_ALIASES:
        return timezone.utc
    m = _OFFSET_RE.match(key)
    if m:
        hh, mm = int(m.group("h")), int(m.group("m") or 0)
        if hh > 14 or mm > 59:
            raise ValidationError({"loc": ["timezone"], "msg": f"Invalid timezone offset: {name!r}", "type": "value_error"})
        delta = timedelta(hours=hh, minutes=mm)
        return timezone(-delta if m.group("sign") == "-" else delta)
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValidationError({
            "loc": ["timezone"],
            "msg": f"Invalid timezone: {name!r}",
            "type": "value_error",
        }) from e


def timezone_name(tz: tzinfo) -> str:
    key = getattr(tz, "key", None)
    if key:
        return str(key)
    if tz is timezone.utc:
        return "UTC"
    return tz.tzname(None) or "UTC"


def is_valid_timezone(name: Any) -> bool:
    try:
        resolve_timezone(name)
        return True
    except ValidationError:
        return False


def supported_timezones() -> List[str]:
    return sorted(available_timezones())


def utc_offset_minutes(tz: tzinfo | str, instant: datetime) -> int:
    """UTC offset of `tz` at `instant` (aware; naive treated as UTC), DST respected."""
    z = resolve_timezone(tz)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    off = instant.astimezone(z).utcoffset()
    return int(off.total_seconds() // 60) if off is not None else 0


def _fold_offsets(z: tzinfo, naive_local: datetime) -> Tuple[int, List[str]]:
    """
    Offset seconds for a naive local wall-clock time.
    Prefer fold=0; flag DST ambiguity (fold offsets differ) and gaps (non round-trip).
    """
    warnings: List[str] = []
    aware0 = naive_local.replace(tzinfo=z, fold=0)
    off0 = aware0.utcoffset()
    if off0 is None:
        raise ValueError("Timezone returned None utcoffset()")
    off1 = naive_local.replace(tzinfo=z, fold=1).utcoffset()
    if off1 is not None and off1 != off0:
        back = aware0.astimezone(timezone.utc).astimezone(z).replace(tzinfo=None)
        warnings.append("dst_gap" if back != naive_local else "dst_ambiguous")
    return int(off0.total_seconds()), warnings


def local_to_utc(naive_local: datetime, tz: tzinfo | str) -> Tuple[datetime, List[str]]:
    z = resolve_timezone(tz)
    if naive_local.tzinfo is not None:
        return naive_local.astimezone(timezone.utc), []
    off_s, warns = _fold_offsets(z, naive_local)
    return (naive_local - timedelta(seconds=off_s)).replace(tzinfo=timezone.utc), warns


def local_date_of(value: Any, tz: tzinfo | str) -> date:
    """Calendar date the caller means: aware instants are viewed in `tz`, naive ones taken as-is."""
    dt = parse_date_input(value)
    if dt.tzinfo is not None:
        return dt.astimezone(resolve_timezone(tz)).date()
    return dt.date()


def local_day_bounds(day: date, tz: tzinfo | str) -> LocalDay:
    z = resolve_timezone(tz)
    start, w0 = local_to_utc(datetime.combine(day, time(0, 0)), z)
    noon, w1 = local_to_utc(datetime.combine(day, time(12, 0)), z)
    end, w2 = local_to_utc(datetime.combine(day + timedelta(days=1), time(0, 0)), z)
    return LocalDay(day=day, tz=z, start_utc=start, noon_utc=noon, end_utc=end,
                    warnings=sorted(set(w0 + w1 + w2)))


# ───────────────────────────── Julian dates (ERFA) ─────────────────────────────

def default_dut1() -> float:
    """UT1−UTC from BM_DUT1_SECONDS (default 0)."""
    try:
        v = float(os.getenv("BM_DUT1_SECONDS", "0") or 0.0)
    except ValueError:
        return 0.0
    return v if abs(v) <= 0.9 else 0.0


def jd_to_datetime(jd_utc: float) -> datetime:
    return _UNIX_EPOCH + timedelta(days=float(jd_utc) - (JD_UNIX_EPOCH - 0.5))


def datetime_to_jd(instant: datetime) -> float:
    """Plain UTC Julian date (no leap-second bookkeeping)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return (instant - _UNIX_EPOCH).total_seconds() / 86400.0 + (JD_UNIX_EPOCH - 0.5)


def julian_dates(instant: datetime, dut1_seconds: float | None = None) -> JulianDates:
    """UTC/TT/UT1 Julian dates of an instant via the ERFA chain."""
    dut1 = default_dut1() if dut1_seconds is None else float(dut1_seconds)
    if abs(dut1) > 0.9 + 1e-12:
        raise ValidationError({"loc": ["dut1"], "msg": f"dut1 out of range (|DUT1| ≤ 0.9 s): {dut1}", "type": "value_error"})
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    u = instant.astimezone(timezone.utc)
    warns: List[str] = []
    sec = u.second + u.microsecond / 1e6
    with _warnings.catch_warnings(record=True) as caught:
        _warnings.simplefilter("always", erfa.ErfaWarning)
        utc1, utc2 = erfa.dtf2d("UTC", u.year, u.month, u.day, u.hour, u.minute, sec)
        tai1, tai2 = erfa.utctai(utc1, utc2)
        tt1, tt2 = erfa.taitt(tai1, tai2)
        ut11, ut12 = erfa.utcut1(utc1, utc2, dut1)
    if any(issubclass(w.category, erfa.ErfaWarning) for w in caught):
        warns.append("erfa_dubious_year")
    delta_t = ((tt1 - ut11) + (tt2 - ut12)) * 86400.0
    return JulianDates(
        jd_utc=math.fsum((float(utc1), float(utc2))),
        jd_tt=math.fsum((float(tt1), float(tt2))),
        jd_ut1=math.fsum((float(ut11), float(ut12))),
        delta_t=float(delta_t),
        dut1=dut1,
        tt=(float(tt1), float(tt2)),
        ut1=(float(ut11), float(ut12)),
        warnings=warns,
    )


# ───────────────────────────── Formatting ─────────────────────────────

def day_of_year(d: date | datetime) -> int:
    return d.timetuple().tm_yday


def _in_tz(instant: datetime, tz: tzinfo | str) -> datetime:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(tz))


def format_datetime(instant: datetime, tz: tzinfo | str, fmt: str = "%Y-%m-%d %H:%M:%S %Z") -> str:
    return _in_tz(instant, tz).strftime(fmt)


def format_time(instant: datetime, tz: tzinfo | str) -> str:
    return _in_tz(instant, tz).strftime("%H:%M:%S")


def format_date(instant: datetime, tz: tzinfo | str) -> str:
    return _in_tz(instant, tz).strftime("%Y-%m-%d")


def format_duration(minutes: float) -> str:
    """96 → '1h 36m'; 45 → '45m'."""
    hours = int(minutes // 60)
    mins = int(round(minutes - hours * 60))
    if mins == 60:
        hours, mins = hours + 1, 0
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


def describe_duration(minutes: float) -> str:
    """96 → '1 hour 36 minutes'."""
    hours = int(minutes // 60)
    mins = int(round(minutes - hours * 60))
    if mins == 60:
        hours, mins = hours + 1, 0
    parts: List[str] = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if mins or not parts:
        parts.append(f"{mins} minute{'s' if mins != 1 else ''}")
    return " ".join(parts)
