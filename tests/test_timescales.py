# tests/test_timescales.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from brahma_muhurat.core.timescales import (
    datetime_to_jd,
    describe_duration,
    format_duration,
    is_valid_timezone,
    jd_to_datetime,
    julian_dates,
    local_date_of,
    local_day_bounds,
    local_to_utc,
    parse_date_input,
    resolve_timezone,
    timezone_name,
    utc_offset_minutes,
)
from brahma_muhurat.core.validators import ValidationError

# ─────────────────────────────────────────────────────────────────────────────
# Date parsing
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text, expected", [
    ("2024-02-18", datetime(2024, 2, 18)),
    ("2024-02-18 05:30:15", datetime(2024, 2, 18, 5, 30, 15)),
    ("18/02/2024", datetime(2024, 2, 18)),
    ("02/18/2024", datetime(2024, 2, 18)),     # not DD/MM, falls through to MM/DD
    ("18-02-2024", datetime(2024, 2, 18)),
    ("2024/02/18", datetime(2024, 2, 18)),
    ("2024-02-18T05:30:00", datetime(2024, 2, 18, 5, 30)),
])
def test_parse_known_formats(text: str, expected: datetime) -> None:
    assert parse_date_input(text) == expected


def test_parse_iso_with_zone() -> None:
    dt = parse_date_input("2024-02-18T01:00:00Z")
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)


@pytest.mark.parametrize("text", ["February 18, 2024", "18 Feb 2024", "Feb 18 2024"])
def test_parse_spelled_out_dates(text: str) -> None:
    assert parse_date_input(text) == datetime(2024, 2, 18)


def test_parse_rfc2822() -> None:
    dt = parse_date_input("Sun, 18 Feb 2024 00:00:00 GMT")
    assert dt.utcoffset() == timedelta(0)
    assert dt.replace(tzinfo=None) == datetime(2024, 2, 18)


def test_parse_passthrough_objects() -> None:
    now = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    assert parse_date_input(now) is now
    assert parse_date_input(date(2024, 3, 1)) == datetime(2024, 3, 1)


@pytest.mark.parametrize("bad", ["2024-13-01", "32/01/2024", "2024-02-30", "yesterday", "February 30, 2024", "next Feb", "", None, 20240218])
def test_parse_rejects_impossible_or_unknown(bad) -> None:
    with pytest.raises(ValidationError) as ei:
        parse_date_input(bad)
    assert ei.value.errors()[0]["loc"] == ["date"]


# ─────────────────────────────────────────────────────────────────────────────
# Time zones
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("name, minutes", [
    ("UTC", 0),
    ("UTC+5:30", 330),
    ("+05:30", 330),
    ("GMT-3", -180),
    ("Asia/Kolkata", 330),
])
def test_resolve_timezone_offsets(name: str, minutes: int) -> None:
    assert utc_offset_minutes(name, datetime(2024, 2, 18, tzinfo=timezone.utc)) == minutes


def test_dst_is_respected(ensure_tzdata) -> None:
    assert utc_offset_minutes("America/New_York", datetime(2024, 1, 15, 12, tzinfo=timezone.utc)) == -300
    assert utc_offset_minutes("America/New_York", datetime(2024, 7, 15, 12, tzinfo=timezone.utc)) == -240


def test_invalid_timezone_names_zone() -> None:
    with pytest.raises(ValidationError, match="Mars/Olympus"):
        resolve_timezone("Mars/Olympus")
    assert is_valid_timezone("Europe/Berlin")
    assert not is_valid_timezone("UTC+15")


def test_timezone_name() -> None:
    assert timezone_name(resolve_timezone("Asia/Kolkata")) == "Asia/Kolkata"
    assert timezone_name(resolve_timezone("utc")) == "UTC"


def test_local_day_bounds_kolkata() -> None:
    day = local_day_bounds(date(2024, 2, 18), "Asia/Kolkata")
    assert day.start_utc == datetime(2024, 2, 17, 18, 30, tzinfo=timezone.utc)
    assert day.noon_utc == datetime(2024, 2, 18, 6, 30, tzinfo=timezone.utc)
    assert day.end_utc - day.start_utc == timedelta(days=1)
    assert day.warnings == []


def test_dst_gap_and_ambiguity_flags() -> None:
    _, gap = local_to_utc(datetime(2024, 3, 10, 2, 30), "America/New_York")
    _, amb = local_to_utc(datetime(2024, 11, 3, 1, 30), "America/New_York")
    assert gap == ["dst_gap"]
    assert amb == ["dst_ambiguous"]


def test_local_date_of_aware_instant_uses_zone() -> None:
    # 20:00 UTC on the 17th is already the 18th in India
    assert local_date_of("2024-02-17T20:00:00+00:00", "Asia/Kolkata") == date(2024, 2, 18)
    assert local_date_of("2024-02-17 20:00:00", "Asia/Kolkata") == date(2024, 2, 17)


# ─────────────────────────────────────────────────────────────────────────────
# Julian dates
# ─────────────────────────────────────────────────────────────────────────────

def test_j2000_epoch() -> None:
    t = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)
    assert datetime_to_jd(t) == pytest.approx(2451545.0, abs=1e-9)
    assert abs((jd_to_datetime(2451545.0) - t).total_seconds()) < 1e-3


def test_julian_dates_chain(ensure_erfa) -> None:
    jd = julian_dates(datetime(2024, 2, 18, tzinfo=timezone.utc), dut1_seconds=0.0)
    assert 60.0 < jd.delta_t < 80.0
    assert jd.jd_tt > jd.jd_utc
    assert jd.warnings == []


def test_julian_dates_rejects_large_dut1() -> None:
    with pytest.raises(ValidationError):
        julian_dates(datetime(2024, 1, 1, tzinfo=timezone.utc), dut1_seconds=0.95)


def test_repeatability_same_inputs() -> None:
    t = datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert julian_dates(t, 0.1) == julian_dates(t, 0.1)


# ─────────────────────────────────────────────────────────────────────────────
# Duration formatting
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("minutes, short, long", [
    (96, "1h 36m", "1 hour 36 minutes"),
    (120, "2h 0m", "2 hours"),
    (45, "45m", "45 minutes"),
    (0, "0m", "0 minutes"),
    (61, "1h 1m", "1 hour 1 minute"),
])
def test_duration_strings(minutes: int, short: str, long: str) -> None:
    assert format_duration(minutes) == short
    assert describe_duration(minutes) == long
