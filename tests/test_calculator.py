# tests/test_calculator.py
from __future__ import annotations

from datetime import datetime

import pytest

from brahma_muhurat import BrahmaMuhuratCalculator, CoordinateTypeError, ValidationError


def _calc(observer, **kw) -> BrahmaMuhuratCalculator:
    return BrahmaMuhuratCalculator(observer=observer, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Single calculation
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("precision", ["basic", "high"])
def test_varanasi_standard_window(varanasi, observer, precision) -> None:
    out = _calc(observer, precision=precision).calculate(varanasi)
    start = datetime.fromisoformat(out["muhurat"]["start"]["time"])
    end = datetime.fromisoformat(out["muhurat"]["end"]["time"])
    assert (end - start).total_seconds() == 96 * 60
    assert out["muhurat"]["duration"] == {"minutes": 96, "formatted": "1h 36m"}
    assert "06:00:00" <= out["sunrise"]["local_time"] <= "07:30:00"
    assert out["muhurat"]["end"]["time"] == out["sunrise"]["time"]
    assert out["location"] == {
        "latitude": 25.317644, "longitude": 83.005495, "elevation": 80.0, "timezone": "Asia/Kolkata",
    }
    assert out["date"] == "2024-02-18"
    assert out["calculation_details"]["precision"] == precision
    assert observer.calculated_calls == ["calculate"]


def test_fixed_offset_timezone_matches_iana(varanasi, observer) -> None:
    calc = _calc(observer)
    a = calc.calculate(varanasi)
    b = calc.calculate({**varanasi, "timezone": "UTC+5:30"})
    assert a["sunrise"]["time"] == b["sunrise"]["time"]
    assert a["sunrise"]["local_time"] == b["sunrise"]["local_time"]


def test_result_sections(varanasi, observer) -> None:
    out = _calc(observer).calculate(varanasi)
    assert set(out) == {
        "location", "date", "sunrise", "muhurat", "astronomical_data",
        "spiritual_metrics", "calculation_details",
    }
    astro = out["astronomical_data"]
    assert set(astro["twilight"]) >= {"civil_dawn", "sunrise", "solar_noon", "sunset"}
    assert astro["day_length"]["day_minutes"] + astro["day_length"]["night_minutes"] == pytest.approx(1440.0, abs=0.02)
    assert astro["solar_position"]["time"] == out["sunrise"]["time"]
    assert abs(astro["solar_position"]["elevation"]) < 2.0
    details = out["calculation_details"]
    assert details["atmospheric_conditions"] == {"pressure": 1013.25, "temperature": 15.0, "humidity": 0.5}
    assert details["degraded"] is False and details["degraded_reason"] is None


def test_calculation_is_idempotent(varanasi, observer) -> None:
    calc = _calc(observer, tradition="extended", refraction_model="saemundsson")
    assert calc.calculate(varanasi) == calc.calculate(varanasi)


def test_dynamic_tradition_uses_night_length(varanasi, observer) -> None:
    out = _calc(observer, tradition="dynamic").calculate(varanasi)
    night = out["astronomical_data"]["day_length"]["night_minutes"]
    assert out["muhurat"]["duration"]["minutes"] == int(night / 15 + 0.5)
    assert 45 <= out["muhurat"]["duration"]["minutes"] <= 55


def test_maximum_degrades_and_notifies(varanasi, observer, failing_ephemeris) -> None:
    out = _calc(observer, precision="maximum", ephemeris=failing_ephemeris).calculate(varanasi)
    details = out["calculation_details"]
    assert out["sunrise"]["degraded"] is True
    assert details["tier_used"] == "high" and details["precision"] == "maximum"
    assert "humidity_refraction" in details["corrections"]
    stages = [stage for stage, _reason, _ctx in observer.degraded_calls]
    assert "sunrise" in stages and "position" in stages


def test_polar_latitude_does_not_raise(observer) -> None:
    calc = _calc(observer)
    for d in ("2024-06-20", "2024-12-21"):
        out = calc.calculate({"latitude": 66.5, "longitude": 0.0, "date": d, "timezone": "UTC"})
        assert out["muhurat"]["duration"]["minutes"] == 96
    out = calc.calculate({"latitude": 80.0, "longitude": 0.0, "date": "2024-12-21", "timezone": "UTC"})
    assert out["sunrise"]["polar"] == "polar_night"
    assert out["spiritual_metrics"]["night_portion"]["percentage"] is not None
    out = calc.calculate({"latitude": 80.0, "longitude": 0.0, "date": "2024-06-21", "timezone": "UTC"})
    assert out["spiritual_metrics"]["night_portion"]["percentage"] is None


def test_dynamic_under_midnight_sun_is_empty_window(observer) -> None:
    out = _calc(observer, tradition="dynamic").calculate(
        {"latitude": 80.0, "longitude": 0.0, "date": "2024-06-21", "timezone": "UTC"}
    )
    assert out["muhurat"]["duration"]["minutes"] == 0
    assert out["muhurat"]["start"] == out["muhurat"]["end"]


@pytest.mark.parametrize("patch, exc, needle", [
    ({"latitude": 91}, ValidationError, "latitude"),
    ({"longitude": -181}, ValidationError, "longitude"),
    ({"latitude": "north"}, CoordinateTypeError, "latitude"),
    ({"elevation": -501}, ValidationError, "elevation"),
    ({"timezone": "Mars/Olympus"}, ValidationError, "Mars/Olympus"),
    ({"date": "2024-13-40"}, ValidationError, "date"),
    ({"date": None}, ValidationError, "date"),
    ({"pressure": 200}, ValidationError, "pressure"),
])
def test_invalid_inputs_raise(varanasi, observer, patch, exc, needle) -> None:
    with pytest.raises(exc, match=needle):
        _calc(observer).calculate({**varanasi, **patch})


def test_settings_validated_at_construction(observer) -> None:
    with pytest.raises(ValidationError):
        _calc(observer, precision="extreme")
    calc = _calc(observer, precision="BASIC")
    assert calc.precision.value == "basic"
    assert observer.created[-1].precision.value == "basic"


# ─────────────────────────────────────────────────────────────────────────────
# Batch
# ─────────────────────────────────────────────────────────────────────────────

def test_batch_isolates_failures(varanasi, observer) -> None:
    base = {k: v for k, v in varanasi.items() if k != "date"}
    results = _calc(observer).calculate_batch(base, ["2024-02-18", "2024-02-30", "2024-02-20"])
    assert len(results) == 3
    assert "muhurat" in results[0] and "muhurat" in results[2]
    assert set(results[1]) == {"date", "error"}
    assert results[1]["date"] == "2024-02-30"
    assert results[0]["date"] == "2024-02-18" and results[2]["date"] == "2024-02-20"
    assert [i for i, _d, _e in observer.failures] == [1]


def test_batch_accepts_tuple(observer) -> None:
    results = _calc(observer).calculate_batch({"latitude": 0, "longitude": 0, "timezone": "UTC"}, ("2024-01-01",))
    assert results[0]["muhurat"]["duration"]["minutes"] == 96


def test_batch_requires_sequence(varanasi, observer) -> None:
    with pytest.raises(TypeError):
        _calc(observer).calculate_batch(varanasi, "2024-02-18")


def test_batch_empty(varanasi, observer) -> None:
    assert _calc(observer).calculate_batch(varanasi, []) == []


# ─────────────────────────────────────────────────────────────────────────────
# Other operations
# ─────────────────────────────────────────────────────────────────────────────

def test_calculate_sunrise_matches_full_calculation(varanasi, observer) -> None:
    calc = _calc(observer)
    assert calc.calculate_sunrise(varanasi)["sunrise"] == calc.calculate(varanasi)["sunrise"]


def test_astronomical_data_defaults_to_solar_noon(varanasi, observer) -> None:
    out = _calc(observer).get_astronomical_data(varanasi)
    assert out["solar_position"]["time"] == out["twilight"]["solar_noon"]["time"]
    assert out["polar_region"]["is_polar"] is False


def test_refraction_entry_point(observer) -> None:
    out = _calc(observer, refraction_model="rigorous").calculate_refraction({"altitude": 0.0})
    r = out["refraction"]
    assert r["degrees"] == pytest.approx(r["arcminutes"] / 60.0)
    assert r["arcseconds"] == pytest.approx(r["arcminutes"] * 60.0)
    assert out["model"] == "rigorous"
    with pytest.raises(ValidationError):
        _calc(observer).calculate_refraction({"altitude": 0.0, "humidity": 2})
    with pytest.raises(ValidationError):
        _calc(observer).calculate_refraction({})


def test_info_operations(observer) -> None:
    calc = _calc(observer, precision="basic", tradition="extended", refraction_model="saemundsson")
    assert calc.tradition_info()["current"]["tradition"] == "extended"
    assert set(calc.tradition_info()["available"]) == {"standard", "extended", "smarta", "dynamic"}
    assert calc.precision_info()["current"]["precision"] == "basic"
    assert calc.refraction_info()["current"]["model"] == "saemundsson"
    lib = calc.library_info()
    assert lib["settings"] == {"precision": "basic", "tradition": "extended", "refraction_model": "saemundsson"}
    assert "ephemeris" not in lib


def test_static_helpers() -> None:
    assert BrahmaMuhuratCalculator.format_coordinates(25.317644, 83.005495) == "25.317644°, 83.005495°"
    assert BrahmaMuhuratCalculator.format_coordinates(25.5, 83.25, "dm") == "25° 30.0000' N, 83° 15.0000' E"
    assert BrahmaMuhuratCalculator.validate_coordinates(0, 0) is True
    with pytest.raises(ValidationError):
        BrahmaMuhuratCalculator.validate_coordinates(0, 200)
    assert "Asia/Kolkata" in BrahmaMuhuratCalculator.supported_timezones()
