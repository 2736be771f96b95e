# brahma_muhurat/api/routes.py
"""
Brahma Muhurat API routes.

- POST /api/muhurat               full calculation for one date
- POST /api/muhurat/batch         same base payload + "dates" list
- POST /api/sunrise               corrected sunrise only
- POST /api/astronomical-data     twilight, day length, solar position
- POST /api/refraction            refraction for an apparent altitude
- GET  /api/coordinates/format    decimal / dms / dm renderings
- GET  /api/info                  library, tradition, precision and model info

Calculator settings (precision, tradition, refraction_model) may be given per
request; missing ones come from the loaded config.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from brahma_muhurat.core.calculator import BrahmaMuhuratCalculator
from brahma_muhurat.core.geo import convert_coordinate_formats, format_coordinates
from brahma_muhurat.core.muhurat import MuhuratError
from brahma_muhurat.core.validators import ValidationError, coerce_number
from brahma_muhurat.utils.config import CalculatorSettings

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)

_NUMERIC_FIELDS = ("latitude", "longitude", "elevation", "pressure", "temperature", "humidity")
_SETTING_FIELDS = ("precision", "tradition", "refraction_model")
DEFAULT_MAX_BATCH = 366


# ───────────────────────── helpers ─────────────────────────
def _json_error(code: str, details: Any = None, http: int = 400):
    out: Dict[str, Any] = {"ok": False, "error": code}
    if details is not None:
        out["details"] = details
    return jsonify(out), http


def _body_json() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=False)
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


def _cfg_section(name: str) -> Dict[str, Any]:
    cfg = current_app.config.get("BM_CONFIG") or {}
    return cfg.get(name) or {}


def _calculator(data: Dict[str, Any]) -> BrahmaMuhuratCalculator:
    defaults: CalculatorSettings = current_app.config.get("BM_SETTINGS") or CalculatorSettings()
    settings = CalculatorSettings.from_mapping({k: data.get(k) for k in _SETTING_FIELDS}, defaults=defaults)
    return BrahmaMuhuratCalculator.from_settings(
        settings,
        observer=current_app.extensions.get("bm_observer"),
        ephemeris=current_app.extensions.get("bm_ephemeris"),
    )


def _params(data: Dict[str, Any]) -> Dict[str, Any]:
    """Request body → calculator params, numeric fields coerced from strings."""
    out: Dict[str, Any] = {"date": data.get("date"), "timezone": data.get("timezone")}
    for key in _NUMERIC_FIELDS:
        out[key] = coerce_number(data.get(key), key)
    return out


def _run(fn, *args) -> Tuple[Any, int]:
    try:
        return jsonify({"ok": True, **fn(*args)}), 200
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    except MuhuratError as e:
        return _json_error(e.code, e.message, 422)


# ───────────────────────── calculation routes ─────────────────────────
@api.post("/api/muhurat")
def muhurat():
    data = _body_json()
    try:
        calc = _calculator(data)
        params = _params(data)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return _run(calc.calculate, params)


@api.post("/api/muhurat/batch")
def muhurat_batch():
    data = _body_json()
    dates = data.get("dates")
    if not isinstance(dates, list) or not dates:
        return _json_error("validation_error", [{"loc": ["dates"], "msg": "dates must be a non-empty list", "type": "type_error"}], 422)
    limit = int(_cfg_section("api").get("max_batch", DEFAULT_MAX_BATCH))
    if len(dates) > limit:
        return _json_error("validation_error", [{"loc": ["dates"], "msg": f"at most {limit} dates per batch", "type": "value_error"}], 422)
    try:
        calc = _calculator(data)
        params = _params(data)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    results = calc.calculate_batch(params, dates)
    failed = sum(1 for r in results if "error" in r)
    log.debug("batch of %d dates, %d failed", len(dates), failed)
    return jsonify({"ok": True, "count": len(results), "failed": failed, "results": results}), 200


@api.post("/api/sunrise")
def sunrise():
    data = _body_json()
    try:
        calc = _calculator(data)
        params = _params(data)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return _run(calc.calculate_sunrise, params)


@api.post("/api/astronomical-data")
def astronomical_data():
    data = _body_json()
    try:
        calc = _calculator(data)
        params = _params(data)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return _run(calc.get_astronomical_data, params)


@api.post("/api/refraction")
def refraction():
    data = _body_json()
    try:
        calc = _calculator(data)
        params = {
            "altitude": coerce_number(data.get("altitude"), "altitude"),
            "pressure": data.get("pressure"),
            "temperature": data.get("temperature"),
            "humidity": data.get("humidity"),
        }
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return _run(calc.calculate_refraction, params)


# ───────────────────────── descriptive routes ─────────────────────────
@api.get("/api/coordinates/format")
def coordinates_format():
    args = request.args
    try:
        lat = coerce_number(args.get("latitude"), "latitude")
        lon = coerce_number(args.get("longitude"), "longitude")
        fmt = args.get("format", "decimal")
        return jsonify({
            "ok": True,
            "formatted": format_coordinates(lat, lon, fmt),
            "format": fmt,
            "all": convert_coordinate_formats(lat, lon),
        }), 200
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)


@api.get("/api/info")
def info():
    calc = BrahmaMuhuratCalculator.from_settings(
        current_app.config.get("BM_SETTINGS") or CalculatorSettings(),
        observer=current_app.extensions.get("bm_observer"),
        ephemeris=current_app.extensions.get("bm_ephemeris"),
    )
    return jsonify({
        "ok": True,
        "library": calc.library_info(),
        "traditions": calc.tradition_info(),
        "precision": calc.precision_info(),
        "refraction": calc.refraction_info(),
    }), 200
