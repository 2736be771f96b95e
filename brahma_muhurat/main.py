# brahma_muhurat/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Final

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from brahma_muhurat.api.routes import api as _api_bp
from brahma_muhurat.core.ephemeris_adapter import default_adapter
from brahma_muhurat.core.validators import ValidationError
from brahma_muhurat.utils.config import load_config, settings_from_config
from brahma_muhurat.utils.metrics import PrometheusObserver
from brahma_muhurat.utils.observability import CompositeObserver, LoggingObserver
from brahma_muhurat.version import VERSION

# ───────────────────────── Prometheus ─────────────────────────
MET_REQUESTS: Final = Counter("bm_api_requests_total", "API requests", ["route"])
GAUGE_APP_UP: Final = Gauge("bm_app_up", "1 if app is running")
REQ_LATENCY: Final = Histogram("bm_request_seconds", "API request latency", ["route"])

_SEEDED_ROUTES = (
    "/", "/health", "/healthz", "/metrics",
    "/api/muhurat", "/api/muhurat/batch", "/api/sunrise",
    "/api/astronomical-data", "/api/refraction",
)


# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
        logging.getLogger("brahma_muhurat").handlers = gerr.handlers
        logging.getLogger("brahma_muhurat").setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))


def _register_errors(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return jsonify(ok=False, error="validation_error", details=e.errors(), path=request.path), 422

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        return jsonify(
            ok=False,
            error="http_error",
            code=e.code,
            name=e.name,
            message=e.description,
            path=request.path,
        ), e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return jsonify(
            ok=False,
            error="internal_error",
            type=type(e).__name__,
            message=str(e),
            path=request.path,
        ), 500


# ───────────────────────── health ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="brahma-muhurat", version=VERSION, health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok"), 200


def _metrics_auth_ok() -> bool:
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    if not (user and pw):
        return True
    auth = request.authorization
    return bool(auth and auth.type == "basic" and auth.username == user and auth.password == pw)


# ───────────────────────── app factory ─────────────────────────
def create_app(config_path: str | None = None) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    cfg = load_config(config_path or os.environ.get("BM_CONFIG", "config/defaults.yaml"))
    app.config["BM_CONFIG"] = cfg
    app.config["BM_SETTINGS"] = settings_from_config(cfg)
    app.extensions["bm_observer"] = CompositeObserver([LoggingObserver(), PrometheusObserver()])
    app.extensions["bm_ephemeris"] = default_adapter()

    for route in _SEEDED_ROUTES:
        MET_REQUESTS.labels(route=route).inc(0)
        REQ_LATENCY.labels(route=route).observe(0.0)
    GAUGE_APP_UP.set(1.0)

    @app.before_request
    def _before():
        p = request.path or ""
        if p.startswith("/api/") or p in _SEEDED_ROUTES:
            MET_REQUESTS.labels(route=p).inc()
            request._t0 = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = getattr(request, "_t0", None)
        if t0 is not None:
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    _register_health(app)
    _register_errors(app)
    app.register_blueprint(_api_bp)

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)

    cors = _cfg_cors(cfg)
    CORS(
        app,
        resources={r"/.*": {"origins": cors}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    app.logger.info(
        "App initialized; version=%s settings=%s", VERSION, app.config["BM_SETTINGS"].to_dict()
    )
    return app


def _cfg_cors(cfg) -> str:
    return (
        os.environ.get("CORS_ALLOW_ORIGIN")
        or ((cfg.get("api") or {}).get("cors_origin"))
        or "*"
    )


# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
