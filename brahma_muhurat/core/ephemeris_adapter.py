# brahma_muhurat/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Skyfield ephemeris adapter (maximum-precision tier)
#
# • Thread-safe lazy bootstrap of the timescale and the JPL kernel
# • Kernel resolved from BM_EPHEMERIS or brahma_muhurat/data/de421.bsp;
#   optional download only when BM_EPHEMERIS_DOWNLOAD is on
# • Git LFS pointer detection (a checked-out pointer is not a kernel)
# • Every backend failure surfaces as EphemerisError(stage, message, **context)
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from skyfield import almanac
from skyfield import __version__ as SKYFIELD_VERSION
from skyfield.api import Loader, load, wgs84

log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Environment (frozen into Config defaults at import)
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = "de421.bsp"
_DATA_DIR_DEFAULT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data")

_KERNEL_ENV = os.getenv("BM_EPHEMERIS", "").strip()
_DATA_DIR_ENV = os.getenv("BM_EPHEMERIS_DIR", _DATA_DIR_DEFAULT)
_DOWNLOAD_ENV = os.getenv("BM_EPHEMERIS_DOWNLOAD", "0").lower() in ("1", "true", "yes", "on")


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(RuntimeError):
    """Categorized error for adapter callers (stage ∈ kernel | search | position)."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Config:
    kernel_path: str = _KERNEL_ENV
    data_dir: str = _DATA_DIR_ENV
    kernel_name: str = EPHEMERIS_NAME_DEFAULT
    allow_download: bool = _DOWNLOAD_ENV


def _looks_like_lfs_pointer(path: str) -> bool:
    try:
        if os.path.getsize(path) <= 512:
            with open(path, "rb") as f:
                head = f.read(128)
            return head.startswith(b"version https://git-lfs.github.com/spec/v1")
    except OSError:
        return False
    return False


def _resolve_kernel_path(cfg: Config) -> Optional[str]:
    if cfg.kernel_path and os.path.isfile(cfg.kernel_path):
        return cfg.kernel_path
    fallback = os.path.join(cfg.data_dir, cfg.kernel_name)
    return fallback if os.path.isfile(fallback) else None


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide timescale (shared by all adapters)
# ─────────────────────────────────────────────────────────────────────────────
_TS = None
_LOCK_TS = threading.Lock()


def _get_timescale():
    global _TS
    if _TS is not None:
        return _TS
    with _LOCK_TS:
        if _TS is None:
            _TS = load.timescale()
    return _TS


# ─────────────────────────────────────────────────────────────────────────────
# Adapter
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class EphemerisAdapter:
    """Skyfield-backed sunrise search and apparent topocentric Sun position."""
    config: Config = field(default_factory=Config)

    def __post_init__(self) -> None:
        self._kernel = None
        self._kernel_path: Optional[str] = None
        self._lock = threading.Lock()

    # ── kernel ──
    def _load(self):
        if self._kernel is not None:
            return self._kernel
        with self._lock:
            if self._kernel is not None:
                return self._kernel
            path = _resolve_kernel_path(self.config)
            if path:
                if _looks_like_lfs_pointer(path):
                    raise EphemerisError("kernel", f"Kernel looks like a Git LFS pointer: {path}")
                try:
                    self._kernel = load(path)
                except Exception as e:
                    raise EphemerisError("kernel", f"Skyfield failed to load kernel: {path}", error=str(e))
                self._kernel_path = path
            elif self.config.allow_download:
                log.info("Downloading %s into %s", self.config.kernel_name, self.config.data_dir)
                try:
                    self._kernel = Loader(self.config.data_dir)(self.config.kernel_name)
                except Exception as e:
                    raise EphemerisError("kernel", f"Kernel download failed: {self.config.kernel_name}", error=str(e))
                self._kernel_path = os.path.join(self.config.data_dir, self.config.kernel_name)
            else:
                raise EphemerisError(
                    "kernel",
                    f"No local {self.config.kernel_name} (set BM_EPHEMERIS, place it in "
                    f"{self.config.data_dir}, or enable BM_EPHEMERIS_DOWNLOAD)",
                )
        return self._kernel

    def available(self) -> bool:
        try:
            self._load()
            return True
        except EphemerisError as e:
            log.debug("ephemeris unavailable: %s", e)
            return False

    # ── queries ──
    def sunrise(
        self,
        latitude: float,
        longitude: float,
        elevation_m: float,
        start_utc: datetime,
        end_utc: datetime,
    ) -> datetime:
        """First sunrise (upper limb, standard refraction) in [start_utc, end_utc)."""
        eph = self._load()
        ts = _get_timescale()
        try:
            site = wgs84.latlon(latitude, longitude, elevation_m=elevation_m)
            f = almanac.sunrise_sunset(eph, site)
            times, events = almanac.find_discrete(ts.from_datetime(start_utc), ts.from_datetime(end_utc), f)
        except Exception as e:
            raise EphemerisError("search", "rise/set search failed", error=str(e),
                                 latitude=latitude, longitude=longitude)
        for t, is_up in zip(times, events):
            if is_up:
                return t.utc_datetime().astimezone(timezone.utc)
        raise EphemerisError("search", "no sunrise in window", latitude=latitude,
                             start=start_utc.isoformat(), end=end_utc.isoformat())

    def position(self, latitude: float, longitude: float, elevation_m: float, instant: datetime) -> Dict[str, float]:
        """Apparent topocentric azimuth/elevation and RA/Dec (equinox of date), degrees."""
        eph = self._load()
        ts = _get_timescale()

        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        try:
            observer = eph["earth"] + wgs84.latlon(latitude, longitude, elevation_m=elevation_m)
            app = observer.at(ts.from_datetime(instant)).observe(eph["sun"]).apparent()
            alt, az, _ = app.altaz()
            ra, dec, _ = app.radec("date")
        except Exception as e:
            raise EphemerisError("position", "apparent position failed", error=str(e))
        return {
            "azimuth": float(az.degrees),
            "elevation": float(alt.degrees),
            "right_ascension": float(ra.hours) * 15.0,
            "declination": float(dec.degrees),
        }

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "skyfield": SKYFIELD_VERSION,
            "kernel_loaded": self._kernel is not None,
            "kernel_path": self._kernel_path or _resolve_kernel_path(self.config),
            "allow_download": self.config.allow_download,
        }


_DEFAULT: Optional[EphemerisAdapter] = None
_LOCK_DEFAULT = threading.Lock()


def default_adapter() -> EphemerisAdapter:
    """Process-wide adapter so the kernel is read once."""
    global _DEFAULT
    if _DEFAULT is None:
        with _LOCK_DEFAULT:
            if _DEFAULT is None:
                _DEFAULT = EphemerisAdapter()
    return _DEFAULT
