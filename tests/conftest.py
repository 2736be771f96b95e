# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the Brahma Muhurat suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (zones are always passed explicitly).
- Provides calculators with a silent observer and an ephemeris stub that always fails.
- Skips maximum-tier kernel tests when no JPL kernel is configured.
"""

import os
from typing import Any, List, Tuple

import pytest
from hypothesis import settings, HealthCheck

from brahma_muhurat.core.ephemeris_adapter import EphemerisAdapter, EphemerisError


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # ERFA iterations are slow on shared runners
        max_examples=40,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=100,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("markers", "kernel: needs a local JPL kernel (BM_EPHEMERIS)")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(scope="session")
def ensure_erfa():
    import erfa  # pyERFA exposes the ERFA namespace as 'erfa'
    for name in ("dtf2d", "utctai", "taitt", "utcut1", "epv00", "pnm06a", "gst06a", "hd2ae"):
        assert hasattr(erfa, name), f"ERFA.{name} not available"
    return erfa


@pytest.fixture(scope="session")
def ensure_tzdata():
    from zoneinfo import ZoneInfo
    for name in ("UTC", "Asia/Kolkata", "America/New_York", "Europe/Oslo"):
        ZoneInfo(name)


# ──────────────────────────────────────────────────────────────────────────────
# Calculator collaborators
# ──────────────────────────────────────────────────────────────────────────────

class FailingEphemeris(EphemerisAdapter):
    """Adapter whose every query fails as if no kernel were installed."""

    def _load(self):
        raise EphemerisError("kernel", "no kernel in test environment")


class RecordingObserver:
    def __init__(self) -> None:
        self.created: List[Any] = []
        self.degraded_calls: List[Tuple[str, str, dict]] = []
        self.calculated_calls: List[str] = []
        self.failures: List[Tuple[int, Any, BaseException]] = []

    def calculator_created(self, settings: Any) -> None:
        self.created.append(settings)

    def degraded(self, stage: str, reason: str, **context: Any) -> None:
        self.degraded_calls.append((stage, reason, context))

    def calculated(self, operation: str, seconds: float, **context: Any) -> None:
        self.calculated_calls.append(operation)

    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None:
        self.failures.append((index, date, error))


@pytest.fixture
def failing_ephemeris() -> FailingEphemeris:
    return FailingEphemeris()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(scope="session")
def real_ephemeris():
    adapter = EphemerisAdapter()
    if not adapter.available():
        pytest.skip("no JPL kernel configured (set BM_EPHEMERIS or BM_EPHEMERIS_DOWNLOAD=1)")
    return adapter


@pytest.fixture
def varanasi() -> dict:
    return {
        "latitude": 25.317644,
        "longitude": 83.005495,
        "elevation": 80,
        "date": "2024-02-18",
        "timezone": "Asia/Kolkata",
    }
