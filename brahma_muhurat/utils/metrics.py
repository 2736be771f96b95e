# brahma_muhurat/utils/metrics.py
from __future__ import annotations

from typing import Any, Final

from prometheus_client import Counter, Histogram

__all__ = ["PrometheusObserver", "MET_DEGRADED", "MET_BATCH_FAILURES", "MET_CALCULATIONS", "CALC_LATENCY"]

MET_DEGRADED: Final = Counter("bm_degraded_total", "Results served by a fallback strategy", ["stage"])
MET_BATCH_FAILURES: Final = Counter("bm_batch_item_failures_total", "Batch items that failed in isolation")
MET_CALCULATIONS: Final = Counter("bm_calculations_total", "Completed calculations", ["operation", "precision"])
CALC_LATENCY: Final = Histogram("bm_calculation_seconds", "Calculation latency", ["operation"])


class PrometheusObserver:
    """Calculation observer that feeds prometheus_client metrics."""

    def calculator_created(self, settings: Any) -> None:
        return None

    def degraded(self, stage: str, reason: str, **context: Any) -> None:
        MET_DEGRADED.labels(stage=stage).inc()

    def calculated(self, operation: str, seconds: float, **context: Any) -> None:
        MET_CALCULATIONS.labels(operation=operation, precision=str(context.get("precision", ""))).inc()
        CALC_LATENCY.labels(operation=operation).observe(seconds)

    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None:
        MET_BATCH_FAILURES.inc()
