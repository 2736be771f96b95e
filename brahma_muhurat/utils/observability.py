# brahma_muhurat/utils/observability.py
"""
Observer hooks the calculator reports through instead of printing.

The core modules never log; the calculator calls an injected observer for
construction, degraded (fallback) results, finished calculations and isolated
batch failures. LoggingObserver is the default.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Protocol, Tuple

__all__ = ["CalculationObserver", "NullObserver", "LoggingObserver", "CompositeObserver"]


class CalculationObserver(Protocol):
    def calculator_created(self, settings: Any) -> None: ...
    def degraded(self, stage: str, reason: str, **context: Any) -> None: ...
    def calculated(self, operation: str, seconds: float, **context: Any) -> None: ...
    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None: ...


class NullObserver:
    def calculator_created(self, settings: Any) -> None:
        return None

    def degraded(self, stage: str, reason: str, **context: Any) -> None:
        return None

    def calculated(self, operation: str, seconds: float, **context: Any) -> None:
        return None

    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None:
        return None


class LoggingObserver:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger("brahma_muhurat")

    def calculator_created(self, settings: Any) -> None:
        self.log.debug("calculator initialised: %s", settings)

    def degraded(self, stage: str, reason: str, **context: Any) -> None:
        self.log.warning("degraded result at %s: %s %s", stage, reason, context or "")

    def calculated(self, operation: str, seconds: float, **context: Any) -> None:
        self.log.debug("%s done in %.4fs %s", operation, seconds, context or "")

    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None:
        self.log.info("batch item %d (%r) failed: %s", index, date, error)


class CompositeObserver:
    """Fan a notification out to several observers in order."""
    def __init__(self, observers: Iterable[CalculationObserver]):
        self.observers: Tuple[CalculationObserver, ...] = tuple(observers)

    def calculator_created(self, settings: Any) -> None:
        for o in self.observers:
            o.calculator_created(settings)

    def degraded(self, stage: str, reason: str, **context: Any) -> None:
        for o in self.observers:
            o.degraded(stage, reason, **context)

    def calculated(self, operation: str, seconds: float, **context: Any) -> None:
        for o in self.observers:
            o.calculated(operation, seconds, **context)

    def batch_item_failed(self, index: int, date: Any, error: BaseException) -> None:
        for o in self.observers:
            o.batch_item_failed(index, date, error)
