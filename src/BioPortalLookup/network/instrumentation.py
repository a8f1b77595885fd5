# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.network.instrumentation",
#   "purpose": "Call throughput statistics with periodic inline reporting",
#   "sections": [
#     {"id": "statisticssummary", "name": "StatisticsSummary", "anchor": "class-statisticssummary", "kind": "class"},
#     {"id": "callstatistics", "name": "CallStatistics", "anchor": "class-callstatistics", "kind": "class"},
#     {"id": "instrumented", "name": "instrumented", "anchor": "function-instrumented", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Call statistics for the BioPortal dispatcher.

Counts calls and failures since the last report. Whichever call first crosses
the reporting interval flushes a throughput/error-rate summary and resets the
counters; there is no timer thread. Reporting is best effort: a second thread
crossing the threshold while a report is in progress skips it, and any
reporting error is logged at debug level and dropped.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Reporter = Callable[["StatisticsSummary"], None]


@dataclass(frozen=True)
class StatisticsSummary:
    """Counters for one reporting period."""

    calls: int
    failures: int
    elapsed_s: float

    @property
    def calls_per_minute(self) -> float:
        if self.elapsed_s <= 0:
            return 0.0
        return self.calls * 60.0 / self.elapsed_s

    @property
    def failure_rate(self) -> float:
        if self.calls == 0:
            return 0.0
        return self.failures / self.calls


def log_summary(summary: StatisticsSummary) -> None:
    """Default reporter: one INFO record with the period's figures."""

    logger.info(
        "BioPortal calls: %d in %.0fs (%.1f/min), %d failed (%.1f%%)",
        summary.calls,
        summary.elapsed_s,
        summary.calls_per_minute,
        summary.failures,
        summary.failure_rate * 100,
        extra={
            "calls": summary.calls,
            "failures": summary.failures,
            "elapsed_s": round(summary.elapsed_s, 3),
            "calls_per_minute": round(summary.calls_per_minute, 3),
            "failure_rate": round(summary.failure_rate, 5),
        },
    )


class CallStatistics:
    """Thread-safe call/failure counters with periodic reporting.

    Args:
        report_interval_ms: Minimum time between two reports.
        reporter: Receives each :class:`StatisticsSummary`; logs by default.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        report_interval_ms: int = 5 * 60 * 1000,
        *,
        reporter: Optional[Reporter] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if report_interval_ms <= 0:
            raise ValueError(f"report_interval_ms must be positive, got: {report_interval_ms}")
        self._interval_s = report_interval_ms / 1000.0
        self._reporter = reporter or log_summary
        self._clock = clock
        self._lock = threading.Lock()
        self._report_lock = threading.Lock()
        self._calls = 0
        self._failures = 0
        self._period_start = clock()
        self._total_calls = 0
        self._total_failures = 0

    @property
    def total_calls(self) -> int:
        return self._total_calls

    @property
    def total_failures(self) -> int:
        return self._total_failures

    def snapshot(self) -> StatisticsSummary:
        """Current period counters, without resetting them."""
        with self._lock:
            return StatisticsSummary(
                calls=self._calls,
                failures=self._failures,
                elapsed_s=self._clock() - self._period_start,
            )

    def record(self, *, failed: bool) -> None:
        """Count one call, then flush a report if the interval has elapsed."""
        with self._lock:
            self._calls += 1
            self._total_calls += 1
            if failed:
                self._failures += 1
                self._total_failures += 1
        self.maybe_report()

    def maybe_report(self) -> Optional[StatisticsSummary]:
        """Emit and reset if the reporting interval has elapsed."""
        if self._clock() - self._period_start < self._interval_s:
            return None
        if not self._report_lock.acquire(blocking=False):
            return None
        try:
            with self._lock:
                now = self._clock()
                elapsed = now - self._period_start
                if elapsed < self._interval_s:
                    return None
                summary = StatisticsSummary(
                    calls=self._calls, failures=self._failures, elapsed_s=elapsed
                )
                self._calls = 0
                self._failures = 0
                self._period_start = now
            self._reporter(summary)
            return summary
        except Exception:  # pragma: no cover - reporting must not raise
            logger.debug("call statistics reporting failed", exc_info=True)
            return None
        finally:
            self._report_lock.release()


def instrumented(call: Callable[..., T], statistics: CallStatistics) -> Callable[..., T]:
    """Wrap ``call`` so every invocation is counted; exceptions count as failures."""

    @functools.wraps(call)
    def _wrapped(*args, **kwargs) -> T:
        failed = True
        try:
            result = call(*args, **kwargs)
            failed = False
            return result
        finally:
            try:
                statistics.record(failed=failed)
            except Exception:  # pragma: no cover - statistics must not raise
                logger.debug("call statistics update failed", exc_info=True)

    return _wrapped


__all__ = [
    "StatisticsSummary",
    "CallStatistics",
    "log_summary",
    "instrumented",
]
