from __future__ import annotations

import time
from typing import Callable, Optional

from .models import PortfolioReport


class ReportCache:
    """Single-slot, time-boxed cache for the last computed report.

    One instance lives for the life of the application. The slot is replaced
    wholesale on every recomputation, never merged. There is no locking:
    requests that miss at the same time each recompute and the last write
    wins.
    """

    def __init__(self, *, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._report: Optional[PortfolioReport] = None
        self._stored_at: float = 0.0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self) -> Optional[PortfolioReport]:
        """Return the cached report marked as cached, or None when empty or stale."""

        if self._report is None:
            return None
        if self._clock() - self._stored_at >= self._ttl_seconds:
            return None
        return self._report.model_copy(update={"cached": True})

    def put(self, report: PortfolioReport) -> None:
        self._report, self._stored_at = report.model_copy(update={"cached": False}), self._clock()

    def clear(self) -> None:
        self._report = None
        self._stored_at = 0.0
