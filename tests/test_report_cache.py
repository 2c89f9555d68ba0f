from datetime import datetime, timezone

from crypto_portfolio.models import Asset, PortfolioReport
from crypto_portfolio.report_cache import ReportCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _report(total: float) -> PortfolioReport:
    return PortfolioReport(
        total_value=total,
        assets=[Asset(symbol="BTC", amount=1, price=total, value=total, percentage=100.0)],
        last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def test_empty_cache_misses():
    assert ReportCache(clock=FakeClock()).get() is None


def test_fresh_entry_is_marked_cached_and_stored_copy_is_not():
    clock = FakeClock()
    cache = ReportCache(ttl_seconds=60, clock=clock)
    cache.put(_report(10.0))

    clock.now = 59.9
    hit = cache.get()
    assert hit is not None
    assert hit.cached is True
    assert hit.total_value == 10.0

    clock.now = 60.0
    assert cache.get() is None


def test_put_replaces_slot_wholesale_and_clear_empties_it():
    clock = FakeClock()
    cache = ReportCache(ttl_seconds=60, clock=clock)
    cache.put(_report(10.0))
    clock.now = 30
    cache.put(_report(20.0))

    clock.now = 80
    assert cache.get().total_value == 20.0

    cache.clear()
    assert cache.get() is None
