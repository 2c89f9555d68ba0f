from __future__ import annotations

from typing import Optional, Sequence

import pytest


class DummyBatchPricer:
    provider_id = "dummy-batch"

    def __init__(self, prices: Optional[dict[str, float]] = None) -> None:
        self.prices = dict(prices or {})
        self.calls: list[list[str]] = []

    async def get_prices(self, ids: Sequence[str]) -> dict[str, float]:
        self.calls.append(list(ids))
        return {i: self.prices[i] for i in ids if i in self.prices}


class DummyContractPricer:
    provider_id = "dummy-contract"

    def __init__(self, prices: Optional[dict[str, float]] = None) -> None:
        self.prices = dict(prices or {})
        self.calls: list[tuple[str, str]] = []

    async def get_price(self, *, contract: str, chain: str, symbol: Optional[str] = None) -> Optional[float]:
        self.calls.append((contract, chain))
        return self.prices.get(contract)


@pytest.fixture()
def isolated_paths(monkeypatch: pytest.MonkeyPatch, tmp_path):
    # Keep tests away from the repo's src/data files.
    holdings = tmp_path / "finances.yaml"
    snapshots = tmp_path / "snapshots.yaml"
    monkeypatch.setenv("PORTFOLIO_HOLDINGS_PATH", str(holdings))
    monkeypatch.setenv("PORTFOLIO_SNAPSHOTS_PATH", str(snapshots))
    return holdings, snapshots
