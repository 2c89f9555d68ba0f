from __future__ import annotations

from typing import Optional, Protocol, Sequence


class BatchPriceProvider(Protocol):
    """Prices many assets by symbolic id in a single request."""

    provider_id: str

    async def get_prices(self, ids: Sequence[str]) -> dict[str, float]:
        ...


class ContractPriceProvider(Protocol):
    """Prices one on-chain token by contract address, scoped to a chain."""

    provider_id: str

    async def get_price(
        self,
        *,
        contract: str,
        chain: str,
        symbol: Optional[str] = None,
    ) -> Optional[float]:
        ...
