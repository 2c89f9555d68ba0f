from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Optional

import httpx

from . import settings
from .classifier import HoldingBuckets, classify_holdings
from .models import Asset, GroupedHolding, Holding, PortfolioReport
from .providers.coingecko_provider import CoinGeckoPricingProvider
from .providers.dexscreener_provider import DexscreenerPricingProvider
from .providers.protocols import BatchPriceProvider, ContractPriceProvider

logger = logging.getLogger(__name__)


class PortfolioService:
    def __init__(
        self,
        *,
        batch_pricer: BatchPriceProvider,
        contract_pricer: ContractPriceProvider,
        contract_concurrency: Optional[int] = None,
    ) -> None:
        self._batch_pricer = batch_pricer
        self._contract_pricer = contract_pricer
        if contract_concurrency is None:
            contract_concurrency = settings.get_contract_concurrency()
        self._contract_concurrency = max(contract_concurrency, 1)

    async def compute_report(self, holdings: Iterable[Holding]) -> PortfolioReport:
        buckets = classify_holdings(holdings)
        assets: list[Asset] = []

        batch_prices = await self._batch_pricer.get_prices(buckets.batch_ids)

        for item in buckets.batch:
            price = batch_prices.get(item.price_id) or 0.0
            assets.append(
                Asset(
                    symbol=item.holding.symbol or item.price_id.upper(),
                    amount=item.holding.amount,
                    price=price,
                    value=item.holding.amount * price,
                    color=item.holding.color,
                )
            )

        single_prices, group_prices = await self._fetch_contract_prices(buckets)

        for holding, price in zip(buckets.contract, single_prices):
            price = price or 0.0
            assets.append(
                Asset(
                    symbol=holding.symbol or "UNKNOWN",
                    amount=holding.amount,
                    price=price,
                    value=holding.amount * price,
                    color=holding.color,
                )
            )

        for group, prices in zip(buckets.grouped_contract.values(), group_prices):
            total_value = 0.0
            total_amount = 0.0
            for token, price in zip(group.tokens, prices):
                total_value += token.amount * (price or 0.0)
                total_amount += token.amount

            assets.append(
                Asset(
                    symbol=group.name,
                    amount=total_amount,
                    price=total_value / total_amount if total_amount > 0 else 0.0,
                    value=total_value,
                    is_group=True,
                    color=group.color,
                )
            )

        for holding in buckets.stablecoin:
            if isinstance(holding, GroupedHolding):
                total_amount = sum((t.amount for t in holding.tokens), 0.0)
                assets.append(
                    Asset(
                        symbol=holding.group,
                        amount=total_amount,
                        price=1.0,
                        value=total_amount,
                        is_group=True,
                        color=holding.color,
                    )
                )
            else:
                assets.append(
                    Asset(
                        symbol=holding.symbol or "STABLE",
                        amount=holding.amount,
                        price=1.0,
                        value=holding.amount,
                        color=holding.color,
                    )
                )

        total_value = sum((a.value for a in assets), 0.0)
        for asset in assets:
            asset.percentage = (asset.value / total_value) * 100 if total_value > 0 else 0.0

        # Stable sort: equal values keep their processing order.
        assets.sort(key=lambda a: a.value, reverse=True)

        return PortfolioReport(
            total_value=total_value,
            assets=assets,
            last_updated=datetime.now(timezone.utc),
            cached=False,
        )

    async def _fetch_contract_prices(
        self,
        buckets: HoldingBuckets,
    ) -> tuple[list[Optional[float]], list[list[Optional[float]]]]:
        """Look up every contract price for one valuation run.

        Lookups are submitted single holdings first, then group members, each in
        holding order, and at most `contract_concurrency` are in flight. Results
        come back in submission order. The same contract appearing twice is
        fetched twice.
        """

        gate = asyncio.Semaphore(self._contract_concurrency)

        async def lookup(contract: str, chain: str, symbol: Optional[str]) -> Optional[float]:
            async with gate:
                return await self._contract_pricer.get_price(contract=contract, chain=chain, symbol=symbol)

        requests = [(h.contract, h.chain, h.symbol) for h in buckets.contract]
        group_sizes: list[int] = []
        for group in buckets.grouped_contract.values():
            group_sizes.append(len(group.tokens))
            requests.extend((t.contract, t.chain, t.symbol) for t in group.tokens)

        if not requests:
            return [], []

        results = await asyncio.gather(*(lookup(c, ch, s) for c, ch, s in requests))

        single_count = len(buckets.contract)
        single_prices = list(results[:single_count])
        group_prices: list[list[Optional[float]]] = []
        offset = single_count
        for size in group_sizes:
            group_prices.append(list(results[offset:offset + size]))
            offset += size

        missing = sum(1 for r in results if r is None)
        if missing:
            logger.info("%d of %d contract lookups returned no price", missing, len(results))

        return single_prices, group_prices


@asynccontextmanager
async def open_portfolio_service() -> AsyncIterator[PortfolioService]:
    """A service priced by CoinGecko and Dexscreener over one shared HTTP client."""

    async with httpx.AsyncClient(timeout=settings.get_http_timeout_seconds()) as client:
        yield PortfolioService(
            batch_pricer=CoinGeckoPricingProvider(client=client),
            contract_pricer=DexscreenerPricingProvider(client=client),
        )
