from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

import httpx

from .. import settings
from .http_session import http_session
from .protocols import BatchPriceProvider

logger = logging.getLogger(__name__)


class CoinGeckoPricingProvider(BatchPriceProvider):
    """Batch USD prices from the CoinGecko simple price endpoint."""

    provider_id = "coingecko"

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        vs_currency: str = "usd",
    ) -> None:
        self._client = client
        self._base_url = (base_url or settings.get_coingecko_base_url()).rstrip("/")
        self._timeout = settings.get_http_timeout_seconds() if timeout is None else timeout
        self._vs_currency = vs_currency.strip().lower()

    async def get_prices(self, ids: Sequence[str]) -> dict[str, float]:
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return {}

        params = {"ids": ",".join(unique_ids), "vs_currencies": self._vs_currency}
        logger.info("Fetching prices from CoinGecko for: %s", ", ".join(unique_ids))

        try:
            async with http_session(self._client, self._timeout) as client:
                resp = await client.get(f"{self._base_url}/simple/price", params=params)
            if resp.status_code != 200:
                logger.warning("CoinGecko API error: %s", resp.status_code)
                return {}
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("CoinGecko fetch error: %s", exc)
            return {}

        return self._extract_prices(data)

    def _extract_prices(self, data: Any) -> dict[str, float]:
        if not isinstance(data, dict):
            return {}

        prices: dict[str, float] = {}
        for coin_id, quote in data.items():
            if not isinstance(quote, dict):
                continue
            raw = quote.get(self._vs_currency)
            if raw is None or isinstance(raw, bool):
                continue
            try:
                price = float(raw)
            except (TypeError, ValueError):
                continue
            if math.isfinite(price):
                prices[coin_id] = price
        return prices
