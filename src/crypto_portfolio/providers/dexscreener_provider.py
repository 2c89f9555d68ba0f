from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from .. import settings
from .http_session import http_session
from .protocols import ContractPriceProvider

logger = logging.getLogger(__name__)


# Holdings-file chain names -> Dexscreener chainId. Unmapped chains are
# passed through unchanged.
CHAIN_MAP: dict[str, str] = {
    "ethereum": "ethereum",
    "solana": "solana",
    "base": "base",
    "arbitrum": "arbitrum",
    "polygon": "polygon",
    "bsc": "bsc",
    "avalanche": "avalanche",
    "optimism": "optimism",
}


def dexscreener_chain_id(chain: str) -> str:
    return CHAIN_MAP.get(chain.lower(), chain)


class DexscreenerPricingProvider(ContractPriceProvider):
    """USD price for a token contract, read from its Dexscreener trading pairs."""

    provider_id = "dexscreener"

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self._base_url = (base_url or settings.get_dexscreener_base_url()).rstrip("/")
        self._timeout = settings.get_http_timeout_seconds() if timeout is None else timeout

    async def get_price(
        self,
        *,
        contract: str,
        chain: str,
        symbol: Optional[str] = None,
    ) -> Optional[float]:
        chain_id = dexscreener_chain_id(chain)
        logger.info("Fetching price from Dexscreener for: %s", symbol or contract)

        try:
            async with http_session(self._client, self._timeout) as client:
                resp = await client.get(f"{self._base_url}/latest/dex/tokens/{contract}")
            if resp.status_code != 200:
                logger.warning("Dexscreener API error for %s: %s", symbol or contract, resp.status_code)
                return None
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Dexscreener fetch error for %s: %s", symbol or contract, exc)
            return None

        return self._extract_price(data, chain_id)

    @staticmethod
    def _extract_price(data: Any, chain_id: str) -> Optional[float]:
        if not isinstance(data, dict):
            return None

        pairs = data.get("pairs")
        if not isinstance(pairs, list):
            return None

        pair = next((p for p in pairs if isinstance(p, dict) and p.get("chainId") == chain_id), None)
        if pair is None:
            return None

        try:
            price = float(pair.get("priceUsd"))
        except (TypeError, ValueError):
            return None
        return price if math.isfinite(price) else None
