from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .models import GroupedHolding, Holding, SingleHolding, Token


# Common symbols whose CoinGecko id is not simply the lowercased symbol.
SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "MATIC": "matic-network",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
    "ARB": "arbitrum",
    "OP": "optimism",
}


def resolve_price_id(symbol: Optional[str], explicit_id: Optional[str] = None) -> Optional[str]:
    """Return the batch price id for a holding, or None if it has no identity."""

    if explicit_id:
        return explicit_id
    mapped = SYMBOL_TO_ID.get((symbol or "").upper())
    if mapped:
        return mapped
    if symbol:
        return symbol.lower()
    return None


@dataclass(frozen=True)
class BatchHolding:
    holding: SingleHolding
    price_id: str


@dataclass
class ContractGroup:
    name: str
    tokens: list[Token] = field(default_factory=list)
    color: Optional[str] = None


@dataclass
class HoldingBuckets:
    batch: list[BatchHolding] = field(default_factory=list)
    contract: list[SingleHolding] = field(default_factory=list)
    # Keyed by group name, in first-seen order. A repeated group name replaces
    # the earlier entry.
    grouped_contract: dict[str, ContractGroup] = field(default_factory=dict)
    stablecoin: list[Union[SingleHolding, GroupedHolding]] = field(default_factory=list)
    # Every id sent to the batch price service, including ids of grouped
    # members that are never valued.
    batch_ids: list[str] = field(default_factory=list)


def classify_holdings(holdings: Iterable[Holding]) -> HoldingBuckets:
    buckets = HoldingBuckets()

    for holding in holdings:
        if isinstance(holding, GroupedHolding):
            if holding.stablecoin:
                buckets.stablecoin.append(holding)
                continue

            contract_tokens: list[Token] = []
            for token in holding.tokens:
                if token.has_contract:
                    contract_tokens.append(token)
                    continue
                price_id = resolve_price_id(token.symbol)
                if price_id:
                    buckets.batch_ids.append(price_id)

            if contract_tokens:
                buckets.grouped_contract[holding.group] = ContractGroup(
                    name=holding.group,
                    tokens=contract_tokens,
                    color=holding.color,
                )
            continue

        if holding.stablecoin:
            buckets.stablecoin.append(holding)
        elif holding.has_contract:
            buckets.contract.append(holding)
        else:
            price_id = resolve_price_id(holding.symbol, holding.id)
            if price_id:
                buckets.batch_ids.append(price_id)
                buckets.batch.append(BatchHolding(holding=holding, price_id=price_id))

    return buckets
