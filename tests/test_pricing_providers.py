import httpx
import pytest

from crypto_portfolio.providers.coingecko_provider import CoinGeckoPricingProvider
from crypto_portfolio.providers.dexscreener_provider import DexscreenerPricingProvider, dexscreener_chain_id


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_coingecko_requests_unique_ids_in_one_call():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"bitcoin": {"usd": 100000}, "ethereum": {"usd": 4000.5}})

    async with _client(handler) as client:
        provider = CoinGeckoPricingProvider(client=client, base_url="https://cg.test/api/v3")
        prices = await provider.get_prices(["bitcoin", "ethereum", "bitcoin", "pendle"])

    assert len(seen) == 1
    assert seen[0].url.path == "/api/v3/simple/price"
    assert seen[0].url.params["ids"] == "bitcoin,ethereum,pendle"
    assert seen[0].url.params["vs_currencies"] == "usd"
    # Ids missing from the response are simply absent.
    assert prices == {"bitcoin": 100000.0, "ethereum": 4000.5}


@pytest.mark.asyncio
async def test_coingecko_empty_ids_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("unexpected request")

    async with _client(handler) as client:
        provider = CoinGeckoPricingProvider(client=client, base_url="https://cg.test/api/v3")
        assert await provider.get_prices([]) == {}


@pytest.mark.asyncio
async def test_coingecko_non_success_yields_empty_mapping():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"status": {"error_code": 429}})

    async with _client(handler) as client:
        provider = CoinGeckoPricingProvider(client=client, base_url="https://cg.test/api/v3")
        assert await provider.get_prices(["bitcoin"]) == {}


@pytest.mark.asyncio
async def test_coingecko_network_error_yields_empty_mapping():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        provider = CoinGeckoPricingProvider(client=client, base_url="https://cg.test/api/v3")
        assert await provider.get_prices(["bitcoin"]) == {}


@pytest.mark.asyncio
async def test_coingecko_drops_non_finite_prices():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"bitcoin": {"usd": "NaN"}, "solana": {"usd": "Infinity"}, "ethereum": {"usd": 4000}},
        )

    async with _client(handler) as client:
        provider = CoinGeckoPricingProvider(client=client, base_url="https://cg.test/api/v3")
        prices = await provider.get_prices(["bitcoin", "solana", "ethereum"])

    assert prices == {"ethereum": 4000.0}


def _pairs_response(*pairs):
    return httpx.Response(200, json={"schemaVersion": "1.0.0", "pairs": list(pairs)})


@pytest.mark.asyncio
async def test_dexscreener_picks_first_pair_on_requested_chain():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return _pairs_response(
            {"chainId": "bsc", "priceUsd": "9.99"},
            {"chainId": "ethereum", "priceUsd": "0.00001234"},
            {"chainId": "ethereum", "priceUsd": "0.5"},
        )

    async with _client(handler) as client:
        provider = DexscreenerPricingProvider(client=client, base_url="https://dex.test")
        price = await provider.get_price(contract="0x6982", chain="Ethereum", symbol="PEPE")

    assert seen == ["/latest/dex/tokens/0x6982"]
    assert price == pytest.approx(0.00001234)


@pytest.mark.asyncio
async def test_dexscreener_unmapped_chain_is_matched_verbatim():
    assert dexscreener_chain_id("SOLANA") == "solana"
    assert dexscreener_chain_id("sui") == "sui"

    def handler(request: httpx.Request) -> httpx.Response:
        return _pairs_response({"chainId": "sui", "priceUsd": "1.25"})

    async with _client(handler) as client:
        provider = DexscreenerPricingProvider(client=client, base_url="https://dex.test")
        assert await provider.get_price(contract="0x2::sui::SUI", chain="sui") == 1.25


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={}),
        httpx.Response(200, json={"pairs": None}),
        httpx.Response(200, json={"pairs": [{"chainId": "base", "priceUsd": "2"}]}),
        httpx.Response(200, json={"pairs": [{"chainId": "ethereum"}]}),
        httpx.Response(200, json={"pairs": [{"chainId": "ethereum", "priceUsd": "n/a"}]}),
        httpx.Response(200, json={"pairs": [{"chainId": "ethereum", "priceUsd": "NaN"}]}),
        httpx.Response(200, json={"pairs": [{"chainId": "ethereum", "priceUsd": "inf"}]}),
        httpx.Response(200, content=b"<html>oops</html>"),
    ],
)
async def test_dexscreener_failures_yield_none(response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    async with _client(handler) as client:
        provider = DexscreenerPricingProvider(client=client, base_url="https://dex.test")
        assert await provider.get_price(contract="0xabc", chain="ethereum") is None
