"""Unit tests for the upstream HTTP clients, using httpx.MockTransport."""

import json

import httpx
import pytest

from wallet_proxy.clients.base_client import BaseHttpClient
from wallet_proxy.clients.birdeye_client import BirdeyeClient, extract_items
from wallet_proxy.clients.jupiter_client import JupiterClient, extract_jupiter_prices
from wallet_proxy.clients.rpc_client import SolanaRpcClient
from wallet_proxy.config import MetadataConfig, PriceConfig, SolanaConfig
from wallet_proxy.constants import SOL_MINT, TOKEN_PROGRAM_ID
from wallet_proxy.utils.errors import (
    RpcError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamResponseError,
    ValidationError,
)
from wallet_proxy.utils.retry import RetryPolicy
from tests.fixtures.common import OWNER, USDC_MINT, make_token_account

FAST_POLICY = RetryPolicy(max_attempts=2, base_delay=0.0, jitter=0.0, timeout=1.0)


def mock_http(handler):
    """Build an httpx client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBaseHttpClient:
    """Tests for BaseHttpClient."""

    @pytest.mark.asyncio
    async def test_retries_transient_status(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json={"ok": True})

        client = BaseHttpClient("https://api.example.com", FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_json("/status") == {"ok": True}
        assert len(calls) == 2
        assert str(calls[0].url) == "https://api.example.com/status"

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, text="missing")

        client = BaseHttpClient("https://api.example.com", FAST_POLICY, http_client=mock_http(handler))

        with pytest.raises(UpstreamError) as exc_info:
            await client.get_json("/missing")
        assert exc_info.value.upstream_status == 404
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_error_is_translated(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = BaseHttpClient("https://api.example.com", FAST_POLICY, http_client=mock_http(handler))

        with pytest.raises(UpstreamConnectionError):
            await client.get_json("/")

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_response_error(self):
        client = BaseHttpClient(
            "https://api.example.com",
            FAST_POLICY,
            http_client=mock_http(lambda request: httpx.Response(200, text="<html>"))
        )

        with pytest.raises(UpstreamResponseError):
            await client.get_json("/")

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        http_client = mock_http(lambda request: httpx.Response(200, json={}))
        async with BaseHttpClient("https://api.example.com", FAST_POLICY, http_client=http_client):
            pass

        assert not http_client.is_closed
        await http_client.aclose()


class TestSolanaRpcClient:
    """Tests for SolanaRpcClient."""

    @pytest.mark.asyncio
    async def test_get_balance(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                             "result": {"context": {"slot": 1}, "value": 2_500_000_000}})

        client = SolanaRpcClient(SolanaConfig(), FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_balance(OWNER) == 2_500_000_000
        assert seen["method"] == "getBalance"
        assert seen["params"][0] == OWNER

    @pytest.mark.asyncio
    async def test_get_token_accounts_by_owner(self):
        seen = {}
        account = make_token_account(USDC_MINT, 5.0)

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                             "result": {"context": {"slot": 1}, "value": [account]}})

        client = SolanaRpcClient(SolanaConfig(), FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_token_accounts_by_owner(OWNER, TOKEN_PROGRAM_ID) == [account]
        assert seen["params"][1] == {"programId": TOKEN_PROGRAM_ID}
        assert seen["params"][2]["encoding"] == "jsonParsed"

    @pytest.mark.asyncio
    async def test_rpc_error_object_raises(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                             "error": {"code": -32602, "message": "Invalid param"}})

        client = SolanaRpcClient(SolanaConfig(), FAST_POLICY, http_client=mock_http(handler))

        with pytest.raises(RpcError) as exc_info:
            await client.get_balance(OWNER)
        assert exc_info.value.rpc_code == -32602
        assert not exc_info.value.retryable


class TestJupiterClient:
    """Tests for JupiterClient."""

    def test_extract_v3_shape(self):
        payload = {USDC_MINT: {"usdPrice": 0.9999, "decimals": 6}, SOL_MINT: None}

        assert extract_jupiter_prices(payload, [USDC_MINT, SOL_MINT]) == {USDC_MINT: 0.9999}

    def test_extract_data_shape(self):
        payload = {"data": {SOL_MINT: {"id": SOL_MINT, "price": "151.2"}}}

        assert extract_jupiter_prices(payload, [SOL_MINT, USDC_MINT]) == {SOL_MINT: "151.2"}

    @pytest.mark.asyncio
    async def test_get_prices_sends_ids(self):
        seen = {}

        def handler(request):
            seen["ids"] = request.url.params["ids"]
            seen["key"] = request.headers.get("x-api-key")
            return httpx.Response(200, json={SOL_MINT: {"usdPrice": 150.0}})

        client = JupiterClient(
            PriceConfig(jupiter_api_key="jup-key"),
            retry_policy=FAST_POLICY,
            http_client=mock_http(handler)
        )

        assert await client.get_prices([SOL_MINT, USDC_MINT]) == {SOL_MINT: 150.0}
        assert seen["ids"] == f"{SOL_MINT},{USDC_MINT}"
        assert seen["key"] == "jup-key"

    @pytest.mark.asyncio
    async def test_get_token_list_accepts_wrapped_list(self):
        def handler(request):
            assert request.url.host == "tokens.example.com"
            return httpx.Response(200, json={"tokens": [{"address": USDC_MINT}]})

        client = JupiterClient(
            PriceConfig(),
            MetadataConfig(token_list_url="https://tokens.example.com/all"),
            retry_policy=FAST_POLICY,
            http_client=mock_http(handler)
        )

        assert await client.get_token_list() == [{"address": USDC_MINT}]


class TestBirdeyeClient:
    """Tests for BirdeyeClient."""

    def test_extract_items_candidates(self):
        assert extract_items([{"a": 1}]) == [{"a": 1}]
        assert extract_items({"data": {"items": [1, 2]}}) == [1, 2]
        assert extract_items({"data": [3]}) == [3]
        assert extract_items({"items": []}) == []
        assert extract_items({"data": {"solana": [4]}}) == [4]
        assert extract_items({"success": False, "data": None}) is None

    @pytest.mark.asyncio
    async def test_get_multi_price(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            seen["list"] = request.url.params["list_address"]
            return httpx.Response(200, json={
                "success": True,
                "data": {USDC_MINT: {"value": 1.0001}, SOL_MINT: None},
            })

        client = BirdeyeClient("bird-key", retry_policy=FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_multi_price([USDC_MINT, SOL_MINT]) == {USDC_MINT: 1.0001}
        assert seen["list"] == f"{USDC_MINT},{SOL_MINT}"
        assert seen["headers"]["X-API-KEY"] == "bird-key"
        assert seen["headers"]["x-chain"] == "solana"

    @pytest.mark.asyncio
    async def test_get_trades_falls_back_to_alternate_endpoint(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/defi/v3/token/txs":
                return httpx.Response(500, text="oops")
            assert request.url.params["tx_type"] == "swap"
            return httpx.Response(200, json={"success": True, "data": {"items": [{"side": "buy"}]}})

        client = BirdeyeClient("bird-key", retry_policy=FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_trades("token", USDC_MINT, 20) == [{"side": "buy"}]
        # Primary is retried once before moving on
        assert paths == ["/defi/v3/token/txs", "/defi/v3/token/txs", "/defi/txs/token"]

    @pytest.mark.asyncio
    async def test_get_trades_skips_payload_without_array(self):
        def handler(request):
            if request.url.path == "/trader/txs/seek_by_time":
                return httpx.Response(200, json={"success": False, "data": None})
            assert request.url.params["wallet"] == OWNER
            return httpx.Response(200, json={"data": {"solana": [{"is_buy": True}]}})

        client = BirdeyeClient("bird-key", retry_policy=FAST_POLICY, http_client=mock_http(handler))

        assert await client.get_trades("wallet", OWNER, 20) == [{"is_buy": True}]

    @pytest.mark.asyncio
    async def test_get_trades_total_failure_raises(self):
        client = BirdeyeClient(
            "bird-key",
            retry_policy=FAST_POLICY,
            http_client=mock_http(lambda request: httpx.Response(403, text="forbidden"))
        )

        with pytest.raises(UpstreamError):
            await client.get_trades("pair", USDC_MINT, 20)

    @pytest.mark.asyncio
    async def test_passthrough_rejects_unknown_type(self):
        client = BirdeyeClient("bird-key", retry_policy=FAST_POLICY)

        with pytest.raises(ValidationError):
            await client.passthrough("everything", USDC_MINT)
