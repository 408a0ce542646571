"""Common test fixtures for wallet proxy tests.

This module provides fixtures that can be reused across different test modules.
"""

import pytest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from wallet_proxy.clients.birdeye_client import BirdeyeClient
from wallet_proxy.clients.jupiter_client import JupiterClient
from wallet_proxy.clients.rpc_client import SolanaRpcClient
from wallet_proxy.config import (
    AppConfig,
    CacheConfig,
    MetadataConfig,
    PriceConfig,
    RetryConfig,
    ServerConfig,
    SolanaConfig,
    TradeConfig,
)
from wallet_proxy.constants import SOL_MINT, TOKEN_PROGRAM_ID
from wallet_proxy.dependencies import ServiceContainer
from wallet_proxy.main import create_app
from wallet_proxy.services.balance_service import BalanceFetcher
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.services.metadata_service import TokenMetadataDirectory
from wallet_proxy.services.price_service import PriceResolver
from wallet_proxy.services.snapshot_service import SnapshotAssembler
from wallet_proxy.services.trade_service import TradeNormalizer

OWNER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"

SAMPLE_TOKEN_LIST = [
    {
        "address": USDC_MINT,
        "symbol": "USDC",
        "name": "USD Coin",
        "logoURI": "https://example.com/usdc.png",
    },
    {
        "id": BONK_MINT,
        "symbol": "Bonk",
        "name": "Bonk",
        "icon": "",
    },
]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_token_account(mint, amount, decimals=6):
    """Build a jsonParsed token account as returned by getTokenAccountsByOwner."""
    raw = int(round(amount * 10 ** decimals))
    return {
        "pubkey": "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T",
        "account": {
            "data": {
                "parsed": {
                    "info": {
                        "mint": mint,
                        "owner": OWNER,
                        "tokenAmount": {
                            "amount": str(raw),
                            "decimals": decimals,
                            "uiAmount": amount,
                            "uiAmountString": str(amount),
                        },
                    },
                    "type": "account",
                },
                "program": "spl-token",
            },
        },
    }


def price_table(prices):
    """side_effect for get_prices/get_multi_price returning known prices for the requested mints."""
    def _lookup(mints):
        return {mint: prices[mint] for mint in mints if mint in prices}
    return _lookup


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def response_cache(clock):
    """Create a response cache driven by the fake clock."""
    return ResponseCache(default_ttl=8.0, max_size=100, clock=clock)


@pytest.fixture
def mock_rpc_client():
    """Create a mock Solana RPC client holding 2.5 SOL and 1000 USDC."""
    client = AsyncMock(spec=SolanaRpcClient)
    client.get_balance.return_value = 2_500_000_000

    async def token_accounts(owner, program_id):
        if program_id == TOKEN_PROGRAM_ID:
            return [make_token_account(USDC_MINT, 1000.0)]
        return []

    client.get_token_accounts_by_owner.side_effect = token_accounts
    return client


@pytest.fixture
def mock_jupiter_client():
    """Create a mock Jupiter client."""
    client = AsyncMock(spec=JupiterClient)
    client.get_prices.side_effect = price_table({SOL_MINT: 150.0, USDC_MINT: 0.01})
    client.get_token_list.return_value = SAMPLE_TOKEN_LIST
    return client


@pytest.fixture
def mock_birdeye_client():
    """Create a mock Birdeye client with credentials."""
    client = AsyncMock(spec=BirdeyeClient)
    client.has_credentials = True
    client.service_name = "birdeye"
    client.get_multi_price.return_value = {}
    client.get_trades.return_value = []
    return client


@pytest.fixture
def directory(mock_jupiter_client):
    """Create a metadata directory preloaded with the sample token list."""
    directory = TokenMetadataDirectory(mock_jupiter_client)
    directory._tokens = directory._build_mapping(SAMPLE_TOKEN_LIST)
    return directory


@pytest.fixture
def price_config():
    """Price configuration with the secondary provider enabled and no memo."""
    return PriceConfig(birdeye_api_key="test-key", cache_ttl=0)


@pytest.fixture
def price_resolver(mock_jupiter_client, mock_birdeye_client, price_config):
    """Create a PriceResolver over the mock providers."""
    return PriceResolver(mock_jupiter_client, mock_birdeye_client, price_config)


@pytest.fixture
def balance_fetcher(mock_rpc_client):
    """Create a BalanceFetcher over the mock RPC client."""
    return BalanceFetcher(mock_rpc_client, SolanaConfig())


@pytest.fixture
def snapshot_assembler(balance_fetcher, price_resolver, directory, response_cache):
    """Create a SnapshotAssembler with a response cache."""
    return SnapshotAssembler(balance_fetcher, price_resolver, directory, cache=response_cache)


@pytest.fixture
def trade_normalizer(mock_birdeye_client, price_resolver, directory, response_cache):
    """Create a TradeNormalizer with a response cache."""
    return TradeNormalizer(
        mock_birdeye_client,
        price_resolver,
        directory,
        cache=response_cache,
        config=TradeConfig(api_key="test-key")
    )


@pytest.fixture
def service_container(mock_rpc_client, mock_jupiter_client, mock_birdeye_client, directory,
                      response_cache, price_resolver, balance_fetcher, snapshot_assembler,
                      trade_normalizer):
    """Create a ServiceContainer wired to the mock upstream clients."""
    config = AppConfig(
        solana=SolanaConfig(),
        prices=PriceConfig(birdeye_api_key="test-key", cache_ttl=0),
        trades=TradeConfig(api_key="test-key"),
        metadata=MetadataConfig(),
        cache=CacheConfig(),
        retry=RetryConfig(),
        server=ServerConfig(),
    )
    return ServiceContainer(
        config=config,
        rpc_client=mock_rpc_client,
        jupiter_client=mock_jupiter_client,
        price_client=mock_birdeye_client,
        trade_client=mock_birdeye_client,
        directory=directory,
        response_cache=response_cache,
        price_resolver=price_resolver,
        balance_fetcher=balance_fetcher,
        snapshot_assembler=snapshot_assembler,
        trade_normalizer=trade_normalizer,
    )


@pytest.fixture
def api_client(service_container):
    """Create a TestClient running the app lifespan against the mock container."""
    with TestClient(create_app(container=service_container)) as client:
        yield client
