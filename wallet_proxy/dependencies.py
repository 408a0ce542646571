"""
Service composition and dependency providers for the wallet proxy.

The ServiceContainer owns every client, cache and service instance. It is
built once per application, stored on ``app.state.container`` and handed to
route handlers through the FastAPI dependency providers below.
"""

import logging
from typing import Optional

from fastapi import Request

from wallet_proxy.clients.birdeye_client import BirdeyeClient
from wallet_proxy.clients.jupiter_client import JupiterClient
from wallet_proxy.clients.rpc_client import SolanaRpcClient
from wallet_proxy.config import AppConfig, get_app_config
from wallet_proxy.services.balance_service import BalanceFetcher
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.services.metadata_service import TokenMetadataDirectory
from wallet_proxy.services.price_service import PriceResolver
from wallet_proxy.services.snapshot_service import SnapshotAssembler
from wallet_proxy.services.trade_service import TradeNormalizer
from wallet_proxy.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Composition root holding the process-wide service instances."""

    def __init__(
        self,
        config: AppConfig,
        rpc_client: SolanaRpcClient,
        jupiter_client: JupiterClient,
        price_client: BirdeyeClient,
        trade_client: BirdeyeClient,
        directory: TokenMetadataDirectory,
        response_cache: ResponseCache,
        price_resolver: PriceResolver,
        balance_fetcher: BalanceFetcher,
        snapshot_assembler: SnapshotAssembler,
        trade_normalizer: TradeNormalizer
    ):
        self.config = config
        self.rpc_client = rpc_client
        self.jupiter_client = jupiter_client
        self.price_client = price_client
        self.trade_client = trade_client
        self.directory = directory
        self.response_cache = response_cache
        self.price_resolver = price_resolver
        self.balance_fetcher = balance_fetcher
        self.snapshot_assembler = snapshot_assembler
        self.trade_normalizer = trade_normalizer

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "ServiceContainer":
        """
        Wire up all services from configuration.

        Args:
            config: Application configuration (read from the environment if None)

        Returns:
            A container whose services are ready for use
        """
        config = config or get_app_config()
        logger.info("Initializing service providers")

        retry_policy = RetryPolicy(
            max_attempts=config.retry.max_attempts,
            base_delay=config.retry.base_delay,
            jitter=config.retry.jitter,
            timeout=config.retry.timeout,
        )
        rpc_policy = RetryPolicy(
            max_attempts=config.retry.max_attempts,
            base_delay=config.retry.base_delay,
            jitter=config.retry.jitter,
            timeout=config.solana.timeout,
        )

        rpc_client = SolanaRpcClient(config.solana, retry_policy=rpc_policy)
        jupiter_client = JupiterClient(config.prices, config.metadata, retry_policy=retry_policy)
        price_client = BirdeyeClient(
            config.prices.birdeye_api_key,
            base_url=config.prices.birdeye_base_url,
            retry_policy=retry_policy
        )
        trade_client = BirdeyeClient(
            config.trades.api_key,
            base_url=config.trades.base_url,
            retry_policy=retry_policy
        )

        directory = TokenMetadataDirectory(jupiter_client, config.metadata)
        response_cache = ResponseCache(
            default_ttl=config.cache.response_ttl,
            max_size=config.cache.max_size
        )
        price_resolver = PriceResolver(jupiter_client, price_client, config.prices)
        balance_fetcher = BalanceFetcher(rpc_client, config.solana)

        container = cls(
            config=config,
            rpc_client=rpc_client,
            jupiter_client=jupiter_client,
            price_client=price_client,
            trade_client=trade_client,
            directory=directory,
            response_cache=response_cache,
            price_resolver=price_resolver,
            balance_fetcher=balance_fetcher,
            snapshot_assembler=SnapshotAssembler(
                balance_fetcher, price_resolver, directory, cache=response_cache
            ),
            trade_normalizer=TradeNormalizer(
                trade_client, price_resolver, directory,
                cache=response_cache, config=config.trades
            ),
        )
        logger.info(
            f"Service providers initialized (secondary prices: "
            f"{'on' if config.prices.has_secondary else 'off'}, "
            f"trades: {'on' if config.trades.enabled else 'off'})"
        )
        return container

    async def startup(self) -> None:
        """Start background work (token list refresh)."""
        self.directory.start()

    async def shutdown(self) -> None:
        """Stop background work and close upstream connections."""
        await self.directory.stop()
        for client in (self.rpc_client, self.jupiter_client, self.price_client, self.trade_client):
            await client.close()
        logger.info("Service providers shut down")


# FastAPI dependency providers
def get_container(request: Request) -> ServiceContainer:
    """Dependency provider for the application's ServiceContainer."""
    return request.app.state.container


def get_snapshot_assembler(request: Request) -> SnapshotAssembler:
    """Dependency provider for SnapshotAssembler."""
    return get_container(request).snapshot_assembler


def get_trade_normalizer(request: Request) -> TradeNormalizer:
    """Dependency provider for TradeNormalizer."""
    return get_container(request).trade_normalizer
