"""
Price resolver.

Resolves USD unit prices for a set of mints. Each batch asks the primary
provider (Jupiter) first; only the mints it could not price are sent to the
secondary provider (Birdeye), and only when a Birdeye key is configured.
Secondary results fill gaps and never replace a primary price. Provider
failures are logged and leave the affected mints unknown; ``resolve`` itself
does not raise.
"""

from typing import Any, Dict, Iterable, List, Optional

from cachetools import TTLCache

from wallet_proxy.clients.birdeye_client import BirdeyeClient
from wallet_proxy.clients.jupiter_client import JupiterClient
from wallet_proxy.config import PriceConfig
from wallet_proxy.models.token import PricePoint, parse_price
from wallet_proxy.services.base_service import BaseService
from wallet_proxy.utils.batching import chunked, unique

PRIMARY_SOURCE = "jupiter"
SECONDARY_SOURCE = "birdeye"

# Upper bound on memoized prices
PRICE_MEMO_SIZE = 10_000


class PriceResolver(BaseService):
    """Two-provider USD price resolution with gap-filling fallback."""

    def __init__(
        self,
        primary: JupiterClient,
        secondary: Optional[BirdeyeClient] = None,
        config: Optional[PriceConfig] = None
    ):
        """
        Initialize the resolver.

        Args:
            primary: Primary price provider client
            secondary: Secondary price provider client, used only for gaps
            config: Price configuration (batch sizes, memo TTL, concurrency)
        """
        super().__init__()
        self.primary = primary
        self.secondary = secondary
        self.config = config or PriceConfig()
        self._memo: Optional[TTLCache] = None
        if self.config.cache_ttl > 0:
            self._memo = TTLCache(maxsize=PRICE_MEMO_SIZE, ttl=self.config.cache_ttl)

    @property
    def secondary_enabled(self) -> bool:
        return self.secondary is not None and self.secondary.has_credentials

    async def resolve(self, mints: Iterable[str]) -> Dict[str, PricePoint]:
        """
        Resolve USD prices for a set of mints.

        Args:
            mints: Mint addresses; duplicates and empty values are ignored

        Returns:
            A PricePoint for every requested mint; unpriced mints carry
            ``usd_price=None``
        """
        requested = unique(mints)
        resolved: Dict[str, PricePoint] = {}
        pending: List[str] = []

        for mint in requested:
            memoized = self._memo.get(mint) if self._memo is not None else None
            if memoized is not None:
                resolved[mint] = memoized
            else:
                pending.append(mint)

        if pending:
            batches = chunked(pending, self.config.batch_size)
            results = await self.gather_with_concurrency(
                self.config.concurrency,
                *[
                    self.execute_with_fallback(
                        self._resolve_batch(batch),
                        fallback_value={},
                        error_message=f"Price batch of {len(batch)} mints failed"
                    )
                    for batch in batches
                ]
            )
            for batch_prices in results:
                resolved.update(batch_prices)

        self.logger.debug(
            f"Resolved {sum(1 for p in resolved.values() if p.known)}/{len(requested)} prices"
        )
        return {mint: resolved.get(mint) or PricePoint.unknown(mint) for mint in requested}

    async def _resolve_batch(self, batch: List[str]) -> Dict[str, PricePoint]:
        """Resolve one batch: primary first, then the secondary for what is missing."""
        found: Dict[str, PricePoint] = {}

        primary_raw = await self.execute_with_fallback(
            self.primary.get_prices(batch),
            fallback_value={},
            error_message=f"Primary price provider failed for {len(batch)} mints"
        )
        self._collect(found, primary_raw, batch, PRIMARY_SOURCE)

        missing = [mint for mint in batch if mint not in found]
        if missing and self.secondary_enabled:
            for chunk in chunked(missing, self.config.secondary_batch_size):
                secondary_raw = await self.execute_with_fallback(
                    self.secondary.get_multi_price(chunk),
                    fallback_value={},
                    error_message=f"Secondary price provider failed for {len(chunk)} mints"
                )
                self._collect(found, secondary_raw, chunk, SECONDARY_SOURCE)

        if self._memo is not None:
            for mint, point in found.items():
                self._memo[mint] = point
        return found

    @staticmethod
    def _collect(found: Dict[str, PricePoint], raw_prices: Dict[str, Any],
                 allowed: List[str], source: str) -> None:
        """Record usable prices for mints in ``allowed`` that are not priced yet."""
        allowed_set = set(allowed)
        for mint, raw in raw_prices.items():
            if mint not in allowed_set or mint in found:
                continue
            price = parse_price(raw)
            if price is not None:
                found[mint] = PricePoint(mint=mint, usd_price=price, source=source)
