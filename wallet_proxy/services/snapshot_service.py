"""
Snapshot assembler.

Composes balances, prices and metadata into one WalletSnapshot. Rows are
sorted by USD value with unpriced rows last, rows whose known value is below
``min_usd`` are hidden (unpriced rows never are), the list is truncated to
``max_tokens``, and the total covers the native balance plus the visible
rows only. Any failure yields a well-formed, empty snapshot with a warning.
"""

from datetime import datetime, timezone
from typing import List, Optional

from wallet_proxy.constants import SOL_MINT
from wallet_proxy.models.token import PricePoint, TokenSnapshotRow, WalletSnapshot
from wallet_proxy.services.balance_service import BalanceFetcher
from wallet_proxy.services.base_service import BaseService
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.services.metadata_service import TokenMetadataDirectory
from wallet_proxy.services.price_service import PriceResolver
from wallet_proxy.utils.batching import unique
from wallet_proxy.utils.validation import clamp, sanitize_min_usd, validate_public_key

DEFAULT_MAX_TOKENS = 25
MAX_TOKENS_LIMIT = 200

INVALID_OWNER = "Invalid wallet address"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_rows(rows: List[TokenSnapshotRow]) -> List[TokenSnapshotRow]:
    """Sort rows by USD value descending; rows without a value go last."""
    return sorted(
        rows,
        key=lambda row: (row.usd_value is None, -(row.usd_value or 0.0))
    )


def is_visible(row: TokenSnapshotRow, min_usd: float) -> bool:
    """A row is hidden only when its price is known and its value is below ``min_usd``."""
    if not row.price_known:
        return True
    return row.usd_value >= min_usd


class SnapshotAssembler(BaseService):
    """Builds wallet snapshots from the balance, price and metadata components."""

    def __init__(
        self,
        balance_fetcher: BalanceFetcher,
        price_resolver: PriceResolver,
        directory: TokenMetadataDirectory,
        cache: Optional[ResponseCache] = None,
        cache_ttl: Optional[float] = None
    ):
        """
        Initialize the assembler.

        Args:
            balance_fetcher: Source of native and token balances
            price_resolver: Source of USD prices
            directory: Token metadata directory
            cache: Optional response cache for finished snapshots
            cache_ttl: TTL for cached snapshots (cache default if None)
        """
        super().__init__()
        self.balance_fetcher = balance_fetcher
        self.price_resolver = price_resolver
        self.directory = directory
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def build_snapshot(
        self,
        owner: str,
        min_usd: Optional[float] = 0.0,
        max_tokens: int = DEFAULT_MAX_TOKENS
    ) -> WalletSnapshot:
        """
        Build (or serve from cache) the snapshot of a wallet.

        Args:
            owner: Wallet address
            min_usd: Hide priced rows worth less than this many USD
            max_tokens: Maximum number of token rows, clamped to [1, 200]

        Returns:
            The snapshot; degraded snapshots carry a ``warning`` and are not cached.
            An owner that is not a valid public key gets an empty snapshot.
        """
        if not validate_public_key(owner):
            return WalletSnapshot.empty(owner=owner, timestamp=utc_now_iso(), warning=INVALID_OWNER)

        min_usd = sanitize_min_usd(min_usd)
        max_tokens = clamp(max_tokens, 1, MAX_TOKENS_LIMIT)
        cache_key = ResponseCache.build_key(
            "wallet", owner=owner, min_usd=min_usd, max_tokens=max_tokens
        )

        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            async with self.log_timing(f"snapshot {owner}"):
                snapshot = await self._assemble(owner, min_usd, max_tokens)
        except Exception as e:
            self.logger.exception(f"Snapshot assembly failed for {owner}")
            return WalletSnapshot.empty(
                owner=owner,
                timestamp=utc_now_iso(),
                warning=f"Wallet data temporarily unavailable: {str(e) or type(e).__name__}"
            )

        if self.cache is not None and not snapshot.degraded:
            self.cache.set(cache_key, snapshot, self.cache_ttl)
        return snapshot

    async def _assemble(self, owner: str, min_usd: float, max_tokens: int) -> WalletSnapshot:
        balances = await self.balance_fetcher.fetch_balances(owner)

        token_mints = unique(entry.mint for entry in balances.tokens)
        metadata = self.directory.lookup_many(token_mints)
        prices = await self.price_resolver.resolve(token_mints + [SOL_MINT])

        rows = [
            TokenSnapshotRow.build(
                entry,
                metadata[entry.mint],
                prices.get(entry.mint) or PricePoint.unknown(entry.mint)
            )
            for entry in balances.tokens
        ]
        visible = [row for row in sort_rows(rows) if is_visible(row, min_usd)][:max_tokens]

        native_price = (prices.get(SOL_MINT) or PricePoint.unknown(SOL_MINT)).usd_price
        native_usd_value = balances.native * native_price if native_price is not None else 0.0
        total_usd_value = native_usd_value + sum(row.usd_value or 0.0 for row in visible)

        return WalletSnapshot(
            owner=owner,
            timestamp=utc_now_iso(),
            native_amount=balances.native,
            native_price_usd=native_price,
            native_usd_value=native_usd_value,
            total_usd_value=total_usd_value,
            token_count=len(visible),
            tokens=visible,
            warning="; ".join(balances.warnings) or None,
        )
