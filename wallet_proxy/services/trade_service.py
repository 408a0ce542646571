"""
Trade normalizer.

Turns raw trade-history records into TradeRecords. Field names differ between
endpoint versions, so each logical attribute is resolved from an ordered list
of candidate paths (first populated match wins). Only records with a positive
buy signal are kept. Missing USD values are derived from one batched price
lookup; records whose value is still unknown are never filtered out.
"""

import math
from typing import Any, Dict, Iterable, List, Optional

from wallet_proxy.clients.birdeye_client import BirdeyeClient
from wallet_proxy.config import TradeConfig
from wallet_proxy.models.token import parse_price
from wallet_proxy.models.trade import TRADE_KINDS, TradeFeed, TradeRecord
from wallet_proxy.services.base_service import BaseService
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.services.metadata_service import TokenMetadataDirectory
from wallet_proxy.services.price_service import PriceResolver
from wallet_proxy.utils.batching import unique
from wallet_proxy.utils.validation import clamp, sanitize_min_usd, validate_public_key

DEFAULT_LIMIT = 10
MAX_LIMIT = 50

# Candidate paths per attribute, most specific first; dots descend into nested objects
TRADE_FIELDS: Dict[str, tuple] = {
    "signature": ("tx_hash", "txHash", "signature", "hash", "sig"),
    "timestamp": ("block_unix_time", "blockUnixTime", "block_time", "blockTime", "timestamp", "time"),
    "mint": ("to.address", "base.address", "token.address", "token_address", "tokenAddress", "mint", "address"),
    "amount": ("to.ui_amount", "to.uiAmount", "base.ui_amount", "base.uiAmount",
               "ui_amount", "uiAmount", "amount", "qty", "base_amount"),
    "usd": ("amount_usd", "value_usd", "usd", "volume_usd", "volumeUSD", "usd_value"),
    "price": ("to.price", "base.price", "price_usd", "priceUsd", "token_price", "price"),
    "counterparty": ("owner", "trader", "maker", "wallet", "from_address"),
    "symbol": ("to.symbol", "base.symbol", "token_symbol", "symbol"),
    "source": ("source", "dex", "platform"),
}

# Buy signals: any one of them is enough
BUY_TEXT_FIELDS = ("side", "type", "tx_type", "txType", "action", "trade_type", "tradeType")
BUY_FLAG_FIELDS = ("is_buy", "isBuy", "buy")

PROVIDER_UNAVAILABLE = "Trade provider unavailable"
PROVIDER_NOT_CONFIGURED = "Trade provider not configured"
INVALID_ADDRESS = "Invalid address"


def get_path(record: Dict[str, Any], path: str) -> Any:
    """Read a dotted path from nested dicts, or None if any step is missing."""
    node: Any = record
    for key in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def resolve_field(record: Dict[str, Any], candidates: Iterable[str]) -> Any:
    """First populated value among the candidate paths."""
    for path in candidates:
        value = get_path(record, path)
        if value is not None and value != "":
            return value
    return None


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def buy_side(record: Dict[str, Any]) -> Optional[str]:
    """
    Classify a raw record.

    Returns:
        The side label to report when any signal says "buy", otherwise None
    """
    for field_name in BUY_FLAG_FIELDS:
        flag = record.get(field_name)
        if flag is True or (isinstance(flag, str) and flag.lower() == "true"):
            return "buy"
    for field_name in BUY_TEXT_FIELDS:
        value = record.get(field_name)
        if isinstance(value, str) and value.strip().lower() == "buy":
            return "buy"
    return None


def normalize_record(record: Any, default_mint: str = "") -> Optional[TradeRecord]:
    """
    Normalize one raw trade record.

    Missing fields default to empty or absent values instead of failing.

    Returns:
        The normalized buy, or None for non-buys and non-object records
    """
    if not isinstance(record, dict):
        return None
    side = buy_side(record)
    if side is None:
        return None

    timestamp = resolve_field(record, TRADE_FIELDS["timestamp"])
    if not isinstance(timestamp, (int, float, str)) or isinstance(timestamp, bool):
        timestamp = None

    usd_value = _finite(resolve_field(record, TRADE_FIELDS["usd"]))
    if usd_value is not None and usd_value < 0:
        usd_value = None

    mint = resolve_field(record, TRADE_FIELDS["mint"])
    amount = _finite(resolve_field(record, TRADE_FIELDS["amount"]))

    return TradeRecord(
        signature=str(resolve_field(record, TRADE_FIELDS["signature"]) or ""),
        timestamp=timestamp,
        mint=mint if isinstance(mint, str) and mint else default_mint,
        amount_token=abs(amount) if amount is not None else 0.0,
        price_usd=parse_price(resolve_field(record, TRADE_FIELDS["price"])),
        usd_value=usd_value,
        counterparty=str(resolve_field(record, TRADE_FIELDS["counterparty"]) or ""),
        is_buy=True,
        side=side,
        symbol=str(resolve_field(record, TRADE_FIELDS["symbol"]) or ""),
        source=str(resolve_field(record, TRADE_FIELDS["source"]) or ""),
    )


def keep_record(record: TradeRecord, min_usd: float) -> bool:
    """Unknown values get the benefit of the doubt."""
    return record.usd_value is None or record.usd_value >= min_usd


class TradeNormalizer(BaseService):
    """Builds normalized "recent buys" feeds from the trade-history provider."""

    def __init__(
        self,
        client: BirdeyeClient,
        price_resolver: PriceResolver,
        directory: TokenMetadataDirectory,
        cache: Optional[ResponseCache] = None,
        config: Optional[TradeConfig] = None,
        cache_ttl: Optional[float] = None
    ):
        super().__init__()
        self.client = client
        self.price_resolver = price_resolver
        self.directory = directory
        self.cache = cache
        self.config = config or TradeConfig()
        self.cache_ttl = cache_ttl

    def upstream_limit(self, limit: int) -> int:
        """Inflated provider page size compensating for non-buy attrition."""
        return min(max(limit, self.config.min_upstream_limit), self.config.max_upstream_limit)

    async def fetch_buys(
        self,
        kind: str,
        address: str,
        limit: int = DEFAULT_LIMIT,
        min_usd: Optional[float] = 0.0
    ) -> TradeFeed:
        """
        Fetch recent buys for a token, wallet or pair.

        Args:
            kind: One of "token", "wallet" or "pair"
            address: Token mint, wallet or pair address
            limit: Maximum number of buys, clamped to [1, 50]
            min_usd: Drop buys whose known USD value is below this

        Returns:
            The feed; an unsupported kind, an invalid address or provider
            trouble all give an empty feed with a ``warning``
        """
        if kind not in TRADE_KINDS:
            return TradeFeed(
                type=kind,
                address=address,
                warning=f"Unsupported type {kind!r}; expected one of: {', '.join(TRADE_KINDS)}"
            )
        if not validate_public_key(address):
            return TradeFeed(type=kind, address=address, warning=INVALID_ADDRESS)
        limit = clamp(limit, 1, MAX_LIMIT)
        min_usd = sanitize_min_usd(min_usd)

        if not self.client.has_credentials:
            return TradeFeed(type=kind, address=address, warning=PROVIDER_NOT_CONFIGURED)

        cache_key = ResponseCache.build_key(
            "buys", type=kind, address=address, limit=limit, min_usd=min_usd
        )
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            async with self.log_timing(f"buys {kind} {address}"):
                feed = await self._build_feed(kind, address, limit, min_usd)
        except Exception as e:
            self.logger.exception(f"Buys pipeline failed for {kind} {address}")
            return TradeFeed(
                type=kind,
                address=address,
                warning=f"Trade data temporarily unavailable: {str(e) or type(e).__name__}"
            )

        if self.cache is not None and not feed.degraded:
            self.cache.set(cache_key, feed, self.cache_ttl)
        return feed

    async def _build_feed(self, kind: str, address: str, limit: int, min_usd: float) -> TradeFeed:
        items = await self.execute_with_fallback(
            self.client.get_trades(kind, address, self.upstream_limit(limit)),
            fallback_value=None,
            error_message=f"Trade history unavailable for {kind} {address}"
        )
        if items is None:
            return TradeFeed(type=kind, address=address, warning=PROVIDER_UNAVAILABLE)

        default_mint = address if kind == "token" else ""
        records = [
            record for record in (normalize_record(item, default_mint) for item in items)
            if record is not None
        ]
        records = await self._fill_usd_values(records)
        records = [record for record in records if keep_record(record, min_usd)][:limit]
        records = self._attach_metadata(records)

        self.logger.debug(f"{len(records)} buys kept out of {len(items)} raw records for {address}")
        return TradeFeed(type=kind, address=address, count=len(records), buys=records)

    async def _fill_usd_values(self, records: List[TradeRecord]) -> List[TradeRecord]:
        """
        Derive missing USD values from amount x price, pricing all mints in one batch.

        The resolved price wins over a price carried on the record, which is
        only used for mints no provider could price.
        """
        needs_price = unique(
            record.mint for record in records
            if record.usd_value is None and record.amount_token > 0
        )
        prices = await self.price_resolver.resolve(needs_price) if needs_price else {}

        filled = []
        for record in records:
            if record.usd_value is None:
                resolved = prices.get(record.mint)
                price = resolved.usd_price if resolved is not None else None
                if price is None:
                    price = record.price_usd
                if price is not None and record.amount_token > 0:
                    record = record.model_copy(update={
                        "price_usd": price,
                        "usd_value": record.amount_token * price,
                    })
            filled.append(record)
        return filled

    def _attach_metadata(self, records: List[TradeRecord]) -> List[TradeRecord]:
        metadata = self.directory.lookup_many(unique(record.mint for record in records))
        attached = []
        for record in records:
            meta = metadata.get(record.mint)
            if meta is not None:
                record = record.model_copy(update={
                    "symbol": meta.symbol or record.symbol,
                    "name": meta.name,
                    "logo_uri": meta.logo_uri,
                })
            attached.append(record)
        return attached
