"""Data models for the wallet proxy."""

from wallet_proxy.models.token import (
    BalanceEntry,
    PricePoint,
    TokenMetadata,
    TokenSnapshotRow,
    WalletBalances,
    WalletSnapshot,
    parse_price,
)
from wallet_proxy.models.trade import TRADE_KINDS, TradeFeed, TradeRecord

__all__ = [
    "BalanceEntry",
    "PricePoint",
    "TokenMetadata",
    "TokenSnapshotRow",
    "WalletBalances",
    "WalletSnapshot",
    "parse_price",
    "TRADE_KINDS",
    "TradeFeed",
    "TradeRecord",
]
