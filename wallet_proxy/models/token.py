"""
Token data models for the wallet proxy.

This module defines Pydantic models for token metadata, balances, prices
and the wallet snapshot assembled from them. Fields that can fail to resolve
are Optional and serialize as ``null``; ``None`` always means "unknown",
never zero.
"""

import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProxyModel(BaseModel):
    """Base model serializing field names as camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """Dump the model as a JSON-ready dict with wire aliases."""
        return self.model_dump(by_alias=True, mode="json")


class TokenMetadata(ProxyModel):
    """
    Display metadata for a mint.

    Empty strings stand for unknown fields so consumers never need to
    special-case a directory miss.
    """
    symbol: str = ""
    name: str = ""
    logo_uri: str = ""


class BalanceEntry(ProxyModel):
    """One token account balance, already scaled by its decimals."""
    mint: str
    amount: float = Field(ge=0)
    decimals: int = Field(default=0, ge=0)
    program: str = ""


class WalletBalances(ProxyModel):
    """
    Result of a balance fetch.

    ``warnings`` lists the sub-fetches that failed and were replaced by
    empty data.
    """
    native: float = 0.0
    tokens: List[BalanceEntry] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PricePoint(ProxyModel):
    """USD price of one mint; ``usd_price`` is None when no provider knew it."""
    mint: str
    usd_price: Optional[float] = None
    source: Optional[str] = None

    @property
    def known(self) -> bool:
        """Whether a provider returned a usable price."""
        return self.usd_price is not None

    @classmethod
    def unknown(cls, mint: str) -> "PricePoint":
        return cls(mint=mint)


def parse_price(value) -> Optional[float]:
    """Coerce a provider price into a finite positive float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class TokenSnapshotRow(ProxyModel):
    """A balance joined with its metadata and price."""
    mint: str
    amount: float
    decimals: int = 0
    program: str = ""
    symbol: str = ""
    name: str = ""
    logo_uri: str = ""
    price_usd: Optional[float] = None
    usd_value: Optional[float] = None

    @property
    def price_known(self) -> bool:
        return self.price_usd is not None

    @classmethod
    def build(cls, entry: BalanceEntry, metadata: TokenMetadata,
              price: PricePoint) -> "TokenSnapshotRow":
        """Join a balance entry with metadata and price, deriving the USD value."""
        usd_value = None
        if price.known:
            usd_value = price.usd_price * entry.amount
        return cls(
            mint=entry.mint,
            amount=entry.amount,
            decimals=entry.decimals,
            program=entry.program,
            symbol=metadata.symbol,
            name=metadata.name,
            logo_uri=metadata.logo_uri,
            price_usd=price.usd_price,
            usd_value=usd_value,
        )


class WalletSnapshot(ProxyModel):
    """
    Point-in-time valuation of a wallet.

    ``tokens`` is sorted by USD value (unknown last), filtered and truncated;
    ``total_usd_value`` covers the native balance plus the visible rows only.
    ``warning`` is set when some or all of the data could not be fetched.
    """
    owner: str
    timestamp: str
    native_amount: float = 0.0
    native_price_usd: Optional[float] = None
    native_usd_value: float = 0.0
    total_usd_value: float = 0.0
    token_count: int = 0
    tokens: List[TokenSnapshotRow] = Field(default_factory=list)
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None

    @classmethod
    def empty(cls, owner: str, timestamp: str, warning: str) -> "WalletSnapshot":
        """Well-formed snapshot with no data, returned when the pipeline fails."""
        return cls(owner=owner, timestamp=timestamp, warning=warning)
