"""
Trade data models for the wallet proxy.

Normalized trade records derived from heterogeneous trade-history payloads.
"""

from typing import List, Optional, Union

from pydantic import Field

from wallet_proxy.models.token import ProxyModel

TRADE_KINDS = ("token", "wallet", "pair")


class TradeRecord(ProxyModel):
    """One normalized trade event."""
    signature: str = ""
    timestamp: Optional[Union[int, float, str]] = None
    mint: str = ""
    amount_token: float = 0.0
    price_usd: Optional[float] = None
    usd_value: Optional[float] = None
    counterparty: str = ""
    is_buy: bool = False
    side: str = ""
    symbol: str = ""
    name: str = ""
    logo_uri: str = ""
    source: str = ""


class TradeFeed(ProxyModel):
    """Buys for one token, wallet or pair; ``warning`` is set on upstream trouble."""
    type: str
    address: str
    count: int = 0
    buys: List[TradeRecord] = Field(default_factory=list)
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None
