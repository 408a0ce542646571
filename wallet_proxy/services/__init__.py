"""Services for the wallet proxy.

Balance fetching, price resolution, metadata lookup, snapshot assembly and
trade normalization, plus the response cache they share.
"""

from wallet_proxy.services.balance_service import BalanceFetcher
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.services.metadata_service import TokenMetadataDirectory
from wallet_proxy.services.price_service import PriceResolver
from wallet_proxy.services.snapshot_service import SnapshotAssembler
from wallet_proxy.services.trade_service import TradeNormalizer

__all__ = [
    'BalanceFetcher',
    'PriceResolver',
    'ResponseCache',
    'SnapshotAssembler',
    'TokenMetadataDirectory',
    'TradeNormalizer',
]
