"""Client for the Birdeye public API.

Birdeye serves two roles: the secondary (gap-filling) price provider and
the trade-history provider behind ``/buys``. It also backs the raw
``/birdeye`` passthrough route.
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from wallet_proxy.clients.base_client import BaseHttpClient
from wallet_proxy.constants import DEFAULT_BIRDEYE_BASE_URL
from wallet_proxy.logging_config import get_logger
from wallet_proxy.utils.errors import UpstreamError, UpstreamResponseError, ValidationError
from wallet_proxy.utils.retry import RetryPolicy

logger = get_logger(__name__)

# Trade endpoints per query kind: (path, address parameter name), primary first
TRADE_ENDPOINTS: Dict[str, List[Tuple[str, str]]] = {
    "token": [
        ("/defi/v3/token/txs", "address"),
        ("/defi/txs/token", "address"),
    ],
    "wallet": [
        ("/trader/txs/seek_by_time", "address"),
        ("/v1/wallet/tx_list", "wallet"),
    ],
    "pair": [
        ("/defi/v3/pair/txs", "address"),
        ("/defi/txs/pair", "address"),
    ],
}

# Raw passthrough types for the /birdeye route
PASSTHROUGH_PATHS: Dict[str, str] = {
    "markets": "/defi/markets",
    "token_txs": "/defi/v3/token/txs",
    "pair_txs": "/defi/v3/pair/txs",
    "price": "/defi/price",
}

# Passthrough types that accept a limit parameter
PAGED_PASSTHROUGH_TYPES = ("token_txs", "pair_txs")

# Where trade arrays live across endpoint versions, first match wins
ITEM_PATHS: Tuple[Tuple[str, ...], ...] = (
    (),
    ("data", "items"),
    ("data",),
    ("items",),
    ("data", "solana"),
)


def extract_items(payload: Any) -> Optional[List[Any]]:
    """Find the trade array inside a provider payload.

    Returns:
        The array, or None when no candidate location holds a list
    """
    for path in ITEM_PATHS:
        node = payload
        for key in path:
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(key)
        if isinstance(node, list):
            return node
    return None


class BirdeyeClient(BaseHttpClient):
    """Client for Birdeye price and trade endpoints."""

    service_name = "birdeye"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BIRDEYE_BASE_URL,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        headers = {"x-chain": "solana"}
        if api_key:
            headers["X-API-KEY"] = api_key
        super().__init__(base_url, retry_policy=retry_policy, headers=headers, http_client=http_client)
        self.api_key = api_key

    @property
    def has_credentials(self) -> bool:
        """Whether an API key is configured."""
        return bool(self.api_key)

    async def get_multi_price(self, mints: List[str]) -> Dict[str, Any]:
        """Get raw USD prices for several mints in one request.

        Returns:
            Mapping of mint to the raw ``value`` field; mints without data are omitted
        """
        if not mints:
            return {}
        payload = await self.get_json("/defi/multi_price", params={"list_address": ",".join(mints)})
        if not isinstance(payload, dict):
            raise UpstreamResponseError("multi_price response is not an object", service=self.service_name)
        if payload.get("success") is False:
            raise UpstreamResponseError(
                f"multi_price unsuccessful: {payload.get('message', 'unknown reason')}",
                service=self.service_name
            )

        data = payload.get("data") or {}
        prices: Dict[str, Any] = {}
        for mint in mints:
            entry = data.get(mint)
            if isinstance(entry, dict) and entry.get("value") is not None:
                prices[mint] = entry["value"]
        return prices

    def trade_endpoints(self, kind: str) -> List[Tuple[str, str]]:
        """Ordered (path, address parameter) candidates for a trade query kind."""
        try:
            return TRADE_ENDPOINTS[kind]
        except KeyError:
            raise ValidationError(f"Unsupported trade kind: {kind}", details={"type": kind})

    async def get_trade_page(self, path: str, address_param: str, address: str, limit: int) -> Any:
        """Fetch one raw page of trades from a trade endpoint."""
        params: Dict[str, Any] = {address_param: address, "limit": limit}
        if path in ("/defi/v3/token/txs", "/defi/txs/token"):
            params["tx_type"] = "swap"
        return await self.get_json(path, params=params)

    async def get_trades(self, kind: str, address: str, limit: int) -> List[Any]:
        """Fetch raw trade records, falling back to the alternate endpoint.

        An endpoint that fails or answers without a trade array is skipped.

        Raises:
            ValidationError: If ``kind`` is not a supported trade kind
            UpstreamError: If no endpoint produced a trade array
        """
        last_error: Optional[Exception] = None
        for path, address_param in self.trade_endpoints(kind):
            try:
                payload = await self.get_trade_page(path, address_param, address, limit)
            except UpstreamError as e:
                logger.warning(f"Trade endpoint {path} failed for {address}: {str(e)}")
                last_error = e
                continue

            items = extract_items(payload)
            if items is not None:
                return items
            logger.warning(f"Trade endpoint {path} returned no trade array for {address}")
            last_error = UpstreamResponseError(
                f"{path} returned no trade array", service=self.service_name
            )

        raise UpstreamError(
            f"All trade endpoints failed for {kind} {address}: {str(last_error)}",
            service=self.service_name,
            retryable=False
        )

    async def passthrough(self, kind: str, address: str, limit: int = 50) -> Any:
        """Forward a whitelisted query and return the provider JSON unchanged.

        Raises:
            ValidationError: If ``kind`` is not a supported passthrough type
        """
        path = PASSTHROUGH_PATHS.get(kind)
        if path is None:
            raise ValidationError("unsupported type", details={"type": kind})
        params: Dict[str, Any] = {"address": address}
        if kind in PAGED_PASSTHROUGH_TYPES:
            params["limit"] = limit
        return await self.get_json(path, params=params)
