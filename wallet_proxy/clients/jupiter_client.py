"""Client for the Jupiter price and token-list APIs (primary price provider)."""

from typing import Any, Dict, List, Optional

import httpx

from wallet_proxy.clients.base_client import BaseHttpClient
from wallet_proxy.config import MetadataConfig, PriceConfig
from wallet_proxy.logging_config import get_logger
from wallet_proxy.utils.errors import UpstreamResponseError
from wallet_proxy.utils.retry import RetryPolicy

logger = get_logger(__name__)


def extract_jupiter_prices(payload: Any, mints: List[str]) -> Dict[str, Any]:
    """Pull raw price values for ``mints`` out of a Jupiter price response.

    Accepts the v3 shape ``{mint: {"usdPrice": x}}`` as well as the older
    ``{"data": {mint: {"price": x}}}`` shape. Mints missing from the
    response are omitted; values are returned unparsed.
    """
    if not isinstance(payload, dict):
        raise UpstreamResponseError("Jupiter price response is not an object", service="jupiter")

    table = payload.get("data") if isinstance(payload.get("data"), dict) else payload

    prices: Dict[str, Any] = {}
    for mint in mints:
        entry = table.get(mint)
        if isinstance(entry, dict):
            value = entry.get("usdPrice", entry.get("price"))
        else:
            value = entry
        if value is not None:
            prices[mint] = value
    return prices


class JupiterClient(BaseHttpClient):
    """Client for Jupiter Aggregator price and token-list endpoints."""

    service_name = "jupiter"

    def __init__(
        self,
        price_config: PriceConfig,
        metadata_config: Optional[MetadataConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        headers = {}
        if price_config.jupiter_api_key:
            headers["x-api-key"] = price_config.jupiter_api_key
        super().__init__(
            price_config.jupiter_price_url,
            retry_policy=retry_policy,
            headers=headers,
            http_client=http_client
        )
        self.metadata_config = metadata_config or MetadataConfig()

    async def get_prices(self, mints: List[str]) -> Dict[str, Any]:
        """Get raw USD prices for a batch of mints.

        Args:
            mints: Mint addresses to price in one request

        Returns:
            Mapping of mint to the raw price value the API returned
        """
        if not mints:
            return {}
        payload = await self.get_json("", params={"ids": ",".join(mints)})
        return extract_jupiter_prices(payload, mints)

    async def get_token_list(self) -> List[Dict[str, Any]]:
        """Get the bulk token list used to build the metadata directory."""
        payload = await self.get_json(self.metadata_config.token_list_url)
        if isinstance(payload, dict):
            payload = payload.get("tokens", payload.get("data"))
        if not isinstance(payload, list):
            raise UpstreamResponseError("Token list response is not a list", service=self.service_name)
        logger.debug(f"Fetched token list with {len(payload)} entries")
        return payload
