"""Raw Birdeye passthrough route.

Debugging aid that forwards a whitelisted query and returns the provider
JSON unchanged. Unlike ``/wallet`` and ``/buys``, provider failures surface
as 502 here.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from wallet_proxy.clients.birdeye_client import PASSTHROUGH_PATHS
from wallet_proxy.dependencies import ServiceContainer, get_container
from wallet_proxy.logging_config import get_logger
from wallet_proxy.services.cache_service import ResponseCache
from wallet_proxy.utils.errors import UpstreamError, ValidationError
from wallet_proxy.utils.validation import clamp, require_address

logger = get_logger(__name__)

router = APIRouter(tags=["birdeye"])


@router.get("/birdeye")
async def birdeye_passthrough(
    type: Optional[str] = Query(None, description="markets, token_txs, pair_txs or price"),
    address: Optional[str] = Query(None, description="Mint or pair address"),
    limit: int = Query(50, description="Page size for *_txs types (1-50)"),
    container: ServiceContainer = Depends(get_container)
) -> Any:
    """Forward a query to Birdeye and return its JSON as-is."""
    if not type or type not in PASSTHROUGH_PATHS:
        raise ValidationError("unsupported type", details={"field": "type", "value": type})
    target = require_address(address)
    limit = clamp(limit, 1, 50)

    client = container.trade_client
    if not client.has_credentials:
        raise UpstreamError("Birdeye API key not configured", service=client.service_name)

    cache = container.response_cache
    cache_key = ResponseCache.build_key("birdeye", type=type, address=target, limit=limit)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    payload = await client.passthrough(type, target, limit)
    cache.set(cache_key, payload, container.config.cache.passthrough_ttl)
    return payload
