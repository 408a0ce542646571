"""Liveness routes."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from wallet_proxy import __version__
from wallet_proxy.dependencies import ServiceContainer, get_container

SERVICE_NAME = "solana-wallet-proxy"

router = APIRouter(tags=["system"])


@router.get("/")
@router.get("/health")
async def health(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    """Health check endpoint.

    Returns:
        Liveness payload with token directory and response cache status
    """
    directory = container.directory
    loaded_at = None
    if directory.loaded_at is not None:
        loaded_at = datetime.fromtimestamp(directory.loaded_at, tz=timezone.utc).isoformat()
    cache_stats = container.response_cache.get_stats()
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "version": __version__,
        "time": datetime.now(timezone.utc).isoformat(),
        "tokenListSize": directory.size,
        "tokenListLoadedAt": loaded_at,
        "cache": {
            "size": cache_stats["size"],
            "maxSize": cache_stats["max_size"],
            "hits": cache_stats["hits"],
            "misses": cache_stats["misses"],
            "hitRatio": cache_stats["hit_ratio"],
        },
    }
