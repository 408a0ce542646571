"""Recent buys route."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from wallet_proxy.dependencies import get_trade_normalizer
from wallet_proxy.logging_config import get_logger, log_with_context
from wallet_proxy.services.trade_service import DEFAULT_LIMIT, TradeNormalizer
from wallet_proxy.utils.validation import parse_number, require_param

logger = get_logger(__name__)

router = APIRouter(tags=["buys"])


@router.get("/buys")
async def get_buys(
    request: Request,
    type: Optional[str] = Query(None, description="token, wallet or pair (default token)"),
    address: Optional[str] = Query(None, description="Token, wallet or pair address"),
    limit: Optional[str] = Query(None, description="Maximum number of buys (1-50)"),
    min_usd: Optional[str] = Query(None, alias="minUsd", description="Drop buys worth less than this"),
    normalizer: TradeNormalizer = Depends(get_trade_normalizer)
) -> Dict[str, Any]:
    """Get recent buys for a token, wallet or pair.

    Only a missing address is rejected; an unsupported type or invalid
    address gives an empty list with a ``warning``.
    """
    kind = (type or "").strip().lower() or "token"
    target = require_param(address, "address")

    feed = await normalizer.fetch_buys(
        kind,
        target,
        limit=parse_number(limit, DEFAULT_LIMIT, cast=int),
        min_usd=parse_number(min_usd, 0.0)
    )
    if feed.degraded:
        log_with_context(
            logger,
            "warning",
            f"Degraded buys feed for {kind} {target}: {feed.warning}",
            request_id=getattr(request.state, "request_id", None)
        )
    return feed.to_wire()
