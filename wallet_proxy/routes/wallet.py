"""Wallet snapshot route."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from wallet_proxy.dependencies import get_snapshot_assembler
from wallet_proxy.logging_config import get_logger, log_with_context
from wallet_proxy.services.snapshot_service import DEFAULT_MAX_TOKENS, SnapshotAssembler
from wallet_proxy.utils.validation import parse_number, require_param

logger = get_logger(__name__)

router = APIRouter(tags=["wallet"])


@router.get("/wallet")
async def get_wallet(
    request: Request,
    address: Optional[str] = Query(None, description="Wallet address"),
    min_usd: Optional[str] = Query(None, alias="minUsd", description="Hide priced tokens worth less than this"),
    max_tokens: Optional[str] = Query(None, alias="maxTokens", description="Maximum token rows (1-200)"),
    assembler: SnapshotAssembler = Depends(get_snapshot_assembler)
) -> Dict[str, Any]:
    """Get the USD-valued snapshot of a wallet.

    Only a missing address is rejected. Anything else, an invalid address or
    an upstream failure included, comes back as a snapshot with a ``warning``.
    """
    owner = require_param(address, "address")
    snapshot = await assembler.build_snapshot(
        owner,
        min_usd=parse_number(min_usd, 0.0),
        max_tokens=parse_number(max_tokens, DEFAULT_MAX_TOKENS, cast=int)
    )
    if snapshot.degraded:
        log_with_context(
            logger,
            "warning",
            f"Degraded snapshot for {owner}: {snapshot.warning}",
            request_id=getattr(request.state, "request_id", None)
        )
    return snapshot.to_wire()
