"""Solana JSON-RPC client.

Only the two read calls the wallet snapshot needs: native balance and
token accounts by owner.
"""

import json
from typing import Any, Dict, List, Optional

import httpx

from wallet_proxy.clients.base_client import BaseHttpClient
from wallet_proxy.config import SolanaConfig
from wallet_proxy.utils.errors import RpcError, UpstreamResponseError
from wallet_proxy.utils.retry import RetryPolicy


class SolanaRpcClient(BaseHttpClient):
    """Client for a Solana JSON-RPC endpoint."""

    service_name = "solana-rpc"

    def __init__(
        self,
        config: SolanaConfig,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(
            config.rpc_url,
            retry_policy=retry_policy,
            headers={"Content-Type": "application/json"},
            http_client=http_client
        )
        self.config = config
        self._request_id = 0

    async def _make_request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make a JSON-RPC request and return its ``result``.

        Raises:
            RpcError: If the node returns an error object
            UpstreamResponseError: If the envelope has neither result nor error
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or []
        }
        body = await self.post_json("", payload)

        if not isinstance(body, dict):
            raise UpstreamResponseError(
                f"Unexpected JSON-RPC envelope for {method}",
                service=self.service_name
            )

        if "error" in body:
            error = body["error"] or {}
            message = f"Solana RPC error: {error.get('message', 'Unknown error')}"
            if "data" in error:
                message += f" - {json.dumps(error['data'])}"
            raise RpcError(message, rpc_code=error.get("code"), details={"method": method})

        if "result" not in body:
            raise UpstreamResponseError(
                f"JSON-RPC response for {method} has no result",
                service=self.service_name
            )
        return body["result"]

    async def get_balance(self, owner: str) -> int:
        """Get the native balance of an account in lamports."""
        result = await self._make_request(
            "getBalance",
            [owner, {"commitment": self.config.commitment}]
        )
        value = result.get("value") if isinstance(result, dict) else result
        if not isinstance(value, int):
            raise UpstreamResponseError(
                "getBalance returned a non-integer value",
                service=self.service_name
            )
        return value

    async def get_token_accounts_by_owner(self, owner: str, program_id: str) -> List[Dict[str, Any]]:
        """Get parsed token accounts owned by ``owner`` under one token program."""
        result = await self._make_request(
            "getTokenAccountsByOwner",
            [
                owner,
                {"programId": program_id},
                {"encoding": "jsonParsed", "commitment": self.config.commitment}
            ]
        )
        value = result.get("value") if isinstance(result, dict) else result
        if not isinstance(value, list):
            raise UpstreamResponseError(
                "getTokenAccountsByOwner returned a non-list value",
                service=self.service_name
            )
        return value
