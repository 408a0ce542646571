"""Base HTTP client for upstream providers.

This module provides the JSON-over-HTTP plumbing shared by the Solana RPC,
price and trade-history clients: one pooled ``httpx.AsyncClient`` per
upstream, a per-call retry policy, and translation of transport failures
into the ``UpstreamError`` hierarchy.
"""

# Standard library imports
import json
from typing import Any, Dict, Optional

# Third-party library imports
import httpx

# Internal imports
from wallet_proxy.constants import USER_AGENT
from wallet_proxy.logging_config import get_logger
from wallet_proxy.utils.errors import (
    UpstreamConnectionError,
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)
from wallet_proxy.utils.retry import RetryPolicy, call_with_policy

# Get logger
logger = get_logger(__name__)


class BaseHttpClient:
    """Base client for a JSON HTTP upstream."""

    service_name = "upstream"

    def __init__(
        self,
        base_url: str,
        retry_policy: Optional[RetryPolicy] = None,
        headers: Optional[Dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the client.

        Args:
            base_url: Base URL all request paths are joined to
            retry_policy: Timeout and retry settings; defaults to RetryPolicy()
            headers: Extra headers sent with every request
            http_client: Optional pre-built httpx client (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if headers:
            self.headers.update(headers)
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.retry_policy.timeout,
                headers=self.headers,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
            )
        return self._http_client

    def _url(self, path: str) -> str:
        if not path:
            return self.base_url
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _send_once(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request and decode its JSON body.

        Raises:
            UpstreamTimeoutError: If the request timed out
            UpstreamConnectionError: On network-level failures
            UpstreamError: On non-2xx statuses
            UpstreamResponseError: If the body is not JSON
        """
        client = self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers=self.headers,
                timeout=self.retry_policy.timeout,
                **kwargs
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"{self.service_name} request timed out: {url}",
                service=self.service_name
            ) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(
                f"Connection error talking to {self.service_name}: {str(e)}",
                service=self.service_name
            ) from e

        if response.status_code >= 400:
            raise UpstreamError(
                f"{self.service_name} returned HTTP {response.status_code}: {response.text[:200]}",
                service=self.service_name,
                upstream_status=response.status_code
            )

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamResponseError(
                f"{self.service_name} returned a non-JSON body",
                service=self.service_name,
                details={"url": url}
            ) from e

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request under the retry policy and return the decoded JSON body."""
        url = self._url(path)
        return await call_with_policy(
            lambda: self._send_once(method, url, **kwargs),
            self.retry_policy,
            operation_name=f"{self.service_name} {method} {path or '/'}",
            log=logger
        )

    async def get_json(self, path: str = "", params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON resource."""
        return await self.request_json("GET", path, params=params)

    async def post_json(self, path: str = "", body: Any = None) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        return await self.request_json("POST", path, json=body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
