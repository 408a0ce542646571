"""
Error handling utilities for the wallet proxy.

This module defines the exception hierarchy shared by clients, services
and route handlers.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for the wallet proxy API."""

    # General errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"

    # Upstream errors
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_CONNECTION_ERROR = "UPSTREAM_CONNECTION_ERROR"
    UPSTREAM_BAD_RESPONSE = "UPSTREAM_BAD_RESPONSE"
    RPC_ERROR = "RPC_ERROR"

    # Data errors
    INVALID_ACCOUNT = "INVALID_ACCOUNT"


# HTTP statuses worth a second attempt
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class WalletProxyError(Exception):
    """Base exception for all wallet proxy errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new wallet proxy error.

        Args:
            message: Error message
            code: Error code
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details
        }


class ConfigurationError(WalletProxyError):
    """Exception for invalid or missing configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            details=details
        )


class ValidationError(WalletProxyError):
    """Exception for caller input errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class InvalidPublicKeyError(ValidationError):
    """Exception raised when an invalid public key is provided."""

    def __init__(self, pubkey: str, field_name: str = "address"):
        super().__init__(
            message=f"Invalid Solana {field_name}: {pubkey}",
            details={"field": field_name, "value": pubkey}
        )
        self.code = ErrorCode.INVALID_ACCOUNT
        self.pubkey = pubkey


class UpstreamError(WalletProxyError):
    """Exception for failures of an external provider (RPC, price, trades)."""

    def __init__(
        self,
        message: str,
        service: str = "upstream",
        upstream_status: Optional[int] = None,
        retryable: Optional[bool] = None,
        code: ErrorCode = ErrorCode.UPSTREAM_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize an upstream error.

        Args:
            message: Error message
            service: Name of the upstream service
            upstream_status: HTTP status returned by the upstream, if any
            retryable: Whether a retry may succeed; derived from the status when None
            code: Error code
            details: Additional error details
        """
        details = dict(details or {})
        details.setdefault("service", service)
        if upstream_status is not None:
            details.setdefault("upstream_status", upstream_status)
        super().__init__(message=message, code=code, status_code=502, details=details)
        self.service = service
        self.upstream_status = upstream_status
        if retryable is None:
            retryable = upstream_status in RETRYABLE_STATUS_CODES
        self.retryable = retryable


class UpstreamTimeoutError(UpstreamError):
    """Exception for upstream calls that exceeded their timeout."""

    def __init__(self, message: str, service: str = "upstream"):
        super().__init__(
            message=message,
            service=service,
            retryable=True,
            code=ErrorCode.UPSTREAM_TIMEOUT
        )


class UpstreamConnectionError(UpstreamError):
    """Exception for network-level failures talking to an upstream."""

    def __init__(self, message: str, service: str = "upstream"):
        super().__init__(
            message=message,
            service=service,
            retryable=True,
            code=ErrorCode.UPSTREAM_CONNECTION_ERROR
        )


class UpstreamResponseError(UpstreamError):
    """Exception for malformed upstream response bodies."""

    def __init__(self, message: str, service: str = "upstream",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            service=service,
            retryable=False,
            code=ErrorCode.UPSTREAM_BAD_RESPONSE,
            details=details
        )


class RpcError(UpstreamError):
    """Exception for JSON-RPC error objects returned by a Solana node."""

    def __init__(self, message: str, rpc_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        # -32005 is the node's "rate limited" code
        rate_limited = rpc_code == -32005 or "rate limit" in message.lower()
        super().__init__(
            message=message,
            service="solana-rpc",
            retryable=rate_limited,
            code=ErrorCode.RPC_ERROR,
            details=details
        )
        self.rpc_code = rpc_code


def is_retryable(exc: BaseException) -> bool:
    """Whether an exception represents a transient upstream failure."""
    return isinstance(exc, UpstreamError) and exc.retryable
