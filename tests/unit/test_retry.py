"""Unit tests for the retry policy and error classification."""

import pytest
from unittest.mock import patch

from wallet_proxy.utils.errors import (
    RpcError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeoutError,
    is_retryable,
)
from wallet_proxy.utils.retry import RetryPolicy, call_with_policy

FAST_POLICY = RetryPolicy(max_attempts=2, base_delay=0.0, jitter=0.0)


class FlakyOperation:
    """Raises the queued errors in order, then returns a value."""

    def __init__(self, *errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestErrorClassification:
    """Tests for is_retryable."""

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_transient_statuses_are_retryable(self, status):
        assert is_retryable(UpstreamError("failed", upstream_status=status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_errors_are_not_retryable(self, status):
        assert not is_retryable(UpstreamError("failed", upstream_status=status))

    def test_network_failures_are_retryable(self):
        assert is_retryable(UpstreamTimeoutError("timed out"))
        assert is_retryable(UpstreamConnectionError("reset"))

    def test_malformed_body_is_not_retryable(self):
        assert not is_retryable(UpstreamResponseError("not json"))

    def test_rpc_rate_limit_is_retryable(self):
        assert is_retryable(RpcError("Solana RPC error: busy", rpc_code=-32005))
        assert is_retryable(RpcError("Solana RPC error: Rate limit exceeded"))
        assert not is_retryable(RpcError("Solana RPC error: Invalid param", rpc_code=-32602))

    def test_plain_exceptions_are_not_retryable(self):
        assert not is_retryable(ValueError("bug"))


class TestCallWithPolicy:
    """Tests for call_with_policy."""

    @pytest.mark.asyncio
    async def test_retries_once_on_transient_failure(self):
        operation = FlakyOperation(UpstreamError("busy", upstream_status=503))

        result = await call_with_policy(operation, FAST_POLICY, "op")

        assert result == "ok"
        assert operation.calls == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        operation = FlakyOperation(
            UpstreamTimeoutError("slow"), UpstreamTimeoutError("slow again")
        )

        with pytest.raises(UpstreamTimeoutError, match="slow again"):
            await call_with_policy(operation, FAST_POLICY, "op")
        assert operation.calls == 2

    @pytest.mark.asyncio
    async def test_permanent_failure_is_not_retried(self):
        operation = FlakyOperation(UpstreamError("missing", upstream_status=404))

        with pytest.raises(UpstreamError):
            await call_with_policy(operation, FAST_POLICY, "op")
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_sleeps_with_backoff_between_attempts(self):
        policy = RetryPolicy(max_attempts=3, base_delay=0.5, jitter=0.0)
        operation = FlakyOperation(
            UpstreamError("busy", upstream_status=429),
            UpstreamError("busy", upstream_status=429),
        )

        with patch("wallet_proxy.utils.retry.asyncio.sleep") as sleep:
            await call_with_policy(operation, policy, "op")

        assert [call.args[0] for call in sleep.call_args_list] == [0.5, 1.0]


class TestRetryPolicy:
    """Tests for RetryPolicy.backoff."""

    def test_backoff_doubles_and_adds_bounded_jitter(self):
        policy = RetryPolicy(base_delay=0.25, jitter=0.1)

        first = policy.backoff(1)
        second = policy.backoff(2)

        assert 0.25 <= first <= 0.35
        assert 0.5 <= second <= 0.6
