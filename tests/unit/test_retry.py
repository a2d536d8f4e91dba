"""
Unit tests for retry helpers.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from channel_toolkit.shared.exceptions import (
    ArchiveException,
    ArchiveRequestError,
    MalformedProofError,
)
from channel_toolkit.shared.retry import RetryConfig, retry_sync_operation, with_retry


class TestRetrySyncOperation:
    """Tests for retry_sync_operation()."""

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_retries_connection_error(self, mock_sleep):
        """Transient errors are retried until success."""
        operation = MagicMock(side_effect=[ConnectionError("a"), ConnectionError("b"), 7])
        assert retry_sync_operation(operation, max_attempts=3, base_delay=1.0) == 7
        assert operation.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_exhausted_raises_last(self, mock_sleep):
        """After max_attempts the last exception propagates."""
        operation = MagicMock(side_effect=ArchiveException("down"))
        with pytest.raises(ArchiveException):
            retry_sync_operation(operation, max_attempts=2)
        assert operation.call_count == 2

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_non_retryable_propagates_immediately(self, mock_sleep):
        """NonRetryableException is never retried."""
        operation = MagicMock(side_effect=MalformedProofError("bad"))
        with pytest.raises(MalformedProofError):
            retry_sync_operation(operation, max_attempts=5)
        assert operation.call_count == 1
        mock_sleep.assert_not_called()

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_generic_exception_not_retried(self, mock_sleep):
        """Errors outside the retryable set propagate on first failure."""
        operation = MagicMock(side_effect=KeyError("k"))
        with pytest.raises(KeyError):
            retry_sync_operation(operation, max_attempts=3)
        assert operation.call_count == 1

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_delay_capped(self, mock_sleep):
        """Exponential delays never exceed max_delay."""
        operation = MagicMock(side_effect=[TimeoutError()] * 3 + ["ok"])
        retry_sync_operation(operation, max_attempts=4, base_delay=2.0, max_delay=5.0)
        assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 4.0, 5.0]


class TestWithRetry:
    """Tests for the async with_retry decorator."""

    @pytest.mark.asyncio
    async def test_async_retry(self):
        """Async functions are retried on retryable errors."""
        calls = []

        @with_retry(max_attempts=3, base_delay=0.1)
        async def flaky():
            calls.append(1)
            if len(calls) < 2:
                raise ArchiveException("503")
            return "ok"

        with patch("channel_toolkit.shared.retry.asyncio.sleep", AsyncMock()) as sleep:
            assert await flaky() == "ok"
        assert len(calls) == 2
        sleep.assert_awaited_once_with(0.1)

    @pytest.mark.asyncio
    async def test_request_error_not_retried(self):
        """A 4xx archive answer is final."""
        calls = []

        @with_retry(max_attempts=3)
        async def not_found():
            calls.append(1)
            raise ArchiveRequestError("404", status_code=404)

        with pytest.raises(ArchiveRequestError):
            await not_found()
        assert len(calls) == 1


class TestRetryConfig:
    """Tests for RetryConfig."""

    @patch("channel_toolkit.shared.retry.time.sleep")
    def test_run_uses_config(self, mock_sleep):
        """run() applies the configured attempts."""
        config = RetryConfig(max_attempts=2, base_delay=0.5)
        operation = MagicMock(side_effect=ConnectionError("x"))
        with pytest.raises(ConnectionError):
            config.run(operation, operation_name="rpc")
        assert operation.call_count == 2
        mock_sleep.assert_called_once_with(0.5)

    def test_default_retryable_set(self):
        """Defaults include transient errors only."""
        config = RetryConfig()
        assert ArchiveException in config.retryable_exceptions
        assert ConnectionError in config.retryable_exceptions
        assert Exception not in config.retryable_exceptions
