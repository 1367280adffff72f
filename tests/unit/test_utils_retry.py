"""Tests for autotriage/utils/retry.py - rate-limit retry policy."""

from unittest.mock import AsyncMock, call, patch

import pytest

from autotriage.exceptions import ExternalServiceError, IssueNotFoundError, RateLimitError
from autotriage.utils.retry import RetryPolicy, is_rate_limited


class StatusError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


@pytest.fixture
def mock_sleep():
    with patch("autotriage.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


class TestIsRateLimited:
    """Tests for rate-limit classification."""

    @pytest.mark.parametrize(
        "error",
        [
            RateLimitError(),
            RateLimitError("GitHub secondary rate limit exceeded", status_code=403, service="github"),
            StatusError("Too many", 429),
        ],
    )
    def test_recognized(self, error):
        assert is_rate_limited(error) is True

    @pytest.mark.parametrize(
        "error",
        [
            IssueNotFoundError("octo", "widgets", 1),
            IssueNotFoundError("octo", "widgets", 429),
            IssueNotFoundError("octo", "rate-limit-tests", 4290),
            ExternalServiceError("upstream said 429", status_code=429),
            StatusError("Bad gateway", 502),
            ValueError("bad input"),
            Exception("API rate limit exceeded for user"),
        ],
    )
    def test_not_recognized(self, error):
        assert is_rate_limited(error) is False


class TestRetryPolicy:
    """Tests for RetryPolicy.run."""

    def test_schedule(self):
        """Should double the delay per retry with no jitter."""
        assert RetryPolicy().schedule() == [1.0, 2.0]
        assert RetryPolicy(max_attempts=4, base_delay=0.5).schedule() == [0.5, 1.0, 2.0]

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    @pytest.mark.asyncio
    async def test_success_first_try(self, mock_sleep):
        """Should return immediately without sleeping."""
        func = AsyncMock(return_value="ok")

        assert await RetryPolicy().run(func) == "ok"
        func.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_rate_limit(self, mock_sleep):
        """Should retry a rate-limited call and return the eventual result."""
        func = AsyncMock(side_effect=[RateLimitError(), "ok"])

        assert await RetryPolicy().run(func, description="github.get_issue") == "ok"
        assert func.await_count == 2
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_bounded_attempts(self, mock_sleep):
        """Should attempt max_attempts times, sleeping 1s then 2s, then re-raise."""
        error = RateLimitError("Rate limit exceeded", service="gemini")
        func = AsyncMock(side_effect=error)

        with pytest.raises(RateLimitError) as exc_info:
            await RetryPolicy(max_attempts=3, base_delay=1.0).run(func)

        assert exc_info.value is error
        assert func.await_count == 3
        assert mock_sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_non_rate_limit_not_retried(self, mock_sleep):
        """Should propagate other failures on the first attempt."""
        func = AsyncMock(side_effect=IssueNotFoundError("octo", "widgets", 7))

        with pytest.raises(IssueNotFoundError):
            await RetryPolicy().run(func)

        func.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_issue_number_429_not_retried(self, mock_sleep):
        """Should not mistake an issue numbered 429 for a rate limit."""
        func = AsyncMock(side_effect=IssueNotFoundError("octo", "widgets", 429))

        with pytest.raises(IssueNotFoundError, match="Issue #429 not found"):
            await RetryPolicy().run(func)

        func.assert_awaited_once()
        mock_sleep.assert_not_awaited()
