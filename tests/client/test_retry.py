"""Tests for linear backoff retry."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from profilesync.client.sync.retry import backoff_delay, retry_with_backoff
from profilesync.client.sync.types import CancelToken, SyncCancelled


class TestBackoffDelay:
    """Tests for backoff_delay()."""

    def test_first_attempt_has_no_delay(self) -> None:
        assert backoff_delay(1) == 0.0

    def test_linear_steps(self) -> None:
        """Attempt n waits step * (n - 1)."""
        assert backoff_delay(2) == pytest.approx(0.3)
        assert backoff_delay(3) == pytest.approx(0.6)
        assert backoff_delay(4, backoff_step=1.0) == pytest.approx(3.0)


class TestRetryWithBackoff:
    """Tests for retry_with_backoff()."""

    def test_succeeds_on_first_try(self) -> None:
        """Should return result when function succeeds first try."""
        counter = {"calls": 0}

        def succeed() -> str:
            counter["calls"] += 1
            return "success"

        with patch("profilesync.client.sync.retry.time.sleep") as mock_sleep:
            result = retry_with_backoff(succeed)

        assert result == "success"
        assert counter["calls"] == 1
        mock_sleep.assert_not_called()

    def test_retries_on_failure(self) -> None:
        """Should retry on failure and eventually succeed."""
        counter = {"calls": 0}

        def fail_twice() -> str:
            counter["calls"] += 1
            if counter["calls"] < 3:
                raise ConnectionError("Network error")
            return "success"

        with patch("profilesync.client.sync.retry.time.sleep"):
            result = retry_with_backoff(
                fail_twice,
                retryable_exceptions=(ConnectionError,),
            )

        assert result == "success"
        assert counter["calls"] == 3

    def test_raises_after_max_attempts(self) -> None:
        """Should raise the last error after exhausting attempts."""
        counter = {"calls": 0}

        def always_fail() -> str:
            counter["calls"] += 1
            raise TimeoutError(f"Timeout {counter['calls']}")

        with patch("profilesync.client.sync.retry.time.sleep"), pytest.raises(
            TimeoutError, match="Timeout 3"
        ):
            retry_with_backoff(always_fail, max_attempts=3)

        assert counter["calls"] == 3

    def test_does_not_retry_non_retryable_exceptions(self) -> None:
        """Should not retry exceptions not in retryable list."""
        counter = {"calls": 0}

        def raise_value_error() -> str:
            counter["calls"] += 1
            raise ValueError("Invalid value")

        with pytest.raises(ValueError, match="Invalid value"):
            retry_with_backoff(
                raise_value_error,
                retryable_exceptions=(ConnectionError,),
            )

        assert counter["calls"] == 1

    def test_linear_backoff(self) -> None:
        """Should wait step, 2*step, 3*step... between attempts."""
        sleep_times: list[float] = []
        counter = {"calls": 0}

        def fail_thrice() -> str:
            counter["calls"] += 1
            if counter["calls"] < 4:
                raise OSError("Error")
            return "success"

        with patch("profilesync.client.sync.retry.time.sleep") as mock_sleep:
            mock_sleep.side_effect = lambda t: sleep_times.append(t)
            retry_with_backoff(fail_thrice, max_attempts=5, backoff_step=1.0)

        assert sleep_times == [1.0, 2.0, 3.0]

    def test_single_attempt(self) -> None:
        """max_attempts=1 means no retry at all."""
        counter = {"calls": 0}

        def fail() -> str:
            counter["calls"] += 1
            raise OSError("Error")

        with pytest.raises(OSError):
            retry_with_backoff(fail, max_attempts=1)

        assert counter["calls"] == 1

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            retry_with_backoff(lambda: None, max_attempts=0)

    def test_already_cancelled_token(self) -> None:
        """A cancelled token should prevent the first attempt."""
        token = CancelToken()
        token.cancel()
        calls: list[int] = []

        with pytest.raises(SyncCancelled):
            retry_with_backoff(lambda: calls.append(1), token=token)

        assert calls == []

    def test_cancel_during_backoff(self) -> None:
        """Cancelling while waiting should abort without another attempt."""
        token = CancelToken()
        counter = {"calls": 0}

        def fail_and_cancel() -> str:
            counter["calls"] += 1
            token.cancel()
            raise ConnectionError("down")

        with pytest.raises(SyncCancelled):
            retry_with_backoff(fail_and_cancel, backoff_step=10.0, token=token)

        assert counter["calls"] == 1
