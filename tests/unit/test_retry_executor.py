"""
Unit tests for the bounded swap retry loop.
"""

from unittest.mock import Mock

import pytest

from spot_dca_bot.exceptions import QuoteError, SwapError, TransientSwapError
from spot_dca_bot.execution import (
    ExecutionStatus,
    RetryExecutor,
    RetryPolicy,
    SwapIntent,
    SwapResult,
)


FILL = SwapResult(received_amount=2.0, execution_ref="tx-1")


@pytest.fixture
def intent():
    return SwapIntent(input_asset="USDC", output_asset="SOL", amount=100.0)


@pytest.fixture
def sleep():
    return Mock()


class TestRetryExecutor:
    """Test RetryExecutor class."""

    def test_fills_on_first_attempt(self, intent, sleep):
        swap = Mock()
        swap.execute.return_value = FILL

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.FILLED
        assert outcome.filled
        assert outcome.result == FILL
        assert outcome.attempts == 1
        assert outcome.slippage_history == [1]
        swap.execute.assert_called_once_with("USDC", "SOL", 100.0, 1)
        sleep.assert_not_called()

    def test_escalates_slippage_after_transient_failures(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = [TransientSwapError("route"), TransientSwapError("slippage"), FILL]

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.FILLED
        assert outcome.attempts == 3
        assert outcome.slippage_history == [1, 2, 3]
        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)

    def test_slippage_never_exceeds_ceiling(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = [TransientSwapError("x")] * 9 + [FILL]

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.slippage_history == [1, 2, 3, 4, 5, 5, 5, 5, 5, 5]

    def test_exhausts_budget(self, intent, sleep):
        """With every attempt failing the executor stops after exactly the budget."""
        swap = Mock()
        swap.execute.side_effect = TransientSwapError("no route")

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.EXHAUSTED
        assert not outcome.filled
        assert outcome.result is None
        assert swap.execute.call_count == 200
        assert outcome.attempts == 200
        assert max(outcome.slippage_history) == 5
        assert outcome.last_error == "no route"
        assert sleep.call_count == 199

    def test_custom_policy(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = TransientSwapError("busy")
        policy = RetryPolicy(attempt_budget=3, initial_slippage_bps=10, slippage_step_bps=5,
                             max_slippage_bps=50, retry_delay_seconds=0.5)

        outcome = RetryExecutor(swap, policy, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.EXHAUSTED
        assert outcome.slippage_history == [10, 15, 20]
        sleep.assert_called_with(0.5)

    def test_non_retryable_error_aborts_immediately(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = SwapError("insufficient funds")

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.ABORTED
        assert outcome.attempts == 1
        assert outcome.last_error == "insufficient funds"
        sleep.assert_not_called()

    def test_quote_error_aborts(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = [TransientSwapError("x"), QuoteError("bad shape")]

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.status is ExecutionStatus.ABORTED
        assert outcome.attempts == 2

    def test_starting_slippage_is_capped(self, sleep):
        swap = Mock()
        swap.execute.return_value = FILL
        intent = SwapIntent(input_asset="SOL", output_asset="USDC", amount=2.0, starting_slippage_bps=50)

        outcome = RetryExecutor(swap, sleep=sleep).execute(intent)

        assert outcome.slippage_history == [5]

    def test_other_exceptions_propagate(self, intent, sleep):
        swap = Mock()
        swap.execute.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            RetryExecutor(swap, sleep=sleep).execute(intent)
