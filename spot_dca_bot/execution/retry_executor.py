"""
Bounded retry loop with escalating slippage tolerance.
"""

import logging
import time
from typing import Callable, Optional

from ..exceptions import SwapError, TransientSwapError
from .interfaces import SwapCapability
from .models import ExecutionOutcome, ExecutionStatus, RetryPolicy, SwapIntent


logger = logging.getLogger(__name__)


class RetryExecutor:
    """
    Drives a single swap until it fills or the attempt budget runs out.

    Each transient failure raises the slippage tolerance by one step, up to
    the policy ceiling. Tolerance never goes down within one intent.
    """

    def __init__(
        self,
        swap: SwapCapability,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the executor.

        Args:
            swap: Capability that performs one swap attempt
            policy: Retry budget and slippage settings (defaults if None)
            sleep: Function used to wait between attempts
        """
        self.swap = swap
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _starting_slippage(self, intent: SwapIntent) -> int:
        start = intent.starting_slippage_bps
        if start is None:
            start = self.policy.initial_slippage_bps
        return min(start, self.policy.max_slippage_bps)

    def _next_slippage(self, current: int) -> int:
        return max(current, min(current + self.policy.slippage_step_bps, self.policy.max_slippage_bps))

    def execute(self, intent: SwapIntent) -> ExecutionOutcome:
        """
        Attempt the swap until it fills, a non-retryable error occurs, or the
        budget is exhausted.

        Args:
            intent: What to swap

        Returns:
            ExecutionOutcome describing the terminal state
        """
        remaining = self.policy.attempt_budget
        slippage = self._starting_slippage(intent)
        history = []
        last_error = None

        while remaining > 0:
            history.append(slippage)
            logger.info(f"Swapping {intent.amount:.6f} {intent.input_asset} -> {intent.output_asset} "
                        f"with slippage {slippage}bps")
            try:
                result = self.swap.execute(intent.input_asset, intent.output_asset, intent.amount, slippage)
            except TransientSwapError as e:
                last_error = str(e)
                remaining -= 1
                logger.warning(f"Swap attempt failed: {e}")
                slippage = self._next_slippage(slippage)
                if remaining > 0:
                    logger.info(f"Retrying in {self.policy.retry_delay_seconds}s... ({remaining} attempts left)")
                    self._sleep(self.policy.retry_delay_seconds)
                continue
            except SwapError as e:
                logger.error(f"Swap aborted: {e}")
                return ExecutionOutcome(
                    status=ExecutionStatus.ABORTED,
                    intent=intent,
                    attempts=len(history),
                    slippage_history=history,
                    last_error=str(e)
                )

            logger.info(f"Swap filled: received {result.received_amount:.6f} {intent.output_asset} "
                        f"in {result.execution_ref}")
            return ExecutionOutcome(
                status=ExecutionStatus.FILLED,
                intent=intent,
                result=result,
                attempts=len(history),
                slippage_history=history
            )

        logger.error(f"Max attempts ({self.policy.attempt_budget}) reached. Aborting swap.")
        return ExecutionOutcome(
            status=ExecutionStatus.EXHAUSTED,
            intent=intent,
            attempts=len(history),
            slippage_history=history,
            last_error=last_error
        )
