"""
Swap execution module.

This module wraps an injected swap capability with a bounded retry policy
that escalates slippage tolerance, and provides a paper capability for
simulated trading.
"""

from .interfaces import BalanceProvider, SwapCapability
from .models import (
    ExecutionOutcome,
    ExecutionStatus,
    RetryPolicy,
    SwapIntent,
    SwapQuote,
    SwapResult,
)
from .paper import PaperSwapExecutor
from .retry_executor import RetryExecutor

__all__ = [
    "BalanceProvider",
    "SwapCapability",
    "ExecutionOutcome",
    "ExecutionStatus",
    "RetryPolicy",
    "SwapIntent",
    "SwapQuote",
    "SwapResult",
    "PaperSwapExecutor",
    "RetryExecutor",
]
