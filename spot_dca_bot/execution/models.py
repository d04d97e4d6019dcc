"""
Data models for swap execution.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """Retry budget and slippage escalation settings for a single swap."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    attempt_budget: int = Field(
        default=200,
        ge=1,
        description="Maximum number of calls to the swap capability per intent"
    )
    initial_slippage_bps: int = Field(
        default=1,
        ge=0,
        description="Slippage tolerance used on the first attempt"
    )
    slippage_step_bps: int = Field(
        default=1,
        ge=0,
        description="Slippage added after each failed attempt"
    )
    max_slippage_bps: int = Field(
        default=5,
        ge=0,
        description="Slippage ceiling, never exceeded"
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Pause between failed attempts"
    )


class SwapIntent(BaseModel):
    """A request to swap an amount of one asset into another."""

    model_config = ConfigDict(frozen=True)

    input_asset: str
    output_asset: str
    amount: float = Field(gt=0.0)
    starting_slippage_bps: Optional[int] = Field(default=None, ge=0)


class SwapQuote(BaseModel):
    """Expected output of a swap, in human units."""

    model_config = ConfigDict(frozen=True)

    expected_out: float = Field(ge=0.0)


class SwapResult(BaseModel):
    """Result of an executed swap."""

    model_config = ConfigDict(frozen=True)

    received_amount: float = Field(ge=0.0)
    execution_ref: str


class ExecutionStatus(Enum):
    """Terminal states of a retried swap."""

    FILLED = "filled"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


class ExecutionOutcome(BaseModel):
    """What happened to a swap intent after the retry loop finished."""

    status: ExecutionStatus
    intent: SwapIntent
    result: Optional[SwapResult] = None
    attempts: int = Field(default=0, ge=0)
    slippage_history: List[int] = Field(default_factory=list)
    last_error: Optional[str] = None

    @property
    def filled(self) -> bool:
        return self.status == ExecutionStatus.FILLED
