"""
Configuration models using Pydantic for validation.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional

from ..execution.models import RetryPolicy


SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class PairConfig(BaseModel):
    """The single asset pair traded by the bot."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    name: str = Field(
        default="SOL_USDC",
        min_length=1,
        description="Short pair name used to key persisted files"
    )
    base_asset: str = Field(default=SOL_MINT, min_length=1, description="Asset bought and sold")
    quote_asset: str = Field(default=USDC_MINT, min_length=1, description="Asset spent on buys")
    price_symbol: str = Field(
        default="SOL-USD",
        min_length=1,
        description="Symbol used to query the price-history feed"
    )
    timeframe_minutes: int = Field(
        default=5,
        ge=1,
        description="Candle width of the price-history feed"
    )
    history_limit: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Number of most recent closes kept for risk analysis"
    )

    @field_validator("name")
    @classmethod
    def _name_is_path_safe(cls, value: str) -> str:
        if any(ch in value for ch in "/\\ "):
            raise ValueError("pair name must not contain path separators or spaces")
        return value


class StrategyConfig(BaseModel):
    """Entry, exit and average-down policy."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    profit_target_pct: float = Field(
        default=0.3,
        gt=0.0,
        description="Percentage gain over cost basis that triggers a full exit"
    )
    dca_trigger_pct: float = Field(
        default=1.5,
        gt=0.0,
        description="Drawdown percentage that triggers an average-down buy"
    )
    dca_growth_factor: float = Field(
        default=0.5,
        gt=0.0,
        description="Per-level growth of the average-down investment"
    )
    dca_multiplier: float = Field(
        default=1.0,
        gt=0.0,
        le=1.0,
        description="Balance fraction multiplier applied to average-down sizing"
    )
    carry_entry_multiplier: bool = Field(
        default=False,
        description="If True, size average-down buys with the last entry risk multiplier"
    )
    cooldown_seconds: int = Field(
        default=3600,
        ge=0,
        description="Minimum seconds after a full exit before a new entry"
    )
    min_notional: float = Field(
        default=10.0,
        ge=0.0,
        description="Smallest quote amount worth trading"
    )
    quote_slippage_bps: int = Field(
        default=50,
        ge=0,
        description="Slippage used when quoting the exit of the whole holding"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Pause between strategy cycles"
    )


class RiskConfig(BaseModel):
    """Historical touch-count risk settings."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    bucket_width: float = Field(
        default=0.25,
        gt=0.0,
        description="Width of the price buckets used to count touches"
    )


class PaperConfig(BaseModel):
    """Simulated wallet used when no live swap capability is wired in."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    starting_quote_balance: float = Field(default=1000.0, ge=0.0)
    starting_base_balance: float = Field(default=0.0, ge=0.0)


class BotConfig(BaseModel):
    """Top-level configuration for the trading bot."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )

    pair: PairConfig = Field(default_factory=PairConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    paper: PaperConfig = Field(default_factory=PaperConfig)
    state_dir: Optional[str] = Field(
        default=None,
        description="Directory for persisted counters, ledger and price history"
    )
