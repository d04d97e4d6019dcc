"""
Shared data models for the trading bot.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineState(Enum):
    """Strategy state derived from the persisted holding value."""

    AWAIT_ENTRY = "await_entry"
    HOLDING = "holding"


class MarketStatus(BaseModel):
    """Read-only summary of the open position and its quoted exit."""

    model_config = ConfigDict(validate_assignment=True)

    pair: str
    state: EngineState
    holding_value: float = Field(ge=0.0)
    dca_level: int = Field(ge=0)
    open_trades: int = Field(ge=0)
    cost_basis: float = Field(ge=0.0)
    average_entry_price: Optional[float] = None
    quoted_proceeds: Optional[float] = None
    target_return: float = Field(ge=0.0)
    profit_target_pct: float
    price_change_pct: Optional[float] = None  # Can be negative
    trading_enabled: bool = True
    message: Optional[str] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def sell_ready(self) -> bool:
        return self.quoted_proceeds is not None and self.holding_value > 0 and self.quoted_proceeds >= self.target_return
