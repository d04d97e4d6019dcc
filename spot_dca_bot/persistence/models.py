"""
Data models for persisted strategy state.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..ledger.models import Trade


class PersistedCounters(BaseModel):
    """Per-pair scalars that survive restarts."""

    model_config = ConfigDict(frozen=True)

    holding_value: float = Field(default=0.0, ge=0.0)
    dca_level: int = Field(default=0, ge=0)

    @property
    def has_position(self) -> bool:
        return self.holding_value != 0.0


class PendingCommit(BaseModel):
    """Write-ahead record of a trade and the counters it produces."""

    trade: Trade
    counters: PersistedCounters
