"""
Data models for the trade ledger.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TradeKind(Enum):
    """Direction of a trade relative to the base asset."""

    BUY = "buy"
    SELL = "sell"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Trade(BaseModel):
    """One executed trade. Written once, never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    trade_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: TradeKind = Field(validation_alias=AliasChoices("kind", "trade_type"))
    amount_in: float = Field(ge=0.0, validation_alias=AliasChoices("amount_in", "amount_token_a"))
    amount_out: float = Field(ge=0.0, validation_alias=AliasChoices("amount_out", "amount_token_b"))
    timestamp: datetime = Field(
        default_factory=_utc_now,
        validation_alias=AliasChoices("timestamp", "time")
    )
    dca_level: Optional[int] = Field(default=None, ge=0)
    execution_ref: Optional[str] = None

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_sell(self) -> bool:
        return self.kind is TradeKind.SELL

    def to_json_line(self) -> str:
        """Serialize as a single ledger line (no trailing newline)."""
        return self.model_dump_json(exclude_none=True)
