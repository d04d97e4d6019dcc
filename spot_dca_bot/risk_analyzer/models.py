"""
Data models for historical-touch risk assessment.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RiskLabel(Enum):
    """Risk tiers, from least to most often visited target price."""

    HIGH_RISK = "high_risk"
    WEAK_ZONE = "weak_zone"
    SAFE = "safe"
    VERY_SAFE = "very_safe"


class RiskAssessment(BaseModel):
    """How often a target price was touched and the position size that justifies."""

    model_config = ConfigDict(frozen=True)

    label: RiskLabel
    touch_count: int = Field(ge=0)
    size_multiplier: float = Field(gt=0.0, le=1.0)
    current_price: float = Field(gt=0.0)
    target_price: float = Field(gt=0.0)

    @property
    def tradeable(self) -> bool:
        return self.label is not RiskLabel.HIGH_RISK
