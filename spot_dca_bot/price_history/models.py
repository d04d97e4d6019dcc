"""
Data models for price history.
"""

from pydantic import BaseModel, ConfigDict, Field


class PriceSample(BaseModel):
    """One historical closing price."""

    model_config = ConfigDict(frozen=True)

    close: float = Field(gt=0.0)
