"""
Price history module.

This module keeps a bounded window of recent closing prices for the traded
pair, refreshed wholesale from an external feed.
"""

from .models import PriceSample
from .price_history import PriceFeed, PriceHistoryStore, YFinancePriceFeed

__all__ = ["PriceFeed", "PriceHistoryStore", "PriceSample", "YFinancePriceFeed"]
