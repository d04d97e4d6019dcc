"""
Touch-count risk analysis over recent price history.
"""

import logging
import math
from typing import Iterable, Tuple, Union

import pandas as pd

from .models import RiskAssessment, RiskLabel


logger = logging.getLogger(__name__)


# (inclusive upper touch count, label, multiplier); the last tier is open-ended
RISK_TIERS = (
    (2, RiskLabel.HIGH_RISK, 0.25),
    (6, RiskLabel.WEAK_ZONE, 0.5),
    (15, RiskLabel.SAFE, 0.75),
    (None, RiskLabel.VERY_SAFE, 1.0),
)


class RiskAnalyzer:
    """
    Classifies a target price by how often history has visited it.

    Prices are discretized into fixed-width buckets. The more historical
    samples share the target's bucket, the larger the position it allows.
    """

    DEFAULT_BUCKET_WIDTH = 0.25

    def __init__(self, bucket_width: float = DEFAULT_BUCKET_WIDTH):
        """
        Initialize the analyzer.

        Args:
            bucket_width: Width of each price bucket in quote units
        """
        if bucket_width <= 0:
            raise ValueError("bucket_width must be positive")
        self.bucket_width = bucket_width

    def bucket_key(self, price: float) -> int:
        """
        Map a price to its bucket key.

        The price is rounded half-up to the nearest bucket, then scaled by
        1000 so neighbouring buckets of fractional width get distinct keys.
        """
        buckets = math.floor(price / self.bucket_width + 0.5)
        return int(buckets * self.bucket_width * 1000.0)

    def bucket_counts(self, prices: Union[pd.Series, Iterable[float]]) -> pd.Series:
        """
        Count historical samples per bucket.

        Args:
            prices: Historical closing prices

        Returns:
            Series indexed by bucket key with sample counts
        """
        series = prices if isinstance(prices, pd.Series) else pd.Series(list(prices), dtype=float)
        if series.empty:
            return pd.Series([], dtype=int)
        return series.map(self.bucket_key).value_counts()

    def touch_count(self, prices: Union[pd.Series, Iterable[float]], target_price: float) -> int:
        """Number of samples in the same bucket as the target price."""
        counts = self.bucket_counts(prices)
        return int(counts.get(self.bucket_key(target_price), 0))

    @staticmethod
    def classify(touch_count: int) -> Tuple[RiskLabel, float]:
        """
        Map a touch count to its risk tier.

        Returns:
            Tuple of (label, size multiplier)
        """
        for upper, label, multiplier in RISK_TIERS:
            if upper is None or touch_count <= upper:
                return label, multiplier
        raise AssertionError("unreachable: last risk tier is open-ended")

    @staticmethod
    def target_price(current_price: float, profit_target_pct: float) -> float:
        """Current price inflated by the profit target percentage."""
        return current_price * (1.0 + profit_target_pct / 100.0)

    def assess(
        self,
        prices: Union[pd.Series, Iterable[float]],
        current_price: float,
        profit_target_pct: float
    ) -> RiskAssessment:
        """
        Assess the risk of entering now for the given profit target.

        Args:
            prices: Historical closing prices
            current_price: Latest price
            profit_target_pct: Profit target in percent (0.3 means 0.3%)

        Returns:
            RiskAssessment for the target price
        """
        target = self.target_price(current_price, profit_target_pct)
        touches = self.touch_count(prices, target)
        label, multiplier = self.classify(touches)

        logger.info(f"[Risk Check] Price: {current_price:.2f} | Target: {target:.2f} | Touches: {touches} | "
                    f"Risk: {label.value} | Multiplier: {multiplier:.2f}")

        return RiskAssessment(
            label=label,
            touch_count=touches,
            size_multiplier=multiplier,
            current_price=current_price,
            target_price=target
        )
