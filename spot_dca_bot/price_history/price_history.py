"""
Bounded price history for one pair, refreshed from an external feed.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional, Protocol, Union

import pandas as pd

from ..exceptions import PriceFeedError
from .models import PriceSample


logger = logging.getLogger(__name__)


class PriceFeed(Protocol):
    """Source of recent closing prices."""

    def fetch_recent_closes(self, symbol: str, timeframe_minutes: int, limit: int) -> List[float]:
        """Return up to `limit` closes, oldest first."""
        ...


class YFinancePriceFeed:
    """Price feed backed by yfinance intraday history."""

    SUPPORTED_INTERVALS = {1: "1m", 2: "2m", 5: "5m", 15: "15m", 30: "30m", 60: "60m", 90: "90m"}

    def __init__(self):
        """Initialize the feed; yfinance is imported on first use."""
        self._yf = None

    def _get_yfinance(self):
        """Lazy import of yfinance to avoid SSL issues during package setup."""
        if self._yf is None:
            import yfinance as yf
            self._yf = yf
        return self._yf

    def fetch_recent_closes(self, symbol: str, timeframe_minutes: int, limit: int) -> List[float]:
        """
        Fetch the most recent closing prices for a symbol.

        Args:
            symbol: yfinance symbol, e.g. "SOL-USD"
            timeframe_minutes: Candle width in minutes
            limit: Maximum number of closes to return

        Returns:
            Closing prices, oldest first
        """
        interval = self.SUPPORTED_INTERVALS.get(timeframe_minutes)
        if interval is None:
            raise PriceFeedError(
                f"Unsupported timeframe {timeframe_minutes}m; use one of {sorted(self.SUPPORTED_INTERVALS)}"
            )
        # yfinance only serves 7 days of 1m candles and 60 days of other intraday candles
        period = "7d" if timeframe_minutes == 1 else "60d"

        try:
            yf = self._get_yfinance()
            data = yf.Ticker(symbol).history(period=period, interval=interval)
        except Exception as e:
            raise PriceFeedError(f"Failed to fetch price history for {symbol}: {e}") from e

        if data is None or data.empty or 'Close' not in data.columns:
            raise PriceFeedError(f"No price history returned for {symbol}")

        closes = data['Close'].dropna().tail(limit)
        return [float(close) for close in closes]


class PriceHistoryStore:
    """
    Keeps the most recent N closes for one pair.

    Each refresh replaces the history wholesale and rewrites the on-disk copy
    (one close per line).
    """

    MAX_SAMPLES = 1000

    def __init__(
        self,
        feed: PriceFeed,
        symbol: str,
        timeframe_minutes: int = 5,
        max_samples: int = MAX_SAMPLES,
        path: Optional[Union[str, Path]] = None
    ):
        """
        Initialize the store.

        Args:
            feed: External price feed
            symbol: Symbol queried on the feed
            timeframe_minutes: Candle width requested from the feed
            max_samples: Upper bound on retained closes
            path: Optional file the history is mirrored to
        """
        self._feed = feed
        self._symbol = symbol
        self._timeframe_minutes = timeframe_minutes
        self._max_samples = max_samples
        self._path = Path(path) if path is not None else None
        self._closes = pd.Series([], dtype=float, name='Close')

    @property
    def closes(self) -> pd.Series:
        """Closing prices, oldest first."""
        return self._closes.copy()

    @property
    def samples(self) -> List[PriceSample]:
        return [PriceSample(close=float(close)) for close in self._closes]

    def __len__(self) -> int:
        return len(self._closes)

    def refresh(self) -> int:
        """
        Replace the history with the latest closes from the feed.

        Returns:
            Number of closes now held

        Raises:
            PriceFeedError: If the feed fails or returns no usable prices
        """
        raw = self._feed.fetch_recent_closes(self._symbol, self._timeframe_minutes, self._max_samples)
        try:
            values = [float(p) for p in raw if p is not None]
        except (TypeError, ValueError) as e:
            raise PriceFeedError(f"Malformed price data for {self._symbol}: {e}") from e
        closes = [p for p in values if math.isfinite(p) and p > 0]
        if not closes:
            raise PriceFeedError(f"No valid price data fetched for {self._symbol}")

        self._closes = pd.Series(closes[-self._max_samples:], dtype=float, name='Close')
        self._save()
        logger.debug(f"Refreshed {len(self._closes)} closes for {self._symbol}")
        return len(self._closes)

    def load(self) -> int:
        """
        Load the mirrored history from disk, skipping unparseable lines.

        Returns:
            Number of closes loaded
        """
        if self._path is None or not self._path.exists():
            return 0

        closes = []
        for line in self._path.read_text(encoding='utf-8').splitlines():
            try:
                value = float(line.strip())
            except ValueError:
                continue
            if math.isfinite(value) and value > 0:
                closes.append(value)

        self._closes = pd.Series(closes[-self._max_samples:], dtype=float, name='Close')
        logger.debug(f"Loaded {len(self._closes)} cached closes from {self._path}")
        return len(self._closes)

    def latest_price(self) -> float:
        """The most recent close."""
        if self._closes.empty:
            raise PriceFeedError(f"Price history for {self._symbol} is empty")
        return float(self._closes.iloc[-1])

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            content = "\n".join(f"{close:.6f}" for close in self._closes) + "\n"
            temp_file = self._path.with_suffix(self._path.suffix + '.tmp')
            temp_file.write_text(content, encoding='utf-8')
            temp_file.replace(self._path)
        except OSError as e:
            logger.warning(f"Failed to write price history to {self._path}: {e}")
