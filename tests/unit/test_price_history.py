"""
Unit tests for price history storage and the yfinance feed adapter.
"""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pandas as pd
import pytest

from spot_dca_bot.exceptions import PriceFeedError
from spot_dca_bot.price_history import PriceHistoryStore, YFinancePriceFeed


class TestPriceHistoryStore:
    """Test PriceHistoryStore class."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        temp_dir = tempfile.mkdtemp()
        yield temp_dir
        shutil.rmtree(temp_dir)

    @pytest.fixture
    def feed(self):
        feed = Mock()
        feed.fetch_recent_closes.return_value = [100.0, 101.0, 102.5]
        return feed

    def test_refresh_replaces_history(self, feed):
        store = PriceHistoryStore(feed, "SOL-USD", timeframe_minutes=5, max_samples=1000)

        assert store.refresh() == 3
        assert list(store.closes) == [100.0, 101.0, 102.5]
        assert store.latest_price() == 102.5
        feed.fetch_recent_closes.assert_called_once_with("SOL-USD", 5, 1000)

        feed.fetch_recent_closes.return_value = [90.0]
        store.refresh()
        assert list(store.closes) == [90.0]

    def test_refresh_keeps_most_recent_samples(self, feed):
        feed.fetch_recent_closes.return_value = [float(p) for p in range(1, 11)]
        store = PriceHistoryStore(feed, "SOL-USD", max_samples=4)

        store.refresh()

        assert list(store.closes) == [7.0, 8.0, 9.0, 10.0]
        assert len(store) == 4

    def test_refresh_drops_unusable_prices(self, feed):
        feed.fetch_recent_closes.return_value = [100.0, float("nan"), 0.0, -5.0, None, 101.0]
        store = PriceHistoryStore(feed, "SOL-USD")

        store.refresh()

        assert list(store.closes) == [100.0, 101.0]

    def test_refresh_with_no_usable_prices_raises(self, feed):
        feed.fetch_recent_closes.return_value = [float("nan")]
        store = PriceHistoryStore(feed, "SOL-USD")

        with pytest.raises(PriceFeedError):
            store.refresh()

    def test_refresh_with_malformed_prices_raises(self, feed):
        feed.fetch_recent_closes.return_value = ["abc"]
        store = PriceHistoryStore(feed, "SOL-USD")

        with pytest.raises(PriceFeedError):
            store.refresh()

    def test_feed_errors_propagate(self, feed):
        feed.fetch_recent_closes.side_effect = PriceFeedError("offline")
        store = PriceHistoryStore(feed, "SOL-USD")

        with pytest.raises(PriceFeedError):
            store.refresh()

    def test_latest_price_on_empty_history_raises(self, feed):
        with pytest.raises(PriceFeedError):
            PriceHistoryStore(feed, "SOL-USD").latest_price()

    def test_history_is_mirrored_to_disk(self, feed, temp_dir):
        path = Path(temp_dir) / "prices.csv"
        store = PriceHistoryStore(feed, "SOL-USD", path=path)
        store.refresh()

        assert path.read_text().splitlines() == ["100.000000", "101.000000", "102.500000"]

        restarted = PriceHistoryStore(feed, "SOL-USD", path=path)
        assert restarted.load() == 3
        assert restarted.latest_price() == 102.5

    def test_load_skips_bad_lines(self, feed, temp_dir):
        path = Path(temp_dir) / "prices.csv"
        path.write_text("100.0\ngarbage\n\n-3\n101.0\n")

        store = PriceHistoryStore(feed, "SOL-USD", path=path)

        assert store.load() == 2
        assert [s.close for s in store.samples] == [100.0, 101.0]

    def test_load_without_file(self, feed, temp_dir):
        store = PriceHistoryStore(feed, "SOL-USD", path=Path(temp_dir) / "missing.csv")
        assert store.load() == 0


class TestYFinancePriceFeed:
    """Test YFinancePriceFeed class."""

    def test_unsupported_timeframe(self):
        with pytest.raises(PriceFeedError):
            YFinancePriceFeed().fetch_recent_closes("SOL-USD", 7, 100)

    def test_fetch_recent_closes(self):
        yf = Mock()
        yf.Ticker.return_value.history.return_value = pd.DataFrame(
            {"Close": [100.0, None, 101.0, 102.0]}
        )
        feed = YFinancePriceFeed()

        with patch.object(feed, "_get_yfinance", return_value=yf):
            closes = feed.fetch_recent_closes("SOL-USD", 5, 2)

        assert closes == [101.0, 102.0]
        yf.Ticker.assert_called_once_with("SOL-USD")
        yf.Ticker.return_value.history.assert_called_once_with(period="60d", interval="5m")

    def test_one_minute_candles_use_short_period(self):
        yf = Mock()
        yf.Ticker.return_value.history.return_value = pd.DataFrame({"Close": [100.0]})
        feed = YFinancePriceFeed()

        with patch.object(feed, "_get_yfinance", return_value=yf):
            feed.fetch_recent_closes("SOL-USD", 1, 10)

        yf.Ticker.return_value.history.assert_called_once_with(period="7d", interval="1m")

    def test_empty_response_raises(self):
        yf = Mock()
        yf.Ticker.return_value.history.return_value = pd.DataFrame()
        feed = YFinancePriceFeed()

        with patch.object(feed, "_get_yfinance", return_value=yf):
            with pytest.raises(PriceFeedError):
                feed.fetch_recent_closes("SOL-USD", 5, 10)

    def test_network_error_is_wrapped(self):
        yf = Mock()
        yf.Ticker.return_value.history.side_effect = ConnectionError("timeout")
        feed = YFinancePriceFeed()

        with patch.object(feed, "_get_yfinance", return_value=yf):
            with pytest.raises(PriceFeedError):
                feed.fetch_recent_closes("SOL-USD", 5, 10)
