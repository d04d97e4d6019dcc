"""
Unit tests for the trading switch and remote commands.
"""

import threading
import time
from unittest.mock import Mock

import pytest

from spot_dca_bot.control import (
    RemoteCommandHandler,
    RemoteControlListener,
    TradingSwitch,
    format_market_status,
)
from spot_dca_bot.exceptions import QuoteError
from spot_dca_bot.models import EngineState, MarketStatus


def make_status(**overrides):
    values = dict(
        pair="SOL_USDC",
        state=EngineState.HOLDING,
        holding_value=2.0,
        dca_level=1,
        open_trades=2,
        cost_basis=100.0,
        average_entry_price=50.0,
        quoted_proceeds=97.0,
        target_return=100.3,
        profit_target_pct=0.3,
        price_change_pct=-3.0
    )
    values.update(overrides)
    return MarketStatus(**values)


class TestTradingSwitch:
    """Test TradingSwitch class."""

    def test_enable_disable_report_previous_state(self):
        switch = TradingSwitch()

        assert switch.is_enabled()
        assert switch.disable() is True
        assert switch.disable() is False
        assert not switch.checkpoint()
        assert switch.enable() is False
        assert switch.checkpoint()

    def test_shutdown_closes_checkpoint(self):
        switch = TradingSwitch()
        switch.request_shutdown()

        assert switch.shutdown_requested
        assert not switch.checkpoint()

    def test_wait_wakes_on_shutdown(self):
        switch = TradingSwitch()
        timer = threading.Timer(0.05, switch.request_shutdown)
        timer.start()

        started = time.monotonic()
        assert switch.wait(5.0) is True
        assert time.monotonic() - started < 5.0
        timer.join()


class TestRemoteCommandHandler:
    """Test RemoteCommandHandler class."""

    @pytest.fixture
    def switch(self):
        return TradingSwitch()

    def test_status(self, switch):
        handler = RemoteCommandHandler(switch)

        assert handler.handle("/status") == "🟢 Bot is Online"
        switch.disable()
        assert handler.handle("/status") == "🔴 Bot is Offline"

    def test_stop_and_start(self, switch):
        handler = RemoteCommandHandler(switch)

        assert handler.handle("/stop_trading") == "🛑 Safe Stop Triggered"
        assert not switch.is_enabled()
        assert handler.handle("/stop_trading") == "⚠️ Trading already stopped."
        assert handler.handle("/start_trading") == "✅ Trading Started"
        assert switch.is_enabled()

    def test_unknown_commands_are_ignored(self, switch):
        handler = RemoteCommandHandler(switch)

        assert handler.handle("hello") is None
        assert handler.handle("") is None
        assert switch.is_enabled()

    def test_market_status(self, switch):
        handler = RemoteCommandHandler(switch, status_provider=lambda: make_status())

        reply = handler.handle("/market_status")

        assert "Holding: 2.000000 SOL" in reply
        assert "Would return 97.000000 USDC" in reply
        assert "Need at least 100.300000 USDC" in reply
        assert "-3.00%" in reply

    def test_market_status_failure(self, switch):
        provider = Mock(side_effect=QuoteError("no route"))
        handler = RemoteCommandHandler(switch, status_provider=provider)

        assert handler.handle("/market_status") == "❌ Failed to get market status: no route"

    def test_market_status_without_provider(self, switch):
        assert RemoteCommandHandler(switch).handle("/market_status").startswith("❌")


class TestFormatMarketStatus:
    """Test market status formatting."""

    def test_flat_position(self):
        status = make_status(state=EngineState.AWAIT_ENTRY, holding_value=0.0, dca_level=0, open_trades=0,
                             cost_basis=0.0, average_entry_price=None, quoted_proceeds=None,
                             target_return=0.0, price_change_pct=None)

        assert "No open position" in format_market_status(status)

    def test_missing_quote(self):
        status = make_status(quoted_proceeds=None, price_change_pct=None, message="Failed to get quote: x")

        assert "Failed to get quote: x" in format_market_status(status)


class TestRemoteControlListener:
    """Test RemoteControlListener class."""

    def test_poll_once_sends_replies(self):
        switch = TradingSwitch()
        send = Mock()
        listener = RemoteControlListener(
            RemoteCommandHandler(switch),
            fetch_commands=lambda: ["/status", "chit chat", "/stop_trading"],
            send_message=send
        )

        assert listener.poll_once() == 2
        assert [c[0][0] for c in send.call_args_list] == ["🟢 Bot is Online", "🛑 Safe Stop Triggered"]
        assert not switch.is_enabled()

    def test_send_failure_is_logged(self):
        listener = RemoteControlListener(
            RemoteCommandHandler(TradingSwitch()),
            fetch_commands=lambda: ["/status"],
            send_message=Mock(side_effect=ConnectionError("down"))
        )

        assert listener.poll_once() == 0

    def test_background_thread_handles_commands(self):
        switch = TradingSwitch()
        batches = [["/stop_trading"]]
        handled = threading.Event()

        def fetch():
            return batches.pop() if batches else []

        listener = RemoteControlListener(
            RemoteCommandHandler(switch),
            fetch_commands=fetch,
            send_message=lambda message: handled.set(),
            poll_interval_seconds=0.01
        )
        listener.start()
        try:
            assert handled.wait(2.0)
        finally:
            listener.stop(timeout=2.0)

        assert not switch.is_enabled()
        assert not listener.running
