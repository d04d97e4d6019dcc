"""
Chat-style remote commands for toggling trading and reporting status.
"""

import logging
import threading
from typing import Callable, Iterable, Optional

from ..exceptions import BotError
from ..models import MarketStatus
from .trading_switch import TradingSwitch


logger = logging.getLogger(__name__)


def format_market_status(status: MarketStatus, base_label: str = "SOL", quote_label: str = "USDC") -> str:
    """Format a market status summary as a chat message."""
    if status.holding_value <= 0:
        return f"💤 No open position on {status.pair} (DCA level {status.dca_level})"

    if status.quoted_proceeds is None:
        reason = status.message or "no quote available"
        return (
            f"🔁 Holding: {status.holding_value:.6f} {base_label}\n"
            f"⚠️ {reason}"
        )

    lines = [
        f"🔁 Holding: {status.holding_value:.6f} {base_label} →",
        f"🔁 Would return {status.quoted_proceeds:.6f} {quote_label} for selling {status.holding_value:.6f} {base_label}",
        f"🎯 Need at least {status.target_return:.6f} {quote_label} to sell for profit (+{status.profit_target_pct:.1f}%)",
        f"📉 Price is at {status.price_change_pct:+.2f}%",
    ]
    return "\n".join(lines)


class RemoteCommandHandler:
    """
    Maps incoming command text to switch changes and reply messages.

    Supported commands are /status, /start_trading, /stop_trading and
    /market_status. Anything else is ignored.
    """

    STATUS_ONLINE = "🟢 Bot is Online"
    STATUS_OFFLINE = "🔴 Bot is Offline"
    TRADING_STARTED = "✅ Trading Started"
    SAFE_STOP = "🛑 Safe Stop Triggered"
    ALREADY_STOPPED = "⚠️ Trading already stopped."

    def __init__(
        self,
        switch: TradingSwitch,
        status_provider: Optional[Callable[[], MarketStatus]] = None,
        base_label: str = "SOL",
        quote_label: str = "USDC"
    ):
        self.switch = switch
        self.status_provider = status_provider
        self.base_label = base_label
        self.quote_label = quote_label

    def handle(self, text: str) -> Optional[str]:
        """
        Handle one command.

        Args:
            text: Raw message text

        Returns:
            Reply to send back, or None for unrecognized input
        """
        command = text.strip().split()[0].lower() if text and text.strip() else ""

        if command == "/status":
            return self.STATUS_ONLINE if self.switch.is_enabled() else self.STATUS_OFFLINE

        if command == "/start_trading":
            self.switch.enable()
            return self.TRADING_STARTED

        if command == "/stop_trading":
            was_enabled = self.switch.disable()
            return self.SAFE_STOP if was_enabled else self.ALREADY_STOPPED

        if command == "/market_status":
            return self._market_status()

        logger.debug(f"Ignoring unrecognized command: {text!r}")
        return None

    def _market_status(self) -> str:
        if self.status_provider is None:
            return "❌ Failed to get market status: no status provider configured"
        try:
            status = self.status_provider()
        except (BotError, OSError) as e:
            logger.warning(f"Market status request failed: {e}")
            return f"❌ Failed to get market status: {e}"
        return format_market_status(status, self.base_label, self.quote_label)


class RemoteControlListener:
    """Background thread that polls for commands and sends replies."""

    def __init__(
        self,
        handler: RemoteCommandHandler,
        fetch_commands: Callable[[], Iterable[str]],
        send_message: Callable[[str], None],
        poll_interval_seconds: float = 2.0
    ):
        self.handler = handler
        self.fetch_commands = fetch_commands
        self.send_message = send_message
        self.poll_interval_seconds = poll_interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="remote-control", daemon=True)
        self._thread.start()
        logger.info("Remote control listener started")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Remote control listener stopped")

    def poll_once(self) -> int:
        """
        Fetch and handle one batch of commands.

        Returns:
            Number of replies sent
        """
        sent = 0
        for text in self.fetch_commands():
            reply = self.handler.handle(text)
            if reply is None:
                continue
            try:
                self.send_message(reply)
                sent += 1
            except Exception as e:
                logger.warning(f"Failed to send reply: {e}")
        return sent

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Error checking for commands: {e}")
            self._stop.wait(self.poll_interval_seconds)
