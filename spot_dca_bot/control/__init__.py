"""
Runtime control module.

This module holds the trading-enabled switch read by the strategy loop and
the chat-style command handling that toggles it remotely.
"""

from .remote_commands import RemoteCommandHandler, RemoteControlListener, format_market_status
from .trading_switch import TradingSwitch

__all__ = ["RemoteCommandHandler", "RemoteControlListener", "TradingSwitch", "format_market_status"]
