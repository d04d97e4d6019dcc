"""
Exception types raised by the trading bot components.
"""


class BotError(Exception):
    """Base class for all bot errors."""


class PriceFeedError(BotError):
    """Raised when price history cannot be fetched or parsed."""


class SwapError(BotError):
    """A swap failure that must not be retried."""


class TransientSwapError(SwapError):
    """A swap failure worth retrying (network error, rejected route, slippage exceeded)."""


class QuoteError(SwapError):
    """Raised when a quote request fails or returns an unexpected shape."""


class ConfigurationError(BotError):
    """Raised when a configuration file cannot be read or fails validation."""
