"""
Capabilities the bot needs from the outside world.

Concrete implementations own unit conversion to each asset's native
precision and, for live trading, the wallet signer.
"""

from typing import Protocol

from .models import SwapQuote, SwapResult


class SwapCapability(Protocol):
    """Quote and execute swaps through a routing service."""

    def quote(self, input_asset: str, output_asset: str, amount: float, slippage_bps: int) -> SwapQuote:
        """
        Quote a swap of `amount` human units of the input asset.

        Raises:
            QuoteError: If the quote fails or the response lacks the expected fields
        """
        ...

    def execute(self, input_asset: str, output_asset: str, amount: float, slippage_bps: int) -> SwapResult:
        """
        Sign and submit a swap.

        Raises:
            TransientSwapError: On failures worth retrying
            SwapError: On failures that must not be retried
        """
        ...


class BalanceProvider(Protocol):
    """Wallet balance lookups."""

    def balance_of(self, asset: str) -> float:
        """Balance of an asset in human units."""
        ...
