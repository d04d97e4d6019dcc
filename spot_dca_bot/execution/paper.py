"""Paper execution layer with deterministic simulated fills."""

import logging
from typing import Callable, Dict
from uuid import uuid4

from ..exceptions import QuoteError, SwapError, TransientSwapError
from .models import SwapQuote, SwapResult


logger = logging.getLogger(__name__)


class PaperSwapExecutor:
    """
    Simulates swaps between a base and a quote asset against in-memory balances.

    Implements both the swap and the balance capability. Fills are priced
    from `price_source` (quote units per base unit) and lose the full
    slippage tolerance, the worst fill a live router would accept.
    """

    def __init__(
        self,
        base_asset: str,
        quote_asset: str,
        price_source: Callable[[], float],
        starting_quote_balance: float = 0.0,
        starting_base_balance: float = 0.0,
        transient_failures: int = 0
    ) -> None:
        self.base_asset = base_asset
        self.quote_asset = quote_asset
        self._price_source = price_source
        self._balances: Dict[str, float] = {
            base_asset: starting_base_balance,
            quote_asset: starting_quote_balance,
        }
        self._transient_failures = transient_failures
        self.executions = 0

    def balance_of(self, asset: str) -> float:
        """Simulated wallet balance."""
        return self._balances.get(asset, 0.0)

    def _expected_out(self, input_asset: str, output_asset: str, amount: float) -> float:
        pair = {input_asset, output_asset}
        if pair != {self.base_asset, self.quote_asset}:
            raise QuoteError(f"Unsupported route {input_asset} -> {output_asset}")
        price = float(self._price_source())
        if price <= 0:
            raise QuoteError(f"Invalid reference price {price}")
        if input_asset == self.base_asset:
            return amount * price
        return amount / price

    def quote(self, input_asset: str, output_asset: str, amount: float, slippage_bps: int) -> SwapQuote:
        """Quote at the current reference price."""
        return SwapQuote(expected_out=self._expected_out(input_asset, output_asset, amount))

    def execute(self, input_asset: str, output_asset: str, amount: float, slippage_bps: int) -> SwapResult:
        """Fill immediately, debiting and crediting the simulated balances."""
        if self._transient_failures > 0:
            self._transient_failures -= 1
            raise TransientSwapError("simulated route failure")

        available = self.balance_of(input_asset)
        if amount > available + 1e-12:
            raise SwapError(f"Insufficient {input_asset} balance: {available:.6f} < {amount:.6f}")

        received = self._expected_out(input_asset, output_asset, amount) * (1.0 - slippage_bps / 10_000.0)
        self._balances[input_asset] = max(available - amount, 0.0)
        self._balances[output_asset] = self.balance_of(output_asset) + received
        self.executions += 1

        reference = f"paper-{uuid4()}"
        logger.info(f"Paper fill {reference}: {amount:.6f} {input_asset} -> {received:.6f} {output_asset}")
        return SwapResult(received_amount=received, execution_ref=reference)
