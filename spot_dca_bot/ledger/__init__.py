"""
Trade ledger module.

This module keeps the append-only history of executed trades and derives the
currently open position and its cost basis from it.
"""

from .models import Trade, TradeKind
from .trade_ledger import TradeLedger

__all__ = ["Trade", "TradeKind", "TradeLedger"]
