"""
Data persistence module for the trading bot.

This module handles saving and loading the per-pair holding value and DCA
level, and commits trades to the ledger together with those counters.
"""

from .models import PendingCommit, PersistedCounters
from .state_manager import StateManager

__all__ = ['StateManager', 'PersistedCounters', 'PendingCommit']
