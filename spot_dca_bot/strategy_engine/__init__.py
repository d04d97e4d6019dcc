"""
Strategy engine module for orchestrating the spot DCA trading loop.

This module coordinates price history, risk assessment, swap execution and
persisted state to enter, average down and exit a single pair.
"""

from .strategy_engine import CycleAction, CycleResult, StrategyEngine

__all__ = ["CycleAction", "CycleResult", "StrategyEngine"]
