"""
Spot DCA Bot - A single-pair spot trading bot with risk-sized entries.

This package buys into a pair when historical price action suggests the
profit target is reachable, averages down on drawdowns with growing buys,
and exits the whole position once it clears the profit target.
"""

__version__ = "0.1.0"
__author__ = "Spot DCA Bot Team"

# Lazy imports to avoid dependency issues during package setup
__all__ = [
    "ConfigurationManager",
    "BotConfig",
    "StrategyEngine",
    "RiskAnalyzer",
    "RetryExecutor",
    "TradeLedger",
    "Trade",
    "StateManager",
    "TradingSwitch",
]


def __getattr__(name):
    """Lazy import for package components."""
    if name == "ConfigurationManager":
        from .config import ConfigurationManager
        return ConfigurationManager
    elif name == "BotConfig":
        from .config import BotConfig
        return BotConfig
    elif name == "StrategyEngine":
        from .strategy_engine import StrategyEngine
        return StrategyEngine
    elif name == "RiskAnalyzer":
        from .risk_analyzer import RiskAnalyzer
        return RiskAnalyzer
    elif name == "RetryExecutor":
        from .execution import RetryExecutor
        return RetryExecutor
    elif name == "TradeLedger":
        from .ledger import TradeLedger
        return TradeLedger
    elif name == "Trade":
        from .ledger import Trade
        return Trade
    elif name == "StateManager":
        from .persistence import StateManager
        return StateManager
    elif name == "TradingSwitch":
        from .control import TradingSwitch
        return TradingSwitch
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
