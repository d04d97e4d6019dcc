"""
Configuration management module for the trading bot.

This module handles loading, validating, and managing YAML configuration files
using Pydantic for robust validation and type safety.
"""

from .config_manager import ConfigurationManager
from .models import BotConfig, PairConfig, StrategyConfig, RiskConfig, PaperConfig

__all__ = [
    "ConfigurationManager",
    "BotConfig",
    "PairConfig",
    "StrategyConfig",
    "RiskConfig",
    "PaperConfig",
]
