"""
Risk analysis module.

This module classifies a prospective target price by how often recent price
history has visited it, and turns that into a position-size multiplier.
"""

from .models import RiskAssessment, RiskLabel
from .risk_analyzer import RiskAnalyzer, RISK_TIERS

__all__ = ["RiskAnalyzer", "RiskAssessment", "RiskLabel", "RISK_TIERS"]
