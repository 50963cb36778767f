"""Independent evidence analyzers, each a pure function of a token snapshot."""

from .holders import HolderAnalysis, HolderAnalyzer
from .honeypot import HoneypotAnalysis, HoneypotAnalyzer
from .liquidity import LiquidityAnalysis, LiquidityAnalyzer, PriceImpact
from .rugpull import RugpullAnalysis, RugpullAnalyzer

__all__ = [
    "HolderAnalysis",
    "HolderAnalyzer",
    "HoneypotAnalysis",
    "HoneypotAnalyzer",
    "LiquidityAnalysis",
    "LiquidityAnalyzer",
    "PriceImpact",
    "RugpullAnalysis",
    "RugpullAnalyzer",
]
