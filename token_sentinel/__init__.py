"""Token security risk sentinel: analysis, aggregation, simulation and backtesting."""

from .config import SentinelConfig, load_config
from .errors import (
    AnalyzerFailure,
    ConfigError,
    InsufficientDataError,
    SentinelError,
    StoreUnavailableError,
    TokenNotFoundError,
)
from .records import RiskAnalysisRecord, SimulationAction, SimulationDecision, SimulationLog
from .snapshot import TokenSnapshot, normalize_token
from .storage import InMemoryTokenStore, TokenStore
from .token import RiskLevel, Token

__version__ = "0.1.0"

__all__ = [
    "AnalyzerFailure",
    "ConfigError",
    "InMemoryTokenStore",
    "InsufficientDataError",
    "RiskAnalysisRecord",
    "RiskLevel",
    "SentinelConfig",
    "SentinelError",
    "SimulationAction",
    "SimulationDecision",
    "SimulationLog",
    "StoreUnavailableError",
    "Token",
    "TokenNotFoundError",
    "TokenSnapshot",
    "TokenStore",
    "load_config",
    "normalize_token",
]
