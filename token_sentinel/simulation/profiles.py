"""Simulation profiles and market conditions."""

import dataclasses
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ..config import SentinelConfig
from ..errors import ConfigError


@dataclass(frozen=True)
class SimulationProfile:
    """Risk appetite of the hypothetical trading policy."""

    name: str
    max_investment_usd: float   # Position cap before adjustments
    max_risk_score: float       # Tokens at or above are flagged
    min_liquidity_usd: float    # Pool depth required
    min_holders: int
    require_lp_locked: bool
    risk_multiplier: float      # Share of the cap actually deployed


PROFILES: Mapping[str, SimulationProfile] = MappingProxyType(
    {
        "conservative": SimulationProfile(
            name="conservative",
            max_investment_usd=500.0,
            max_risk_score=0.3,
            min_liquidity_usd=10000.0,
            min_holders=100,
            require_lp_locked=True,
            risk_multiplier=0.3,
        ),
        "moderate": SimulationProfile(
            name="moderate",
            max_investment_usd=1000.0,
            max_risk_score=0.5,
            min_liquidity_usd=5000.0,
            min_holders=50,
            require_lp_locked=True,
            risk_multiplier=0.6,
        ),
        "aggressive": SimulationProfile(
            name="aggressive",
            max_investment_usd=2000.0,
            max_risk_score=0.7,
            min_liquidity_usd=1000.0,
            min_holders=20,
            require_lp_locked=False,
            risk_multiplier=1.0,
        ),
    }
)


def default_profile(config: Optional[SentinelConfig] = None) -> SimulationProfile:
    """Moderate profile tuned by ``MIN_LIQUIDITY_USD`` and ``MEDIUM_RISK_THRESHOLD``."""
    config = config or SentinelConfig()
    return dataclasses.replace(
        PROFILES["moderate"],
        name="default",
        min_liquidity_usd=config.min_liquidity_usd,
        max_risk_score=config.default_max_risk_score,
    )


def get_profile(
    name: str, config: Optional[SentinelConfig] = None
) -> SimulationProfile:
    if name == "default":
        return default_profile(config)
    try:
        return PROFILES[name]
    except KeyError:
        raise ConfigError(
            f"Unknown simulation profile '{name}', expected one of {sorted(PROFILES)}"
        ) from None


def available_profiles() -> list:
    return list(PROFILES)


SENTIMENTS = ("bearish", "neutral", "bullish")


@dataclass(frozen=True)
class MarketConditions:
    volatility_index: float = 0.6
    overall_sentiment: str = "neutral"
    liquidity_available: float = 1_000_000.0

    def __post_init__(self) -> None:
        if self.overall_sentiment not in SENTIMENTS:
            raise ConfigError(f"Unknown market sentiment '{self.overall_sentiment}'")

    def to_dict(self) -> Dict[str, object]:
        return dataclasses.asdict(self)


def current_market_conditions() -> MarketConditions:
    # No market feed is wired in; a neutral snapshot is used for every cycle
    return MarketConditions()
