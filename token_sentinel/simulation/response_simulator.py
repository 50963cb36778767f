"""
Defensive trading policy simulation.

One decision per call: an ordered chain of guard rules (first match wins)
followed by position sizing for tokens that pass every guard. The simulator
is deterministic and never places a trade.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..config import SentinelConfig
from ..records import SimulationAction, SimulationDecision
from ..token import Token
from ..utils.logger import setup_logger
from .profiles import MarketConditions, SimulationProfile, default_profile

logger = setup_logger(__name__)

UNSCORED_RISK = 1.0
REFERENCE_LIQUIDITY_USD = 50000.0
MAX_POOL_SHARE = 0.05

SENTIMENT_ADJUSTMENT = {"bearish": 0.8, "neutral": 1.0, "bullish": 1.1}
HIGH_VOLATILITY = 0.8
VOLATILITY_ADJUSTMENT = 0.9


@dataclass(frozen=True)
class DecisionInputs:
    """Token fields the policy looks at, with missing values resolved."""

    symbol: str
    risk_score: float
    liquidity_usd: float
    holder_count: int
    lp_locked: bool
    is_honeypot: bool

    @classmethod
    def from_token(cls, token: Token) -> "DecisionInputs":
        return cls(
            symbol=token.label,
            risk_score=UNSCORED_RISK if token.risk_score is None else float(token.risk_score),
            liquidity_usd=float(token.liquidity_info.total_liquidity_usd or 0.0),
            holder_count=int(token.holder_analysis.total_holders or 0),
            lp_locked=bool(token.liquidity_info.lp_tokens_locked),
            is_honeypot=bool(token.security_flags.is_honeypot),
        )


GuardRule = Tuple[
    str,
    Callable[[DecisionInputs, SimulationProfile, SentinelConfig], bool],
    SimulationAction,
    float,
    Callable[[DecisionInputs, SimulationProfile], str],
]

GUARD_RULES: Tuple[GuardRule, ...] = (
    (
        "honeypot",
        lambda t, p, c: t.is_honeypot,
        SimulationAction.AVOID,
        0.95,
        lambda t, p: "Token identified as honeypot - cannot sell tokens after purchase",
    ),
    (
        "critical_risk",
        lambda t, p, c: t.risk_score >= c.avoid_risk_score,
        SimulationAction.AVOID,
        0.9,
        lambda t, p: f"Critical risk score ({t.risk_score * 100:.1f}%) - likely scam or rug pull",
    ),
    (
        "risk_above_profile",
        lambda t, p, c: t.risk_score >= p.max_risk_score,
        SimulationAction.FLAG,
        0.8,
        lambda t, p: (
            f"Risk score ({t.risk_score * 100:.1f}%) exceeds threshold "
            f"({p.max_risk_score * 100:.1f}%)"
        ),
    ),
    (
        "insufficient_liquidity",
        lambda t, p, c: t.liquidity_usd < p.min_liquidity_usd,
        SimulationAction.AVOID,
        0.8,
        lambda t, p: f"Insufficient liquidity (${t.liquidity_usd:.0f}) - high slippage risk",
    ),
    (
        "lp_unlocked",
        lambda t, p, c: p.require_lp_locked and not t.lp_locked,
        SimulationAction.AVOID,
        0.85,
        lambda t, p: "LP tokens not locked - rug pull risk too high",
    ),
    (
        "few_holders",
        lambda t, p, c: t.holder_count < p.min_holders,
        SimulationAction.INVESTIGATE,
        0.7,
        lambda t, p: f"Too few holders ({t.holder_count}) - need more adoption",
    ),
)


def adjust_confidence(confidence: float, market: MarketConditions) -> float:
    adjustment = SENTIMENT_ADJUSTMENT.get(market.overall_sentiment, 1.0)
    if market.volatility_index > HIGH_VOLATILITY:
        adjustment *= VOLATILITY_ADJUSTMENT
    return min(1.0, confidence * adjustment)


class ResponseSimulator:
    """Turns a scored token into an advisory :class:`SimulationDecision`."""

    def __init__(self, config: Optional[SentinelConfig] = None) -> None:
        self.config = config or SentinelConfig()

    def simulate_response(
        self,
        token: Token,
        market_conditions: Optional[MarketConditions] = None,
        profile: Optional[SimulationProfile] = None,
    ) -> SimulationDecision:
        market = market_conditions or MarketConditions()
        profile = profile or default_profile(self.config)
        inputs = DecisionInputs.from_token(token)

        decision = self._guard_decision(inputs, profile) or self._size_position(inputs, profile)
        decision = SimulationDecision(
            action=decision.action,
            confidence=adjust_confidence(decision.confidence, market),
            reasoning=decision.reasoning,
            would_invest=decision.would_invest,
            max_investment_usd=decision.max_investment_usd,
        )

        logger.debug(
            f"Simulation for {inputs.symbol}: {decision.action.value} "
            f"(confidence: {decision.confidence * 100:.1f}%)"
        )
        return decision

    def _guard_decision(
        self, inputs: DecisionInputs, profile: SimulationProfile
    ) -> Optional[SimulationDecision]:
        for _name, predicate, action, confidence, reason in GUARD_RULES:
            if predicate(inputs, profile, self.config):
                return SimulationDecision(
                    action=action,
                    confidence=confidence,
                    reasoning=reason(inputs, profile),
                    would_invest=False,
                )
        return None

    @staticmethod
    def _size_position(inputs: DecisionInputs, profile: SimulationProfile) -> SimulationDecision:
        base = profile.max_investment_usd * profile.risk_multiplier
        adjusted = (
            base
            * (1 - inputs.risk_score)
            * min(1.0, inputs.liquidity_usd / REFERENCE_LIQUIDITY_USD)
        )
        # Never more than 5% of pool depth
        amount = max(0.0, min(adjusted, inputs.liquidity_usd * MAX_POOL_SHARE))

        if amount >= base * 0.5:
            return SimulationDecision(
                action=SimulationAction.MONITOR,
                confidence=0.7,
                reasoning=f"Acceptable risk profile - would invest up to ${amount:.0f}",
                would_invest=True,
                max_investment_usd=amount,
            )
        if amount >= base * 0.2:
            return SimulationDecision(
                action=SimulationAction.INVESTIGATE,
                confidence=0.6,
                reasoning=f"Moderate risk - small position (${amount:.0f}) acceptable",
                would_invest=True,
                max_investment_usd=amount,
            )
        return SimulationDecision(
            action=SimulationAction.MONITOR,
            confidence=0.5,
            reasoning="Risk too high for investment - monitor for improvements",
            would_invest=False,
            max_investment_usd=amount,
        )
