"""
Weighted risk aggregation.

Combines the honeypot and rugpull verdicts with liquidity, holder and social
risk recomputed from the snapshot into one :class:`RiskAssessment`. The
aggregation is deterministic: identical inputs always yield identical output.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..analyzers.honeypot import HoneypotAnalysis
from ..analyzers.rugpull import RugpullAnalysis
from ..analyzers.rules import first_match
from ..config import SentinelConfig
from ..errors import ConfigError
from ..snapshot import TokenSnapshot
from ..token import RiskLevel
from ..utils.stats import clamp

DEFAULT_WEIGHTS = {
    "honeypot": 0.30,
    "rugpull": 0.35,
    "liquidity": 0.15,
    "holders": 0.15,
    "social": 0.05,
}

AVOID = "AVOID"
EXTREME_CAUTION = "EXTREME_CAUTION"
MONITOR = "MONITOR"
ACCEPTABLE = "ACCEPTABLE"

MAX_CONCERNS = 5

# Ordered (name, predicate(score, honeypot, rugpull, config), recommendation)
RECOMMENDATION_RULES = (
    ("honeypot", lambda score, hp, rug, cfg: hp.is_honeypot, AVOID),
    ("critical_score", lambda score, hp, rug, cfg: score >= cfg.avoid_risk_score, AVOID),
    (
        "critical_rugpull",
        lambda score, hp, rug, cfg: rug.risk_level == RiskLevel.CRITICAL,
        EXTREME_CAUTION,
    ),
    (
        "high_score",
        lambda score, hp, rug, cfg: score >= cfg.extreme_caution_risk_score,
        EXTREME_CAUTION,
    ),
    ("elevated_score", lambda score, hp, rug, cfg: score >= cfg.monitor_risk_score, MONITOR),
    ("default", lambda score, hp, rug, cfg: True, ACCEPTABLE),
)

# Ordered (concern, predicate(snapshot, honeypot, rugpull))
CONCERN_RULES = (
    ("HONEYPOT DETECTED", lambda s, hp, rug: hp.is_honeypot),
    (
        "HIGH RUGPULL RISK",
        lambda s, hp, rug: rug.risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH),
    ),
    ("LOW LIQUIDITY", lambda s, hp, rug: s.liquidity_usd < 5000),
    ("LP NOT LOCKED", lambda s, hp, rug: not s.lp_locked),
    ("HIGH HOLDER CONCENTRATION", lambda s, hp, rug: s.top_holders_concentration > 0.5),
    ("OWNERSHIP NOT RENOUNCED", lambda s, hp, rug: not s.ownership_renounced),
    ("UNLIMITED MINTING", lambda s, hp, rug: s.has_unlimited_minting),
)


@dataclass(frozen=True)
class ComponentScores:
    honeypot: float
    rugpull: float
    liquidity: float
    holders: float
    social: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "honeypot": self.honeypot,
            "rugpull": self.rugpull,
            "liquidity": self.liquidity,
            "holders": self.holders,
            "social": self.social,
        }


@dataclass(frozen=True)
class RiskAssessment:
    overall_risk_score: float
    risk_level: RiskLevel
    confidence: float
    component_scores: ComponentScores
    primary_concerns: List[str] = field(default_factory=list)
    recommendation: str = ACCEPTABLE
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_risk_score": self.overall_risk_score,
            "risk_level": self.risk_level.value,
            "confidence": self.confidence,
            "component_scores": self.component_scores.to_dict(),
            "primary_concerns": list(self.primary_concerns),
            "recommendation": self.recommendation,
            "reasoning": self.reasoning,
        }


def liquidity_risk(snapshot: TokenSnapshot) -> float:
    depth = snapshot.liquidity_usd
    risk = 0.0
    if depth < 1000:
        risk += 0.4
    elif depth < 5000:
        risk += 0.2
    elif depth < 10000:
        risk += 0.1
    if not snapshot.lp_locked:
        risk += 0.3
    if snapshot.lp_percentage < 0.5:
        risk += 0.2
    return min(1.0, risk)


def holders_risk(snapshot: TokenSnapshot) -> float:
    risk = 0.0
    total = snapshot.total_holders
    if total < 10:
        risk += 0.4
    elif total < 50:
        risk += 0.2
    elif total < 100:
        risk += 0.1

    concentration = snapshot.top_holders_concentration
    if concentration > 0.7:
        risk += 0.4
    elif concentration > 0.5:
        risk += 0.2
    elif concentration > 0.3:
        risk += 0.1

    dev = snapshot.dev_wallet_percentage
    if dev > 0.2:
        risk += 0.3
    elif dev > 0.1:
        risk += 0.1
    return min(1.0, risk)


def social_risk(snapshot: TokenSnapshot) -> float:
    """``1 - fraction`` of description, image, website and social link present."""
    signals = (
        snapshot.has_description,
        snapshot.has_image,
        snapshot.has_website,
        snapshot.has_twitter or snapshot.has_telegram,
    )
    return max(0.0, 1.0 - 0.25 * sum(1 for present in signals if present))


class RiskScorer:
    """Weighted aggregator producing a calibrated :class:`RiskAssessment`."""

    def __init__(
        self,
        config: Optional[SentinelConfig] = None,
        weights: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.config = config or SentinelConfig()
        self.weights = dict(weights or DEFAULT_WEIGHTS)
        if set(self.weights) != set(DEFAULT_WEIGHTS):
            raise ConfigError(f"Weights must cover exactly {sorted(DEFAULT_WEIGHTS)}")
        if not math.isclose(sum(self.weights.values()), 1.0, abs_tol=1e-9):
            raise ConfigError(f"Weights must sum to 1.0, got {sum(self.weights.values())}")

    def calculate_risk_score(
        self,
        snapshot: TokenSnapshot,
        honeypot: HoneypotAnalysis,
        rugpull: RugpullAnalysis,
    ) -> RiskAssessment:
        components = ComponentScores(
            honeypot=clamp(honeypot.confidence if honeypot.is_honeypot else 0.0),
            rugpull=clamp(rugpull.confidence if rugpull.has_rug_risk else 0.0),
            liquidity=liquidity_risk(snapshot),
            holders=holders_risk(snapshot),
            social=social_risk(snapshot),
        )
        scores = components.to_dict()
        overall = clamp(sum(self.weights[name] * scores[name] for name in self.weights))

        return RiskAssessment(
            overall_risk_score=overall,
            risk_level=self.categorize_risk_level(overall),
            confidence=clamp((honeypot.confidence + rugpull.confidence) / 2),
            component_scores=components,
            primary_concerns=self.identify_primary_concerns(snapshot, honeypot, rugpull),
            recommendation=self.get_recommendation(overall, honeypot, rugpull),
            reasoning=self.generate_reasoning(overall, snapshot, honeypot, rugpull),
        )

    def categorize_risk_level(self, score: float) -> RiskLevel:
        """Step function of ``score`` over the configured thresholds."""
        if score >= self.config.high_risk_threshold:
            if score >= self.config.critical_risk_threshold:
                return RiskLevel.CRITICAL
            return RiskLevel.HIGH
        if score >= self.config.medium_risk_threshold:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def get_recommendation(
        self, score: float, honeypot: HoneypotAnalysis, rugpull: RugpullAnalysis
    ) -> str:
        _, recommendation = first_match(
            RECOMMENDATION_RULES, score, honeypot, rugpull, self.config
        )
        return recommendation

    @staticmethod
    def identify_primary_concerns(
        snapshot: TokenSnapshot, honeypot: HoneypotAnalysis, rugpull: RugpullAnalysis
    ) -> List[str]:
        concerns = [
            concern
            for concern, predicate in CONCERN_RULES
            if predicate(snapshot, honeypot, rugpull)
        ]
        return concerns[:MAX_CONCERNS]

    def generate_reasoning(
        self,
        score: float,
        snapshot: TokenSnapshot,
        honeypot: HoneypotAnalysis,
        rugpull: RugpullAnalysis,
    ) -> str:
        if honeypot.is_honeypot:
            return (
                f"Token appears to be a honeypot with {honeypot.confidence * 100:.0f}% "
                f"confidence. {'. '.join(honeypot.reasons[:2])}."
            )
        if rugpull.risk_level == RiskLevel.CRITICAL:
            return f"Critical rugpull risk detected. {'. '.join(rugpull.reasons[:2])}."
        if score >= self.config.high_risk_threshold:
            concerns = self.identify_primary_concerns(snapshot, honeypot, rugpull)[:2]
            return (
                "High-risk token due to multiple security concerns. "
                f"Primary issues: {', '.join(concerns)}."
            )
        if score >= self.config.medium_risk_threshold:
            return (
                "Medium-risk token with some concerning factors. "
                "Monitor closely before any interaction."
            )
        return (
            "Token shows acceptable risk levels based on current analysis. "
            "Standard caution recommended."
        )
