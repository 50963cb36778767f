"""
Honeypot heuristics.

A honeypot lets buyers in but blocks sells. Without simulating a sell the
best available signals are authority flags, thin or unlocked liquidity,
concentrated holdings and abnormal trading patterns.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..snapshot import TokenSnapshot
from ..utils.logger import setup_logger
from ..utils.stats import clamp
from .rules import CAUTION, FAIL, WARN, Check, EvidenceRecord, Tier, evaluate_checks

logger = setup_logger(__name__)


def _vl_ratio(s: TokenSnapshot) -> float:
    if s.volume_24h_usd > 0 and s.liquidity_usd > 0:
        return s.volume_24h_usd / s.liquidity_usd
    return 0.0


HONEYPOT_CHECKS = (
    Check(
        "mint_authority_check",
        (
            Tier(
                lambda s: s.has_mint_authority,
                0.3,
                "Token has unlimited minting capability",
                FAIL,
                "Mint authority not renounced",
            ),
        ),
        passed="Mint authority renounced",
    ),
    Check(
        "freeze_authority_check",
        (
            Tier(
                lambda s: s.has_freeze_authority,
                0.4,
                "Token can be frozen by authority",
                FAIL,
                "Freeze authority present - tokens can be frozen",
            ),
        ),
        passed="No freeze authority",
    ),
    Check(
        "liquidity_check",
        (
            Tier(
                lambda s: s.liquidity_usd < 1000,
                0.2,
                "Very low liquidity detected",
                WARN,
                lambda s: f"Low liquidity: ${s.liquidity_usd:,.0f}",
            ),
            Tier(
                lambda s: s.liquidity_usd < 5000,
                0.1,
                "Low liquidity detected",
                CAUTION,
                lambda s: f"Moderate liquidity: ${s.liquidity_usd:,.0f}",
            ),
        ),
        passed=lambda s: f"Good liquidity: ${s.liquidity_usd:,.0f}",
    ),
    Check(
        "lp_lock_check",
        (
            Tier(
                lambda s: not s.lp_locked,
                0.15,
                "LP tokens not locked",
                FAIL,
                "LP tokens are not locked",
            ),
        ),
    ),
    Check(
        "holder_concentration_check",
        (
            Tier(
                lambda s: s.top_holders_concentration > 0.5,
                0.3,
                "High holder concentration detected",
                FAIL,
                lambda s: f"Top holders own {s.top_holders_concentration * 100:.1f}% of supply",
            ),
            Tier(
                lambda s: s.top_holders_concentration > 0.3,
                0.1,
                "Moderate holder concentration",
                WARN,
                lambda s: f"Top holders own {s.top_holders_concentration * 100:.1f}% of supply",
            ),
        ),
    ),
    Check(
        "holder_count_check",
        (
            Tier(
                lambda s: s.total_holders < 50,
                0.2,
                "Very few token holders",
                WARN,
                lambda s: f"Only {s.total_holders} holders",
            ),
        ),
    ),
    Check(
        "volume_liquidity_ratio_check",
        (
            Tier(
                lambda s: _vl_ratio(s) > 10,
                0.2,
                "Unusually high volume to liquidity ratio",
                WARN,
                lambda s: f"V/L ratio: {_vl_ratio(s):.2f}",
            ),
        ),
    ),
    Check(
        "volume_check",
        (
            Tier(
                lambda s: s.volume_24h_usd == 0,
                0.1,
                "No trading volume detected",
                WARN,
                "Zero trading volume",
            ),
        ),
    ),
    Check(
        "price_volatility_check",
        (
            Tier(
                lambda s: abs(s.price_change_24h) > 500,
                0.3,
                "Extreme price volatility detected",
                FAIL,
                lambda s: f"24h change: {s.price_change_24h:.1f}%",
            ),
            Tier(
                lambda s: abs(s.price_change_24h) > 100,
                0.1,
                "High price volatility",
                WARN,
                lambda s: f"24h change: {s.price_change_24h:.1f}%",
            ),
        ),
    ),
)


@dataclass
class HoneypotAnalysis:
    is_honeypot: bool
    confidence: float
    risk: float
    reasons: List[str]
    can_sell: bool
    sell_tax: float
    buy_tax: float
    evidence: List[EvidenceRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_honeypot": self.is_honeypot,
            "confidence": self.confidence,
            "risk": self.risk,
            "reasons": list(self.reasons),
            "can_sell": self.can_sell,
            "sell_tax": self.sell_tax,
            "buy_tax": self.buy_tax,
            "evidence": [e.to_dict() for e in self.evidence],
        }


class HoneypotAnalyzer:
    """Scores how likely a token blocks sells."""

    name = "honeypot_detection"

    def __init__(self, threshold: float = 0.6, checks=HONEYPOT_CHECKS) -> None:
        self.threshold = threshold
        self.checks = checks

    def analyze(self, snapshot: TokenSnapshot) -> HoneypotAnalysis:
        outcome = evaluate_checks(self.checks, snapshot)
        is_honeypot = outcome.risk > self.threshold
        risk = clamp(outcome.risk)
        confidence = risk

        logger.debug(
            f"Honeypot analysis for {snapshot.symbol}: "
            f"{'HONEYPOT' if is_honeypot else 'SAFE'} (confidence: {confidence:.2f})"
        )

        return HoneypotAnalysis(
            is_honeypot=is_honeypot,
            confidence=confidence,
            risk=risk,
            reasons=outcome.reasons,
            can_sell=not is_honeypot,
            sell_tax=self._estimate_sell_tax(snapshot),
            buy_tax=0.0,
            evidence=outcome.evidence,
        )

    @staticmethod
    def _estimate_sell_tax(snapshot: TokenSnapshot) -> float:
        # A blacklist or pause switch can block every sell outright
        if snapshot.has_blacklist or snapshot.has_pausable_functionality:
            return 100.0
        return 0.0
