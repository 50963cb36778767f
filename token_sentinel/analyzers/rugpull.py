"""
Rugpull setup detection.

Scores developer control, liquidity custody, ownership, age, social footprint
and market behaviour. ``time_to_rug`` is a coarse bucket derived from the
risk score or the LP unlock date. It is a heuristic label, not a forecast:
no historical calibration backs these buckets.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..snapshot import TokenSnapshot
from ..token import RiskLevel
from ..utils.logger import setup_logger
from ..utils.stats import clamp
from .rules import CAUTION, FAIL, INFO, WARN, Check, EvidenceRecord, Tier, evaluate_checks

logger = setup_logger(__name__)

SUSPICIOUS_HOLDER_PCT = 0.1


def _suspicious_holders(s: TokenSnapshot) -> int:
    return sum(
        1
        for h in s.top_holders
        if h.percentage > SUSPICIOUS_HOLDER_PCT and not h.is_lp and not h.is_burn
    )


def social_presence(s: TokenSnapshot) -> float:
    """Fraction of website, twitter, telegram and description present."""
    signals = (s.has_website, s.has_twitter, s.has_telegram, s.has_description)
    return 0.25 * sum(1 for present in signals if present)


def _unlocks_soon(s: TokenSnapshot) -> bool:
    return s.lp_locked and s.days_to_unlock is not None and s.days_to_unlock < 30


def _vmc_ratio(s: TokenSnapshot) -> float:
    if s.market_cap_usd > 0 and s.volume_24h_usd > 0:
        return s.volume_24h_usd / s.market_cap_usd
    return 0.0


RUGPULL_CHECKS = (
    Check(
        "dev_wallet_concentration",
        (
            Tier(
                lambda s: s.dev_wallet_percentage > 0.2,
                0.4,
                "Developer holds significant portion of tokens",
                FAIL,
                lambda s: f"Dev wallet holds {s.dev_wallet_percentage * 100:.1f}% of supply",
            ),
        ),
    ),
    Check(
        "suspicious_holders_check",
        (
            Tier(
                lambda s: _suspicious_holders(s) > 3,
                0.2,
                "Multiple large non-LP holders detected",
                WARN,
                lambda s: f"{_suspicious_holders(s)} holders with >10% each",
            ),
        ),
    ),
    Check(
        "lp_lock_status",
        (
            Tier(
                lambda s: not s.lp_locked,
                0.5,
                "LP tokens are not locked - rug risk HIGH",
                FAIL,
                "LP tokens not locked",
            ),
            Tier(
                _unlocks_soon,
                0.3,
                "LP tokens unlock soon",
                WARN,
                lambda s: f"LP unlocks in {s.days_to_unlock:.1f} days",
            ),
        ),
    ),
    Check(
        "liquidity_depth",
        (
            Tier(
                lambda s: s.liquidity_usd < 5000,
                0.2,
                "Low liquidity makes rug easier",
                WARN,
                lambda s: f"Low liquidity: ${s.liquidity_usd:,.0f}",
            ),
        ),
    ),
    Check(
        "lp_percentage",
        (
            Tier(
                lambda s: s.lp_percentage < 0.7,
                0.2,
                "Low percentage of tokens in LP",
                WARN,
                lambda s: f"Only {s.lp_percentage * 100:.1f}% in LP",
            ),
        ),
    ),
    Check(
        "ownership_renounced",
        (
            Tier(
                lambda s: not s.ownership_renounced,
                0.3,
                "Contract ownership not renounced",
                FAIL,
                "Contract ownership not renounced",
            ),
        ),
    ),
    Check(
        "mint_authority",
        (
            Tier(
                lambda s: s.has_unlimited_minting,
                0.3,
                "Unlimited minting possible",
                FAIL,
                "Mint authority not renounced",
            ),
        ),
    ),
    Check(
        "blacklist_function",
        (
            Tier(
                lambda s: s.has_blacklist,
                0.2,
                "Token has blacklist functionality",
                FAIL,
                "Blacklist functionality detected",
            ),
        ),
    ),
    Check(
        "token_age",
        (
            Tier(
                lambda s: s.age_hours < 1,
                0.3,
                "Token is extremely new (< 1 hour)",
                WARN,
                lambda s: f"Token age: {s.age_hours:.1f} hours",
            ),
            Tier(
                lambda s: s.age_days < 1,
                0.2,
                "Token is very new (< 1 day)",
                CAUTION,
                lambda s: f"Token age: {s.age_days:.1f} days",
            ),
            Tier(
                lambda s: s.age_days < 7,
                0.1,
                "Token is relatively new (< 1 week)",
                INFO,
                lambda s: f"Token age: {s.age_days:.1f} days",
            ),
        ),
    ),
    Check(
        "social_presence",
        (
            Tier(
                lambda s: social_presence(s) < 0.25,
                0.3,
                "No social presence or documentation",
                FAIL,
                "No social media or website links",
            ),
            Tier(
                lambda s: social_presence(s) < 0.5,
                0.1,
                "Limited social presence",
                WARN,
                "Minimal social media presence",
            ),
        ),
    ),
    Check(
        "trading_activity",
        (
            Tier(
                lambda s: s.volume_24h_usd == 0,
                0.2,
                "No trading activity",
                FAIL,
                "Zero trading volume",
            ),
        ),
    ),
    Check(
        "price_behavior",
        (
            Tier(
                lambda s: s.price_change_24h > 1000,
                0.3,
                "Extreme price pump detected",
                WARN,
                lambda s: f"Price up {s.price_change_24h:.1f}% in 24h",
            ),
        ),
    ),
    Check(
        "volume_mcap_ratio",
        (
            Tier(
                lambda s: _vmc_ratio(s) > 5,
                0.2,
                "Unusual volume to market cap ratio",
                WARN,
                lambda s: f"V/MC ratio: {_vmc_ratio(s):.2f}",
            ),
        ),
    ),
)


def categorize_rug_level(risk: float) -> RiskLevel:
    if risk >= 0.8:
        return RiskLevel.CRITICAL
    if risk >= 0.6:
        return RiskLevel.HIGH
    if risk >= 0.4:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def estimate_time_to_rug(risk: float, snapshot: TokenSnapshot) -> Optional[str]:
    """Heuristic time bucket; ``None`` when risk is below 0.6."""
    if risk < 0.6:
        return None
    if snapshot.days_to_unlock is not None:
        return f"{max(0.0, snapshot.days_to_unlock):.1f} days (LP unlock)"
    if risk >= 0.9:
        return "< 24 hours"
    if risk >= 0.8:
        return "1-7 days"
    return "1-4 weeks"


@dataclass
class RugpullAnalysis:
    has_rug_risk: bool
    risk_level: RiskLevel
    confidence: float
    risk: float
    reasons: List[str]
    time_to_rug: Optional[str] = None
    time_to_rug_is_heuristic: bool = True
    evidence: List[EvidenceRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_rug_risk": self.has_rug_risk,
            "risk_level": self.risk_level.value,
            "confidence": self.confidence,
            "risk": self.risk,
            "reasons": list(self.reasons),
            "time_to_rug": self.time_to_rug,
            "time_to_rug_is_heuristic": self.time_to_rug_is_heuristic,
            "evidence": [e.to_dict() for e in self.evidence],
        }


class RugpullAnalyzer:
    """Scores how prepared a token is for a liquidity pull or mint abuse."""

    name = "rugpull_detection"

    def __init__(self, threshold: float = 0.4, checks=RUGPULL_CHECKS) -> None:
        self.threshold = threshold
        self.checks = checks

    def analyze(self, snapshot: TokenSnapshot) -> RugpullAnalysis:
        outcome = evaluate_checks(self.checks, snapshot)
        # Level and time bucket use the unclamped sum
        raw = outcome.risk
        level = categorize_rug_level(raw)
        risk = clamp(raw)
        confidence = risk

        logger.debug(
            f"Rugpull analysis for {snapshot.symbol}: {level.value.upper()} risk "
            f"(confidence: {confidence:.2f})"
        )

        return RugpullAnalysis(
            has_rug_risk=raw > self.threshold,
            risk_level=level,
            confidence=confidence,
            risk=risk,
            reasons=outcome.reasons,
            time_to_rug=estimate_time_to_rug(raw, snapshot),
            evidence=outcome.evidence,
        )
