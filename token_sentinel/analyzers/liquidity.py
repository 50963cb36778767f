"""Liquidity depth, LP custody and price impact."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..snapshot import TokenSnapshot
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

# (upper bound USD, health penalty, factor)
DEPTH_TIERS = (
    (1000, 0.4, "Extremely low liquidity depth"),
    (5000, 0.2, "Low liquidity depth"),
    (10000, 0.1, "Moderate liquidity depth"),
)

# (trade size as fraction of base impact, cap in percent)
IMPACT_TIERS = {
    "one_percent": (0.01, 50.0),
    "five_percent": (0.05, 100.0),
    "ten_percent": (0.10, 200.0),
}


@dataclass(frozen=True)
class PriceImpact:
    one_percent: float
    five_percent: float
    ten_percent: float


def estimate_price_impact(depth_usd: float) -> PriceImpact:
    """Inverse square-root impact model, ``base = 100 / sqrt(depth)``.

    Each tier is bounded by its cap; an empty pool yields the caps.
    """
    values = {}
    for name, (scale, cap) in IMPACT_TIERS.items():
        if depth_usd <= 0:
            values[name] = cap
        else:
            values[name] = min(cap, 100.0 / math.sqrt(depth_usd) * scale)
    return PriceImpact(**values)


@dataclass
class LiquidityAnalysis:
    health_score: float
    risk_factors: List[str]
    depth_usd: float
    lp_lock_status: str
    lp_unlock_date: Optional[datetime]
    lp_ratio: float
    impact: PriceImpact
    evidence: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health_score": self.health_score,
            "risk_factors": list(self.risk_factors),
            "depth_usd": self.depth_usd,
            "lp_lock_status": self.lp_lock_status,
            "lp_unlock_date": self.lp_unlock_date.isoformat() if self.lp_unlock_date else None,
            "lp_ratio": self.lp_ratio,
            "impact": {
                "one_percent": self.impact.one_percent,
                "five_percent": self.impact.five_percent,
                "ten_percent": self.impact.ten_percent,
            },
        }


class LiquidityAnalyzer:
    """Health score starting at 1.0, decremented per liquidity weakness."""

    name = "liquidity_analysis"

    def analyze(self, snapshot: TokenSnapshot) -> LiquidityAnalysis:
        depth = snapshot.liquidity_usd
        health = 1.0
        factors: List[str] = []

        for bound, penalty, factor in DEPTH_TIERS:
            if depth < bound:
                health -= penalty
                factors.append(factor)
                break

        if not snapshot.lp_locked:
            factors.append("LP tokens not locked - high rug risk")
            health -= 0.3
        elif snapshot.days_to_unlock is not None and snapshot.days_to_unlock < 30:
            factors.append(f"LP unlocks in {snapshot.days_to_unlock:.0f} days")
            health -= 0.2

        if snapshot.lp_percentage < 0.5:
            factors.append("Low percentage of supply in liquidity pool")
            health -= 0.2

        health = max(0.0, health)
        logger.debug(f"Liquidity health for {snapshot.symbol}: {health:.2f}")

        return LiquidityAnalysis(
            health_score=health,
            risk_factors=factors,
            depth_usd=depth,
            lp_lock_status="locked" if snapshot.lp_locked else "unlocked",
            lp_unlock_date=snapshot.lp_unlock_time,
            lp_ratio=snapshot.lp_percentage,
            impact=estimate_price_impact(depth),
            evidence={"liquidity_depth_usd": depth},
        )
