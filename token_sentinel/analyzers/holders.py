"""Holder concentration and distribution analysis."""

from dataclasses import dataclass
from typing import Any, Dict, List

from ..snapshot import TokenSnapshot
from ..utils.logger import setup_logger
from ..utils.stats import gini_coefficient

logger = setup_logger(__name__)

WHALE_PCT = 0.05


@dataclass
class HolderAnalysis:
    concentration_risk: float
    distribution: str  # "healthy", "concerning", "dangerous"
    whale_count: int
    dev_wallet_risk: float
    gini_coefficient: float
    top10_percentage: float
    top50_percentage: float
    risk_factors: List[str]

    def distribution_metrics(self) -> Dict[str, float]:
        return {
            "gini_coefficient": self.gini_coefficient,
            "top10_percentage": self.top10_percentage,
            "top50_percentage": self.top50_percentage,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "concentration_risk": self.concentration_risk,
            "distribution": self.distribution,
            "whale_count": self.whale_count,
            "dev_wallet_risk": self.dev_wallet_risk,
            "risk_factors": list(self.risk_factors),
        }
        data.update(self.distribution_metrics())
        return data


def categorize_distribution(concentration_risk: float, total_holders: int) -> str:
    if concentration_risk > 0.6 or total_holders < 20:
        return "dangerous"
    if concentration_risk > 0.3 or total_holders < 100:
        return "concerning"
    return "healthy"


class HolderAnalyzer:
    """Concentration risk, whale count and Gini coefficient of holdings."""

    name = "holder_analysis"

    def analyze(self, snapshot: TokenSnapshot) -> HolderAnalysis:
        concentration = snapshot.top_holders_concentration
        total = snapshot.total_holders
        factors: List[str] = []

        if concentration > 0.7:
            risk = 0.8
            factors.append("Extremely high holder concentration")
        elif concentration > 0.5:
            risk = 0.6
            factors.append("High holder concentration")
        elif concentration > 0.3:
            risk = 0.3
            factors.append("Moderate holder concentration")
        else:
            risk = 0.0

        if total < 10:
            factors.append("Very few token holders")
            risk += 0.2
        elif total < 50:
            factors.append("Low number of holders")
            risk += 0.1

        dev_pct = snapshot.dev_wallet_percentage
        if dev_pct > 0.2:
            dev_risk = 0.8
            factors.append("Developer holds large portion")
        elif dev_pct > 0.1:
            dev_risk = 0.4
            factors.append("Developer holds significant portion")
        else:
            dev_risk = 0.0

        # LP and burn addresses are not real holders
        circulating = [h for h in snapshot.top_holders if not h.is_lp and not h.is_burn]
        whales = sum(1 for h in circulating if h.percentage > WHALE_PCT)
        if whales > 5:
            factors.append(f"{whales} whale wallets detected")

        shares = [h.percentage for h in circulating]
        gini = gini_coefficient(shares)

        logger.debug(f"Holder analysis for {snapshot.symbol}: risk={risk:.2f} gini={gini:.2f}")

        return HolderAnalysis(
            concentration_risk=min(1.0, risk),
            distribution=categorize_distribution(risk, total),
            whale_count=whales,
            dev_wallet_risk=dev_risk,
            gini_coefficient=gini,
            top10_percentage=sum(shares[:10]),
            top50_percentage=sum(shares[:50]),
            risk_factors=factors,
        )
