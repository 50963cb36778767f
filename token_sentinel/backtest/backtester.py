"""
Retrospective scoring of simulated decisions.

Returns are SYNTHETIC: no historical price series is consulted. Each
hypothetical trade draws its outcome from :class:`ReturnModel`, biased by the
token's risk score at decision time. Results are reproducible for a given
seed but measure the policy against a model, not against the market.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..config import SentinelConfig
from ..errors import InsufficientDataError
from ..records import SimulationAction, SimulationLog
from ..storage import TokenStore
from ..token import Token
from ..utils.logger import LOG_DIR, setup_logger
from ..utils.stats import max_drawdown, sharpe_ratio

logger = setup_logger(__name__, LOG_DIR / "backtest.log")

HONEYPOT = "honeypot"
RUGPULL = "rugpull"
RISK_MANAGEMENT = "risk_management"
NO_INVESTMENT = "no_investment"


class ReturnModel:
    """Seedable source of hypothetical trade returns.

    ``pct = (1 - risk) * 0.5 + U(-0.15, 0.15) + U(-1, 1) * 0.2``
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def trade_return(self, amount: float, risk_score: float) -> float:
        risk_factor = (1 - risk_score) * 0.5
        market_factor = self.rng.uniform(-0.15, 0.15)
        noise = self.rng.uniform(-1.0, 1.0)
        return float(amount * (risk_factor + market_factor + noise * 0.2))


@dataclass
class TradeOutcome:
    avoided: bool
    reason: Optional[str] = None
    trade_return: Optional[float] = None


@dataclass
class BacktestResult:
    total_simulations: int
    success_rate: float
    avg_return: float
    max_drawdown: float
    sharpe_ratio: float
    profitable_trades: int
    loss_trades: int
    rug_pulls_avoided: int
    honeypots_stopped: int
    performance_by_risk_level: Dict[str, Dict[str, float]] = field(default_factory=dict)
    avoided_by_reason: Dict[str, int] = field(default_factory=dict)
    is_synthetic: bool = True

    @property
    def total_trades(self) -> int:
        return self.profitable_trades + self.loss_trades

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_simulations": self.total_simulations,
            "success_rate": self.success_rate,
            "avg_return": self.avg_return,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "profitable_trades": self.profitable_trades,
            "loss_trades": self.loss_trades,
            "rug_pulls_avoided": self.rug_pulls_avoided,
            "honeypots_stopped": self.honeypots_stopped,
            "performance_by_risk_level": self.performance_by_risk_level,
            "avoided_by_reason": dict(self.avoided_by_reason),
            "is_synthetic": self.is_synthetic,
        }


@dataclass
class DecisionAccuracy:
    accuracy: float
    correct_avoidance: int
    incorrect_avoidance: int
    correct_investment: int
    incorrect_investment: int
    total_decisions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "correct_avoidance": self.correct_avoidance,
            "incorrect_avoidance": self.incorrect_avoidance,
            "correct_investment": self.correct_investment,
            "incorrect_investment": self.incorrect_investment,
            "total_decisions": self.total_decisions,
        }


def _was_scam(token: Optional[Token]) -> bool:
    if token is None:
        return False
    flags = token.security_flags
    return bool(flags.is_honeypot or flags.has_rug_pull_risk)


def performance_by_risk_level(trades: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    if trades.empty:
        return {}
    grouped = trades.groupby("risk_level")["return"].agg(["count", "sum", "mean"])
    return {
        str(level): {
            "trades": int(row["count"]),
            "total_return": float(row["sum"]),
            "avg_return": float(row["mean"]),
        }
        for level, row in grouped.iterrows()
    }


class Backtester:
    """Replays simulation logs against current token flags and a return model."""

    def __init__(
        self,
        store: TokenStore,
        config: Optional[SentinelConfig] = None,
        return_model: Optional[ReturnModel] = None,
    ) -> None:
        self.store = store
        self.config = config or SentinelConfig()
        self.return_model = return_model or ReturnModel(self.config.backtest_seed)

    async def _classify(self, entry: SimulationLog, tokens: Dict[str, Optional[Token]]) -> TradeOutcome:
        decision = entry.decision
        if decision.action == SimulationAction.AVOID:
            token = await self._token(entry.token_mint_address, tokens)
            flags = token.security_flags if token is not None else None
            if flags is not None and flags.is_honeypot:
                return TradeOutcome(avoided=True, reason=HONEYPOT)
            if flags is not None and flags.has_rug_pull_risk:
                return TradeOutcome(avoided=True, reason=RUGPULL)
            return TradeOutcome(avoided=True, reason=RISK_MANAGEMENT)

        if not decision.would_invest or not decision.max_investment_usd:
            return TradeOutcome(avoided=True, reason=NO_INVESTMENT)

        trade_return = self.return_model.trade_return(decision.max_investment_usd, entry.risk_score)
        return TradeOutcome(avoided=False, trade_return=trade_return)

    async def _token(self, mint_address: str, cache: Dict[str, Optional[Token]]) -> Optional[Token]:
        if mint_address not in cache:
            cache[mint_address] = await self.store.get_token(mint_address)
        return cache[mint_address]

    async def run_backtest(
        self,
        start_date: datetime,
        end_date: datetime,
        profile: Optional[str] = None,
    ) -> BacktestResult:
        logger.info(
            f"Running backtest from {start_date.isoformat()} to {end_date.isoformat()}"
            + (f" for profile {profile}" if profile else "")
        )
        logs = await self.store.get_simulation_logs_in_range(start_date, end_date)
        if profile is not None:
            logs = [entry for entry in logs if entry.profile == profile]
        if not logs:
            raise InsufficientDataError(
                "No simulation data available for the specified time range"
            )

        tokens: Dict[str, Optional[Token]] = {}
        avoided: Dict[str, int] = {
            HONEYPOT: 0, RUGPULL: 0, RISK_MANAGEMENT: 0, NO_INVESTMENT: 0
        }
        rows: List[Dict[str, Any]] = []

        for entry in logs:
            outcome = await self._classify(entry, tokens)
            if outcome.avoided:
                avoided[outcome.reason] += 1
                continue
            rows.append({"risk_level": entry.risk_level.value, "return": outcome.trade_return})

        trades = pd.DataFrame(rows, columns=["risk_level", "return"])
        returns = trades["return"].to_numpy(dtype=float)
        profitable = int((returns > 0).sum())
        losses = int(len(returns) - profitable)
        total = len(returns)

        result = BacktestResult(
            total_simulations=len(logs),
            success_rate=profitable / total if total else 0.0,
            avg_return=float(returns.mean()) if total else 0.0,
            max_drawdown=max_drawdown(returns),
            sharpe_ratio=sharpe_ratio(returns),
            profitable_trades=profitable,
            loss_trades=losses,
            rug_pulls_avoided=avoided[RUGPULL],
            honeypots_stopped=avoided[HONEYPOT],
            performance_by_risk_level=performance_by_risk_level(trades),
            avoided_by_reason=avoided,
        )
        logger.info(
            f"Backtest complete: {len(logs)} simulations, {total} trades, "
            f"success rate {result.success_rate:.1%}, sharpe {result.sharpe_ratio:.2f}"
        )
        return result

    async def analyze_decision_accuracy(self, now: Optional[datetime] = None) -> DecisionAccuracy:
        """Compare logged decisions in the trailing window with current token flags."""
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=self.config.accuracy_window_days)
        logs = await self.store.get_simulation_logs_in_range(start, end)

        tokens: Dict[str, Optional[Token]] = {}
        counts = {"correct_avoidance": 0, "incorrect_avoidance": 0,
                  "correct_investment": 0, "incorrect_investment": 0}
        for entry in logs:
            scam = _was_scam(await self._token(entry.token_mint_address, tokens))
            if entry.decision.action == SimulationAction.AVOID:
                counts["correct_avoidance" if scam else "incorrect_avoidance"] += 1
            elif entry.decision.would_invest:
                counts["incorrect_investment" if scam else "correct_investment"] += 1

        total = sum(counts.values())
        correct = counts["correct_avoidance"] + counts["correct_investment"]
        return DecisionAccuracy(
            accuracy=correct / total if total else 0.0,
            total_decisions=total,
            **counts,
        )
