"""Simulation bookkeeping: runs the simulator, logs decisions and reports on them."""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ..backtest.backtester import Backtester, BacktestResult
from ..config import SentinelConfig
from ..records import SimulationAction, SimulationDecision, SimulationLog
from ..storage import TokenStore
from ..token import RiskLevel, Token
from ..utils.logger import LOG_DIR, setup_logger
from ..utils.telemetry import telemetry
from .profiles import (
    PROFILES,
    MarketConditions,
    available_profiles,
    current_market_conditions,
    get_profile,
)
from .response_simulator import UNSCORED_RISK, ResponseSimulator

logger = setup_logger(__name__, LOG_DIR / "simulation.log")


@dataclass
class SimulationResult:
    token: Token
    decision: SimulationDecision
    market_conditions: MarketConditions
    simulation_log: SimulationLog


@dataclass
class Consensus:
    recommended_action: SimulationAction
    consensus_strength: float
    average_confidence: float
    agreement: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommended_action": self.recommended_action.value,
            "consensus_strength": self.consensus_strength,
            "average_confidence": self.average_confidence,
            "agreement": self.agreement,
        }


@dataclass
class ProfileComparison:
    token: Token
    market_conditions: MarketConditions
    profile_results: Dict[str, SimulationDecision] = field(default_factory=dict)
    consensus: Optional[Consensus] = None


def calculate_consensus(decisions: List[SimulationDecision]) -> Consensus:
    actions = [d.action for d in decisions]
    counts = Counter(actions)
    top = max(counts.values())
    # Ties resolve to the earliest profile in evaluation order
    recommended = next(a for a in actions if counts[a] == top)
    return Consensus(
        recommended_action=recommended,
        consensus_strength=sum(1 for d in decisions if d.would_invest) / len(decisions),
        average_confidence=sum(d.confidence for d in decisions) / len(decisions),
        agreement="unanimous" if len(counts) == 1 else "mixed",
    )


class SimulationService:
    """Runs and records simulated responses for scored tokens."""

    def __init__(
        self,
        store: TokenStore,
        config: Optional[SentinelConfig] = None,
        simulator: Optional[ResponseSimulator] = None,
        backtester: Optional[Backtester] = None,
    ) -> None:
        self.store = store
        self.config = config or SentinelConfig()
        self.simulator = simulator or ResponseSimulator(self.config)
        self.backtester = backtester or Backtester(store, self.config)
        self.last_run: Optional[datetime] = None
        # Assigned by the scheduler that owns the simulation cycle
        self.cycle_guard = None

    @property
    def is_simulating(self) -> bool:
        return self.cycle_guard is not None and self.cycle_guard.is_running

    async def simulate_token_response(
        self,
        token: Token,
        market_conditions: Optional[MarketConditions] = None,
        profile: str = "moderate",
    ) -> SimulationResult:
        conditions = market_conditions or current_market_conditions()
        parameters = get_profile(profile, self.config)
        decision = self.simulator.simulate_response(token, conditions, parameters)

        entry = SimulationLog(
            token_mint_address=token.mint_address,
            simulation_timestamp=datetime.now(timezone.utc),
            risk_score=UNSCORED_RISK if token.risk_score is None else token.risk_score,
            risk_level=token.risk_level or RiskLevel.CRITICAL,
            decision=decision,
            market_snapshot={
                "liquidity_usd": token.liquidity_info.total_liquidity_usd or 0.0,
                "volume_usd": token.price_info.volume_24h_usd or 0.0,
                "price_usd": token.price_info.current_price_usd or 0.0,
                "holder_count": token.holder_analysis.total_holders or 0,
            },
            profile=parameters.name,
            notes=f"Simulation profile: {parameters.name}",
        )
        await self.store.save_simulation_log(entry)
        telemetry.inc(f"simulation.{decision.action.value}")

        logger.debug(
            f"Simulated response for {token.label}: {decision.action.value} "
            f"(confidence: {decision.confidence * 100:.1f}%)"
        )
        return SimulationResult(token, decision, conditions, entry)

    async def simulate_multiple_profiles(self, token: Token) -> ProfileComparison:
        conditions = current_market_conditions()
        names = list(PROFILES)
        results = await asyncio.gather(
            *(self.simulate_token_response(token, conditions, name) for name in names)
        )
        decisions = {name: result.decision for name, result in zip(names, results)}
        return ProfileComparison(
            token=token,
            market_conditions=conditions,
            profile_results=decisions,
            consensus=calculate_consensus(list(decisions.values())),
        )

    async def run_backtest(self, days: int = 30, profile: Optional[str] = "moderate") -> BacktestResult:
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)
        if profile is not None:
            get_profile(profile, self.config)
        return await self.backtester.run_backtest(start, end, profile)

    async def get_simulation_insights(self) -> Dict[str, Any]:
        stats, accuracy = await asyncio.gather(
            self.store.get_simulation_stats(),
            self.backtester.analyze_decision_accuracy(),
        )
        return {
            "simulation_stats": stats,
            "decision_accuracy": accuracy.to_dict(),
            "is_currently_simulating": self.is_simulating,
        }

    def get_simulation_status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_simulating,
            "last_run": self.last_run,
            "available_profiles": available_profiles(),
        }
