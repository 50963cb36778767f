"""
Per-token analysis orchestration.

Normalises a token once, fans the four analyzers out concurrently, aggregates
their verdicts and, when asked, persists the result and writes the new risk
fields back onto the token.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..analyzers import (
    HolderAnalysis,
    HolderAnalyzer,
    HoneypotAnalysis,
    HoneypotAnalyzer,
    LiquidityAnalysis,
    LiquidityAnalyzer,
    RugpullAnalysis,
    RugpullAnalyzer,
)
from ..config import SentinelConfig
from ..errors import AnalyzerFailure, TokenNotFoundError
from ..records import AnalysisResult, RiskAnalysisRecord
from ..snapshot import TokenSnapshot, normalize_token
from ..storage import TokenStore
from ..token import RiskLevel, Token
from ..utils.logger import LOG_DIR, setup_logger
from ..utils.telemetry import telemetry
from .risk_scorer import RiskAssessment, RiskScorer

logger = setup_logger(__name__, LOG_DIR / "risk_analysis.log")

ANALYSIS_VERSION = "1.0"
MAX_FLAGGED_REASONS = 5
MAX_TOKEN_REASONS = 10
LIQUIDITY_PASS_SCORE = 0.6


@dataclass
class ComponentResults:
    honeypot: HoneypotAnalysis
    rugpull: RugpullAnalysis
    liquidity: LiquidityAnalysis
    holders: HolderAnalysis

    def to_dict(self) -> Dict[str, Any]:
        return {
            "honeypot_analysis": self.honeypot.to_dict(),
            "rugpull_analysis": self.rugpull.to_dict(),
            "liquidity_analysis": self.liquidity.to_dict(),
            "holder_analysis": self.holders.to_dict(),
        }


@dataclass
class AnalysisOutcome:
    snapshot: TokenSnapshot
    risk_assessment: RiskAssessment
    component_results: ComponentResults
    analysis_results: List[AnalysisResult] = field(default_factory=list)
    risk_reasons: List[str] = field(default_factory=list)
    token: Optional[Token] = None


class RiskAnalysisService:
    """Runs the analyzers for one token and records the assessment."""

    def __init__(
        self,
        store: TokenStore,
        config: Optional[SentinelConfig] = None,
        scorer: Optional[RiskScorer] = None,
    ) -> None:
        self.store = store
        self.config = config or SentinelConfig()
        self.scorer = scorer or RiskScorer(self.config)
        self.honeypot_analyzer = HoneypotAnalyzer(self.config.honeypot_threshold)
        self.rugpull_analyzer = RugpullAnalyzer(self.config.rugpull_threshold)
        self.liquidity_analyzer = LiquidityAnalyzer()
        self.holder_analyzer = HolderAnalyzer()
        # Assigned by the scheduler that owns the analysis cycle
        self.cycle_guard = None

    @property
    def is_analyzing(self) -> bool:
        return self.cycle_guard is not None and self.cycle_guard.is_running

    async def _run_analyzer(self, analyzer, snapshot: TokenSnapshot):
        try:
            return await asyncio.to_thread(analyzer.analyze, snapshot)
        except Exception as exc:
            raise AnalyzerFailure(analyzer.name, snapshot.mint_address, str(exc)) from exc

    async def analyze_token(
        self, token: Token, as_of: Optional[datetime] = None
    ) -> AnalysisOutcome:
        """Score ``token`` without touching the store."""
        snapshot = normalize_token(token, as_of)
        logger.info(f"Starting comprehensive analysis for {snapshot.symbol} ({token.mint_address})")

        results = await asyncio.gather(
            self._run_analyzer(self.honeypot_analyzer, snapshot),
            self._run_analyzer(self.rugpull_analyzer, snapshot),
            self._run_analyzer(self.liquidity_analyzer, snapshot),
            self._run_analyzer(self.holder_analyzer, snapshot),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.error(f"Analysis failed for {snapshot.symbol}: {result}")
                raise result

        honeypot, rugpull, liquidity, holders = results
        assessment = self.scorer.calculate_risk_score(snapshot, honeypot, rugpull)
        components = ComponentResults(honeypot, rugpull, liquidity, holders)

        reasons = [
            r
            for r in (
                *honeypot.reasons,
                *rugpull.reasons,
                *liquidity.risk_factors,
                *holders.risk_factors,
            )
            if r
        ]

        return AnalysisOutcome(
            snapshot=snapshot,
            risk_assessment=assessment,
            component_results=components,
            analysis_results=self._analysis_results(components),
            risk_reasons=reasons,
        )

    @staticmethod
    def _analysis_results(components: ComponentResults) -> List[AnalysisResult]:
        hp, rug, liq, hold = (
            components.honeypot,
            components.rugpull,
            components.liquidity,
            components.holders,
        )
        return [
            AnalysisResult(
                test_name=HoneypotAnalyzer.name,
                passed=not hp.is_honeypot,
                score=hp.confidence,
                details="; ".join(hp.reasons),
                evidence=[e.to_dict() for e in hp.evidence],
            ),
            AnalysisResult(
                test_name=RugpullAnalyzer.name,
                passed=not rug.has_rug_risk,
                score=rug.confidence,
                details="; ".join(rug.reasons),
                evidence=[e.to_dict() for e in rug.evidence],
            ),
            AnalysisResult(
                test_name=LiquidityAnalyzer.name,
                passed=liq.health_score > LIQUIDITY_PASS_SCORE,
                score=liq.health_score,
                details="; ".join(liq.risk_factors),
                evidence={"liquidity_depth_usd": liq.depth_usd},
            ),
            AnalysisResult(
                test_name=HolderAnalyzer.name,
                passed=hold.distribution == "healthy",
                score=1 - hold.concentration_risk,
                details="; ".join(hold.risk_factors),
                evidence=hold.distribution_metrics(),
            ),
        ]

    async def analyze_and_store(self, token: Token) -> AnalysisOutcome:
        """Analyse ``token``, persist the record and upsert the token's risk fields."""
        start = time.perf_counter()
        try:
            outcome = await self.analyze_token(token)
        except AnalyzerFailure:
            telemetry.inc("analysis.failed")
            raise

        assessment = outcome.risk_assessment
        now = datetime.now(timezone.utc)
        patch = {
            "risk_score": assessment.overall_risk_score,
            "risk_level": assessment.risk_level,
            "risk_reasons": outcome.risk_reasons[:MAX_TOKEN_REASONS],
            "analysis_count": token.analysis_count + 1,
            "last_analyzed_at": now,
            "security_flags": {
                "is_honeypot": outcome.component_results.honeypot.is_honeypot,
                "has_rug_pull_risk": outcome.component_results.rugpull.has_rug_risk,
            },
        }
        updated = await self.store.update_token(token.mint_address, patch)
        if updated is None:
            updated = await self.store.save_token(token.apply_patch(patch))

        duration_ms = (time.perf_counter() - start) * 1000
        raw_data = outcome.component_results.to_dict()
        raw_data["risk_assessment"] = assessment.to_dict()
        record = RiskAnalysisRecord(
            token_mint_address=token.mint_address,
            analysis_timestamp=now,
            overall_risk_score=assessment.overall_risk_score,
            risk_level=assessment.risk_level,
            analysis_results=outcome.analysis_results,
            flagged_reasons=outcome.risk_reasons[:MAX_FLAGGED_REASONS],
            analysis_version=ANALYSIS_VERSION,
            raw_data=raw_data,
            analysis_duration_ms=duration_ms,
            is_reanalysis=token.analysis_count > 0,
            previous_risk_score=token.risk_score,
        )
        await self.store.save_risk_analysis(record)

        telemetry.inc("analysis.completed")
        telemetry.gauge("analysis.duration_ms", duration_ms)
        logger.info(
            f"Analysis completed for {token.label}: {assessment.risk_level.value.upper()} risk "
            f"({assessment.overall_risk_score * 100:.1f}%) in {duration_ms:.0f}ms"
        )
        outcome.token = updated
        return outcome

    async def analyze_mint(self, mint_address: str) -> AnalysisOutcome:
        token = await self.store.get_token(mint_address)
        if token is None:
            raise TokenNotFoundError(mint_address)
        return await self.analyze_and_store(token)

    async def get_analysis_stats(self) -> Dict[str, Any]:
        token_stats, high_risk, simulation_stats = await asyncio.gather(
            self.store.get_token_statistics(),
            self.store.get_tokens_by_risk_level(RiskLevel.HIGH, limit=10),
            self.store.get_simulation_stats(),
        )
        return {
            "total_tokens": token_stats["total_active_tokens"],
            "risk_distribution": token_stats["risk_distribution"],
            "high_risk_tokens": len(high_risk),
            "is_analyzing": self.is_analyzing,
            "simulation_stats": simulation_stats,
        }

    async def get_analysis_history(
        self, mint_address: str, limit: int = 10
    ) -> List[RiskAnalysisRecord]:
        """Stored assessments for ``mint_address``, newest first."""
        if await self.store.get_token(mint_address) is None:
            raise TokenNotFoundError(mint_address)
        return await self.store.get_analysis_history(mint_address, limit)
