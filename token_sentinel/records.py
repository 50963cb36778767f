"""Persisted analysis and simulation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .token import RiskLevel, format_timestamp, parse_timestamp


class SimulationAction(str, Enum):
    AVOID = "avoid"
    MONITOR = "monitor"
    INVESTIGATE = "investigate"
    FLAG = "flag"


@dataclass
class AnalysisResult:
    """Outcome of a single analyzer, as stored with the risk analysis."""

    test_name: str
    passed: bool
    score: float
    details: str
    evidence: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "test_name": self.test_name,
            "passed": self.passed,
            "score": self.score,
            "details": self.details,
            "evidence": self.evidence,
        }


@dataclass
class RiskAnalysisRecord:
    token_mint_address: str
    analysis_timestamp: datetime
    overall_risk_score: float
    risk_level: RiskLevel
    analysis_results: List[AnalysisResult] = field(default_factory=list)
    flagged_reasons: List[str] = field(default_factory=list)
    analysis_version: str = "1.0"
    raw_data: Dict[str, Any] = field(default_factory=dict)
    analysis_duration_ms: float = 0.0
    is_reanalysis: bool = False
    previous_risk_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_mint_address": self.token_mint_address,
            "analysis_timestamp": format_timestamp(self.analysis_timestamp),
            "overall_risk_score": self.overall_risk_score,
            "risk_level": self.risk_level.value,
            "analysis_results": [r.to_dict() for r in self.analysis_results],
            "flagged_reasons": list(self.flagged_reasons),
            "analysis_version": self.analysis_version,
            "raw_data": self.raw_data,
            "analysis_duration_ms": self.analysis_duration_ms,
            "is_reanalysis": self.is_reanalysis,
            "previous_risk_score": self.previous_risk_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RiskAnalysisRecord":
        return cls(
            token_mint_address=data["token_mint_address"],
            analysis_timestamp=parse_timestamp(data["analysis_timestamp"]),
            overall_risk_score=float(data["overall_risk_score"]),
            risk_level=RiskLevel(data["risk_level"]),
            analysis_results=[AnalysisResult(**r) for r in data.get("analysis_results", [])],
            flagged_reasons=list(data.get("flagged_reasons", [])),
            analysis_version=data.get("analysis_version", "1.0"),
            raw_data=dict(data.get("raw_data") or {}),
            analysis_duration_ms=float(data.get("analysis_duration_ms", 0.0)),
            is_reanalysis=bool(data.get("is_reanalysis", False)),
            previous_risk_score=data.get("previous_risk_score"),
        )


@dataclass(frozen=True)
class SimulationDecision:
    action: SimulationAction
    confidence: float
    reasoning: str
    would_invest: bool
    max_investment_usd: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "would_invest": self.would_invest,
            "max_investment_usd": self.max_investment_usd,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationDecision":
        return cls(
            action=SimulationAction(data["action"]),
            confidence=float(data["confidence"]),
            reasoning=data.get("reasoning", ""),
            would_invest=bool(data.get("would_invest", False)),
            max_investment_usd=data.get("max_investment_usd"),
        )


@dataclass
class SimulationLog:
    token_mint_address: str
    simulation_timestamp: datetime
    risk_score: float
    risk_level: RiskLevel
    decision: SimulationDecision
    market_snapshot: Dict[str, float] = field(default_factory=dict)
    profile: str = "moderate"
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_mint_address": self.token_mint_address,
            "simulation_timestamp": format_timestamp(self.simulation_timestamp),
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "decision": self.decision.to_dict(),
            "market_snapshot": dict(self.market_snapshot),
            "profile": self.profile,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationLog":
        return cls(
            token_mint_address=data["token_mint_address"],
            simulation_timestamp=parse_timestamp(data["simulation_timestamp"]),
            risk_score=float(data["risk_score"]),
            risk_level=RiskLevel(data["risk_level"]),
            decision=SimulationDecision.from_dict(data["decision"]),
            market_snapshot=dict(data.get("market_snapshot") or {}),
            profile=data.get("profile", "moderate"),
            notes=data.get("notes", ""),
        )
