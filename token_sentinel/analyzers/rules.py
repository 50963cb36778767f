"""
Ordered predicate -> effect rules shared by the evidence analyzers.

A :class:`Check` inspects one aspect of a token snapshot. Its tiers are
evaluated in priority order and the first tier whose predicate matches adds
its risk increment, reason and evidence record. When no tier matches the
check optionally records a passing evidence entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..snapshot import TokenSnapshot

PASS = "PASS"
INFO = "INFO"
CAUTION = "CAUTION"
WARN = "WARN"
FAIL = "FAIL"

Predicate = Callable[[TokenSnapshot], bool]
Detail = Union[str, Callable[[TokenSnapshot], str]]


@dataclass(frozen=True)
class EvidenceRecord:
    test: str
    result: str
    details: str

    def to_dict(self) -> Dict[str, str]:
        return {"test": self.test, "result": self.result, "details": self.details}


@dataclass(frozen=True)
class Tier:
    predicate: Predicate
    risk: float
    reason: str
    result: str = WARN
    details: Detail = ""


@dataclass(frozen=True)
class Check:
    name: str
    tiers: Tuple[Tier, ...]
    passed: Optional[Detail] = None

    def evaluate(self, snapshot: TokenSnapshot) -> Tuple[float, Optional[str], Optional[EvidenceRecord]]:
        for tier in self.tiers:
            if tier.predicate(snapshot):
                return (
                    tier.risk,
                    tier.reason,
                    EvidenceRecord(self.name, tier.result, _render(tier.details, snapshot)),
                )
        if self.passed is not None:
            return 0.0, None, EvidenceRecord(self.name, PASS, _render(self.passed, snapshot))
        return 0.0, None, None


@dataclass
class RuleOutcome:
    risk: float = 0.0
    reasons: List[str] = field(default_factory=list)
    evidence: List[EvidenceRecord] = field(default_factory=list)


def _render(detail: Detail, snapshot: TokenSnapshot) -> str:
    return detail(snapshot) if callable(detail) else detail


def evaluate_checks(checks: Sequence[Check], snapshot: TokenSnapshot) -> RuleOutcome:
    """Run every check in order and accumulate risk, reasons and evidence."""
    outcome = RuleOutcome()
    for check in checks:
        risk, reason, record = check.evaluate(snapshot)
        if reason:
            outcome.risk += risk
            outcome.reasons.append(reason)
        if record is not None:
            outcome.evidence.append(record)
    if snapshot.missing_fields:
        outcome.evidence.append(
            EvidenceRecord(
                "data_availability",
                WARN,
                "Defaulted fields: " + ", ".join(snapshot.missing_fields),
            )
        )
    return outcome


def first_match(rules: Sequence[Tuple[str, Callable[..., bool], Any]], *args: Any) -> Tuple[str, Any]:
    """Return ``(name, effect)`` of the first rule whose predicate accepts ``args``."""
    for name, predicate, effect in rules:
        if predicate(*args):
            return name, effect
    raise LookupError("No rule matched")
