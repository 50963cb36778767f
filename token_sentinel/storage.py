"""
Token store interface and an in-memory implementation.

The store is a key-value collaborator keyed by mint address. Writes are
upserts and concurrent writers for the same token resolve last-write-wins.
:class:`InMemoryTokenStore` can be dumped to and loaded from a JSON file so
the CLI can operate on exported data.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import StoreUnavailableError
from .records import RiskAnalysisRecord, SimulationLog
from .token import RiskLevel, Token
from .utils.logger import setup_logger

logger = setup_logger(__name__)


class TokenStore(ABC):
    """Operations the sentinel consumes from the persistence layer."""

    @abstractmethod
    async def get_token(self, mint_address: str) -> Optional[Token]:
        ...

    @abstractmethod
    async def save_token(self, token: Token) -> Token:
        ...

    @abstractmethod
    async def update_token(self, mint_address: str, patch: Dict[str, Any]) -> Optional[Token]:
        ...

    @abstractmethod
    async def get_tokens_requiring_reanalysis(
        self, max_age_seconds: float, limit: int = 50
    ) -> List[Token]:
        ...

    @abstractmethod
    async def get_tokens_by_risk_level(self, risk_level: RiskLevel, limit: int = 50) -> List[Token]:
        ...

    @abstractmethod
    async def save_risk_analysis(self, record: RiskAnalysisRecord) -> RiskAnalysisRecord:
        ...

    @abstractmethod
    async def save_simulation_log(self, entry: SimulationLog) -> SimulationLog:
        ...

    @abstractmethod
    async def get_simulation_logs_in_range(
        self, start: datetime, end: datetime
    ) -> List[SimulationLog]:
        ...

    @abstractmethod
    async def get_analysis_history(
        self, mint_address: str, limit: int = 10
    ) -> List[RiskAnalysisRecord]:
        """Most recent risk analyses for one token, newest first."""

    @abstractmethod
    async def get_token_statistics(self) -> Dict[str, Any]:
        """``total_active_tokens`` and ``risk_distribution`` by level."""

    @abstractmethod
    async def get_simulation_stats(self) -> Dict[str, Any]:
        """``total_simulations``, ``actions`` counts and ``would_invest`` count."""


class InMemoryTokenStore(TokenStore):
    """Dictionary-backed store. Each call is atomic with respect to the event loop."""

    def __init__(self) -> None:
        self.tokens: Dict[str, Token] = {}
        self.analyses: List[RiskAnalysisRecord] = []
        self.simulation_logs: List[SimulationLog] = []
        self._lock = asyncio.Lock()

    async def get_token(self, mint_address: str) -> Optional[Token]:
        return self.tokens.get(mint_address)

    async def save_token(self, token: Token) -> Token:
        async with self._lock:
            self.tokens[token.mint_address] = token
        return token

    async def update_token(self, mint_address: str, patch: Dict[str, Any]) -> Optional[Token]:
        async with self._lock:
            current = self.tokens.get(mint_address)
            if current is None:
                return None
            updated = current.apply_patch(patch)
            self.tokens[mint_address] = updated
        return updated

    async def get_tokens_requiring_reanalysis(
        self, max_age_seconds: float, limit: int = 50
    ) -> List[Token]:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
        due = [
            t
            for t in self.tokens.values()
            if t.is_active and (t.last_analyzed_at is None or t.last_analyzed_at < cutoff)
        ]
        # Never-analysed tokens first, then the stalest
        due.sort(key=lambda t: t.last_analyzed_at or datetime.min.replace(tzinfo=timezone.utc))
        return due[:limit]

    async def get_tokens_by_risk_level(self, risk_level: RiskLevel, limit: int = 50) -> List[Token]:
        matches = [
            t for t in self.tokens.values() if t.is_active and t.risk_level == RiskLevel(risk_level)
        ]
        matches.sort(
            key=lambda t: t.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return matches[:limit]

    async def save_risk_analysis(self, record: RiskAnalysisRecord) -> RiskAnalysisRecord:
        async with self._lock:
            self.analyses.append(record)
        return record

    async def get_analysis_history(
        self, mint_address: str, limit: int = 10
    ) -> List[RiskAnalysisRecord]:
        history = [a for a in self.analyses if a.token_mint_address == mint_address]
        history.sort(key=lambda a: a.analysis_timestamp, reverse=True)
        return history[:limit]

    async def save_simulation_log(self, entry: SimulationLog) -> SimulationLog:
        async with self._lock:
            self.simulation_logs.append(entry)
        return entry

    async def get_simulation_logs_in_range(
        self, start: datetime, end: datetime
    ) -> List[SimulationLog]:
        logs = [l for l in self.simulation_logs if start <= l.simulation_timestamp <= end]
        logs.sort(key=lambda l: l.simulation_timestamp)
        return logs

    async def get_token_statistics(self) -> Dict[str, Any]:
        active = [t for t in self.tokens.values() if t.is_active]
        counts = Counter(t.risk_level.value for t in active if t.risk_level is not None)
        return {
            "total_active_tokens": len(active),
            "risk_distribution": {level.value: counts.get(level.value, 0) for level in RiskLevel},
        }

    async def get_simulation_stats(self) -> Dict[str, Any]:
        actions = Counter(l.decision.action.value for l in self.simulation_logs)
        would_invest = sum(1 for l in self.simulation_logs if l.decision.would_invest)
        return {
            "total_simulations": len(self.simulation_logs),
            "actions": dict(actions),
            "would_invest": would_invest,
        }

    # ------------------------------------------------------------------
    # JSON persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokens": [t.to_dict() for t in self.tokens.values()],
            "analyses": [a.to_dict() for a in self.analyses],
            "simulation_logs": [l.to_dict() for l in self.simulation_logs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryTokenStore":
        store = cls()
        for raw in data.get("tokens", []):
            token = Token.from_dict(raw)
            store.tokens[token.mint_address] = token
        store.analyses = [RiskAnalysisRecord.from_dict(a) for a in data.get("analyses", [])]
        store.simulation_logs = [
            SimulationLog.from_dict(l) for l in data.get("simulation_logs", [])
        ]
        return store

    def dump_json(self, path: Union[str, Path]) -> None:
        file = Path(path)
        file.parent.mkdir(parents=True, exist_ok=True)
        with open(file, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(
            f"Saved {len(self.tokens)} tokens and {len(self.simulation_logs)} simulation logs to {file}"
        )

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> "InMemoryTokenStore":
        file = Path(path)
        if not file.exists():
            logger.warning(f"Store file {file} not found, starting empty")
            return cls()
        try:
            with open(file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreUnavailableError(f"Cannot read store file {file}: {exc}") from exc
        return cls.from_dict(data)
