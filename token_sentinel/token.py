"""
Token records as supplied by the discovery collaborator.

Every field except ``mint_address`` is optional: upstream DEX and RPC feeds
are frequently incomplete for freshly listed tokens. Missing values are
resolved once by :func:`token_sentinel.snapshot.normalize_token`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings, epoch milliseconds or datetimes into UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        ts = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class SecurityFlags:
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    is_honeypot: Optional[bool] = None
    has_rug_pull_risk: Optional[bool] = None
    ownership_renounced: Optional[bool] = None
    has_unlimited_minting: Optional[bool] = None
    has_blacklist: Optional[bool] = None
    has_pausable_functionality: Optional[bool] = None


@dataclass
class LiquidityInfo:
    total_liquidity_usd: Optional[float] = None
    lp_tokens_locked: Optional[bool] = None
    lp_unlock_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.lp_unlock_time = parse_timestamp(self.lp_unlock_time)


@dataclass
class Holder:
    address: str
    percentage: float
    is_lp: bool = False
    is_burn: bool = False
    is_dev: bool = False


@dataclass
class HolderDistribution:
    total_holders: Optional[int] = None
    top_holders_concentration: Optional[float] = None
    dev_wallet_percentage: Optional[float] = None
    burned_percentage: Optional[float] = None
    lp_percentage: Optional[float] = None
    top_holders: List[Holder] = field(default_factory=list)


@dataclass
class PriceInfo:
    current_price_usd: Optional[float] = None
    price_change_24h: Optional[float] = None
    volume_24h_usd: Optional[float] = None
    market_cap_usd: Optional[float] = None


@dataclass
class Token:
    """Persisted token record keyed by ``mint_address``."""

    mint_address: str
    symbol: str = ""
    name: str = ""
    description: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    creator_wallet: Optional[str] = None

    security_flags: SecurityFlags = field(default_factory=SecurityFlags)
    liquidity_info: LiquidityInfo = field(default_factory=LiquidityInfo)
    holder_analysis: HolderDistribution = field(default_factory=HolderDistribution)
    price_info: PriceInfo = field(default_factory=PriceInfo)
    metadata: Dict[str, Any] = field(default_factory=dict)

    # Written back by the analysis cycle
    risk_score: Optional[float] = None
    risk_level: Optional[RiskLevel] = None
    risk_reasons: List[str] = field(default_factory=list)
    analysis_count: int = 0
    last_analyzed_at: Optional[datetime] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        # Naive datetimes are taken as UTC
        self.created_at = parse_timestamp(self.created_at)
        self.last_analyzed_at = parse_timestamp(self.last_analyzed_at)
        if self.risk_level is not None:
            self.risk_level = RiskLevel(self.risk_level)

    @property
    def label(self) -> str:
        return self.symbol or self.mint_address[:8]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        security = dict(data.get("security_flags") or {})
        liquidity = dict(data.get("liquidity_info") or {})
        holders = dict(data.get("holder_analysis") or {})
        price = dict(data.get("price_info") or {})

        liquidity["lp_unlock_time"] = parse_timestamp(liquidity.get("lp_unlock_time"))
        holders["top_holders"] = [
            h if isinstance(h, Holder) else Holder(**h)
            for h in holders.get("top_holders") or []
        ]
        risk_level = data.get("risk_level")

        return cls(
            mint_address=data["mint_address"],
            symbol=data.get("symbol", ""),
            name=data.get("name", ""),
            description=data.get("description"),
            image=data.get("image"),
            created_at=parse_timestamp(data.get("created_at")),
            creator_wallet=data.get("creator_wallet"),
            security_flags=SecurityFlags(**security),
            liquidity_info=LiquidityInfo(**liquidity),
            holder_analysis=HolderDistribution(**holders),
            price_info=PriceInfo(**price),
            metadata=dict(data.get("metadata") or {}),
            risk_score=data.get("risk_score"),
            risk_level=RiskLevel(risk_level) if risk_level else None,
            risk_reasons=list(data.get("risk_reasons") or []),
            analysis_count=int(data.get("analysis_count") or 0),
            last_analyzed_at=parse_timestamp(data.get("last_analyzed_at")),
            is_active=bool(data.get("is_active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["created_at"] = format_timestamp(self.created_at)
        data["last_analyzed_at"] = format_timestamp(self.last_analyzed_at)
        data["liquidity_info"]["lp_unlock_time"] = format_timestamp(
            self.liquidity_info.lp_unlock_time
        )
        data["risk_level"] = self.risk_level.value if self.risk_level else None
        return data

    def apply_patch(self, patch: Dict[str, Any]) -> "Token":
        """Return a copy with ``patch`` applied.

        Nested sections (``security_flags`` and friends) are merged field by
        field; everything else is replaced.
        """
        changes = {}
        for key, value in patch.items():
            current = getattr(self, key)
            if dataclasses.is_dataclass(current) and isinstance(value, dict):
                changes[key] = dataclasses.replace(current, **value)
            else:
                changes[key] = value
        return dataclasses.replace(self, **changes)
