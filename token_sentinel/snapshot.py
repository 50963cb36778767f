"""
Token snapshot normalisation.

All defaulting of missing upstream fields happens here, once per analysis,
so analyzers never branch on missing data. Defaults:

* numeric fields (liquidity, holders, percentages, volume, price) -> ``0``
* boolean flags (LP locked, renounced, blacklist, ...) -> ``False``
* ``created_at`` -> the snapshot time, i.e. the token is treated as brand new

These defaults lean conservative: a token with no liquidity data is scored as
having no liquidity. Every defaulted field is listed in ``missing_fields``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from .token import Holder, Token, parse_timestamp


@dataclass(frozen=True)
class TokenSnapshot:
    mint_address: str
    symbol: str
    as_of: datetime

    # Security
    has_mint_authority: bool
    has_freeze_authority: bool
    has_unlimited_minting: bool
    has_pausable_functionality: bool
    has_blacklist: bool
    ownership_renounced: bool
    is_honeypot: bool
    has_rug_pull_risk: bool

    # Liquidity
    liquidity_usd: float
    lp_locked: bool
    lp_unlock_time: Optional[datetime]
    days_to_unlock: Optional[float]

    # Holders
    total_holders: int
    top_holders_concentration: float
    dev_wallet_percentage: float
    burned_percentage: float
    lp_percentage: float
    top_holders: Tuple[Holder, ...]

    # Market
    price_usd: float
    price_change_24h: float
    volume_24h_usd: float
    market_cap_usd: float

    # Provenance / socials
    age_hours: float
    has_description: bool
    has_image: bool
    has_website: bool
    has_twitter: bool
    has_telegram: bool

    missing_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def age_days(self) -> float:
        return self.age_hours / 24.0


def _num(value, name: str, missing: list, default: float = 0.0) -> float:
    if value is None:
        missing.append(name)
        return default
    return float(value)


def _flag(value, name: str, missing: list) -> bool:
    if value is None:
        missing.append(name)
        return False
    return bool(value)


def normalize_token(token: Token, as_of: Optional[datetime] = None) -> TokenSnapshot:
    """Produce a fully populated :class:`TokenSnapshot` for ``token``."""
    now = parse_timestamp(as_of) or datetime.now(timezone.utc)
    missing: list = []

    sec = token.security_flags
    liq = token.liquidity_info
    hold = token.holder_analysis
    price = token.price_info
    meta = token.metadata or {}

    unlimited = bool(sec.has_unlimited_minting)
    pausable = bool(sec.has_pausable_functionality)

    if token.created_at is None:
        missing.append("created_at")
        age_hours = 0.0
    else:
        age_hours = max(0.0, (now - token.created_at).total_seconds() / 3600.0)

    days_to_unlock = None
    if liq.lp_unlock_time is not None:
        days_to_unlock = (liq.lp_unlock_time - now).total_seconds() / 86400.0

    return TokenSnapshot(
        mint_address=token.mint_address,
        symbol=token.label,
        as_of=now,
        has_mint_authority=sec.mint_authority is not None or unlimited,
        has_freeze_authority=sec.freeze_authority is not None or pausable,
        has_unlimited_minting=unlimited,
        has_pausable_functionality=pausable,
        has_blacklist=bool(sec.has_blacklist),
        ownership_renounced=_flag(sec.ownership_renounced, "ownership_renounced", missing),
        is_honeypot=bool(sec.is_honeypot),
        has_rug_pull_risk=bool(sec.has_rug_pull_risk),
        liquidity_usd=_num(liq.total_liquidity_usd, "total_liquidity_usd", missing),
        lp_locked=_flag(liq.lp_tokens_locked, "lp_tokens_locked", missing),
        lp_unlock_time=liq.lp_unlock_time,
        days_to_unlock=days_to_unlock,
        total_holders=int(_num(hold.total_holders, "total_holders", missing)),
        top_holders_concentration=_num(
            hold.top_holders_concentration, "top_holders_concentration", missing
        ),
        dev_wallet_percentage=_num(hold.dev_wallet_percentage, "dev_wallet_percentage", missing),
        burned_percentage=_num(hold.burned_percentage, "burned_percentage", missing),
        lp_percentage=_num(hold.lp_percentage, "lp_percentage", missing),
        top_holders=tuple(hold.top_holders or ()),
        price_usd=_num(price.current_price_usd, "current_price_usd", missing),
        price_change_24h=_num(price.price_change_24h, "price_change_24h", missing),
        volume_24h_usd=_num(price.volume_24h_usd, "volume_24h_usd", missing),
        market_cap_usd=_num(price.market_cap_usd, "market_cap_usd", missing),
        age_hours=age_hours,
        has_description=bool(token.description),
        has_image=bool(token.image),
        has_website=bool(meta.get("website")),
        has_twitter=bool(meta.get("twitter")),
        has_telegram=bool(meta.get("telegram")),
        missing_fields=tuple(missing),
    )
