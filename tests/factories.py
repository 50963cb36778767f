"""Token builders shared by the tests."""

from datetime import datetime, timedelta, timezone

from token_sentinel.token import (
    HolderDistribution,
    LiquidityInfo,
    PriceInfo,
    SecurityFlags,
    Token,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_safe_token(mint: str = "SafeMint1111", **overrides) -> Token:
    """A renounced, well-distributed, locked token with full socials."""
    token = Token(
        mint_address=mint,
        symbol="SAFE",
        name="Safe Token",
        description="Community token",
        image="https://example.org/safe.png",
        created_at=NOW - timedelta(days=30),
        security_flags=SecurityFlags(
            mint_authority=None,
            freeze_authority=None,
            ownership_renounced=True,
            has_unlimited_minting=False,
            has_blacklist=False,
            has_pausable_functionality=False,
        ),
        liquidity_info=LiquidityInfo(total_liquidity_usd=50000.0, lp_tokens_locked=True),
        holder_analysis=HolderDistribution(
            total_holders=500,
            top_holders_concentration=0.1,
            dev_wallet_percentage=0.0,
            burned_percentage=0.0,
            lp_percentage=0.8,
        ),
        price_info=PriceInfo(
            current_price_usd=0.01,
            price_change_24h=5.0,
            volume_24h_usd=10000.0,
            market_cap_usd=1_000_000.0,
        ),
        metadata={"website": "https://example.org", "twitter": "@safe"},
    )
    return token.apply_patch(overrides) if overrides else token


def make_risky_token(mint: str = "RiskyMint2222", **overrides) -> Token:
    """Thin, unlocked pool with a handful of holders and no volume data."""
    token = Token(
        mint_address=mint,
        symbol="RISK",
        liquidity_info=LiquidityInfo(total_liquidity_usd=300.0, lp_tokens_locked=False),
        holder_analysis=HolderDistribution(total_holders=5),
    )
    return token.apply_patch(overrides) if overrides else token


def make_log(
    mint: str,
    action: str = "monitor",
    would_invest: bool = True,
    amount=500.0,
    risk_score: float = 0.2,
    risk_level: str = "low",
    timestamp: datetime = None,
    profile: str = "moderate",
):
    """Build a :class:`SimulationLog` without running the simulator."""
    from token_sentinel.records import SimulationAction, SimulationDecision, SimulationLog
    from token_sentinel.token import RiskLevel

    return SimulationLog(
        token_mint_address=mint,
        simulation_timestamp=timestamp or NOW,
        risk_score=risk_score,
        risk_level=RiskLevel(risk_level),
        decision=SimulationDecision(
            action=SimulationAction(action),
            confidence=0.7,
            reasoning="test",
            would_invest=would_invest,
            max_investment_usd=amount,
        ),
        profile=profile,
    )
