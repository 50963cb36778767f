"""Tests for the defensive trading policy simulator."""

import dataclasses

import pytest

from token_sentinel.config import SentinelConfig
from token_sentinel.errors import ConfigError
from token_sentinel.records import SimulationAction
from token_sentinel.simulation.profiles import (
    PROFILES,
    MarketConditions,
    default_profile,
    get_profile,
)
from token_sentinel.simulation.response_simulator import ResponseSimulator, adjust_confidence

from factories import make_risky_token, make_safe_token

MODERATE = PROFILES["moderate"]
NEUTRAL = MarketConditions()


def simulate(token, profile=MODERATE, market=NEUTRAL, config=None):
    return ResponseSimulator(config).simulate_response(token, market, profile)


class TestProfiles:
    """Test profile presets."""

    def test_presets(self):
        assert PROFILES["conservative"].max_investment_usd == 500
        assert PROFILES["conservative"].risk_multiplier == 0.3
        assert PROFILES["moderate"].max_risk_score == 0.5
        assert PROFILES["aggressive"].require_lp_locked is False
        assert PROFILES["aggressive"].min_holders == 20

    def test_presets_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            PROFILES["moderate"].max_risk_score = 0.9
        with pytest.raises(TypeError):
            PROFILES["custom"] = MODERATE

    def test_default_profile_follows_config(self):
        profile = default_profile(SentinelConfig(min_liquidity_usd=2500, default_max_risk_score=0.45))
        assert profile.name == "default"
        assert profile.min_liquidity_usd == 2500
        assert profile.max_risk_score == 0.45
        assert profile.max_investment_usd == MODERATE.max_investment_usd

    def test_unknown_profile(self):
        with pytest.raises(ConfigError):
            get_profile("reckless")

    def test_unknown_sentiment(self):
        with pytest.raises(ConfigError):
            MarketConditions(overall_sentiment="euphoric")


class TestDecisionRules:
    """Test the ordered decision chain."""

    def test_safe_token_monitor_and_invest(self):
        decision = simulate(make_safe_token(risk_score=0.0))

        assert decision.action == SimulationAction.MONITOR
        assert decision.would_invest
        assert decision.max_investment_usd == pytest.approx(600.0)
        assert decision.confidence == pytest.approx(0.7)

    def test_honeypot_flag_always_avoid(self):
        decision = simulate(make_safe_token(risk_score=0.0, security_flags={"is_honeypot": True}))

        assert decision.action == SimulationAction.AVOID
        assert decision.confidence == pytest.approx(0.95)
        assert not decision.would_invest

    def test_critical_risk_avoid(self):
        decision = simulate(make_safe_token(risk_score=0.85))
        assert decision.action == SimulationAction.AVOID
        assert decision.confidence == pytest.approx(0.9)

    def test_unscored_token_treated_as_maximum_risk(self):
        decision = simulate(make_safe_token())
        assert decision.action == SimulationAction.AVOID
        assert "Critical risk score (100.0%)" in decision.reasoning

    def test_risk_above_profile_flagged(self):
        decision = simulate(make_safe_token(risk_score=0.55))
        assert decision.action == SimulationAction.FLAG
        assert decision.confidence == pytest.approx(0.8)

    def test_insufficient_liquidity(self):
        token = make_safe_token(risk_score=0.1, liquidity_info={"total_liquidity_usd": 4000.0})
        decision = simulate(token)
        assert decision.action == SimulationAction.AVOID
        assert decision.confidence == pytest.approx(0.8)

    def test_unlocked_lp_avoided_when_required(self):
        token = make_safe_token(risk_score=0.1, liquidity_info={"lp_tokens_locked": False})
        assert simulate(token).action == SimulationAction.AVOID
        assert simulate(token).confidence == pytest.approx(0.85)
        # Aggressive profile does not require a lock
        assert simulate(token, PROFILES["aggressive"]).action == SimulationAction.MONITOR

    def test_few_holders_investigate(self):
        token = make_safe_token(risk_score=0.1, holder_analysis={"total_holders": 30})
        decision = simulate(token)
        assert decision.action == SimulationAction.INVESTIGATE
        assert not decision.would_invest

    def test_risky_token_avoided(self):
        # Honeypot flag as written back by the analysis cycle
        token = make_risky_token(risk_score=0.79, security_flags={"is_honeypot": True})
        assert simulate(token).action == SimulationAction.AVOID

    def test_deterministic(self):
        token = make_safe_token(risk_score=0.2)
        assert simulate(token) == simulate(token)


class TestPositionSizing:
    """Test investment sizing."""

    def test_small_position_investigate(self):
        # base 600, adjusted 600 * 0.7 * 0.4 = 168 >= 120
        token = make_safe_token(risk_score=0.3, liquidity_info={"total_liquidity_usd": 20000.0})
        decision = simulate(token)

        assert decision.action == SimulationAction.INVESTIGATE
        assert decision.would_invest
        assert decision.max_investment_usd == pytest.approx(168.0)
        assert decision.confidence == pytest.approx(0.6)

    def test_too_small_position_monitor_only(self):
        # base 600, adjusted 600 * 0.55 * 0.12 = 39.6 < 120
        token = make_safe_token(risk_score=0.45, liquidity_info={"total_liquidity_usd": 6000.0})
        decision = simulate(token)

        assert decision.action == SimulationAction.MONITOR
        assert not decision.would_invest
        assert decision.confidence == pytest.approx(0.5)

    def test_position_scaled_by_pool_depth(self):
        # aggressive base 2000, adjusted 2000 * 1.0 * 0.04 = 80, pool cap 100
        token = make_safe_token(risk_score=0.0, liquidity_info={"total_liquidity_usd": 2000.0})
        decision = simulate(token, PROFILES["aggressive"])
        assert decision.max_investment_usd == pytest.approx(80.0)
        assert decision.max_investment_usd <= 2000.0 * 0.05
        assert not decision.would_invest


class TestMarketAdjustment:
    """Test confidence scaling by market conditions."""

    def test_bearish(self):
        assert adjust_confidence(0.7, MarketConditions(overall_sentiment="bearish")) == pytest.approx(0.56)

    def test_bullish_capped(self):
        assert adjust_confidence(0.95, MarketConditions(overall_sentiment="bullish")) == 1.0

    def test_high_volatility(self):
        market = MarketConditions(volatility_index=0.9)
        assert adjust_confidence(0.7, market) == pytest.approx(0.63)

    def test_applied_to_guard_decisions(self):
        token = make_safe_token(risk_score=0.0, security_flags={"is_honeypot": True})
        decision = simulate(token, market=MarketConditions(overall_sentiment="bearish"))
        assert decision.confidence == pytest.approx(0.76)
