"""Tests for per-token analysis orchestration."""

from unittest.mock import patch

import pytest

from token_sentinel.errors import AnalyzerFailure, TokenNotFoundError
from token_sentinel.risk.analysis_service import RiskAnalysisService
from token_sentinel.token import RiskLevel
from token_sentinel.utils.telemetry import telemetry

from factories import make_risky_token, make_safe_token


class TestAnalyzeToken:
    """Test analysis without persistence."""

    @pytest.mark.asyncio
    async def test_runs_all_analyzers(self, store, config):
        service = RiskAnalysisService(store, config)
        outcome = await service.analyze_token(make_safe_token())

        assert outcome.risk_assessment.risk_level == RiskLevel.LOW
        assert [r.test_name for r in outcome.analysis_results] == [
            "honeypot_detection",
            "rugpull_detection",
            "liquidity_analysis",
            "holder_analysis",
        ]
        assert all(r.passed for r in outcome.analysis_results)
        # Nothing persisted
        assert store.analyses == []

    @pytest.mark.asyncio
    async def test_collects_reasons_from_every_analyzer(self, store, config):
        service = RiskAnalysisService(store, config)
        outcome = await service.analyze_token(make_risky_token())

        assert "Very low liquidity detected" in outcome.risk_reasons
        assert "Extremely low liquidity depth" in outcome.risk_reasons
        assert "Very few token holders" in outcome.risk_reasons
        assert outcome.component_results.honeypot.is_honeypot

    @pytest.mark.asyncio
    async def test_analyzer_exception_wrapped(self, store, config):
        service = RiskAnalysisService(store, config)
        with patch.object(service.liquidity_analyzer, "analyze", side_effect=ZeroDivisionError("boom")):
            with pytest.raises(AnalyzerFailure) as exc_info:
                await service.analyze_token(make_safe_token())

        assert exc_info.value.analyzer == "liquidity_analysis"
        assert "boom" in str(exc_info.value)


class TestAnalyzeAndStore:
    """Test persistence of analyses."""

    @pytest.mark.asyncio
    async def test_updates_token_and_saves_record(self, store, config):
        token = make_risky_token()
        await store.save_token(token)
        service = RiskAnalysisService(store, config)

        outcome = await service.analyze_and_store(token)
        stored = await store.get_token(token.mint_address)

        assert stored.risk_score == pytest.approx(outcome.risk_assessment.overall_risk_score)
        assert stored.risk_level == RiskLevel.HIGH
        assert stored.analysis_count == 1
        assert stored.last_analyzed_at is not None
        assert stored.security_flags.is_honeypot is True
        assert stored.security_flags.has_rug_pull_risk is True
        assert len(stored.risk_reasons) <= 10

        record = store.analyses[-1]
        assert record.token_mint_address == token.mint_address
        assert record.analysis_version == "1.0"
        assert len(record.flagged_reasons) == 5
        assert not record.is_reanalysis
        assert record.previous_risk_score is None
        assert "risk_assessment" in record.raw_data
        assert telemetry.get("analysis.completed") == 1

    @pytest.mark.asyncio
    async def test_reanalysis_tracks_previous_score(self, store, config):
        token = make_safe_token(risk_score=0.5, analysis_count=2)
        await store.save_token(token)
        service = RiskAnalysisService(store, config)

        await service.analyze_and_store(token)
        record = store.analyses[-1]

        assert record.is_reanalysis
        assert record.previous_risk_score == 0.5
        assert (await store.get_token(token.mint_address)).analysis_count == 3

    @pytest.mark.asyncio
    async def test_upserts_unknown_token(self, store, config):
        service = RiskAnalysisService(store, config)
        token = make_safe_token()

        await service.analyze_and_store(token)
        assert (await store.get_token(token.mint_address)).risk_level == RiskLevel.LOW

    @pytest.mark.asyncio
    async def test_failure_leaves_previous_assessment(self, store, config):
        token = make_safe_token(risk_score=0.1, risk_level="low")
        await store.save_token(token)
        service = RiskAnalysisService(store, config)

        with patch.object(service.holder_analyzer, "analyze", side_effect=RuntimeError("rpc down")):
            with pytest.raises(AnalyzerFailure):
                await service.analyze_and_store(token)

        stored = await store.get_token(token.mint_address)
        assert stored.risk_score == 0.1
        assert store.analyses == []
        assert telemetry.get("analysis.failed") == 1


class TestAnalyzeMint:
    """Test lookups by mint address."""

    @pytest.mark.asyncio
    async def test_unknown_mint_raises(self, store, config):
        service = RiskAnalysisService(store, config)
        with pytest.raises(TokenNotFoundError):
            await service.analyze_mint("missing")

    @pytest.mark.asyncio
    async def test_known_mint(self, store, config):
        await store.save_token(make_safe_token())
        service = RiskAnalysisService(store, config)

        outcome = await service.analyze_mint("SafeMint1111")
        assert outcome.token.analysis_count == 1

    @pytest.mark.asyncio
    async def test_stats(self, store, config):
        await store.save_token(make_safe_token())
        await store.save_token(make_risky_token())
        service = RiskAnalysisService(store, config)
        await service.analyze_mint("SafeMint1111")
        await service.analyze_mint("RiskyMint2222")

        stats = await service.get_analysis_stats()
        assert stats["total_tokens"] == 2
        assert stats["risk_distribution"]["low"] == 1
        assert stats["risk_distribution"]["high"] == 1
        assert stats["high_risk_tokens"] == 1
        assert stats["is_analyzing"] is False

    @pytest.mark.asyncio
    async def test_history_newest_first(self, store, config):
        await store.save_token(make_safe_token())
        service = RiskAnalysisService(store, config)
        first = await service.analyze_mint("SafeMint1111")
        await service.analyze_mint("SafeMint1111")

        history = await service.get_analysis_history("SafeMint1111")
        assert len(history) == 2
        assert history[0].is_reanalysis is True
        assert history[1].previous_risk_score is None
        assert history[1].overall_risk_score == first.risk_assessment.overall_risk_score

    @pytest.mark.asyncio
    async def test_history_unknown_mint_raises(self, store, config):
        service = RiskAnalysisService(store, config)
        with pytest.raises(TokenNotFoundError):
            await service.get_analysis_history("missing")
