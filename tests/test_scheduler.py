"""Tests for the cycle scheduler."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from token_sentinel.config import SentinelConfig
from token_sentinel.scheduler import CycleGuard, CycleState, SentinelScheduler
from token_sentinel.token import RiskLevel
from token_sentinel.utils.telemetry import telemetry

from factories import make_risky_token, make_safe_token


async def seed_tokens(store, count, **overrides):
    for i in range(count):
        await store.save_token(make_safe_token(f"mint{i:02d}", **overrides))


class TestCycleGuard:
    """Test the idle/running guard."""

    def test_enter_and_exit(self):
        guard = CycleGuard("analysis")
        assert guard.state == CycleState.IDLE

        assert guard.try_enter()
        assert guard.is_running
        assert not guard.try_enter()

        guard.exit()
        assert guard.state == CycleState.IDLE
        assert guard.try_enter()


class TestAnalysisCycle:
    """Test the analysis cycle."""

    @pytest.mark.asyncio
    async def test_analyses_due_tokens(self, store, config):
        await seed_tokens(store, 3)
        scheduler = SentinelScheduler(store, config)

        report = await scheduler.run_analysis_cycle()

        assert report.cycle == "analysis"
        assert report.processed == 3
        assert report.failed == 0
        assert len(store.analyses) == 3
        assert not scheduler.analysis_guard.is_running

    @pytest.mark.asyncio
    async def test_nothing_due(self, store, config):
        report = await SentinelScheduler(store, config).run_analysis_cycle()
        assert report.processed == 0

    @pytest.mark.asyncio
    async def test_overlapping_cycle_skipped(self, store, config):
        scheduler = SentinelScheduler(store, config)
        scheduler.analysis_guard.try_enter()

        assert await scheduler.run_analysis_cycle() is None
        assert telemetry.get("scheduler.analysis.skipped") == 1
        assert scheduler.analysis_service.is_analyzing

    @pytest.mark.asyncio
    async def test_concurrent_ticks_run_once(self, store, config):
        await seed_tokens(store, 2)
        scheduler = SentinelScheduler(store, config)

        async def slow_analysis(token):
            await asyncio.sleep(0.05)

        with patch.object(scheduler.analysis_service, "analyze_and_store", side_effect=slow_analysis):
            first, second = await asyncio.gather(
                scheduler.run_analysis_cycle(), scheduler.run_analysis_cycle()
            )

        assert first.processed == 2
        assert second is None

    @pytest.mark.asyncio
    async def test_batches_bound_concurrency(self, store):
        config = SentinelConfig(batch_size=5, batch_delay=0.0)
        await seed_tokens(store, 12)
        scheduler = SentinelScheduler(store, config)
        active = 0
        peak = 0

        async def tracked(token):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        with patch.object(scheduler.analysis_service, "analyze_and_store", side_effect=tracked):
            report = await scheduler.run_analysis_cycle()

        assert report.processed == 12
        assert peak == 5

    @pytest.mark.asyncio
    async def test_delay_between_batches_only(self, store):
        config = SentinelConfig(batch_size=5, batch_delay=0.25)
        await seed_tokens(store, 12)
        scheduler = SentinelScheduler(store, config)
        events = []

        async def analyzed(token):
            events.append("token")

        async def slept(delay):
            events.append(("sleep", delay))

        with patch.object(scheduler.analysis_service, "analyze_and_store", side_effect=analyzed), \
                patch("token_sentinel.scheduler.asyncio.sleep", side_effect=slept) as sleep:
            report = await scheduler.run_analysis_cycle()

        assert report.processed == 12
        assert sleep.await_count == 2
        assert all(call.args == (0.25,) for call in sleep.await_args_list)
        # Batches of 5, 5 and 2 with no delay after the last one
        assert events == (
            ["token"] * 5 + [("sleep", 0.25)] + ["token"] * 5 + [("sleep", 0.25)] + ["token"] * 2
        )

    @pytest.mark.asyncio
    async def test_token_failure_isolated(self, store, config):
        await seed_tokens(store, 4)
        scheduler = SentinelScheduler(store, config)
        original = scheduler.analysis_service.analyze_and_store

        async def flaky(token):
            if token.mint_address == "mint01":
                raise RuntimeError("rpc timeout")
            return await original(token)

        with patch.object(scheduler.analysis_service, "analyze_and_store", side_effect=flaky):
            report = await scheduler.run_analysis_cycle()

        assert report.processed == 3
        assert report.failed == 1
        assert (await store.get_token("mint01")).risk_score is None

    @pytest.mark.asyncio
    async def test_store_failure_aborts_cycle(self, store, config):
        scheduler = SentinelScheduler(store, config)
        store.get_tokens_requiring_reanalysis = AsyncMock(side_effect=ConnectionError("db down"))

        report = await scheduler.run_analysis_cycle()

        assert report.aborted
        assert "db down" in report.error
        assert telemetry.get("scheduler.analysis.aborted") == 1
        # Next tick is free to run
        assert not scheduler.analysis_guard.is_running


class TestSimulationCycle:
    """Test the simulation cycle."""

    @pytest.mark.asyncio
    async def test_simulates_medium_risk_tokens(self, store, config):
        await seed_tokens(store, 2, risk_score=0.45, risk_level="medium")
        await store.save_token(make_risky_token(risk_score=0.79, risk_level="high"))
        scheduler = SentinelScheduler(store, config)

        report = await scheduler.run_simulation_cycle()

        assert report.processed == 2
        assert len(store.simulation_logs) == 2
        assert {l.risk_level for l in store.simulation_logs} == {RiskLevel.MEDIUM}
        assert scheduler.simulation_service.last_run is not None

    @pytest.mark.asyncio
    async def test_token_limit(self, store):
        await seed_tokens(store, 5, risk_score=0.45, risk_level="medium")
        scheduler = SentinelScheduler(store, SentinelConfig(simulation_token_limit=3))

        report = await scheduler.run_simulation_cycle()
        assert report.processed == 3

    @pytest.mark.asyncio
    async def test_overlapping_cycle_skipped(self, store, config):
        scheduler = SentinelScheduler(store, config)
        scheduler.simulation_guard.try_enter()

        assert await scheduler.run_simulation_cycle() is None
        assert scheduler.simulation_service.get_simulation_status()["is_running"]


class TestSchedulerLifecycle:
    """Test run_once and the timer loops."""

    @pytest.mark.asyncio
    async def test_run_once(self, store, config):
        await seed_tokens(store, 2)
        scheduler = SentinelScheduler(store, config)

        analysis, simulation = await scheduler.run_once()

        assert analysis.processed == 2
        assert simulation.cycle == "simulation"

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store):
        await seed_tokens(store, 1)
        config = SentinelConfig(analysis_interval=3600, simulation_interval=3600, batch_delay=0.0)
        scheduler = SentinelScheduler(store, config)

        await scheduler.start()
        await asyncio.sleep(0.2)
        await scheduler.stop()

        assert (await store.get_token("mint00")).analysis_count == 1
        assert scheduler.timer_tasks == []
        assert not scheduler.running
