"""
Periodic analysis and simulation cycles.

Each cycle type is guarded so at most one instance runs at a time; a timer
tick that finds its cycle still running is skipped, not queued. Failures for
a single token are logged and counted without affecting the rest of the
batch, while a failing store aborts the cycle until the next tick.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .config import SentinelConfig
from .risk.analysis_service import RiskAnalysisService
from .simulation.simulation_service import SimulationService
from .storage import TokenStore
from .token import RiskLevel, Token
from .utils.logger import LOG_DIR, setup_logger
from .utils.telemetry import telemetry

logger = setup_logger(__name__, LOG_DIR / "scheduler.log")


class CycleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class CycleGuard:
    """Idle/running state for one cycle type, entered with an atomic test-and-set."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()

    @property
    def state(self) -> CycleState:
        return CycleState.RUNNING if self._lock.locked() else CycleState.IDLE

    @property
    def is_running(self) -> bool:
        return self.state == CycleState.RUNNING

    def try_enter(self) -> bool:
        return self._lock.acquire(blocking=False)

    def exit(self) -> None:
        self._lock.release()


@dataclass
class CycleReport:
    cycle: str
    processed: int = 0
    failed: int = 0
    duration: float = 0.0
    aborted: bool = False
    error: Optional[str] = None


class SentinelScheduler:
    """Drives the analysis and simulation cycles on fixed intervals."""

    def __init__(
        self,
        store: TokenStore,
        config: Optional[SentinelConfig] = None,
        analysis_service: Optional[RiskAnalysisService] = None,
        simulation_service: Optional[SimulationService] = None,
    ) -> None:
        self.store = store
        self.config = config or SentinelConfig()
        self.analysis_service = analysis_service or RiskAnalysisService(store, self.config)
        self.simulation_service = simulation_service or SimulationService(store, self.config)
        self.analysis_guard = CycleGuard("analysis")
        self.simulation_guard = CycleGuard("simulation")
        self.analysis_service.cycle_guard = self.analysis_guard
        self.simulation_service.cycle_guard = self.simulation_guard

        self.running = False
        self.timer_tasks: List[asyncio.Task] = []
        self.cycle_tasks: "set[asyncio.Task]" = set()

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------
    async def run_analysis_cycle(self) -> Optional[CycleReport]:
        if not self.analysis_guard.try_enter():
            telemetry.inc("scheduler.analysis.skipped")
            logger.debug("Analysis cycle already running, skipping tick")
            return None

        start = time.perf_counter()
        report = CycleReport(cycle="analysis")
        try:
            try:
                tokens = await self.store.get_tokens_requiring_reanalysis(
                    self.config.reanalysis_max_age
                )
            except Exception as exc:
                logger.error(f"Analysis cycle aborted, store unavailable: {exc}")
                telemetry.inc("scheduler.analysis.aborted")
                report.aborted = True
                report.error = str(exc)
                return report

            if not tokens:
                return report

            logger.info(f"Analyzing {len(tokens)} tokens...")
            size = self.config.batch_size
            for i in range(0, len(tokens), size):
                batch = tokens[i : i + size]
                results = await asyncio.gather(*(self._analyze_safely(t) for t in batch))
                report.processed += sum(1 for ok in results if ok)
                report.failed += sum(1 for ok in results if not ok)
                if i + size < len(tokens):
                    await asyncio.sleep(self.config.batch_delay)

            logger.info(
                f"Completed analysis of {len(tokens)} tokens "
                f"({report.failed} failed)"
            )
            return report
        finally:
            report.duration = time.perf_counter() - start
            telemetry.gauge("scheduler.analysis.duration", report.duration)
            self.analysis_guard.exit()

    async def _analyze_safely(self, token: Token) -> bool:
        try:
            await self.analysis_service.analyze_and_store(token)
            return True
        except Exception as exc:
            logger.error(f"Analysis failed for {token.label}: {exc}")
            return False

    async def run_simulation_cycle(self) -> Optional[CycleReport]:
        if not self.simulation_guard.try_enter():
            telemetry.inc("scheduler.simulation.skipped")
            logger.debug("Simulation cycle already running, skipping tick")
            return None

        start = time.perf_counter()
        report = CycleReport(cycle="simulation")
        try:
            try:
                tokens = await self.store.get_tokens_by_risk_level(
                    RiskLevel(self.config.simulation_risk_level),
                    self.config.simulation_token_limit,
                )
            except Exception as exc:
                logger.error(f"Simulation cycle aborted, store unavailable: {exc}")
                telemetry.inc("scheduler.simulation.aborted")
                report.aborted = True
                report.error = str(exc)
                return report

            for token in tokens:
                try:
                    await self.simulation_service.simulate_token_response(
                        token, profile=self.config.simulation_profile
                    )
                    report.processed += 1
                except Exception as exc:
                    logger.error(f"Simulation failed for {token.label}: {exc}")
                    report.failed += 1

            if report.processed:
                logger.info(f"Completed {report.processed} token simulations")
            self.simulation_service.last_run = datetime.now(timezone.utc)
            return report
        finally:
            report.duration = time.perf_counter() - start
            telemetry.gauge("scheduler.simulation.duration", report.duration)
            self.simulation_guard.exit()

    async def run_once(self) -> List[Optional[CycleReport]]:
        analysis = await self.run_analysis_cycle()
        simulation = await self.run_simulation_cycle()
        return [analysis, simulation]

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    async def start(self):
        """Start the timer loops for both cycles."""
        self.running = True
        self.timer_tasks = [
            asyncio.create_task(self._timer_loop(self.run_analysis_cycle, self.config.analysis_interval)),
            asyncio.create_task(self._timer_loop(self.run_simulation_cycle, self.config.simulation_interval)),
        ]
        logger.info(
            f"Scheduler started (analysis every {self.config.analysis_interval}s, "
            f"simulation every {self.config.simulation_interval}s)"
        )

    async def stop(self):
        """Cancel the timers and any cycle still in flight."""
        self.running = False
        tasks = list(self.timer_tasks) + list(self.cycle_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.timer_tasks = []
        self.cycle_tasks.clear()
        logger.info("Scheduler stopped")

    async def _timer_loop(self, cycle, interval: float):
        while self.running:
            # Overlapping ticks are rejected by the cycle guard
            task = asyncio.create_task(cycle())
            self.cycle_tasks.add(task)
            task.add_done_callback(self.cycle_tasks.discard)
            await asyncio.sleep(interval)
