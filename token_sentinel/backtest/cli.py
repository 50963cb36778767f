"""
Command-line interface for the token risk sentinel.

Operates on a JSON export of the token store: analyse tokens, simulate the
trading policy, backtest logged decisions or run the scheduler.
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..config import load_config
from ..errors import SentinelError
from ..risk.analysis_service import RiskAnalysisService
from ..scheduler import SentinelScheduler
from ..simulation.profiles import available_profiles
from ..simulation.simulation_service import SimulationService
from ..storage import InMemoryTokenStore
from ..token import parse_timestamp
from .backtester import Backtester

DEFAULT_STORE = "token_store.json"


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if verbose:
        for name, logger in logging.root.manager.loggerDict.items():
            if name.startswith("token_sentinel") and isinstance(logger, logging.Logger):
                logger.setLevel(logging.DEBUG)


def print_section(title: str):
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def print_backtest(result):
    print_section("BACKTEST RESULTS (synthetic returns)")
    print(f"Simulations:        {result.total_simulations}")
    print(f"Trades:             {result.total_trades}")
    print(f"Success rate:       {result.success_rate:.1%}")
    print(f"Average return:     ${result.avg_return:.2f}")
    print(f"Max drawdown:       {result.max_drawdown:.4f}")
    print(f"Sharpe ratio:       {result.sharpe_ratio:.4f}")
    print(f"Honeypots stopped:  {result.honeypots_stopped}")
    print(f"Rug pulls avoided:  {result.rug_pulls_avoided}")
    for reason, count in result.avoided_by_reason.items():
        print(f"  avoided ({reason:15s}): {count}")
    for level, stats in result.performance_by_risk_level.items():
        print(
            f"  {level:8s} trades={stats['trades']:3d} "
            f"total=${stats['total_return']:.2f} avg=${stats['avg_return']:.2f}"
        )


async def cmd_analyze(args, config, store):
    service = RiskAnalysisService(store, config)
    if args.mint:
        outcomes = [await service.analyze_mint(args.mint)]
    else:
        tokens = await store.get_tokens_requiring_reanalysis(config.reanalysis_max_age, limit=args.limit)
        outcomes = [await service.analyze_and_store(token) for token in tokens]

    print_section("RISK ANALYSIS")
    for outcome in outcomes:
        assessment = outcome.risk_assessment
        print(
            f"{outcome.snapshot.symbol:12s} {assessment.risk_level.value:8s} "
            f"score={assessment.overall_risk_score:.3f} {assessment.recommendation}"
        )
        if args.verbose:
            print(f"    {assessment.reasoning}")
            for concern in assessment.primary_concerns:
                print(f"    - {concern}")
    if not outcomes:
        print("No tokens require analysis.")


async def cmd_simulate(args, config, store):
    service = SimulationService(store, config)
    token = await store.get_token(args.mint)
    if token is None:
        print(f"Token not found: {args.mint}")
        return 1

    print_section(f"SIMULATION: {token.label}")
    if args.all_profiles:
        comparison = await service.simulate_multiple_profiles(token)
        for name, decision in comparison.profile_results.items():
            print(f"{name:12s} {decision.action.value:12s} confidence={decision.confidence:.2f}  {decision.reasoning}")
        print(json.dumps(comparison.consensus.to_dict(), indent=2))
    else:
        result = await service.simulate_token_response(token, profile=args.profile)
        print(json.dumps(result.decision.to_dict(), indent=2))
    return 0


async def cmd_backtest(args, config, store):
    if args.seed is not None:
        config = dataclasses.replace(config, backtest_seed=args.seed)
    if args.start or args.end:
        end = parse_timestamp(args.end) if args.end else datetime.now(timezone.utc)
        start = parse_timestamp(args.start) if args.start else end - timedelta(days=args.days)
        if start > end:
            raise ValueError("--start must not be later than --end")
        result = await Backtester(store, config).run_backtest(start, end, args.profile)
    else:
        service = SimulationService(store, config)
        result = await service.run_backtest(days=args.days, profile=args.profile)
    print_backtest(result)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
        print(f"\nResults saved to: {output_path}")


async def cmd_accuracy(args, config, store):
    accuracy = await Backtester(store, config).analyze_decision_accuracy()
    print_section(f"DECISION ACCURACY (last {config.accuracy_window_days} days)")
    print(json.dumps(accuracy.to_dict(), indent=2))


async def cmd_run(args, config, store):
    scheduler = SentinelScheduler(store, config)
    if args.cycles:
        for _ in range(args.cycles):
            for report in await scheduler.run_once():
                if report is not None:
                    print(
                        f"{report.cycle:10s} processed={report.processed} failed={report.failed} "
                        f"duration={report.duration:.2f}s{' (aborted)' if report.aborted else ''}"
                    )
        return
    await scheduler.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await scheduler.stop()


COMMANDS = {
    'analyze': cmd_analyze,
    'simulate': cmd_simulate,
    'backtest': cmd_backtest,
    'accuracy': cmd_accuracy,
    'run': cmd_run,
}


async def dispatch(args) -> int:
    config = load_config(args.config)
    store = InMemoryTokenStore.load_json(args.store)
    try:
        code = await COMMANDS[args.command](args, config, store)
    finally:
        if args.command != 'accuracy':
            store.dump_json(args.store)
    return code or 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Token security risk sentinel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyse every token due for reanalysis
  token-sentinel --store tokens.json analyze

  # Compare the three simulation profiles for one token
  token-sentinel --store tokens.json simulate --mint <address> --all-profiles

  # Backtest the last week of moderate-profile decisions
  token-sentinel --store tokens.json backtest --days 7 --profile moderate
        """
    )
    parser.add_argument('--config', '-c', help='Configuration file path (YAML)')
    parser.add_argument('--store', '-s', default=DEFAULT_STORE, help='Token store JSON file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    analyze_parser = subparsers.add_parser('analyze', help='Analyse tokens and store the results')
    analyze_parser.add_argument('--mint', help='Analyse a single token')
    analyze_parser.add_argument('--limit', type=int, default=50, help='Maximum tokens to analyse')

    simulate_parser = subparsers.add_parser('simulate', help='Simulate the response to one token')
    simulate_parser.add_argument('--mint', required=True, help='Token mint address')
    simulate_parser.add_argument(
        '--profile', default='moderate', choices=available_profiles() + ['default'],
        help='Simulation profile'
    )
    simulate_parser.add_argument('--all-profiles', action='store_true', help='Run every profile and report consensus')

    backtest_parser = subparsers.add_parser('backtest', help='Backtest logged simulation decisions')
    backtest_parser.add_argument('--days', type=int, default=30, help='Days of history to replay')
    backtest_parser.add_argument('--start', help='Range start (ISO-8601), overrides --days')
    backtest_parser.add_argument('--end', help='Range end (ISO-8601), defaults to now; without --start the range spans --days')
    backtest_parser.add_argument('--seed', type=int, help='Seed for the synthetic return model')
    backtest_parser.add_argument('--profile', choices=available_profiles() + ['default'], help='Only replay this profile')
    backtest_parser.add_argument('--output', help='Output file for results')

    subparsers.add_parser('accuracy', help='Score recent decisions against current token flags')

    run_parser = subparsers.add_parser('run', help='Run the analysis and simulation scheduler')
    run_parser.add_argument(
        '--cycles', type=int, default=0,
        help='Run both cycles this many times and exit (default: run until interrupted)'
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose)

    try:
        return asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 0
    except (SentinelError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
