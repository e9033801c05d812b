#!/usr/bin/env python3
"""
Odd Scout - Main Application Entry Point.

Value bet detection across two bookmaking feeds that:
1. Loads event listings from both feeds
2. Matches listings that describe the same match
3. Converts the sharp feed's odds to bias-corrected probabilities
4. Flags outcomes the bettable feed overpays

Usage:
    odd-scout scan --reference betby.json --candidates pinnacle.json
    odd-scout compare 2.10 3.40 3.20
    odd-scout compare --scenarios
    odd-scout watch
    odd-scout recent --limit 20
"""

import argparse
import signal
import sys
import threading
from datetime import timedelta
from decimal import Decimal
from typing import Optional, Sequence

from loguru import logger
from rich.console import Console
from rich.table import Table

from odd_scout.betting.engine import ValueBetEngine
from odd_scout.betting.odds_converter import (
    COMMON_SCENARIOS,
    OddsValidationError,
    ProbabilityConverter,
    calculate_margin,
    inverse_probabilities,
)
from odd_scout.betting.value_scorer import ValueBetCandidate
from odd_scout.config.settings import Settings, get_settings
from odd_scout.data.sources.base import DataSourceError
from odd_scout.data.sources.json_source import JsonEventSource
from odd_scout.database.repository import ValueBetRepository
from odd_scout.logging_config import setup_logging

console = Console()


def _value_bets_table(bets: Sequence[ValueBetCandidate], title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Kickoff (UTC)", style="dim")
    table.add_column("League")
    table.add_column("Match")
    table.add_column("Pick", style="bold")
    table.add_column("Odd", justify="right")
    table.add_column("Fair", justify="right")
    table.add_column("Prob", justify="right")
    table.add_column("EV", justify="right", style="green")
    table.add_column("Conf", justify="right")

    for bet in bets:
        table.add_row(
            bet.kickoff.strftime("%Y-%m-%d %H:%M") if bet.kickoff else "-",
            bet.league,
            f"{bet.team1} vs {bet.team2}",
            bet.outcome.value,
            f"{bet.payout_odd:.2f}",
            f"{bet.reference_odd:.2f}",
            f"{bet.implied_probability:.1%}",
            f"{bet.expected_value:+.2%}",
            f"{bet.confidence_score:.0f}",
        )
    return table


def cmd_scan(args: argparse.Namespace, settings: Settings) -> int:
    """One-shot batch run over two JSON dumps."""
    sources = settings.sources
    reference_path = args.reference or sources.reference_path
    candidate_path = args.candidates or sources.candidate_path
    if reference_path is None or candidate_path is None:
        console.print("[red]Both --reference and --candidates are required[/red]")
        return 1

    reference = JsonEventSource(
        reference_path,
        source_name=sources.reference_name,
        timezone_name=sources.reference_timezone,
    )
    candidates = JsonEventSource(
        candidate_path,
        source_name=sources.candidate_name,
        timezone_name=sources.candidate_timezone,
    )

    min_ev = Decimal(args.min_ev) if args.min_ev is not None else None
    engine = ValueBetEngine.from_settings(settings, min_expected_value=min_ev)

    try:
        reference_events = reference.fetch_events()
        candidate_events = candidates.fetch_events()
    except DataSourceError as e:
        logger.error(f"Could not load events: {e}")
        return 1

    result = engine.scan(reference_events, candidate_events)

    console.print(_value_bets_table(result.value_bets, "Value Bets"))
    console.print(
        f"{result.events_scanned} events scanned, {result.matches_found} matched, "
        f"{result.events_skipped} skipped, {len(result.value_bets)} value bets "
        f"(total EV {ValueBetEngine.total_expected_value(result.value_bets):+.2%})"
    )

    if args.persist:
        repository = ValueBetRepository.from_url(settings.database_url)
        repository.persist_candidates(result.value_bets)
        repository.purge_stale(timedelta(hours=settings.value_detection.retention_hours))
    return 0


def _comparison_table(name: str, odds: Sequence[Decimal], converter: ProbabilityConverter) -> Table:
    comparison = converter.compare(odds)
    margin = calculate_margin(inverse_probabilities(odds))

    table = Table(title=f"{name} (margin {margin:.2%})")
    table.add_column("Odd", justify="right")
    table.add_column("Corrected", justify="right")
    table.add_column("Naive", justify="right")
    table.add_column("Diff", justify="right")
    for odd, corrected, naive in zip(odds, comparison.corrected, comparison.naive):
        table.add_row(
            f"{odd:.2f}",
            f"{corrected:.2%}",
            f"{naive:.2%}",
            f"{corrected - naive:+.2%}",
        )
    table.caption = f"Max difference {comparison.max_difference:.2%}"
    return table


def cmd_compare(args: argparse.Namespace, settings: Settings) -> int:
    """Corrected vs naive probabilities for given odds or built-in scenarios."""
    converter = ProbabilityConverter()

    if args.scenarios:
        for name, odds in COMMON_SCENARIOS.items():
            console.print(_comparison_table(name, odds, converter))
        return 0

    if not args.odds:
        console.print("[red]Provide at least two odds or --scenarios[/red]")
        return 1

    try:
        odds = [Decimal(o.replace(",", ".")) for o in args.odds]
        console.print(_comparison_table("Odds", odds, converter))
    except (OddsValidationError, ArithmeticError) as e:
        console.print(f"[red]Invalid odds: {e}[/red]")
        return 1
    return 0


def cmd_recent(args: argparse.Namespace, settings: Settings) -> int:
    """Print stored value bets."""
    repository = ValueBetRepository.from_url(settings.database_url)
    console.print(_value_bets_table(repository.list_recent(args.limit), "Stored Value Bets"))
    return 0


def cmd_watch(args: argparse.Namespace, settings: Settings) -> int:
    """Run the pipeline periodically until interrupted."""
    from odd_scout.scheduler import SchedulerOrchestrator, ValueBetPipeline

    try:
        pipeline = ValueBetPipeline.from_settings(settings)
    except ValueError as e:
        logger.error(str(e))
        return 1

    scheduler = SchedulerOrchestrator(
        pipeline,
        interval_minutes=args.interval or settings.scheduler.run_interval_minutes,
    )

    shutdown = threading.Event()

    def _signal_handler(signum, frame) -> None:
        logger.info("Shutdown signal received...")
        shutdown.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    scheduler.start()
    shutdown.wait()
    scheduler.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="odd-scout",
        description="Odd Scout - value bet detection across two bookmaking feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    odd-scout scan --reference betby.json --candidates pinnacle.json
    odd-scout scan --reference betby.json --candidates pinnacle.json --persist
    odd-scout compare 1.80 1.80 4.50
    odd-scout compare --scenarios
    odd-scout watch --interval 10
        """,
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Run one detection pass")
    scan.add_argument("--reference", help="JSON dump of the bettable feed")
    scan.add_argument("--candidates", help="JSON dump of the pricing feed")
    scan.add_argument("--min-ev", default=None, help="Minimum EV to accept (e.g. 0.02)")
    scan.add_argument("--persist", action="store_true", help="Store accepted bets")
    scan.set_defaults(handler=cmd_scan)

    compare = subparsers.add_parser("compare", help="Compare conversion methods")
    compare.add_argument("odds", nargs="*", help="Decimal odds")
    compare.add_argument("--scenarios", action="store_true", help="Use built-in scenarios")
    compare.set_defaults(handler=cmd_compare)

    watch = subparsers.add_parser("watch", help="Run the pipeline periodically")
    watch.add_argument("--interval", type=int, default=None, help="Minutes between runs")
    watch.set_defaults(handler=cmd_watch)

    recent = subparsers.add_parser("recent", help="Show stored value bets")
    recent.add_argument("--limit", type=int, default=50)
    recent.set_defaults(handler=cmd_recent)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    level = "DEBUG" if args.debug or settings.debug else settings.log_level
    setup_logging(level, settings.log_file)

    try:
        exit_code = args.handler(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
