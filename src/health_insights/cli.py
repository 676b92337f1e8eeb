"""CLI for computing, backfilling, and showing daily insights."""

import argparse
import asyncio
import json
import sys
from datetime import date, datetime, timedelta

from .config import Settings, get_settings
from .engine import InsightEngine
from .errors import InsightsError
from .logging import setup_logging
from .models import InsightSummary
from .registry import MetricCatalog
from .sources.influx import InfluxMetricSource
from .store import InsightStore
from .tracing import setup_tracing
from .window import load_timezone, parse_local_date


def build_engine(settings: Settings) -> tuple[InsightEngine, InsightStore]:
    """Wire the engine to InfluxDB and the SQLite store."""
    source = InfluxMetricSource(settings.influxdb, MetricCatalog(), settings.insights)
    store = InsightStore(settings.store.path, busy_timeout_ms=settings.store.busy_timeout_ms)
    engine = InsightEngine(settings.insights, discovery=source, reader=source, store=store)
    return engine, store


def _print_summaries(local_date: str, summaries: list[InsightSummary], as_json: bool) -> None:
    if as_json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return
    if not summaries:
        print(f"{local_date}: no insights")
        return
    print(f"{local_date}: {len(summaries)} insight(s)")
    for s in summaries:
        print(f"  [{s.severity.value:<11}] {s.score:.2f}  {s.family.value:<16} {s.title}")
        print(f"      {s.message}")


def _today(timezone: str) -> date:
    return datetime.now(load_timezone(timezone)).date()


async def _compute(settings: Settings, user_id: str, day: date | None, tz: str, as_json: bool) -> None:
    engine, _ = build_engine(settings)
    local_date = day or _today(tz)
    summaries = await engine.compute_daily_insights(user_id, local_date.isoformat(), tz)
    _print_summaries(local_date.isoformat(), summaries, as_json)


async def _backfill(settings: Settings, user_id: str, start: date, end: date, tz: str) -> int:
    """Recompute each day in ``[start, end]``; returns the number of failed days."""
    engine, _ = build_engine(settings)
    failures = 0
    current = start
    while current <= end:
        try:
            summaries = await engine.compute_daily_insights(user_id, current.isoformat(), tz)
            print(f"{current.isoformat()}: {len(summaries)} insight(s)")
        except InsightsError as e:
            failures += 1
            print(f"{current.isoformat()}: failed: {e}", file=sys.stderr)
        current += timedelta(days=1)
    print(f"\nBackfilled {(end - start).days + 1} day(s), {failures} failed")
    return failures


async def _show(settings: Settings, user_id: str, day: date, as_json: bool) -> None:
    store = InsightStore(settings.store.path, busy_timeout_ms=settings.store.busy_timeout_ms)
    rows = await store.list_day(user_id, day.isoformat())
    _print_summaries(day.isoformat(), [row.to_summary() for row in rows], as_json)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Usage:
        health-insights compute --user U [--date 2024-01-15] [--tz Australia/Perth] [--json]
        health-insights backfill --user U --start 2024-01-01 --end 2024-01-15 [--tz TZ]
        health-insights show --user U --date 2024-01-15 [--json]
    """
    parser = argparse.ArgumentParser(description="Daily health insights")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compute_parser = subparsers.add_parser("compute", help="Compute insights for one day")
    compute_parser.add_argument("--user", required=True, help="User identifier")
    compute_parser.add_argument(
        "--date",
        type=parse_local_date,
        default=None,
        help="Local date (YYYY-MM-DD, default: today in --tz)",
    )
    compute_parser.add_argument("--tz", default=None, help="IANA timezone")
    compute_parser.add_argument("--json", action="store_true", help="Output as JSON")

    backfill_parser = subparsers.add_parser("backfill", help="Recompute a range of days")
    backfill_parser.add_argument("--user", required=True, help="User identifier")
    backfill_parser.add_argument(
        "--start", type=parse_local_date, required=True, help="Start date (YYYY-MM-DD)"
    )
    backfill_parser.add_argument(
        "--end", type=parse_local_date, required=True, help="End date (YYYY-MM-DD)"
    )
    backfill_parser.add_argument("--tz", default=None, help="IANA timezone")

    show_parser = subparsers.add_parser("show", help="Show stored insights for one day")
    show_parser.add_argument("--user", required=True, help="User identifier")
    show_parser.add_argument(
        "--date", type=parse_local_date, required=True, help="Local date (YYYY-MM-DD)"
    )
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.app, debug=settings.insights.debug)
    setup_tracing(settings.tracing)

    try:
        if args.command == "compute":
            tz = args.tz or settings.insights.default_timezone
            asyncio.run(_compute(settings, args.user, args.date, tz, args.json))
        elif args.command == "backfill":
            if args.start > args.end:
                print("Error: start date must be before or equal to end date", file=sys.stderr)
                sys.exit(1)
            tz = args.tz or settings.insights.default_timezone
            if asyncio.run(_backfill(settings, args.user, args.start, args.end, tz)):
                sys.exit(1)
        elif args.command == "show":
            asyncio.run(_show(settings, args.user, args.date, args.json))
    except InsightsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
