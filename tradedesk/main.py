from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

import httpx

from tradedesk.data.providers import DashboardApiClient, IOrderSource, JsonFileOrderSource
from tradedesk.trading.analytics import PerformanceAnalytics
from tradedesk.trading.report import ReportSerializer, build_report_from_records
from tradedesk.trading.validation import OrderValidationError
from tradedesk.trading.windows import parse_window
from tradedesk.util.settings import AppSettings

logger = logging.getLogger(__name__)

WINDOW_KEYS = ["all", "today", "week", "month", "lastMonth", "custom"]


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tradedesk", description="Trade pairing and performance reports")
    sub = ap.add_subparsers(dest="command", required=True)

    rep = sub.add_parser("report", help="Pair orders and print a JSON performance report")
    src = rep.add_mutually_exclusive_group()
    src.add_argument("--source", help="Dashboard backend URL (default: TRADEDESK_API_URL)")
    src.add_argument("--file", help="Read order records from a JSON file instead of the backend")
    rep.add_argument("--window", choices=WINDOW_KEYS, help="Reporting window (default: all, or custom with --from/--to)")
    rep.add_argument("--from", dest="date_from", type=date.fromisoformat, help="Custom range start, YYYY-MM-DD")
    rep.add_argument("--to", dest="date_to", type=date.fromisoformat, help="Custom range end, YYYY-MM-DD")
    rep.add_argument("--strict", action="store_true", help="Fail on the first malformed record")
    rep.add_argument("--csv", help="Also export the listed pairs to this CSV file")

    trends = sub.add_parser("trends", help="Print the pre-computed Super-Trend readings")
    trends.add_argument("--source", help="Dashboard backend URL (default: TRADEDESK_API_URL)")

    sett = sub.add_parser("settings", help="Print backend health and the live-orders setting")
    sett.add_argument("--source", help="Dashboard backend URL (default: TRADEDESK_API_URL)")
    return ap


def _make_client(settings: AppSettings, source: Optional[str]) -> DashboardApiClient:
    return DashboardApiClient(
        base_url=source or settings.api_url,
        token=settings.api_token,
        timeout_s=settings.timeout_s,
    )


def _run_report(args: argparse.Namespace, settings: AppSettings) -> int:
    window = parse_window(args.window, args.date_from, args.date_to)

    order_source: IOrderSource
    if args.file:
        order_source = JsonFileOrderSource(args.file)
    else:
        order_source = _make_client(settings, args.source)

    try:
        records = order_source.get_orders()
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.error(f"Failed to load orders: {e}")
        return 2
    finally:
        if isinstance(order_source, DashboardApiClient):
            order_source.close()

    try:
        report = build_report_from_records(records, window=window, strict=args.strict)
    except OrderValidationError as e:
        logger.error(str(e))
        return 1

    if args.csv:
        try:
            PerformanceAnalytics().export_pairs_to_csv(list(report.pairs), args.csv)
        except OSError as e:
            logger.error(f"Failed to write {args.csv}: {e}")
            return 2

    print(json.dumps(ReportSerializer.serialize(report), indent=2))
    return 0


def _run_trends(args: argparse.Namespace, settings: AppSettings) -> int:
    try:
        with _make_client(settings, args.source) as client:
            points = client.get_super_trend()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to load Super-Trend data: {e}")
        return 2

    rows = [
        {
            "id": p.id,
            "value": str(p.value),
            "direction": p.direction.value,
            "created_at": p.created_at.isoformat(),
        }
        for p in sorted(points, key=lambda p: p.created_at, reverse=True)
    ]
    print(json.dumps(rows, indent=2))
    return 0


def _run_settings(args: argparse.Namespace, settings: AppSettings) -> int:
    try:
        with _make_client(settings, args.source) as client:
            health = client.health_check()
            order_settings = client.get_settings()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to load backend settings: {e}")
        return 2

    print(json.dumps({
        "health": health,
        "settings": {
            "id": order_settings.id,
            "record_id": order_settings.record_id,
            "live_orders_allowed": order_settings.live_orders_allowed,
        },
    }, indent=2))
    return 0


def _resolve_window_key(ap: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    dated = args.date_from is not None or args.date_to is not None
    if args.window is None:
        args.window = "custom" if dated else "all"
    elif dated and args.window != "custom":
        ap.error("--from/--to can only be used with --window custom")


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)
    if args.command == "report":
        _resolve_window_key(ap, args)

    try:
        settings = AppSettings.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "report":
        return _run_report(args, settings)
    if args.command == "trends":
        return _run_trends(args, settings)
    return _run_settings(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
