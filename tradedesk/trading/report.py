"""End-to-end trade report: filter, group, match, aggregate.

Every call recomputes from the snapshot it is given. Nothing is cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .analytics import IPerformanceAnalytics, PerformanceAnalytics
from .grouping import group_by_instrument
from .matching import IOrderMatcher, PositionalMatcher, QuantityMatcher
from .models import AnalyticsSummary, Order, TradePair, ValidationIssue
from .pnl import pair_pnl, quantize_money
from .validation import OrderParser
from .windows import AllTime, WindowSpec, filter_orders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeReport:
    """Result of one reporting pass.

    Attributes:
        window: Reporting window the orders were filtered to
        orders: Orders inside the window, in input order
        pairs: Positional display pairs
        summary: Win/loss statistics from quantity-matched pairs
        realized_pnl: Realized PnL from quantity-matched pairs
        generated_at: Reference time the window was resolved against
        issues: Records rejected before matching
    """
    window: WindowSpec
    orders: Tuple[Order, ...]
    pairs: Tuple[TradePair, ...]
    summary: AnalyticsSummary
    realized_pnl: Decimal
    generated_at: datetime
    issues: Tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def open_positions(self) -> List[TradePair]:
        return [p for p in self.pairs if p.is_open]

    @property
    def orphan_sells(self) -> List[TradePair]:
        return [p for p in self.pairs if p.is_orphan]


def build_report(
    orders: Sequence[Order],
    window: WindowSpec = AllTime(),
    now: Optional[datetime] = None,
    issues: Iterable[ValidationIssue] = (),
    display_matcher: Optional[IOrderMatcher] = None,
    pnl_matcher: Optional[IOrderMatcher] = None,
    analytics: Optional[IPerformanceAnalytics] = None,
) -> TradeReport:
    """Build a trade report from an order snapshot.

    Args:
        orders: Order snapshot in any order
        window: Reporting window (default: all orders)
        now: Reference time for the window (default: current local time)
        issues: Validation issues to carry into the report
        display_matcher: Matcher for listed pairs (default: PositionalMatcher)
        pnl_matcher: Matcher for statistics (default: QuantityMatcher)
        analytics: Aggregator (default: PerformanceAnalytics)

    Returns:
        TradeReport with pairs, summary and realized PnL
    """
    if now is None:
        now = datetime.now().astimezone()
    display_matcher = display_matcher or PositionalMatcher()
    pnl_matcher = pnl_matcher or QuantityMatcher()
    analytics = analytics or PerformanceAnalytics()

    filtered = filter_orders(list(orders), window, now=now)
    groups = group_by_instrument(filtered)

    display_pairs = display_matcher.match_all(groups)
    pnl_pairs = pnl_matcher.match_all(groups)

    summary = analytics.aggregate(pnl_pairs)
    realized = analytics.total_realized_pnl(pnl_pairs)

    logger.info(
        f"Report: {len(filtered)} orders, {len(groups)} instruments, "
        f"{summary.total_trades} closed trades, realized PnL {realized}"
    )
    return TradeReport(
        window=window,
        orders=tuple(filtered),
        pairs=tuple(display_pairs),
        summary=summary,
        realized_pnl=realized,
        generated_at=now,
        issues=tuple(issues),
    )


def build_report_from_records(
    records: Iterable[Dict[str, Any]],
    window: WindowSpec = AllTime(),
    now: Optional[datetime] = None,
    strict: bool = False,
) -> TradeReport:
    """Validate raw records, then build a report from the valid ones.

    Raises:
        OrderValidationError: Only when strict is True
    """
    orders, issues = OrderParser().parse_many(records, strict=strict)
    return build_report(orders, window=window, now=now, issues=issues)


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _window_to_dict(window: WindowSpec) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": type(window).__name__}
    for name, value in vars(window).items():
        data[name] = value.isoformat() if hasattr(value, "isoformat") else value
    return data


class ReportSerializer:
    """Serializer for trade reports to JSON-compatible dictionaries."""

    @staticmethod
    def serialize_order(order: Order) -> dict:
        data = {
            "id": order.id,
            "side": order.side.value,
            "timestamp": order.timestamp.isoformat(),
            "instrument": order.instrument,
            "price": str(order.price),
            "quantity": str(order.quantity),
            "total_value": str(order.total_value),
            "status": order.status,
        }
        if order.super_trend_value is not None:
            data["super_trend_value"] = str(order.super_trend_value)
        return data

    @staticmethod
    def serialize_pair(pair: TradePair) -> dict:
        return {
            "instrument": pair.instrument,
            "status": pair.status.value,
            "buy": ReportSerializer.serialize_order(pair.buy) if pair.buy else None,
            "sell": ReportSerializer.serialize_order(pair.sell) if pair.sell else None,
            "pnl": _money(pair_pnl(pair)),
        }

    @staticmethod
    def serialize(report: TradeReport) -> dict:
        """Serialize a report to a JSON-compatible dictionary.

        Decimals become strings and timestamps ISO-8601 strings with offset;
        no float ever appears in the output.

        Args:
            report: Report to serialize

        Returns:
            Dictionary containing the serialized report
        """
        summary = report.summary
        return {
            "window": _window_to_dict(report.window),
            "generated_at": report.generated_at.isoformat(),
            "order_count": len(report.orders),
            "pairs": [ReportSerializer.serialize_pair(p) for p in report.pairs],
            "summary": {
                "total_trades": summary.total_trades,
                "profit_trades": summary.profit_trades,
                "loss_trades": summary.loss_trades,
                "win_rate": str(quantize_money(summary.win_rate)),
                "avg_profit": str(quantize_money(summary.avg_profit)),
                "avg_loss": str(quantize_money(summary.avg_loss)),
            },
            "realized_pnl": str(report.realized_pnl),
            "issues": [
                {"record_id": i.record_id, "reason": i.reason.value, "message": i.message}
                for i in report.issues
            ],
        }
