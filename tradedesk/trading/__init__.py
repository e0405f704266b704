# Trading module
"""Order matching and performance analytics: windows, grouping, matching, PnL and reports."""

from .models import (
    Side,
    PairStatus,
    ValidationReason,
    TrendDirection,
    Order,
    TradePair,
    AnalyticsSummary,
    ValidationIssue,
    SuperTrendPoint,
    OrderSettings,
)
from .windows import (
    AllTime,
    Today,
    TrailingDays,
    PreviousCalendarMonth,
    CustomRange,
    WindowSpec,
    filter_orders,
    parse_window,
)
from .grouping import group_by_instrument
from .matching import IOrderMatcher, PositionalMatcher, QuantityMatcher
from .pnl import pair_pnl, total_realized_pnl, quantize_money
from .analytics import IPerformanceAnalytics, PerformanceAnalytics
from .validation import OrderParser, OrderValidationError, validate_order
from .report import TradeReport, ReportSerializer, build_report, build_report_from_records

__all__ = [
    "Side",
    "PairStatus",
    "ValidationReason",
    "TrendDirection",
    "Order",
    "TradePair",
    "AnalyticsSummary",
    "ValidationIssue",
    "SuperTrendPoint",
    "OrderSettings",
    "AllTime",
    "Today",
    "TrailingDays",
    "PreviousCalendarMonth",
    "CustomRange",
    "WindowSpec",
    "filter_orders",
    "parse_window",
    "group_by_instrument",
    "IOrderMatcher",
    "PositionalMatcher",
    "QuantityMatcher",
    "pair_pnl",
    "total_realized_pnl",
    "quantize_money",
    "IPerformanceAnalytics",
    "PerformanceAnalytics",
    "OrderParser",
    "OrderValidationError",
    "validate_order",
    "TradeReport",
    "ReportSerializer",
    "build_report",
    "build_report_from_records",
]
