"""Property-based tests for PnL and performance analytics.

Tests the analytics correctness properties using Hypothesis.
"""

from __future__ import annotations

import csv
import os
import tempfile
from decimal import Decimal
from typing import List, Tuple

from hypothesis import given, settings, strategies as st

from tradedesk.trading.analytics import CSV_FIELDNAMES, PerformanceAnalytics
from tradedesk.trading.matching import PositionalMatcher
from tradedesk.trading.models import AnalyticsSummary, Order, Side, TradePair
from tradedesk.trading.pnl import pair_pnl, quantize_money, total_realized_pnl

from order_factory import make_order, order_list_strategy, round_trip_strategy


def _closed(buy_price, sell_price, quantity=10) -> TradePair:
    buy = make_order(Side.BUY, price=buy_price, quantity=quantity, minutes=0)
    sell = make_order(Side.SELL, price=sell_price, quantity=quantity, minutes=30)
    return TradePair(buy=buy, sell=sell)


def test_pnl_of_closed_pair():
    assert pair_pnl(_closed("100.50", "102.25", 50)) == Decimal("87.50")


def test_pnl_is_undefined_for_one_legged_pairs():
    assert pair_pnl(TradePair(buy=make_order(Side.BUY))) is None
    assert pair_pnl(TradePair(sell=make_order(Side.SELL))) is None


def test_pair_requires_a_leg():
    try:
        TradePair()
    except ValueError:
        pass
    else:
        raise AssertionError("TradePair() without legs should raise ValueError")


def test_zero_pnl_counts_as_loss(analytics):
    summary = analytics.aggregate([_closed(100, 100, 10)])

    assert pair_pnl(_closed(100, 100, 10)) == Decimal("0")
    assert summary.total_trades == 1
    assert summary.profit_trades == 0
    assert summary.loss_trades == 1
    assert summary.win_rate == Decimal("0")
    assert summary.avg_loss == Decimal("0")


def test_no_closed_pairs_gives_zero_summary(analytics):
    open_only = [TradePair(buy=make_order(Side.BUY)), TradePair(sell=make_order(Side.SELL))]

    assert analytics.aggregate([]) == AnalyticsSummary()
    assert analytics.aggregate(open_only) == AnalyticsSummary()
    assert analytics.total_realized_pnl(open_only) == Decimal("0")


def test_averages_use_absolute_loss(analytics):
    pairs = [_closed(100, 110), _closed(100, 130), _closed(100, 95), _closed(100, 80)]

    summary = analytics.aggregate(pairs)

    assert summary.profit_trades == 2 and summary.loss_trades == 2
    assert summary.win_rate == Decimal("50")
    assert summary.avg_profit == Decimal("200")
    assert summary.avg_loss == Decimal("125")
    assert analytics.total_realized_pnl(pairs) == Decimal("150")


def test_misaligned_pairs_are_excluded(analytics):
    late_buy = make_order(Side.BUY, price=100, minutes=60)
    early_sell = make_order(Side.SELL, price=500, minutes=0)
    misaligned = TradePair(buy=late_buy, sell=early_sell)

    assert pair_pnl(misaligned) == Decimal("20000")
    assert analytics.aggregate([misaligned]).total_trades == 0
    assert total_realized_pnl([misaligned]) == Decimal("0")


def test_decimal_accumulation_is_exact(analytics):
    pairs = [_closed("0.10", "0.20", 1) for _ in range(10)]
    assert analytics.total_realized_pnl(pairs) == Decimal("1.00")


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("2.345")) == Decimal("2.35")
    assert quantize_money(Decimal("-2.345")) == Decimal("-2.35")
    assert quantize_money(Decimal("66.666666")) == Decimal("66.67")


@given(trips=st.lists(round_trip_strategy(), min_size=0, max_size=15))
@settings(max_examples=100)
def test_win_rate_calculation(trips: List[Tuple[Order, Order]]):
    """
    **Property: Win rate calculation**

    For any set of closed trades, total SHALL equal profit + loss trades and
    win rate SHALL equal profit trades / total trades × 100.
    """
    analytics = PerformanceAnalytics()
    pairs = [TradePair(buy=b, sell=s) for b, s in trips]

    summary = analytics.aggregate(pairs)

    pnls = [(s.price - b.price) * b.quantity for b, s in trips]
    profitable = sum(1 for p in pnls if p > 0)
    assert summary.total_trades == len(trips)
    assert summary.profit_trades == profitable
    assert summary.total_trades == summary.profit_trades + summary.loss_trades

    if trips:
        expected = Decimal(profitable) / Decimal(len(trips)) * Decimal("100")
    else:
        expected = Decimal("0")
    assert summary.win_rate == expected
    assert Decimal("0") <= summary.win_rate <= Decimal("100")


@given(trips=st.lists(round_trip_strategy(), min_size=1, max_size=15))
@settings(max_examples=100)
def test_realized_pnl_calculation(trips: List[Tuple[Order, Order]]):
    """
    **Property: Realized PnL calculation**

    Realized PnL SHALL equal the exact sum of (sell_price - buy_price) ×
    quantity over closed pairs, and SHALL reconcile with the averages.
    """
    analytics = PerformanceAnalytics()
    pairs = [TradePair(buy=b, sell=s) for b, s in trips]

    expected = sum(((s.price - b.price) * b.quantity for b, s in trips), Decimal("0"))
    realized = analytics.total_realized_pnl(pairs)
    assert realized == expected

    summary = analytics.aggregate(pairs)
    gross_profit = summary.avg_profit * summary.profit_trades
    gross_loss = summary.avg_loss * summary.loss_trades
    assert abs((gross_profit - gross_loss) - realized) < Decimal("0.0001")


@given(orders=order_list_strategy(min_size=0, max_size=20))
@settings(max_examples=100)
def test_order_history_sorting(orders: List[Order]):
    """
    **Property: Order history sorting**

    For any list of orders, the sorted history SHALL be in descending
    timestamp order and contain every original order.
    """
    analytics = PerformanceAnalytics()

    sorted_orders = analytics.sort_orders_by_timestamp(orders, descending=True)

    for i in range(len(sorted_orders) - 1):
        assert sorted_orders[i].timestamp >= sorted_orders[i + 1].timestamp, \
            f"Order at index {i} should have timestamp >= order at index {i + 1}"
    assert sorted(o.id for o in sorted_orders) == sorted(o.id for o in orders)


@given(orders=order_list_strategy(min_size=0, max_size=20, instrument="RELIANCE"))
@settings(max_examples=50)
def test_csv_export_completeness(orders: List[Order]):
    """
    **Property: CSV export completeness**

    For any list of pairs, the exported CSV SHALL contain exactly one row
    per pair plus a header row, with empty cells only for absent legs.
    """
    analytics = PerformanceAnalytics()
    pairs = PositionalMatcher().match(orders) if orders else []

    with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False) as f:
        temp_path = f.name

    try:
        analytics.export_pairs_to_csv(pairs, temp_path)

        with open(temp_path, 'r', newline='', encoding='utf-8') as csvfile:
            reader = csv.DictReader(csvfile)
            assert reader.fieldnames == CSV_FIELDNAMES
            rows = list(reader)

        assert len(rows) == len(pairs), \
            f"CSV should have {len(pairs)} data rows, got {len(rows)}"

        for row, pair in zip(rows, pairs):
            assert row["status"] == pair.status.value
            assert (row["buy_id"] == "") == (pair.buy is None)
            assert (row["sell_id"] == "") == (pair.sell is None)
            pnl = pair_pnl(pair)
            assert row["pnl"] == ("" if pnl is None else str(pnl))
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)
