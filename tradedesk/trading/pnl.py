"""Realized profit and loss for trade pairs."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .models import TradePair


def pair_pnl(pair: TradePair) -> Optional[Decimal]:
    """Realized PnL of a pair.

    PnL = (sell_price - buy_price) * buy_quantity

    Args:
        pair: Trade pair

    Returns:
        PnL when both legs are present, None for a one-legged pair.
        None is not zero: an open position has no realized PnL.
    """
    if pair.buy is None or pair.sell is None:
        return None
    return (pair.sell.price - pair.buy.price) * pair.buy.quantity


def total_realized_pnl(pairs: Iterable[TradePair]) -> Decimal:
    """Sum PnL over closed pairs only (can be negative)."""
    total = Decimal("0")
    for pair in pairs:
        if not pair.is_closed:
            continue
        total += pair_pnl(pair)
    return total


def quantize_money(value: Decimal, places: int = 2) -> Decimal:
    """Round a currency amount half-up for display or serialization."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
