"""Buy/sell matching within an instrument.

Two deliberately separate algorithms live here:

- PositionalMatcher aligns the i-th chronological buy with the i-th
  chronological sell. It is what order listings are grouped by and keeps
  every order, flagging slots that are not clean round trips.
- QuantityMatcher pairs each buy with the earliest later sell of exactly
  the same quantity. Realized PnL and win/loss statistics use it.

Neither is lot-aware FIFO accounting: partial fills are never split.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from .models import Order, PairStatus, Side, TradePair

logger = logging.getLogger(__name__)


def _split_sides(orders: List[Order]) -> Tuple[List[Order], List[Order]]:
    """Partition by side and sort each side by timestamp (stable)."""
    buys = sorted((o for o in orders if o.side is Side.BUY), key=lambda o: o.timestamp)
    sells = sorted((o for o in orders if o.side is Side.SELL), key=lambda o: o.timestamp)
    return buys, sells


class IOrderMatcher(ABC):
    """Interface for pairing the orders of a single instrument."""

    @abstractmethod
    def match(self, orders: List[Order]) -> List[TradePair]:
        """Pair the buys and sells of one instrument group.

        Args:
            orders: All orders of one instrument, in any order

        Returns:
            Trade pairs; every input order appears in exactly one pair
        """
        ...

    def match_all(self, groups: Dict[str, List[Order]]) -> List[TradePair]:
        """Match every instrument group and concatenate the results.

        Pairs follow the iteration order of ``groups``; callers should not
        rely on ordering across instruments.
        """
        pairs: List[TradePair] = []
        for instrument, orders in groups.items():
            matched = self.match(orders)
            logger.debug(f"{type(self).__name__}: {instrument} -> {len(matched)} pairs")
            pairs.extend(matched)
        return pairs


class PositionalMatcher(IOrderMatcher):
    """Index-aligned pairing of chronological buys and sells.

    Extra buys become open positions, extra sells become orphan sells.
    Slots whose legs do not form a clean round trip are kept and show up
    as MISALIGNED.
    """

    def match(self, orders: List[Order]) -> List[TradePair]:
        buys, sells = _split_sides(orders)
        pairs: List[TradePair] = []
        for i in range(max(len(buys), len(sells))):
            buy = buys[i] if i < len(buys) else None
            sell = sells[i] if i < len(sells) else None
            pair = TradePair(buy=buy, sell=sell)
            status = pair.status
            if status is PairStatus.ORPHAN_SELL:
                logger.warning(f"Orphan sell {sell.id} on {sell.instrument}: no buy in its slot")
            elif status is PairStatus.MISALIGNED:
                logger.warning(
                    f"Misaligned pair on {pair.instrument}: buy {buy.id} / sell {sell.id}"
                )
            pairs.append(pair)
        return pairs


class QuantityMatcher(IOrderMatcher):
    """Strict pairing on equal quantity and later execution time.

    Buys are taken chronologically; each claims the earliest unused sell
    with the same quantity executed strictly after it. A sell closes at
    most one buy.
    """

    def match(self, orders: List[Order]) -> List[TradePair]:
        buys, sells = _split_sides(orders)
        used = [False] * len(sells)
        pairs: List[TradePair] = []

        for buy in buys:
            match_index = None
            for i, sell in enumerate(sells):
                if used[i]:
                    continue
                if sell.quantity == buy.quantity and sell.timestamp > buy.timestamp:
                    match_index = i
                    break
            if match_index is None:
                pairs.append(TradePair(buy=buy))
            else:
                used[match_index] = True
                pairs.append(TradePair(buy=buy, sell=sells[match_index]))

        for i, sell in enumerate(sells):
            if not used[i]:
                pairs.append(TradePair(sell=sell))

        return pairs
