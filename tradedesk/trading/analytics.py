"""Performance analytics over matched trade pairs."""

import csv
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from .models import AnalyticsSummary, Order, TradePair
from .pnl import pair_pnl, total_realized_pnl

logger = logging.getLogger(__name__)

CSV_FIELDNAMES = [
    "instrument",
    "status",
    "buy_id",
    "buy_time",
    "buy_price",
    "buy_quantity",
    "sell_id",
    "sell_time",
    "sell_price",
    "sell_quantity",
    "pnl",
]


class IPerformanceAnalytics(ABC):
    """Interface for performance analytics operations."""

    @abstractmethod
    def aggregate(self, pairs: List[TradePair]) -> AnalyticsSummary:
        """Calculate win/loss statistics from trade pairs.

        Args:
            pairs: Trade pairs; only closed pairs are counted

        Returns:
            AnalyticsSummary with calculated values
        """
        ...

    @abstractmethod
    def total_realized_pnl(self, pairs: List[TradePair]) -> Decimal:
        """Calculate total realized PnL from closed pairs.

        Args:
            pairs: Trade pairs

        Returns:
            Total realized profit/loss
        """
        ...

    @abstractmethod
    def export_pairs_to_csv(self, pairs: List[TradePair], filepath: str) -> None:
        """Export trade pairs to a CSV file.

        Args:
            pairs: Trade pairs to export
            filepath: Path to output CSV file
        """
        ...

    @abstractmethod
    def sort_orders_by_timestamp(
        self, orders: List[Order], descending: bool = True
    ) -> List[Order]:
        """Sort orders by timestamp.

        Args:
            orders: List of orders to sort
            descending: If True, most recent first (default)

        Returns:
            Sorted list of orders
        """
        ...


class PerformanceAnalytics(IPerformanceAnalytics):
    """Concrete implementation of performance analytics.

    A closed pair with PnL strictly above zero is a profit trade; zero or
    negative PnL is a loss trade. Open positions, orphan sells and
    misaligned pairs are left out entirely.
    """

    def aggregate(self, pairs: List[TradePair]) -> AnalyticsSummary:
        """Calculate win/loss statistics from trade pairs.

        Args:
            pairs: Trade pairs; only closed pairs are counted

        Returns:
            AnalyticsSummary with calculated values
        """
        profit_trades = 0
        loss_trades = 0
        total_profit = Decimal("0")
        total_loss = Decimal("0")

        for pair in pairs:
            if not pair.is_closed:
                continue
            pnl = pair_pnl(pair)
            if pnl > Decimal("0"):
                profit_trades += 1
                total_profit += pnl
            else:
                loss_trades += 1
                total_loss += abs(pnl)

        total_trades = profit_trades + loss_trades

        if total_trades > 0:
            win_rate = (Decimal(profit_trades) / Decimal(total_trades)) * Decimal("100")
        else:
            win_rate = Decimal("0")

        avg_profit = total_profit / profit_trades if profit_trades else Decimal("0")
        avg_loss = total_loss / loss_trades if loss_trades else Decimal("0")

        logger.debug(f"Aggregated {total_trades} closed trades ({profit_trades} profitable)")
        return AnalyticsSummary(
            total_trades=total_trades,
            profit_trades=profit_trades,
            loss_trades=loss_trades,
            win_rate=win_rate,
            avg_profit=avg_profit,
            avg_loss=avg_loss,
        )

    def total_realized_pnl(self, pairs: List[TradePair]) -> Decimal:
        """Calculate total realized PnL from closed pairs.

        Args:
            pairs: Trade pairs

        Returns:
            Total realized profit/loss
        """
        return total_realized_pnl(pairs)

    def sort_orders_by_timestamp(
        self, orders: List[Order], descending: bool = True
    ) -> List[Order]:
        """Sort orders by timestamp.

        Args:
            orders: List of orders to sort
            descending: If True, most recent first (default)

        Returns:
            Sorted list of orders
        """
        return sorted(orders, key=lambda o: o.timestamp, reverse=descending)

    def export_pairs_to_csv(self, pairs: List[TradePair], filepath: str) -> None:
        """Export trade pairs to a CSV file.

        Absent legs and undefined PnL are written as empty cells.

        Args:
            pairs: Trade pairs to export
            filepath: Path to output CSV file
        """
        with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDNAMES)
            writer.writeheader()

            for pair in pairs:
                row = {
                    "instrument": pair.instrument,
                    "status": pair.status.value,
                    "pnl": _cell(pair_pnl(pair)),
                }
                row.update(_leg_cells("buy", pair.buy))
                row.update(_leg_cells("sell", pair.sell))
                writer.writerow(row)

        logger.info(f"Exported {len(pairs)} pairs to {filepath}")


def _cell(value: Optional[Decimal]) -> str:
    return "" if value is None else str(value)


def _leg_cells(prefix: str, order: Optional[Order]) -> dict:
    if order is None:
        return {
            f"{prefix}_id": "",
            f"{prefix}_time": "",
            f"{prefix}_price": "",
            f"{prefix}_quantity": "",
        }
    return {
        f"{prefix}_id": order.id,
        f"{prefix}_time": order.timestamp.isoformat(),
        f"{prefix}_price": str(order.price),
        f"{prefix}_quantity": str(order.quantity),
    }
