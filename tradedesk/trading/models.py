"""Data models for order matching and performance analytics."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class Side(Enum):
    """Side of an executed order."""
    BUY = "BUY"
    SELL = "SELL"


class PairStatus(Enum):
    """Classification of a reconstructed trade pair."""
    CLOSED = "closed"
    OPEN = "open"
    ORPHAN_SELL = "orphan_sell"
    MISALIGNED = "misaligned"


class ValidationReason(Enum):
    """Reason a raw order record was rejected."""
    MISSING_FIELD = "missing_field"
    MISSING_INSTRUMENT = "missing_instrument"
    INVALID_SIDE = "invalid_side"
    INVALID_NUMBER = "invalid_number"
    NEGATIVE_PRICE = "negative_price"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"
    INVALID_TIMESTAMP = "invalid_timestamp"


class TrendDirection(Enum):
    """Direction of a pre-computed Super-Trend reading."""
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Order:
    """A single executed buy or sell for one instrument.

    Attributes:
        id: Opaque unique order identifier
        side: BUY or SELL
        timestamp: Time of execution, timezone-aware (naive values are taken as local time)
        instrument: Tradable symbol the order applies to (e.g. "NIFTY24JAN21500CE")
        price: Execution price per unit, non-negative
        quantity: Lot size, strictly positive
        status: Execution status as reported by the broker, display only
    """
    id: str
    side: Side
    timestamp: datetime
    instrument: str
    price: Decimal
    quantity: Decimal
    status: str = ""
    exchange: str = ""
    symbol_token: str = ""
    strike_price: str = ""
    option_type: str = ""
    expiry_date: str = ""
    description: str = ""
    super_trend_value: Optional[Decimal] = None
    instrument_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        # Naive timestamps are local wall-clock time
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.astimezone())

    @property
    def total_value(self) -> Decimal:
        """Calculate total value of this order."""
        return self.price * self.quantity

    @property
    def is_buy(self) -> bool:
        return self.side is Side.BUY


@dataclass(frozen=True)
class TradePair:
    """A round trip (or still-open position) formed from one buy and one sell.

    At least one leg is always present. The status is derived from the
    legs and never stored.

    Attributes:
        buy: The buy leg, None for an orphan sell
        sell: The sell leg, None for an open position
    """
    buy: Optional[Order] = None
    sell: Optional[Order] = None

    def __post_init__(self) -> None:
        if self.buy is None and self.sell is None:
            raise ValueError("TradePair requires at least one leg")

    @property
    def instrument(self) -> str:
        leg = self.buy if self.buy is not None else self.sell
        return leg.instrument

    @property
    def status(self) -> PairStatus:
        """Classify the pair from its legs."""
        if self.sell is None:
            return PairStatus.OPEN
        if self.buy is None:
            return PairStatus.ORPHAN_SELL
        if (
            self.sell.timestamp > self.buy.timestamp
            and self.sell.quantity == self.buy.quantity
        ):
            return PairStatus.CLOSED
        return PairStatus.MISALIGNED

    @property
    def is_closed(self) -> bool:
        return self.status is PairStatus.CLOSED

    @property
    def is_open(self) -> bool:
        return self.status is PairStatus.OPEN

    @property
    def is_orphan(self) -> bool:
        return self.status is PairStatus.ORPHAN_SELL


@dataclass(frozen=True)
class AnalyticsSummary:
    """Win/loss statistics over closed trades.

    Attributes:
        total_trades: Number of closed trades (profit_trades + loss_trades)
        profit_trades: Trades with strictly positive PnL
        loss_trades: Trades with zero or negative PnL
        win_rate: Percentage of profitable trades (0-100)
        avg_profit: Mean PnL over profit trades
        avg_loss: Mean absolute PnL over loss trades
    """
    total_trades: int = 0
    profit_trades: int = 0
    loss_trades: int = 0
    win_rate: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")
    avg_loss: Decimal = Decimal("0")


@dataclass(frozen=True)
class ValidationIssue:
    """A rejected raw order record.

    Attributes:
        record_id: Identifier of the offending record ("<index N>" when it has none)
        reason: Machine-readable rejection reason
        message: Human-readable description
    """
    record_id: str
    reason: ValidationReason
    message: str


@dataclass(frozen=True)
class SuperTrendPoint:
    """A pre-computed Super-Trend reading from the trend data source."""
    id: str
    value: Decimal
    direction: TrendDirection
    created_at: datetime


@dataclass(frozen=True)
class OrderSettings:
    """Order placement settings reported by the dashboard backend."""
    id: str
    record_id: int
    live_orders_allowed: bool
