"""Validation of raw order records.

Raw records come from the orders data source as JSON objects. This module
turns them into Order values, rejecting malformed records one at a time so
a single bad record never blanks out a whole report.

Both the order source's wire keys (``_id``, ``type``, ``date``, ``qty``,
``orderStatus`` ...) and the engine's own field names are accepted.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Order, Side, ValidationIssue, ValidationReason

logger = logging.getLogger(__name__)

_ID_KEYS = ("id", "_id", "orderid", "uniqueorderid")
_SIDE_KEYS = ("side", "type")
_TIMESTAMP_KEYS = ("timestamp", "date")
_QUANTITY_KEYS = ("quantity", "qty")
_STATUS_KEYS = ("status", "orderStatus")

_OPTIONAL_TEXT = {
    "exchange": "exchange",
    "symboltoken": "symbol_token",
    "strikeprice": "strike_price",
    "optiontype": "option_type",
    "expirydate": "expiry_date",
    "description": "description",
}

_OPTIONAL_DECIMAL = {
    "superTrendValue": "super_trend_value",
    "instrumentPrice": "instrument_price",
}


class OrderValidationError(ValueError):
    """Raised when a raw record cannot become an Order."""

    def __init__(self, issue: ValidationIssue) -> None:
        super().__init__(f"Order {issue.record_id}: {issue.message}")
        self.issue = issue


def _first(record: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    A trailing "Z" is accepted. Naive values are taken as local time.

    Raises:
        ValueError: If value is not a datetime or ISO-8601 string
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def parse_decimal(value: Any) -> Decimal:
    """Parse a number without going through binary floating point arithmetic.

    Raises:
        InvalidOperation: If value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidOperation(f"Boolean is not a number: {value}")
    number = Decimal(str(value).strip())
    if not number.is_finite():
        raise InvalidOperation(f"Non-finite number: {value}")
    return number


class OrderParser:
    """Converts raw order records into validated Order values."""

    def parse(self, record: Dict[str, Any], index: Optional[int] = None) -> Order:
        """Parse and validate one raw record.

        Args:
            record: Raw order record
            index: Position of the record in its batch, used as the id of
                records that carry none

        Returns:
            The validated Order

        Raises:
            OrderValidationError: If the record is malformed
        """
        if not isinstance(record, dict):
            raise OrderValidationError(ValidationIssue(
                f"<index {index}>",
                ValidationReason.MISSING_FIELD,
                f"Expected an object, got {type(record).__name__}",
            ))

        raw_id = _first(record, _ID_KEYS)
        record_id = str(raw_id) if raw_id is not None else f"<index {index}>"

        def reject(reason: ValidationReason, message: str) -> OrderValidationError:
            return OrderValidationError(ValidationIssue(record_id, reason, message))

        if raw_id is None:
            raise reject(ValidationReason.MISSING_FIELD, "Missing order id")

        raw_side = _first(record, _SIDE_KEYS)
        if raw_side is None:
            raise reject(ValidationReason.MISSING_FIELD, "Missing order side")
        try:
            side = Side(str(raw_side).strip().upper())
        except ValueError:
            raise reject(ValidationReason.INVALID_SIDE, f"Unknown order side {raw_side!r}")

        instrument = _first(record, ("instrument",))
        if instrument is None or not str(instrument).strip():
            raise reject(ValidationReason.MISSING_INSTRUMENT, "Missing instrument")

        raw_timestamp = _first(record, _TIMESTAMP_KEYS)
        if raw_timestamp is None:
            raise reject(ValidationReason.MISSING_FIELD, "Missing timestamp")
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except ValueError:
            raise reject(ValidationReason.INVALID_TIMESTAMP, f"Invalid timestamp {raw_timestamp!r}")

        raw_price = _first(record, ("price",))
        raw_quantity = _first(record, _QUANTITY_KEYS)
        if raw_price is None:
            raise reject(ValidationReason.MISSING_FIELD, "Missing price")
        if raw_quantity is None:
            raise reject(ValidationReason.MISSING_FIELD, "Missing quantity")
        try:
            price = parse_decimal(raw_price)
            quantity = parse_decimal(raw_quantity)
        except InvalidOperation:
            raise reject(
                ValidationReason.INVALID_NUMBER,
                f"Invalid price/quantity {raw_price!r}/{raw_quantity!r}",
            )

        if price < Decimal("0"):
            raise reject(ValidationReason.NEGATIVE_PRICE, f"Price must be non-negative, got {price}")
        if quantity <= Decimal("0"):
            raise reject(
                ValidationReason.NON_POSITIVE_QUANTITY,
                f"Quantity must be greater than zero, got {quantity}",
            )

        extras: Dict[str, Any] = {}
        for key, field_name in _OPTIONAL_TEXT.items():
            value = record.get(key)
            if value is not None:
                extras[field_name] = str(value)
        for key, field_name in _OPTIONAL_DECIMAL.items():
            value = record.get(key)
            if value is None or value == "":
                continue
            try:
                extras[field_name] = parse_decimal(value)
            except InvalidOperation:
                raise reject(ValidationReason.INVALID_NUMBER, f"Invalid {key} {value!r}")

        status = _first(record, _STATUS_KEYS)
        return Order(
            id=record_id,
            side=side,
            timestamp=timestamp,
            instrument=str(instrument).strip(),
            price=price,
            quantity=quantity,
            status=str(status) if status is not None else "",
            **extras,
        )

    def parse_many(
        self, records: Iterable[Dict[str, Any]], strict: bool = False
    ) -> Tuple[List[Order], List[ValidationIssue]]:
        """Parse a batch of raw records.

        Args:
            records: Raw order records
            strict: If True, re-raise the first validation failure instead
                of collecting it

        Returns:
            Tuple of (valid orders, one issue per rejected record)

        Raises:
            OrderValidationError: Only when strict is True
        """
        orders: List[Order] = []
        issues: List[ValidationIssue] = []

        for index, record in enumerate(records):
            try:
                orders.append(self.parse(record, index=index))
            except OrderValidationError as e:
                if strict:
                    raise
                logger.warning(f"Rejected order record: {e}")
                issues.append(e.issue)

        return orders, issues


def validate_order(order: Order) -> List[ValidationIssue]:
    """Check an already-built Order against the record rules."""
    issues: List[ValidationIssue] = []
    if not order.instrument or not order.instrument.strip():
        issues.append(ValidationIssue(order.id, ValidationReason.MISSING_INSTRUMENT, "Missing instrument"))
    if order.price < Decimal("0"):
        issues.append(ValidationIssue(
            order.id, ValidationReason.NEGATIVE_PRICE, f"Price must be non-negative, got {order.price}"
        ))
    if order.quantity <= Decimal("0"):
        issues.append(ValidationIssue(
            order.id,
            ValidationReason.NON_POSITIVE_QUANTITY,
            f"Quantity must be greater than zero, got {order.quantity}",
        ))
    return issues
