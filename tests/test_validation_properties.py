"""Tests for raw order record validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from tradedesk.trading.models import Order, Side, ValidationReason
from tradedesk.trading.validation import (
    OrderParser,
    OrderValidationError,
    parse_timestamp,
    validate_order,
)


def _wire_record(**overrides):
    """A record shaped like the dashboard backend's getAllOrders rows."""
    record = {
        "_id": "65a1f0c2e4b0a1b2c3d4e5f6",
        "orderid": "240115000123456",
        "uniqueorderid": "a1b2c3d4",
        "type": "BUY",
        "date": "2024-01-15T09:20:00.000Z",
        "instrument": "NIFTY24JAN21500CE",
        "price": 152.35,
        "qty": 50,
        "exchange": "NFO",
        "symboltoken": "43210",
        "strikeprice": "21500",
        "optiontype": "CE",
        "expirydate": "25JAN2024",
        "orderStatus": "complete",
        "description": "Super-Trend flip up",
        "superTrendValue": 21480.5,
        "instrumentPrice": 21512.4,
        "__v": 0,
    }
    record.update(overrides)
    return record


def test_parses_backend_wire_record():
    order = OrderParser().parse(_wire_record())

    assert order.id == "65a1f0c2e4b0a1b2c3d4e5f6"
    assert order.side is Side.BUY
    assert order.timestamp == datetime(2024, 1, 15, 9, 20, tzinfo=timezone.utc)
    assert order.price == Decimal("152.35")
    assert order.quantity == Decimal("50")
    assert order.status == "complete"
    assert order.option_type == "CE"
    assert order.super_trend_value == Decimal("21480.5")


def test_parses_engine_field_names():
    order = OrderParser().parse({
        "id": "x1",
        "side": "sell",
        "timestamp": "2024-01-15T15:10:00+05:30",
        "instrument": "RELIANCE",
        "price": "2710.05",
        "quantity": "10",
        "status": "pending",
    })
    assert order.side is Side.SELL
    assert order.timestamp.utcoffset() == timedelta(hours=5, minutes=30)
    assert order.price == Decimal("2710.05")


def test_naive_timestamp_is_taken_as_local_time():
    parsed = parse_timestamp("2024-01-15T09:20:00")
    assert parsed.tzinfo is not None
    assert parsed.replace(tzinfo=None) == datetime(2024, 1, 15, 9, 20)


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"instrument": ""}, ValidationReason.MISSING_INSTRUMENT),
        ({"instrument": None}, ValidationReason.MISSING_INSTRUMENT),
        ({"type": "HOLD"}, ValidationReason.INVALID_SIDE),
        ({"type": None}, ValidationReason.MISSING_FIELD),
        ({"price": -1}, ValidationReason.NEGATIVE_PRICE),
        ({"qty": 0}, ValidationReason.NON_POSITIVE_QUANTITY),
        ({"qty": -50}, ValidationReason.NON_POSITIVE_QUANTITY),
        ({"qty": "fifty"}, ValidationReason.INVALID_NUMBER),
        ({"price": "NaN"}, ValidationReason.INVALID_NUMBER),
        ({"date": "yesterday"}, ValidationReason.INVALID_TIMESTAMP),
        ({"date": None}, ValidationReason.MISSING_FIELD),
    ],
)
def test_malformed_records_are_rejected_with_their_id(overrides, reason):
    with pytest.raises(OrderValidationError) as excinfo:
        OrderParser().parse(_wire_record(**overrides))

    assert excinfo.value.issue.reason is reason
    assert excinfo.value.issue.record_id == "65a1f0c2e4b0a1b2c3d4e5f6"


def test_zero_price_is_allowed():
    assert OrderParser().parse(_wire_record(price=0)).price == Decimal("0")


def test_record_without_id_is_identified_by_index():
    record = _wire_record()
    for key in ("_id", "orderid", "uniqueorderid"):
        del record[key]

    orders, issues = OrderParser().parse_many([_wire_record(), record])

    assert len(orders) == 1
    assert issues[0].record_id == "<index 1>"
    assert issues[0].reason is ValidationReason.MISSING_FIELD


def test_parse_many_keeps_valid_records():
    records = [
        _wire_record(_id="a"),
        _wire_record(_id="b", qty=0),
        "not a record",
        _wire_record(_id="c", type="SELL"),
    ]

    orders, issues = OrderParser().parse_many(records)

    assert [o.id for o in orders] == ["a", "c"]
    assert [i.record_id for i in issues] == ["b", "<index 2>"]


def test_parse_many_strict_raises_first_failure():
    with pytest.raises(OrderValidationError) as excinfo:
        OrderParser().parse_many([_wire_record(_id="a"), _wire_record(_id="b", price=-5)], strict=True)
    assert excinfo.value.issue.record_id == "b"


def test_validate_order_reports_every_problem():
    order = Order(
        id="bad",
        side=Side.BUY,
        timestamp=datetime(2024, 1, 1),
        instrument=" ",
        price=Decimal("-1"),
        quantity=Decimal("0"),
    )
    reasons = {i.reason for i in validate_order(order)}
    assert reasons == {
        ValidationReason.MISSING_INSTRUMENT,
        ValidationReason.NEGATIVE_PRICE,
        ValidationReason.NON_POSITIVE_QUANTITY,
    }


@given(
    quantities=st.lists(
        st.one_of(st.integers(min_value=-100, max_value=100), st.just("abc"), st.just("")),
        min_size=0,
        max_size=20,
    )
)
@settings(max_examples=100)
def test_every_record_is_either_parsed_or_reported(quantities):
    """
    **Property: Partial-failure tolerance**

    For any batch, parsed orders plus issues SHALL account for every record,
    with exactly one issue per rejected record.
    """
    records = [_wire_record(_id=f"r{i}", qty=q) for i, q in enumerate(quantities)]

    orders, issues = OrderParser().parse_many(records)

    assert len(orders) + len(issues) == len(records)
    assert len({i.record_id for i in issues}) == len(issues)
    assert all(o.quantity > 0 for o in orders)
