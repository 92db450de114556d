from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.core.connection.utils.parse import (
    normalize_side,
    parse_order_canceled,
    parse_order_completed,
    parse_order_created,
)
from src.core.dto.internal.trade import (
    OrderCanceledDomain,
    OrderCompletedDomain,
    OrderCreatedDomain,
)
from tests.factory_builders import (
    build_cancel_order_payload,
    build_order_completed_payload,
    build_order_payload,
)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (1, "bid"),
        (2, "ask"),
        (0, "unknown"),
        (-1, "unknown"),
        (-2, "unknown"),
        (3, "unknown"),
        (2**31, "unknown"),
    ],
)
def test_normalize_side_is_total(code: int, expected: str) -> None:
    assert normalize_side(code) == expected
    # 같은 코드는 항상 같은 결과
    assert normalize_side(code) == normalize_side(code)


def test_parse_order_created_normalizes_side() -> None:
    event = parse_order_created(build_order_payload(type=1))

    assert event == OrderCreatedDomain(operation="bid", unit_price=50000.0, amount=0.1)


def test_parse_order_canceled_unknown_side() -> None:
    event = parse_order_canceled(build_cancel_order_payload(type=7))

    assert isinstance(event, OrderCanceledDomain)
    assert event.operation == "unknown"
    assert event.amount == 0.2


def test_parse_order_completed_keeps_created_at() -> None:
    event = parse_order_completed(build_order_completed_payload())

    assert isinstance(event, OrderCompletedDomain)
    assert event.operation == "ask"
    assert event.unit_price == 51000.0
    assert event.created_at == datetime(2019, 5, 7, 18, 24, 12, 351000, tzinfo=timezone.utc)


def test_parse_order_completed_without_create_date() -> None:
    payload = build_order_completed_payload()
    del payload["create_date"]

    assert parse_order_completed(payload).created_at is None


def test_parse_ignores_unknown_fields() -> None:
    event = parse_order_created(build_order_payload(user_code="x", id=42))

    assert event.operation == "bid"


def test_parse_accepts_numeric_string_prices() -> None:
    event = parse_order_created(build_order_payload(type=2, unit_price="49999.5"))

    assert event.operation == "ask"
    assert event.unit_price == 49999.5


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "not-an-object",
        [1, 2, 3],
        {"type": 1, "unit_price": 1.0},
        {"type": "bid", "unit_price": 1.0, "amount": 1.0},
        {"type": 1, "unit_price": "abc", "amount": 1.0},
        {"type": True, "unit_price": 1.0, "amount": 1.0},
        {"type": "2", "unit_price": 1.0, "amount": 1.0},
        {"type": 1.0, "unit_price": 1.0, "amount": 1.0},
    ],
)
def test_parse_rejects_malformed_payload(payload: object) -> None:
    with pytest.raises(ValidationError):
        parse_order_created(payload)


@pytest.mark.parametrize("value", ["NaN", "nan", "inf", "-Infinity", float("nan"), float("inf")])
def test_parse_rejects_non_finite_numbers(value: object) -> None:
    with pytest.raises(ValidationError):
        parse_order_completed(build_order_completed_payload(amount=value))
    with pytest.raises(ValidationError):
        parse_order_completed(build_order_completed_payload(unit_price=value))
