from __future__ import annotations

from typing import Any

from src.core.dto.internal.trade import (
    OrderCanceledDomain,
    OrderCompletedDomain,
    OrderCreatedDomain,
)
from src.core.dto.io.events import (
    CancelOrderMessageDTO,
    OrderCompletedMessageDTO,
    OrderMessageDTO,
)
from src.core.types import (
    OPERATION_ASK,
    OPERATION_BID,
    OPERATION_UNKNOWN,
    Operation,
)


def normalize_side(code: int) -> Operation:
    """거래소 원시 side 코드를 operation 라벨로 정규화합니다.

    전함수(total function)이며 알 수 없는 코드는 거부하지 않고 "unknown"으로 매핑합니다.
    """
    match code:
        case 1:
            return OPERATION_BID
        case 2:
            return OPERATION_ASK
        case _:
            return OPERATION_UNKNOWN


def parse_order_created(payload: Any) -> OrderCreatedDomain:
    """`order` 페이로드 → OrderCreatedDomain (검증 실패 시 ValidationError)"""
    message = OrderMessageDTO.model_validate(payload)
    return OrderCreatedDomain(
        operation=normalize_side(message.type),
        unit_price=message.unit_price,
        amount=message.amount,
    )


def parse_order_canceled(payload: Any) -> OrderCanceledDomain:
    """`cancel_order` 페이로드 → OrderCanceledDomain"""
    message = CancelOrderMessageDTO.model_validate(payload)
    return OrderCanceledDomain(
        operation=normalize_side(message.type),
        amount=message.amount,
        unit_price=message.unit_price,
    )


def parse_order_completed(payload: Any) -> OrderCompletedDomain:
    """`order_completed` 페이로드 → OrderCompletedDomain"""
    message = OrderCompletedMessageDTO.model_validate(payload)
    return OrderCompletedDomain(
        operation=normalize_side(message.type),
        amount=message.amount,
        unit_price=message.unit_price,
        created_at=message.create_date,
    )
