"""주문/체결 내부 도메인 모델.

내부 처리용 불변 도메인 객체 (dataclass 기반).
업스트림 원본 필드는 I/O DTO(src.core.dto.io.events)에서 검증되고,
여기에는 side가 정규화된 결과만 담깁니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

from src.core.types import Operation


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=True, kw_only=True)
class OrderCreatedDomain:
    """주문 생성 이벤트 (호가창 신규 주문)"""

    operation: Operation
    unit_price: float
    amount: float


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=True, kw_only=True)
class OrderCanceledDomain:
    """주문 취소 이벤트"""

    operation: Operation
    amount: float
    unit_price: float


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=True, kw_only=True)
class OrderCompletedDomain:
    """주문 체결 이벤트.

    created_at은 보관만 하며 게이지 갱신 순서 결정에는 쓰지 않습니다.
    """

    operation: Operation
    amount: float
    unit_price: float
    created_at: datetime | None = None


ExchangeEventDomain: TypeAlias = (
    OrderCreatedDomain | OrderCanceledDomain | OrderCompletedDomain
)
