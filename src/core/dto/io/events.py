"""거래소(Bitcointrade) 인바운드 이벤트 DTO.

Socket.IO 이벤트 이름별 JSON 페이로드 스키마입니다.
`type`은 거래소의 원시 정수 코드(1=매수, 2=매도)이며 정규화 전 값입니다.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, StrictInt

from src.core.dto.io._base import BaseInboundMessageDTO


class OrderMessageDTO(BaseInboundMessageDTO):
    """`order` 이벤트: 주문 생성"""

    type: StrictInt = Field(..., description="원시 side 코드")
    unit_price: float = Field(..., description="단가 (quote currency)")
    amount: float = Field(..., description="수량 (base currency)")


class CancelOrderMessageDTO(BaseInboundMessageDTO):
    """`cancel_order` 이벤트: 주문 취소"""

    type: StrictInt = Field(..., description="원시 side 코드")
    amount: float = Field(..., description="수량 (base currency)")
    unit_price: float = Field(..., description="단가 (quote currency)")


class OrderCompletedMessageDTO(BaseInboundMessageDTO):
    """`order_completed` 이벤트: 주문 체결"""

    create_date: datetime | None = Field(None, description="주문 생성 시각")
    type: StrictInt = Field(..., description="원시 side 코드")
    amount: float = Field(..., description="체결 수량 (base currency)")
    unit_price: float = Field(..., description="체결 단가 (quote currency)")
