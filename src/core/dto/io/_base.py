"""I/O 경계 DTO 기반 클래스

업스트림(거래소) 메시지는 스키마 변경 가능성이 있으므로 알 수 없는 필드는
무시하고, 필요한 필드만 엄격하게 검증합니다.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# 인바운드 메시지용 ConfigDict
INBOUND_CONFIG = ConfigDict(
    extra="ignore",  # 거래소가 추가한 필드는 무시
    frozen=True,  # 불변 객체
    str_strip_whitespace=True,
    populate_by_name=True,
    allow_inf_nan=False,  # NaN/Infinity 수치는 검증 단계에서 거부
)


class BaseInboundMessageDTO(BaseModel):
    """거래소 인바운드 메시지 공통 Pydantic v2 베이스 모델.

    특징:
    - 불변 객체 (frozen=True)
    - 알 수 없는 필드 무시 (extra="ignore")
    """

    model_config = INBOUND_CONFIG
