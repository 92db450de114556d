from __future__ import annotations

from enum import Enum
from typing import Final, Literal, TypeAlias, assert_never

# 공통 타입/별칭을 한곳에 모읍니다.
# - 코어 계층 어디서나 재사용 가능한 최소 단위만 정의합니다.

ExchangeName: TypeAlias = Literal["bitcointrade"]
Operation: TypeAlias = Literal["bid", "ask", "unknown"]
OrderEventKind: TypeAlias = Literal["create", "cancel"]

OPERATION_BID: Final[Operation] = "bid"
OPERATION_ASK: Final[Operation] = "ask"
OPERATION_UNKNOWN: Final[Operation] = "unknown"


class ConnectionState(Enum):
    """연결 상태 머신의 상태 Enum.

    - DISCONNECTED: 초기 상태, 또는 백오프 종료 후 재연결 대기
    - CONNECTING: 전송 계층 핸드셰이크 진행 중
    - CONNECTED: 업스트림이 세션 수립을 알린 상태
    - RETRY_BACKOFF: 세션을 정리하고 고정 지연 대기 중
    - STOPPED: 명시적 종료 요청 (종단 상태)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RETRY_BACKOFF = "retry_backoff"
    STOPPED = "stopped"


def connection_state_format(state: ConnectionState) -> str:
    """상태 로깅 포맷터: Enum 분기 완전탐색 보장."""
    match state:
        case ConnectionState.DISCONNECTED:
            return "disconnected"
        case ConnectionState.CONNECTING:
            return "connecting"
        case ConnectionState.CONNECTED:
            return "connected"
        case ConnectionState.RETRY_BACKOFF:
            return "retry backoff"
        case ConnectionState.STOPPED:
            return "stopped"
        case _:
            assert_never(state)
