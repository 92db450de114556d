from __future__ import annotations

import asyncio
from typing import TypeAlias

import orjson
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from src.core.connection.utils.socketio import PacketDecodeError
from src.core.dto.internal.common import RuleDomain
from src.core.types import ErrorCategory, ErrorCode, ErrorDomain


class HandlerRegistrationError(RuntimeError):
    """새 세션에 이벤트 핸들러를 등록하지 못한 경우.

    업스트림 프로토콜과의 계약 불일치(프로그래밍/설정 오류)이므로 재시도하지 않고
    프로세스를 종료시킵니다.
    """


# Type/역직렬화 (이벤트 단위로 폐기)
DESERIALIZATION_ERRORS = (
    orjson.JSONDecodeError,
    PacketDecodeError,
    ValidationError,
    ValueError,
    TypeError,
    KeyError,
)

# 소켓/웹소켓 등 (재시도 대상)
SOCKET_EXCEPTIONS = (
    asyncio.TimeoutError,
    InvalidStatus,
    ConnectionClosed,
    WebSocketException,
    OSError,
)


# 1) 세션 설정 규칙: 재시도 불가
RULES_SETUP: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws", "session"),
        exc=HandlerRegistrationError,
        result=(ErrorDomain.SETUP, ErrorCode.HANDLER_REGISTRATION_FAILED, False),
    ),
]

# 2) 연결 규칙 (구체 -> 포괄)
RULES_CONNECTION: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws",),
        exc=ConnectionClosed,
        result=(ErrorDomain.CONNECTION, ErrorCode.DISCONNECTED, True),
    ),
    RuleDomain(
        kinds=("ws",),
        exc=SOCKET_EXCEPTIONS,
        result=(ErrorDomain.CONNECTION, ErrorCode.CONNECT_FAILED, True),
    ),
]

# 3) 역직렬화 규칙 (프레이밍 오류 -> 페이로드 오류)
RULES_TYPE: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws", "session"),
        exc=PacketDecodeError,
        result=(ErrorDomain.PROTOCOL, ErrorCode.INVALID_PACKET, False),
    ),
    RuleDomain(
        kinds=("ws", "session"),
        exc=DESERIALIZATION_ERRORS,
        result=(ErrorDomain.DESERIALIZATION, ErrorCode.DESERIALIZATION_ERROR, False),
    ),
]

# 주의: 매칭 우선순위를 보장하기 위해 선언 순서를 유지합니다.
# HandlerRegistrationError는 RuntimeError이므로 다른 규칙보다 먼저 평가되어야 합니다.
RULES_FOR_WS: list[RuleDomain] = [
    *RULES_SETUP,
    *RULES_CONNECTION,
    *RULES_TYPE,
]

RULES_FOR_SESSION: list[RuleDomain] = [
    *RULES_SETUP,
    *RULES_TYPE,
]

RuleDict: TypeAlias = dict[str, list[RuleDomain]]
RULES_BY_KIND: RuleDict = {
    "ws": RULES_FOR_WS,
    "session": RULES_FOR_SESSION,
}


def classify_exception(err: BaseException, kind: str) -> ErrorCategory:
    """예외 → (ErrorDomain, ErrorCode, retryable) 분류기 (규칙 테이블 기반)

    - 규칙은 "구체 → 포괄" 순서로 선언되어 가장 특수한 규칙이 먼저 매칭됩니다.
    - 알 수 없는 kind 또는 매칭 실패 시 UNKNOWN (재시도 가능)으로 분류합니다.
      연결 루프는 예기치 못한 오류도 동일한 백오프 흐름으로 처리합니다.
    """
    for rule in RULES_BY_KIND.get(kind, []):
        if isinstance(err, rule.exc):
            return rule.result

    return (ErrorDomain.UNKNOWN, ErrorCode.UNKNOWN_ERROR, True)
