"""트라이/캐치 블록에서 사용할 예외 타입 정의 모듈.

광범위한 Exception 사용을 지양하고, 의도한 예외만 명시적으로 처리하기 위해 사용합니다.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TypeAlias


class ErrorDomain(StrEnum):
    """에러 도메인 분류"""

    CONNECTION = "connection"
    PROTOCOL = "protocol"
    DESERIALIZATION = "deserialization"
    SETUP = "setup"
    UNKNOWN = "unknown"


class ErrorCode(StrEnum):
    """에러 코드 분류"""

    CONNECT_FAILED = "connect_failed"
    DISCONNECTED = "disconnected"
    INVALID_PACKET = "invalid_packet"
    DESERIALIZATION_ERROR = "deserialization_error"
    HANDLER_REGISTRATION_FAILED = "handler_registration_failed"
    UNKNOWN_ERROR = "unknown_error"


ErrorCategory: TypeAlias = tuple[ErrorDomain, ErrorCode, bool]
ExceptionGroup: TypeAlias = type[BaseException] | tuple[type[BaseException], ...]
RuleKind: TypeAlias = tuple[str, ...]
