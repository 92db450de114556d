from __future__ import annotations

from dataclasses import dataclass

from src.core.types import (
    ErrorCategory,
    ExceptionGroup,
    ExchangeName,
    RuleKind,
)


@dataclass(slots=True, frozen=True, eq=True, repr=False, match_args=False, kw_only=True)
class ConnectionScopeDomain:
    """연결 스코프(내부 도메인 값 객체).

    - (base_currency, quote_currency, exchange) 조합을 공통 타입으로 정의
    - 거래소 인스턴스마다 고정이며, 메트릭 라벨의 앞 세 자리로 재사용
    """

    base_currency: str
    quote_currency: str
    exchange: ExchangeName

    def to_key(self) -> str:
        """스코프를 로그/식별용 키로 변환 (exchange|base-quote 형식)"""
        return f"{self.exchange}|{self.base_currency}-{self.quote_currency}"

    def label_values(self) -> tuple[str, str, str]:
        """메트릭 라벨 순서 (base_currency, quote_currency, exchange_name)"""
        return (self.base_currency, self.quote_currency, self.exchange)


@dataclass(slots=True, repr=False, eq=False, match_args=False, kw_only=True)
class ConnectionPolicyDomain:
    """웹소켓 연결/백오프/keep-alive 정책(도메인)."""

    # 백오프 (고정 지연, 지터/지수 증가 없음)
    retry_delay: float = 3.0

    # keep-alive (Engine.IO ping/pong)
    ping_interval: float = 10.0
    ping_timeout: float = 5.0


@dataclass(
    slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True
)
class RuleDomain:
    """예외 분류 규칙(도메인)

    kinds: 규칙이 적용될 경계 종류 ("ws", "session")
    exc:   매칭할 예외 타입(단일 타입 또는 타입 튜플)
    result: ErrorCategory
    """

    kinds: RuleKind
    exc: ExceptionGroup
    result: ErrorCategory
