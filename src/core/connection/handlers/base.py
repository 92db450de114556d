from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from typing import Any, Callable

import websockets

from src.common.exceptions.exception_rule import (
    SOCKET_EXCEPTIONS,
    HandlerRegistrationError,
    classify_exception,
)
from src.common.logger import PipelineLogger
from src.common.metrics import CryptoExchangeMetrics
from src.config.settings import websocket_settings
from src.core.connection.services.backoff import compute_next_backoff
from src.core.connection.session import SubscriptionSession
from src.core.dto.internal.common import ConnectionPolicyDomain, ConnectionScopeDomain
from src.core.dto.internal.trade import ExchangeEventDomain
from src.core.types import ConnectionState, EventCallback, connection_state_format

logger = PipelineLogger.get_logger("exchange_collector", "connection")


def default_connection_policy() -> ConnectionPolicyDomain:
    """WS_ 설정 기반 기본 정책"""
    return ConnectionPolicyDomain(
        retry_delay=websocket_settings.retry_delay,
        ping_interval=websocket_settings.ping_interval,
        ping_timeout=websocket_settings.ping_timeout,
    )


class BaseExchangeCollector(ABC):
    """거래소 스트림 수집기 추상 기본 클래스 (연결 관리자)

    하나의 논리 구독을 불안정한 전송 위에서 유지합니다.

    상태 전이:
        DISCONNECTED  → CONNECTING     루프 진입 / 백오프 종료
        CONNECTING    → CONNECTED      핸드셰이크 + 업스트림 CONNECT 패킷
        CONNECTING    → RETRY_BACKOFF  연결/핸드셰이크 실패
        CONNECTED     → RETRY_BACKOFF  업스트림 disconnect 신호
        RETRY_BACKOFF → DISCONNECTED   고정 지연 후
        *             → STOPPED        request_stop() (반복 경계에서 관측)

    세션 정리(close)는 모든 경로에서 백오프 진입 전에 수행되며,
    동시에 두 개의 세션을 보유하지 않습니다.
    """

    def __init__(
        self,
        metrics: CryptoExchangeMetrics,
        scope: ConnectionScopeDomain,
        url: str,
        policy: ConnectionPolicyDomain | None = None,
    ) -> None:
        """
        Args:
            metrics: 공유 메트릭 모델 (세션보다 오래 산다)
            scope: (base, quote, exchange) 고정 스코프
            url: 스트림 엔드포인트
            policy: 백오프/keep-alive 정책
        """
        self.metrics = metrics
        self.scope = scope
        self.url = url
        self.policy = policy or default_connection_policy()

        self._state = ConnectionState.DISCONNECTED
        self._session: SubscriptionSession | None = None
        self._stop_requested: bool = False
        self._backoff_task: asyncio.Task[None] | None = None
        self._attempt: int = 0

    # ------------------------------------------------------------------
    # 거래소별 구현
    # ------------------------------------------------------------------

    @abstractmethod
    def register_handlers(self, session: SubscriptionSession) -> None:
        """새 세션에 거래소 이벤트 핸들러를 등록 - 각 거래소별로 구현 필요"""
        raise NotImplementedError()

    def forward(
        self, event_name: str, parser: Callable[[Any], ExchangeEventDomain]
    ) -> EventCallback:
        """페이로드 → 정규화 이벤트 → 메트릭 반영 콜백 생성

        콜백은 정규화와 전달만 수행합니다. 파싱 실패 예외는 세션이 잡아 이벤트를 폐기합니다.
        """

        def _callback(payload: Any) -> None:
            event = parser(payload)
            logger.debug(f"{self.scope.exchange}: Received {event_name} message: {event}")
            self.metrics.apply(event, self.scope)

        return _callback

    # ------------------------------------------------------------------
    # 상태
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        """외부에서 종료 요청 여부를 확인하기 위한 플래그."""
        return self._stop_requested

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(
            f"{self.scope.exchange} [{self.scope.base_currency}/{self.scope.quote_currency}]: "
            f"{connection_state_format(old_state)} -> {connection_state_format(new_state)}"
        )

    # ------------------------------------------------------------------
    # 세션 관리
    # ------------------------------------------------------------------

    async def _open_session(self) -> SubscriptionSession:
        """전송 연결 + 핸들러 등록 + 수신 시작

        Raises:
            HandlerRegistrationError: 핸들러 등록 실패 (재시도 불가)
            SOCKET_EXCEPTIONS: 전송 연결 실패
        """
        websocket = await websockets.connect(self.url, ping_interval=None)
        session = SubscriptionSession(self.scope, websocket, self.policy)
        self._session = session
        try:
            self.register_handlers(session)
        except HandlerRegistrationError as e:
            logger.critical(
                f"{self.scope.exchange}: Cannot listen for messages from websocket endpoint: {e}"
            )
            raise
        await session.start()
        if self._stop_requested:
            # 연결 중 종료 요청이 들어온 경우 수립 대기 없이 바로 정리
            await session.close()
        return session

    async def _close_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    async def request_stop(self, reason: str | None = None) -> None:
        """종료 요청. 루프는 다음 반복 경계에서 STOPPED로 전이합니다."""
        if self._stop_requested:
            return

        self._stop_requested = True
        reason_suffix = f" (reason: {reason})" if reason else ""
        logger.info(f"{self.scope.exchange}: stop requested{reason_suffix}")

        if self._backoff_task and not self._backoff_task.done():
            self._backoff_task.cancel()

        # 현재 세션을 닫으면 disconnect 신호로 CONNECTED 대기가 풀린다
        if self._session is not None:
            await self._session.close()

    # ------------------------------------------------------------------
    # 메인 루프
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """상태 머신 루프. STOPPED가 될 때까지 반환하지 않습니다.

        Raises:
            HandlerRegistrationError: 세션 설정 실패 (치명적)
        """
        try:
            while self._state is not ConnectionState.STOPPED:
                match self._state:
                    case ConnectionState.DISCONNECTED:
                        await self._on_disconnected()
                    case ConnectionState.CONNECTING:
                        await self._on_connecting()
                    case ConnectionState.CONNECTED:
                        await self._on_connected()
                    case ConnectionState.RETRY_BACKOFF:
                        await self._on_retry_backoff()
        except HandlerRegistrationError:
            self._stop_requested = True
            self._transition(ConnectionState.STOPPED)
            raise
        except asyncio.CancelledError:
            logger.info(f"{self.scope.exchange}: 수집 작업이 취소되었습니다.")
            raise
        finally:
            await self._close_session()

    async def _on_disconnected(self) -> None:
        if self._stop_requested:
            self._transition(ConnectionState.STOPPED)
            return
        self._transition(ConnectionState.CONNECTING)

    async def _on_connecting(self) -> None:
        self._attempt += 1
        logger.info(f"{self.scope.exchange}: 연결 시도 중... {self.url} (attempt={self._attempt})")
        try:
            session = await self._open_session()
            established = await session.wait_established()
        except HandlerRegistrationError:
            raise
        except SOCKET_EXCEPTIONS as e:
            domain, code, _ = classify_exception(e, "ws")
            logger.error(
                f"{self.scope.exchange}: Error connecting to endpoint: {e}",
                extra={"error_domain": str(domain), "error_code": str(code)},
            )
            self._transition(ConnectionState.RETRY_BACKOFF)
            return
        except Exception as e:
            # 예기치 못한 오류도 동일한 재시도 흐름을 적용
            logger.error(
                f"{self.scope.exchange}: unexpected error while connecting - {e}",
                exc_info=True,
            )
            self._transition(ConnectionState.RETRY_BACKOFF)
            return

        if self._stop_requested or not established:
            if not established:
                logger.warning(
                    f"{self.scope.exchange}: 세션 수립 전 연결 종료 "
                    f"(reason: {session.disconnect_reason})"
                )
            self._transition(ConnectionState.RETRY_BACKOFF)
            return

        self._attempt = 0
        self._transition(ConnectionState.CONNECTED)

    async def _on_connected(self) -> None:
        session = self._session
        reason = await session.wait_disconnected() if session is not None else None
        if not self._stop_requested:
            logger.warning(
                f"{self.scope.exchange}: Disconnected from websocket endpoint, "
                f"reconnecting (reason: {reason})"
            )
        self._transition(ConnectionState.RETRY_BACKOFF)

    async def _on_retry_backoff(self) -> None:
        # 이전 세션 자원을 백오프 전에 반드시 해제
        await self._close_session()

        if self._stop_requested:
            self._transition(ConnectionState.STOPPED)
            return

        delay = compute_next_backoff(self.policy)
        logger.info(f"{self.scope.exchange}: {delay:.2f}s 후 재접속")
        self._backoff_task = asyncio.create_task(asyncio.sleep(delay))
        try:
            await self._backoff_task
        except asyncio.CancelledError:
            if not self._stop_requested:
                raise
            logger.info(f"{self.scope.exchange}: 재접속 대기 중단")
        finally:
            self._backoff_task = None

        self._transition(ConnectionState.DISCONNECTED)
