"""구독 세션: 하나의 연결 시도에 대응하는 전송 핸들과 이벤트 핸들러 묶음.

- 웹소켓은 세션이 독점 소유하며 외부로 노출하지 않습니다.
- 이벤트 콜백은 정규화/전달만 수행하고, 역직렬화 실패는 이벤트 단위로 폐기됩니다.
- 연결 종료(서버 DISCONNECT, 소켓 종료, keep-alive 타임아웃)는 disconnect 신호로 통지됩니다.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

from websockets.exceptions import ConnectionClosed

from src.common.exceptions.exception_rule import (
    DESERIALIZATION_ERRORS,
    HandlerRegistrationError,
    classify_exception,
)
from src.common.logger import PipelineLogger
from src.core.connection.health_monitor import ConnectionHealthMonitor
from src.core.connection.utils.socketio import (
    EnginePacketType,
    SocketIOPacket,
    SocketPacketType,
    decode_packet,
)
from src.core.dto.internal.common import ConnectionPolicyDomain, ConnectionScopeDomain
from src.core.types import EventCallback

logger = PipelineLogger.get_logger("subscription_session", "connection")


class SubscriptionSession:
    """단일 Socket.IO 세션

    책임:
    - 이벤트 이름 → 콜백 등록 (시작 전에만)
    - 수신 루프에서 패킷 디코딩 및 콜백 호출
    - 세션 수립(connected) / 종료(disconnected) 신호 관리
    - keep-alive 모니터 수명 관리
    """

    def __init__(
        self,
        scope: ConnectionScopeDomain,
        websocket: Any,
        policy: ConnectionPolicyDomain,
    ) -> None:
        self.scope = scope
        self._websocket = websocket
        self._handlers: dict[str, EventCallback] = {}

        self._connected = asyncio.Event()
        self._disconnected = asyncio.Event()
        self._disconnect_reason: str | None = None

        self._health_monitor = ConnectionHealthMonitor(scope, policy)
        self._reader_task: asyncio.Task[None] | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # setup
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventCallback) -> None:
        """이벤트 핸들러 등록

        Raises:
            HandlerRegistrationError: 이름이 비었거나, 중복이거나, 이미 시작된 세션인 경우
        """
        if not isinstance(event, str) or not event:
            raise HandlerRegistrationError(f"invalid event name: {event!r}")
        if not callable(handler):
            raise HandlerRegistrationError(f"handler for {event!r} is not callable")
        if event in self._handlers:
            raise HandlerRegistrationError(f"handler for {event!r} already registered")
        if self._reader_task is not None:
            raise HandlerRegistrationError(
                f"cannot register {event!r} on a running session"
            )
        self._handlers[event] = handler

    @property
    def registered_events(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    async def start(self) -> None:
        """수신 루프 및 keep-alive 시작"""
        if self._reader_task is not None:
            return
        self._reader_task = asyncio.create_task(
            self._reader_loop(), name=f"session-reader-{self.scope.to_key()}"
        )
        await self._health_monitor.start_monitoring(self._websocket)

    # ------------------------------------------------------------------
    # signals
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set() and not self._disconnected.is_set()

    @property
    def is_disconnected(self) -> bool:
        return self._disconnected.is_set()

    @property
    def disconnect_reason(self) -> str | None:
        return self._disconnect_reason

    async def wait_established(self) -> bool:
        """세션 수립(CONNECT 패킷) 또는 종료 중 먼저 오는 쪽까지 대기

        Returns:
            세션이 수립되었으면 True, 수립 전에 종료되었으면 False
        """
        waiters = {
            asyncio.ensure_future(self._connected.wait()),
            asyncio.ensure_future(self._disconnected.wait()),
        }
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
        return self.is_connected

    async def wait_disconnected(self) -> str | None:
        """종료 신호까지 대기하고 종료 사유를 반환"""
        await self._disconnected.wait()
        return self._disconnect_reason

    def _signal_disconnect(self, reason: str) -> None:
        if self._disconnected.is_set():
            return
        self._disconnect_reason = reason
        self._disconnected.set()

    # ------------------------------------------------------------------
    # receive path
    # ------------------------------------------------------------------

    async def _reader_loop(self) -> None:
        reason = "connection closed"
        try:
            async for frame in self._websocket:
                if self._handle_frame(frame):
                    reason = "server disconnect"
                    break
            if self._health_monitor.timed_out:
                reason = "ping timeout"
        except asyncio.CancelledError:
            reason = "session closed"
            raise
        except ConnectionClosed as e:
            reason = "ping timeout" if self._health_monitor.timed_out else f"closed: {e}"
        except Exception as e:
            domain, code, _ = classify_exception(e, "ws")
            reason = f"{domain}/{code}: {e}"
            logger.error(
                f"{self.scope.exchange}: 수신 루프 오류 - {e}",
                extra={"error_domain": str(domain), "error_code": str(code)},
            )
        finally:
            self._signal_disconnect(reason)

    def _handle_frame(self, frame: str | bytes) -> bool:
        """프레임 1개 처리. 서버가 세션 종료를 알리면 True"""
        try:
            packet = decode_packet(frame)
        except DESERIALIZATION_ERRORS as e:
            self._log_dropped("<frame>", e)
            return False

        match packet.engine_type:
            case EnginePacketType.OPEN:
                logger.debug(f"{self.scope.exchange}: handshake {packet.data}")
            case EnginePacketType.PONG:
                self._health_monitor.notify_pong()
            case EnginePacketType.CLOSE:
                logger.warning(f"{self.scope.exchange}: engine close packet 수신")
                return True
            case EnginePacketType.MESSAGE:
                return self._handle_socket_packet(packet)
            case _:
                pass
        return False

    def _handle_socket_packet(self, packet: SocketIOPacket) -> bool:
        match packet.socket_type:
            case SocketPacketType.CONNECT:
                logger.info(
                    f"{self.scope.exchange}: Successfully connected to the websocket endpoint"
                )
                self._connected.set()
            case SocketPacketType.DISCONNECT:
                logger.warning(
                    f"{self.scope.exchange}: Disconnected from websocket endpoint"
                )
                return True
            case SocketPacketType.EVENT:
                self._dispatch(packet.event or "", packet.data)
            case SocketPacketType.ERROR:
                logger.warning(f"{self.scope.exchange}: socket error packet - {packet.data}")
            case _:
                pass
        return False

    def _dispatch(self, event: str, payload: Any) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"{self.scope.exchange}: 미등록 이벤트 무시 - {event}")
            return
        try:
            handler(payload)
        except DESERIALIZATION_ERRORS as e:
            self._log_dropped(event, e)

    def _log_dropped(self, event: str, err: BaseException) -> None:
        domain, code, _ = classify_exception(err, "session")
        logger.warning(
            f"{self.scope.exchange}: 이벤트 폐기 ({event}) - {err}",
            extra={
                "event_name": event,
                "error_domain": str(domain),
                "error_code": str(code),
            },
        )

    # ------------------------------------------------------------------
    # teardown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """전송 자원 해제 (멱등)"""
        if self._closed:
            return
        self._closed = True

        await self._health_monitor.stop_monitoring()

        try:
            await self._websocket.close()
        except Exception as close_error:
            logger.warning(f"{self.scope.exchange}: websocket close failed - {close_error}")

        if self._reader_task is not None:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
            self._reader_task = None

        self._signal_disconnect(self._disconnect_reason or "session closed")
