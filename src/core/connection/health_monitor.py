from __future__ import annotations

import asyncio
import contextlib
from typing import Any

from src.common.logger import PipelineLogger
from src.core.connection.utils.socketio import PING_PACKET
from src.core.dto.internal.common import ConnectionPolicyDomain, ConnectionScopeDomain

logger = PipelineLogger.get_logger("health_monitor", "connection")


class ConnectionHealthMonitor:
    """Engine.IO keep-alive 전담 클래스

    책임:
    - ping_interval마다 Engine.IO PING("2") 전송
    - ping_timeout 안에 PONG("3")이 없으면 웹소켓 종료
      (종료는 세션의 수신 루프를 끝내고 disconnect 신호로 이어짐)
    """

    def __init__(
        self, scope: ConnectionScopeDomain, policy: ConnectionPolicyDomain
    ) -> None:
        self.scope = scope
        self.policy = policy

        self._pong_received = asyncio.Event()
        self._is_monitoring: bool = False
        self._timed_out: bool = False

        self._heartbeat_task: asyncio.Task[None] | None = None

    def _scope_log_extra(self, phase: str, **extra: Any) -> dict[str, Any]:
        return {
            "exchange": self.scope.exchange,
            "pair": f"{self.scope.base_currency}-{self.scope.quote_currency}",
            "phase": phase,
            **extra,
        }

    async def start_monitoring(self, websocket: Any) -> None:
        """keep-alive 루프 시작"""
        self._timed_out = False
        self._is_monitoring = True
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat_loop(websocket),
            name=f"keepalive-{self.scope.to_key()}",
        )
        logger.debug(f"{self.scope.exchange}: keep-alive 시작")

    async def stop_monitoring(self) -> None:
        """keep-alive 루프 중단"""
        self._is_monitoring = False

        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat_task
            self._heartbeat_task = None

    def notify_pong(self) -> None:
        """PONG 수신 시 세션에서 호출"""
        self._pong_received.set()

    @property
    def timed_out(self) -> bool:
        """마지막 종료 사유가 pong 타임아웃인지 여부"""
        return self._timed_out

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    async def _heartbeat_loop(self, websocket: Any) -> None:
        while self._is_monitoring:
            await asyncio.sleep(self.policy.ping_interval)
            self._pong_received.clear()
            try:
                await websocket.send(PING_PACKET)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # 전송 실패는 연결이 이미 끊긴 경우이므로 수신 루프가 정리함
                logger.warning(
                    f"{self.scope.exchange}: ping 전송 실패 - {e}",
                    extra=self._scope_log_extra("ping_send", error=str(e)),
                )
                return

            try:
                await asyncio.wait_for(
                    self._pong_received.wait(), timeout=self.policy.ping_timeout
                )
            except asyncio.TimeoutError:
                self._timed_out = True
                logger.warning(
                    f"{self.scope.exchange}: pong timeout "
                    f"({self.policy.ping_timeout:.1f}s), 연결 종료",
                    extra=self._scope_log_extra(
                        "pong_timeout", ping_timeout=self.policy.ping_timeout
                    ),
                )
                # 연결 종료를 시도하여 상위 루프가 재연결 로직을 타게 한다
                with contextlib.suppress(Exception):
                    await websocket.close()
                return
