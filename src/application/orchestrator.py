from __future__ import annotations

import asyncio
import contextlib
from typing import Sequence

from src.common.logger import PipelineLogger
from src.core.connection.handlers.base import BaseExchangeCollector

logger = PipelineLogger.get_logger("orchestrator", "app")


class ExporterOrchestrator:
    """거래소 수집기 실행/종료 조율

    책임:
    - 수집기별 백그라운드 태스크 생성
    - 치명적 오류(핸들러 등록 실패) 전파
    - Graceful Shutdown (종료 요청 → 태스크 대기)
    """

    def __init__(
        self, collectors: Sequence[BaseExchangeCollector], stop_timeout: float = 5.0
    ) -> None:
        self.collectors = list(collectors)
        self.stop_timeout = stop_timeout
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def tasks(self) -> list[asyncio.Task[None]]:
        return self._tasks

    def start(self) -> list[asyncio.Task[None]]:
        """수집기 태스크 시작 (멱등)"""
        if self._tasks:
            return self._tasks
        self._tasks = [
            asyncio.create_task(
                collector.run(), name=f"collector-{collector.scope.to_key()}"
            )
            for collector in self.collectors
        ]
        logger.info(f"✅ {len(self._tasks)}개 수집기 태스크 실행 중...")
        return self._tasks

    async def run(self) -> None:
        """모든 수집기가 끝날 때까지 대기. 하나라도 치명적으로 실패하면 예외 전파"""
        tasks = self.start()
        await asyncio.gather(*tasks)

    async def shutdown(self) -> None:
        """종료 요청 후 태스크 정리"""
        for collector in self.collectors:
            await collector.request_stop("shutdown")

        for task in self._tasks:
            if task.done():
                continue
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=self.stop_timeout)
            except asyncio.TimeoutError:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            except Exception as e:
                logger.error(f"collector task ended with error: {e}")
        logger.info("모든 수집기 종료 완료")
