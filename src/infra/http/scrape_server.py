"""Prometheus 스크레이프 엔드포인트 (aiohttp).

등록된 CollectorRegistry를 텍스트 노출 포맷으로 제공합니다.
업스트림 연결 상태와 무관하게 항상 마지막 스냅샷을 반환합니다.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from src.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("scrape_server", "infra")


class ScrapeServerBindError(RuntimeError):
    """HTTP 리스너 바인딩 실패 (치명적)"""


def parse_listen_address(listen_address: str) -> tuple[str | None, int]:
    """"host:port" / ":port" 형식 파싱. host가 비면 모든 인터페이스.

    Raises:
        ValueError: 포트가 없거나 숫자가 아닌 경우
    """
    host, sep, port = listen_address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {listen_address!r}")
    host = host.strip("[]")
    return (host or None), int(port)


class ScrapeServer:
    """메트릭 스크레이프 HTTP 서버"""

    def __init__(
        self, registry: CollectorRegistry, listen_address: str, endpoint: str
    ) -> None:
        self.registry = registry
        self.listen_address = listen_address
        self.endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(self.endpoint, self.handle_metrics)
        return app

    async def handle_metrics(self, request: web.Request) -> web.Response:
        body = generate_latest(self.registry)
        return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def start(self) -> None:
        """리스너 시작

        Raises:
            ScrapeServerBindError: 주소 파싱/바인딩 실패
        """
        try:
            host, port = parse_listen_address(self.listen_address)
        except ValueError as e:
            raise ScrapeServerBindError(str(e)) from e

        runner = web.AppRunner(self.build_app(), access_log=None)
        await runner.setup()
        try:
            await web.TCPSite(runner, host=host, port=port).start()
        except OSError as e:
            await runner.cleanup()
            raise ScrapeServerBindError(
                f"cannot listen on {self.listen_address}: {e}"
            ) from e

        self._runner = runner
        logger.info(f"메트릭 노출 시작: {self.listen_address}{self.endpoint}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
