"""애플리케이션 진입점 (DI Container 기반)

암호화폐 거래소 스트림 → Prometheus 메트릭 브리지
- 거래소 Socket.IO 스트림 구독 (고정 백오프 재연결)
- 주문/체결 이벤트를 정규화된 메트릭으로 집계
- HTTP 스크레이프 엔드포인트로 노출

Usage:
    python main.py                                   # :8080/metrics
    python main.py --listen-address :9100 --namespace crypto
    EXPORTER_ENDPOINT=/prom python main.py
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys

from src.common.exceptions.exception_rule import HandlerRegistrationError
from src.common.logger import PipelineLogger
from src.config.containers import ApplicationContainer
from src.config.settings import app_settings, exporter_settings
from src.infra.http.scrape_server import ScrapeServerBindError

logger = PipelineLogger.get_logger("main", "app")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI 플래그 (지정하지 않으면 EXPORTER_ 설정값 사용)"""
    parser = argparse.ArgumentParser(description="Crypto exchange metrics exporter")
    parser.add_argument(
        "--listen-address",
        default=exporter_settings.listen_address,
        help="The address to listen on for HTTP requests.",
    )
    parser.add_argument(
        "--endpoint",
        default=exporter_settings.endpoint,
        help="Path under which to expose metrics.",
    )
    parser.add_argument(
        "--namespace",
        default=exporter_settings.namespace,
        help="Metrics namespace.",
    )
    return parser.parse_args(argv)


class Application:
    """애플리케이션 메인 클래스

    책임:
    - DI Container 관리
    - 스크레이프 서버(Resource) 기동
    - 수집기 태스크 실행
    - Graceful Shutdown
    """

    def __init__(self, args: argparse.Namespace) -> None:
        self.args = args
        self.container = ApplicationContainer()
        self.orchestrator = None

    async def initialize(self) -> None:
        """애플리케이션 초기화

        Flow:
        1. CLI 플래그로 설정 override
        2. Resource 초기화 (스크레이프 서버 바인딩, 실패 시 치명적)
        3. Orchestrator 준비
        """
        self.container.exporter_config.override(
            exporter_settings.model_copy(
                update={
                    "listen_address": self.args.listen_address,
                    "endpoint": self.args.endpoint,
                    "namespace": self.args.namespace,
                }
            )
        )

        logger.info(
            f"Crypto Exporter v{app_settings.version} started, "
            f"listening on {self.args.listen_address}."
        )
        logger.info(
            f"Parameters: endpoint={self.args.endpoint}, namespace={self.args.namespace}"
        )

        await self.container.init_resources()
        self.orchestrator = self.container.orchestrator()
        logger.info("✅ Orchestrator 준비 완료")

    async def run(self) -> None:
        """수집기 태스크 실행 (메인 루프)"""
        await self.orchestrator.run()

    async def shutdown(self) -> None:
        """Graceful Shutdown

        Flow:
        1. 수집기 종료 요청 및 대기
        2. Resource 정리 (스크레이프 서버)
        """
        logger.info("정리 작업 시작...")
        if self.orchestrator:
            await self.orchestrator.shutdown()

        await self.container.shutdown_resources()
        logger.info("✅ 프로그램 종료 완료")


async def main(argv: list[str] | None = None) -> int:
    """메인 실행 함수. 프로세스 종료 코드를 반환합니다."""
    app = Application(parse_args(argv))

    run_task: asyncio.Task[None] | None = None
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        logger.info("종료 신호 수신")
        if run_task is not None and not run_task.done():
            run_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.initialize()
        run_task = asyncio.create_task(app.run(), name="exporter-run")
        await run_task
        return 0
    except asyncio.CancelledError:
        return 0
    except ScrapeServerBindError as e:
        logger.critical(f"Cannot start metrics endpoint: {e}")
        return 1
    except HandlerRegistrationError as e:
        logger.critical(f"Fatal setup error: {e}")
        return 1
    finally:
        await app.shutdown()


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n프로그램이 종료되었습니다.")
