from typing import AsyncIterator

from prometheus_client import CollectorRegistry

from src.common.metrics import CryptoExchangeMetrics
from src.infra.http.scrape_server import ScrapeServer


def init_registry(metrics: CryptoExchangeMetrics) -> CollectorRegistry:
    """전용 레지스트리 생성 및 메트릭 모델 등록 (전역 기본 레지스트리 미사용)"""
    registry = CollectorRegistry(auto_describe=True)
    registry.register(metrics)
    return registry


async def init_scrape_server(
    registry: CollectorRegistry, listen_address: str, endpoint: str
) -> AsyncIterator[ScrapeServer]:
    """ScrapeServer 시작 및 정리 (바인딩 실패 시 ScrapeServerBindError 전파)"""
    server = ScrapeServer(registry=registry, listen_address=listen_address, endpoint=endpoint)
    await server.start()
    yield server
    await server.stop()
