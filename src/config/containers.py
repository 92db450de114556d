"""
Dependency Injection Containers

이 모듈은 애플리케이션의 모든 의존성을 관리하는 DI 컨테이너를 정의합니다.

아키텍처:
- 설정: settings.py 싱글톤을 Object Provider로 주입 (CLI 플래그로 override 가능)
- 메트릭: 프로세스당 하나의 CryptoExchangeMetrics + 전용 CollectorRegistry
- 수집기: 거래소별 수집기 (메트릭 모델을 참조로 공유)
- 스크레이프 서버: Resource Provider (async start/stop 자동 관리)
"""

from dependency_injector import containers, providers

from src.application.orchestrator import ExporterOrchestrator
from src.common.metrics import CryptoExchangeMetrics
from src.config.init_infra import init_registry, init_scrape_server
from src.config.settings import exporter_settings, websocket_settings
from src.core.dto.internal.common import ConnectionPolicyDomain
from src.exchange import BitcointradeCollector


class ApplicationContainer(containers.DeclarativeContainer):
    """최상위 컨테이너"""

    # ===== Settings 주입 (DI) =====
    exporter_config = providers.Object(exporter_settings)
    websocket_config = providers.Object(websocket_settings)

    # ===== 메트릭 =====
    metrics = providers.Singleton(
        CryptoExchangeMetrics,
        namespace=exporter_config.provided.namespace,
    )
    registry = providers.Singleton(init_registry, metrics=metrics)

    # ===== 수집기 =====
    connection_policy = providers.Factory(
        ConnectionPolicyDomain,
        retry_delay=websocket_config.provided.retry_delay,
        ping_interval=websocket_config.provided.ping_interval,
        ping_timeout=websocket_config.provided.ping_timeout,
    )
    bitcointrade_collector = providers.Singleton(
        BitcointradeCollector,
        metrics=metrics,
        url=websocket_config.provided.bitcointrade_url,
        policy=connection_policy,
    )

    # ===== 스크레이프 서버 (Resource) =====
    scrape_server = providers.Resource(
        init_scrape_server,
        registry=registry,
        listen_address=exporter_config.provided.listen_address,
        endpoint=exporter_config.provided.endpoint,
    )

    orchestrator = providers.Singleton(
        ExporterOrchestrator,
        collectors=providers.List(bitcointrade_collector),
    )
