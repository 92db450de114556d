"""거래소 메트릭 모델.

공개 API:
- CryptoExchangeMetrics: 5개 계측치 집계기 (Prometheus Custom Collector)
- MetricsSnapshotDomain: 시점 스냅샷
- MetricDescriptor: 정적 디스크립터
"""

from src.common.metrics.exchange import (
    CryptoExchangeMetrics,
    MetricDescriptor,
    MetricsSnapshotDomain,
    build_fq_name,
)

__all__ = [
    "CryptoExchangeMetrics",
    "MetricDescriptor",
    "MetricsSnapshotDomain",
    "build_fq_name",
]
