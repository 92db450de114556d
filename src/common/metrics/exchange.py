"""거래소 공통 메트릭 모델 (Prometheus Custom Collector).

거래소 이벤트를 정규화된 5개 계측치로 집계합니다.

Order book:
- <ns>_order_count{base_currency, quote_currency, exchange_name, operation, event}

Completed order:
- <ns>_trade_count{base_currency, quote_currency, exchange_name, operation}
- <ns>_trade_price (gauge, 마지막 값)
- <ns>_trade_amount (gauge, 마지막 값)
- <ns>_trade_amount_sum (counter, 누적)

prometheus_client는 카운터 샘플 이름에 `_total`을 붙입니다. 실제 스크레이프 시리즈는
`<ns>_order_count_total`, `<ns>_trade_count_total`, `<ns>_trade_amount_sum_total`이므로
접미사 없는 이름을 쓰던 기존 대시보드/알림 쿼리는 함께 수정해야 합니다.

동시성:
- 단일 threading.Lock이 5개 계측치 전체를 보호합니다.
- OrderCompleted 1건이 변경하는 4개 값은 collect()/snapshot()에 대해 하나의 단위로 반영됩니다.
- 라벨 조합은 한번 관측되면 프로세스 수명 동안 삭제되지 않습니다.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Mapping, TypeAlias

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from src.core.dto.internal.common import ConnectionScopeDomain
from src.core.dto.internal.trade import (
    ExchangeEventDomain,
    OrderCanceledDomain,
    OrderCompletedDomain,
    OrderCreatedDomain,
)
from src.core.types import OrderEventKind

ORDER_LABELS: Final[tuple[str, ...]] = (
    "base_currency",
    "quote_currency",
    "exchange_name",
    "operation",
    "event",
)
TRADE_LABELS: Final[tuple[str, ...]] = (
    "base_currency",
    "quote_currency",
    "exchange_name",
    "operation",
)

OrderLabelValues: TypeAlias = tuple[str, str, str, str, str]
TradeLabelValues: TypeAlias = tuple[str, str, str, str]


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """namespace_subsystem_name 형식의 메트릭 이름 (빈 구성요소는 생략)"""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(slots=True, frozen=True, kw_only=True)
class MetricDescriptor:
    """메트릭 디스크립터 (이름, 타입, 라벨 이름)"""

    name: str
    kind: str
    documentation: str
    label_names: tuple[str, ...]


@dataclass(slots=True, frozen=True, kw_only=True)
class MetricsSnapshotDomain:
    """특정 시점의 전체 계측치 복사본 (불변)"""

    order_count: Mapping[OrderLabelValues, float] = field(default_factory=dict)
    trade_count: Mapping[TradeLabelValues, float] = field(default_factory=dict)
    trade_price: Mapping[TradeLabelValues, float] = field(default_factory=dict)
    trade_amount: Mapping[TradeLabelValues, float] = field(default_factory=dict)
    trade_amount_sum: Mapping[TradeLabelValues, float] = field(default_factory=dict)


class CryptoExchangeMetrics(Collector):
    """거래소 이벤트 메트릭 집계기.

    프로세스당 한 번 생성되어 연결 관리자(apply)와 스크레이프 레지스트리(collect)에
    참조로 공유됩니다. 전역 레지스트리에 스스로 등록하지 않습니다.
    """

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._lock = threading.Lock()

        self._order_count: dict[OrderLabelValues, float] = {}
        self._trade_count: dict[TradeLabelValues, float] = {}
        self._trade_price: dict[TradeLabelValues, float] = {}
        self._trade_amount: dict[TradeLabelValues, float] = {}
        self._trade_amount_sum: dict[TradeLabelValues, float] = {}

        self._descriptors: tuple[MetricDescriptor, ...] = (
            # Order book metrics
            MetricDescriptor(
                name=build_fq_name(namespace, "order", "count"),
                kind="counter",
                documentation="Number of unexecuted/canceled orders.",
                label_names=ORDER_LABELS,
            ),
            # Completed order metrics
            MetricDescriptor(
                name=build_fq_name(namespace, "trade", "count"),
                kind="counter",
                documentation="Number of executed orders.",
                label_names=TRADE_LABELS,
            ),
            MetricDescriptor(
                name=build_fq_name(namespace, "trade", "price"),
                kind="gauge",
                documentation="Last trade price, in quote currency.",
                label_names=TRADE_LABELS,
            ),
            MetricDescriptor(
                name=build_fq_name(namespace, "trade", "amount"),
                kind="gauge",
                documentation="Last trade amount, in base currency.",
                label_names=TRADE_LABELS,
            ),
            MetricDescriptor(
                name=build_fq_name(namespace, "trade", "amount_sum"),
                kind="counter",
                documentation="Sum of all trade amounts, in base currency.",
                label_names=TRADE_LABELS,
            ),
        )

    @property
    def descriptors(self) -> tuple[MetricDescriptor, ...]:
        """관측 여부와 무관한 정적 디스크립터 목록"""
        return self._descriptors

    # ------------------------------------------------------------------
    # ingestion
    # ------------------------------------------------------------------

    def apply(self, event: ExchangeEventDomain, scope: ConnectionScopeDomain) -> None:
        """정규화된 이벤트 1건을 계측치에 반영합니다.

        Raises:
            ValueError: 체결 수량이 음수이거나 수량/단가가 유한하지 않은 경우.
                값은 변경되지 않습니다.
            TypeError: 알 수 없는 이벤트 타입
        """
        match event:
            case OrderCreatedDomain(operation=operation):
                self._inc_order(scope, operation, "create")
            case OrderCanceledDomain(operation=operation):
                self._inc_order(scope, operation, "cancel")
            case OrderCompletedDomain(operation=operation, amount=amount, unit_price=price):
                if not (math.isfinite(amount) and math.isfinite(price)):
                    raise ValueError(f"non-finite trade values: amount={amount}, price={price}")
                if amount < 0:
                    raise ValueError(f"trade amount must be non-negative: {amount}")
                key: TradeLabelValues = (*scope.label_values(), operation)
                with self._lock:
                    self._trade_count[key] = self._trade_count.get(key, 0.0) + 1.0
                    self._trade_price[key] = price
                    self._trade_amount[key] = amount
                    self._trade_amount_sum[key] = (
                        self._trade_amount_sum.get(key, 0.0) + amount
                    )
            case _:
                raise TypeError(f"unsupported exchange event: {type(event).__name__}")

    def _inc_order(
        self, scope: ConnectionScopeDomain, operation: str, kind: OrderEventKind
    ) -> None:
        key: OrderLabelValues = (*scope.label_values(), operation, kind)
        with self._lock:
            self._order_count[key] = self._order_count.get(key, 0.0) + 1.0

    # ------------------------------------------------------------------
    # pull contract
    # ------------------------------------------------------------------

    def snapshot(self) -> MetricsSnapshotDomain:
        """현재 기록된 모든 라벨/값의 시점 복사본"""
        with self._lock:
            return MetricsSnapshotDomain(
                order_count=MappingProxyType(dict(self._order_count)),
                trade_count=MappingProxyType(dict(self._trade_count)),
                trade_price=MappingProxyType(dict(self._trade_price)),
                trade_amount=MappingProxyType(dict(self._trade_amount)),
                trade_amount_sum=MappingProxyType(dict(self._trade_amount_sum)),
            )

    def describe(self) -> Iterator[Metric]:
        """샘플 없는 메트릭 패밀리 (레지스트리 등록 시 이름 충돌 검사용)"""
        for descriptor in self._descriptors:
            yield self._family(descriptor)

    def collect(self) -> Iterator[Metric]:
        """스크레이프 시점의 전체 스냅샷을 메트릭 패밀리로 변환"""
        snap = self.snapshot()
        series: tuple[Mapping[tuple[str, ...], float], ...] = (
            snap.order_count,
            snap.trade_count,
            snap.trade_price,
            snap.trade_amount,
            snap.trade_amount_sum,
        )
        for descriptor, values in zip(self._descriptors, series, strict=True):
            family = self._family(descriptor)
            for label_values, value in values.items():
                family.add_metric(list(label_values), value)
            yield family

    @staticmethod
    def _family(descriptor: MetricDescriptor) -> CounterMetricFamily | GaugeMetricFamily:
        if descriptor.kind == "counter":
            return CounterMetricFamily(
                descriptor.name,
                descriptor.documentation,
                labels=list(descriptor.label_names),
            )
        return GaugeMetricFamily(
            descriptor.name,
            descriptor.documentation,
            labels=list(descriptor.label_names),
        )
