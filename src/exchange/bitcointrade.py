"""Bitcointrade 거래소 수집기.

이 거래소는 BTC-BRL 페어만 지원합니다.
"""

from __future__ import annotations

from src.common.logger import PipelineLogger
from src.common.metrics import CryptoExchangeMetrics
from src.config.settings import websocket_settings
from src.core.connection.handlers.base import BaseExchangeCollector
from src.core.connection.session import SubscriptionSession
from src.core.connection.utils.parse import (
    parse_order_canceled,
    parse_order_completed,
    parse_order_created,
)
from src.core.dto.internal.common import ConnectionPolicyDomain, ConnectionScopeDomain
from src.core.types import EVENT_CANCEL_ORDER, EVENT_ORDER, EVENT_ORDER_COMPLETED

logger = PipelineLogger.get_logger("bitcointrade", "exchange")

BITCOINTRADE_SCOPE = ConnectionScopeDomain(
    base_currency="BTC",
    quote_currency="BRL",
    exchange="bitcointrade",
)


class BitcointradeCollector(BaseExchangeCollector):
    """Socket.IO 기반 Bitcointrade 수집기

    이벤트 매핑:
    - order           → order_count{event=create}
    - cancel_order    → order_count{event=cancel}
    - order_completed → trade_count / trade_price / trade_amount / trade_amount_sum
    """

    def __init__(
        self,
        metrics: CryptoExchangeMetrics,
        url: str | None = None,
        policy: ConnectionPolicyDomain | None = None,
    ) -> None:
        super().__init__(
            metrics=metrics,
            scope=BITCOINTRADE_SCOPE,
            url=url or websocket_settings.bitcointrade_url,
            policy=policy,
        )

    def register_handlers(self, session: SubscriptionSession) -> None:
        # Order metrics
        session.on(EVENT_ORDER, self.forward(EVENT_ORDER, parse_order_created))
        session.on(
            EVENT_CANCEL_ORDER, self.forward(EVENT_CANCEL_ORDER, parse_order_canceled)
        )

        # Trade metrics
        session.on(
            EVENT_ORDER_COMPLETED,
            self.forward(EVENT_ORDER_COMPLETED, parse_order_completed),
        )
        logger.debug(
            f"{self.scope.exchange}: handlers registered - {session.registered_events}"
        )
