from __future__ import annotations

import asyncio

import pytest

from src.common.exceptions.exception_rule import HandlerRegistrationError
from src.common.metrics import CryptoExchangeMetrics
from src.core.connection.handlers import base as base_module
from src.core.connection.session import SubscriptionSession
from src.core.types import ConnectionState
from src.exchange import BitcointradeCollector
from tests.factory_builders import (
    CONNECT_FRAME,
    DISCONNECT_FRAME,
    OPEN_FRAME,
    FakeConnector,
    FakeSocketIOWebsocket,
    build_cancel_order_payload,
    build_connection_policy_domain,
    build_event_frame,
    build_order_completed_payload,
    build_order_payload,
    wait_until,
)

URL = "wss://example.invalid/socket.io/?EIO=3&transport=websocket"
BID = ("BTC", "BRL", "bitcointrade", "bid")
ASK = ("BTC", "BRL", "bitcointrade", "ask")


def _build_collector(**policy_overrides: float) -> BitcointradeCollector:
    return BitcointradeCollector(
        metrics=CryptoExchangeMetrics("crypto"),
        url=URL,
        policy=build_connection_policy_domain(**policy_overrides),
    )


async def _stop(collector: BitcointradeCollector, task: asyncio.Task[None]) -> None:
    await collector.request_stop("test")
    await asyncio.wait_for(task, timeout=2.0)


def test_registers_all_exchange_events() -> None:
    collector = _build_collector()
    session = SubscriptionSession(collector.scope, FakeSocketIOWebsocket(), collector.policy)

    collector.register_handlers(session)

    assert set(session.registered_events) == {"order", "cancel_order", "order_completed"}


@pytest.mark.asyncio
async def test_events_are_mapped_to_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    websocket = FakeSocketIOWebsocket(
        [
            OPEN_FRAME,
            CONNECT_FRAME,
            build_event_frame("order", build_order_payload(type=1)),
            build_event_frame("cancel_order", build_cancel_order_payload(type=2)),
            build_event_frame("order_completed", build_order_completed_payload(type=2)),
        ]
    )
    connector = FakeConnector([websocket])
    monkeypatch.setattr(base_module.websockets, "connect", connector)

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: collector.metrics.snapshot().trade_count.get(ASK) == 1)
    snap = collector.metrics.snapshot()

    assert collector.state is ConnectionState.CONNECTED
    assert connector.calls == [(URL, None)]
    assert snap.order_count[(*BID, "create")] == 1
    assert snap.order_count[(*ASK, "cancel")] == 1
    assert snap.trade_price[ASK] == 51000.0
    assert snap.trade_amount[ASK] == 0.05
    assert snap.trade_amount_sum[ASK] == 0.05

    await _stop(collector, task)
    assert collector.state is ConnectionState.STOPPED
    assert websocket.closed is True


@pytest.mark.asyncio
async def test_connection_retries_and_recovers(monkeypatch: pytest.MonkeyPatch) -> None:
    websocket = FakeSocketIOWebsocket(
        [CONNECT_FRAME, build_event_frame("order", build_order_payload())]
    )
    connector = FakeConnector([OSError("temporary network error"), websocket])
    monkeypatch.setattr(base_module.websockets, "connect", connector)

    backoff_calls: list[float] = []

    def _fake_backoff(policy: object) -> float:
        backoff_calls.append(0.0)
        return 0.0

    monkeypatch.setattr(base_module, "compute_next_backoff", _fake_backoff)

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: collector.state is ConnectionState.CONNECTED)

    assert len(connector.calls) == 2
    assert backoff_calls == [0.0]
    await _stop(collector, task)


@pytest.mark.asyncio
async def test_counters_survive_reconnect(monkeypatch: pytest.MonkeyPatch) -> None:
    first = FakeSocketIOWebsocket(
        [
            CONNECT_FRAME,
            build_event_frame("order_completed", build_order_completed_payload(amount=0.5)),
        ]
    )
    second = FakeSocketIOWebsocket(
        [
            CONNECT_FRAME,
            build_event_frame(
                "order_completed",
                build_order_completed_payload(amount=0.25, unit_price=52000.0),
            ),
        ]
    )
    monkeypatch.setattr(base_module.websockets, "connect", FakeConnector([first, second]))

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: collector.metrics.snapshot().trade_count.get(ASK) == 1)
    first.feed(DISCONNECT_FRAME)
    await wait_until(lambda: collector.metrics.snapshot().trade_count.get(ASK) == 2)

    snap = collector.metrics.snapshot()
    assert first.closed is True
    assert snap.trade_amount_sum[ASK] == 0.75
    assert snap.trade_price[ASK] == 52000.0
    assert snap.trade_amount[ASK] == 0.25

    await _stop(collector, task)


@pytest.mark.asyncio
async def test_malformed_payload_does_not_halt_ingestion(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    websocket = FakeSocketIOWebsocket(
        [
            CONNECT_FRAME,
            build_event_frame("order_completed", {"type": 2, "amount": "lots"}),
            build_event_frame("order_completed", build_order_completed_payload(amount=-1.0)),
            build_event_frame("order", build_order_payload(type=1)),
        ]
    )
    monkeypatch.setattr(base_module.websockets, "connect", FakeConnector([websocket]))

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: bool(collector.metrics.snapshot().order_count))
    snap = collector.metrics.snapshot()

    assert snap.trade_count == {}
    assert snap.trade_amount_sum == {}
    assert snap.order_count[(*BID, "create")] == 1
    assert collector.state is ConnectionState.CONNECTED

    await _stop(collector, task)


@pytest.mark.asyncio
async def test_disconnect_before_establishment_retries(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    refused = FakeSocketIOWebsocket([OPEN_FRAME, DISCONNECT_FRAME])
    accepted = FakeSocketIOWebsocket([CONNECT_FRAME])
    monkeypatch.setattr(base_module.websockets, "connect", FakeConnector([refused, accepted]))

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: collector.state is ConnectionState.CONNECTED)

    assert refused.closed is True
    await _stop(collector, task)


@pytest.mark.asyncio
async def test_handler_registration_failure_is_fatal(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class _BrokenCollector(BitcointradeCollector):
        def register_handlers(self, session: SubscriptionSession) -> None:
            session.on("order", lambda payload: None)
            session.on("order", lambda payload: None)

    websocket = FakeSocketIOWebsocket([CONNECT_FRAME])
    connector = FakeConnector([websocket, FakeSocketIOWebsocket([CONNECT_FRAME])])
    monkeypatch.setattr(base_module.websockets, "connect", connector)

    collector = _BrokenCollector(
        metrics=CryptoExchangeMetrics("crypto"),
        url=URL,
        policy=build_connection_policy_domain(),
    )

    with pytest.raises(HandlerRegistrationError):
        await asyncio.wait_for(collector.run(), timeout=2.0)

    assert len(connector.calls) == 1
    assert websocket.closed is True
    assert collector.state is ConnectionState.STOPPED


@pytest.mark.asyncio
async def test_stop_interrupts_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        base_module.websockets, "connect", FakeConnector([OSError("connection refused")])
    )

    collector = _build_collector(retry_delay=30.0)
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: collector.state is ConnectionState.RETRY_BACKOFF)
    await _stop(collector, task)

    assert collector.state is ConnectionState.STOPPED
    assert collector.stop_requested is True


@pytest.mark.asyncio
async def test_cancellation_releases_session(monkeypatch: pytest.MonkeyPatch) -> None:
    websocket = FakeSocketIOWebsocket([CONNECT_FRAME])
    monkeypatch.setattr(base_module.websockets, "connect", FakeConnector([websocket]))

    collector = _build_collector()
    task = asyncio.create_task(collector.run())
    await wait_until(lambda: collector.state is ConnectionState.CONNECTED)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert websocket.closed is True


@pytest.mark.asyncio
async def test_non_finite_values_are_dropped_and_sums_keep_growing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    websocket = FakeSocketIOWebsocket(
        [
            CONNECT_FRAME,
            build_event_frame("order_completed", build_order_completed_payload(amount=0.5)),
            build_event_frame("order_completed", build_order_completed_payload(amount="NaN")),
            build_event_frame("order_completed", build_order_completed_payload(amount="inf")),
            build_event_frame(
                "order_completed", build_order_completed_payload(unit_price="-Infinity")
            ),
            '42["order_completed",{"type":2,"amount":NaN,"unit_price":1.0}]',
            build_event_frame("order_completed", build_order_completed_payload(type=True)),
            build_event_frame("order_completed", build_order_completed_payload(amount=0.25)),
            build_event_frame("order", build_order_payload(type=1)),
        ]
    )
    monkeypatch.setattr(base_module.websockets, "connect", FakeConnector([websocket]))

    collector = _build_collector()
    task = asyncio.create_task(collector.run())

    await wait_until(lambda: bool(collector.metrics.snapshot().order_count))
    snap = collector.metrics.snapshot()

    assert snap.trade_count[ASK] == 2
    assert snap.trade_amount_sum[ASK] == 0.75
    assert snap.trade_amount[ASK] == 0.25
    assert snap.trade_price[ASK] == 51000.0
    assert BID not in snap.trade_count

    await _stop(collector, task)
