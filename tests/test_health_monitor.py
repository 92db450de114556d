from __future__ import annotations

import pytest

from src.core.connection.health_monitor import ConnectionHealthMonitor
from src.core.connection.services.backoff import compute_next_backoff
from tests.factory_builders import (
    FakeSocketIOWebsocket,
    build_connection_policy_domain,
    build_scope_domain,
    wait_until,
)


def test_backoff_is_fixed() -> None:
    policy = build_connection_policy_domain(retry_delay=3.0)

    assert [compute_next_backoff(policy) for _ in range(3)] == [3.0, 3.0, 3.0]


def test_backoff_never_negative() -> None:
    assert compute_next_backoff(build_connection_policy_domain(retry_delay=-1.0)) == 0.0


@pytest.mark.asyncio
async def test_pong_keeps_connection_open() -> None:
    websocket = FakeSocketIOWebsocket(auto_pong=False)
    monitor = ConnectionHealthMonitor(
        build_scope_domain(),
        build_connection_policy_domain(ping_interval=0.01, ping_timeout=0.5),
    )

    await monitor.start_monitoring(websocket)
    await wait_until(lambda: websocket.sent == ["2"])
    monitor.notify_pong()
    await wait_until(lambda: len(websocket.sent) >= 2)
    monitor.notify_pong()
    await monitor.stop_monitoring()

    assert websocket.closed is False
    assert monitor.timed_out is False
    assert monitor.is_monitoring is False


@pytest.mark.asyncio
async def test_missing_pong_closes_websocket() -> None:
    websocket = FakeSocketIOWebsocket(auto_pong=False)
    monitor = ConnectionHealthMonitor(
        build_scope_domain(),
        build_connection_policy_domain(ping_interval=0.01, ping_timeout=0.02),
    )

    await monitor.start_monitoring(websocket)
    await wait_until(lambda: websocket.closed)

    assert monitor.timed_out is True
    await monitor.stop_monitoring()


@pytest.mark.asyncio
async def test_send_failure_ends_keepalive_quietly() -> None:
    websocket = FakeSocketIOWebsocket(auto_pong=False)
    await websocket.close()
    monitor = ConnectionHealthMonitor(
        build_scope_domain(),
        build_connection_policy_domain(ping_interval=0.01, ping_timeout=0.02),
    )

    await monitor.start_monitoring(websocket)
    await wait_until(lambda: monitor._heartbeat_task is not None and monitor._heartbeat_task.done())

    assert monitor.timed_out is False
    await monitor.stop_monitoring()
