from __future__ import annotations

import orjson
import pytest

from src.core.connection.utils.socketio import (
    PING_PACKET,
    EnginePacketType,
    PacketDecodeError,
    SocketPacketType,
    decode_packet,
)
from tests.factory_builders import OPEN_FRAME, build_event_frame


def test_decode_open_handshake() -> None:
    packet = decode_packet(OPEN_FRAME)

    assert packet.engine_type is EnginePacketType.OPEN
    assert packet.data["pingInterval"] == 25000


@pytest.mark.parametrize(
    ("frame", "expected"),
    [("2", EnginePacketType.PING), ("3", EnginePacketType.PONG), ("1", EnginePacketType.CLOSE)],
)
def test_decode_engine_control_packets(frame: str, expected: EnginePacketType) -> None:
    packet = decode_packet(frame)

    assert packet.engine_type is expected
    assert packet.socket_type is None


def test_decode_connect_and_disconnect() -> None:
    assert decode_packet("40").socket_type is SocketPacketType.CONNECT
    assert decode_packet("41").socket_type is SocketPacketType.DISCONNECT


def test_decode_event_with_payload() -> None:
    packet = decode_packet('42["order",{"type":1,"unit_price":10.5,"amount":2}]')

    assert packet.socket_type is SocketPacketType.EVENT
    assert packet.namespace == "/"
    assert packet.event == "order"
    assert packet.data == {"type": 1, "unit_price": 10.5, "amount": 2}


def test_decode_event_with_namespace_and_ack_id() -> None:
    packet = decode_packet('42/market,17["cancel_order",{"type":2}]')

    assert packet.namespace == "/market"
    assert packet.event == "cancel_order"
    assert packet.data == {"type": 2}


def test_decode_event_without_payload() -> None:
    packet = decode_packet('42["ping_me"]')

    assert packet.event == "ping_me"
    assert packet.data is None


def test_decode_bytes_frame() -> None:
    packet = decode_packet(b'42["order",{}]')

    assert packet.event == "order"


@pytest.mark.parametrize("frame", ["", "x", "9", "4", "4x", "47", '42{"a":1}', "42[]", "42[1]"])
def test_decode_rejects_invalid_framing(frame: str) -> None:
    with pytest.raises(PacketDecodeError):
        decode_packet(frame)


def test_decode_broken_json_raises_json_error() -> None:
    with pytest.raises(orjson.JSONDecodeError):
        decode_packet('42["order",{')


def test_packet_decode_error_is_value_error() -> None:
    assert issubclass(PacketDecodeError, ValueError)


def test_event_frame_payload_is_decoded() -> None:
    frame = build_event_frame("order", {"type": 1})

    assert decode_packet(frame).data == {"type": 1}
    assert PING_PACKET == "2"
