"""Engine.IO v3 / Socket.IO 텍스트 패킷 코덱.

웹소켓 프레임 하나에 패킷 하나가 실립니다.

    <engine type>[<socket type>][/<namespace>,][<ack id>][<json>]

예시:
    "0{...}"                 → Engine OPEN (핸드셰이크 정보)
    "2" / "3"                → Engine PING / PONG
    "40"                     → Socket CONNECT (세션 수립)
    "41"                     → Socket DISCONNECT
    '42["order",{...}]'      → Socket EVENT
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Final

import orjson


class EnginePacketType(IntEnum):
    OPEN = 0
    CLOSE = 1
    PING = 2
    PONG = 3
    MESSAGE = 4
    UPGRADE = 5
    NOOP = 6


class SocketPacketType(IntEnum):
    CONNECT = 0
    DISCONNECT = 1
    EVENT = 2
    ACK = 3
    ERROR = 4
    BINARY_EVENT = 5


PING_PACKET: Final[str] = str(int(EnginePacketType.PING))


class PacketDecodeError(ValueError):
    """패킷 프레이밍이 잘못된 경우 (JSON 오류와 구분)"""


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class SocketIOPacket:
    """디코딩된 패킷.

    engine_type이 MESSAGE일 때만 socket_type이 채워지고,
    EVENT일 때만 event가 채워집니다.
    """

    engine_type: EnginePacketType
    socket_type: SocketPacketType | None = None
    namespace: str = "/"
    event: str | None = None
    data: Any = None


def _split_namespace(body: str) -> tuple[str, str]:
    if not body.startswith("/"):
        return "/", body
    namespace, sep, rest = body.partition(",")
    if not sep:
        return namespace, ""
    return namespace, rest


def _strip_ack_id(body: str) -> str:
    idx = 0
    while idx < len(body) and body[idx].isdigit():
        idx += 1
    return body[idx:]


def decode_packet(raw: str | bytes) -> SocketIOPacket:
    """웹소켓 프레임 하나를 SocketIOPacket으로 디코딩합니다.

    Raises:
        PacketDecodeError: 패킷 타입이 잘못된 경우
        orjson.JSONDecodeError: JSON 본문이 깨진 경우
    """
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    if not text or not text[0].isdigit():
        raise PacketDecodeError(f"invalid engine packet: {text[:32]!r}")

    try:
        engine_type = EnginePacketType(int(text[0]))
    except ValueError as e:
        raise PacketDecodeError(f"unknown engine packet type: {text[0]!r}") from e

    body = text[1:]
    if engine_type is EnginePacketType.OPEN:
        return SocketIOPacket(
            engine_type=engine_type, data=orjson.loads(body) if body else None
        )
    if engine_type is not EnginePacketType.MESSAGE:
        return SocketIOPacket(engine_type=engine_type, data=body or None)

    if not body or not body[0].isdigit():
        raise PacketDecodeError(f"invalid socket packet: {text[:32]!r}")
    try:
        socket_type = SocketPacketType(int(body[0]))
    except ValueError as e:
        raise PacketDecodeError(f"unknown socket packet type: {body[0]!r}") from e

    namespace, rest = _split_namespace(body[1:])
    rest = _strip_ack_id(rest)
    data = orjson.loads(rest) if rest else None

    if socket_type is SocketPacketType.EVENT:
        if not isinstance(data, list) or not data or not isinstance(data[0], str):
            raise PacketDecodeError(f"invalid event packet: {text[:32]!r}")
        payload = data[1] if len(data) > 1 else None
        return SocketIOPacket(
            engine_type=engine_type,
            socket_type=socket_type,
            namespace=namespace,
            event=data[0],
            data=payload,
        )

    return SocketIOPacket(
        engine_type=engine_type,
        socket_type=socket_type,
        namespace=namespace,
        data=data,
    )

