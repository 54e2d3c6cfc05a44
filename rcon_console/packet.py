# rcon_console/packet.py
from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass
from typing import Callable, Union

from .errors import InvalidArgumentError, MalformedPacketError

Recv = Callable[[int], bytes]

HEADER = struct.Struct("<iii")  # bodyLength, requestId, type
HEADER_SIZE = HEADER.size       # 12
TERMINATOR = b"\x00\x00"

# requestId + type + the two terminator bytes
BODY_OVERHEAD = 4 + 4 + len(TERMINATOR)

# Anything bigger than this is a desynced stream, not a reply.
MAX_BODY_LENGTH = 1 << 20


class PacketType(enum.IntEnum):
    SERVERDATA_RESPONSE_VALUE = 0
    SERVERDATA_EXECCOMMAND = 2
    SERVERDATA_AUTH = 3

    # replies to SERVERDATA_AUTH reuse 2
    SERVERDATA_AUTH_RESPONSE = 2


@dataclass(frozen=True)
class Packet:
    """
    One RCON frame. On the wire:

        [int32 length][int32 requestId][int32 type][payload][0x00][0x00]

    little-endian, where length covers everything after itself.
    """

    request_id: int
    type: int
    payload: bytes = b""

    def encode(self) -> bytes:
        return encode(self.request_id, self.type, self.payload)


def body_length(payload_length: int) -> int:
    return BODY_OVERHEAD + payload_length


def encode(request_id: int, type: int, payload: bytes = b"") -> bytes:
    payload = bytes(payload)
    try:
        head = HEADER.pack(body_length(len(payload)), request_id, type)
    except struct.error as e:
        raise InvalidArgumentError(f"Cannot encode packet header: {e}") from e
    return head + payload + TERMINATOR


def _recv_exact(recv: Recv, length: int, what: str) -> bytes:
    chunks = []
    remaining = length
    while remaining > 0:
        chunk = recv(remaining)
        if not chunk:
            got = length - remaining
            raise MalformedPacketError(
                f"Cannot read the whole packet: {what} needs {length} bytes, stream ended after {got}"
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _recv_upto(recv: Recv, length: int) -> bytes:
    data = b""
    while len(data) < length:
        chunk = recv(length - len(data))
        if not chunk:
            break
        data += chunk
    return data


def read_packet(recv: Recv) -> Packet:
    """
    Read exactly one frame from ``recv`` (``socket.recv``, ``BytesIO.read``...).
    The terminator is consumed but never checked, and the requestId is not
    matched against anything: that is up to the caller.
    """
    header = _recv_exact(recv, HEADER_SIZE, "header")
    length, request_id, ptype = HEADER.unpack(header)

    payload_length = length - BODY_OVERHEAD
    if payload_length < 0:
        raise MalformedPacketError(f"Invalid packet length {length}")
    if length > MAX_BODY_LENGTH:
        raise MalformedPacketError(f"Packet length {length} exceeds {MAX_BODY_LENGTH}")

    payload = _recv_exact(recv, payload_length, "payload")
    _recv_upto(recv, len(TERMINATOR))

    try:
        ptype = PacketType(ptype)
    except ValueError:
        pass  # unknown reply types are kept as plain ints
    return Packet(request_id, ptype, payload)


def decode(data: Union[bytes, bytearray, memoryview]) -> Packet:
    return read_packet(io.BytesIO(bytes(data)).read)
