# rcon_console/connection.py
from __future__ import annotations

import errno
import logging
import random
import socket
import threading
from typing import Any, Callable, Optional, Tuple

from .errors import AuthenticationError, InvalidArgumentError, MalformedPacketError
from .packet import Packet, PacketType, encode, read_packet

log = logging.getLogger(__name__)

Address = Tuple[str, int]
SocketFactory = Callable[..., Any]

AUTH_REJECTED_ID = -1
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


def check_address(address: Address) -> Address:
    try:
        host, port = address
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Address must be a (host, port) pair, got {address!r}") from None
    if not isinstance(host, str) or not host.strip():
        raise InvalidArgumentError("Host can't be empty")
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidArgumentError(f"Port must be an integer, got {port!r}")
    if not 1 <= port <= 65535:
        raise InvalidArgumentError(f"Port {port} is out of range")
    return host.strip(), port


def _not_connected() -> OSError:
    return OSError(errno.ENOTCONN, "Not connected")


class Connection:
    """
    Owns one TCP socket, the session request id and the lock serializing every
    exchange on it. The protocol has no multiplexing, so a whole
    write-then-read must happen under the lock.
    """

    def __init__(self, socket_factory: Optional[SocketFactory] = None, rng: Optional[random.Random] = None):
        self._socket_factory = socket_factory or socket.create_connection
        self._rand = rng or random.Random()
        self._lock = threading.RLock()
        self._sock = None
        self._request_id = 0
        self._authenticated = False

    @property
    def request_id(self) -> int:
        return self._request_id

    @property
    def socket(self):
        return self._sock

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def _new_request_id(self) -> int:
        while True:
            rid = self._rand.randint(INT32_MIN, INT32_MAX)
            if rid != AUTH_REJECTED_ID:
                return rid

    def connect(self, address: Address, password: bytes, timeout: int = 0) -> None:
        """
        Open a fresh socket to ``address`` and authenticate with ``password``.
        ``timeout`` is in milliseconds, 0 blocks forever. Socket errors close the
        socket and propagate as they are; a rejected password raises
        AuthenticationError and leaves the socket open for the caller to close.
        """
        address = check_address(address)
        with self._lock:
            self._request_id = self._new_request_id()
            self._authenticated = False

            # sockets are never reused across sessions
            self._close_quietly()
            seconds = timeout / 1000.0 if timeout > 0 else None
            log.debug("connecting to %s:%d (timeout=%sms)", address[0], address[1], timeout)
            sock = self._socket_factory(address, seconds)
            self._sock = sock
            try:
                if seconds is not None:
                    sock.settimeout(seconds)
            except OSError:
                self._close_quietly()
                raise

            res = self.transact(PacketType.SERVERDATA_AUTH, password)
            if res.request_id == AUTH_REJECTED_ID:
                log.debug("authentication rejected by %s:%d", address[0], address[1])
                raise AuthenticationError("Password rejected by server")
            self._authenticated = True
            log.debug("authenticated to %s:%d", address[0], address[1])

    def transact(self, type: int, payload: bytes) -> Packet:
        """Send one request packet and read exactly one reply packet."""
        with self._lock:
            sock = self._sock
            if sock is None:
                raise _not_connected()

            frame = encode(self._request_id, type, payload)
            try:
                sock.sendall(frame)
            except OSError:
                # never read a reply to a request that did not fully leave
                self._close_quietly()
                raise
            log.debug("sent type=%d frame of %d bytes", type, len(frame))

            try:
                res = read_packet(sock.recv)
            except (OSError, MalformedPacketError):
                # the rest of a bad frame is still in the stream
                self._close_quietly()
                raise
            log.debug("received type=%d reply with %d payload bytes", res.type, len(res.payload))
            return res

    def disconnect(self) -> None:
        with self._lock:
            sock = self._sock
            if sock is None:
                raise _not_connected()
            self._sock = None
            self._authenticated = False
            sock.close()
            log.debug("socket closed")

    def _close_quietly(self) -> None:
        sock, self._sock = self._sock, None
        self._authenticated = False
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            log.debug("error while closing a failed socket: %s", e)
        log.debug("socket dropped")
