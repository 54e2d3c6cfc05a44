# rcon_console/rcon.py
from __future__ import annotations

import codecs
from typing import Optional, Union

from .connection import Connection, SocketFactory
from .errors import AuthenticationError, InvalidArgumentError
from .packet import PacketType

DEFAULT_PORT = 25575
DEFAULT_CHARSET = "utf-8"

# largest command payload the servers accept in a single packet
MAX_COMMAND_LENGTH = 1446


def _check_charset(charset: str) -> str:
    try:
        return codecs.lookup(charset).name
    except (LookupError, TypeError):
        raise InvalidArgumentError(f"Unknown charset: {charset!r}") from None


class Rcon:
    """
    Source RCON client.

        with Rcon("127.0.0.1", 25575, "secret") as rcon:
            print(rcon.command("list"))

    Constructing with a host connects and authenticates right away; without one,
    call connect() yourself. All calls block. One instance may be shared between
    threads: exchanges are serialized, never interleaved.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: int = DEFAULT_PORT,
        password: Union[str, bytes, None] = None,
        *,
        charset: Optional[str] = None,
        timeout: int = 0,
        socket_factory: Optional[SocketFactory] = None,
    ):
        self._conn = Connection(socket_factory=socket_factory)
        self._charset = DEFAULT_CHARSET
        self._timeout = 0
        self.set_charset(charset)
        self.set_timeout(timeout)
        if host is not None:
            try:
                self.connect(host, port, password if password is not None else b"")
            except AuthenticationError:
                # no caller holds this instance to close it
                self._conn.disconnect()
                raise

    # --- configuration -------------------------------------------------------

    @property
    def charset(self) -> str:
        return self._charset

    def set_charset(self, charset: Optional[str]) -> None:
        self._charset = DEFAULT_CHARSET if charset is None else _check_charset(charset)

    @property
    def timeout(self) -> int:
        """Socket timeout in milliseconds, 0 = none. Applied at the next connect."""
        return self._timeout

    def set_timeout(self, timeout: int) -> None:
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 0:
            raise InvalidArgumentError(f"Timeout must be a non-negative number of milliseconds, got {timeout!r}")
        self._timeout = timeout

    # --- session state -------------------------------------------------------

    @property
    def request_id(self) -> int:
        return self._conn.request_id

    @property
    def socket(self):
        return self._conn.socket

    @property
    def authenticated(self) -> bool:
        return self._conn.authenticated

    @property
    def connected(self) -> bool:
        return self._conn.connected

    # --- operations ----------------------------------------------------------

    def connect(self, host: str, port: int = DEFAULT_PORT, password: Union[str, bytes] = b"") -> None:
        if isinstance(password, str):
            password = password.encode(DEFAULT_CHARSET)
        elif not isinstance(password, (bytes, bytearray)):
            raise InvalidArgumentError(f"Password must be str or bytes, got {type(password).__name__}")
        self._conn.connect((host, port), bytes(password), self._timeout)

    def command(self, payload: str) -> str:
        """Run one command and return the server's reply, untouched."""
        if not isinstance(payload, str) or not payload.strip():
            raise InvalidArgumentError("Payload can't be null or empty")

        charset = self._charset
        try:
            data = payload.encode(charset)
        except UnicodeEncodeError as e:
            raise InvalidArgumentError(f"Payload can't be encoded as {charset}: {e.reason}") from e
        if len(data) > MAX_COMMAND_LENGTH:
            raise InvalidArgumentError(f"Payload too long ({len(data)} > {MAX_COMMAND_LENGTH} bytes)")

        res = self._conn.transact(PacketType.SERVERDATA_EXECCOMMAND, data)
        return res.payload.decode(charset, "replace")

    def disconnect(self) -> None:
        self._conn.disconnect()

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "Rcon":
        return self

    def __exit__(self, *exc) -> None:
        if self.connected:
            self.close()
