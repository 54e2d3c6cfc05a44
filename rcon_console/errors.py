# rcon_console/errors.py
from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    INVALID_ARGUMENT = "invalid-argument"
    AUTH_REJECTED = "auth-rejected"
    MALFORMED = "malformed"
    TRANSPORT = "transport"


class RconError(Exception):
    """Base exception for everything raised by the RCON core itself."""

    kind: Optional[ErrorKind] = None


class InvalidArgumentError(RconError, ValueError):
    """Caller mistake detected before any I/O (host, port, command, charset...)."""

    kind = ErrorKind.INVALID_ARGUMENT


class AuthenticationError(RconError):
    """The server rejected the password. The socket is left open."""

    kind = ErrorKind.AUTH_REJECTED


class MalformedPacketError(RconError):
    """The stream ended mid-frame or carried an impossible length."""

    kind = ErrorKind.MALFORMED


def error_kind(exc: BaseException) -> Optional[ErrorKind]:
    """
    Tag any exception coming out of the core so callers can branch on a value.
    Socket errors are passed through untouched by the core, so every OSError
    counts as a transport failure. Anything else is not ours: None.
    """
    if isinstance(exc, RconError):
        return exc.kind
    if isinstance(exc, OSError):
        return ErrorKind.TRANSPORT
    return None
