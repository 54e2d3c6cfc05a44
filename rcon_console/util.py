# rcon_console/util.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import InvalidArgumentError
from .rcon import DEFAULT_CHARSET, DEFAULT_PORT

DEFAULT_HOST = "127.0.0.1"


@dataclass
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    password: Optional[str] = None
    charset: str = DEFAULT_CHARSET
    timeout: int = 0  # ms


def read_properties(path: Path) -> dict:
    props = {}
    if path.exists():
        for line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                k, v = line.split("=", 1)
                props[k.strip()] = v.strip()
    return props


def parse_port(text: str) -> int:
    try:
        port = int(str(text).strip())
    except ValueError:
        raise InvalidArgumentError(f"Wrong port: {text}") from None
    if port < 1 or port > 65535:
        raise InvalidArgumentError(f"Port {port} is out of range")
    return port


def parse_timeout(text: str) -> int:
    try:
        ms = int(str(text).strip())
    except ValueError:
        raise InvalidArgumentError(f"Wrong timeout: {text}") from None
    if ms < 0:
        raise InvalidArgumentError(f"Timeout {ms} is negative")
    return ms


def load_settings(properties: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Defaults, then a server.properties file (server-ip, rcon.port,
    rcon.password), then RCON_* environment variables. Empty values are ignored.
    """
    env = os.environ if env is None else env
    s = Settings()

    if properties is not None:
        props = read_properties(Path(properties).expanduser())
        if props.get("server-ip"):
            s.host = props["server-ip"]
        if props.get("rcon.port"):
            s.port = parse_port(props["rcon.port"])
        if props.get("rcon.password"):
            s.password = props["rcon.password"]

    if env.get("RCON_HOST"):
        s.host = env["RCON_HOST"]
    if env.get("RCON_PORT"):
        s.port = parse_port(env["RCON_PORT"])
    if env.get("RCON_PASSWORD"):
        s.password = env["RCON_PASSWORD"]
    if env.get("RCON_CHARSET"):
        s.charset = env["RCON_CHARSET"]
    if env.get("RCON_TIMEOUT"):
        s.timeout = parse_timeout(env["RCON_TIMEOUT"])
    return s
