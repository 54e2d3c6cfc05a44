#!/usr/bin/env python3
from __future__ import annotations
import argparse, sys, asyncio, logging
from typing import Optional
from rcon_console.errors import RconError
from rcon_console.rcon import Rcon
from rcon_console.util import DEFAULT_HOST, Settings, load_settings, parse_port

# --- prompts -----------------------------------------------------------------

def prompt(text: str, default: Optional[str]=None) -> str:
    s = f"{text}"
    if default is not None:
        s += f" (default {default})"
    s += ": "
    val = input(s).strip()
    return val if val else (default or "")

def _settings(args, interactive: bool) -> Settings:
    s = load_settings(args.properties)
    # only ask for the address when none was given at all
    ask = interactive and not args.host and not args.properties
    if args.host:
        s.host = args.host
    elif ask:
        s.host = prompt("The server IP or domain name", s.host or DEFAULT_HOST)
    if args.port is not None:
        s.port = args.port
    elif ask:
        s.port = parse_port(prompt("The RCON network port", str(s.port)))
    if args.password is not None:
        s.password = args.password
    if args.charset:
        s.charset = args.charset
    if args.timeout is not None:
        s.timeout = args.timeout
    if s.password is None:
        if not interactive:
            raise RconError("RCON password is required (pass --password, set RCON_PASSWORD or use --properties)")
        from rcon_console.rcon_ui import ask_password
        s.password = ask_password()
    return s

def _open(s: Settings) -> Rcon:
    return Rcon(s.host, s.port, s.password, charset=s.charset, timeout=s.timeout)

def _fail(e: BaseException) -> int:
    print(e, file=sys.stderr, flush=True)
    return 1

# --- console / exec ----------------------------------------------------------

def do_console(args):
    """Opens the prompt_toolkit RCON console, or a plain line loop with --plain."""
    try:
        s = _settings(args, interactive=True)
        rcon = _open(s)
    except (EOFError, KeyboardInterrupt):
        return 0
    except (RconError, OSError) as e:
        return _fail(e)

    with rcon:
        print()
        if not args.plain:
            try:
                from rcon_console.rcon_ui import run_rcon_ui
                asyncio.run(run_rcon_ui(rcon, f"{s.host}:{s.port}"))
            except KeyboardInterrupt:
                pass
            except Exception as e:
                print(f"prompt_toolkit UI not available ({e}); falling back to plain RCON.", flush=True)
                _plain_console(rcon)
        else:
            _plain_console(rcon)
    print("Bye bye!")
    return 0

def _plain_console(rcon: Rcon) -> None:
    while True:
        try:
            cmd = input("RCON> ")
        except EOFError:
            break
        if not cmd: continue
        if cmd.strip() == "exit": break
        try:
            out = rcon.command(cmd)
            print(out)
            if out:
                print()
        except (RconError, OSError) as e:
            print(e, file=sys.stderr)
            print(file=sys.stderr, flush=True)

def do_exec(args):
    try:
        s = _settings(args, interactive=False)
        with _open(s) as rcon:
            out = rcon.command(" ".join(args.command))
    except (RconError, OSError) as e:
        return _fail(e)
    if out:
        print(out)
    return 0

# --- argparse ----------------------------------------------------------------

def _port(text: str) -> int:
    try:
        return parse_port(text)
    except RconError as e:
        raise argparse.ArgumentTypeError(str(e))

def _add_target(p: argparse.ArgumentParser) -> None:
    p.add_argument("-p", "--port", type=_port)
    p.add_argument("--password")
    p.add_argument("--charset", help="Charset for commands and replies (default utf-8)")
    p.add_argument("--timeout", type=int, help="Socket timeout in ms, 0 = none")
    p.add_argument("--properties", help="Read server-ip/rcon.port/rcon.password from a server.properties file")

def build_parser():
    p = argparse.ArgumentParser(prog="rconcli.py", description="Source RCON client.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    pc = sub.add_parser("console", help="Interactive RCON console (prompts for missing fields)")
    pc.add_argument("host", nargs="?")
    _add_target(pc)
    pc.add_argument("--plain", action="store_true", help="Plain line loop instead of the fullscreen UI")
    pc.set_defaults(func=do_console)

    pe = sub.add_parser("exec", help="Run one command and print the reply")
    pe.add_argument("--host")
    _add_target(pe)
    pe.add_argument("command", nargs="+")
    pe.set_defaults(func=do_exec)

    return p

def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)

if __name__ == "__main__":
    raise SystemExit(main())
