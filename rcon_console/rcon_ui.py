# rcon_console/rcon_ui.py
from __future__ import annotations

import asyncio
from typing import Optional

from prompt_toolkit import prompt
from prompt_toolkit.application import Application
from prompt_toolkit.document import Document
from prompt_toolkit.filters import has_focus
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Label, TextArea

from .rcon import Rcon

LOG_TRIM_LIMIT = 2_000_000  # keep last ~2MB in the in-memory text area
EXIT_WORDS = ("exit",)


def ask_password(text: str = "The password for RCON: ") -> str:
    return prompt(text, is_password=True)


def format_reply(cmd: str, out: str) -> str:
    text = f"RCON> {cmd}\n{out}\n"
    if out:
        text += "\n"
    return text


async def run_line(rcon: Rcon, cmd: str) -> Optional[str]:
    """
    Run one input line. Returns the transcript text to show, "" for a blank
    line, or None when the user asked to leave. Errors never end the session.
    """
    if not cmd:
        return ""
    if cmd.strip() in EXIT_WORDS:
        return None
    try:
        # the session lock lives in Rcon; run it off the event loop
        out = await asyncio.to_thread(rcon.command, cmd)
    except Exception as e:
        return f"RCON> {cmd}\n[rcon error] {e}\n\n"
    return format_reply(cmd, out)


async def run_rcon_ui(rcon: Rcon, title: str) -> None:
    """Fullscreen RCON console: transcript on top, input bar at the bottom."""
    log = TextArea(
        style="class:log",
        focusable=False,
        scrollbar=True,
        wrap_lines=False,
        read_only=False,
    )
    input_field = TextArea(height=1, prompt="RCON> ", multiline=False)
    status = Label(
        text=f"RCON — {title}    (type exit, Ctrl-C or Esc to leave)",
        style="class:status",
    )

    kb = KeyBindings()

    @kb.add("enter", filter=has_focus(input_field))
    async def _(event) -> None:
        cmd = input_field.text or ""
        input_field.buffer.document = Document(text="")
        text = await run_line(rcon, cmd)
        if text is None:
            event.app.exit()
        elif text:
            _append(app, log, text)

    @kb.add("c-c")
    @kb.add("escape")
    def _(event) -> None:
        event.app.exit()

    root = HSplit([status, log, input_field])
    app = Application(
        layout=Layout(root, focused_element=input_field),
        key_bindings=kb,
        full_screen=True,
        style=Style.from_dict(
            {
                "log": "bg:#0e162b #d1d5db",
                "status": "reverse",
            }
        ),
    )
    await app.run_async()


def _append(app: Optional[Application], area: TextArea, text: str) -> None:
    """
    Append text to the TextArea safely and keep the buffer size bounded.
    """
    buf = area.buffer
    buf.insert_text(text, move_cursor=True)
    if len(buf.text) > LOG_TRIM_LIMIT:
        new_text = buf.text[-LOG_TRIM_LIMIT:]
        buf.document = Document(new_text, cursor_position=len(new_text))
    if app is not None:
        app.invalidate()
