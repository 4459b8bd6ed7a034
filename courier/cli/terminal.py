"""
Terminal key source.

Puts the terminal in raw mode through prompt_toolkit, waits for input with a
bounded timeout, and decodes prompt_toolkit key presses into KeyEvent tokens.
On Unix the wait uses select; on Windows it polls msvcrt.
"""

from __future__ import annotations

import re
import sys
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterable, Iterator, Optional

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from ..keys import (
    BACKSPACE,
    BACKTAB,
    DELETE,
    DOWN,
    END,
    ENTER,
    ESCAPE,
    HOME,
    LEFT,
    PAGE_DOWN,
    PAGE_UP,
    RIGHT,
    TAB,
    UP,
    KeyEvent,
)

if sys.platform == "win32":
    import msvcrt

    def wait_for_input(fileno: int, timeout: float) -> bool:
        """Wait up to timeout seconds for a keypress (Windows)."""
        deadline = time.monotonic() + timeout
        while True:
            if msvcrt.kbhit():
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)

else:
    import select

    def wait_for_input(fileno: int, timeout: float) -> bool:
        """Wait up to timeout seconds for a keypress (Unix)."""
        return select.select([fileno], [], [], timeout)[0] != []


_NAMED = {
    Keys.ControlM.value: KeyEvent(ENTER),
    Keys.ControlJ.value: KeyEvent(ENTER),
    Keys.ControlI.value: KeyEvent(TAB),
    Keys.BackTab.value: KeyEvent(BACKTAB, shift=True),
    Keys.ControlH.value: KeyEvent(BACKSPACE),
    Keys.Delete.value: KeyEvent(DELETE),
    Keys.Left.value: KeyEvent(LEFT),
    Keys.Right.value: KeyEvent(RIGHT),
    Keys.Up.value: KeyEvent(UP),
    Keys.Down.value: KeyEvent(DOWN),
    Keys.Home.value: KeyEvent(HOME),
    Keys.End.value: KeyEvent(END),
    Keys.PageUp.value: KeyEvent(PAGE_UP),
    Keys.PageDown.value: KeyEvent(PAGE_DOWN),
    Keys.ControlLeft.value: KeyEvent(LEFT, ctrl=True),
    Keys.ControlRight.value: KeyEvent(RIGHT, ctrl=True),
    Keys.ControlUp.value: KeyEvent(UP, ctrl=True),
    Keys.ControlDown.value: KeyEvent(DOWN, ctrl=True),
    Keys.ControlHome.value: KeyEvent(HOME, ctrl=True),
    Keys.ControlEnd.value: KeyEvent(END, ctrl=True),
    Keys.ControlDelete.value: KeyEvent(DELETE, ctrl=True),
    Keys.ShiftLeft.value: KeyEvent(LEFT, shift=True),
    Keys.ShiftRight.value: KeyEvent(RIGHT, shift=True),
    Keys.ShiftUp.value: KeyEvent(UP, shift=True),
    Keys.ShiftDown.value: KeyEvent(DOWN, shift=True),
    Keys.ShiftDelete.value: KeyEvent(DELETE, shift=True),
}
_CTRL_LETTER_RE = re.compile(r"^c-([a-z])$")


def _translate(press: KeyPress) -> Optional[KeyEvent]:
    key = press.key
    if not isinstance(key, Keys):
        if len(key) == 1 and key.isprintable():
            return KeyEvent(key)
        return None
    named = _NAMED.get(key.value)
    if named is not None:
        return named
    match = _CTRL_LETTER_RE.match(key.value)
    if match:
        return KeyEvent(match.group(1), ctrl=True)
    return None


def decode_key_presses(presses: Iterable[KeyPress]) -> list[KeyEvent]:
    """Turn a batch of prompt_toolkit key presses into KeyEvent tokens.

    An Escape immediately followed by another key in the same batch is the
    terminal's encoding of Alt, so it is folded into the next event.
    """
    events: list[KeyEvent] = []
    pending_alt = False
    for press in presses:
        if press.key == Keys.Escape:
            if pending_alt:
                events.append(KeyEvent(ESCAPE))
            pending_alt = True
            continue
        if press.key == Keys.BracketedPaste:
            for ch in press.data.replace("\r", ""):
                events.append(KeyEvent(ENTER) if ch == "\n" else KeyEvent(ch))
            pending_alt = False
            continue
        event = _translate(press)
        if event is not None and pending_alt:
            event = replace(event, alt=True)
        pending_alt = False
        if event is not None:
            events.append(event)
    if pending_alt:
        events.append(KeyEvent(ESCAPE))
    return events


class KeySource:
    """Yields one KeyEvent per poll, waiting at most the given timeout."""

    def __init__(self, terminal_input: Optional[Input] = None) -> None:
        self._input = terminal_input or create_input(always_prefer_tty=True)
        self._pending: deque[KeyEvent] = deque()

    @contextmanager
    def activate(self) -> Iterator[KeySource]:
        with self._input.raw_mode():
            yield self

    def poll(self, timeout: float) -> Optional[KeyEvent]:
        if not self._pending:
            if wait_for_input(self._input.fileno(), timeout):
                self._pending.extend(decode_key_presses(self._input.read_keys()))
            else:
                # A lone Escape stays buffered in the parser until flushed.
                self._pending.extend(decode_key_presses(self._input.flush_keys()))
        if self._pending:
            return self._pending.popleft()
        return None
