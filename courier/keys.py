from __future__ import annotations

from dataclasses import dataclass

ENTER = "enter"
ESCAPE = "escape"
TAB = "tab"
BACKTAB = "backtab"
BACKSPACE = "backspace"
DELETE = "delete"
LEFT = "left"
RIGHT = "right"
UP = "up"
DOWN = "down"
HOME = "home"
END = "end"
PAGE_UP = "pageup"
PAGE_DOWN = "pagedown"

NAMED_KEYS = frozenset(
    {
        ENTER,
        ESCAPE,
        TAB,
        BACKTAB,
        BACKSPACE,
        DELETE,
        LEFT,
        RIGHT,
        UP,
        DOWN,
        HOME,
        END,
        PAGE_UP,
        PAGE_DOWN,
    }
)


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key press: a single character or one of the named keys."""

    code: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    pressed: bool = True

    @property
    def char(self) -> str | None:
        """The printable character, if this is an unmodified text key."""
        if self.code in NAMED_KEYS or len(self.code) != 1:
            return None
        if self.ctrl or self.alt or not self.code.isprintable():
            return None
        return self.code

    def is_ctrl(self, letter: str) -> bool:
        return self.ctrl and self.code == letter
