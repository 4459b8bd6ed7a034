import os
import sys
import unittest
from contextlib import contextmanager

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from courier.cli.terminal import KeySource, decode_key_presses
from courier.keys import BACKSPACE, BACKTAB, ENTER, ESCAPE, LEFT, TAB, KeyEvent


class DecodeKeyPressesTests(unittest.TestCase):
    def test_printable_characters(self) -> None:
        events = decode_key_presses([KeyPress("a"), KeyPress("?"), KeyPress(" ")])
        self.assertEqual(events, [KeyEvent("a"), KeyEvent("?"), KeyEvent(" ")])
        self.assertEqual(events[0].char, "a")

    def test_named_keys(self) -> None:
        events = decode_key_presses(
            [
                KeyPress(Keys.ControlM, "\r"),
                KeyPress(Keys.ControlI, "\t"),
                KeyPress(Keys.BackTab),
                KeyPress(Keys.ControlH, "\x7f"),
                KeyPress(Keys.ControlLeft),
            ]
        )
        self.assertEqual(
            events,
            [
                KeyEvent(ENTER),
                KeyEvent(TAB),
                KeyEvent(BACKTAB, shift=True),
                KeyEvent(BACKSPACE),
                KeyEvent(LEFT, ctrl=True),
            ],
        )

    def test_control_letters(self) -> None:
        events = decode_key_presses([KeyPress(Keys.ControlS, "\x13"), KeyPress(Keys.ControlW, "\x17")])
        self.assertEqual(events, [KeyEvent("s", ctrl=True), KeyEvent("w", ctrl=True)])
        self.assertTrue(events[0].is_ctrl("s"))
        self.assertIsNone(events[0].char)

    def test_escape_prefix_becomes_alt(self) -> None:
        events = decode_key_presses(
            [KeyPress(Keys.Escape, "\x1b"), KeyPress("b"), KeyPress(Keys.Escape, "\x1b"), KeyPress(Keys.Left)]
        )
        self.assertEqual(events, [KeyEvent("b", alt=True), KeyEvent(LEFT, alt=True)])

    def test_lone_escape(self) -> None:
        self.assertEqual(decode_key_presses([KeyPress(Keys.Escape, "\x1b")]), [KeyEvent(ESCAPE)])

    def test_bracketed_paste_expands(self) -> None:
        events = decode_key_presses([KeyPress(Keys.BracketedPaste, "a\r\nb")])
        self.assertEqual(events, [KeyEvent("a"), KeyEvent(ENTER), KeyEvent("b")])

    def test_unknown_keys_dropped(self) -> None:
        self.assertEqual(decode_key_presses([KeyPress(Keys.F5), KeyPress("x")]), [KeyEvent("x")])


class FakeInput:
    def __init__(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self.pending = []
        self.buffered = []

    def fileno(self) -> int:
        return self.read_fd

    def read_keys(self):
        os.read(self.read_fd, 1024)
        keys, self.pending = self.pending, []
        return keys

    def flush_keys(self):
        keys, self.buffered = self.buffered, []
        return keys

    @contextmanager
    def raw_mode(self):
        yield

    def feed(self, *presses: KeyPress) -> None:
        self.pending.extend(presses)
        os.write(self.write_fd, b"x")

    def close(self) -> None:
        os.close(self.read_fd)
        os.close(self.write_fd)


@unittest.skipIf(sys.platform == "win32", "pipe-backed input needs select on a pipe")
class KeySourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fake = FakeInput()
        self.source = KeySource(self.fake)

    def tearDown(self) -> None:
        self.fake.close()

    def test_poll_returns_one_event_at_a_time(self) -> None:
        self.fake.feed(KeyPress("x"), KeyPress("y"))
        with self.source.activate() as keys:
            self.assertEqual(keys.poll(0.5), KeyEvent("x"))
            self.assertEqual(keys.poll(0), KeyEvent("y"))
            self.assertIsNone(keys.poll(0.01))

    def test_timeout_flushes_buffered_escape(self) -> None:
        self.fake.buffered.append(KeyPress(Keys.Escape, "\x1b"))
        self.assertEqual(self.source.poll(0.01), KeyEvent(ESCAPE))


if __name__ == "__main__":
    unittest.main()
