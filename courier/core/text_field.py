from __future__ import annotations

from typing import Optional


def find_word_boundary(text: str, cursor: int, direction: int) -> int:
    """Return the cursor position one word away from cursor.

    Backward (direction < 0) skips separators, then the word before them.
    Forward (direction > 0) skips the rest of the current word, then the
    separators after it. Alphanumeric means str.isalnum.
    """
    step = -1 if direction < 0 else 1
    pos = max(0, min(cursor, len(text)))

    def can_move(at: int) -> bool:
        return at > 0 if step < 0 else at < len(text)

    def crossed(at: int) -> str:
        return text[at - 1] if step < 0 else text[at]

    first_run_is_word = step > 0
    for word_run in (first_run_is_word, not first_run_is_word):
        while can_move(pos) and crossed(pos).isalnum() == word_run:
            pos += step
    return pos


class TextFieldEditor:
    """One line of text plus a cursor counted in characters."""

    def __init__(self, content: str = "") -> None:
        self.content = content
        self.cursor = len(content)

    def __len__(self) -> int:
        return len(self.content)

    @property
    def before_cursor(self) -> str:
        return self.content[: self.cursor]

    @property
    def after_cursor(self) -> str:
        return self.content[self.cursor :]

    def set_text(self, text: str) -> None:
        self.content = text
        self.cursor = len(text)

    def clear(self) -> None:
        self.set_text("")

    def insert_char(self, ch: str) -> None:
        self.insert_text(ch)

    def insert_text(self, text: str) -> None:
        if not text:
            return
        self.content = self.before_cursor + text + self.after_cursor
        self.cursor += len(text)

    def delete_char(self) -> None:
        if self.cursor == 0:
            return
        self.content = self.content[: self.cursor - 1] + self.after_cursor
        self.cursor -= 1

    def delete_char_forward(self) -> None:
        if self.cursor >= len(self.content):
            return
        self.content = self.before_cursor + self.content[self.cursor + 1 :]

    def move_left(self) -> None:
        self.cursor = max(self.cursor - 1, 0)

    def move_right(self) -> None:
        self.cursor = min(self.cursor + 1, len(self.content))

    def move_start(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.content)

    def move_word_left(self) -> None:
        self.cursor = find_word_boundary(self.content, self.cursor, -1)

    def move_word_right(self) -> None:
        self.cursor = find_word_boundary(self.content, self.cursor, 1)

    def delete_to_start(self) -> None:
        self.content = self.after_cursor
        self.cursor = 0

    def delete_to_end(self) -> None:
        self.content = self.before_cursor

    def delete_word_backward(self) -> None:
        start = find_word_boundary(self.content, self.cursor, -1)
        self.content = self.content[:start] + self.after_cursor
        self.cursor = start


class BodyEditor(TextFieldEditor):
    """Multi-line variant used for request bodies; lines split on newline.

    Vertical moves remember the column they started from, so passing over a
    short line does not lose it. Any other edit or move forgets it.
    """

    def __init__(self, content: str = "") -> None:
        super().__init__(content)
        # (cursor, content, column) left behind by the last vertical move.
        self._goal: Optional[tuple[int, str, int]] = None

    def _goal_column(self, col: int) -> int:
        goal = self._goal
        if goal is not None and goal[0] == self.cursor and goal[1] == self.content:
            return goal[2]
        return col

    def lines(self) -> list[str]:
        return self.content.split("\n")

    def cursor_line_col(self) -> tuple[int, int]:
        before = self.before_cursor
        line = before.count("\n")
        col = len(before) - (before.rfind("\n") + 1)
        return line, col

    def _offset(self, line: int, col: int) -> int:
        lines = self.lines()
        line = max(0, min(line, len(lines) - 1))
        offset = sum(len(text) + 1 for text in lines[:line])
        return offset + max(0, min(col, len(lines[line])))

    def insert_newline(self) -> None:
        self.insert_text("\n")

    def move_up(self) -> None:
        line, col = self.cursor_line_col()
        col = self._goal_column(col)
        if line == 0:
            self.cursor = 0
            return
        self.cursor = self._offset(line - 1, col)
        self._goal = (self.cursor, self.content, col)

    def move_down(self) -> None:
        line, col = self.cursor_line_col()
        col = self._goal_column(col)
        if line >= len(self.lines()) - 1:
            self.cursor = len(self.content)
            return
        self.cursor = self._offset(line + 1, col)
        self._goal = (self.cursor, self.content, col)

    def move_line_start(self) -> None:
        line, _ = self.cursor_line_col()
        self.cursor = self._offset(line, 0)

    def move_line_end(self) -> None:
        line, _ = self.cursor_line_col()
        self.cursor = self._offset(line, len(self.lines()[line]))
