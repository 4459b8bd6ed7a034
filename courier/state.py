from __future__ import annotations

from enum import Enum
from typing import Optional

from .core.collection import CollectionEditor, KvField
from .core.json_format import format_if_valid, looks_like_json, validation_error
from .core.lifecycle import RequestLifecycle, scroll_by
from .core.models import HttpMethod, Request
from .core.session_log import get_active_logger, log_debug, log_warn
from .core.text_field import BodyEditor, TextFieldEditor
from .http.client import (
    HttpFailure,
    HttpResult,
    HttpSuccess,
    RequestData,
    build_headers,
    build_url,
    normalize_url,
)
from .http.dispatch import DispatchBridge
from .keys import (
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

PAGE_LINES = 10

HELP_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "NAVIGATION",
        (
            ("Tab/h/l", "Switch panels"),
            ("j/k", "Navigate list/scroll"),
            ("1/2/3", "Switch tabs"),
            ("g/G", "Scroll to top/end"),
        ),
    ),
    (
        "REQUESTS",
        (
            ("Ctrl+S", "Send request"),
            ("i", "Edit URL"),
            ("Tab", "Cycle method (while editing URL)"),
            ("a", "Add param/header"),
            ("Space", "Toggle param/header"),
            ("e", "Edit body"),
            ("Enter", "Edit selected item"),
            ("w", "Save request to history"),
            ("n", "New request"),
            ("d", "Delete item/request"),
        ),
    ),
    (
        "EDITING",
        (
            ("Ctrl+←/→", "Move by word"),
            ("Ctrl+A/E", "Start/end of field"),
            ("Ctrl+W", "Delete word"),
            ("Ctrl+U/K", "Delete to start/end"),
            ("Ctrl+L", "Clear field"),
            ("Ctrl+F", "Format JSON body"),
            ("Esc", "Stop editing"),
        ),
    ),
    (
        "GENERAL",
        (
            ("?", "Toggle help"),
            ("q", "Quit"),
        ),
    ),
)


def help_lines() -> list[tuple[str, str]]:
    """Flattened help rows; a row with an empty key is a section title."""
    rows: list[tuple[str, str]] = []
    for index, (title, entries) in enumerate(HELP_SECTIONS):
        if index:
            rows.append(("", ""))
        rows.append(("", title))
        rows.extend(entries)
    return rows


class Panel(Enum):
    SIDEBAR = "sidebar"
    EDITOR = "editor"
    RESPONSE = "response"

    def next(self) -> Panel:
        members = list(Panel)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> Panel:
        members = list(Panel)
        return members[(members.index(self) - 1) % len(members)]


class EditFocus(Enum):
    NONE = "none"
    URL = "url"
    KEY_VALUE = "key_value"
    BODY = "body"


class RequestTab(Enum):
    PARAMS = "params"
    HEADERS = "headers"
    BODY = "body"


class AppState:
    """Everything the UI shows, mutated only from the event loop.

    Key presses go through ``handle_key``; dispatch results go through
    ``poll_results``. The editor holds a working copy of one request that is
    written back to ``requests`` on send or on an explicit save.
    """

    def __init__(self, bridge: Optional[DispatchBridge] = None) -> None:
        self.bridge = bridge or DispatchBridge()
        self.focused_panel = Panel.SIDEBAR
        self.edit_focus = EditFocus.NONE
        self.active_tab = RequestTab.PARAMS
        self.should_quit = False
        self.show_help = False
        self.help_scroll = 0
        self.status_message: Optional[str] = None

        self.requests: list[Request] = []
        self.selected = 0
        self.editing_index: Optional[int] = None

        self.method = HttpMethod.GET
        self.url_input = TextFieldEditor()
        self.params = CollectionEditor()
        self.headers = CollectionEditor()
        self.body_editor = BodyEditor()
        self.json_error: Optional[str] = None

        self.lifecycle = RequestLifecycle()

    def quit(self) -> None:
        self.should_quit = True

    def toggle_help(self) -> None:
        self.show_help = not self.show_help
        self.help_scroll = 0

    def focus_next(self) -> None:
        self.focused_panel = self.focused_panel.next()

    def focus_prev(self) -> None:
        self.focused_panel = self.focused_panel.prev()

    def is_editing(self) -> bool:
        return self.edit_focus is not EditFocus.NONE

    def select_tab(self, tab: RequestTab) -> None:
        self.active_tab = tab

    def current_collection(self) -> Optional[CollectionEditor]:
        if self.active_tab is RequestTab.PARAMS:
            return self.params
        if self.active_tab is RequestTab.HEADERS:
            return self.headers
        return None

    def enter_edit(self, focus: EditFocus) -> bool:
        if focus is EditFocus.NONE:
            self.exit_edit()
            return True
        if self.is_editing():
            self.exit_edit()
        if focus is EditFocus.KEY_VALUE:
            collection = self.current_collection()
            if collection is None:
                self.status_message = "The body tab has no entries. Press 'e' to edit the body."
                return False
            if not collection.start_editing():
                self.status_message = "Nothing to edit. Press 'a' to add an entry."
                return False
        elif focus is EditFocus.BODY:
            self.active_tab = RequestTab.BODY
        self.edit_focus = focus
        self.focused_panel = Panel.EDITOR
        return True

    def exit_edit(self) -> None:
        focus = self.edit_focus
        self.edit_focus = EditFocus.NONE
        if focus is EditFocus.KEY_VALUE:
            self.params.stop_editing()
            self.headers.stop_editing()
        elif focus is EditFocus.BODY:
            self._check_body()

    def cycle_method_next(self) -> None:
        self.method = self.method.next()

    def cycle_method_prev(self) -> None:
        self.method = self.method.prev()

    def select_next_request(self) -> None:
        if self.requests:
            self.selected = (self.selected + 1) % len(self.requests)

    def select_prev_request(self) -> None:
        if self.requests:
            self.selected = (self.selected - 1) % len(self.requests)

    def add_request(self, url: str = "", *, edit: bool = True) -> None:
        self.requests.insert(0, Request(url=url))
        self.selected = 0
        self.load_selected_request()
        self.focused_panel = Panel.EDITOR
        if edit:
            self.enter_edit(EditFocus.URL)

    def delete_selected_request(self) -> None:
        if not self.requests:
            return
        removed = self.selected
        del self.requests[removed]
        if self.editing_index is not None:
            if self.editing_index == removed:
                self.editing_index = None
                self.edit_focus = EditFocus.NONE
            elif self.editing_index > removed:
                self.editing_index -= 1
        if self.selected >= len(self.requests):
            self.selected = max(len(self.requests) - 1, 0)

    def load_selected_request(self) -> bool:
        if not self.requests:
            return False
        request = self.requests[self.selected].clone()
        self.edit_focus = EditFocus.NONE
        self.method = request.method
        self.url_input.set_text(request.url)
        self.params.replace(request.params)
        self.headers.replace(request.headers)
        self.body_editor.set_text(request.body)
        self.json_error = None
        self.editing_index = self.selected
        return True

    def working_request(self) -> Request:
        return Request(
            method=self.method,
            url=self.url_input.content,
            params=self.params.snapshot(),
            headers=self.headers.snapshot(),
            body=self.body_editor.content,
        )

    def save_request(self) -> int:
        """Write the working copy into history; returns its index."""
        request = self.working_request()
        index = self.editing_index
        if index is not None and 0 <= index < len(self.requests):
            request.created_at = self.requests[index].created_at
            self.requests[index] = request
            return index
        self.requests.insert(0, request)
        self.editing_index = 0
        self.selected = 0
        return 0

    def send_request(self) -> bool:
        if self.lifecycle.is_loading:
            self.status_message = "A request is already in flight."
            log_debug("state", "request.rejected", {"reason": "loading"})
            return False
        url = self.url_input.content.strip()
        if not url:
            self.lifecycle.set_error("URL is empty")
            return False
        self.save_request()
        data = RequestData(
            method=self.method,
            url=normalize_url(url),
            params=self.params.snapshot(),
            headers=self.headers.snapshot(),
            body=self.body_editor.content,
        )
        self.lifecycle.set_loading()
        self.bridge.send(data)
        logger = get_active_logger()
        if logger is not None:
            logger.log_dispatch(
                "state",
                method=data.method.value,
                url=build_url(data.url, data.params),
                headers=build_headers(data.headers, data.body),
                body_size=len(data.body.encode("utf-8")),
            )
        return True

    def poll_results(self) -> bool:
        """Apply at most one finished dispatch; never blocks."""
        result = self.bridge.poll()
        if result is None:
            return False
        self.apply_result(result)
        return True

    def apply_result(self, result: HttpResult) -> None:
        if isinstance(result, HttpSuccess):
            response = result.response
            self.lifecycle.set_response(response)
            logger = get_active_logger()
            if logger is not None:
                logger.log_response(
                    "state",
                    status=response.status,
                    status_text=response.status_text,
                    elapsed_ms=int(response.elapsed * 1000),
                    size_bytes=response.size_bytes,
                )
        elif isinstance(result, HttpFailure):
            self.lifecycle.set_error(result.message)
            log_warn("state", "request.failed", {"kind": result.kind.value, "message": result.message})

    def format_body(self) -> None:
        text = self.body_editor.content
        if not text.strip():
            return
        error = validation_error(text)
        if error:
            self.json_error = error
            return
        self.body_editor.set_text(format_if_valid(text))
        self.json_error = None

    def _check_body(self) -> None:
        text = self.body_editor.content
        if text.strip() and looks_like_json(text):
            self.json_error = validation_error(text)
        else:
            self.json_error = None

    def scroll_help(self, delta: int) -> None:
        self.help_scroll = scroll_by(self.help_scroll, delta, len(help_lines()))

    def handle_key(self, key: KeyEvent) -> None:
        if not key.pressed:
            return
        self.status_message = None
        if key.is_ctrl("c"):
            self.quit()
            return
        if key.is_ctrl("s"):
            self.send_request()
            return
        if self.show_help:
            self._handle_help_key(key)
            return
        if self.edit_focus is EditFocus.URL:
            self._handle_url_key(key)
        elif self.edit_focus is EditFocus.KEY_VALUE:
            self._handle_key_value_key(key)
        elif self.edit_focus is EditFocus.BODY:
            self._handle_body_key(key)
        else:
            self._handle_normal_key(key)

    def _handle_help_key(self, key: KeyEvent) -> None:
        if key.code == ESCAPE or key.char in ("q", "?"):
            self.show_help = False
        elif key.code == DOWN or key.char == "j":
            self.scroll_help(1)
        elif key.code == UP or key.char == "k":
            self.scroll_help(-1)
        elif key.char == "g":
            self.help_scroll = 0
        elif key.char == "G":
            self.scroll_help(len(help_lines()))

    def _handle_normal_key(self, key: KeyEvent) -> None:
        char = key.char
        if char == "q" or (key.code == ESCAPE and not key.alt):
            self.quit()
        elif char == "?":
            self.toggle_help()
        elif key.code == TAB or char == "l" or (key.code == RIGHT and not key.ctrl):
            self.focus_next()
        elif key.code == BACKTAB or char == "h" or (key.code == LEFT and not key.ctrl):
            self.focus_prev()
        elif self.focused_panel is Panel.SIDEBAR:
            self._handle_sidebar_key(key)
        elif self.focused_panel is Panel.EDITOR:
            self._handle_editor_key(key)
        else:
            self._handle_response_key(key)

    def _handle_sidebar_key(self, key: KeyEvent) -> None:
        char = key.char
        if key.code == DOWN or char == "j":
            self.select_next_request()
        elif key.code == UP or char == "k":
            self.select_prev_request()
        elif key.code == ENTER or char == "i":
            if self.load_selected_request():
                self.focused_panel = Panel.EDITOR
        elif char == "n":
            self.add_request()
        elif char == "d":
            self.delete_selected_request()

    def _handle_editor_key(self, key: KeyEvent) -> None:
        char = key.char
        collection = self.current_collection()
        if char == "i":
            self.enter_edit(EditFocus.URL)
        elif char == "e":
            self.enter_edit(EditFocus.BODY)
        elif key.code == ENTER:
            if self.active_tab is RequestTab.BODY:
                self.enter_edit(EditFocus.BODY)
            elif collection is not None and len(collection):
                self.enter_edit(EditFocus.KEY_VALUE)
            else:
                self.enter_edit(EditFocus.URL)
        elif char in ("1", "2", "3"):
            self.select_tab((RequestTab.PARAMS, RequestTab.HEADERS, RequestTab.BODY)[int(char) - 1])
        elif char == "m":
            self.cycle_method_next()
        elif char == "M":
            self.cycle_method_prev()
        elif char == "w":
            self.save_request()
            self.status_message = "Request saved."
        elif collection is None:
            return
        elif char == "a":
            collection.add()
            self.enter_edit(EditFocus.KEY_VALUE)
        elif char == "d":
            collection.delete_selected()
        elif char == " ":
            collection.toggle_enabled()
        elif key.code == DOWN or char == "j":
            collection.select_next()
        elif key.code == UP or char == "k":
            collection.select_prev()

    def _handle_response_key(self, key: KeyEvent) -> None:
        char = key.char
        if key.code == DOWN or char == "j":
            self.lifecycle.scroll_down(1)
        elif key.code == UP or char == "k":
            self.lifecycle.scroll_up(1)
        elif key.code == PAGE_DOWN or key.is_ctrl("d"):
            self.lifecycle.scroll_down(PAGE_LINES)
        elif key.code == PAGE_UP or key.is_ctrl("u"):
            self.lifecycle.scroll_up(PAGE_LINES)
        elif char == "g":
            self.lifecycle.scroll_top()
        elif char == "G":
            self.lifecycle.scroll_bottom()

    def _handle_url_key(self, key: KeyEvent) -> None:
        if key.code in (ESCAPE, ENTER):
            self.exit_edit()
        elif key.code == TAB:
            self.cycle_method_next()
        elif key.code == BACKTAB:
            self.cycle_method_prev()
        else:
            self._edit_text(self.url_input, key)

    def _handle_key_value_key(self, key: KeyEvent) -> None:
        collection = self.current_collection()
        if collection is None or key.code == ESCAPE:
            self.exit_edit()
        elif key.code in (TAB, BACKTAB):
            collection.toggle_field()
        elif key.code == DOWN:
            collection.select_next()
        elif key.code == UP:
            collection.select_prev()
        elif key.code == ENTER:
            if collection.field is KvField.KEY:
                collection.toggle_field()
            else:
                self.exit_edit()
        else:
            self._edit_text(collection.active_input(), key)

    def _handle_body_key(self, key: KeyEvent) -> None:
        editor = self.body_editor
        if key.code == ESCAPE:
            self.exit_edit()
        elif key.is_ctrl("f"):
            self.format_body()
        elif key.code == ENTER:
            editor.insert_newline()
        elif key.code == TAB:
            editor.insert_text("  ")
        elif key.code == UP:
            editor.move_up()
        elif key.code == DOWN:
            editor.move_down()
        elif key.code == HOME:
            editor.move_line_start()
        elif key.code == END:
            editor.move_line_end()
        else:
            self._edit_text(editor, key)

    def _edit_text(self, editor: TextFieldEditor, key: KeyEvent) -> None:
        code = key.code
        by_word = key.ctrl or key.alt
        if (code == LEFT and by_word) or (key.alt and code == "b"):
            editor.move_word_left()
        elif (code == RIGHT and by_word) or (key.alt and code == "f"):
            editor.move_word_right()
        elif code == LEFT:
            editor.move_left()
        elif code == RIGHT:
            editor.move_right()
        elif code == HOME or key.is_ctrl("a"):
            editor.move_start()
        elif code == END or key.is_ctrl("e"):
            editor.move_end()
        elif code == BACKSPACE and by_word:
            editor.delete_word_backward()
        elif code == BACKSPACE:
            editor.delete_char()
        elif code == DELETE:
            editor.delete_char_forward()
        elif key.is_ctrl("u"):
            editor.delete_to_start()
        elif key.is_ctrl("k"):
            editor.delete_to_end()
        elif key.is_ctrl("w"):
            editor.delete_word_backward()
        elif key.is_ctrl("l"):
            editor.clear()
        elif key.char is not None:
            editor.insert_char(key.char)
