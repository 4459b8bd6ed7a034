import time
import unittest

import httpx

from courier.config.manager import CourierSettings
from courier.core.models import HttpMethod, KeyValue, Request, RequestStatus, Response
from courier.http.client import FailureKind, HttpFailure, HttpSuccess, build_client
from courier.http.dispatch import DispatchBridge
from courier.keys import BACKSPACE, DOWN, ENTER, ESCAPE, LEFT, TAB, KeyEvent
from courier.state import AppState, EditFocus, Panel, RequestTab, help_lines


class FakeBridge:
    def __init__(self) -> None:
        self.sent = []
        self.results = []

    def send(self, data) -> None:
        self.sent.append(data)

    def poll(self):
        return self.results.pop(0) if self.results else None

    def close(self) -> None:
        pass


def press(state: AppState, *keys) -> None:
    for key in keys:
        state.handle_key(key if isinstance(key, KeyEvent) else KeyEvent(key))


def type_text(state: AppState, text: str) -> None:
    press(state, *text)


def ctrl(letter: str) -> KeyEvent:
    return KeyEvent(letter, ctrl=True)


def _response(lines: int) -> Response:
    body = "\n".join(f"line {i}" for i in range(lines))
    return Response(
        status=200,
        status_text="OK",
        headers=(),
        body=body,
        elapsed=0.01,
        size_bytes=len(body),
    )


class AppStateEndToEndTests(unittest.TestCase):
    def test_new_post_request_round_trip(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            return httpx.Response(201, json={"ok": True})

        client = build_client(CourierSettings(), transport=httpx.MockTransport(handler))
        bridge = DispatchBridge(client=client)
        state = AppState(bridge)
        try:
            press(state, "n")
            self.assertIs(state.edit_focus, EditFocus.URL)
            press(state, KeyEvent(TAB))
            type_text(state, "example.com/api")
            press(state, KeyEvent(ESCAPE), ctrl("s"))
            self.assertTrue(state.lifecycle.is_loading)

            deadline = time.monotonic() + 5
            while not state.poll_results():
                self.assertLess(time.monotonic(), deadline)
                time.sleep(0.01)
        finally:
            bridge.close()

        self.assertIs(state.lifecycle.status, RequestStatus.SUCCESS)
        self.assertEqual(state.lifecycle.response.status, 201)
        self.assertEqual(state.lifecycle.response.status_text, "Created")
        self.assertEqual(state.lifecycle.response_scroll, 0)
        self.assertEqual(seen, {"method": "POST", "url": "https://example.com/api"})
        self.assertEqual(len(state.requests), 1)
        self.assertEqual(state.requests[0].method, HttpMethod.POST)
        self.assertEqual(state.requests[0].url, "example.com/api")
        self.assertEqual(bridge.dispatch_count, 1)


class AppStateDispatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bridge = FakeBridge()
        self.state = AppState(self.bridge)

    def test_empty_url_sets_error_without_dispatch(self) -> None:
        press(self.state, ctrl("s"))
        self.assertIs(self.state.lifecycle.status, RequestStatus.ERROR)
        self.assertEqual(self.state.lifecycle.state.error, "URL is empty")
        self.assertEqual(self.bridge.sent, [])

    def test_second_send_while_loading_is_rejected(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, ctrl("s"), ctrl("s"))
        self.assertEqual(len(self.bridge.sent), 1)
        self.assertEqual(self.state.status_message, "A request is already in flight.")

    def test_send_normalizes_url_and_snapshots_collections(self) -> None:
        self.state.add_request("api.test/items", edit=False)
        self.state.params.replace([KeyValue(key="page", value="2")])
        press(self.state, ctrl("s"))
        data = self.bridge.sent[0]
        self.assertEqual(data.url, "https://api.test/items")
        self.assertEqual(data.params, [KeyValue(key="page", value="2")])
        self.assertEqual(self.state.requests[0].params, [KeyValue(key="page", value="2")])

    def test_failure_result_moves_to_error(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, ctrl("s"))
        self.bridge.results.append(HttpFailure(FailureKind.TIMEOUT, "Request timed out"))
        self.assertTrue(self.state.poll_results())
        self.assertIs(self.state.lifecycle.status, RequestStatus.ERROR)
        self.assertEqual(self.state.lifecycle.state.error, "Request timed out")
        self.assertFalse(self.state.poll_results())

    def test_send_after_result_is_allowed(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, ctrl("s"))
        self.state.apply_result(HttpSuccess(_response(3)))
        press(self.state, ctrl("s"))
        self.assertEqual(len(self.bridge.sent), 2)


class AppStateKeyRoutingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = AppState(FakeBridge())

    def test_ctrl_c_quits_even_while_editing(self) -> None:
        self.state.add_request()
        self.assertTrue(self.state.is_editing())
        press(self.state, ctrl("c"))
        self.assertTrue(self.state.should_quit)

    def test_q_types_while_editing_and_quits_in_normal_mode(self) -> None:
        self.state.add_request()
        press(self.state, "q")
        self.assertEqual(self.state.url_input.content, "q")
        self.assertFalse(self.state.should_quit)
        press(self.state, KeyEvent(ESCAPE), "q")
        self.assertTrue(self.state.should_quit)

    def test_released_keys_are_ignored(self) -> None:
        press(self.state, KeyEvent("q", pressed=False))
        self.assertFalse(self.state.should_quit)

    def test_panel_focus_cycles(self) -> None:
        self.assertIs(self.state.focused_panel, Panel.SIDEBAR)
        press(self.state, KeyEvent(TAB))
        self.assertIs(self.state.focused_panel, Panel.EDITOR)
        press(self.state, "l")
        self.assertIs(self.state.focused_panel, Panel.RESPONSE)
        press(self.state, "l")
        self.assertIs(self.state.focused_panel, Panel.SIDEBAR)
        press(self.state, "h")
        self.assertIs(self.state.focused_panel, Panel.RESPONSE)

    def test_help_overlay_captures_keys(self) -> None:
        press(self.state, "?")
        self.assertTrue(self.state.show_help)
        press(self.state, "j", "j")
        self.assertEqual(self.state.help_scroll, 2)
        press(self.state, "G")
        self.assertEqual(self.state.help_scroll, len(help_lines()) - 1)
        press(self.state, "q")
        self.assertFalse(self.state.show_help)
        self.assertFalse(self.state.should_quit)

    def test_url_editing_keys(self) -> None:
        self.state.add_request()
        type_text(self.state, "https://a.io/users")
        press(self.state, KeyEvent("b", alt=True))
        self.assertEqual(self.state.url_input.after_cursor, "users")
        press(self.state, ctrl("w"))
        self.assertEqual(self.state.url_input.content, "https://a.users")
        press(self.state, ctrl("e"), KeyEvent(BACKSPACE))
        self.assertEqual(self.state.url_input.content, "https://a.user")
        press(self.state, ctrl("l"))
        self.assertEqual(self.state.url_input.content, "")

    def test_method_cycles_in_url_edit_and_normal_mode(self) -> None:
        self.state.add_request()
        press(self.state, KeyEvent(TAB), KeyEvent(TAB))
        self.assertIs(self.state.method, HttpMethod.PUT)
        press(self.state, KeyEvent(ENTER), "M")
        self.assertIs(self.state.method, HttpMethod.POST)

    def test_key_value_editing_flow(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, "a")
        self.assertIs(self.state.edit_focus, EditFocus.KEY_VALUE)
        type_text(self.state, "limit")
        press(self.state, KeyEvent(ENTER))
        type_text(self.state, "10")
        press(self.state, KeyEvent(ENTER))
        self.assertIs(self.state.edit_focus, EditFocus.NONE)
        self.assertEqual(self.state.params.items, [KeyValue(key="limit", value="10")])

        press(self.state, " ")
        self.assertFalse(self.state.params.items[0].enabled)
        press(self.state, "d")
        self.assertEqual(self.state.params.items, [])

    def test_headers_tab_and_sync_on_move(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, "2")
        self.assertIs(self.state.active_tab, RequestTab.HEADERS)
        self.state.headers.replace([KeyValue(key="A", value="1"), KeyValue(key="B", value="2")])
        press(self.state, KeyEvent(ENTER))
        type_text(self.state, "x")
        press(self.state, KeyEvent(DOWN))
        self.assertEqual(self.state.headers.items[0].key, "Ax")
        self.assertEqual(self.state.headers.key_input.content, "B")

    def test_enter_edit_on_empty_collection_reports(self) -> None:
        self.assertFalse(self.state.enter_edit(EditFocus.KEY_VALUE))
        self.assertIs(self.state.edit_focus, EditFocus.NONE)
        self.assertEqual(self.state.status_message, "Nothing to edit. Press 'a' to add an entry.")

    def test_enter_key_value_edit_on_body_tab_points_at_body(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        self.state.select_tab(RequestTab.BODY)
        self.assertFalse(self.state.enter_edit(EditFocus.KEY_VALUE))
        self.assertIs(self.state.edit_focus, EditFocus.NONE)
        self.assertNotIn("Press 'a'", self.state.status_message)
        self.assertEqual(self.state.status_message, "The body tab has no entries. Press 'e' to edit the body.")

    def test_body_editing_and_json_check(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, "e")
        self.assertIs(self.state.edit_focus, EditFocus.BODY)
        self.assertIs(self.state.active_tab, RequestTab.BODY)
        type_text(self.state, '{"a":')
        press(self.state, KeyEvent(ENTER))
        type_text(self.state, "1")
        press(self.state, KeyEvent(ESCAPE))
        self.assertIsNotNone(self.state.json_error)

        press(self.state, "e", ctrl("e"), "}", ctrl("f"))
        self.assertEqual(self.state.body_editor.content, '{\n  "a": 1\n}')
        self.assertIsNone(self.state.json_error)

    def test_plain_text_body_is_not_validated(self) -> None:
        self.state.add_request("https://a.io", edit=False)
        press(self.state, "e")
        type_text(self.state, "name=value")
        press(self.state, KeyEvent(ESCAPE))
        self.assertIsNone(self.state.json_error)

    def test_response_scrolling(self) -> None:
        self.state.lifecycle.set_response(_response(30))
        self.state.focused_panel = Panel.RESPONSE
        press(self.state, "j", "j")
        self.assertEqual(self.state.lifecycle.response_scroll, 2)
        press(self.state, ctrl("d"))
        self.assertEqual(self.state.lifecycle.response_scroll, 12)
        press(self.state, "G")
        self.assertEqual(self.state.lifecycle.response_scroll, 29)
        press(self.state, "j")
        self.assertEqual(self.state.lifecycle.response_scroll, 29)
        press(self.state, "g")
        self.assertEqual(self.state.lifecycle.response_scroll, 0)

    def test_left_arrow_moves_focus_only_in_normal_mode(self) -> None:
        self.state.add_request()
        type_text(self.state, "ab")
        press(self.state, KeyEvent(LEFT))
        self.assertEqual(self.state.url_input.cursor, 1)
        self.assertIs(self.state.focused_panel, Panel.EDITOR)


class AppStateHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = AppState(FakeBridge())
        self.state.requests = [Request(url=f"https://{name}.io") for name in ("a", "b", "c")]

    def test_sidebar_navigation_wraps(self) -> None:
        press(self.state, "k")
        self.assertEqual(self.state.selected, 2)
        press(self.state, "j")
        self.assertEqual(self.state.selected, 0)

    def test_enter_loads_into_editor(self) -> None:
        press(self.state, "j", KeyEvent(ENTER))
        self.assertEqual(self.state.url_input.content, "https://b.io")
        self.assertEqual(self.state.editing_index, 1)
        self.assertIs(self.state.focused_panel, Panel.EDITOR)

    def test_delete_above_loaded_request_shifts_index(self) -> None:
        self.state.selected = 1
        self.state.load_selected_request()
        self.state.selected = 0
        press(self.state, "d")
        self.assertEqual(self.state.editing_index, 0)
        self.assertEqual([r.url for r in self.state.requests], ["https://b.io", "https://c.io"])

    def test_delete_loaded_request_clears_index(self) -> None:
        self.state.selected = 2
        self.state.load_selected_request()
        self.state.focused_panel = Panel.SIDEBAR
        press(self.state, "d")
        self.assertIsNone(self.state.editing_index)
        self.assertEqual(self.state.selected, 1)

    def test_delete_all_keeps_selection_at_zero(self) -> None:
        press(self.state, "d", "d", "d", "d")
        self.assertEqual(self.state.requests, [])
        self.assertEqual(self.state.selected, 0)

    def test_save_writes_back_to_loaded_entry(self) -> None:
        press(self.state, KeyEvent(ENTER))
        created = self.state.requests[0].created_at
        press(self.state, "m", "w")
        self.assertEqual(self.state.status_message, "Request saved.")
        self.assertIs(self.state.requests[0].method, HttpMethod.POST)
        self.assertEqual(self.state.requests[0].created_at, created)
        self.assertEqual(len(self.state.requests), 3)


if __name__ == "__main__":
    unittest.main()
