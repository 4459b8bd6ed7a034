from __future__ import annotations

import time
from datetime import datetime
from typing import Optional

from rich.align import Align
from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from ..core.collection import CollectionEditor, KvField
from ..core.json_format import format_if_valid, is_valid
from ..core.models import HttpMethod, RequestStatus
from ..core.text_field import TextFieldEditor
from ..state import AppState, EditFocus, Panel as FocusPanel, RequestTab, help_lines
from .wait import LoadingIndicator

BG = "#10141e"
BG_HIGHLIGHT = "#1e2432"
BORDER = "#374155"
ACCENT = "#8b5cf6"
TEXT = "#e2e8f0"
TEXT_DIM = "#64748b"
ERROR = "#fb7185"

METHOD_COLORS = {
    HttpMethod.GET: "#34d399",
    HttpMethod.POST: "#fbbf24",
    HttpMethod.PUT: "#60a5fa",
    HttpMethod.PATCH: "#c084fc",
    HttpMethod.DELETE: "#fb7185",
    HttpMethod.HEAD: "#5eead4",
    HttpMethod.OPTIONS: "#9ca3af",
}

STATUS_COLORS = {
    "success": "#34d399",
    "redirect": "#60a5fa",
    "client_error": "#fbbf24",
    "server_error": "#fb7185",
}

URL_PLACEHOLDER = "https://api.example.com"
CURSOR = "│"

# Status bar line plus the top and bottom borders of a panel.
CHROME_LINES = 3


def _border(focused: bool) -> str:
    return ACCENT if focused else BORDER


def _with_cursor(editor: TextFieldEditor, style: str) -> Text:
    return Text.assemble(
        (editor.before_cursor, style),
        (CURSOR, ACCENT),
        (editor.after_cursor, style),
    )


def render_app(state: AppState, *, height: int = 24, now: Optional[datetime] = None) -> RenderableType:
    """Build the whole screen from state. Never mutates state."""
    body_height = max(height - CHROME_LINES, 1)
    layout = Layout(name="root")
    layout.split_column(Layout(name="main"), Layout(name="status", size=1))
    if state.show_help:
        layout["main"].update(render_help(state, body_height))
    else:
        layout["main"].split_row(
            Layout(render_sidebar(state, now=now), name="sidebar", ratio=25),
            Layout(render_editor(state), name="editor", ratio=40),
            Layout(render_response(state, body_height), name="response", ratio=35),
        )
    layout["status"].update(render_status_bar(state))
    return layout


def render_sidebar(state: AppState, *, now: Optional[datetime] = None) -> Panel:
    focused = state.focused_panel is FocusPanel.SIDEBAR
    title = f" Requests ({len(state.requests)}) "
    if not state.requests:
        hint = Text("\nNo requests\n\nPress 'n' to create", style=TEXT_DIM, justify="center")
        return Panel(hint, title=title, title_align="left", border_style=_border(focused))

    table = Table.grid(expand=True, padding=(0, 1), collapse_padding=True)
    table.add_column(width=1, no_wrap=True)
    table.add_column(width=5, no_wrap=True)
    table.add_column(ratio=1, no_wrap=True, overflow="ellipsis")
    table.add_column(width=4, justify="right", no_wrap=True)
    for index, request in enumerate(state.requests):
        selected = index == state.selected
        url = Text(request.url or URL_PLACEHOLDER, style=TEXT if request.url else TEXT_DIM)
        table.add_row(
            Text(">" if selected else " ", style=ACCENT),
            Text(request.method.label, style=METHOD_COLORS[request.method]),
            url,
            Text(request.relative_time(now), style=TEXT_DIM),
            style=f"on {BG_HIGHLIGHT}" if selected else None,
        )
    return Panel(table, title=title, title_align="left", border_style=_border(focused))


def _focus_label(state: AppState) -> Text:
    if state.edit_focus is EditFocus.URL:
        return Text(" URL ", style=f"bold {ACCENT}")
    if state.edit_focus is EditFocus.KEY_VALUE:
        label = "PARAMS" if state.active_tab is RequestTab.PARAMS else "HEADERS"
        return Text(f" {label} ", style=f"bold {METHOD_COLORS[HttpMethod.POST]}")
    if state.edit_focus is EditFocus.BODY:
        return Text(" BODY ", style=f"bold {METHOD_COLORS[HttpMethod.PUT]}")
    return Text("")


def render_editor(state: AppState) -> Panel:
    focused = state.focused_panel is FocusPanel.EDITOR
    parts: list[RenderableType] = [
        render_url_bar(state),
        render_tabs(state),
        Text(""),
        render_tab_content(state),
    ]
    if state.json_error:
        parts.append(Text(state.json_error, style=ERROR))
    return Panel(
        Group(*parts),
        title=" Request ",
        title_align="left",
        subtitle=_focus_label(state),
        subtitle_align="right",
        border_style=_border(focused),
    )


def render_url_bar(state: AppState) -> Text:
    method = state.method
    badge = (f" {method.label} ", f"bold {BG} on {METHOD_COLORS[method]}")
    editor = state.url_input
    if state.edit_focus is EditFocus.URL:
        if not editor.content:
            url = Text.assemble((CURSOR, ACCENT), (URL_PLACEHOLDER, TEXT_DIM))
        else:
            url = _with_cursor(editor, TEXT)
    elif editor.content:
        url = Text(editor.content, style=TEXT)
    else:
        url = Text(URL_PLACEHOLDER, style=TEXT_DIM)
    return Text.assemble(badge, " ", url)


def render_tabs(state: AppState) -> Text:
    labels = (
        (RequestTab.PARAMS, f"Params ({len(state.params)})"),
        (RequestTab.HEADERS, f"Headers ({len(state.headers)})"),
        (RequestTab.BODY, "Body"),
    )
    text = Text()
    for index, (tab, label) in enumerate(labels):
        if index:
            text.append(" │ ", style=BORDER)
        style = f"bold {ACCENT}" if tab is state.active_tab else TEXT_DIM
        text.append(label, style=style)
    return text


def render_tab_content(state: AppState) -> RenderableType:
    if state.active_tab is RequestTab.PARAMS:
        return render_collection(state.params, editing=state.edit_focus is EditFocus.KEY_VALUE)
    if state.active_tab is RequestTab.HEADERS:
        return render_collection(state.headers, editing=state.edit_focus is EditFocus.KEY_VALUE)
    return render_body(state)


def render_collection(collection: CollectionEditor, *, editing: bool) -> RenderableType:
    if not collection.items:
        return Text("Press 'a' to add", style=TEXT_DIM, justify="center")
    lines: list[Text] = []
    for index, item in enumerate(collection.items):
        selected = index == collection.selected
        line = Text(style=f"on {BG_HIGHLIGHT}" if selected else "")
        line.append("› " if selected else "  ", style=ACCENT)
        line.append("[✓]" if item.enabled else "[ ]", style=METHOD_COLORS[HttpMethod.GET] if item.enabled else TEXT_DIM)
        line.append(" ")
        if selected and editing:
            key_style = ACCENT if collection.field is KvField.KEY else TEXT
            value_style = ACCENT if collection.field is KvField.VALUE else TEXT
            if collection.field is KvField.KEY:
                line.append_text(_with_cursor(collection.key_input, key_style))
            else:
                line.append(collection.key_input.content, style=key_style)
            line.append(": ", style=TEXT_DIM)
            if collection.field is KvField.VALUE:
                line.append_text(_with_cursor(collection.value_input, value_style))
            else:
                line.append(collection.value_input.content, style=value_style)
        else:
            line.append(item.key, style=ACCENT if selected else TEXT)
            line.append(": ", style=TEXT_DIM)
            line.append(item.value, style=TEXT if item.enabled else TEXT_DIM)
        lines.append(line)
    return Text("\n").join(lines)


def render_body(state: AppState) -> RenderableType:
    editor = state.body_editor
    if state.edit_focus is EditFocus.BODY:
        return _with_cursor(editor, TEXT)
    if not editor.content:
        return Text("Press 'e' to edit body (Ctrl+F to format JSON)", style=TEXT_DIM, justify="center")
    return Text(format_if_valid(editor.content), style=TEXT)


def render_response(state: AppState, height: int) -> Panel:
    focused = state.focused_panel is FocusPanel.RESPONSE
    lifecycle = state.lifecycle
    status = lifecycle.status
    subtitle: Text | str = ""
    body: RenderableType
    if status is RequestStatus.IDLE:
        body = Text.assemble(
            ("\nNo request sent\n\n", f"italic {TEXT_DIM}"),
            ("Press Ctrl+S to send", TEXT_DIM),
            justify="center",
        )
    elif status is RequestStatus.LOADING:
        started = lifecycle.loading_since if lifecycle.loading_since is not None else time.monotonic()
        body = Align.center(LoadingIndicator(started_at=started, style=f"bold {ACCENT}"))
        subtitle = Text(" ● Loading ", style=ACCENT)
    elif status is RequestStatus.SUCCESS and lifecycle.response is not None:
        response = lifecycle.response
        lines = response.display_lines
        start = lifecycle.response_scroll
        visible = "\n".join(lines[start : start + height])
        if is_valid(response.body):
            body = Syntax(visible, "json", theme="monokai", background_color="default", word_wrap=False)
        else:
            body = Text(visible, style=TEXT)
        subtitle = Text.assemble(
            (f" {response.status} {response.status_text} ", f"bold {BG} on {STATUS_COLORS[response.status_class]}"),
            (f"  {response.elapsed_display}  {response.size_display} ", TEXT_DIM),
        )
    else:
        body = Text.assemble(
            ("\nRequest Failed\n\n", f"bold {ERROR}"),
            (lifecycle.state.error or "", TEXT),
            justify="center",
        )
        subtitle = Text(" ✕ Error ", style=f"bold {BG} on {ERROR}")
    return Panel(
        body,
        title=" Response ",
        title_align="left",
        subtitle=subtitle or None,
        subtitle_align="right",
        border_style=_border(focused),
    )


def _hints(state: AppState) -> list[tuple[str, str]]:
    if state.edit_focus is EditFocus.BODY:
        return [("Esc", "done"), ("C-f", "format"), ("C-s", "send")]
    if state.edit_focus is EditFocus.URL:
        return [("Esc", "done"), ("Tab", "method"), ("C-s", "send")]
    if state.is_editing():
        return [("Esc", "done"), ("Tab", "key/value"), ("↑/↓", "entry"), ("C-s", "send")]
    if state.focused_panel is FocusPanel.SIDEBAR:
        return [("j/k", "nav"), ("Enter", "load"), ("n", "new"), ("d", "del")]
    if state.focused_panel is FocusPanel.EDITOR:
        return [("i", "url"), ("1-3", "tab"), ("a", "add"), ("w", "save"), ("C-s", "send")]
    return [("j/k", "scroll"), ("g/G", "top/end")]


def _mode_badge(state: AppState) -> Text:
    badges = {
        EditFocus.NONE: (" NORMAL ", TEXT_DIM),
        EditFocus.URL: (" URL ", ACCENT),
        EditFocus.KEY_VALUE: (" EDIT ", METHOD_COLORS[HttpMethod.POST]),
        EditFocus.BODY: (" BODY ", METHOD_COLORS[HttpMethod.PUT]),
    }
    label, color = badges[state.edit_focus]
    return Text(label, style=f"{BG} on {color}")


def render_status_bar(state: AppState) -> Table:
    left = _mode_badge(state)
    left.append("  ")
    for key, label in _hints(state):
        left.append(key, style=TEXT_DIM)
        left.append(f" {label}  ", style=BORDER)
    if state.status_message:
        left.append(state.status_message, style=ACCENT)
    right = Text.assemble(
        ("?", TEXT_DIM),
        (" help  ", BORDER),
        ("q", TEXT_DIM),
        (" quit  ", BORDER),
        ("courier", f"bold {ACCENT}"),
    )
    grid = Table.grid(expand=True)
    grid.add_column(ratio=1, no_wrap=True, overflow="ellipsis")
    grid.add_column(justify="right", no_wrap=True)
    grid.add_row(left, right)
    return grid


def render_help(state: AppState, height: int) -> RenderableType:
    rows = help_lines()[state.help_scroll : state.help_scroll + height]
    text = Text()
    for index, (key, label) in enumerate(rows):
        if index:
            text.append("\n")
        if not key:
            text.append(label, style=f"bold {TEXT_DIM}")
        else:
            text.append(f"  {key:<14}", style=ACCENT)
            text.append(label, style=TEXT)
    panel = Panel(
        text,
        title=" Help ",
        title_align="left",
        subtitle=Text(" Esc/q/? close  j/k scroll ", style=TEXT_DIM),
        subtitle_align="right",
        border_style=BORDER,
        width=52,
    )
    return Align.center(panel, vertical="middle")
