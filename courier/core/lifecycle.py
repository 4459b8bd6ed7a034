from __future__ import annotations

import time
from typing import Optional

from .models import RequestState, RequestStatus, Response


def scroll_by(pos: int, delta: int, bound: int) -> int:
    """Move pos by delta, clamped into [0, max(bound - 1, 0)]."""
    if delta < 0:
        return max(pos + delta, 0)
    if bound <= 0:
        return pos
    return min(pos + delta, bound - 1)


class RequestLifecycle:
    """Idle -> Loading -> Success | Error, plus the response scroll offset."""

    def __init__(self) -> None:
        self.state = RequestState.idle()
        self.response_scroll = 0
        self.loading_since: Optional[float] = None

    @property
    def status(self) -> RequestStatus:
        return self.state.status

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def response(self) -> Optional[Response]:
        return self.state.response

    def set_loading(self) -> None:
        self.state = RequestState.loading()
        self.response_scroll = 0
        self.loading_since = time.monotonic()

    def set_response(self, response: Response) -> None:
        self.state = RequestState.success(response)
        self.response_scroll = 0
        self.loading_since = None

    def set_error(self, message: str) -> None:
        self.state = RequestState.failure(message)
        self.response_scroll = 0
        self.loading_since = None

    def line_count(self) -> int:
        response = self.state.response
        if self.state.status is not RequestStatus.SUCCESS or response is None:
            return 0
        return response.line_count

    def scroll_down(self, lines: int) -> None:
        self.response_scroll = scroll_by(self.response_scroll, lines, self.line_count())

    def scroll_up(self, lines: int) -> None:
        self.response_scroll = scroll_by(self.response_scroll, -lines, self.line_count())

    def scroll_top(self) -> None:
        self.response_scroll = 0

    def scroll_bottom(self) -> None:
        bound = self.line_count()
        self.response_scroll = scroll_by(self.response_scroll, bound, bound)
