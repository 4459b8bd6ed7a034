from __future__ import annotations

import time
from typing import Callable, Optional

from rich.console import Console, ConsoleOptions, RenderResult
from rich.spinner import Spinner
from rich.text import Text


class LoadingIndicator:
    """Spinner with elapsed time shown while a request is in flight."""

    def __init__(
        self,
        label: str = "Sending request",
        started_at: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        style: str = "bold",
    ) -> None:
        self.label = label
        self._clock = clock
        self.started_at = clock() if started_at is None else started_at
        self.style = style

    def elapsed(self) -> float:
        return max(self._clock() - self.started_at, 0.0)

    def _format_status(self, elapsed: float) -> str:
        return f"{self.label}... ({elapsed:.1f}s)"

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        text = Text(self._format_status(self.elapsed()), style=self.style)
        spinner = Spinner("dots", text=text, style=self.style)
        # Frames advance from the request start, not from this render.
        spinner.start_time = self.started_at
        yield spinner
