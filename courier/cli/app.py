from __future__ import annotations

import argparse
import errno
import sys
import time
from typing import Any, Dict, Optional, Protocol

from rich.console import Console
from rich.live import Live

from ..config import ConfigManager
from ..config.manager import CourierSettings
from ..config.paths import CourierPaths
from ..core.session_log import (
    SessionLogger,
    log_exception,
    log_info,
    set_active_logger,
)
from ..http.dispatch import DispatchBridge
from ..keys import KeyEvent
from ..state import AppState
from .render import render_app
from .terminal import KeySource

# Repaint at least this often so relative times and the spinner stay current.
IDLE_REPAINT_SECS = 1.0


class KeyPoller(Protocol):
    def poll(self, timeout: float) -> Optional[KeyEvent]: ...


class CourierCLI:
    """Interactive terminal HTTP client."""

    def __init__(
        self,
        console: Console | None = None,
        *,
        paths: CourierPaths | None = None,
        settings: CourierSettings | None = None,
        key_source: KeySource | None = None,
        bridge: DispatchBridge | None = None,
        overrides: Dict[str, Any] | None = None,
    ) -> None:
        self.console = console or Console()
        self.paths = paths or CourierPaths()
        self.config_manager = ConfigManager(self.paths, console=self.console)
        self.settings = settings or self.config_manager.load_settings(overrides)
        self.session_logger = SessionLogger(self.paths, self.settings.debug)
        set_active_logger(self.session_logger)
        self._key_source = key_source
        self.bridge = bridge or DispatchBridge(settings=self.settings)
        self.state = AppState(self.bridge)

    @property
    def key_source(self) -> KeySource:
        if self._key_source is None:
            self._key_source = KeySource()
        return self._key_source

    @property
    def poll_timeout(self) -> float:
        return self.settings.poll_interval_ms / 1000

    def run(self, initial_url: str | None = None) -> None:
        if initial_url:
            self.state.add_request(initial_url.strip(), edit=False)
        log_info(
            "cli",
            "session.start",
            {"timeout_secs": self.settings.timeout_secs, "initial_url": initial_url or ""},
        )
        try:
            with self.key_source.activate() as keys:
                with Live(
                    self.render(),
                    console=self.console,
                    screen=True,
                    auto_refresh=False,
                    transient=True,
                ) as live:
                    self._loop(keys, live)
        except Exception as exc:
            log_exception("cli", exc)
            raise
        finally:
            self.close()

    def render(self):
        return render_app(self.state, height=self.console.size.height)

    def tick(self, keys: KeyPoller) -> bool:
        """Apply at most one finished dispatch and at most one key press.

        Returns True when state changed and the screen should repaint.
        """
        changed = self.state.poll_results()
        key = keys.poll(self.poll_timeout)
        if key is not None:
            self.state.handle_key(key)
            changed = True
        return changed

    def _loop(self, keys: KeyPoller, live: Live) -> None:
        last_size = self.console.size
        last_paint = time.monotonic()
        dirty = False
        while not self.state.should_quit:
            now = time.monotonic()
            size = self.console.size
            if dirty or size != last_size or self.state.lifecycle.is_loading or now - last_paint >= IDLE_REPAINT_SECS:
                live.update(self.render(), refresh=True)
                last_size = size
                last_paint = now
            dirty = self.tick(keys)

    def close(self) -> None:
        self.bridge.close()
        log_info("cli", "session.end", {"requests": len(self.state.requests)})
        self.session_logger.close()
        set_active_logger(None)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Courier - interactive terminal HTTP client")
    parser.add_argument("url", nargs="?", help="Open a new request for this URL on startup")
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument(
        "--debug",
        nargs="?",
        const="all",
        help="Write a session log (all, session, error, warn, info, debug)",
    )
    args = parser.parse_args(argv)
    if args.version:
        from courier import __version__

        print(f"courier {__version__}")
        return
    if not sys.stdin.isatty() or not sys.stdout.isatty():
        print("courier: an interactive terminal is required", file=sys.stderr)
        raise SystemExit(1)
    overrides = {"timeout_secs": args.timeout, "debug": args.debug}
    try:
        CourierCLI(overrides=overrides).run(args.url)
    except BrokenPipeError:
        return
    except KeyboardInterrupt:
        return
    except OSError as exc:
        if exc.errno == errno.EPIPE:
            return
        log_exception("cli", exc)
        raise


if __name__ == "__main__":
    main()
