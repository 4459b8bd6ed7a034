from __future__ import annotations

import queue
import threading
from concurrent.futures import Future
from typing import Optional

import httpx

from ..config.manager import CourierSettings
from .client import FailureKind, HttpFailure, HttpResult, RequestData, build_client, execute


class DispatchBridge:
    """Runs HTTP calls off the event loop and hands results back through a queue.

    Every ``send`` produces exactly one queued result, and ``poll`` never
    blocks, so the key loop keeps its cadence while a call is outstanding.
    The worker only sees the ``RequestData`` it was given. Workers are daemon
    threads: quitting with a call in flight does not wait for the transport.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        settings: Optional[CourierSettings] = None,
    ) -> None:
        self.client = client or build_client(settings)
        self._results: queue.Queue[HttpResult] = queue.Queue()
        self.dispatch_count = 0

    def send(self, data: RequestData) -> Future:
        self.dispatch_count += 1
        future: Future = Future()
        worker = threading.Thread(
            target=self._run,
            args=(data, future),
            name=f"courier-dispatch-{self.dispatch_count}",
            daemon=True,
        )
        worker.start()
        return future

    def poll(self) -> Optional[HttpResult]:
        try:
            return self._results.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        self.client.close()

    def _run(self, data: RequestData, future: Future) -> None:
        try:
            result = execute(self.client, data)
        except Exception as exc:  # noqa: BLE001
            # The loop is waiting on exactly one message per send.
            result = HttpFailure(FailureKind.TRANSPORT, f"Request failed: {exc}")
        self._results.put(result)
        future.set_result(result)
