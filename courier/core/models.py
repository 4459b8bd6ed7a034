from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .json_format import display_lines, format_if_valid


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @property
    def label(self) -> str:
        """Short name that fits the five-column method slot."""
        return {HttpMethod.DELETE: "DEL", HttpMethod.OPTIONS: "OPT"}.get(self, self.value)

    def next(self) -> HttpMethod:
        members = list(HttpMethod)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> HttpMethod:
        members = list(HttpMethod)
        return members[(members.index(self) - 1) % len(members)]


@dataclass
class KeyValue:
    enabled: bool = True
    key: str = ""
    value: str = ""

    def clone(self) -> KeyValue:
        return KeyValue(enabled=self.enabled, key=self.key, value=self.value)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Request:
    method: HttpMethod = HttpMethod.GET
    url: str = ""
    params: list[KeyValue] = field(default_factory=list)
    headers: list[KeyValue] = field(default_factory=list)
    body: str = ""
    created_at: datetime = field(default_factory=_now)

    def clone(self) -> Request:
        return Request(
            method=self.method,
            url=self.url,
            params=[item.clone() for item in self.params],
            headers=[item.clone() for item in self.headers],
            body=self.body,
            created_at=self.created_at,
        )

    def relative_time(self, now: Optional[datetime] = None) -> str:
        current = now or _now()
        secs = max(int((current - self.created_at).total_seconds()), 0)
        if secs < 60:
            return f"{secs}s"
        if secs < 3600:
            return f"{secs // 60}m"
        if secs < 86400:
            return f"{secs // 3600}h"
        return f"{secs // 86400}d"


@dataclass(frozen=True)
class Response:
    status: int
    status_text: str
    headers: tuple[tuple[str, str], ...]
    body: str
    elapsed: float
    size_bytes: int

    @property
    def formatted_body(self) -> str:
        return format_if_valid(self.body)

    @property
    def display_lines(self) -> list[str]:
        return display_lines(self.body)

    @property
    def line_count(self) -> int:
        return len(self.display_lines)

    @property
    def elapsed_display(self) -> str:
        ms = int(self.elapsed * 1000)
        if ms < 1000:
            return f"{ms}ms"
        return f"{self.elapsed:.1f}s"

    @property
    def size_display(self) -> str:
        size = self.size_bytes
        if size < 1024:
            return f"{size} B"
        if size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        return f"{size / (1024 * 1024):.1f} MB"

    @property
    def content_type(self) -> Optional[str]:
        for name, value in self.headers:
            if name.lower() == "content-type":
                return value
        return None

    @property
    def is_json(self) -> bool:
        return "application/json" in (self.content_type or "")

    @property
    def status_class(self) -> str:
        if 200 <= self.status < 300:
            return "success"
        if 300 <= self.status < 400:
            return "redirect"
        if 400 <= self.status < 500:
            return "client_error"
        return "server_error"


class RequestStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestState:
    """Lifecycle tag of the most recent or in-flight request."""

    status: RequestStatus = RequestStatus.IDLE
    response: Optional[Response] = None
    error: Optional[str] = None

    @classmethod
    def idle(cls) -> RequestState:
        return cls()

    @classmethod
    def loading(cls) -> RequestState:
        return cls(status=RequestStatus.LOADING)

    @classmethod
    def success(cls, response: Response) -> RequestState:
        return cls(status=RequestStatus.SUCCESS, response=response)

    @classmethod
    def failure(cls, message: str) -> RequestState:
        return cls(status=RequestStatus.ERROR, error=message)

    @property
    def is_loading(self) -> bool:
        return self.status is RequestStatus.LOADING
