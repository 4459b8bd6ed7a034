from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union
from urllib.parse import quote

import httpx

from ..config.manager import CourierSettings
from ..core.json_format import looks_like_json
from ..core.models import HttpMethod, KeyValue, Response


class FailureKind(Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    INVALID_REQUEST = "invalid_request"
    TRANSPORT = "transport"
    BODY_READ = "body_read"


@dataclass(frozen=True)
class RequestData:
    """Owned copy of everything one dispatch needs."""

    method: HttpMethod
    url: str
    params: list[KeyValue] = field(default_factory=list)
    headers: list[KeyValue] = field(default_factory=list)
    body: str = ""


@dataclass(frozen=True)
class HttpSuccess:
    response: Response


@dataclass(frozen=True)
class HttpFailure:
    kind: FailureKind
    message: str


HttpResult = Union[HttpSuccess, HttpFailure]


def normalize_url(url: str) -> str:
    url = url.strip()
    if url and not url.startswith(("http://", "https://")):
        return f"https://{url}"
    return url


def _active(entries: Iterable[KeyValue]) -> list[KeyValue]:
    return [entry for entry in entries if entry.enabled and entry.key]


def build_url(base_url: str, params: Iterable[KeyValue]) -> str:
    """Append enabled params to base_url as percent-encoded key=value pairs."""
    active = _active(params)
    if not active:
        return base_url
    query = "&".join(
        f"{quote(entry.key, safe='')}={quote(entry.value, safe='')}" for entry in active
    )
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


def build_headers(headers: Iterable[KeyValue], body: str) -> list[tuple[str, str]]:
    """Enabled headers in order, plus an inferred Content-Type for bodies."""
    applied = [(entry.key, entry.value) for entry in _active(headers)]
    if body and not any(name.lower() == "content-type" for name, _ in applied):
        content_type = "application/json" if looks_like_json(body) else "text/plain"
        applied.append(("Content-Type", content_type))
    return applied


def build_client(
    settings: Optional[CourierSettings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    settings = settings or CourierSettings()
    return httpx.Client(
        timeout=settings.timeout_secs,
        follow_redirects=settings.follow_redirects,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


def execute(client: httpx.Client, data: RequestData) -> HttpResult:
    """Issue one call and classify the outcome. Transport errors never escape."""
    url = build_url(data.url, data.params)
    headers = build_headers(data.headers, data.body)
    try:
        request = client.build_request(
            data.method.value,
            url,
            headers=headers,
            content=data.body.encode("utf-8") if data.body else None,
        )
    except (httpx.InvalidURL, ValueError) as exc:
        return HttpFailure(FailureKind.INVALID_REQUEST, f"Invalid request: {exc}")

    start = time.monotonic()
    try:
        response = client.send(request, stream=True)
    except httpx.TimeoutException:
        return HttpFailure(FailureKind.TIMEOUT, "Request timed out")
    except httpx.ConnectError as exc:
        return HttpFailure(FailureKind.CONNECT, f"Connection failed: {exc}")
    except (httpx.UnsupportedProtocol, httpx.LocalProtocolError, httpx.InvalidURL) as exc:
        return HttpFailure(FailureKind.INVALID_REQUEST, f"Invalid request: {exc}")
    except httpx.HTTPError as exc:
        return HttpFailure(FailureKind.TRANSPORT, f"Request failed: {exc}")
    elapsed = time.monotonic() - start

    try:
        raw = response.read()
        body = response.text
    except httpx.HTTPError as exc:
        return HttpFailure(FailureKind.BODY_READ, f"Failed to read response body: {exc}")
    finally:
        response.close()

    status = response.status_code
    return HttpSuccess(
        Response(
            status=status,
            status_text=httpx.codes.get_reason_phrase(status) or "Unknown",
            headers=tuple(response.headers.multi_items()),
            body=body,
            elapsed=elapsed,
            size_bytes=len(raw),
        )
    )
