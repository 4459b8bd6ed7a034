"""HTTP transport and dispatch."""

from .client import (
    FailureKind,
    HttpFailure,
    HttpResult,
    HttpSuccess,
    RequestData,
    build_client,
    build_headers,
    build_url,
    execute,
    normalize_url,
)
from .dispatch import DispatchBridge

__all__ = [
    "DispatchBridge",
    "FailureKind",
    "HttpFailure",
    "HttpResult",
    "HttpSuccess",
    "RequestData",
    "build_client",
    "build_headers",
    "build_url",
    "execute",
    "normalize_url",
]
