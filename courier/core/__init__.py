"""Core editing state, models and helpers."""

from .collection import CollectionEditor, KvField
from .lifecycle import RequestLifecycle, scroll_by
from .models import (
    HttpMethod,
    KeyValue,
    Request,
    RequestState,
    RequestStatus,
    Response,
)
from .session_log import SessionLogger
from .text_field import BodyEditor, TextFieldEditor

__all__ = [
    "BodyEditor",
    "CollectionEditor",
    "HttpMethod",
    "KeyValue",
    "KvField",
    "Request",
    "RequestLifecycle",
    "RequestState",
    "RequestStatus",
    "Response",
    "SessionLogger",
    "TextFieldEditor",
    "scroll_by",
]
