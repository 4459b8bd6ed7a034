from __future__ import annotations

import json
from typing import Any


class NonStandardConstant(ValueError):
    """NaN, Infinity and -Infinity are not part of JSON."""


def _reject_constant(name: str) -> Any:
    raise NonStandardConstant(f"Invalid JSON: {name} is not a JSON value")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _parse(text: str) -> tuple[bool, Any]:
    try:
        return True, _loads(text)
    except (ValueError, RecursionError):
        return False, None


def format_if_valid(text: str) -> str:
    """Pretty-print JSON text, or return it unchanged when it does not parse."""
    ok, data = _parse(text)
    if not ok:
        return text
    return json.dumps(data, indent=2, ensure_ascii=False)


def is_valid(text: str) -> bool:
    ok, _ = _parse(text)
    return ok


def validation_error(text: str) -> str | None:
    """Return a one-line hint describing why text is not JSON, else None."""
    try:
        _loads(text)
    except json.JSONDecodeError as exc:
        return f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
    except NonStandardConstant as exc:
        return str(exc)
    except RecursionError:
        return "Invalid JSON: nesting too deep"
    return None


def looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("{") or stripped.startswith("[")


def display_lines(text: str) -> list[str]:
    """Lines shown for a body; shared by the renderer and scroll bounds."""
    return format_if_valid(text).splitlines()
