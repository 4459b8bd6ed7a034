"""Configuration package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manager import ConfigManager, CourierSettings
    from .paths import CourierPaths

__all__ = ["ConfigManager", "CourierSettings", "CourierPaths"]


def __getattr__(name: str) -> Any:
    if name in {"ConfigManager", "CourierSettings"}:
        from .manager import ConfigManager, CourierSettings

        return {"ConfigManager": ConfigManager, "CourierSettings": CourierSettings}[name]
    if name == "CourierPaths":
        from .paths import CourierPaths

        return CourierPaths
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
