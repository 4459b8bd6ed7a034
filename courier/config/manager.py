from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from .. import __version__
from .paths import CourierPaths

DEFAULT_TIMEOUT_SECS = 30.0
DEFAULT_POLL_INTERVAL_MS = 50
MIN_POLL_INTERVAL_MS = 10
MAX_POLL_INTERVAL_MS = 250


def default_user_agent() -> str:
    return f"courier/{__version__}"


@dataclass
class CourierSettings:
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    user_agent: str = ""
    follow_redirects: bool = True
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    debug: Any = None

    def __post_init__(self) -> None:
        if not self.user_agent:
            self.user_agent = default_user_agent()


class ConfigManager:
    """Reads ~/.courier/courier.json and resolves runtime settings."""

    def __init__(self, paths: Optional[CourierPaths] = None, console: Optional[Console] = None) -> None:
        self.paths = paths or CourierPaths()
        self.console = console or Console()
        self._ensure_home_bootstrap()

    def load_config(self) -> Dict[str, Any]:
        data = self._read_json(self.paths.config_file)
        if not isinstance(data, dict):
            data = {}
        return self._merge_dicts(self._default_config(), data)

    def load_settings(self, overrides: Optional[Dict[str, Any]] = None) -> CourierSettings:
        """Merge the config file with command-line overrides."""
        config = self.load_config()
        for key, value in (overrides or {}).items():
            if value is not None:
                config[key] = value
        user_agent = str(config.get("user_agent") or "").strip()
        if user_agent.lower() in {"courier", "replace-me"}:
            user_agent = ""
        return CourierSettings(
            timeout_secs=self._to_timeout(config.get("timeout_secs")),
            user_agent=user_agent,
            follow_redirects=self._to_bool(config.get("follow_redirects"), True),
            poll_interval_ms=self._to_poll_interval(config.get("poll_interval_ms")),
            debug=config.get("debug"),
        )

    def _default_config(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "timeout_secs": DEFAULT_TIMEOUT_SECS,
            "user_agent": "",
            "follow_redirects": True,
            "poll_interval_ms": DEFAULT_POLL_INTERVAL_MS,
            "debug": None,
        }

    def _merge_dicts(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        if not override:
            return dict(base)
        merged: Dict[str, Any] = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge_dicts(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            self.console.print(
                f"[red]Failed to parse JSON config at {path}. Using defaults.[/red]"
            )
            return {}

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def _ensure_home_bootstrap(self) -> None:
        try:
            self.paths.global_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            self.console.print(
                f"[yellow]Cannot create {self.paths.global_dir}. Using default settings.[/yellow]"
            )
            return
        if self.paths.config_file.exists():
            self._maybe_upgrade_config()
            return
        try:
            self._write_json(self.paths.config_file, self._default_config())
            self.console.print(f"[cyan]Created default config at {self.paths.config_file}.[/cyan]")
        except PermissionError:
            self.console.print(
                f"[yellow]Cannot write {self.paths.config_file}. Please create it manually.[/yellow]"
            )

    def _maybe_upgrade_config(self) -> None:
        data = self._read_json(self.paths.config_file)
        if not data or not isinstance(data, dict):
            return
        current_version = str(data.get("version") or "").strip()
        if self._compare_versions(current_version, __version__) >= 0:
            return
        merged = self._merge_dicts(self._default_config(), data)
        merged["version"] = __version__
        try:
            self._write_json(self.paths.config_file, merged)
        except PermissionError:
            self.console.print(
                f"[yellow]Cannot upgrade {self.paths.config_file}. Please update it manually.[/yellow]"
            )

    def _to_bool(self, value: Any, default: bool) -> bool:
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}

    def _to_timeout(self, value: Any) -> float:
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            return DEFAULT_TIMEOUT_SECS
        return timeout if timeout > 0 else DEFAULT_TIMEOUT_SECS

    def _to_poll_interval(self, value: Any) -> int:
        try:
            interval = int(value)
        except (TypeError, ValueError):
            return DEFAULT_POLL_INTERVAL_MS
        return max(MIN_POLL_INTERVAL_MS, min(interval, MAX_POLL_INTERVAL_MS))

    def _compare_versions(self, left: str, right: str) -> int:
        left_tuple = self._version_tuple(left)
        right_tuple = self._version_tuple(right)
        max_len = max(len(left_tuple), len(right_tuple))
        left_tuple += (0,) * (max_len - len(left_tuple))
        right_tuple += (0,) * (max_len - len(right_tuple))
        if left_tuple == right_tuple:
            return 0
        return -1 if left_tuple < right_tuple else 1

    def _version_tuple(self, value: str) -> tuple[int, ...]:
        if not value:
            return ()
        return tuple(int(part) for part in re.findall(r"\d+", value))
