"""Policy options for the resource-pack handler."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import tomllib


DEFAULT_STEP_DELAY_MS = 80
HISTORY_CAPACITY = 10

_BOOL_OPTIONS: tuple[str, ...] = (
    "auto_accept",
    "auto_accept_forced",
    "log_packets",
    "send_downloaded",
)
_OPTION_ALIASES: Dict[str, str] = {
    "autoAccept": "auto_accept",
    "autoAcceptForced": "auto_accept_forced",
    "logPackets": "log_packets",
    "sendDownloaded": "send_downloaded",
    "stepDelayMs": "step_delay_ms",
}


class HandlerConfigError(ValueError):
    """Raised when handler options fail validation."""


@dataclass
class HandlerOptions:
    """Accept policy and reply timing owned by a handler instance."""

    auto_accept: bool = True
    auto_accept_forced: bool = True
    log_packets: bool = True
    send_downloaded: bool = False
    step_delay_ms: int = DEFAULT_STEP_DELAY_MS

    @property
    def step_delay(self) -> float:
        """Delay between modern reply steps, in seconds."""

        return self.step_delay_ms / 1000.0

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, Any]) -> "HandlerOptions":
        """Return defaults updated with the validated ``overrides``."""

        return cls().merged(overrides)

    def merged(self, overrides: Mapping[str, Any]) -> "HandlerOptions":
        """Return a copy of these options with ``overrides`` applied."""

        known = {field.name for field in fields(self)}
        updates: Dict[str, Any] = {}
        for raw_key, value in overrides.items():
            key = _OPTION_ALIASES.get(raw_key, raw_key)
            if key not in known:
                raise HandlerConfigError(f"unknown resource pack option: {raw_key!r}")
            if key in _BOOL_OPTIONS:
                updates[key] = _coerce_bool(raw_key, value)
            else:
                updates[key] = _coerce_delay(raw_key, value)
        return replace(self, **updates)


def load_handler_options(config_path: Path) -> HandlerOptions:
    """Parse and validate the ``[resource_pack]`` table at ``config_path``."""

    with config_path.open("rb") as stream:
        raw_data = tomllib.load(stream)

    section = raw_data.get("resource_pack")
    if section is None:
        raise HandlerConfigError("handler configuration requires a [resource_pack] table")
    if not isinstance(section, Mapping):
        raise HandlerConfigError("[resource_pack] section must be a mapping")
    return HandlerOptions.from_mapping(section)


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise HandlerConfigError(f"{name} must be a boolean, received {value!r}")


def _coerce_delay(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise HandlerConfigError(f"{name} must be an integer, received {value!r}")
    if value < 0:
        raise HandlerConfigError(f"{name} must not be negative")
    return value


__all__ = [
    "DEFAULT_STEP_DELAY_MS",
    "HISTORY_CAPACITY",
    "HandlerConfigError",
    "HandlerOptions",
    "load_handler_options",
]
