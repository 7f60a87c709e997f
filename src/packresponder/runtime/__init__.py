"""Runtime modules exposed by the packresponder package."""
from __future__ import annotations

from . import cli as _cli
from . import handshake as _handshake
from . import request_history as _request_history
from . import resource_pack_handler as _resource_pack_handler

_modules = [
    _handshake,
    _request_history,
    _resource_pack_handler,
    _cli,
]

__all__: list[str] = []
_seen: set[str] = set()
for _module in _modules:
    for _name in _module.__all__:
        if _name not in _seen:
            _seen.add(_name)
            __all__.append(_name)
        globals()[_name] = getattr(_module, _name)


def __dir__() -> list[str]:
    return sorted(__all__)
