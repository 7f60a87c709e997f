"""Automatic resource-pack handshake responder for game-protocol clients."""
from __future__ import annotations

from . import handler_config as _handler_config
from . import offers as _offers
from . import packet_client as _packet_client
from .runtime.handshake import HandshakeDriver, HandshakeStage
from .runtime.request_history import HistoryEntry, RequestHistory
from .runtime.resource_pack_handler import HandlerStatus, ResourcePackHandler

__all__: list[str] = [
    "HandlerStatus",
    "HandshakeDriver",
    "HandshakeStage",
    "HistoryEntry",
    "RequestHistory",
    "ResourcePackHandler",
]

for _module in (_offers, _packet_client, _handler_config):
    for _name in _module.__all__:
        globals()[_name] = getattr(_module, _name)
        if _name not in __all__:
            __all__.append(_name)
