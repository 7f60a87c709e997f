"""Packet client interface consumed by the resource-pack handler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

MODERN_PUSH_EVENT = "add_resource_pack"
LEGACY_PUSH_EVENT = "resource_pack_send"
REPLY_PACKET = "resource_pack_receive"

PacketListener = Callable[[Mapping[str, Any]], None]


class PacketClient(ABC):
    """Strategy object that hides the underlying game-protocol connection."""

    @abstractmethod
    def on(self, event: str, listener: PacketListener) -> None:
        """Subscribe ``listener`` to inbound packets named ``event``."""

    @abstractmethod
    def remove_listener(self, event: str, listener: PacketListener) -> None:
        """Drop ``listener`` from ``event`` if it is subscribed."""

    @abstractmethod
    def write(self, name: str, payload: Mapping[str, Any]) -> None:
        """Transmit an outbound packet toward the server."""


class LoopbackPacketClient(PacketClient):
    """In-memory client that records writes and replays inbound packets."""

    def __init__(
        self, *, fail_on: Optional[Callable[[str, Mapping[str, Any]], bool]] = None
    ) -> None:
        self._listeners: Dict[str, List[PacketListener]] = {}
        self._outbound: Deque[Tuple[str, Dict[str, Any]]] = deque()
        self.fail_on = fail_on

    def on(self, event: str, listener: PacketListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: PacketListener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, payload: Mapping[str, Any]) -> int:
        """Deliver ``payload`` to every listener of ``event``."""

        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(payload)
        return len(listeners)

    def write(self, name: str, payload: Mapping[str, Any]) -> None:
        if self.fail_on is not None and self.fail_on(name, payload):
            raise ConnectionError(f"write of {name!r} rejected by loopback client")
        self._outbound.append((name, dict(payload)))

    def collect_writes(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Return and clear the packets written so far."""

        writes = list(self._outbound)
        self._outbound.clear()
        return writes


__all__ = [
    "LEGACY_PUSH_EVENT",
    "LoopbackPacketClient",
    "MODERN_PUSH_EVENT",
    "PacketClient",
    "PacketListener",
    "REPLY_PACKET",
]
