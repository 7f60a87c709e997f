"""Bounded ledger of recently received resource-pack offers."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

from ..handler_config import HISTORY_CAPACITY
from ..offers import ResourcePackOffer

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """Offer fields captured verbatim at receipt time."""

    timestamp: int
    url: Optional[str]
    hash: Optional[str]
    forced: bool
    prompt_message: Any = None

    @classmethod
    def from_offer(cls, offer: ResourcePackOffer, *, timestamp: int) -> "HistoryEntry":
        return cls(
            timestamp=timestamp,
            url=offer.url,
            hash=offer.hash,
            forced=offer.forced,
            prompt_message=offer.prompt_message,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "url": self.url,
            "hash": self.hash,
            "forced": self.forced,
            "promptMessage": self.prompt_message,
        }


class RequestHistory:
    """FIFO of the most recent offers; the oldest entry is evicted first."""

    def __init__(
        self,
        capacity: int = HISTORY_CAPACITY,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("history capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[HistoryEntry] = deque(maxlen=capacity)
        self._log = logger or LOGGER

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def last(self) -> Optional[HistoryEntry]:
        if not self._entries:
            return None
        return self._entries[-1]

    def all(self) -> List[HistoryEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._log.info("resource pack history cleared")


__all__ = ["HistoryEntry", "RequestHistory"]
