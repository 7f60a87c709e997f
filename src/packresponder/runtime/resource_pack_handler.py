"""Automatic responder for server-pushed resource packs."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..handler_config import HISTORY_CAPACITY, HandlerOptions
from ..offers import ResourcePackOffer, parse_offer
from ..packet_client import LEGACY_PUSH_EVENT, MODERN_PUSH_EVENT, PacketClient
from .handshake import HandshakeDriver, HandshakeStage, SleepCallable
from .request_history import HistoryEntry, RequestHistory

LOGGER = logging.getLogger(__name__)

_ABSENT = "N/A"


@dataclass(frozen=True)
class HandlerStatus:
    """Read-only snapshot returned by :meth:`ResourcePackHandler.get_status`."""

    enabled: bool
    auto_accept: bool
    auto_accept_forced: bool
    history_count: int
    last_request: Optional[HistoryEntry]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "autoAccept": self.auto_accept,
            "autoAcceptForced": self.auto_accept_forced,
            "historyCount": self.history_count,
            "lastRequest": (
                self.last_request.as_dict() if self.last_request is not None else None
            ),
        }


class ResourcePackHandler:
    """Listen for resource-pack pushes and answer them according to policy.

    The handler subscribes one listener to both push events on :meth:`enable`.
    Each offer is logged, recorded in a bounded history, and, when the policy
    allows it, handed to a :class:`HandshakeDriver` task on the event loop.
    Disabling stops new offers from being handled; reply sequences that are
    already scheduled run to completion.
    """

    def __init__(
        self,
        client: PacketClient,
        options: HandlerOptions | Mapping[str, Any] | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        sleep: SleepCallable | None = None,
        time_provider: Callable[[], float] | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.client = client
        if options is None:
            options = HandlerOptions()
        elif not isinstance(options, HandlerOptions):
            options = HandlerOptions.from_mapping(options)
        self.options = replace(options)
        self._loop = loop
        self._time = time_provider or time.time
        self._log = logger or LOGGER
        self.history = RequestHistory(HISTORY_CAPACITY, logger=self._log)
        self.driver = HandshakeDriver(
            client,
            self.options,
            sleep=sleep,
            logger=self._log,
        )
        self.enabled = False

    # Listener registration ----------------------------------------------

    def enable(self) -> None:
        if self.enabled:
            self._log.info("resource pack handler already enabled")
            return
        self.client.on(MODERN_PUSH_EVENT, self._on_modern_push)
        self.client.on(LEGACY_PUSH_EVENT, self._on_legacy_push)
        self.enabled = True
        self._log.info(
            "resource pack handler enabled (events: %s, %s)",
            MODERN_PUSH_EVENT,
            LEGACY_PUSH_EVENT,
        )

    def disable(self) -> None:
        if not self.enabled:
            self._log.info("resource pack handler already disabled")
            return
        self.client.remove_listener(MODERN_PUSH_EVENT, self._on_modern_push)
        self.client.remove_listener(LEGACY_PUSH_EVENT, self._on_legacy_push)
        self.enabled = False
        self._log.info("resource pack handler disabled")

    def _on_modern_push(self, packet: Mapping[str, Any]) -> None:
        self._log.info("captured %s packet", MODERN_PUSH_EVENT)
        self.handle(packet)

    def _on_legacy_push(self, packet: Mapping[str, Any]) -> None:
        self._log.info("captured %s packet", LEGACY_PUSH_EVENT)
        self.handle(packet)

    # Classification -----------------------------------------------------

    def handle(
        self, packet: Mapping[str, Any] | ResourcePackOffer
    ) -> Optional[asyncio.Task[HandshakeStage]]:
        """Record ``packet`` and schedule its reply sequence if policy allows.

        Returns the scheduled accept task, or ``None`` when the offer is left
        unanswered.
        """

        offer = parse_offer(packet)
        if self.options.log_packets:
            self._log_receipt(offer)

        self.history.record(
            HistoryEntry.from_offer(offer, timestamp=int(self._time() * 1000))
        )

        if offer.forced:
            should_accept = self.options.auto_accept_forced
            self._log.info(
                "forced resource pack; auto_accept_forced=%s", should_accept
            )
        else:
            should_accept = self.options.auto_accept
            self._log.info("optional resource pack; auto_accept=%s", should_accept)

        if not should_accept:
            self._log.info("resource pack left unaccepted by policy")
            return None

        try:
            return self.driver.schedule_accept(offer, self._loop)
        except RuntimeError as exc:
            self._log.error("cannot schedule resource pack reply: %s", exc)
            return None

    def _log_receipt(self, offer: ResourcePackOffer) -> None:
        self._log.info("resource pack request received:")
        self._log.info("  URL: %s", offer.url or _ABSENT)
        self._log.info("  Hash: %s", offer.hash or _ABSENT)
        self._log.info("  Forced: %s", offer.forced)
        self._log.info("  Prompt Message: %s", offer.prompt_message or _ABSENT)

    # Manual controls ----------------------------------------------------

    def decline_resource_pack(self) -> None:
        self.driver.decline()

    def report_download_failed(self) -> None:
        self.driver.report_download_failed()

    def set_auto_accept(self, enabled: bool) -> None:
        self.options.auto_accept = bool(enabled)
        self._log.info("auto accept %s", "enabled" if enabled else "disabled")

    def set_auto_accept_forced(self, enabled: bool) -> None:
        self.options.auto_accept_forced = bool(enabled)
        self._log.info(
            "auto accept for forced packs %s", "enabled" if enabled else "disabled"
        )

    # Introspection ------------------------------------------------------

    def get_history(self) -> List[HistoryEntry]:
        return self.history.all()

    def get_last_request(self) -> Optional[HistoryEntry]:
        return self.history.last()

    def clear_history(self) -> None:
        self.history.clear()

    def get_status(self) -> HandlerStatus:
        return HandlerStatus(
            enabled=self.enabled,
            auto_accept=self.options.auto_accept,
            auto_accept_forced=self.options.auto_accept_forced,
            history_count=len(self.history),
            last_request=self.history.last(),
        )

    async def wait_idle(self) -> None:
        """Wait for every scheduled reply sequence to finish."""

        await self.driver.wait_idle()


__all__ = ["HandlerStatus", "ResourcePackHandler"]
