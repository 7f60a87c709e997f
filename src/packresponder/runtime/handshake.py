"""Asyncio reply sequences for accepted resource-pack offers."""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..handler_config import HandlerOptions
from ..offers import ModernOffer, ReplyResult, ResourcePackOffer, build_reply
from ..packet_client import REPLY_PACKET, PacketClient

LOGGER = logging.getLogger(__name__)

SleepCallable = Callable[[float], Awaitable[object]]


class HandshakeStage(Enum):
    """Last reply successfully written for an offer."""

    RECEIVED = auto()
    ACCEPTED = auto()
    DOWNLOADED = auto()
    SUCCESSFULLY_LOADED = auto()


class HandshakeDriver:
    """Write ``resource_pack_receive`` replies through a :class:`PacketClient`.

    Modern offers get ``ACCEPTED`` immediately and ``SUCCESSFULLY_LOADED``
    after two ``step_delay`` pauses, with an optional ``DOWNLOADED`` reply
    between them. Both settings are read from ``options`` as each sequence
    runs, so changes made through a shared :class:`HandlerOptions` apply to
    the next offer. Legacy offers get a single ``SUCCESSFULLY_LOADED``. Every
    write is guarded on its own: a failed write is logged, ends that offer's
    sequence, and never reaches the caller.
    """

    def __init__(
        self,
        client: PacketClient,
        options: HandlerOptions | None = None,
        *,
        sleep: SleepCallable | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.client = client
        self.options = options if options is not None else HandlerOptions()
        self._sleep_fn: SleepCallable = sleep or asyncio.sleep
        self._log = logger or LOGGER
        self._tasks: set[asyncio.Task[HandshakeStage]] = set()

    @property
    def pending(self) -> int:
        """Number of accept sequences still in flight."""

        return len(self._tasks)

    @property
    def step_delay(self) -> float:
        return self.options.step_delay

    @property
    def send_downloaded(self) -> bool:
        return self.options.send_downloaded

    # Automatic sequence -------------------------------------------------

    def schedule_accept(
        self,
        offer: ResourcePackOffer,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> asyncio.Task[HandshakeStage]:
        """Run :meth:`accept` for ``offer`` on a later turn of ``loop``."""

        if loop is None:
            loop = asyncio.get_running_loop()
        task = loop.create_task(self.accept(offer))
        self._track_task(task)
        return task

    async def accept(self, offer: ResourcePackOffer) -> HandshakeStage:
        if isinstance(offer, ModernOffer):
            return await self._accept_modern(offer)
        return self._accept_legacy(offer)

    async def wait_idle(self) -> None:
        """Wait until every scheduled accept sequence has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _accept_modern(self, offer: ModernOffer) -> HandshakeStage:
        identifier = offer.identifier
        self._log.info("handling resource pack %s (identifier flow)", identifier)

        stage = HandshakeStage.RECEIVED
        if not self._send(build_reply(ReplyResult.ACCEPTED, identifier=identifier), offer):
            return stage
        stage = HandshakeStage.ACCEPTED
        self._log.info("resource pack %s accepted (result=3)", identifier)

        await self._sleep_fn(self.step_delay)
        if self.send_downloaded:
            reply = build_reply(ReplyResult.DOWNLOADED, identifier=identifier)
            if not self._send(reply, offer):
                return stage
            stage = HandshakeStage.DOWNLOADED
            self._log.info("resource pack %s downloaded (result=4)", identifier)

        await self._sleep_fn(self.step_delay)
        reply = build_reply(ReplyResult.SUCCESSFULLY_LOADED, identifier=identifier)
        if not self._send(reply, offer):
            return stage
        self._log.info("resource pack %s loaded (result=0)", identifier)
        return HandshakeStage.SUCCESSFULLY_LOADED

    def _accept_legacy(self, offer: ResourcePackOffer) -> HandshakeStage:
        self._log.info("handling resource pack (hash-only flow)")
        reply = build_reply(ReplyResult.SUCCESSFULLY_LOADED, pack_hash=offer.hash or "")
        if not self._send(reply, offer):
            return HandshakeStage.RECEIVED
        self._log.info("legacy resource pack marked as loaded (result=0)")
        return HandshakeStage.SUCCESSFULLY_LOADED

    # Manual replies -----------------------------------------------------

    def decline(self) -> None:
        if self._send(build_reply(ReplyResult.DECLINED)):
            self._log.info("resource pack declined")

    def report_download_failed(self) -> None:
        if self._send(build_reply(ReplyResult.FAILED_DOWNLOAD)):
            self._log.warning("resource pack download failure reported")

    # Helpers ------------------------------------------------------------

    def _send(
        self, reply: Mapping[str, Any], offer: Optional[ResourcePackOffer] = None
    ) -> bool:
        try:
            self.client.write(REPLY_PACKET, reply)
        except Exception as exc:
            self._log.error(
                "failed to send %s %s: %s", REPLY_PACKET, _dump(reply), exc
            )
            if offer is not None:
                self._log.error("offer: %s", _dump(offer.describe()))
            return False
        self._log.debug("sent %s: %s", REPLY_PACKET, _dump(reply))
        return True

    def _track_task(self, task: asyncio.Task[HandshakeStage]) -> None:
        def _on_done(completed: asyncio.Task[HandshakeStage]) -> None:
            self._tasks.discard(completed)
            if completed.cancelled():
                return
            exc = completed.exception()
            if exc is not None:
                self._log.error("resource pack handshake aborted: %r", exc)

        self._tasks.add(task)
        task.add_done_callback(_on_done)


def _dump(data: Mapping[str, Any]) -> str:
    return json.dumps(data, default=str, sort_keys=True)


__all__ = ["HandshakeDriver", "HandshakeStage", "SleepCallable"]
