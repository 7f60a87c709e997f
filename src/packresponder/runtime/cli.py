"""Replay recorded resource-pack pushes through the automatic responder."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Sequence, Tuple

from ..handler_config import HandlerConfigError, HandlerOptions, load_handler_options
from ..offers import ModernOffer, parse_offer
from ..packet_client import LEGACY_PUSH_EVENT, MODERN_PUSH_EVENT, LoopbackPacketClient
from .resource_pack_handler import HandlerStatus, ResourcePackHandler

_PUSH_EVENTS = (MODERN_PUSH_EVENT, LEGACY_PUSH_EVENT)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments for the replay CLI."""

    parser = argparse.ArgumentParser(prog="packresponder", description=__doc__)
    parser.add_argument(
        "offers",
        type=Path,
        help="JSON file holding a list of push payloads or {event, payload} records",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML file with a [resource_pack] table",
    )
    parser.add_argument(
        "--no-auto-accept",
        dest="auto_accept",
        action="store_false",
        default=None,
        help="Leave optional packs unanswered",
    )
    parser.add_argument(
        "--no-auto-accept-forced",
        dest="auto_accept_forced",
        action="store_false",
        default=None,
        help="Leave forced packs unanswered",
    )
    parser.add_argument(
        "--quiet",
        dest="log_packets",
        action="store_false",
        default=None,
        help="Skip the per-offer receipt log",
    )
    parser.add_argument(
        "--send-downloaded",
        dest="send_downloaded",
        action="store_true",
        default=None,
        help="Report the intermediate downloaded status on modern offers",
    )
    parser.add_argument(
        "--step-delay-ms",
        type=int,
        default=None,
        help="Pause between modern reply steps",
    )
    parser.add_argument(
        "--decline",
        action="store_true",
        help="Send a manual decline after the replay",
    )
    parser.add_argument(
        "--report-failure",
        action="store_true",
        help="Send a manual download-failure report after the replay",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--json", action="store_true", help="Emit indented JSON")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> HandlerOptions:
    """Merge the optional config file with command-line overrides."""

    options = (
        load_handler_options(args.config) if args.config is not None else HandlerOptions()
    )
    overrides: Dict[str, Any] = {
        name: getattr(args, name)
        for name in (
            "auto_accept",
            "auto_accept_forced",
            "log_packets",
            "send_downloaded",
            "step_delay_ms",
        )
        if getattr(args, name) is not None
    }
    return options.merged(overrides)


def load_pushes(path: Path) -> List[Tuple[str, Mapping[str, Any]]]:
    """Read ``(event, payload)`` pairs from the offers file at ``path``."""

    with path.open("r", encoding="utf-8") as stream:
        try:
            raw = json.load(stream)
        except UnicodeDecodeError as exc:
            raise HandlerConfigError(f"offers file is not valid UTF-8: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise HandlerConfigError(f"offers file is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise HandlerConfigError("offers file must contain a JSON list")

    pushes: List[Tuple[str, Mapping[str, Any]]] = []
    for index, record in enumerate(raw, start=1):
        if not isinstance(record, Mapping):
            raise HandlerConfigError(f"offer #{index} must be an object")
        if "payload" in record:
            event = record.get("event")
            payload = record["payload"]
            if not isinstance(payload, Mapping):
                raise HandlerConfigError(f"offer #{index} payload must be an object")
        else:
            event = None
            payload = record
        if event is None:
            event = (
                MODERN_PUSH_EVENT
                if isinstance(parse_offer(payload), ModernOffer)
                else LEGACY_PUSH_EVENT
            )
        if event not in _PUSH_EVENTS:
            raise HandlerConfigError(f"offer #{index} has unknown event {event!r}")
        pushes.append((event, payload))
    return pushes


async def replay(
    pushes: Sequence[Tuple[str, Mapping[str, Any]]],
    options: HandlerOptions,
    *,
    decline: bool = False,
    report_failure: bool = False,
) -> Tuple[List[Tuple[str, Dict[str, Any]]], HandlerStatus]:
    """Feed ``pushes`` to a handler and return its writes and final status."""

    client = LoopbackPacketClient()
    handler = ResourcePackHandler(client, options)
    handler.enable()
    for event, payload in pushes:
        client.emit(event, payload)
    await handler.wait_idle()
    if decline:
        handler.decline_resource_pack()
    if report_failure:
        handler.report_download_failed()
    handler.disable()
    return client.collect_writes(), handler.get_status()


def _write_report(
    stream: IO[str],
    writes: Sequence[Tuple[str, Dict[str, Any]]],
    status: HandlerStatus,
    *,
    indent: int | None,
) -> None:
    payload = {
        "writes": [{"packet": name, "payload": data} for name, data in writes],
        "status": status.as_dict(),
    }
    stream.write(json.dumps(payload, indent=indent, default=str) + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        options = build_options(args)
        pushes = load_pushes(args.offers)
    except (HandlerConfigError, OSError) as exc:
        print(f"packresponder: {exc}", file=sys.stderr)
        return 1

    writes, status = asyncio.run(
        replay(
            pushes,
            options,
            decline=args.decline,
            report_failure=args.report_failure,
        )
    )
    _write_report(sys.stdout, writes, status, indent=2 if args.json else None)
    return 0


__all__ = ["build_options", "load_pushes", "main", "parse_args", "replay"]


if __name__ == "__main__":
    raise SystemExit(main())
