from __future__ import annotations

import asyncio
import json
import textwrap
from pathlib import Path

import pytest

from packresponder.handler_config import HandlerConfigError
from packresponder.packet_client import LEGACY_PUSH_EVENT, MODERN_PUSH_EVENT, REPLY_PACKET
from packresponder.runtime.cli import build_options, load_pushes, main, parse_args, replay


def _write_offers(tmp_path: Path, records: object) -> Path:
    path = tmp_path / "offers.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def test_load_pushes_infers_event_from_identifier(tmp_path: Path) -> None:
    path = _write_offers(
        tmp_path,
        [
            {"uuid": "X", "forced": True},
            {"hash": "abc"},
            {"event": LEGACY_PUSH_EVENT, "payload": {"uuid": "Y"}},
        ],
    )

    pushes = load_pushes(path)

    assert [event for event, _ in pushes] == [
        MODERN_PUSH_EVENT,
        LEGACY_PUSH_EVENT,
        LEGACY_PUSH_EVENT,
    ]
    assert pushes[1][1] == {"hash": "abc"}


@pytest.mark.parametrize(
    "records",
    [
        {"hash": "abc"},
        ["not-an-object"],
        [{"event": "chat", "payload": {}}],
        [{"event": MODERN_PUSH_EVENT, "payload": []}],
    ],
)
def test_load_pushes_rejects_malformed_files(tmp_path: Path, records: object) -> None:
    with pytest.raises(HandlerConfigError):
        load_pushes(_write_offers(tmp_path, records))


def test_build_options_layers_flags_over_config(tmp_path: Path) -> None:
    config = tmp_path / "handler.toml"
    config.write_text(
        textwrap.dedent(
            """
            [resource_pack]
            auto_accept_forced = false
            step_delay_ms = 20
            """
        ),
        encoding="utf-8",
    )
    offers = _write_offers(tmp_path, [])

    args = parse_args(
        [str(offers), "--config", str(config), "--no-auto-accept", "--step-delay-ms", "0"]
    )
    options = build_options(args)

    assert options.auto_accept is False
    assert options.auto_accept_forced is False
    assert options.log_packets is True
    assert options.step_delay_ms == 0


def test_replay_collects_replies_and_status(tmp_path: Path) -> None:
    args = parse_args([str(tmp_path / "unused.json"), "--step-delay-ms", "0"])
    pushes = [
        (MODERN_PUSH_EVENT, {"uuid": "X"}),
        (LEGACY_PUSH_EVENT, {"hash": "abc"}),
    ]

    writes, status = asyncio.run(
        replay(pushes, build_options(args), decline=True, report_failure=True)
    )

    payloads = [payload for name, payload in writes if name == REPLY_PACKET]
    assert payloads[-2:] == [{"result": 1}, {"result": 2}]
    assert {"uuid": "X", "result": 3} in payloads
    assert {"hash": "abc", "result": 0} in payloads
    assert payloads.index({"uuid": "X", "result": 3}) < payloads.index(
        {"uuid": "X", "result": 0}
    )
    assert status.enabled is False
    assert status.history_count == 2


def test_main_prints_json_report(tmp_path: Path, capsys) -> None:
    offers = _write_offers(tmp_path, [{"hash": "abc"}])

    exit_code = main([str(offers), "--step-delay-ms", "0", "--json"])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["writes"] == [
        {"packet": REPLY_PACKET, "payload": {"hash": "abc", "result": 0}}
    ]
    assert report["status"]["historyCount"] == 1
    assert report["status"]["lastRequest"]["hash"] == "abc"


def test_main_reports_bad_input(tmp_path: Path, capsys) -> None:
    offers = tmp_path / "offers.json"
    offers.write_text("{not json", encoding="utf-8")

    assert main([str(offers)]) == 1
    assert "not valid JSON" in capsys.readouterr().err


def test_main_reports_offers_file_that_is_not_utf8(tmp_path: Path, capsys) -> None:
    offers = tmp_path / "offers.json"
    offers.write_bytes(b"\xff\xfe[")

    assert main([str(offers)]) == 1
    assert "not valid UTF-8" in capsys.readouterr().err


def test_load_pushes_wraps_decode_errors(tmp_path: Path) -> None:
    offers = tmp_path / "offers.json"
    offers.write_bytes(b'[{"hash": "\xc3"}]')

    with pytest.raises(HandlerConfigError, match="UTF-8"):
        load_pushes(offers)
