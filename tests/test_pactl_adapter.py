"""Tests for the pactl-backed audio server adapter."""

from __future__ import annotations

import json
from pathlib import Path
import sys
import textwrap
import time
from typing import Callable

import pytest

from interaction.audio_hal import (
    DeviceInfo,
    Facility,
    ListResult,
    ListResultKind,
    Operation,
    StreamInfo,
    SubscriptionEvent,
)
from interaction.pactl import PactlAdapter, parse_event_line, parse_sink_inputs, parse_sinks


SINKS_JSON = json.dumps(
    [
        {
            "index": 9,
            "name": "bluez_output.headset",
            "description": "Headset",
            "mute": True,
            "volume": {
                "front-left": {"value": 32768, "value_percent": "50%"},
                "front-right": {"value": 32768, "value_percent": "50%"},
            },
        },
        {
            "index": 2,
            "name": "alsa_output.pci",
            "description": "Built-in Audio",
            "mute": False,
            "volume": {"mono": {"value": 65536, "value_percent": "100%"}},
        },
    ]
)

SINK_INPUTS_JSON = json.dumps(
    [{"index": 12, "sink": 2, "properties": {"application.name": "Firefox"}}]
)

FAKE_PACTL = textwrap.dedent(
    """
    import sys
    import time

    args = sys.argv[1:]
    if args == ["info"]:
        print("Server Name: fake")
    elif args == ["--format=json", "list", "sinks"]:
        print({sinks!r})
    elif args == ["--format=json", "list", "sink-inputs"]:
        print({inputs!r})
    elif args[:1] == ["move-sink-input"]:
        sys.exit(0 if args[1] == "12" else 1)
    elif args == ["subscribe"]:
        print("Event 'new' on sink-input #4", flush=True)
        print("Event 'new' on sink #10", flush=True)
        print("Event 'change' on sink #2", flush=True)
        print("Event 'remove' on sink #10", flush=True)
        time.sleep(30)
    else:
        print("unknown command", file=sys.stderr)
        sys.exit(1)
    """
).format(sinks=SINKS_JSON, inputs=SINK_INPUTS_JSON)


def test_parse_sinks_sorts_by_index_and_keeps_raw_volumes() -> None:
    devices = parse_sinks(SINKS_JSON)
    assert devices == [
        DeviceInfo(
            index=2,
            mute=False,
            channel_volumes=(65536,),
            description="Built-in Audio",
            name="alsa_output.pci",
        ),
        DeviceInfo(
            index=9,
            mute=True,
            channel_volumes=(32768, 32768),
            description="Headset",
            name="bluez_output.headset",
        ),
    ]


def test_parse_sinks_tolerates_missing_description() -> None:
    devices = parse_sinks(json.dumps([{"index": 1, "mute": False, "volume": {}}]))
    assert devices[0].description is None
    assert devices[0].channel_volumes == ()


def test_parse_sink_inputs() -> None:
    assert parse_sink_inputs(SINK_INPUTS_JSON) == [StreamInfo(index=12, device_index=2, name="Firefox")]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Event 'new' on sink #5\n", SubscriptionEvent(Facility.SINK, Operation.NEW, 5)),
        ("Event 'remove' on sink #5", SubscriptionEvent(Facility.SINK, Operation.REMOVED, 5)),
        ("Event 'change' on sink-input #31", SubscriptionEvent(Facility.SINK_INPUT, Operation.CHANGED, 31)),
        ("Event 'change' on widget #3", None),
        ("garbage", None),
    ],
)
def test_parse_event_line(line: str, expected: SubscriptionEvent | None) -> None:
    assert parse_event_line(line) == expected


def _poll_until(adapter: PactlAdapter, done: Callable[[], bool], timeout_s: float = 10.0) -> None:
    deadline = time.monotonic() + timeout_s
    while not done():
        assert time.monotonic() < deadline, "timed out waiting for pactl callbacks"
        adapter.poll()
        time.sleep(0.01)


@pytest.fixture
def adapter(tmp_path: Path):
    script = tmp_path / "fake_pactl.py"
    script.write_text(FAKE_PACTL, encoding="utf-8")
    adapter = PactlAdapter([sys.executable, str(script)])
    yield adapter
    adapter.close()


def test_connect_then_enumerate_in_index_order(adapter: PactlAdapter) -> None:
    adapter.connect()
    _poll_until(adapter, adapter.is_ready)

    results: list[ListResult[DeviceInfo]] = []
    adapter.enumerate_devices(results.append)
    _poll_until(adapter, lambda: bool(results) and results[-1].kind is not ListResultKind.ITEM)

    assert [result.kind for result in results] == [
        ListResultKind.ITEM,
        ListResultKind.ITEM,
        ListResultKind.END,
    ]
    assert [result.item.index for result in results[:2]] == [2, 9]


def test_query_device_found_and_missing(adapter: PactlAdapter) -> None:
    found: list[ListResult[DeviceInfo]] = []
    missing: list[ListResult[DeviceInfo]] = []
    adapter.query_device(9, found.append)
    adapter.query_device(4, missing.append)
    _poll_until(adapter, lambda: len(found) == 2 and len(missing) == 1)

    assert found[0].item.description == "Headset"
    assert found[1].kind is ListResultKind.END
    assert missing[0].kind is ListResultKind.ERROR


def test_streams_and_moves(adapter: PactlAdapter) -> None:
    streams: list[ListResult[StreamInfo]] = []
    moves: list[bool] = []
    adapter.list_streams(streams.append)
    adapter.move_stream(12, 9, moves.append)
    adapter.move_stream(13, 9, moves.append)
    _poll_until(adapter, lambda: len(streams) == 2 and len(moves) == 2)

    assert streams[0].item == StreamInfo(index=12, device_index=2, name="Firefox")
    assert sorted(moves) == [False, True]


def test_subscription_delivers_sink_events_only(adapter: PactlAdapter) -> None:
    events: list[SubscriptionEvent] = []
    subscribed: list[bool] = []
    adapter.subscribe_devices(events.append, subscribed.append)
    _poll_until(adapter, lambda: len(events) == 3)

    assert subscribed == [True]
    assert events == [
        SubscriptionEvent(Facility.SINK, Operation.NEW, 10),
        SubscriptionEvent(Facility.SINK, Operation.CHANGED, 2),
        SubscriptionEvent(Facility.SINK, Operation.REMOVED, 10),
    ]


def test_missing_executable_reports_errors(tmp_path: Path) -> None:
    adapter = PactlAdapter([str(tmp_path / "no-such-pactl")])
    with pytest.raises(RuntimeError):
        adapter.connect()

    results: list[ListResult[DeviceInfo]] = []
    subscribed: list[bool] = []
    adapter.enumerate_devices(results.append)
    adapter.subscribe_devices(lambda _event: None, subscribed.append)
    adapter.poll()
    adapter.close()

    assert [result.kind for result in results] == [ListResultKind.ERROR]
    assert subscribed == [False]


def test_large_stderr_output_does_not_stall_request(tmp_path: Path) -> None:
    script = tmp_path / "chatty_pactl.py"
    script.write_text(
        "import sys\n"
        "sys.stderr.write(\"warning: \" * 50000)\n"
        "sys.stderr.flush()\n"
        f"print({SINKS_JSON!r})\n",
        encoding="utf-8",
    )
    adapter = PactlAdapter([sys.executable, str(script)])
    results: list[ListResult[DeviceInfo]] = []
    try:
        adapter.enumerate_devices(results.append)
        _poll_until(adapter, lambda: bool(results) and results[-1].kind is not ListResultKind.ITEM)
    finally:
        adapter.close()

    assert [result.item.index for result in results[:-1]] == [2, 9]
    assert results[-1].kind is ListResultKind.END


def test_from_config_splits_command() -> None:
    adapter = PactlAdapter.from_config({"adapter": {"pactl_command": "pactl --server unix:/tmp/pulse"}})
    try:
        assert adapter._command == ["pactl", "--server", "unix:/tmp/pulse"]
    finally:
        adapter.close()
