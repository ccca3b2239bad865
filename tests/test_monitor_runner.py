"""End-to-end tests of the polling loop against an in-memory audio server."""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Sequence

import pytest

from interaction.audio_hal import FakeAudioServer
from monitor.models import DeviceSnapshot
from monitor.runner import MonitorRunner, RunnerConfig
from services.notifier import DesktopNotifier
from storage.cache import CacheConfig, CacheStore


class _RecordingRunner:
    def __init__(self) -> None:
        self.commands: list[list[str]] = []

    def __call__(self, args: Sequence[str]) -> int:
        self.commands.append(list(args))
        return 0

    def titles(self) -> list[str]:
        return ["Volume" if "Volume" in command else command[-1] for command in self.commands]


def _cycle(runner: MonitorRunner, cycles: int = 4) -> None:
    for _ in range(cycles):
        runner.run_once()


@pytest.fixture
def monitor(tmp_path: Path):
    server = FakeAudioServer()
    server.add_device("Built-in Audio", index=0, volume_percent=50)
    server.add_device("HDMI", index=1, volume_percent=80)
    notifications = _RecordingRunner()
    cache = CacheStore(CacheConfig(cache_dir=tmp_path))
    runner = MonitorRunner(
        server,
        cache,
        DesktopNotifier(runner=notifications),
        RunnerConfig(poll_interval_s=0.0),
    )
    runner.wait_until_ready()
    runner.start()
    _cycle(runner)
    return runner, server, cache, notifications


def test_startup_selects_highest_index_and_caches_all(monitor) -> None:
    runner, _server, cache, notifications = monitor

    assert runner.engine.active_device == DeviceSnapshot(1, False, 80, "HDMI")
    assert cache.read_active_index() == 1
    assert cache.read_device(0) == DeviceSnapshot(0, False, 50, "Built-in Audio")
    assert cache.read_device(1) == DeviceSnapshot(1, False, 80, "HDMI")
    assert notifications.titles() == ["HDMI"]


def test_plugging_in_a_sink_makes_it_active_and_moves_streams(monitor) -> None:
    runner, server, cache, notifications = monitor
    music = server.add_stream(0, "music")

    server.add_device("USB Headset", index=2, volume_percent=30)
    _cycle(runner)

    assert runner.engine.active_device == DeviceSnapshot(2, False, 30, "USB Headset")
    assert cache.read_active_index() == 2
    assert server.streams[music.index].device_index == 2
    assert notifications.titles() == ["HDMI", "USB Headset"]


def test_unplugging_the_active_sink_falls_back_without_rewriting(monitor) -> None:
    runner, server, cache, notifications = monitor
    built_in = cache.device_path(0, "volume")
    built_in.write_text("13", encoding="utf-8")

    server.remove_device(1)
    _cycle(runner)

    assert runner.engine.active_device == DeviceSnapshot(0, False, 50, "Built-in Audio")
    assert cache.read_active_index() == 0
    assert cache.cached_indices() == [0]
    # stale listing must not overwrite the surviving sink's cache entries
    assert built_in.read_text(encoding="utf-8") == "13"
    assert notifications.titles() == ["HDMI", "Built-in Audio"]


def test_volume_change_on_active_sink_notifies_once(monitor) -> None:
    runner, server, cache, notifications = monitor

    server.set_device(1, volume_percent=55)
    _cycle(runner)

    assert runner.engine.active_device == DeviceSnapshot(1, False, 55, "HDMI")
    assert cache.read_device(1).volume == 55
    assert notifications.titles() == ["HDMI", "Volume"]


def test_change_without_level_difference_is_silent(monitor) -> None:
    runner, server, cache, notifications = monitor
    volume_file = cache.device_path(1, "volume")
    volume_file.write_text("sentinel", encoding="utf-8")

    server.set_device(1)
    _cycle(runner)

    assert notifications.titles() == ["HDMI"]
    assert volume_file.read_text(encoding="utf-8") == "sentinel"


def test_volume_change_on_inactive_sink_is_ignored(monitor) -> None:
    runner, server, _cache, notifications = monitor
    requests_before = len(server.requests)

    server.set_device(0, volume_percent=5, mute=True)
    _cycle(runner)

    assert server.requests[requests_before:] == []
    assert runner.engine.active_device == DeviceSnapshot(1, False, 80, "HDMI")
    assert notifications.titles() == ["HDMI"]


def test_run_forever_stops_and_closes_channel(monitor) -> None:
    runner, _server, _cache, _notifications = monitor
    stop_event = threading.Event()
    stop_event.set()

    runner.run_forever(stop_event)

    assert runner.channel.closed


def test_wait_until_ready_times_out(tmp_path: Path) -> None:
    server = FakeAudioServer(ready=False)
    runner = MonitorRunner(
        server,
        CacheStore(CacheConfig(cache_dir=tmp_path)),
        DesktopNotifier(runner=_RecordingRunner()),
        RunnerConfig(poll_interval_s=0.0, connect_timeout_s=0.01),
    )
    with pytest.raises(TimeoutError):
        runner.wait_until_ready()
    assert server.requests[0] == ("connect",)


def test_close_releases_adapter_once(monitor, monkeypatch: pytest.MonkeyPatch) -> None:
    runner, server, _cache, _notifications = monitor
    closes: list[bool] = []
    monkeypatch.setattr(server, "close", lambda: closes.append(True))
    stop_event = threading.Event()
    stop_event.set()

    runner.run_forever(stop_event)
    runner.close()

    assert closes == [True]
