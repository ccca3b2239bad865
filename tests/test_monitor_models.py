"""Tests for device snapshots and message formatting."""

from __future__ import annotations

import pytest

from interaction.audio_hal import DeviceInfo
from monitor.models import (
    DeviceDiscoveredFresh,
    DeviceSnapshot,
    EnumerationComplete,
    StreamNeedsRouting,
)


def _info(channel_volumes: tuple[int, ...], description: str | None = "Speakers") -> DeviceInfo:
    return DeviceInfo(index=4, mute=False, channel_volumes=channel_volumes, description=description)


def test_snapshot_averages_channels_and_rounds_to_percent() -> None:
    snapshot = DeviceSnapshot.from_device_info(_info((65536, 32768)))
    assert snapshot == DeviceSnapshot(index=4, muted=False, volume=75, description="Speakers")


def test_snapshot_keeps_boosted_volume_above_hundred() -> None:
    snapshot = DeviceSnapshot.from_device_info(_info((98304, 98304)))
    assert snapshot.volume == 150


def test_snapshot_rounds_to_nearest_percent() -> None:
    # 26542 is just under 40.5 %, 26575 is 40.55 %
    assert DeviceSnapshot.from_device_info(_info((26542,))).volume == 40
    assert DeviceSnapshot.from_device_info(_info((26575,))).volume == 41


def test_snapshot_rounds_exact_halves_up() -> None:
    # 12.5 %, 62.5 % and 112.5 %
    volumes = [
        DeviceSnapshot.from_device_info(_info((raw,))).volume for raw in (8192, 40960, 73728)
    ]
    assert volumes == [13, 63, 113]


def test_snapshot_without_description_is_rejected() -> None:
    with pytest.raises(ValueError):
        DeviceSnapshot.from_device_info(_info((65536,), description=None))


def test_snapshot_is_immutable() -> None:
    snapshot = DeviceSnapshot.from_device_info(_info((65536,)))
    with pytest.raises(AttributeError):
        snapshot.volume = 10  # type: ignore[misc]


def test_same_levels_ignores_description() -> None:
    a = DeviceSnapshot(index=3, muted=False, volume=40, description="A")
    b = DeviceSnapshot(index=3, muted=False, volume=40, description="B")
    c = DeviceSnapshot(index=3, muted=True, volume=40, description="A")
    assert a.same_levels(b)
    assert not a.same_levels(c)


def test_messages_render_for_logs() -> None:
    snapshot = DeviceSnapshot(index=3, muted=True, volume=40, description="USB DAC")
    assert str(DeviceDiscoveredFresh(snapshot)) == "DeviceDiscoveredFresh(3, true, 40, USB DAC)"
    assert str(EnumerationComplete()) == "EnumerationComplete"
    assert str(StreamNeedsRouting(12, 3)) == "StreamNeedsRouting(12, 3)"
