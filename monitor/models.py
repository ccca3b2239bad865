"""Device snapshots and the messages exchanged between producer and engine."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Union

from interaction.audio_hal import DeviceInfo


VOLUME_NORM = 65536


@dataclass(frozen=True)
class DeviceSnapshot:
    """Point-in-time copy of one output device's observable attributes."""

    index: int
    muted: bool
    volume: int
    description: str

    @classmethod
    def from_device_info(cls, info: DeviceInfo) -> "DeviceSnapshot":
        """Build a snapshot from a raw server result.

        Volume is the mean channel level as a percentage, halves rounded up.

        Raises:
            ValueError: The server reported a device without a description.
        """

        if info.description is None:
            raise ValueError(f"Sink {info.index} has no description")
        if info.channel_volumes:
            average = sum(info.channel_volumes) / len(info.channel_volumes)
        else:
            average = 0.0
        return cls(
            index=info.index,
            muted=info.mute,
            volume=math.floor(average / VOLUME_NORM * 100 + 0.5),
            description=info.description,
        )

    def same_levels(self, other: "DeviceSnapshot") -> bool:
        return self.muted == other.muted and self.volume == other.volume

    def __str__(self) -> str:
        return f"{self.index}, {str(self.muted).lower()}, {self.volume}, {self.description}"


@dataclass(frozen=True)
class DeviceDiscoveredFresh:
    snapshot: DeviceSnapshot

    def __str__(self) -> str:
        return f"DeviceDiscoveredFresh({self.snapshot})"


@dataclass(frozen=True)
class DeviceDiscoveredStale:
    snapshot: DeviceSnapshot

    def __str__(self) -> str:
        return f"DeviceDiscoveredStale({self.snapshot})"


@dataclass(frozen=True)
class EnumerationComplete:
    def __str__(self) -> str:
        return "EnumerationComplete"


@dataclass(frozen=True)
class StreamNeedsRouting:
    stream_index: int
    device_index: int

    def __str__(self) -> str:
        return f"StreamNeedsRouting({self.stream_index}, {self.device_index})"


@dataclass(frozen=True)
class DeviceAdded:
    index: int

    def __str__(self) -> str:
        return f"DeviceAdded({self.index})"


@dataclass(frozen=True)
class DeviceRemoved:
    index: int

    def __str__(self) -> str:
        return f"DeviceRemoved({self.index})"


@dataclass(frozen=True)
class DeviceAttributesChanged:
    index: int

    def __str__(self) -> str:
        return f"DeviceAttributesChanged({self.index})"


@dataclass(frozen=True)
class VolumeDelta:
    snapshot: DeviceSnapshot

    def __str__(self) -> str:
        return f"VolumeDelta({self.snapshot})"


Message = Union[
    DeviceDiscoveredFresh,
    DeviceDiscoveredStale,
    EnumerationComplete,
    StreamNeedsRouting,
    DeviceAdded,
    DeviceRemoved,
    DeviceAttributesChanged,
    VolumeDelta,
]
