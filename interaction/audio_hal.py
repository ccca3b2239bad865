"""Thin audio server HAL: callback types, adapter protocol and an in-memory fake."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Generic, Protocol, TypeVar


T = TypeVar("T")


class ListResultKind(str, Enum):
    """Kinds of callback invocations for a list-style request."""

    ITEM = "item"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class ListResult(Generic[T]):
    """One callback invocation of a list-style request."""

    kind: ListResultKind
    item: T | None = None
    error: str | None = None

    @classmethod
    def of(cls, item: T) -> "ListResult[T]":
        return cls(kind=ListResultKind.ITEM, item=item)

    @classmethod
    def end(cls) -> "ListResult[T]":
        return cls(kind=ListResultKind.END)

    @classmethod
    def failed(cls, error: str) -> "ListResult[T]":
        return cls(kind=ListResultKind.ERROR, error=error)


@dataclass(frozen=True)
class DeviceInfo:
    """Raw sink information as reported by the audio server.

    Channel volumes are in raw linear units where 65536 is 100%.
    """

    index: int
    mute: bool
    channel_volumes: tuple[int, ...]
    description: str | None
    name: str | None = None


@dataclass(frozen=True)
class StreamInfo:
    """Raw sink input (playing stream) information."""

    index: int
    device_index: int
    name: str | None = None


class Facility(str, Enum):
    """Subscription facilities reported by the audio server."""

    SINK = "sink"
    SOURCE = "source"
    SINK_INPUT = "sink-input"
    SOURCE_OUTPUT = "source-output"
    MODULE = "module"
    CLIENT = "client"
    SAMPLE_CACHE = "sample-cache"
    SERVER = "server"
    CARD = "card"


class Operation(str, Enum):
    """Subscription operations reported by the audio server."""

    NEW = "new"
    REMOVED = "remove"
    CHANGED = "change"


@dataclass(frozen=True)
class SubscriptionEvent:
    """A single subscription notification."""

    facility: Facility
    operation: Operation
    index: int


DeviceCallback = Callable[[ListResult[DeviceInfo]], None]
StreamCallback = Callable[[ListResult[StreamInfo]], None]
SuccessCallback = Callable[[bool], None]
SubscriptionCallback = Callable[[SubscriptionEvent], None]


class AudioServerAdapter(Protocol):
    """Callback-based audio server interface.

    Every request returns immediately; results are delivered by invoking the
    supplied callback from inside :meth:`poll`.
    """

    def connect(self) -> None:
        """Start connecting to the audio server."""

    def is_ready(self) -> bool:
        """Return True once the connection is usable."""

    def poll(self) -> None:
        """Deliver any callbacks whose results are available, without blocking."""

    def close(self) -> None:
        """Release the connection and any outstanding requests."""

    def enumerate_devices(self, callback: DeviceCallback) -> None:
        """List every sink in ascending index order, then END."""

    def query_device(self, index: int, callback: DeviceCallback) -> None:
        """Fetch one sink by index: ITEM then END, or ERROR."""

    def list_streams(self, callback: StreamCallback) -> None:
        """List every playing stream, then END."""

    def move_stream(self, stream_index: int, device_index: int, callback: SuccessCallback) -> None:
        """Move a stream to another sink and report success."""

    def subscribe_devices(
        self,
        callback: SubscriptionCallback,
        on_result: SuccessCallback,
    ) -> None:
        """Subscribe to sink events and report whether the subscription succeeded."""


@dataclass
class FakeAudioServer:
    """In-memory audio server for tests and offline diagnostics."""

    devices: dict[int, DeviceInfo] = field(default_factory=dict)
    streams: dict[int, StreamInfo] = field(default_factory=dict)
    ready: bool = True
    fail_moves: bool = False
    failing_queries: set[int] = field(default_factory=set)
    requests: list[tuple[object, ...]] = field(default_factory=list)
    _pending: Deque[Callable[[], None]] = field(default_factory=deque)
    _subscribers: list[SubscriptionCallback] = field(default_factory=list)
    _next_index: int = 0

    def connect(self) -> None:
        self.requests.append(("connect",))

    def is_ready(self) -> bool:
        return self.ready

    def poll(self) -> None:
        pending = list(self._pending)
        self._pending.clear()
        for deliver in pending:
            deliver()

    def close(self) -> None:
        self._pending.clear()
        self._subscribers.clear()

    def pending_count(self) -> int:
        return len(self._pending)

    def enumerate_devices(self, callback: DeviceCallback) -> None:
        self.requests.append(("enumerate_devices",))
        snapshot = [self.devices[index] for index in sorted(self.devices)]

        def _deliver() -> None:
            for info in snapshot:
                callback(ListResult.of(info))
            callback(ListResult.end())

        self._pending.append(_deliver)

    def query_device(self, index: int, callback: DeviceCallback) -> None:
        self.requests.append(("query_device", index))
        info = self.devices.get(index)
        failing = index in self.failing_queries

        def _deliver() -> None:
            if info is None or failing:
                callback(ListResult.failed(f"No sink with index {index}"))
                return
            callback(ListResult.of(info))
            callback(ListResult.end())

        self._pending.append(_deliver)

    def list_streams(self, callback: StreamCallback) -> None:
        self.requests.append(("list_streams",))
        snapshot = [self.streams[index] for index in sorted(self.streams)]

        def _deliver() -> None:
            for info in snapshot:
                callback(ListResult.of(info))
            callback(ListResult.end())

        self._pending.append(_deliver)

    def move_stream(self, stream_index: int, device_index: int, callback: SuccessCallback) -> None:
        self.requests.append(("move_stream", stream_index, device_index))

        def _deliver() -> None:
            stream = self.streams.get(stream_index)
            if self.fail_moves or stream is None or device_index not in self.devices:
                callback(False)
                return
            self.streams[stream_index] = StreamInfo(
                index=stream.index,
                device_index=device_index,
                name=stream.name,
            )
            callback(True)

        self._pending.append(_deliver)

    def subscribe_devices(
        self,
        callback: SubscriptionCallback,
        on_result: SuccessCallback,
    ) -> None:
        self.requests.append(("subscribe_devices",))
        self._subscribers.append(callback)
        self._pending.append(lambda: on_result(True))

    def add_device(
        self,
        description: str,
        *,
        volume_percent: int = 100,
        mute: bool = False,
        channels: int = 2,
        index: int | None = None,
    ) -> DeviceInfo:
        """Plug in a sink and notify subscribers."""

        if index is None:
            index = self._next_index
        self._next_index = max(self._next_index, index + 1)
        raw = round(volume_percent * 65536 / 100)
        info = DeviceInfo(
            index=index,
            mute=mute,
            channel_volumes=(raw,) * channels,
            description=description,
        )
        self.devices[index] = info
        self.emit(Facility.SINK, Operation.NEW, index)
        return info

    def remove_device(self, index: int) -> None:
        """Unplug a sink and notify subscribers."""

        del self.devices[index]
        self.emit(Facility.SINK, Operation.REMOVED, index)

    def set_device(self, index: int, *, volume_percent: int | None = None, mute: bool | None = None) -> None:
        """Change a sink's volume or mute state and notify subscribers."""

        current = self.devices[index]
        channel_volumes = current.channel_volumes
        if volume_percent is not None:
            raw = round(volume_percent * 65536 / 100)
            channel_volumes = (raw,) * len(current.channel_volumes)
        self.devices[index] = DeviceInfo(
            index=index,
            mute=current.mute if mute is None else mute,
            channel_volumes=channel_volumes,
            description=current.description,
            name=current.name,
        )
        self.emit(Facility.SINK, Operation.CHANGED, index)

    def add_stream(self, device_index: int, name: str | None = None) -> StreamInfo:
        index = max(self.streams, default=-1) + 1
        info = StreamInfo(index=index, device_index=device_index, name=name)
        self.streams[index] = info
        return info

    def emit(self, facility: Facility, operation: Operation, index: int) -> None:
        """Queue a subscription event for delivery on the next poll."""

        event = SubscriptionEvent(facility=facility, operation=operation, index=index)
        for subscriber in list(self._subscribers):
            self._pending.append(lambda subscriber=subscriber: subscriber(event))
