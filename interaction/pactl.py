"""Audio server adapter driving the ``pactl`` command-line client.

Every request runs as its own non-blocking ``pactl`` process. Output is
collected with a selector inside :meth:`PactlAdapter.poll`, so callbacks only
ever run on the polling thread. The device subscription is one long-running
``pactl subscribe`` process whose event lines are parsed as they arrive.
"""

from __future__ import annotations

from collections import deque
import json
import os
import re
import selectors
import shlex
import subprocess
from typing import IO, Any, Callable, Deque, Sequence

from core.logging import logger as LOGGER
from interaction.audio_hal import (
    DeviceCallback,
    DeviceInfo,
    Facility,
    ListResult,
    Operation,
    StreamCallback,
    StreamInfo,
    SubscriptionCallback,
    SubscriptionEvent,
    SuccessCallback,
)


_EVENT_PATTERN = re.compile(r"^Event '(?P<operation>[\w-]+)' on (?P<facility>[\w-]+) #(?P<index>\d+)$")
_READ_SIZE = 65536

CompletionHandler = Callable[[int, str, str], None]


def parse_sinks(payload: str) -> list[DeviceInfo]:
    """Parse ``pactl --format=json list sinks`` output, sorted by index."""

    devices: list[DeviceInfo] = []
    for entry in json.loads(payload):
        volume = entry.get("volume") or {}
        channel_volumes = tuple(int(channel["value"]) for channel in volume.values())
        devices.append(
            DeviceInfo(
                index=int(entry["index"]),
                mute=bool(entry.get("mute", False)),
                channel_volumes=channel_volumes,
                description=entry.get("description"),
                name=entry.get("name"),
            )
        )
    devices.sort(key=lambda device: device.index)
    return devices


def parse_sink_inputs(payload: str) -> list[StreamInfo]:
    """Parse ``pactl --format=json list sink-inputs`` output."""

    streams: list[StreamInfo] = []
    for entry in json.loads(payload):
        properties = entry.get("properties") or {}
        streams.append(
            StreamInfo(
                index=int(entry["index"]),
                device_index=int(entry["sink"]),
                name=properties.get("application.name"),
            )
        )
    return streams


def parse_event_line(line: str) -> SubscriptionEvent | None:
    """Parse one ``pactl subscribe`` line; unknown facilities or operations yield None."""

    match = _EVENT_PATTERN.match(line.strip())
    if not match:
        return None
    try:
        facility = Facility(match.group("facility"))
        operation = Operation(match.group("operation"))
    except ValueError:
        return None
    return SubscriptionEvent(facility=facility, operation=operation, index=int(match.group("index")))


class _Request:
    """A running one-shot pactl process and its completion handler.

    Both pipes are drained through the selector; the handler runs once
    stdout and stderr have both reached EOF.
    """

    def __init__(self, process: subprocess.Popen, on_complete: CompletionHandler) -> None:
        self.process = process
        self.on_complete = on_complete
        self.output = {process.stdout: bytearray(), process.stderr: bytearray()}

    def feed(self, stream: IO[bytes], chunk: bytes) -> None:
        self.output[stream].extend(chunk)

    def eof(self, stream: IO[bytes]) -> bool:
        stream.close()
        return all(pipe.closed for pipe in self.output)

    def finish(self) -> None:
        returncode = self.process.wait()
        self.on_complete(
            returncode,
            self.output[self.process.stdout].decode("utf-8", "replace"),
            self.output[self.process.stderr].decode("utf-8", "replace").strip(),
        )


class _Subscription:
    """The long-running ``pactl subscribe`` process."""

    def __init__(self, process: subprocess.Popen, callback: SubscriptionCallback) -> None:
        self.process = process
        self.callback = callback
        self.buffer = bytearray()

    def feed(self, _stream: IO[bytes], chunk: bytes) -> None:
        self.buffer.extend(chunk)
        while b"\n" in self.buffer:
            raw, _, rest = bytes(self.buffer).partition(b"\n")
            self.buffer = bytearray(rest)
            event = parse_event_line(raw.decode("utf-8", "replace"))
            if event is not None:
                self.callback(event)

    def eof(self, stream: IO[bytes]) -> bool:
        stream.close()
        return True

    def finish(self) -> None:
        returncode = self.process.wait()
        raise RuntimeError(f"pactl subscribe exited with status {returncode}")


class PactlAdapter:
    """:class:`AudioServerAdapter` implementation backed by ``pactl`` processes."""

    def __init__(
        self,
        command: Sequence[str] | str = "pactl",
        *,
        client_name: str = "PAMonitor",
    ) -> None:
        self._command = shlex.split(command) if isinstance(command, str) else list(command)
        self._env = dict(os.environ)
        self._env.pop("LC_ALL", None)
        self._env["LC_MESSAGES"] = "C"
        self._env["PULSE_PROP_application.name"] = client_name
        self._selector = selectors.DefaultSelector()
        self._deferred: Deque[Callable[[], None]] = deque()
        self._subscription: _Subscription | None = None
        self._ready = False

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PactlAdapter":
        adapter_cfg = config.get("adapter") or {}
        return cls(
            adapter_cfg.get("pactl_command", "pactl"),
            client_name=adapter_cfg.get("client_name", "PAMonitor"),
        )

    def connect(self) -> None:
        """Check the server with ``pactl info``; readiness is reported via :meth:`is_ready`."""

        def _on_info(returncode: int, _stdout: str, stderr: str) -> None:
            if returncode != 0:
                raise RuntimeError(f"Failed to connect to the audio server: {stderr or returncode}")
            LOGGER.info("Connected to the audio server")
            self._ready = True

        try:
            self._spawn(["info"], _on_info)
        except OSError as exc:
            raise RuntimeError(f"Failed to start {self._command[0]}: {exc}") from exc

    def is_ready(self) -> bool:
        return self._ready

    def poll(self) -> None:
        while self._deferred:
            self._deferred.popleft()()

        if not self._selector.get_map():
            return
        for key, _ in self._selector.select(timeout=0):
            handler = key.data
            chunk = os.read(key.fd, _READ_SIZE)
            if chunk:
                handler.feed(key.fileobj, chunk)
                continue
            self._selector.unregister(key.fileobj)
            if not handler.eof(key.fileobj):
                continue
            if handler is self._subscription:
                self._subscription = None
            handler.finish()

    def close(self) -> None:
        for key in list(self._selector.get_map().values()):
            self._selector.unregister(key.fileobj)
            process = key.data.process
            if process.poll() is None:
                process.terminate()
            process.wait()
            for stream in (process.stdout, process.stderr):
                if stream:
                    stream.close()
        self._subscription = None
        self._deferred.clear()
        self._selector.close()

    def enumerate_devices(self, callback: DeviceCallback) -> None:
        def _on_list(devices: list[DeviceInfo]) -> None:
            for device in devices:
                callback(ListResult.of(device))
            callback(ListResult.end())

        self._list_sinks(callback, _on_list)

    def query_device(self, index: int, callback: DeviceCallback) -> None:
        def _on_list(devices: list[DeviceInfo]) -> None:
            for device in devices:
                if device.index == index:
                    callback(ListResult.of(device))
                    callback(ListResult.end())
                    return
            callback(ListResult.failed(f"No sink with index {index}"))

        self._list_sinks(callback, _on_list)

    def list_streams(self, callback: StreamCallback) -> None:
        def _on_complete(returncode: int, stdout: str, stderr: str) -> None:
            if returncode != 0:
                callback(ListResult.failed(stderr or f"pactl exited with status {returncode}"))
                return
            try:
                streams = parse_sink_inputs(stdout)
            except (ValueError, KeyError, TypeError) as exc:
                callback(ListResult.failed(f"Unparseable sink input list: {exc}"))
                return
            for stream in streams:
                callback(ListResult.of(stream))
            callback(ListResult.end())

        self._request(
            ["--format=json", "list", "sink-inputs"],
            _on_complete,
            lambda error: callback(ListResult.failed(error)),
        )

    def move_stream(self, stream_index: int, device_index: int, callback: SuccessCallback) -> None:
        self._request(
            ["move-sink-input", str(stream_index), str(device_index)],
            lambda returncode, _stdout, _stderr: callback(returncode == 0),
            lambda _error: callback(False),
        )

    def subscribe_devices(
        self,
        callback: SubscriptionCallback,
        on_result: SuccessCallback,
    ) -> None:
        if self._subscription is not None:
            raise RuntimeError("Already subscribed to device events")
        try:
            process = self._popen(["subscribe"], stderr=subprocess.DEVNULL)
        except OSError as exc:
            LOGGER.warning("Failed to start pactl subscribe: %s", exc)
            self._deferred.append(lambda: on_result(False))
            return
        def _sink_only(event: SubscriptionEvent) -> None:
            if event.facility is Facility.SINK:
                callback(event)

        self._subscription = _Subscription(process, _sink_only)
        self._selector.register(process.stdout, selectors.EVENT_READ, self._subscription)
        self._deferred.append(lambda: on_result(True))

    def _list_sinks(
        self,
        callback: DeviceCallback,
        on_list: Callable[[list[DeviceInfo]], None],
    ) -> None:
        def _on_complete(returncode: int, stdout: str, stderr: str) -> None:
            if returncode != 0:
                callback(ListResult.failed(stderr or f"pactl exited with status {returncode}"))
                return
            try:
                devices = parse_sinks(stdout)
            except (ValueError, KeyError, TypeError) as exc:
                callback(ListResult.failed(f"Unparseable sink list: {exc}"))
                return
            on_list(devices)

        self._request(
            ["--format=json", "list", "sinks"],
            _on_complete,
            lambda error: callback(ListResult.failed(error)),
        )

    def _request(
        self,
        args: list[str],
        on_complete: CompletionHandler,
        on_spawn_error: Callable[[str], None],
    ) -> None:
        try:
            self._spawn(args, on_complete)
        except OSError as exc:
            message = f"Failed to start {self._command[0]}: {exc}"
            self._deferred.append(lambda: on_spawn_error(message))

    def _spawn(self, args: list[str], on_complete: CompletionHandler) -> None:
        process = self._popen(args)
        request = _Request(process, on_complete)
        self._selector.register(process.stdout, selectors.EVENT_READ, request)
        self._selector.register(process.stderr, selectors.EVENT_READ, request)

    def _popen(self, args: list[str], stderr: int = subprocess.PIPE) -> subprocess.Popen:
        LOGGER.debug("Running %s", " ".join(self._command + args))
        return subprocess.Popen(
            self._command + args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=stderr,
            env=self._env,
        )
