"""Cooperative polling loop tying the adapter, channel and engine together."""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import Any

from core.logging import log_info
from interaction.audio_hal import AudioServerAdapter
from monitor.channel import MessageChannel
from monitor.engine import ReconciliationEngine
from monitor.producer import EventProducer
from services.notifier import DesktopNotifier, NotifierConfig
from storage.cache import CacheConfig, CacheStore


@dataclass(frozen=True)
class RunnerConfig:
    """Timing for the polling loop."""

    poll_interval_s: float = 0.05
    connect_timeout_s: float | None = 10.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RunnerConfig":
        adapter_cfg = config.get("adapter") or {}
        connect_timeout = adapter_cfg.get("connect_timeout_s", 10.0)
        return cls(
            poll_interval_s=float(adapter_cfg.get("poll_interval_s", 0.05)),
            connect_timeout_s=float(connect_timeout) if connect_timeout is not None else None,
        )


class MonitorRunner:
    """Single-threaded run loop: poll the adapter, then drain and process messages."""

    def __init__(
        self,
        adapter: AudioServerAdapter,
        cache: CacheStore,
        notifier: DesktopNotifier,
        config: RunnerConfig | None = None,
    ) -> None:
        self.config = config or RunnerConfig()
        self.adapter = adapter
        self.channel = MessageChannel()
        self.producer = EventProducer(adapter, self.channel.sender())
        self.engine = ReconciliationEngine(self.producer, cache, notifier)
        self._closed = False

    @classmethod
    def from_config(cls, adapter: AudioServerAdapter, config: dict[str, Any]) -> "MonitorRunner":
        return cls(
            adapter,
            CacheStore(CacheConfig.from_config(config)),
            DesktopNotifier(NotifierConfig.from_config(config)),
            RunnerConfig.from_config(config),
        )

    def wait_until_ready(self, stop_event: threading.Event | None = None) -> None:
        """Connect and poll until the adapter reports a usable connection.

        Raises:
            TimeoutError: The connection did not become ready within
                ``connect_timeout_s``.
        """

        stop_event = stop_event or threading.Event()
        self.adapter.connect()
        started = time.monotonic()
        while not self.adapter.is_ready():
            if stop_event.is_set():
                return
            timeout = self.config.connect_timeout_s
            if timeout is not None and time.monotonic() - started > timeout:
                raise TimeoutError(f"Audio server not ready after {timeout:.1f}s")
            self.adapter.poll()
            stop_event.wait(timeout=self.config.poll_interval_s)

    def start(self) -> None:
        """Issue the initial enumeration and the sink subscription."""

        self.producer.list_devices()
        self.producer.subscribe()

    def run_once(self) -> int:
        """Run one poll cycle and return how many messages were processed."""

        self.adapter.poll()
        return self.engine.process(self.channel.drain())

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or threading.Event()
        log_info("Monitoring sinks")
        try:
            while not stop_event.is_set():
                self.run_once()
                stop_event.wait(timeout=self.config.poll_interval_s)
        finally:
            self.close()

    def close(self) -> None:
        """Close the channel and the adapter; later calls do nothing."""

        if self._closed:
            return
        self._closed = True
        self.channel.close()
        self.adapter.close()
