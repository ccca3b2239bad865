"""Reconciliation engine: owns the active sink and decides every side effect."""

from __future__ import annotations

from typing import Callable, Iterable

from core.logging import log_message_event, logger as LOGGER
from monitor.models import (
    DeviceAdded,
    DeviceAttributesChanged,
    DeviceDiscoveredFresh,
    DeviceDiscoveredStale,
    DeviceRemoved,
    DeviceSnapshot,
    EnumerationComplete,
    Message,
    StreamNeedsRouting,
    VolumeDelta,
)
from monitor.producer import EventProducer
from services.notifier import DesktopNotifier
from storage.cache import CacheStore


class ReconciliationEngine:
    """Consume messages one at a time and keep the active sink in sync.

    The active sink starts empty and is only ever replaced wholesale by
    :meth:`handle`. Follow-up work is issued through the producer and comes
    back later as new messages.
    """

    def __init__(
        self,
        producer: EventProducer,
        cache: CacheStore,
        notifier: DesktopNotifier,
    ) -> None:
        self._producer = producer
        self._cache = cache
        self._notifier = notifier
        self._active: DeviceSnapshot | None = None
        self._handlers: dict[type, Callable[..., DeviceSnapshot | None]] = {
            DeviceDiscoveredFresh: self._on_discovered_fresh,
            DeviceDiscoveredStale: self._on_discovered_stale,
            EnumerationComplete: self._on_enumeration_complete,
            StreamNeedsRouting: self._on_stream_needs_routing,
            DeviceAdded: self._on_device_added,
            DeviceRemoved: self._on_device_removed,
            DeviceAttributesChanged: self._on_attributes_changed,
            VolumeDelta: self._on_volume_delta,
        }

    @property
    def active_device(self) -> DeviceSnapshot | None:
        return self._active

    def handle(self, message: Message) -> None:
        """Process one message; handlers returning a snapshot replace the active sink."""

        handler = self._handlers.get(type(message))
        if handler is None:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")
        log_message_event(message)
        replacement = handler(message)
        if replacement is not None:
            self._active = replacement

    def process(self, messages: Iterable[Message]) -> int:
        count = 0
        for message in messages:
            self.handle(message)
            count += 1
        return count

    def _on_discovered_fresh(self, message: DeviceDiscoveredFresh) -> DeviceSnapshot:
        self._cache.write_device(message.snapshot)
        return message.snapshot

    def _on_discovered_stale(self, message: DeviceDiscoveredStale) -> DeviceSnapshot:
        return message.snapshot

    def _on_enumeration_complete(self, _message: EnumerationComplete) -> None:
        active = self._active
        if active is None:
            raise RuntimeError("Enumeration completed without any active sink")
        self._cache.write_active_index(active.index)
        self._notifier.notify_device(active)
        self._producer.list_streams(active.index)
        return None

    def _on_stream_needs_routing(self, message: StreamNeedsRouting) -> None:
        self._producer.move_stream(message.stream_index, message.device_index)
        return None

    def _on_device_added(self, message: DeviceAdded) -> None:
        self._producer.query_new_device(message.index)
        return None

    def _on_device_removed(self, message: DeviceRemoved) -> None:
        self._producer.list_devices(stale=True)
        self._cache.delete_device(message.index)
        return None

    def _on_attributes_changed(self, message: DeviceAttributesChanged) -> None:
        active = self._active
        if active is None or active.index != message.index:
            LOGGER.debug("Ignoring change on inactive sink %s", message.index)
            return None
        self._producer.query_changed_device(active)
        return None

    def _on_volume_delta(self, message: VolumeDelta) -> DeviceSnapshot:
        self._cache.write_device(message.snapshot)
        self._notifier.notify_volume(message.snapshot)
        return message.snapshot
