"""Event producer: turns audio server callbacks into queued messages."""

from __future__ import annotations

from core.logging import logger as LOGGER
from interaction.audio_hal import (
    AudioServerAdapter,
    DeviceInfo,
    Facility,
    ListResult,
    ListResultKind,
    Operation,
    StreamInfo,
    SubscriptionEvent,
)
from monitor.channel import MessageSender
from monitor.models import (
    DeviceAdded,
    DeviceAttributesChanged,
    DeviceDiscoveredFresh,
    DeviceDiscoveredStale,
    DeviceRemoved,
    DeviceSnapshot,
    EnumerationComplete,
    StreamNeedsRouting,
    VolumeDelta,
)


class EventProducer:
    """Issue adapter requests whose results are posted to the message channel.

    Every method returns immediately. An adapter error for a request is
    logged and ends that request's causal chain without posting anything.
    """

    def __init__(self, adapter: AudioServerAdapter, sender: MessageSender) -> None:
        self._adapter = adapter
        self._sender = sender

    def list_devices(self, *, stale: bool = False) -> None:
        """Enumerate every sink.

        Args:
            stale: Post ``DeviceDiscoveredStale`` instead of
                ``DeviceDiscoveredFresh`` for each item, used when only the
                active device needs re-deriving after a removal.
        """

        sender = self._sender.clone()
        discovered = DeviceDiscoveredStale if stale else DeviceDiscoveredFresh

        def _on_result(result: ListResult[DeviceInfo]) -> None:
            if result.kind is ListResultKind.ERROR:
                LOGGER.warning("Error fetching sinks: %s", result.error)
            elif result.kind is ListResultKind.END:
                sender.send(EnumerationComplete())
            else:
                sender.send(discovered(DeviceSnapshot.from_device_info(result.item)))

        self._adapter.enumerate_devices(_on_result)

    def query_new_device(self, index: int) -> None:
        """Fetch a newly added sink; it becomes the active device."""

        sender = self._sender.clone()

        def _on_result(result: ListResult[DeviceInfo]) -> None:
            if result.kind is ListResultKind.ERROR:
                LOGGER.warning("Error fetching sink %s: %s", index, result.error)
            elif result.kind is ListResultKind.END:
                sender.send(EnumerationComplete())
            else:
                sender.send(DeviceDiscoveredFresh(DeviceSnapshot.from_device_info(result.item)))

        self._adapter.query_device(index, _on_result)

    def query_changed_device(self, active: DeviceSnapshot) -> None:
        """Re-fetch the active sink and post a ``VolumeDelta`` if mute or volume moved.

        The comparison is made against ``active`` as it was when the query was
        issued.
        """

        sender = self._sender.clone()

        def _on_result(result: ListResult[DeviceInfo]) -> None:
            if result.kind is ListResultKind.ERROR:
                LOGGER.warning("Error fetching sink %s: %s", active.index, result.error)
            elif result.kind is ListResultKind.ITEM:
                current = DeviceSnapshot.from_device_info(result.item)
                if not current.same_levels(active):
                    sender.send(VolumeDelta(current))

        self._adapter.query_device(active.index, _on_result)

    def list_streams(self, target_index: int) -> None:
        """List playing streams, posting one routing request per stream."""

        sender = self._sender.clone()

        def _on_result(result: ListResult[StreamInfo]) -> None:
            if result.kind is ListResultKind.ERROR:
                LOGGER.warning("Error fetching sink inputs: %s", result.error)
            elif result.kind is ListResultKind.ITEM:
                sender.send(StreamNeedsRouting(result.item.index, target_index))

        self._adapter.list_streams(_on_result)

    def move_stream(self, stream_index: int, device_index: int) -> None:
        def _on_moved(success: bool) -> None:
            if not success:
                LOGGER.warning(
                    "Failed to move sink input %s to sink %s", stream_index, device_index
                )

        self._adapter.move_stream(stream_index, device_index, _on_moved)

    def subscribe(self) -> None:
        """Subscribe to sink add, remove and change events."""

        sender = self._sender.clone()
        messages = {
            Operation.NEW: DeviceAdded,
            Operation.REMOVED: DeviceRemoved,
            Operation.CHANGED: DeviceAttributesChanged,
        }

        def _on_event(event: SubscriptionEvent) -> None:
            if event.facility is not Facility.SINK:
                return
            message = messages.get(event.operation)
            if message is not None:
                sender.send(message(event.index))

        def _on_subscribed(success: bool) -> None:
            if not success:
                LOGGER.error("Failed to subscribe to sink events")

        self._adapter.subscribe_devices(_on_event, _on_subscribed)
