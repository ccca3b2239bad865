"""Single-consumer FIFO channel carrying messages to the reconciliation engine."""

from __future__ import annotations

from collections import deque
from typing import Deque

from core.logging import logger as LOGGER
from monitor.models import Message


class MessageChannel:
    """FIFO queue with any number of sender handles and one draining consumer.

    Messages are never reordered, coalesced or dropped.
    """

    def __init__(self) -> None:
        self._queue: Deque[Message] = deque()
        self._closed = False

    def sender(self) -> "MessageSender":
        return MessageSender(self)

    @property
    def closed(self) -> bool:
        return self._closed

    def drain(self) -> list[Message]:
        """Remove and return every queued message in arrival order."""

        messages = list(self._queue)
        self._queue.clear()
        return messages

    def close(self) -> None:
        if not self._closed and self._queue:
            LOGGER.debug("Closing channel with %d undelivered messages", len(self._queue))
        self._closed = True

    def __len__(self) -> int:
        return len(self._queue)

    def _push(self, message: Message) -> None:
        if self._closed:
            raise RuntimeError(f"Cannot send {message}: message channel is closed")
        self._queue.append(message)


class MessageSender:
    """Cloneable send-side handle held by each callback site."""

    def __init__(self, channel: MessageChannel) -> None:
        self._channel = channel

    def send(self, message: Message) -> None:
        self._channel._push(message)

    def clone(self) -> "MessageSender":
        return MessageSender(self._channel)
