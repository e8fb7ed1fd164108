"""
Delivery Queue.

Holds built payloads until they are flushed as one batch. Designed for a
single execution context (one request or one script run); it carries no
locking and callers in threaded hosts must serialize access.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

from magic_notifier.models import ModelPayload

logger = logging.getLogger(__name__)


class BatchDispatcher(Protocol):
    def dispatch(self, payloads: List[ModelPayload]) -> None:
        ...


class DeliveryQueue:
    """
    FIFO of pending payloads with a batch-size flush threshold.

    When the queue already holds ``batch_size`` payloads, enqueueing
    another flushes the full batch first, so the queue never holds more
    than ``batch_size`` entries.

    Example:
        queue = DeliveryQueue(dispatcher, batch_size=2)
        queue.enqueue(p1)   # size 1
        queue.enqueue(p2)   # size 2
        queue.enqueue(p3)   # p1, p2 dispatched; size 1
    """

    def __init__(self, dispatcher: BatchDispatcher, batch_size: int = 50):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._dispatcher = dispatcher
        self._batch_size = batch_size
        self._buffer: List[ModelPayload] = []

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def size(self) -> int:
        return len(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def enqueue(self, payload: ModelPayload) -> None:
        """
        Append a payload, flushing a full queue first.

        Raises:
            DeliveryError: If the triggered flush failed; the flushed batch
                is dropped and the payload is not queued
        """
        if len(self._buffer) >= self._batch_size:
            logger.debug("Queue reached batch size %d; flushing", self._batch_size)
            self.flush()
        self._buffer.append(payload)

    def flush(self) -> None:
        """
        Dispatch everything queued as one batch.

        The queue is emptied before dispatching, so a failed delivery
        drops the batch instead of re-queueing it.
        """
        if not self._buffer:
            return

        batch = self._buffer
        self._buffer = []

        self._dispatcher.dispatch(batch)
