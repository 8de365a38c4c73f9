"""
BatchBuffer: the client-side append-only event queue and its flush policy.

Flush triggers:
  (a) the periodic timer (owned by DesignLogger)
  (b) the queue reaching BATCH_SIZE
  (c) forced flushes on pause / end

A non-forced flush is skipped while fewer than MIN_BATCH_SIZE events are
queued. take() swaps the queue out synchronously, so an append that happens
while a batch is in flight always lands in the fresh queue.
"""

import logging

import config

logger = logging.getLogger(__name__)


class BatchBuffer:
    def __init__(
        self,
        batch_size: int = config.BATCH_SIZE,
        min_batch_size: int = config.MIN_BATCH_SIZE,
    ):
        self.batch_size = batch_size
        self.min_batch_size = min_batch_size
        self._queue: list = []

    def __len__(self) -> int:
        return len(self._queue)

    def append(self, event) -> bool:
        """Queue an event. Returns True when the size trigger has been reached."""
        self._queue.append(event)
        return len(self._queue) >= self.batch_size

    def take(self, force: bool = False) -> list:
        """
        Swap out and return the current queue, or [] when there is nothing
        worth sending (empty, or below the minimum batch unless forced).
        """
        if not self._queue:
            return []
        if not force and len(self._queue) < self.min_batch_size:
            return []

        batch = self._queue
        self._queue = []
        return batch

    def drain(self) -> list:
        """Take everything regardless of size (best-effort unload path)."""
        batch = self._queue
        self._queue = []
        return batch

    def requeue(self, batch: list) -> None:
        """Put a failed batch back in front of anything queued since."""
        if not batch:
            return
        self._queue = list(batch) + self._queue
        logger.debug(f"Requeued {len(batch)} events ({len(self._queue)} now queued)")

    def peek(self) -> list:
        return list(self._queue)
