"""Background job primitives for the single-threaded session loop.

The session thread never waits on a worker. Two shapes are supported:

  SharedCell   a lock-guarded value with one writer and many pollers
  OneShot      a single-slot channel carrying one result back, polled per tick

Neither supports cancellation: workers always run to completion and a result
nobody polls any more is simply dropped with its OneShot.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

PENDING = object()


class ChannelClosed(Exception):
    """The worker behind a OneShot ended without delivering a result."""


class SharedCell(Generic[T]):
    """Lock-guarded value. Store immutable values so readers never see a torn one."""

    def __init__(self, initial: T) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value


class OneShot(Generic[T]):
    """Single-producer, single-consumer channel for exactly one result."""

    def __init__(self) -> None:
        self._slot: queue.Queue[T] = queue.Queue(maxsize=1)
        self._closed = threading.Event()

    def send(self, value: T) -> None:
        self._slot.put_nowait(value)
        self._closed.set()

    def close(self) -> None:
        """Mark the producer as finished without a value."""
        self._closed.set()

    def try_receive(self) -> T | object:
        """Return the value, or the module sentinel ``PENDING`` if not ready.

        Raises:
            ChannelClosed: The producer finished without sending.
        """
        try:
            return self._slot.get_nowait()
        except queue.Empty:
            if self._closed.is_set() and self._slot.empty():
                raise ChannelClosed() from None
            return PENDING


def spawn_one_shot(job: Callable[[], T], name: str = "omakure-job") -> OneShot[T]:
    """Run *job* on a daemon thread and return the channel its result arrives on.

    An exception escaping *job* closes the channel instead of delivering.
    """
    channel: OneShot[T] = OneShot()

    def _worker() -> None:
        try:
            result = job()
        except Exception:
            logger.exception("Background job %s failed", name)
            channel.close()
            return
        channel.send(result)

    threading.Thread(target=_worker, name=name, daemon=True).start()
    return channel
