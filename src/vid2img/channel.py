"""Bounded single-producer/single-consumer channel between decoder and encoder."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")

# How often a blocked sender re-checks whether the receiver went away
_POLL_INTERVAL_S = 0.05

_CLOSED = object()


class ChannelClosedError(Exception):
    """Raised by send() after the receiver left, and by recv() at end of stream."""

    def __init__(self, *, full: bool = False) -> None:
        self.full = full
        super().__init__("channel closed")


class FrameChannel(Generic[T]):
    """Bounded FIFO that hands items from one thread to another.

    ``send`` blocks while the channel is full, ``recv`` blocks while it is empty.
    After ``close`` the receiver drains what is queued and then sees end of
    stream. After ``close_receiver`` every ``send`` fails instead of blocking.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"channel capacity must be positive, got {capacity}")
        self._capacity = capacity
        # one extra slot so the end-of-stream marker never waits on a full queue
        self._queue: queue.Queue[object] = queue.Queue(maxsize=capacity + 1)
        self._slots = threading.BoundedSemaphore(capacity)
        self._sender_closed = threading.Event()
        self._receiver_closed = threading.Event()
        self._exhausted = False

    @property
    def capacity(self) -> int:
        return self._capacity

    def is_full(self) -> bool:
        return self._queue.qsize() >= self._capacity

    def send(self, item: T) -> None:
        if self._sender_closed.is_set():
            raise ChannelClosedError
        waited = not self._slots.acquire(blocking=False)
        while waited and not self._slots.acquire(timeout=_POLL_INTERVAL_S):
            if self._receiver_closed.is_set():
                raise ChannelClosedError(full=True)
        if self._receiver_closed.is_set():
            self._slots.release()
            # close_receiver frees the slots this sender was blocked on
            raise ChannelClosedError(full=waited)
        self._queue.put_nowait(item)

    def close(self) -> None:
        if self._sender_closed.is_set():
            return
        self._sender_closed.set()
        self._queue.put_nowait(_CLOSED)

    def recv(self) -> T:
        if self._exhausted:
            raise ChannelClosedError
        item = self._queue.get()
        if item is _CLOSED:
            self._exhausted = True
            raise ChannelClosedError
        self._slots.release()
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.recv()
            except ChannelClosedError:
                return

    def close_receiver(self) -> None:
        self._receiver_closed.set()
        # drop queued frames so their buffers are released
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is _CLOSED:
                self._exhausted = True
            else:
                self._slots.release()
