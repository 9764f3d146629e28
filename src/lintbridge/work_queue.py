"""Single-consumer hand-off queue serialising lint requests."""

from __future__ import annotations

import threading
from typing import Generic, Iterator, TypeVar

from lintbridge.exceptions import QueueClosedError

T = TypeVar("T")


class HandoffQueue(Generic[T]):
    """A capacity-0 queue: ``put`` returns only once the consumer took the item.

    Exactly one thread may consume (``get`` or iteration). Producers are
    expected to be serialised by the caller, which is the case for the
    protocol thread; concurrent producers are safe but not ordered.

    Nothing is buffered, coalesced, or dropped while the queue is open.
    ``close`` wakes every waiter; a producer still waiting gets
    :class:`QueueClosedError` and its item is discarded.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slot: list[T] = []
        self._closed = False
        self._offered = 0
        self._taken = 0

    def put(self, item: T) -> None:
        with self._cond:
            while self._slot and not self._closed:
                self._cond.wait()
            if self._closed:
                raise QueueClosedError("queue is closed")
            self._slot.append(item)
            self._offered += 1
            ticket = self._offered
            self._cond.notify_all()
            while self._taken < ticket and not self._closed:
                self._cond.wait()
            if self._taken < ticket:
                raise QueueClosedError("queue closed before the item was taken")

    def get(self) -> T:
        with self._cond:
            while not self._slot and not self._closed:
                self._cond.wait()
            if self._closed:
                raise QueueClosedError("queue is closed")
            item = self._slot.pop()
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._slot.clear()
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except QueueClosedError:
                return
