"""Unbounded many-to-one channel used to fan page records in to one consumer.

``open_channel()`` returns a connected ``(Sender, Receiver)`` pair. Every
producer works through its own Sender handle (``sender.clone()``); the
channel ends once every handle, the original included, has been closed.
The receiver sees that as end-of-stream, never as an error.

Example::

    sender, receiver = open_channel()
    with sender:
        for page in pages:
            asyncio.create_task(produce(page, sender.clone()))
    async for item in receiver:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, TypeVar

from quotegate.common.exceptions import ChannelClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Queued after the last sender closes
END_OF_STREAM: object = object()


class _ChannelState(Generic[T]):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[Any] = asyncio.Queue()
        self.open_senders = 0
        self.receiver_closed = False
        self.finished = False

    def sender_opened(self) -> None:
        if self.finished:
            raise ChannelClosedError("channel already reached end-of-stream")
        self.open_senders += 1

    def sender_closed(self) -> None:
        self.open_senders -= 1
        if self.open_senders == 0:
            self.finished = True
            self.queue.put_nowait(END_OF_STREAM)


class Sender(Generic[T]):
    """Write side of a channel.

    A handle is live from creation until :meth:`close` (or the end of a
    ``with`` block). Closing is idempotent per handle.
    """

    def __init__(self, state: _ChannelState[T]) -> None:
        state.sender_opened()
        self._state = state
        self._closed = False

    def send(self, item: T) -> None:
        """Queue an item. Never waits.

        Raises:
            ChannelClosedError: If this handle is closed or the receiver is gone.
        """
        if self._closed:
            raise ChannelClosedError("send on a closed sender")
        if self._state.receiver_closed:
            raise ChannelClosedError("send on a channel whose receiver is closed")
        self._state.queue.put_nowait(item)

    def clone(self) -> Sender[T]:
        """Return a new live handle on the same channel.

        Raises:
            ChannelClosedError: If this handle is already closed.
        """
        if self._closed:
            raise ChannelClosedError("clone of a closed sender")
        return Sender(self._state)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._state.sender_closed()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> Sender[T]:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class Receiver(Generic[T]):
    """Read side of a channel. Single owner; iterate with ``async for``."""

    def __init__(self, state: _ChannelState[T]) -> None:
        self._state = state
        self._exhausted = False

    async def recv(self) -> T | None:
        """Wait for the next item.

        Returns:
            The next item, or None once every sender has been closed and the
            queue is drained.
        """
        if self._exhausted:
            return None
        item = await self._state.queue.get()
        if item is END_OF_STREAM:
            self._exhausted = True
            logger.debug("Channel reached end-of-stream")
            return None
        return item

    def close(self) -> None:
        """Stop accepting items. Later sends raise ChannelClosedError."""
        self._state.receiver_closed = True

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def pending(self) -> int:
        """Return the number of queued items not yet received."""
        size = self._state.queue.qsize()
        if self._state.finished and not self._exhausted:
            size -= 1
        return size

    def __aiter__(self) -> Receiver[T]:
        return self

    async def __anext__(self) -> T:
        item = await self.recv()
        if item is None:
            raise StopAsyncIteration
        return item


def open_channel() -> tuple[Sender[Any], Receiver[Any]]:
    """Create a channel and return its first sender and its receiver."""
    state: _ChannelState[Any] = _ChannelState()
    return Sender(state), Receiver(state)
