"""
Bounded, closable channel for passing work between coroutines.

asyncio.Queue has no notion of closure, so consumers cannot tell an
empty queue that will never be refilled from one that is briefly idle.
Channel adds that signal: once closed and drained, every consumer is
woken and iteration ends.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Generic, Tuple, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when putting into a closed channel or reading a drained one."""


class Channel(Generic[T]):
    """
    Capacity-bounded FIFO with a close signal.

    Each item is delivered to exactly one consumer. Items buffered before
    close() are still delivered.
    """

    def __init__(self, capacity: int):
        """
        Initialize channel.

        Args:
            capacity: Maximum number of buffered items (must be >= 1)
        """
        if capacity < 1:
            raise ValueError(f"Channel capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._queue: "asyncio.Queue[T]" = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def close(self) -> None:
        """Close the channel; blocked consumers wake once it is drained."""
        self._closed.set()

    def put_nowait(self, item: T) -> None:
        """
        Put an item without waiting.

        Raises:
            ChannelClosed: If the channel is closed
            asyncio.QueueFull: If the channel is at capacity
        """
        if self.closed:
            raise ChannelClosed("put on closed channel")
        self._queue.put_nowait(item)

    async def put(self, item: T) -> None:
        """
        Put an item, waiting while the channel is full.

        Raises:
            ChannelClosed: If the channel is closed before the item fits
        """
        if self.closed:
            raise ChannelClosed("put on closed channel")
        if not self._queue.full():
            self._queue.put_nowait(item)
            return
        completed, _ = await self._until_closed(self._queue.put(item))
        if not completed:
            raise ChannelClosed("put on closed channel")

    async def get(self) -> T:
        """
        Take the next item, waiting while the channel is open and empty.

        Raises:
            ChannelClosed: If the channel is closed and drained
        """
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.closed:
                raise ChannelClosed("channel closed and drained")
            completed, item = await self._until_closed(self._queue.get())
            if completed:
                return item

    async def _until_closed(self, operation: Awaitable[Any]) -> Tuple[bool, Any]:
        """
        Wait for a queue operation or for the channel to close.

        Returns:
            (True, result) if the operation finished, (False, None) if the
            channel closed first and the operation was cancelled
        """
        op_task = asyncio.ensure_future(operation)
        close_task = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait(
                {op_task, close_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            op_task.cancel()
            close_task.cancel()
            raise
        close_task.cancel()
        if op_task.done():
            return True, op_task.result()
        op_task.cancel()
        try:
            result = await op_task
        except asyncio.CancelledError:
            return False, None
        # Finished in the window between the close and the cancel
        return True, result

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            try:
                item = await self.get()
            except ChannelClosed:
                return
            yield item
