"""Bounded single-producer/single-consumer text channel between the stream and its consumer."""

import asyncio
import logging

from okx_book.errors import ChannelClosedError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class MessageChannel:
    """asyncio.Queue that either side can close.

    After close(), send() raises ChannelClosedError and recv() drains what
    is left before returning None.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        if not self._closed.is_set():
            logger.debug("Channel closed with %d pending messages", self._queue.qsize())
        self._closed.set()

    async def send(self, message: str) -> None:
        if self.closed:
            raise ChannelClosedError("channel is closed")
        if not self._queue.full():
            self._queue.put_nowait(message)
            return

        put = asyncio.ensure_future(self._queue.put(message))
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not put.done():
                put.cancel()
        if not put.done() or put.cancelled():
            raise ChannelClosedError("channel closed while waiting for capacity")

    async def recv(self) -> str | None:
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.closed:
            return None

        get = asyncio.ensure_future(self._queue.get())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({get, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not get.done():
                get.cancel()
        if not get.done() or get.cancelled():
            return None
        return get.result()
