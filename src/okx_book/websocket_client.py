"""Async WebSocket subscriber that forwards raw book payloads to a channel."""

import asyncio
import logging

import websockets

from okx_book.channel import MessageChannel
from okx_book.errors import ChannelClosedError, ChannelSendError, StreamConnectionError
from okx_book.metrics.prometheus import WS_FRAMES_FORWARDED
from okx_book.models.stream import SubscribeRequest

logger = logging.getLogger(__name__)


class StreamClient:
    """Subscribes to one instrument's book channel and relays text frames verbatim.

    Each subscribe() call opens a fresh connection. Reconnecting is up to the caller.
    """

    def __init__(
        self,
        url: str,
        ping_interval: float | None = None,
        ping_timeout: float | None = None,
    ) -> None:
        self._url = url
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout

    @property
    def url(self) -> str:
        return self._url

    async def subscribe(self, symbol: str, channel: MessageChannel) -> None:
        """Send the subscribe request, then forward text frames until the server closes.

        Returns normally when a close frame arrives. Raises StreamConnectionError if
        the connection cannot be opened or drops without a close frame, and
        ChannelSendError if the consumer closed the channel. The channel is closed
        on exit in every case.
        """
        try:
            await self._run(symbol, channel)
        finally:
            channel.close()

    async def _run(self, symbol: str, channel: MessageChannel) -> None:
        try:
            ws = await websockets.connect(
                self._url,
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
            )
        except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as exc:
            raise StreamConnectionError(f"Could not connect to {self._url}: {exc}") from exc

        async with ws:
            logger.info("WebSocket handshake completed with %s", self._url)

            request = SubscribeRequest.for_symbol(symbol)
            try:
                await ws.send(request.to_json())
            except websockets.ConnectionClosed as exc:
                raise StreamConnectionError(f"Connection lost before subscribing: {exc}") from exc
            logger.info("Subscribed to books channel for %s", symbol)

            while True:
                try:
                    message = await ws.recv()
                except websockets.ConnectionClosed as exc:
                    if exc.rcvd is None:
                        raise StreamConnectionError(f"WebSocket connection lost: {exc}") from exc
                    logger.info(
                        "WebSocket connection closed: code=%d reason=%r", exc.rcvd.code, exc.rcvd.reason
                    )
                    return

                if not isinstance(message, str):
                    continue

                try:
                    await channel.send(message)
                except ChannelClosedError as exc:
                    raise ChannelSendError(f"Consumer closed the channel: {exc}") from exc
                WS_FRAMES_FORWARDED.inc()
