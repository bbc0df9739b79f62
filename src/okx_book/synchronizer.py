"""Keeps a BookState in sync: REST snapshot → WS subscribe → decode → apply."""

import asyncio
import logging

from okx_book.book import BookState, parse_timestamp
from okx_book.channel import MessageChannel
from okx_book.config.settings import Settings
from okx_book.errors import ChannelSendError, DeserializationError, OrderBookError
from okx_book.metrics.prometheus import (
    EXCHANGE_ERRORS,
    RESNAPSHOTS,
    SNAPSHOTS_FETCHED,
    UPDATE_FAILURES,
    UPDATE_LATENCY,
    UPDATES_APPLIED,
    start_metrics_server,
)
from okx_book.models.stream import BookPush
from okx_book.rest_client import RestClient
from okx_book.validation.message_validator import classify_message, parse_event, parse_push
from okx_book.websocket_client import StreamClient

logger = logging.getLogger(__name__)


class BookSynchronizer:
    """Drives one symbol's book from a snapshot plus the live delta stream.

    Any failed delta discards the book and takes a fresh snapshot, since the
    book keeps whatever was appended before validation failed.
    """

    def __init__(
        self,
        settings: Settings,
        rest_client: RestClient | None = None,
        stream_client: StreamClient | None = None,
    ) -> None:
        self._settings = settings
        self._rest = rest_client or RestClient(
            settings.rest_url,
            timeout=settings.request_timeout,
            user_agent=settings.user_agent,
        )
        self._stream = stream_client or StreamClient(settings.ws_url)
        self._channel: MessageChannel | None = None
        self._shutdown = False
        self.book: BookState | None = None
        self.pushes_applied = 0

    def request_shutdown(self) -> None:
        self._shutdown = True
        if self._channel is not None:
            self._channel.close()

    async def _snapshot(self) -> BookState:
        loop = asyncio.get_running_loop()
        book = await loop.run_in_executor(None, self._rest.get_order_book, self._settings.symbol)
        SNAPSHOTS_FETCHED.inc()
        return book

    async def _resnapshot(self) -> None:
        RESNAPSHOTS.inc()
        logger.warning("Discarding book for %s and re-snapshotting", self._settings.symbol)
        self.book = await self._snapshot()

    async def run(self) -> BookState | None:
        """Main loop. Returns the final book, or None if shut down before the first snapshot."""
        if self._settings.metrics_port:
            start_metrics_server(self._settings.metrics_port)
            logger.info("Prometheus metrics on port %d", self._settings.metrics_port)

        if self._shutdown:
            return None
        self.book = await self._snapshot()

        self._channel = MessageChannel(self._settings.channel_capacity)
        stream_task = asyncio.create_task(self._stream.subscribe(self._settings.symbol, self._channel))
        limit = self._settings.update_count

        try:
            while not self._shutdown:
                message = await self._channel.recv()
                if message is None:
                    break
                if await self._handle(message):
                    self.pushes_applied += 1
                    if limit and self.pushes_applied >= limit:
                        logger.info("Reached %d applied updates, stopping", limit)
                        break
        finally:
            self._channel.close()
            if not stream_task.done():
                stream_task.cancel()
            try:
                await stream_task
            except asyncio.CancelledError:
                pass
            except ChannelSendError:
                logger.debug("Stream stopped after the consumer closed the channel")

        return self.book

    async def _handle(self, message: str) -> bool:
        """Route one stream message. Returns True when a book push was applied."""
        kind = classify_message(message)
        if kind == "subscribe":
            logger.info("Subscription confirmed: %s", message)
            return False
        if kind == "error":
            EXCHANGE_ERRORS.inc()
            try:
                event = parse_event(message)
            except DeserializationError:
                logger.error("Exchange error event: %.200s", message)
            else:
                logger.error("Exchange error event code=%s msg=%s", event.code, event.msg)
            return False
        if kind == "unknown":
            logger.debug("Ignoring stream message: %.200s", message)
            return False

        try:
            push = parse_push(message)
        except DeserializationError as exc:
            # Decoding happens before any mutation, so the book is still intact.
            UPDATE_FAILURES.labels(reason="deserialization").inc()
            logger.warning("Malformed book push: %s", exc)
            return False

        try:
            self._apply_push(push)
        except OrderBookError as exc:
            UPDATE_FAILURES.labels(reason=type(exc).__name__).inc()
            logger.warning("Update rejected: %s", exc)
            await self._resnapshot()
            return False
        return True

    def _apply_push(self, push: BookPush) -> None:
        if self.book is None:
            raise RuntimeError("No snapshot loaded; run() must fetch one before applying pushes")
        for item in push.data:
            with UPDATE_LATENCY.time():
                if push.action == "snapshot":
                    ts = parse_timestamp(item.ts) if item.ts else self.book.timestamp
                    self.book = BookState.from_levels(item.asks, item.bids, ts)
                else:
                    self.book.apply_delta(item)
            UPDATES_APPLIED.inc()
        logger.debug(
            "Applied %s push: %d asks, %d bids", push.action or "update", len(self.book.asks), len(self.book.bids)
        )
