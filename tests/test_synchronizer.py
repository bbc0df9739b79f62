"""Tests for BookSynchronizer: snapshot + stream glue, ack filtering, re-snapshot on failure."""

from unittest.mock import MagicMock

import pytest

from fixtures.payloads import (
    REFERENCE_SNAPSHOT,
    make_error_event,
    make_push_text,
    make_snapshot_text,
    make_subscribe_ack,
)
from okx_book.book import BookState
from okx_book.channel import MessageChannel
from okx_book.config.settings import Settings
from okx_book.errors import ChannelClosedError, ChannelSendError, SnapshotFetchError, StreamConnectionError
from okx_book.synchronizer import BookSynchronizer
from okx_book.validation.message_validator import parse_push


class ScriptedStream:
    """Stands in for StreamClient: pushes canned frames, then ends like a server close."""

    def __init__(self, messages: list[str], error: Exception | None = None) -> None:
        self._messages = messages
        self._error = error
        self.symbols: list[str] = []

    async def subscribe(self, symbol: str, channel: MessageChannel) -> None:
        self.symbols.append(symbol)
        try:
            for message in self._messages:
                try:
                    await channel.send(message)
                except ChannelClosedError as exc:
                    raise ChannelSendError(str(exc)) from exc
            if self._error is not None:
                raise self._error
        finally:
            channel.close()


def _rest(*snapshots: str) -> MagicMock:
    rest = MagicMock()
    rest.get_order_book.side_effect = [BookState.from_snapshot(s) for s in snapshots]
    return rest


def _settings(**overrides) -> Settings:
    values = {"symbol": "BTC-USDT", "update_count": 0, "metrics_port": 0, "channel_capacity": 100}
    values.update(overrides)
    return Settings(**values)


class TestRun:
    @pytest.mark.asyncio
    async def test_applies_updates_after_ack(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([
            make_subscribe_ack(),
            make_push_text(asks=[["41007.0", "0.2", "0", "1"]], bids=[["41005.0", "0.1", "0", "1"]]),
        ])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert book.asks == [(41006.8, 0.60030921), (41007.0, 0.2)]
        assert book.bids == [(41006.3, 0.30178210), (41005.0, 0.1)]
        assert book.timestamp == 1621447077008
        assert sync.pushes_applied == 1
        assert stream.symbols == ["BTC-USDT"]
        rest.get_order_book.assert_called_once_with("BTC-USDT")

    @pytest.mark.asyncio
    async def test_snapshot_push_replaces_book(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([
            make_push_text(action="snapshot", asks=[[50001.0, 1.0], [50000.0, 2.0]], bids=[[49999.0, 1.0]], ts="1700000000000"),
        ])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert book.asks == [(50000.0, 2.0), (50001.0, 1.0)]
        assert book.bids == [(49999.0, 1.0)]
        assert book.timestamp == 1700000000000

    @pytest.mark.asyncio
    async def test_invalid_update_triggers_resnapshot(self):
        fresh = make_snapshot_text(asks=[[42000.0, 1.0]], bids=[[41999.0, 1.0]], ts="1621447080000")
        rest = _rest(REFERENCE_SNAPSHOT, fresh)
        stream = ScriptedStream([
            make_push_text(asks=[["nan", "1.0"]]),
        ])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert rest.get_order_book.call_count == 2
        assert book.asks == [(42000.0, 1.0)]
        assert book.timestamp == 1621447080000
        assert sync.pushes_applied == 0

    @pytest.mark.asyncio
    async def test_malformed_push_is_skipped(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([
            '{"arg":{"channel":"books","instId":"BTC-USDT"},"data":[{"asks":"oops"}]}',
            make_push_text(bids=[[41000.0, 1.0]]),
        ])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert rest.get_order_book.call_count == 1
        assert book.bids == [(41006.3, 0.30178210), (41000.0, 1.0)]
        assert sync.pushes_applied == 1

    @pytest.mark.asyncio
    async def test_error_events_do_not_touch_book(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([make_error_event(), "pong"])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert book.asks == [(41006.8, 0.60030921)]
        assert sync.pushes_applied == 0

    @pytest.mark.asyncio
    async def test_stops_after_update_count(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([make_push_text(asks=[[41010.0 + i, 1.0]]) for i in range(5)])
        sync = BookSynchronizer(_settings(update_count=2), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert sync.pushes_applied == 2
        assert [level.price for level in book.asks] == [41006.8, 41010.0, 41011.0]


class TestFailures:
    @pytest.mark.asyncio
    async def test_stream_error_propagates(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([make_subscribe_ack()], error=StreamConnectionError("lost"))
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        with pytest.raises(StreamConnectionError):
            await sync.run()

    @pytest.mark.asyncio
    async def test_snapshot_failure_propagates(self):
        rest = MagicMock()
        rest.get_order_book.side_effect = SnapshotFetchError("down", status_code=503)
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=ScriptedStream([]))

        with pytest.raises(SnapshotFetchError):
            await sync.run()

    @pytest.mark.asyncio
    async def test_shutdown_before_start_returns_none(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=ScriptedStream([]))
        sync.request_shutdown()

        assert await sync.run() is None
        rest.get_order_book.assert_not_called()


class TestMalformedNumbers:
    @pytest.mark.asyncio
    async def test_oversized_price_frame_is_skipped(self):
        rest = _rest(REFERENCE_SNAPSHOT)
        stream = ScriptedStream([
            '{"arg":{"channel":"books","instId":"BTC-USDT"},"action":"update","data":[{"asks":[[' + "9" * 400 + ',1]],"bids":[]}]}',
            '{"x":' + "1" * 5000 + "}",
            make_push_text(asks=[["1_000", "1"]]),
            make_push_text(bids=[[41000.0, 1.0]]),
        ])
        sync = BookSynchronizer(_settings(), rest_client=rest, stream_client=stream)

        book = await sync.run()

        assert rest.get_order_book.call_count == 1
        assert book.asks == [(41006.8, 0.60030921)]
        assert book.bids == [(41006.3, 0.30178210), (41000.0, 1.0)]
        assert sync.pushes_applied == 1


def test_apply_push_without_snapshot_raises():
    sync = BookSynchronizer(_settings(), rest_client=MagicMock(), stream_client=ScriptedStream([]))
    with pytest.raises(RuntimeError, match="No snapshot loaded"):
        sync._apply_push(parse_push(make_push_text(asks=[[1.0, 1.0]])))
