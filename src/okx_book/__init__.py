"""Local OKX order book kept in sync from a REST snapshot plus WebSocket deltas."""

from okx_book.book import BookState
from okx_book.channel import MessageChannel
from okx_book.errors import (
    ChannelClosedError,
    ChannelSendError,
    DeserializationError,
    EmptyDataError,
    InvalidPriceDataError,
    InvalidTimestampError,
    OkxBookError,
    OrderBookError,
    SnapshotFetchError,
    StreamConnectionError,
    StreamError,
)
from okx_book.models.orderbook import PriceLevel
from okx_book.rest_client import RestClient
from okx_book.websocket_client import StreamClient

__all__ = [
    "BookState",
    "PriceLevel",
    "MessageChannel",
    "RestClient",
    "StreamClient",
    "OkxBookError",
    "OrderBookError",
    "DeserializationError",
    "EmptyDataError",
    "InvalidTimestampError",
    "InvalidPriceDataError",
    "StreamError",
    "StreamConnectionError",
    "ChannelSendError",
    "ChannelClosedError",
    "SnapshotFetchError",
]
