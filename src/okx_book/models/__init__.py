"""Pydantic models for the REST snapshot and WebSocket payloads."""

from okx_book.models.orderbook import BookUpdate, PriceLevel, SnapshotData, SnapshotEnvelope
from okx_book.models.stream import BookPush, BookPushItem, ChannelArg, StreamEvent, SubscribeRequest

__all__ = [
    "PriceLevel",
    "SnapshotData",
    "SnapshotEnvelope",
    "BookUpdate",
    "ChannelArg",
    "SubscribeRequest",
    "StreamEvent",
    "BookPushItem",
    "BookPush",
]
