"""BookState: in-memory order book built from a snapshot and grown by deltas.

Deltas are appended, not merged: a level at an existing price does not
replace it and zero sizes are kept. Each mutation re-validates and re-sorts
the full book (asks ascending, bids descending by price).

apply_update does not roll back. If validation fails after the append, the
unsorted combined data stays in the book; callers should discard it and
take a fresh snapshot.
"""

import logging
import math
from dataclasses import dataclass, field
from itertools import chain

from okx_book.errors import EmptyDataError, InvalidPriceDataError, InvalidTimestampError
from okx_book.models.orderbook import BookUpdate, PriceLevel, SnapshotEnvelope
from okx_book.validation.message_validator import decode_snapshot, decode_update

logger = logging.getLogger(__name__)

_U64_MAX = 2**64 - 1


def parse_timestamp(value: str) -> int:
    """Parse an unsigned millisecond timestamp string."""
    digits = value[1:] if value.startswith("+") else value
    if not (digits.isascii() and digits.isdigit()):
        raise InvalidTimestampError(value)
    ts = int(digits)
    if ts > _U64_MAX:
        raise InvalidTimestampError(value)
    return ts


def _price(level: PriceLevel) -> float:
    return level.price


@dataclass
class BookState:
    # Sorted ascending by price
    asks: list[PriceLevel] = field(default_factory=list)
    # Sorted descending by price
    bids: list[PriceLevel] = field(default_factory=list)
    # Milliseconds since epoch, from the snapshot only
    timestamp: int = 0

    @classmethod
    def from_snapshot(cls, raw: str | bytes) -> "BookState":
        """Build a book from REST snapshot text. Either returns a valid book or raises."""
        return cls.from_envelope(decode_snapshot(raw))

    @classmethod
    def from_envelope(cls, envelope: SnapshotEnvelope) -> "BookState":
        if not envelope.data:
            raise EmptyDataError()
        data = envelope.data[0]
        book = cls.from_levels(data.asks, data.bids, parse_timestamp(data.ts))
        logger.debug(
            "Snapshot loaded: %d asks, %d bids, ts=%d", len(book.asks), len(book.bids), book.timestamp
        )
        return book

    @classmethod
    def from_levels(cls, asks: list[PriceLevel], bids: list[PriceLevel], timestamp: int) -> "BookState":
        book = cls(asks=list(asks), bids=list(bids), timestamp=timestamp)
        book.sort()
        return book

    def apply_update(self, raw: str | bytes) -> None:
        """Decode a delta and append it. Not idempotent; no rollback on failure."""
        self.apply_delta(decode_update(raw))

    def apply_delta(self, update: BookUpdate) -> None:
        self.asks.extend(update.asks)
        self.bids.extend(update.bids)
        self.sort()

    def sort(self) -> None:
        """Validate every price is finite, then sort both sides in place."""
        for level in chain(self.asks, self.bids):
            if not math.isfinite(level.price):
                raise InvalidPriceDataError()

        self.asks.sort(key=_price)
        self.bids.sort(key=_price, reverse=True)

    @property
    def best_ask(self) -> PriceLevel | None:
        return self.asks[0] if self.asks else None

    @property
    def best_bid(self) -> PriceLevel | None:
        return self.bids[0] if self.bids else None

    @property
    def spread(self) -> float | None:
        if not self.asks or not self.bids:
            return None
        return self.asks[0].price - self.bids[0].price

    @property
    def mid_price(self) -> float | None:
        if not self.asks or not self.bids:
            return None
        return (self.asks[0].price + self.bids[0].price) / 2
