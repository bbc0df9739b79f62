"""Exception hierarchy shared by the book model and the transports."""


class OkxBookError(Exception):
    """Base class for every error raised by okx_book."""


class OrderBookError(OkxBookError):
    """Book construction or mutation failed."""


class DeserializationError(OrderBookError):
    """Payload is not valid JSON or does not match the expected schema."""


class EmptyDataError(OrderBookError):
    def __init__(self) -> None:
        super().__init__("Empty response data")


class InvalidTimestampError(OrderBookError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid timestamp format: {value!r}")
        self.value = value


class InvalidPriceDataError(OrderBookError):
    def __init__(self) -> None:
        super().__init__("Invalid price data: NaN or infinite values")


class StreamError(OkxBookError):
    """WebSocket subscription ended abnormally."""


class StreamConnectionError(StreamError):
    """Connection could not be opened or was lost without a close frame."""


class ChannelSendError(StreamError):
    """The consumer side of the outbound channel went away."""


class ChannelClosedError(OkxBookError):
    """Send attempted on a closed MessageChannel."""


class SnapshotFetchError(OkxBookError):
    """REST snapshot request failed at the transport or HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
