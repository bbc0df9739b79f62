"""Decode raw payload text into the wire models, mapping failures onto DeserializationError."""

import json
import logging
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from okx_book.errors import DeserializationError
from okx_book.models.orderbook import BookUpdate, SnapshotEnvelope
from okx_book.models.stream import BookPush, StreamEvent

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

MessageKind = Literal["subscribe", "error", "push", "unknown"]


def load_json(raw: str | bytes) -> Any:
    """json.loads that raises DeserializationError instead of JSONDecodeError."""
    try:
        return json.loads(raw)
    except ValueError as exc:
        # JSONDecodeError, UnicodeDecodeError and the int digit limit are all ValueErrors.
        raise DeserializationError(f"Invalid JSON: {exc}") from exc


def _validate(model: type[M], raw: str | bytes) -> M:
    obj = load_json(raw)
    try:
        return model.model_validate(obj)
    except ValidationError as exc:
        raise DeserializationError(f"{model.__name__} schema mismatch: {exc}") from exc


def decode_snapshot(raw: str | bytes) -> SnapshotEnvelope:
    return _validate(SnapshotEnvelope, raw)


def decode_update(raw: str | bytes) -> BookUpdate:
    return _validate(BookUpdate, raw)


def parse_push(raw: str | bytes) -> BookPush:
    """Decode a book channel push envelope ({arg, action, data: [...]})."""
    return _validate(BookPush, raw)


def parse_event(raw: str | bytes) -> StreamEvent:
    return _validate(StreamEvent, raw)


def validate_order_book_data(raw: str | bytes) -> None:
    """Check that the payload is a JSON object carrying both 'asks' and 'bids'.

    Raises DeserializationError otherwise.
    """
    obj = load_json(raw)
    if not isinstance(obj, dict):
        raise DeserializationError("Data is not a valid JSON object")
    if "asks" not in obj or "bids" not in obj:
        raise DeserializationError("Missing required fields: 'asks' or 'bids'")


def classify_message(raw: str | bytes) -> MessageKind:
    """Tell acknowledgements and error events apart from book pushes.

    Never raises: anything that is not a JSON object is "unknown".
    """
    try:
        obj = json.loads(raw)
    except ValueError:
        logger.debug("Non-JSON stream message: %.100r", raw)
        return "unknown"
    if not isinstance(obj, dict):
        return "unknown"

    event = obj.get("event")
    if event == "subscribe":
        return "subscribe"
    if event == "error":
        return "error"
    if event is None and "data" in obj:
        return "push"
    return "unknown"


def is_subscribe_ack(raw: str | bytes) -> bool:
    return classify_message(raw) == "subscribe"
