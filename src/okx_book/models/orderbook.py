"""Order book wire models: snapshot envelope, delta object and price levels."""

import re
from typing import Annotated, Any, NamedTuple

from pydantic import BaseModel, BeforeValidator

# Plain decimal or exponent notation, or nan/inf. No whitespace, no digit separators.
_DECIMAL_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


def _to_float(value: Any) -> float:
    # Feed variants send prices/sizes either as JSON numbers or as decimal strings.
    if isinstance(value, bool):
        raise ValueError("boolean is not a price or size")
    if isinstance(value, str):
        if not _DECIMAL_RE.fullmatch(value):
            raise ValueError(f"not a decimal string: {value!r}")
    elif not isinstance(value, (int, float)):
        raise ValueError(f"expected number or decimal string, got {type(value).__name__}")
    try:
        return float(value)
    except OverflowError as exc:
        raise ValueError(f"number out of float range: {exc}") from exc


Number = Annotated[float, BeforeValidator(_to_float)]


class PriceLevel(NamedTuple):
    """A single (price, size) level in the order book."""

    price: Number
    size: Number


def _price_and_size(value: Any) -> Any:
    # The exchange sends [price, size, liquidated_orders, order_count]; only the first two matter here.
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return (value[0], value[1])
    return value


WireLevel = Annotated[PriceLevel, BeforeValidator(_price_and_size)]


class SnapshotData(BaseModel):
    """One book entry of the REST snapshot response."""

    asks: list[WireLevel]
    bids: list[WireLevel]
    ts: str


class SnapshotEnvelope(BaseModel):
    """REST response wrapper: result code, message and result objects."""

    code: str
    msg: str
    data: list[SnapshotData]


class BookUpdate(BaseModel):
    """Incremental update. Carries no timestamp of its own."""

    asks: list[WireLevel]
    bids: list[WireLevel]
