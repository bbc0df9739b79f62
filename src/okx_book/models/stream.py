"""Stream-side models: subscribe request, event acknowledgements and book pushes."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from okx_book.models.orderbook import BookUpdate

BOOKS_CHANNEL = "books"


class ChannelArg(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel: str
    inst_id: str = Field(alias="instId")


class SubscribeRequest(BaseModel):
    """Outbound handshake: one subscription to one instrument's book channel."""

    op: Literal["subscribe"] = "subscribe"
    args: list[ChannelArg]

    @classmethod
    def for_symbol(cls, symbol: str, channel: str = BOOKS_CHANNEL) -> "SubscribeRequest":
        return cls(args=[ChannelArg(channel=channel, inst_id=symbol)])

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class StreamEvent(BaseModel):
    """Control message such as a subscribe acknowledgement or an error report."""

    event: str
    arg: ChannelArg | None = None
    code: str | None = None
    msg: str | None = None
    conn_id: str | None = Field(default=None, alias="connId")


class BookPushItem(BookUpdate):
    ts: str | None = None
    checksum: int | None = None


class BookPush(BaseModel):
    """Book channel push: 'snapshot' on subscribe, 'update' afterwards."""

    arg: ChannelArg
    action: str | None = None
    data: list[BookPushItem]
