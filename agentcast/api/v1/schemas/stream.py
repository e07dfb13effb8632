from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_serializer

from .serializers import serialize_utc_datetime


class SendLineIn(BaseModel):
    # text and type are checked by the stream engine so rejections carry its reasons
    text: str | None = Field(default=None, description="Line text, at most 500 characters")
    type: str = Field(default="log", description="One of: log, tool, thought")


class SendLineOut(BaseModel):
    status: Literal["created", "accepted"]
    token: str | None = Field(
        default=None, description="Bearer token for the stream, only returned on creation"
    )


class RotateTokenOut(BaseModel):
    token: str


class StreamInfoOut(BaseModel):
    active: bool
    viewers: int
    started_at: datetime | None = None

    @field_serializer("started_at")
    def serialize_datetime(self, v: datetime | None) -> str | None:
        return serialize_utc_datetime(v) if v else None


class ActiveStreamOut(BaseModel):
    name: str
    viewers: int
    last_message: str | None = None
    total_messages: int
    duration: str


class ListStreamsOut(BaseModel):
    streams: list[ActiveStreamOut]


class ReportIn(BaseModel):
    stream_name: str = Field(min_length=1, max_length=100)
    issue: str = Field(min_length=1, max_length=2000)
    contact: str | None = Field(default=None, max_length=200)
