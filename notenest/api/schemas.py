"""Response envelopes shared by every v1 endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T


class ListEnvelope(Envelope[list[T]], Generic[T]):
    count: int


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str


def listing(items: list[T]) -> dict:
    return {"data": items, "count": len(items)}
