from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field


class TextMessage(BaseModel):
    """A text message; its body becomes the pending prompt."""

    conversation_id: str
    text: str


class PhotoVariant(BaseModel):
    file_ref: str
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    file_size: int | None = None  # bytes, when the transport reports it


class PhotoMessage(BaseModel):
    """A photo message. ``file_ref`` points at the largest size variant."""

    conversation_id: str
    file_ref: str
    variants: list[PhotoVariant] = []


InboundEvent = Union[TextMessage, PhotoMessage]
