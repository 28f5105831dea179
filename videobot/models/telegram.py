"""Subset of the Telegram Bot API ``Update`` object used by the webhook."""
from __future__ import annotations

from pydantic import BaseModel

from .events import InboundEvent, PhotoMessage, PhotoVariant, TextMessage


class Chat(BaseModel):
    id: int
    type: str | None = None


class PhotoSize(BaseModel):
    file_id: str
    file_unique_id: str | None = None
    width: int
    height: int
    file_size: int | None = None


class TelegramMessage(BaseModel):
    message_id: int
    chat: Chat
    text: str | None = None
    photo: list[PhotoSize] = []


class Update(BaseModel):
    update_id: int
    message: TelegramMessage | None = None

    def to_event(self) -> InboundEvent | None:
        """Translate the update into a pipeline event, or None if it is not one."""

        msg = self.message
        if msg is None:
            return None
        conversation_id = str(msg.chat.id)
        if msg.photo:
            # Telegram lists size variants smallest first
            largest = msg.photo[-1]
            return PhotoMessage(
                conversation_id=conversation_id,
                file_ref=largest.file_id,
                variants=[
                    PhotoVariant(file_ref=p.file_id, width=p.width, height=p.height, file_size=p.file_size)
                    for p in msg.photo
                ],
            )
        if msg.text:
            return TextMessage(conversation_id=conversation_id, text=msg.text)
        return None
