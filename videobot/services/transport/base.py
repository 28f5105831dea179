from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class TransportError(Exception):
    """Raised by a chat transport when the messaging API call fails."""


class ChatTransport(ABC):
    """Abstract interface for the chat platform delivering and receiving messages."""

    name: str = "abstract"

    @abstractmethod
    async def send_text(self, conversation_id: str, body: str) -> None:
        ...

    @abstractmethod
    async def send_video(self, conversation_id: str, video_url: str, *, caption: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def resolve_download_url(self, file_ref: str) -> str:
        """Turn a platform file reference into a fetchable URL."""

    @abstractmethod
    async def download(self, url: str, *, max_bytes: Optional[int] = None) -> bytes:
        ...

    async def aclose(self) -> None:
        return None
