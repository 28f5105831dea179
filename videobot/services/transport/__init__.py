from .base import ChatTransport, TransportError
from .telegram import TelegramAPIError, TelegramClient

__all__ = [
    "ChatTransport",
    "TransportError",
    "TelegramAPIError",
    "TelegramClient",
]
