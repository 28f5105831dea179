from .events import PhotoMessage, PhotoVariant, TextMessage
from .generation import GenerationJob, TaskStatus
from .image import NormalizedImage, Orientation
from .telegram import Chat, PhotoSize, TelegramMessage, Update

__all__ = [
    "PhotoMessage",
    "PhotoVariant",
    "TextMessage",
    "GenerationJob",
    "TaskStatus",
    "NormalizedImage",
    "Orientation",
    "Chat",
    "PhotoSize",
    "TelegramMessage",
    "Update",
]
