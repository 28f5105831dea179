"""Domain errors raised by the photo-to-video pipeline.

Every failure a photo event can end in is one of the classes below. The
orchestrator catches :class:`VideoBotError` at its boundary and turns it into
a single chat reply, so adapters never leak provider or transport specific
exceptions past their own module.
"""
from __future__ import annotations


class VideoBotError(Exception):
    """Base class for all pipeline failures."""


class NoPendingPrompt(VideoBotError):
    """A photo arrived before any text prompt for the conversation."""


class DownloadFailed(VideoBotError):
    """The photo could not be fetched from the chat transport."""


class ImageRejected(VideoBotError):
    """The downloaded photo is not usable as a generation input."""


class UnreadableImage(ImageRejected):
    """Image dimensions could not be decoded."""


class ImageTooSmall(ImageRejected):
    def __init__(self, width: int, height: int, min_dimension: int):
        super().__init__(f"Image {width}x{height} is below the {min_dimension}px minimum")
        self.width = width
        self.height = height
        self.min_dimension = min_dimension


class GenerationError(VideoBotError):
    """Base class for failures reported by the generation provider."""


class UnsupportedAspectRatio(GenerationError):
    """The provider refused the requested aspect ratio."""


class GenerationRejected(GenerationError):
    """The provider could not produce output for this prompt and image."""

    def __init__(self, failure_code: str, detail: str = ""):
        super().__init__(f"{failure_code}: {detail}" if detail else failure_code)
        self.failure_code = failure_code
        self.detail = detail


class GenerationFailed(GenerationError):
    """Opaque provider-side failure."""

    def __init__(self, detail: str, failure_code: str | None = None):
        super().__init__(detail)
        self.detail = detail
        self.failure_code = failure_code


class GenerationTransportError(GenerationError):
    """Unexpected error talking to the provider (HTTP status, network)."""
