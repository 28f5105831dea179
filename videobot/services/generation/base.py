from __future__ import annotations

from abc import ABC, abstractmethod

from videobot.models import NormalizedImage


class GenerationProvider(ABC):
    """Abstract interface for an image-to-video provider."""

    name: str = "abstract"

    @abstractmethod
    async def submit(self, image: NormalizedImage, prompt_text: str, ratio: str) -> str:
        """Run one generation job to completion and return the video URL.

        Raises
        ------
        videobot.errors.GenerationError
            One of its subclasses for every unsuccessful terminal outcome.
        """

    async def aclose(self) -> None:
        return None
