"""Conversation flow: text prompt, then photo, then generated video.

Each conversation is either waiting for a prompt or holding one.  A text
message stores (or replaces) the prompt; a photo message consumes it, runs
the photo through normalization and generation, and replies with the video
or with one error message.  Temporary files and the session entry are
released on every path.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from videobot.config import Settings
from videobot.errors import (
    DownloadFailed,
    GenerationFailed,
    GenerationRejected,
    GenerationTransportError,
    ImageTooSmall,
    NoPendingPrompt,
    UnreadableImage,
    UnsupportedAspectRatio,
    VideoBotError,
)
from videobot.models import NormalizedImage, PhotoMessage, TextMessage
from videobot.models.events import InboundEvent
from videobot.services.generation import GenerationProvider, create_generation_provider
from videobot.services.image_normalizer import ImageNormalizer
from videobot.services.session_store import InMemorySessionStore, SessionStore
from videobot.services.transport import ChatTransport, TelegramClient, TransportError
from videobot.services.workspace import PhotoWorkspace, photo_workspace

logger = logging.getLogger(__name__)


ASK_FOR_PHOTO = "Now send the photo you want turned into a video."
GENERATING = "Generating your video, please wait…"
GENERIC_FAILURE = "Something went wrong while generating the video 😔"

USER_MESSAGES: dict[type[VideoBotError], str] = {
    NoPendingPrompt: "Send a text description for the video first, then the photo.",
    DownloadFailed: "I couldn't download your photo. Please send it again.",
    UnreadableImage: "⚠️ I couldn't read that image. Please send a regular JPEG or PNG photo.",
    ImageTooSmall: "⚠️ The photo is too small. Send one at least {min_dimension}px on its shorter side.",
    UnsupportedAspectRatio: "⚠️ Unsupported resolution. Send a photo with a different size.",
    GenerationRejected: "The video couldn't be produced from this combination. Try a different prompt or photo.",
    GenerationFailed: "Video generation failed: {detail}",
    GenerationTransportError: GENERIC_FAILURE,
}


def user_message(exc: VideoBotError) -> str:
    """Return the chat reply for a pipeline error."""

    for cls in type(exc).__mro__:
        template = USER_MESSAGES.get(cls)
        if template is not None:
            return template.format(**vars(exc))
    return GENERIC_FAILURE


class ConversationOrchestrator:
    """Drives text and photo events through the photo-to-video pipeline."""

    def __init__(
        self,
        *,
        store: SessionStore,
        transport: ChatTransport,
        generator: GenerationProvider,
        normalizer: ImageNormalizer,
        tmp_dir: str | Path = "./images",
        max_download_bytes: Optional[int] = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._generator = generator
        self._normalizer = normalizer
        self._tmp_dir = Path(tmp_dir)
        self._max_download_bytes = max_download_bytes
        self._accepting = True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def accepting(self) -> bool:
        return self._accepting

    def stop_accepting(self) -> None:
        self._accepting = False
        logger.info("Orchestrator no longer accepting new events")

    async def aclose(self) -> None:
        await self._transport.aclose()
        await self._generator.aclose()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def dispatch(self, event: InboundEvent) -> None:
        if isinstance(event, PhotoMessage):
            await self.handle_photo(event)
        elif isinstance(event, TextMessage):
            await self.handle_text(event)
        else:  # pragma: no cover
            raise TypeError(f"Unsupported event: {type(event).__name__}")

    async def handle_text(self, event: TextMessage) -> None:
        self._store.set_prompt(event.conversation_id, event.text)
        logger.info("Prompt received for %s", event.conversation_id)
        await self._transport.send_text(event.conversation_id, ASK_FOR_PHOTO)

    async def handle_photo(self, event: PhotoMessage) -> None:
        conversation_id = event.conversation_id
        prompt = self._store.take_prompt(conversation_id)
        if prompt is None:
            logger.info("Photo from %s without a pending prompt", conversation_id)
            await self._transport.send_text(conversation_id, user_message(NoPendingPrompt()))
            return

        reply: Optional[str] = None
        try:
            async with photo_workspace(self._tmp_dir, event.file_ref) as workspace:
                video_url = await self._produce_video(event, prompt, workspace)
            await self._transport.send_video(conversation_id, video_url)
            logger.info("Video delivered to %s", conversation_id)
        except VideoBotError as exc:
            logger.warning("Photo from %s failed: %s: %s", conversation_id, type(exc).__name__, exc)
            reply = user_message(exc)
        except Exception as exc:
            logger.exception("Unexpected error handling photo from %s: %s", conversation_id, exc)
            reply = GENERIC_FAILURE
        finally:
            self._store.clear(conversation_id)

        if reply is not None:
            await self._transport.send_text(conversation_id, reply)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _produce_video(self, event: PhotoMessage, prompt: str, workspace: PhotoWorkspace) -> str:
        raw = await self._download(event.file_ref)
        await workspace.save_original(raw)

        image: NormalizedImage = await run_in_threadpool(self._normalizer.normalize, raw)
        await workspace.save_normalized(image.payload)
        ratio = self._normalizer.aspect_ratio(image.orientation)
        logger.info(
            "Normalized photo for %s to %s (%s, ratio %s)",
            event.conversation_id,
            image.resolution,
            image.orientation.value,
            ratio,
        )

        await self._transport.send_text(event.conversation_id, GENERATING)
        return await self._generator.submit(image, prompt, ratio)

    async def _download(self, file_ref: str) -> bytes:
        try:
            url = await self._transport.resolve_download_url(file_ref)
            return await self._transport.download(url, max_bytes=self._max_download_bytes)
        except (TransportError, httpx.HTTPError) as exc:
            raise DownloadFailed(f"Could not download {file_ref}: {exc}") from exc


def build_orchestrator(settings: Settings) -> ConversationOrchestrator:
    """Wire the production collaborators from *settings*."""

    transport = TelegramClient(
        token=settings.bot_token,
        base_url=settings.telegram_api_url,
        timeout=settings.http_timeout,
    )
    normalizer = ImageNormalizer(
        min_dimension=settings.min_image_dimension,
        target_size=settings.target_image_size,
        quality=settings.image_quality,
        landscape_ratio=settings.landscape_ratio,
        portrait_ratio=settings.portrait_ratio,
    )
    return ConversationOrchestrator(
        store=InMemorySessionStore(),
        transport=transport,
        generator=create_generation_provider(settings),
        normalizer=normalizer,
        tmp_dir=settings.tmp_dir,
        max_download_bytes=settings.max_download_bytes,
    )
