"""Telegram Bot API wrapper.

Provides async helpers for replying with text or video and for fetching
photos sent by users.  Only the handful of methods the bot needs are
implemented.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import ChatTransport, TransportError

logger = logging.getLogger(__name__)


class TelegramAPIError(TransportError):
    """Raised when the Bot API returns an error status or ``ok: false``."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None):
        super().__init__(f"Telegram API error {status}: {message}")
        self.status = status
        self.response_json = response_json or {}


class TelegramClient(ChatTransport):
    """Minimal async client for the Telegram Bot API."""

    name = "telegram"
    _BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        *,
        token: str,
        base_url: str = _BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._api_url = f"{self._base_url}/bot{token}"
        self._file_url = f"{self._base_url}/file/bot{token}"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send_text(self, conversation_id: str, body: str) -> None:
        await self._call("sendMessage", {"chat_id": conversation_id, "text": body})

    async def send_video(self, conversation_id: str, video_url: str, *, caption: Optional[str] = None) -> None:
        # Telegram fetches the video from the URL itself
        payload: Dict[str, Any] = {"chat_id": conversation_id, "video": video_url}
        if caption:
            payload["caption"] = caption
        await self._call("sendVideo", payload)

    async def resolve_download_url(self, file_ref: str) -> str:
        result = await self._call("getFile", {"file_id": file_ref})
        file_path = (result or {}).get("file_path")
        if not file_path:
            raise TelegramAPIError(200, f"No file_path returned for file {file_ref}")
        return f"{self._file_url}/{file_path.lstrip('/')}"

    async def download(self, url: str, *, max_bytes: Optional[int] = None) -> bytes:
        """Download a file, refusing anything larger than *max_bytes*."""

        logger.debug("GET file %s", self._redact(url))
        chunks: list[bytes] = []
        received = 0
        async with self._client.stream("GET", url) as resp:
            if resp.status_code >= 400:
                raise TelegramAPIError(resp.status_code, "Failed to download file")
            async for chunk in resp.aiter_bytes():
                received += len(chunk)
                if max_bytes is not None and received > max_bytes:
                    raise TelegramAPIError(413, f"File exceeds {max_bytes} bytes")
                chunks.append(chunk)
        return b"".join(chunks)

    async def set_webhook(
        self,
        url: str,
        *,
        secret_token: Optional[str] = None,
        drop_pending_updates: bool = False,
    ) -> None:
        payload: Dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message"],
            "drop_pending_updates": drop_pending_updates,
        }
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", payload)

    async def delete_webhook(self, *, drop_pending_updates: bool = False) -> None:
        await self._call("deleteWebhook", {"drop_pending_updates": drop_pending_updates})

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        url = f"{self._api_url}/{method}"
        logger.debug("POST %s -> %s", method, payload)
        resp = await self._client.post(url, json=payload)
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 400 or not isinstance(data, dict) or not data.get("ok"):
            description = (data or {}).get("description") if isinstance(data, dict) else None
            raise TelegramAPIError(resp.status_code, description or resp.text, data if isinstance(data, dict) else None)
        return data.get("result")

    def _redact(self, url: str) -> str:
        return url.replace(self._token, "<token>")
