"""Runway image-to-video client.

A job is created with ``POST /v1/image_to_video`` and then polled through
``GET /v1/tasks/{id}`` until it reaches a terminal status.  Provider failures
are translated into the closed set of :mod:`videobot.errors` generation
errors; nothing Runway specific escapes this module.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from videobot.errors import (
    GenerationError,
    GenerationFailed,
    GenerationRejected,
    GenerationTransportError,
    UnsupportedAspectRatio,
)
from videobot.models import GenerationJob, NormalizedImage, TaskStatus
from videobot.models.generation import TaskResult

from .base import GenerationProvider

logger = logging.getLogger(__name__)

# Failure code prefixes meaning "this prompt/image pair cannot be produced"
REJECTED_FAILURE_PREFIXES = ("INTERNAL.BAD_OUTPUT.", "SAFETY.")


class RunwayAPIError(Exception):
    """Raised when the Runway API returns an error status."""

    def __init__(self, status: int, message: str):
        super().__init__(f"Runway API error {status}: {message}")
        self.status = status
        self.message = message


def map_task_failure(failure_code: Optional[str], failure: Optional[str]) -> GenerationError:
    """Translate a FAILED task's code and message into a domain error."""

    code = failure_code or ""
    detail = failure or "Generation failed"
    if code.startswith(REJECTED_FAILURE_PREFIXES):
        return GenerationRejected(code, detail)
    return GenerationFailed(detail, failure_code=failure_code)


class RunwayProvider(GenerationProvider):
    name = "runway"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.dev.runwayml.com",
        api_version: str = "2024-11-06",
        model: str = "gen4_turbo",
        duration: int = 5,
        seed: Optional[int] = None,
        poll_interval: float = 5.0,
        task_timeout: float = 600.0,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._duration = duration
        self._seed = seed
        self._poll_interval = poll_interval
        self._task_timeout = task_timeout
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "X-Runway-Version": api_version,
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(self, image: NormalizedImage, prompt_text: str, ratio: str) -> str:
        job = GenerationJob(
            model=self._model,
            prompt_image=image.to_data_uri(),
            prompt_text=prompt_text,
            ratio=ratio,
            duration=self._duration,
            seed=self._seed,
        )
        try:
            task_id = await self._create_task(job)
            logger.info("Runway task %s submitted (model=%s ratio=%s)", task_id, job.model, job.ratio)
            task = await self._wait_for_task(task_id)
        except RunwayAPIError as exc:
            if exc.status == 400 and "ratio" in exc.message.lower():
                raise UnsupportedAspectRatio(f"Ratio {ratio} rejected: {exc.message}") from exc
            raise GenerationTransportError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise GenerationTransportError(f"Runway request failed: {exc}") from exc

        if task.status is TaskStatus.FAILED:
            raise map_task_failure(task.failure_code, task.failure)
        if task.status is TaskStatus.CANCELLED:
            raise GenerationFailed(f"Task {task.id} was cancelled")
        if not task.output:
            raise GenerationFailed(f"Task {task.id} succeeded without output")
        if len(task.output) > 1:
            logger.debug("Task %s returned %s outputs, using the first", task.id, len(task.output))
        return task.output[0]

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _create_task(self, job: GenerationJob) -> str:
        data = await self._request("POST", "/v1/image_to_video", json=job.to_payload())
        task_id = data.get("id")
        if not task_id:
            raise RunwayAPIError(200, "Missing task id in response")
        return task_id

    async def _wait_for_task(self, task_id: str) -> TaskResult:
        deadline = time.monotonic() + self._task_timeout
        while True:
            data = await self._request("GET", f"/v1/tasks/{task_id}")
            try:
                task = TaskResult.model_validate(data)
            except ValidationError as exc:
                raise GenerationTransportError(f"Unexpected task payload: {exc}") from exc
            logger.debug("Runway task %s status %s", task_id, task.status.value)
            if task.status.is_terminal:
                return task
            if time.monotonic() >= deadline:
                raise GenerationFailed(f"Task {task_id} timed out after {self._task_timeout:.0f}s")
            await asyncio.sleep(self._poll_interval)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        resp = await self._client.request(method, url, headers=self._headers, **kwargs)
        if resp.status_code >= 400:
            raise RunwayAPIError(resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError as exc:
            raise RunwayAPIError(resp.status_code, "Response is not JSON") from exc
        if not isinstance(data, dict):
            raise RunwayAPIError(resp.status_code, "Unexpected response shape")
        return data
