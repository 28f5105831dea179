from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    THROTTLED = "THROTTLED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELLED)


class GenerationJob(BaseModel):
    """One image-to-video request, serialised with the provider's field names."""

    model_config = ConfigDict(populate_by_name=True)

    model: str
    prompt_image: str = Field(..., alias="promptImage", description="data: URI of the start frame")
    prompt_text: str = Field(..., alias="promptText")
    ratio: str
    duration: int = Field(5, ge=1)
    seed: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TaskResult(BaseModel):
    """Subset of the provider's task object the client relies on."""

    id: str
    status: TaskStatus
    output: list[str] | None = None
    failure: str | None = None
    failure_code: str | None = Field(default=None, alias="failureCode")
