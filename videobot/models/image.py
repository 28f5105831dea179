from __future__ import annotations

import base64
from enum import Enum

from pydantic import BaseModel, Field


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"

    @classmethod
    def classify(cls, width: int, height: int) -> "Orientation":
        # Square images count as landscape.
        return cls.LANDSCAPE if width >= height else cls.PORTRAIT


class NormalizedImage(BaseModel):
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    orientation: Orientation
    payload: bytes
    content_type: str = "image/jpeg"

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"

    def to_data_uri(self) -> str:
        b64 = base64.b64encode(self.payload).decode("ascii")
        return f"data:{self.content_type};base64,{b64}"
