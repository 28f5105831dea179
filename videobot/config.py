from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Telegram Bot API
    bot_token: str = Field(..., description="Token issued by @BotFather.")
    telegram_api_url: str = Field("https://api.telegram.org")
    webhook_secret: Optional[str] = Field(
        default=None,
        description="If set, must match the X-Telegram-Bot-Api-Secret-Token header.",
    )
    http_timeout: float = Field(30.0, description="Timeout for outbound HTTP calls (seconds).")

    # Runway
    runway_api_key: str = Field(...)
    runway_base_url: str = Field("https://api.dev.runwayml.com")
    runway_api_version: str = Field("2024-11-06")
    runway_model: str = Field("gen4_turbo")
    runway_seed: Optional[int] = Field(default=None, ge=0)
    runway_poll_interval: float = Field(5.0, gt=0, description="Seconds between task status polls.")
    runway_task_timeout: float = Field(600.0, gt=0, description="Give up on a task after this many seconds.")
    video_duration: int = Field(5, ge=1)

    # Generation provider selection
    generation_provider: str = Field("runway")

    # Image processing
    tmp_dir: str = Field("./images", description="Where photos are kept while a job runs.")
    min_image_dimension: int = Field(200, ge=1, description="Photos with a smaller side below this are rejected.")
    target_image_size: int = Field(1024, ge=1, description="Larger side of the image sent for generation (pixels).")
    image_quality: int = Field(80, ge=1, le=100, description="JPEG quality for normalized images (1-100).")
    landscape_ratio: str = Field("1280:720")
    portrait_ratio: str = Field("720:1280")
    max_download_bytes: int = Field(20 * 1024 * 1024, description="Largest photo accepted for download.")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
