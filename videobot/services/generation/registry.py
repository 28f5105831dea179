from __future__ import annotations

from functools import lru_cache
from typing import Callable

from videobot.config import Settings, get_settings

from .base import GenerationProvider
from .runway_provider import RunwayProvider


def _runway_from_settings(settings: Settings) -> GenerationProvider:
    return RunwayProvider(
        api_key=settings.runway_api_key,
        base_url=settings.runway_base_url,
        api_version=settings.runway_api_version,
        model=settings.runway_model,
        duration=settings.video_duration,
        seed=settings.runway_seed,
        poll_interval=settings.runway_poll_interval,
        task_timeout=settings.runway_task_timeout,
        timeout=settings.http_timeout,
    )


_PROVIDERS: dict[str, Callable[[Settings], GenerationProvider]] = {
    "runway": _runway_from_settings,
}


def create_generation_provider(settings: Settings) -> GenerationProvider:
    provider_key = settings.generation_provider.lower()
    if provider_key not in _PROVIDERS:
        raise ValueError(f"Unsupported generation provider: {provider_key}")
    return _PROVIDERS[provider_key](settings)


@lru_cache()
def get_generation_provider() -> GenerationProvider:
    return create_generation_provider(get_settings())
