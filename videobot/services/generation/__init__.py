from .base import GenerationProvider
from .registry import create_generation_provider, get_generation_provider
from .runway_provider import RunwayProvider, map_task_failure

__all__ = [
    "GenerationProvider",
    "RunwayProvider",
    "create_generation_provider",
    "get_generation_provider",
    "map_task_failure",
]
