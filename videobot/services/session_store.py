"""Pending-prompt storage keyed by conversation id."""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Holds at most one pending text prompt per conversation."""

    @abstractmethod
    def set_prompt(self, conversation_id: str, text: str) -> None:
        """Store *text*, replacing any prompt already pending."""

    @abstractmethod
    def take_prompt(self, conversation_id: str) -> Optional[str]:
        """Return and remove the pending prompt in one step (None if absent)."""

    @abstractmethod
    def clear(self, conversation_id: str) -> None:
        """Drop the pending prompt, if any."""


class InMemorySessionStore(SessionStore):
    """Process-local store; entries live until taken or the process exits."""

    def __init__(self) -> None:
        self._prompts: Dict[str, str] = {}
        self._lock = threading.Lock()

    def set_prompt(self, conversation_id: str, text: str) -> None:
        with self._lock:
            replaced = conversation_id in self._prompts
            self._prompts[conversation_id] = text
        logger.debug("Prompt stored for %s (replaced=%s)", conversation_id, replaced)

    def take_prompt(self, conversation_id: str) -> Optional[str]:
        with self._lock:
            return self._prompts.pop(conversation_id, None)

    def clear(self, conversation_id: str) -> None:
        with self._lock:
            self._prompts.pop(conversation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._prompts)
