import os

import pytest

os.environ.setdefault("BOT_TOKEN", "123456:test-token")
os.environ.setdefault("RUNWAY_API_KEY", "test-runway-key")
os.environ.setdefault("WEBHOOK_SECRET", "")

from videobot.services.image_normalizer import ImageNormalizer  # noqa: E402
from videobot.services.orchestrator import ConversationOrchestrator  # noqa: E402
from videobot.services.session_store import InMemorySessionStore  # noqa: E402


@pytest.fixture()
def store():
    return InMemorySessionStore()


@pytest.fixture()
def tmp_root(tmp_path):
    return tmp_path / "images"


@pytest.fixture()
def make_orchestrator(store, tmp_root):
    def factory(transport, generator) -> ConversationOrchestrator:
        generator.tmp_root = tmp_root
        return ConversationOrchestrator(
            store=store,
            transport=transport,
            generator=generator,
            normalizer=ImageNormalizer(),
            tmp_dir=tmp_root,
        )

    return factory
