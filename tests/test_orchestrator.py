import asyncio

import pytest

from helpers import FakeGenerator, FakeTransport, files_under, make_jpeg
from videobot.errors import (
    DownloadFailed,
    GenerationFailed,
    GenerationRejected,
    GenerationTransportError,
    ImageTooSmall,
    NoPendingPrompt,
    UnreadableImage,
    UnsupportedAspectRatio,
)
from videobot.models import PhotoMessage, TextMessage
from videobot.services.orchestrator import (
    ASK_FOR_PHOTO,
    GENERATING,
    GENERIC_FAILURE,
    USER_MESSAGES,
    user_message,
)

CHAT = "1001"


def photo(file_ref: str = "file-abc") -> PhotoMessage:
    return PhotoMessage(conversation_id=CHAT, file_ref=file_ref)


def texts(transport: FakeTransport) -> list[str]:
    return [body for _, body in transport.texts]


@pytest.mark.asyncio()
async def test_text_stores_prompt_and_asks_for_photo(make_orchestrator, store):
    transport = FakeTransport()
    orch = make_orchestrator(transport, FakeGenerator())

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="a cat running"))

    assert texts(transport) == [ASK_FOR_PHOTO]
    assert store.take_prompt(CHAT) == "a cat running"


@pytest.mark.asyncio()
async def test_landscape_photo_produces_video(make_orchestrator, store, tmp_root):
    transport = FakeTransport(make_jpeg(1920, 1080))
    generator = FakeGenerator(url="https://cdn.example/cat.mp4")
    orch = make_orchestrator(transport, generator)

    await orch.dispatch(TextMessage(conversation_id=CHAT, text="a cat running"))
    await orch.dispatch(photo())

    assert generator.calls == [(1024, 576, "a cat running", "1280:720")]
    assert transport.videos == [(CHAT, "https://cdn.example/cat.mp4")]
    assert texts(transport) == [ASK_FOR_PHOTO, GENERATING]
    # both copies existed while the job ran, and are gone afterwards
    assert generator.files_seen == [["normalized.jpg", "original"]]
    assert files_under(tmp_root) == []
    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
async def test_portrait_photo_uses_portrait_ratio(make_orchestrator):
    transport = FakeTransport(make_jpeg(1080, 1920))
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="waves"))
    await orch.handle_photo(photo())

    assert generator.calls[0][3] == "720:1280"


@pytest.mark.asyncio()
async def test_photo_without_prompt_does_nothing_else(make_orchestrator, store, tmp_root):
    transport = FakeTransport(make_jpeg(150, 150))
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    await orch.handle_photo(photo())

    assert texts(transport) == [USER_MESSAGES[NoPendingPrompt]]
    assert transport.resolved == []
    assert generator.calls == []
    assert not tmp_root.exists()
    assert len(store) == 0


@pytest.mark.asyncio()
async def test_bad_output_failure_asks_for_different_input(make_orchestrator, store, tmp_root):
    transport = FakeTransport(make_jpeg(1920, 1080))
    generator = FakeGenerator(error=GenerationRejected("INTERNAL.BAD_OUTPUT.CODE01", "bad output"))
    orch = make_orchestrator(transport, generator)

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="a cat running"))
    await orch.handle_photo(photo())

    assert texts(transport)[-1] == USER_MESSAGES[GenerationRejected]
    assert "different prompt or photo" in texts(transport)[-1]
    assert transport.videos == []
    assert files_under(tmp_root) == []
    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
async def test_second_rapid_photo_sees_no_prompt(make_orchestrator, store):
    transport = FakeTransport(make_jpeg(1920, 1080))
    release = asyncio.Event()

    class SlowGenerator(FakeGenerator):
        async def submit(self, image, prompt_text, ratio):
            await release.wait()
            return await super().submit(image, prompt_text, ratio)

    generator = SlowGenerator()
    orch = make_orchestrator(transport, generator)
    await orch.handle_text(TextMessage(conversation_id=CHAT, text="a cat running"))

    first = asyncio.create_task(orch.handle_photo(photo("first")))
    await asyncio.sleep(0)
    await orch.handle_photo(photo("second"))
    assert USER_MESSAGES[NoPendingPrompt] in texts(transport)

    release.set()
    await first

    assert len(generator.calls) == 1
    assert transport.resolved == ["first"]
    assert len(transport.videos) == 1


@pytest.mark.asyncio()
async def test_small_photo_after_prompt_is_rejected(make_orchestrator, store, tmp_root):
    transport = FakeTransport(make_jpeg(150, 150))
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="prompt"))
    await orch.handle_photo(photo())

    assert texts(transport)[-1] == USER_MESSAGES[ImageTooSmall].format(min_dimension=200)
    assert GENERATING not in texts(transport)
    assert generator.calls == []
    assert files_under(tmp_root) == []
    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
async def test_unreadable_photo(make_orchestrator, tmp_root):
    transport = FakeTransport(b"not an image")
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="prompt"))
    await orch.handle_photo(photo())

    assert texts(transport)[-1] == USER_MESSAGES[UnreadableImage]
    assert generator.calls == []
    assert files_under(tmp_root) == []


@pytest.mark.asyncio()
async def test_download_failure(make_orchestrator, store):
    transport = FakeTransport(fail_download=True)
    orch = make_orchestrator(transport, FakeGenerator())

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="prompt"))
    await orch.handle_photo(photo())

    assert texts(transport)[-1] == USER_MESSAGES[DownloadFailed]
    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "error, expected",
    [
        (UnsupportedAspectRatio("nope"), USER_MESSAGES[UnsupportedAspectRatio]),
        (GenerationFailed("GPU exploded"), "Video generation failed: GPU exploded"),
        (GenerationTransportError("503"), GENERIC_FAILURE),
        (RuntimeError("unexpected"), GENERIC_FAILURE),
    ],
)
async def test_generation_errors_map_to_one_message(make_orchestrator, store, tmp_root, error, expected):
    transport = FakeTransport(make_jpeg(800, 600))
    orch = make_orchestrator(transport, FakeGenerator(error=error))

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="prompt"))
    await orch.handle_photo(photo())

    assert texts(transport) == [ASK_FOR_PHOTO, GENERATING, expected]
    assert transport.videos == []
    assert files_under(tmp_root) == []
    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
async def test_session_cleared_even_if_consumption_is_skipped(make_orchestrator, store, monkeypatch):
    transport = FakeTransport(make_jpeg(800, 600))
    orch = make_orchestrator(transport, FakeGenerator())
    store.set_prompt(CHAT, "prompt")

    # A store whose take_prompt leaves the entry in place
    monkeypatch.setattr(store, "take_prompt", lambda conversation_id: "prompt")
    await orch.handle_photo(photo())
    monkeypatch.undo()

    assert store.take_prompt(CHAT) is None


@pytest.mark.asyncio()
async def test_prompts_are_per_conversation(make_orchestrator, store):
    transport = FakeTransport(make_jpeg(800, 600))
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    await orch.handle_text(TextMessage(conversation_id="a", text="prompt a"))
    await orch.handle_text(TextMessage(conversation_id="b", text="prompt b"))
    await orch.handle_photo(PhotoMessage(conversation_id="b", file_ref="f"))

    assert generator.calls[0][2] == "prompt b"
    assert store.take_prompt("a") == "prompt a"


@pytest.mark.asyncio()
async def test_aclose_and_stop_accepting(make_orchestrator):
    transport = FakeTransport()
    generator = FakeGenerator()
    orch = make_orchestrator(transport, generator)

    assert orch.accepting
    orch.stop_accepting()
    await orch.aclose()

    assert not orch.accepting
    assert transport.closed and generator.closed


def test_user_message_falls_back_to_base_class():
    class OddRejection(GenerationRejected):
        pass

    assert user_message(OddRejection("X")) == USER_MESSAGES[GenerationRejected]


@pytest.mark.asyncio()
async def test_prompt_sent_during_generation_is_cleared_when_job_ends(make_orchestrator, store):
    transport = FakeTransport(make_jpeg(1920, 1080))
    release = asyncio.Event()

    class SlowGenerator(FakeGenerator):
        async def submit(self, image, prompt_text, ratio):
            await release.wait()
            return await super().submit(image, prompt_text, ratio)

    orch = make_orchestrator(transport, SlowGenerator())
    await orch.handle_text(TextMessage(conversation_id=CHAT, text="a cat running"))
    job = asyncio.create_task(orch.handle_photo(photo("first")))
    while GENERATING not in texts(transport):
        await asyncio.sleep(0.01)

    await orch.handle_text(TextMessage(conversation_id=CHAT, text="a dog jumping"))
    release.set()
    await job

    # Every finished photo pass leaves the conversation without a prompt
    assert store.take_prompt(CHAT) is None
    await orch.handle_photo(photo("second"))
    assert texts(transport)[-1] == USER_MESSAGES[NoPendingPrompt]
