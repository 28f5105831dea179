import io
from pathlib import Path
from typing import Optional

from PIL import Image

from videobot.services.generation import GenerationProvider
from videobot.services.transport import ChatTransport, TransportError


def make_jpeg(width: int, height: int, color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="JPEG")
    return buffer.getvalue()


def make_noisy_jpeg(width: int, height: int, quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    Image.effect_noise((width, height), 100).convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def files_under(root: Path) -> list[str]:
    if not root.exists():
        return []
    return sorted(p.name for p in root.rglob("*") if p.is_file())


class FakeTransport(ChatTransport):
    name = "fake"

    def __init__(self, photo: bytes = b"", *, fail_download: bool = False):
        self.photo = photo
        self.fail_download = fail_download
        self.texts: list[tuple[str, str]] = []
        self.videos: list[tuple[str, str]] = []
        self.resolved: list[str] = []
        self.closed = False

    async def send_text(self, conversation_id: str, body: str) -> None:
        self.texts.append((conversation_id, body))

    async def send_video(self, conversation_id: str, video_url: str, *, caption: Optional[str] = None) -> None:
        self.videos.append((conversation_id, video_url))

    async def resolve_download_url(self, file_ref: str) -> str:
        self.resolved.append(file_ref)
        return f"https://files.example/{file_ref}"

    async def download(self, url: str, *, max_bytes: Optional[int] = None) -> bytes:
        if self.fail_download:
            raise TransportError("connection reset")
        return self.photo

    async def aclose(self) -> None:
        self.closed = True


class FakeGenerator(GenerationProvider):
    """Records submissions and the files present in the workspace at that moment."""

    name = "fake"

    def __init__(self, url: str = "https://cdn.example/video.mp4", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls: list[tuple[int, int, str, str]] = []
        self.files_seen: list[list[str]] = []
        self.tmp_root: Optional[Path] = None
        self.closed = False

    async def submit(self, image, prompt_text: str, ratio: str) -> str:
        self.calls.append((image.width, image.height, prompt_text, ratio))
        if self.tmp_root is not None:
            self.files_seen.append(files_under(self.tmp_root))
        if self.error is not None:
            raise self.error
        return self.url

    async def aclose(self) -> None:
        self.closed = True
