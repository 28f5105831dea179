"""Scoped temporary storage for one photo handling pass.

Disk work (directory creation, writes, removal) runs in the thread pool so a
large photo never stalls other conversations on the event loop.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class PhotoWorkspace:
    """Directory holding the original and normalized copies of one photo."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.original_path = path / "original"
        self.normalized_path = path / "normalized.jpg"

    async def save_original(self, data: bytes) -> Path:
        await run_in_threadpool(self.original_path.write_bytes, data)
        return self.original_path

    async def save_normalized(self, data: bytes) -> Path:
        await run_in_threadpool(self.normalized_path.write_bytes, data)
        return self.normalized_path

    async def release(self) -> None:
        await run_in_threadpool(shutil.rmtree, self.path, True)
        logger.debug("Removed workspace %s", self.path)


def _make_workspace_dir(root: Path, prefix: str) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix=prefix, dir=root))


@asynccontextmanager
async def photo_workspace(root: str | Path, label: str = "photo") -> AsyncIterator[PhotoWorkspace]:
    """Create a private directory under *root*; it is removed on exit, whatever happens."""

    safe_label = "".join(c if c.isalnum() or c in "-_" else "_" for c in label)[:48]
    path = await run_in_threadpool(_make_workspace_dir, Path(root), f"{safe_label}_")
    workspace = PhotoWorkspace(path)
    try:
        yield workspace
    finally:
        await workspace.release()
