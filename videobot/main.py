from __future__ import annotations

import logging
import os
import signal
import threading
from contextlib import asynccontextmanager
from typing import Iterable

from fastapi import FastAPI

from videobot.config import get_settings
from videobot.handlers import webhook_handler
from videobot.services.orchestrator import ConversationOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


def install_shutdown_hook(
    orchestrator: ConversationOrchestrator,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> None:
    """Stop accepting events as soon as a shutdown signal arrives.

    The server's own handler (already installed when the lifespan starts) is
    chained after the flag flips, so new webhooks get 503 while in-flight
    ones drain.
    """

    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not in the main thread; shutdown signals left untouched")
        return

    for sig in signals:
        previous = signal.getsignal(sig)

        def handler(signum, frame, previous=previous):
            orchestrator.stop_accepting()
            if callable(previous):
                previous(signum, frame)
            elif previous == signal.SIG_DFL:
                signal.signal(signum, signal.SIG_DFL)
                os.kill(os.getpid(), signum)

        signal.signal(sig, handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    orchestrator = build_orchestrator(get_settings())
    app.state.orchestrator = orchestrator
    install_shutdown_hook(orchestrator)
    logger.info("VideoBot started")
    yield
    orchestrator.stop_accepting()
    await orchestrator.aclose()
    logger.info("VideoBot stopped")


app = FastAPI(title="VideoBot API", lifespan=lifespan)

app.include_router(webhook_handler.router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
