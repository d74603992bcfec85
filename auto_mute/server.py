import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from auto_mute import __version__
from auto_mute.config import Settings, get_settings
from auto_mute.web.api import api_router
from auto_mute.web.errors import register_error_handlers
from auto_mute.web.middleware import register_request_logging
from auto_mute.work.cleanup import Sweeper
from auto_mute.work.jobs import ffmpeg_available
from auto_mute.work.runtime import Runtime

logger = logging.getLogger("auto_mute")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def create_app(settings: Optional[Settings] = None, start_sweeper: bool = True) -> FastAPI:
    settings = settings or get_settings()
    runtime = Runtime.from_settings(settings)
    sweeper = Sweeper(runtime)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_sweeper:
            sweeper.start()
        try:
            yield
        finally:
            sweeper.stop()

    app = FastAPI(title="auto_mute", version=__version__, lifespan=lifespan)
    app.state.runtime = runtime
    app.state.sweeper = sweeper

    register_request_logging(app)
    register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    def index():
        return {"system": "auto_mute", "status": "online", "version": __version__}

    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    if not ffmpeg_available(settings.ffmpeg_path):
        logger.error("ffmpeg is not installed or not found (tried %r)", settings.ffmpeg_path)
        logger.error("install ffmpeg and make sure it is on PATH, or set FFMPEG_PATH")
        sys.exit(1)
    logger.info("ffmpeg is available")
    logger.info("file retention: %.0fs, cleanup every %.0fs", settings.retention_seconds, settings.sweep_interval_seconds)

    uvicorn.run(
        "auto_mute.server:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
