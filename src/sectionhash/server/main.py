"""FastAPI application factory with lifespan."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from sectionhash import __version__

from .config import ServerRuntimeConfig
from .deps import server_state
from .middleware import add_middlewares
from .routers import files, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_state.started_at = datetime.now()
    logger.info("Serving files from: %s", server_state.config.output_dir.resolve())
    yield
    server_state.started_at = None


def create_app(*, config: ServerRuntimeConfig | None = None) -> FastAPI:
    cfg = config or ServerRuntimeConfig()
    server_state.config = cfg

    app = FastAPI(
        title="sectionhash",
        version=__version__,
        lifespan=lifespan,
    )

    add_middlewares(app)

    app.include_router(health.router)
    app.include_router(files.router)

    return app
