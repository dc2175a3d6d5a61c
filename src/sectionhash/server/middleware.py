"""Server middleware configuration."""

from __future__ import annotations

import logging
import uuid

from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .deps import server_state

logger = logging.getLogger(__name__)

# Served files change whenever a split rewrites or cleans the directory
_UNCACHED_PREFIXES = ("/api/files", "/api/hash/")


def add_middlewares(app) -> None:
    """Register all middleware on the given FastAPI app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        if request.url.path.startswith(_UNCACHED_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
        logger.debug(
            "%s %s -> %d [%s] root=%s",
            request.method,
            request.url.path,
            response.status_code,
            request_id,
            server_state.config.output_dir,
        )
        return response
