"""FastAPI dependency injection helpers."""

from __future__ import annotations

from datetime import datetime

from ..config import SectionHashConfig
from ..writer import SectionWriter
from .config import ServerRuntimeConfig


class ServerState:
    """Shared server state, set during lifespan."""

    def __init__(self) -> None:
        self.config = ServerRuntimeConfig()
        self.started_at: datetime | None = None

    @property
    def is_ready(self) -> bool:
        return self.started_at is not None


server_state = ServerState()


def get_config() -> ServerRuntimeConfig:
    return server_state.config


def get_writer() -> SectionWriter:
    """Writer bound to the served directory, used only for its listing helpers."""
    cfg = server_state.config
    return SectionWriter(
        SectionHashConfig(
            output_dir=cfg.output_dir,
            file_extension=cfg.file_extension,
            hash_length=cfg.hash_length,
        )
    )
