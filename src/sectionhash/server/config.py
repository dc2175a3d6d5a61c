"""Server runtime configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class ServerRuntimeConfig(BaseModel):
    output_dir: Path = Path("_out")
    file_extension: str = ".md"
    hash_length: int = Field(default=8, ge=8, le=16)
    preview_length: int = Field(default=200, ge=0)
