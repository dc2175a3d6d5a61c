"""Pydantic response schemas for the FastAPI server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from sectionhash import __version__


class HealthResponse(BaseModel):
    success: bool = True
    message: str = "sectionhash server is running"
    output_dir: str
    version: str = __version__
    timestamp: datetime = Field(default_factory=datetime.now)


class ReadyResponse(BaseModel):
    ready: bool
    output_dir_exists: bool


class FileSummary(BaseModel):
    filename: str
    basename: str
    hash: str | None = None
    is_hash_file: bool
    is_main_file: bool
    size: int
    modified: datetime
    preview: str


class FileListResponse(BaseModel):
    success: bool = True
    files: list[FileSummary] = Field(default_factory=list)


class FileDetail(BaseModel):
    filename: str
    content: str
    size: int
    modified: datetime
    hash: str | None = None
    found_by: Literal["filename", "content"] | None = None


class FileDetailResponse(BaseModel):
    success: bool = True
    file: FileDetail
