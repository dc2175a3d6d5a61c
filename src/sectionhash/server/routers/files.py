"""Read-only access to the files in the served output directory."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import aiofiles
import aiofiles.os
from fastapi import APIRouter, Depends, HTTPException

from ...errors import SectionHashError
from ...sections import match_reference_divider
from ...writer import OutputFileInfo, SectionWriter
from ..config import ServerRuntimeConfig
from ..deps import get_config, get_writer
from ..schemas import (
    FileDetail,
    FileDetailResponse,
    FileListResponse,
    FileSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])


def resolve_in_root(root: Path, filename: str) -> Path:
    """Resolve ``filename`` under ``root``; 403 if it escapes the root."""
    resolved_root = root.resolve()
    candidate = (resolved_root / filename).resolve()
    if candidate == resolved_root or not candidate.is_relative_to(resolved_root):
        logger.warning("Rejected path outside output directory: %s", filename)
        raise HTTPException(403, "Access denied")
    return candidate


def content_hash(content: str) -> str | None:
    """Hash carried by the file's own leading divider line, if any."""
    first_line = content.split("\n", 1)[0]
    match = match_reference_divider(first_line)
    return match.group(1).upper() if match else None


async def _read_text(path: Path, errors: str = "strict") -> str:
    async with aiofiles.open(path, encoding="utf-8", errors=errors, newline="") as f:
        return await f.read()


async def _summarize(info: OutputFileInfo, preview_length: int) -> FileSummary:
    # Undecodable bytes must not break the listing or the content scan
    content = await _read_text(info.file_path, errors="replace")
    preview = content[:preview_length]
    if len(content) > preview_length:
        preview += "..."
    return FileSummary(
        filename=info.filename,
        basename=info.hash,
        hash=info.hash.upper() if info.is_hash_file else content_hash(content),
        is_hash_file=info.is_hash_file,
        is_main_file=not info.is_hash_file,
        size=info.size,
        modified=info.modified,
        preview=preview,
    )


async def list_output_files(
    writer: SectionWriter, preview_length: int
) -> list[FileSummary]:
    """Anchor files first, then hash files, each group by filename."""
    summaries = [
        await _summarize(info, preview_length)
        for info in await writer.get_output_file_info()
    ]
    return sorted(summaries, key=lambda s: (not s.is_main_file, s.filename))


async def _detail(path: Path, filename: str, **extra) -> FileDetail:
    try:
        content = await _read_text(path)
    except UnicodeDecodeError as exc:
        logger.warning("Refusing to serve non-UTF-8 file: %s", filename)
        raise HTTPException(
            422, f"File content is not valid text: {filename}"
        ) from exc
    stats = await aiofiles.os.stat(path)
    return FileDetail(
        filename=filename,
        content=content,
        size=stats.st_size,
        modified=datetime.fromtimestamp(stats.st_mtime),
        **extra,
    )


@router.get("/files", response_model=FileListResponse)
async def list_files(
    config: ServerRuntimeConfig = Depends(get_config),
    writer: SectionWriter = Depends(get_writer),
):
    try:
        files = await list_output_files(writer, config.preview_length)
    except (SectionHashError, OSError) as exc:
        raise HTTPException(500, str(exc)) from exc
    return FileListResponse(files=files)


@router.get("/files/{filename:path}", response_model=FileDetailResponse)
async def get_file(filename: str, config: ServerRuntimeConfig = Depends(get_config)):
    path = resolve_in_root(config.output_dir, filename)
    if not await aiofiles.os.path.isfile(path):
        raise HTTPException(404, "File not found")
    try:
        detail = await _detail(path, filename)
    except OSError as exc:
        raise HTTPException(500, str(exc)) from exc
    return FileDetailResponse(file=detail)


@router.get("/hash/{hash_value}", response_model=FileDetailResponse)
async def get_file_by_hash(
    hash_value: str,
    config: ServerRuntimeConfig = Depends(get_config),
    writer: SectionWriter = Depends(get_writer),
):
    hash_value = hash_value.upper()
    filename = f"{hash_value}{config.file_extension}"
    path = resolve_in_root(config.output_dir, filename)

    try:
        if await aiofiles.os.path.isfile(path):
            detail = await _detail(path, filename, hash=hash_value, found_by="filename")
            return FileDetailResponse(file=detail)

        for summary in await list_output_files(writer, config.preview_length):
            if summary.hash == hash_value:
                detail = await _detail(
                    config.output_dir / summary.filename,
                    summary.filename,
                    hash=hash_value,
                    found_by="content",
                )
                return FileDetailResponse(file=detail)
    except (SectionHashError, OSError) as exc:
        raise HTTPException(500, str(exc)) from exc

    raise HTTPException(404, f"No file found with hash: {hash_value}")
