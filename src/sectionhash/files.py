"""Input-path validation shared by the processing strategies."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import aiofiles.os

from .errors import (
    InvalidInputError,
    PathIsDirectoryError,
    PermissionDeniedError,
    translate_os_error,
)


def coerce_path(file_path: str | Path) -> Path:
    """Reject empty or non-path input before touching the filesystem."""
    if isinstance(file_path, Path):
        return file_path
    if not isinstance(file_path, str) or not file_path.strip():
        raise InvalidInputError("File path must be a non-empty string")
    return Path(file_path)


async def validate_input_file(file_path: str | Path) -> os.stat_result:
    """Check that ``file_path`` is an existing, readable regular file.

    Returns:
        The ``os.stat_result`` for the file, so callers can reuse its size
        and modification time.

    Raises:
        InvalidInputError: Empty path.
        NotFoundError: The path does not exist.
        PathIsDirectoryError: The path is a directory.
        PermissionDeniedError: The file cannot be read.
    """
    path = coerce_path(file_path)
    try:
        stats = await aiofiles.os.stat(path)
    except OSError as exc:
        raise translate_os_error(exc, path) from exc

    if stat.S_ISDIR(stats.st_mode):
        raise PathIsDirectoryError(
            f"Path is a directory, not a file: {path}", details={"path": str(path)}
        )
    if not stat.S_ISREG(stats.st_mode):
        raise InvalidInputError(
            f"Path is not a file: {path}", details={"path": str(path)}
        )
    if not os.access(path, os.R_OK):
        raise PermissionDeniedError(
            f"Permission denied reading file: {path}", details={"path": str(path)}
        )
    return stats


def file_extension(file_path: str | Path, default: str = ".md") -> str:
    return Path(file_path).suffix or default
