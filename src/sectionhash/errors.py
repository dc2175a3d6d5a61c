"""Error taxonomy for section splitting, writing and reconstruction.

Every error raised across a component boundary is a ``SectionHashError``
subclass carrying a machine-readable ``code`` and a ``details`` mapping so
the CLI and the HTTP layer can report failures uniformly.

Missing references and write conflicts are normally downgraded to recorded
outcomes. Passing ``strict=True`` to ``DocumentReconstructor.reconstruct`` or
``SectionWriter.write_sections`` raises them instead.
"""

from __future__ import annotations

import errno
from pathlib import Path
from typing import Any


class SectionHashError(Exception):
    """Base error with a stable code and structured context."""

    code = "error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logging/API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class InvalidInputError(SectionHashError, ValueError):
    code = "invalid_input"


class NotFoundError(SectionHashError, FileNotFoundError):
    code = "not_found"


class PermissionDeniedError(SectionHashError, PermissionError):
    code = "permission_denied"


class PathIsDirectoryError(SectionHashError, IsADirectoryError):
    code = "is_a_directory"


class LineTooLongError(SectionHashError):
    code = "line_too_long"

    def __init__(self, line_number: int, max_length: int):
        super().__init__(
            f"Line {line_number} exceeds maximum length ({max_length} chars)",
            details={"line_number": line_number, "max_length": max_length},
        )
        self.line_number = line_number
        self.max_length = max_length


class InvalidRangeError(SectionHashError, ValueError):
    code = "invalid_range"


class MissingReferenceError(SectionHashError):
    code = "missing_reference"


class WriteConflictError(SectionHashError):
    code = "write_conflict"


def translate_os_error(
    exc: OSError, path: str | Path, action: str = "reading"
) -> SectionHashError:
    """Map a low-level ``OSError`` onto the taxonomy.

    Returns the translated error so callers can ``raise ... from exc``.
    """
    details = {"path": str(path), "errno": exc.errno}
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return NotFoundError(f"File not found: {path}", details=details)
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return PermissionDeniedError(
            f"Permission denied {action} file: {path}", details=details
        )
    if isinstance(exc, IsADirectoryError) or exc.errno == errno.EISDIR:
        return PathIsDirectoryError(
            f"Path is a directory, not a file: {path}", details=details
        )
    return SectionHashError(f"Failed {action} file {path}: {exc}", details=details)
