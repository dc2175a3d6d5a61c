"""In-memory splitting of divider-separated documents."""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles

from .errors import InvalidInputError, translate_os_error
from .files import validate_input_file
from .sections import BoundaryScanner, Section, SectionSpan

logger = logging.getLogger(__name__)


def split_content(content: str) -> list[Section]:
    """Split text into sections at bare ``---:`` divider lines.

    Args:
        content: The full document text.

    Returns:
        Sections in declaration order. Empty list if content is empty.

    Raises:
        InvalidInputError: If content is not a string.

    Example:
        >>> sections = split_content("A\\n\\n---:\\n\\nB")
        >>> [s.content for s in sections]
        ['A\\n', '---:\\n\\nB']
    """
    if not isinstance(content, str):
        raise InvalidInputError("Content must be a string")
    if not content:
        return []

    lines = content.split("\n")
    scanner = BoundaryScanner()
    spans: list[SectionSpan] = []
    for line in lines:
        span = scanner.feed(line)
        if span is not None:
            spans.append(span)
    last = scanner.finish()
    if last is not None:
        spans.append(last)

    return [
        Section(
            index=span.index,
            content="\n".join(lines[span.start_line - 1 : span.end_line]),
            has_divider=span.has_divider,
            divider_line=span.divider_line,
            line_start=span.start_line,
            line_end=span.end_line,
        )
        for span in spans
    ]


class InMemorySplitter:
    """Buffer a whole file and split it with :func:`split_content`."""

    method = "memory"

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def split(self, content: str) -> list[Section]:
        return split_content(content)

    async def read(self, file_path: str | Path) -> str:
        await validate_input_file(file_path)
        path = Path(file_path)
        try:
            # newline="" keeps "\r" so the text splits exactly like the bytes on disk
            async with aiofiles.open(path, encoding=self.encoding, newline="") as f:
                return await f.read()
        except OSError as exc:
            raise translate_os_error(exc, path) from exc
        except UnicodeDecodeError as exc:
            raise InvalidInputError(
                f"File content is not valid text: {path}", details={"path": str(path)}
            ) from exc

    async def read_and_split(self, file_path: str | Path) -> list[Section]:
        content = await self.read(file_path)
        sections = split_content(content)
        logger.debug("Split %s into %d sections in memory", file_path, len(sections))
        return sections
