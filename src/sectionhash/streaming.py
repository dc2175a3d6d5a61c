"""Bounded-memory streaming indexer for large divider-separated documents.

The indexer walks a file once, line by line, feeding each line to the shared
:class:`~sectionhash.sections.BoundaryScanner`. It never keeps more than one
line of the forward pass in memory. When a section closes, its text is
re-read with a single seek+read of exactly its byte range to compute the
content hash; these re-reads are disjoint, so the total extra I/O never
exceeds the file size.

Lines are split on ``"\\n"`` only and a trailing newline yields a final empty
line, matching ``str.split("\\n")`` so that streaming and in-memory results
are identical for the same file.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles

from .errors import (
    InvalidInputError,
    InvalidRangeError,
    LineTooLongError,
    translate_os_error,
)
from .files import coerce_path, validate_input_file
from .hashing import ContentHasher
from .sections import BoundaryScanner, Section, SectionMeta, SectionSpan

logger = logging.getLogger(__name__)

# Widest UTF-8 encoding of one character, used to bound a line read in bytes.
_MAX_BYTES_PER_CHAR = 4


@dataclass
class AnalysisResult:
    """Section metadata for one file, built without buffering its content."""

    file_path: str
    total_lines: int = 0
    total_size: int = 0
    sections: list[SectionMeta] = field(default_factory=list)
    divider_lines: list[int] = field(default_factory=list)
    hash_index: dict[str, SectionMeta] = field(default_factory=dict)
    last_modified: datetime | None = None
    encoding: str = "utf-8"
    processing_method: str = "streaming"

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "total_lines": self.total_lines,
            "total_size": self.total_size,
            "sections": [s.to_dict() for s in self.sections],
            "divider_lines": list(self.divider_lines),
            "hash_index": list(self.hash_index),
            "last_modified": self.last_modified.isoformat()
            if self.last_modified
            else None,
            "encoding": self.encoding,
            "processing_method": self.processing_method,
        }


@dataclass(frozen=True)
class _Line:
    number: int
    text: str
    start_offset: int
    end_offset: int


class StreamingIndexer:
    """Index sections of a file with one sequential pass.

    Args:
        hasher: Hasher used for section hashes.
        max_line_length: Longest accepted line, in characters. Longer lines
            raise :class:`LineTooLongError`.
        chunk_size: Read buffer size in bytes.
        encoding: Text encoding of the input.
    """

    method = "streaming"

    def __init__(
        self,
        hasher: ContentHasher | None = None,
        *,
        max_line_length: int = 10_000,
        chunk_size: int = 64 * 1024,
        encoding: str = "utf-8",
    ):
        self.hasher = hasher or ContentHasher()
        self.max_line_length = max_line_length
        self.chunk_size = chunk_size
        self.encoding = encoding

    async def analyze(self, file_path: str | Path) -> AnalysisResult:
        stats = await validate_input_file(file_path)
        path = coerce_path(file_path)
        result = AnalysisResult(
            file_path=str(path),
            total_size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime),
            encoding=self.encoding,
        )
        scanner = BoundaryScanner()

        try:
            async with self._open(path) as source:
                async with self._open(path) as reader:
                    async for line in self._iter_lines(source):
                        span = scanner.feed(
                            line.text, line.start_offset, line.end_offset
                        )
                        if span is not None:
                            meta = await self._build_meta(reader, span)
                            self._add_section(result, meta)
                    span = scanner.finish()
                    if span is not None:
                        meta = await self._build_meta(reader, span)
                        self._add_section(result, meta)
        except OSError as exc:
            raise translate_os_error(exc, path) from exc

        result.total_lines = scanner.total_lines
        result.divider_lines = list(scanner.divider_lines)
        logger.debug(
            "Indexed %s: %d lines, %d sections",
            path,
            result.total_lines,
            len(result.sections),
        )
        return result

    async def extract_section(
        self, file_path: str | Path, start_line: int, end_line: int
    ) -> str:
        """Return the text of the inclusive 1-based line range.

        Raises:
            InvalidRangeError: If ``start_line < 1`` or ``end_line < start_line``.
        """
        if start_line < 1 or end_line < start_line:
            raise InvalidRangeError(
                "Invalid line range",
                details={"start_line": start_line, "end_line": end_line},
            )
        await validate_input_file(file_path)
        path = coerce_path(file_path)

        lines: list[str] = []
        try:
            async with self._open(path) as source:
                async for line in self._iter_lines(source):
                    if line.number > end_line:
                        break
                    if line.number >= start_line:
                        lines.append(line.text)
        except OSError as exc:
            raise translate_os_error(exc, path) from exc
        return "\n".join(lines)

    async def read_section(self, file_path: str | Path, meta: SectionMeta) -> str:
        """Re-read one indexed section using its byte range."""
        path = coerce_path(file_path)
        try:
            async with self._open(path) as reader:
                return await self._read_range(reader, meta.byte_start, meta.byte_end)
        except OSError as exc:
            raise translate_os_error(exc, path) from exc

    async def stream_split(self, file_path: str | Path) -> list[Section]:
        analysis = await self.analyze(file_path)
        path = coerce_path(file_path)
        sections: list[Section] = []
        try:
            async with self._open(path) as reader:
                for meta in analysis.sections:
                    content = await self._read_range(
                        reader, meta.byte_start, meta.byte_end
                    )
                    sections.append(
                        Section(
                            index=meta.index,
                            content=content,
                            has_divider=meta.has_divider,
                            divider_line=meta.divider_line,
                            line_start=meta.start_line,
                            line_end=meta.end_line,
                        )
                    )
        except OSError as exc:
            raise translate_os_error(exc, path) from exc
        return sections

    async def find_section_by_hash(
        self, file_path: str | Path, hash_value: str
    ) -> SectionMeta | None:
        """Look up a section by hash.

        Runs a full :meth:`analyze` on every call. Callers doing repeated
        lookups against the same file should keep the analysis themselves.
        """
        analysis = await self.analyze(file_path)
        return analysis.hash_index.get(hash_value.upper())

    async def get_file_stats(self, file_path: str | Path) -> dict[str, Any]:
        analysis = await self.analyze(file_path)
        section_count = len(analysis.sections)
        return {
            "total_lines": analysis.total_lines,
            "total_size": analysis.total_size,
            "section_count": section_count,
            "divider_count": len(analysis.divider_lines),
            "average_section_size": round(analysis.total_size / section_count)
            if section_count
            else 0,
            "last_modified": analysis.last_modified,
            "encoding": analysis.encoding,
            "hash_index": list(analysis.hash_index),
        }

    def _open(self, path: Path):
        return aiofiles.open(path, "rb", buffering=self.chunk_size)

    async def _iter_lines(self, source) -> AsyncIterator[_Line]:
        limit = self.max_line_length * _MAX_BYTES_PER_CHAR + 2
        number = 0
        offset = 0
        terminated = False
        while True:
            raw = await source.readline(limit)
            if not raw:
                break
            number += 1
            terminated = raw.endswith(b"\n")
            if not terminated and len(raw) >= limit:
                raise LineTooLongError(number, self.max_line_length)
            body = raw[:-1] if terminated else raw
            text = self._decode(body, number)
            if len(text) > self.max_line_length:
                raise LineTooLongError(number, self.max_line_length)
            yield _Line(number, text, offset, offset + len(body))
            offset += len(raw)

        if terminated:
            yield _Line(number + 1, "", offset, offset)

    def _decode(self, data: bytes, line_number: int) -> str:
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise InvalidInputError(
                f"Line {line_number} is not valid {self.encoding} text",
                details={"line_number": line_number},
            ) from exc

    async def _read_range(self, reader, start: int, end: int) -> str:
        await reader.seek(start)
        data = await reader.read(end - start)
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise InvalidInputError(
                f"Section at bytes {start}-{end} is not valid {self.encoding} text"
            ) from exc

    async def _build_meta(self, reader, span: SectionSpan) -> SectionMeta:
        content = await self._read_range(reader, span.start_offset, span.end_offset)
        return SectionMeta(
            index=span.index,
            start_line=span.start_line,
            end_line=span.end_line,
            line_count=span.line_count,
            estimated_size=span.end_offset - span.start_offset,
            hash=self.hasher.hash_without_divider(content, span.divider_line),
            has_divider=span.has_divider,
            divider_line=span.divider_line,
            byte_start=span.start_offset,
            byte_end=span.end_offset,
        )

    @staticmethod
    def _add_section(result: AnalysisResult, meta: SectionMeta) -> None:
        result.sections.append(meta)
        # first occurrence wins for duplicate content
        result.hash_index.setdefault(meta.hash, meta)
