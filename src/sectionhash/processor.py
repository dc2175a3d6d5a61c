"""Strategy selection between in-memory and streaming processing.

:class:`HybridProcessor` is the single integration surface used by the CLI
and the HTTP layer. Every operation stats the input, compares its size with
``streaming_threshold`` and delegates to :class:`InMemorySplitter` or
:class:`StreamingIndexer`. Both strategies share the same boundary scanner
and hasher, so for a given file they return the same sections, hashes and
statistics; only memory use and speed differ.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .config import SectionHashConfig
from .errors import InvalidRangeError
from .files import coerce_path, file_extension, validate_input_file
from .hashing import ContentHasher
from .sections import Section, SectionMeta
from .splitter import InMemorySplitter, split_content
from .streaming import AnalysisResult, StreamingIndexer

logger = logging.getLogger(__name__)


@dataclass
class FileStats:
    """Statistics record shared by both processing strategies."""

    section_count: int
    total_size: int
    average_section_size: int
    last_modified: datetime | None
    processing_method: str
    total_lines: int = 0
    divider_count: int = 0
    streaming_threshold: int = 0
    hash_index: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_modified"] = (
            self.last_modified.isoformat() if self.last_modified else None
        )
        return data


def format_bytes(size: int) -> str:
    """Render a byte count for humans, e.g. ``10485760`` -> ``"10 MB"``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {units[unit]}"


def build_section_metadata(
    sections: list[Section], hasher: ContentHasher
) -> list[SectionMeta]:
    """Derive streaming-style metadata from fully buffered sections."""
    metas: list[SectionMeta] = []
    offset = 0
    for section in sections:
        size = section.size
        metas.append(
            SectionMeta(
                index=section.index,
                start_line=section.line_start,
                end_line=section.line_end,
                line_count=section.line_end - section.line_start + 1,
                estimated_size=size,
                hash=hasher.section_hash(section),
                has_divider=section.has_divider,
                divider_line=section.divider_line,
                byte_start=offset,
                byte_end=offset + size,
            )
        )
        # sections are joined by a single "\n"
        offset += size + 1
    return metas


class HybridProcessor:
    """Choose streaming or in-memory processing by file size.

    Args:
        config: Settings; ``streaming_threshold``, ``max_line_length``,
            ``hash_algorithm`` and ``hash_length`` are used here.
    """

    def __init__(self, config: SectionHashConfig | None = None):
        self.config = config or SectionHashConfig()
        self.hasher = ContentHasher(
            algorithm=self.config.hash_algorithm, length=self.config.hash_length
        )
        self.memory_processor = InMemorySplitter()
        self.streaming_processor = StreamingIndexer(
            self.hasher,
            max_line_length=self.config.max_line_length,
            chunk_size=self.config.chunk_size,
        )

    @property
    def streaming_threshold(self) -> int:
        return self.config.streaming_threshold

    async def should_use_streaming(self, file_path: str | Path) -> bool:
        stats = await validate_input_file(file_path)
        return stats.st_size > self.streaming_threshold

    async def read_and_split(self, file_path: str | Path) -> list[Section]:
        stats = await validate_input_file(file_path)
        if stats.st_size > self.streaming_threshold:
            logger.info(
                "Large file detected (%s), using streaming processor",
                format_bytes(stats.st_size),
            )
            return await self.streaming_processor.stream_split(file_path)
        logger.info(
            "Small file (%s), using memory processor", format_bytes(stats.st_size)
        )
        return await self.memory_processor.read_and_split(file_path)

    async def analyze_file(self, file_path: str | Path) -> AnalysisResult:
        stats = await validate_input_file(file_path)
        if stats.st_size > self.streaming_threshold:
            return await self.streaming_processor.analyze(file_path)

        path = coerce_path(file_path)
        content = await self.memory_processor.read(path)
        sections = split_content(content)
        metas = build_section_metadata(sections, self.hasher)
        hash_index: dict[str, SectionMeta] = {}
        for meta in metas:
            hash_index.setdefault(meta.hash, meta)
        return AnalysisResult(
            file_path=str(path),
            total_lines=len(content.split("\n")) if content else 0,
            total_size=stats.st_size,
            sections=metas,
            divider_lines=[s.line_start for s in sections if s.has_divider],
            hash_index=hash_index,
            last_modified=datetime.fromtimestamp(stats.st_mtime),
            encoding=self.memory_processor.encoding,
            processing_method="memory",
        )

    async def get_file_stats(self, file_path: str | Path) -> FileStats:
        use_streaming = await self.should_use_streaming(file_path)
        analysis = await self.analyze_file(file_path)
        section_count = len(analysis.sections)
        return FileStats(
            section_count=section_count,
            total_size=analysis.total_size,
            average_section_size=round(analysis.total_size / section_count)
            if section_count
            else 0,
            last_modified=analysis.last_modified,
            processing_method="streaming" if use_streaming else "memory",
            total_lines=analysis.total_lines,
            divider_count=len(analysis.divider_lines),
            streaming_threshold=self.streaming_threshold,
            hash_index=list(analysis.hash_index),
        )

    async def find_section_by_hash(
        self, file_path: str | Path, hash_value: str
    ) -> SectionMeta | None:
        analysis = await self.analyze_file(file_path)
        return analysis.hash_index.get(hash_value.upper())

    async def extract_section(self, file_path: str | Path, section_index: int) -> str:
        """Return the content of the section at ``section_index`` (0-based)."""
        if await self.should_use_streaming(file_path):
            analysis = await self.streaming_processor.analyze(file_path)
            self._check_index(section_index, len(analysis.sections))
            meta = analysis.sections[section_index]
            return await self.streaming_processor.read_section(file_path, meta)

        sections = await self.memory_processor.read_and_split(file_path)
        self._check_index(section_index, len(sections))
        return sections[section_index].content

    async def get_processing_recommendation(
        self, file_path: str | Path
    ) -> dict[str, Any]:
        stats = await validate_input_file(file_path)
        use_streaming = stats.st_size > self.streaming_threshold
        return {
            "file_path": str(file_path),
            "file_size": stats.st_size,
            "file_size_formatted": format_bytes(stats.st_size),
            "streaming_threshold": self.streaming_threshold,
            "streaming_threshold_formatted": format_bytes(self.streaming_threshold),
            "recommended_method": "streaming" if use_streaming else "memory",
            "use_streaming": use_streaming,
            "estimated_memory_usage": "Low (streaming)"
            if use_streaming
            else format_bytes(stats.st_size * 2),
            "benefits": [
                "Low memory usage",
                "Handles very large files",
                "Scalable for server use",
            ]
            if use_streaming
            else [
                "Faster processing",
                "Simpler error handling",
                "Better for small files",
            ],
        }

    async def validate_input_file(self, file_path: str | Path) -> bool:
        await validate_input_file(file_path)
        return True

    def get_file_extension(self, file_path: str | Path) -> str:
        return file_extension(file_path, self.config.file_extension)

    def split_content(self, content: str) -> list[Section]:
        return split_content(content)

    def get_config(self) -> dict[str, Any]:
        return {
            "streaming_threshold": self.streaming_threshold,
            "streaming_threshold_formatted": format_bytes(self.streaming_threshold),
            "max_line_length": self.config.max_line_length,
            "chunk_size": self.config.chunk_size,
            "hash_algorithm": self.hasher.algorithm,
            "hash_length": self.hasher.length,
        }

    @staticmethod
    def _check_index(section_index: int, section_count: int) -> None:
        if not 0 <= section_index < section_count:
            raise InvalidRangeError(
                f"Section index {section_index} out of range",
                details={"section_index": section_index, "count": section_count},
            )
