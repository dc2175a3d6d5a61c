"""Persist sections as content-addressed files.

Each non-anchor section is written to ``<HASH><ext>`` with its own divider
rewritten to ``---: <HASH> <timestamp>``. The anchor section (index 0, no
leading divider) keeps the source's base name and receives a trailing
reference block listing every other section's hash::

    Intro text

    ---: 3F2A9C01
    ---: 77B0E4D2

All hashes and filenames are planned before anything is written, and the
anchor is written once with its references already in place, so a re-run
never appends a second reference block.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .config import SectionHashConfig
from .errors import WriteConflictError, translate_os_error
from .hashing import ContentHasher
from .sections import Section
from .timestamps import TimestampCodec

logger = logging.getLogger(__name__)

REASON_WRITTEN = "written"
REASON_FILE_EXISTS = "file_exists"
REASON_DUPLICATE = "duplicate_content"
REASON_WRITE_ERROR = "write_error"


@dataclass
class WriteResult:
    """Outcome of writing one section."""

    success: bool
    reason: str
    section_index: int
    has_divider: bool
    hash: str | None = None
    filename: str | None = None
    file_path: Path | None = None
    size: int = 0
    timestamp: datetime | None = None
    is_anchor: bool = False
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.reason in (REASON_FILE_EXISTS, REASON_DUPLICATE)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["file_path"] = str(self.file_path) if self.file_path else None
        data["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return data


@dataclass(frozen=True)
class WriteSummary:
    written: int
    skipped: int
    failed: int
    total_bytes: int


@dataclass(frozen=True)
class OutputFileInfo:
    filename: str
    file_path: Path
    hash: str
    is_hash_file: bool
    size: int
    modified: datetime


@dataclass(frozen=True)
class _Plan:
    section: Section
    hash: str
    filename: str
    file_path: Path
    is_anchor: bool


def summarize(results: list[WriteResult]) -> WriteSummary:
    """Count written/skipped/failed results and total written bytes."""
    written = [r for r in results if r.success]
    return WriteSummary(
        written=len(written),
        skipped=sum(1 for r in results if r.skipped),
        failed=sum(1 for r in results if r.reason == REASON_WRITE_ERROR),
        total_bytes=sum(r.size for r in written),
    )


class SectionWriter:
    """Write sections into a flat output directory.

    Args:
        config: Settings; ``output_dir``, ``file_extension``, ``overwrite``,
            ``add_references``, ``shared_timestamp``, ``timezone`` and the
            hash settings are used here.
        hasher: Optional hasher; built from ``config`` when omitted.
        timestamps: Optional timestamp codec; built from ``config`` when omitted.
    """

    def __init__(
        self,
        config: SectionHashConfig | None = None,
        *,
        hasher: ContentHasher | None = None,
        timestamps: TimestampCodec | None = None,
    ):
        self.config = config or SectionHashConfig()
        self.output_dir = Path(self.config.output_dir)
        self.file_extension = self.config.file_extension
        self.hasher = hasher or ContentHasher(
            algorithm=self.config.hash_algorithm, length=self.config.hash_length
        )
        self.timestamps = timestamps or TimestampCodec(self.config.timezone)

    async def ensure_output_directory(self) -> None:
        if await aiofiles.os.path.isdir(self.output_dir):
            return
        try:
            await aiofiles.os.makedirs(self.output_dir, exist_ok=True)
        except OSError as exc:
            raise translate_os_error(exc, self.output_dir, "creating") from exc
        logger.info("Created output directory: %s", self.output_dir)

    def anchor_filename(self, source_filename: str | Path) -> str:
        return f"{Path(source_filename).stem}{self.file_extension}"

    def rewrite_divider(
        self, section: Section, hash_value: str, timestamp: datetime | None = None
    ) -> str:
        """Return the section content with its divider in canonical form."""
        if not section.has_divider or not section.divider_line:
            return section.content
        lines = section.content.split("\n")
        if lines[0] != section.divider_line:
            return section.content
        lines[0] = self.timestamps.create_divider_line(hash_value, timestamp)
        return "\n".join(lines)

    async def write_sections(
        self,
        sections: list[Section],
        source_filename: str | Path | None = None,
        *,
        shared_timestamp: bool | None = None,
        add_references: bool | None = None,
        strict: bool = False,
    ) -> list[WriteResult]:
        """Write every section and the anchor's reference block.

        Args:
            sections: Sections from a splitter, in document order.
            source_filename: Source path; its stem names the anchor file.
                Without it every section is written under its hash.
            shared_timestamp: Use one timestamp for every divider. Defaults
                to ``config.shared_timestamp``.
            add_references: Append the reference block to the anchor.
                Defaults to ``config.add_references``.
            strict: Raise instead of skipping when a target file already
                exists. Checked for every planned file before anything is
                written. Ignored when ``config.overwrite`` is set.

        Returns:
            One :class:`WriteResult` per section, in section order.

        Raises:
            WriteConflictError: Only with ``strict=True``, when a target file
                already exists.
        """
        if shared_timestamp is None:
            shared_timestamp = self.config.shared_timestamp
        if add_references is None:
            add_references = self.config.add_references

        await self.ensure_output_directory()
        shared_time = datetime.now() if shared_timestamp else None
        plans = [self._plan(section, source_filename) for section in sections]
        if strict and not self.config.overwrite:
            await self._check_conflicts(plans)

        results: dict[int, WriteResult] = {}
        references: list[str] = []
        # filename -> whether this batch wrote it
        claimed: dict[str, bool] = {}
        anchor_position: int | None = None

        for position, plan in enumerate(plans):
            if plan.is_anchor:
                anchor_position = position
                continue
            if plan.filename in claimed:
                results[position] = self._result(plan, REASON_DUPLICATE)
                if claimed[plan.filename]:
                    references.append(plan.hash)
                logger.info("Duplicate content: %s already planned", plan.filename)
                continue
            timestamp = shared_time or datetime.now()
            content = self.rewrite_divider(plan.section, plan.hash, timestamp)
            result = await self._write(plan, content, timestamp)
            results[position] = result
            claimed[plan.filename] = result.success
            if result.success:
                references.append(plan.hash)

        if anchor_position is not None:
            anchor = plans[anchor_position]
            content = anchor.section.content
            if add_references and references:
                reference_block = "\n".join(f"---: {h}" for h in references)
                content = f"{content.strip()}\n\n{reference_block}\n"
            result = await self._write(anchor, content, shared_time or datetime.now())
            if result.success and add_references and references:
                logger.info(
                    "Added %d references to: %s", len(references), anchor.filename
                )
            results[anchor_position] = result

        return [results[position] for position in range(len(plans))]

    async def clean_output_directory(self) -> list[str]:
        """Delete every regular file in the output directory."""
        if not await aiofiles.os.path.isdir(self.output_dir):
            logger.info("Output directory %s does not exist", self.output_dir)
            return []
        removed: list[str] = []
        try:
            for name in sorted(await aiofiles.os.listdir(self.output_dir)):
                path = self.output_dir / name
                if await aiofiles.os.path.isfile(path):
                    await aiofiles.os.remove(path)
                    removed.append(name)
                    logger.debug("Removed: %s", name)
        except OSError as exc:
            raise translate_os_error(exc, self.output_dir, "cleaning") from exc
        logger.info("Cleaned output directory: %s", self.output_dir)
        return removed

    async def get_output_file_info(self) -> list[OutputFileInfo]:
        if not await aiofiles.os.path.isdir(self.output_dir):
            return []
        infos: list[OutputFileInfo] = []
        try:
            for name in await aiofiles.os.listdir(self.output_dir):
                path = self.output_dir / name
                if not name.endswith(self.file_extension):
                    continue
                if not await aiofiles.os.path.isfile(path):
                    continue
                stats = await aiofiles.os.stat(path)
                infos.append(
                    OutputFileInfo(
                        filename=name,
                        file_path=path,
                        hash=name[: -len(self.file_extension)]
                        if self.file_extension
                        else name,
                        is_hash_file=self.is_valid_hash_filename(name),
                        size=stats.st_size,
                        modified=datetime.fromtimestamp(stats.st_mtime),
                    )
                )
        except OSError as exc:
            raise translate_os_error(exc, self.output_dir, "listing") from exc
        return sorted(infos, key=lambda info: info.filename)

    def is_valid_hash_filename(self, filename: str) -> bool:
        name = Path(filename).name
        if self.file_extension and name.endswith(self.file_extension):
            name = name[: -len(self.file_extension)]
        return self.hasher.is_valid_hash(name)

    def _plan(self, section: Section, source_filename: str | Path | None) -> _Plan:
        hash_value = self.hasher.section_hash(section)
        is_anchor = (
            section.index == 0 and not section.has_divider and bool(source_filename)
        )
        if is_anchor:
            filename = self.anchor_filename(source_filename)
        else:
            filename = f"{hash_value}{self.file_extension}"
        return _Plan(
            section=section,
            hash=hash_value,
            filename=filename,
            file_path=self.output_dir / filename,
            is_anchor=is_anchor,
        )

    def _result(self, plan: _Plan, reason: str, **extra: Any) -> WriteResult:
        return WriteResult(
            success=reason == REASON_WRITTEN,
            reason=reason,
            section_index=plan.section.index,
            has_divider=plan.section.has_divider,
            hash=plan.hash,
            filename=plan.filename,
            file_path=plan.file_path,
            is_anchor=plan.is_anchor,
            **extra,
        )

    async def _check_conflicts(self, plans: list[_Plan]) -> None:
        existing = sorted(
            {p.filename for p in plans if await aiofiles.os.path.exists(p.file_path)}
        )
        if existing:
            raise WriteConflictError(
                f"Files already exist: {', '.join(existing)}",
                details={"existing": existing, "output_dir": str(self.output_dir)},
            )

    async def _write(
        self, plan: _Plan, content: str, timestamp: datetime
    ) -> WriteResult:
        if not self.config.overwrite and await aiofiles.os.path.exists(plan.file_path):
            logger.warning("File %s already exists, skipping", plan.filename)
            return self._result(plan, REASON_FILE_EXISTS)

        try:
            async with aiofiles.open(
                plan.file_path, "w", encoding="utf-8", newline=""
            ) as f:
                await f.write(content)
            stats = await aiofiles.os.stat(plan.file_path)
        except OSError as exc:
            error = translate_os_error(exc, plan.file_path, "writing")
            logger.error(
                "Failed to write section %d: %s",
                plan.section.index,
                error.message,
                extra={"error_type": type(error).__name__},
            )
            return self._result(plan, REASON_WRITE_ERROR, error=error.message)

        logger.info("Written: %s (%d bytes)", plan.filename, stats.st_size)
        return self._result(
            plan, REASON_WRITTEN, size=stats.st_size, timestamp=timestamp
        )
