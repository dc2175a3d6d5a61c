"""Rebuild a split document from its anchor file.

Reconstruction reads the anchor's trailing reference block, resolves each
``---: <HASH>`` line to ``<HASH><ext>`` in the search directory, collapses
each section's written divider back to a bare ``---:`` and joins everything
with one blank line between parts. Missing section files are reported, not
fatal, unless ``strict`` is requested.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .config import SectionHashConfig
from .errors import InvalidInputError, MissingReferenceError, translate_os_error
from .files import coerce_path
from .sections import DIVIDER_TOKEN, is_enhanced_divider, match_reference_divider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    hash: str
    original_line: str
    line_number: int


@dataclass(frozen=True)
class ExtractedReferences:
    base_content: str
    references: list[Reference]


@dataclass
class ReferenceValidation:
    found: list[Reference] = field(default_factory=list)
    missing: list[Reference] = field(default_factory=list)


@dataclass
class ReconstructionResult:
    content: str
    references: list[Reference]
    found: list[Reference]
    missing: list[Reference]
    search_dir: Path


@dataclass
class FileAnalysis:
    file_path: str
    file_size: int
    base_content_length: int
    total_references: int
    found_references: int
    missing_references: int
    references: list[Reference]
    missing_files: list[str]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_references(content: str) -> ExtractedReferences:
    """Split an anchor document into base content and its references.

    Every line of the form ``---: <HASH>`` (optionally followed by a
    timestamp) is a reference. Base content is everything before the first
    reference, minus the blank lines that separate it from the block.

    Example:
        >>> extracted = extract_references("Intro\\n\\n---: ABCD1234\\n---: EFAB5678")
        >>> extracted.base_content, [r.hash for r in extracted.references]
        ('Intro', ['ABCD1234', 'EFAB5678'])
    """
    if not isinstance(content, str):
        raise InvalidInputError("Content must be a string")

    lines = content.split("\n")
    references: list[Reference] = []
    first_index: int | None = None
    for index, line in enumerate(lines):
        match = match_reference_divider(line)
        if match is None:
            continue
        references.append(
            Reference(
                hash=match.group(1).upper(),
                original_line=line,
                line_number=index + 1,
            )
        )
        if first_index is None:
            first_index = index

    if first_index is None:
        return ExtractedReferences(base_content=content.strip(), references=[])

    block_start = first_index
    while block_start > 0 and not lines[block_start - 1].strip():
        block_start -= 1

    return ExtractedReferences(
        base_content="\n".join(lines[:block_start]).strip(), references=references
    )


def clean_referenced_content(content: str) -> str:
    """Collapse a leading ``---: <HASH> <timestamp>`` line to a bare divider."""
    lines = content.split("\n")
    if lines and is_enhanced_divider(lines[0]):
        lines[0] = DIVIDER_TOKEN
    return "\n".join(lines)


class DocumentReconstructor:
    """Reconstruct documents written by :class:`~sectionhash.writer.SectionWriter`.

    Args:
        config: Settings; ``file_extension`` is used here.
        input_dir: Directory holding the section files. Defaults to the
            anchor file's own directory.
    """

    def __init__(
        self,
        config: SectionHashConfig | None = None,
        *,
        input_dir: str | Path | None = None,
    ):
        self.config = config or SectionHashConfig()
        self.file_extension = self.config.file_extension
        self.input_dir = Path(input_dir) if input_dir else None

    def search_dir_for(self, main_file_path: str | Path) -> Path:
        return self.input_dir or Path(main_file_path).parent

    def reference_path(self, reference: Reference, search_dir: Path) -> Path:
        return search_dir / f"{reference.hash}{self.file_extension}"

    async def reconstruct_document(
        self, main_file_path: str | Path, *, strict: bool = False
    ) -> str:
        result = await self.reconstruct(main_file_path, strict=strict)
        return result.content

    async def reconstruct(
        self, main_file_path: str | Path, *, strict: bool = False
    ) -> ReconstructionResult:
        """Rebuild the document rooted at ``main_file_path``.

        Raises:
            InvalidInputError: Empty path, or the anchor or a section file
                is not valid UTF-8.
            NotFoundError: The anchor file does not exist.
            PermissionDeniedError: The anchor or a section file is unreadable.
            MissingReferenceError: Only with ``strict=True``, when any
                referenced file is missing.
        """
        path = coerce_path(main_file_path)
        extracted = extract_references(await self._read(path))
        search_dir = self.search_dir_for(path)

        if not extracted.references:
            logger.info("No references found in %s", path)
            return ReconstructionResult(
                content=extracted.base_content,
                references=[],
                found=[],
                missing=[],
                search_dir=search_dir,
            )

        logger.info("Found %d references to reconstruct", len(extracted.references))
        validation = await self.validate_references(extracted.references, search_dir)
        if validation.missing:
            missing_files = [
                self.reference_path(r, search_dir).name for r in validation.missing
            ]
            if strict:
                raise MissingReferenceError(
                    f"Referenced files not found: {', '.join(missing_files)}",
                    details={"missing": missing_files, "search_dir": str(search_dir)},
                )
            for name in missing_files:
                logger.warning("Referenced file not found: %s", name)

        parts = [extracted.base_content]
        for reference in validation.found:
            section_path = self.reference_path(reference, search_dir)
            parts.append(clean_referenced_content(await self._read(section_path)))
            logger.debug("Added content from: %s", section_path.name)

        return ReconstructionResult(
            content="\n\n".join(parts),
            references=extracted.references,
            found=validation.found,
            missing=validation.missing,
            search_dir=search_dir,
        )

    async def validate_references(
        self, references: list[Reference], search_dir: str | Path
    ) -> ReferenceValidation:
        """Partition references by whether their file exists. Read-only."""
        validation = ReferenceValidation()
        for reference in references:
            if await aiofiles.os.path.isfile(
                self.reference_path(reference, Path(search_dir))
            ):
                validation.found.append(reference)
            else:
                validation.missing.append(reference)
        return validation

    async def analyze_file(self, file_path: str | Path) -> FileAnalysis:
        """Summarise an anchor file's references without modifying anything."""
        path = coerce_path(file_path)
        extracted = extract_references(await self._read(path))
        search_dir = self.search_dir_for(path)
        validation = await self.validate_references(extracted.references, search_dir)
        try:
            stats = await aiofiles.os.stat(path)
        except OSError as exc:
            raise translate_os_error(exc, path) from exc

        return FileAnalysis(
            file_path=str(path),
            file_size=stats.st_size,
            base_content_length=len(extracted.base_content),
            total_references=len(extracted.references),
            found_references=len(validation.found),
            missing_references=len(validation.missing),
            references=extracted.references,
            missing_files=[
                self.reference_path(r, search_dir).name for r in validation.missing
            ],
        )

    @staticmethod
    async def _read(path: Path) -> str:
        try:
            async with aiofiles.open(path, encoding="utf-8", newline="") as f:
                return await f.read()
        except UnicodeDecodeError as exc:
            raise InvalidInputError(
                f"File content is not valid text: {path}", details={"path": str(path)}
            ) from exc
        except OSError as exc:
            raise translate_os_error(exc, path) from exc
