"""Section model and divider boundary detection.

Both processing strategies share one boundary state machine,
:class:`BoundaryScanner`. The in-memory splitter feeds it lines from a list;
the streaming indexer feeds it lines read one at a time from disk. Because
the scanner only tracks line numbers and opaque offsets, neither strategy has
to hold the section text while boundaries are being found.

Boundary rules:
    - A line matching the bare divider ``---:`` closes the section being
      accumulated (when it holds at least one line) and opens a new section
      that starts with the divider line itself.
    - Content without dividers yields a single section.
    - Divider-only runs yield one single-line section per divider, so that
      joining every section's content with ``"\\n"`` always reproduces the
      source exactly.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any

DIVIDER_TOKEN = "---:"

BARE_DIVIDER_PATTERN = re.compile(r"---:\s*")
REFERENCE_DIVIDER_PATTERN = re.compile(
    r"---:\s+([A-F0-9]+)(?:\s+(\d{2}:\d{2}:\d{2}\s+\d{4}/\d{2}/\d{2}))?",
    re.IGNORECASE,
)
ENHANCED_DIVIDER_PATTERN = re.compile(
    r"---:\s+([A-F0-9]+)\s+(\d{2}:\d{2}:\d{2}\s+\d{4}/\d{2}/\d{2})",
    re.IGNORECASE,
)


def is_bare_divider(line: str) -> bool:
    return BARE_DIVIDER_PATTERN.fullmatch(line) is not None


def match_reference_divider(line: str) -> re.Match[str] | None:
    """Match ``---: <HASH>`` with an optional timestamp."""
    return REFERENCE_DIVIDER_PATTERN.fullmatch(line)


def is_enhanced_divider(line: str) -> bool:
    """True for the written ``---: <HASH> <timestamp>`` form."""
    return ENHANCED_DIVIDER_PATTERN.fullmatch(line) is not None


@dataclass(frozen=True)
class Section:
    """A contiguous slice of a source document.

    ``line_start`` and ``line_end`` are 1-based, inclusive, absolute line
    numbers into the source.
    """

    index: int
    content: str
    has_divider: bool
    divider_line: str | None
    line_start: int
    line_end: int

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SectionMeta:
    """Streaming view of a section: line range, byte range and hash only."""

    index: int
    start_line: int
    end_line: int
    line_count: int
    estimated_size: int
    hash: str
    has_divider: bool
    divider_line: str | None
    byte_start: int
    byte_end: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SectionSpan:
    """Boundary information for one closed section."""

    index: int
    start_line: int
    end_line: int
    has_divider: bool
    divider_line: str | None
    start_offset: int
    end_offset: int

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


class BoundaryScanner:
    """Push-based divider boundary detector.

    Call :meth:`feed` once per line in order and :meth:`finish` at the end of
    input. Both return a :class:`SectionSpan` when a section closes.

    Offsets are carried through untouched: callers that want byte ranges
    pass each line's start and end offsets, everyone else can ignore them.
    """

    def __init__(self) -> None:
        self.total_lines = 0
        self.divider_lines: list[int] = []
        self._index = 0
        self._start_line = 1
        self._line_count = 0
        self._has_divider = False
        self._divider_line: str | None = None
        self._start_offset = 0
        self._end_offset = 0

    def feed(
        self, line: str, start_offset: int = 0, end_offset: int = 0
    ) -> SectionSpan | None:
        self.total_lines += 1
        closed: SectionSpan | None = None

        if is_bare_divider(line):
            self.divider_lines.append(self.total_lines)
            if self._line_count:
                closed = self._close(self.total_lines - 1)
            self._has_divider = True
            self._divider_line = line

        if self._line_count == 0:
            self._start_line = self.total_lines
            self._start_offset = start_offset

        self._line_count += 1
        self._end_offset = end_offset
        return closed

    def finish(self) -> SectionSpan | None:
        if not self._line_count:
            return None
        return self._close(self.total_lines)

    def _close(self, end_line: int) -> SectionSpan:
        span = SectionSpan(
            index=self._index,
            start_line=self._start_line,
            end_line=end_line,
            has_divider=self._has_divider,
            divider_line=self._divider_line,
            start_offset=self._start_offset,
            end_offset=self._end_offset,
        )
        self._index += 1
        self._line_count = 0
        self._has_divider = False
        self._divider_line = None
        return span
