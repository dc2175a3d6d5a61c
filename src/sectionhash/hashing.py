"""Content addressing for document sections.

Hashes are computed over *normalized* text so that cosmetic differences
(CRLF vs LF line endings, surrounding whitespace, runs of trailing newlines)
never change a section's identity. A section's own divider line is excluded
before hashing, which keeps the hash stable when the divider is later
rewritten to carry the hash and a timestamp.
"""

from __future__ import annotations

import hashlib
import re
from typing import TYPE_CHECKING

from .errors import InvalidInputError

if TYPE_CHECKING:
    from .sections import Section

MIN_HASH_LENGTH = 8
MAX_HASH_LENGTH = 16
COMPARISON_ALGORITHMS = ("sha256", "sha1", "md5")

_TRAILING_NEWLINES = re.compile(r"\n+$")


def normalize_content(content: str) -> str:
    """Trim, unify line endings to LF and collapse trailing newlines to one."""
    normalized = content.strip().replace("\r\n", "\n").replace("\r", "\n")
    return _TRAILING_NEWLINES.sub("\n", normalized)


def strip_divider_line(content: str, divider_line: str | None) -> str:
    """Remove the first line equal to ``divider_line``.

    Content without that line is returned unchanged, so a section whose
    divider cannot be located is hashed whole.
    """
    if not divider_line:
        return content
    lines = content.split("\n")
    try:
        lines.pop(lines.index(divider_line))
    except ValueError:
        return content
    return "\n".join(lines)


class ContentHasher:
    """Deterministic, truncated, uppercase hex content hashes.

    Args:
        algorithm: Any ``hashlib`` algorithm name. Default: ``"sha256"``.
        length: Number of hex characters kept, between 8 and 16.

    Example:
        >>> hasher = ContentHasher()
        >>> hasher.hash("hello") == hasher.hash("hello\\r\\n\\n")
        True
    """

    def __init__(self, algorithm: str = "sha256", length: int = 8):
        if (
            algorithm not in hashlib.algorithms_available
            or algorithm.startswith("shake")
        ):
            raise InvalidInputError(f"Unsupported hash algorithm: {algorithm}")
        if not MIN_HASH_LENGTH <= length <= MAX_HASH_LENGTH:
            raise InvalidInputError(
                f"Hash length must be between {MIN_HASH_LENGTH} and "
                f"{MAX_HASH_LENGTH}, got {length}"
            )
        self.algorithm = algorithm
        self.length = length
        self._valid_pattern = re.compile(rf"[0-9A-F]{{{length}}}", re.IGNORECASE)

    def hash(self, content: str) -> str:
        if not isinstance(content, str):
            raise InvalidInputError("Content must be a string")
        return self._digest(self.algorithm, normalize_content(content))

    def section_hash(self, section: Section) -> str:
        """Hash a section's content with its own divider line removed."""
        return self.hash_without_divider(section.content, section.divider_line)

    def hash_without_divider(self, content: str, divider_line: str | None) -> str:
        if not isinstance(content, str):
            raise InvalidInputError("Content must be a string")
        return self.hash(strip_divider_line(content, divider_line))

    def multiple_hashes(self, content: str) -> dict[str, str | None]:
        """Hash with several digest families, for comparison only."""
        if not isinstance(content, str):
            raise InvalidInputError("Content must be a string")
        normalized = normalize_content(content)
        hashes: dict[str, str | None] = {}
        for algorithm in COMPARISON_ALGORITHMS:
            try:
                hashes[algorithm] = self._digest(algorithm, normalized)
            except ValueError:
                hashes[algorithm] = None
        return hashes

    def is_valid_hash(self, value: object) -> bool:
        return isinstance(value, str) and bool(self._valid_pattern.fullmatch(value))

    def _digest(self, algorithm: str, normalized: str) -> str:
        digest = hashlib.new(algorithm, normalized.encode("utf-8")).hexdigest()
        return digest[: self.length].upper()
