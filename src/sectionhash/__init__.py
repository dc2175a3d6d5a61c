"""Content-addressed document sections.

sectionhash splits a text document at bare ``---:`` divider lines, names each
section by a short hash of its normalized content, writes the sections to a
flat directory and rebuilds the original document from the annotated anchor
file.

Key components:
    - HybridProcessor: picks in-memory or streaming processing by file size
    - ContentHasher: normalized, truncated content hashes
    - SectionWriter: writes hash-named section files and the anchor file
    - DocumentReconstructor: rebuilds a document from its anchor file
    - load_config: settings from YAML, environment and overrides
    - cli: the ``sectionhash`` command

Example:
    >>> from sectionhash import split_content, ContentHasher
    >>> sections = split_content("Intro\\n---:\\nBody")
    >>> [ContentHasher().section_hash(s) for s in sections]  # doctest: +SKIP
    ['9B5C33E3', '1F0A4D7B']
"""

__version__ = "0.1.0"

from .config import SectionHashConfig, load_config
from .errors import (
    InvalidInputError,
    InvalidRangeError,
    LineTooLongError,
    MissingReferenceError,
    NotFoundError,
    PathIsDirectoryError,
    PermissionDeniedError,
    SectionHashError,
    WriteConflictError,
)
from .hashing import ContentHasher, normalize_content
from .processor import FileStats, HybridProcessor
from .reconstruct import (
    DocumentReconstructor,
    ReconstructionResult,
    Reference,
    extract_references,
)
from .sections import BoundaryScanner, Section, SectionMeta
from .splitter import InMemorySplitter, split_content
from .streaming import AnalysisResult, StreamingIndexer
from .timestamps import TimestampCodec
from .writer import SectionWriter, WriteResult, summarize

__all__ = [
    "__version__",
    "AnalysisResult",
    "BoundaryScanner",
    "ContentHasher",
    "DocumentReconstructor",
    "FileStats",
    "HybridProcessor",
    "InMemorySplitter",
    "InvalidInputError",
    "InvalidRangeError",
    "LineTooLongError",
    "MissingReferenceError",
    "NotFoundError",
    "PathIsDirectoryError",
    "PermissionDeniedError",
    "ReconstructionResult",
    "Reference",
    "Section",
    "SectionHashConfig",
    "SectionHashError",
    "SectionMeta",
    "SectionWriter",
    "StreamingIndexer",
    "TimestampCodec",
    "WriteConflictError",
    "WriteResult",
    "extract_references",
    "load_config",
    "normalize_content",
    "split_content",
    "summarize",
]
