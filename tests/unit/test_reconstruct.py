from __future__ import annotations

from pathlib import Path

import pytest

from sectionhash.config import SectionHashConfig
from sectionhash.errors import InvalidInputError, MissingReferenceError, NotFoundError
from sectionhash.hashing import ContentHasher
from sectionhash.reconstruct import (
    DocumentReconstructor,
    clean_referenced_content,
    extract_references,
)
from sectionhash.splitter import split_content
from sectionhash.writer import SectionWriter

DOCUMENT = "Intro\n\n---:\nFirst\n\n---:\nSecond"


async def _split_into(out: Path) -> Path:
    writer = SectionWriter(SectionHashConfig(output_dir=out))
    await writer.write_sections(split_content(DOCUMENT), "doc.md")
    return out / "doc.md"


def test_extract_references_example():
    extracted = extract_references("Intro\n\n---: ABCD1234\n---: EFAB5678")
    assert extracted.base_content == "Intro"
    assert [r.hash for r in extracted.references] == ["ABCD1234", "EFAB5678"]
    assert [r.line_number for r in extracted.references] == [3, 4]
    assert extracted.references[0].original_line == "---: ABCD1234"


def test_extract_references_normalizes_case_and_accepts_timestamps():
    extracted = extract_references("Base\n---: abcd1234 09:03:07 2024/01/05\n")
    assert extracted.base_content == "Base"
    assert [r.hash for r in extracted.references] == ["ABCD1234"]


def test_extract_references_without_references():
    extracted = extract_references("  plain text\n---:\nmore  \n")
    assert extracted.references == []
    assert extracted.base_content == "plain text\n---:\nmore"


def test_extract_references_rejects_non_string():
    with pytest.raises(InvalidInputError):
        extract_references(None)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("---: ABCD1234 09:03:07 2024/01/05\nBody", "---:\nBody"),
        ("---:\nBody", "---:\nBody"),
        ("---: ABCD1234\nBody", "---: ABCD1234\nBody"),
        (
            "Body\n---: ABCD1234 09:03:07 2024/01/05",
            "Body\n---: ABCD1234 09:03:07 2024/01/05",
        ),
    ],
)
def test_clean_referenced_content(content, expected):
    assert clean_referenced_content(content) == expected


@pytest.mark.asyncio
async def test_split_write_reconstruct(tmp_path: Path):
    anchor = await _split_into(tmp_path / "out")

    result = await DocumentReconstructor().reconstruct(anchor)

    assert result.content == "\n\n".join(["Intro", "---:\nFirst\n", "---:\nSecond"])
    assert len(result.references) == len(result.found) == 2
    assert result.missing == []
    assert result.search_dir == tmp_path / "out"


@pytest.mark.asyncio
async def test_reconstruct_document_returns_text(tmp_path: Path):
    anchor = await _split_into(tmp_path / "out")
    content = await DocumentReconstructor().reconstruct_document(anchor)
    assert content.startswith("Intro\n\n---:\nFirst")


@pytest.mark.asyncio
async def test_missing_reference_is_recorded(tmp_path: Path):
    out = tmp_path / "out"
    anchor = await _split_into(out)
    second = ContentHasher().hash("Second")
    (out / f"{second}.md").unlink()

    result = await DocumentReconstructor().reconstruct(anchor)

    assert [r.hash for r in result.missing] == [second]
    assert result.content == "Intro\n\n---:\nFirst\n"

    with pytest.raises(MissingReferenceError) as exc_info:
        await DocumentReconstructor().reconstruct(anchor, strict=True)
    assert exc_info.value.details["missing"] == [f"{second}.md"]


@pytest.mark.asyncio
async def test_input_dir_overrides_anchor_directory(tmp_path: Path):
    out = tmp_path / "out"
    anchor = await _split_into(out)
    moved = tmp_path / "elsewhere" / "doc.md"
    moved.parent.mkdir()
    anchor.rename(moved)

    default = await DocumentReconstructor().reconstruct(moved)
    assert len(default.missing) == 2

    result = await DocumentReconstructor(input_dir=out).reconstruct(moved)
    assert result.missing == []
    assert result.search_dir == out


@pytest.mark.asyncio
async def test_anchor_without_references(tmp_path: Path):
    path = tmp_path / "plain.md"
    path.write_text("\n  just text \n")
    result = await DocumentReconstructor().reconstruct(path)
    assert result.content == "just text"
    assert result.references == []


@pytest.mark.asyncio
async def test_missing_anchor(tmp_path: Path):
    with pytest.raises(NotFoundError):
        await DocumentReconstructor().reconstruct(tmp_path / "missing.md")


@pytest.mark.asyncio
async def test_validate_references(tmp_path: Path):
    out = tmp_path / "out"
    anchor = await _split_into(out)
    references = extract_references(anchor.read_text()).references

    validation = await DocumentReconstructor().validate_references(
        references + extract_references("---: FFFFFFFF").references, out
    )

    assert len(validation.found) == 2
    assert [r.hash for r in validation.missing] == ["FFFFFFFF"]


@pytest.mark.asyncio
async def test_analyze_file_is_read_only(tmp_path: Path):
    out = tmp_path / "out"
    anchor = await _split_into(out)
    (out / f"{ContentHasher().hash('First')}.md").unlink()
    before = {p.name: p.read_bytes() for p in out.iterdir()}

    analysis = await DocumentReconstructor().analyze_file(anchor)

    assert analysis.total_references == 2
    assert analysis.found_references == 1
    assert analysis.missing_references == 1
    assert analysis.missing_files == [f"{ContentHasher().hash('First')}.md"]
    assert analysis.base_content_length == len("Intro")
    assert analysis.file_size == anchor.stat().st_size
    assert analysis.to_dict()["total_references"] == 2
    assert {p.name: p.read_bytes() for p in out.iterdir()} == before


@pytest.mark.asyncio
async def test_undecodable_section_file_raises_invalid_input(tmp_path: Path):
    (tmp_path / "doc.md").write_text("Intro\n\n---: ABCD1234\n")
    (tmp_path / "ABCD1234.md").write_bytes(b"---:\n\xff\xfe")

    with pytest.raises(InvalidInputError, match="not valid text") as exc_info:
        await DocumentReconstructor().reconstruct(tmp_path / "doc.md")

    assert exc_info.value.details["path"].endswith("ABCD1234.md")


@pytest.mark.asyncio
async def test_undecodable_anchor_raises_invalid_input(tmp_path: Path):
    anchor = tmp_path / "doc.md"
    anchor.write_bytes(b"Intro \xff\n")

    with pytest.raises(InvalidInputError):
        await DocumentReconstructor().analyze_file(anchor)
