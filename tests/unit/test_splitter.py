from __future__ import annotations

from pathlib import Path

import pytest

from sectionhash.errors import InvalidInputError, NotFoundError
from sectionhash.splitter import InMemorySplitter, split_content

ROUND_TRIP_SAMPLES = [
    "A\n\n---:\n\nB",
    "Intro\n---:\nOne\n---:\nTwo\n",
    "---:\nstarts with a divider",
    "---:\n---:\n---:",
    "A\r\n---:\r\nB\r\n",
    "unicode é ✓\n---:   \nmore ☃",
    "A\n---:\n\n\n",
]


def test_split_example_document():
    sections = split_content("A\n\n---:\n\nB")
    assert [s.content for s in sections] == ["A\n", "---:\n\nB"]
    assert sections[0].has_divider is False
    assert sections[0].divider_line is None
    assert (sections[0].line_start, sections[0].line_end) == (1, 2)
    assert sections[1].has_divider is True
    assert sections[1].divider_line == "---:"
    assert (sections[1].line_start, sections[1].line_end) == (3, 5)


@pytest.mark.parametrize("text", ROUND_TRIP_SAMPLES)
def test_joining_sections_reproduces_input(text):
    sections = split_content(text)
    assert "\n".join(s.content for s in sections) == text
    assert [s.index for s in sections] == list(range(len(sections)))


def test_empty_content_has_no_sections():
    assert split_content("") == []


def test_content_without_dividers_is_one_section():
    sections = split_content("just text\nmore text")
    assert len(sections) == 1
    assert sections[0].has_divider is False
    assert sections[0].content == "just text\nmore text"


def test_consecutive_dividers_yield_single_line_sections():
    sections = split_content("---:\n---:")
    assert [s.content for s in sections] == ["---:", "---:"]
    assert all(s.has_divider for s in sections)


def test_only_bare_dividers_split():
    sections = split_content("A\n---: ABCD1234\n  ---:\n---:x\nB")
    assert len(sections) == 1


def test_divider_with_trailing_whitespace_is_bare():
    sections = split_content("A\n---:  \t\nB")
    assert len(sections) == 2
    assert sections[1].divider_line == "---:  \t"


def test_crlf_divider_is_recognised():
    sections = split_content("A\r\n---:\r\nB")
    assert [s.content for s in sections] == ["A\r", "---:\r\nB"]
    assert sections[1].divider_line == "---:\r"


def test_split_rejects_non_string():
    with pytest.raises(InvalidInputError):
        split_content(b"bytes")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_read_and_split_keeps_carriage_returns(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_bytes(b"A\r\n---:\r\nB")

    sections = await InMemorySplitter().read_and_split(path)

    assert [s.content for s in sections] == ["A\r", "---:\r\nB"]


@pytest.mark.asyncio
async def test_read_missing_file(tmp_path: Path):
    with pytest.raises(NotFoundError, match="File not found"):
        await InMemorySplitter().read(tmp_path / "missing.md")


@pytest.mark.asyncio
async def test_read_invalid_utf8(tmp_path: Path):
    path = tmp_path / "binary.md"
    path.write_bytes(b"\xff\xfe\x00bad")
    with pytest.raises(InvalidInputError):
        await InMemorySplitter().read(path)
