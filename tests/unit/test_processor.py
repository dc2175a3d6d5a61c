from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sectionhash.config import SectionHashConfig
from sectionhash.errors import InvalidRangeError, NotFoundError
from sectionhash.processor import HybridProcessor, format_bytes

DOCUMENT = "Intro\n---:\nA\n---:\nB"


@pytest.fixture
def document(tmp_path: Path) -> Path:
    path = tmp_path / "doc.md"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


def _memory() -> HybridProcessor:
    return HybridProcessor(SectionHashConfig())


def _streaming() -> HybridProcessor:
    return HybridProcessor(SectionHashConfig(streaming_threshold=0))


@pytest.mark.asyncio
async def test_strategy_selected_by_size(document: Path):
    assert await _memory().should_use_streaming(document) is False
    assert await _streaming().should_use_streaming(document) is True


@pytest.mark.asyncio
async def test_both_strategies_split_identically(document: Path):
    from_memory = await _memory().read_and_split(document)
    from_stream = await _streaming().read_and_split(document)
    assert from_memory == from_stream
    assert len(from_memory) == 3


@pytest.mark.asyncio
async def test_both_strategies_report_identical_stats(document: Path):
    memory_stats = await _memory().get_file_stats(document)
    streaming_stats = await _streaming().get_file_stats(document)

    assert memory_stats.processing_method == "memory"
    assert streaming_stats.processing_method == "streaming"
    for stats in (memory_stats, streaming_stats):
        assert stats.section_count == 3
        assert stats.divider_count == 2
        assert stats.total_lines == 5
        assert stats.total_size == len(DOCUMENT)
        assert stats.average_section_size == round(len(DOCUMENT) / 3)
    assert memory_stats.hash_index == streaming_stats.hash_index


@pytest.mark.asyncio
async def test_analyze_file_sections_match(document: Path):
    memory = await _memory().analyze_file(document)
    streaming = await _streaming().analyze_file(document)
    assert memory.processing_method == "memory"
    assert memory.sections == streaming.sections
    assert memory.divider_lines == streaming.divider_lines == [2, 4]


@pytest.mark.asyncio
async def test_empty_file_under_both_strategies(tmp_path: Path):
    path = tmp_path / "empty.md"
    path.write_text("")
    assert await _memory().read_and_split(path) == []
    # an empty file never exceeds a threshold of zero, so stream it directly
    assert await _streaming().streaming_processor.stream_split(path) == []
    stats = await _memory().get_file_stats(path)
    assert stats.section_count == 0
    assert stats.average_section_size == 0


@pytest.mark.asyncio
async def test_extract_section_by_index(document: Path):
    for processor in (_memory(), _streaming()):
        assert await processor.extract_section(document, 1) == "---:\nA"
        with pytest.raises(InvalidRangeError):
            await processor.extract_section(document, 3)
        with pytest.raises(InvalidRangeError):
            await processor.extract_section(document, -1)


@pytest.mark.asyncio
async def test_find_section_by_hash(document: Path):
    processor = _memory()
    target = processor.hasher.hash("B")
    meta = await processor.find_section_by_hash(document, target.lower())
    assert meta is not None
    assert meta.index == 2
    assert await processor.find_section_by_hash(document, "00000000") is None


@pytest.mark.asyncio
async def test_processing_recommendation(document: Path):
    recommendation = await _memory().get_processing_recommendation(document)
    assert recommendation["recommended_method"] == "memory"
    assert recommendation["use_streaming"] is False
    assert recommendation["streaming_threshold_formatted"] == "10 MB"

    recommendation = await _streaming().get_processing_recommendation(document)
    assert recommendation["recommended_method"] == "streaming"
    assert recommendation["estimated_memory_usage"] == "Low (streaming)"


@pytest.mark.asyncio
async def test_large_file_logs_strategy(document: Path, caplog):
    caplog.set_level(logging.INFO, logger="sectionhash.processor")
    await _streaming().read_and_split(document)
    assert "Large file detected" in caplog.text


@pytest.mark.asyncio
async def test_validate_input_file(document: Path, tmp_path: Path):
    assert await _memory().validate_input_file(document) is True
    with pytest.raises(NotFoundError):
        await _memory().validate_input_file(tmp_path / "missing.md")


def test_format_bytes():
    assert format_bytes(0) == "0 Bytes"
    assert format_bytes(500) == "500 Bytes"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(10 * 1024 * 1024) == "10 MB"


def test_file_extension_and_config():
    processor = HybridProcessor(SectionHashConfig(hash_length=10))
    assert processor.get_file_extension("notes.txt") == ".txt"
    assert processor.get_file_extension("README") == ".md"
    config = processor.get_config()
    assert config["hash_length"] == 10
    assert config["streaming_threshold"] == 10 * 1024 * 1024


def test_split_content_passthrough():
    sections = _memory().split_content(DOCUMENT)
    assert [s.content for s in sections] == ["Intro", "---:\nA", "---:\nB"]
