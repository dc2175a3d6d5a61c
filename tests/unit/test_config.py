from __future__ import annotations

import os
from pathlib import Path

import pytest

from sectionhash.config import SectionHashConfig, load_config
from sectionhash.errors import InvalidInputError


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in SectionHashConfig.model_fields:
        monkeypatch.delenv(f"SECTIONHASH_{name.upper()}", raising=False)


def _load(tmp_path: Path, **overrides) -> SectionHashConfig:
    return load_config(
        config_path=tmp_path / "config.yaml", env_file=tmp_path / ".env", **overrides
    )


def test_defaults(tmp_path: Path):
    cfg = _load(tmp_path)
    assert cfg.output_dir == Path("_out")
    assert cfg.file_extension == ".md"
    assert cfg.hash_algorithm == "sha256"
    assert cfg.hash_length == 8
    assert cfg.streaming_threshold == 10 * 1024 * 1024
    assert cfg.max_line_length == 10_000
    assert cfg.add_references is True
    assert cfg.overwrite is False


def test_yaml_section_is_applied(tmp_path: Path):
    (tmp_path / "config.yaml").write_text(
        "sectionhash:\n  hash_length: 12\n  file_extension: txt\nother:\n  x: 1\n"
    )
    cfg = _load(tmp_path)
    assert cfg.hash_length == 12
    assert cfg.file_extension == ".txt"


def test_environment_beats_yaml_and_overrides_beat_environment(
    tmp_path: Path, monkeypatch
):
    (tmp_path / "config.yaml").write_text("sectionhash:\n  hash_length: 12\n")
    monkeypatch.setenv("SECTIONHASH_HASH_LENGTH", "14")
    monkeypatch.setenv("SECTIONHASH_OVERWRITE", "true")

    cfg = _load(tmp_path)
    assert cfg.hash_length == 14
    assert cfg.overwrite is True

    cfg = _load(tmp_path, hash_length=16, output_dir=None)
    assert cfg.hash_length == 16
    assert cfg.output_dir == Path("_out")


def test_env_file_is_loaded(tmp_path: Path):
    (tmp_path / ".env").write_text("SECTIONHASH_TIMEZONE=utc\n")
    try:
        assert _load(tmp_path).timezone == "utc"
    finally:
        os.environ.pop("SECTIONHASH_TIMEZONE", None)


def test_invalid_yaml(tmp_path: Path):
    (tmp_path / "config.yaml").write_text("sectionhash: [unclosed\n")
    with pytest.raises(InvalidInputError, match="Invalid YAML"):
        _load(tmp_path)


def test_invalid_value(tmp_path: Path):
    with pytest.raises(InvalidInputError, match="Invalid configuration") as exc_info:
        _load(tmp_path, hash_length=4)
    assert exc_info.value.details["error_count"] == 1
