"""Configuration for splitting, writing and reconstruction.

Settings are resolved in increasing order of precedence:

    1. Field defaults on :class:`SectionHashConfig`
    2. The ``sectionhash`` section of ``config/config.yaml``
    3. ``SECTIONHASH_<FIELD>`` environment variables (a ``.env`` file in the
       project root is loaded first, without overriding the environment)
    4. Explicit keyword overrides passed to :func:`load_config`

The resulting object is passed explicitly to every component; nothing reads
ambient state after loading.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SECTIONHASH_"
DEFAULT_STREAMING_THRESHOLD = 10 * 1024 * 1024


class SectionHashConfig(BaseModel):
    output_dir: Path = Path("_out")
    file_extension: str = ".md"
    hash_algorithm: str = "sha256"
    hash_length: int = Field(default=8, ge=8, le=16)
    streaming_threshold: int = Field(default=DEFAULT_STREAMING_THRESHOLD, ge=0)
    max_line_length: int = Field(default=10_000, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    timezone: str = "local"
    overwrite: bool = False
    add_references: bool = True
    shared_timestamp: bool = False

    @field_validator("file_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        if value and not value.startswith("."):
            return f".{value}"
        return value


def _find_project_root(start: Path) -> Path:
    """Find the project root by locating pyproject.toml.

    Returns the start path if no parent directory holds a pyproject.toml.
    """
    for path in [start, *start.parents]:
        if (path / "pyproject.toml").exists():
            return path
    return start


def _read_yaml_settings(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        document = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise InvalidInputError(
            f"Invalid YAML in {config_path}: {exc}", details={"path": str(config_path)}
        ) from exc
    section = document.get("sectionhash", {}) if isinstance(document, dict) else {}
    return dict(section or {})


def _read_env_settings() -> dict[str, Any]:
    settings: dict[str, Any] = {}
    for name in SectionHashConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            settings[name] = value
    return settings


def load_config(
    *,
    config_path: Path | None = None,
    env_file: Path | None = None,
    **overrides: Any,
) -> SectionHashConfig:
    """Build a :class:`SectionHashConfig` from YAML, environment and overrides.

    Args:
        config_path: Optional YAML file. Defaults to ``config/config.yaml``
            under the project root (the directory holding pyproject.toml).
        env_file: Optional ``.env`` file. Defaults to ``.env`` in the
            project root.
        **overrides: Field values that win over every other source. ``None``
            values are ignored so CLI options can be passed straight through.

    Raises:
        InvalidInputError: If the merged settings fail validation.

    Example:
        >>> cfg = load_config(hash_length=12)
        >>> cfg.hash_length
        12
    """
    project_root = _find_project_root(Path.cwd())
    if config_path is None:
        config_path = project_root / "config" / "config.yaml"
    if env_file is None:
        env_file = project_root / ".env"

    load_dotenv(env_file, override=False)

    merged: dict[str, Any] = {}
    merged.update(_read_yaml_settings(config_path))
    merged.update(_read_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = SectionHashConfig(**merged)
    except ValidationError as exc:
        raise InvalidInputError(
            f"Invalid configuration: {exc}", details={"error_count": exc.error_count()}
        ) from exc

    logger.debug("Loaded configuration: %s", config.model_dump(mode="json"))
    return config
