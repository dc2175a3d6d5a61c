"""Command-line interface for sectionhash.

Commands:
    - split: Split a document at ``---:`` dividers into hash-named files
    - reconstruct: Rebuild a document from its anchor file
    - analyze: Show which processing strategy a file gets, plus its stats
    - stats: Section statistics for a file
    - serve: Run the read-only HTTP browser over an output directory

Usage:
    $ sectionhash split notes.md -o _out --clean
    $ sectionhash reconstruct _out/notes.md --input-dir _out
    $ sectionhash analyze notes.md
"""

from __future__ import annotations

import asyncio
import json
import logging
from importlib.util import find_spec
from pathlib import Path
from typing import Any

import aiofiles
import typer

from .config import SectionHashConfig, load_config
from .logging import configure_logging
from .processor import HybridProcessor
from .reconstruct import DocumentReconstructor
from .writer import SectionWriter, summarize

app = typer.Typer(help="Split documents into content-addressed sections and back.")

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024


def _print_result(result: dict[str, Any], *, verbose: bool) -> None:
    """Print a result dictionary to stdout.

    Args:
        result: The result dictionary to print.
        verbose: If True, print pretty-printed JSON. If False, print
            simplified key-value pairs.
    """
    if verbose:
        typer.echo(json.dumps(result, indent=2, sort_keys=True, default=str))
        return

    for key, value in result.items():
        if isinstance(value, (dict, list)):
            typer.echo(f"{key}: {json.dumps(value, default=str)}")
        else:
            typer.echo(f"{key}: {value}")


def _handle_error(exc: Exception) -> None:
    """Print an error message and exit with code 1.

    Raises:
        typer.Exit: Always.
    """
    if isinstance(exc, typer.Exit):
        raise exc
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


def _setup(verbose: bool, json_logs: bool = False) -> None:
    configure_logging(logging.DEBUG if verbose else logging.WARNING, json_logs)


async def _split(
    config: SectionHashConfig, input_file: Path, clean: bool, strict: bool = False
) -> dict[str, Any]:
    processor = HybridProcessor(config)
    writer = SectionWriter(config)

    removed: list[str] = []
    if clean:
        removed = await writer.clean_output_directory()

    use_streaming = await processor.should_use_streaming(input_file)
    sections = await processor.read_and_split(input_file)
    if not sections:
        logger.warning("No sections found in %s", input_file)
        return {
            "input": str(input_file),
            "output_dir": str(writer.output_dir),
            "sections": 0,
            "cleaned": len(removed),
        }

    results = await writer.write_sections(sections, input_file, strict=strict)
    summary = summarize(results)
    return {
        "input": str(input_file),
        "output_dir": str(writer.output_dir),
        "processing_method": "streaming" if use_streaming else "memory",
        "sections": len(sections),
        "cleaned": len(removed),
        "written": summary.written,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "total_bytes": summary.total_bytes,
        "files": [
            {"filename": r.filename, "hash": r.hash, "reason": r.reason}
            for r in results
        ],
    }


async def _reconstruct(
    reconstructor: DocumentReconstructor,
    input_file: Path,
    output_file: Path,
) -> dict[str, Any]:
    result = await reconstructor.reconstruct(input_file)
    async with aiofiles.open(output_file, "w", encoding="utf-8", newline="") as f:
        await f.write(result.content)
    return {
        "input": str(input_file),
        "output": str(output_file),
        "search_dir": str(result.search_dir),
        "total_references": len(result.references),
        "found_references": len(result.found),
        "missing_references": len(result.missing),
        "missing_files": [
            reconstructor.reference_path(r, result.search_dir).name
            for r in result.missing
        ],
        "size": len(result.content.encode("utf-8")),
    }


async def _analyze(processor: HybridProcessor, input_file: Path) -> dict[str, Any]:
    recommendation = await processor.get_processing_recommendation(input_file)
    stats = await processor.get_file_stats(input_file)
    return {"recommendation": recommendation, "stats": stats.to_dict()}


@app.command("split")
def split(
    input_file: Path = typer.Argument(..., help="Document to split"),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o", help="Output directory (default: _out)"
    ),
    hash_length: int | None = typer.Option(
        None, "--hash-length", help="Hash length in hex characters (8-16)"
    ),
    streaming_threshold: int | None = typer.Option(
        None,
        "--streaming-threshold",
        help="File size in MB above which streaming is used (default: 10)",
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite files"),
    clean: bool = typer.Option(
        False, "--clean", help="Delete files in the output directory first"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail instead of skipping when a file already exists"
    ),
    shared_timestamp: bool = typer.Option(
        False, "--shared-timestamp", help="Use one timestamp for every divider"
    ),
    no_references: bool = typer.Option(
        False, "--no-references", help="Do not add references to the anchor file"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML settings file (default: config/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Split a document at ``---:`` dividers into content-addressed files."""
    try:
        _setup(verbose)
        config = load_config(
            config_path=config_path,
            output_dir=output_dir,
            hash_length=hash_length,
            streaming_threshold=streaming_threshold * _BYTES_PER_MB
            if streaming_threshold is not None
            else None,
            overwrite=overwrite or None,
            shared_timestamp=shared_timestamp or None,
            add_references=False if no_references else None,
        )
        result = asyncio.run(_split(config, input_file, clean, strict))
        if not verbose:
            result.pop("files", None)
        _print_result(result, verbose=verbose)
        if result.get("failed"):
            raise typer.Exit(code=1)
    except Exception as exc:
        _handle_error(exc)


@app.command("reconstruct")
def reconstruct(
    input_file: Path = typer.Argument(..., help="Anchor file with references"),
    output_file: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (default: <input>-reconstructed<ext>)",
    ),
    input_dir: Path | None = typer.Option(
        None,
        "--input-dir",
        help="Directory holding the section files (default: the anchor's directory)",
    ),
    analyze: bool = typer.Option(
        False, "--analyze", help="Only report references, do not reconstruct"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML settings file (default: config/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Rebuild a document from its anchor file and section files."""
    try:
        _setup(verbose)
        config = load_config(config_path=config_path)
        reconstructor = DocumentReconstructor(config, input_dir=input_dir)

        if analyze:
            analysis = asyncio.run(reconstructor.analyze_file(input_file))
            _print_result(analysis.to_dict(), verbose=verbose)
            return

        if output_file is None:
            output_file = Path(
                f"{input_file.stem}-reconstructed"
                f"{input_file.suffix or config.file_extension}"
            )
        result = asyncio.run(_reconstruct(reconstructor, input_file, output_file))
        if not verbose:
            result.pop("missing_files")
        _print_result(result, verbose=verbose)
    except Exception as exc:
        _handle_error(exc)


@app.command("analyze")
def analyze(
    input_file: Path = typer.Argument(..., help="Document to analyze"),
    streaming_threshold: int | None = typer.Option(
        None, "--streaming-threshold", help="Streaming threshold in MB"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML settings file (default: config/config.yaml)"
    ),
) -> None:
    """Print the processing recommendation and file statistics as JSON."""
    try:
        _setup(False)
        config = load_config(
            config_path=config_path,
            streaming_threshold=streaming_threshold * _BYTES_PER_MB
            if streaming_threshold is not None
            else None,
        )
        result = asyncio.run(_analyze(HybridProcessor(config), input_file))
        _print_result(result, verbose=True)
    except Exception as exc:
        _handle_error(exc)


@app.command("stats")
def stats(
    input_file: Path = typer.Argument(..., help="Document to inspect"),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML settings file (default: config/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Print section statistics for a document."""
    try:
        _setup(verbose)
        processor = HybridProcessor(load_config(config_path=config_path))
        file_stats = asyncio.run(processor.get_file_stats(input_file))
        result = file_stats.to_dict()
        if not verbose:
            result.pop("hash_index")
        _print_result(result, verbose=verbose)
    except Exception as exc:
        _handle_error(exc)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind host"),
    port: int = typer.Option(3000, help="Bind port"),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", help="Directory to serve (default: _out)"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="YAML settings file (default: config/config.yaml)"
    ),
) -> None:
    """Run the read-only HTTP browser over an output directory."""
    try:
        missing = [pkg for pkg in ("fastapi", "uvicorn") if find_spec(pkg) is None]
        if missing:
            typer.echo(
                "Server dependencies missing: " + ", ".join(missing),
                err=True,
            )
            raise typer.Exit(code=2)

        import uvicorn

        from .server.config import ServerRuntimeConfig
        from .server.main import create_app

        configure_logging(logging.INFO)
        config = load_config(config_path=config_path, output_dir=output_dir)
        app_obj = create_app(
            config=ServerRuntimeConfig(
                output_dir=config.output_dir,
                file_extension=config.file_extension,
                hash_length=config.hash_length,
            )
        )
        uvicorn.run(app_obj, host=host, port=port)
    except Exception as exc:
        _handle_error(exc)


if __name__ == "__main__":
    app()
