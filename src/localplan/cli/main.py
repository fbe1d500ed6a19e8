import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import SETTINGS, Settings
from ..core.logging import setup_logging

app = typer.Typer(add_completion=False, help="Local Plan chunking CLI")
console = Console()


@app.callback()
def _init(
    ctx: typer.Context,
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="Logging format: json|plain|auto (default: LOG_FORMAT)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-chunk debug events"),
) -> None:
    ctx.obj = {"log_format": log_format, "verbose": verbose}
    setup_logging(log_format or SETTINGS.LOG_FORMAT, level="debug" if verbose else "info")  # type: ignore[arg-type]


def _use_settings_logging(ctx: typer.Context, settings: Settings) -> None:
    """Re-apply logging once a command has loaded its own settings; --log-format still wins."""
    opts = ctx.obj or {}
    setup_logging(
        opts.get("log_format") or settings.LOG_FORMAT,  # type: ignore[arg-type]
        level="debug" if opts.get("verbose") else "info",
    )


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def config(
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Config file (.localplan.yaml auto-discovered)"
    ),
) -> None:
    """Show effective configuration."""
    try:
        settings = Settings.load_config(config_file)
    except ValueError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e
    typer.echo(json.dumps(settings.model_dump(), indent=2, sort_keys=True))


@app.command()
def chunk(
    ctx: typer.Context,
    documents: List[Path] = typer.Argument(..., help="Local Plan PDFs (or page-line JSON with --pages-json)"),
    council: str = typer.Option(..., "--council", help="Owning authority, recorded on every chunk"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory (default: <LOCALPLAN_WORKDIR>/runs/<run_id>/chunk)"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Documents chunked in parallel"),
    max_chars: Optional[int] = typer.Option(None, "--max-chars", help="Override MAX_CHUNK_CHARS"),
    min_chars: Optional[int] = typer.Option(None, "--min-chars", help="Override MIN_CHUNK_CHARS"),
    pages_json: bool = typer.Option(False, "--pages-json", help="Inputs are pre-extracted page-line JSON files"),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Config file (.localplan.yaml auto-discovered)"
    ),
) -> None:
    """
    Chunk Local Plan documents into section-aware retrieval chunks.

    Writes chunks.ndjson (one chunk per line, ready for embedding) and
    chunk_summary.json.

    Examples:
        localplan chunk plan.pdf --council "Enfield"
        localplan chunk a.pdf b.pdf --council "Greenwich" --max-chars 1200
    """
    from ..pipeline.runner import DocumentJob, DuplicateSourceError, check_unique_sources, run_chunk

    try:
        settings = Settings.load_config(
            config_file, MAX_CHUNK_CHARS=max_chars, MIN_CHUNK_CHARS=min_chars
        )
    except ValueError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e
    _use_settings_logging(ctx, settings)

    missing = [str(p) for p in documents if not p.exists()]
    if missing:
        typer.echo(f"❌ Not found: {', '.join(missing)}", err=True)
        raise typer.Exit(2)

    jobs = [DocumentJob(path=p, council=council, pages_json=pages_json) for p in documents]
    try:
        check_unique_sources(jobs)
    except DuplicateSourceError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2) from e

    summary = run_chunk(jobs, out_dir=out, workers=workers, settings=settings)

    table = Table(title=f"Chunk run {summary['run_id']}")
    table.add_column("Source")
    table.add_column("Council")
    table.add_column("Chunks", justify="right")
    table.add_column("Status")
    for doc in summary["documents"]:
        status = "[green]ok[/green]" if doc["error"] is None else f"[red]{escape(doc['error'])}[/red]"
        table.add_row(doc["source"], doc["council"], str(doc["chunks"]), status)
    console.print(table)
    console.print(f"📁 Artifacts written to: {Path(summary['artifacts']['chunks_file']).parent}")

    if summary["failures"]:
        raise typer.Exit(1)


@app.command()
def classify(
    lines: List[str] = typer.Argument(..., help="Lines to classify"),
) -> None:
    """Show how heading detection classifies each line."""
    from ..pipeline.steps.chunk.headings import classify_heading
    from ..pipeline.steps.chunk.normalize import normalize_line

    table = Table()
    table.add_column("Line")
    table.add_column("Section type")
    for raw in lines:
        match = classify_heading(normalize_line(raw))
        table.add_row(raw, match.section_type.value if match else "-")
    console.print(table)


@app.command()
def verify(
    ctx: typer.Context,
    chunks_file: Path = typer.Argument(..., help="chunks.ndjson to verify"),
    max_chars: Optional[int] = typer.Option(None, "--max-chars", help="Override MAX_CHUNK_CHARS"),
    min_chars: Optional[int] = typer.Option(None, "--min-chars", help="Override MIN_CHUNK_CHARS"),
    json_output: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Config file (.localplan.yaml auto-discovered)"
    ),
) -> None:
    """Verify chunk invariants in a chunks.ndjson file. Exits 1 on FAIL."""
    from ..core.artifacts import ChunkFileError, read_chunks
    from ..pipeline.steps.chunk.verify import verify_chunks

    try:
        settings = Settings.load_config(
            config_file, MAX_CHUNK_CHARS=max_chars, MIN_CHUNK_CHARS=min_chars
        )
        chunks = read_chunks(chunks_file)
    except ChunkFileError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2) from e
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Cannot verify {chunks_file}: {e}", err=True)
        raise typer.Exit(2) from e
    _use_settings_logging(ctx, settings)

    report = verify_chunks(chunks, settings)

    if json_output:
        typer.echo(json.dumps(report, indent=2))
    else:
        console.print(
            f"{report['status']}: {report['total_chunks']} chunks across {report['documents']} documents"
        )
        for rule, count in sorted(report["rule_counts"].items()):
            console.print(f"  {rule}: {count}")

    if report["status"] != "PASS":
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
